import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pymongo.database import Database

import database
from auth import get_current_user
from config import CORS_ORIGINS, PORT, UPLOAD_DIR
from database import ensure_indexes, get_db
from errors import register_exception_handlers
from logging_config import setup_logging
from resources import ComplaintService, EventService, LostFoundService
from schemas import (
    CommentBody,
    ComplaintPatch,
    EventPatch,
    LoginBody,
    LostFoundPatch,
    ProfileUpdateBody,
    RegisterBody,
)
from users import UserStore, login_user, public_user, register_user, update_profile

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is not None:
        ensure_indexes(database.db)
    yield


# App setup
app = FastAPI(title="Student Support API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

os.makedirs(UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")


# Dependencies

def get_user_store(db: Database = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_complaint_service(db: Database = Depends(get_db)) -> ComplaintService:
    return ComplaintService(db)


def get_lost_found_service(db: Database = Depends(get_db)) -> LostFoundService:
    return LostFoundService(db)


def get_event_service(db: Database = Depends(get_db)) -> EventService:
    return EventService(db)


# Users Endpoints
@app.post("/api/users/register", status_code=status.HTTP_201_CREATED)
def register(body: RegisterBody, store: UserStore = Depends(get_user_store)):
    return register_user(store, body)


@app.post("/api/users/login")
def login(body: LoginBody, store: UserStore = Depends(get_user_store)):
    return login_user(store, body.email, body.password)


@app.get("/api/users/verify-token")
def verify_token(current=Depends(get_current_user)):
    return {"valid": True}


@app.get("/api/users/profile")
def get_profile(current=Depends(get_current_user)):
    return public_user(current)


@app.put("/api/users/profile")
def put_profile(body: ProfileUpdateBody, current=Depends(get_current_user), store: UserStore = Depends(get_user_store)):
    return update_profile(store, current["_id"], body)


# Complaints Endpoints
@app.get("/api/complaints")
def list_complaints(current=Depends(get_current_user), service: ComplaintService = Depends(get_complaint_service)):
    return service.list()


@app.post("/api/complaints", status_code=status.HTTP_201_CREATED)
def create_complaint(
    subject: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current=Depends(get_current_user),
    service: ComplaintService = Depends(get_complaint_service),
):
    return service.create(current, {"subject": subject, "description": description}, image)


@app.get("/api/complaints/{complaint_id}")
def get_complaint(complaint_id: str, current=Depends(get_current_user), service: ComplaintService = Depends(get_complaint_service)):
    return service.get(complaint_id)


@app.put("/api/complaints/{complaint_id}")
def update_complaint(
    complaint_id: str,
    subject: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current=Depends(get_current_user),
    service: ComplaintService = Depends(get_complaint_service),
):
    patch = ComplaintPatch(subject=subject, description=description)
    return service.update(current, complaint_id, patch, image)


@app.delete("/api/complaints/{complaint_id}")
def delete_complaint(complaint_id: str, current=Depends(get_current_user), service: ComplaintService = Depends(get_complaint_service)):
    return service.delete(current, complaint_id)


@app.post("/api/complaints/{complaint_id}/comments", status_code=status.HTTP_201_CREATED)
def add_comment(
    complaint_id: str,
    body: CommentBody,
    current=Depends(get_current_user),
    service: ComplaintService = Depends(get_complaint_service),
):
    return service.add_comment(current, complaint_id, body.text)


# Lost & Found Endpoints
@app.get("/api/lostfound")
def list_lost_found(current=Depends(get_current_user), service: LostFoundService = Depends(get_lost_found_service)):
    return service.list()


@app.post("/api/lostfound", status_code=status.HTTP_201_CREATED)
def create_lost_found(
    item_name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current=Depends(get_current_user),
    service: LostFoundService = Depends(get_lost_found_service),
):
    return service.create(current, {"item_name": item_name, "description": description}, image)


@app.get("/api/lostfound/{item_id}")
def get_lost_found_item(item_id: str, current=Depends(get_current_user), service: LostFoundService = Depends(get_lost_found_service)):
    return service.get(item_id)


@app.put("/api/lostfound/{item_id}")
def update_lost_found(
    item_id: str,
    item_name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current=Depends(get_current_user),
    service: LostFoundService = Depends(get_lost_found_service),
):
    patch = LostFoundPatch(item_name=item_name, description=description)
    return service.update(current, item_id, patch, image)


@app.delete("/api/lostfound/{item_id}")
def delete_lost_found(item_id: str, current=Depends(get_current_user), service: LostFoundService = Depends(get_lost_found_service)):
    return service.delete(current, item_id)


# Events Endpoints
@app.get("/api/events")
def list_events(current=Depends(get_current_user), service: EventService = Depends(get_event_service)):
    return service.list()


@app.post("/api/events", status_code=status.HTTP_201_CREATED)
def create_event(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    venue: Optional[str] = Form(None),
    poster: Optional[UploadFile] = File(None),
    current=Depends(get_current_user),
    service: EventService = Depends(get_event_service),
):
    fields = {"title": title, "description": description, "date": date, "venue": venue}
    return service.create(current, fields, poster)


@app.get("/api/events/{event_id}")
def get_event(event_id: str, current=Depends(get_current_user), service: EventService = Depends(get_event_service)):
    return service.get(event_id)


@app.put("/api/events/{event_id}")
def update_event(event_id: str, body: EventPatch, current=Depends(get_current_user), service: EventService = Depends(get_event_service)):
    return service.update(current, event_id, body)


@app.delete("/api/events/{event_id}")
def delete_event(event_id: str, current=Depends(get_current_user), service: EventService = Depends(get_event_service)):
    return service.delete(current, event_id)


@app.get("/")
def read_root():
    return {"message": "Student Support API is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
