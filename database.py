"""
MongoDB access for the Student Support API.

Collection names are the lowercased schema class names (User -> "user").
``db`` is None when DATABASE_URL / DATABASE_NAME are not configured.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import DATABASE_NAME, DATABASE_URL
from errors import InternalError

logger = logging.getLogger(__name__)

client: Optional[MongoClient] = None
db: Optional[Database] = None

if DATABASE_URL and DATABASE_NAME:
    client = MongoClient(DATABASE_URL)
    db = client[DATABASE_NAME]
else:
    logger.warning("DATABASE_URL / DATABASE_NAME not set, database unavailable")


def get_db() -> Database:
    if db is None:
        raise InternalError("Database not configured")
    return db


def ensure_indexes(database: Database) -> None:
    # sparse: users without an email or phone do not collide
    database["user"].create_index([("email", ASCENDING)], unique=True, sparse=True)
    database["user"].create_index([("phone", ASCENDING)], unique=True, sparse=True)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse an id from a path or token; None when it is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def create_document(database: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    """Insert a document stamped with created_at/updated_at and return it with its _id."""
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    now = utcnow()
    doc["created_at"] = now
    doc["updated_at"] = now
    inserted_id = database[collection_name].insert_one(doc).inserted_id
    doc["_id"] = inserted_id
    return doc


def to_public(doc: Any) -> Any:
    """JSON-friendly copy of a Mongo document: _id -> id, ObjectIds -> str, no password."""
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, list):
        return [to_public(v) for v in doc]
    if not isinstance(doc, dict):
        return doc
    d = {}
    for key, value in doc.items():
        if key == "password":
            continue
        if key == "_id":
            d["id"] = str(value)
        else:
            d[key] = to_public(value)
    return d
