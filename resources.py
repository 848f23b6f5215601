"""
Owned resources: complaints, lost/found items and events.

Any authenticated user may create and read. Only the creator (the ``user``
field) may update or delete. List and get resolve owners to
``{id, name, role}``; create and update return the raw owner id.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fastapi import UploadFile
from pymongo import DESCENDING
from pymongo.database import Database

from database import create_document, to_object_id, to_public, utcnow
from errors import ForbiddenError, InvalidInputError, NotFoundError
from schemas import Comment, Complaint, Event, LostFound
from uploads import save_upload
from users import provided

logger = logging.getLogger(__name__)


def parse_event_date(value: str) -> datetime:
    """Parse an ISO calendar date or datetime; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (ValueError, AttributeError) as e:
        raise InvalidInputError("Invalid date format") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ResourceService(ABC):
    collection_name: str = ""
    label: str = ""
    required_fields: Tuple[str, ...] = ()
    required_message: str = ""
    sort_key: str = "created_at"
    image_field: Optional[str] = "image"

    def __init__(self, db: Database):
        self.db = db
        self.collection = db[self.collection_name]

    # --- helpers ---

    @abstractmethod
    def build(self, identity: Dict[str, Any], fields: Dict[str, Any], image_path: Optional[str]):
        """The collection model for a new document owned by ``identity``."""

    def validate(self, fields: Dict[str, Any]) -> None:
        """Checks run before anything is written."""
        if not all(provided(fields.get(f)) for f in self.required_fields):
            raise InvalidInputError(self.required_message)

    def _load(self, resource_id: str) -> Dict[str, Any]:
        oid = to_object_id(resource_id)
        doc = self.collection.find_one({"_id": oid}) if oid is not None else None
        if doc is None:
            raise NotFoundError(f"{self.label.capitalize()} not found")
        return doc

    def _load_owned(self, identity: Dict[str, Any], resource_id: str, action: str) -> Dict[str, Any]:
        doc = self._load(resource_id)
        if doc.get("user") != identity["_id"]:
            raise ForbiddenError(f"Not authorized to {action} this {self.label}")
        return doc

    def _owner_views(self, user_ids: Iterable[Any]) -> Dict[Any, Dict[str, Any]]:
        ids = list({uid for uid in user_ids if uid is not None})
        if not ids:
            return {}
        users = self.db["user"].find({"_id": {"$in": ids}}, {"name": 1, "role": 1})
        return {u["_id"]: {"id": str(u["_id"]), "name": u.get("name"), "role": u.get("role")} for u in users}

    def _with_owner(self, doc: Dict[str, Any], owners: Dict[Any, Dict[str, Any]]) -> Dict[str, Any]:
        view = to_public(doc)
        # deleted creators resolve to None
        view["user"] = owners.get(doc.get("user"))
        return view

    def apply_patch(self, patch) -> Dict[str, Any]:
        return {field: value for field, value in patch.model_dump().items() if provided(value)}

    # --- operations ---

    def create(self, identity: Dict[str, Any], fields: Dict[str, Any], upload: Optional[UploadFile] = None) -> Dict[str, Any]:
        self.validate(fields)
        model = self.build(identity, fields, save_upload(upload))
        doc = create_document(self.db, self.collection_name, model)
        logger.info("Created %s %s by user %s", self.label, doc["_id"], identity["_id"])
        return to_public(doc)

    def list(self) -> List[Dict[str, Any]]:
        docs = list(self.collection.find({}).sort(self.sort_key, DESCENDING))
        owners = self._owner_views(d.get("user") for d in docs)
        return [self._with_owner(d, owners) for d in docs]

    def get(self, resource_id: str) -> Dict[str, Any]:
        doc = self._load(resource_id)
        return self._with_owner(doc, self._owner_views([doc.get("user")]))

    def update(self, identity: Dict[str, Any], resource_id: str, patch, upload: Optional[UploadFile] = None) -> Dict[str, Any]:
        doc = self._load_owned(identity, resource_id, "update")

        changes = self.apply_patch(patch)
        image_path = save_upload(upload) if self.image_field else None
        if image_path:
            changes[self.image_field] = image_path
        changes["updated_at"] = utcnow()

        self.collection.update_one({"_id": doc["_id"]}, {"$set": changes})
        doc.update(changes)
        return to_public(doc)

    def delete(self, identity: Dict[str, Any], resource_id: str) -> Dict[str, str]:
        doc = self._load_owned(identity, resource_id, "delete")
        self.collection.delete_one({"_id": doc["_id"]})
        logger.info("Deleted %s %s by user %s", self.label, doc["_id"], identity["_id"])
        return {"message": f"{self.label.capitalize()} removed"}


class ComplaintService(ResourceService):
    collection_name = "complaint"
    label = "complaint"
    required_fields = ("subject", "description")
    required_message = "Subject and description are required"

    def build(self, identity, fields, image_path):
        return Complaint(
            user=identity["_id"],
            subject=fields["subject"],
            description=fields["description"],
            image=image_path,
        )

    def get(self, resource_id: str) -> Dict[str, Any]:
        doc = self._load(resource_id)
        comments = doc.get("comments") or []
        owners = self._owner_views([doc.get("user")] + [c.get("user") for c in comments])

        view = self._with_owner(doc, owners)
        view["comments"] = [dict(to_public(c), user=owners.get(c.get("user"))) for c in comments]
        return view

    def add_comment(self, identity: Dict[str, Any], complaint_id: str, text: Optional[str]) -> Dict[str, str]:
        if not provided(text):
            raise InvalidInputError("Comment text is required")

        doc = self._load(complaint_id)
        comment = Comment(user=identity["_id"], name=identity.get("name", ""), text=text, created_at=utcnow())
        self.collection.update_one(
            {"_id": doc["_id"]},
            {"$push": {"comments": comment.model_dump()}, "$set": {"updated_at": utcnow()}},
        )
        return {"message": "Comment added"}


class LostFoundService(ResourceService):
    collection_name = "lostfound"
    label = "item"
    required_fields = ("item_name", "description")
    required_message = "Item name and description are required"

    def build(self, identity, fields, image_path):
        return LostFound(
            user=identity["_id"],
            item_name=fields["item_name"],
            description=fields["description"],
            image=image_path,
        )


class EventService(ResourceService):
    collection_name = "event"
    label = "event"
    required_fields = ("title", "date", "venue")
    required_message = "Title, date, and venue are required"
    # newest event date first, not creation order
    sort_key = "date"
    image_field = "poster"

    def validate(self, fields):
        super().validate(fields)
        parse_event_date(fields["date"])

    def build(self, identity, fields, image_path):
        return Event(
            user=identity["_id"],
            title=fields["title"],
            description=fields.get("description"),
            poster=image_path or "",
            date=parse_event_date(fields["date"]),
            venue=fields["venue"],
        )

    def apply_patch(self, patch):
        changes = super().apply_patch(patch)
        if "date" in changes:
            changes["date"] = parse_event_date(changes["date"])
        return changes
