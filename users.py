"""
Credential store and account operations.

Every path that persists a password goes through ``security.hash_password``;
documents never hold plaintext.
"""
import logging
from typing import Any, Dict, Optional

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import create_document, to_object_id, to_public, utcnow
from errors import AuthenticationError, ConflictError, InvalidInputError, NotFoundError
from schemas import (
    DEFAULT_USER_NAME,
    NonTeachingStaffDetails,
    ProfileUpdateBody,
    RegisterBody,
    StaffDetails,
    StudentDetails,
    User,
)
from security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

# Accounts created with only an email get this until the owner changes it
TEMP_PASSWORD = "tempPassword123"

DETAIL_BLOCKS = {
    "student": "student_details",
    "teaching_staff": "staff_details",
    "non_teaching_staff": "non_teaching_staff_details",
}


def normalize_email(email: Optional[str]) -> Optional[str]:
    if email is None:
        return None
    email = email.strip().lower()
    return email or None


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    if phone is None:
        return None
    phone = phone.strip()
    return phone or None


def provided(value: Any) -> bool:
    """Patch fields that are None or blank strings leave the stored value alone."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


class UserStore:
    def __init__(self, db: Database):
        self.collection = db["user"]

    def find_by_email(self, email: Optional[str]) -> Optional[Dict[str, Any]]:
        email = normalize_email(email)
        if not email:
            return None
        return self.collection.find_one({"email": email})

    def find_by_phone(self, phone: Optional[str]) -> Optional[Dict[str, Any]]:
        phone = normalize_phone(phone)
        if not phone:
            return None
        return self.collection.find_one({"phone": phone})

    def find_by_id(self, user_id: Any, include_password: bool = False) -> Optional[Dict[str, Any]]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        projection = None if include_password else {"password": 0}
        return self.collection.find_one({"_id": oid}, projection)

    def _check_unique(self, email: Optional[str], phone: Optional[str], exclude_id=None) -> None:
        for field, existing in (("email", self.find_by_email(email)), ("phone", self.find_by_phone(phone))):
            if existing and existing["_id"] != exclude_id:
                raise ConflictError(f"User with this {field} already exists")

    def create(self, user: User) -> Dict[str, Any]:
        """Insert a new user. ``user.password`` is the plaintext; it is hashed here."""
        doc = user.model_dump()
        doc["password"] = hash_password(user.password)
        doc["email"] = normalize_email(doc.get("email"))
        doc["phone"] = normalize_phone(doc.get("phone"))
        # absent unique fields are left out so the sparse indexes skip them
        for field in ("email", "phone"):
            if doc[field] is None:
                doc.pop(field)

        self._check_unique(doc.get("email"), doc.get("phone"))
        try:
            return create_document(self.collection.database, "user", doc)
        except DuplicateKeyError as e:
            raise ConflictError("User with this email or phone already exists") from e

    def save(self, user: Dict[str, Any], new_password: Optional[str] = None) -> Dict[str, Any]:
        """Persist a mutated user document, hashing ``new_password`` when given."""
        user = dict(user)
        if new_password is not None:
            user["password"] = hash_password(new_password)
        self._check_unique(user.get("email"), user.get("phone"), exclude_id=user["_id"])
        user["updated_at"] = utcnow()

        update = {k: v for k, v in user.items() if k != "_id"}
        unset = {f: "" for f in ("email", "phone") if update.get(f) is None}
        for f in unset:
            update.pop(f, None)
        ops: Dict[str, Any] = {"$set": update}
        if unset:
            ops["$unset"] = unset
        try:
            self.collection.update_one({"_id": user["_id"]}, ops)
        except DuplicateKeyError as e:
            raise ConflictError("User with this email or phone already exists") from e
        return self.find_by_id(user["_id"])


def select_details(role: str, body: Any) -> Optional[Dict[str, Any]]:
    """The details block in ``body`` that matches ``role``, as a stored variant."""
    field = DETAIL_BLOCKS.get(role)
    if field is None:
        return None
    block = getattr(body, field, None)
    if block is None:
        return None
    return block.model_dump()


def _render_block(details: Optional[Dict[str, Any]], kind: str) -> Dict[str, Any]:
    if not details or details.get("kind") != kind:
        return {}
    return {k: v for k, v in details.items() if k != "kind" and v is not None}


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """Profile view: no password, details rendered as the three role blocks."""
    view = to_public(user)
    details = view.pop("details", None)
    view.setdefault("email", None)
    view.setdefault("phone", None)
    view["student_details"] = _render_block(details, StudentDetails().kind)
    view["staff_details"] = _render_block(details, StaffDetails().kind)
    view["non_teaching_staff_details"] = _render_block(details, NonTeachingStaffDetails().kind)
    return view


def with_token(user: Dict[str, Any]) -> Dict[str, Any]:
    view = public_user(user)
    view["token"] = create_access_token(str(user["_id"]))
    return view


def register_user(store: UserStore, body: RegisterBody) -> Dict[str, Any]:
    if not body.email:
        raise InvalidInputError("Email is required")

    role = body.role or "student"
    user = User(
        name=body.name or DEFAULT_USER_NAME,
        email=body.email,
        phone=body.phone,
        password=body.password or TEMP_PASSWORD,
        role=role,
        is_verified=False,
        details=select_details(role, body),
        additional_details=body.additional_details,
    )
    created = store.create(user)
    logger.info("Registered user %s (%s)", created["_id"], role)
    return with_token(created)


def login_user(store: UserStore, email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
    if not email or not password:
        raise InvalidInputError("Email and password are required")

    user = store.find_by_email(email)
    if not user or not verify_password(password, user.get("password")):
        logger.info("Failed login attempt")
        raise AuthenticationError("Invalid email or password")
    return with_token(user)


def update_profile(store: UserStore, user_id: Any, body: ProfileUpdateBody) -> Dict[str, Any]:
    """Overwrite provided fields and rebuild the details variant for the new role."""
    user = store.find_by_id(user_id, include_password=True)
    if not user:
        raise NotFoundError("User not found")

    old_role = user.get("role")
    for field in ("name", "email", "phone", "role", "additional_details"):
        value = getattr(body, field)
        if provided(value):
            user[field] = value
    user["email"] = normalize_email(user.get("email"))
    user["phone"] = normalize_phone(user.get("phone"))

    new_role = user["role"]
    supplied = select_details(new_role, body)
    if supplied is not None:
        user["details"] = supplied
    elif new_role != old_role:
        user["details"] = None

    new_password = body.password if provided(body.password) else None
    saved = store.save(user, new_password=new_password)
    logger.info("Updated profile for user %s", saved["_id"])
    return with_token(saved)
