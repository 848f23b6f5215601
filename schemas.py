"""
Database Schemas for Student Support

Each Pydantic model corresponds to a MongoDB collection.
Collection name is the lowercase class name (e.g., User -> "user").
Timestamps (created_at / updated_at) are added by database.create_document().
"""
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

Role = Literal["student", "teaching_staff", "non_teaching_staff", "admin"]
ComplaintStatus = Literal["pending", "in_progress", "resolved"]

DEFAULT_USER_NAME = "New User"


# Role-specific details: exactly one variant, selected by the user's role

class StudentDetails(BaseModel):
    kind: Literal["student"] = "student"
    branch: Optional[str] = Field(None, description="Branch / department")
    degree: Optional[str] = Field(None, description="Degree programme")


class StaffDetails(BaseModel):
    kind: Literal["teaching_staff"] = "teaching_staff"
    subject: Optional[str] = Field(None, description="Subject taught")
    designation: Optional[str] = Field(None, description="Designation")


class NonTeachingStaffDetails(BaseModel):
    kind: Literal["non_teaching_staff"] = "non_teaching_staff"
    details: Optional[str] = Field(None, description="Free-text details")


RoleDetails = Annotated[
    Union[StudentDetails, StaffDetails, NonTeachingStaffDetails],
    Field(discriminator="kind"),
]


class User(BaseModel):
    name: str = Field(DEFAULT_USER_NAME, description="Full name")
    email: Optional[str] = Field(None, description="Email address, lowercased")
    phone: Optional[str] = Field(None, description="Phone number")
    password: str = Field(..., description="Hashed password")
    role: Role = Field("student", description="Role for permissions")
    is_verified: bool = Field(False, description="Whether the account is verified")
    details: Optional[RoleDetails] = Field(None, description="Details for the current role")
    additional_details: Optional[str] = Field(None, description="Free-text profile notes")


class _Owned(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    user: ObjectId = Field(..., description="Creator's user id")


class Comment(_Owned):
    name: str = Field(..., description="Commenter name at comment time")
    text: str = Field(..., description="Comment text")
    created_at: datetime


class Complaint(_Owned):
    subject: str
    description: str
    image: Optional[str] = Field(None, description="Uploaded image path")
    status: ComplaintStatus = "pending"
    comments: List[Comment] = Field(default_factory=list)


class LostFound(_Owned):
    item_name: str
    description: str
    image: Optional[str] = Field(None, description="Uploaded image path")
    comments: List[Comment] = Field(default_factory=list)


class Event(_Owned):
    title: str
    description: Optional[str] = None
    poster: str = Field("", description="Uploaded poster path")
    date: datetime = Field(..., description="Event date (UTC midnight for plain dates)")
    venue: str


# Request bodies

class RegisterBody(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    role: Optional[Role] = None
    student_details: Optional[StudentDetails] = None
    staff_details: Optional[StaffDetails] = None
    non_teaching_staff_details: Optional[NonTeachingStaffDetails] = None
    additional_details: Optional[str] = None


class LoginBody(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdateBody(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    role: Optional[Role] = None
    student_details: Optional[StudentDetails] = None
    staff_details: Optional[StaffDetails] = None
    non_teaching_staff_details: Optional[NonTeachingStaffDetails] = None
    additional_details: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CommentBody(BaseModel):
    text: Optional[str] = None


# Partial updates: None means "leave unchanged"

class ComplaintPatch(BaseModel):
    subject: Optional[str] = None
    description: Optional[str] = None


class LostFoundPatch(BaseModel):
    item_name: Optional[str] = None
    description: Optional[str] = None


class EventPatch(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    poster: Optional[str] = None
    date: Optional[str] = None
    venue: Optional[str] = None
