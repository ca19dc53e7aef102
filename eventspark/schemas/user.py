"""
Pydantic schemas for users and the role buckets the admin view manages.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from eventspark.schemas.common import WIRE_CONFIG, IdStr, Text, id_field


class UserRole(str, Enum):
    ADMIN = "admin"
    ORGANIZER = "organizer"
    USER = "user"


class User(BaseModel):
    id: IdStr = id_field()
    name: Text = ""
    email: str
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    role: UserRole = UserRole.USER
    verified: bool = False
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = WIRE_CONFIG


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone_number: str = Field("", alias="phoneNumber")
    role: UserRole = UserRole.ORGANIZER

    model_config = WIRE_CONFIG


class UserBuckets(BaseModel):
    """Users partitioned by role; an email lives in exactly one bucket."""

    admin: list[User] = []
    organizer: list[User] = []
    user: list[User] = []

    model_config = WIRE_CONFIG

    def bucket(self, role: UserRole) -> list[User]:
        return getattr(self, role.value)

    def all_users(self) -> list[User]:
        return [*self.admin, *self.organizer, *self.user]

    def find(self, email: str) -> Optional[User]:
        wanted = email.lower()
        for user in self.all_users():
            if user.email.lower() == wanted:
                return user
        return None

    def contains_email(self, email: str) -> bool:
        return self.find(email) is not None
