"""Domain models for users, identities and projects."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .task import utc_now


class Role(str, Enum):
    """Privilege levels a user can hold."""
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


class Identity(BaseModel):
    """Verified requester identity decoded from a bearer token."""

    model_config = ConfigDict(frozen=True)

    id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class User(BaseModel):
    """User domain model. The password hash is never part of it."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    id: int
    email: str
    name: str
    role: Role = Role.USER
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Project(BaseModel):
    """Project domain model."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    name: str
    description: Optional[str] = None
    owner_id: int
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
