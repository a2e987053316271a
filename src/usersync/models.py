"""
Pydantic models for the synchronized user collection.

A user lives in two places: the local replica (where it carries
pending_sync / pending_delete flags) and the remote store (where
it travels as camelCase JSON). Ids come in two shapes -- server
assigned, or provisional with the LOCAL_ID_PREFIX until the first
successful push replaces the record with its server twin.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

LOCAL_ID_PREFIX = "local_"

PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "age",
    "user_name",
    "position_title",
    "imagen",
)


def is_provisional_id(user_id: str) -> bool:
    """True when the id was minted locally and never acknowledged by the server."""
    return user_id.startswith(LOCAL_ID_PREFIX)


def new_local_id() -> str:
    """Mint a fresh provisional id."""
    return f"{LOCAL_ID_PREFIX}{uuid.uuid4().hex}"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class User(BaseModel):
    """A user record as held in the local replica.

    Frozen: the id never changes once assigned. Edits produce a new
    instance via model_copy(update=...).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    age: int = 0
    user_name: str = ""
    position_title: str = ""
    imagen: str = ""
    pending_sync: bool = False
    pending_delete: bool = False

    @model_validator(mode="before")
    @classmethod
    def _provisional_is_pending(cls, data: Any) -> Any:
        if isinstance(data, dict):
            user_id = data.get("id")
            if isinstance(user_id, str) and is_provisional_id(user_id):
                data = {**data, "pending_sync": True}
        return data

    @property
    def is_provisional(self) -> bool:
        return is_provisional_id(self.id)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.user_name or self.id

    def profile(self) -> dict[str, Any]:
        """Profile fields only, keyed by their Python names."""
        return {name: getattr(self, name) for name in PROFILE_FIELDS}

    def to_remote(self) -> RemoteUser:
        """Wire representation, sync flags dropped."""
        return RemoteUser(id=self.id, **self.profile())


class RemoteUser(BaseModel):
    """A user as the remote JSON collection represents it.

    Unknown server keys are ignored; ids arriving as numbers are
    normalized to strings.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    email: str = ""
    age: int = 0
    user_name: str = Field(default="", alias="userName")
    position_title: str = Field(default="", alias="positionTitle")
    imagen: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        if value is None:
            return value
        return str(value)

    @field_validator(*PROFILE_FIELDS, mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        # The server sends null for profile fields it never had.
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    def to_local(self) -> User:
        """Local record for a server-acknowledged user (both flags false)."""
        if not self.id:
            raise ValueError("Remote user has no id")
        return User(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            age=self.age,
            user_name=self.user_name,
            position_title=self.position_title,
            imagen=self.imagen,
        )

    def to_wire(self, include_id: bool = True) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        exclude = None if include_id else {"id"}
        return self.model_dump(by_alias=True, exclude_none=True, exclude=exclude)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Success:
    """A sync operation (or local mutation) completed normally.

    Attributes:
        message: Human-readable summary, shown verbatim by callers.
        counts: The numbers embedded in the message, e.g. uploaded/deleted.
    """

    message: str
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Error:
    """A sync operation failed.

    Attributes:
        message: Human-readable summary.
        cause: The exception that aborted the operation.
    """

    message: str
    cause: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return False


SyncOutcome = Union[Success, Error]
