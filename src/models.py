"""Data models for the family relationship graph."""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def generate_id() -> str:
    """Generate an opaque, stable identifier."""
    return uuid.uuid4().hex


class Gender(str, Enum):
    """Recorded gender of a member."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"


class RelationType(str, Enum):
    """Types of family relationships.

    An edge (A -> B, PARENT) reads "B is a parent of A".
    """
    PARENT = "parent"
    CHILD = "child"
    SPOUSE = "spouse"
    SIBLING = "sibling"

    @property
    def inverse(self) -> "RelationType":
        return INVERSE_RELATION[self]


INVERSE_RELATION = {
    RelationType.PARENT: RelationType.CHILD,
    RelationType.CHILD: RelationType.PARENT,
    RelationType.SPOUSE: RelationType.SPOUSE,
    RelationType.SIBLING: RelationType.SIBLING,
}


class MemberCreate(BaseModel):
    """Fields accepted when creating a member."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    given_name: str
    family_name: Optional[str] = None
    nickname: Optional[str] = None
    gender: Gender = Gender.UNKNOWN
    birth_date: Optional[date] = None
    death_date: Optional[date] = None
    is_alive: bool = True
    generation: int = 0
    born_into_family: bool = True

    # Profile details kept alongside the graph record
    location: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None

    @field_validator("given_name")
    @classmethod
    def _given_name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("given_name must not be empty")
        return value

    @field_validator("family_name", "nickname")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @field_validator("gender", mode="before")
    @classmethod
    def _normalize_gender(cls, value):
        if value is None or value == "":
            return Gender.UNKNOWN
        if isinstance(value, str):
            short = {"m": "male", "f": "female", "o": "other"}
            value = value.strip().lower()
            return short.get(value, value)
        return value

    @model_validator(mode="after")
    def _dates_in_order(self):
        if self.birth_date and self.death_date and self.death_date < self.birth_date:
            raise ValueError("death_date cannot be before birth_date")
        return self


class Member(MemberCreate):
    """A person node in the family graph.

    Frozen: changes go through the store, which swaps in a new copy.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def full_name(self) -> str:
        """Given and family name joined."""
        return " ".join(p for p in (self.given_name, self.family_name) if p)

    @property
    def age(self) -> Optional[int]:
        """Age in whole years, at death for deceased members."""
        if not self.birth_date:
            return None
        until = self.death_date or date.today()
        return until.year - self.birth_date.year - (
            (until.month, until.day) < (self.birth_date.month, self.birth_date.day)
        )


class RelationshipEdge(BaseModel):
    """A directed, typed relationship fact between two members."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    source_member_id: str
    target_member_id: str
    relationship_type: RelationType
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def key(self) -> tuple[str, str, RelationType]:
        """The (source, target, type) triple that must be unique."""
        return (self.source_member_id, self.target_member_id, self.relationship_type)
