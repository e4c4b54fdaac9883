"""Errors raised by the family graph engine."""

from typing import Optional


class FamilyGraphError(Exception):
    """Base class for all family graph errors."""


class NotFoundError(FamilyGraphError, LookupError):
    """A member id does not resolve."""

    def __init__(self, member_id: str, message: Optional[str] = None):
        self.member_id = member_id
        super().__init__(message or f"Member not found: {member_id}")


class ValidationError(FamilyGraphError, ValueError):
    """Member data is missing a required field or is malformed."""

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationError":
        """Build a readable error from a pydantic ValidationError."""
        parts = []
        for err in exc.errors():
            field = ".".join(str(loc) for loc in err.get("loc", ())) or "member"
            parts.append(f"{field}: {err.get('msg', 'invalid value')}")
        return cls("; ".join(parts) or str(exc))


class InvariantViolation(FamilyGraphError):
    """An operation would break edge symmetry or relationship uniqueness."""


class ConcurrencyConflict(FamilyGraphError):
    """Persisted data changed underneath this handle (lost update)."""


class StorageError(FamilyGraphError):
    """Persisted data could not be read, decoded or written."""
