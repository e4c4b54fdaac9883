"""Graph package - family relationship graph engine."""

from src.graph.errors import (
    ConcurrencyConflict,
    FamilyGraphError,
    InvariantViolation,
    NotFoundError,
    StorageError,
    ValidationError,
)
from src.graph.models import RelationLabel, RelationshipBundle, RootedTree
from src.graph.family.graph import FamilyGraph

__all__ = [
    "ConcurrencyConflict",
    "FamilyGraphError",
    "InvariantViolation",
    "NotFoundError",
    "StorageError",
    "ValidationError",
    "RelationLabel",
    "RelationshipBundle",
    "RootedTree",
    "FamilyGraph",
]
