"""Family graph package."""
from src.graph.family.store import RelationshipStore
from src.graph.family.cascade import CascadeEngine
from src.graph.family.ego import EgoTreeBuilder
from src.graph.family.queries import FamilyQueries
from src.graph.family.graph import FamilyGraph

__all__ = ["RelationshipStore", "CascadeEngine", "EgoTreeBuilder", "FamilyQueries", "FamilyGraph"]
