"""Pytest fixtures for graph tests."""

import pytest

from src.config import GenerationPolicy, Settings, StorageBackend
from src.graph.family.cascade import CascadeEngine
from src.graph.family.ego import EgoTreeBuilder
from src.graph.family.graph import FamilyGraph
from src.graph.family.queries import FamilyQueries
from src.graph.family.sample import seed_sample_family
from src.graph.family.store import RelationshipStore
from src.graph.storage import InMemoryStorage


@pytest.fixture
def store():
    """Empty relationship store."""
    return RelationshipStore()


@pytest.fixture
def engine(store):
    """Cascade engine over the empty store."""
    return CascadeEngine(store)


@pytest.fixture
def family(store):
    """Store seeded with the sample household, keyed by role."""
    return seed_sample_family(store)


@pytest.fixture
def ego(store):
    return EgoTreeBuilder(store)


@pytest.fixture
def queries(store):
    return FamilyQueries(store)


@pytest.fixture
def config():
    """Test configuration: in-memory storage, default generation policy."""
    config = Settings()
    config.storage.backend = StorageBackend.MEMORY
    config.generation.policy = GenerationPolicy.FIRST_VISIT
    return config


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def graph(storage, config):
    """FamilyGraph over in-memory storage."""
    return FamilyGraph(storage, config=config)
