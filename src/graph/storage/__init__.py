"""Persistence collaborators for the family graph."""
from typing import Optional

from src.config import Settings, StorageBackend, settings as default_settings
from src.graph.storage.base import FamilyStorage
from src.graph.storage.json_file import JsonFileStorage
from src.graph.storage.memory import InMemoryStorage
from src.graph.storage.sqlite import SQLiteStorage


def create_storage(config: Optional[Settings] = None) -> FamilyStorage:
    """Build the storage backend selected in settings."""
    storage_settings = (config or default_settings).storage
    if storage_settings.backend is StorageBackend.MEMORY:
        return InMemoryStorage()
    if storage_settings.backend is StorageBackend.JSON:
        return JsonFileStorage(storage_settings.json_path)
    return SQLiteStorage(storage_settings.sqlite_path)


__all__ = [
    "FamilyStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    "SQLiteStorage",
    "create_storage",
]
