"""Application configuration using Pydantic Settings."""

from enum import Enum
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackend(str, Enum):
    """Available persistence collaborators."""
    MEMORY = "memory"
    JSON = "json"
    SQLITE = "sqlite"


class GenerationPolicy(str, Enum):
    """How generation levels are resolved when ancestry has several routes."""
    FIRST_VISIT = "first_visit"
    DEEPEST = "deepest"


class StorageSettings(BaseSettings):
    """Where family data is persisted."""

    model_config = SettingsConfigDict(env_prefix="FAMILY_STORAGE_")

    backend: StorageBackend = StorageBackend.SQLITE
    json_path: str = "data/family_tree.json"
    sqlite_path: str = "data/family_tree.db"

    def ensure_dirs(self) -> None:
        """Create parent directories for file-backed storage."""
        if self.backend is StorageBackend.JSON:
            Path(self.json_path).parent.mkdir(parents=True, exist_ok=True)
        elif self.backend is StorageBackend.SQLITE:
            Path(self.sqlite_path).parent.mkdir(parents=True, exist_ok=True)


class GenerationSettings(BaseSettings):
    """Generation assignment settings."""

    model_config = SettingsConfigDict(env_prefix="FAMILY_GENERATION_")

    policy: GenerationPolicy = GenerationPolicy.FIRST_VISIT
    root_level: int = 1


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    storage: StorageSettings = Field(default_factory=StorageSettings)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)


settings = Settings()
