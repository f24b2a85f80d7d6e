"""Pydantic models shared by the sync passes, orchestrator, and scheduler."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FolderSyncError(Exception):
    """Base class for foldersync errors."""


class SyncCancelled(FolderSyncError):
    """Raised at a phase boundary when a run has been asked to stop."""


class SchedulerError(FolderSyncError):
    """Invalid scheduler lifecycle transition."""


class ElevationError(FolderSyncError):
    """The process could not be restarted with elevated privileges."""


class SyncRequest(BaseModel):
    """One source -> destination mirror job. Existence is checked by the passes."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(min_length=1)
    destination: str = Field(min_length=1)

    @field_validator("source", "destination")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("path cannot be empty or whitespace")
        return v

    @property
    def source_path(self) -> Path:
        return Path(self.source)

    @property
    def destination_path(self) -> Path:
        return Path(self.destination)


class SyncStatistics(BaseModel):
    """Change counters for a single run.

    Mutable; each pass increments its own instance, and the orchestrator
    folds them together with :meth:`merged`.
    """

    changed_files: int = Field(default=0, ge=0)
    changed_folders: int = Field(default=0, ge=0)
    files_moved: int = Field(default=0, ge=0)
    folders_moved: int = Field(default=0, ge=0)
    files_in_moved_folders: int = Field(default=0, ge=0)
    deleted_files: int = Field(default=0, ge=0)
    deleted_folders: int = Field(default=0, ge=0)

    def merged(self, other: SyncStatistics) -> SyncStatistics:
        """Return a new value holding the field-wise sum of both counters."""
        return SyncStatistics(
            **{name: getattr(self, name) + getattr(other, name) for name in type(self).model_fields}
        )

    def summary(self) -> str:
        return (
            f"Synchronization summary: {self.changed_files} files changed/added, "
            f"{self.changed_folders} folders added, "
            f"{self.files_moved} files moved/renamed individually, "
            f"{self.folders_moved} folders moved/renamed containing "
            f"{self.files_in_moved_folders} files, "
            f"{self.deleted_files} files and {self.deleted_folders} folders deleted"
        )


class SyncOptions(BaseModel):
    """Validated command-line options for one invocation."""

    model_config = ConfigDict(frozen=True)

    request: SyncRequest
    interval: timedelta | None = None
    admin: bool = False
    log_file: str | None = None


@dataclass(frozen=True)
class ConfigError:
    """A rejected invocation. Returned by validation, never raised."""

    message: str
    value: str | None = None
