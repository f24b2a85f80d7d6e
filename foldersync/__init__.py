"""foldersync: one-way folder mirroring, once or on a schedule."""

from foldersync.interval import IntervalParseError, parse_interval
from foldersync.models import (
    ConfigError,
    ElevationError,
    FolderSyncError,
    SchedulerError,
    SyncCancelled,
    SyncOptions,
    SyncRequest,
    SyncStatistics,
)
from foldersync.scheduler import ScheduleHandle, Scheduler, SchedulerState
from foldersync.synchronizer import Synchronizer

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "ElevationError",
    "FolderSyncError",
    "IntervalParseError",
    "ScheduleHandle",
    "Scheduler",
    "SchedulerError",
    "SchedulerState",
    "SyncCancelled",
    "SyncOptions",
    "SyncRequest",
    "SyncStatistics",
    "Synchronizer",
    "parse_interval",
]
