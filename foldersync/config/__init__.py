from .loader import load_config
from .models import (
    FolderSyncConfig,
    LoggingConfig,
    PromptConfig,
    SchedulerConfig,
    SyncConfig,
)

__all__ = [
    "FolderSyncConfig",
    "LoggingConfig",
    "PromptConfig",
    "SchedulerConfig",
    "SyncConfig",
    "load_config",
]
