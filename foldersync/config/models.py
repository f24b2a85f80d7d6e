from pydantic import BaseModel, Field
from typing import Literal


class LoggingConfig(BaseModel):
    level: Literal["debug", "info", "warn", "error"] = "info"
    format: Literal["text", "json"] = "text"
    log_dir: str = "logs"
    console: bool = True


class SchedulerConfig(BaseModel):
    run_on_start: bool = True
    join_timeout: float | None = Field(default=None, gt=0)


class SyncConfig(BaseModel):
    ignore_patterns: list[str] = Field(default_factory=lambda: [
        ".git", "__pycache__", ".DS_Store", "Thumbs.db"
    ])
    detect_moves: bool = True
    chunk_size: int = Field(default=1024 * 1024, gt=0)


class PromptConfig(BaseModel):
    once_token: str = "once"


class FolderSyncConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    prompts: PromptConfig = Field(default_factory=PromptConfig)
