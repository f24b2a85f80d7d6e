"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import FolderSyncConfig


def load_config(cli_path: str | None = None) -> FolderSyncConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    if cli_path and not Path(cli_path).exists():
        raise ValueError(f"Config file not found: {cli_path}")

    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./foldersync.yaml"),
        Path.home() / ".foldersync" / "config.yaml",
    ]

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                raw = _expand_env_vars(raw)
                return FolderSyncConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except (TypeError, ValidationError) as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return FolderSyncConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj
