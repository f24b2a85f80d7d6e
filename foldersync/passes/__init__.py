"""Folder-structure and file-content passes of a mirror run."""

from foldersync.passes.base import SyncPass
from foldersync.passes.files import FileSynchronizer
from foldersync.passes.folders import FolderSynchronizer

__all__ = [
    "FileSynchronizer",
    "FolderSynchronizer",
    "SyncPass",
]
