"""Run orchestration: folder pass, then file pass, then one summary."""

from __future__ import annotations

import logging
import threading

from foldersync.config.models import SyncConfig
from foldersync.models import SyncCancelled, SyncRequest, SyncStatistics
from foldersync.passes import FileSynchronizer, FolderSynchronizer, SyncPass

logger = logging.getLogger(__name__)


class Synchronizer:
    """Sequences the two passes of a mirror run and aggregates their counters.

    The folder pass always completes before the file pass starts. A failure
    in either pass aborts the run and propagates unchanged. The optional
    *cancel* event is checked only at phase boundaries.
    """

    def __init__(self, folder_pass: SyncPass, file_pass: SyncPass) -> None:
        if folder_pass is None or file_pass is None:
            raise ValueError("Both a folder pass and a file pass are required")
        self._folder_pass = folder_pass
        self._file_pass = file_pass

    @classmethod
    def from_config(cls, config: SyncConfig | None = None) -> Synchronizer:
        return cls(FolderSynchronizer(config), FileSynchronizer(config))

    def synchronize(
        self, request: SyncRequest, cancel: threading.Event | None = None
    ) -> SyncStatistics:
        logger.info(
            "Starting synchronization from %s to %s", request.source, request.destination
        )
        stats = SyncStatistics()

        _checkpoint(cancel, "folder pass")
        stats = stats.merged(
            self._folder_pass.synchronize(request.source, request.destination)
        )

        _checkpoint(cancel, "file pass")
        stats = stats.merged(
            self._file_pass.synchronize(request.source, request.destination)
        )

        logger.info(stats.summary())
        logger.info("Synchronization completed")
        return stats


def _checkpoint(cancel: threading.Event | None, phase: str) -> None:
    if cancel is not None and cancel.is_set():
        logger.info("Synchronization cancelled before %s", phase)
        raise SyncCancelled(f"Cancelled before {phase}")
