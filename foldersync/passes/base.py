"""Pass interface consumed by the orchestrator."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from foldersync.models import SyncStatistics


@runtime_checkable
class SyncPass(Protocol):
    """One phase of a mirror run.

    Mutates the destination tree and returns the counters it touched.
    May raise; the orchestrator does not retry.
    """

    def synchronize(self, source: str, destination: str) -> SyncStatistics: ...
