"""Shared test fixtures for foldersync."""

import logging
import threading
import time
from pathlib import Path

import pytest

from foldersync.config.models import FolderSyncConfig
from foldersync.models import SyncRequest, SyncStatistics


class FakeSynchronizer:
    """Stands in for the orchestrator; records concurrency and call counts."""

    def __init__(self, duration: float = 0.0, fail_on: set[int] | None = None) -> None:
        self.duration = duration
        self.fail_on = fail_on or set()
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.requests: list[SyncRequest] = []
        self._lock = threading.Lock()

    def synchronize(self, request, cancel=None):
        with self._lock:
            self.calls += 1
            call = self.calls
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            self.requests.append(request)
        try:
            if self.duration:
                time.sleep(self.duration)
            if call in self.fail_on:
                raise RuntimeError(f"run {call} failed")
            return SyncStatistics(changed_files=1)
        finally:
            with self._lock:
                self.in_flight -= 1


def wait_until(predicate, timeout: float = 3.0, step: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(step)
    return predicate()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """CLI runs reconfigure the package logger; undo that between tests."""
    yield
    logger = logging.getLogger("foldersync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def sample_config():
    return FolderSyncConfig()


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """A small source tree with nested folders."""
    root = tmp_path / "source"
    (root / "docs" / "guides").mkdir(parents=True)
    (root / "src").mkdir()
    (root / "empty").mkdir()
    (root / "README.md").write_text("# Project")
    (root / "docs" / "intro.md").write_text("intro")
    (root / "docs" / "guides" / "setup.md").write_text("setup steps")
    (root / "src" / "main.py").write_text("print('hello')")
    return root


@pytest.fixture
def dest_dir(tmp_path: Path) -> Path:
    return tmp_path / "destination"


@pytest.fixture
def sample_request(source_dir: Path, dest_dir: Path) -> SyncRequest:
    return SyncRequest(source=str(source_dir), destination=str(dest_dir))


@pytest.fixture
def fake_synchronizer() -> FakeSynchronizer:
    return FakeSynchronizer()
