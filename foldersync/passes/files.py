"""File-content pass: copy, move, and delete destination files."""

from __future__ import annotations

import logging
import shutil
from collections import defaultdict
from pathlib import Path

from foldersync.config.models import SyncConfig
from foldersync.models import SyncStatistics
from foldersync.passes.scanner import compute_file_hash, scan_tree

logger = logging.getLogger(__name__)


class FileSynchronizer:
    """Mirrors file contents from a source tree onto a destination.

    Assumes the folder pass already ran. New files whose content matches a
    file that disappeared from the destination are moved rather than copied.
    """

    def __init__(self, config: SyncConfig | None = None) -> None:
        self.config = config or SyncConfig()
        self._hash_cache: dict[Path, str] = {}

    def synchronize(self, source: str, destination: str) -> SyncStatistics:
        src_root = Path(source)
        dst_root = Path(destination)
        if not src_root.is_dir():
            raise FileNotFoundError(f"Source directory not found: {src_root}")

        stats = SyncStatistics()
        self._hash_cache.clear()
        dst_root.mkdir(parents=True, exist_ok=True)

        src = scan_tree(src_root, self.config.ignore_patterns)
        dst = scan_tree(dst_root, self.config.ignore_patterns)
        orphans = {rel: path for rel, path in dst.files.items() if rel not in src.files}
        missing = sorted(rel for rel in src.files if rel not in dst.files)

        if self.config.detect_moves and orphans and missing:
            missing = self._move_files(src.files, dst_root, missing, orphans, stats)

        for rel in missing:
            self._copy(src.files[rel], dst_root / rel)
            stats.changed_files += 1
            logger.info("Copied: %s", rel)

        for rel in sorted(src.files.keys() & dst.files.keys()):
            if self._differs(src.files[rel], dst.files[rel]):
                self._copy(src.files[rel], dst.files[rel])
                stats.changed_files += 1
                logger.info("Updated: %s", rel)

        for rel, path in sorted(orphans.items()):
            path.unlink()
            stats.deleted_files += 1
            logger.info("Deleted: %s", rel)

        return stats

    # -- Internals -----------------------------------------------------------

    def _hash(self, path: Path) -> str:
        if path not in self._hash_cache:
            self._hash_cache[path] = compute_file_hash(path, self.config.chunk_size)
        return self._hash_cache[path]

    def _differs(self, src: Path, dst: Path) -> bool:
        src_stat = src.stat()
        dst_stat = dst.stat()
        if src_stat.st_size != dst_stat.st_size:
            return True
        if src_stat.st_mtime_ns == dst_stat.st_mtime_ns:
            return False
        return self._hash(src) != self._hash(dst)

    @staticmethod
    def _copy(src: Path, dst: Path) -> None:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)

    def _move_files(
        self,
        src_files: dict[str, Path],
        dst_root: Path,
        missing: list[str],
        orphans: dict[str, Path],
        stats: SyncStatistics,
    ) -> list[str]:
        """Move orphans onto missing paths with identical content.

        Matched orphans are removed from *orphans*. Returns the missing
        paths that still need a copy.
        """
        by_size: dict[int, list[str]] = defaultdict(list)
        for rel, path in orphans.items():
            by_size[path.stat().st_size].append(rel)

        remaining: list[str] = []
        for rel in missing:
            source_path = src_files[rel]
            candidates = by_size.get(source_path.stat().st_size)
            match = None
            if candidates:
                source_hash = self._hash(source_path)
                match = next(
                    (c for c in candidates if self._hash(orphans[c]) == source_hash), None
                )
            if match is None:
                remaining.append(rel)
                continue

            target = dst_root / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(orphans.pop(match), target)
            shutil.copystat(source_path, target)
            candidates.remove(match)
            stats.files_moved += 1
            logger.info("Moved: %s -> %s", match, rel)
        return remaining
