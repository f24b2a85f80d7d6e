"""Folder-structure pass: move, create, and delete destination directories."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from foldersync.config.models import SyncConfig
from foldersync.models import SyncStatistics
from foldersync.passes.scanner import (
    TreeListing,
    files_under,
    folder_signature,
    scan_tree,
    top_level,
)

logger = logging.getLogger(__name__)


def _depth(rel: str) -> tuple[int, str]:
    return rel.count("/"), rel


class FolderSynchronizer:
    """Mirrors the directory layout of a source tree onto a destination.

    Runs before the file pass so files land in a layout that already
    reflects renamed, moved, new, and removed folders. A destination
    folder that no longer exists in the source is renamed into place
    when its contents match a folder missing from the destination.
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
        missing = src.dirs - dst.dirs
        orphans = dst.dirs - src.dirs
        logger.debug(
            "Folder scan: %d missing, %d orphaned in %s", len(missing), len(orphans), dst_root
        )

        if self.config.detect_moves and missing and orphans:
            self._move_folders(src, dst, missing, orphans, stats)

        for rel in sorted(missing, key=_depth):
            target = dst_root / rel
            if target.is_dir():
                continue
            self._clear_file(target, rel, stats)
            target.mkdir(parents=True, exist_ok=True)
            stats.changed_folders += 1
            logger.info("Created folder: %s", rel)

        for rel in top_level(orphans):
            target = dst_root / rel
            if not target.is_dir():
                continue
            doomed = scan_tree(target, self.config.ignore_patterns)
            nested_dirs = len(doomed.dirs)
            nested_files = len(doomed.files)
            shutil.rmtree(target)
            stats.deleted_folders += 1 + nested_dirs
            stats.deleted_files += nested_files
            logger.info("Deleted folder: %s (%d files)", rel, nested_files)

        return stats

    # -- Internals -----------------------------------------------------------

    def _signature(self, files: dict[str, Path]) -> str | None:
        return folder_signature(files, self.config.chunk_size, cache=self._hash_cache)

    @staticmethod
    def _clear_file(target: Path, rel: str, stats: SyncStatistics) -> None:
        """Remove a plain file sitting where a folder has to go."""
        if (target.exists() or target.is_symlink()) and not target.is_dir():
            target.unlink()
            stats.deleted_files += 1
            logger.info("Deleted file in place of folder: %s", rel)

    def _move_folders(
        self,
        src: TreeListing,
        dst: TreeListing,
        missing: set[str],
        orphans: set[str],
        stats: SyncStatistics,
    ) -> None:
        """Rename orphaned destination folders onto matching missing ones.

        *missing* and *orphans* are updated in place as folders move.
        """
        index: dict[str, str] = {}
        for rel in sorted(orphans, key=_depth):
            sig = self._signature(files_under(dst, rel))
            if sig is not None:
                index.setdefault(sig, rel)

        moved_targets: list[str] = []
        for rel in sorted(missing, key=_depth):
            if rel not in missing:
                continue
            if any(rel.startswith(t + "/") for t in moved_targets):
                continue
            moved_files = files_under(src, rel)
            sig = self._signature(moved_files)
            orphan = index.get(sig) if sig is not None else None
            if orphan is None:
                continue

            target = dst.root / rel
            for parent in reversed(Path(rel).parents[:-1]):
                parent_rel = parent.as_posix()
                if not (dst.root / parent).is_dir():
                    self._clear_file(dst.root / parent, parent_rel, stats)
                    (dst.root / parent).mkdir()
                    if parent_rel in missing:
                        missing.discard(parent_rel)
                        stats.changed_folders += 1
                        logger.info("Created folder: %s", parent_rel)
            self._clear_file(target, rel, stats)
            (dst.root / orphan).rename(target)
            moved_targets.append(rel)
            stats.folders_moved += 1
            stats.files_in_moved_folders += len(moved_files)
            logger.info("Moved folder: %s -> %s (%d files)", orphan, rel, len(moved_files))

            # The moved orphan, its children, and any ancestor whose
            # signature included it can no longer be matched.
            for sig_key, candidate in list(index.items()):
                if (
                    candidate == orphan
                    or candidate.startswith(orphan + "/")
                    or orphan.startswith(candidate + "/")
                ):
                    del index[sig_key]
            orphans.difference_update(
                {o for o in orphans if o == orphan or o.startswith(orphan + "/")}
            )
            missing.difference_update(
                {
                    m
                    for m in missing
                    if (m == rel or m.startswith(rel + "/")) and (dst.root / m).is_dir()
                }
            )
