"""Directory listing and content hashing shared by the folder and file passes."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path

# Always skipped on both sides of a mirror
DEFAULT_IGNORE = {".git", "__pycache__"}

_CHUNK = 1024 * 1024


def compute_file_hash(path: Path, chunk_size: int = _CHUNK) -> str:
    """Full SHA-256 hex digest of a file, read in chunks."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        while chunk := f.read(chunk_size):
            digest.update(chunk)
    return digest.hexdigest()


def compute_merkle_hash(child_hashes: list[str]) -> str:
    """Parent hash from sorted child hashes, independent of listing order."""
    joined = "".join(sorted(child_hashes))
    return hashlib.sha256(joined.encode()).hexdigest()


def _matches_any(rel: Path, patterns: set[str]) -> bool:
    """Check whether any component of *rel* matches one of *patterns*."""
    return any(part in patterns for part in rel.parts)


@dataclass
class TreeListing:
    """Relative POSIX paths of every directory and file under a root."""

    root: Path
    dirs: set[str] = field(default_factory=set)
    files: dict[str, Path] = field(default_factory=dict)


def scan_tree(root: Path, ignore_patterns: list[str] | None = None) -> TreeListing:
    """Walk *root* and collect its directories and files.

    A missing root yields an empty listing.
    """
    listing = TreeListing(root=root)
    if not root.is_dir():
        return listing

    ignore = set(DEFAULT_IGNORE)
    if ignore_patterns:
        ignore.update(ignore_patterns)

    for p in sorted(root.rglob("*")):
        rel = p.relative_to(root)
        if _matches_any(rel, ignore):
            continue
        if p.is_dir() and not p.is_symlink():
            listing.dirs.add(rel.as_posix())
        elif p.is_file():
            listing.files[rel.as_posix()] = p
    return listing


def files_under(listing: TreeListing, folder: str) -> dict[str, Path]:
    """Files below *folder*, keyed by their path relative to that folder."""
    prefix = folder + "/"
    return {
        rel[len(prefix):]: path
        for rel, path in listing.files.items()
        if rel.startswith(prefix)
    }


def folder_signature(
    files: dict[str, Path],
    chunk_size: int = _CHUNK,
    cache: dict[Path, str] | None = None,
) -> str | None:
    """Content signature of a folder: relative names paired with file hashes.

    Empty folders have no signature; they can't be told apart. File hashes
    are read from and stored in *cache* when one is given.
    """
    if not files:
        return None
    if cache is None:
        cache = {}
    entries = []
    for rel, path in files.items():
        if path not in cache:
            cache[path] = compute_file_hash(path, chunk_size)
        entries.append(f"{rel}:{cache[path]}")
    return compute_merkle_hash(entries)


def top_level(paths: set[str]) -> list[str]:
    """Drop every path that has an ancestor in *paths*. Result is sorted."""
    result: list[str] = []
    for p in sorted(paths, key=lambda s: (s.count("/"), s)):
        if not any(p.startswith(parent + "/") for parent in result):
            result.append(p)
    return sorted(result)
