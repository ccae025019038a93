"""Static archive discovery and caching.

This module handles:
- Searching the cargo target tree for the static archive
- Resolving multiple matches with an explicit policy
- Copying the archive to its stable cache path
- Computing checksums for status reporting
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import tempfile
from pathlib import Path

from rocksdb_env.errors import AmbiguousArtifact, ArtifactNotFound, CopyFailed
from rocksdb_env.types import AmbiguityPolicy, ArchiveInfo

logger = logging.getLogger(__name__)

# Default chunk size for hashing
HASH_CHUNK_SIZE = 64 * 1024  # 64KB


def compute_file_hash(
    file_path: Path,
    chunk_size: int = HASH_CHUNK_SIZE,
) -> str:
    """Compute SHA-256 hash of a file.

    Args:
        file_path: Path to the file.
        chunk_size: Size of chunks for streaming hash.

    Returns:
        SHA-256 hex digest.
    """
    sha256 = hashlib.sha256()
    with file_path.open("rb") as f:
        while chunk := f.read(chunk_size):
            sha256.update(chunk)
    return sha256.hexdigest()


def describe_archive(path: Path) -> ArchiveInfo:
    """Collect size and checksum of an archive."""
    return ArchiveInfo(
        path=path,
        size_bytes=path.stat().st_size,
        sha256=compute_file_hash(path),
    )


def find_archives(build_output_root: Path, archive_name: str) -> list[Path]:
    """Find all regular files named archive_name under build_output_root.

    Args:
        build_output_root: Root of the build output tree.
        archive_name: Exact file name to match.

    Returns:
        Matching paths in sorted order (empty if the root is missing).
    """
    if not build_output_root.is_dir():
        logger.warning("Build output directory does not exist: %s", build_output_root)
        return []

    return sorted(p for p in build_output_root.rglob(archive_name) if p.is_file())


def locate_archive(
    build_output_root: Path,
    archive_name: str,
    ambiguity: AmbiguityPolicy = AmbiguityPolicy.ERROR,
) -> Path:
    """Locate the single static archive in a build output tree.

    With several matches, AmbiguityPolicy.ERROR refuses to guess and
    AmbiguityPolicy.NEWEST picks the most recently modified file, breaking
    ties by the smallest path.

    Args:
        build_output_root: Root of the build output tree.
        archive_name: Exact file name to match.
        ambiguity: Policy for multiple matches.

    Returns:
        Path to the archive.

    Raises:
        ArtifactNotFound: If no file matches.
        AmbiguousArtifact: If several match under AmbiguityPolicy.ERROR.
    """
    candidates = find_archives(build_output_root, archive_name)

    if not candidates:
        raise ArtifactNotFound(f"No {archive_name} found under {build_output_root}")

    if len(candidates) == 1:
        logger.info("Found archive: %s", candidates[0])
        return candidates[0]

    listing = ", ".join(str(p) for p in candidates)
    if ambiguity == AmbiguityPolicy.ERROR:
        raise AmbiguousArtifact(
            f"Found {len(candidates)} files named {archive_name} under "
            f"{build_output_root}: {listing}",
            candidates=candidates,
        )

    # min() keeps the first of equal keys and candidates are sorted
    chosen = min(candidates, key=lambda p: -p.stat().st_mtime_ns)
    logger.warning(
        "Found %d files named %s, using newest: %s",
        len(candidates),
        archive_name,
        chosen,
    )
    return chosen


def cache_archive(found_path: Path, cache_dest_path: Path) -> Path:
    """Copy the located archive to its stable cache path.

    The copy goes to a temporary file next to the destination and is
    renamed into place, so the cache path only ever holds a complete file.

    Args:
        found_path: Archive located in the build tree.
        cache_dest_path: Stable cache location.

    Returns:
        cache_dest_path.

    Raises:
        CopyFailed: On any I/O error.
    """
    tmp_path: Path | None = None
    try:
        cache_dest_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{cache_dest_path.name}.",
            suffix=".tmp",
            dir=cache_dest_path.parent,
        )
        os.close(fd)
        tmp_path = Path(tmp_name)
        shutil.copy2(found_path, tmp_path)
        os.replace(tmp_path, cache_dest_path)
    except OSError as e:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise CopyFailed(
            f"Failed to copy {found_path} to {cache_dest_path}: {e}"
        ) from e

    logger.info("Cached archive at %s", cache_dest_path)
    return cache_dest_path


__all__ = [
    "HASH_CHUNK_SIZE",
    "cache_archive",
    "compute_file_hash",
    "describe_archive",
    "find_archives",
    "locate_archive",
]
