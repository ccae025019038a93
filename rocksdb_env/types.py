"""Shared type definitions for rocksdb_env.

This module contains enums and dataclasses shared across subpackages to
avoid circular imports.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

# Variables printed for the calling shell and removed from the nested build
LIB_DIR_VAR = "ROCKSDB_LIB_DIR"
STATIC_VAR = "ROCKSDB_STATIC"
EXPORTED_VARS = (LIB_DIR_VAR, STATIC_VAR)


class BuildPolicy(str, Enum):
    """How the build step treats a previously cached archive."""

    ALWAYS_REBUILD = "always-rebuild"
    CACHE_AWARE = "cache-aware"


class AmbiguityPolicy(str, Enum):
    """What archive lookup does when several files match."""

    ERROR = "error"
    NEWEST = "newest"


@dataclass
class ArchiveInfo:
    """Information about a static archive on disk."""

    path: Path
    size_bytes: int
    sha256: str


__all__ = [
    "EXPORTED_VARS",
    "LIB_DIR_VAR",
    "STATIC_VAR",
    "AmbiguityPolicy",
    "ArchiveInfo",
    "BuildPolicy",
]
