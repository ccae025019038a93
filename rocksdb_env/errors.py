"""Error definitions for rocksdb_env.

Every failure of the pipeline is fatal and maps to a stable string code
and a distinct process exit code, so callers evaluating the output in a
shell can tell which step failed.
"""

from __future__ import annotations

from pathlib import Path

# Error code constants (exit codes start at 3, Click reserves 2 for usage errors)
SOURCE_UNAVAILABLE = "source_unavailable"
BUILD_FAILED = "build_failed"
ARTIFACT_NOT_FOUND = "artifact_not_found"
COPY_FAILED = "copy_failed"
AMBIGUOUS_ARTIFACT = "ambiguous_artifact"
UNEXPORTABLE_PATH = "unexportable_path"

EXIT_CODES: dict[str, int] = {
    SOURCE_UNAVAILABLE: 3,
    BUILD_FAILED: 4,
    ARTIFACT_NOT_FOUND: 5,
    COPY_FAILED: 6,
    AMBIGUOUS_ARTIFACT: 7,
    UNEXPORTABLE_PATH: 8,
}


class RocksdbEnvError(Exception):
    """Base error for all pipeline failures."""

    code = "rocksdb_env_error"
    step = "run"

    def __init__(self, message: str, log_path: Path | None = None) -> None:
        super().__init__(message)
        self.log_path = log_path

    @property
    def exit_code(self) -> int:
        """Process exit code for this error."""
        return EXIT_CODES.get(self.code, 1)


class SourceUnavailable(RocksdbEnvError):
    """Raised when the source checkout cannot be cloned."""

    code = SOURCE_UNAVAILABLE
    step = "clone"


class BuildFailed(RocksdbEnvError):
    """Raised when cargo clean or cargo build fails."""

    code = BUILD_FAILED
    step = "build"

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        log_path: Path | None = None,
    ) -> None:
        super().__init__(message, log_path=log_path)
        self.tool_exit_code = exit_code


class ArtifactNotFound(RocksdbEnvError):
    """Raised when no static archive exists in the build output tree."""

    code = ARTIFACT_NOT_FOUND
    step = "locate"


class AmbiguousArtifact(RocksdbEnvError):
    """Raised when several archives match and no tie-break is configured."""

    code = AMBIGUOUS_ARTIFACT
    step = "locate"

    def __init__(self, message: str, candidates: list[Path]) -> None:
        super().__init__(message)
        self.candidates = candidates


class CopyFailed(RocksdbEnvError):
    """Raised when the archive cannot be copied to the cache path."""

    code = COPY_FAILED
    step = "cache"


class UnexportablePath(RocksdbEnvError):
    """Raised when the archive directory cannot be printed as one export line."""

    code = UNEXPORTABLE_PATH
    step = "export"


__all__ = [
    "AMBIGUOUS_ARTIFACT",
    "ARTIFACT_NOT_FOUND",
    "BUILD_FAILED",
    "COPY_FAILED",
    "EXIT_CODES",
    "SOURCE_UNAVAILABLE",
    "UNEXPORTABLE_PATH",
    "AmbiguousArtifact",
    "ArtifactNotFound",
    "BuildFailed",
    "CopyFailed",
    "RocksdbEnvError",
    "SourceUnavailable",
    "UnexportablePath",
]
