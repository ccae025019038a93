"""Build service module.

This module provides the high-level build API:
- build(): clean and build according to the configured policy
- build_and_locate(): main entry point, from checkout to exported directory
- Cache inspection and invalidation helpers for the CLI

Nothing is printed here; the caller renders the exports only after the
whole pipeline has succeeded.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rocksdb_env.builds.artifacts import cache_archive, describe_archive, locate_archive
from rocksdb_env.builds.environment import resolve_lib_dir
from rocksdb_env.builds.runner import clean_and_build, compose_build_env
from rocksdb_env.builds.source import ensure_source
from rocksdb_env.config import get_settings
from rocksdb_env.types import BuildPolicy

if TYPE_CHECKING:
    from rocksdb_env.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class BuildOutcome:
    """Result of a full build-and-locate run.

    Attributes:
        source_dir: Checkout the archive was built from.
        archive_path: Archive whose directory is exported.
        lib_dir: Absolute, symlink-resolved directory of archive_path.
        policy: Build policy in effect.
        rebuilt: Whether cargo build ran.
        cloned: Whether the checkout was cloned during this run.
        cached_archive_path: Stable cache location (cache-aware only).
    """

    source_dir: Path
    archive_path: Path
    lib_dir: Path
    policy: BuildPolicy
    rebuilt: bool
    cloned: bool = False
    cached_archive_path: Path | None = None


def build(
    settings: Settings,
    env: Mapping[str, str] | None = None,
) -> bool:
    """Build the archive in the checkout according to settings.policy.

    Under BuildPolicy.CACHE_AWARE an existing cached archive is trusted
    as-is and nothing runs.

    Args:
        settings: Effective settings.
        env: Environment for cargo (defaults to compose_build_env()).

    Returns:
        True if cargo build ran, False if the cached archive was reused.

    Raises:
        BuildFailed: If cargo clean or cargo build fails.
    """
    if settings.policy == BuildPolicy.CACHE_AWARE:
        cached = settings.cached_archive_path
        if cached.is_file():
            logger.info("Using cached archive: %s", cached)
            return False
        logger.info("No cached archive at %s, building", cached)

    clean_and_build(
        settings.source_dir,
        settings.log_dir,
        profile=settings.build_profile,
        no_default_features=settings.no_default_features,
        features=settings.features,
        env=compose_build_env(env),
        timeout=settings.build_timeout,
    )
    return True


def build_and_locate(
    settings: Settings | None = None,
    env: Mapping[str, str] | None = None,
) -> BuildOutcome:
    """Ensure the checkout, build, locate and (optionally) cache the archive.

    Args:
        settings: Effective settings (loaded from the environment if None).
        env: Base environment for cargo (defaults to os.environ).

    Returns:
        BuildOutcome describing the exported archive.

    Raises:
        SourceUnavailable: If the checkout cannot be cloned.
        BuildFailed: If the build fails.
        ArtifactNotFound: If no archive is found after the build.
        AmbiguousArtifact: If several archives match and the policy is error.
        CopyFailed: If the archive cannot be cached.
    """
    if settings is None:
        settings = get_settings()

    cloned = ensure_source(
        settings.repo_url,
        settings.source_dir,
        settings.log_dir,
        timeout=settings.clone_timeout,
    )

    rebuilt = build(settings, env=env)

    cached_path: Path | None = None
    if settings.policy == BuildPolicy.CACHE_AWARE:
        cached_path = settings.cached_archive_path
        if rebuilt:
            found = locate_archive(
                settings.build_output_root,
                settings.archive_name,
                settings.ambiguity,
            )
            cache_archive(found, cached_path)
        archive_path = cached_path
    else:
        archive_path = locate_archive(
            settings.build_output_root,
            settings.archive_name,
            settings.ambiguity,
        )

    return BuildOutcome(
        source_dir=settings.source_dir,
        archive_path=archive_path,
        lib_dir=resolve_lib_dir(archive_path),
        policy=settings.policy,
        rebuilt=rebuilt,
        cloned=cloned,
        cached_archive_path=cached_path,
    )


def get_cache_info(settings: Settings | None = None) -> dict[str, Any]:
    """Report checkout and cache state without cloning or building.

    Args:
        settings: Effective settings (loaded from the environment if None).

    Returns:
        Dictionary with checkout and cached archive details.
    """
    if settings is None:
        settings = get_settings()

    cached = settings.cached_archive_path
    info: dict[str, Any] = {
        "source_dir": str(settings.source_dir),
        "source_present": settings.source_dir.is_dir(),
        "policy": settings.policy.value,
        "cached_archive": str(cached),
        "cached": cached.is_file(),
        "size_bytes": None,
        "sha256": None,
    }

    if info["cached"]:
        archive = describe_archive(cached)
        info["size_bytes"] = archive.size_bytes
        info["sha256"] = archive.sha256

    return info


def clear_cache(settings: Settings | None = None, dry_run: bool = False) -> Path | None:
    """Delete the cached archive so the next cache-aware run rebuilds.

    Args:
        settings: Effective settings (loaded from the environment if None).
        dry_run: Report what would be removed without removing it.

    Returns:
        The cached archive path if one existed, else None.
    """
    if settings is None:
        settings = get_settings()

    cached = settings.cached_archive_path
    if not cached.is_file():
        return None

    if not dry_run:
        cached.unlink()
        logger.info("Removed cached archive: %s", cached)
    return cached


__all__ = [
    "BuildOutcome",
    "build",
    "build_and_locate",
    "clear_cache",
    "get_cache_info",
]
