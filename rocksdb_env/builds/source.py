"""Source checkout management.

Clones the bindings repository on first use and reuses the checkout on
every later invocation.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from rocksdb_env.builds.runner import run_logged
from rocksdb_env.errors import SourceUnavailable

logger = logging.getLogger(__name__)


def compose_clone_command(repo_url: str, target_dir: Path) -> list[str]:
    """Compose the `git clone` command."""
    return ["git", "clone", repo_url, str(target_dir)]


def ensure_source(
    repo_url: str,
    target_dir: Path,
    log_dir: Path,
    timeout: int | None = None,
) -> bool:
    """Clone repo_url into target_dir unless it already exists.

    Args:
        repo_url: Remote repository URL.
        target_dir: Checkout location.
        log_dir: Directory for clone.log.
        timeout: Clone timeout in seconds (None = no timeout).

    Returns:
        True if a clone was performed, False if the checkout was reused.

    Raises:
        SourceUnavailable: If the clone fails.
    """
    if target_dir.exists():
        logger.debug("Reusing source checkout: %s", target_dir)
        return False

    log_path = log_dir / "clone.log"
    cmd = compose_clone_command(repo_url, target_dir.absolute())

    try:
        target_dir.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise SourceUnavailable(
            f"Cannot create parent directory for {target_dir}: {e}",
            log_path=log_path,
        ) from e

    try:
        result = run_logged(
            cmd, cwd=target_dir.parent, log_path=log_path, timeout=timeout
        )
    except OSError as e:
        raise SourceUnavailable(
            f"Failed to execute git: {e}", log_path=log_path
        ) from e

    if not result.success:
        # A half-written checkout would be reused as-is on the next run
        if target_dir.exists():
            shutil.rmtree(target_dir, ignore_errors=True)
        reason = (
            f"timed out after {timeout} seconds"
            if result.timed_out
            else f"exit code {result.exit_code}"
        )
        logger.error("Clone of %s failed (%s). See log: %s", repo_url, reason, log_path)
        raise SourceUnavailable(
            f"Failed to clone {repo_url}: {reason}", log_path=log_path
        )

    if not target_dir.is_dir():
        raise SourceUnavailable(
            f"Clone of {repo_url} reported success but {target_dir} is missing",
            log_path=log_path,
        )

    logger.info("Cloned %s into %s", repo_url, target_dir)
    return True


__all__ = ["compose_clone_command", "ensure_source"]
