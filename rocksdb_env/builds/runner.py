"""Build runner for executing cargo commands.

This module handles:
- Composing `cargo clean` and `cargo build` commands from settings
- Building the environment passed to nested commands
- Executing commands with subprocess
- Capturing stdout/stderr to log files
- Enforcing timeouts
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from rocksdb_env.errors import BuildFailed
from rocksdb_env.types import EXPORTED_VARS

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result of a logged command execution.

    Attributes:
        exit_code: Process exit code (-1 on timeout).
        log_path: Path to the log file.
        started_at: Start time.
        finished_at: Finish time.
        command: The command that was executed.
        timed_out: Whether the command was killed by the timeout.
    """

    exit_code: int
    log_path: Path
    started_at: datetime
    finished_at: datetime
    command: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        """Whether the command exited with status 0."""
        return self.exit_code == 0 and not self.timed_out


def compose_build_env(
    base_env: Mapping[str, str] | None = None,
    cleared: tuple[str, ...] = EXPORTED_VARS,
) -> dict[str, str]:
    """Compose the environment for a nested cargo invocation.

    Variables this tool exports are dropped so values inherited from the
    calling shell cannot point the nested build at a stale archive. The
    base mapping is copied, never mutated.

    Args:
        base_env: Environment to start from (defaults to os.environ).
        cleared: Variable names to remove.

    Returns:
        New environment mapping.
    """
    env = dict(os.environ if base_env is None else base_env)
    for name in cleared:
        env.pop(name, None)
    return env


def compose_clean_command() -> list[str]:
    """Compose the `cargo clean` command."""
    return ["cargo", "clean"]


def compose_build_command(
    profile: str = "release",
    no_default_features: bool = True,
    features: list[str] | None = None,
) -> list[str]:
    """Compose the `cargo build` command.

    Args:
        profile: Cargo profile; "release" maps to --release.
        no_default_features: Whether to disable default features.
        features: Features to enable.

    Returns:
        Command as list of strings suitable for subprocess.
    """
    cmd = ["cargo", "build"]

    if profile == "release":
        cmd.append("--release")
    elif profile != "dev":
        cmd.extend(["--profile", profile])

    if no_default_features:
        cmd.append("--no-default-features")

    if features:
        cmd.extend(["--features", ",".join(features)])

    return cmd


def run_logged(
    cmd: list[str],
    cwd: Path,
    log_path: Path,
    env: Mapping[str, str] | None = None,
    timeout: int | None = None,
) -> CommandResult:
    """Run a command with stdout/stderr captured to a log file.

    Args:
        cmd: Command to execute.
        cwd: Working directory.
        log_path: Log file (overwritten).
        env: Environment for the child (inherits os.environ if None).
        timeout: Timeout in seconds (None = no timeout).

    Returns:
        CommandResult with execution details.

    Raises:
        OSError: If the command cannot be started.
    """
    log_path.parent.mkdir(parents=True, exist_ok=True)

    cmd_str = shlex.join(cmd)
    logger.info("Executing: %s", cmd_str)
    logger.debug("Working directory: %s", cwd)

    started_at = datetime.now(timezone.utc)
    timed_out = False

    with log_path.open("w") as log_file:
        log_file.write(f"# Command: {cmd_str}\n")
        log_file.write(f"# Started: {started_at.isoformat()}\n")
        log_file.write(f"# CWD: {cwd}\n")
        log_file.write("# " + "=" * 70 + "\n\n")
        log_file.flush()

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                stdout=log_file,
                stderr=subprocess.STDOUT,
                timeout=timeout,
                env=None if env is None else dict(env),
                check=False,
            )
            exit_code = result.returncode
        except subprocess.TimeoutExpired:
            exit_code = -1
            timed_out = True
            log_file.write(f"\n# TIMEOUT after {timeout} seconds\n")

    finished_at = datetime.now(timezone.utc)

    with log_path.open("a") as log_file:
        log_file.write(f"\n# Finished: {finished_at.isoformat()}\n")
        log_file.write(f"# Exit code: {exit_code}\n")
        duration = (finished_at - started_at).total_seconds()
        log_file.write(f"# Duration: {duration:.1f}s\n")

    return CommandResult(
        exit_code=exit_code,
        log_path=log_path,
        started_at=started_at,
        finished_at=finished_at,
        command=cmd_str,
        timed_out=timed_out,
    )


def _run_cargo(
    cmd: list[str],
    source_dir: Path,
    log_path: Path,
    env: Mapping[str, str],
    timeout: int | None,
) -> CommandResult:
    try:
        result = run_logged(
            cmd, cwd=source_dir, log_path=log_path, env=env, timeout=timeout
        )
    except OSError as e:
        raise BuildFailed(f"Failed to execute {cmd[0]}: {e}", log_path=log_path) from e

    if result.timed_out:
        message = f"{result.command} timed out after {timeout} seconds"
        logger.error("%s. See log: %s", message, log_path)
        raise BuildFailed(message, exit_code=-1, log_path=log_path)

    if not result.success:
        message = f"{result.command} failed with exit code {result.exit_code}"
        logger.error("%s. See log: %s", message, log_path)
        raise BuildFailed(message, exit_code=result.exit_code, log_path=log_path)

    return result


def clean_and_build(
    source_dir: Path,
    log_dir: Path,
    profile: str = "release",
    no_default_features: bool = True,
    features: list[str] | None = None,
    env: Mapping[str, str] | None = None,
    timeout: int | None = None,
) -> CommandResult:
    """Clean prior build state, then build the archive.

    Args:
        source_dir: Cargo project root.
        log_dir: Directory for clean.log and build.log.
        profile: Cargo profile.
        no_default_features: Whether to disable default features.
        features: Features to enable.
        env: Environment for both commands (defaults to compose_build_env()).
        timeout: Per-command timeout in seconds.

    Returns:
        CommandResult of the build command.

    Raises:
        BuildFailed: If either command fails, times out or cannot start.
    """
    if env is None:
        env = compose_build_env()

    _run_cargo(
        compose_clean_command(),
        source_dir,
        log_dir / "clean.log",
        env,
        timeout,
    )

    build_cmd = compose_build_command(
        profile=profile,
        no_default_features=no_default_features,
        features=features,
    )
    result = _run_cargo(build_cmd, source_dir, log_dir / "build.log", env, timeout)

    duration = (result.finished_at - result.started_at).total_seconds()
    logger.info("Build finished in %.1fs", duration)
    return result


__all__ = [
    "CommandResult",
    "clean_and_build",
    "compose_build_command",
    "compose_build_env",
    "compose_clean_command",
    "run_logged",
]
