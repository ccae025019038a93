"""Tests for builds/runner.py module.

Tests cargo command composition and execution.
Uses mocked subprocess for execution tests.
"""

import os
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from rocksdb_env.builds.runner import (
    CommandResult,
    clean_and_build,
    compose_build_command,
    compose_build_env,
    compose_clean_command,
    run_logged,
)
from rocksdb_env.errors import BuildFailed


class TestComposeBuildEnv:
    """Tests for compose_build_env function."""

    def test_clears_exported_vars(self):
        """Should drop ROCKSDB_LIB_DIR and ROCKSDB_STATIC."""
        base = {
            "PATH": "/usr/bin",
            "ROCKSDB_LIB_DIR": "/stale/lib",
            "ROCKSDB_STATIC": "1",
        }
        env = compose_build_env(base)
        assert env == {"PATH": "/usr/bin"}

    def test_does_not_mutate_base(self):
        """Should return a copy and leave the base mapping alone."""
        base = {"ROCKSDB_LIB_DIR": "/stale/lib"}
        compose_build_env(base)
        assert base == {"ROCKSDB_LIB_DIR": "/stale/lib"}

    def test_defaults_to_os_environ(self):
        """Should start from os.environ without modifying it."""
        with patch.dict(os.environ, {"ROCKSDB_STATIC": "1", "KEEP_ME": "yes"}):
            env = compose_build_env()
            assert "ROCKSDB_STATIC" not in env
            assert env["KEEP_ME"] == "yes"
            assert os.environ["ROCKSDB_STATIC"] == "1"

    def test_missing_vars_are_fine(self):
        """Should not fail when the variables are not set."""
        assert compose_build_env({"HOME": "/root"}) == {"HOME": "/root"}


class TestComposeCommands:
    """Tests for cargo command composition."""

    def test_clean_command(self):
        """Should compose cargo clean."""
        assert compose_clean_command() == ["cargo", "clean"]

    def test_default_build_command(self):
        """Should match the fixed release/snappy build."""
        cmd = compose_build_command(features=["snappy"])
        assert cmd == [
            "cargo",
            "build",
            "--release",
            "--no-default-features",
            "--features",
            "snappy",
        ]

    def test_multiple_features(self):
        """Should join features with commas."""
        cmd = compose_build_command(features=["snappy", "lz4"])
        assert cmd[-2:] == ["--features", "snappy,lz4"]

    def test_keep_default_features(self):
        """Should omit --no-default-features when disabled."""
        cmd = compose_build_command(no_default_features=False, features=None)
        assert "--no-default-features" not in cmd
        assert "--features" not in cmd

    def test_custom_profile(self):
        """Should pass non-release profiles with --profile."""
        cmd = compose_build_command(profile="bench")
        assert "--release" not in cmd
        assert cmd[2:4] == ["--profile", "bench"]

    def test_dev_profile(self):
        """Should use cargo's default profile for dev."""
        cmd = compose_build_command(profile="dev")
        assert "--release" not in cmd
        assert "--profile" not in cmd


class TestRunLogged:
    """Tests for run_logged function with mocked subprocess."""

    def test_successful_command(self, tmp_path):
        """Should report success and write the log header/footer."""
        log_path = tmp_path / "logs" / "build.log"

        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)
            result = run_logged(["cargo", "build"], cwd=tmp_path, log_path=log_path)

        assert isinstance(result, CommandResult)
        assert result.success is True
        assert result.command == "cargo build"
        content = log_path.read_text()
        assert "# Command: cargo build" in content
        assert "# Exit code: 0" in content

    def test_output_goes_to_log_file(self, tmp_path):
        """Should redirect stdout to the log and merge stderr."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)
            run_logged(["cargo", "build"], cwd=tmp_path, log_path=tmp_path / "b.log")

        kwargs = mock_run.call_args.kwargs
        assert kwargs["stdout"] is not None
        assert kwargs["stdout"] is not subprocess.PIPE
        assert kwargs["stderr"] == subprocess.STDOUT
        assert kwargs["cwd"] == tmp_path

    def test_failed_command(self, tmp_path):
        """Should report failure without raising."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=101)
            result = run_logged(
                ["cargo", "build"], cwd=tmp_path, log_path=tmp_path / "b.log"
            )

        assert result.success is False
        assert result.exit_code == 101

    def test_timeout(self, tmp_path):
        """Should mark the result as timed out."""
        log_path = tmp_path / "b.log"
        with patch("subprocess.run") as mock_run:
            mock_run.side_effect = subprocess.TimeoutExpired(cmd="cargo", timeout=5)
            result = run_logged(
                ["cargo", "build"], cwd=tmp_path, log_path=log_path, timeout=5
            )

        assert result.timed_out is True
        assert result.success is False
        assert "TIMEOUT after 5 seconds" in log_path.read_text()

    def test_explicit_env(self, tmp_path):
        """Should pass the given environment to the child."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)
            run_logged(
                ["cargo", "build"],
                cwd=tmp_path,
                log_path=tmp_path / "b.log",
                env={"PATH": "/bin"},
            )

        assert mock_run.call_args.kwargs["env"] == {"PATH": "/bin"}


class TestCleanAndBuild:
    """Tests for clean_and_build function with mocked subprocess."""

    def test_runs_clean_then_build(self, tmp_path):
        """Should run cargo clean before cargo build."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)
            clean_and_build(tmp_path, tmp_path / "logs", features=["snappy"])

        commands = [c.args[0] for c in mock_run.call_args_list]
        assert commands[0] == ["cargo", "clean"]
        assert commands[1][:3] == ["cargo", "build", "--release"]
        assert (tmp_path / "logs" / "clean.log").exists()
        assert (tmp_path / "logs" / "build.log").exists()

    def test_env_has_no_exported_vars(self, tmp_path):
        """Should not pass inherited ROCKSDB_* exports to cargo."""
        stale = {"ROCKSDB_LIB_DIR": "/stale", "ROCKSDB_STATIC": "1"}
        with patch.dict(os.environ, stale):
            with patch("subprocess.run") as mock_run:
                mock_run.return_value = MagicMock(returncode=0)
                clean_and_build(tmp_path, tmp_path / "logs")

            for call in mock_run.call_args_list:
                env = call.kwargs["env"]
                assert "ROCKSDB_LIB_DIR" not in env
                assert "ROCKSDB_STATIC" not in env
            assert os.environ["ROCKSDB_LIB_DIR"] == "/stale"

    def test_build_failure_raises(self, tmp_path):
        """Should raise BuildFailed with the tool exit code."""
        with patch("subprocess.run") as mock_run:
            mock_run.side_effect = [MagicMock(returncode=0), MagicMock(returncode=101)]
            with pytest.raises(BuildFailed) as exc_info:
                clean_and_build(tmp_path, tmp_path / "logs")

        assert exc_info.value.tool_exit_code == 101
        assert exc_info.value.log_path == tmp_path / "logs" / "build.log"

    def test_clean_failure_skips_build(self, tmp_path):
        """Should stop before building when cargo clean fails."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1)
            with pytest.raises(BuildFailed):
                clean_and_build(tmp_path, tmp_path / "logs")

        assert mock_run.call_count == 1

    def test_timeout_raises(self, tmp_path):
        """Should raise BuildFailed when cargo times out."""
        with patch("subprocess.run") as mock_run:
            mock_run.side_effect = subprocess.TimeoutExpired(cmd="cargo", timeout=10)
            with pytest.raises(BuildFailed) as exc_info:
                clean_and_build(tmp_path, tmp_path / "logs", timeout=10)

        assert "timed out" in str(exc_info.value)

    def test_missing_cargo_raises(self, tmp_path):
        """Should raise BuildFailed when cargo cannot be started."""
        with patch("subprocess.run") as mock_run:
            mock_run.side_effect = FileNotFoundError("cargo")
            with pytest.raises(BuildFailed) as exc_info:
                clean_and_build(tmp_path, tmp_path / "logs")

        assert "Failed to execute cargo" in str(exc_info.value)
