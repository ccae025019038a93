"""Shared fixtures for rocksdb_env tests.

FakeTools stands in for git and cargo: it is installed as the
side_effect of a patched subprocess.run and records every call.
"""

import shutil
import subprocess
from pathlib import Path

import pytest

from rocksdb_env.config import Settings


DEFAULT_ARCHIVE_RELPATH = "target/release/build/librocksdb-sys-0f3a/out/librocksdb.a"


class FakeTools:
    """Simulate git clone, cargo clean and cargo build on the filesystem."""

    def __init__(
        self,
        archive_relpath: str = DEFAULT_ARCHIVE_RELPATH,
        clone_exit: int = 0,
        clean_exit: int = 0,
        build_exit: int = 0,
        produce_archive: bool = True,
    ) -> None:
        self.archive_relpath = archive_relpath
        self.clone_exit = clone_exit
        self.clean_exit = clean_exit
        self.build_exit = build_exit
        self.produce_archive = produce_archive
        self.calls: list[dict] = []

    def __call__(self, cmd, cwd=None, env=None, **kwargs):
        self.calls.append({"cmd": list(cmd), "cwd": cwd, "env": env})

        if cmd[:2] == ["git", "clone"]:
            if self.clone_exit == 0:
                Path(cmd[3]).mkdir(parents=True)
                (Path(cmd[3]) / "Cargo.toml").write_text("[package]\n")
            return subprocess.CompletedProcess(cmd, self.clone_exit)

        if cmd[:2] == ["cargo", "clean"]:
            shutil.rmtree(Path(cwd) / "target", ignore_errors=True)
            return subprocess.CompletedProcess(cmd, self.clean_exit)

        if cmd[:2] == ["cargo", "build"]:
            if self.build_exit == 0 and self.produce_archive:
                archive = Path(cwd) / self.archive_relpath
                archive.parent.mkdir(parents=True, exist_ok=True)
                archive.write_bytes(b"!<arch>\n" + b"x" * 4096)
            return subprocess.CompletedProcess(cmd, self.build_exit)

        raise AssertionError(f"Unexpected command: {cmd}")

    def commands(self, prefix: list[str]) -> list[list[str]]:
        """Return recorded commands starting with prefix."""
        return [c["cmd"] for c in self.calls if c["cmd"][: len(prefix)] == prefix]


@pytest.fixture
def make_settings(tmp_path):
    """Build Settings rooted in tmp_path."""

    def _make(**overrides) -> Settings:
        values = {
            "source_dir": tmp_path / "rust-rocksdb",
            "log_dir": tmp_path / "logs",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def source_dir(tmp_path) -> Path:
    """Create an existing (already cloned) checkout."""
    path = tmp_path / "rust-rocksdb"
    path.mkdir()
    (path / "Cargo.toml").write_text("[package]\n")
    return path


@pytest.fixture
def fake_tools():
    """Return the FakeTools class for building configured fakes."""
    return FakeTools
