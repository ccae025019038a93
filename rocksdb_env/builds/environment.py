"""Shell export rendering.

The exports are printed, not applied: the calling shell is expected to
evaluate them, e.g. ``eval "$(rocksdb-env)"``.
"""

from __future__ import annotations

import os
from pathlib import Path

from rocksdb_env.errors import UnexportablePath
from rocksdb_env.types import LIB_DIR_VAR, STATIC_VAR

# Characters that keep a special meaning inside double quotes
_DQUOTE_SPECIAL = ("\\", '"', "$", "`")


def quote_double(value: str) -> str:
    """Quote a value for a POSIX shell double-quoted string."""
    for char in _DQUOTE_SPECIAL:
        value = value.replace(char, "\\" + char)
    return f'"{value}"'


def resolve_lib_dir(archive_path: Path) -> Path:
    """Return the absolute, symlink-resolved directory holding the archive."""
    return Path(os.path.realpath(archive_path)).parent


def render_exports(lib_dir: Path) -> list[str]:
    """Render the two export lines for a library directory.

    Args:
        lib_dir: Directory containing the static archive.

    Returns:
        Export lines, without trailing newlines.

    Raises:
        UnexportablePath: If the resolved directory contains a line break.
    """
    real_dir = os.path.realpath(lib_dir)
    if "\n" in real_dir or "\r" in real_dir:
        raise UnexportablePath(
            f"Archive directory contains a line break: {real_dir!r}"
        )
    return [
        f"export {LIB_DIR_VAR}={quote_double(real_dir)}",
        f"export {STATIC_VAR}=1",
    ]


def emit_environment(lib_dir: Path) -> str:
    """Render the export block for a library directory.

    Args:
        lib_dir: Directory containing the static archive.

    Returns:
        Two newline-terminated export lines.
    """
    return "".join(f"{line}\n" for line in render_exports(lib_dir))


__all__ = ["emit_environment", "quote_double", "render_exports", "resolve_lib_dir"]
