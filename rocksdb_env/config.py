"""Configuration settings for rocksdb_env.

Uses pydantic-settings for config parsing from environment variables
and defaults. The CLI takes no flags, so environment variables (or a
.env file) are the only way to change these.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from rocksdb_env.types import AmbiguityPolicy, BuildPolicy

DEFAULT_REPO_URL = "https://github.com/rust-rocksdb/rust-rocksdb.git"


def _default_log_dir() -> Path:
    """Return the default directory for clone/build logs."""
    return Path.home() / ".cache" / "rocksdb-env" / "logs"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the ROCKSDB_ENV_
    prefix. The prefix does not collide with the exported ROCKSDB_LIB_DIR
    and ROCKSDB_STATIC variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="ROCKSDB_ENV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Source checkout
    repo_url: str = Field(
        default=DEFAULT_REPO_URL,
        description="Remote repository cloned when the checkout is missing",
    )
    source_dir: Path = Field(
        default=Path("rust-rocksdb"),
        description="Checkout location (relative paths resolve against cwd)",
    )

    # Build
    policy: BuildPolicy = Field(
        default=BuildPolicy.CACHE_AWARE,
        description="Build policy: always-rebuild or cache-aware",
    )
    build_profile: str = Field(
        default="release",
        min_length=1,
        description="Cargo profile used for the build",
    )
    no_default_features: bool = Field(
        default=True,
        description="Pass --no-default-features to cargo build",
    )
    features: list[str] = Field(
        default_factory=lambda: ["snappy"],
        description="Cargo features enabled for the build",
    )

    # Artifact
    archive_name: str = Field(
        default="librocksdb.a",
        min_length=1,
        description="File name of the static archive to locate",
    )
    ambiguity: AmbiguityPolicy = Field(
        default=AmbiguityPolicy.ERROR,
        description="What to do when several archives match: error or newest",
    )

    # Logging
    log_dir: Path = Field(
        default_factory=_default_log_dir,
        description="Directory for clone and build logs",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Timeouts (in seconds)
    clone_timeout: int | None = Field(
        default=None,
        ge=1,
        description="Timeout for git clone (no timeout if not set)",
    )
    build_timeout: int | None = Field(
        default=None,
        ge=1,
        description="Timeout for each cargo command (no timeout if not set)",
    )

    @property
    def cached_archive_path(self) -> Path:
        """Stable location of the cached archive inside the checkout."""
        return self.source_dir / self.archive_name

    @property
    def build_output_root(self) -> Path:
        """Cargo target directory searched for the archive."""
        return self.source_dir / "target"


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["DEFAULT_REPO_URL", "Settings", "get_settings", "print_settings_json"]
