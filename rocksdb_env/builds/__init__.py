"""Build orchestration module.

This module handles:
- Cloning the source checkout
- Running cargo clean/build with an explicit environment
- Locating and caching the static archive
- Rendering shell exports for the archive directory
"""

from rocksdb_env.builds.service import BuildOutcome, build_and_locate

__all__ = ["BuildOutcome", "build_and_locate"]
