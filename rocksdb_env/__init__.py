"""rocksdb-env - Build and locate a static RocksDB archive.

This package clones the rust-rocksdb bindings, builds the bundled RocksDB
with a fixed feature set, and prints shell exports that point downstream
builds at the resulting static archive.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
