# assets/__init__.py
from .compilers import Async, Sync
from .errors import (
    AssetError,
    AsyncOnlyError,
    CompilationError,
    CompressionError,
    DiscoveryError,
    ManifestError,
    ResolutionError,
)
from .manager import AssetManager
from .signals import asset_changed, asset_deleted, asset_error

__all__ = [
    "AssetManager", "Sync", "Async",
    "AssetError", "AsyncOnlyError", "CompilationError", "CompressionError",
    "DiscoveryError", "ManifestError", "ResolutionError",
    "asset_changed", "asset_deleted", "asset_error",
]
