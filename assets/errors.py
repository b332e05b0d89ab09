"""
errors.py — Exception taxonomy for the asset pipeline.

Discovery and manifest errors are reported but never abort the owning
operation. Resolution errors abort a single lookup. Compilation and
compression errors abort an in-flight build and reach every waiter.
"""


class AssetError(Exception):
    """Base class for every error raised by the asset pipeline."""


class DiscoveryError(AssetError):
    """The asset directory is missing or unreadable."""


class ManifestError(AssetError):
    """The hash manifest could not be persisted."""


class ResolutionError(AssetError):
    """An identifier, glob or dependency could not be resolved."""


class CompilationError(AssetError):
    """A source file could not be read or compiled."""


class CompressionError(AssetError):
    """The compressor for a bundle failed."""


class AsyncOnlyError(CompilationError):
    """An async-only compiler or compressor was selected for an inline build."""
