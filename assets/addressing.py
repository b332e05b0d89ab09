"""
addressing.py — Content-hash addressing for compiled assets.

A compiled asset is named ``<prefix>-<hash>-<name>`` and lives in the same
relative directory as its identifier, e.g. ``js/asset-1f3a...-all.js``.
The hash is derived from the hashes of the files that make up the bundle,
so the URL changes whenever any of them changes and can be cached forever.
"""
import os
import re
import logging
import posixpath

from assets.utils import hash_bytes

logger = logging.getLogger("assetpipe")

HASH_SEPARATOR = ":"


class Addressing:
    """Naming rules shared by the registry, the resolver and the server."""

    def __init__(self, prefix="asset", algorithm="md5", length=16):
        self.prefix = prefix
        self.algorithm = algorithm
        self.length = length
        self.pattern = re.compile(rf"^{re.escape(prefix)}-[0-9a-f]+?-")

    def is_compiled(self, path):
        """Whether the basename of ``path`` looks like a generated asset."""
        return bool(self.pattern.match(posixpath.basename(path)))

    def canonical_path(self, path):
        """``js/asset-1f3a-all.js`` -> ``js/all.js`` (leading ``/`` kept)."""
        directory, filename = posixpath.split(path)
        canonical = "-".join(filename.split("-")[2:])
        return posixpath.join(directory, canonical)

    def bundle_hash(self, files):
        """
        Composite hash of a bundle.

        Parameters
        ----------
        files : iterable of SourceFile — content files first, then
            dependency-only files, in bundle order
        """
        joined = HASH_SEPARATOR.join(f.hash for f in files)
        return hash_bytes(joined, self.algorithm)[:self.length]

    def compiled_filename(self, identifier, digest):
        directory, name = posixpath.split(identifier)
        return posixpath.join(directory, f"{self.prefix}-{digest}-{name}")

    @staticmethod
    def served_path(serve_prefix, filename):
        return posixpath.join(serve_prefix or "/", filename)


def retire_stale(registry, identifier, keep, directory):
    """
    Delete generated files for ``identifier`` other than ``keep``.

    Deletion is best-effort: a file that cannot be removed is still dropped
    from tracking. Returns the list of retired relative filenames.
    """
    retired = registry.retire(identifier, keep)
    for filename in retired:
        logger.debug(f"Removing old asset {filename}")
        try:
            os.unlink(os.path.join(directory, *filename.split("/")))
        except OSError as e:
            logger.debug(f"Could not remove {filename}: {e}")
    return retired
