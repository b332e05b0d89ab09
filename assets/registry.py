"""
registry.py — In-memory index of source assets and generated artifacts.

The registry walks the asset directory, separates previously generated
files (``asset-<hash>-name``) from sources, and hashes every source. Hashes
are cached in a JSON manifest next to the sources so that a restart only
rehashes files whose mtime changed.
"""
import os
import json
import logging
import posixpath
from dataclasses import dataclass
from threading import RLock

from assets.errors import DiscoveryError, ManifestError
from assets.utils import TEMP_PREFIX, atomic_write, hash_file, mtime_ms, walk_directory

logger = logging.getLogger("assetpipe")


@dataclass
class SourceFile:
    name: str
    mtime: int
    hash: str = None

    def to_dict(self):
        return {"name": self.name, "mtime": self.mtime, "hash": self.hash}


class AssetRegistry:
    """Thread-safe store of source files and generated asset filenames."""

    def __init__(self, directory, addressing, manifest=".asset-manifest",
                 output_dir=None, on_error=None):
        self.directory = directory
        self.output_dir = output_dir or directory
        self.addressing = addressing
        self.manifest = manifest
        self.manifest_path = os.path.join(directory, manifest)
        self.sources = {}
        self.generated = {}
        self._on_error = on_error
        self._lock = RLock()

    # ── Discovery ──────────────────────────────────────────────────────────

    def walk(self, directory=None):
        directory = directory or self.directory
        try:
            return [SourceFile(name, mtime) for name, mtime in walk_directory(directory)]
        except OSError as e:
            raise DiscoveryError(f"Failed to locate assets: {e}") from e

    def reindex(self):
        """Rebuild both mappings from disk. Raises DiscoveryError."""
        files = self.walk()
        extra = []
        if os.path.abspath(self.output_dir) != os.path.abspath(self.directory):
            if os.path.isdir(self.output_dir):
                extra = self.walk(self.output_dir)

        with self._lock:
            self.sources = {}
            self.generated = {}
            for f in files:
                if posixpath.basename(f.name).startswith(TEMP_PREFIX):
                    continue
                if self.addressing.is_compiled(f.name):
                    self.track_generated(f.name)
                elif f.name != self.manifest:
                    self.sources[f.name.lower()] = f
            for f in extra:
                if self.addressing.is_compiled(f.name):
                    self.track_generated(f.name)
        logger.info(
            f"Indexed {len(self.sources)} source files and "
            f"{len(self.generated)} generated assets in {self.directory}"
        )

    # ── Hashing & manifest ────────────────────────────────────────────────

    def load_manifest(self):
        """Read the manifest; missing or corrupt files count as empty."""
        try:
            with open(self.manifest_path, encoding="utf-8") as f:
                manifest = json.load(f)
        except (OSError, ValueError):
            return {}
        return manifest if isinstance(manifest, dict) else {}

    def rehash(self):
        """
        Hash every source file, reusing manifest entries with a matching mtime.

        Returns True if at least one file had to be hashed.
        """
        manifest = self.load_manifest()
        outdated = False
        with self._lock:
            for key, source in self.sources.items():
                cached = manifest.get(key)
                if isinstance(cached, dict) and cached.get("mtime") == source.mtime:
                    source.hash = cached.get("hash")
                    continue
                logger.debug(f"Hashing file {source.name}")
                source.hash = hash_file(self.source_path(source.name),
                                        self.addressing.algorithm)
                outdated = True
        if outdated:
            self.save_manifest()
        return outdated

    def write_manifest(self):
        """Persist the hash cache atomically. Raises ManifestError."""
        with self._lock:
            payload = {key: f.to_dict() for key, f in self.sources.items()}
        try:
            atomic_write(self.manifest_path, json.dumps(payload).encode("utf-8"))
        except OSError as e:
            raise ManifestError(f"Failed to write the assets manifest: {e}") from e

    def save_manifest(self):
        """Write the manifest, reporting rather than raising on failure."""
        try:
            self.write_manifest()
        except ManifestError as e:
            logger.warning(str(e))
            if self._on_error:
                self._on_error(e)

    # ── Incremental updates ───────────────────────────────────────────────

    def refresh(self, name):
        """
        Re-stat a single source file after a change.

        Returns the updated SourceFile, or None if the file is gone.
        """
        key = name.lower()
        path = self.source_path(name)
        try:
            stat = os.stat(path)
            digest = hash_file(path, self.addressing.algorithm)
        except OSError:
            with self._lock:
                self.sources.pop(key, None)
            logger.debug(f"Removed {name} from the registry")
            return None
        source = SourceFile(name, mtime_ms(stat), digest)
        with self._lock:
            self.sources[key] = source
        logger.debug(f"Rehashed {name}")
        return source

    # ── Generated artifacts ───────────────────────────────────────────────

    def track_generated(self, filename):
        canonical = self.addressing.canonical_path(filename)
        with self._lock:
            tracked = self.generated.setdefault(canonical, [])
            if filename not in tracked:
                tracked.append(filename)

    def generated_for(self, canonical):
        with self._lock:
            return list(self.generated.get(canonical, []))

    def retire(self, canonical, keep):
        """Drop every tracked filename for ``canonical`` except ``keep``."""
        with self._lock:
            existing = self.generated.get(canonical)
            if not existing:
                return []
            retired = [f for f in existing if f != keep]
            self.generated[canonical] = [f for f in existing if f == keep]
        return retired

    # ── Queries ───────────────────────────────────────────────────────────

    def get(self, name):
        return self.sources.get(name.lower())

    def __contains__(self, name):
        return name.lower() in self.sources

    def __len__(self):
        return len(self.sources)

    def keys(self):
        with self._lock:
            return sorted(self.sources)

    def directories(self):
        """Relative directories holding at least one source file."""
        with self._lock:
            return sorted({posixpath.dirname(f.name) for f in self.sources.values()})

    def source_path(self, name):
        return os.path.join(self.directory, *name.split("/"))
