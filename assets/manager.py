"""
manager.py — AssetManager, the public face of the pipeline.

One manager owns one registry, one set of bundle definitions and one build
queue, so several managers can live side by side in a process. The query
helpers (``asset``, ``asset_url``, ``asset_path``, ``asset_inline``) are
meant for templates: they never raise, they return an empty string and
send ``asset_error`` instead.
"""
import os
import logging
from threading import Lock

from markupsafe import Markup
from marshmallow import ValidationError

from api.schemas.asset_schema import AssetOptionsSchema, ManagerOptionsSchema
from assets.addressing import Addressing, retire_stale
from assets.compilers import CompilerRegistry, CompressorRegistry
from assets.compressors import DEFAULT_COMPRESSORS
from assets.errors import AssetError, CompilationError, CompressionError, DiscoveryError, ResolutionError
from assets.inline import DEFAULT_INLINE_FORMATS
from assets.pipeline import Pipeline
from assets.registry import AssetRegistry
from assets.resolver import Resolver
from assets.signals import asset_deleted, asset_error
from assets.tags import DEFAULT_TAGS
from assets.utils import to_extname
from assets.watcher import AssetWatcher
from services.build_queue import BuildQueue
from services.metrics import BuildMetrics

logger = logging.getLogger("assetpipe")

_asset_options = AssetOptionsSchema()


def prefix_url(prefix, path):
    """Join a URL prefix and a served path without doubling the slash."""
    if prefix.endswith("/") and path.startswith("/"):
        prefix = prefix[:-1]
    return prefix + path


class AssetManager:
    """
    Content-addressed asset pipeline for one source directory.

    Parameters
    ----------
    directory : str — root of the source tree
    compilers : dict — ``{".less": {"output": ".css", "compile": fn}}``
    compressors : dict — ``{".css": fn}``; defaults to rcssmin and rjsmin
    tags : dict — extra HTML tag formats by extension
    inline_formats : dict — extra inline formats by extension
    **options — see ManagerOptionsSchema
    """

    def __init__(self, directory, compilers=None, compressors=None, tags=None,
                 inline_formats=None, **options):
        self.settings = ManagerOptionsSchema().load(options)
        algorithm = self.settings["hash"]
        if isinstance(algorithm, str):
            algorithm = algorithm.lower()

        self.directory = os.path.abspath(directory)
        output_dir = self.settings["output_dir"]
        self.output_dir = os.path.abspath(output_dir) if output_dir else self.directory

        self.addressing = Addressing(self.settings["asset_prefix"], algorithm,
                                     self.settings["hash_length"])
        self.registry = AssetRegistry(self.directory, self.addressing,
                                      manifest=self.settings["manifest"],
                                      output_dir=self.output_dir,
                                      on_error=self.report)
        self.compilers = CompilerRegistry(compilers)
        self.compressors = CompressorRegistry(
            DEFAULT_COMPRESSORS if compressors is None else compressors
        )
        self.tags = dict(DEFAULT_TAGS)
        self.tags.update({to_extname(k): v for k, v in (tags or {}).items()})
        self.inline_formats = dict(DEFAULT_INLINE_FORMATS)
        self.inline_formats.update({to_extname(k): v for k, v in (inline_formats or {}).items()})

        self.resolver = Resolver(self.registry, self.compilers, self.addressing,
                                 self.settings["serve_prefix"])
        self.pipeline = Pipeline(self.registry, self.compilers, self.compressors,
                                 self.settings)
        self.metrics = BuildMetrics()
        self.build_queue = BuildQueue(max_workers=self.settings["build_workers"],
                                      metrics=self.metrics)
        self.watcher = AssetWatcher(self)

        self._initialized = False
        self._lock = Lock()

    # ── Lifecycle ─────────────────────────────────────────────────────────

    def init(self):
        """Index and hash the source tree, then start watching if enabled."""
        with self._lock:
            if self._initialized:
                return self
            self._initialized = True

        try:
            self.reload()
        except DiscoveryError as e:
            self.report(e)
        if self.settings["hot_reload"]:
            self.watcher.start()
        logger.info(f"Asset manager ready for {self.directory} ({len(self.registry)} files)")
        return self

    @property
    def initialized(self):
        return self._initialized

    def reload(self):
        """Full reindex + rehash. Returns True when any file was rehashed."""
        self.registry.reindex()
        return self.registry.rehash()

    def destroy(self):
        self.watcher.stop()
        self.build_queue.shutdown(wait=False)
        with self._lock:
            self._initialized = False

    def report(self, error):
        """Log ``error`` and notify ``asset_error`` receivers."""
        logger.warning(f"Asset error: {error}")
        asset_error.send(self, error=error)

    # ── Registration ──────────────────────────────────────────────────────

    def register_compiler(self, input_ext, output_ext, compiler):
        self.compilers.register(input_ext, output_ext, compiler)
        return self

    def register_compressor(self, ext, compressor):
        self.compressors.register(ext, compressor)
        return self

    def register_tag_format(self, ext, fmt):
        self.tags[to_extname(ext)] = fmt
        return self

    def register_inline_format(self, ext, fmt):
        self.inline_formats[to_extname(ext)] = fmt
        return self

    # ── Resolution ────────────────────────────────────────────────────────

    def lookup(self, identifier):
        return self.resolver.lookup(identifier)

    def resolve(self, identifier, options=None):
        """Resolve ``identifier`` to a BundleDefinition. Raises ResolutionError."""
        return self._resolve(identifier, options)[0]

    def _resolve(self, identifier, options):
        try:
            options = _asset_options.load(options or {})
        except ValidationError as e:
            raise ResolutionError(f'Invalid options for asset "{identifier}": {e.messages}') from e

        options = self.resolver.effective_options(identifier, options)
        definition = self.resolver.resolve(identifier, options)

        canonical = self.addressing.canonical_path(definition.filename)
        for filename in retire_stale(self.registry, canonical, definition.filename,
                                     self.output_dir):
            asset_deleted.send(self, path=filename)
        return definition, options

    # ── Template helpers ──────────────────────────────────────────────────

    def asset_path(self, identifier, options=None):
        try:
            return self.resolve(identifier, options).path
        except AssetError as e:
            self.report(e)
            return ""

    def asset_url(self, identifier, options=None):
        try:
            definition, options = self._resolve(identifier, options)
        except AssetError as e:
            self.report(e)
            return ""
        return self._url_for(definition, options)

    def asset(self, identifier, options=None):
        """HTML markup linking (or embedding) ``identifier``."""
        try:
            definition, options = self._resolve(identifier, options)
            if options.get("inline"):
                return self._inline(definition, options)

            fmt = self.tags.get(definition.extname)
            if fmt is None:
                raise AssetError(
                    f'Unable to create an HTML tag for type "{definition.extname}"'
                )

            if self.settings["separate_bundles"] and options.get("include") is not None:
                member_options = {
                    k: options[k] for k in ("attributes", "url_prefix")
                    if options.get(k) is not None
                }
                tags = []
                for source in definition.assets:
                    member, opts = self._resolve(source.name, member_options)
                    tags.append(self._tag(fmt, member, opts))
                return Markup("\n".join(tags))

            return Markup(self._tag(fmt, definition, options))
        except AssetError as e:
            self.report(e)
            return Markup("")

    def asset_inline(self, identifier, options=None):
        """Compiled content of ``identifier`` wrapped by its inline format."""
        try:
            definition, options = self._resolve(identifier, options)
            return self._inline(definition, options)
        except AssetError as e:
            self.report(e)
            return Markup("")

    def _url_for(self, definition, options):
        prefix = options.get("url_prefix")
        if prefix is None:
            prefix = self.settings["url_prefix"]
        return prefix_url(prefix, definition.path)

    def _tag(self, fmt, definition, options):
        attributes = dict(options.get("attributes") or {})
        return fmt(self._url_for(definition, options), self.settings, attributes)

    def _inline(self, definition, options):
        fmt = self.inline_formats.get(definition.extname)
        if fmt is None:
            raise AssetError(f'Unable to inline assets of type "{definition.extname}"')
        content = self.pipeline.build_inline(definition)
        attributes = dict(options.get("attributes") or {})
        return Markup(fmt(content, self.settings, attributes))

    # ── Building ──────────────────────────────────────────────────────────

    def compile_asset(self, definition, callback=None):
        """Start or join the build for ``definition``. Returns a Future."""
        key = self.addressing.canonical_path(definition.filename)
        return self.build_queue.submit(key, self.pipeline.build, definition,
                                       callback=callback)

    def build(self, identifier, options=None):
        """Resolve and build ``identifier``, blocking until it is on disk."""
        definition = self.resolve(identifier, options)
        self.compile_asset(definition).result()
        return definition

    def build_for_request(self, filename):
        """
        Make sure the generated file behind a request exists.

        ``filename`` is relative to the serve prefix. Returns False when it
        is not a generated name for a bundle this manager has resolved, True
        once the file is on disk. Compilation and compression errors are
        reported and re-raised.
        """
        filename = filename.lstrip("/")
        if not self.addressing.is_compiled(filename):
            return False

        definition = self.resolver.lookup(self.addressing.canonical_path(filename))
        if definition is None or definition.filename.lower() != filename.lower():
            return False

        output_path = definition.output_path(self.output_dir)
        if os.path.exists(output_path):
            return True

        try:
            self.compile_asset(definition).result()
            # The joined build may have been for an older hash of this bundle.
            if not os.path.exists(output_path):
                self.compile_asset(definition).result()
        except (CompilationError, CompressionError) as e:
            self.report(e)
            raise
        return True

    # ── Introspection ─────────────────────────────────────────────────────

    def stats(self):
        return {
            "directory": self.directory,
            "sources": len(self.registry),
            "generated": sum(len(v) for v in self.registry.generated.values()),
            "bundles": len(self.resolver.definitions),
            "builds_in_flight": self.build_queue.in_flight(),
            "watching": self.watcher.running,
            "metrics": self.metrics.get_dashboard(),
        }
