"""
resolver.py — Turn asset identifiers into bundle definitions.

An identifier is either a single source file (``jquery.js``) or a bundle
name whose members come from ``include`` (``ie8.js`` built from
``html5shiv.js`` and ``respond.js``). Identifiers are case-insensitive and
may use a compiler's input extension (``theme.less`` means ``theme.css``).

Resolution happens in two explicit phases: ``lookup`` returns the stored
definition (if any) so the caller can merge options, then ``resolve``
computes the definition for the merged options.
"""
import os
import copy
import logging
from dataclasses import dataclass, field
from threading import Lock

from assets.errors import ResolutionError
from assets.utils import extname, glob_match, is_glob, merge_defaults, strip_duplicates

logger = logging.getLogger("assetpipe")


@dataclass
class BundleDefinition:
    identifier: str
    path: str
    filename: str
    digest: str
    assets: list = field(default_factory=list)
    dependencies: list = field(default_factory=list)
    options: dict = field(default_factory=dict)

    @property
    def extname(self):
        return extname(self.identifier)

    def output_path(self, directory):
        return os.path.join(directory, *self.filename.split("/"))


class Resolver:
    """Resolves identifiers against a live AssetRegistry."""

    def __init__(self, registry, compilers, addressing, serve_prefix="/"):
        self.registry = registry
        self.compilers = compilers
        self.addressing = addressing
        self.serve_prefix = serve_prefix
        self.definitions = {}
        self._lock = Lock()

    def normalize(self, identifier):
        """Lowercase and map a compiler input extension to its output."""
        identifier = identifier.lower()
        ext = extname(identifier)
        compiler = self.compilers.get(ext)
        if compiler is not None:
            identifier = identifier[:-len(ext)] + compiler.output
        return identifier

    def lookup(self, identifier):
        return self.definitions.get(self.normalize(identifier))

    def effective_options(self, identifier, options=None):
        """
        Merge ``options`` over the stored definition's options.

        Keys given by the caller win; keys only known from the first
        definition (e.g. ``include``) are filled in, and ``attributes`` are
        merged key by key.
        """
        options = copy.deepcopy(options or {})
        existing = self.lookup(identifier)
        if existing is not None:
            merge_defaults(options, existing.options)
        return options

    def resolve(self, identifier, options=None):
        """Build (or refresh) the definition for ``identifier``."""
        identifier = self.normalize(identifier)
        options = options or {}
        include = options.get("include")

        if include is not None:
            logger.debug(f"Calculating includes for {identifier}")
            try:
                filenames = self.expand_globs(include)
            except ResolutionError as e:
                raise ResolutionError(f'{e} when building asset "{identifier}"') from e
        else:
            filenames = [identifier]

        filenames = strip_duplicates(filenames)
        if not filenames:
            raise ResolutionError("No assets were defined")

        bundle = identifier if include is not None else None
        assets = [self._find(name, bundle) for name in filenames]
        # foo.css and foo.less may both fall back to the same file.
        assets = _unique_sources(assets)
        dependencies = self._dependencies(identifier, options.get("dependencies"))

        digest = self.addressing.bundle_hash(assets + dependencies)
        logger.debug(
            f"Asset hash for {identifier} is based on "
            f"{[f.name for f in assets + dependencies]}"
        )
        filename = self.addressing.compiled_filename(identifier, digest)
        path = self.addressing.served_path(self.serve_prefix, filename)

        with self._lock:
            existing = self.definitions.get(identifier)
            if existing is None or existing.path != path:
                definition = BundleDefinition(
                    identifier=identifier,
                    path=path,
                    filename=filename,
                    digest=digest,
                    assets=assets,
                    dependencies=dependencies,
                    options=copy.deepcopy(options),
                )
                self.definitions[identifier] = definition
            else:
                definition = existing
                definition.assets = assets
                definition.dependencies = dependencies
        return definition

    def expand_globs(self, globs):
        """
        Expand glob entries against the registry; literals pass through.

        Raises ResolutionError when a glob matches nothing.
        """
        if isinstance(globs, str):
            globs = [globs]
        keys = self.registry.keys()
        filenames = []
        for pattern in globs:
            if not pattern:
                continue
            if not is_glob(pattern):
                filenames.append(pattern)
                continue
            matched = [key for key in keys if glob_match(key, pattern)]
            if not matched:
                raise ResolutionError(f'No assets matched the pattern "{pattern}"')
            filenames.extend(matched)
        logger.debug(f"Expanded {globs} to {filenames}")
        return filenames

    def _find(self, name, bundle=None):
        key = name.lower()
        source = self.registry.get(key)
        if source is not None:
            return source

        # foo.css may exist on disk as foo.less
        ext = extname(key)
        base = key[:-len(ext)] if ext else key
        tried = []
        for compiler in self.compilers.producing(ext):
            candidate = base + compiler.extname
            if candidate == key:
                continue
            source = self.registry.get(candidate)
            if source is not None:
                logger.debug(f"Asset {key} exists as {candidate}")
                return source
            tried.append(candidate)

        message = f'Asset "{key}" could not be found'
        if bundle:
            message += f' when building asset "{bundle}"'
        if tried:
            message += ' (tried "{}")'.format('", "'.join(tried))
        raise ResolutionError(message)

    def _dependencies(self, identifier, dependencies):
        if not dependencies:
            return []
        logger.debug(f"Calculating dependencies for {identifier}")
        try:
            resolved = []
            for name in strip_duplicates(self.expand_globs(dependencies)):
                source = self.registry.get(name)
                if source is None:
                    raise ResolutionError(f'Failed to locate "{name}"')
                resolved.append(source)
        except ResolutionError as e:
            raise ResolutionError(
                f'{e} when finding dependencies for "{identifier}"'
            ) from e
        return resolved


def _unique_sources(sources):
    seen = set()
    unique = []
    for source in sources:
        key = source.name.lower()
        if key not in seen:
            seen.add(key)
            unique.append(source)
    return unique
