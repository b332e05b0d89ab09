"""
pipeline.py — Read, compile, concatenate, wrap, compress and write bundles.

``build`` writes a bundle to its content-hashed output path and is meant
to run on the BuildQueue. ``build_inline`` runs the same steps in memory
for inline delivery and refuses async-only adapters up front.
"""
import os
import logging

from assets.errors import AsyncOnlyError, CompilationError, CompressionError
from assets.utils import atomic_write, extname

logger = logging.getLogger("assetpipe")


def _encode(value):
    if value is None:
        return b""
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


class Pipeline:
    """Compiles BundleDefinitions using the registered adapters."""

    def __init__(self, registry, compilers, compressors, settings):
        self.registry = registry
        self.compilers = compilers
        self.compressors = compressors
        self.settings = settings

    def build(self, definition):
        """Compile ``definition`` to disk and return the output path."""
        contents = self._assemble(definition)
        output_path = definition.output_path(self.registry.output_dir)
        os.makedirs(os.path.dirname(output_path), exist_ok=True)
        atomic_write(output_path, contents)
        self.registry.track_generated(definition.filename)
        logger.info(f"Wrote {definition.filename} ({len(contents)} bytes)")
        return output_path

    def build_inline(self, definition):
        """Compile ``definition`` in memory and return it as text."""
        self.check_sync(definition)
        contents = self._assemble(definition)
        try:
            return contents.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CompilationError(
                f'Cannot inline "{definition.identifier}": {e}'
            ) from e

    def check_sync(self, definition):
        """Raise AsyncOnlyError if any selected adapter is async-only."""
        for source in definition.assets:
            compiler = self.compilers.get(extname(source.name))
            if compiler is not None and compiler.adapter.is_async:
                raise AsyncOnlyError(
                    f'Cannot compile "{source.name}" synchronously because '
                    f'the {compiler.extname} compiler is async'
                )
        ext = definition.extname
        compressor = self.compressors.get(ext)
        if self.settings.get("compress") and compressor is not None and compressor.is_async:
            raise AsyncOnlyError(
                f'Cannot compress "{definition.path}" synchronously because '
                f'the {ext} compressor is async'
            )

    def _assemble(self, definition):
        contents = b"".join(self._compile_file(source) for source in definition.assets)

        ext = definition.extname
        if ext == ".js" and self.settings.get("wrap_javascript"):
            template = self.settings.get("javascript_iife", "%s")
            contents = _encode(template % contents.decode("utf-8"))

        compressor = self.compressors.get(ext)
        if not self.settings.get("compress") or compressor is None:
            return contents

        kind = "asynchronous" if compressor.is_async else "synchronous"
        logger.debug(f"Compressing {definition.filename} with the {kind} {ext} compressor")
        try:
            return _encode(compressor.run(contents.decode("utf-8"), self.settings))
        except Exception as e:
            raise CompressionError(
                f'Failed to compress asset "{definition.path}": {e}'
            ) from e

    def _compile_file(self, source):
        path = self.registry.source_path(source.name)
        logger.debug(f"Loading file {source.name}")
        try:
            with open(path, "rb") as f:
                raw = f.read()
        except OSError as e:
            raise CompilationError(
                f'Failed to read file "{source.name}": {e.strerror or e}'
            ) from e

        compiler = self.compilers.get(extname(source.name))
        if compiler is None:
            return raw

        kind = "asynchronous" if compiler.adapter.is_async else "synchronous"
        logger.debug(f"Using {kind} {compiler.extname} compiler to compile {source.name}")
        try:
            compiled = compiler.adapter.run(path, raw.decode("utf-8"), self.settings)
        except Exception as e:
            raise CompilationError(
                f'Failed to compile file "{source.name}": {e}'
            ) from e
        return _encode(compiled)
