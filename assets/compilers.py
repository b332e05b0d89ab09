"""
compilers.py — Registration of compilers and compressors.

Adapters are tagged when they are registered:

    Sync(fn)   fn returns the compiled text directly
    Async(fn)  fn returns a concurrent.futures.Future resolving to the text

A plain callable is treated as ``Sync``. Compilers are called as
``fn(path, contents, options)``; compressors as ``fn(contents, options)``.
"""
import logging
from dataclasses import dataclass

from assets.utils import to_extname

logger = logging.getLogger("assetpipe")


@dataclass(frozen=True)
class Sync:
    fn: object
    is_async = False

    def run(self, *args):
        return self.fn(*args)


@dataclass(frozen=True)
class Async:
    fn: object
    is_async = True

    def run(self, *args):
        # No timeout: a stalled adapter stalls every waiter on its build.
        return self.fn(*args).result()


def as_adapter(fn):
    if isinstance(fn, (Sync, Async)):
        return fn
    return Sync(fn)


@dataclass(frozen=True)
class Compiler:
    extname: str
    output: str
    adapter: object


class CompilerRegistry:
    """Input extension -> Compiler, plus a reverse index by output extension."""

    def __init__(self, compilers=None):
        self._compilers = {}
        self._reverse = {}
        for ext, entry in (compilers or {}).items():
            self.register(ext, entry["output"], entry["compile"])

    def register(self, input_ext, output_ext, compiler):
        input_ext = to_extname(input_ext)
        output_ext = to_extname(output_ext)
        entry = Compiler(input_ext, output_ext, as_adapter(compiler))
        previous = self._compilers.get(input_ext)
        if previous is not None:
            self._reverse[previous.output] = [
                c for c in self._reverse[previous.output] if c.extname != input_ext
            ]
        self._compilers[input_ext] = entry
        self._reverse.setdefault(output_ext, []).append(entry)
        logger.debug(f"Registered {input_ext} ({output_ext}) compiler")
        return entry

    def get(self, ext):
        return self._compilers.get(ext)

    def __contains__(self, ext):
        return ext in self._compilers

    def producing(self, output_ext):
        """Compilers targeting ``output_ext``, in registration order."""
        return list(self._reverse.get(output_ext, []))


class CompressorRegistry:
    """Output extension -> compressor adapter."""

    def __init__(self, compressors=None):
        self._compressors = {}
        for ext, fn in (compressors or {}).items():
            self.register(ext, fn)

    def register(self, ext, compressor):
        ext = to_extname(ext)
        self._compressors[ext] = as_adapter(compressor)
        logger.debug(f"Registered {ext} compressor")

    def get(self, ext):
        return self._compressors.get(ext)
