"""
utils.py — Filesystem, hashing and option helpers shared by the pipeline.
"""
import os
import copy
import hashlib
import fnmatch
import tempfile

GLOB_CHARS = set("*?[{}")

# Prefix of in-progress atomic writes; never indexed or watched.
TEMP_PREFIX = ".tmp-"


def walk_directory(directory, prefix=""):
    """
    Recursively list every file below ``directory``.

    Entries are visited in sorted order so that the result is stable across
    platforms. Names are relative POSIX paths; mtimes are integer
    milliseconds.

    Returns
    -------
    list of (name, mtime) tuples
    """
    files = []
    for entry in sorted(os.listdir(directory)):
        full_path = os.path.join(directory, entry)
        name = f"{prefix}/{entry}" if prefix else entry
        stat = os.stat(full_path)
        if os.path.isdir(full_path):
            files.extend(walk_directory(full_path, name))
        else:
            files.append((name, mtime_ms(stat)))
    return files


def mtime_ms(stat):
    return stat.st_mtime_ns // 1_000_000


def hash_bytes(data, algorithm="md5"):
    """Hex digest of ``data``; ``algorithm`` is a hashlib name or a callable."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    if callable(algorithm):
        return algorithm(data)
    return hashlib.new(algorithm, data).hexdigest()


def hash_file(path, algorithm="md5"):
    with open(path, "rb") as f:
        return hash_bytes(f.read(), algorithm)


def atomic_write(path, data):
    """Replace ``path`` with ``data`` (bytes) via a temp file and rename."""
    directory = os.path.dirname(path) or "."
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=TEMP_PREFIX)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def merge_defaults(options, defaults):
    """
    Fill keys missing from ``options`` with deep copies from ``defaults``.

    Keys already present in ``options`` win; when both sides hold a dict the
    merge recurses into it. ``options`` is modified in place and returned.
    """
    if options is None:
        options = {}
    for key, value in defaults.items():
        if key not in options or options[key] is None:
            options[key] = copy.deepcopy(value)
        elif isinstance(value, dict) and isinstance(options[key], dict):
            merge_defaults(options[key], value)
    return options


def strip_duplicates(items):
    """Remove case-insensitive duplicates, keeping the first occurrence."""
    seen = set()
    result = []
    for item in items:
        key = item.lower()
        if key not in seen:
            seen.add(key)
            result.append(item)
    return result


def to_extname(ext):
    """Normalise ``"LESS"`` / ``"less"`` / ``".less"`` to ``".less"``."""
    ext = ext.lower()
    if not ext.startswith("."):
        ext = "." + ext
    return ext


def extname(path):
    return os.path.splitext(path)[1].lower()


def is_glob(pattern):
    return any(ch in GLOB_CHARS for ch in pattern)


def expand_braces(pattern):
    """Expand ``{a,b}`` alternatives, e.g. ``*.{js,css}`` -> two patterns."""
    start = pattern.find("{")
    end = pattern.find("}", start)
    if start < 0 or end < 0:
        return [pattern]
    head, body, tail = pattern[:start], pattern[start + 1:end], pattern[end + 1:]
    expanded = []
    for option in body.split(","):
        expanded.extend(expand_braces(head + option + tail))
    return expanded


def glob_match(name, pattern):
    """
    Match a relative path against a glob.

    ``*``, ``?`` and ``[...]`` stay inside one path segment unless the
    pattern contains ``**``, in which case the whole path is matched.
    """
    name = name.lower()
    for candidate in expand_braces(pattern.lower()):
        if "**" in candidate:
            if fnmatch.fnmatchcase(name, candidate.replace("**/", "*").replace("**", "*")):
                return True
            continue
        parts = name.split("/")
        pattern_parts = candidate.split("/")
        if len(parts) != len(pattern_parts):
            continue
        if all(fnmatch.fnmatchcase(p, q) for p, q in zip(parts, pattern_parts)):
            return True
    return False
