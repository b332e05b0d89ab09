import os

from assets.utils import (
    atomic_write,
    expand_braces,
    glob_match,
    hash_bytes,
    is_glob,
    merge_defaults,
    strip_duplicates,
    to_extname,
    walk_directory,
)


def test_hash_bytes_md5_and_callable():
    assert hash_bytes("var foo") == "6535b4d330f12366c3f7e50afd63dd04"
    assert hash_bytes(b"var foo", lambda data: "x" * len(data)) == "xxxxxxx"


def test_strip_duplicates_keeps_first_case_insensitive():
    assert strip_duplicates(["a.js", "B.js", "A.js", "b.js", "c.js"]) == ["a.js", "B.js", "c.js"]


def test_merge_defaults_new_keys_win_and_nested_dicts_merge():
    options = {"attributes": {"id": "main"}, "url_prefix": None}
    defaults = {
        "include": ["a.js"],
        "url_prefix": "https://cdn",
        "attributes": {"id": "old", "async": "async"},
    }

    merged = merge_defaults(options, defaults)

    assert merged is options
    assert merged == {
        "include": ["a.js"],
        "url_prefix": "https://cdn",
        "attributes": {"id": "main", "async": "async"},
    }
    # Defaults are copied, not shared.
    merged["include"].append("b.js")
    assert defaults["include"] == ["a.js"]


def test_to_extname():
    assert to_extname("LESS") == ".less"
    assert to_extname(".css") == ".css"


def test_glob_helpers():
    assert is_glob("js/*.js")
    assert is_glob("{a,b}.js")
    assert not is_glob("js/app.js")
    assert expand_braces("js/*.{js,coffee}") == ["js/*.js", "js/*.coffee"]


def test_glob_match_stays_within_a_segment():
    assert glob_match("js/app.js", "js/*.js")
    assert glob_match("JS/App.JS", "js/*.js")
    assert not glob_match("js/app.js", "*.js")
    assert glob_match("js/app.js", "**/*.js")
    assert glob_match("jquery.js", "**/*.js")
    assert glob_match("css/site.css", "*/*.{js,css}")
    assert not glob_match("css/site.css", "js/?ite.css")


def test_walk_directory_is_sorted_and_relative(tmp_path):
    (tmp_path / "b").mkdir()
    (tmp_path / "b" / "z.js").write_text("z")
    (tmp_path / "a.js").write_text("a")
    (tmp_path / "c.js").write_text("c")

    names = [name for name, _ in walk_directory(str(tmp_path))]

    assert names == ["a.js", "b/z.js", "c.js"]


def test_atomic_write_leaves_no_temp_files(tmp_path):
    target = tmp_path / "out.txt"
    target.write_text("old")

    atomic_write(str(target), b"new")

    assert target.read_bytes() == b"new"
    assert os.listdir(tmp_path) == ["out.txt"]
