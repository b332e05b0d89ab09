import json
import os

import pytest

from assets.addressing import Addressing
from assets.errors import DiscoveryError, ManifestError
from assets.registry import AssetRegistry
from tests.helpers import JQUERY_HASH, STALE_BUNDLE, write_tree


def make_registry(directory, **kwargs):
    return AssetRegistry(str(directory), Addressing(), **kwargs)


def test_reindex_separates_sources_and_generated(assets_dir):
    (assets_dir / ".asset-manifest").write_text("{}")
    registry = make_registry(assets_dir)

    registry.reindex()

    assert "jquery.js" in registry
    assert "css/theme.less" in registry
    assert STALE_BUNDLE not in registry
    assert ".asset-manifest" not in registry
    assert registry.generated == {"js/all.js": [STALE_BUNDLE]}


def test_keys_are_case_insensitive_but_names_keep_case(tmp_path):
    write_tree(tmp_path, {"Vendor/JQuery.UI.js": "ui\n"})
    registry = make_registry(tmp_path)
    registry.reindex()
    registry.rehash()

    source = registry.get("vendor/jquery.ui.js")
    assert source.name == "Vendor/JQuery.UI.js"
    assert registry.keys() == ["vendor/jquery.ui.js"]
    assert source.hash is not None


def test_missing_directory_raises_discovery_error(tmp_path):
    registry = make_registry(tmp_path / "missing")

    with pytest.raises(DiscoveryError, match="Failed to locate assets"):
        registry.reindex()
    assert len(registry) == 0


def test_empty_directory_gives_empty_registry(tmp_path):
    registry = make_registry(tmp_path)
    registry.reindex()
    assert len(registry) == 0
    assert registry.rehash() is False


def test_rehash_writes_manifest_and_reuses_it(assets_dir):
    registry = make_registry(assets_dir)
    registry.reindex()

    assert registry.rehash() is True
    manifest = json.loads((assets_dir / ".asset-manifest").read_text())
    assert manifest["jquery.js"]["hash"] == JQUERY_HASH
    assert manifest["jquery.js"]["name"] == "jquery.js"

    again = make_registry(assets_dir)
    again.reindex()
    assert again.rehash() is False
    assert again.get("jquery.js").hash == JQUERY_HASH


def test_manifest_entry_trusted_when_mtime_matches(assets_dir):
    registry = make_registry(assets_dir)
    registry.reindex()
    registry.rehash()

    path = assets_dir / "jquery.js"
    stat = os.stat(path)
    path.write_text("window.jQuery = {changed: true};\n")
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns))

    again = make_registry(assets_dir)
    again.reindex()
    again.rehash()
    assert again.get("jquery.js").hash == JQUERY_HASH


def test_corrupt_manifest_is_treated_as_empty(assets_dir):
    (assets_dir / ".asset-manifest").write_text("not json")
    registry = make_registry(assets_dir)
    registry.reindex()

    assert registry.rehash() is True
    assert json.loads((assets_dir / ".asset-manifest").read_text())


def test_manifest_write_failure_is_reported_not_raised(assets_dir):
    (assets_dir / ".asset-manifest").mkdir()
    errors = []
    registry = make_registry(assets_dir, on_error=errors.append)
    registry.reindex()

    assert registry.rehash() is True
    assert len(errors) == 1
    assert isinstance(errors[0], ManifestError)
    assert registry.get("jquery.js").hash is not None


def test_refresh_updates_and_removes(assets_dir):
    registry = make_registry(assets_dir)
    registry.reindex()
    registry.rehash()
    before = registry.get("js/app.js").hash

    (assets_dir / "js" / "app.js").write_text("var app = {v: 2};\n")
    source = registry.refresh("js/app.js")
    assert source.hash != before
    assert registry.get("js/app.js") is source

    (assets_dir / "js" / "app.js").unlink()
    assert registry.refresh("js/app.js") is None
    assert "js/app.js" not in registry


def test_directories_lists_source_directories(assets_dir):
    registry = make_registry(assets_dir)
    registry.reindex()
    assert registry.directories() == ["", "css", "img", "js"]


def test_generated_files_in_separate_output_dir(tmp_path, assets_dir):
    output = tmp_path / "dist"
    write_tree(output, {"css/asset-abcdef-site.css": "body{}"})
    registry = make_registry(assets_dir, output_dir=str(output))
    registry.reindex()

    assert registry.generated_for("css/site.css") == ["css/asset-abcdef-site.css"]
    assert registry.generated_for("js/all.js") == [STALE_BUNDLE]
