import pytest

from assets.addressing import Addressing
from assets.compilers import CompilerRegistry
from assets.errors import ResolutionError
from assets.registry import AssetRegistry
from assets.resolver import Resolver
from tests.helpers import fake_less, write_tree


@pytest.fixture()
def resolver(assets_dir):
    addressing = Addressing(length=32)
    registry = AssetRegistry(str(assets_dir), addressing)
    registry.reindex()
    registry.rehash()
    compilers = CompilerRegistry({".less": {"output": ".css", "compile": fake_less}})
    return Resolver(registry, compilers, addressing, serve_prefix="/static")


def test_resolve_single_file(resolver):
    definition = resolver.resolve("jquery.js")

    assert definition.identifier == "jquery.js"
    assert definition.filename == "asset-82470a0982f62504a81cf60128ff61a2-jquery.js"
    assert definition.path == "/static/asset-82470a0982f62504a81cf60128ff61a2-jquery.js"
    assert [f.name for f in definition.assets] == ["jquery.js"]


def test_resolve_is_idempotent(resolver):
    first = resolver.resolve("jquery.js")
    second = resolver.resolve("JQuery.js")

    assert first.path == second.path
    assert first is second


def test_bundle_hash_ignores_duplicates(resolver):
    plain = resolver.resolve("ie8.js", {"include": ["html5shiv.js", "respond.js"]})
    assert plain.digest == "b5d5d67465f661c1a12da394e502b391"

    resolver.definitions.clear()
    duplicated = resolver.resolve(
        "ie8.js", {"include": ["html5shiv.js", "respond.js", "HTML5Shiv.js", "respond.js"]}
    )
    assert duplicated.digest == "b5d5d67465f661c1a12da394e502b391"
    assert [f.name for f in duplicated.assets] == ["html5shiv.js", "respond.js"]


def test_include_globs_expand_in_sorted_order(resolver):
    definition = resolver.resolve("js/all.js", {"include": "js/*.js"})

    assert [f.name for f in definition.assets] == ["js/app.js", "js/util.js"]
    assert definition.filename.startswith("js/asset-")
    assert definition.filename.endswith("-all.js")


def test_unmatched_glob_names_pattern_and_bundle(resolver):
    with pytest.raises(ResolutionError) as excinfo:
        resolver.resolve("all.js", {"include": ["vendor/*.js"]})

    assert str(excinfo.value) == (
        'No assets matched the pattern "vendor/*.js" when building asset "all.js"'
    )


def test_missing_include_names_file_and_bundle(resolver):
    with pytest.raises(ResolutionError) as excinfo:
        resolver.resolve("bundle.js", {"include": ["missing.js"]})

    message = str(excinfo.value)
    assert message == 'Asset "missing.js" could not be found when building asset "bundle.js"'


def test_empty_include_is_an_error(resolver):
    with pytest.raises(ResolutionError, match="No assets were defined"):
        resolver.resolve("bundle.js", {"include": []})


def test_compiler_extension_maps_to_output(resolver):
    definition = resolver.resolve("css/theme.less")

    assert definition.identifier == "css/theme.css"
    assert [f.name for f in definition.assets] == ["css/theme.less"]
    assert definition.filename.endswith("-theme.css")


def test_fallback_to_an_included_source_is_not_bundled_twice(resolver):
    single = resolver.resolve("site2.css", {"include": ["css/theme.less"]})

    resolver.definitions.clear()
    both = resolver.resolve("site2.css", {"include": ["css/theme.css", "css/theme.less"]})

    assert [f.name for f in both.assets] == ["css/theme.less"]
    assert both.digest == single.digest


def test_compiler_fallback_lists_tried_candidates(resolver):
    with pytest.raises(ResolutionError) as excinfo:
        resolver.resolve("css/missing.css")

    assert str(excinfo.value) == 'Asset "css/missing.css" could not be found (tried "css/missing.less")'


def test_fallback_follows_registration_order(assets_dir):
    write_tree(assets_dir, {"css/both.styl": "a\n", "css/both.less": "b\n"})
    addressing = Addressing()
    registry = AssetRegistry(str(assets_dir), addressing)
    registry.reindex()
    registry.rehash()
    compilers = CompilerRegistry()
    compilers.register("styl", "css", lambda path, text, options: text)
    compilers.register("less", "css", fake_less)

    definition = Resolver(registry, compilers, addressing).resolve("css/both.css")

    assert [f.name for f in definition.assets] == ["css/both.styl"]


def test_dependencies_change_hash_but_not_content(resolver):
    plain = resolver.resolve("jquery.js")
    resolver.definitions.clear()
    with_deps = resolver.resolve("jquery.js", {"dependencies": ["css/*.css"]})

    assert with_deps.digest != plain.digest
    assert [f.name for f in with_deps.assets] == ["jquery.js"]
    assert [f.name for f in with_deps.dependencies] == ["css/site.css"]


def test_missing_dependency_is_an_error(resolver):
    with pytest.raises(ResolutionError) as excinfo:
        resolver.resolve("jquery.js", {"dependencies": ["nope.js"]})

    assert str(excinfo.value) == 'Failed to locate "nope.js" when finding dependencies for "jquery.js"'


def test_effective_options_merge_over_first_definition(resolver):
    resolver.resolve("ie8.js", {
        "include": ["html5shiv.js", "respond.js"],
        "attributes": {"id": "ie8"},
    })

    options = resolver.effective_options("ie8.js", {"attributes": {"defer": "defer"}})

    assert options["include"] == ["html5shiv.js", "respond.js"]
    assert options["attributes"] == {"defer": "defer", "id": "ie8"}


def test_changed_file_produces_new_definition(resolver, assets_dir):
    before = resolver.resolve("jquery.js")

    (assets_dir / "jquery.js").write_text("window.jQuery = {v: 2};\n")
    resolver.registry.refresh("jquery.js")
    after = resolver.resolve("jquery.js")

    assert after.path != before.path
    assert resolver.lookup("jquery.js") is after
