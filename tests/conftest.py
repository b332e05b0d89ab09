import sys
from pathlib import Path

import pytest

repo_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(repo_root))

from assets.manager import AssetManager  # noqa: E402
from tests.helpers import SOURCES, STALE_BUNDLE, fake_less, write_tree  # noqa: E402


@pytest.fixture()
def assets_dir(tmp_path):
    root = tmp_path / "static"
    write_tree(root, SOURCES)
    write_tree(root, {
        "img/logo.png": b"\x89PNG\r\n\x1a\n\x00\xff",
        STALE_BUNDLE: "window.old = true;\n",
    })
    return root


@pytest.fixture()
def make_manager(assets_dir):
    managers = []

    def factory(directory=None, **options):
        options.setdefault("compilers", {".less": {"output": ".css", "compile": fake_less}})
        manager = AssetManager(str(directory or assets_dir), **options)
        managers.append(manager)
        return manager.init()

    yield factory

    for manager in managers:
        manager.destroy()


@pytest.fixture()
def manager(make_manager):
    return make_manager()
