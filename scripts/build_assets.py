"""
build_assets.py — Precompile content-hashed bundles ahead of deployment.

Usage:
    python -m scripts.build_assets --assets static --bundles bundles.json --compress

``bundles.json`` maps identifiers to per-asset options, e.g.
    {"js/all.js": {"include": ["js/*.js"]}, "css/site.css": {}}
A plain list of identifiers is accepted too.

Outputs:
    <output>/<dir>/asset-<hash>-<name>   one file per bundle
    <output>/manifest.json               (maps identifier → URL)
"""

import os
import sys
import json
import argparse

from assets.errors import AssetError
from assets.manager import AssetManager
from assets.utils import atomic_write


def load_bundles(path):
    """Read the bundle declarations as ``{identifier: options}``."""
    with open(path, encoding="utf-8") as f:
        bundles = json.load(f)
    if isinstance(bundles, list):
        return {identifier: {} for identifier in bundles}
    if not isinstance(bundles, dict):
        raise ValueError(f"{path} must hold a JSON object or list")
    return bundles


def precompile(manager, bundles):
    """
    Build every declared bundle and return the identifier → URL manifest.

    Raises the first AssetError encountered.
    """
    manifest = {}
    for identifier, options in bundles.items():
        definition = manager.build(identifier, options or None)
        manifest[identifier] = manager.asset_url(identifier, options or None)
        size_kb = os.path.getsize(definition.output_path(manager.output_dir)) / 1024
        print(f"   {identifier}: {size_kb:.1f}KB → {definition.filename}")
    return manifest


def write_manifest(manifest, output_dir):
    manifest_path = os.path.join(output_dir, "manifest.json")
    atomic_write(manifest_path, json.dumps(manifest, indent=2).encode("utf-8"))
    print(f"   Manifest → {manifest_path}")
    return manifest_path


# ── CLI entrypoint ─────────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Precompile asset bundles into content-hashed files."
    )
    parser.add_argument("--assets", "-a", default="static",
                        help="Asset source directory")
    parser.add_argument("--bundles", "-b", required=True,
                        help="JSON file declaring the bundles to build")
    parser.add_argument("--output", "-o", default=None,
                        help="Output directory (defaults to the asset directory)")
    parser.add_argument("--serve-prefix", default="/static",
                        help="Path the assets are served under")
    parser.add_argument("--url-prefix", default="",
                        help="Prefix for generated URLs, e.g. a CDN origin")
    parser.add_argument("--hash-length", type=int, default=16)
    parser.add_argument("--compress", action="store_true",
                        help="Minify bundles with the registered compressors")
    parser.add_argument("--wrap-javascript", action="store_true",
                        help="Wrap JavaScript bundles in an IIFE")
    args = parser.parse_args(argv)

    manager = AssetManager(
        args.assets,
        output_dir=args.output,
        serve_prefix=args.serve_prefix,
        url_prefix=args.url_prefix,
        hash_length=args.hash_length,
        compress=args.compress,
        wrap_javascript=args.wrap_javascript,
    )
    print("🔧 Building assets...")
    try:
        manager.init()
        manifest = precompile(manager, load_bundles(args.bundles))
        write_manifest(manifest, manager.output_dir)
    except (AssetError, OSError, ValueError) as e:
        print(f"❌ {e}")
        return 1
    finally:
        manager.destroy()

    print("✅ Build complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
