"""
assets.py — /api/assets endpoints for URL lookup, stats and admin reindex.
"""
import logging
from flask import Blueprint, current_app, g, jsonify

from api.middleware.rate_limiter import admin_limit, limiter
from api.middleware.request_validator import require_admin_key, validate_query
from api.schemas.asset_schema import BuildListQuerySchema, UrlQuerySchema
from assets.errors import AssetError, DiscoveryError

logger = logging.getLogger("assetpipe")

assets_bp = Blueprint("assets_api", __name__, url_prefix="/api/assets")


def _manager():
    return current_app.extensions["assetpipe"]


@assets_bp.route("/url")
@validate_query(UrlQuerySchema())
def asset_url():
    """Resolve an identifier (optionally a bundle) to its current URL."""
    manager = _manager()
    identifier = g.query["identifier"]
    options = {"include": g.query["include"]} if g.query["include"] else None
    try:
        definition = manager.resolve(identifier, options)
    except AssetError as e:
        manager.report(e)
        return jsonify({"error": "Not Found", "message": str(e)}), 404

    return jsonify({
        "identifier": definition.identifier,
        "hash": definition.digest,
        "path": definition.path,
        "url": manager.asset_url(identifier, options),
        "files": [f.name for f in definition.assets],
        "dependencies": [f.name for f in definition.dependencies],
    })


@assets_bp.route("/stats")
def stats():
    return jsonify(_manager().stats())


@assets_bp.route("/builds")
@validate_query(BuildListQuerySchema())
def builds():
    return jsonify(_manager().build_queue.list_builds(g.query["limit"]))


@assets_bp.route("/reindex", methods=["POST"])
@limiter.limit(admin_limit)
@require_admin_key
def reindex():
    """Rescan the asset directory and rehash changed files."""
    manager = _manager()
    try:
        rehashed = manager.reload()
    except DiscoveryError as e:
        manager.report(e)
        return jsonify({"status": "error", "message": str(e)}), 503

    logger.info(f"Reindexed {len(manager.registry)} assets on request")
    return jsonify({
        "status": "reindexed",
        "rehashed": rehashed,
        "sources": len(manager.registry),
    })
