"""
app.py — Application Factory for the asset pipeline server.

Assembles the asset manager, blueprints, and middleware.
Usage:
    flask --app app run
"""

import os
import atexit
from flask import Flask, request

from config import config_map

# Middleware & Ext
from api.middleware.rate_limiter import init_limiter
from api.middleware.error_handler import register_error_handlers

# Services
from assets.manager import AssetManager
from services.logger import setup_logging

# Blueprints
from api.routes.assets import assets_bp
from api.routes.health import health_bp
from api.routes.static_assets import static_bp

IMMUTABLE = "public, max-age=31536000, immutable"


def create_app(config_name="development", **overrides):
    """Flask application factory."""
    # Assets are served by the static_assets blueprint instead.
    app = Flask(__name__, static_folder=None)

    # ── Configuration ──
    app.config.from_object(config_map[config_name])
    app.config.update(overrides)

    # ── Setup Logging ──
    logger = setup_logging(app.config["LOG_DIR"], app.config["LOG_LEVEL"])
    logger.info(f"Starting assetpipe ({config_name} mode)")

    # ── Initialize Extensions ──
    init_limiter(app)
    register_error_handlers(app)

    # ── Asset Manager ──
    manager = AssetManager(
        app.config["ASSET_DIR"],
        asset_prefix=app.config["ASSET_PREFIX"],
        hash=app.config["ASSET_HASH"],
        hash_length=app.config["ASSET_HASH_LENGTH"],
        manifest=app.config["ASSET_MANIFEST"],
        serve_prefix=app.config["ASSET_SERVE_PREFIX"],
        url_prefix=app.config["ASSET_URL_PREFIX"],
        output_dir=app.config["ASSET_OUTPUT_DIR"],
        max_age=app.config["ASSET_MAX_AGE"],
        compress=app.config["ASSET_COMPRESS"],
        hot_reload=app.config["ASSET_HOT_RELOAD"],
        wrap_javascript=app.config["ASSET_WRAP_JAVASCRIPT"],
        separate_bundles=app.config["ASSET_SEPARATE_BUNDLES"],
        html5=app.config["ASSET_HTML5"],
        build_workers=app.config["ASSET_BUILD_WORKERS"],
    )
    manager.init()
    app.extensions["assetpipe"] = manager
    if not app.testing:
        atexit.register(manager.destroy)

    # ── Template Helpers ──
    app.jinja_env.globals.update({
        manager.settings["view_helper"]: manager.asset,
        "asset_url": manager.asset_url,
        "asset_path": manager.asset_path,
        "asset_inline": manager.asset_inline,
    })

    # ── Register Blueprints ──
    app.register_blueprint(static_bp, url_prefix=_blueprint_prefix(manager))
    app.register_blueprint(assets_bp)
    app.register_blueprint(health_bp)

    # Static Cache Headers
    @app.after_request
    def add_cache_headers(response):
        if response.status_code != 200 or request.blueprint != static_bp.name:
            return response
        filename = request.view_args["filename"]
        if manager.addressing.is_compiled(filename):
            response.headers["Cache-Control"] = IMMUTABLE
        return response

    return app


def _blueprint_prefix(manager):
    prefix = manager.settings["serve_prefix"].rstrip("/")
    return prefix or None


if __name__ == "__main__":
    app = create_app(os.environ.get("FLASK_ENV", "development"))
    app.run(host="0.0.0.0", port=5000)
