"""
static_assets.py — Serves sources and generated assets under the serve prefix.

A request for a generated name that belongs to a resolved bundle triggers
(or joins) its build before the file is sent. Everything else is plain
static file serving.
"""
import os
import logging
from flask import Blueprint, abort, current_app, send_from_directory

logger = logging.getLogger("assetpipe")

static_bp = Blueprint("assets_static", __name__)


@static_bp.route("/<path:filename>")
def serve(filename):
    manager = current_app.extensions["assetpipe"]
    max_age = manager.settings["max_age"]

    if manager.addressing.is_compiled(filename):
        # Build errors propagate to the CompilationError handler.
        manager.build_for_request(filename)
        return send_from_directory(manager.output_dir, filename, max_age=max_age)

    if os.path.basename(filename) == manager.settings["manifest"]:
        abort(404)
    return send_from_directory(manager.directory, filename, max_age=max_age)
