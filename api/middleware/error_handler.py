"""
error_handler.py — Centralized error handling for the Flask app.
"""
import logging
import traceback
from flask import jsonify
from werkzeug.exceptions import HTTPException

from assets.errors import CompilationError, CompressionError

logger = logging.getLogger("assetpipe")


def register_error_handlers(app):
    """Register all error handlers on the Flask app."""

    @app.errorhandler(400)
    def bad_request(e):
        return jsonify({"error": "Bad Request", "message": _describe(e)}), 400

    @app.errorhandler(403)
    def forbidden(e):
        return jsonify({"error": "Forbidden", "message": _describe(e)}), 403

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not Found", "message": _describe(e)}), 404

    @app.errorhandler(429)
    def rate_limited(e):
        return jsonify({
            "error": "Rate Limited",
            "message": "Too many requests. Please slow down.",
        }), 429

    @app.errorhandler(CompilationError)
    @app.errorhandler(CompressionError)
    def build_failed(e):
        logger.error(f"Asset build failed: {e}")
        return jsonify({
            "error": "Asset Build Failed",
            "message": str(e),
        }), 500

    @app.errorhandler(500)
    def internal_error(e):
        logger.error(f"Internal error: {e}\n{traceback.format_exc()}")
        return jsonify({
            "error": "Internal Server Error",
            "message": "Something went wrong.",
        }), 500


def _describe(e):
    if isinstance(e, HTTPException):
        return e.description
    return str(e)
