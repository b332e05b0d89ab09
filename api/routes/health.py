"""
health.py — /api/health endpoint for readiness and liveness checks.
"""
import os
import logging
from flask import Blueprint, current_app, jsonify
from datetime import datetime, timezone

logger = logging.getLogger("assetpipe")

health_bp = Blueprint("health", __name__, url_prefix="/api")


@health_bp.route("/health")
def health():
    """Liveness check."""
    manager = current_app.extensions.get("assetpipe")
    checks = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "asset_directory": None,
        "sources": 0,
        "generated": 0,
        "watching": False,
    }

    if manager:
        checks["asset_directory"] = manager.directory
        checks["sources"] = len(manager.registry)
        checks["generated"] = sum(len(v) for v in manager.registry.generated.values())
        checks["watching"] = manager.watcher.running
        if not os.path.isdir(manager.directory):
            checks["status"] = "degraded"

    status_code = 200 if checks["status"] == "ok" else 503
    return jsonify(checks), status_code


@health_bp.route("/ready")
def ready():
    """Readiness check: has the asset registry been indexed?"""
    manager = current_app.extensions.get("assetpipe")
    if manager and manager.initialized:
        return jsonify({"status": "ready"}), 200
    return jsonify({"status": "not_ready", "reason": "Assets not indexed"}), 503
