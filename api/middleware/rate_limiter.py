"""
rate_limiter.py — Flask-Limiter setup and helpers.
"""
import logging
from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

logger = logging.getLogger("assetpipe")

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["60/minute"],
    storage_uri="memory://",
)


def init_limiter(app):
    """Initialize rate limiter on the Flask app."""
    limiter.init_app(app)
    logger.info("Rate limiter initialised")
    return limiter


def admin_limit():
    """Limit for admin endpoints, read from the current app's config."""
    return current_app.config.get("RATELIMIT_ADMIN", "5/minute")
