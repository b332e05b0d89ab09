"""
request_validator.py — Request validation decorators for the asset API.
"""
import hmac
import logging
from functools import wraps
from flask import current_app, g, jsonify, request
from marshmallow import ValidationError

logger = logging.getLogger("assetpipe")


def validate_query(schema):
    """Load ``request.args`` through ``schema`` into ``g.query``."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                g.query = schema.load(_query_dict())
            except ValidationError as e:
                return jsonify({"error": "Bad Request", "errors": e.messages}), 400
            return func(*args, **kwargs)
        return wrapper
    return decorator


def require_admin_key(func):
    """Reject requests without the configured ``X-Admin-Key`` header."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        supplied = request.headers.get("X-Admin-Key", "")
        expected = current_app.config.get("ADMIN_KEY", "")
        if not expected or not hmac.compare_digest(supplied, expected):
            logger.warning(f"Rejected admin request to {request.path}")
            return jsonify({"error": "Unauthorized"}), 403
        return func(*args, **kwargs)
    return wrapper


def _query_dict():
    data = {}
    for key in request.args:
        values = request.args.getlist(key)
        data[key] = values if key == "include" else values[-1]
    return data
