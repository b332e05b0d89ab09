"""
config.py — Application configuration classes.
"""

import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get("SECRET_KEY", "assetpipe-dev-key")
    BASE_DIR = BASE_DIR
    ADMIN_KEY = os.environ.get("ADMIN_KEY", "assetpipe-admin")

    # Assets
    ASSET_DIR = os.environ.get("ASSET_DIR", os.path.join(BASE_DIR, "static"))
    ASSET_OUTPUT_DIR = os.environ.get("ASSET_OUTPUT_DIR") or None
    ASSET_PREFIX = os.environ.get("ASSET_PREFIX", "asset")
    ASSET_HASH = os.environ.get("ASSET_HASH", "md5")
    ASSET_HASH_LENGTH = int(os.environ.get("ASSET_HASH_LENGTH", 16))
    ASSET_MANIFEST = os.environ.get("ASSET_MANIFEST", ".asset-manifest")
    ASSET_SERVE_PREFIX = os.environ.get("ASSET_SERVE_PREFIX", "/static")
    ASSET_URL_PREFIX = os.environ.get("ASSET_URL_PREFIX", "")
    ASSET_MAX_AGE = int(os.environ.get("ASSET_MAX_AGE", 28 * 24 * 60 * 60))
    ASSET_COMPRESS = _env_bool("ASSET_COMPRESS")
    ASSET_HOT_RELOAD = _env_bool("ASSET_HOT_RELOAD")
    ASSET_WRAP_JAVASCRIPT = _env_bool("ASSET_WRAP_JAVASCRIPT")
    ASSET_SEPARATE_BUNDLES = _env_bool("ASSET_SEPARATE_BUNDLES")
    ASSET_HTML5 = _env_bool("ASSET_HTML5", True)
    ASSET_BUILD_WORKERS = int(os.environ.get("ASSET_BUILD_WORKERS", 4))

    # Rate limiting
    RATELIMIT_DEFAULT = "60/minute"
    RATELIMIT_STORAGE_URI = "memory://"
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_ADMIN = "5/minute"

    # Logging
    LOG_DIR = os.path.join(BASE_DIR, "logs")
    LOG_LEVEL = "INFO"


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = "DEBUG"
    ASSET_HOT_RELOAD = _env_bool("ASSET_HOT_RELOAD", True)
    ASSET_SEPARATE_BUNDLES = _env_bool("ASSET_SEPARATE_BUNDLES", True)


class ProductionConfig(Config):
    DEBUG = False
    RATELIMIT_DEFAULT = "30/minute"
    ASSET_COMPRESS = _env_bool("ASSET_COMPRESS", True)
    ASSET_WRAP_JAVASCRIPT = _env_bool("ASSET_WRAP_JAVASCRIPT", True)


class TestingConfig(Config):
    TESTING = True
    RATELIMIT_ENABLED = False
    ASSET_HOT_RELOAD = False


config_map = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
