"""
asset_schema.py — Marshmallow schemas for pipeline and per-asset options.
"""
import hashlib

from marshmallow import (
    RAISE, Schema, ValidationError, fields, validate, validates,
)


class StringList(fields.Field):
    """A single string or a list of strings, loaded as a list."""

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, str):
            return [value]
        if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
            return list(value)
        raise ValidationError("Must be a string or a list of strings.")


class ManagerOptionsSchema(Schema):
    class Meta:
        unknown = RAISE

    # The prefix is split on "-" when mapping a generated name back.
    asset_prefix = fields.String(
        load_default="asset",
        validate=validate.Regexp(r"^[A-Za-z0-9_.]+$", error="Invalid asset prefix"),
    )
    hash = fields.Raw(load_default="md5")
    hash_length = fields.Integer(load_default=16, validate=validate.Range(min=1))
    manifest = fields.String(load_default=".asset-manifest")
    serve_prefix = fields.String(load_default="/")
    url_prefix = fields.String(load_default="")
    output_dir = fields.String(load_default=None, allow_none=True)
    max_age = fields.Integer(load_default=28 * 24 * 60 * 60, validate=validate.Range(min=0))
    compress = fields.Boolean(load_default=False)
    hot_reload = fields.Boolean(load_default=False)
    wrap_javascript = fields.Boolean(load_default=False)
    javascript_iife = fields.String(load_default="!function(){%s}();")
    separate_bundles = fields.Boolean(load_default=False)
    html5 = fields.Boolean(load_default=False)
    view_helper = fields.String(load_default="asset")
    build_workers = fields.Integer(load_default=4, validate=validate.Range(min=1))

    @validates("hash")
    def validate_hash(self, value, **kwargs):
        if callable(value):
            return
        if not isinstance(value, str) or value.lower() not in hashlib.algorithms_available:
            raise ValidationError(f"Unsupported hash algorithm: {value}")

    @validates("javascript_iife")
    def validate_iife(self, value, **kwargs):
        if "%s" not in value:
            raise ValidationError("javascript_iife must contain %s")


class AssetOptionsSchema(Schema):
    class Meta:
        unknown = RAISE

    include = StringList(allow_none=True)
    dependencies = StringList(allow_none=True)
    attributes = fields.Dict(keys=fields.String(), allow_none=True)
    url_prefix = fields.String(allow_none=True)
    inline = fields.Boolean(allow_none=True)


class UrlQuerySchema(Schema):
    identifier = fields.String(required=True, validate=validate.Length(min=1))
    include = fields.List(fields.String(), load_default=None)


class BuildListQuerySchema(Schema):
    limit = fields.Integer(load_default=20, validate=validate.Range(min=1, max=200))
