"""
tags.py — HTML tag formats for linked assets, keyed by extension.

A tag format is called as ``fmt(url, settings, attributes)`` and returns
markup. ``settings`` is the manager's option dict (only ``html5`` is read
here); ``attributes`` is a fresh dict the format may add defaults to.
"""
from markupsafe import escape

# Attribute values that are entity-encoded before output.
ENCODED_ATTRIBUTES = {"alt", "title"}

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".gif", ".png", ".bmp", ".svg")


def stringify(attributes):
    """Render attributes as ` key="value"` pairs, sorted by key."""
    parts = []
    for key in sorted(attributes):
        value = attributes[key]
        if key in ENCODED_ATTRIBUTES:
            value = escape(str(value))
        parts.append(f' {key}="{value}"')
    return "".join(parts)


def script(url, settings, attributes):
    if not settings.get("html5") and "type" not in attributes:
        attributes["type"] = "text/javascript"
    return f'<script src="{url}"{stringify(attributes)}></script>'


def stylesheet(url, settings, attributes):
    attributes.setdefault("rel", "stylesheet")
    return f'<link href="{url}"{stringify(attributes)} />'


def icon(url, settings, attributes):
    attributes.setdefault("rel", "shortcut icon")
    return f'<link href="{url}"{stringify(attributes)} />'


def image(url, settings, attributes):
    return f'<img src="{url}"{stringify(attributes)} />'


DEFAULT_TAGS = {
    ".js": script,
    ".css": stylesheet,
    ".ico": icon,
}
DEFAULT_TAGS.update({ext: image for ext in IMAGE_EXTENSIONS})
