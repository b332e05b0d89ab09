"""
inline.py — Formats for embedding compiled content directly in a page.

Called as ``fmt(content, settings, attributes)``.
"""
from assets.tags import stringify


def script(content, settings, attributes):
    if not settings.get("html5") and "type" not in attributes:
        attributes["type"] = "text/javascript"
    return f"<script{stringify(attributes)}>{content}</script>"


def style(content, settings, attributes):
    if not settings.get("html5") and "type" not in attributes:
        attributes["type"] = "text/css"
    return f"<style{stringify(attributes)}>{content}</style>"


DEFAULT_INLINE_FORMATS = {
    ".js": script,
    ".css": style,
}
