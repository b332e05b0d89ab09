"""
compressors.py — Default CSS/JS minifiers backed by rcssmin and rjsmin.

Register another compressor for ``.js`` or ``.css`` to replace them.
"""
import rcssmin
import rjsmin


def minify_css(css_text, options=None):
    """Strip comments and whitespace from a stylesheet."""
    return rcssmin.cssmin(css_text)


def minify_js(js_text, options=None):
    """
    Strip comments and whitespace from a script.

    Line breaks that automatic semicolon insertion depends on are kept, as
    are string and regex literals.
    """
    return rjsmin.jsmin(js_text)


DEFAULT_COMPRESSORS = {
    ".css": minify_css,
    ".js": minify_js,
}
