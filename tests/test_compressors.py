from assets.compressors import minify_css, minify_js


def test_js_keeps_line_breaks_without_semicolons():
    assert minify_js("var a = 1\nvar b = 2\n") == "var a=1\nvar b=2"


def test_js_leaves_string_literals_alone():
    assert minify_js('var s = "a  b";  // note\n') == 'var s="a  b";'


def test_js_keeps_unary_plus_apart():
    assert minify_js("a + +b") == "a+ +b"


def test_css_drops_whitespace_and_last_semicolon():
    assert minify_css("body { color: red; }\n") == "body{color:red}"
    assert minify_css("/* x */\na { content: \"a  b\"; }") == 'a{content:"a  b"}'
