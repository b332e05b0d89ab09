SOURCES = {
    "jquery.js": "window.jQuery = {};\n",
    "html5shiv.js": "window.shiv = {};\n",
    "respond.js": "window.respond = {};\n",
    "js/app.js": "var app = {};\n",
    "js/util.js": "var util = {};\n",
    "css/site.css": "body { color: red; }\n",
    "css/theme.less": "@color: blue;\nh1 { color: @color; }\n",
}

STALE_BUNDLE = "js/asset-0123456789abcdef-all.js"

JQUERY_HASH = "9e973e7c932c7f421beab8c3ef2d4c06"


def write_tree(root, files):
    for name, content in files.items():
        path = root.joinpath(*name.split("/"))
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8", newline="\n")
    return root


def fake_less(path, contents, options):
    """Replaces the single ``@color`` variable declared on the first line."""
    declaration, body = contents.split("\n", 1)
    name, value = declaration.rstrip(";").split(": ")
    return body.replace(name, value)
