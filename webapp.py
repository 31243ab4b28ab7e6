#!/usr/bin/env python3
from __future__ import annotations
from pathlib import Path

from dataclasses import dataclass, field
from urllib.parse import quote
import html as _html

from flask import Flask, Response, abort, jsonify, render_template_string, request

from bbcode_to_html import encode
from config_loader import load_config
from html_to_bbcode import decode

BASE_DIR = Path.cwd()
CONFIG_PATH = BASE_DIR / "config.yml"
CONTENT_SUFFIX = ".bbcode"

app = Flask(__name__)
app.config["CONTENT_DIR"] = BASE_DIR / "content"
app.config["BBCODE"] = load_config(CONFIG_PATH)


LAYOUT_TEMPLATE = """
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{{ page_title }}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
</head>
<body class="with-sidebar">
  <div class="layout">
    <aside class="sidebar">
      <div class="sidebar-title"><a href="/">BBCode Preview</a></div>
      <div class="sidebar-section">
        <div class="sidebar-label">content/</div>
        {{ file_tree|safe }}
      </div>
    </aside>

    <main class="content">
    {{ content|safe }}
    </main>
  </div>
</body>
</html>
"""

@dataclass
class FileTreeNode:
    dirs: dict[str, "FileTreeNode"] = field(default_factory=dict)
    files: list[str] = field(default_factory=list)

def _insert_path(root: FileTreeNode, rel_parts: tuple[str, ...]) -> None:
    node = root
    for part in rel_parts[:-1]:
        node = node.dirs.setdefault(part, FileTreeNode())
    node.files.append(rel_parts[-1])

def build_content_tree(content_dir: Path) -> FileTreeNode:
    root = FileTreeNode()
    if not content_dir.exists():
        return root

    for p in sorted(content_dir.glob(f"**/*{CONTENT_SUFFIX}")):
        # skip hidden dirs
        if any(seg.startswith(".") for seg in p.relative_to(content_dir).parts):
            continue
        _insert_path(root, p.relative_to(content_dir).parts)
    return root

def render_tree_html(node: FileTreeNode, *, prefix: str, current_file: str) -> str:
    """
    prefix: path inside the content dir (e.g. '' or 'lessons')
    current_file: same form, for highlighting (e.g. 'lessons/intro.bbcode')
    """
    out: list[str] = []

    for dirname in sorted(node.dirs.keys()):
        child_prefix = f"{prefix}/{dirname}".strip("/")
        open_attr = " open" if current_file.startswith(child_prefix + "/") else ""
        out.append(f'<details class="fm-dir"{open_attr}>')
        out.append(f"<summary>{_html.escape(dirname)}/</summary>")
        out.append('<div class="fm-children">')
        out.append(render_tree_html(node.dirs[dirname], prefix=child_prefix, current_file=current_file))
        out.append("</div></details>")

    for fname in sorted(node.files):
        rel = f"{prefix}/{fname}".strip("/")
        href = "/view/" + quote(rel)
        active = " active" if rel == current_file else ""
        out.append(f'<div class="fm-file{active}"><a href="{href}">{_html.escape(fname)}</a></div>')

    return "".join(out)


def _content_dir() -> Path:
    return Path(app.config["CONTENT_DIR"]).resolve()


def _request_field(name: str) -> str:
    """Read a field from a JSON body or form data."""
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        value = payload.get(name, "")
    else:
        value = request.form.get(name, "")
    if not isinstance(value, str):
        abort(400)
    return value


@app.route("/")
def index():
    content_dir = _content_dir()
    file_tree_html = render_tree_html(build_content_tree(content_dir), prefix="", current_file="")

    content = """
      <h1>BBCode Preview</h1>
      <p>Pick a file on the left.</p>
    """

    return render_template_string(
        LAYOUT_TEMPLATE,
        page_title="BBCode Preview",
        file_tree=file_tree_html,
        content=content,
    )


@app.route("/view/<path:filename>")
def view_file(filename: str):
    content_dir = _content_dir()
    path = (content_dir / filename).resolve()
    try:
        path.relative_to(content_dir)
    except ValueError:
        abort(404)

    if not path.is_file() or path.suffix.lower() != CONTENT_SUFFIX:
        abort(404)

    body_html = encode(path.read_text(encoding="utf-8"), app.config["BBCODE"])

    current_rel = path.relative_to(content_dir).as_posix()
    file_tree_html = render_tree_html(build_content_tree(content_dir), prefix="", current_file=current_rel)

    return render_template_string(
        LAYOUT_TEMPLATE,
        page_title=current_rel,
        file_tree=file_tree_html,
        content=f'<article class="bbcode">{body_html}</article>',
    )


@app.route("/api/encode", methods=["POST"])
def api_encode():
    markup = _request_field("markup")
    return jsonify({"html": encode(markup, app.config["BBCODE"])})


@app.route("/api/decode", methods=["POST"])
def api_decode():
    source = _request_field("html")
    markup = decode(source, app.config["BBCODE"])
    return Response(markup, mimetype="text/plain")


if __name__ == "__main__":
    # Run in dev mode
    app.run(debug=False)
