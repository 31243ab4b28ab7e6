#!/usr/bin/env python3
"""
bbcode_to_html.py

BBCode → HTML encoder built on the shared pipeline:

- bbcode_vocabulary for tag names and their HTML element names
- bbcode_parser.parse_bbcode() for the node tree
- config_loader for presentation (inline styles, labels)

Text is emitted as-is: plain text without tags comes back unchanged
except that newlines become line breaks. Only attribute values are
escaped. This is not a sanitizer; the output is meant for a trusted
rendering context.
"""
from __future__ import annotations

import argparse
import html
import sys
from pathlib import Path
from typing import Iterator, Union

from bbcode_parser import (
    Align,
    Attachment,
    Emphasis,
    Image,
    Link,
    ListBlock,
    Node,
    Text,
    describe_tree,
    parse_bbcode,
)
from bbcode_vocabulary import (
    ATTACHMENT_MARKER_ATTR,
    ATTACHMENT_SOURCE_ATTR,
    LIST_ITEM_HTML_TAG,
    ORDERED_LIST_HTML_TAG,
    PREVIEW_TAGS,
    VOCABULARY,
)
from config_loader import DEFAULT_CONFIG, BBCodeConfig, load_config
from helper import print_event_gray, safe_input_path


def escape_attr(value: str) -> str:
    """Escape a value for use inside a double-quoted HTML attribute."""
    return html.escape(value, quote=True)


def build_attributes(pairs: list[tuple[str, str]]) -> str:
    """Serialize (name, value) pairs, skipping empty values."""
    attrs = [f'{name}="{escape_attr(value)}"' for name, value in pairs if value]
    return (" " + " ".join(attrs)) if attrs else ""


def render_nodes(
    nodes: list[Node],
    cfg: BBCodeConfig = DEFAULT_CONFIG,
    *,
    line_breaks: bool = True,
) -> str:
    """
    Render parsed nodes to HTML.

    node types:
      - Text        -> raw text, "\\n" -> cfg.line_break (when line_breaks)
      - Emphasis    -> <strong> / <em> / <u>
      - Align       -> <div style="text-align: ...">
      - Link        -> <a href target rel style>
      - Image       -> <img src style />
      - Attachment  -> placeholder <div data-bbcode="pdf" data-src=...>
      - ListBlock   -> <ul> / <ol> with <li> items

    The tree is walked with an explicit stack, so nesting depth is not
    limited by the interpreter's recursion limit.
    """
    out: list[str] = []
    # (remaining children, closing markup emitted once they are done);
    # plain strings among the children are emitted verbatim
    stack: list[tuple[Iterator[Union[Node, str]], str]] = [(iter(nodes), "")]

    while stack:
        children, closing = stack[-1]
        node = next(children, None)
        if node is None:
            stack.pop()
            out.append(closing)
            continue

        if isinstance(node, str):
            out.append(node)

        elif isinstance(node, Text):
            text = node.text
            if line_breaks:
                text = text.replace("\n", cfg.line_break)
            out.append(text)

        elif isinstance(node, Emphasis):
            tag = VOCABULARY[node.name].html_tag
            out.append(f"<{tag}>")
            stack.append((iter(node.children), f"</{tag}>"))

        elif isinstance(node, Align):
            spec = VOCABULARY[node.direction]
            out.append(f'<{spec.html_tag} style="{spec.style_property}: {node.direction}">')
            stack.append((iter(node.children), f"</{spec.html_tag}>"))

        elif isinstance(node, Link):
            tag = VOCABULARY["url"].html_tag
            attrs = build_attributes([
                ("href", node.href),
                ("target", cfg.link_target),
                ("rel", cfg.link_rel),
                ("style", cfg.link_style),
            ])
            out.append(f"<{tag}{attrs}>")
            stack.append((iter(node.children), f"</{tag}>"))

        elif isinstance(node, Image):
            tag = VOCABULARY["img"].html_tag
            attrs = build_attributes([("src", node.src), ("style", cfg.image_style)])
            out.append(f"<{tag}{attrs} />")

        elif isinstance(node, Attachment):
            tag = VOCABULARY["pdf"].html_tag
            attrs = build_attributes([
                (ATTACHMENT_MARKER_ATTR, "pdf"),
                (ATTACHMENT_SOURCE_ATTR, node.src),
                ("style", cfg.pdf_style),
            ])
            out.append(f"<{tag}{attrs}>{html.escape(cfg.pdf_label, quote=False)}</{tag}>")

        elif isinstance(node, ListBlock):
            if node.ordered:
                tag, style = ORDERED_LIST_HTML_TAG, cfg.ordered_list_style
            else:
                tag, style = VOCABULARY["list"].html_tag, cfg.unordered_list_style
            parts: list[Union[Node, str]] = []
            for item in node.items:
                parts.append(f"<{LIST_ITEM_HTML_TAG}>")
                parts.extend(item)
                parts.append(f"</{LIST_ITEM_HTML_TAG}>")
            out.append(f"<{tag}{build_attributes([('style', style)])}>")
            stack.append((iter(parts), f"</{tag}>"))

    return "".join(out)


def encode(markup: str, cfg: BBCodeConfig = DEFAULT_CONFIG) -> str:
    """
    Convert BBCode markup to HTML.

    Never fails: unknown or unmatched tags are kept as literal text.
    """
    if not markup:
        return ""
    return render_nodes(parse_bbcode(markup), cfg)


def encode_inline(markup: str, cfg: BBCodeConfig = DEFAULT_CONFIG) -> str:
    """
    Convert only inline BBCode ([b], [i], [u], [url]) for short previews.

    Block tags stay literal and newlines are left alone.
    """
    if not markup:
        return ""
    return render_nodes(parse_bbcode(markup, allowed=PREVIEW_TAGS), cfg, line_breaks=False)


def open_html_document(title: str) -> str:
    """Return the HTML prolog."""
    return (
        "<!doctype html>\n"
        "<html lang=\"en\">\n"
        "<head>\n"
        "  <meta charset=\"utf-8\" />\n"
        f"  <title>{html.escape(title)}</title>\n"
        "  <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />\n"
        "</head>\n"
        "<body>\n"
    )


def close_html_document() -> str:
    """Return the HTML epilog."""
    return "</body>\n</html>\n"


def render_bbcode_document(
    markup: str,
    cfg: BBCodeConfig = DEFAULT_CONFIG,
    *,
    title: str = "BBCode Export",
) -> str:
    """Render markup into a complete HTML document."""
    return open_html_document(title) + encode(markup, cfg) + "\n" + close_html_document()


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bbcode-to-html",
        description="Convert a BBCode file to HTML.",
    )
    parser.add_argument("input", help="Input BBCode file")
    parser.add_argument("-o", "--output", default=None, help="Output HTML file (default: stdout)")
    parser.add_argument("-c", "--config", default="config.yml", help="Config YAML file (default: config.yml)")
    parser.add_argument("--body-only", action="store_true", help="Emit the HTML fragment without a document wrapper")
    parser.add_argument("--inline", action="store_true", help="Only convert inline tags (implies --body-only)")
    parser.add_argument("--events", action="store_true", help="Print the parse tree before converting")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    try:
        cfg = load_config(Path(args.config))
    except Exception as e:
        print(f"[bbcode_to_html] Failed to load config: {e}", file=sys.stderr)
        return 2

    try:
        input_path = safe_input_path(args.input)
    except Exception as e:
        print(f"[bbcode_to_html] Invalid input path: {e}", file=sys.stderr)
        return 2

    try:
        markup = input_path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"[bbcode_to_html] Error while reading: {e}", file=sys.stderr)
        return 1

    if args.events:
        for line in describe_tree(parse_bbcode(markup)):
            print_event_gray(line)

    if args.inline:
        result = encode_inline(markup, cfg)
    elif args.body_only:
        result = encode(markup, cfg)
    else:
        result = render_bbcode_document(markup, cfg, title=input_path.stem)

    if args.output is None:
        print(result)
        return 0

    try:
        Path(args.output).write_text(result, encoding="utf-8")
    except OSError as e:
        print(f"[bbcode_to_html] Error while writing: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
