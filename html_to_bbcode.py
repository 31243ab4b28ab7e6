#!/usr/bin/env python3
"""
html_to_bbcode.py

HTML → BBCode decoder for content coming back from a rich-text editing
surface (contentEditable and the like).

The HTML is parsed with BeautifulSoup and walked post-order: children are
decoded first, then the element decides how to wrap their text. Elements
the vocabulary does not know about degrade to their children's text, so
styling may be lost but text never is.
"""
from __future__ import annotations

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import Optional, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.builder import ParserRejectedMarkup
from bs4.element import PageElement, PreformattedString

from bbcode_parser import TAG_VALUE_PATTERN
from bbcode_vocabulary import (
    ALIGN_TAGS,
    ATTACHMENT_MARKER_ATTR,
    ATTACHMENT_SOURCE_ATTR,
    BLOCK_HTML_TAGS,
    EMPTY_STRIPPABLE_TAGS,
    LINE_BREAK_HTML_TAG,
    LIST_ITEM_HTML_TAG,
    ORDERED_LIST_HTML_TAG,
    ORDERED_LIST_VALUE,
    PASSTHROUGH_HTML_TAGS,
    VOCABULARY,
    TagSpec,
    spec_for_html_tag,
)
from config_loader import DEFAULT_CONFIG, BBCodeConfig, load_config
from helper import safe_input_path

logger = logging.getLogger(__name__)

EMPTY_PAIR_RE = re.compile(
    r"\[(" + "|".join(sorted(EMPTY_STRIPPABLE_TAGS)) + r")\]\s*\[/\1\]",
    re.IGNORECASE,
)
EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")
LEADING_NUMBER_RE = re.compile(r"^\s*([+-]?\d+)")
TAG_VALUE_RE = re.compile(TAG_VALUE_PATTERN)

BOLD_WEIGHT_THRESHOLD = 600


def parse_inline_style(style: Optional[str]) -> dict[str, str]:
    """
    Parse an inline CSS declaration list into a dict.

    Example:
        'font-weight: bold; Text-Align:center'
    ->  {'font-weight': 'bold', 'text-align': 'center'}

    Property names and values are lowercased; malformed declarations
    are skipped.
    """
    result: dict[str, str] = {}
    if not style:
        return result

    for declaration in style.split(";"):
        prop, sep, value = declaration.partition(":")
        if not sep:
            continue
        prop = prop.strip().lower()
        value = value.replace("!important", "").strip().lower()
        if prop and value:
            result[prop] = value
    return result


def _font_weight_is_bold(value: str) -> bool:
    if value == "bold":
        return True
    match = LEADING_NUMBER_RE.match(value)
    return bool(match) and int(match.group(1)) >= BOLD_WEIGHT_THRESHOLD


def _style_matches(spec: TagSpec, style: dict[str, str]) -> bool:
    """True if the inline style carries the same meaning as `spec`."""
    if spec.style_property is None:
        return False

    values = [style.get(spec.style_property, "")]
    if spec.style_property == "text-decoration":
        values.append(style.get("text-decoration-line", ""))

    for value in values:
        if not value:
            continue
        if spec.style_property == "font-weight" and _font_weight_is_bold(value):
            return True
        if any(word in spec.style_values for word in value.split()):
            return True
    return False


def emphasis_for(tag: str, style: dict[str, str]) -> Optional[str]:
    """
    Return the emphasis tag name ("b", "i", "u") for an element, or None.

    Precedence: bold, italic, underline. Element name or inline style both
    count, and only the first match wraps the content.
    """
    by_name = spec_for_html_tag(tag)
    for name in ("b", "i", "u"):
        spec = VOCABULARY[name]
        if by_name is spec or _style_matches(spec, style):
            return name
    return None


def markup_safe_href(href: str) -> str:
    """
    Make an href usable as a [url=...] parameter.

    Balanced brackets (an IPv6 host like http://[::1]/) are kept; any other
    "[" or "]" would end the tag early and is percent-encoded. Newlines
    are dropped.
    """
    href = href.replace("\r", "").replace("\n", "")
    if TAG_VALUE_RE.fullmatch(href):
        return href
    return href.replace("[", "%5B").replace("]", "%5D")


def _decode_element(el: Tag, content: str) -> str:
    tag = (el.name or "").lower()
    style = parse_inline_style(el.get("style"))

    # Links, images and attachment placeholders carry their own meaning;
    # their presentation styles must not turn them into emphasis.
    if tag == VOCABULARY["url"].html_tag:
        href = markup_safe_href(el.get("href") or "")
        if not href.strip():
            return content
        return f"[url={href}]{content.strip()}[/url]"

    if tag == VOCABULARY["img"].html_tag:
        src = el.get("src")
        return f"[img]{src}[/img]" if src else ""

    # the placeholder's text is the configured label, never user content
    if el.get(ATTACHMENT_MARKER_ATTR) == "pdf":
        src = el.get(ATTACHMENT_SOURCE_ATTR)
        return f"[pdf]{src}[/pdf]" if src else ""

    emphasis = emphasis_for(tag, style)
    if emphasis is not None:
        return f"[{emphasis}]{content}[/{emphasis}]"

    if tag in PASSTHROUGH_HTML_TAGS:
        return content

    list_spec = VOCABULARY["list"]
    if tag == list_spec.html_tag:
        return f"[list]\n{content.strip()}\n[/list]"
    if tag == ORDERED_LIST_HTML_TAG:
        return f"[list={ORDERED_LIST_VALUE}]\n{content.strip()}\n[/list]"

    if tag == LIST_ITEM_HTML_TAG:
        return f"[*] {content.strip()}\n"

    if tag in BLOCK_HTML_TAGS:
        if content == "\n":
            return "\n"
        align = style.get("text-align", "")
        if align in ALIGN_TAGS:
            return f"[{align}]{content}[/{align}]\n"
        return content if content.endswith("\n") else content + "\n"

    if tag == LINE_BREAK_HTML_TAG:
        return "\n"

    return content


def decode_node(node: Union[Tag, NavigableString]) -> str:
    """
    Decode one node of the element tree (post-order).

    Text nodes are returned verbatim; comments, doctypes and other
    non-text strings produce nothing. The walk keeps its own stack, so
    deeply nested HTML does not hit the recursion limit.
    """
    # decoded text per open element; the bottom entry collects the result
    results: list[list[str]] = [[]]
    # (node, True once its children have been decoded)
    pending: list[tuple[PageElement, bool]] = [(node, False)]

    while pending:
        current, children_done = pending.pop()

        if children_done:
            content = "".join(results.pop())
            if current.name == BeautifulSoup.ROOT_TAG_NAME:
                results[-1].append(content)
            else:
                results[-1].append(_decode_element(current, content))
            continue

        if isinstance(current, PreformattedString):
            continue
        if isinstance(current, NavigableString):
            results[-1].append(str(current))
            continue
        if not isinstance(current, Tag):
            continue

        results.append([])
        pending.append((current, True))
        pending.extend((child, False) for child in reversed(current.contents))

    return "".join(results[0])


def cleanup_bbcode(markup: str) -> str:
    """
    Normalize decoded markup:

    - non-breaking spaces (entity or character) -> spaces
    - drop tag pairs wrapping only whitespace (repeated until stable)
    - collapse 3+ newlines to exactly two
    - trim
    """
    markup = markup.replace("&nbsp;", " ").replace("\xa0", " ")
    count = 1
    while count:
        markup, count = EMPTY_PAIR_RE.subn("", markup)
    markup = EXCESS_NEWLINES_RE.sub("\n\n", markup)
    return markup.strip()


def decode(html: Union[str, Tag, None], cfg: BBCodeConfig = DEFAULT_CONFIG) -> str:
    """
    Convert HTML (a string, or an already parsed BeautifulSoup tree) to
    BBCode markup.

    Never fails: markup the parser rejects outright is returned as
    cleaned-up text.
    """
    if html is None:
        return ""

    if isinstance(html, Tag):
        tree = html
    else:
        if not html:
            return ""
        try:
            tree = BeautifulSoup(html, cfg.html_parser)
        except ParserRejectedMarkup as e:
            logger.warning("HTML parser rejected markup, keeping raw text: %s", e)
            return cleanup_bbcode(html)

    return cleanup_bbcode(decode_node(tree))


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="html-to-bbcode",
        description="Convert an HTML fragment back to BBCode.",
    )
    parser.add_argument("input", help="Input HTML file")
    parser.add_argument("-o", "--output", default=None, help="Output BBCode file (default: stdout)")
    parser.add_argument("-c", "--config", default="config.yml", help="Config YAML file (default: config.yml)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    try:
        cfg = load_config(Path(args.config))
    except Exception as e:
        print(f"[html_to_bbcode] Failed to load config: {e}", file=sys.stderr)
        return 2

    try:
        input_path = safe_input_path(args.input)
    except Exception as e:
        print(f"[html_to_bbcode] Invalid input path: {e}", file=sys.stderr)
        return 2

    try:
        source = input_path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"[html_to_bbcode] Error while reading: {e}", file=sys.stderr)
        return 1

    result = decode(source, cfg)

    if args.output is None:
        print(result)
        return 0

    try:
        Path(args.output).write_text(result + "\n", encoding="utf-8")
    except OSError as e:
        print(f"[html_to_bbcode] Error while writing: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
