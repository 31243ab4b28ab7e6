"""
bbcode_vocabulary.py

The fixed BBCode tag table shared by the encoder (bbcode_to_html) and the
decoder (html_to_bbcode). Adding a tag means adding one TagSpec here.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class TagSpec:
    """
    One recognized BBCode tag.

    kind:
      - "inline"  -> emphasis wrapping inline content
      - "block"   -> alignment block
      - "link"    -> [url=HREF]...[/url]
      - "media"   -> [img]SRC[/img], [pdf]SRC[/pdf] (raw content, never parsed)
      - "list"    -> [list] / [list=1] with [*] items
    """
    name: str
    kind: str
    html_tag: str
    html_aliases: tuple[str, ...] = ()
    style_property: Optional[str] = None
    style_values: tuple[str, ...] = ()
    takes_value: bool = False
    raw_content: bool = False


LIST_ITEM_MARKER = "[*]"
ORDERED_LIST_VALUE = "1"
ATTACHMENT_MARKER_ATTR = "data-bbcode"
ATTACHMENT_SOURCE_ATTR = "data-src"

_SPECS = (
    TagSpec("b", "inline", "strong", html_aliases=("b",),
            style_property="font-weight", style_values=("bold",)),
    TagSpec("i", "inline", "em", html_aliases=("i",),
            style_property="font-style", style_values=("italic",)),
    TagSpec("u", "inline", "u", html_aliases=("ins",),
            style_property="text-decoration", style_values=("underline",)),
    TagSpec("left", "block", "div", html_aliases=("p",),
            style_property="text-align", style_values=("left",)),
    TagSpec("center", "block", "div", html_aliases=("p",),
            style_property="text-align", style_values=("center",)),
    TagSpec("right", "block", "div", html_aliases=("p",),
            style_property="text-align", style_values=("right",)),
    TagSpec("url", "link", "a", takes_value=True),
    TagSpec("img", "media", "img", raw_content=True),
    TagSpec("pdf", "media", "div", raw_content=True),
    TagSpec("list", "list", "ul", html_aliases=("ol",), takes_value=True),
)

VOCABULARY: Mapping[str, TagSpec] = MappingProxyType({s.name: s for s in _SPECS})

INLINE_TAGS = frozenset(s.name for s in _SPECS if s.kind == "inline")
ALIGN_TAGS = frozenset(s.name for s in _SPECS if s.kind == "block")
EMPTY_STRIPPABLE_TAGS = INLINE_TAGS | ALIGN_TAGS

# Minimal set used for message previews.
PREVIEW_TAGS = INLINE_TAGS | {"url"}

# Element names the decoder unwraps without emitting anything.
PASSTHROUGH_HTML_TAGS = frozenset({"font", "span"})
BLOCK_HTML_TAGS = frozenset({"div", "p"})
LIST_ITEM_HTML_TAG = "li"
ORDERED_LIST_HTML_TAG = "ol"
LINE_BREAK_HTML_TAG = "br"


def tag_spec(name: str) -> Optional[TagSpec]:
    """Return the TagSpec for a (case-insensitive) BBCode tag name."""
    return VOCABULARY.get(name.lower())


def spec_for_html_tag(html_tag: str) -> Optional[TagSpec]:
    """Return the emphasis TagSpec whose element name (or alias) is `html_tag`."""
    html_tag = html_tag.lower()
    for name in sorted(INLINE_TAGS, key=("b", "i", "u").index):
        spec = VOCABULARY[name]
        if html_tag == spec.html_tag or html_tag in spec.html_aliases:
            return spec
    return None
