"""
bbcode_editing.py

Text-area helpers for the editor toolbar: wrap the current selection in
a BBCode tag pair and report where the cursor should go afterwards.
"""
from __future__ import annotations

from dataclasses import dataclass

from bbcode_vocabulary import LIST_ITEM_MARKER, tag_spec

DEFAULT_LINK_LABEL = "Link"
DEFAULT_LIST_ITEM = "Item"


@dataclass(frozen=True)
class EditResult:
    text: str
    cursor: int


def build_snippet(tag: str, selected: str, value: str = "") -> str:
    """
    Build the markup inserted for `tag` around `selected`.

    - url       -> [url=VALUE]selection or "Link"[/url]
    - list      -> [list]\\n[*]selection or "Item"\\n[/list]
    - img / pdf -> [tag]VALUE[/tag] (the selection is replaced)
    - others    -> [tag]selection or VALUE[/tag]
    """
    spec = tag_spec(tag)
    if spec is None:
        raise ValueError(f"Unknown BBCode tag: {tag!r}")

    name = spec.name
    if spec.kind == "link":
        if not value.strip():
            raise ValueError("[url] needs a target address")
        return f"[url={value.strip()}]{selected or DEFAULT_LINK_LABEL}[/url]"
    if spec.kind == "list":
        return f"[list]\n{LIST_ITEM_MARKER}{selected or DEFAULT_LIST_ITEM}\n[/list]"
    if spec.kind == "media":
        if not value.strip():
            raise ValueError(f"[{name}] needs a source address")
        return f"[{name}]{value.strip()}[/{name}]"
    return f"[{name}]{selected or value}[/{name}]"


def insert_tag(text: str, start: int, end: int, tag: str, value: str = "") -> EditResult:
    """
    Wrap text[start:end] in `tag` and return the new text plus the cursor
    position right after the inserted markup.

    Offsets outside the text are clamped; a reversed range is treated as
    a caret at `start`.
    """
    start = max(0, min(start, len(text)))
    end = max(start, min(end, len(text)))

    selected = text[start:end]
    snippet = build_snippet(tag, selected, value)
    new_text = text[:start] + snippet + text[end:]
    return EditResult(text=new_text, cursor=start + len(snippet))
