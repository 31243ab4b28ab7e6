#!/usr/bin/env python3
from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from bbcode_vocabulary import (
    LIST_ITEM_MARKER,
    ORDERED_LIST_VALUE,
    VOCABULARY,
    TagSpec,
    tag_spec,
)

logger = logging.getLogger(__name__)

# A tag parameter: anything up to "]" on one line, plus balanced [...]
# groups so bracketed hosts like http://[::1]/ stay in one value.
TAG_VALUE_PATTERN = r"(?:[^\[\]\n]|\[[^\[\]\n]*\])+"

# [name], [/name], [name=value] and the [*] list item marker.
TAG_RE = re.compile(r"\[(/?)([A-Za-z]+|\*)(?:=(" + TAG_VALUE_PATTERN + r"))?\]")

# Closing tags of the raw-content tags ([img], [pdf]).
MEDIA_CLOSE_RES = {
    spec.name: re.compile(rf"\[/{spec.name}\]", re.IGNORECASE)
    for spec in VOCABULARY.values()
    if spec.raw_content
}


@dataclass
class Token:
    """
    A lexical unit of BBCode markup.

    type:
      - "text"   -> literal text (unknown or invalid tags included)
      - "open"   -> recognized opening tag, `value` holds the =parameter
      - "close"  -> recognized closing tag
      - "item"   -> the [*] list item marker
      - "media"  -> a complete [img]SRC[/img] / [pdf]SRC[/pdf], `value` is SRC

    `text` always keeps the original source so any token can fall back
    to literal text.
    """
    type: str
    text: str
    name: str = ""
    value: Optional[str] = None


@dataclass
class Text:
    text: str


@dataclass
class Emphasis:
    """[b], [i] or [u] around inline content."""
    name: str
    children: list[Node] = field(default_factory=list)


@dataclass
class Align:
    direction: str
    children: list[Node] = field(default_factory=list)


@dataclass
class Link:
    href: str
    children: list[Node] = field(default_factory=list)


@dataclass
class Image:
    src: str


@dataclass
class Attachment:
    src: str


@dataclass
class ListBlock:
    ordered: bool
    items: list[list[Node]] = field(default_factory=list)


Node = Union[Text, Emphasis, Align, Link, Image, Attachment, ListBlock]


@dataclass
class _ItemMarker:
    text: str


Child = Union[Node, _ItemMarker]


@dataclass
class _Frame:
    token: Token
    children: list[Child] = field(default_factory=list)


def _is_valid_open(spec: TagSpec, value: Optional[str]) -> bool:
    if spec.kind == "link":
        return bool(value and value.strip())
    if spec.kind == "list":
        return value is None or value.strip() == ORDERED_LIST_VALUE
    return value is None


def _match_media(markup: str, match: re.Match[str], name: str) -> Optional[re.Match[str]]:
    """Find the closing tag of a raw-content tag on the same line."""
    line_end = markup.find("\n", match.end())
    if line_end == -1:
        line_end = len(markup)
    return MEDIA_CLOSE_RES[name].search(markup, match.end(), line_end)


def tokenize_bbcode(markup: str) -> list[Token]:
    """
    Split markup into tokens.

    Only vocabulary tags with a valid shape become tag tokens; everything
    else (unknown names, [b=x], [url] without a target, [list=a], ...)
    is merged into the surrounding text.
    """
    tokens: list[Token] = []
    buffer: list[str] = []

    def flush_text() -> None:
        if buffer:
            tokens.append(Token("text", "".join(buffer)))
            buffer.clear()

    pos = 0
    while pos < len(markup):
        match = TAG_RE.search(markup, pos)
        if match is None:
            buffer.append(markup[pos:])
            break

        if match.start() > pos:
            buffer.append(markup[pos : match.start()])
        pos = match.end()

        raw = match.group(0)
        is_closing = match.group(1) == "/"
        name = match.group(2).lower()
        value = match.group(3)

        if raw == LIST_ITEM_MARKER:
            flush_text()
            tokens.append(Token("item", raw, name="*"))
            continue

        spec = tag_spec(name)
        if spec is None or name == "*":
            buffer.append(raw)
            continue

        if is_closing:
            if value is not None:
                buffer.append(raw)
                continue
            flush_text()
            tokens.append(Token("close", raw, name=spec.name))
            continue

        if not _is_valid_open(spec, value):
            buffer.append(raw)
            continue

        if spec.raw_content:
            closing = _match_media(markup, match, spec.name)
            if closing is None:
                logger.debug("unclosed [%s] at %d kept as text", spec.name, match.start())
                buffer.append(raw)
                continue
            flush_text()
            tokens.append(
                Token(
                    "media",
                    markup[match.start() : closing.end()],
                    name=spec.name,
                    value=markup[match.end() : closing.start()].strip(),
                )
            )
            pos = closing.end()
            continue

        flush_text()
        tokens.append(Token("open", raw, name=spec.name, value=value.strip() if value else None))

    flush_text()
    return tokens



def _merge_text(children: list[Child]) -> list[Node]:
    """Join adjacent text runs; leftover item markers count as text."""
    out: list[Node] = []
    run: list[str] = []

    def flush_run() -> None:
        text = "".join(run)
        if text:
            out.append(Text(text))
        run.clear()

    for child in children:
        if isinstance(child, (Text, _ItemMarker)):
            run.append(child.text)
        else:
            flush_run()
            out.append(child)
    flush_run()
    return out


def _unwind(frames: list[_Frame]) -> list[Child]:
    """Flatten unclosed frames (outermost first) back into literal text and nodes."""
    out: list[Child] = []
    for frame in frames:
        logger.debug("unmatched [%s] kept as text", frame.token.name)
        out.append(Text(frame.token.text))
        for child in frame.children:
            out.append(Text(child.text) if isinstance(child, _ItemMarker) else child)
    return out


def _trim_nodes(nodes: list[Node]) -> list[Node]:
    """Strip whitespace at both edges of a node run, dropping emptied text."""
    nodes = list(nodes)
    while nodes and isinstance(nodes[0], Text):
        stripped = nodes[0].text.lstrip()
        if stripped:
            nodes[0] = Text(stripped)
            break
        nodes.pop(0)
    while nodes and isinstance(nodes[-1], Text):
        stripped = nodes[-1].text.rstrip()
        if stripped:
            nodes[-1] = Text(stripped)
            break
        nodes.pop()
    return nodes


def _split_list_items(children: list[Child]) -> list[list[Node]]:
    fragments: list[list[Child]] = [[]]
    for child in children:
        if isinstance(child, _ItemMarker):
            fragments.append([])
        else:
            fragments[-1].append(child)

    items: list[list[Node]] = []
    for fragment in fragments:
        trimmed = _trim_nodes(_merge_text(fragment))
        if trimmed:
            items.append(trimmed)
    return items


def _build(token: Token, children: list[Child]) -> Node:
    spec = VOCABULARY[token.name]
    if spec.kind == "list":
        return ListBlock(ordered=token.value is not None, items=_split_list_items(children))

    # markers only survive directly inside a list frame
    merged = _merge_text(children)
    if spec.kind == "block":
        return Align(direction=spec.name, children=merged)
    if spec.kind == "link":
        return Link(href=token.value or "", children=merged)
    return Emphasis(name=spec.name, children=merged)


def parse_bbcode(markup: str, *, allowed: Optional[set[str] | frozenset[str]] = None) -> list[Node]:
    """
    Parse BBCode markup into a list of top-level nodes.

    - Properly nested tags of any kind nest in the tree.
    - A close tag closes the innermost open tag of the same name; tags
      opened after it and never closed fall back to literal text.
    - Close tags without an open counterpart and tags left open at the
      end of input are literal text.
    - `allowed` restricts the recognized tag names; others stay literal.

    Runs in time linear in the input and never raises.
    """
    if not markup:
        return []

    markup = markup.replace("\r\n", "\n").replace("\r", "\n")
    root: list[Child] = []
    stack: list[_Frame] = []
    # open frames per tag name, so stray close tags skip the stack scan
    open_counts: Counter[str] = Counter()

    def current() -> list[Child]:
        return stack[-1].children if stack else root

    for token in tokenize_bbcode(markup):
        if token.type != "text" and allowed is not None and token.name not in allowed and token.name != "*":
            current().append(Text(token.text))
            continue

        if token.type == "text":
            current().append(Text(token.text))

        elif token.type == "media":
            node: Node = Image(token.value or "") if token.name == "img" else Attachment(token.value or "")
            current().append(node)

        elif token.type == "item":
            if stack and stack[-1].token.name == "list":
                stack[-1].children.append(_ItemMarker(token.text))
            else:
                current().append(Text(token.text))

        elif token.type == "open":
            stack.append(_Frame(token))
            open_counts[token.name] += 1

        elif token.type == "close":
            if not open_counts[token.name]:
                logger.debug("stray [/%s] kept as text", token.name)
                current().append(Text(token.text))
                continue

            depth = len(stack) - 1
            while stack[depth].token.name != token.name:
                depth -= 1

            unclosed = stack[depth + 1 :]
            closed = stack[depth]
            del stack[depth:]
            for frame in unclosed:
                open_counts[frame.token.name] -= 1
            open_counts[token.name] -= 1

            closed.children.extend(_unwind(unclosed))
            current().append(_build(closed.token, closed.children))

    root.extend(_unwind(stack))
    return _merge_text(root)


def describe_tree(nodes: list[Node], depth: int = 0) -> Iterator[str]:
    """Yield one indented line per node (used by the CLI --events flag)."""
    # entries are (node or "*" item line, depth)
    pending: list[tuple[Union[Node, str], int]] = [(node, depth) for node in reversed(nodes)]
    while pending:
        node, level = pending.pop()
        pad = "  " * level
        if isinstance(node, str):
            yield f"{pad}{node}"
        elif isinstance(node, Text):
            yield f"{pad}text {node.text!r}"
        elif isinstance(node, Emphasis):
            yield f"{pad}{node.name}"
            pending.extend((child, level + 1) for child in reversed(node.children))
        elif isinstance(node, Align):
            yield f"{pad}align {node.direction}"
            pending.extend((child, level + 1) for child in reversed(node.children))
        elif isinstance(node, Link):
            yield f"{pad}url {node.href!r}"
            pending.extend((child, level + 1) for child in reversed(node.children))
        elif isinstance(node, Image):
            yield f"{pad}img {node.src!r}"
        elif isinstance(node, Attachment):
            yield f"{pad}pdf {node.src!r}"
        elif isinstance(node, ListBlock):
            yield f"{pad}list {'ordered' if node.ordered else 'unordered'}"
            lines: list[tuple[Union[Node, str], int]] = []
            for item in node.items:
                lines.append(("*", level + 1))
                lines.extend((child, level + 2) for child in item)
            pending.extend(reversed(lines))
