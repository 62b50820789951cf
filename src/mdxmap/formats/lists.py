"""
List item and paragraph grammars.

Both produce `list` nodes: bullet and numbered items nest by indentation,
paragraphs are the fallback for any line no other grammar claims.
"""

from __future__ import annotations

import re

from ..dom import ListKind, ListPayload, Node, NodeType
from .base import (
    THEMATIC_BREAK_PATTERN,
    Block,
    BlockGrammar,
    EmitContext,
    SourceLine,
    escape_text_lines,
    registry,
    unescape,
)

ITEM_PATTERN = re.compile(r"^([-*+]|\d{1,9}[.)])(?:[ \t]+(.*))?$")
TASK_PATTERN = re.compile(r"^\[([ xX])\](?:[ \t]+(.*))?$")


def clean_text(text: str) -> str:
    return "\n".join(line.strip() for line in text.split("\n"))


def item_marker(payload: ListPayload, ordinal: int) -> str:
    if payload.kind is ListKind.ORDERED:
        return f"{max(1, ordinal)}."
    return "-"


class ListGrammar(BlockGrammar):
    """Bullet (`-`, `*`, `+`) and numbered (`1.`, `1)`) items, with optional task box."""

    nesting = "item"
    priority = 70
    payload_types = (ListPayload,)

    @property
    def name(self) -> str:
        return "list"

    @property
    def node_types(self) -> tuple[NodeType, ...]:
        return (NodeType.LIST,)

    def match(self, lines: list[SourceLine], index: int) -> bool:
        return bool(ITEM_PATTERN.match(lines[index].text))

    def consume(self, lines: list[SourceLine], start: int) -> Block:
        first = lines[start]
        m = ITEM_PATTERN.match(first.text)
        marker, rest = m.group(1), m.group(2) or ""
        kind = ListKind.BULLET if marker in "-*+" else ListKind.ORDERED

        checked = None
        task = TASK_PATTERN.match(rest)
        if task:
            checked = task.group(1) != " "
            rest = task.group(2) or ""

        text_lines = [unescape(rest)]
        i = start + 1
        # Continuation lines sit deeper than the marker and start no block
        while i < len(lines):
            line = lines[i]
            if line.indent <= first.indent or registry.starts_block(lines, i):
                break
            text_lines.append(unescape(line.text))
            i += 1

        payload = ListPayload(text="\n".join(text_lines), kind=kind, checked=checked)
        return Block(NodeType.LIST, payload, i)

    def emit(self, node: Node, context: EmitContext) -> list[str]:
        payload: ListPayload = node.payload
        if payload.kind is ListKind.PARAGRAPH:
            return registry.fallback.emit(node, context)

        marker = item_marker(payload, context.ordinal)
        lines = payload.text.split("\n")
        # A bare "[x]" at the start of an unchecked item would turn into a checkbox
        protect_task = payload.checked is None and bool(TASK_PATTERN.match(lines[0]))
        lines = escape_text_lines(lines, first_is_inline=True)
        if protect_task:
            lines[0] = "\\" + lines[0]

        head = marker
        if payload.checked is not None:
            head += " [x]" if payload.checked else " [ ]"
        first = f"{head} {lines[0]}" if lines[0] else head
        if THEMATIC_BREAK_PATTERN.match(first):
            # "- ---" would read as a separator
            first = f"{head} \\{lines[0]}"
        pad = " " * (len(marker) + 1)
        return [first] + [pad + line for line in lines[1:]]

    def child_indent(self, node: Node, context: EmitContext) -> int:
        return 0 if node.is_paragraph else 2

    def edit_text(self, payload: ListPayload, text: str) -> ListPayload:
        # Paragraphs carry no checkbox
        checked = None if payload.kind is ListKind.PARAGRAPH else payload.checked
        return ListPayload(text=clean_text(text), kind=payload.kind, checked=checked)

    def default_payload(self, node_type: NodeType, text: str) -> ListPayload:
        return ListPayload(text=clean_text(text))


class ParagraphGrammar(ListGrammar):
    """Consecutive non-blank lines not claimed by any other grammar."""

    nesting = "paragraph"

    def match(self, lines: list[SourceLine], index: int) -> bool:
        return not lines[index].blank

    def consume(self, lines: list[SourceLine], start: int) -> Block:
        text_lines = [unescape(lines[start].text)]
        i = start + 1
        while i < len(lines) and not registry.starts_block(lines, i):
            text_lines.append(unescape(lines[i].text))
            i += 1
        payload = ListPayload(text="\n".join(text_lines), kind=ListKind.PARAGRAPH)
        return Block(NodeType.LIST, payload, i)

    def emit(self, node: Node, context: EmitContext) -> list[str]:
        return escape_text_lines(node.payload.text.split("\n"))


registry.register(ListGrammar())
registry.register(ParagraphGrammar(), fallback=True)
