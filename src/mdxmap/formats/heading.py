"""
ATX heading grammar: `#` to `######` followed by the heading text.
"""

from __future__ import annotations

import re

from ..dom import MAX_HEADING_LEVEL, Node, NodeType, SectionPayload
from .base import Block, BlockGrammar, EmitContext, SourceLine, registry

HEADING_PATTERN = re.compile(r"^(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")


def clean_heading_text(text: str) -> str:
    """Collapse to one line and drop closing hashes, as the parser would."""
    line = " ".join(part.strip() for part in text.split("\n")).strip()
    m = HEADING_PATTERN.match("# " + line)
    return (m.group(2) or "") if m else line


class HeadingGrammar(BlockGrammar):
    nesting = "heading"
    priority = 40
    payload_types = (SectionPayload,)

    @property
    def name(self) -> str:
        return "heading"

    @property
    def node_types(self) -> tuple[NodeType, ...]:
        return (NodeType.SECTION,)

    def match(self, lines: list[SourceLine], index: int) -> bool:
        return bool(HEADING_PATTERN.match(lines[index].text))

    def consume(self, lines: list[SourceLine], start: int) -> Block:
        m = HEADING_PATTERN.match(lines[start].text)
        payload = SectionPayload(text=m.group(2) or "", level=len(m.group(1)))
        return Block(NodeType.SECTION, payload, start + 1)

    def emit(self, node: Node, context: EmitContext) -> list[str]:
        level = context.heading_level or node.payload.level
        level = max(1, min(MAX_HEADING_LEVEL, level))
        hashes = "#" * level
        text = node.payload.text
        return [f"{hashes} {text}" if text else hashes]

    def edit_text(self, payload: SectionPayload, text: str) -> SectionPayload:
        return SectionPayload(text=clean_heading_text(text), level=payload.level)

    def default_payload(self, node_type: NodeType, text: str) -> SectionPayload:
        return SectionPayload(text=clean_heading_text(text))


registry.register(HeadingGrammar())
