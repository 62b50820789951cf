"""
Blockquote grammar: consecutive lines starting with `>`.
"""

from __future__ import annotations

from ..dom import Node, NodeType, QuotePayload
from .base import Block, BlockGrammar, EmitContext, SourceLine, registry


def strip_marker(text: str) -> str:
    text = text[1:]
    return text[1:] if text.startswith(" ") else text


class QuoteGrammar(BlockGrammar):
    priority = 30
    payload_types = (QuotePayload,)

    @property
    def name(self) -> str:
        return "blockquote"

    @property
    def node_types(self) -> tuple[NodeType, ...]:
        return (NodeType.BLOCKQUOTE,)

    def match(self, lines: list[SourceLine], index: int) -> bool:
        return lines[index].text.startswith(">")

    def consume(self, lines: list[SourceLine], start: int) -> Block:
        end = start
        while end < len(lines) and lines[end].text.startswith(">"):
            end += 1
        text = "\n".join(strip_marker(line.text).rstrip() for line in lines[start:end])
        return Block(NodeType.BLOCKQUOTE, QuotePayload(text=text), end)

    def emit(self, node: Node, context: EmitContext) -> list[str]:
        return [f"> {line}" if line else ">" for line in node.payload.text.split("\n")]

    def edit_text(self, payload: QuotePayload, text: str) -> QuotePayload:
        return QuotePayload(text="\n".join(line.rstrip() for line in text.split("\n")))

    def default_payload(self, node_type: NodeType, text: str) -> QuotePayload:
        return self.edit_text(QuotePayload(text=""), text)


registry.register(QuoteGrammar())
