"""
Fenced code block grammar (``` or ~~~ fences with an optional info string).
"""

from __future__ import annotations

import re

from ..dom import CodePayload, Node, NodeType
from ..errors import BlockMalformed
from .base import Block, BlockGrammar, EmitContext, SourceLine, registry, strip_indent

FENCE_PATTERN = re.compile(r"^(`{3,}|~{3,})[ \t]*(.*)$")
BACKTICK_RUN = re.compile(r"`+")
TILDE_RUN = re.compile(r"~+")


def fence_for(code: str, info: str = "") -> str:
    """Shortest fence longer than any run of its character in the code.

    Tildes are used when the info string itself contains a backtick.
    """
    char, runs = ("~", TILDE_RUN) if "`" in info else ("`", BACKTICK_RUN)
    longest = max((len(run) for run in runs.findall(code)), default=0)
    return char * max(3, longest + 1)


class CodeGrammar(BlockGrammar):
    priority = 10
    payload_types = (CodePayload,)

    @property
    def name(self) -> str:
        return "code"

    @property
    def node_types(self) -> tuple[NodeType, ...]:
        return (NodeType.CODE,)

    def match(self, lines: list[SourceLine], index: int) -> bool:
        m = FENCE_PATTERN.match(lines[index].text)
        if not m:
            return False
        # Backtick fences cannot carry backticks in the info string
        return not (m.group(1)[0] == "`" and "`" in m.group(2))

    def consume(self, lines: list[SourceLine], start: int) -> Block:
        opening = lines[start]
        m = FENCE_PATTERN.match(opening.text)
        fence = m.group(1)
        info = m.group(2).strip()
        lang, _, meta = info.partition(" ")

        closing = re.compile(rf"^{re.escape(fence[0])}{{{len(fence)},}}[ \t]*$")
        for end in range(start + 1, len(lines)):
            if closing.match(lines[end].text):
                body = [
                    strip_indent(line.raw, opening.indent)
                    for line in lines[start + 1:end]
                ]
                payload = CodePayload(code="\n".join(body), lang=lang, meta=meta.strip())
                return Block(NodeType.CODE, payload, end + 1)

        # An unclosed fence runs to the end of the document
        raise BlockMalformed(f"Code fence {fence} opened on line {opening.number} is never closed", len(lines))

    def emit(self, node: Node, context: EmitContext) -> list[str]:
        payload: CodePayload = node.payload
        info = " ".join(part for part in (payload.lang, payload.meta) if part)
        fence = fence_for(payload.code, info)
        return [fence + info, *payload.code.split("\n"), fence]

    def text_of(self, payload: CodePayload) -> str:
        return payload.code

    def edit_text(self, payload: CodePayload, text: str) -> CodePayload:
        return CodePayload(code=text, lang=payload.lang, meta=payload.meta)

    def default_payload(self, node_type: NodeType, text: str) -> CodePayload:
        return CodePayload(code=text)


registry.register(CodeGrammar())
