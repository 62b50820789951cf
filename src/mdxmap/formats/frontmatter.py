"""
YAML front matter grammar. Reads and writes the root node.

The `title` key becomes the root's title; every other key is kept in
RootPayload.frontmatter in document order.
"""

from __future__ import annotations

import yaml

from ..config import get_config
from ..dom import Node, NodeType, RootPayload
from ..errors import BlockMalformed
from .base import Block, BlockGrammar, EmitContext, SourceLine, registry

FENCE = "---"


class FrontmatterGrammar(BlockGrammar):
    payload_types = (RootPayload,)

    @property
    def name(self) -> str:
        return "frontmatter"

    @property
    def node_types(self) -> tuple[NodeType, ...]:
        return (NodeType.ROOT,)

    def match(self, lines: list[SourceLine], index: int) -> bool:
        """Front matter only opens on the first line and needs a closing fence."""
        if index != 0 or not lines or lines[0].raw.rstrip() != FENCE:
            return False
        return self._closing_index(lines) is not None

    def _closing_index(self, lines: list[SourceLine]) -> int | None:
        for i in range(1, len(lines)):
            if lines[i].raw.rstrip() in (FENCE, "..."):
                return i
        return None

    def consume(self, lines: list[SourceLine], start: int) -> Block:
        close = self._closing_index(lines)
        source = "\n".join(line.raw for line in lines[1:close])
        end = close + 1
        try:
            data = yaml.safe_load(source) if source.strip() else {}
        except yaml.YAMLError as e:
            raise BlockMalformed(f"Invalid YAML front matter: {e}", end) from e
        if not isinstance(data, dict):
            raise BlockMalformed(
                f"Front matter must be a mapping, got {type(data).__name__}", end
            )

        meta = {str(k): v for k, v in data.items()}
        title = meta.pop("title", None)
        if title is None or not str(title).strip():
            title = get_config().parser.default_title
        return Block(NodeType.ROOT, RootPayload(title=str(title), frontmatter=meta), end)

    def emit(self, node: Node, context: EmitContext) -> list[str]:
        payload: RootPayload = node.payload
        meta = dict(payload.frontmatter)
        if payload.title != get_config().parser.default_title:
            meta = {"title": payload.title, **meta}
        if not meta:
            return []
        dumped = yaml.safe_dump(meta, sort_keys=False, allow_unicode=True)
        return [FENCE, *dumped.rstrip("\n").split("\n"), FENCE]

    def edit_text(self, payload: RootPayload, text: str) -> RootPayload:
        title = " ".join(text.split()) or get_config().parser.default_title
        return RootPayload(title=title, frontmatter=payload.frontmatter)

    def default_payload(self, node_type: NodeType, text: str) -> RootPayload:
        return self.edit_text(RootPayload(), text)


registry.register(FrontmatterGrammar(), detectable=False)
