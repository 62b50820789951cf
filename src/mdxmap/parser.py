"""
Markup -> Tree.

Scans the document as a flat run of blocks (see the grammars in
mdxmap.formats) and nests them with a stack of open blocks. Each block gets a
structural level and becomes the child of the nearest open block with a
strictly smaller level:

    root                      0
    heading #..######         1..6
    paragraph at indent i     9.5 + i
    list item at indent i     10 + i
    other blocks at indent i  9.5 + i

Only the root, sections, paragraphs and list items stay open. Paragraphs only
adopt list items, so any other block closes an open paragraph first.
"""

from __future__ import annotations

import hashlib
import logging

from .config import get_config
from .dom import Node, NodeType, RawPayload, RootPayload, Tree
from .errors import BlockMalformed
from .formats.base import Block, BlockGrammar, SourceLine, is_separator, split_lines, strip_indent
from .formats.loader import registry

logger = logging.getLogger(__name__)

ROOT_ID = "root"
LEAF_OFFSET = 9.5
ITEM_OFFSET = 10.0


def node_id(node_type: NodeType, line: int, signature: tuple) -> str:
    """Deterministic id from type, source line and content."""
    digest = hashlib.sha1(f"{node_type.value}{signature!r}".encode("utf-8")).hexdigest()
    return f"{node_type.value}-{line}-{digest[:8]}"


class MarkupParser:
    """Parse markup into a Tree. One instance per document."""

    def __init__(self, content: str, title: str | None = None):
        self.lines = split_lines(content)
        self.title = title
        self.tree: Tree | None = None
        # Open blocks as (level, node id, is paragraph)
        self._stack: list[tuple[float, str, bool]] = []

    def parse(self) -> Tree:
        start = self._parse_root()
        i = start
        while i < len(self.lines):
            line = self.lines[i]
            if line.blank:
                i += 1
                continue
            if is_separator(line):
                self._close(LEAF_OFFSET + line.indent, close_paragraphs=True)
                i += 1
                continue

            grammar = registry.detect(self.lines, i) or registry.fallback
            block, nesting = self._consume(grammar, i)
            self._add(block, nesting, line)
            i = block.end

        logger.debug(f"Parsed {len(self.lines)} lines into {len(self.tree)} nodes")
        return self.tree

    def _parse_root(self) -> int:
        """Create the root from the front matter, if any. Returns the first body line."""
        default_title = get_config().parser.default_title
        payload = RootPayload(title=default_title)
        start = 0
        broken: Block | None = None

        frontmatter = registry.get_by_name("frontmatter")
        if frontmatter.match(self.lines, 0):
            block, _ = self._consume(frontmatter, 0)
            start = block.end
            if isinstance(block.payload, RootPayload):
                payload = block.payload
            else:
                broken = block

        if self.title:
            payload = RootPayload(title=self.title, frontmatter=payload.frontmatter)
        self.tree = Tree(Node(ROOT_ID, NodeType.ROOT, payload))
        self._stack = [(0.0, ROOT_ID, False)]
        if broken is not None:
            self._add(broken, "leaf", self.lines[0])
        return start

    def _consume(self, grammar: BlockGrammar, start: int) -> tuple[Block, str]:
        try:
            return grammar.consume(self.lines, start), grammar.nesting
        except BlockMalformed as e:
            end = max(e.end, start + 1)
            while end > start + 1 and self.lines[end - 1].blank:
                end -= 1
            first = self.lines[start]
            raw = "\n".join(strip_indent(line.raw, first.indent) for line in self.lines[start:end])
            logger.warning(f"Line {first.number}: {e}; keeping the block as raw markup")
            return Block(NodeType.COMPONENT, RawPayload(raw, str(e)), end), "leaf"

    def _close(self, level: float, close_paragraphs: bool) -> None:
        while len(self._stack) > 1:
            top_level, _, is_paragraph = self._stack[-1]
            if top_level >= level or (close_paragraphs and is_paragraph):
                self._stack.pop()
            else:
                break

    def _add(self, block: Block, nesting: str, line: SourceLine) -> None:
        if nesting == "heading":
            level = float(block.payload.level)
        elif nesting == "item":
            level = ITEM_OFFSET + line.indent
        else:
            level = LEAF_OFFSET + line.indent
        self._close(level, close_paragraphs=nesting != "item")

        parent_id = self._stack[-1][1]
        node = Node(
            id=node_id(block.node_type, line.number, block.payload.signature()),
            type=block.node_type,
            payload=block.payload,
        )
        self.tree.attach(node, parent_id)
        if nesting != "leaf":
            self._stack.append((level, node.id, nesting == "paragraph"))


def parse(markup: str, title: str | None = None) -> Tree:
    """Parse markup into a Tree. Never raises on malformed blocks."""
    return MarkupParser(markup, title).parse()
