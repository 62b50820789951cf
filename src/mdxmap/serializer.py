"""
Tree -> markup.

Each node is written by the grammar its style names. Nesting is re-encoded as
heading levels, indentation under list items and separators, so that parsing
the output gives back a structurally equal tree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .dom import MAX_HEADING_LEVEL, ListKind, Node, Tree
from .formats.base import SEPARATOR, EmitContext
from .formats.loader import registry

logger = logging.getLogger(__name__)


@dataclass
class _Chunk:
    lines: list[str]
    tight: bool = False  # list items are written without blank lines between them


def indent_lines(lines: list[str], indent: int) -> list[str]:
    pad = " " * indent
    return [pad + line if line else "" for line in lines]


class MarkupSerializer:
    """Serialize a Tree. The tree is only read, never changed."""

    def __init__(self, tree: Tree):
        self.tree = tree
        self._chunks: list[_Chunk] = []

    def serialize(self) -> str:
        self._chunks = []
        root = self.tree.root
        header = registry.for_type(root.type).emit(root, EmitContext())
        if header:
            self._chunks.append(_Chunk(header))
        self._emit_children(root, indent=0, heading_level=0)

        out: list[str] = []
        previous: _Chunk | None = None
        for chunk in self._chunks:
            if previous is not None and not (previous.tight and chunk.tight):
                out.append("")
            out.extend(chunk.lines)
            previous = chunk
        logger.debug(f"Serialized {len(self.tree)} nodes into {len(out)} lines")
        return "\n".join(out) + "\n" if out else ""

    def _heading_level(self, node: Node, parent_level: int, previous_level: int | None) -> int:
        """Level to write for a section.

        Deeper than the enclosing section, not deeper than an earlier sibling
        section (or it would nest under it) and leaving room for its own
        sub-sections.
        """
        lowest = parent_level + 1
        highest = MAX_HEADING_LEVEL + 1 - self.tree.section_height(node.id)
        level = min(node.payload.level, highest)
        if previous_level is not None:
            level = min(level, previous_level)
        return max(lowest, level)

    def _emit_children(self, parent: Node, indent: int, heading_level: int) -> None:
        ordinal = 0
        previous: Node | None = None
        previous_section_level: int | None = None

        for child in self.tree.children_of(parent.id):
            if child.is_list_item and previous is not None and previous.is_paragraph:
                self._chunks.append(_Chunk(indent_lines([SEPARATOR], indent)))

            ordered = child.is_list_item and child.payload.kind is ListKind.ORDERED
            ordinal = ordinal + 1 if ordered else 0
            context = EmitContext(heading_level=heading_level, ordinal=ordinal)
            if child.is_section:
                context.heading_level = self._heading_level(
                    child, heading_level, previous_section_level
                )
                previous_section_level = context.heading_level

            grammar = registry.for_type(child.type)
            lines = grammar.emit(child, context)
            self._chunks.append(_Chunk(indent_lines(lines, indent), tight=child.is_list_item))
            self._emit_children(
                child,
                indent + grammar.child_indent(child, context),
                context.heading_level,
            )
            previous = child


def serialize(tree: Tree) -> str:
    """Write the tree as markup."""
    return MarkupSerializer(tree).serialize()
