"""
Style registry: static per-type metadata.

Maps each node type to its category, a default size used when no measurement
is available, and the name of the grammar that reads and writes it.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

from .dom import CodePayload, ListPayload, Node, NodeType, Size, TablePayload, Tree


@dataclass(frozen=True)
class NodeStyle:
    category: str
    default_size: Size
    grammar: str


STYLES: dict[NodeType, NodeStyle] = {
    NodeType.ROOT: NodeStyle("root", Size(200, 50), "frontmatter"),
    NodeType.SECTION: NodeStyle("heading", Size(160, 40), "heading"),
    NodeType.LIST: NodeStyle("text", Size(200, 32), "list"),
    NodeType.TABLE: NodeStyle("block", Size(240, 120), "table"),
    NodeType.CODE: NodeStyle("block", Size(300, 120), "code"),
    NodeType.BLOCKQUOTE: NodeStyle("text", Size(240, 48), "blockquote"),
    NodeType.CHART: NodeStyle("embed", Size(320, 200), "directive"),
    NodeType.MATH: NodeStyle("embed", Size(240, 80), "directive"),
    NodeType.STATS: NodeStyle("embed", Size(240, 100), "directive"),
    NodeType.COMPONENT: NodeStyle("embed", Size(200, 100), "directive"),
}

# Character grid used by the headless estimator
CHAR_WIDTH = 7.0
LINE_HEIGHT = 20.0
TEXT_PADDING = Size(24, 12)
MAX_TEXT_WIDTH = 400.0


def style_of(node_type: NodeType) -> NodeStyle:
    return STYLES[node_type]


def estimate_size(node: Node) -> Size:
    """Fallback size when the measurement callable has nothing to offer."""
    default = STYLES[node.type].default_size
    payload = node.payload

    if isinstance(payload, CodePayload):
        # header ~40px, line ~20px, padding ~32px
        lines = payload.code.count("\n") + 1
        return Size(default.width, max(80.0, lines * LINE_HEIGHT + 40 + 32))

    if isinstance(payload, TablePayload):
        rows = len(payload.rows) + 1
        cols = len(payload.headers) or 2
        width = min(280.0, max(180.0, cols * 80.0))
        return Size(width, max(80.0, rows * 30.0 + 40))

    return default


def _text_size(text: str) -> Size:
    """Wrap text on a fixed character grid, capped at MAX_TEXT_WIDTH."""
    per_line = max(1, int((MAX_TEXT_WIDTH - TEXT_PADDING.width) // CHAR_WIDTH))
    lines = 0
    widest = 0
    for line in text.split("\n"):
        widest = max(widest, min(len(line), per_line))
        lines += max(1, math.ceil(len(line) / per_line))
    return Size(
        widest * CHAR_WIDTH + TEXT_PADDING.width,
        lines * LINE_HEIGHT + TEXT_PADDING.height,
    )


def text_metrics(tree: Tree) -> Callable[[str], Size | None]:
    """Measurement callable for headless use: text nodes sized by character count.

    Returns None for block and embed nodes so layout falls back to estimate_size().
    """
    def size_of(node_id: str) -> Size | None:
        node = tree[node_id]
        if isinstance(node.payload, ListPayload) or node.type in (
            NodeType.ROOT,
            NodeType.SECTION,
            NodeType.BLOCKQUOTE,
        ):
            return _text_size(node.label)
        return None

    return size_of
