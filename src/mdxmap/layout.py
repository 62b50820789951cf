"""
Layout engine: Tree + node sizes -> positions and edge routes.

Sizes come from a measurement callable supplied by the host (`size_of`), with
the style registry's estimate as fallback. Placement is done by
mdxmap.flextree on abstract axes; this module maps the result onto the
requested orientation, centers the root at the origin and routes edges.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from .config import Config, get_config
from .dom import Node, Point, Size, Tree
from .flextree import FlexNode, place, walk
from .styles import estimate_size

logger = logging.getLogger(__name__)

SizeOf = Callable[[str], "Size | tuple[float, float] | None"]


class Orientation(Enum):
    TOP_DOWN = "top_down"
    LEFT_RIGHT = "left_right"
    BALANCED = "balanced"  # root children alternate right and left


class EdgeStyle(Enum):
    STRAIGHT = "straight"
    ORTHOGONAL = "orthogonal"


@dataclass
class LayoutOptions:
    orientation: Orientation = Orientation.BALANCED
    sibling_gap: float = 20.0
    level_gap: float = 80.0
    edge_style: EdgeStyle = EdgeStyle.ORTHOGONAL
    min_node_size: float = 1.0
    node_padding: Size = Size(0.0, 0.0)  # added to extents for spacing only

    @classmethod
    def from_config(cls, config: Config | None = None) -> LayoutOptions:
        cfg = (config or get_config()).layout
        return cls(
            orientation=Orientation(cfg.orientation),
            sibling_gap=cfg.sibling_gap,
            level_gap=cfg.level_gap,
            edge_style=EdgeStyle(cfg.edge_style),
            min_node_size=cfg.min_node_size,
            node_padding=Size(cfg.pad_width, cfg.pad_height),
        )


@dataclass
class EdgeRoute:
    source: str
    target: str
    points: list[Point]
    source_side: str  # top | bottom | left | right
    target_side: str


@dataclass
class LayoutResult:
    positions: dict[str, Point] = field(default_factory=dict)  # top-left corners
    sizes: dict[str, Size] = field(default_factory=dict)
    edges: list[EdgeRoute] = field(default_factory=list)
    sides: dict[str, str] = field(default_factory=dict)  # which way each node grows from its parent

    def bounds(self) -> tuple[Point, Point]:
        """(top-left, bottom-right) of the area covered by all nodes."""
        if not self.positions:
            return Point(0.0, 0.0), Point(0.0, 0.0)
        left = min(p.x for p in self.positions.values())
        top = min(p.y for p in self.positions.values())
        right = max(p.x + self.sizes[k].width for k, p in self.positions.items())
        bottom = max(p.y + self.sizes[k].height for k, p in self.positions.items())
        return Point(left, top), Point(right, bottom)


def measure(node: Node, size_of: SizeOf | None, min_size: float) -> Size:
    """Size for one node, clamped so layout never sees a degenerate box."""
    size = size_of(node.id) if size_of is not None else None
    if size is None:
        size = estimate_size(node)
    elif not isinstance(size, Size):
        size = Size(*size)
    width, height = size.width, size.height
    if not (width > 0 and math.isfinite(width)) or not (height > 0 and math.isfinite(height)):
        logger.warning(
            f"Node {node.id!r} reported size {width}x{height}; clamping to {min_size}"
        )
        width = width if width > 0 and math.isfinite(width) else min_size
        height = height if height > 0 and math.isfinite(height) else min_size
    return Size(float(width), float(height))


class LayoutEngine:
    """Computes one layout. Holds the per-run sizes; nothing is cached between runs."""

    def __init__(self, tree: Tree, size_of: SizeOf | None = None, options: LayoutOptions | None = None):
        self.tree = tree
        self.options = options or LayoutOptions.from_config()
        self.sizes = {
            node.id: measure(node, size_of, self.options.min_node_size) for node in tree
        }
        self.result = LayoutResult(sizes=dict(self.sizes))

    def _flex(self, node_id: str, horizontal: bool, children: list[str] | None = None) -> FlexNode:
        """Build the FlexNode tree. Horizontal layouts grow along x, so width is depth."""
        size = self.sizes[node_id]
        pad = self.options.node_padding
        width, height = size.width + pad.width, size.height + pad.height
        breadth, depth = (height, width) if horizontal else (width, height)
        if children is None:
            children = self.tree[node_id].children
        return FlexNode(
            key=node_id,
            breadth=breadth,
            depth=depth,
            children=[self._flex(cid, horizontal) for cid in children],
        )

    def _place(self, flex: FlexNode, horizontal: bool, mirrored: bool, side: str) -> None:
        """Turn placed axis coordinates into top-left positions around the origin."""
        root_center = flex.depth / 2
        for node, _parent in walk(flex):
            size = self.sizes[node.key]
            real_depth = size.width if horizontal else size.height
            real_breadth = size.height if horizontal else size.width
            along = node.y + (node.depth - real_depth) / 2 - root_center
            across = node.x - real_breadth / 2
            if mirrored:
                along = -along - real_depth
            point = Point(along, across) if horizontal else Point(across, along)
            if node.key == self.tree.root_id:
                point = Point(-size.width / 2, -size.height / 2)
                self.result.sides[node.key] = "center"
            else:
                self.result.sides[node.key] = side
            self.result.positions[node.key] = point

    def _route(self, parent_id: str, child_id: str) -> EdgeRoute:
        side = self.result.sides[child_id]
        p, c = self.result.positions[parent_id], self.result.positions[child_id]
        ps, cs = self.sizes[parent_id], self.sizes[child_id]

        if side == "bottom":
            start = Point(p.x + ps.width / 2, p.y + ps.height)
            end = Point(c.x + cs.width / 2, c.y)
            source_side, target_side = "bottom", "top"
        elif side == "left":
            start = Point(p.x, p.y + ps.height / 2)
            end = Point(c.x + cs.width, c.y + cs.height / 2)
            source_side, target_side = "left", "right"
        else:
            start = Point(p.x + ps.width, p.y + ps.height / 2)
            end = Point(c.x, c.y + cs.height / 2)
            source_side, target_side = "right", "left"

        if self.options.edge_style is EdgeStyle.STRAIGHT:
            points = [start, end]
        elif side == "bottom":
            middle = (start.y + end.y) / 2
            points = [start, Point(start.x, middle), Point(end.x, middle), end]
        else:
            middle = (start.x + end.x) / 2
            points = [start, Point(middle, start.y), Point(middle, end.y), end]
        return EdgeRoute(parent_id, child_id, points, source_side, target_side)

    def run(self) -> LayoutResult:
        opts = self.options
        root_id = self.tree.root_id

        if opts.orientation is Orientation.BALANCED:
            children = self.tree.root.children
            halves = (
                (children[0::2], False, "right"),
                (children[1::2], True, "left"),
            )
            for subset, mirrored, side in halves:
                # Each half hangs off a virtual root of the real root's size
                flex = self._flex(root_id, horizontal=True, children=subset)
                place(flex, opts.sibling_gap, opts.level_gap)
                self._place(flex, horizontal=True, mirrored=mirrored, side=side)
        else:
            horizontal = opts.orientation is Orientation.LEFT_RIGHT
            flex = self._flex(root_id, horizontal=horizontal)
            place(flex, opts.sibling_gap, opts.level_gap)
            self._place(flex, horizontal, mirrored=False, side="right" if horizontal else "bottom")

        for node in self.tree:
            for child_id in node.children:
                self.result.edges.append(self._route(node.id, child_id))
            node.position = self.result.positions[node.id]
            node.size = self.sizes[node.id]

        logger.debug(
            f"Laid out {len(self.result.positions)} nodes ({opts.orientation.value})"
        )
        return self.result


def layout(tree: Tree, size_of: SizeOf | None = None, options: LayoutOptions | None = None) -> LayoutResult:
    """Lay out the tree and write each node's position and size."""
    return LayoutEngine(tree, size_of, options).run()
