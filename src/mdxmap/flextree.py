"""
Flex-tree placement: tidy tree layout for nodes of different sizes.

Works on abstract axes. The secondary axis (breadth) runs across siblings, the
primary axis (depth) runs from parent to child. Every subtree keeps the list of
boxes it occupies, relative to its own center (secondary) and top (primary).
A child subtree is pushed along the secondary axis until each of its boxes
clears, by at least `sibling_gap`, every box of earlier siblings that shares
some of its primary interval. Comparing full contours rather than bounding
boxes lets small subtrees tuck under the overhang of larger neighbours.

Orientation and mirroring are applied by mdxmap.layout afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Box:
    lo: float  # secondary axis
    hi: float
    top: float  # primary axis
    bottom: float

    def shifted(self, across: float = 0.0, down: float = 0.0) -> Box:
        return Box(self.lo + across, self.hi + across, self.top + down, self.bottom + down)

    def shares_depth(self, other: Box) -> bool:
        return self.top < other.bottom and other.top < self.bottom


@dataclass
class FlexNode:
    """One node to place. `breadth` and `depth` are its extents on the two axes."""
    key: str
    breadth: float
    depth: float
    children: list[FlexNode] = field(default_factory=list)

    # Results: absolute center on the secondary axis, absolute top on the primary
    x: float = 0.0
    y: float = 0.0

    offset: float = field(default=0.0, repr=False)  # center relative to the parent's center
    boxes: list[Box] = field(default_factory=list, repr=False)


def _separation(placed: list[Box], boxes: list[Box], gap: float) -> float:
    """Smallest shift that puts `boxes` at least `gap` past every overlapping placed box."""
    shift = None
    for p in placed:
        for b in boxes:
            if p.shares_depth(b):
                need = p.hi + gap - b.lo
                shift = need if shift is None else max(shift, need)
    if shift is None:
        # Nothing shares depth; fall back to bounding boxes
        shift = max(p.hi for p in placed) + gap - min(b.lo for b in boxes)
    return shift


def _measure(node: FlexNode, sibling_gap: float, level_gap: float) -> None:
    """Bottom-up pass: child offsets and subtree footprint."""
    for child in node.children:
        _measure(child, sibling_gap, level_gap)

    node.boxes = [Box(-node.breadth / 2, node.breadth / 2, 0.0, node.depth)]
    if not node.children:
        return

    child_top = node.depth + level_gap
    placed: list[Box] = []
    offsets: list[float] = []
    for child in node.children:
        boxes = [b.shifted(down=child_top) for b in child.boxes]
        shift = _separation(placed, boxes, sibling_gap) if placed else 0.0
        offsets.append(shift)
        placed.extend(b.shifted(across=shift) for b in boxes)

    middle = (offsets[0] + offsets[-1]) / 2
    for child, shift in zip(node.children, offsets):
        child.offset = shift - middle
    node.boxes.extend(b.shifted(across=-middle) for b in placed)


def _position(node: FlexNode, x: float, y: float, level_gap: float) -> None:
    """Top-down pass: accumulate relative offsets into absolute coordinates."""
    node.x = x
    node.y = y
    child_top = y + node.depth + level_gap
    for child in node.children:
        _position(child, x + child.offset, child_top, level_gap)


def place(root: FlexNode, sibling_gap: float = 20.0, level_gap: float = 80.0) -> FlexNode:
    """Place the tree with the root centered at 0 on the secondary axis and its top at 0."""
    _measure(root, sibling_gap, level_gap)
    _position(root, 0.0, 0.0, level_gap)
    return root


def walk(root: FlexNode):
    """Yield (node, parent) pairs depth-first."""
    stack: list[tuple[FlexNode, FlexNode | None]] = [(root, None)]
    while stack:
        node, parent = stack.pop()
        yield node, parent
        stack.extend((child, node) for child in reversed(node.children))
