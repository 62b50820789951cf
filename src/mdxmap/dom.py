"""
DOM - Document Object Model for mdxmap

One tree serves both views: the markup document and the mind map diagram.
Nodes live in an arena keyed by id and refer to their children by id only, so
moving or removing a subtree is an edit of the id lists, never of node objects.

Key invariant: every node is reachable from the root exactly once. Commands
are the only code that calls the structural primitives (attach, detach,
insert, extract_subtree, restore_subtree).
"""

from __future__ import annotations

import copy
import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from .errors import InvalidTarget, PlacementRejected, TreeError

MAX_HEADING_LEVEL = 6


class NodeType(Enum):
    """Closed set of node kinds. Determines grammar and default sizing."""
    ROOT = "root"
    SECTION = "section"
    LIST = "list"
    TABLE = "table"
    CODE = "code"
    BLOCKQUOTE = "blockquote"
    CHART = "chart"
    MATH = "math"
    STATS = "stats"
    COMPONENT = "component"


# Nodes of these types never have children
LEAF_TYPES = frozenset({
    NodeType.TABLE,
    NodeType.CODE,
    NodeType.BLOCKQUOTE,
    NodeType.CHART,
    NodeType.MATH,
    NodeType.STATS,
    NodeType.COMPONENT,
})


class ListKind(Enum):
    """How a `list` node is written: bullet item, numbered item or plain paragraph."""
    BULLET = "bullet"
    ORDERED = "ordered"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


# --- Payloads ---------------------------------------------------------------
#
# One frozen dataclass per grammar. signature() is the semantic content used
# for structural comparison; it leaves out formatting-only fields.


@dataclass(frozen=True)
class RootPayload:
    title: str = "Untitled"
    frontmatter: dict = field(default_factory=dict)

    @property
    def label(self) -> str:
        return self.title

    def signature(self) -> tuple:
        meta = json.dumps(self.frontmatter, sort_keys=True, default=str)
        return ("root", self.title, meta)


@dataclass(frozen=True)
class SectionPayload:
    text: str
    level: int = 1  # heading level as written; nesting is carried by the tree

    @property
    def label(self) -> str:
        return self.text

    def signature(self) -> tuple:
        return ("section", self.text)


@dataclass(frozen=True)
class ListPayload:
    text: str
    kind: ListKind = ListKind.BULLET
    checked: bool | None = None  # task list checkbox, None when absent

    @property
    def label(self) -> str:
        return self.text

    def signature(self) -> tuple:
        return ("list", self.text, self.kind.value, self.checked)


@dataclass(frozen=True)
class TablePayload:
    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...] = ()
    align: tuple[str | None, ...] = ()

    @property
    def label(self) -> str:
        return "Table"

    def signature(self) -> tuple:
        return ("table", self.headers, self.rows, self.align)


@dataclass(frozen=True)
class CodePayload:
    code: str
    lang: str = ""
    meta: str = ""

    @property
    def label(self) -> str:
        return self.lang or "code"

    def signature(self) -> tuple:
        return ("code", self.code, self.lang, self.meta)


@dataclass(frozen=True)
class QuotePayload:
    text: str

    @property
    def label(self) -> str:
        return self.text

    def signature(self) -> tuple:
        return ("blockquote", self.text)


@dataclass(frozen=True)
class Prop:
    """One attribute of an embedded component tag."""
    name: str
    value: str | bool
    kind: str = "string"  # string | expression | flag


@dataclass(frozen=True)
class DirectivePayload:
    """An embedded component tag. Never interpreted, only preserved."""
    name: str
    props: tuple[Prop, ...] = ()
    body: str | None = None  # None for self-closing tags

    @property
    def label(self) -> str:
        return self.name

    @property
    def prop_map(self) -> dict[str, str | bool]:
        return {p.name: p.value for p in self.props}

    def signature(self) -> tuple:
        props = tuple((p.name, p.value, p.kind) for p in self.props)
        return ("directive", self.name, props, self.body)


@dataclass(frozen=True)
class RawPayload:
    """Opaque markup kept verbatim: HTML comments and error markers."""
    raw: str
    error: str | None = None

    @property
    def label(self) -> str:
        first = self.raw.split("\n", 1)[0]
        return first if self.error is None else f"[error] {first}"

    def signature(self) -> tuple:
        return ("raw", self.raw, self.error is not None)


Payload = (
    RootPayload
    | SectionPayload
    | ListPayload
    | TablePayload
    | CodePayload
    | QuotePayload
    | DirectivePayload
    | RawPayload
)


@dataclass
class Node:
    """A node in the content tree."""
    id: str
    type: NodeType
    payload: Payload
    children: list[str] = field(default_factory=list)
    # Derived by layout; not part of identity
    position: Point | None = field(default=None, compare=False, repr=False)
    size: Size | None = field(default=None, compare=False, repr=False)

    @property
    def label(self) -> str:
        return self.payload.label

    @property
    def is_section(self) -> bool:
        return self.type is NodeType.SECTION

    @property
    def is_paragraph(self) -> bool:
        return self.type is NodeType.LIST and self.payload.kind is ListKind.PARAGRAPH

    @property
    def is_list_item(self) -> bool:
        return self.type is NodeType.LIST and self.payload.kind is not ListKind.PARAGRAPH


class Tree:
    """Root node plus an id -> Node arena."""

    def __init__(self, root: Node):
        if root.type is not NodeType.ROOT:
            raise TreeError(f"Tree root must have type root, got {root.type.value}")
        self.root_id = root.id
        self.nodes: dict[str, Node] = {root.id: root}
        self._parents: dict[str, str] = {}

    # --- lookup ---

    @property
    def root(self) -> Node:
        return self.nodes[self.root_id]

    def __getitem__(self, node_id: str) -> Node:
        return self.nodes[node_id]

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Node]:
        return self.depth_first()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tree):
            return NotImplemented
        return self.root_id == other.root_id and self.nodes == other.nodes

    def __repr__(self) -> str:
        return f"Tree({self.root.label!r}, {len(self.nodes)} nodes)"

    def get(self, node_id: str) -> Node | None:
        return self.nodes.get(node_id)

    def require(self, node_id: str) -> Node:
        """Return the node or raise InvalidTarget."""
        node = self.nodes.get(node_id)
        if node is None:
            raise InvalidTarget(f"No node with id {node_id!r}")
        return node

    def parent_of(self, node_id: str) -> str | None:
        return self._parents.get(node_id)

    def index_of(self, node_id: str) -> int:
        parent_id = self._parents.get(node_id)
        if parent_id is None:
            return 0
        return self.nodes[parent_id].children.index(node_id)

    def children_of(self, node_id: str) -> list[Node]:
        return [self.nodes[cid] for cid in self.nodes[node_id].children]

    def depth_first(self, start: str | None = None) -> Iterator[Node]:
        """Traverse depth-first in child order, yielding parents before children."""
        node = self.nodes[start or self.root_id]
        yield node
        for child_id in node.children:
            yield from self.depth_first(child_id)

    def walk(self, start: str | None = None, depth: int = 0) -> Iterator[tuple[Node, int]]:
        """Like depth_first() but also yields each node's depth below `start`."""
        node = self.nodes[start or self.root_id]
        yield node, depth
        for child_id in node.children:
            yield from self.walk(child_id, depth + 1)

    def subtree_ids(self, node_id: str) -> list[str]:
        return [n.id for n in self.depth_first(node_id)]

    def is_ancestor(self, ancestor_id: str, node_id: str) -> bool:
        """True if ancestor_id is node_id itself or one of its ancestors."""
        current: str | None = node_id
        while current is not None:
            if current == ancestor_id:
                return True
            current = self._parents.get(current)
        return False

    def section_depth(self, node_id: str) -> int:
        """Number of sections on the path from the root down to node_id (inclusive)."""
        depth = 0
        current: str | None = node_id
        while current is not None:
            if self.nodes[current].is_section:
                depth += 1
            current = self._parents.get(current)
        return depth

    def section_height(self, node_id: str) -> int:
        """Longest chain of nested sections starting at node_id (0 if not a section)."""
        node = self.nodes[node_id]
        if not node.is_section:
            return 0
        below = [self.section_height(cid) for cid in node.children]
        return 1 + max(below, default=0)

    # --- structural primitives (used by commands) ---

    def attach(self, node: Node, parent_id: str, index: int | None = None) -> None:
        """Add a new childless node to the arena under parent_id."""
        if node.id in self.nodes:
            raise TreeError(f"Duplicate node id {node.id!r}")
        if node.children:
            raise TreeError("attach() takes a childless node; use restore_subtree()")
        parent = self.nodes[parent_id]
        self.nodes[node.id] = node
        self._parents[node.id] = parent_id
        if index is None:
            parent.children.append(node.id)
        else:
            parent.children.insert(index, node.id)

    def detach(self, node_id: str) -> tuple[str, int]:
        """Unlink node_id from its parent; it stays in the arena. Returns (parent, index)."""
        parent_id = self._parents.pop(node_id, None)
        if parent_id is None:
            raise TreeError(f"Cannot detach {node_id!r}: it has no parent")
        siblings = self.nodes[parent_id].children
        index = siblings.index(node_id)
        del siblings[index]
        return parent_id, index

    def insert(self, node_id: str, parent_id: str, index: int | None = None) -> None:
        """Link an arena node that is currently detached under parent_id."""
        if node_id in self._parents:
            raise TreeError(f"{node_id!r} is still attached; detach it first")
        siblings = self.nodes[parent_id].children
        if index is None:
            siblings.append(node_id)
        else:
            siblings.insert(index, node_id)
        self._parents[node_id] = parent_id

    def extract_subtree(self, node_id: str) -> tuple[list[Node], str, int]:
        """Detach node_id and drop its whole subtree from the arena.

        Returns the removed nodes (depth-first) plus the original parent and index.
        """
        removed = list(self.depth_first(node_id))
        parent_id, index = self.detach(node_id)
        for node in removed:
            del self.nodes[node.id]
            self._parents.pop(node.id, None)
        return removed, parent_id, index

    def restore_subtree(self, nodes: list[Node], parent_id: str, index: int) -> None:
        """Put back nodes returned by extract_subtree() at their old place."""
        for node in nodes:
            if node.id in self.nodes:
                raise TreeError(f"Duplicate node id {node.id!r}")
        for node in nodes:
            self.nodes[node.id] = node
        for node in nodes:
            for child_id in node.children:
                self._parents[child_id] = node.id
        self.insert(nodes[0].id, parent_id, index)

    # --- checks ---

    def validate(self) -> None:
        """Raise TreeError if any structural invariant is violated."""
        seen: set[str] = set()
        stack = [self.root_id]
        while stack:
            node_id = stack.pop()
            if node_id not in self.nodes:
                raise TreeError(f"Dangling child id {node_id!r}")
            if node_id in seen:
                raise TreeError(f"Node {node_id!r} reachable more than once")
            seen.add(node_id)
            node = self.nodes[node_id]
            if node.id != node_id:
                raise TreeError(f"Node stored under {node_id!r} has id {node.id!r}")
            if node.type is NodeType.ROOT and node_id != self.root_id:
                raise TreeError(f"Second root node {node_id!r}")
            if node.type in LEAF_TYPES and node.children:
                raise TreeError(f"Leaf node {node_id!r} has children")
            for child_id in node.children:
                if self._parents.get(child_id) != node_id:
                    raise TreeError(f"Parent index out of date for {child_id!r}")
                stack.append(child_id)
        if len(seen) != len(self.nodes):
            orphans = sorted(set(self.nodes) - seen)
            raise TreeError(f"Unreachable nodes: {orphans}")

    def signature(self, node_id: str | None = None) -> tuple:
        """Id-free structural fingerprint: (type, payload signature, children...)."""
        node = self.nodes[node_id or self.root_id]
        children = tuple(self.signature(cid) for cid in node.children)
        return (node.type.value, node.payload.signature(), children)

    def structurally_equal(self, other: Tree) -> bool:
        return self.signature() == other.signature()

    def copy(self) -> Tree:
        return copy.deepcopy(self)


def resolve_placement(tree: Tree, node: Node, parent_id: str, index: int | None) -> int:
    """Check that `node` may sit under parent_id at index; return the concrete index.

    The rules keep every tree writable as markup: headings nest only in headings,
    content comes before sub-headings, paragraphs only own list items and leaf
    blocks own nothing. With index=None content goes after the parent's last
    content child and sections go last.
    """
    parent = tree.require(parent_id)
    if parent.type in LEAF_TYPES:
        raise PlacementRejected(f"{parent.type.value} node {parent_id!r} cannot have children")
    if node.type is NodeType.ROOT:
        raise PlacementRejected("The root cannot be placed under another node")

    if node.is_section:
        if parent.type not in (NodeType.ROOT, NodeType.SECTION):
            raise PlacementRejected("Sections can only be placed under the root or a section")
        height = tree.section_height(node.id) if node.id in tree else 1
        if tree.section_depth(parent_id) + height > MAX_HEADING_LEVEL:
            raise PlacementRejected(f"Sections cannot nest deeper than {MAX_HEADING_LEVEL} levels")
    elif parent.is_paragraph and not node.is_list_item:
        raise PlacementRejected("A paragraph can only contain list items")

    siblings = [cid for cid in parent.children if cid != node.id]
    first_section = next(
        (i for i, cid in enumerate(siblings) if tree[cid].is_section),
        len(siblings),
    )
    if index is None:
        return len(siblings) if node.is_section else first_section
    if index < 0 or index > len(siblings):
        raise PlacementRejected(f"Index {index} out of range for {parent_id!r}")
    if node.is_section and index < first_section:
        raise PlacementRejected("A section cannot come before content in its parent")
    if not node.is_section and index > first_section:
        raise PlacementRejected("Content cannot come after a sub-section in its parent")
    return index
