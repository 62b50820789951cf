"""
Commands: atomic, invertible tree mutations.

A command checks its preconditions in validate() without touching the tree,
then apply() and revert() move the tree between the before and after states.
Each command keeps exactly the state it needs to undo itself: the old payload,
the old parent and index, or the removed subtree.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from enum import Enum

from .dom import Node, NodeType, Payload, Tree, resolve_placement
from .errors import CommandError, CycleRejected, InvalidTarget
from .formats.loader import registry


class CommandState(Enum):
    CREATED = "created"
    APPLIED = "applied"
    UNDONE = "undone"


class Command(ABC):
    """Base class for tree mutations. Run them through History, not directly."""

    name = "Command"

    def __init__(self):
        self.state = CommandState.CREATED

    def validate(self, tree: Tree) -> None:
        """Raise a CommandError if the command cannot run. Must not mutate the tree."""

    @abstractmethod
    def apply(self, tree: Tree) -> None:
        ...

    @abstractmethod
    def revert(self, tree: Tree) -> None:
        ...

    def __repr__(self) -> str:
        return f"<{self.name} {self.state.value}>"


class ChangeNodeText(Command):
    """Replace a node's text. Ids are kept."""

    name = "ChangeNodeText"

    def __init__(self, node_id: str, text: str):
        super().__init__()
        self.node_id = node_id
        self.text = text
        self.old_payload: Payload | None = None
        self.new_payload: Payload | None = None

    def validate(self, tree: Tree) -> None:
        node = tree.require(self.node_id)
        grammar = registry.for_type(node.type)
        # Tables and directives re-parse their markup here and may raise InvalidPayload
        self.new_payload = grammar.edit_text(node.payload, self.text)

    def apply(self, tree: Tree) -> None:
        node = tree[self.node_id]
        self.old_payload = node.payload
        node.payload = self.new_payload

    def revert(self, tree: Tree) -> None:
        tree[self.node_id].payload = self.old_payload


class MoveNode(Command):
    """Reparent and/or reorder a node together with its subtree."""

    name = "MoveNode"

    def __init__(self, node_id: str, parent_id: str, index: int | None = None):
        super().__init__()
        self.node_id = node_id
        self.parent_id = parent_id
        self.index = index
        self.new_index: int | None = None
        self.old_parent_id: str | None = None
        self.old_index: int | None = None

    def validate(self, tree: Tree) -> None:
        node = tree.require(self.node_id)
        tree.require(self.parent_id)
        if self.node_id == tree.root_id:
            raise InvalidTarget("The root cannot be moved")
        if tree.is_ancestor(self.node_id, self.parent_id):
            raise CycleRejected(
                f"Cannot move {self.node_id!r} into its own subtree ({self.parent_id!r})"
            )
        self.new_index = resolve_placement(tree, node, self.parent_id, self.index)

    def apply(self, tree: Tree) -> None:
        self.old_parent_id, self.old_index = tree.detach(self.node_id)
        tree.insert(self.node_id, self.parent_id, self.new_index)

    def revert(self, tree: Tree) -> None:
        tree.detach(self.node_id)
        tree.insert(self.node_id, self.old_parent_id, self.old_index)


class AddNode(Command):
    """Create one childless node. Its id is generated once and reused on redo."""

    name = "AddNode"

    def __init__(
        self,
        parent_id: str,
        node_type: NodeType | str,
        text: str = "New Node",
        index: int | None = None,
        payload: Payload | None = None,
    ):
        super().__init__()
        self.parent_id = parent_id
        self.node_type = NodeType(node_type)
        self.text = text
        self.index = index
        self.payload = payload
        self.created_id = f"{self.node_type.value}-{uuid.uuid4().hex[:10]}"
        self.insert_index: int | None = None

    def _build(self) -> Node:
        return Node(id=self.created_id, type=self.node_type, payload=self.payload)

    def validate(self, tree: Tree) -> None:
        tree.require(self.parent_id)
        if self.node_type is NodeType.ROOT:
            raise InvalidTarget("A second root cannot be added")
        grammar = registry.for_type(self.node_type)
        if self.payload is None:
            self.payload = grammar.default_payload(self.node_type, self.text)
        else:
            self.payload = grammar.accept_payload(self.node_type, self.payload)
        self.insert_index = resolve_placement(tree, self._build(), self.parent_id, self.index)

    def apply(self, tree: Tree) -> None:
        tree.attach(self._build(), self.parent_id, self.insert_index)

    def revert(self, tree: Tree) -> None:
        removed, _, _ = tree.extract_subtree(self.created_id)
        if len(removed) > 1:
            raise CommandError(f"{self.created_id!r} gained children that were never undone")


class RemoveNode(Command):
    """Remove a node and its whole subtree."""

    name = "RemoveNode"

    def __init__(self, node_id: str):
        super().__init__()
        self.node_id = node_id
        self.removed: list[Node] = []
        self.parent_id: str | None = None
        self.index: int | None = None

    def validate(self, tree: Tree) -> None:
        tree.require(self.node_id)
        if self.node_id == tree.root_id:
            raise InvalidTarget("The root cannot be removed")

    def apply(self, tree: Tree) -> None:
        self.removed, self.parent_id, self.index = tree.extract_subtree(self.node_id)

    def revert(self, tree: Tree) -> None:
        tree.restore_subtree(self.removed, self.parent_id, self.index)
        self.removed = []
