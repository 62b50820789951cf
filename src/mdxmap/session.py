"""
Session: one tree, its history and its current layout.

Every mutation goes through the history and is followed by a full relayout,
so `layout` always matches the tree.
"""

from __future__ import annotations

from .commands import Command
from .dom import Tree
from .history import History
from .layout import LayoutOptions, LayoutResult, SizeOf, layout
from .parser import parse
from .serializer import serialize


class Session:
    def __init__(
        self,
        tree: Tree,
        size_of: SizeOf | None = None,
        options: LayoutOptions | None = None,
        max_history: int | None = None,
    ):
        self.tree = tree
        self.size_of = size_of
        self.options = options or LayoutOptions.from_config()
        self.history = History(tree, max_history)
        self.layout: LayoutResult = self.relayout()

    @classmethod
    def from_markup(cls, markup: str, title: str | None = None, **kwargs) -> Session:
        return cls(parse(markup, title), **kwargs)

    def relayout(self) -> LayoutResult:
        self.layout = layout(self.tree, self.size_of, self.options)
        return self.layout

    def execute(self, command: Command) -> Command:
        self.history.execute(command)
        self.relayout()
        return command

    def undo(self) -> bool:
        if not self.history.undo():
            return False
        self.relayout()
        return True

    def redo(self) -> bool:
        if not self.history.redo():
            return False
        self.relayout()
        return True

    def to_markup(self) -> str:
        return serialize(self.tree)
