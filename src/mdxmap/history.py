"""
Linear undo/redo history over a live tree.
"""

from __future__ import annotations

import logging

from .commands import Command, CommandState
from .config import get_config
from .dom import Tree
from .errors import CommandError

logger = logging.getLogger(__name__)


class History:
    """Undo and redo stacks for commands applied to one tree.

    execute() validates before touching the tree, so a rejected command leaves
    both the tree and the stacks unchanged. A new command clears the redo
    stack. With max_size > 0 the oldest commands are dropped beyond that many.
    """

    def __init__(self, tree: Tree, max_size: int | None = None):
        self.tree = tree
        self.max_size = get_config().history.max_size if max_size is None else max_size
        self._undo: list[Command] = []
        self._redo: list[Command] = []

    def execute(self, command: Command) -> Command:
        if command.state is not CommandState.CREATED:
            raise CommandError(f"{command.name} has already been executed")
        command.validate(self.tree)
        command.apply(self.tree)
        command.state = CommandState.APPLIED

        self._undo.append(command)
        self._redo.clear()
        if self.max_size > 0 and len(self._undo) > self.max_size:
            del self._undo[: len(self._undo) - self.max_size]
        logger.debug(f"Executed {command.name} ({len(self._undo)} to undo)")
        return command

    def undo(self) -> bool:
        if not self._undo:
            return False
        command = self._undo.pop()
        command.revert(self.tree)
        command.state = CommandState.UNDONE
        self._redo.append(command)
        logger.debug(f"Undid {command.name}")
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        command = self._redo.pop()
        command.apply(self.tree)
        command.state = CommandState.APPLIED
        self._undo.append(command)
        logger.debug(f"Redid {command.name}")
        return True

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_count(self) -> int:
        return len(self._undo)

    @property
    def redo_count(self) -> int:
        return len(self._redo)

    @property
    def last_command_name(self) -> str | None:
        return self._undo[-1].name if self._undo else None

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
