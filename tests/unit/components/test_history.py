"""
Unit tests for the undo/redo history.
"""

import pytest

from mdxmap.commands import AddNode, ChangeNodeText, CommandState, MoveNode, RemoveNode
from mdxmap.dom import NodeType
from mdxmap.errors import CommandError, CycleRejected
from mdxmap.history import History
from mdxmap.parser import parse

MARKUP = """# Plan

- first
- second

# Later
"""


@pytest.fixture
def tree():
    return parse(MARKUP)


@pytest.fixture
def history(tree):
    return History(tree, max_size=0)


def ids(tree, label):
    return next(n.id for n in tree if n.label == label)


class TestHistory:
    def test_execute_undo_redo(self, tree, history):
        before = tree.copy()
        cmd = history.execute(ChangeNodeText(ids(tree, "first"), "one"))
        after = tree.copy()
        assert cmd.state is CommandState.APPLIED
        assert history.last_command_name == "ChangeNodeText"

        assert history.undo()
        assert tree == before
        assert cmd.state is CommandState.UNDONE
        assert history.redo()
        assert tree == after

    def test_empty_stacks(self, history):
        assert not history.undo()
        assert not history.redo()
        assert not history.can_undo
        assert not history.can_redo
        assert history.last_command_name is None

    def test_new_command_clears_redo(self, tree, history):
        history.execute(ChangeNodeText(ids(tree, "first"), "one"))
        history.undo()
        assert history.redo_count == 1
        history.execute(ChangeNodeText(ids(tree, "second"), "two"))
        assert history.redo_count == 0
        assert not history.redo()

    def test_rejected_command_changes_nothing(self, tree, history):
        history.execute(ChangeNodeText(ids(tree, "first"), "one"))
        history.undo()
        before = tree.copy()
        plan = ids(tree, "Plan")
        with pytest.raises(CycleRejected):
            history.execute(MoveNode(plan, ids(tree, "second")))
        assert tree == before
        assert history.undo_count == 0
        assert history.redo_count == 1

    def test_command_runs_once(self, tree, history):
        cmd = history.execute(ChangeNodeText(ids(tree, "first"), "one"))
        with pytest.raises(CommandError):
            history.execute(cmd)

    def test_undo_everything_restores_original(self, tree, history):
        before = tree.copy()
        plan, later = ids(tree, "Plan"), ids(tree, "Later")
        added = history.execute(AddNode(later, NodeType.LIST, "new"))
        history.execute(MoveNode(ids(tree, "second"), later))
        history.execute(RemoveNode(plan))
        history.execute(ChangeNodeText(added.created_id, "renamed"))
        assert plan not in tree

        while history.undo():
            pass
        assert tree == before
        tree.validate()

        while history.redo():
            pass
        assert tree[added.created_id].label == "renamed"
        assert [n.label for n in tree.children_of(later)] == ["renamed", "second"]
        tree.validate()

    def test_max_size_drops_oldest(self, tree):
        history = History(tree, max_size=2)
        first = ids(tree, "first")
        for text in ("a", "b", "c"):
            history.execute(ChangeNodeText(first, text))
        assert history.undo_count == 2
        history.undo()
        history.undo()
        assert not history.undo()
        assert tree[first].label == "a"

    def test_max_size_from_config(self, tree, monkeypatch):
        from mdxmap.config import reset_config

        monkeypatch.setenv("MDXMAP_HISTORY_SIZE", "7")
        reset_config()
        assert History(tree).max_size == 7

    def test_clear(self, tree, history):
        history.execute(ChangeNodeText(ids(tree, "first"), "one"))
        history.undo()
        history.clear()
        assert history.undo_count == history.redo_count == 0
