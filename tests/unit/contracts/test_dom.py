"""
Tier 0: Data Model Contract Tests

These tests pin down the tree arena and the placement rules that every
command relies on.
"""

import pytest

from mdxmap.dom import (
    CodePayload,
    ListKind,
    ListPayload,
    Node,
    NodeType,
    RootPayload,
    SectionPayload,
    Tree,
    resolve_placement,
)
from mdxmap.errors import InvalidTarget, PlacementRejected, TreeError


def section(node_id, text, level=1):
    return Node(node_id, NodeType.SECTION, SectionPayload(text, level))


def item(node_id, text, kind=ListKind.BULLET):
    return Node(node_id, NodeType.LIST, ListPayload(text, kind))


@pytest.fixture
def tree():
    """root -> [intro -> [para -> [a, b]], details -> [code]]"""
    t = Tree(Node("root", NodeType.ROOT, RootPayload("Doc")))
    t.attach(section("intro", "Intro"), "root")
    t.attach(item("para", "Some text", ListKind.PARAGRAPH), "intro")
    t.attach(item("a", "A"), "para")
    t.attach(item("b", "B"), "para")
    t.attach(section("details", "Details"), "root")
    t.attach(Node("code", NodeType.CODE, CodePayload("x = 1", "python")), "details")
    return t


class TestTreeBasics:
    def test_root_must_be_root_type(self):
        with pytest.raises(TreeError):
            Tree(section("s", "Not a root"))

    def test_lookup(self, tree):
        assert tree["intro"].label == "Intro"
        assert "code" in tree
        assert "missing" not in tree
        assert tree.get("missing") is None
        assert len(tree) == 7

    def test_require_unknown_id(self, tree):
        with pytest.raises(InvalidTarget):
            tree.require("missing")

    def test_parent_and_index(self, tree):
        assert tree.parent_of("b") == "para"
        assert tree.index_of("b") == 1
        assert tree.parent_of("root") is None

    def test_depth_first_order(self, tree):
        assert [n.id for n in tree] == ["root", "intro", "para", "a", "b", "details", "code"]

    def test_walk_depths(self, tree):
        depths = {n.id: d for n, d in tree.walk()}
        assert depths["root"] == 0
        assert depths["a"] == 3
        assert depths["code"] == 2

    def test_is_ancestor_is_inclusive(self, tree):
        assert tree.is_ancestor("intro", "a")
        assert tree.is_ancestor("a", "a")
        assert not tree.is_ancestor("a", "intro")

    def test_section_depth_and_height(self, tree):
        tree.attach(section("sub", "Sub", 2), "details")
        assert tree.section_depth("sub") == 2
        assert tree.section_height("details") == 2
        assert tree.section_height("code") == 0

    def test_validate_passes(self, tree):
        tree.validate()


class TestStructuralPrimitives:
    def test_attach_rejects_duplicate_id(self, tree):
        with pytest.raises(TreeError):
            tree.attach(item("a", "again"), "root")

    def test_detach_and_insert(self, tree):
        parent, index = tree.detach("a")
        assert (parent, index) == ("para", 0)
        assert tree["para"].children == ["b"]
        tree.insert("a", "para", 1)
        assert tree["para"].children == ["b", "a"]
        tree.validate()

    def test_insert_requires_detached_node(self, tree):
        with pytest.raises(TreeError):
            tree.insert("a", "intro")

    def test_extract_and_restore_subtree(self, tree):
        before = tree.copy()
        removed, parent, index = tree.extract_subtree("para")
        assert [n.id for n in removed] == ["para", "a", "b"]
        assert "a" not in tree
        tree.validate()

        tree.restore_subtree(removed, parent, index)
        tree.validate()
        assert tree == before

    def test_validate_detects_shared_child(self, tree):
        tree["details"].children.append("a")
        with pytest.raises(TreeError):
            tree.validate()

    def test_validate_detects_leaf_with_children(self, tree):
        tree["code"].children.append("a")
        with pytest.raises(TreeError):
            tree.validate()


class TestEquality:
    def test_copy_is_equal_and_independent(self, tree):
        other = tree.copy()
        assert other == tree
        other["a"].payload = ListPayload("changed")
        assert other != tree

    def test_signature_ignores_ids(self, tree):
        other = Tree(Node("r2", NodeType.ROOT, RootPayload("Doc")))
        other.attach(section("s1", "Intro"), "r2")
        other.attach(item("p1", "Some text", ListKind.PARAGRAPH), "s1")
        other.attach(item("x1", "A"), "p1")
        other.attach(item("x2", "B"), "p1")
        other.attach(section("s2", "Details", level=4), "r2")
        other.attach(Node("c1", NodeType.CODE, CodePayload("x = 1", "python")), "s2")
        assert other.structurally_equal(tree)
        assert other != tree

    def test_layout_fields_do_not_affect_equality(self, tree):
        other = tree.copy()
        from mdxmap.dom import Point, Size

        other["a"].position = Point(10, 20)
        other["a"].size = Size(5, 5)
        assert other == tree


class TestPlacement:
    def test_leaf_cannot_have_children(self, tree):
        with pytest.raises(PlacementRejected):
            resolve_placement(tree, tree["a"], "code", None)

    def test_section_only_under_root_or_section(self, tree):
        with pytest.raises(PlacementRejected):
            resolve_placement(tree, tree["details"], "para", None)

    def test_paragraph_only_owns_list_items(self, tree):
        with pytest.raises(PlacementRejected):
            resolve_placement(tree, tree["code"], "para", None)

    def test_content_goes_before_sections_by_default(self, tree):
        assert resolve_placement(tree, tree["code"], "root", None) == 0

    def test_sections_go_last_by_default(self, tree):
        new = section("new", "New")
        assert resolve_placement(tree, new, "root", None) == 2

    def test_content_after_section_rejected(self, tree):
        with pytest.raises(PlacementRejected):
            resolve_placement(tree, tree["code"], "root", 2)

    def test_section_before_content_rejected(self, tree):
        with pytest.raises(PlacementRejected):
            resolve_placement(tree, section("new", "New"), "intro", 0)

    def test_index_out_of_range(self, tree):
        with pytest.raises(PlacementRejected):
            resolve_placement(tree, item("new", "x"), "para", 5)

    def test_section_depth_limit(self, tree):
        parent = "details"
        for level in range(2, 7):
            tree.attach(section(f"s{level}", f"S{level}", level), parent)
            parent = f"s{level}"
        with pytest.raises(PlacementRejected):
            resolve_placement(tree, section("too-deep", "Too deep"), parent, None)
