"""
Unit tests for the markup parser: block detection, nesting and recovery.
"""

import logging

from mdxmap.dom import ListKind, NodeType, RawPayload
from mdxmap.parser import ROOT_ID, node_id, parse


def shape(tree, node_id=None):
    """(label, [children...]) view of a tree, ignoring ids."""
    node = tree[node_id or tree.root_id]
    return (node.label, [shape(tree, cid) for cid in node.children])


class TestParserBasics:
    def test_empty_document(self):
        tree = parse("")
        assert len(tree) == 1
        assert tree.root.id == ROOT_ID
        assert tree.root.label == "Untitled"

    def test_title_argument(self):
        assert parse("text", title="Notes").root.label == "Notes"

    def test_title_argument_overrides_frontmatter(self):
        tree = parse("---\ntitle: Doc\nauthor: Ann\n---\n", title="Other")
        assert tree.root.payload.title == "Other"
        assert tree.root.payload.frontmatter == {"author": "Ann"}

    def test_only_blank_lines(self):
        assert len(parse("\n\n   \n")) == 1

    def test_ids_are_deterministic(self):
        markup = "# A\n\ntext\n\n- item"
        assert [n.id for n in parse(markup)] == [n.id for n in parse(markup)]

    def test_id_format(self):
        tree = parse("# A")
        section = tree.children_of(ROOT_ID)[0]
        assert section.id == node_id(NodeType.SECTION, 1, section.payload.signature())
        assert section.id.startswith("section-1-")

    def test_identical_blocks_get_distinct_ids(self):
        tree = parse("- same\n- same")
        ids = [n.id for n in tree.children_of(ROOT_ID)]
        assert len(set(ids)) == 2


class TestNesting:
    def test_headings_nest_by_level(self):
        tree = parse("# A\n## B\n### C\n## D\n# E")
        assert shape(tree) == (
            "Untitled",
            [("A", [("B", [("C", [])]), ("D", [])]), ("E", [])],
        )

    def test_skipped_heading_level(self):
        tree = parse("# A\n### C\n## B")
        assert shape(tree) == ("Untitled", [("A", [("C", []), ("B", [])])])

    def test_content_goes_to_enclosing_section(self):
        tree = parse("# A\n\ntext\n\n```\ncode\n```")
        section = tree.children_of(ROOT_ID)[0]
        assert [c.type for c in tree.children_of(section.id)] == [NodeType.LIST, NodeType.CODE]

    def test_items_nest_by_indent(self):
        tree = parse("- a\n  - b\n    - c\n  - d\n- e")
        assert shape(tree) == (
            "Untitled",
            [("a", [("b", [("c", [])]), ("d", [])]), ("e", [])],
        )

    def test_paragraph_adopts_following_items(self):
        tree = parse("Intro text\n\n- one\n- two")
        (para,) = tree.children_of(ROOT_ID)
        assert para.is_paragraph
        assert [c.label for c in tree.children_of(para.id)] == ["one", "two"]

    def test_leaf_block_closes_paragraph(self):
        tree = parse("text\n\n> quote\n\n- item")
        assert [c.type for c in tree.children_of(ROOT_ID)] == [
            NodeType.LIST,
            NodeType.BLOCKQUOTE,
            NodeType.LIST,
        ]

    def test_paragraphs_are_siblings(self):
        tree = parse("one\n\ntwo")
        assert [c.label for c in tree.children_of(ROOT_ID)] == ["one", "two"]

    def test_separator_closes_paragraph(self):
        tree = parse("text\n\n<!-- -->\n\n- item")
        labels = [c.label for c in tree.children_of(ROOT_ID)]
        assert labels == ["text", "item"]

    def test_thematic_break_is_a_separator(self):
        tree = parse("text\n\n---\n\n- item")
        assert len(tree.children_of(ROOT_ID)) == 2

    def test_indented_paragraph_under_item(self):
        tree = parse("- item\n\n  more about it\n- next")
        item, nxt = tree.children_of(ROOT_ID)
        (para,) = tree.children_of(item.id)
        assert para.is_paragraph
        assert para.label == "more about it"
        assert nxt.label == "next"

    def test_leaf_under_item(self):
        tree = parse("- item\n\n  ```\n  code\n  ```")
        (item,) = tree.children_of(ROOT_ID)
        (code,) = tree.children_of(item.id)
        assert code.payload.code == "code"

    def test_heading_closes_items(self):
        tree = parse("# A\n- x\n  - y\n# B\n- z")
        a, b = tree.children_of(ROOT_ID)
        assert [c.label for c in tree.children_of(b.id)] == ["z"]


class TestBlockTypes:
    def test_directive_types(self):
        tree = parse('<Chart data={[1]} />\n\n<Math>x</Math>\n\n<KPI value="3" />\n\n<Note />')
        assert [c.type for c in tree.children_of(ROOT_ID)] == [
            NodeType.CHART,
            NodeType.MATH,
            NodeType.STATS,
            NodeType.COMPONENT,
        ]

    def test_ordered_and_task_items(self):
        tree = parse("1. one\n2. [x] two")
        one, two = tree.children_of(ROOT_ID)
        assert one.payload.kind is ListKind.ORDERED
        assert two.payload.checked is True

    def test_table_after_paragraph_line(self):
        tree = parse("text\n| a |\n| --- |")
        assert [c.type for c in tree.children_of(ROOT_ID)] == [NodeType.LIST, NodeType.TABLE]


class TestRecovery:
    def test_unclosed_fence_becomes_raw_component(self, caplog):
        with caplog.at_level(logging.WARNING, logger="mdxmap.parser"):
            tree = parse("# Heading\n\n```\ncode\n\n~~~\nmore\n~~~\n\n")
        (heading,) = tree.children_of(ROOT_ID)
        (broken,) = tree.children_of(heading.id)
        assert broken.type is NodeType.COMPONENT
        assert isinstance(broken.payload, RawPayload)
        # Everything after an unclosed fence belongs to it
        assert broken.payload.raw == "```\ncode\n\n~~~\nmore\n~~~"
        assert broken.payload.error
        assert "keeping the block as raw markup" in caplog.text

    def test_unclosed_comment_runs_to_the_end(self):
        tree = parse("-\n<!--\n  para\n---\n  - b\n")
        item, broken = tree.children_of(ROOT_ID)
        assert item.is_list_item
        assert broken.payload.raw == "<!--\n  para\n---\n  - b"

    def test_broken_component_keeps_its_lines(self):
        tree = parse('<Chart data={[1, 2\n\nafter')
        broken, after = tree.children_of(ROOT_ID)
        assert broken.payload.raw == "<Chart data={[1, 2"
        assert after.label == "after"

    def test_broken_frontmatter(self):
        tree = parse("---\n: [\n---\n# A")
        first, section = tree.children_of(ROOT_ID)
        assert first.type is NodeType.COMPONENT
        assert first.payload.raw == "---\n: [\n---"
        assert tree.root.label == "Untitled"
        assert section.label == "A"

    def test_never_raises(self):
        markup = "<A\n```\n<!--\n| x |\n|---|\n| 1 | 2 |\n---\nfoo: [\n"
        tree = parse(markup)
        tree.validate()


def test_sample_document(sample_markup):
    tree = parse(sample_markup)
    tree.validate()
    assert tree.root.label == "Quarterly Review"
    assert tree.root.payload.frontmatter == {"author": "Dana", "tags": ["planning", "metrics"]}
    assert len(tree) == 19

    intro, next_steps = tree.children_of(ROOT_ID)
    assert [c.label for c in tree.children_of(intro.id)] == [
        "Where we stand after the third quarter.",
        "Numbers",
        "Code",
    ]
    assert [c.type.value for c in tree.children_of(next_steps.id)] == [
        "list",
        "list",
        "list",
        "blockquote",
        "component",
        "component",
    ]


def test_tab_indent_uses_configured_tab_size(monkeypatch):
    from mdxmap.config import reset_config
    from mdxmap.formats.base import split_lines

    monkeypatch.setenv("MDXMAP_TAB_SIZE", "2")
    reset_config()
    assert split_lines("\t- b")[0].indent == 2
    assert split_lines("  \t- b")[0].indent == 4
