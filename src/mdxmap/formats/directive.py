"""
Embedded component tags and HTML comments.

Tags look like JSX with a capitalized name: `<Chart type="line" data={[1, 2]} />`
or `<Callout kind="note">body</Callout>`. Props are kept verbatim and never
evaluated. Comments and broken blocks are carried as raw markup on
`component` nodes so that serialization writes them back unchanged.
"""

from __future__ import annotations

import logging
import re

from ..dom import DirectivePayload, Node, NodeType, Prop, RawPayload
from ..errors import BlockMalformed, InvalidPayload
from .base import (
    EMPTY_COMMENT_PATTERN,
    Block,
    BlockGrammar,
    EmitContext,
    SourceLine,
    registry,
    split_lines,
    strip_indent,
)

logger = logging.getLogger(__name__)

TAG_START = re.compile(r"^<([A-Z][A-Za-z0-9_.]*)(?=[\s/>]|$)")
ATTR_NAME = re.compile(r"[A-Za-z_$][\w:.$-]*")

DIRECTIVE_TYPES = {
    "Chart": NodeType.CHART,
    "LineChart": NodeType.CHART,
    "BarChart": NodeType.CHART,
    "AreaChart": NodeType.CHART,
    "PieChart": NodeType.CHART,
    "Math": NodeType.MATH,
    "Equation": NodeType.MATH,
    "Formula": NodeType.MATH,
    "Stats": NodeType.STATS,
    "Metric": NodeType.STATS,
    "KPI": NodeType.STATS,
}

DEFAULT_NAMES = {
    NodeType.CHART: "Chart",
    NodeType.MATH: "Math",
    NodeType.STATS: "Stats",
    NodeType.COMPONENT: "Component",
}


def type_for_name(name: str) -> NodeType:
    return DIRECTIVE_TYPES.get(name, NodeType.COMPONENT)


class TagSyntaxError(ValueError):
    pass


def _skip_space(src: str, i: int) -> int:
    while i < len(src) and src[i].isspace():
        i += 1
    return i


def _match_brace(src: str, start: int) -> int:
    """Index of the brace closing the one at src[start]; string literals are skipped."""
    depth = 0
    i = start
    while i < len(src):
        ch = src[i]
        if ch in "\"'`":
            end = src.find(ch, i + 1)
            while end > 0 and src[end - 1] == "\\":
                end = src.find(ch, end + 1)
            if end < 0:
                raise TagSyntaxError("Unterminated string in expression")
            i = end
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    raise TagSyntaxError("Unbalanced braces in expression")


def parse_tag(src: str) -> tuple[str, tuple[Prop, ...], bool, int]:
    """Parse the opening tag at the start of src.

    Returns (name, props, self_closing, end offset). Raises TagSyntaxError.
    """
    m = TAG_START.match(src)
    if not m:
        raise TagSyntaxError("Not a component tag")
    name = m.group(1)
    props = []
    i = m.end()
    while True:
        i = _skip_space(src, i)
        if i >= len(src):
            raise TagSyntaxError(f"Unterminated <{name}> tag")
        if src.startswith("/>", i):
            return name, tuple(props), True, i + 2
        if src[i] == ">":
            return name, tuple(props), False, i + 1

        attr = ATTR_NAME.match(src, i)
        if not attr:
            raise TagSyntaxError(f"Unexpected {src[i]!r} in <{name}> tag")
        i = _skip_space(src, attr.end())
        if i < len(src) and src[i] == "=":
            i = _skip_space(src, i + 1)
            if i >= len(src):
                raise TagSyntaxError(f"Unterminated <{name}> tag")
            if src[i] in "\"'":
                close = src.find(src[i], i + 1)
                if close < 0:
                    raise TagSyntaxError(f"Unterminated string for {attr.group()!r}")
                props.append(Prop(attr.group(), src[i + 1:close], "string"))
                i = close + 1
            elif src[i] == "{":
                close = _match_brace(src, i)
                props.append(Prop(attr.group(), src[i + 1:close], "expression"))
                i = close + 1
            else:
                raise TagSyntaxError(f"Missing value for {attr.group()!r}")
        else:
            props.append(Prop(attr.group(), True, "flag"))


def format_prop(prop: Prop) -> str:
    if prop.kind == "flag":
        return prop.name
    if prop.kind == "expression":
        return f"{prop.name}={{{prop.value}}}"
    quote = "'" if '"' in prop.value else '"'
    return f"{prop.name}={quote}{prop.value}{quote}"


def format_directive(payload: DirectivePayload) -> list[str]:
    opening = " ".join([payload.name, *(format_prop(p) for p in payload.props)])
    if payload.body is None:
        return f"<{opening} />".split("\n")
    closing = f"</{payload.name}>"
    if "\n" not in payload.body and closing not in payload.body:
        return f"<{opening}>{payload.body}{closing}".split("\n")
    return [*f"<{opening}>".split("\n"), *payload.body.split("\n"), closing]


def reparse_whole(grammar: BlockGrammar, lines: list[SourceLine]) -> Block:
    try:
        block = grammar.consume(lines, 0)
    except BlockMalformed as e:
        raise InvalidPayload(str(e)) from e
    if block.end != len(lines):
        raise InvalidPayload("Unexpected text after the block")
    return block


class DirectiveGrammar(BlockGrammar):
    priority = 50
    payload_types = (DirectivePayload, RawPayload)

    @property
    def name(self) -> str:
        return "directive"

    @property
    def node_types(self) -> tuple[NodeType, ...]:
        return (NodeType.CHART, NodeType.MATH, NodeType.STATS, NodeType.COMPONENT)

    def match(self, lines: list[SourceLine], index: int) -> bool:
        return bool(TAG_START.match(lines[index].text))

    def consume(self, lines: list[SourceLine], start: int) -> Block:
        opening = lines[start]
        run_end = start
        while run_end < len(lines) and not lines[run_end].blank:
            run_end += 1
        run = lines[start:run_end]
        src = "\n".join(line.text for line in run)

        try:
            name, props, self_closing, offset = parse_tag(src)
        except TagSyntaxError as e:
            raise BlockMalformed(str(e), run_end) from e

        tag_line = start + src.count("\n", 0, offset)
        line_end = src.find("\n", offset)
        rest = src[offset:line_end if line_end >= 0 else len(src)]
        node_type = type_for_name(name)

        if self_closing:
            if rest.strip():
                raise BlockMalformed(f"Unexpected text after <{name} />", run_end)
            return Block(node_type, DirectivePayload(name, props), tag_line + 1)

        closing = f"</{name}>"
        if closing in rest:
            body, _, trailing = rest.partition(closing)
            if trailing.strip():
                raise BlockMalformed(f"Unexpected text after {closing}", run_end)
            return Block(node_type, DirectivePayload(name, props, body), tag_line + 1)

        body_lines = [rest.strip()] if rest.strip() else []
        depth = 1
        for end in range(tag_line + 1, len(lines)):
            text = lines[end].text.strip()
            if text == closing:
                depth -= 1
                if depth == 0:
                    payload = DirectivePayload(name, props, "\n".join(body_lines))
                    return Block(node_type, payload, end + 1)
            elif TAG_START.match(text) and TAG_START.match(text).group(1) == name:
                if not text.endswith("/>") and closing not in text:
                    depth += 1
            body_lines.append(strip_indent(lines[end].raw, opening.indent))

        raise BlockMalformed(f"Missing {closing} for tag opened on line {opening.number}", tag_line + 1)

    def emit(self, node: Node, context: EmitContext) -> list[str]:
        if isinstance(node.payload, RawPayload):
            return node.payload.raw.split("\n")
        return format_directive(node.payload)

    def text_of(self, payload) -> str:
        if isinstance(payload, RawPayload):
            return payload.raw
        return "\n".join(format_directive(payload))

    def edit_text(self, payload, text: str):
        lines = split_lines(text.strip("\n"))
        if isinstance(payload, RawPayload):
            # Raw markup may become a comment or a plain component tag
            comment = registry.get_by_name("comment")
            if lines and comment.match(lines, 0):
                return reparse_whole(comment, lines).payload
            expected = NodeType.COMPONENT
        else:
            expected = type_for_name(payload.name)

        if not lines or not self.match(lines, 0):
            raise InvalidPayload("Text is not a component tag")
        block = reparse_whole(self, lines)
        if block.node_type is not expected:
            raise InvalidPayload(
                f"<{block.payload.name}> would change the node type from "
                f"{expected.value} to {block.node_type.value}"
            )
        return block.payload

    def accept_payload(self, node_type: NodeType, payload):
        payload = super().accept_payload(node_type, payload)
        if isinstance(payload, RawPayload):
            written_as = NodeType.COMPONENT
        else:
            written_as = type_for_name(payload.name)
        if written_as is not node_type:
            raise InvalidPayload(
                f"<{payload.label}> reads back as {written_as.value}, not {node_type.value}"
            )
        return payload

    def default_payload(self, node_type: NodeType, text: str) -> DirectivePayload:
        lines = split_lines(text.strip("\n"))
        if lines and self.match(lines, 0):
            try:
                block = self.consume(lines, 0)
            except BlockMalformed as e:
                raise InvalidPayload(str(e)) from e
            if block.node_type is node_type:
                return block.payload
            logger.debug(f"<{block.payload.name}> is not a {node_type.value} tag, using default name")
        return DirectivePayload(DEFAULT_NAMES.get(node_type, "Component"))


class CommentGrammar(BlockGrammar):
    """HTML comments, kept verbatim. An empty comment is a separator instead."""

    priority = 60
    payload_types = (RawPayload,)

    @property
    def name(self) -> str:
        return "comment"

    @property
    def node_types(self) -> tuple[NodeType, ...]:
        return (NodeType.COMPONENT,)

    def match(self, lines: list[SourceLine], index: int) -> bool:
        text = lines[index].text
        return text.startswith("<!--") and not EMPTY_COMMENT_PATTERN.match(text)

    def consume(self, lines: list[SourceLine], start: int) -> Block:
        opening = lines[start]
        for end in range(start, len(lines)):
            text = lines[end].text
            if "-->" in (text[4:] if end == start else text):
                raw = [strip_indent(line.raw, opening.indent) for line in lines[start:end + 1]]
                return Block(NodeType.COMPONENT, RawPayload("\n".join(raw)), end + 1)
        # An unclosed comment runs to the end of the document
        raise BlockMalformed(f"Comment opened on line {opening.number} is never closed", len(lines))

    def emit(self, node: Node, context: EmitContext) -> list[str]:
        return node.payload.raw.split("\n")

    def default_payload(self, node_type: NodeType, text: str) -> RawPayload:
        return RawPayload(f"<!-- {text} -->")


registry.register(DirectiveGrammar())
registry.register(CommentGrammar())
