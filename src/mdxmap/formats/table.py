"""
Pipe table grammar (header row, delimiter row, body rows).
"""

from __future__ import annotations

import re

from ..dom import Node, NodeType, TablePayload
from ..errors import BlockMalformed, InvalidPayload
from .base import Block, BlockGrammar, EmitContext, SourceLine, registry, split_lines
from .lists import ITEM_PATTERN

DELIMITER_PATTERN = re.compile(
    r"^\|?[ \t]*:?-+:?[ \t]*(?:\|[ \t]*:?-+:?[ \t]*)*\|?[ \t]*$"
)
CELL_SPLIT = re.compile(r"(?<!\\)\|")
# A header cell like "---" would turn the header row into a delimiter row
DASH_CELL = re.compile(r"^\\*:?-+:?$")


def split_row(text: str) -> list[str]:
    row = text.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    return [_unescape_cell(cell) for cell in CELL_SPLIT.split(row)]


def _unescape_cell(cell: str) -> str:
    cell = cell.strip().replace("\\|", "|")
    if cell.startswith("\\") and DASH_CELL.match(cell):
        return cell[1:]
    return cell


def parse_alignment(cell: str) -> str | None:
    cell = cell.strip()
    left, right = cell.startswith(":"), cell.endswith(":")
    if left and right:
        return "center"
    if right:
        return "right"
    if left:
        return "left"
    return None


def delimiter_cell(align: str | None) -> str:
    return {"left": ":---", "center": ":---:", "right": "---:"}.get(align, "---")


def escape_cell(cell: str) -> str:
    cell = cell.replace("|", "\\|").replace("\n", " ")
    return "\\" + cell if DASH_CELL.match(cell) else cell


def is_delimiter(line: SourceLine) -> bool:
    return "|" in line.text and bool(DELIMITER_PATTERN.match(line.text))


class TableGrammar(BlockGrammar):
    priority = 20
    payload_types = (TablePayload,)

    @property
    def name(self) -> str:
        return "table"

    @property
    def node_types(self) -> tuple[NodeType, ...]:
        return (NodeType.TABLE,)

    def match(self, lines: list[SourceLine], index: int) -> bool:
        if index + 1 >= len(lines):
            return False
        head, delimiter = lines[index], lines[index + 1]
        # List items win over table rows
        if ITEM_PATTERN.match(head.text) or ITEM_PATTERN.match(delimiter.text):
            return False
        return "|" in head.text and not is_delimiter(head) and is_delimiter(delimiter)

    def consume(self, lines: list[SourceLine], start: int) -> Block:
        headers = split_row(lines[start].text)
        delimiter = split_row(lines[start + 1].text)

        end = start + 2
        while end < len(lines) and not lines[end].blank and "|" in lines[end].text:
            end += 1

        if len(delimiter) != len(headers):
            raise BlockMalformed(
                f"Table delimiter has {len(delimiter)} columns, header has {len(headers)}",
                end,
            )

        rows = []
        for offset, line in enumerate(lines[start + 2:end]):
            cells = split_row(line.text)
            if len(cells) > len(headers):
                raise BlockMalformed(
                    f"Table row {offset + 1} has {len(cells)} cells, header has {len(headers)}",
                    end,
                )
            cells += [""] * (len(headers) - len(cells))
            rows.append(tuple(cells))

        payload = TablePayload(
            headers=tuple(headers),
            rows=tuple(rows),
            align=tuple(parse_alignment(cell) for cell in delimiter),
        )
        return Block(NodeType.TABLE, payload, end)

    def emit(self, node: Node, context: EmitContext) -> list[str]:
        payload: TablePayload = node.payload
        width = len(payload.headers)
        align = list(payload.align[:width]) + [None] * (width - len(payload.align))

        def row(cells) -> str:
            cells = list(cells[:width]) + [""] * (width - len(cells))
            return "| " + " | ".join(escape_cell(c) for c in cells) + " |"

        lines = [row(payload.headers)]
        lines.append("| " + " | ".join(delimiter_cell(a) for a in align) + " |")
        lines.extend(row(r) for r in payload.rows)
        return lines

    def text_of(self, payload: TablePayload) -> str:
        return "\n".join(self.emit(Node("", NodeType.TABLE, payload), EmitContext()))

    def edit_text(self, payload: TablePayload, text: str) -> TablePayload:
        lines = split_lines(text.strip("\n"))
        if not lines or not self.match(lines, 0):
            raise InvalidPayload("Text is not a table (header row and delimiter row expected)")
        try:
            block = self.consume(lines, 0)
        except BlockMalformed as e:
            raise InvalidPayload(str(e)) from e
        if block.end != len(lines):
            raise InvalidPayload("Unexpected text after the table")
        return block.payload

    def default_payload(self, node_type: NodeType, text: str) -> TablePayload:
        lines = split_lines(text.strip("\n"))
        if lines and self.match(lines, 0):
            return self.edit_text(TablePayload(headers=()), text)
        return TablePayload(headers=(" ".join(text.split()) or "Column",), align=(None,))


registry.register(TableGrammar())
