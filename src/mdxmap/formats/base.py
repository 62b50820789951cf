"""
Base grammar interface and registry.

Each grammar handles one block syntax in both directions: it recognizes and
consumes the block's lines when parsing, and writes a node of its type back
out when serializing. The registry keeps the parse table (detection order)
and the serialize table (grammar name -> grammar).
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..config import get_config
from ..dom import Node, NodeType, Payload
from ..errors import InvalidPayload
from ..styles import style_of

# Lines that end paragraph adjacency without producing a node
THEMATIC_BREAK_PATTERN = re.compile(r"^([-*_])(?:[ \t]*\1){2,}[ \t]*$")
EMPTY_COMMENT_PATTERN = re.compile(r"^<!--\s*-->[ \t]*$")

SEPARATOR = "<!-- -->"


@dataclass(frozen=True)
class SourceLine:
    """One markup line with its indentation measured in columns."""
    number: int  # 1-based line number in the source document
    indent: int
    text: str  # line with leading whitespace removed
    raw: str

    @property
    def blank(self) -> bool:
        return not self.text.strip()


@dataclass
class Block:
    """Result of consuming one block: what to create and where scanning resumes."""
    node_type: NodeType
    payload: Payload
    end: int


@dataclass
class EmitContext:
    """Position-dependent facts the serializer hands to a grammar."""
    heading_level: int = 0
    ordinal: int = 0


def split_lines(content: str, tab_size: int | None = None) -> list[SourceLine]:
    if tab_size is None:
        tab_size = get_config().parser.tab_size
    lines = []
    for number, raw in enumerate(content.splitlines(), start=1):
        text = raw.lstrip(" \t")
        leading = raw[: len(raw) - len(text)]
        lines.append(SourceLine(number, len(leading.expandtabs(tab_size)), text, raw))
    return lines


def strip_indent(raw: str, columns: int, tab_size: int | None = None) -> str:
    """Remove up to `columns` columns of leading whitespace."""
    if tab_size is None:
        tab_size = get_config().parser.tab_size
    width = 0
    i = 0
    while i < len(raw) and width < columns and raw[i] in " \t":
        width = (width // tab_size + 1) * tab_size if raw[i] == "\t" else width + 1
        i += 1
    return raw[i:]


def is_separator(line: SourceLine) -> bool:
    return bool(
        THEMATIC_BREAK_PATTERN.match(line.text) or EMPTY_COMMENT_PATTERN.match(line.text)
    )


def unescape(text: str) -> str:
    """Drop the single leading backslash the serializer adds to protect a text line."""
    text = text.rstrip()
    return text[1:] if text.startswith("\\") else text


def escape_text_lines(lines: list[str], first_is_inline: bool = False) -> list[str]:
    """Backslash-protect text lines that would otherwise be read as markup.

    Walks bottom-up because table detection looks one line ahead. With
    first_is_inline the first line follows a list marker, so only a leading
    backslash needs protecting there.
    """
    out = list(lines)
    for k in range(len(out) - 1, -1, -1):
        text = out[k]
        if text.startswith("\\"):
            out[k] = "\\" + text
            continue
        if k == 0 and first_is_inline:
            continue
        if not text:
            out[k] = "\\"
            continue
        probe = split_lines("\n".join(out[k:k + 2]))
        if probe and (is_separator(probe[0]) or registry.detect(probe, 0) is not None):
            out[k] = "\\" + text
    return out


class BlockGrammar(ABC):
    """Base class for block grammars."""

    # How a block of this grammar takes part in nesting:
    # heading | item | paragraph | leaf
    nesting: str = "leaf"
    # Lower runs first during detection
    priority: int = 100
    # Payload classes this grammar writes
    payload_types: tuple[type, ...] = ()

    @property
    @abstractmethod
    def name(self) -> str:
        """Grammar name, referenced by the style registry."""
        ...

    @property
    @abstractmethod
    def node_types(self) -> tuple[NodeType, ...]:
        """Node types this grammar produces."""
        ...

    def match(self, lines: list[SourceLine], index: int) -> bool:
        """True if a block of this grammar starts at lines[index]."""
        return False

    @abstractmethod
    def consume(self, lines: list[SourceLine], start: int) -> Block:
        """
        Consume the block starting at lines[start].

        Raises BlockMalformed when the block is recognizably this grammar but broken.
        """
        ...

    @abstractmethod
    def emit(self, node: Node, context: EmitContext) -> list[str]:
        """Write the node's own lines (no children, no outer indentation)."""
        ...

    def child_indent(self, node: Node, context: EmitContext) -> int:
        """Extra indentation for the node's children."""
        return 0

    def edit_text(self, payload: Payload, text: str) -> Payload:
        """Return a payload carrying new text. Raises InvalidPayload if impossible."""
        raise InvalidPayload(f"{self.name} blocks have no editable text")

    def text_of(self, payload: Payload) -> str:
        return payload.label

    def accept_payload(self, node_type: NodeType, payload: Payload) -> Payload:
        """Check a payload built by the caller for a new node, returned normalized.

        Raises InvalidPayload unless the payload survives being written out
        and read back by this grammar.
        """
        if not isinstance(payload, self.payload_types):
            raise InvalidPayload(
                f"{type(payload).__name__} cannot be written as a {node_type.value} block"
            )
        return self.edit_text(payload, self.text_of(payload))

    @abstractmethod
    def default_payload(self, node_type: NodeType, text: str) -> Payload:
        """Payload for a freshly created node."""
        ...


class GrammarRegistry:
    """Registry of grammars with detection (parse table) and lookup (serialize table)."""

    def __init__(self):
        self._detectable: list[BlockGrammar] = []
        self._by_name: dict[str, BlockGrammar] = {}
        self._fallback: BlockGrammar | None = None

    def register(
        self,
        grammar: BlockGrammar,
        *,
        detectable: bool = True,
        fallback: bool = False,
    ) -> None:
        """Register a grammar. Detection runs in priority order."""
        if fallback:
            self._fallback = grammar
        elif detectable:
            self._detectable.append(grammar)
            self._detectable.sort(key=lambda g: g.priority)
        # First registered wins for name conflicts
        if grammar.name not in self._by_name:
            self._by_name[grammar.name] = grammar

    def get_by_name(self, name: str) -> BlockGrammar | None:
        return self._by_name.get(name)

    def for_type(self, node_type: NodeType) -> BlockGrammar:
        """Serialize-table lookup via the style registry's grammar name."""
        grammar = self._by_name.get(style_of(node_type).grammar)
        if grammar is None:
            raise LookupError(f"No grammar registered for {node_type.value}")
        return grammar

    def detect(self, lines: list[SourceLine], index: int) -> BlockGrammar | None:
        """First grammar whose block starts at lines[index], fallback excluded."""
        # A leading backslash marks an escaped text line
        if lines[index].text.startswith("\\"):
            return None
        for grammar in self._detectable:
            if grammar.match(lines, index):
                return grammar
        return None

    def starts_block(self, lines: list[SourceLine], index: int) -> bool:
        """True if lines[index] ends a running paragraph."""
        line = lines[index]
        return line.blank or is_separator(line) or self.detect(lines, index) is not None

    @property
    def fallback(self) -> BlockGrammar:
        if self._fallback is None:
            raise RuntimeError("No fallback grammar registered")
        return self._fallback


# Global registry instance
registry = GrammarRegistry()
