"""
Exception taxonomy for mdxmap.

Parsing problems never escape parse(): grammars raise BlockMalformed and the
parser turns the offending lines into an error-marker leaf. Command errors are
raised synchronously by History.execute() before the tree is touched.
"""

from __future__ import annotations


class MdxMapError(Exception):
    """Base class for all mdxmap errors."""


class TreeError(MdxMapError):
    """A tree invariant is violated (cycle, orphan, duplicate id, ...)."""


class BlockMalformed(MdxMapError):
    """A single markup block could not be parsed.

    `end` is the index of the first line after the offending block, so the
    parser can resume scanning from there.
    """

    def __init__(self, message: str, end: int):
        super().__init__(message)
        self.end = end


class CommandError(MdxMapError):
    """A command was rejected; the tree is unchanged."""


class InvalidTarget(CommandError):
    """A command references a node id that does not exist (or may not be touched)."""


class CycleRejected(CommandError):
    """A move would make a node its own ancestor."""


class PlacementRejected(CommandError):
    """The target position cannot be expressed in markup (e.g. a heading inside a list)."""


class InvalidPayload(CommandError):
    """New node text could not be turned into a payload for the node's grammar."""
