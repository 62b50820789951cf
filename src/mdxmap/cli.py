"""
CLI interface for mdxmap.

Reads markup from a file or stdin, builds the tree, lays it out and prints
an outline, JSON or normalized markup.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys

from .config import get_config
from .dom import Tree
from .layout import EdgeStyle, LayoutOptions, LayoutResult, Orientation, layout
from .parser import parse
from .serializer import serialize
from .styles import text_metrics

logger = logging.getLogger(__name__)


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    get_config()

    parser = argparse.ArgumentParser(
        prog="mdxmap",
        description="Turn a markup document into a laid-out mind map and back",
    )

    parser.add_argument(
        "file",
        nargs="?",
        help="Input file (reads from stdin if not provided)",
    )

    parser.add_argument(
        "--format",
        "-f",
        choices=["outline", "json", "markdown"],
        default="outline",
        help="Output format (default: outline)",
    )

    parser.add_argument(
        "--orientation",
        "-o",
        choices=[o.value for o in Orientation],
        help="Layout orientation (default from config: balanced)",
    )

    parser.add_argument(
        "--sibling-gap",
        type=float,
        help="Minimum gap between sibling subtrees",
    )

    parser.add_argument(
        "--level-gap",
        type=float,
        help="Gap between a parent and its children",
    )

    parser.add_argument(
        "--edges",
        choices=[e.value for e in EdgeStyle],
        help="Edge routing style",
    )

    parser.add_argument(
        "--title",
        "-t",
        type=str,
        help="Document title (overrides front matter)",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log debug output to stderr",
    )

    return parser.parse_args(args)


def read_input(filepath: str | None) -> str:
    """Read from file or stdin."""
    if filepath:
        with open(filepath, encoding="utf-8") as f:
            return f.read()
    return sys.stdin.read()


def build_options(parsed: argparse.Namespace) -> LayoutOptions:
    """Config defaults overridden by CLI flags."""
    options = LayoutOptions.from_config()
    overrides = {}
    if parsed.orientation:
        overrides["orientation"] = Orientation(parsed.orientation)
    if parsed.edges:
        overrides["edge_style"] = EdgeStyle(parsed.edges)
    for name in ("sibling_gap", "level_gap"):
        value = getattr(parsed, name)
        if value is None:
            continue
        if value < 0:
            raise ValueError(f"--{name.replace('_', '-')} must be >= 0, got {value}")
        overrides[name] = value
    return dataclasses.replace(options, **overrides)


def format_outline(tree: Tree, result: LayoutResult) -> str:
    """One line per node, indented by depth, with position and size."""
    lines = []
    for node, depth in tree.walk():
        pos = result.positions[node.id]
        size = result.sizes[node.id]
        label = node.label.split("\n", 1)[0]
        lines.append(
            f"{'  ' * depth}{node.type.value} {label!r} "
            f"@ ({pos.x:.0f}, {pos.y:.0f}) {size.width:.0f}x{size.height:.0f}"
        )
    return "\n".join(lines)


def format_json(tree: Tree, result: LayoutResult) -> str:
    nodes = []
    for node in tree:
        pos = result.positions[node.id]
        size = result.sizes[node.id]
        nodes.append({
            "id": node.id,
            "type": node.type.value,
            "label": node.label,
            "parent": tree.parent_of(node.id),
            "children": list(node.children),
            "side": result.sides.get(node.id),
            "position": {"x": pos.x, "y": pos.y},
            "size": {"width": size.width, "height": size.height},
        })
    edges = [
        {
            "source": edge.source,
            "target": edge.target,
            "source_side": edge.source_side,
            "target_side": edge.target_side,
            "points": [[p.x, p.y] for p in edge.points],
        }
        for edge in result.edges
    ]
    top_left, bottom_right = result.bounds()
    document = {
        "title": tree.root.label,
        "nodes": nodes,
        "edges": edges,
        "bounds": [top_left.x, top_left.y, bottom_right.x, bottom_right.y],
    }
    return json.dumps(document, indent=2, ensure_ascii=False)


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parsed = parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        options = build_options(parsed)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        content = read_input(parsed.file)
    except FileNotFoundError:
        print(f"Error: File not found: {parsed.file}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return 1

    logger.debug(f"Read {len(content)} characters from {parsed.file or 'stdin'}")
    tree = parse(content, title=parsed.title)

    if parsed.format == "markdown":
        sys.stdout.write(serialize(tree))
        return 0

    result = layout(tree, text_metrics(tree), options)
    if parsed.format == "json":
        print(format_json(tree, result))
    else:
        print(format_outline(tree, result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
