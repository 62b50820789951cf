"""
Integration tests for CLI.
"""

import io
import json
from pathlib import Path

import pytest

from mdxmap.cli import build_options, main, parse_args, read_input
from mdxmap.layout import EdgeStyle, Orientation

FIXTURES = Path(__file__).parent.parent / "fixtures"
SAMPLE = str(FIXTURES / "sample.mdx")


class TestParseArgs:
    def test_defaults(self):
        args = parse_args([])
        assert args.file is None
        assert args.format == "outline"
        assert args.orientation is None
        assert args.title is None
        assert not args.verbose

    def test_all_flags(self):
        args = parse_args([
            "doc.mdx",
            "--format", "json",
            "--orientation", "top_down",
            "--sibling-gap", "5",
            "--level-gap", "15",
            "--edges", "straight",
            "--title", "Board",
            "-v",
        ])
        assert args.file == "doc.mdx"
        assert args.format == "json"
        assert args.orientation == "top_down"
        assert args.sibling_gap == 5.0
        assert args.level_gap == 15.0
        assert args.edges == "straight"
        assert args.title == "Board"
        assert args.verbose

    def test_short_flags(self):
        args = parse_args(["-f", "markdown", "-o", "left_right", "-t", "T"])
        assert (args.format, args.orientation, args.title) == ("markdown", "left_right", "T")

    def test_unknown_orientation(self):
        with pytest.raises(SystemExit):
            parse_args(["--orientation", "diagonal"])


class TestBuildOptions:
    def test_flags_override_config(self):
        options = build_options(parse_args(["-o", "left_right", "--edges", "straight", "--level-gap", "9"]))
        assert options.orientation is Orientation.LEFT_RIGHT
        assert options.edge_style is EdgeStyle.STRAIGHT
        assert options.level_gap == 9.0
        assert options.sibling_gap == 20.0

    def test_negative_gap(self):
        with pytest.raises(ValueError):
            build_options(parse_args(["--sibling-gap", "-1"]))


class TestReadInput:
    def test_file(self):
        assert read_input(SAMPLE).startswith("---\ntitle: Quarterly Review")

    def test_stdin(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("# From stdin\n"))
        assert read_input(None) == "# From stdin\n"


class TestMain:
    def test_outline(self, capsys):
        assert main([SAMPLE]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out[0].startswith("root 'Quarterly Review' @ (")
        assert any(line.startswith("  section 'Intro'") for line in out)
        assert any("chart 'Chart'" in line for line in out)

    def test_json(self, capsys):
        assert main([SAMPLE, "--format", "json", "-o", "top_down"]) == 0
        doc = json.loads(capsys.readouterr().out)
        assert doc["title"] == "Quarterly Review"
        assert len(doc["nodes"]) == 19
        assert len(doc["edges"]) == 18
        root = doc["nodes"][0]
        assert root["parent"] is None
        assert root["side"] == "center"
        assert {n["side"] for n in doc["nodes"][1:]} == {"bottom"}
        left, top, right, bottom = doc["bounds"]
        assert left < right and top < bottom

    def test_markdown(self, capsys):
        assert main([SAMPLE, "-f", "markdown"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("---\ntitle: Quarterly Review\n")
        assert "\n## Numbers\n" in out
        assert "<Chart type=\"line\" data={[120, 134]} />" in out

    def test_title_flag(self, capsys):
        assert main([SAMPLE, "-f", "markdown", "--title", "Board"]) == 0
        assert capsys.readouterr().out.startswith("---\ntitle: Board\n")

    def test_stdin(self, capsys, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("# A\n\n- b\n"))
        assert main(["-f", "markdown"]) == 0
        assert capsys.readouterr().out == "# A\n\n- b\n"

    def test_missing_file(self, capsys):
        assert main(["/nonexistent/doc.mdx"]) == 1
        assert "Error: File not found" in capsys.readouterr().err

    def test_bad_gap(self, capsys):
        assert main([SAMPLE, "--level-gap", "-5"]) == 1
        assert "Error: --level-gap must be >= 0" in capsys.readouterr().err

    def test_bad_config_value(self, capsys, monkeypatch):
        from mdxmap.config import reset_config

        monkeypatch.setenv("MDXMAP_EDGE_STYLE", "curvy")
        reset_config()
        assert main([SAMPLE]) == 1
        assert capsys.readouterr().err.startswith("Error: ")
