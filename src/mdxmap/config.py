"""
Configuration for mdxmap.

All tunable parameters in one place. Loaded from:
1. Defaults (this file)
2. Config file (~/.config/mdxmap/config.toml) if exists
3. Environment variables (MDXMAP_*) override file
4. CLI flags override everything
"""

from __future__ import annotations

import contextlib
import logging
import os
import tomllib  # stdlib in 3.11+
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class LayoutConfig:
    """Spacing and orientation defaults for the diagram layout."""
    orientation: str = "balanced"  # top_down | left_right | balanced
    sibling_gap: float = 20.0  # secondary axis, between sibling subtrees
    level_gap: float = 80.0  # primary axis, between a parent and its children
    edge_style: str = "orthogonal"  # straight | orthogonal
    min_node_size: float = 1.0  # non-positive sizes are clamped up to this
    pad_width: float = 0.0  # extra breathing room added to measured sizes
    pad_height: float = 0.0


@dataclass
class HistoryConfig:
    """Undo history settings."""
    max_size: int = 50


@dataclass
class ParserConfig:
    """Markup parsing settings."""
    default_title: str = "Untitled"
    tab_size: int = 4


@dataclass
class Config:
    """Root config with all settings."""
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)


def positive_int(value) -> int:
    """int() that refuses zero and negatives."""
    n = int(value)
    if n <= 0:
        raise ValueError(f"expected a positive integer, got {value!r}")
    return n


def get_config_path() -> Path:
    """Get config file path, respecting XDG."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "mdxmap" / "config.toml"
    return Path.home() / ".config" / "mdxmap" / "config.toml"


def load_config() -> Config:
    """Load config from file if exists, else return defaults."""
    config = Config()
    path = get_config_path()

    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            config = _apply_toml(config, data)
        except (OSError, tomllib.TOMLDecodeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable config file {path}: {e}")

    # env var overrides
    config = _apply_env(config)

    return config


def _apply_toml(config: Config, data: dict) -> Config:
    """Apply toml data to config."""
    if "layout" in data:
        lay = data["layout"]
        if "orientation" in lay:
            config.layout.orientation = str(lay["orientation"])
        if "sibling_gap" in lay:
            config.layout.sibling_gap = float(lay["sibling_gap"])
        if "level_gap" in lay:
            config.layout.level_gap = float(lay["level_gap"])
        if "edge_style" in lay:
            config.layout.edge_style = str(lay["edge_style"])
        if "min_node_size" in lay:
            config.layout.min_node_size = float(lay["min_node_size"])
        if "pad_width" in lay:
            config.layout.pad_width = float(lay["pad_width"])
        if "pad_height" in lay:
            config.layout.pad_height = float(lay["pad_height"])

    if "history" in data:
        h = data["history"]
        if "max_size" in h:
            config.history.max_size = int(h["max_size"])

    if "parser" in data:
        p = data["parser"]
        if "default_title" in p:
            config.parser.default_title = str(p["default_title"])
        if "tab_size" in p:
            config.parser.tab_size = positive_int(p["tab_size"])

    return config


def _apply_env(config: Config) -> Config:
    """Apply environment variable overrides."""
    env_map: dict[str, tuple[str, str, type]] = {
        "MDXMAP_ORIENTATION": ("layout", "orientation", str),
        "MDXMAP_SIBLING_GAP": ("layout", "sibling_gap", float),
        "MDXMAP_LEVEL_GAP": ("layout", "level_gap", float),
        "MDXMAP_EDGE_STYLE": ("layout", "edge_style", str),
        "MDXMAP_MIN_NODE_SIZE": ("layout", "min_node_size", float),
        "MDXMAP_PAD_WIDTH": ("layout", "pad_width", float),
        "MDXMAP_PAD_HEIGHT": ("layout", "pad_height", float),
        "MDXMAP_HISTORY_SIZE": ("history", "max_size", int),
        "MDXMAP_DEFAULT_TITLE": ("parser", "default_title", str),
        "MDXMAP_TAB_SIZE": ("parser", "tab_size", positive_int),
    }

    for env_key, (section, attr, conv) in env_map.items():
        val = os.environ.get(env_key)
        if val is not None:
            with contextlib.suppress(ValueError, AttributeError):
                setattr(getattr(config, section), attr, conv(val))

    return config


# Module-level config instance, loaded once on first use
_config: Config | None = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() reloads it."""
    global _config
    _config = None
