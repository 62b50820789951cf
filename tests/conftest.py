import os
from pathlib import Path

import pytest

from mdxmap.config import reset_config

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's config file and MDXMAP_* variables out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for key in list(os.environ):
        if key.startswith("MDXMAP_"):
            monkeypatch.delenv(key)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def sample_path():
    return FIXTURES / "sample.mdx"


@pytest.fixture
def sample_markup(sample_path):
    return sample_path.read_text()
