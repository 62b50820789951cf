"""
Import every grammar so the registry's parse and serialize tables are complete.
"""

from __future__ import annotations

from . import code as _code  # noqa: F401 - fenced code
from . import directive as _directive  # noqa: F401 - component tags, comments
from . import frontmatter as _frontmatter  # noqa: F401 - YAML front matter
from . import heading as _heading  # noqa: F401 - ATX headings
from . import lists as _lists  # noqa: F401 - list items, paragraph fallback
from . import quote as _quote  # noqa: F401 - blockquotes
from . import table as _table  # noqa: F401 - pipe tables
from .base import registry

__all__ = ["registry"]
