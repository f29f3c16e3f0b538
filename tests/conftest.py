"""Pytest configuration for the `tests/` suite.

Puts the repository root on `sys.path` so the suite also runs from a plain
checkout without an editable install.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _prepend_sys_path(path: Path) -> None:
    path_str = str(path)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


_REPO_ROOT = Path(__file__).resolve().parents[1]

_prepend_sys_path(_REPO_ROOT)


CATALOG_LINES = [
    "1. [express](https://www.npmjs.org/package/express) - 3000",
    "2. [react](https://www.npmjs.org/package/react) - 9000",
    "3. [vue](https://www.npmjs.org/package/vue) - 4000",
    "4. [moment](https://www.npmjs.org/package/moment) - 2500",
    "5. [loadash](https://www.npmjs.org/package/loadash) - 100",
]


@pytest.fixture
def catalog_file(tmp_path):
    """A catalog file with five packages, including the misspelled 'loadash'."""
    path = tmp_path / "exists.txt"
    path.write_text("\n".join(CATALOG_LINES) + "\n", encoding="utf-8")
    return path
