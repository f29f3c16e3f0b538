"""
Package Catalog Store

Keeps the append-only catalog of previously seen packages, both in memory and
in a line-oriented file (``exists.txt`` by default). Each line reads::

    <index>. [<name>](<url>) - <downloads>

New packages are appended one line at a time; changes to an existing entry
require regenerating the whole file with ``rewrite()``.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

CATALOG_BASE_URL = "https://www.npmjs.org/package/"
DEFAULT_CATALOG_FILE = "exists.txt"

# Lines that do not match are skipped on load
CATALOG_LINE_PATTERN = re.compile(r"(\d+)\.\s+\[([^\]]+)\]\(([^)]+)\)\s+-\s+(\d+)")

# Characters the line format cannot carry in a name
_UNREPRESENTABLE_CHARS = frozenset("[]()\r\n")


def package_url(name: str) -> str:
    """Reference URL for a package name."""
    return f"{CATALOG_BASE_URL}{name}"


@dataclass
class CatalogEntry:
    """A single known package in the catalog"""

    index: int
    name: str
    url: str
    downloads: int = 0

    def to_line(self) -> str:
        """Render the entry in the catalog file format (without newline)."""
        return f"{self.index}. [{self.name}]({self.url}) - {self.downloads}"

    @classmethod
    def from_line(cls, line: str) -> "CatalogEntry | None":
        """Parse one catalog line, returning None when it does not match."""
        match = CATALOG_LINE_PATTERN.search(line)
        if not match:
            return None
        index, name, url, downloads = match.groups()
        return cls(index=int(index), name=name, url=url, downloads=int(downloads))


class PackageCatalog:
    """
    In-memory catalog of known packages backed by a durable text file.

    Keys are lower-cased package names, so lookups are case-insensitive while
    entries keep the name as it was first recorded.
    """

    def __init__(self, catalog_path: Path | str | None = None):
        """
        Args:
            catalog_path: Path to the catalog file. Defaults to ``exists.txt``
                in the current working directory.
        """
        self.catalog_path = (
            Path(catalog_path) if catalog_path else Path.cwd() / DEFAULT_CATALOG_FILE
        )
        self._packages: dict[str, CatalogEntry] = {}
        self.last_index = 0

    def __len__(self) -> int:
        return len(self._packages)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._packages

    def load(self) -> bool:
        """
        Populate the catalog from the durable file.

        Unreadable files leave the catalog empty instead of raising, so the
        caller proceeds with zero known packages.

        Returns:
            True if the file was read, False otherwise.
        """
        self._packages = {}
        self.last_index = 0

        try:
            content = self.catalog_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read package catalog {self.catalog_path}: {e}")
            return False

        skipped = 0
        for line in content.splitlines():
            entry = CatalogEntry.from_line(line)
            if entry is None:
                if line.strip():
                    skipped += 1
                continue
            self.last_index = max(self.last_index, entry.index)
            self._packages[entry.name.lower()] = entry

        if skipped:
            logger.debug(f"Skipped {skipped} unrecognized line(s) in {self.catalog_path}")
        logger.info(f"Loaded {len(self._packages)} packages from {self.catalog_path}")
        return True

    def lookup(self, name: str) -> CatalogEntry | None:
        """Case-insensitive exact lookup."""
        return self._packages.get(name.lower())

    def entries(self) -> list[CatalogEntry]:
        """All entries in ascending index order."""
        return sorted(self._packages.values(), key=lambda entry: entry.index)

    def names(self) -> list[str]:
        """Lower-cased catalog keys in ascending index order."""
        return [entry.name.lower() for entry in self.entries()]

    def add(self, name: str, downloads: int = 0) -> CatalogEntry:
        """
        Append a new package to the catalog and to the durable file.

        A name already present (case-insensitive) is returned unchanged so the
        index sequence never gains a duplicate.

        Args:
            name: Package name as it should be displayed
            downloads: Popularity metric, non-negative

        Returns:
            The catalog entry for ``name``

        Raises:
            ValueError: If ``name`` cannot be written as a catalog line or
                ``downloads`` is negative
        """
        if not name.strip() or _UNREPRESENTABLE_CHARS.intersection(name):
            raise ValueError(f"Package name cannot be stored in the catalog: {name!r}")
        if downloads < 0:
            raise ValueError(f"downloads must be non-negative, got {downloads}")

        existing = self.lookup(name)
        if existing is not None:
            logger.debug(f"{name} already in catalog at index {existing.index}")
            return existing

        entry = CatalogEntry(
            index=self.last_index + 1,
            name=name,
            url=package_url(name),
            downloads=downloads,
        )
        self._packages[name.lower()] = entry
        self.last_index = entry.index

        try:
            self.catalog_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.catalog_path, "a", encoding="utf-8") as f:
                f.write(entry.to_line() + "\n")
        except OSError as e:
            # In-memory state is kept; the entry is rewritten on the next rewrite()
            logger.error(f"Failed to append {name} to {self.catalog_path}: {e}")

        return entry

    def rewrite(self) -> bool:
        """
        Regenerate the whole catalog file from memory, sorted by index.

        Returns:
            True if the file was written
        """
        content = "".join(entry.to_line() + "\n" for entry in self.entries())
        try:
            self.catalog_path.parent.mkdir(parents=True, exist_ok=True)
            self.catalog_path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to rewrite package catalog {self.catalog_path}: {e}")
            return False
        return True

    def update_downloads(self, name: str, downloads: int) -> bool:
        """Change the download count of an existing entry and persist it."""
        if downloads < 0:
            raise ValueError(f"downloads must be non-negative, got {downloads}")

        entry = self.lookup(name)
        if entry is None:
            return False

        entry.downloads = downloads
        return self.rewrite()
