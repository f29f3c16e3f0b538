"""
Requirements manifest handling.

The manifest lists one package name per line. Blank lines and lines starting
with ``#`` are ignored; the remaining order is the install order.
"""

import logging
import shutil
from pathlib import Path

from pkginstaller.exceptions import RequirementsError

logger = logging.getLogger(__name__)

DEFAULT_REQUIREMENTS_FILE = "requirements.txt"
BACKUP_SUFFIX = ".backup"

REQUIREMENTS_TEMPLATE = """# Packages to install
# One package per line
# Example:
# express
# lodash
# moment
"""


def parse_requirements(content: str) -> list[str]:
    """Return trimmed, non-empty, non-comment lines in order."""
    packages = []
    for line in content.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            packages.append(stripped)
    return packages


class RequirementsFile:
    """Reads and edits a requirements manifest."""

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path else Path.cwd() / DEFAULT_REQUIREMENTS_FILE
        self._backed_up = False

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + BACKUP_SUFFIX)

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> list[str]:
        """
        Read the package list.

        Raises:
            RequirementsError: If the file cannot be read
        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise RequirementsError(f"Could not read {self.path}: {e}") from e
        return parse_requirements(content)

    def create_template(self) -> Path:
        """Write a commented template manifest."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(REQUIREMENTS_TEMPLATE, encoding="utf-8")
        except OSError as e:
            raise RequirementsError(f"Could not create {self.path}: {e}") from e
        logger.info(f"Created requirements template at {self.path}")
        return self.path

    def backup(self) -> Path:
        """Copy the manifest aside, once per instance so the first copy survives."""
        if self._backed_up:
            return self.backup_path
        try:
            shutil.copy2(self.path, self.backup_path)
        except OSError as e:
            raise RequirementsError(f"Could not back up {self.path}: {e}") from e
        self._backed_up = True
        return self.backup_path

    def replace_package(self, old_name: str, new_name: str) -> bool:
        """
        Replace the line naming ``old_name`` with ``new_name``.

        The manifest is backed up before its first change. Comment lines and
        surrounding whitespace are preserved.

        Returns:
            True if at least one line was replaced
        """
        self.backup()
        try:
            lines = self.path.read_text(encoding="utf-8").split("\n")
        except (OSError, UnicodeDecodeError) as e:
            raise RequirementsError(f"Could not read {self.path}: {e}") from e

        replaced = False
        for i, line in enumerate(lines):
            if line.strip() == old_name:
                lines[i] = line.replace(old_name, new_name)
                replaced = True

        if not replaced:
            return False

        try:
            self.path.write_text("\n".join(lines), encoding="utf-8")
        except OSError as e:
            raise RequirementsError(f"Could not update {self.path}: {e}") from e
        return True
