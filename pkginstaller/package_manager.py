"""
External installer and verifier.

Wraps the command-line package manager (npm by default). Commands are argument
templates where ``{name}`` is replaced by the package name; they run without a
shell.
"""

import logging
import re
import subprocess

from pkginstaller.exceptions import InstallError, InvalidPackageNameError

logger = logging.getLogger(__name__)

DEFAULT_INSTALL_COMMAND = ["npm", "install", "{name}"]
DEFAULT_VERIFY_COMMAND = ["npm", "list", "{name}", "--depth=0"]

# Scoped names, version specs and tags are allowed; options and whitespace are not
_VALID_PACKAGE_NAME = re.compile(r"^[A-Za-z0-9@._~^:+=/][A-Za-z0-9@._~^:+=/-]*$")


def validate_package_name(name: str) -> None:
    """
    Raises:
        InvalidPackageNameError: If ``name`` is empty, starts with ``-`` or
            contains characters outside the allowed set
    """
    if not name or not _VALID_PACKAGE_NAME.match(name):
        raise InvalidPackageNameError(name)


class PackageManager:
    """
    Runs install and verification commands for single packages.

    Example:
        pm = PackageManager()
        pm.install("lodash")
        pm.verify("lodash")  # True
    """

    def __init__(
        self,
        install_command: list[str] | None = None,
        verify_command: list[str] | None = None,
        install_timeout: int = 300,
        verify_timeout: int = 60,
    ):
        """
        Args:
            install_command: Argument template for installing a package
            verify_command: Argument template for checking a package is present
            install_timeout: Seconds before an install is considered failed
            verify_timeout: Seconds before a verification is considered failed
        """
        self.install_command = list(install_command or DEFAULT_INSTALL_COMMAND)
        self.verify_command = list(verify_command or DEFAULT_VERIFY_COMMAND)
        self.install_timeout = install_timeout
        self.verify_timeout = verify_timeout

    @staticmethod
    def _build_command(template: list[str], name: str) -> list[str]:
        return [part.replace("{name}", name) for part in template]

    def _run(self, cmd: list[str], timeout: int) -> subprocess.CompletedProcess:
        logger.debug(f"Running: {' '.join(cmd)}")
        return subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)

    def install(self, name: str) -> str:
        """
        Install a package.

        Returns:
            The installer's standard output

        Raises:
            InstallError: On a non-zero exit, a missing executable or a timeout
        """
        validate_package_name(name)
        cmd = self._build_command(self.install_command, name)

        try:
            result = self._run(cmd, self.install_timeout)
        except subprocess.TimeoutExpired as e:
            raise InstallError(
                name, f"Installation of {name} timed out after {self.install_timeout}s"
            ) from e
        except FileNotFoundError as e:
            raise InstallError(name, f"Installer not found: {cmd[0]}") from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            message = stderr.splitlines()[-1] if stderr else f"exit code {result.returncode}"
            raise InstallError(
                name,
                f"Installation of {name} failed: {message}",
                returncode=result.returncode,
                stderr=stderr,
            )
        return result.stdout

    def verify(self, name: str) -> bool:
        """Check that ``name`` is present after installation."""
        try:
            validate_package_name(name)
        except InvalidPackageNameError:
            return False

        cmd = self._build_command(self.verify_command, name)
        try:
            result = self._run(cmd, self.verify_timeout)
        except (subprocess.TimeoutExpired, FileNotFoundError) as e:
            logger.warning(f"Could not verify {name}: {e}")
            return False

        return result.returncode == 0 and name in (result.stdout or "")
