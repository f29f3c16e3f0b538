"""Exception hierarchy for package-installer."""


class PackageInstallerError(Exception):
    """Base exception for package-installer operations."""

    pass


class RequirementsError(PackageInstallerError):
    """Raised when the requirements manifest cannot be read or written."""

    pass


class ConfigError(PackageInstallerError):
    """Raised when the configuration record holds invalid values."""

    pass


class InstallError(PackageInstallerError):
    """Raised when the external installer fails for a package."""

    def __init__(
        self,
        package: str,
        message: str,
        returncode: int | None = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.package = package
        self.returncode = returncode
        self.stderr = stderr


class InvalidPackageNameError(InstallError):
    """Raised when a package name would be unsafe to pass to the installer."""

    def __init__(self, package: str):
        super().__init__(package, f"Invalid package name: {package!r}")
