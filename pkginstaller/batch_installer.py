#!/usr/bin/env python3
"""
Batch Installation Module

Installs the packages of a requirements manifest one at a time with:
- Post-install verification
- Catalog-backed suggestions when an install fails
- A bounded number of retries with a user-selected alternative
- Optional contribution of newly installed packages to the catalog
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from pkginstaller.catalog import PackageCatalog
from pkginstaller.config import ConfigManager
from pkginstaller.exceptions import InstallError, RequirementsError
from pkginstaller.installer_logger import InstallationLogger
from pkginstaller.package_manager import PackageManager
from pkginstaller.requirements import RequirementsFile
from pkginstaller.suggestions.package_suggester import PackageSuggester, Suggestion

logger = logging.getLogger(__name__)

CONTRIBUTION_QUESTION = "Would you like to contribute new packages to the local catalog?"


class Prompter(Protocol):
    # False when answers come from flags rather than the user
    persist_answers: bool

    def confirm(self, question: str) -> bool: ...

    def choose_alternative(self, suggestions: list[Suggestion]) -> Suggestion | None: ...


class PackageStatus(Enum):
    """Status of a package in batch installation"""

    PENDING = "pending"
    INSTALLING = "installing"
    VERIFIED = "verified"
    INSTALL_FAILED = "install_failed"
    SUGGEST_LOOKUP = "suggest_lookup"
    ALTERNATE_SELECTED = "alternate_selected"
    DECLINED = "declined"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class PackageInstallation:
    """Represents a single requested package in a batch"""

    name: str
    status: PackageStatus = PackageStatus.PENDING
    installed_name: str | None = None
    attempted: list[str] = field(default_factory=list)
    contributed: bool = False
    start_time: float | None = None
    end_time: float | None = None
    error_message: str | None = None

    def duration(self) -> float | None:
        """Get installation duration in seconds"""
        if self.start_time is not None and self.end_time is not None:
            return self.end_time - self.start_time
        return None

    @property
    def substituted(self) -> bool:
        """True when an alternative was installed in place of the requested name"""
        return self.installed_name is not None and self.installed_name != self.name


@dataclass
class BatchInstallationResult:
    """Result of a batch installation operation"""

    packages: list[PackageInstallation]
    total_duration: float
    successful: list[str]
    failed: list[str]

    @property
    def success_rate(self) -> float:
        """Calculate success rate as percentage"""
        total = len(self.packages)
        if total == 0:
            return 0.0
        return (len(self.successful) / total) * 100


class BatchInstaller:
    """Drives the per-package install, suggest and retry workflow"""

    def __init__(
        self,
        catalog: PackageCatalog,
        package_manager: PackageManager,
        prompter: Prompter,
        config_manager: ConfigManager,
        requirements: RequirementsFile | None = None,
        sink: InstallationLogger | None = None,
        progress_callback: Callable[[int, int, PackageInstallation], None] | None = None,
    ):
        """
        Initialize batch installer.

        Args:
            catalog: Loaded package catalog
            package_manager: External installer and verifier
            prompter: Answers alternative-selection and contribution questions
            config_manager: Holds the threshold, retry bound and cached
                contribution answer
            requirements: Manifest to rewrite when an alternative is chosen
            sink: Receives progress and log events
            progress_callback: Optional callback for progress updates
        """
        self.catalog = catalog
        self.package_manager = package_manager
        self.prompter = prompter
        self.config_manager = config_manager
        self.requirements = requirements
        self.sink = sink or InstallationLogger()
        self.progress_callback = progress_callback
        self.suggester = PackageSuggester(catalog)

    @property
    def threshold(self) -> float:
        return self.config_manager.config.similarity_threshold

    @property
    def max_retry_hops(self) -> int:
        return self.config_manager.config.max_retry_hops

    def _attempt(self, name: str) -> str | None:
        """Install and verify ``name``. Returns an error message, or None on success."""
        self.sink.log_step(f"Installing {name}")
        try:
            self.package_manager.install(name)
        except InstallError as e:
            return str(e)

        if not self.package_manager.verify(name):
            return f"Installation of {name} could not be verified"
        return None

    def _will_contribute(self) -> bool:
        config = self.config_manager.config
        if config.will_contribute is None:
            answer = self.prompter.confirm(CONTRIBUTION_QUESTION)
            if not self.prompter.persist_answers:
                config.will_contribute = answer
            elif not self.config_manager.remember_contribution(answer):
                self.sink.log_warning(
                    "Could not save your answer; you will be asked again next run"
                )
        return bool(config.will_contribute)

    def _contribute(self, pkg: PackageInstallation, name: str) -> None:
        if self.catalog.lookup(name) is not None:
            return
        if not self._will_contribute():
            return

        entry = self.catalog.add(name)
        pkg.contributed = True
        self.sink.log_info(f"Added {entry.name} to the package catalog as #{entry.index}")

    def _update_requirements(self, old_name: str, new_name: str) -> None:
        if self.requirements is None or not self.config_manager.config.update_requirements:
            return
        try:
            if self.requirements.replace_package(old_name, new_name):
                self.sink.log_info(
                    f"Updated {self.requirements.path.name}: {old_name} -> {new_name} "
                    f"(backup in {self.requirements.backup_path.name})"
                )
        except RequirementsError as e:
            self.sink.log_warning(f"Could not update requirements: {e}")

    def install_package(self, name: str) -> PackageInstallation:
        """
        Install one requested package, offering alternatives on failure.

        Alternatives are retried in a loop bounded by ``max_retry_hops``; a
        name is never attempted twice for the same request.

        Args:
            name: Requested package name

        Returns:
            PackageInstallation in a terminal state (SUCCESS or FAILED)
        """
        pkg = PackageInstallation(name=name)
        pkg.start_time = time.time()
        current = name
        hops = 0

        while True:
            pkg.attempted.append(current)
            pkg.status = PackageStatus.INSTALLING
            error = self._attempt(current)

            if error is None:
                pkg.status = PackageStatus.VERIFIED
                pkg.installed_name = current
                pkg.error_message = None
                self.sink.log_success(f"{current} installed successfully")
                self._contribute(pkg, current)
                pkg.status = PackageStatus.SUCCESS
                break

            pkg.status = PackageStatus.INSTALL_FAILED
            pkg.error_message = error
            self.sink.log_error(error)

            pkg.status = PackageStatus.SUGGEST_LOOKUP
            attempted = {attempt.lower() for attempt in pkg.attempted}
            result = self.suggester.suggest(current, self.threshold)
            candidates = [s for s in result.suggestions if s.name.lower() not in attempted]

            if not candidates:
                logger.info(f"No alternatives above {self.threshold} for {current}")
                pkg.status = PackageStatus.FAILED
                break

            self.sink.log_suggestions(candidates)

            if hops >= self.max_retry_hops:
                self.sink.log_warning(
                    f"Retry limit reached ({self.max_retry_hops}), not trying alternatives"
                )
                pkg.status = PackageStatus.FAILED
                break

            choice = self.prompter.choose_alternative(candidates)
            if choice is None:
                pkg.status = PackageStatus.DECLINED
                self.sink.log_info(f"Skipped alternatives for {current}")
                pkg.status = PackageStatus.FAILED
                break

            pkg.status = PackageStatus.ALTERNATE_SELECTED
            hops += 1
            self._update_requirements(current, choice.name)
            current = choice.name

        pkg.end_time = time.time()
        return pkg

    def install_batch(self, package_names: list[str]) -> BatchInstallationResult:
        """
        Install packages sequentially in the given order.

        A failing package never stops the batch.

        Args:
            package_names: Package names in install order

        Returns:
            BatchInstallationResult with installation results
        """
        start_time = time.time()
        total = len(package_names)
        logger.info(f"Starting batch installation of {total} packages")
        self.sink.init(total)

        packages: list[PackageInstallation] = []
        for i, name in enumerate(package_names, 1):
            try:
                pkg = self.install_package(name)
            except Exception as e:
                logger.exception(f"Unexpected error installing {name}")
                pkg = PackageInstallation(
                    name=name, status=PackageStatus.FAILED, error_message=str(e)
                )
                self.sink.log_error(f"Failed to install {name}: {e}")
            packages.append(pkg)

            if self.progress_callback:
                self.progress_callback(i, total, pkg)
            self.sink.update_progress(i, name)

        successful = [pkg.name for pkg in packages if pkg.status == PackageStatus.SUCCESS]
        failed = [pkg.name for pkg in packages if pkg.status == PackageStatus.FAILED]

        result = BatchInstallationResult(
            packages=packages,
            total_duration=time.time() - start_time,
            successful=successful,
            failed=failed,
        )

        logger.info(
            f"Batch installation completed: {len(successful)} successful, {len(failed)} failed"
        )
        self.sink.show_summary(len(successful), len(failed))
        return result
