#!/usr/bin/env python3
"""
Tests for batch installer module
"""

import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import Mock, patch

from pkginstaller.batch_installer import (
    BatchInstallationResult,
    BatchInstaller,
    PackageInstallation,
    PackageStatus,
)
from pkginstaller.catalog import CatalogEntry, PackageCatalog, package_url
from pkginstaller.config import ConfigManager
from pkginstaller.exceptions import InstallError
from pkginstaller.installer_logger import InstallationLogger
from pkginstaller.package_manager import PackageManager
from pkginstaller.prompts import AutoPrompter
from pkginstaller.requirements import RequirementsFile
from pkginstaller.suggestions.package_suggester import Suggestion, SuggestionResult

CATALOG = (
    "1. [express](https://www.npmjs.org/package/express) - 3000\n"
    "2. [react](https://www.npmjs.org/package/react) - 9000\n"
    "3. [vue](https://www.npmjs.org/package/vue) - 4000\n"
    "4. [moment](https://www.npmjs.org/package/moment) - 2500\n"
    "5. [loadash](https://www.npmjs.org/package/loadash) - 100\n"
)


def make_suggestion(name: str, similarity: float) -> Suggestion:
    entry = CatalogEntry(index=0, name=name, url=package_url(name))
    return Suggestion(entry=entry, similarity=similarity)


def make_package_manager(installable: set[str]) -> Mock:
    """Package manager that installs only the given names"""
    pm = Mock(spec=PackageManager)

    def install(name):
        if name not in installable:
            raise InstallError(name, f"Installation of {name} failed: 404 Not Found")
        return ""

    pm.install.side_effect = install
    pm.verify.side_effect = lambda name: name in installable
    return pm


class TestPackageInstallation(unittest.TestCase):
    """Test PackageInstallation dataclass"""

    def test_package_installation_creation(self):
        pkg = PackageInstallation(name="lodash")
        self.assertEqual(pkg.name, "lodash")
        self.assertEqual(pkg.status, PackageStatus.PENDING)
        self.assertEqual(pkg.attempted, [])
        self.assertIsNone(pkg.installed_name)
        self.assertFalse(pkg.substituted)

    def test_duration_calculation(self):
        pkg = PackageInstallation(name="test")
        self.assertIsNone(pkg.duration())

        pkg.start_time = 100.0
        pkg.end_time = 105.5
        self.assertEqual(pkg.duration(), 5.5)

    def test_batch_installation_result_properties(self):
        packages = [
            PackageInstallation(name="express", status=PackageStatus.SUCCESS),
            PackageInstallation(name="leftpad", status=PackageStatus.FAILED),
        ]
        result = BatchInstallationResult(
            packages=packages,
            total_duration=1.0,
            successful=["express"],
            failed=["leftpad"],
        )
        self.assertEqual(result.success_rate, 50.0)

    def test_empty_result_success_rate(self):
        result = BatchInstallationResult(packages=[], total_duration=0.0, successful=[], failed=[])
        self.assertEqual(result.success_rate, 0.0)


class BatchInstallerTestCase(unittest.TestCase):
    """Shared fixtures: a catalog, a manifest and a config in a temp directory"""

    def setUp(self):
        self._tmp = TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        env = patch.dict("os.environ", {}, clear=True)
        env.start()
        self.addCleanup(env.stop)

        root = Path(self._tmp.name)
        self.catalog_path = root / "exists.txt"
        self.catalog_path.write_text(CATALOG, encoding="utf-8")
        self.catalog = PackageCatalog(self.catalog_path)
        self.catalog.load()

        self.requirements_path = root / "requirements.txt"
        self.requirements_path.write_text("express\n#comment\n\nlodash\n", encoding="utf-8")
        self.requirements = RequirementsFile(self.requirements_path)

        self.config_manager = ConfigManager(root / ".package-installer.yaml")
        self.sink = Mock(spec=InstallationLogger)

    def make_installer(self, installable, prompter=None, **kwargs):
        self.package_manager = make_package_manager(set(installable))
        return BatchInstaller(
            catalog=self.catalog,
            package_manager=self.package_manager,
            prompter=prompter or AutoPrompter(accept=False),
            config_manager=self.config_manager,
            requirements=self.requirements,
            sink=self.sink,
            **kwargs,
        )

    def installed_names(self):
        return [c.args[0] for c in self.package_manager.install.call_args_list]


class TestBatchInstaller(BatchInstallerTestCase):
    """Test BatchInstaller class"""

    def test_manifest_order_is_install_order(self):
        installer = self.make_installer({"express", "lodash"})

        result = installer.install_batch(self.requirements.read())

        self.assertEqual(self.installed_names(), ["express", "lodash"])
        self.assertEqual(result.successful, ["express", "lodash"])
        self.assertEqual(result.failed, [])

    def test_failed_install_retries_selected_alternative(self):
        installer = self.make_installer({"loadash"}, prompter=AutoPrompter(accept=True))

        pkg = installer.install_package("lodash")

        self.assertEqual(pkg.status, PackageStatus.SUCCESS)
        self.assertEqual(pkg.attempted, ["lodash", "loadash"])
        self.assertEqual(pkg.installed_name, "loadash")
        self.assertTrue(pkg.substituted)
        suggestions = self.sink.log_suggestions.call_args.args[0]
        self.assertEqual(suggestions[0].name, "loadash")
        self.assertGreater(suggestions[0].similarity, 0.4)

    def test_selected_alternative_updates_requirements(self):
        installer = self.make_installer({"loadash"}, prompter=AutoPrompter(accept=True))

        installer.install_package("lodash")

        self.assertEqual(self.requirements.read(), ["express", "loadash"])
        self.assertTrue(self.requirements.backup_path.exists())

    def test_requirements_untouched_when_disabled(self):
        self.config_manager.config.update_requirements = False
        installer = self.make_installer({"loadash"}, prompter=AutoPrompter(accept=True))

        installer.install_package("lodash")

        self.assertEqual(self.requirements.read(), ["express", "lodash"])
        self.assertFalse(self.requirements.backup_path.exists())

    def test_no_suggestions_is_failure_and_batch_continues(self):
        installer = self.make_installer({"express"})

        result = installer.install_batch(["leftpad", "express"])

        self.assertEqual(result.failed, ["leftpad"])
        self.assertEqual(result.successful, ["express"])
        self.assertEqual(self.installed_names(), ["leftpad", "express"])
        self.sink.log_suggestions.assert_not_called()
        self.sink.show_summary.assert_called_once_with(1, 1)

    def test_declined_alternative_is_failure(self):
        prompter = Mock()
        prompter.choose_alternative.return_value = None
        installer = self.make_installer({"loadash"}, prompter=prompter)

        pkg = installer.install_package("lodash")

        self.assertEqual(pkg.status, PackageStatus.FAILED)
        self.assertEqual(self.installed_names(), ["lodash"])
        prompter.choose_alternative.assert_called_once()

    def test_verification_failure_triggers_suggestions(self):
        installer = self.make_installer({"loadash"}, prompter=AutoPrompter(accept=True))
        installer.package_manager.install.side_effect = None
        installer.package_manager.verify.side_effect = lambda name: name == "loadash"

        pkg = installer.install_package("lodash")

        self.assertEqual(pkg.attempted, ["lodash", "loadash"])
        self.assertEqual(pkg.status, PackageStatus.SUCCESS)

    def test_retry_is_bounded_to_one_hop_by_default(self):
        self.catalog.add("lodahs")
        installer = self.make_installer(set(), prompter=AutoPrompter(accept=True))

        pkg = installer.install_package("lodash")

        self.assertEqual(pkg.status, PackageStatus.FAILED)
        self.assertEqual(pkg.attempted, ["lodash", "loadash"])

    def test_suggestions_ranked_against_failed_name(self):
        self.catalog.add("lodahs")
        self.config_manager.config.max_retry_hops = 3
        installer = self.make_installer(set(), prompter=AutoPrompter(accept=True))

        with patch.object(
            installer.suggester, "suggest", wraps=installer.suggester.suggest
        ) as suggest:
            pkg = installer.install_package("lodash")

        self.assertEqual([c.args[0] for c in suggest.call_args_list], ["lodash", "loadash"])
        # A failed catalog alternative is an exact hit with nothing to offer
        self.assertEqual(pkg.attempted, ["lodash", "loadash"])
        self.assertEqual(pkg.status, PackageStatus.FAILED)

    def test_retry_bound_allows_alternative_of_alternative(self):
        self.config_manager.config.max_retry_hops = 2
        installer = self.make_installer({"lodahs"}, prompter=AutoPrompter(accept=True))
        # Catalog lookups for the first alternative miss, so it gets its own suggestions
        installer.suggester.suggest = Mock(
            side_effect=[
                SuggestionResult(suggestions=[make_suggestion("loadash", 0.86)]),
                SuggestionResult(suggestions=[make_suggestion("lodahs", 0.71)]),
            ]
        )

        pkg = installer.install_package("lodash")

        self.assertEqual(pkg.attempted, ["lodash", "loadash", "lodahs"])
        self.assertEqual(pkg.status, PackageStatus.SUCCESS)
        self.assertEqual(pkg.installed_name, "lodahs")
        self.assertEqual(self.requirements.read(), ["express", "lodahs"])

    def test_zero_retry_hops_shows_suggestions_without_prompting(self):
        self.config_manager.config.max_retry_hops = 0
        prompter = Mock()
        installer = self.make_installer({"loadash"}, prompter=prompter)

        pkg = installer.install_package("lodash")

        self.assertEqual(pkg.status, PackageStatus.FAILED)
        self.sink.log_suggestions.assert_called_once()
        prompter.choose_alternative.assert_not_called()

    def test_unexpected_error_does_not_abort_batch(self):
        installer = self.make_installer({"express"})
        installer.package_manager.install.side_effect = [RuntimeError("boom"), ""]

        result = installer.install_batch(["react", "express"])

        self.assertEqual(result.failed, ["react"])
        self.assertEqual(result.successful, ["express"])
        self.assertEqual(result.packages[0].error_message, "boom")

    def test_progress_reported_after_each_package(self):
        callback = Mock()
        installer = self.make_installer({"express", "vue"}, progress_callback=callback)

        installer.install_batch(["express", "vue"])

        self.assertEqual([c.args[:2] for c in callback.call_args_list], [(1, 2), (2, 2)])
        self.sink.init.assert_called_once_with(2)
        self.assertEqual(
            [c.args for c in self.sink.update_progress.call_args_list],
            [(1, "express"), (2, "vue")],
        )


class TestContribution(BatchInstallerTestCase):
    """Contribution of newly installed packages to the catalog"""

    def test_new_package_is_contributed_when_preference_cached(self):
        self.config_manager.remember_contribution(True)
        before = self.catalog_path.read_text(encoding="utf-8").splitlines()
        last_index = self.catalog.last_index
        prompter = Mock()
        installer = self.make_installer({"axios"}, prompter=prompter)

        pkg = installer.install_package("axios")

        self.assertTrue(pkg.contributed)
        entry = self.catalog.lookup("axios")
        self.assertEqual(entry.index, last_index + 1)
        self.assertEqual(entry.downloads, 0)
        after = self.catalog_path.read_text(encoding="utf-8").splitlines()
        self.assertEqual(len(after), len(before) + 1)
        self.assertEqual(after[-1], "6. [axios](https://www.npmjs.org/package/axios) - 0")
        prompter.confirm.assert_not_called()

    def test_contribution_question_asked_once(self):
        prompter = Mock()
        prompter.persist_answers = True
        prompter.confirm.return_value = True
        installer = self.make_installer({"axios", "zod"}, prompter=prompter)

        installer.install_batch(["axios", "zod"])

        prompter.confirm.assert_called_once()
        self.assertEqual(self.catalog.lookup("axios").index, 6)
        self.assertEqual(self.catalog.lookup("zod").index, 7)
        self.assertTrue(ConfigManager(self.config_manager.config_path).config.will_contribute)

    def test_declined_contribution_leaves_catalog_unchanged(self):
        prompter = Mock()
        prompter.persist_answers = True
        prompter.confirm.return_value = False
        installer = self.make_installer({"axios", "zod"}, prompter=prompter)

        installer.install_batch(["axios", "zod"])

        prompter.confirm.assert_called_once()
        self.assertIsNone(self.catalog.lookup("axios"))
        self.assertEqual(self.catalog.last_index, 5)

    def test_flag_answer_is_not_saved(self):
        installer = self.make_installer({"axios", "zod"}, prompter=AutoPrompter(accept=False))

        installer.install_batch(["axios", "zod"])

        self.assertIsNone(self.catalog.lookup("axios"))
        self.assertFalse(self.config_manager.config.will_contribute)
        self.assertFalse(self.config_manager.config_path.exists())
        self.assertIsNone(ConfigManager(self.config_manager.config_path).config.will_contribute)

    def test_accepting_flag_contributes_for_this_run_only(self):
        installer = self.make_installer({"axios", "zod"}, prompter=AutoPrompter(accept=True))

        installer.install_batch(["axios", "zod"])

        self.assertEqual(self.catalog.lookup("zod").index, 7)
        self.assertFalse(self.config_manager.config_path.exists())

    def test_catalog_write_failure_still_counts_as_success(self):
        self.config_manager.remember_contribution(True)
        # A directory where the file should be makes the append fail
        unwritable = Path(self._tmp.name) / "catalog_dir"
        unwritable.mkdir()
        self.catalog.catalog_path = unwritable
        installer = self.make_installer({"axios", "express"})

        result = installer.install_batch(["axios", "express"])

        self.assertEqual(result.successful, ["axios", "express"])
        self.assertEqual(result.failed, [])
        self.assertTrue(result.packages[0].contributed)
        self.assertEqual(self.catalog.lookup("axios").index, 6)
        self.assertEqual(len(self.catalog_path.read_text(encoding="utf-8").splitlines()), 5)

    def test_known_package_is_not_contributed(self):
        prompter = Mock()
        installer = self.make_installer({"Express"}, prompter=prompter)

        pkg = installer.install_package("Express")

        self.assertFalse(pkg.contributed)
        prompter.confirm.assert_not_called()
        self.assertEqual(len(self.catalog), 5)


if __name__ == "__main__":
    unittest.main()
