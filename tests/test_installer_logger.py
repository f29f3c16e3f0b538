"""Tests for the installation progress sink."""

import unittest

from pkginstaller.catalog import CatalogEntry, package_url
from pkginstaller.installer_logger import InstallationLogger
from pkginstaller.suggestions.package_suggester import Suggestion


class TestInstallationLogger(unittest.TestCase):
    def test_update_progress_percentage(self):
        sink = InstallationLogger()
        sink.init(4)
        self.assertEqual(sink.update_progress(1, "express"), 25.0)
        self.assertEqual(sink.update_progress(4), 100.0)
        self.assertEqual(sink.current_step, 4)

    def test_update_progress_without_packages(self):
        sink = InstallationLogger()
        self.assertEqual(sink.update_progress(0), 100.0)

    def test_init_resets_progress(self):
        sink = InstallationLogger()
        sink.init(2)
        sink.update_progress(2, "vue")

        sink.init(3)

        self.assertEqual(sink.total_steps, 3)
        self.assertEqual(sink.current_step, 0)

    def test_elapsed_is_non_negative(self):
        sink = InstallationLogger()
        sink.init(1)
        self.assertGreaterEqual(sink.elapsed(), 0.0)


def test_events_are_rendered(capsys):
    sink = InstallationLogger()
    entry = CatalogEntry(index=5, name="loadash", url=package_url("loadash"), downloads=100)

    sink.log_step("Installing lodash")
    sink.log_error("Installation of lodash failed: 404 Not Found")
    sink.log_suggestions([Suggestion(entry=entry, similarity=0.857)])
    sink.show_summary(1, 1)

    out = capsys.readouterr().out
    assert "Installing lodash" in out
    assert "404 Not Found" in out
    assert "loadash" in out
    assert "85.7%" in out
    assert "Failed: 1" in out


if __name__ == "__main__":
    unittest.main()
