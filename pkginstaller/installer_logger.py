"""
Console progress and event reporting for batch installs.
"""

import time
from datetime import datetime

from rich.progress_bar import ProgressBar
from rich.table import Table

from pkginstaller.branding import console, pi_header, pi_print
from pkginstaller.suggestions.package_suggester import Suggestion, show_suggestions

PROGRESS_BAR_WIDTH = 40


class InstallationLogger:
    """Receives installation events and renders them. Never affects control flow."""

    def __init__(self):
        self.start_time = time.time()
        self.total_steps = 0
        self.current_step = 0

    def init(self, total_steps: int) -> None:
        self.start_time = time.time()
        self.total_steps = total_steps
        self.current_step = 0
        pi_header("Starting installation")
        console.print(f"Packages to install: [bold]{total_steps}[/bold]\n")

    def log_step(self, message: str) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S")
        pi_print(f"[dim]\\[{timestamp}][/dim] {message}", "step")

    def log_success(self, message: str) -> None:
        pi_print(message, "success")

    def log_error(self, message: str) -> None:
        pi_print(message, "error")

    def log_info(self, message: str) -> None:
        pi_print(message, "info")

    def log_warning(self, message: str) -> None:
        pi_print(message, "warning")

    def log_suggestions(self, suggestions: list[Suggestion]) -> None:
        show_suggestions(suggestions)

    def update_progress(self, step: int, package_name: str | None = None) -> float:
        """
        Render progress after ``step`` of ``total_steps`` packages.

        Returns:
            The completion percentage, 0-100
        """
        self.current_step = step
        percentage = (step / self.total_steps) * 100 if self.total_steps else 100.0

        grid = Table.grid(padding=(0, 1))
        grid.add_row(
            ProgressBar(total=100, completed=percentage, width=PROGRESS_BAR_WIDTH),
            f"{percentage:.1f}%",
            f"[dim]{package_name}[/dim]" if package_name else "",
        )
        console.print(grid)
        return percentage

    def elapsed(self) -> float:
        return time.time() - self.start_time

    def show_summary(self, success: int, failed: int) -> None:
        pi_header("Installation summary")
        console.print(f"⏱️  Total time: {self.elapsed():.2f} seconds")
        console.print(f"[green]✅[/green] Installed successfully: {success}")
        console.print(f"[red]❌[/red] Failed: {failed}")
