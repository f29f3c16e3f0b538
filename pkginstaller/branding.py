"""
Console branding for package-installer.

All user-facing output shares one rich Console so tests can capture it.
"""

from rich.console import Console
from rich.panel import Panel

VERSION = "0.1.0"

console = Console()

_STATUS_STYLES = {
    "info": ("ℹ", "cyan"),
    "success": ("✅", "green"),
    "warning": ("⚠️", "yellow"),
    "error": ("❌", "red"),
    "step": ("📍", "blue"),
}


def pi_print(message: str, status: str = "info") -> None:
    """Print a status line with the icon and color for ``status``."""
    icon, color = _STATUS_STYLES.get(status, _STATUS_STYLES["info"])
    console.print(f"[{color}]{icon}[/{color}] {message}")


def pi_header(title: str) -> None:
    console.print()
    console.print(f"[bold cyan]━━━ {title} ━━━[/bold cyan]")


def show_banner() -> None:
    console.print(
        Panel.fit(
            f"[bold]package-installer[/bold] v{VERSION}\n"
            "[dim]Batch installs with catalog-backed suggestions[/dim]",
            border_style="cyan",
        )
    )
