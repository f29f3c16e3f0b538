import argparse
import logging
import sys
from pathlib import Path

from rich.table import Table

from pkginstaller.batch_installer import BatchInstaller
from pkginstaller.branding import VERSION, console, pi_header, pi_print, show_banner
from pkginstaller.catalog import PackageCatalog
from pkginstaller.config import ConfigManager
from pkginstaller.exceptions import ConfigError, RequirementsError
from pkginstaller.installer_logger import InstallationLogger
from pkginstaller.package_manager import PackageManager
from pkginstaller.prompts import AutoPrompter, InteractivePrompter
from pkginstaller.requirements import RequirementsFile
from pkginstaller.suggestions.package_suggester import PackageSuggester, show_suggestions


class PackageInstallerCLI:
    def __init__(self, config_path: Path | str | None = None):
        self.config_manager = ConfigManager(config_path)

    @property
    def config(self):
        return self.config_manager.config

    def _print_error(self, message: str):
        print(f"❌ Error: {message}", file=sys.stderr)

    def _apply_overrides(self, args: argparse.Namespace) -> None:
        """Apply command-line flags on top of the loaded configuration."""
        config = self.config
        if getattr(args, "threshold", None) is not None:
            config.similarity_threshold = args.threshold
        if getattr(args, "max_retries", None) is not None:
            config.max_retry_hops = args.max_retries
        if getattr(args, "timeout", None) is not None:
            config.install_timeout = args.timeout
        if getattr(args, "no_update_requirements", False):
            config.update_requirements = False
        if getattr(args, "requirements", None):
            config.requirements_file = args.requirements
        if getattr(args, "catalog", None):
            config.catalog_file = args.catalog
        config.validate()

    def _load_catalog(self) -> PackageCatalog:
        catalog = PackageCatalog(self.config.catalog_file)
        if not catalog.load() and catalog.catalog_path.exists():
            pi_print(
                f"Package catalog {catalog.catalog_path} not readable, starting empty", "warning"
            )
        return catalog

    def _scaffold_requirements(self, requirements: RequirementsFile, interactive: bool) -> None:
        pi_print(f"{requirements.path.name} does not exist.", "warning")
        if not interactive or not InteractivePrompter().confirm("Create it now?"):
            return
        try:
            requirements.create_template()
        except RequirementsError as e:
            self._print_error(str(e))
            return
        pi_print(f"Created {requirements.path.name}", "success")
        pi_print("Add your packages (one per line), then run the installer again", "info")

    def install(self, args: argparse.Namespace) -> int:
        """Install every package of the requirements manifest."""
        self._apply_overrides(args)
        sink = InstallationLogger()
        sink.log_step("Initializing")

        catalog = self._load_catalog()
        requirements = RequirementsFile(self.config.requirements_file)
        interactive = not (args.yes or args.no_input)

        if not requirements.exists():
            self._scaffold_requirements(requirements, interactive)
            return 0

        try:
            packages = requirements.read()
        except RequirementsError as e:
            self._print_error(str(e))
            return 1

        if not packages:
            sink.log_warning(f"No packages to install found in {requirements.path.name}")
            return 0

        if args.yes:
            prompter = AutoPrompter(accept=True)
        elif args.no_input:
            prompter = AutoPrompter(accept=False)
        else:
            prompter = InteractivePrompter()

        package_manager = PackageManager(
            install_command=self.config.install_command,
            verify_command=self.config.verify_command,
            install_timeout=self.config.install_timeout,
            verify_timeout=self.config.verify_timeout,
        )
        installer = BatchInstaller(
            catalog=catalog,
            package_manager=package_manager,
            prompter=prompter,
            config_manager=self.config_manager,
            requirements=requirements,
            sink=sink,
        )
        result = installer.install_batch(packages)
        return 0 if not result.failed else 1

    def suggest(self, args: argparse.Namespace) -> int:
        """Show the catalog entry for a name, or similar packages."""
        self._apply_overrides(args)
        catalog = self._load_catalog()
        result = PackageSuggester(catalog).suggest(args.name, self.config.similarity_threshold)

        if result.is_exact:
            entry = result.exact
            pi_print(
                f"[bold]{entry.name}[/bold] is in the catalog (#{entry.index}, "
                f"{entry.downloads:,} downloads) - {entry.url}",
                "success",
            )
            return 0

        if not result.suggestions:
            pi_print(f"No packages similar to {args.name}", "warning")
            return 1

        show_suggestions(result.suggestions)
        return 0

    def catalog_list(self, args: argparse.Namespace) -> int:
        self._apply_overrides(args)
        catalog = self._load_catalog()

        pi_header(f"Package catalog ({len(catalog)} packages)")
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("#", justify="right")
        table.add_column("Package")
        table.add_column("Downloads", justify="right")
        table.add_column("URL", style="dim")
        for entry in catalog.entries():
            table.add_row(str(entry.index), entry.name, f"{entry.downloads:,}", entry.url)
        console.print(table)
        return 0

    def catalog_add(self, args: argparse.Namespace) -> int:
        self._apply_overrides(args)
        catalog = self._load_catalog()

        if args.name in catalog:
            pi_print(f"{args.name} is already in the catalog", "info")
            return 0
        try:
            entry = catalog.add(args.name, downloads=args.downloads)
        except ValueError as e:
            self._print_error(str(e))
            return 1
        pi_print(f"Added {entry.name} as #{entry.index}", "success")
        return 0

    def catalog_set_downloads(self, args: argparse.Namespace) -> int:
        self._apply_overrides(args)
        catalog = self._load_catalog()

        if catalog.lookup(args.name) is None:
            self._print_error(f"{args.name} is not in the catalog")
            return 1
        try:
            saved = catalog.update_downloads(args.name, args.downloads)
        except ValueError as e:
            self._print_error(str(e))
            return 1
        if not saved:
            self._print_error(f"Could not write {catalog.catalog_path}")
            return 1
        pi_print(f"{args.name}: {args.downloads:,} downloads", "success")
        return 0

    def init(self, args: argparse.Namespace) -> int:
        """Create a template requirements manifest."""
        self._apply_overrides(args)
        requirements = RequirementsFile(self.config.requirements_file)
        if requirements.exists() and not args.force:
            self._print_error(f"{requirements.path} already exists (use --force to overwrite)")
            return 1
        try:
            requirements.create_template()
        except RequirementsError as e:
            self._print_error(str(e))
            return 1
        pi_print(f"Created {requirements.path}", "success")
        return 0

    def config_show(self) -> int:
        pi_header(f"Configuration ({self.config_manager.config_path})")
        for key, value in self.config.to_dict().items():
            console.print(f"  [cyan]{key}[/cyan]: {value}")
        return 0

    def config_reset_contribution(self) -> int:
        if not self.config_manager.reset_contribution():
            self._print_error(f"Could not write {self.config_manager.config_path}")
            return 1
        pi_print("You will be asked about contributing on the next run", "success")
        return 0


def _add_install_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--requirements", "-r", help="Requirements manifest path")
    parser.add_argument("--catalog", help="Package catalog path")
    parser.add_argument("--threshold", type=float, help="Minimum suggestion similarity (0-1)")
    parser.add_argument(
        "--max-retries", type=int, help="Alternatives to try per failed package"
    )
    parser.add_argument("--timeout", type=int, help="Install timeout in seconds")
    answers = parser.add_mutually_exclusive_group()
    answers.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Contribute new packages and take the best suggestion without asking",
    )
    answers.add_argument(
        "--no-input", action="store_true", help="Never prompt; decline every question"
    )
    parser.add_argument(
        "--no-update-requirements",
        action="store_true",
        help="Do not rewrite the manifest when an alternative is installed",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pkginstaller",
        description="Batch-install packages with catalog-backed suggestions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", "-V", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")
    parser.add_argument("--config", help="Configuration file path")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    install_parser = subparsers.add_parser("install", help="Install the requirements manifest")
    _add_install_options(install_parser)
    # Global options repeated so they may also follow the command name
    install_parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Show debug logging",
    )
    install_parser.add_argument(
        "--config", default=argparse.SUPPRESS, help="Configuration file path"
    )

    suggest_parser = subparsers.add_parser("suggest", help="Find similar catalog packages")
    suggest_parser.add_argument("name", help="Package name")
    suggest_parser.add_argument("--threshold", type=float, help="Minimum similarity (0-1)")
    suggest_parser.add_argument("--catalog", help="Package catalog path")

    catalog_parser = subparsers.add_parser("catalog", help="Inspect or edit the package catalog")
    catalog_parser.add_argument("--catalog", help="Package catalog path")
    catalog_subs = catalog_parser.add_subparsers(dest="catalog_action", help="Catalog actions")
    catalog_subs.add_parser("list", help="List known packages")
    add_parser = catalog_subs.add_parser("add", help="Add a package")
    add_parser.add_argument("name", help="Package name")
    add_parser.add_argument("--downloads", type=int, default=0, help="Download count")
    downloads_parser = catalog_subs.add_parser(
        "set-downloads", help="Update the download count of a package"
    )
    downloads_parser.add_argument("name", help="Package name")
    downloads_parser.add_argument("downloads", type=int, help="Download count")

    init_parser = subparsers.add_parser("init", help="Create a template requirements manifest")
    init_parser.add_argument("--requirements", "-r", help="Requirements manifest path")
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing file")

    config_parser = subparsers.add_parser("config", help="Show or reset configuration")
    config_subs = config_parser.add_subparsers(dest="config_action", help="Config actions")
    config_subs.add_parser("show", help="Show the effective configuration")
    config_subs.add_parser("reset-contribution", help="Forget the contribution answer")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    argv = list(argv) if argv is not None else sys.argv[1:]
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        # Global options only; run the default command with them
        args = parser.parse_args([*argv, "install"])

    cli = PackageInstallerCLI(args.config)

    try:
        if args.command == "install":
            show_banner()
            return cli.install(args)
        elif args.command == "suggest":
            return cli.suggest(args)
        elif args.command == "catalog":
            if args.catalog_action == "list":
                return cli.catalog_list(args)
            elif args.catalog_action == "add":
                return cli.catalog_add(args)
            elif args.catalog_action == "set-downloads":
                return cli.catalog_set_downloads(args)
            parser.print_help()
            return 1
        elif args.command == "init":
            return cli.init(args)
        elif args.command == "config":
            if args.config_action == "show":
                return cli.config_show()
            elif args.config_action == "reset-contribution":
                return cli.config_reset_contribution()
            parser.print_help()
            return 1
        else:
            parser.print_help()
            return 1
    except ConfigError as e:
        cli._print_error(f"Invalid configuration: {e}")
        return 1
    except KeyboardInterrupt:
        print("\n❌ Operation cancelled by user", file=sys.stderr)
        return 130


def installer_packages_main() -> int:
    """Entry point that always runs ``install``."""
    return main(["install", *sys.argv[1:]])


if __name__ == "__main__":
    sys.exit(main())
