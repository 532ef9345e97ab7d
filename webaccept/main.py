"""
webaccept - browser-driven acceptance test harness.
Main entry point for the application.
"""

import argparse
import asyncio
import sys
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table

from webaccept import __version__
from webaccept.config.settings import Settings, coerce_settings, get_settings
from webaccept.core.types import CaseRun, RunStatus, SuiteRun
from webaccept.error_handling import ConfigurationError
from webaccept.monitoring.logger import get_logger, setup_logging
from webaccept.orchestration.suite import TestSuite

console = Console()
logger = get_logger("webaccept.main")

STATUS_STYLES = {
    RunStatus.PENDING: "yellow",
    RunStatus.PASSED: "green",
    RunStatus.FAILED: "red",
}

# argparse destination -> settings field
SETTING_OVERRIDES = {
    "cases_package": "cases_package",
    "base_url": "base_url",
    "web_app": "web_app",
    "browser": "browser",
    "ws_endpoint": "browser_ws_endpoint",
    "branch": "branch",
    "build_number": "build_number",
    "suite_name": "suite_name",
    "log_dir": "logging_directory",
    "database": "database_path",
}


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="webaccept",
        description=f"webaccept - browser-driven acceptance test harness v{__version__}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run two cases from the default "cases" package
  webaccept --case Login --case CheckoutGuest

  # Resolve cases from another package against a staging host
  webaccept --cases-package examples.cases --base-url https://staging.example.com -c Login

  # Watch the browser while the suite runs
  webaccept --headed -c Login
        """,
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information",
    )

    # Case selection
    parser.add_argument(
        "-c", "--case",
        dest="cases",
        action="append",
        default=[],
        help="Case to run, with or without the trailing 'Case' (repeatable)",
    )
    parser.add_argument(
        "--cases-package",
        help="Python package cases are resolved in (default: settings)",
    )

    # Target and browser
    parser.add_argument(
        "-u", "--base-url",
        help="Base URL of the application under test",
    )
    parser.add_argument(
        "--web-app",
        help="Path segment of the web application",
    )
    parser.add_argument(
        "--browser",
        help="Browser engine (chromium, firefox, webkit or an alias)",
    )
    parser.add_argument(
        "--ws-endpoint",
        help="Connect to a remote Playwright server instead of launching a browser",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window",
    )

    # Suite identity and output
    parser.add_argument("--branch", help="Branch under test")
    parser.add_argument("--build-number", help="CI build number")
    parser.add_argument("--suite-name", help="Suite display name")
    parser.add_argument("--log-dir", help="Root directory of run evidence")
    parser.add_argument("--database", help="SQLite file for run records")

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode with verbose logging",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable structured logging output (JSON)",
    )

    return parser


def show_version() -> int:
    """Show version information."""
    console.print("\n[bold cyan]webaccept - browser-driven acceptance test harness[/bold cyan]")
    console.print(f"Version: [green]{__version__}[/green]")
    return 0


def build_settings(parsed_args: argparse.Namespace) -> Settings:
    """Apply command line overrides on top of environment settings."""
    overrides: Dict[str, Any] = {}
    for dest, field in SETTING_OVERRIDES.items():
        value = getattr(parsed_args, dest, None)
        if value is not None:
            overrides[field] = value

    if parsed_args.headed:
        overrides["browser_headless"] = False
    if parsed_args.debug:
        overrides["log_level"] = "DEBUG"
    if parsed_args.verbose:
        overrides["log_format"] = "json"

    if not overrides:
        return get_settings()
    return coerce_settings(overrides)


def render_summary(suite_run: SuiteRun, case_runs: List[CaseRun]) -> None:
    """Print the per-case result table."""
    table = Table(title=f"{suite_run.suite_name} ({suite_run.branch} #{suite_run.build_number})")
    table.add_column("Case", style="cyan")
    table.add_column("Status")
    table.add_column("Seconds", justify="right")
    table.add_column("Error")

    for run in case_runs:
        style = STATUS_STYLES[run.status]
        table.add_row(
            run.name,
            f"[{style}]{run.status.name}[/{style}]",
            f"{run.elapsed_seconds:.2f}",
            run.error.message if run.error else "",
        )

    console.print(table)
    style = STATUS_STYLES[suite_run.status]
    console.print(
        f"Suite status: [{style}]{suite_run.status.name}[/{style}] "
        f"in {suite_run.elapsed_seconds:.2f}s"
    )


async def run_suite(settings: Settings, cases: List[str]) -> int:
    """
    Build and run a suite.

    Returns:
        Exit code (0 when every case passed)
    """
    suite = TestSuite(settings)
    try:
        suite.push_test_cases(cases)
    except ConfigurationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        await suite.close()
        return 1

    console.print(f"[cyan]Running {len(cases)} case(s) against[/cyan] {settings.application_url}")
    suite_run = await suite.run()
    render_summary(suite_run, suite.case_runs)
    return 0 if suite_run.status == RunStatus.PASSED else 1


async def async_main(args: Optional[List[str]] = None) -> int:
    """Async main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.version:
        return show_version()

    if not parsed_args.cases:
        parser.print_help()
        return 1

    settings = build_settings(parsed_args)
    setup_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
    )
    settings.create_directories()

    return await run_suite(settings, parsed_args.cases)


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for webaccept.

    Args:
        args: Command line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Suite interrupted by user[/yellow]")
        return 130
    except Exception as e:
        logger.exception("Fatal error")
        console.print(f"[red]Fatal error: {e}[/red]")
        return 1


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
