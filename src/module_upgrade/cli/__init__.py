"""CLI module for reconciling database schemas with module definitions.

Provides commands to upgrade a module's tables and to list database
profiles.

Usage:
    DB_PROFILE=local module-upgrade database blog
    module-upgrade database blog --dry-run
    module-upgrade database blog --force --definitions ./definitions
    module-upgrade --env-prefix SHOP_ database blog --profile staging
    module-upgrade profiles

Commands:
    database  - Create or update the tables of a module's models
    profiles  - List available profiles
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import psycopg
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from module_upgrade.config.loader import load_db_config
from module_upgrade.config.models import DatabaseConfig
from module_upgrade.definitions.discovery import JsonDefinitionDiscovery
from module_upgrade.errors import DiscoveryError, SnapshotUnavailableError
from module_upgrade.factory import (
    ProfileNotFoundError,
    get_active_profile,
    get_active_profile_name,
    get_adapter,
    get_introspector,
)
from module_upgrade.migration.orchestrator import UpgradeResult, UpgradeStatus, upgrade_database
from module_upgrade.schema.differ import MigrationPlan, MigrationStep, StepKind
from module_upgrade.schema.naming import NamingConvention, default_naming, prefixed_naming

console = Console()

_KIND_STYLES = {
    StepKind.CREATE_TABLE: "bold green",
    StepKind.ADD_COLUMN: "green",
    StepKind.ALTER_COLUMN: "yellow",
    StepKind.ADD_INDEX: "cyan",
}


# ============================================================================
# Helpers
# ============================================================================


def _build_naming(config: DatabaseConfig) -> NamingConvention:
    """Naming convention from ``[migration] table_prefix``."""
    prefix = config.migration.table_prefix
    return prefixed_naming(prefix) if prefix else default_naming


def _confirm_plan(plan: MigrationPlan) -> bool:
    """Ask whether the displayed plan should be applied."""
    answer = console.input("Do you want to apply this on the database? (y/n) ")
    return answer.strip().lower() in ("y", "yes")


def _print_progress(event: str, step: MigrationStep, position: int, total: int) -> None:
    if event == "completed":
        console.print(f"  [green]v[/green] [{position}/{total}] {step.kind.value} [cyan]{step.target}[/cyan]")
    elif event == "failed":
        console.print(f"  [red]x[/red] [{position}/{total}] {step.kind.value} [cyan]{step.target}[/cyan]")


def _print_plan(plan: MigrationPlan) -> None:
    table = Table(title="Schema Changes", show_header=True, header_style="bold")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Change")
    table.add_column("Target", style="dim")
    table.add_column("Statement")

    for position, step in enumerate(plan.steps, start=1):
        style = _KIND_STYLES.get(step.kind, "")
        table.add_row(
            str(position),
            f"[{style}]{step.kind.value}[/{style}]" if style else step.kind.value,
            step.target,
            step.to_sql(),
        )

    console.print(table)


def _print_skipped(discovery: JsonDefinitionDiscovery, root: Path) -> None:
    if not discovery.skipped:
        return
    console.print(f"[bold red]{len(discovery.skipped)} definition file(s) skipped:[/bold red]")
    for path, reason in discovery.skipped:
        console.print(f"  [red]x[/red] {path.relative_to(root)}: {escape(reason)}")


def _print_failures(result: UpgradeResult) -> None:
    if not result.failures:
        return
    console.print()
    console.print(f"[bold red]{len(result.failures)} model(s) could not be read:[/bold red]")
    for failure in result.failures:
        console.print(f"  [red]x[/red] {failure.model}: {escape(failure.message)}")


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_database(args: argparse.Namespace) -> int:
    """Async implementation for database command.

    Args:
        args: Parsed arguments with module, force, dry_run, definitions,
            profile and env_prefix.

    Returns:
        0 on success (including nothing to do or a declined plan), 1 on
        failure.
    """
    env_prefix = getattr(args, "env_prefix", "")

    try:
        config = load_db_config()
        profile_name, profile = get_active_profile(
            args.profile, env_prefix=env_prefix, config=config
        )
    except (FileNotFoundError, ProfileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    definitions_dir = Path(args.definitions or config.migration.definitions_dir)
    discovery = JsonDefinitionDiscovery(definitions_dir)

    console.print(
        f"Upgrading [bold]{args.module}[/bold] on profile [cyan]{profile_name}[/cyan]...",
        style="dim",
    )

    try:
        adapter = get_adapter(profile)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] Connection failed: {e}")
        return 1

    def confirm(plan: MigrationPlan) -> bool:
        _print_plan(plan)
        if not args.force:
            console.print()
            if not _confirm_plan(plan):
                return False
        console.print()
        console.print("[bold]Executing without deletes or drops...[/bold]")
        return True

    try:
        async with get_introspector(profile, config) as introspector:
            result = await upgrade_database(
                args.module,
                discovery,
                introspector,
                adapter,
                naming=_build_naming(config),
                schema_name=config.migration.schema_name,
                confirm=confirm,
                dry_run=args.dry_run,
                on_progress=_print_progress,
            )
    except (DiscoveryError, SnapshotUnavailableError) as e:
        console.print(f"\n[red]Error: {e}[/red]")
        return 1
    except (OSError, psycopg.Error) as e:
        console.print(f"\n[bold red]Error:[/bold red] Connection failed: {e}")
        return 1
    finally:
        await adapter.close()

    console.print(f"Detected {result.definitions} model definition(s)")
    _print_skipped(discovery, definitions_dir)
    _print_failures(result)

    if result.status == UpgradeStatus.NO_MODELS:
        console.print("[yellow]No models found, nothing to upgrade.[/yellow]")
        return 0

    if result.status == UpgradeStatus.NO_DIFFERENCES:
        console.print()
        console.print("[bold green]v[/bold green] No differences detected.")
        return 0

    if result.status == UpgradeStatus.PLANNED:
        _print_plan(result.plan)
        console.print()
        console.print("[bold yellow]DRY RUN[/bold yellow] - No changes made.")
        return 0

    if result.status == UpgradeStatus.DECLINED:
        console.print("[yellow]Aborted, no statements applied.[/yellow]")
        return 0

    migration = result.migration
    if result.status == UpgradeStatus.APPLIED:
        console.print()
        console.print(
            f"[bold green]v Done![/bold green] {migration.applied} statement(s) "
            "applied without deletes or drops."
        )
        return 0

    console.print()
    console.print(f"[bold red]x[/bold red] {migration.error}")
    for outcome in migration.failures:
        console.print(f"  [red]{outcome.sql}[/red]")
        console.print(f"    [dim]{outcome.error}[/dim]")
    return 1


# ============================================================================
# Sync command wrappers
# ============================================================================


def cmd_database(args: argparse.Namespace) -> int:
    """Create or update the tables of a module's models.

    Wraps the async implementation with ``asyncio.run()``.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on failure.
    """
    return asyncio.run(_async_database(args))


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from db.toml.

    Reads only local TOML config -- no database calls.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 if db.toml not found.
    """
    try:
        config = load_db_config()
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        current = get_active_profile_name(env_prefix=getattr(args, "env_prefix", ""))
    except ProfileNotFoundError:
        current = None

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green]" if name == current else " "
        name_style = "bold cyan" if name == current else ""
        table.add_row(
            marker,
            f"[{name_style}]{name}[/{name_style}]" if name_style else name,
            profile.description or "",
        )

    console.print(table)

    if current in config.profiles:
        console.print("\n[bold green]*[/bold green] = active profile")

    return 0


# ============================================================================
# Main entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="module-upgrade",
        description="Reconcile database schemas with module model definitions",
    )

    # Global options
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE)"
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # database command
    p_database = subparsers.add_parser(
        "database",
        help="Create or update the tables of a module's models",
    )
    p_database.add_argument("module", help="Module whose models are upgraded")
    p_database.add_argument(
        "--force",
        action="store_true",
        help="Apply changes without asking for confirmation",
    )
    p_database.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the statements without applying them",
    )
    p_database.add_argument(
        "--definitions",
        default=None,
        help="Directory holding <module>/*.json definitions (default: from db.toml)",
    )
    p_database.add_argument(
        "--profile",
        default=None,
        help="Database profile (default: DB_PROFILE environment variable)",
    )
    p_database.set_defaults(func=cmd_database)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
