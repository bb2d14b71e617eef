"""CLI for MongoDB-to-PostgreSQL migration sessions.

Provides commands to connect a source profile, run discovery, review the
schema/relationship/risk report, generate a migration plan, configure the
target database and execute the migration with live progress.

Usage:
    SOURCE_PROFILE=local MIGRATION_USER_ID=u-123 migration-mind connect
    migration-mind status
    migration-mind profiles
    migration-mind analyze --sample-size 500
    migration-mind report
    migration-mind plan --generate
    migration-mind target --host db.example.com --username postgres
    migration-mind migrate
    migration-mind sessions

Commands:
    connect   - Test the source connection and resolve its session
    status    - Show the current session and its statistics
    profiles  - List available source profiles
    analyze   - Run (or re-run) schema discovery
    report    - Show discovered schema, relationships and risks
    plan      - Show (or generate) the migration plan
    target    - Configure the target PostgreSQL database
    migrate   - Start the migration and follow its progress
    sessions  - List your analysis sessions
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.live import Live
from rich.table import Table

from migration_mind.analysis.models import ConnectionDescriptor, group_risks_by_severity
from migration_mind.analysis.session import SessionResolver
from migration_mind.config.loader import load_config
from migration_mind.config.models import ClientConfig
from migration_mind.execution.models import MonitorState, RunStatus, TableProgress, TableStatus
from migration_mind.factory import (
    ProfileNotFoundError,
    SessionLock,
    get_active_profile_name,
    get_api,
    get_user_id,
    profile_to_descriptor,
    read_session_lock,
    write_session_lock,
)
from migration_mind.plan.models import MigrationPlan
from migration_mind.workspace import MigrationWorkspace

console = Console()

_STATUS_STYLES = {
    TableStatus.PENDING: "dim",
    TableStatus.RUNNING: "cyan",
    TableStatus.COMPLETED: "green",
    TableStatus.FAILED: "red",
}

_SEVERITY_STYLES = {
    "CRITICAL": "bold red",
    "HIGH": "red",
    "MEDIUM": "yellow",
    "LOW": "dim",
}


# ============================================================================
# Shared helpers
# ============================================================================


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _load_config(args: argparse.Namespace) -> ClientConfig | None:
    """Load migration-mind.toml, printing the error on failure."""
    config_path = getattr(args, "config", None)
    try:
        return load_config(Path(config_path) if config_path else None)
    except (FileNotFoundError, ValidationError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return None


def _require_session(
    args: argparse.Namespace,
) -> tuple[ClientConfig, SessionLock, ConnectionDescriptor] | None:
    """Load config and the session lock for commands that need a session.

    The source descriptor comes from the locked profile when it still
    exists, else from the host/port/database recorded in the lock.
    """
    config = _load_config(args)
    if config is None:
        return None

    lock = read_session_lock()
    if lock is None:
        console.print("[yellow]No active session.[/yellow]")
        console.print(
            "[dim]Run[/dim] [cyan]migration-mind connect[/cyan] [dim]first.[/dim]"
        )
        return None

    if lock.profile and lock.profile in config.profiles:
        descriptor = profile_to_descriptor(config.profiles[lock.profile])
    else:
        descriptor = ConnectionDescriptor(
            host=lock.host, port=lock.port, database_name=lock.database
        )
    return config, lock, descriptor


def _print_failures(applied: dict[str, bool] | None) -> None:
    if not applied:
        return
    failed = [name for name, ok in applied.items() if not ok]
    if failed:
        console.print(f"[yellow]Could not load: {', '.join(failed)}[/yellow]")


def _progress_table(progress: list[TableProgress]) -> Table:
    table = Table(title="Migration Progress", show_header=True, header_style="bold")
    table.add_column("Table")
    table.add_column("Status")
    table.add_column("Rows", justify="right")
    table.add_column("%", justify="right")

    if not progress:
        table.add_row("[dim]waiting for workers...[/dim]", "", "", "")
    for p in progress:
        style = _STATUS_STYLES.get(p.status, "")
        table.add_row(
            p.table_name,
            f"[{style}]{p.status}[/{style}]",
            f"{p.rows_processed:,}/{p.rows_total:,}",
            f"{p.percentage}%",
        )
    return table


def _print_plan(plan: MigrationPlan) -> None:
    if not plan.is_structured:
        console.print("[yellow]Plan has no recognized sections; raw content:[/yellow]")
        console.print_json(json.dumps(plan.raw))
        return

    for mapping in plan.table_mappings:
        table = Table(
            title=f"{mapping.source_collection} -> {mapping.target_table}",
            show_header=True,
            header_style="bold",
        )
        table.add_column("Source field")
        table.add_column("Column")
        table.add_column("Type")
        table.add_column("Notes", style="dim")
        for col in mapping.columns:
            notes = []
            if col.primary_key:
                notes.append("PK")
            if not col.nullable:
                notes.append("NOT NULL")
            if col.requires_transformation:
                notes.append(f"transform: {col.transformation_type or 'yes'}")
            table.add_row(col.source_field, col.target_column, col.data_type, ", ".join(notes))
        console.print(table)

    if plan.foreign_keys:
        fk_table = Table(title="Foreign Keys", show_header=True, header_style="bold")
        fk_table.add_column("From")
        fk_table.add_column("To")
        fk_table.add_column("Confidence", justify="right")
        for fk in plan.foreign_keys:
            fk_table.add_row(
                f"{fk.source_table}.{fk.source_column}",
                f"{fk.target_table}.{fk.target_column}",
                f"{fk.confidence:.0%}" if fk.confidence is not None else "",
            )
        console.print(fk_table)

    if plan.indexes:
        console.print("\n[bold]Recommended indexes[/bold]")
        for index in plan.indexes:
            console.print(f"  {index.index_name}  [dim]{index.reason}[/dim]")

    if plan.migration_steps:
        console.print("\n[bold]Migration steps[/bold]")
        for step in plan.migration_steps:
            console.print(f"  {step.step}. {step.description}")
            if step.note:
                console.print(f"     [dim]{step.note}[/dim]")


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_connect(args: argparse.Namespace) -> int:
    """Async implementation for connect command.

    Args:
        args: Parsed arguments with env_prefix, profile, connection_string
            and user_id.

    Returns:
        0 on success, 1 on failure.
    """
    env_prefix = getattr(args, "env_prefix", "")
    config = _load_config(args)
    if config is None:
        return 1

    profile_name = getattr(args, "profile", None)
    connection_string = getattr(args, "connection_string", None)
    if profile_name is None and not connection_string:
        try:
            profile_name = get_active_profile_name(env_prefix)
        except ProfileNotFoundError as e:
            console.print(f"[red]{e}[/red]")
            return 1

    descriptor = ConnectionDescriptor()
    if profile_name is not None:
        if profile_name not in config.profiles:
            available = ", ".join(config.profiles.keys())
            console.print(
                f"[red]Profile '{profile_name}' not found. Available: {available}[/red]"
            )
            return 1
        descriptor = profile_to_descriptor(config.profiles[profile_name])

    user_id = getattr(args, "user_id", None) or get_user_id(env_prefix)
    previous = read_session_lock()

    async with get_api(config) as api:
        workspace = MigrationWorkspace(api, user_id, config.analysis, connection=descriptor)
        if connection_string:
            workspace.set_connection_string(connection_string)

        console.print(
            f"Testing connection to {workspace.connection.display_name}...", style="dim"
        )
        result = await workspace.test_connection()

    if not result.success:
        console.print()
        console.print(f"[bold red]x[/bold red] {result.error}")
        return 1

    connection = workspace.connection
    session = result.session
    write_session_lock(
        SessionLock(
            profile=profile_name,
            session_id=session.session_id,
            host=connection.host,
            port=connection.port,
            database=connection.database_name,
        )
    )

    console.print()
    console.print(
        f"[bold green]v[/bold green] Connected to "
        f"[bold cyan]{connection.display_name}[/bold cyan]"
    )
    if result.probe and result.probe.collection_count is not None:
        console.print(f"  Collections: {result.probe.collection_count}")
    console.print(f"  Session: {session.session_id}")

    if result.loaded_existing is not None:
        last = workspace.orchestrator.last_analyzed_at
        console.print(
            f"  Existing analysis loaded"
            f"{f' (last analyzed {last:%Y-%m-%d %H:%M})' if last else ''}"
        )
        _print_failures(result.loaded_existing)
    else:
        console.print(
            "  [dim]No analysis yet. Run[/dim] [cyan]migration-mind analyze[/cyan]"
        )

    if previous and previous.session_id != session.session_id:
        console.print(
            f"\n[dim]Switched from[/dim] [bold]{previous.host}:{previous.port}/"
            f"{previous.database}[/bold]"
        )
    return 0


async def _async_status(args: argparse.Namespace) -> int:
    """Async implementation for status command.

    Returns:
        0 always (informational command).
    """
    lock = read_session_lock()
    if lock is None:
        console.print("[yellow]No active session.[/yellow]")
        console.print(
            "[dim]Run:[/dim] [cyan]SOURCE_PROFILE=<name> migration-mind connect[/cyan]"
        )
        return 0

    table = Table(title="Session Status", show_header=False)
    table.add_column("Key", style="dim")
    table.add_column("Value")

    table.add_row("Profile", f"[bold cyan]{lock.profile or '(connection string)'}[/bold cyan]")
    table.add_row("Source", f"{lock.host}:{lock.port}/{lock.database}")
    table.add_row("Session", lock.session_id)
    if lock.run_id:
        table.add_row("Last run", lock.run_id)

    config = _load_config(args)
    if config is not None:
        async with get_api(config) as api:
            stats = await SessionResolver(api).get_statistics(lock.session_id)
        if stats is not None:
            table.add_row("Collections", str(stats.collection_count))
            table.add_row("Fields", str(stats.total_fields))
            table.add_row("Relationships", str(stats.relationship_count))
            table.add_row("Risks", str(stats.risk_count))
        else:
            table.add_row("Statistics", "[yellow]unavailable[/yellow]")

    console.print(table)
    return 0


async def _async_analyze(args: argparse.Namespace) -> int:
    """Async implementation for analyze command.

    Returns:
        0 on success, 1 on failure.
    """
    ctx = _require_session(args)
    if ctx is None:
        return 1
    config, lock, descriptor = ctx

    async with get_api(config) as api:
        workspace = MigrationWorkspace(api, get_user_id(args.env_prefix), config.analysis)
        await workspace.resume(lock.session_id, descriptor, load_artifacts=False)

        console.print(f"Analyzing {descriptor.display_name}...", style="dim")
        result = await workspace.run_analysis(
            sample_size=getattr(args, "sample_size", None),
            include_ai=getattr(args, "include_ai", None),
        )
        snapshot = workspace.orchestrator.snapshot

    if not result.success:
        console.print()
        console.print(f"[bold red]x[/bold red] {result.error}")
        return 1

    console.print()
    console.print(f"[bold green]v[/bold green] {result.message or 'Analysis complete'}")

    table = Table(title="Collections", show_header=True, header_style="bold")
    table.add_column("Collection")
    table.add_column("Fields", justify="right")
    for name in snapshot.collections:
        table.add_row(name, str(snapshot.field_counts_by_collection.get(name, 0)))
    console.print(table)
    console.print(
        f"  Relationships: {snapshot.relationship_count}  Risks: {snapshot.risk_count}"
    )
    console.print(f"  [dim]Analyzed at {snapshot.timestamp:%Y-%m-%d %H:%M:%S}[/dim]")
    return 0


async def _async_report(args: argparse.Namespace) -> int:
    """Async implementation for report command.

    Returns:
        0 on success, 1 if no session or nothing could be loaded.
    """
    ctx = _require_session(args)
    if ctx is None:
        return 1
    config, lock, descriptor = ctx

    async with get_api(config) as api:
        workspace = MigrationWorkspace(api, get_user_id(args.env_prefix), config.analysis)
        applied = await workspace.resume(lock.session_id, descriptor)

    artifacts = workspace.orchestrator.artifacts
    _print_failures(applied)
    if not artifacts.schemas:
        console.print("[yellow]No schema discovered yet.[/yellow]")
        console.print("[dim]Run[/dim] [cyan]migration-mind analyze[/cyan]")
        return 1

    for collection, fields in artifacts.schemas.items():
        table = Table(title=collection, show_header=True, header_style="bold")
        table.add_column("Field")
        table.add_column("Types")
        table.add_column("Frequency", justify="right")
        table.add_column("", style="dim")
        for field in fields:
            flags = []
            if field.is_required:
                flags.append("required")
            if field.is_array:
                flags.append("array")
            table.add_row(
                field.field_path or field.field_name,
                ", ".join(field.data_types),
                f"{field.frequency:.0%}",
                ", ".join(flags),
            )
        console.print(table)

    if artifacts.relationships:
        rel_table = Table(title="Relationships", show_header=True, header_style="bold")
        rel_table.add_column("From")
        rel_table.add_column("To")
        rel_table.add_column("Type")
        rel_table.add_column("Confidence", justify="right")
        for rel in artifacts.relationships:
            rel_table.add_row(
                f"{rel.source_collection}.{rel.source_field}",
                f"{rel.target_collection}.{rel.target_field}",
                rel.relation_type,
                f"{rel.confidence:.0%}",
            )
        console.print(rel_table)

    grouped = group_risks_by_severity(artifacts.risks)
    if grouped:
        console.print("\n[bold]Risks[/bold]")
        for severity, risks in grouped.items():
            style = _SEVERITY_STYLES.get(str(severity), "")
            for risk in risks:
                console.print(f"  [{style}]{severity}[/{style}] {risk.description}")
                if risk.mitigation:
                    console.print(f"    [dim]{risk.mitigation}[/dim]")
    return 0


async def _async_plan(args: argparse.Namespace) -> int:
    """Async implementation for plan command.

    Returns:
        0 on success, 1 on failure or when no plan exists.
    """
    ctx = _require_session(args)
    if ctx is None:
        return 1
    config, lock, descriptor = ctx

    async with get_api(config) as api:
        workspace = MigrationWorkspace(api, get_user_id(args.env_prefix), config.analysis)
        await workspace.resume(lock.session_id, descriptor)

        if getattr(args, "generate", False):
            console.print("Generating migration plan...", style="dim")
            result = await workspace.generate_plan()
            if not result.success:
                console.print(f"[bold red]x[/bold red] {result.error}")
                return 1

    plan = workspace.orchestrator.artifacts.plan
    if plan is None:
        console.print("[yellow]No migration plan yet.[/yellow]")
        console.print("[dim]Run[/dim] [cyan]migration-mind plan --generate[/cyan]")
        return 1

    _print_plan(plan)
    return 0


async def _async_target(args: argparse.Namespace) -> int:
    """Async implementation for target command.

    Returns:
        0 on success, 1 on failure.
    """
    ctx = _require_session(args)
    if ctx is None:
        return 1
    config, lock, descriptor = ctx

    async with get_api(config) as api:
        workspace = MigrationWorkspace(api, get_user_id(args.env_prefix), config.analysis)
        await workspace.resume(lock.session_id, descriptor, load_artifacts=False)

        async with workspace.open_monitor() as monitor:
            summary = await monitor.check_target()

            if monitor.state is MonitorState.CONFIGURED:
                if not args.host:
                    console.print(f"Target: [bold cyan]{summary.display_name}[/bold cyan]")
                    console.print(
                        "[dim]Pass --host/--username to change the target database.[/dim]"
                    )
                    return 0
                monitor.change_target()

            password = args.password
            if password is None and args.host and args.username:
                password = console.input("Target password: ", password=True)

            result = await monitor.save_target_credentials(
                args.host, args.port, args.database, args.username, password
            )

    if not result.success:
        console.print(f"[bold red]x[/bold red] {result.error}")
        return 1

    console.print(
        f"[bold green]v[/bold green] Target saved: "
        f"[bold cyan]{monitor.target.display_name}[/bold cyan]"
    )
    return 0


async def _async_migrate(args: argparse.Namespace) -> int:
    """Async implementation for migrate command.

    Returns:
        0 when every table completed, 1 on failure or any failed table.
    """
    ctx = _require_session(args)
    if ctx is None:
        return 1
    config, lock, descriptor = ctx

    poll_interval = getattr(args, "poll_interval", None) or config.service.poll_interval
    live = Live(_progress_table([]), console=console, auto_refresh=False)

    def on_update(progress: list[TableProgress]) -> None:
        live.update(_progress_table(progress), refresh=True)

    async with get_api(config) as api:
        workspace = MigrationWorkspace(api, get_user_id(args.env_prefix), config.analysis)
        await workspace.resume(lock.session_id, descriptor, load_artifacts=False)

        async with workspace.open_monitor(poll_interval, on_update=on_update) as monitor:
            await monitor.check_target()
            if monitor.state is not MonitorState.CONFIGURED:
                console.print("[yellow]No target database configured.[/yellow]")
                console.print("[dim]Run[/dim] [cyan]migration-mind target[/cyan] [dim]first.[/dim]")
                return 1

            console.print(f"Target: [bold cyan]{monitor.target.display_name}[/bold cyan]")
            started = await monitor.start()
            if not started.success:
                console.print(f"[bold red]x[/bold red] {started.error}")
                return 1

            write_session_lock(lock.model_copy(update={"run_id": started.run_id}))
            console.print(f"Run {started.run_id} started", style="dim")

            with live:
                status = await monitor.wait()

            progress = monitor.progress
            failed = monitor.failed_tables

    console.print()
    if status is not RunStatus.COMPLETED:
        console.print(
            f"[bold red]x[/bold red] Progress polling stopped before run "
            f"{started.run_id} finished"
        )
        return 1
    if failed:
        console.print(
            f"[bold red]x[/bold red] {len(failed)} of {len(progress)} tables failed: "
            f"{', '.join(p.table_name for p in failed)}"
        )
        return 1
    console.print(f"[bold green]v[/bold green] Migrated {len(progress)} tables")
    return 0


async def _async_sessions(args: argparse.Namespace) -> int:
    """Async implementation for sessions command.

    Returns:
        0 on success, 1 on failure.
    """
    config = _load_config(args)
    if config is None:
        return 1

    user_id = getattr(args, "user_id", None) or get_user_id(args.env_prefix)
    async with get_api(config) as api:
        result = await SessionResolver(api).list_sessions(user_id)

    if not result.success:
        console.print(f"[bold red]x[/bold red] {result.error}")
        return 1

    current = read_session_lock()
    table = Table(title="Analysis Sessions", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Session")
    table.add_column("Source")
    table.add_column("Status")
    table.add_column("Analyzed")
    table.add_column("Plan")

    for s in result.sessions:
        is_current = current is not None and s.id == current.session_id
        table.add_row(
            "[bold green]*[/bold green]" if is_current else " ",
            s.name or s.id,
            f"{s.source_host}:{s.source_port}/{s.source_database}",
            s.status,
            s.last_analyzed_at or ("yes" if s.has_analysis else "-"),
            "yes" if s.has_migration_plan else "-",
        )

    console.print(table)
    return 0


# ============================================================================
# Sync command wrappers (cmd_profiles reads local files only)
# ============================================================================


def cmd_connect(args: argparse.Namespace) -> int:
    """Test the source connection and resolve its session.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_connect(args))


def cmd_status(args: argparse.Namespace) -> int:
    """Show the current session and its statistics."""
    return asyncio.run(_async_status(args))


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from migration-mind.toml.

    Reads only local TOML config -- no service calls.

    Returns:
        0 on success, 1 if migration-mind.toml not found.
    """
    config = _load_config(args)
    if config is None:
        return 1

    lock = read_session_lock()
    current = lock.profile if lock else None

    table = Table(title="Source Profiles", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Source")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green]" if name == current else " "
        name_style = "bold cyan" if name == current else ""
        table.add_row(
            marker,
            f"[{name_style}]{name}[/{name_style}]" if name_style else name,
            profile_to_descriptor(profile).display_name,
            profile.description or "",
        )

    console.print(table)

    if current:
        console.print("\n[bold green]*[/bold green] = current profile")

    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    """Run schema discovery for the current session."""
    return asyncio.run(_async_analyze(args))


def cmd_report(args: argparse.Namespace) -> int:
    """Show the discovered schema, relationships and risks."""
    return asyncio.run(_async_report(args))


def cmd_plan(args: argparse.Namespace) -> int:
    """Show or generate the migration plan."""
    return asyncio.run(_async_plan(args))


def cmd_target(args: argparse.Namespace) -> int:
    """Configure the target PostgreSQL database."""
    return asyncio.run(_async_target(args))


def cmd_migrate(args: argparse.Namespace) -> int:
    """Start the migration and follow its progress until it finishes."""
    return asyncio.run(_async_migrate(args))


def cmd_sessions(args: argparse.Namespace) -> int:
    """List the user's analysis sessions."""
    return asyncio.run(_async_sessions(args))


# ============================================================================
# Main entry point
# ============================================================================


def main() -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="migration-mind",
        description="MongoDB-to-PostgreSQL migration analysis and execution",
    )

    # Global options
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_SOURCE_PROFILE)"
        ),
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to migration-mind.toml (default: ./migration-mind.toml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # connect command
    p_connect = subparsers.add_parser(
        "connect",
        help="Test the source connection and resolve its session",
    )
    p_connect.add_argument("--profile", "-p", help="Source profile from migration-mind.toml")
    p_connect.add_argument(
        "--connection-string",
        help="MongoDB connection string (overrides the profile's host/port/database)",
    )
    p_connect.add_argument("--user-id", help="User id (default: MIGRATION_USER_ID env var)")
    p_connect.set_defaults(func=cmd_connect)

    # status command
    p_status = subparsers.add_parser("status", help="Show the current session")
    p_status.set_defaults(func=cmd_status)

    # profiles command
    p_profiles = subparsers.add_parser("profiles", help="List available source profiles")
    p_profiles.set_defaults(func=cmd_profiles)

    # analyze command
    p_analyze = subparsers.add_parser("analyze", help="Run (or re-run) schema discovery")
    p_analyze.add_argument(
        "--sample-size",
        type=int,
        default=None,
        help="Documents sampled per collection (default from [analysis])",
    )
    p_analyze.add_argument(
        "--include-ai",
        action="store_true",
        default=None,
        help="Ask the service for AI-assisted inference",
    )
    p_analyze.set_defaults(func=cmd_analyze)

    # report command
    p_report = subparsers.add_parser(
        "report", help="Show discovered schema, relationships and risks"
    )
    p_report.set_defaults(func=cmd_report)

    # plan command
    p_plan = subparsers.add_parser("plan", help="Show the migration plan")
    p_plan.add_argument(
        "--generate",
        action="store_true",
        help="Generate (or regenerate) the plan from the discovered schema",
    )
    p_plan.set_defaults(func=cmd_plan)

    # target command
    p_target = subparsers.add_parser("target", help="Configure the target PostgreSQL database")
    p_target.add_argument("--host", help="Target host")
    p_target.add_argument("--port", default="5432", help="Target port (default: 5432)")
    p_target.add_argument("--database", default="postgres", help="Target database (default: postgres)")
    p_target.add_argument("--username", help="Target username")
    p_target.add_argument("--password", help="Target password (prompted when omitted)")
    p_target.set_defaults(func=cmd_target)

    # migrate command
    p_migrate = subparsers.add_parser("migrate", help="Start the migration and follow progress")
    p_migrate.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds between progress polls (default from [service])",
    )
    p_migrate.set_defaults(func=cmd_migrate)

    # sessions command
    p_sessions = subparsers.add_parser("sessions", help="List your analysis sessions")
    p_sessions.add_argument("--user-id", help="User id (default: MIGRATION_USER_ID env var)")
    p_sessions.set_defaults(func=cmd_sessions)

    args = parser.parse_args()
    _setup_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
