#!/usr/bin/env python3
"""CLI entry point for hmconfig."""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from .core.context import ServiceContext, create_context
from .core.pipeline import analyze_settings, import_latest, import_settings
from .core.results import OperationResult
from .models.mapping import MappingStatus, UpdateNotification
from .models.settings import AppSettings

console = Console()
logger = logging.getLogger("hmconfig")

STATUS_STYLES = {
    MappingStatus.UNMAPPED: "dim",
    MappingStatus.CURRENT: "green",
    MappingStatus.OUTDATED: "yellow",
    MappingStatus.SYNCED: "cyan",
    MappingStatus.ERROR: "red",
    MappingStatus.SERVER_FILE_MISSING: "red",
}


def setup_logging(level: str, verbose: bool = False) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def get_context(args: argparse.Namespace) -> ServiceContext:
    """Build the services from the settings loaded in main()."""
    return create_context(args.settings)


def report(result: OperationResult) -> int:
    """Print a result's message and map it to an exit code."""
    if result.success:
        console.print(f"[green]{escape(result.message)}")
        return 0
    console.print(f"[red]{result.error_kind}: {escape(result.message)}")
    return 1


def cmd_locate(args: argparse.Namespace) -> int:
    """List settings archives found on local disks."""
    ctx = get_context(args)
    candidates = ctx.locator.search_for_settings()

    if not candidates:
        console.print("[yellow]No .omSettings files found.")
        for path in ctx.settings.search_paths:
            console.print(f"  searched: {path}", style="dim")
        return 0

    table = Table(title="Settings archives (newest first)")
    table.add_column("Modified")
    table.add_column("Size", justify="right")
    table.add_column("Source")
    table.add_column("Path")

    for c in candidates:
        table.add_row(c.modified.strftime("%Y-%m-%d %H:%M"), c.size_readable, c.source, c.path)

    console.print(table)
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    """Import an archive (or the newest one found) into a user profile."""
    ctx = get_context(args)

    if args.archive:
        console.print(f"Importing {args.archive} for {args.user}...", style="blue")
        result = import_settings(ctx, Path(args.archive), args.user, keep_archive=not args.no_keep)
    else:
        console.print(f"Looking for the newest settings archive for {args.user}...", style="blue")
        result = import_latest(ctx, args.user)

    if not result.success:
        return report(result)

    config = result.get("config")
    scan = result.get("scan_config")

    console.print(
        Panel(
            f"[bold]{config.version.name}[/bold] {config.version.major}.{config.version.minor}\n"
            f"Machines: {len(config.machines)}   "
            f"Tool DBs: {len(config.databases.tool)}   "
            f"Macro DBs: {len(config.databases.macro)}\n"
            f"Network shares: {len(config.network_shares)}",
            title=f"Imported for {args.user}",
        )
    )

    if scan.paths_to_scan:
        table = Table(title="Paths to scan")
        table.add_column("Type")
        table.add_column("Key")
        table.add_column("Path")
        for p in scan.paths_to_scan:
            table.add_row(p.type, escape(p.key), escape(p.path))
        console.print(table)

    return report(result)


def cmd_analyze(args: argparse.Namespace) -> int:
    """Write the server-path manifest of an archive."""
    ctx = get_context(args)
    result = analyze_settings(ctx, Path(args.archive), args.user)
    if not result.success:
        return report(result)

    summary = result.get("manifest")["summary"]
    table = Table(title="Path classification")
    table.add_column("Kind")
    table.add_column("Count", justify="right")
    for kind in ("serverPaths", "localPaths", "unreachablePaths", "unclearPaths"):
        table.add_row(kind, str(summary[kind]))
    console.print(table)
    console.print(f"Manifest: {result.get('manifest_path')}", style="dim")
    return report(result)


def cmd_profile(args: argparse.Namespace) -> int:
    """Profile subcommands."""
    ctx = get_context(args)

    if args.profile_command == "list":
        profiles = ctx.profiles.list_profiles()
        if not profiles:
            console.print("[yellow]No profiles stored.")
            return 0

        table = Table(title="Profiles")
        table.add_column("User")
        table.add_column("Settings")
        table.add_column("Parsed")
        table.add_column("Scan config")
        table.add_column("Last modified")
        for p in profiles:
            table.add_row(
                p["username"],
                "[green]Yes" if p["hasSettings"] else "[red]No",
                "[green]Yes" if p["hasParsedConfig"] else "[red]No",
                "[green]Yes" if p["hasScanConfig"] else "[red]No",
                p["lastModified"],
            )
        console.print(table)
        return 0

    elif args.profile_command == "show":
        summary = ctx.profiles.get_profile_summary(args.user)
        if summary is None:
            console.print(f"[red]Profile not found: {args.user}")
            return 1

        console.print(f"\n[bold]Profile:[/bold] {summary['username']}")
        console.print(f"[bold]Directory:[/bold] {summary['profileDirectory']}")
        console.print(f"[bold]Settings file:[/bold] {summary['settingsFile'] or 'None'}")

        scan = ctx.profiles.get_scan_config(args.user)
        if scan is not None:
            console.print(f"[bold]Scan config generated:[/bold] {scan.generated_at}")
            for p in scan.paths_to_scan:
                console.print(f"  {escape('[' + p.type + ']')} {escape(p.path)}")
            for share in scan.network_shares:
                console.print(f"  [dim]share[/dim] {escape(share.name)}: {escape(share.path)}")
        return 0

    elif args.profile_command == "delete":
        if not args.yes and not Confirm.ask(f"Delete profile {args.user}?", console=console):
            console.print("[yellow]Cancelled.")
            return 0
        return report(ctx.profiles.delete_profile(args.user))

    return 1


def _print_mappings(mappings: dict) -> None:
    table = Table(title="File mappings")
    table.add_column("Local path")
    table.add_column("Server path")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Checks", justify="right")
    table.add_column("Syncs", justify="right")
    table.add_column("Last checked")

    for local, m in mappings.items():
        style = STATUS_STYLES.get(m.status, "")
        table.add_row(
            escape(local),
            escape(m.server_path),
            m.file_type,
            f"[{style}]{m.status}" if style else m.status,
            str(m.check_count),
            str(m.sync_count),
            m.last_checked or "Never",
        )
    console.print(table)


def cmd_mapping(args: argparse.Namespace) -> int:
    """Mapping subcommands."""
    ctx = get_context(args)
    registry = ctx.registry

    if args.mapping_command == "add":
        return report(registry.add_mapping(args.server, args.local, args.type))

    elif args.mapping_command == "list":
        mappings = registry.get_by_status(args.status) if args.status else registry.get_all()
        if not mappings:
            console.print("[yellow]No mappings.")
            return 0
        _print_mappings(mappings)
        return 0

    elif args.mapping_command == "check":
        targets = [args.local] if args.local else list(registry.get_all())
        exit_code = 0
        for local in targets:
            result = registry.check_for_update(local)
            if not result.success:
                exit_code = report(result)
                continue
            comparison = result.get("comparison")
            style = STATUS_STYLES.get(result.get("status"), "")
            line = f"  {escape(local)}: [{style}]{result.get('status')}"
            if result.get("has_update"):
                line += f" (server newer by {comparison.diff_days} day(s))"
            console.print(line)
        return exit_code

    elif args.mapping_command == "sync":
        return report(registry.mark_as_synced(args.local))

    elif args.mapping_command == "remove":
        return report(registry.remove(args.local))

    elif args.mapping_command == "stats":
        stats = registry.get_statistics()
        console.print(f"\n[bold]Mappings:[/bold] {stats['totalMappings']}")
        console.print(f"[bold]Total checks:[/bold] {stats['totalChecks']}")
        console.print(f"[bold]Total syncs:[/bold] {stats['totalSyncs']}")
        console.print(f"[bold]Last checked:[/bold] {stats['lastChecked'] or 'Never'}")
        for status, count in stats["byStatus"].items():
            console.print(f"  {status}: {count}")
        return 0

    return 1


def _describe(notification: UpdateNotification) -> str:
    size = f"{notification.local_size} -> {notification.server_size}" if notification.size_changed else "same size"
    return (
        f"[bold]{escape(notification.local_path)}[/bold]\n"
        f"Server: {escape(notification.server_path)}\n"
        f"Server modified {notification.server_modified}, local {notification.local_modified} ({size})\n"
        f"{notification.message}"
    )


def cmd_updates(args: argparse.Namespace) -> int:
    """Update detection and the approval workflow."""
    ctx = get_context(args)
    monitor = ctx.monitor

    if args.updates_command == "check":
        result = monitor.check_for_updates(args.server, args.local)
        if not result.success:
            return report(result)
        comparison = result.get("comparison")
        if result.get("has_update"):
            console.print(f"[yellow]Server file is newer by {comparison.diff_days} day(s)")
        else:
            console.print(f"[green]{escape(result.message)}")
        return 0

    elif args.updates_command == "review":
        for local, mapping in ctx.registry.get_all().items():
            check = ctx.registry.check_for_update(local)
            if check.success and check.get("has_update"):
                monitor.create_update_notification(mapping.server_path, local)

        pending = monitor.get_pending_updates()
        if not pending:
            console.print("[green]All cached files are up to date.")
            return 0

        exit_code = 0
        for notification in pending:
            console.print(Panel(_describe(notification), title=notification.id))
            if args.approve_all:
                approve = True
            elif args.reject_all:
                approve = False
            else:
                approve = Confirm.ask("Replace the local copy with the server version?", console=console)

            if approve:
                result = monitor.approve_update(notification.id)
            else:
                result = monitor.reject_update(notification.id)
            exit_code = max(exit_code, report(result))
        return exit_code

    return 1


def cmd_cache(args: argparse.Namespace) -> int:
    """Copy a server file into the local cache and track it."""
    ctx = get_context(args)
    result = ctx.monitor.copy_from_server_to_local(args.server, args.name, args.type)
    if result.success:
        console.print(f"Cached as {result.get('local_path')} ({result.get('size')})", style="dim")
    return report(result)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="hmconfig",
        description="Import hyperMILL settings archives and track server file caches",
    )
    parser.add_argument("--config", help="Settings YAML (default: $HMCONFIG_CONFIG or ./hmconfig.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # locate command
    subparsers.add_parser("locate", help="Find settings archives on local disks")

    # import command
    import_parser = subparsers.add_parser("import", help="Import a settings archive into a profile")
    import_parser.add_argument("archive", nargs="?", help="Archive path (default: newest one found)")
    import_parser.add_argument("--user", required=True, help="Profile username")
    import_parser.add_argument("--no-keep", action="store_true", help="Don't store a copy of the archive")

    # analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Write the server-path manifest of an archive")
    analyze_parser.add_argument("archive", help="Archive path")
    analyze_parser.add_argument("--user", default="all-users", help="Manifest username")

    # profile commands
    profile_parser = subparsers.add_parser("profile", help="Manage stored profiles")
    profile_subparsers = profile_parser.add_subparsers(dest="profile_command")
    profile_subparsers.add_parser("list", help="List profiles")
    profile_show = profile_subparsers.add_parser("show", help="Show one profile")
    profile_show.add_argument("user", help="Profile username")
    profile_delete = profile_subparsers.add_parser("delete", help="Delete a profile")
    profile_delete.add_argument("user", help="Profile username")
    profile_delete.add_argument("--yes", action="store_true", help="Don't ask for confirmation")

    # mapping commands
    mapping_parser = subparsers.add_parser("mapping", help="Manage server/local file mappings")
    mapping_subparsers = mapping_parser.add_subparsers(dest="mapping_command")
    mapping_add = mapping_subparsers.add_parser("add", help="Track a server file")
    mapping_add.add_argument("server", help="Server file path")
    mapping_add.add_argument("local", help="Local cached copy path")
    mapping_add.add_argument("--type", default="other", help="File type tag")
    mapping_list = mapping_subparsers.add_parser("list", help="List mappings")
    mapping_list.add_argument("--status", choices=MappingStatus.ALL, help="Only this status")
    mapping_check = mapping_subparsers.add_parser("check", help="Check mappings for server updates")
    mapping_check.add_argument("local", nargs="?", help="Local path (default: all)")
    mapping_sync = mapping_subparsers.add_parser("sync", help="Mark a mapping as synced")
    mapping_sync.add_argument("local", help="Local path")
    mapping_remove = mapping_subparsers.add_parser("remove", help="Stop tracking a mapping")
    mapping_remove.add_argument("local", help="Local path")
    mapping_subparsers.add_parser("stats", help="Mapping statistics")

    # updates commands
    updates_parser = subparsers.add_parser("updates", help="Detect and approve server updates")
    updates_subparsers = updates_parser.add_subparsers(dest="updates_command")
    updates_check = updates_subparsers.add_parser("check", help="Compare a server file with a local file")
    updates_check.add_argument("server", help="Server file path")
    updates_check.add_argument("local", help="Local file path")
    updates_review = updates_subparsers.add_parser("review", help="Review updates of all mappings")
    decision = updates_review.add_mutually_exclusive_group()
    decision.add_argument("--approve-all", action="store_true", help="Approve every update")
    decision.add_argument("--reject-all", action="store_true", help="Reject every update")

    # cache command
    cache_parser = subparsers.add_parser("cache", help="Copy a server file into the local cache")
    cache_parser.add_argument("server", help="Server file path")
    cache_parser.add_argument("--name", help="File name to cache under")
    cache_parser.add_argument("--type", default="other", help="File type tag")

    args = parser.parse_args(argv)

    handlers = {
        "locate": cmd_locate,
        "import": cmd_import,
        "analyze": cmd_analyze,
        "cache": cmd_cache,
    }
    grouped = {
        "profile": (cmd_profile, "profile_command", profile_parser),
        "mapping": (cmd_mapping, "mapping_command", mapping_parser),
        "updates": (cmd_updates, "updates_command", updates_parser),
    }

    try:
        args.settings = AppSettings.load(Path(args.config) if args.config else None)
        setup_logging(args.settings.log_level, args.verbose)

        if args.command in handlers:
            return handlers[args.command](args)
        elif args.command in grouped:
            handler, subcommand, subparser = grouped[args.command]
            if getattr(args, subcommand):
                return handler(args)
            subparser.print_help()
            return 1
        else:
            parser.print_help()
            return 1
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted.")
        return 1
    except Exception:
        logger.exception("Internal error")
        return 2


if __name__ == "__main__":
    sys.exit(main())
