"""Command-line interface for punchclock.

Each invocation restores the in-progress session from its scratch mirror,
applies one command and exits, so a timer keeps running between commands.

CONCEPTS:
---------
- SESSION: The timer currently being tracked (running or paused).
           It is not an entry until it is stopped.

- ENTRY:   A finished session saved to storage. Entries can be listed,
           edited, deleted and summarized.
"""

import argparse
import asyncio
import logging
import signal
import sys
from datetime import date
from typing import NoReturn

from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from punchclock import __version__
from punchclock.config import settings
from punchclock.entries import EntryListManager, TimeEntry, revise_entry
from punchclock.errors import NotFoundError, PersistenceUnavailable, TrackerError, ValidationError
from punchclock.reports import (
    SORT_KEYS,
    daily_totals,
    filter_entries,
    format_date,
    format_time,
    period_stats,
    sort_entries,
)
from punchclock.storage import create_storage
from punchclock.timer import DisplayTicker, SessionScratch, SessionStatus, TimerController, TimerSession

console = Console()

_STATUS_STYLES = {
    SessionStatus.IDLE: "dim",
    SessionStatus.RUNNING: "green",
    SessionStatus.PAUSED: "yellow",
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    fmt = "%(name)s: %(message)s" if verbose else "%(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        handlers=[RichHandler(rich_tracebacks=True, console=console, show_path=verbose)],
    )


def open_tracker() -> tuple[EntryListManager, TimerController]:
    """Build the manager and controller from settings and restore the session."""
    manager = EntryListManager(create_storage(settings))
    controller = TimerController(manager, scratch=SessionScratch(settings.get_session_path()))
    controller.restore()
    return manager, controller


def _render_timer(session: TimerSession, elapsed: int) -> Panel:
    style = _STATUS_STYLES[session.status]
    body = f"[bold {style}]{format_time(elapsed)}[/bold {style}]"
    if session.description:
        body += f"\n[dim]{session.description}[/dim]"
    return Panel(body, title=session.task or "(no task)", subtitle=session.status.value, expand=False)


def _entries_table(entries: list[TimeEntry], title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Task", style="white")
    table.add_column("Description", style="dim")
    table.add_column("Start", style="blue")
    table.add_column("End", style="blue")
    table.add_column("Duration", style="magenta", justify="right")

    for entry in entries:
        table.add_row(
            entry.id or "-",
            entry.task,
            entry.description or "",
            entry.start_time.astimezone().strftime("%Y-%m-%d %H:%M:%S"),
            entry.end_time.astimezone().strftime("%Y-%m-%d %H:%M:%S"),
            format_time(entry.duration),
        )
    return table


def _load_entries(manager: EntryListManager) -> list[TimeEntry]:
    """Load entries, warning when storage was unavailable."""
    with console.status("Loading entries..."):
        entries = asyncio.run(manager.load())
    if manager.last_error is not None:
        console.print(f"[yellow]Warning:[/yellow] could not load entries: {manager.last_error}")
    return entries


def _parse_day(value: str, flag: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {flag} date '{value}'. Use YYYY-MM-DD.") from e


def cmd_start(args: argparse.Namespace) -> None:
    """Start a timer."""
    _, controller = open_tracker()
    controller.start(args.task, args.description or "")
    console.print(f"[green]Started:[/green] {controller.session.task}")


def cmd_pause(args: argparse.Namespace) -> None:
    """Pause the running timer."""
    _, controller = open_tracker()
    controller.pause()
    console.print(
        f"[yellow]Paused:[/yellow] {controller.session.task} "
        f"({format_time(controller.elapsed_seconds())})"
    )


def cmd_continue(args: argparse.Namespace) -> None:
    """Continue the paused timer."""
    _, controller = open_tracker()
    controller.resume()
    console.print(f"[green]Continued:[/green] {controller.session.task}")


def cmd_stop(args: argparse.Namespace) -> None:
    """Stop the timer and save the entry."""
    _, controller = open_tracker()

    async def _stop() -> TimeEntry | None:
        with console.status("Saving entry..."):
            return await controller.stop()

    try:
        entry = asyncio.run(_stop())
    except PersistenceUnavailable:
        console.print("[yellow]The session was kept; run 'punchclock stop' again to retry.[/yellow]")
        raise

    if entry is not None:
        console.print(f"[green]Saved:[/green] {entry.task} ({format_time(entry.duration)})")
        console.print(f"  ID: {entry.id}")
    else:
        console.print("[yellow]Nothing saved:[/yellow] the session was already stopped.")


def cmd_status(args: argparse.Namespace) -> None:
    """Show the current session."""
    _, controller = open_tracker()
    session = controller.session
    if session.is_idle:
        console.print("[dim]No timer running.[/dim]")
        return
    console.print(_render_timer(session, controller.elapsed_seconds()))


def cmd_watch(args: argparse.Namespace) -> None:
    """Show a live, ticking timer until interrupted."""
    _, controller = open_tracker()
    if controller.session.is_idle:
        console.print("[dim]No timer running.[/dim]")
        return

    async def _watch() -> None:
        done = asyncio.Event()
        loop = asyncio.get_running_loop()
        initial = _render_timer(controller.session, controller.elapsed_seconds())

        with Live(initial, console=console, auto_refresh=False) as live:
            def on_tick(elapsed: int) -> None:
                live.update(_render_timer(controller.session, elapsed), refresh=True)

            ticker = DisplayTicker(controller, on_tick=on_tick, interval=settings.tick_interval)
            signals = {
                signal.SIGINT: done.set,
                signal.SIGTERM: done.set,
                # Resumed after a job-control suspend: ticks were missed
                signal.SIGCONT: ticker.refresh,
            }
            for sig, handler in signals.items():
                loop.add_signal_handler(sig, handler)
            ticker.attach()
            try:
                await done.wait()
            finally:
                for sig in signals:
                    loop.remove_signal_handler(sig)
                await ticker.aclose()

    asyncio.run(_watch())


def cmd_list(args: argparse.Namespace) -> None:
    """List saved entries."""
    manager, _ = open_tracker()
    entries = _load_entries(manager)
    entries = filter_entries(entries, args.filter)
    entries = sort_entries(entries, args.sort, descending=args.desc)

    if not entries:
        console.print("[yellow]No entries found.[/yellow]")
        return

    console.print(_entries_table(entries, title=f"Time Entries ({len(entries)})"))


def cmd_edit(args: argparse.Namespace) -> None:
    """Edit the task or description of an entry."""
    manager, _ = open_tracker()
    _load_entries(manager)

    entry = manager.get(args.entry_id)
    if entry is None:
        raise NotFoundError(args.entry_id)

    changes = {}
    if args.task is not None:
        changes["task"] = args.task
    if args.description is not None:
        changes["description"] = args.description or None
    if not changes:
        console.print("[yellow]Nothing to change.[/yellow] Use --task and/or --description.")
        return

    revised = revise_entry(entry, **changes)

    async def _update() -> TimeEntry | None:
        with console.status("Saving changes..."):
            return await manager.update(revised)

    updated = asyncio.run(_update())
    if updated is not None:
        console.print(f"[green]Updated:[/green] {updated.task} ({updated.id})")


def cmd_delete(args: argparse.Namespace) -> None:
    """Delete an entry after confirmation."""
    manager, _ = open_tracker()
    _load_entries(manager)

    spinner = console.status("Deleting entry...")

    def confirm(entry: TimeEntry) -> bool:
        answer = args.yes or Confirm.ask(
            f"Delete '{entry.task}' from {format_date(entry.start_time)} "
            f"({format_time(entry.duration)})? This cannot be undone",
            console=console,
            default=False,
        )
        if answer:
            spinner.start()
        return answer

    async def _remove() -> bool:
        try:
            return await manager.remove(args.entry_id, confirm)
        finally:
            spinner.stop()

    if asyncio.run(_remove()):
        console.print(f"[green]Deleted:[/green] {args.entry_id}")
    else:
        console.print("[dim]Cancelled.[/dim]")


def cmd_stats(args: argparse.Namespace) -> None:
    """Show totals for a date range."""
    start = _parse_day(args.from_date, "--from")
    end = _parse_day(args.to_date, "--to")
    if end < start:
        raise ValidationError("--from date must be on or before --to date.")
    rate = settings.hourly_rate if args.rate is None else args.rate

    manager, _ = open_tracker()
    entries = _load_entries(manager)
    stats = period_stats(entries, start, end, hourly_rate=rate)

    lines = [
        f"Entries: {stats.entry_count}",
        f"Total duration: {format_time(stats.total_seconds)}",
    ]
    if rate:
        lines.append(f"Total income: ${stats.total_income:.2f} (at ${rate:.2f}/h)")
    console.print(Panel("\n".join(lines), title=f"{start.isoformat()} -> {end.isoformat()}", expand=False))


def cmd_chart(args: argparse.Namespace) -> None:
    """Show tracked time per day."""
    manager, _ = open_tracker()
    totals = daily_totals(_load_entries(manager))
    if not totals:
        console.print("[yellow]No entries found.[/yellow]")
        return

    widest = max(t.total_seconds for t in totals) or 1
    table = Table(title="Time per Day")
    table.add_column("Date", style="cyan")
    table.add_column("Duration", style="magenta", justify="right")
    table.add_column("", style="green")
    for total in totals:
        bar = "█" * max(1, round(total.total_seconds / widest * 40)) if total.total_seconds else ""
        table.add_row(total.day.isoformat(), format_time(total.total_seconds), bar)
    console.print(table)


def cmd_version(args: argparse.Namespace) -> None:
    """Show version information."""
    console.print(f"punchclock v{__version__}")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="punchclock",
        description="Punchclock - track time on tasks with pausable timers",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show detailed output")

    subparsers = parser.add_subparsers(dest="command")

    # ==========================================================================
    # TIMER COMMANDS
    # ==========================================================================

    start_parser = subparsers.add_parser("start", help="Start a timer for a task")
    start_parser.add_argument("task", help="What you are working on")
    start_parser.add_argument("-d", "--description", help="Optional description")
    start_parser.set_defaults(func=cmd_start)

    pause_parser = subparsers.add_parser("pause", help="Pause the running timer")
    pause_parser.set_defaults(func=cmd_pause)

    continue_parser = subparsers.add_parser("continue", help="Continue the paused timer")
    continue_parser.set_defaults(func=cmd_continue)

    stop_parser = subparsers.add_parser("stop", help="Stop the timer and save the entry")
    stop_parser.set_defaults(func=cmd_stop)

    status_parser = subparsers.add_parser("status", help="Show the current timer")
    status_parser.set_defaults(func=cmd_status)

    watch_parser = subparsers.add_parser(
        "watch",
        help="Show a live timer",
        description="Display the running timer, refreshed every tick. Ctrl+C exits; the timer keeps running.",
    )
    watch_parser.set_defaults(func=cmd_watch)

    # ==========================================================================
    # ENTRY COMMANDS
    # ==========================================================================

    list_parser = subparsers.add_parser("list", help="List saved entries")
    list_parser.add_argument("--filter", help="Only entries whose task or description contains this text")
    list_parser.add_argument("--sort", choices=SORT_KEYS, default="start_time", help="Sort column (default: start_time)")
    list_parser.add_argument("--desc", action="store_true", help="Sort in descending order")
    list_parser.set_defaults(func=cmd_list)

    edit_parser = subparsers.add_parser("edit", help="Edit an entry")
    edit_parser.add_argument("entry_id", help="Entry ID")
    edit_parser.add_argument("--task", help="New task")
    edit_parser.add_argument("--description", help="New description (empty to clear)")
    edit_parser.set_defaults(func=cmd_edit)

    delete_parser = subparsers.add_parser("delete", help="Delete an entry")
    delete_parser.add_argument("entry_id", help="Entry ID")
    delete_parser.add_argument("-y", "--yes", action="store_true", help="Skip the confirmation prompt")
    delete_parser.set_defaults(func=cmd_delete)

    stats_parser = subparsers.add_parser("stats", help="Show totals for a date range")
    stats_parser.add_argument("--from", dest="from_date", required=True, help="First day (YYYY-MM-DD)")
    stats_parser.add_argument("--to", dest="to_date", required=True, help="Last day, inclusive (YYYY-MM-DD)")
    stats_parser.add_argument("--rate", type=float, help="Hourly rate (default: PUNCHCLOCK_HOURLY_RATE)")
    stats_parser.set_defaults(func=cmd_stats)

    chart_parser = subparsers.add_parser("chart", help="Show tracked time per day")
    chart_parser.set_defaults(func=cmd_chart)

    version_parser = subparsers.add_parser("version", help="Show version information")
    version_parser.set_defaults(func=cmd_version)

    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the punchclock CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        args.func(args)
    except (TrackerError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
