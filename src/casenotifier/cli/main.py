import os
import sys
import click
from rich import print
from rich.markup import escape
from rich.console import Console
from rich.table import Table

from casenotifier import __version__
from casenotifier.controller import Controller
from casenotifier.notifier_env import HOME_ENV_VAR, NotifierEnvironment
from casenotifier.recurrence import (
    WEEKDAY_NAMES,
    next_occurrence,
    remaining_time,
    weekday_from_name,
)
from casenotifier.clock import SystemClock
from casenotifier.errors import InvalidTimestamp
from casenotifier.shared import (
    DISPLAY_FMT,
    READY,
    duration_in_words,
    format_date,
    parse_date,
)

READY_COLOR = "#32FF4B"
WAITING_COLOR = "#FF324B"


class _DisplayDateParam(click.ParamType):
    name = "date"

    def convert(self, value, param, ctx):
        if value is None:
            return None
        if isinstance(value, int):
            return value
        s = str(value).strip()
        if s.lower() == "now":
            return SystemClock().now()
        timestamp = parse_date(s)
        if timestamp is None:
            self.fail("Expected 'HH:MM:SS DD/MM/YYYY' or 'now'", param, ctx)
        return timestamp


_DATE = _DisplayDateParam()
_POSITION = click.IntRange(min=1)


def _controller(ctx) -> Controller:
    return Controller.from_env(ctx.obj["ENV"])


def _flush_warnings(controller: Controller) -> None:
    for msg in controller.pop_warnings():
        print(f"[yellow]⚠️ {escape(msg)}[/yellow]")


def _finish(controller: Controller, ok: bool, done: str) -> None:
    _flush_warnings(controller)
    if not ok:
        print("[red]✘ Nothing changed.[/red]")
        sys.exit(1)
    print(f"[green]✔ {done}[/green]")


def render_accounts(controller: Controller) -> Table:
    now = controller.clock.now()
    eligible, total = controller.summary(now)
    table = Table(title=f"Accounts ready: {eligible}/{total}", title_justify="left")
    table.add_column("#", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Last drop")
    table.add_column("Next drop")
    table.add_column("Remaining")
    for row in controller.rows(now):
        color = READY_COLOR if row.ready else WAITING_COLOR
        table.add_row(
            str(row.index + 1),
            escape(row.name),
            row.last_event_display,
            row.next_occurrence_display,
            f"[{color}]{row.remaining_display}[/{color}]",
        )
    return table


@click.group()
@click.version_option(
    __version__, prog_name="casenotifier", message="%(prog)s version %(version)s"
)
@click.option(
    "--home",
    help=f"Directory holding accounts.dat and config.toml (equivalent to setting ${HOME_ENV_VAR}).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, home, verbose):
    """Cases Notifier – track weekly drops for your accounts."""
    if home:
        os.environ[HOME_ENV_VAR] = home  # Must be set before NotifierEnvironment is instantiated

    env = NotifierEnvironment()
    env.ensure(init_config=True)
    config = env.load_config()

    ctx.ensure_object(dict)
    ctx.obj["ENV"] = env
    ctx.obj["CONFIG"] = config
    ctx.obj["VERBOSE"] = verbose


@cli.command("list")
@click.pass_context
def list_accounts(ctx):
    """Show every account with its next drop."""
    controller = _controller(ctx)
    if ctx.obj["VERBOSE"]:
        print(f"[blue]Using accounts file:[/blue] {ctx.obj['ENV'].data_path}")
    _flush_warnings(controller)
    console = Console(highlight=False)
    console.print(render_accounts(controller))


@cli.command()
@click.argument("name")
@click.option(
    "--at",
    "last_event",
    type=_DATE,
    default=None,
    help="Last drop as 'HH:MM:SS DD/MM/YYYY'. Defaults to now.",
)
@click.pass_context
def add(ctx, name, last_event):
    """Add an account whose last drop was collected now (or --at)."""
    controller = _controller(ctx)
    index = controller.add_account(name, last_event)
    _finish(controller, index is not None, f"Added {escape(repr(name))} as #{(index or 0) + 1}.")


@cli.command()
@click.argument("position", type=_POSITION)
@click.pass_context
def remove(ctx, position):
    """Remove the account at POSITION (as shown by 'list')."""
    controller = _controller(ctx)
    ok = controller.remove_account(position - 1)
    _finish(controller, ok, f"Removed #{position}.")


@cli.command()
@click.argument("position", type=_POSITION)
@click.pass_context
def reset(ctx, position):
    """Mark the drop of the account at POSITION as collected now."""
    controller = _controller(ctx)
    ok = controller.reset_account(position - 1)
    _finish(controller, ok, f"Reset #{position}.")


@cli.command()
@click.argument("position", type=_POSITION)
@click.argument("name")
@click.pass_context
def rename(ctx, position, name):
    """Rename the account at POSITION."""
    controller = _controller(ctx)
    ok = controller.rename_account(position - 1, name)
    _finish(controller, ok, f"Renamed #{position} to {escape(repr(name))}.")


@cli.command()
@click.argument("position", type=_POSITION)
@click.argument("when", type=_DATE)
@click.pass_context
def retime(ctx, position, when):
    """Set the last drop of the account at POSITION to WHEN ('HH:MM:SS DD/MM/YYYY')."""
    controller = _controller(ctx)
    ok = controller.retime_account(position - 1, when)
    _finish(controller, ok, f"Last drop of #{position} set to {format_date(when)}.")


@cli.command("next")
@click.argument("when", type=_DATE, required=False)
@click.option(
    "--weekday",
    type=click.Choice(WEEKDAY_NAMES, case_sensitive=False),
    help="Anchor weekday; defaults to the configured one.",
)
@click.pass_context
def next_drop(ctx, when, weekday):
    """Show when the next drop after WHEN (default: now) becomes available."""
    config = ctx.obj["CONFIG"]
    anchor = weekday_from_name(weekday or config.schedule.anchor_weekday)
    now = SystemClock().now()
    reference = now if when is None else when
    try:
        next_at = next_occurrence(reference, anchor)
    except InvalidTimestamp as e:
        print(f"[red]✘ {escape(str(e))}[/red]")
        sys.exit(1)
    left = remaining_time(now, next_at)
    print(f"Next drop: {format_date(next_at)}")
    print(f"Remaining: {READY if left == 0 else duration_in_words(left)}")
    if ctx.obj["VERBOSE"]:
        print(f"[blue]format:[/blue] {DISPLAY_FMT}, [blue]anchor:[/blue] {WEEKDAY_NAMES[anchor]}")


@cli.command()
@click.pass_context
def ui(ctx):
    """Launch the Textual interface."""
    from casenotifier.view import NotifierApp

    env = ctx.obj["ENV"]
    if ctx.obj["VERBOSE"]:
        print(f"[blue]Launching UI with accounts file:[/blue] {env.data_path}")

    controller = _controller(ctx)
    NotifierApp(controller, refresh_seconds=ctx.obj["CONFIG"].ui.refresh_seconds).run()
