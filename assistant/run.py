"""Terminal front end for the dashboard.

Chat with Frederick, print the agenda or a month calendar, and list the tool
catalog. Uses the same datastore and provider configuration as the web
service.
"""
import asyncio
import json
import re
import typing as t
from zoneinfo import ZoneInfo

import click
from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.table import Table

from assistant.handlers import ToolDispatcher
from assistant.loop import run_chat_turn
from assistant.models import ChatMessage
from assistant.provider import ProviderError
from assistant.tools import TOOL_CATALOG, list_tool_schemas
from datastore import Datastore, DatastoreError
from datastore import queries
from planner import dates
from planner.assignments import Window, data_quality_warnings, filter_by_window, is_urgent, month_calendar, sort_chronological
from planner.models import Assignment
from services.config import Settings, build_datastore, build_provider
from services.log import configure_logging

console = Console()

EXIT_WORDS = ("exit", "quit", ":q")
WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _assignment_table(assignments: t.Sequence[Assignment], title: str, tz: ZoneInfo) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Due", style="yellow", width=12)
    table.add_column("Course", style="green")
    table.add_column("Title", style="white")
    table.add_column("Status", style="magenta")
    for assignment in assignments:
        due = assignment.due_date.isoformat() if assignment.due_date else "(no date)"
        name = assignment.title
        if is_urgent(assignment, tz=tz):
            name = f"[bold red]![/bold red] {name}"
        course = assignment.course.title if assignment.course else assignment.course_id
        table.add_row(due, course, name, assignment.status.value)
    return table


async def chat_loop(settings: Settings, store: Datastore) -> None:
    provider = build_provider(settings)
    dispatcher = ToolDispatcher(store, tz=settings.tz, student_name=settings.student_name)
    history: list[ChatMessage] = []

    console.print(
        Panel.fit(
            f"[bold blue]Frederick[/bold blue] is ready, {settings.student_name}.\n"
            f"Model: [cyan]{settings.openai_model}[/cyan]   Type [bold]exit[/bold] to leave.",
            border_style="blue",
        )
    )
    try:
        while True:
            try:
                text = click.prompt(click.style("you", fg="green"), prompt_suffix="> ")
            except click.Abort:
                break
            if text.strip().lower() in EXIT_WORDS:
                break
            history.append(ChatMessage(role="user", content=text))
            try:
                result = await run_chat_turn(history, provider, dispatcher, settings.student_name)
            except ProviderError as e:
                history.pop()
                console.print(f"[red]Error:[/red] {e}")
                continue
            if result.tool_call is not None:
                status = "failed" if result.tool_result and result.tool_result.is_error else "ok"
                console.print(f"[dim]tool {result.tool_call.name}: {status}[/dim]")
            history.append(ChatMessage(role="assistant", content=result.reply))
            console.print(Panel(result.reply, title="Frederick", border_style="blue"))
    finally:
        await provider.aclose()


async def show_agenda(settings: Settings, store: Datastore, window: Window, course_id: t.Optional[str]) -> None:
    today = dates.today(tz=settings.tz)
    assignments = await queries.load_assignments(store, course_id=course_id)
    selected = sort_chronological(filter_by_window(assignments, window, today))
    console.print(_assignment_table(selected, f"Assignments: {window.value.replace('_', ' ')} (today {today})", settings.tz))
    for warning in data_quality_warnings(assignments):
        console.print(f"[yellow]warning:[/yellow] {warning}")


async def show_calendar(settings: Settings, store: Datastore, month: t.Optional[str]) -> None:
    today = dates.today(tz=settings.tz)
    year, month_number = (int(part) for part in month.split("-")) if month else (today.year, today.month)
    days = month_calendar(await queries.load_assignments(store), year, month_number, today)

    table = Table(title=f"{year:04d}-{month_number:02d}", show_header=True, header_style="bold cyan", show_lines=True)
    for name in WEEKDAYS:
        table.add_column(name, width=14, vertical="top")
    for start in range(0, len(days), 7):
        cells = []
        for day in days[start:start + 7]:
            label = f"[bold reverse]{day.day.day}[/bold reverse]" if day.is_today else str(day.day.day)
            if not day.in_month:
                label = f"[dim]{label}[/dim]"
            lines = [label] + [f"- {a.title}" for a in day.assignments]
            cells.append("\n".join(lines))
        table.add_row(*cells)
    console.print(table)


def _validate_month(ctx: click.Context, param: click.Parameter, value: t.Optional[str]) -> t.Optional[str]:
    if value is not None and not re.fullmatch(r"\d{4}-(0[1-9]|1[0-2])", value):
        raise click.BadParameter("expected YYYY-MM")
    return value


async def _with_store(settings: Settings, action: t.Callable[[Datastore], t.Awaitable[None]]) -> None:
    store = build_datastore(settings)
    try:
        await action(store)
    finally:
        await store.aclose()


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--log-level", default=None, help="Override LOG_LEVEL for this run.")
@click.pass_context
def main(ctx: click.Context, log_level: t.Optional[str]) -> None:
    """Academic dashboard from the terminal.

    Examples:
        dashboard agenda --window today

        dashboard calendar --month 2025-10

        dashboard chat
    """
    settings = Settings.from_env()
    configure_logging(log_level or settings.log_level)
    ctx.obj = settings


@main.command()
@click.pass_obj
def chat(settings: Settings) -> None:
    """Chat with Frederick; tools run against the configured datastore."""
    try:
        asyncio.run(_with_store(settings, lambda store: chat_loop(settings, store)))
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)


@main.command()
@click.option(
    "--window",
    type=click.Choice([w.value for w in Window]),
    default=Window.THIS_WEEK.value,
    show_default=True,
    help="Which assignments to show.",
)
@click.option("--course", "course_id", default=None, help="Only this course id.")
@click.pass_obj
def agenda(settings: Settings, window: str, course_id: t.Optional[str]) -> None:
    """Assignments for a window, soonest first. Urgent ones are marked with '!'."""
    try:
        asyncio.run(_with_store(settings, lambda store: show_agenda(settings, store, Window(window), course_id)))
    except DatastoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)


@main.command()
@click.option("--month", default=None, callback=_validate_month, help="Month as YYYY-MM (default: current).")
@click.pass_obj
def calendar(settings: Settings, month: t.Optional[str]) -> None:
    """Month grid with each day's assignments."""
    try:
        asyncio.run(_with_store(settings, lambda store: show_calendar(settings, store, month)))
    except DatastoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Print the full tool schemas.")
def tools(as_json: bool) -> None:
    """List the tools Frederick can call."""
    if as_json:
        console.print(JSON(json.dumps(list_tool_schemas(), indent=2)))
        return
    table = Table(title="Frederick's tools", show_header=True, header_style="bold cyan")
    table.add_column("Tool Name", style="green")
    table.add_column("Description", style="white")
    for spec in TOOL_CATALOG:
        table.add_row(spec.name, spec.description)
    console.print(table)


if __name__ == "__main__":
    main()
