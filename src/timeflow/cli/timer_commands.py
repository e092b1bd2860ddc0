"""Live timer view."""

import time
from typing import Optional

import click
from rich.console import Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from timeflow.cli.common import console, get_api, get_config
from timeflow.cli.entity_commands import parse_tags
from timeflow.cli.keys import KeyReader
from timeflow.core.models import TimerPhase
from timeflow.core.scheduler import FrameTickScheduler
from timeflow.core.session import TimerSession
from timeflow.core.timer import TimerEngine, format_elapsed

PHASE_STYLES = {
    TimerPhase.IDLE: "dim",
    TimerPhase.RUNNING: "bold green",
    TimerPhase.PAUSED: "yellow",
}

HELP_LINE = "[dim]space[/dim] start/pause  [dim]l[/dim] lap  [dim]r[/dim] reset  [dim]s[/dim] stop  [dim]q[/dim] quit"


def laps_table(session: TimerSession, show_ms: bool) -> Table:
    """Laps recorded so far, most recent last."""
    table = Table(title=f"Laps ({len(session.engine.laps)})", expand=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Lap", justify="right")
    table.add_column("Total", justify="right", style="cyan")
    for index, lap in enumerate(session.engine.laps, start=1):
        table.add_row(
            str(index),
            format_elapsed(lap.delta_ms, show_ms),
            format_elapsed(lap.at_ms, show_ms),
        )
    return table


def render(session: TimerSession, project_name: Optional[str], show_ms: bool) -> Panel:
    """Build the timer panel for the current session state."""
    engine = session.engine
    clock = Text(format_elapsed(engine.elapsed(), show_ms), style=PHASE_STYLES[engine.phase])

    details = Text()
    details.append(f"Phase: {engine.phase.value}\n")
    if session.name:
        details.append(f"Entry: {session.name}\n")
    if session.name_error:
        details.append(f"{session.name_error}\n", style="red")
    details.append(f"Project: {project_name or 'No project'}\n")
    if session.tags:
        details.append(f"Tags: {', '.join(session.tags)}\n")

    parts = [clock, details]
    if engine.laps:
        parts.append(laps_table(session, show_ms))
    parts.append(Text.from_markup(HELP_LINE))
    return Panel(Group(*parts), title="Timer")


@click.command()
@click.option("--name", default="", help="Entry name")
@click.option("-p", "--project", "project_id", help="Project ID to associate")
@click.option("-t", "--tags", help="Comma-separated tags")
@click.option("--start", "start_now", is_flag=True, help="Start the timer immediately")
@click.pass_context
def timer(
    ctx: click.Context,
    name: str,
    project_id: Optional[str],
    tags: Optional[str],
    start_now: bool,
) -> None:
    """Run the live timer.

    Keys: space starts or pauses, l records a lap, r resets, s stops,
    q quits. The session is not saved when the timer exits.

    Example:
        timeflow timer --name "Homepage layout review" -t design,web --start
    """
    config = get_config(ctx)
    show_ms = bool(config.get("display.show_milliseconds", False))
    scheduler = FrameTickScheduler(frame_rate=int(config.get("timer.frame_rate", 30)))
    engine = TimerEngine(scheduler=scheduler)
    session = TimerSession(
        engine,
        name=name,
        project_id=project_id,
        tags=parse_tags(tags),
        name_max_length=int(config.get("timer.name_max_length", 80)),
    )

    project_name = None
    if project_id:
        project = get_api(ctx).get_project(project_id)
        project_name = project.name if project else None

    with Live(render(session, project_name, show_ms), console=console, auto_refresh=False) as live:

        def redraw(_elapsed_ms: int = 0) -> None:
            live.update(render(session, project_name, show_ms), refresh=True)

        engine.on_tick = redraw
        if start_now:
            engine.start()

        try:
            with KeyReader() as keys:
                while True:
                    key = keys.poll()
                    if key is not None:
                        if key.lower() == "q":
                            break
                        if session.handle_key(key):
                            redraw()
                    if scheduler.run_pending(max_frames=1) == 0:
                        # idle or paused: no redraw pending, keep polling keys
                        time.sleep(scheduler.frame_interval)
        except KeyboardInterrupt:
            pass
        finally:
            engine.stop()
            engine.close()
            redraw()

    console.print(f"Total: {format_elapsed(engine.elapsed(), show_ms)}")
    if engine.laps:
        console.print(f"Laps: {len(engine.laps)}")
