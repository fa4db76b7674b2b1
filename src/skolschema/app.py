"""Typer application and CLI entry point for skolschema.

This module wires the top-level Typer application and its commands:

* ``schools DOMAIN`` -- list the schools of a Skola24 domain.
* ``classes DOMAIN SCHOOL`` -- list the classes of a school.
* ``next DOMAIN SCHOOL CLASS`` -- print the current and next lesson.
* ``svg DOMAIN SCHOOL CLASS`` -- render a day's timetable as SVG.
* ``cache info|clear`` and ``config show|set`` -- maintenance groups from
  :mod:`skolschema.commands`.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled :class:`~skolschema.exceptions.SkolschemaError`
instances exit with their ``exit_code``; any other exception is written to a
crash log under the data directory.

See Also:
    :mod:`skolschema.config`: Configuration resolution.
    :mod:`skolschema.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import asyncio
import signal
import sys
import traceback
from contextlib import asynccontextmanager
from datetime import date, datetime, time, timedelta
from typing import Any, AsyncIterator, Optional

import typer

from skolschema import __version__
from skolschema.commands.cache import cache_app
from skolschema.commands.config import config_app
from skolschema.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="skolschema",
    help="Skola24 timetables in the terminal.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
app.add_typer(cache_app, name="cache", help="Response cache maintenance.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"skolschema {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Neither read nor write the response cache."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~skolschema.output.OutputManager` from
    CLI flags and stores shared options in ``ctx.obj``.
    """
    from skolschema.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["no_cache"] = no_cache
    ctx.obj["verbose"] = verbose


# ------------------------------------------------------------------ #
# Service wiring
# ------------------------------------------------------------------ #


@asynccontextmanager
async def _open_service(ctx: typer.Context) -> AsyncIterator[Any]:
    """Yield a :class:`~skolschema.service.TimetableService` for one command."""
    from skolschema.cache import ResponseCache
    from skolschema.client import AsyncClient, CachedFetcher
    from skolschema.config import get_cache_dir, resolve_config
    from skolschema.output import debug
    from skolschema.service import TimetableService

    config = resolve_config(cli_no_cache=bool(ctx.obj and ctx.obj.get("no_cache")))
    cache: Optional[ResponseCache] = None
    if config.cache.enabled:
        cache = ResponseCache(get_cache_dir())
        debug(f"Using response cache at {cache.directory}")

    try:
        async with AsyncClient(config.request) as client:
            yield TimetableService(CachedFetcher(client, cache))
    finally:
        if cache is not None:
            cache.close()


async def _resolve_selection(
    service: Any, domain: str, school: str, class_name: str
) -> tuple[str, str]:
    """Resolve school and class names to ``(unit_guid, class_guid)``."""
    from skolschema.exceptions import NotFoundError

    if not await service.domain_exists(domain):
        raise NotFoundError(f"Domain '{domain}' does not exist")
    unit_guid = await service.get_school_guid(domain, school)
    if not unit_guid:
        raise NotFoundError(f"School '{school}' not found on {domain}")
    class_guid = await service.get_class_guid(domain, unit_guid, class_name)
    if not class_guid:
        raise NotFoundError(f"Class '{class_name}' not found at {school}")
    return unit_guid, class_guid


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command("schools")
def schools_command(
    ctx: typer.Context,
    domain: str = typer.Argument(..., help="Skola24 domain, e.g. example.skola24.se."),
) -> None:
    """List the schools of a domain."""
    from skolschema.exceptions import NotFoundError
    from skolschema.output import print_table

    async def _run() -> list[list[str]]:
        async with _open_service(ctx) as service:
            if not await service.domain_exists(domain):
                raise NotFoundError(f"Domain '{domain}' does not exist")
            return [[s.unit_id, s.unit_guid] for s in await service.get_schools(domain)]

    rows = asyncio.run(_run())
    print_table(["School", "Guid"], rows, title=domain)


@app.command("classes")
def classes_command(
    ctx: typer.Context,
    domain: str = typer.Argument(..., help="Skola24 domain."),
    school: str = typer.Argument(..., help="School name as listed by 'schools'."),
) -> None:
    """List the classes of a school."""
    from skolschema.exceptions import NotFoundError
    from skolschema.output import print_table

    async def _run() -> list[list[str]]:
        async with _open_service(ctx) as service:
            unit_guid = await service.get_school_guid(domain, school)
            if not unit_guid:
                raise NotFoundError(f"School '{school}' not found on {domain}")
            classes = await service.get_classes(domain, unit_guid)
            return [[c.group_name, c.group_guid] for c in classes]

    rows = asyncio.run(_run())
    print_table(["Class", "Guid"], rows, title=school)


@app.command("next")
def next_command(
    ctx: typer.Context,
    domain: str = typer.Argument(..., help="Skola24 domain."),
    school: str = typer.Argument(..., help="School name."),
    class_name: str = typer.Argument(..., metavar="CLASS", help="Class name."),
    tomorrow: bool = typer.Option(
        False, "--tomorrow", "-t", help="Show tomorrow's first lessons instead."
    ),
) -> None:
    """Print the current lesson and the next one, e.g. ``Mat-10:00, 10:15-Eng``."""
    from skolschema.lessons import format_summary, summarize_day
    from skolschema.output import print_data

    target = date.today() + timedelta(days=1 if tomorrow else 0)
    _, week, day = target.isocalendar()
    now = time(0, 0, 0) if tomorrow else datetime.now().time()

    async def _run() -> str:
        async with _open_service(ctx) as service:
            unit_guid, class_guid = await _resolve_selection(service, domain, school, class_name)
            lessons = await service.get_lesson_info(domain, unit_guid, class_guid, day, week)
            return format_summary(summarize_day(lessons, now))

    print_data(asyncio.run(_run()))


@app.command("svg")
def svg_command(
    ctx: typer.Context,
    domain: str = typer.Argument(..., help="Skola24 domain."),
    school: str = typer.Argument(..., help="School name."),
    class_name: str = typer.Argument(..., metavar="CLASS", help="Class name."),
    day: Optional[int] = typer.Option(
        None, "--day", "-d", min=0, max=7, help="Day of week (1=Monday, 0=whole week). Default: today."
    ),
    week: Optional[int] = typer.Option(
        None, "--week", "-w", min=1, max=53, help="ISO week number. Default: this week."
    ),
    size: str = typer.Option("800x600", "--size", "-s", help="Canvas size as WIDTHxHEIGHT."),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Write the SVG to this file instead of stdout."
    ),
) -> None:
    """Render a timetable as an SVG image."""
    from skolschema.models import Dimensions
    from skolschema.output import print_data, success
    from skolschema.render import render

    dimensions = Dimensions.parse(size)
    _, this_week, today = date.today().isocalendar()
    day = today if day is None else day
    week = this_week if week is None else week

    async def _run() -> Any:
        async with _open_service(ctx) as service:
            unit_guid, class_guid = await _resolve_selection(service, domain, school, class_name)
            return await service.get_schema(
                domain, unit_guid, class_guid, day, week, dimensions=dimensions
            )

    document = render(asyncio.run(_run()), dimensions)
    if output_file:
        path = document.save(output_file)
        success(f"Wrote {path}")
    else:
        print_data(document.to_string())


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from skolschema.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``skolschema`` console script.

    :class:`~skolschema.exceptions.SkolschemaError` instances cause a clean
    exit with the error's ``exit_code``. All other exceptions produce a crash
    log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from skolschema.exceptions import SkolschemaError
        from skolschema.output import error

        if isinstance(exc, SkolschemaError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
