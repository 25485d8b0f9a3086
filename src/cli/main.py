"""CLI principal (Typer).

Por qué aquí:
- Es la raíz de composición: crea el `QueryClient`, el cliente HTTP y los
  recursos al empezar cada comando, y los cierra al terminar.
- Los comandos solo leen `QueryResult` y eligen qué pintar.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Iterator

import typer
from rich.console import Console

from adapters.holidays_api import HolidaysApiClient
from cli import doctor
from cli.ui_components import (
    build_countries_table,
    build_empty_holidays_panel,
    build_error_panel,
    build_failure_panel,
    build_footer,
    build_holidays_table,
    format_country_option,
    print_banner,
)
from core.config import AppSettings
from core.domain.localization import current_year
from core.domain.models import Country, Holiday
from core.logger import setup_logging
from core.services.policies import countries_policy, holidays_policy
from core.services.query_cache import QueryClient
from core.services.resources import HolidayResources, HolidaysBrowser, QueryResult

logger = logging.getLogger(__name__)

app = typer.Typer(no_args_is_help=True, help="Public holidays per country, from the OpenHolidays API.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


@asynccontextmanager
async def open_resources(settings: AppSettings) -> AsyncIterator[HolidayResources]:
    """Registro de caché + cliente HTTP con el ciclo de vida del comando."""

    async with HolidaysApiClient(settings) as source, QueryClient() as queries:
        yield HolidayResources(
            source,
            queries,
            countries_policy=countries_policy(settings),
            holidays_policy=holidays_policy(settings),
        )


@contextmanager
def error_boundary() -> Iterator[None]:
    """Última barrera: un fallo inesperado se muestra como mensaje genérico."""

    try:
        yield
    except (typer.Exit, typer.Abort):
        raise
    except Exception as exc:
        logger.exception("unexpected failure")
        _console.print(build_failure_panel(exc))
        raise typer.Exit(code=2) from exc


def _can_prompt() -> bool:
    return sys.stdin.isatty()


async def _settle(result: QueryResult, title: str) -> QueryResult:
    """Ofrece reintentar (refetch) mientras el recurso esté en error."""

    while result.error is not None:
        _console.print(build_error_panel(result.error, title))
        if not _can_prompt() or not typer.confirm("Try again?", default=True):
            break
        with _console.status("Retrying..."):
            result = await result.refetch()
    return result


def _dump(items: list[Country] | list[Holiday]) -> str:
    return json.dumps(
        [item.model_dump(mode="json", by_alias=True) for item in items],
        ensure_ascii=False,
        indent=2,
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr."),
) -> None:
    settings = AppSettings()
    setup_logging(logging.DEBUG if verbose else settings.log_level)


@app.command()
def countries(
    language: str | None = typer.Option(None, "--language", "-l", help="Preferred language for names."),
    as_json: bool = typer.Option(False, "--json", help="Print the validated payload as JSON."),
) -> None:
    """List the countries supported by the API."""

    settings = AppSettings()
    language = language or settings.default_language

    async def _run() -> QueryResult:
        async with open_resources(settings) as resources:
            with _console.status("Loading countries..."):
                result = await resources.countries()
            return await _settle(result, "Failed to load countries")

    with error_boundary():
        result = asyncio.run(_run())
        if result.error is not None:
            raise typer.Exit(code=1)

        data: list[Country] = result.data or []
        if as_json:
            typer.echo(_dump(data))
            return
        _console.print(build_countries_table(data, language))
        _console.print(build_footer())


@app.command()
def holidays(
    country: str = typer.Argument(..., help="Country ISO code (e.g. DE, CA)."),
    year: int | None = typer.Option(None, "--year", "-y", help="Calendar year (defaults to the current one)."),
    language: str | None = typer.Option(None, "--language", "-l", help="Preferred language for names."),
    as_json: bool = typer.Option(False, "--json", help="Print the validated payload as JSON."),
) -> None:
    """Show the public holidays of COUNTRY for one year."""

    settings = AppSettings()
    language = language or settings.default_language
    iso = country.strip().upper()
    if not iso:
        raise typer.BadParameter("country must not be empty")
    resolved_year = year if year is not None else current_year()

    async def _run() -> tuple[QueryResult, str]:
        async with open_resources(settings) as resources:
            with _console.status(f"Loading holidays for {iso}..."):
                # Los países solo dan el nombre: un único intento, sin backoff.
                countries_result, result = await asyncio.gather(
                    resources.countries(retry=False),
                    resources.holidays(iso, resolved_year),
                )
            if countries_result.error is not None:
                logger.warning(
                    "country names unavailable (%s); showing %s",
                    countries_result.error.message,
                    iso,
                )
            name = resources.country_name(iso, language)
            result = await _settle(result, f"Failed to load holidays for {name}")
            return result, name

    with error_boundary():
        result, name = asyncio.run(_run())
        if result.error is not None:
            raise typer.Exit(code=1)

        data: list[Holiday] = result.data or []
        if as_json:
            typer.echo(_dump(data))
            return
        if not data:
            _console.print(build_empty_holidays_panel(name, resolved_year))
        else:
            _console.print(build_holidays_table(data, country_name=name, year=resolved_year, language=language))
        _console.print(build_footer())


@app.command()
def browse(
    year: int | None = typer.Option(None, "--year", "-y", help="Calendar year (defaults to the current one)."),
    language: str | None = typer.Option(None, "--language", "-l", help="Preferred language for names."),
) -> None:
    """Interactive mode: pick countries one after another (cached per session)."""

    settings = AppSettings()
    language = language or settings.default_language
    resolved_year = year if year is not None else current_year()

    async def _run() -> None:
        async with open_resources(settings) as resources:
            browser = HolidaysBrowser(resources, year=resolved_year)
            with _console.status("Loading countries..."):
                countries_result = await resources.countries()
            countries_result = await _settle(countries_result, "Failed to load countries")
            if countries_result.error is not None:
                raise typer.Exit(code=1)

            known = {c.iso_code: c for c in countries_result.data or []}
            for c in known.values():
                _console.print(f"  {format_country_option(c, language)}")

            while True:
                iso = typer.prompt("Country ISO code (empty to quit)", default="", show_default=False).strip().upper()
                if not iso:
                    return
                if iso not in known:
                    _console.print(f"[yellow]Unknown country code:[/yellow] {iso}")
                    continue
                name = resources.country_name(iso, language)
                with _console.status(f"Loading holidays for {name}..."):
                    result = await browser.select(iso)
                result = await _settle(result, f"Failed to load holidays for {name}")
                if result.error is not None:
                    continue
                data: list[Holiday] = result.data or []
                if not data:
                    _console.print(build_empty_holidays_panel(name, resolved_year))
                else:
                    _console.print(build_holidays_table(data, country_name=name, year=resolved_year, language=language))

    print_banner(_console)
    with error_boundary():
        asyncio.run(_run())
    _console.print(build_footer())


def run() -> None:
    app()
