"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Los comandos solo deciden *qué* estado mostrar (cargando/error/datos);
  aquí se decide *cómo*.
"""

from __future__ import annotations

from typing import Sequence

from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.localization import format_holiday_date, pick_localized_text
from core.domain.models import Country, Holiday
from core.errors import ApiError, ErrorKind

DATA_SOURCE_URL = "https://www.openholidaysapi.org"


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida (solo en modo interactivo)."""

    title = Text("World Public Holidays", style="bold cyan")
    subtitle = Text("Discover public holidays around the world.", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def format_country_option(country: Country, language: str = "en") -> str:
    """`"Germany (DE)"`, como en el selector de países."""

    return f"{pick_localized_text(country.name, language)} ({country.iso_code})"


def build_countries_table(countries: Sequence[Country], language: str = "en") -> Table:
    table = Table(title="Countries")
    table.add_column("ISO", style="cyan", no_wrap=True)
    table.add_column("Country", style="white")
    table.add_column("Official languages", style="dim")
    for country in countries:
        table.add_row(
            country.iso_code,
            pick_localized_text(country.name, language),
            ", ".join(sorted(country.official_languages)),
        )
    return table


def format_holiday_dates(holiday: Holiday) -> str:
    start = format_holiday_date(holiday.start_date)
    if not holiday.is_multi_day:
        return start
    return f"{start} - {format_holiday_date(holiday.end_date)}"


def holidays_title(country_name: str, year: int) -> str:
    return f"Public Holidays in {country_name} ({year})"


def build_holidays_table(
    holidays: Sequence[Holiday],
    *,
    country_name: str,
    year: int,
    language: str = "en",
) -> Table:
    """Una fila por festivo: nombre, fechas, ámbito, tipo y comentario."""

    table = Table(title=holidays_title(country_name, year))
    table.add_column("Holiday", style="bold white")
    table.add_column("Date", style="cyan")
    table.add_column("Scope", no_wrap=True)
    table.add_column("Type", style="magenta", no_wrap=True)
    table.add_column("Comment", style="dim")
    for holiday in holidays:
        scope = Text("Nationwide", style="green") if holiday.nationwide else Text("Regional", style="yellow")
        comment = pick_localized_text(holiday.comment, language) if holiday.comment else ""
        table.add_row(
            pick_localized_text(holiday.name, language),
            format_holiday_dates(holiday),
            scope,
            holiday.type,
            comment,
        )
    return table


def build_empty_holidays_panel(country_name: str, year: int) -> Panel:
    body = Text()
    body.append(f"No public holidays found for {country_name} in {year}.\n", style="bold")
    body.append(
        "This might be because the country doesn't have recorded holidays "
        "or they're not available in our database.",
        style="dim",
    )
    return Panel(body, title=holidays_title(country_name, year), border_style="blue")


def build_error_panel(error: ApiError, title: str = "Something went wrong") -> Panel:
    """Panel para el error normalizado de un recurso."""

    body = Text()
    body.append((error.message or "An unexpected error occurred. Please try again.") + "\n")
    if error.http_status is not None:
        body.append(f"\nHTTP status: {error.http_status}", style="dim")
    body.append(f"\nKind: {error.kind.value}", style="dim")
    if error.kind is ErrorKind.VALIDATION:
        body.append("\nThe API answered with an unexpected format.", style="dim")
    else:
        body.append("\nRun the command again to retry.", style="dim")
    return Panel(body, title=Text(title, style="bold red"), border_style="red")


def build_failure_panel(exc: BaseException | None = None) -> Panel:
    """Panel genérico de la última barrera (defecto de programación, no de red)."""

    parts: list[Text] = [
        Text("An unexpected error occurred. Please run the command again."),
    ]
    if exc is not None:
        parts.append(Text(f"\nError details: {exc.__class__.__name__}: {exc}", style="dim"))
    return Panel(Group(*parts), title=Text("Something went wrong", style="bold red"), border_style="red")


def build_footer() -> Text:
    footer = Text(style="dim")
    footer.append("Data provided by OpenHolidays API ")
    footer.append(f"({DATA_SOURCE_URL})")
    footer.append(" - an open data project for public holiday information.")
    return footer
