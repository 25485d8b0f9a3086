"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.holidays_api import HolidaysApiClient
from core.config import AppSettings, get_user_env_file, write_user_env_vars
from core.errors import ApiError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_api(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with HolidaysApiClient(settings) as client:
            countries = await client.fetch_countries()
        return True, f"{len(countries)} countries"
    except ApiError as exc:
        return False, f"{exc.kind.value}: {exc.message}"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="Holidays Explorer Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("API base_url", "OK", settings.api_base_url)
    table.add_row("HTTP timeout", "OK", f"{settings.http_timeout_seconds:g}s")
    table.add_row(
        "Cache TTL",
        "OK",
        f"countries {settings.countries_stale_minutes:g} min, holidays {settings.holidays_stale_minutes:g} min",
    )
    table.add_row("User config", "OK" if get_user_env_file().exists() else "OPTIONAL", str(get_user_env_file()))

    # Connectivity (best-effort)
    ok_api, detail_api = asyncio.run(_check_api(settings))
    table.add_row("API /Countries", "OK" if ok_api else "FAIL", detail_api)

    _console.print(table)

    if not ok_api:
        _console.print(
            "\n[yellow]Note:[/yellow] Check your network or point to another server with "
            "`doctor set-api-url`."
        )
        raise typer.Exit(code=1)


@app.command(name="set-api-url")
def set_api_url(
    url: str = typer.Argument(..., help="Base URL of an OpenHolidays-compatible API."),
) -> None:
    """Store the API base URL in the user config .env."""

    url = url.strip().rstrip("/")
    if not url.startswith(("http://", "https://")):
        raise typer.BadParameter("url must start with http:// or https://")

    env_path = write_user_env_vars({"HOLIDAYS_EXPLORER_API_BASE_URL": url})
    _console.print(f"[green]Saved API base URL to:[/green] {env_path}")
