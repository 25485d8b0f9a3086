"""Helpers puros de localización y fechas.

Se usan desde la presentación (CLI) y desde el cliente HTTP (rango de fechas
del año pedido).
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from core.domain.models import LocalizedText

UNKNOWN_TEXT = "Unknown"


def pick_localized_text(items: Iterable[LocalizedText], preferred_language: str = "en") -> str:
    """Devuelve el texto en `preferred_language` (sin distinguir mayúsculas).

    Si no existe, el primero disponible; si no hay ninguno, `"Unknown"`.
    """

    entries = list(items or ())
    wanted = preferred_language.lower()
    for item in entries:
        if item.language.lower() == wanted and item.text:
            return item.text
    if entries and entries[0].text:
        return entries[0].text
    return UNKNOWN_TEXT


def format_holiday_date(value: str | date) -> str:
    """Fecha larga en inglés: `"Thursday, December 25, 2025"`."""

    day = value if isinstance(value, date) else date.fromisoformat(value)
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"


def year_bounds(year: int) -> tuple[date, date]:
    """Rango cerrado `[year-01-01, year-12-31]`."""

    return date(year, 1, 1), date(year, 12, 31)


def current_year(today: date | None = None) -> int:
    return (today or date.today()).year
