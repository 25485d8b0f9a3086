from __future__ import annotations

import asyncio
from typing import Any

import pytest

from core.config import AppSettings
from core.domain.validation import COUNTRIES_SCHEMA, HOLIDAYS_SCHEMA
from core.domain.models import Country, Holiday
from core.errors import ApiError, ErrorKind


COUNTRIES_PAYLOAD: list[dict[str, Any]] = [
    {
        "isoCode": "DE",
        "name": [{"language": "EN", "text": "Germany"}, {"language": "DE", "text": "Deutschland"}],
        "officialLanguages": ["DE"],
    },
    {
        "isoCode": "CA",
        "name": [{"language": "EN", "text": "Canada"}],
        "officialLanguages": ["EN", "FR"],
    },
]

HOLIDAYS_PAYLOAD: list[dict[str, Any]] = [
    {
        "id": "a1",
        "startDate": "2026-12-25",
        "endDate": "2026-12-25",
        "type": "Public",
        "nationwide": True,
        "name": [{"language": "EN", "text": "Christmas Day"}],
    },
    {
        "id": "a2",
        "startDate": "2026-07-01",
        "endDate": "2026-07-02",
        "type": "Public",
        "nationwide": False,
        "name": [{"language": "EN", "text": "Canada Day"}],
        "comment": [{"language": "EN", "text": "Observed in some provinces"}],
    },
]


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(_env_file=None, api_base_url="https://holidays.test", user_agent="tests")


@pytest.fixture
def countries() -> list[Country]:
    return COUNTRIES_SCHEMA.validate_python(COUNTRIES_PAYLOAD)


@pytest.fixture
def holidays() -> list[Holiday]:
    return HOLIDAYS_SCHEMA.validate_python(HOLIDAYS_PAYLOAD)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Registra los delays pedidos sin esperar de verdad."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


class FakeSource:
    """`HolidaysSource` en memoria.

    `countries_results` / `holidays_results` son colas: cada llamada consume
    el siguiente elemento (valor o `ApiError`); el último se repite.
    Si `gate` está puesto, cada llamada espera a que se abra.
    """

    def __init__(
        self,
        countries_results: list[Any] | None = None,
        holidays_results: dict[str, list[Any]] | None = None,
    ) -> None:
        self.countries_results = countries_results or [[]]
        self.holidays_results = holidays_results or {}
        self.countries_calls = 0
        self.holidays_calls: list[tuple[str, int | None]] = []
        self.gates: dict[str, asyncio.Event] = {}

    @staticmethod
    def _next(results: list[Any], index: int) -> Any:
        item = results[min(index, len(results) - 1)]
        if isinstance(item, BaseException):
            raise item
        return item

    async def fetch_countries(self) -> list[Country]:
        index = self.countries_calls
        self.countries_calls += 1
        gate = self.gates.get("countries")
        if gate is not None:
            await gate.wait()
        return self._next(self.countries_results, index)

    async def fetch_holidays(self, country_iso_code: str, year: int | None = None) -> list[Holiday]:
        index = sum(1 for iso, _ in self.holidays_calls if iso == country_iso_code)
        self.holidays_calls.append((country_iso_code, year))
        gate = self.gates.get(country_iso_code)
        if gate is not None:
            await gate.wait()
        return self._next(self.holidays_results.get(country_iso_code, [[]]), index)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


def transport_error(message: str = "connection refused") -> ApiError:
    return ApiError(ErrorKind.TRANSPORT, message)
