"""Recursos que consume la presentación.

Une la fuente de datos (`HolidaysSource`) con el `QueryClient`:
- `countries()` -> lista de países, clave `("countries",)`.
- `holidays(iso, year)` -> festivos del país/año, clave `("holidays", ISO, year)`.

La presentación solo ve `QueryResult`: `data`, `is_loading`, `error` y `refetch()`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Generic, TypeVar

from core.domain.localization import current_year, pick_localized_text
from core.domain.models import Country, Holiday
from core.errors import ApiError
from core.interfaces.holidays_source import HolidaysSource
from core.services.policies import COUNTRIES_POLICY, HOLIDAYS_POLICY, QueryPolicy
from core.services.query_cache import CacheState, QueryClient, QueryKey, QuerySnapshot

T = TypeVar("T")


def countries_key() -> QueryKey:
    return ("countries",)


def holidays_key(country_iso_code: str, year: int | None = None) -> QueryKey:
    return ("holidays", country_iso_code.strip().upper(), year if year is not None else current_year())


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """Vista de un recurso para la UI."""

    snapshot: QuerySnapshot[T]
    _refetch: Callable[[], Awaitable["QueryResult[T]"]]

    @property
    def key(self) -> QueryKey:
        return self.snapshot.key

    @property
    def data(self) -> T | None:
        return self.snapshot.data

    @property
    def is_loading(self) -> bool:
        return self.snapshot.is_loading

    @property
    def error(self) -> ApiError | None:
        return self.snapshot.error

    @property
    def state(self) -> CacheState:
        return self.snapshot.state

    @property
    def enabled(self) -> bool:
        return self.snapshot.enabled

    async def refetch(self) -> "QueryResult[T]":
        return await self._refetch()


class HolidayResources:
    """Recursos de países y festivos sobre un `QueryClient` compartido."""

    def __init__(
        self,
        source: HolidaysSource,
        queries: QueryClient,
        *,
        countries_policy: QueryPolicy = COUNTRIES_POLICY,
        holidays_policy: QueryPolicy = HOLIDAYS_POLICY,
    ) -> None:
        self._source = source
        self._queries = queries
        self._countries_policy = countries_policy
        self._holidays_policy = holidays_policy

    async def countries(self, *, retry: bool = True) -> QueryResult[list[Country]]:
        """Lista de países; con `retry=False` un fallo es terminal al primer intento."""

        policy = self._countries_policy
        if not retry:
            policy = replace(policy, retry=replace(policy.retry, max_retries=0))
        snap = await self._queries.fetch(countries_key(), self._source.fetch_countries, policy)
        return self._result(snap, self._refetch_countries)

    async def holidays(self, country_iso_code: str, year: int | None = None) -> QueryResult[list[Holiday]]:
        """Festivos de un país; con código vacío el recurso queda inerte (sin red)."""

        iso = (country_iso_code or "").strip().upper()
        resolved_year = year if year is not None else current_year()
        if not iso:
            return self._result(QuerySnapshot(key=holidays_key("", resolved_year), enabled=False), _disabled_refetch)

        key = holidays_key(iso, resolved_year)
        snap = await self._queries.fetch(
            key,
            self._holidays_fetcher(iso, resolved_year),
            self._holidays_policy,
        )
        return self._result(snap, lambda: self._refetch_holidays(iso, resolved_year))

    def peek(self, key: QueryKey) -> QueryResult[Any]:
        """Lectura sin red del estado actual de `key`."""

        snap = self._queries.snapshot(key)
        if key == countries_key():
            return self._result(snap, self._refetch_countries)
        if len(key) == 3 and key[0] == "holidays" and key[1]:
            iso, year = str(key[1]), int(key[2])  # type: ignore[call-overload]
            return self._result(snap, lambda: self._refetch_holidays(iso, year))
        return self._result(QuerySnapshot(key=key, enabled=False), _disabled_refetch)

    def country_name(self, country_iso_code: str, preferred_language: str = "en") -> str:
        """Nombre localizado según la caché de países; si no está, el propio código."""

        countries = self._queries.get_data(countries_key()) or []
        for country in countries:
            if country.iso_code == country_iso_code:
                return pick_localized_text(country.name, preferred_language)
        return country_iso_code

    def _holidays_fetcher(self, iso: str, year: int) -> Callable[[], Awaitable[list[Holiday]]]:
        async def fetcher() -> list[Holiday]:
            return await self._source.fetch_holidays(iso, year)

        return fetcher

    async def _refetch_countries(self) -> QueryResult[list[Country]]:
        snap = await self._queries.refetch(countries_key(), self._source.fetch_countries, self._countries_policy)
        return self._result(snap, self._refetch_countries)

    async def _refetch_holidays(self, iso: str, year: int) -> QueryResult[list[Holiday]]:
        snap = await self._queries.refetch(
            holidays_key(iso, year),
            self._holidays_fetcher(iso, year),
            self._holidays_policy,
        )
        return self._result(snap, lambda: self._refetch_holidays(iso, year))

    @staticmethod
    def _result(snap: QuerySnapshot[Any], refetch: Callable[[], Awaitable[QueryResult[Any]]]) -> QueryResult[Any]:
        return QueryResult(snapshot=snap, _refetch=refetch)


async def _disabled_refetch() -> QueryResult[Any]:
    return QueryResult(snapshot=QuerySnapshot(key=(), enabled=False), _refetch=_disabled_refetch)


class HolidaysBrowser:
    """País activo de la UI.

    Cambiar de país cambia la clave activa. Una respuesta tardía del país
    anterior solo escribe en su propia entrada y nunca se devuelve como
    resultado del país actual.
    """

    def __init__(self, resources: HolidayResources, *, year: int | None = None) -> None:
        self._resources = resources
        self._year = year
        self._active: QueryKey | None = None

    @property
    def active_key(self) -> QueryKey | None:
        return self._active

    async def select(self, country_iso_code: str) -> QueryResult[list[Holiday]]:
        iso = (country_iso_code or "").strip().upper()
        self._active = holidays_key(iso, self._year) if iso else None
        await self._resources.holidays(iso, self._year)
        return self.current()

    def current(self) -> QueryResult[list[Holiday]]:
        if self._active is None:
            return QueryResult(snapshot=QuerySnapshot(key=(), enabled=False), _refetch=_disabled_refetch)
        return self._resources.peek(self._active)
