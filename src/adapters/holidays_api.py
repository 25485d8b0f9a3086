"""Cliente de la API de festivos (OpenHolidays).

Una llamada = una petición lógica. El resultado es un valor validado o un
`ApiError` clasificado; aquí no hay caché ni reintentos (eso vive en
`core.services.query_cache`).

Clasificación de fallos, en orden:
1. Fallo de transporte (red, timeout) -> TRANSPORT.
2. Status no 2xx -> TRANSPORT con `http_status` (NOT_FOUND si es 404).
3. JSON válido con forma incorrecta -> VALIDATION con el diff del validador.
4. Cualquier otra cosa (p.ej. cuerpo que no es JSON) -> UNKNOWN.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.localization import current_year, year_bounds
from core.domain.models import Country, Holiday
from core.domain.validation import COUNTRIES_SCHEMA, HOLIDAYS_SCHEMA, validate
from core.errors import ApiError, ErrorKind, SchemaValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

LANGUAGE_ISO_CODE = "EN"


def holidays_query_params(country_iso_code: str, year: int) -> dict[str, str]:
    valid_from, valid_to = year_bounds(year)
    return {
        "countryIsoCode": country_iso_code,
        "languageIsoCode": LANGUAGE_ISO_CODE,
        "validFrom": valid_from.isoformat(),
        "validTo": valid_to.isoformat(),
    }


class HolidaysApiClient:
    """Implementa `core.interfaces.holidays_source.HolidaysSource` sobre HTTP.

    Si no se inyecta `client`, se crea uno con `build_async_client` y se cierra
    en `aclose()`; un cliente inyectado es responsabilidad de quien lo creó.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._base_url = self._settings.api_base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or build_async_client(self._settings, transport=transport)

    async def __aenter__(self) -> "HolidaysApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_countries(self) -> list[Country]:
        return await self._get_validated(f"{self._base_url}/Countries", COUNTRIES_SCHEMA)

    async def fetch_holidays(self, country_iso_code: str, year: int | None = None) -> list[Holiday]:
        if not country_iso_code or not country_iso_code.strip():
            raise ValueError("country_iso_code must be a non-empty string")
        year = year if year is not None else current_year()
        return await self._get_validated(
            f"{self._base_url}/PublicHolidays",
            HOLIDAYS_SCHEMA,
            params=holidays_query_params(country_iso_code.strip(), year),
        )

    async def _get_validated(
        self,
        url: str,
        schema: TypeAdapter[T],
        *,
        params: dict[str, str] | None = None,
    ) -> T:
        try:
            resp = await self._client.get(url, params=params)
        except httpx.TransportError as exc:
            logger.warning("GET %s failed: %s", url, exc)
            raise ApiError(
                ErrorKind.TRANSPORT,
                f"Network error: {exc}" if str(exc) else f"Network error: {exc.__class__.__name__}",
                cause=exc,
            ) from exc
        except httpx.HTTPError as exc:
            raise ApiError(ErrorKind.UNKNOWN, str(exc) or "Unknown error occurred", cause=exc) from exc

        logger.debug("GET %s -> %s", resp.request.url, resp.status_code)

        if resp.status_code == 404:
            raise ApiError(
                ErrorKind.NOT_FOUND,
                f"API request failed: 404 {resp.reason_phrase}".rstrip(),
                http_status=404,
            )
        if not resp.is_success:
            raise ApiError(
                ErrorKind.TRANSPORT,
                f"API request failed: {resp.status_code} {resp.reason_phrase}".rstrip(),
                http_status=resp.status_code,
            )

        try:
            data: Any = resp.json()
        except ValueError as exc:
            raise ApiError(ErrorKind.UNKNOWN, f"Malformed JSON body: {exc}", cause=exc) from exc

        try:
            return validate(schema, data)
        except SchemaValidationError as exc:
            logger.warning("invalid payload from %s: %s", url, exc.message)
            raise ApiError(ErrorKind.VALIDATION, exc.message, cause=exc.issues) from exc
