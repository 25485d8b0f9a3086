"""Contrato de la fuente de datos de festivos.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- El Query Layer se prueba con un cliente falso; el cliente HTTP se prueba
  con un transporte falso. Ninguno conoce al otro.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import Country, Holiday


@runtime_checkable
class HolidaysSource(Protocol):
    """Contrato mínimo de una fuente de países y festivos.

    Reglas de diseño:
    - Métodos asíncronos porque típicamente hacen I/O (HTTP).
    - Los fallos salen como `core.errors.ApiError` ya clasificados.
    """

    async def fetch_countries(self) -> list[Country]:
        ...

    async def fetch_holidays(self, country_iso_code: str, year: int | None = None) -> list[Holiday]:
        ...
