"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Los nombres en camelCase de la API se mapean con alias; en Python usamos snake_case.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
- Son inmutables (`frozen`): se crean solo al validar una respuesta de la API.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field, StrictBool, StrictStr
from pydantic.config import ConfigDict


def _require_iso_string(value: Any) -> Any:
    # La API manda fechas como "YYYY-MM-DD"; un número no es una fecha válida.
    if not isinstance(value, str):
        raise ValueError("date must be an ISO 8601 string")
    return value


IsoDate = Annotated[date, BeforeValidator(_require_iso_string)]


class _ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class LocalizedText(_ApiModel):
    """Una traducción de un nombre o comentario."""

    language: StrictStr = Field(
        ...,
        min_length=1,
        description="Código de idioma (p.ej. 'EN', 'de').",
    )
    text: StrictStr = Field(
        ...,
        description="Texto en ese idioma.",
    )


class Country(_ApiModel):
    """País soportado por la API. Identidad = `iso_code`."""

    iso_code: StrictStr = Field(
        ...,
        alias="isoCode",
        description="Código ISO del país (identificador estable).",
    )
    name: tuple[LocalizedText, ...] = Field(
        ...,
        description="Nombre del país en varios idiomas (orden de la API).",
    )
    official_languages: frozenset[StrictStr] = Field(
        ...,
        alias="officialLanguages",
        description="Idiomas oficiales del país.",
    )


class Holiday(_ApiModel):
    """Festivo público.

    `end_date < start_date` se acepta tal cual: la validación es solo de forma.
    """

    id: StrictStr = Field(
        ...,
        description="Identificador único dentro de la respuesta.",
    )
    start_date: IsoDate = Field(
        ...,
        alias="startDate",
        description="Primer día del festivo.",
    )
    end_date: IsoDate = Field(
        ...,
        alias="endDate",
        description="Último día del festivo.",
    )
    type: StrictStr = Field(
        ...,
        description="Categoría (Public, Bank, School, ...).",
    )
    nationwide: StrictBool = Field(
        ...,
        description="True si aplica a todo el país; False si es regional.",
    )
    name: tuple[LocalizedText, ...] = Field(
        ...,
        description="Nombre del festivo en varios idiomas.",
    )
    comment: tuple[LocalizedText, ...] | None = Field(
        default=None,
        description="Comentario opcional de la autoridad.",
    )

    @property
    def is_multi_day(self) -> bool:
        return self.start_date != self.end_date
