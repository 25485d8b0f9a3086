"""Validador de esquemas: JSON sin tipo -> modelos del dominio.

Por qué TypeAdapter:
- Las respuestas de la API son arrays en la raíz; `TypeAdapter(list[Model])`
  valida el array completo en una sola pasada.
- La validación es pura: sin I/O ni estado.

Dos formas de uso:
- `validate(schema, raw)` devuelve el valor tipado o lanza `SchemaValidationError`.
- `parse(schema, raw)` devuelve un `ParseResult` (éxito o detalle del error).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from core.domain.models import Country, Holiday
from core.errors import SchemaValidationError

T = TypeVar("T")

COUNTRIES_SCHEMA: TypeAdapter[list[Country]] = TypeAdapter(list[Country])
HOLIDAYS_SCHEMA: TypeAdapter[list[Holiday]] = TypeAdapter(list[Holiday])


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    value: T | None = None
    issues: list[dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues


def _issues_from(exc: PydanticValidationError) -> list[dict[str, Any]]:
    return [
        {
            "loc": list(err.get("loc", ())),
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors(include_url=False)
    ]


def parse(schema: TypeAdapter[T], raw: Any) -> ParseResult[T]:
    try:
        return ParseResult(value=schema.validate_python(raw))
    except PydanticValidationError as exc:
        return ParseResult(issues=_issues_from(exc))


def validate(schema: TypeAdapter[T], raw: Any) -> T:
    """Valida `raw` contra `schema`.

    Un array vacío es válido. Solo se comprueba la forma (campos requeridos y
    tipos); restricciones semánticas como el orden de fechas no se imponen.
    """

    result = parse(schema, raw)
    if not result.ok:
        first = result.issues[0]
        loc = ".".join(str(p) for p in first["loc"]) or "<root>"
        raise SchemaValidationError(
            f"Invalid API response format: {loc}: {first['msg']}",
            result.issues,
        )
    return result.value  # type: ignore[return-value]
