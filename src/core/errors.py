"""Taxonomía de errores del acceso a datos.

Por qué un único tipo:
- La UI solo necesita distinguir pocos casos (validación, transporte, 404, otro).
- El Query Layer decide reintentos mirando `kind`, nunca parseando mensajes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    TRANSPORT = "transport"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class ApiError(Exception):
    """Error normalizado que sale del cliente HTTP hacia el Query Layer y la UI.

    `NOT_FOUND` es una especialización de transporte: `is_transport` es True
    para ambos.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        cause: Any = None,
        http_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause
        self.http_status = http_status

    @property
    def is_transport(self) -> bool:
        return self.kind in (ErrorKind.TRANSPORT, ErrorKind.NOT_FOUND)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.http_status is not None:
            out["http_status"] = self.http_status
        if isinstance(self.cause, (list, dict, str)):
            out["cause"] = self.cause
        elif self.cause is not None:
            out["cause"] = repr(self.cause)
        return out

    def __repr__(self) -> str:
        return f"ApiError(kind={self.kind.value!r}, message={self.message!r}, http_status={self.http_status!r})"


class SchemaValidationError(ValueError):
    """El JSON recibido no cumple la forma esperada.

    `issues` es el diff estructural: lista de `{"loc", "msg", "type"}`.
    """

    def __init__(self, message: str, issues: list[dict[str, Any]]) -> None:
        super().__init__(message)
        self.message = message
        self.issues = issues
