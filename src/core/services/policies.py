"""Políticas de caché y reintentos expresadas como datos.

Por qué datos y no closures:
- Cada recurso declara su TTL y su backoff; el Query Layer solo los aplica.
- Se prueban sin red ni event loop.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from core.config import AppSettings
from core.errors import ApiError, ErrorKind


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff exponencial: `delay = min(base_delay * 2**attempt, max_delay)`.

    `max_retries` cuenta reintentos tras el primer fallo; `attempt` empieza en 0.
    """

    max_retries: int
    base_delay: float = 1.0
    max_delay: float = 30.0
    non_retryable: frozenset[ErrorKind] = field(default_factory=lambda: frozenset({ErrorKind.VALIDATION}))

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * (2**attempt), self.max_delay)

    def should_retry(self, failure_count: int, error: ApiError) -> bool:
        """`failure_count` = fallos ya ocurridos en esta racha, contando el actual."""

        if error.kind in self.non_retryable:
            return False
        return failure_count <= self.max_retries


@dataclass(frozen=True)
class QueryPolicy:
    """Tiempo de frescura + política de reintentos de un recurso."""

    stale_time: float
    retry: RetryPolicy


COUNTRIES_RETRY = RetryPolicy(max_retries=3, base_delay=1.0, max_delay=30.0)
HOLIDAYS_RETRY = RetryPolicy(
    max_retries=2,
    base_delay=1.0,
    max_delay=10.0,
    non_retryable=frozenset({ErrorKind.VALIDATION, ErrorKind.NOT_FOUND}),
)

COUNTRIES_POLICY = QueryPolicy(stale_time=30 * 60, retry=COUNTRIES_RETRY)
HOLIDAYS_POLICY = QueryPolicy(stale_time=15 * 60, retry=HOLIDAYS_RETRY)


def countries_policy(settings: AppSettings) -> QueryPolicy:
    return QueryPolicy(
        stale_time=settings.countries_stale_minutes * 60,
        retry=RetryPolicy(
            max_retries=COUNTRIES_RETRY.max_retries,
            base_delay=settings.retry_base_delay_ms / 1000,
            max_delay=COUNTRIES_RETRY.max_delay,
            non_retryable=COUNTRIES_RETRY.non_retryable,
        ),
    )


def holidays_policy(settings: AppSettings) -> QueryPolicy:
    return QueryPolicy(
        stale_time=settings.holidays_stale_minutes * 60,
        retry=RetryPolicy(
            max_retries=HOLIDAYS_RETRY.max_retries,
            base_delay=settings.retry_base_delay_ms / 1000,
            max_delay=HOLIDAYS_RETRY.max_delay,
            non_retryable=HOLIDAYS_RETRY.non_retryable,
        ),
    )
