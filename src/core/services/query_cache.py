"""Registro de caché/consultas por clave lógica.

Este módulo media entre una API externa poco fiable y la presentación:
- Una entrada por clave (`("countries",)`, `("holidays", "CA", 2026)`).
- Como mucho una petición en vuelo por clave; lecturas concurrentes la comparten.
- Stale-while-revalidate: un valor caducado se sirve mientras se refresca en segundo plano.
- Reintentos con backoff según la `QueryPolicy` del recurso.
- Último escritor gana por número de secuencia: el resultado de un intento
  reemplazado (refetch, cancelación) se descarta.

Ciclo de vida: un `QueryClient` se crea al arrancar el proceso (o el comando
CLI) y se cierra con `close()` / `async with`, que cancela lo que quede en vuelo.
Las entradas son privadas del cliente; hacia fuera solo salen `QuerySnapshot`.
Los datos salen como copia: mutar `snapshot.data` no toca la caché.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Hashable, TypeVar

from core.errors import ApiError, ErrorKind
from core.services.policies import QueryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

QueryKey = tuple[Hashable, ...]
Fetcher = Callable[[], Awaitable[Any]]


class CacheState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    FRESH = "fresh"
    STALE = "stale"
    ERRORED = "errored"


@dataclass
class _CacheEntry:
    key: QueryKey
    policy: QueryPolicy
    fetcher: Fetcher
    value: Any = None
    has_value: bool = False
    fetched_at: float | None = None
    state: CacheState = CacheState.IDLE
    error: ApiError | None = None
    failure_count: int = 0
    seq: int = 0
    invalidated: bool = False
    task: asyncio.Task[None] | None = None

    @property
    def in_flight(self) -> bool:
        return self.task is not None and not self.task.done()


@dataclass(frozen=True)
class QuerySnapshot(Generic[T]):
    """Lectura inmutable del estado de una clave."""

    key: QueryKey
    state: CacheState = CacheState.IDLE
    data: T | None = None
    error: ApiError | None = None
    fetched_at: float | None = None
    failure_count: int = 0
    enabled: bool = True

    @property
    def is_loading(self) -> bool:
        """Primera carga: no hay dato que mostrar todavía."""

        return self.state is CacheState.FETCHING and self.data is None

    @property
    def is_fetching(self) -> bool:
        return self.state is CacheState.FETCHING

    @property
    def is_error(self) -> bool:
        return self.state is CacheState.ERRORED


class QueryClient:
    """Registro de entradas de caché con deduplicación y reintentos.

    `clock` y `sleep` son inyectables para probar TTL y backoff sin esperar.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._clock = clock
        self._sleep = sleep
        self._entries: dict[QueryKey, _CacheEntry] = {}
        self._seq = 0
        self._closed = False

    async def __aenter__(self) -> "QueryClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # Lecturas

    def snapshot(self, key: QueryKey) -> QuerySnapshot[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return QuerySnapshot(key=key)
        return QuerySnapshot(
            key=key,
            state=self._state_of(entry),
            data=copy.copy(entry.value) if entry.has_value else None,
            error=entry.error,
            fetched_at=entry.fetched_at,
            failure_count=entry.failure_count,
        )

    def get_data(self, key: QueryKey) -> Any:
        entry = self._entries.get(key)
        if entry is None or not entry.has_value:
            return None
        return copy.copy(entry.value)

    def keys(self) -> list[QueryKey]:
        return list(self._entries)

    # Operaciones

    async def fetch(
        self,
        key: QueryKey,
        fetcher: Fetcher,
        policy: QueryPolicy,
        *,
        enabled: bool = True,
    ) -> QuerySnapshot[Any]:
        """Devuelve el estado de `key`, lanzando la petición si hace falta.

        - Deshabilitada: estado inerte, sin red.
        - Fresca: se sirve de caché.
        - Caducada: se sirve el último valor y se revalida en segundo plano.
        - Sin valor: se espera a la (única) petición en vuelo.
        - Errored: terminal hasta `refetch`.
        """

        if not enabled:
            return QuerySnapshot(key=key, enabled=False)
        self._ensure_open()

        entry = self._entries.get(key)
        if entry is None:
            entry = _CacheEntry(key=key, policy=policy, fetcher=fetcher)
            self._entries[key] = entry
        else:
            entry.policy = policy
            entry.fetcher = fetcher

        if entry.in_flight:
            if entry.has_value:
                return self.snapshot(key)
            await self._wait(entry)
            return self.snapshot(key)

        state = self._state_of(entry)
        if state is CacheState.FRESH or state is CacheState.ERRORED:
            logger.debug("cache %s for %s", state.value, key)
            return self.snapshot(key)
        if state is CacheState.STALE:
            logger.debug("serving stale %s while revalidating", key)
            self._start(entry)
            return self.snapshot(key)

        self._start(entry)
        await self._wait(entry)
        return self.snapshot(key)

    async def refetch(
        self,
        key: QueryKey,
        fetcher: Fetcher | None = None,
        policy: QueryPolicy | None = None,
    ) -> QuerySnapshot[Any]:
        """Vuelve a pedir `key` ignorando la frescura y reinicia el contador de fallos.

        Si hay una petición en vuelo, se reemplaza: se cancela y su resultado
        ya no puede escribir en la entrada.
        """

        self._ensure_open()
        entry = self._entries.get(key)
        if entry is None:
            if fetcher is None or policy is None:
                raise KeyError(f"unknown query key {key!r}; pass fetcher and policy")
            entry = _CacheEntry(key=key, policy=policy, fetcher=fetcher)
            self._entries[key] = entry
        else:
            if fetcher is not None:
                entry.fetcher = fetcher
            if policy is not None:
                entry.policy = policy

        if entry.in_flight:
            assert entry.task is not None
            logger.debug("refetch supersedes in-flight request for %s", key)
            entry.task.cancel()
        entry.failure_count = 0
        self._start(entry)
        await self._wait(entry)
        return self.snapshot(key)

    def invalidate(self, key: QueryKey) -> None:
        """Marca la entrada como caducada; la próxima lectura revalida."""

        entry = self._entries.get(key)
        if entry is not None:
            entry.invalidated = True

    def cancel(self, key: QueryKey) -> None:
        """Cancela la petición en vuelo de `key` y descarta su resultado."""

        entry = self._entries.get(key)
        if entry is None or not entry.in_flight:
            return
        assert entry.task is not None
        entry.task.cancel()
        entry.task = None
        entry.seq = self._next_seq()
        entry.state = CacheState.FRESH if entry.has_value else CacheState.IDLE
        logger.debug("cancelled in-flight request for %s", key)

    def remove(self, key: QueryKey) -> None:
        self.cancel(key)
        self._entries.pop(key, None)

    async def close(self) -> None:
        """Cancela todo lo que quede en vuelo y vacía el registro."""

        tasks = [e.task for e in self._entries.values() if e.task is not None and not e.task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._entries.clear()
        self._closed = True

    # Internos

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("QueryClient is closed")

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    def _state_of(self, entry: _CacheEntry) -> CacheState:
        if entry.state is not CacheState.FRESH:
            return entry.state
        if entry.invalidated:
            return CacheState.STALE
        assert entry.fetched_at is not None
        if self._clock() - entry.fetched_at >= entry.policy.stale_time:
            return CacheState.STALE
        return CacheState.FRESH

    def _start(self, entry: _CacheEntry) -> asyncio.Task[None]:
        seq = self._next_seq()
        entry.seq = seq
        entry.state = CacheState.FETCHING
        entry.error = None
        entry.task = asyncio.create_task(
            self._run(entry.key, seq, entry.fetcher, entry.policy),
            name=f"query:{entry.key!r}#{seq}",
        )
        return entry.task

    async def _wait(self, entry: _CacheEntry) -> None:
        # Si el intento que esperamos es reemplazado, esperamos al siguiente.
        while entry.in_flight:
            task = entry.task
            assert task is not None
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise

    def _current(self, key: QueryKey, seq: int) -> _CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None or entry.seq != seq:
            logger.debug("discarding superseded result for %s (seq %s)", key, seq)
            return None
        return entry

    async def _run(self, key: QueryKey, seq: int, fetcher: Fetcher, policy: QueryPolicy) -> None:
        failures = 0
        while True:
            try:
                value = await fetcher()
            except ApiError as exc:
                error = exc
            except Exception as exc:
                error = ApiError(ErrorKind.UNKNOWN, str(exc) or exc.__class__.__name__, cause=exc)
            else:
                entry = self._current(key, seq)
                if entry is not None:
                    entry.value = copy.copy(value)
                    entry.has_value = True
                    entry.fetched_at = self._clock()
                    entry.state = CacheState.FRESH
                    entry.error = None
                    entry.failure_count = 0
                    entry.invalidated = False
                    entry.task = None
                return

            failures += 1
            entry = self._current(key, seq)
            if entry is None:
                return
            entry.failure_count = failures

            if policy.retry.should_retry(failures, error):
                delay = policy.retry.delay_for(failures - 1)
                logger.info(
                    "%s failed (%s: %s); retry %s/%s in %.1fs",
                    key,
                    error.kind.value,
                    error.message,
                    failures,
                    policy.retry.max_retries,
                    delay,
                )
                await self._sleep(delay)
                continue

            logger.warning("%s failed (%s): %s", key, error.kind.value, error.message)
            entry.state = CacheState.ERRORED
            entry.error = error
            entry.task = None
            return
