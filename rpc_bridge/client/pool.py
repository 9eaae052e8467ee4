"""
rpc-bridge connection pool boundary.

Stores never open connections themselves. They ask a ClientPool for a
client handle for their namespace, use it for exactly one remote call and
hand it back:

    async with pool.acquire(namespace_config) as client:
        client.user_get_one_by_pk(42, callback)

Anything with an ``acquire(config)`` async context manager and an async
``close()`` satisfies the protocol, so a transport library can plug in its
own pool. BoundedClientPool is the in-tree implementation: one bounded set
of clients per namespace, built by a factory from the namespace config.

Pool sizing per namespace comes from ``NamespaceConfig.options["max_size"]``
when present, else from the pool's own ``max_size``. What happens at
capacity is a pool choice: ``block=True`` queues the caller (optionally up
to ``acquire_timeout`` seconds), ``block=False`` raises PoolExhausted.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncContextManager, AsyncGenerator, Callable, Protocol

from rpc_bridge.config import NamespaceConfig
from rpc_bridge.core.errors import BridgeError, PoolExhausted

logger = logging.getLogger(__name__)


class ClientPool(Protocol):
    """What a Store needs from the pool collaborator."""

    def acquire(self, config: NamespaceConfig) -> AsyncContextManager[Any]:
        ...

    async def close(self) -> None:
        ...


def default_factory(config: NamespaceConfig) -> Any:
    """Instantiate the namespace's service handle with its connection params."""
    if config.service is None:
        raise BridgeError(
            f"No service handle configured for namespace {config.namespace!r}"
        )
    return config.service(**config.connection)


# ─────────────────────────────────────────────────────────────
# Per-namespace slot
# ─────────────────────────────────────────────────────────────

class _NamespacePool:
    """Live-connection accounting for one namespace."""
    __slots__ = ("namespace", "max_size", "semaphore", "idle", "in_use", "peak", "created")

    def __init__(self, namespace: str, max_size: int):
        self.namespace = namespace
        self.max_size  = max_size
        self.semaphore = asyncio.Semaphore(max_size)
        self.idle:    list[Any] = []
        self.in_use  = 0
        self.peak    = 0
        self.created = 0


# ─────────────────────────────────────────────────────────────
# Bounded pool
# ─────────────────────────────────────────────────────────────

class BoundedClientPool:
    """A pool that caps live clients per namespace and reuses idle ones.

    A client is discarded instead of reused when the call holding it was
    cancelled, timed out or hit an OS-level error, since a response may
    still be in flight on it.
    """

    DEFAULT_MAX_SIZE = 10

    def __init__(
        self,
        factory: Callable[[NamespaceConfig], Any] | None = None,
        *,
        max_size: int = DEFAULT_MAX_SIZE,
        block: bool = True,
        acquire_timeout: float | None = None,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.factory         = factory or default_factory
        self.max_size        = max_size
        self.block           = block
        self.acquire_timeout = acquire_timeout

        # namespace → _NamespacePool
        self._pools: dict[str, _NamespacePool] = {}
        self._closed = False

    # ── Accounting ────────────────────────────────────────────

    def in_use(self, namespace: str) -> int:
        slot = self._pools.get(namespace)
        return slot.in_use if slot else 0

    def peak(self, namespace: str) -> int:
        """Highest number of simultaneously live clients seen."""
        slot = self._pools.get(namespace)
        return slot.peak if slot else 0

    def created(self, namespace: str) -> int:
        slot = self._pools.get(namespace)
        return slot.created if slot else 0

    def _slot(self, config: NamespaceConfig) -> _NamespacePool:
        slot = self._pools.get(config.namespace)
        if slot is None:
            size = int(config.options.get("max_size", self.max_size))
            slot = _NamespacePool(config.namespace, size)
            self._pools[config.namespace] = slot
        return slot

    # ── Acquire / release ─────────────────────────────────────

    @asynccontextmanager
    async def acquire(self, config: NamespaceConfig) -> AsyncGenerator[Any, None]:
        """Yield a client for ``config.namespace``, waiting for capacity if needed."""
        slot = self._slot(config)
        await self._wait_for_capacity(slot)

        try:
            client = slot.idle.pop() if slot.idle else await self._create(config, slot)
        except BaseException:
            slot.semaphore.release()
            raise

        slot.in_use += 1
        slot.peak = max(slot.peak, slot.in_use)
        reusable = True
        try:
            yield client
        except (asyncio.CancelledError, TimeoutError, OSError):
            reusable = False
            raise
        finally:
            slot.in_use -= 1
            if reusable and not self._closed:
                slot.idle.append(client)
            else:
                logger.debug(f"Discarding client for {slot.namespace!r}")
                await _close_client(client)
            slot.semaphore.release()

    async def _wait_for_capacity(self, slot: _NamespacePool) -> None:
        if not self.block:
            if slot.semaphore.locked():
                raise PoolExhausted(slot.namespace, slot.max_size)
            await slot.semaphore.acquire()
            return

        if self.acquire_timeout is None:
            await slot.semaphore.acquire()
            return

        try:
            await asyncio.wait_for(slot.semaphore.acquire(), self.acquire_timeout)
        except asyncio.TimeoutError:
            raise PoolExhausted(slot.namespace, slot.max_size) from None

    async def _create(self, config: NamespaceConfig, slot: _NamespacePool) -> Any:
        client = self.factory(config)
        if inspect.isawaitable(client):
            client = await client
        slot.created += 1
        logger.debug(
            f"Opened client #{slot.created} for namespace {slot.namespace!r}"
        )
        return client

    async def close(self) -> None:
        """Close every idle client. Clients in use are closed on release."""
        self._closed = True
        for slot in self._pools.values():
            while slot.idle:
                await _close_client(slot.idle.pop())
        logger.info(f"Closed client pool ({len(self._pools)} namespace(s))")


async def _close_client(client: Any) -> None:
    close = getattr(client, "close", None)
    if not callable(close):
        return
    try:
        result = close()
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.warning(f"Error closing client {client!r}: {e}")
