"""
rpc-bridge sync facade.

Scripts, management commands and thread-based workers have no event loop.
This facade runs a ServiceRegistry on a background thread so they can use
Stores with ordinary blocking calls.

Design:

  A single daemon thread owns the asyncio event loop. Blocking callers
  submit coroutines with asyncio.run_coroutine_threadsafe() and wait on
  the returned concurrent.futures.Future. The registry, its pool and every
  Store only ever run on that one loop.

Usage:

    with SyncRegistry(registry) as sync:
        users = sync.get_store("User")
        user  = users.get_one_by_pk(42)
        users.update_one({"name": "Ana"}, {"user_id": 42})
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
import logging
import threading
from concurrent.futures import Future as ThreadFuture
from typing import Any, Coroutine

from rpc_bridge.store.registry import ServiceRegistry, StoreKey
from rpc_bridge.store.store import Store

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Background event loop thread
# ─────────────────────────────────────────────────────────────

class _LoopThread(threading.Thread):
    """A daemon thread that owns and runs an asyncio event loop."""

    def __init__(self):
        super().__init__(name="rpc-bridge-loop", daemon=True)
        self.loop: asyncio.AbstractEventLoop | None = None
        self._ready = threading.Event()

    def run(self) -> None:
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)
        self._ready.set()
        try:
            self.loop.run_forever()
        finally:
            self.loop.close()

    def start_and_wait(self) -> None:
        """Start the thread and block until the event loop is ready."""
        self.start()
        self._ready.wait()

    def submit(self, coro: Coroutine) -> ThreadFuture:
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def stop(self) -> None:
        if self.loop and self.loop.is_running():
            self.loop.call_soon_threadsafe(self.loop.stop)


# ─────────────────────────────────────────────────────────────
# Sync Store
# ─────────────────────────────────────────────────────────────

class SyncStore:
    """Blocking view of a Store. Coroutine methods block; the rest pass through."""

    def __init__(self, store: Store, owner: "SyncRegistry"):
        self._store = store
        self._owner = owner

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._store, name)
        if not inspect.iscoroutinefunction(getattr(attr, "func", attr)):
            return attr

        def call(*args: Any, **kwargs: Any) -> Any:
            return self._owner._run(attr(*args, **kwargs), kwargs.get("timeout"))

        call.__name__ = name
        return call

    def __repr__(self) -> str:
        return f"Sync{self._store!r}"


# ─────────────────────────────────────────────────────────────
# Sync Registry
# ─────────────────────────────────────────────────────────────

class SyncRegistry:
    """Synchronous access to a ServiceRegistry.

    All Store methods block until the remote call completes or
    ``request_timeout`` (or the call's own ``timeout``) passes.
    """

    def __init__(self, registry: ServiceRegistry, request_timeout: float = 30.0):
        self.registry        = registry
        self.request_timeout = request_timeout
        self._thread: _LoopThread | None = None

    # ── Lifecycle ─────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._thread = _LoopThread()
        self._thread.start_and_wait()
        logger.info("SyncRegistry loop thread started")

    def stop(self) -> None:
        """Close the registry's pool and stop the loop thread."""
        if not self.is_running:
            return
        future = self._thread.submit(self.registry.close())
        try:
            future.result(timeout=5.0)
        except Exception as e:
            logger.warning(f"Error closing registry: {e}")
        self._thread.stop()
        self._thread.join(timeout=5.0)
        self._thread = None
        logger.info("SyncRegistry stopped")

    def __enter__(self) -> "SyncRegistry":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()

    # ── Access ────────────────────────────────────────────────

    def get_store(self, key: StoreKey) -> SyncStore:
        return SyncStore(self.registry.get_store(key), self)

    def _run(self, coro: Coroutine, timeout: float | None = None) -> Any:
        """Submit a coroutine to the loop thread and block for its result."""
        if not self.is_running:
            coro.close()
            raise RuntimeError("Not started. Call start() first.")
        future = self._thread.submit(coro)
        try:
            return future.result(timeout=(timeout or self.request_timeout) + 1)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise
