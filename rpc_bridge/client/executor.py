"""
rpc-bridge call executor.

Generated RPC clients report results through a trailing completion
handler rather than a return value:

    client.user_get_one_by_pk(42, lambda error, result: ...)

The executor turns that into an awaitable:

    row = await executor.execute_service("user_get_one_by_pk", 42)

Design:

  - One pooled client per call, held until the completion arrives, the
    caller's timeout expires or the awaiting task is cancelled
  - The timeout covers the wait for pool capacity as well as the call
  - Exactly one completion is honoured per call; late or duplicate
    completions are logged and dropped
  - Completions may arrive on any thread (callback-based transports often
    run their own I/O thread); they are marshalled back onto the loop
  - No retries. A remote failure surfaces exactly once, unmodified
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable

from rpc_bridge.client.pool import ClientPool
from rpc_bridge.config import NamespaceConfig
from rpc_bridge.core.errors import CallTimeout, RemoteCallFailed, ServiceNotImplemented

logger = logging.getLogger(__name__)

Completion = Callable[[Any, Any], Any]


# ─────────────────────────────────────────────────────────────
# Pending call tracking
# ─────────────────────────────────────────────────────────────

class PendingCall:
    """Tracks one in-flight remote call waiting for its completion handler."""
    __slots__ = ("future", "service", "_loop", "_chained")

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        service: str,
        chained: Completion | None = None,
    ):
        self.future: asyncio.Future = loop.create_future()
        self.service  = service
        self._loop    = loop
        self._chained = chained

    def complete(self, error: Any = None, result: Any = None) -> None:
        """The (error, result) handler handed to the remote method."""
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            self._settle(error, result)
        else:
            self._loop.call_soon_threadsafe(self._settle, error, result)

    def _settle(self, error: Any, result: Any) -> None:
        if self.future.cancelled():
            logger.debug(f"Completion for {self.service!r} arrived after the call was abandoned")
            return
        if self.future.done():
            logger.warning(f"Ignoring duplicate completion for {self.service!r}")
            return

        if self._chained is not None:
            try:
                self._chained(error, result)
            except Exception as e:
                self.future.set_exception(e)
                return

        if error is not None:
            if isinstance(error, BaseException):
                self.future.set_exception(error)
            else:
                self.future.set_exception(RemoteCallFailed(error, self.service))
            return

        self.future.set_result(result)


# ─────────────────────────────────────────────────────────────
# Executor
# ─────────────────────────────────────────────────────────────

class CallExecutor:
    """Runs remote calls for one Store against its namespace's pool.

    Holds no per-call state, so one executor serves any number of
    overlapping calls.
    """

    def __init__(self, pool: ClientPool, config: NamespaceConfig, owner: str):
        self.pool   = pool
        self.config = config
        self.owner  = owner
        self.default_timeout: float | None = config.options.get("request_timeout")

    async def execute_service(
        self,
        service: str,
        *args: Any,
        timeout: float | None = None,
    ) -> Any:
        """Call ``service`` on a pooled client and wait for its completion.

        A trailing callable in ``args`` is treated as the caller's own
        completion handler: it is invoked with the outcome before the
        returned awaitable settles.

        ``timeout`` bounds the whole call: waiting for pool capacity, the
        remote method itself and its completion.

        Raises:
            ServiceNotImplemented: the client has no such method.
            RemoteCallFailed:      the backend reported a non-exception error.
            CallTimeout:           no completion within ``timeout`` seconds.
        """
        call_args = list(args)
        chained = call_args.pop() if call_args and callable(call_args[-1]) else None
        timeout = timeout if timeout is not None else self.default_timeout

        if timeout is None:
            return await self._call(service, call_args, chained)

        task = asyncio.ensure_future(self._call(service, call_args, chained))
        try:
            return await asyncio.wait_for(task, timeout)
        except asyncio.TimeoutError:
            # A remote TimeoutError finishes the task; our deadline cancels it.
            if not task.cancelled():
                raise
            raise CallTimeout(service, timeout) from None

    async def _call(self, service: str, call_args: list, chained: Completion | None) -> Any:
        async with self.pool.acquire(self.config) as client:
            method = getattr(client, service, None)
            if not callable(method):
                raise ServiceNotImplemented(self.owner, service)

            pending = PendingCall(asyncio.get_running_loop(), service, chained)
            logger.debug(f"{self.owner}: calling {service} with {len(call_args)} arg(s)")

            outcome = method(*call_args, pending.complete)
            if inspect.isawaitable(outcome):
                await outcome
            return await pending.future
