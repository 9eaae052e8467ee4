"""
Tests for the rpc-bridge client layer: the bounded pool, the call executor
(callback → awaitable), concurrency limits and the sync facade.

Run with: pytest tests/test_client.py -v
"""

import asyncio

import pytest

from rpc_bridge import (
    BoundedClientPool, BridgeError, CallExecutor, CallTimeout, NamespaceConfig,
    PoolExhausted, RemoteCallFailed, SyncRegistry,
)
from rpc_bridge.client import PendingCall

from fakes import NOT_FOUND, FakeBackend, User, make_registry


class Handle:
    """Minimal service handle; records whether it was closed."""

    def __init__(self, **connection):
        self.connection = connection
        self.closed = False

    def close(self):
        self.closed = True

    def ping_ping(self, callback):
        callback(None, "pong")

    async def ping_async(self, callback):
        await asyncio.sleep(0)
        callback(None, "async-pong")

    def ping_fail(self, callback):
        callback(ValueError("boom"), None)

    def ping_error_code(self, callback):
        callback(NOT_FOUND, None)

    def ping_silent(self, callback):
        pass

    async def ping_hang(self, callback):
        await asyncio.sleep(10)

    def ping_twice(self, callback):
        callback(None, 1)
        callback(None, 2)


def config(namespace="ns", **options):
    return NamespaceConfig(namespace=namespace, service=Handle, options=options)


def seeded_backend(count=3, **kwargs):
    backend = FakeBackend(**kwargs)
    for i in range(count):
        backend.add(name=f"user-{i}", email=f"u{i}@example.com")
    return backend


# ─────────────────────────────────────────────────────────────
# Bounded pool
# ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestBoundedClientPool:
    async def test_idle_client_reused(self):
        pool, cfg = BoundedClientPool(), config()
        async with pool.acquire(cfg) as first:
            assert pool.in_use("ns") == 1
        async with pool.acquire(cfg) as second:
            pass
        assert first is second
        assert pool.created("ns") == 1
        assert pool.in_use("ns") == 0

    async def test_size_from_namespace_options(self):
        pool, cfg = BoundedClientPool(max_size=5, block=False), config(max_size=1)
        async with pool.acquire(cfg):
            with pytest.raises(PoolExhausted) as exc:
                async with pool.acquire(cfg):
                    pass
        assert exc.value.max_size == 1

    async def test_acquire_timeout(self):
        pool, cfg = BoundedClientPool(max_size=1, acquire_timeout=0.01), config()
        async with pool.acquire(cfg):
            with pytest.raises(PoolExhausted):
                async with pool.acquire(cfg):
                    pass
        # capacity returns once the holder releases
        async with pool.acquire(cfg):
            assert pool.in_use("ns") == 1

    async def test_blocking_waits_for_release(self):
        pool, cfg = BoundedClientPool(max_size=1), config()
        order = []

        async def hold(tag):
            async with pool.acquire(cfg):
                order.append(f"{tag}-in")
                await asyncio.sleep(0.01)
                order.append(f"{tag}-out")

        await asyncio.gather(hold("a"), hold("b"))
        assert order == ["a-in", "a-out", "b-in", "b-out"]
        assert pool.peak("ns") == 1

    async def test_namespaces_independent(self):
        pool = BoundedClientPool(max_size=1, block=False)
        async with pool.acquire(config("one")):
            async with pool.acquire(config("two")):
                assert pool.in_use("one") == pool.in_use("two") == 1

    async def test_async_factory(self):
        async def factory(cfg):
            return Handle(tag=cfg.namespace)

        pool = BoundedClientPool(factory)
        async with pool.acquire(config()) as client:
            assert client.connection == {"tag": "ns"}

    async def test_missing_service_handle(self):
        pool, cfg = BoundedClientPool(max_size=1, block=False), NamespaceConfig(namespace="bare")
        with pytest.raises(BridgeError):
            async with pool.acquire(cfg):
                pass
        # the failed create gave its slot back
        with pytest.raises(BridgeError, match="No service handle"):
            async with pool.acquire(cfg):
                pass

    async def test_client_discarded_after_cancellation(self):
        pool, cfg = BoundedClientPool(), config()

        async def hold():
            async with pool.acquire(cfg):
                await asyncio.sleep(10)

        task = asyncio.create_task(hold())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert pool.in_use("ns") == 0
        async with pool.acquire(cfg):
            pass
        assert pool.created("ns") == 2

    async def test_close_idle(self):
        pool, cfg = BoundedClientPool(), config()
        async with pool.acquire(cfg) as idle:
            pass
        await pool.close()
        assert idle.closed

    async def test_close_busy_on_release(self):
        pool, cfg = BoundedClientPool(), config()
        async with pool.acquire(cfg) as busy:
            await pool.close()
            assert not busy.closed
        assert busy.closed

    async def test_close_tolerates_failing_client(self, caplog):
        class Broken(Handle):
            def close(self):
                raise OSError("already gone")

        pool = BoundedClientPool(lambda cfg: Broken())
        async with pool.acquire(config()):
            pass
        await pool.close()
        assert "Error closing client" in caplog.text


# ─────────────────────────────────────────────────────────────
# Pending calls
# ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestPendingCall:
    async def test_first_completion_wins(self):
        pending = PendingCall(asyncio.get_running_loop(), "svc")
        pending.complete(None, 1)
        pending.complete(None, 2)
        assert await pending.future == 1

    async def test_error_payload_wrapped(self):
        pending = PendingCall(asyncio.get_running_loop(), "svc")
        pending.complete({"code": 500})
        with pytest.raises(RemoteCallFailed) as exc:
            await pending.future
        assert exc.value.error == {"code": 500}
        assert exc.value.service == "svc"

    async def test_exception_passed_through(self):
        pending = PendingCall(asyncio.get_running_loop(), "svc")
        error = KeyError("missing")
        pending.complete(error)
        with pytest.raises(KeyError) as exc:
            await pending.future
        assert exc.value is error

    async def test_completion_after_cancel_ignored(self):
        pending = PendingCall(asyncio.get_running_loop(), "svc")
        pending.future.cancel()
        pending.complete(None, "late")
        assert pending.future.cancelled()

    async def test_completion_from_other_thread(self):
        pending = PendingCall(asyncio.get_running_loop(), "svc")
        await asyncio.to_thread(pending.complete, None, "threaded")
        assert await pending.future == "threaded"

    async def test_chained_handler_sees_outcome(self):
        seen = []
        pending = PendingCall(asyncio.get_running_loop(), "svc", lambda e, r: seen.append((e, r)))
        pending.complete(None, 7)
        assert await pending.future == 7
        assert seen == [(None, 7)]

    async def test_chained_handler_failure_fails_call(self):
        def handler(error, result):
            raise RuntimeError("handler broke")

        pending = PendingCall(asyncio.get_running_loop(), "svc", handler)
        pending.complete(None, 7)
        with pytest.raises(RuntimeError, match="handler broke"):
            await pending.future


# ─────────────────────────────────────────────────────────────
# Executor
# ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestCallExecutor:
    def setup_method(self):
        self.pool = BoundedClientPool()

    def executor(self, **options):
        return CallExecutor(self.pool, config(**options), "Ping")

    async def test_callback_to_result(self):
        assert await self.executor().execute_service("ping_ping") == "pong"

    async def test_async_remote_method(self):
        assert await self.executor().execute_service("ping_async") == "async-pong"

    async def test_remote_exception_unchanged(self):
        with pytest.raises(ValueError, match="boom"):
            await self.executor().execute_service("ping_fail")

    async def test_remote_error_payload(self):
        with pytest.raises(RemoteCallFailed) as exc:
            await self.executor().execute_service("ping_error_code")
        assert exc.value.error is NOT_FOUND

    async def test_duplicate_completion_ignored(self):
        assert await self.executor().execute_service("ping_twice") == 1

    async def test_timeout(self):
        with pytest.raises(CallTimeout) as exc:
            await self.executor().execute_service("ping_silent", timeout=0.01)
        assert exc.value.service == "ping_silent"
        assert isinstance(exc.value, TimeoutError)

    async def test_default_timeout_from_options(self):
        with pytest.raises(CallTimeout) as exc:
            await self.executor(request_timeout=0.01).execute_service("ping_silent")
        assert exc.value.timeout == 0.01

    async def test_timed_out_client_not_reused(self):
        executor = self.executor()
        with pytest.raises(CallTimeout):
            await executor.execute_service("ping_silent", timeout=0.01)
        await executor.execute_service("ping_ping")
        assert self.pool.created("ns") == 2

    async def test_timeout_covers_pool_wait(self):
        self.pool = BoundedClientPool(max_size=1)
        executor = self.executor()
        holder = asyncio.create_task(executor.execute_service("ping_silent"))
        await asyncio.sleep(0)
        assert self.pool.in_use("ns") == 1

        with pytest.raises(CallTimeout):
            await asyncio.wait_for(executor.execute_service("ping_silent", timeout=0.05), 1.0)

        holder.cancel()
        with pytest.raises(asyncio.CancelledError):
            await holder
        assert self.pool.in_use("ns") == 0

    async def test_timeout_covers_async_remote_method(self):
        executor = self.executor()
        with pytest.raises(CallTimeout):
            await asyncio.wait_for(executor.execute_service("ping_hang", timeout=0.05), 1.0)
        assert self.pool.in_use("ns") == 0
        # the hung client is not handed out again
        assert await executor.execute_service("ping_ping") == "pong"
        assert self.pool.created("ns") == 2


# ─────────────────────────────────────────────────────────────
# Store calls under load
# ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestConcurrency:
    async def test_hundred_calls_ten_connections(self):
        backend = seeded_backend(100, delay=0.01)
        registry = make_registry(backend, max_size=10)
        users = registry.get_store("User")

        results = await asyncio.gather(*(users.get_one_by_pk(pk) for pk in range(1, 101)))

        assert [u.user_id for u in results] == list(range(1, 101))
        assert all(u.name == f"user-{u.user_id - 1}" for u in results)
        assert registry.pool.peak("account") <= 10
        assert registry.pool.created("account") <= 10
        assert registry.pool.in_use("account") == 0

    async def test_threaded_completions(self):
        backend = seeded_backend(5, threaded=True)
        users = make_registry(backend).get_store("User")
        results = await asyncio.gather(*(users.get_one_by_pk(pk) for pk in range(1, 6)))
        assert [u.user_id for u in results] == [1, 2, 3, 4, 5]

    async def test_one_failure_does_not_affect_others(self):
        users = make_registry(seeded_backend(2)).get_store("User")
        results = await asyncio.gather(
            users.get_one_by_pk(1), users.get_one_by_pk(99), users.get_one_by_pk(2),
            return_exceptions=True,
        )
        assert results[0].user_id == 1
        assert isinstance(results[1], RemoteCallFailed)
        assert results[2].user_id == 2

    async def test_store_call_timeout(self):
        registry = make_registry(seeded_backend(1, delay=0.2))
        users = registry.get_store("User")
        with pytest.raises(CallTimeout):
            await users.get_one_by_pk(1, timeout=0.01)
        assert registry.pool.in_use("account") == 0

    async def test_chained_user_callback(self):
        registry = make_registry(seeded_backend(1))
        users = registry.get_store("User")
        seen = []
        raw = await users.execute("get_one_by_pk", 1, lambda e, r: seen.append(r["name"]))
        assert raw["name"] == "user-0"
        assert seen == ["user-0"]


# ─────────────────────────────────────────────────────────────
# Sync facade
# ─────────────────────────────────────────────────────────────

class TestSyncRegistry:
    def test_blocking_calls(self):
        backend = seeded_backend(2)
        with SyncRegistry(make_registry(backend)) as sync:
            assert sync.is_running
            users = sync.get_store("User")
            user = users.get_one_by_pk(2)
            assert isinstance(user, User) and user.name == "user-1"
            assert users.get_by_email("u0@example.com")["user_id"] == 1
            assert users.update_one({"status": 0}, {"user_id": 1}) == 1
            assert users.routes["get_all"] == "user_get_all"
        assert not sync.is_running

    def test_errors_propagate(self):
        with SyncRegistry(make_registry(seeded_backend(1))) as sync:
            with pytest.raises(RemoteCallFailed):
                sync.get_store("User").get_one_by_pk(99)

    def test_requires_start(self):
        sync = SyncRegistry(make_registry(FakeBackend()))
        with pytest.raises(RuntimeError, match="Not started"):
            sync.get_store("User").get_all()

    def test_stop_closes_pool(self):
        registry = make_registry(seeded_backend(1))
        sync = SyncRegistry(registry)
        sync.start()
        sync.get_store("User").get_all()
        sync.stop()
        assert registry.pool._closed
