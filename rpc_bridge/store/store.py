"""
rpc-bridge Store.

One Store per model. It is the only thing business code talks to:

    users = registry.get_store("User")

    user  = await users.get_one_by_pk(42)
    page  = await users.get_pagination(PagingQuery(page=2, page_size=50))
    n     = await users.update_one({"name": "Ana"}, {"user_id": 42})
    found = await users.get_by_email("ana@example.com")   # extra action

At construction the Store derives its route table, action → remote
method, from the model descriptor. The table never changes afterwards. All
calls then go through one path:

    typed method ─→ wire conversion ─→ execute(action) ─→ route lookup
        ─→ CallExecutor ─→ pooled client ─→ raw result ─→ hydration

Hydration rules:
    single result    raw row → Model, None stays None
    many results     raw rows → [Model, ...], None or empty → []
    pagination       only envelope[items_field] is hydrated, in place;
                     every other envelope field is left untouched
"""

from __future__ import annotations

import functools
import logging
from collections.abc import MutableMapping
from types import MappingProxyType
from typing import Any, AsyncContextManager, Iterable, Mapping, Optional

from rpc_bridge.client.executor import CallExecutor
from rpc_bridge.client.pool import ClientPool
from rpc_bridge.config import NamespaceConfig
from rpc_bridge.core.errors import ActionNotImplemented
from rpc_bridge.core.model import Model, ModelDescriptor
from rpc_bridge.core.options import SelectOptions, UpdateOptions
from rpc_bridge.core.traits import as_wire_form, as_wire_insert, as_wire_object, as_wire_query
from rpc_bridge.core.vocabulary import DEFAULT_ACTIONS, build_route_table

logger = logging.getLogger(__name__)


class Store:
    """Per-model client exposing the action vocabulary.

    Safe to share between any number of concurrent callers: the Store
    keeps no per-call state.
    """

    items_field = "items"

    def __init__(
        self,
        descriptor: ModelDescriptor,
        config: NamespaceConfig,
        pool: ClientPool,
    ):
        self.descriptor = descriptor
        self.config     = config
        self.pool       = pool
        self._routes: Mapping[str, str] = MappingProxyType(
            build_route_table(descriptor.prefix, descriptor.actions)
        )
        self._executor = CallExecutor(pool, config, descriptor.name)

        for action in sorted(self.shadowed_actions):
            logger.warning(
                f"{descriptor.name}: extra action {action!r} is shadowed by a Store "
                f"attribute; call it with execute({action!r}, ...)"
            )

    @property
    def shadowed_actions(self) -> frozenset[str]:
        """Extra actions that attribute access can never reach."""
        return frozenset(
            action for action in self.descriptor.extra_actions - DEFAULT_ACTIONS
            if action in self.__dict__ or hasattr(type(self), action)
        )

    # ── Identity ──────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def namespace(self) -> str:
        return self.config.namespace

    @property
    def model_class(self) -> type[Model]:
        return self.descriptor.model_class

    @property
    def primary_key_alias(self) -> str:
        return self.descriptor.primary_key_alias

    @property
    def routes(self) -> Mapping[str, str]:
        """Read-only action → remote method table."""
        return self._routes

    def __repr__(self) -> str:
        return f"Store(model={self.name!r}, namespace={self.namespace!r}, actions={len(self._routes)})"

    def __getattr__(self, name: str):
        # Extra actions have no typed method; dispatch them by name.
        routes = self.__dict__.get("_routes")
        if routes is not None and name in routes:
            return functools.partial(self.execute, name)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def create_model(self, data: Any = None) -> Model:
        """Construct an unattached model instance from caller data."""
        return self.model_class.hydrate(data if data is not None else {})

    def connect(self) -> AsyncContextManager[Any]:
        """Raw pooled client for calls outside the action vocabulary."""
        return self.pool.acquire(self.config)

    # ── Dispatch ──────────────────────────────────────────────

    def service_name(self, action: str) -> str:
        """Remote method for ``action``. Raises ActionNotImplemented."""
        service = self._routes.get(action)
        if service is None:
            raise ActionNotImplemented(self.name, action)
        return service

    async def execute(self, action: str, *args: Any, timeout: float | None = None) -> Any:
        """Run ``action`` and return the raw result, without hydration."""
        service = self.service_name(action)
        return await self.execute_service(service, *args, timeout=timeout)

    async def execute_service(self, service: str, *args: Any, timeout: float | None = None) -> Any:
        return await self._executor.execute_service(service, *args, timeout=timeout)

    # ── Hydration ─────────────────────────────────────────────

    def convert_model(self, raw: Any) -> Optional[Model]:
        if raw is None:
            return None
        return self.model_class.hydrate(raw)

    def convert_models(self, raws: Iterable[Any] | None) -> list[Model]:
        if not raws:
            return []
        return [self.model_class.hydrate(raw) for raw in raws]

    def convert_pagination(self, envelope: Any) -> Any:
        """Hydrate the items of a pagination envelope in place."""
        if envelope is None:
            return None
        field = self.items_field
        if isinstance(envelope, MutableMapping):
            envelope[field] = self.convert_models(envelope.get(field))
        else:
            setattr(envelope, field, self.convert_models(getattr(envelope, field, None)))
        return envelope

    async def common_get_one(self, action: str, *args: Any, timeout: float | None = None) -> Optional[Model]:
        raw = await self.execute(action, *args, timeout=timeout)
        return self.convert_model(raw)

    async def common_get_many(self, action: str, *args: Any, timeout: float | None = None) -> list[Model]:
        raws = await self.execute(action, *args, timeout=timeout)
        return self.convert_models(raws)

    async def common_get_one_options(
        self, action: str, options: Any, *args: Any, timeout: float | None = None,
    ) -> Optional[Model]:
        """Single read with a trailing SelectOptions carrier."""
        select = SelectOptions.from_options(options)
        return await self.common_get_one(action, *args, select, timeout=timeout)

    async def common_get_many_options(
        self, action: str, options: Any, *args: Any, timeout: float | None = None,
    ) -> list[Model]:
        select = SelectOptions.from_options(options)
        return await self.common_get_many(action, *args, select, timeout=timeout)

    async def common_get_pagination(self, action: str, *args: Any, timeout: float | None = None) -> Any:
        envelope = await self.execute(action, *args, timeout=timeout)
        return self.convert_pagination(envelope)

    # ── Writes ────────────────────────────────────────────────

    async def insert_one(self, model: Any, *, timeout: float | None = None) -> Optional[Model]:
        """Insert one record and return it as stored by the backend."""
        return await self.common_get_one("insert_one", as_wire_insert(model), timeout=timeout)

    async def insert_many(self, models: Iterable[Any], *, timeout: float | None = None) -> list[Model]:
        rows = [as_wire_insert(m) for m in models]
        return await self.common_get_many("insert_many", rows, timeout=timeout)

    async def update_one(
        self,
        form: Any,
        query: Any = None,
        options: Any = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Update records matching ``query`` with ``form``.

        The remote method receives only what the caller supplied:
            update_one(form)                 → (form)
            update_one(form, query)          → (form, query)
            update_one(form, query, options) → (form, query, UpdateOptions)
            update_one(form, None, options)  → (form, UpdateOptions)
        """
        args: list[Any] = [as_wire_form(form)]
        if query is not None:
            args.append(as_wire_query(query))
        if options is not None:
            args.append(UpdateOptions.from_options(options))
        return await self.execute("update_one", *args, timeout=timeout)

    async def upsert_one(self, model: Any, *, timeout: float | None = None) -> Any:
        return await self.execute("upsert_one", as_wire_insert(model), timeout=timeout)

    async def get_or_create(self, model: Any, *, timeout: float | None = None) -> Optional[Model]:
        return await self.common_get_one("get_or_create", as_wire_insert(model), timeout=timeout)

    async def get_one_and_update(
        self,
        form: Any,
        query: Any,
        options: Any = None,
        *,
        timeout: float | None = None,
    ) -> Optional[Model]:
        """Atomically update the first match and return it. Always sends options."""
        return await self.common_get_one(
            "get_one_and_update",
            as_wire_form(form),
            as_wire_query(query),
            UpdateOptions.from_options(options),
            timeout=timeout,
        )

    # ── Single reads ──────────────────────────────────────────

    async def get_one(self, query: Any, *, timeout: float | None = None) -> Optional[Model]:
        return await self.common_get_one("get_one", as_wire_query(query), timeout=timeout)

    async def get_one_by_pk(self, pk: Any, *, timeout: float | None = None) -> Optional[Model]:
        return await self.common_get_one("get_one_by_pk", pk, timeout=timeout)

    async def get_one_relation_by_pk(
        self, pk: Any, options: Any = None, *, timeout: float | None = None,
    ) -> Optional[Model]:
        return await self.common_get_one_options("get_one_relation_by_pk", options, pk, timeout=timeout)

    # ── Multi reads ───────────────────────────────────────────

    async def get_many(self, pks: Iterable[Any], *, timeout: float | None = None) -> list[Model]:
        return await self.common_get_many("get_many", list(pks), timeout=timeout)

    async def get_many_relation(
        self, pks: Iterable[Any], options: Any = None, *, timeout: float | None = None,
    ) -> list[Model]:
        return await self.common_get_many_options("get_many_relation", options, list(pks), timeout=timeout)

    async def get_all(self, *, timeout: float | None = None) -> list[Model]:
        return await self.common_get_many("get_all", timeout=timeout)

    async def get_all_status(self, status: Any, *, timeout: float | None = None) -> list[Model]:
        return await self.common_get_many("get_all_status", status, timeout=timeout)

    async def get_all_active(self, *, timeout: float | None = None) -> list[Model]:
        return await self.common_get_many("get_all_active", timeout=timeout)

    async def get_all_inactive(self, *, timeout: float | None = None) -> list[Model]:
        return await self.common_get_many("get_all_inactive", timeout=timeout)

    async def get_all_disabled(self, *, timeout: float | None = None) -> list[Model]:
        return await self.common_get_many("get_all_disabled", timeout=timeout)

    async def get_all_deleted(self, *, timeout: float | None = None) -> list[Model]:
        return await self.common_get_many("get_all_deleted", timeout=timeout)

    async def get_all_order(self, order: Any, *, timeout: float | None = None) -> list[Model]:
        return await self.common_get_many("get_all_order", order, timeout=timeout)

    # ── Queries ───────────────────────────────────────────────

    async def get_pagination(self, paging: Any, *, timeout: float | None = None) -> Any:
        return await self.common_get_pagination("get_pagination", as_wire_object(paging), timeout=timeout)

    async def filter(self, params: Any, paging: Any, *, timeout: float | None = None) -> list[Model]:
        return await self.common_get_many(
            "filter", as_wire_object(params), as_wire_object(paging), timeout=timeout,
        )

    async def filter_pagination(self, params: Any, paging: Any, *, timeout: float | None = None) -> Any:
        return await self.common_get_pagination(
            "filter_pagination", as_wire_object(params), as_wire_object(paging), timeout=timeout,
        )

    # ── Deletes ───────────────────────────────────────────────

    async def delete_one(self, query: Any, *, timeout: float | None = None) -> Any:
        return await self.execute("delete_one", as_wire_query(query), timeout=timeout)

    async def delete_many(self, query: Any, *, timeout: float | None = None) -> Any:
        return await self.execute("delete_many", as_wire_query(query), timeout=timeout)

    async def delete_by_pk(self, pk: Any, *, timeout: float | None = None) -> Any:
        return await self.execute("delete_by_pk", pk, timeout=timeout)
