"""
rpc-bridge service registry.

The registry is built once at process start and passed to whatever needs
data access. It is not a module-level singleton.

    config   = BridgeConfig.from_env(services={"account": AccountService,
                                               "billing": BillingService})
    registry = ServiceRegistry.from_config(config, [User, Invoice])

    users    = registry.get_store("User")                # default namespace
    invoices = registry.get_store(("billing", "Invoice"))

    async with registry.connect("billing") as client:   # ad-hoc call
        client.billing_health(callback)

Stores are indexed by (namespace, model name). Every Store and its route
table is built eagerly in register_all(); nothing is built per request.
Models with an empty action vocabulary are skipped.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncContextManager, Iterable, Mapping, Union

from rpc_bridge.client.pool import BoundedClientPool, ClientPool
from rpc_bridge.config import BridgeConfig, NamespaceConfig
from rpc_bridge.core.errors import NotRegistered, UnknownNamespace
from rpc_bridge.core.model import Model, ModelDescriptor
from rpc_bridge.store.store import Store

logger = logging.getLogger(__name__)

StoreKey = Union[str, tuple[str, str], list[str]]


class ServiceRegistry:
    """Owns the namespace configs, the shared pool and every Store."""

    def __init__(
        self,
        pool: ClientPool | None = None,
        default_namespace: str | None = None,
    ):
        self.pool = pool or BoundedClientPool()
        self._default_namespace = default_namespace

        # namespace → NamespaceConfig
        self._configs: dict[str, NamespaceConfig] = {}
        # namespace → model name → Store
        self._stores: dict[str, dict[str, Store]] = {}

    @classmethod
    def from_config(
        cls,
        config: BridgeConfig,
        models: Iterable[ModelDescriptor | type[Model]],
        pool: ClientPool | None = None,
    ) -> "ServiceRegistry":
        registry = cls(pool=pool, default_namespace=config.default)
        registry.register_all(models, config)
        return registry

    # ── Registration ──────────────────────────────────────────

    def register_all(
        self,
        models: Iterable[ModelDescriptor | type[Model]],
        namespace_configs: BridgeConfig | Mapping[str, NamespaceConfig],
    ) -> None:
        """Build one Store per model that declares any actions.

        Raises UnknownNamespace if a model names a namespace that has no
        configuration.
        """
        if isinstance(namespace_configs, BridgeConfig):
            if self._default_namespace is None:
                self._default_namespace = namespace_configs.default
            namespace_configs = namespace_configs.servers

        for name, cfg in namespace_configs.items():
            self._configs[name] = cfg
            self._stores.setdefault(name, {})

        if self._default_namespace is None:
            self._default_namespace = next(iter(self._configs), None)

        for item in models:
            descriptor = item if isinstance(item, ModelDescriptor) else ModelDescriptor.for_model(item)
            if not descriptor.has_actions:
                logger.debug(f"Skipping {descriptor.name}: no service actions")
                continue
            self._register(descriptor)

        logger.info(
            f"Registered {sum(len(s) for s in self._stores.values())} store(s) "
            f"across {len(self._configs)} namespace(s); default {self._default_namespace!r}"
        )

    def _register(self, descriptor: ModelDescriptor) -> Store:
        namespace = descriptor.namespace or self._default_namespace
        config = self._configs.get(namespace) if namespace else None
        if config is None:
            raise UnknownNamespace(namespace)

        store = Store(descriptor, config, self.pool)
        if descriptor.name in self._stores[namespace]:
            logger.warning(f"Replacing store {namespace}/{descriptor.name}")
        self._stores[namespace][descriptor.name] = store
        logger.debug(f"Store {namespace}/{descriptor.name}: {len(store.routes)} action(s)")
        return store

    # ── Lookup ────────────────────────────────────────────────

    @property
    def default_namespace(self) -> str | None:
        return self._default_namespace

    @property
    def namespaces(self) -> list[str]:
        return list(self._configs)

    def namespace_config(self, namespace: str | None = None) -> NamespaceConfig:
        namespace = namespace or self._default_namespace
        config = self._configs.get(namespace) if namespace else None
        if config is None:
            raise UnknownNamespace(namespace)
        return config

    def get_store(self, key: StoreKey) -> Store:
        """Look up a Store by model name, or by (namespace, model name).

        A one-element sequence is treated as a bare model name.
        """
        if isinstance(key, str):
            namespace, name = self._default_namespace, key
        elif not isinstance(key, (tuple, list)):
            raise NotRegistered(key)
        elif len(key) == 1:
            namespace, name = self._default_namespace, key[0]
        elif len(key) == 2:
            namespace, name = key[0], key[1]
        else:
            raise NotRegistered(key)

        store = self._stores.get(namespace, {}).get(name)
        if store is None:
            raise NotRegistered(key if isinstance(key, str) else tuple(key))
        return store

    def __contains__(self, key: StoreKey) -> bool:
        try:
            self.get_store(key)
        except NotRegistered:
            return False
        return True

    def stores(self, namespace: str | None = None) -> list[Store]:
        """All Stores, or only those of one namespace."""
        if namespace is not None:
            return list(self._stores.get(namespace, {}).values())
        return [s for by_name in self._stores.values() for s in by_name.values()]

    def create_model(self, key: StoreKey, data: Any = None) -> Model:
        return self.get_store(key).create_model(data)

    # ── Raw access ────────────────────────────────────────────

    def connect(self, namespace: str | None = None) -> AsyncContextManager[Any]:
        """Pooled client for ad-hoc calls outside the modeled actions."""
        return self.pool.acquire(self.namespace_config(namespace))

    async def close(self) -> None:
        await self.pool.close()

    def summary(self) -> dict:
        return {
            "default_namespace": self._default_namespace,
            "namespaces": {
                ns: sorted(by_name) for ns, by_name in self._stores.items()
            },
        }
