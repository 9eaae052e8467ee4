"""
rpc-bridge: model-oriented access to RPC-backed persistence services.

    from rpc_bridge import (
        BridgeConfig, ServiceRegistry, Model, DEFAULT_ACTIONS,
    )

    class User(Model):
        default_service_actions = DEFAULT_ACTIONS
        user_id: int | None = None
        name: str = ""

    config   = BridgeConfig.from_env(services={"account": AccountService})
    registry = ServiceRegistry.from_config(config, [User])
    user     = await registry.get_store("User").get_one_by_pk(42)
"""

from rpc_bridge.client import BoundedClientPool, CallExecutor, ClientPool
from rpc_bridge.client.sync_client import SyncRegistry, SyncStore
from rpc_bridge.config import BridgeConfig, NamespaceConfig, configure_logging
from rpc_bridge.core import (
    DEFAULT_ACTIONS,
    ActionNotImplemented,
    BridgeError,
    CallTimeout,
    HydrationError,
    Model,
    ModelDescriptor,
    NotRegistered,
    PagingQuery,
    PoolExhausted,
    RemoteCallFailed,
    SelectOptions,
    ServiceNotImplemented,
    UnknownNamespace,
    UpdateOptions,
    WireFormable,
    WireInsertable,
    WireObject,
    WireQueryable,
    route_name,
)
from rpc_bridge.store import ServiceRegistry, Store

__version__ = "0.1.0"

__all__ = [
    "ServiceRegistry", "Store", "SyncRegistry", "SyncStore",
    "BridgeConfig", "NamespaceConfig", "configure_logging",
    "ClientPool", "BoundedClientPool", "CallExecutor",
    "Model", "ModelDescriptor", "DEFAULT_ACTIONS", "route_name",
    "WireInsertable", "WireFormable", "WireQueryable", "WireObject",
    "UpdateOptions", "SelectOptions", "PagingQuery",
    "BridgeError", "ActionNotImplemented", "ServiceNotImplemented",
    "RemoteCallFailed", "NotRegistered", "UnknownNamespace",
    "HydrationError", "CallTimeout", "PoolExhausted",
]
