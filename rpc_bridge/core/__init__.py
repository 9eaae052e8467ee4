"""
rpc-bridge core vocabulary.

    from rpc_bridge.core import (
        # Models
        Model, ModelDescriptor,
        # Actions
        DEFAULT_ACTIONS, route_name, build_route_table, service_prefix,
        # Wire traits
        WireInsertable, WireFormable, WireQueryable, WireObject,
        # Option carriers
        UpdateOptions, SelectOptions, PagingQuery,
        # Errors
        BridgeError, ActionNotImplemented, ServiceNotImplemented, ...
    )
"""

from rpc_bridge.core.errors import (
    ActionNotImplemented,
    BridgeError,
    CallTimeout,
    DuplicateRouteError,
    HydrationError,
    NotRegistered,
    PoolExhausted,
    RemoteCallFailed,
    ServiceNotImplemented,
    UnknownNamespace,
)
from rpc_bridge.core.model import Model, ModelDescriptor
from rpc_bridge.core.options import PagingQuery, SelectOptions, UpdateOptions
from rpc_bridge.core.traits import (
    WireFormable,
    WireInsertable,
    WireObject,
    WireQueryable,
    as_wire_form,
    as_wire_insert,
    as_wire_object,
    as_wire_query,
)
from rpc_bridge.core.vocabulary import (
    DEFAULT_ACTIONS,
    build_route_table,
    route_name,
    service_prefix,
)

__all__ = [
    # Models
    "Model", "ModelDescriptor",
    # Actions
    "DEFAULT_ACTIONS", "route_name", "build_route_table", "service_prefix",
    # Traits
    "WireInsertable", "WireFormable", "WireQueryable", "WireObject",
    "as_wire_insert", "as_wire_form", "as_wire_query", "as_wire_object",
    # Options
    "UpdateOptions", "SelectOptions", "PagingQuery",
    # Errors
    "BridgeError", "ActionNotImplemented", "ServiceNotImplemented",
    "DuplicateRouteError", "NotRegistered", "UnknownNamespace",
    "RemoteCallFailed", "CallTimeout", "PoolExhausted", "HydrationError",
]
