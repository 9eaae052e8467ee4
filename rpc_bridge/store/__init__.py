"""
rpc-bridge data access.

    from rpc_bridge.store import ServiceRegistry, Store

The registry is created once at startup; business code asks it for the
Store of a model and never builds Stores itself.
"""

from rpc_bridge.store.registry import ServiceRegistry
from rpc_bridge.store.store import Store

__all__ = ["ServiceRegistry", "Store"]
