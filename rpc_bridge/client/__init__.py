"""
rpc-bridge client side: pooling and call execution.

    ClientPool / BoundedClientPool  — where Stores get connected clients
    CallExecutor                    — callback-style call → awaitable
    SyncRegistry / SyncStore        — blocking facade over a registry
"""

from rpc_bridge.client.executor import CallExecutor, PendingCall
from rpc_bridge.client.pool import BoundedClientPool, ClientPool, default_factory

__all__ = [
    "CallExecutor", "PendingCall",
    "ClientPool", "BoundedClientPool", "default_factory",
]
