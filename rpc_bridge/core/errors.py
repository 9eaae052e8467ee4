"""
rpc-bridge error taxonomy.

Everything a Store or the ServiceRegistry raises derives from BridgeError,
with one exception: a remote error that is already an exception object is
re-raised exactly as the transport produced it.

    ActionNotImplemented   action is not in the model's vocabulary
                           (programmer error, raised before any I/O)
    ServiceNotImplemented  the route exists but the connected client has no
                           such method (configuration / version mismatch)
    RemoteCallFailed       the backend reported an error payload that is not
                           an exception; the payload is kept unmodified
    HydrationError         a raw row could not be turned into a model

"Not found" is not an error at this layer. Single-result calls resolve to
None and multi-result calls resolve to an empty list.
"""

from __future__ import annotations

from typing import Any


class BridgeError(Exception):
    """Base error for rpc-bridge operations."""


# ─────────────────────────────────────────────────────────────
# Routing
# ─────────────────────────────────────────────────────────────

class ActionNotImplemented(BridgeError):
    """The action is not part of the model's action vocabulary."""

    def __init__(self, model: str, action: str):
        self.model  = model
        self.action = action
        super().__init__(
            f"Action {action!r} has not been implemented. Model: {model}"
        )


class ServiceNotImplemented(BridgeError):
    """The connected client exposes no method for a routed action."""

    def __init__(self, model: str, service: str):
        self.model   = model
        self.service = service
        super().__init__(
            f"Service {service!r} has not been implemented. Model: {model}"
        )


class DuplicateRouteError(BridgeError):
    """Two actions of one model would call the same remote method."""

    def __init__(self, service: str, actions: tuple[str, str]):
        self.service = service
        self.actions = actions
        super().__init__(
            f"Actions {actions[0]!r} and {actions[1]!r} both route to {service!r}"
        )


# ─────────────────────────────────────────────────────────────
# Registry
# ─────────────────────────────────────────────────────────────

class NotRegistered(BridgeError, KeyError):
    """No Store is registered under the requested key."""

    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"No store registered for {key!r}.")

    def __str__(self) -> str:
        return self.args[0]


class UnknownNamespace(BridgeError, KeyError):
    """A model or connect() call names a namespace with no configuration."""

    def __init__(self, namespace: str | None):
        self.namespace = namespace
        super().__init__(f"No configuration for namespace {namespace!r}.")

    def __str__(self) -> str:
        return self.args[0]


# ─────────────────────────────────────────────────────────────
# Calls
# ─────────────────────────────────────────────────────────────

class RemoteCallFailed(BridgeError):
    """The backend returned an error payload.

    The payload is passed through untouched on ``error`` so the calling
    business layer can classify it.
    """

    def __init__(self, error: Any, service: str | None = None):
        self.error   = error
        self.service = service
        super().__init__(f"Remote call {service or '?'} failed: {error!r}")


class CallTimeout(BridgeError, TimeoutError):
    """No completion arrived within the caller's timeout."""

    def __init__(self, service: str, timeout: float):
        self.service = service
        self.timeout = timeout
        super().__init__(f"No response from {service!r} after {timeout}s")


class PoolExhausted(BridgeError):
    """A non-blocking pool is at capacity for the namespace."""

    def __init__(self, namespace: str, max_size: int):
        self.namespace = namespace
        self.max_size  = max_size
        super().__init__(
            f"Connection pool for {namespace!r} is exhausted ({max_size} in use)"
        )


# ─────────────────────────────────────────────────────────────
# Hydration
# ─────────────────────────────────────────────────────────────

class HydrationError(BridgeError):
    """A raw response row could not be converted into a model instance."""

    def __init__(self, model: str, raw: Any, reason: str = ""):
        self.model  = model
        self.raw    = raw
        self.reason = reason
        super().__init__(
            f"Cannot hydrate {model} from {raw!r:.120}"
            + (f": {reason}" if reason else "")
        )
