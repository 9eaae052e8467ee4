"""
rpc-bridge action vocabulary.

An action is the abstract name of a data-access operation ("get_one_by_pk").
A route is the concrete remote method a backend exposes for one model's
action ("user_get_one_by_pk"). Routes are derived, never configured:

    route_name(prefix, action)  ──→  f"{prefix}_{action}"

Every model carries a prefix (by default the snake_case form of its class
name), so two actions of one model can never share a remote method.
"""

from __future__ import annotations

import re
from typing import Iterable

from rpc_bridge.core.errors import DuplicateRouteError


# The standard data-access vocabulary. A model opts in by listing these
# (usually all of them) as its default service actions.
DEFAULT_ACTIONS: frozenset[str] = frozenset({
    # Writes
    "insert_one",
    "insert_many",
    "update_one",
    "upsert_one",
    "get_or_create",
    "get_one_and_update",
    # Single reads
    "get_one",
    "get_one_by_pk",
    "get_one_relation_by_pk",
    # Multi reads
    "get_many",
    "get_many_relation",
    "get_all",
    "get_all_status",
    "get_all_active",
    "get_all_inactive",
    "get_all_disabled",
    "get_all_deleted",
    "get_all_order",
    # Queries
    "get_pagination",
    "filter",
    "filter_pagination",
    # Deletes
    "delete_one",
    "delete_many",
    "delete_by_pk",
})

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def service_prefix(name: str) -> str:
    """Default route prefix for a model class name.

    >>> service_prefix("UserProfile")
    'user_profile'
    >>> service_prefix("HTTPLog")
    'http_log'
    """
    if not name:
        raise ValueError("Model name must not be empty")
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def route_name(prefix: str, action: str) -> str:
    """Remote method name for ``action`` on a model with route ``prefix``."""
    if not prefix:
        raise ValueError("Route prefix must not be empty")
    if not action or not action.isidentifier():
        raise ValueError(f"Invalid action name: {action!r}")
    return f"{prefix}_{action}"


def build_route_table(prefix: str, actions: Iterable[str]) -> dict[str, str]:
    """Map every action to its remote method name.

    Raises DuplicateRouteError if two actions would land on one method.
    """
    table: dict[str, str] = {}
    owners: dict[str, str] = {}
    for action in sorted(set(actions)):
        service = route_name(prefix, action)
        if service in owners:
            raise DuplicateRouteError(service, (owners[service], action))
        owners[service] = action
        table[action] = service
    return table
