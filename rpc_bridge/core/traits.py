"""
rpc-bridge wire-conversion traits.

A value handed to a Store may know how to turn itself into the backend's
request shape. That knowledge is an optional capability, declared by
inheriting one of the trait classes below:

    WireInsertable  — to_wire_insert()   record to create
    WireFormable    — to_wire_form()     partial record for an update
    WireQueryable   — to_wire_query()    match condition
    WireObject      — to_wire_object()   generic struct (paging, filters)

Values that carry no trait are forwarded unchanged. The as_wire_* helpers
are the only place the Store performs this conversion.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


# ─────────────────────────────────────────────────────────────
# Traits (mixin classes)
# ─────────────────────────────────────────────────────────────

class WireInsertable(ABC):
    """Trait: value can produce the wire form of an insert request."""

    @abstractmethod
    def to_wire_insert(self) -> Any:
        ...


class WireFormable(ABC):
    """Trait: value can produce the wire form of an update request."""

    @abstractmethod
    def to_wire_form(self) -> Any:
        ...


class WireQueryable(ABC):
    """Trait: value can produce the wire form of a query condition."""

    @abstractmethod
    def to_wire_query(self) -> Any:
        ...


class WireObject(ABC):
    """Trait: value can produce a generic wire struct."""

    @abstractmethod
    def to_wire_object(self) -> Any:
        ...


# ─────────────────────────────────────────────────────────────
# Conversion helpers
# ─────────────────────────────────────────────────────────────

def as_wire_insert(value: Any) -> Any:
    return value.to_wire_insert() if isinstance(value, WireInsertable) else value


def as_wire_form(value: Any) -> Any:
    return value.to_wire_form() if isinstance(value, WireFormable) else value


def as_wire_query(value: Any) -> Any:
    return value.to_wire_query() if isinstance(value, WireQueryable) else value


def as_wire_object(value: Any) -> Any:
    return value.to_wire_object() if isinstance(value, WireObject) else value
