"""
rpc-bridge option carriers.

Remote methods that take options receive a typed carrier instead of the
caller's raw mapping, so the remote contract does not depend on which
optional keys a caller happened to fill in.

Keys may be given in snake_case or camelCase.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from rpc_bridge.core.traits import WireObject


class _Carrier(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class UpdateOptions(_Carrier):
    """Options for update_one / get_one_and_update."""
    upsert:  Optional[bool] = None
    multi:   Optional[bool] = None
    returning: Optional[list[str]] = None

    @classmethod
    def from_options(cls, options: Any = None) -> "UpdateOptions":
        """Shallow-copy the caller's options into a fresh carrier."""
        if options is None:
            return cls()
        if isinstance(options, BaseModel):
            options = options.model_dump(exclude_unset=True)
        return cls.model_validate(dict(options))


class SelectOptions(_Carrier):
    """Relation selection for get_one_relation_by_pk / get_many_relation."""
    includes: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)
    columns:  list[str] = Field(default_factory=list)
    order:    Optional[str] = None

    @classmethod
    def from_options(cls, options: Any = None) -> "SelectOptions":
        """Build a carrier; None gives an empty selection, a list means includes."""
        if options is None:
            return cls()
        if isinstance(options, SelectOptions):
            return options.model_copy()
        if isinstance(options, (list, tuple)):
            return cls(includes=list(options))
        return cls.model_validate(dict(options))


class PagingQuery(_Carrier, WireObject):
    """Pagination parameters for get_pagination / filter / filter_pagination."""
    page:      int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1)
    order:     Optional[str] = None
    filters:   dict[str, Any] = Field(default_factory=dict)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def to_wire_object(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
