"""
rpc-bridge models.

A Model is the hydrated domain object for one record. Subclasses declare
their fields with pydantic and their service metadata with class variables:

    class User(Model, WireInsertable):
        service_namespace       = "account"
        primary_key_alias       = "user_id"
        default_service_actions = DEFAULT_ACTIONS
        service_actions         = frozenset({"get_by_email"})

        user_id: int | None = None
        email:   str

        def to_wire_insert(self) -> dict:
            return self.model_dump(exclude={"user_id"})

The ServiceRegistry never looks at the class directly. It reads a
ModelDescriptor, the immutable snapshot of that metadata taken at startup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from rpc_bridge.core.errors import HydrationError
from rpc_bridge.core.vocabulary import service_prefix


# ─────────────────────────────────────────────────────────────
# Model
# ─────────────────────────────────────────────────────────────

class Model(BaseModel):
    """Base class for everything a Store hydrates.

    Raw rows may be mappings or attribute-bearing structs (generated RPC
    types). Unknown fields are kept so nothing the backend sends is lost.
    """

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        from_attributes=True,
    )

    service_namespace:       ClassVar[Optional[str]] = None
    service_prefix:          ClassVar[Optional[str]] = None
    primary_key_alias:       ClassVar[str] = "id"
    default_service_actions: ClassVar[frozenset[str]] = frozenset()
    service_actions:         ClassVar[frozenset[str]] = frozenset()

    @property
    def primary_key(self) -> Any:
        return getattr(self, self.primary_key_alias, None)

    @classmethod
    def hydrate(cls, raw: Any) -> "Model":
        """Build one instance from a raw response row.

        Raises HydrationError rather than returning a partial instance.
        """
        if isinstance(raw, cls):
            return raw
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise HydrationError(cls.__name__, raw, str(e)) from e


# ─────────────────────────────────────────────────────────────
# Descriptor
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ModelDescriptor:
    """Static service metadata for one model. Never mutated after loading.

    namespace     — backend namespace; None means the registry default
    prefix        — route prefix used to derive remote method names
    default_actions / extra_actions — the two action vocabularies
    """
    name:              str
    model_class:       type[Model]
    namespace:         Optional[str] = None
    primary_key_alias: str = "id"
    prefix:            str = ""
    default_actions:   frozenset[str] = field(default_factory=frozenset)
    extra_actions:     frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        # Accept any iterable for the vocabularies, store them frozen.
        object.__setattr__(self, "default_actions", frozenset(self.default_actions))
        object.__setattr__(self, "extra_actions", frozenset(self.extra_actions))
        if not self.prefix:
            object.__setattr__(self, "prefix", service_prefix(self.name))
        if self.namespace == "default":
            object.__setattr__(self, "namespace", None)

    @classmethod
    def for_model(cls, model_class: type[Model], name: str | None = None) -> "ModelDescriptor":
        """Snapshot the class-level service metadata of a Model subclass."""
        return cls(
            name=name or model_class.__name__,
            model_class=model_class,
            namespace=model_class.service_namespace,
            primary_key_alias=model_class.primary_key_alias,
            prefix=model_class.service_prefix or "",
            default_actions=model_class.default_service_actions,
            extra_actions=model_class.service_actions,
        )

    @property
    def actions(self) -> frozenset[str]:
        return self.default_actions | self.extra_actions

    @property
    def has_actions(self) -> bool:
        return bool(self.default_actions or self.extra_actions)
