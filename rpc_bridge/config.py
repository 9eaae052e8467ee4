"""
rpc-bridge configuration.

One NamespaceConfig per backend. The whole set is a BridgeConfig:

    {
        "default": "account",
        "servers": {
            "account": {"connection": {"host": "10.0.0.5", "port": 9090},
                        "options":    {"max_size": 10}},
            "billing": {"connection": {"host": "10.0.0.6", "port": 9090}}
        }
    }

The generated client type for each backend ("service handle") cannot live
in a JSON file; it is attached in code through the ``services`` argument.

Configuration via environment variables:

    RPC_BRIDGE_CONFIG             Path to a JSON file shaped as above
    RPC_BRIDGE_DEFAULT_NAMESPACE  Overrides "default" from the file
    RPC_BRIDGE_LOG_LEVEL          Logging level (default: INFO)
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class NamespaceConfig(BaseModel):
    """Connection settings for one backend namespace. Read-only once loaded."""

    model_config = ConfigDict(frozen=True)

    namespace:  str
    connection: dict[str, Any] = Field(default_factory=dict)
    options:    dict[str, Any] = Field(default_factory=dict)
    service:    Any = None


class BridgeConfig(BaseModel):
    """All namespaces plus the default one."""

    default: Optional[str] = None
    servers: dict[str, NamespaceConfig] = Field(default_factory=dict)

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        services: Mapping[str, Any] | None = None,
    ) -> "BridgeConfig":
        """Build from a plain mapping, attaching service handles by namespace."""
        services = services or {}
        servers = {}
        for name, server in (data.get("servers") or {}).items():
            server = dict(server or {})
            server["namespace"] = name
            if name in services:
                server["service"] = services[name]
            servers[name] = NamespaceConfig.model_validate(server)
        return cls(default=data.get("default"), servers=servers)

    @classmethod
    def from_env(cls, services: Mapping[str, Any] | None = None) -> "BridgeConfig":
        """Load RPC_BRIDGE_CONFIG, then apply RPC_BRIDGE_DEFAULT_NAMESPACE."""
        data: dict[str, Any] = {}
        path = os.environ.get("RPC_BRIDGE_CONFIG")
        if path:
            data = json.loads(Path(path).read_text())
            logger.debug(f"Loaded bridge config from {path}")
        default = os.environ.get("RPC_BRIDGE_DEFAULT_NAMESPACE")
        if default:
            data["default"] = default
        return cls.from_mapping(data, services)

    @property
    def default_namespace(self) -> str | None:
        """The configured default, else the first namespace listed."""
        if self.default:
            return self.default
        return next(iter(self.servers), None)


def configure_logging(level: str | None = None) -> None:
    """Set up root logging the way the bridge tooling expects."""
    level = (level or os.environ.get("RPC_BRIDGE_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )
