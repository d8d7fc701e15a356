"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults live here, composectl.toml only holds
overrides. With no file at all the tool targets the local docker engine.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

LOCAL_CONTEXT_TYPE = "local"


class ContextConfig(BaseModel):
    """[context] section — the deployment context commands operate against."""

    model_config = {"frozen": True}

    name: str = "default"
    type: str = LOCAL_CONTEXT_TYPE
    options: dict[str, Any] = Field(default_factory=dict)


class DockerConfig(BaseModel):
    """[docker] section — settings of the built-in local backend."""

    model_config = {"frozen": True}

    binary: str = "docker"
    host: str | None = None
    log_poll_interval: float = 0.2
