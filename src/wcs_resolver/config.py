"""Runtime configuration for the resolvers.

Settings are read from the environment so that the library and the CLI share
one source of truth:

- ``WCS_RESOLVER_LOG_LEVEL``: level passed to ``logging.basicConfig`` by the CLI.
"""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, ConfigDict, field_validator

ENV_PREFIX = "WCS_RESOLVER_"


class ResolverConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value!r}")
        return level


def load_config(**overrides: object) -> ResolverConfig:
    """Build a config from ``WCS_RESOLVER_*`` variables, then apply overrides.

    Explicit keyword overrides win over the environment; unset values fall
    back to the model defaults.
    """
    values: dict[str, object] = {}
    for field_name in ResolverConfig.model_fields:
        raw = os.getenv(f"{ENV_PREFIX}{field_name.upper()}")
        if raw is not None and raw.strip():
            values[field_name] = raw.strip()
    values.update({k: v for k, v in overrides.items() if v is not None})
    return ResolverConfig.model_validate(values)

