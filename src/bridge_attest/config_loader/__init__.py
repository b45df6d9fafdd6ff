"""Public entry points for the :mod:`bridge_attest` configuration loader."""

from __future__ import annotations

from bridge_attest.config_loader.models import (
    DEFAULT_KEYS_DIR,
    DEFAULT_PARTY_NAMES,
    BridgeConfig,
)
from bridge_attest.config_loader.parsing import (
    apply_environment_overrides,
    apply_structured_overrides,
    default_party_names,
)
from bridge_attest.config_loader.sources import load_structured_config
from bridge_attest.settings import BridgeAttestSettings, get_settings

__all__ = [
    "BridgeConfig",
    "DEFAULT_KEYS_DIR",
    "DEFAULT_PARTY_NAMES",
    "default_party_names",
    "load_config",
]


def load_config(
    path: str | None = None, *, settings: BridgeAttestSettings | None = None
) -> BridgeConfig:
    """Load configuration from environment and optional file sources.

    Environment values are applied first and a structured configuration
    file, when one is found, is layered on top.

    Args:
        path: Optional explicit path to a configuration file. When omitted the
            loader inspects ``BRIDGE_CONFIG_PATH`` and default locations.
        settings: Optional pre-instantiated environment settings. When omitted
            :func:`bridge_attest.settings.get_settings` is used.

    Returns:
        Fully populated :class:`BridgeConfig` instance.
    """

    env_settings = settings or get_settings()
    base = apply_environment_overrides(BridgeConfig(), env_settings)
    structured = load_structured_config(path, env_settings)
    if structured is None:
        return base
    return apply_structured_overrides(base, structured)
