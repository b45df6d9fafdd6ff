"""Parsing and transformation helpers for :mod:`bridge_attest.config_loader`."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace
from pathlib import Path

from bridge_attest.config_loader.models import BridgeConfig
from bridge_attest.errors import ConfigurationError
from bridge_attest.quorum import QuorumPolicy, parse_quorum
from bridge_attest.settings import BridgeAttestSettings

_STRING_KEYS: tuple[str, ...] = (
    "source_chain_id",
    "destination_chain_id",
    "ticker",
    "contract_address",
)


def default_party_names(count: int) -> tuple[str, ...]:
    """Return ``trusted-party-1`` .. ``trusted-party-<count>``."""

    if count < 1:
        raise ConfigurationError("party count must be at least 1")
    return tuple(f"trusted-party-{index}" for index in range(1, count + 1))


def apply_environment_overrides(
    config: BridgeConfig, settings: BridgeAttestSettings
) -> BridgeConfig:
    """Apply environment-derived overrides to the configuration.

    Args:
        config: Base configuration instance.
        settings: Environment-derived settings.

    Returns:
        Configuration with environment overrides applied.
    """

    updated = config
    for key in _STRING_KEYS:
        value = getattr(settings, key)
        if value:
            updated = replace(updated, **{key: value})

    if settings.quorum:
        updated = replace(updated, quorum=parse_quorum(settings.quorum))
    if settings.only_one_signer is not None:
        updated = replace(
            updated, quorum=QuorumPolicy.from_only_one_signer(settings.only_one_signer)
        )

    names = settings.party_names
    if names is not None:
        updated = replace(updated, parties=_check_parties(names))
    elif settings.party_count is not None:
        updated = replace(updated, parties=default_party_names(settings.party_count))

    if settings.keys_dir:
        updated = replace(updated, keys_dir=Path(settings.keys_dir))

    return updated


def apply_structured_overrides(
    config: BridgeConfig, data: Mapping[str, object]
) -> BridgeConfig:
    """Apply overrides sourced from structured configuration data.

    Args:
        config: Configuration to update.
        data: Mapping parsed from a JSON or YAML file.

    Returns:
        Updated configuration.

    Raises:
        ConfigurationError: If a recognised key holds a value of the wrong
            shape.
    """

    updated = config
    for key in _STRING_KEYS:
        if key not in data or data[key] is None:
            continue
        value = data[key]
        if not isinstance(value, str):
            raise ConfigurationError(f"configuration key {key!r} must be a string")
        updated = replace(updated, **{key: value})

    if "quorum" in data and data["quorum"] is not None:
        updated = replace(updated, quorum=_coerce_quorum(data["quorum"]))
    only_one = data.get("only_one_signer")
    if only_one is not None:
        if not isinstance(only_one, bool):
            raise ConfigurationError("configuration key 'only_one_signer' must be a bool")
        updated = replace(updated, quorum=QuorumPolicy.from_only_one_signer(only_one))

    parties = data.get("parties")
    if parties is not None:
        if isinstance(parties, int) and not isinstance(parties, bool):
            updated = replace(updated, parties=default_party_names(parties))
        elif isinstance(parties, Sequence) and not isinstance(parties, str):
            updated = replace(updated, parties=_check_parties(parties))
        else:
            raise ConfigurationError(
                "configuration key 'parties' must be a list of names or a count"
            )

    keys_dir = data.get("keys_dir")
    if keys_dir is not None:
        if not isinstance(keys_dir, str):
            raise ConfigurationError("configuration key 'keys_dir' must be a string")
        updated = replace(updated, keys_dir=Path(keys_dir))

    return updated


def _coerce_quorum(value: object) -> QuorumPolicy:
    if isinstance(value, str):
        return parse_quorum(value)
    if isinstance(value, Mapping):
        kind = value.get("kind")
        if not isinstance(kind, str):
            raise ConfigurationError("quorum mapping requires a 'kind' string")
        if kind.strip().lower() in ("k-of-n", "kofn"):
            k = value.get("k")
            if not isinstance(k, int) or isinstance(k, bool):
                raise ConfigurationError("k-of-n quorum requires an integer 'k'")
            return QuorumPolicy.k_of_n(k)
        return parse_quorum(kind)
    raise ConfigurationError("configuration key 'quorum' must be a string or mapping")


def _check_parties(names: Sequence[object]) -> tuple[str, ...]:
    """Validate party names: non-empty strings without duplicates."""

    result: list[str] = []
    for name in names:
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError("trusted party names must be non-empty strings")
        result.append(name.strip())
    if not result:
        raise ConfigurationError("at least one trusted party must be configured")
    if len(set(result)) != len(result):
        raise ConfigurationError("trusted party names must be unique")
    return tuple(result)
