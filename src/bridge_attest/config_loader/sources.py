"""Locate and read bridge configuration files."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Protocol, cast

from bridge_attest.errors import ConfigurationError
from bridge_attest.settings import BridgeAttestSettings

LOGGER = logging.getLogger(__name__)

SEARCH_PATHS: tuple[Path, ...] = (
    Path("config/bridge.yml"),
    Path("config/bridge.yaml"),
    Path("config/bridge.json"),
    Path("configs/bridge.yml"),
    Path("configs/bridge.json"),
)


class YamlLoader(Protocol):
    """The part of PyYAML the loader calls."""

    YAMLError: type[Exception]

    def safe_load(self, stream: str) -> object: ...


def candidate_paths(
    path: str | None, settings: BridgeAttestSettings
) -> Sequence[Path]:
    """Return the files to try, in priority order.

    An explicit ``path`` wins over ``BRIDGE_CONFIG_PATH``; without either the
    well-known locations under the working directory are searched.
    """

    if path is not None:
        return (Path(path),)
    if settings.config_path:
        return (Path(settings.config_path),)
    return SEARCH_PATHS


def load_structured_config(
    path: str | None, settings: BridgeAttestSettings
) -> dict[str, object] | None:
    """Read the first existing configuration file.

    Returns:
        The file's top-level mapping, or ``None`` when no file exists or
        the file could not be parsed into a mapping.

    Raises:
        ConfigurationError: If a YAML file is requested and PyYAML is not
            installed.
    """

    for candidate in candidate_paths(path, settings):
        if not candidate.is_file():
            continue
        parser = _PARSERS.get(candidate.suffix.lower())
        if parser is None:
            LOGGER.warning(
                "Ignoring configuration file with unknown suffix",
                extra={"path": str(candidate)},
            )
            continue
        try:
            text = candidate.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning(
                "Could not read configuration file",
                extra={"path": str(candidate)},
                exc_info=exc,
            )
            continue
        data = _string_keys(parser(text, candidate))
        if data is None:
            continue
        LOGGER.debug("Loaded bridge configuration", extra={"path": str(candidate)})
        return data
    return None


def _parse_json(text: str, origin: Path) -> object:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        LOGGER.warning(
            "Ignoring malformed JSON configuration",
            extra={"path": str(origin)},
            exc_info=exc,
        )
        return None


def _parse_yaml(text: str, origin: Path) -> object:
    yaml = _yaml_loader()
    if yaml is None:
        raise ConfigurationError(
            f"{origin} is a YAML file but PyYAML is not installed "
            "(pip install bridge-attest[yaml])"
        )
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        LOGGER.warning(
            "Ignoring malformed YAML configuration",
            extra={"path": str(origin)},
            exc_info=exc,
        )
        return None


def _yaml_loader() -> YamlLoader | None:
    """Import PyYAML on first use; it is an optional extra."""

    try:
        import yaml
    except ModuleNotFoundError:
        return None
    return cast(YamlLoader, yaml)


_PARSERS: dict[str, Callable[[str, Path], object]] = {
    ".json": _parse_json,
    ".yml": _parse_yaml,
    ".yaml": _parse_yaml,
}


def _string_keys(value: object) -> dict[str, object] | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        LOGGER.warning(
            "Ignoring configuration that is not a mapping",
            extra={"type": type(value).__name__},
        )
        return None
    return {key: item for key, item in value.items() if isinstance(key, str)}
