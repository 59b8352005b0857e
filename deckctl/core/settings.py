"""Settings loading and validation for the YAML-based deckctl config file."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from deckctl.core.errors import SettingsError

LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise SettingsError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class Settings:
    host: str = "localhost"
    open_timeout_s: float = 10.0
    receive_poll_s: float = 0.1
    idle_delay_s: float = 0.1
    max_message_bytes: int = 65536
    log_level: str = "INFO"
    log_file: str | None = None


def default_settings_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "deckctl/config.yaml"


def _load_schema_validator() -> Any:
    schema_text = resources.files("deckctl.schemas").joinpath("settings.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SettingsError(f"Could not read settings file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise SettingsError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping at root")
    return loaded


def build_settings(doc: dict[str, Any], source: Path | str = "<settings>") -> Settings:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise SettingsError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    known = {f.name for f in fields(Settings)}
    values = {key: value for key, value in doc.items() if key in known}
    for key in ("open_timeout_s", "receive_poll_s", "idle_delay_s"):
        if key in values:
            values[key] = float(values[key])
    return Settings(**values)


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from ``path`` or the default XDG location.

    An explicit path must exist. A missing default file yields defaults.
    """
    if path is None:
        path = default_settings_path()
        if not path.exists():
            return Settings()
    elif not path.exists():
        raise SettingsError(f"Settings file {path} does not exist")

    settings = build_settings(_read_yaml(path), path)
    LOGGER.debug("Loaded settings from %s", path)
    return settings
