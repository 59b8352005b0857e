"""Resolve and instantiate plugin classes from ``module:Class`` references."""

from __future__ import annotations

import importlib
import logging
import re

from deckctl.core.errors import PluginLoadError
from deckctl.core.plugin import PluginHandlers

DEFAULT_PLUGIN = "deckctl.plugins.counter:CounterPlugin"
LOGGER = logging.getLogger(__name__)

_REFERENCE_RE = re.compile(r"^[A-Za-z_][\w.]*:[A-Za-z_]\w*$")
_REQUIRED_METHODS = ("attach", "on_key_down", "on_key_up", "on_will_appear", "on_will_disappear")


def load_plugin(reference: str = DEFAULT_PLUGIN) -> PluginHandlers:
    reference = reference.strip()
    if not _REFERENCE_RE.match(reference):
        raise PluginLoadError(f"Plugin reference '{reference}' must look like 'package.module:ClassName'")

    module_name, class_name = reference.split(":", 1)
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise PluginLoadError(f"Could not import plugin module '{module_name}': {exc}") from exc

    plugin_cls = getattr(module, class_name, None)
    if plugin_cls is None:
        raise PluginLoadError(f"Module '{module_name}' has no attribute '{class_name}'")

    try:
        plugin = plugin_cls()
    except Exception as exc:
        raise PluginLoadError(f"Could not instantiate plugin '{reference}': {exc}") from exc

    missing = [name for name in _REQUIRED_METHODS if not callable(getattr(plugin, name, None))]
    if missing:
        raise PluginLoadError(f"Plugin '{reference}' is missing handler(s): {', '.join(missing)}")

    LOGGER.debug("Loaded plugin %s", reference)
    return plugin
