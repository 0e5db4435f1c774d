"""Utility functions to manage the project-wide hook configuration."""

import logging
from inspect import isclass
from typing import Any

from pluggy import PluginManager

from mrdi.plugins.markers import HOOK_NAMESPACE
from mrdi.plugins.specs import DocumentSpec
from mrdi.plugins.specs import RegistrySpec

logger = logging.getLogger(__name__)

_PLUGIN_ENTRY_POINT = "mrdi.hooks"  # entry-point to load hooks from for installed plugins
_PLUGIN_MANAGER: PluginManager | None = None


# region API


def register_hooks(*hooks: Any) -> None:
    """Register specified mrdi pluggy hooks."""
    hook_manager = _get_global_plugin_manager()
    for hooks_collection in hooks:
        if not hook_manager.is_registered(hooks_collection):
            if isclass(hooks_collection):
                raise TypeError(
                    "mrdi expects hooks to be registered as instances. "
                    "Have you forgotten the `()` when registering a hook class?"
                )
            hook_manager.register(hooks_collection)


def unregister_hooks(*hooks: Any) -> None:
    """Unregister previously registered mrdi pluggy hooks."""
    hook_manager = _get_global_plugin_manager()
    for hooks_collection in hooks:
        if hook_manager.is_registered(hooks_collection):
            hook_manager.unregister(hooks_collection)


def register_plugins_entry_points(_plugin_manager: PluginManager | None = None) -> int:
    """Register mrdi plugins from Python package entrypoints; returns the number loaded."""
    _plugin_manager = _plugin_manager if _plugin_manager else _get_global_plugin_manager()
    count = _plugin_manager.load_setuptools_entrypoints(_PLUGIN_ENTRY_POINT)  # no setuptools
    if count:
        logger.debug(f"Loaded {count} plugin(s) from entry point group '{_PLUGIN_ENTRY_POINT}'")
    return count


def get_hook() -> Any:
    """Returns the hook relay of the global plugin manager."""
    return _get_global_plugin_manager().hook


# region Helpers


def _initialize_plugin_system() -> PluginManager:
    """Initializes hooks for the mrdi library."""
    from mrdi.registry import default_registry

    manager = _create_plugin_manager()
    global _PLUGIN_MANAGER
    _PLUGIN_MANAGER = manager
    manager.hook.register_serialization_types.call_historic(kwargs={"registry": default_registry})
    return manager


def _get_global_plugin_manager() -> PluginManager:
    """Returns initialized global plugin manager, initializing it on first use."""
    plugin_manager = _PLUGIN_MANAGER
    if plugin_manager is None:
        plugin_manager = _initialize_plugin_system()
    return plugin_manager


def _create_plugin_manager() -> PluginManager:
    """Create a new PluginManager instance and register mrdi's hook specs."""
    manager = PluginManager(HOOK_NAMESPACE)
    manager.trace.root.setwriter(
        logger.debug if logger.getEffectiveLevel() == logging.DEBUG else None
    )
    manager.enable_tracing()
    manager.add_hookspecs(RegistrySpec)
    manager.add_hookspecs(DocumentSpec)
    return manager
