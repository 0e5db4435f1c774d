from mrdi.plugins.manager import register_hooks
from mrdi.plugins.manager import register_plugins_entry_points
from mrdi.plugins.manager import unregister_hooks
from mrdi.plugins.markers import hook_impl

__all__ = [
    "hook_impl",
    "register_hooks",
    "register_plugins_entry_points",
    "unregister_hooks",
]
