"""Markers for mrdi hook specifications and implementations."""

import pluggy

HOOK_NAMESPACE = "mrdi"

hook_spec = pluggy.HookspecMarker(HOOK_NAMESPACE)
hook_impl = pluggy.HookimplMarker(HOOK_NAMESPACE)
