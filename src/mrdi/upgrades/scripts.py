"""
Upgrade scripts for earlier releases of the mrdi format.

* Before 0.9.0 typed nodes used a plain ``type`` key and the reference section was ``refs``.
* Before 1.0.0 the reference section was a list of definitions carrying their own ``id``.

The ``{major, minor, patch}`` version object of pre-0.9 headers needs no script: the stored
version is parsed in either form and the header is re-stamped after upgrading.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from mrdi.exceptions import DeserializationError
from mrdi.settings import MrdiSettings
from mrdi.upgrades.pipeline import register_upgrade_script
from mrdi.upgrades.pipeline import transform_nodes

# Keys a pre-0.9 typed node could carry; a dict with other keys is payload, not a typed node
_LEGACY_TYPED_NODE_KEYS = frozenset({"type", "data", "attrs", "id", "_ns", "refs", "meta"})


@register_upgrade_script("0.9.0")
def rename_legacy_type_key(document: dict[str, Any], settings: MrdiSettings) -> dict[str, Any]:
    """``{"type": ..., "data": ...}`` -> ``{"_type": ..., "data": ...}``; ``refs`` -> ``_refs``."""

    def rename(node: dict[str, Any]) -> dict[str, Any]:
        if "type" not in node or not set(node) <= _LEGACY_TYPED_NODE_KEYS:
            return node
        if not isinstance(node["type"], (str, dict)):
            return node
        return {(settings.type_key if key == "type" else key): value for key, value in node.items()}

    document = transform_nodes(document, rename)
    if "refs" in document and settings.refs_key not in document:
        document = {
            (settings.refs_key if key == "refs" else key): value for key, value in document.items()
        }
    return document


@register_upgrade_script("1.0.0")
def key_reference_section_by_id(
    document: dict[str, Any], settings: MrdiSettings
) -> dict[str, Any]:
    """``"_refs": [{"id": u, ...}, ...]`` -> ``"_refs": {u: {...}, ...}``."""
    refs_key = settings.refs_key
    refs = document.get(refs_key)
    if isinstance(refs, list):
        keyed: dict[str, Any] = {}
        for index, definition in enumerate(refs):
            if not isinstance(definition, Mapping) or "id" not in definition:
                raise DeserializationError(
                    "Reference definition carries no 'id'", path=(refs_key, index)
                )
            definition = dict(definition)
            keyed[str(definition.pop("id"))] = definition
        document[refs_key] = keyed
    return document


__all__ = [
    "key_reference_section_by_id",
    "rename_legacy_type_key",
]
