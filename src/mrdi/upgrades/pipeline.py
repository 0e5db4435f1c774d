"""
Ordered document-level upgrades between format versions.

An upgrade script is a pure transform over the raw parsed document (dicts, lists, scalars), given
the settings of the load that triggered it. It is keyed by the version that introduced the layout
it produces and applies to every document stored with an older version. Scripts run in increasing
version order; afterwards the document is stamped with the current version and decoded as if it
had just been written.

Example:
    >>> pipeline = UpgradePipeline(minimum_version="0.1.0")
    >>> @pipeline.script("0.2.0")
    ... def rename_payload(document, settings):
    ...     document["data"] = document.pop("payload")
    ...     return document
    >>> old = {"_ns": {"mrdi": ["", "0.1.0"]}, "_type": "Point", "payload": {"x": 1, "y": 2}}
    >>> new = pipeline.upgrade(VersionNumber.parse("0.1.0"), old)
    >>> new["data"]
    {'x': 1, 'y': 2}
"""

from __future__ import annotations

import bisect
import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from typing import Any, Callable

from mrdi.exceptions import DeserializationError
from mrdi.exceptions import MrdiError
from mrdi.exceptions import UnsupportedVersionError
from mrdi.settings import MrdiSettings
from mrdi.settings import get_global_settings
from mrdi.versions import VersionNumber
from mrdi.versions import namespace_header

logger = logging.getLogger(__name__)

Transform = Callable[[dict[str, Any], MrdiSettings], dict[str, Any]]


@dataclass(frozen=True, order=True)
class UpgradeScript:
    """A document transform producing the layout introduced in ``version``."""

    version: VersionNumber
    sequence: int
    transform: Transform = field(compare=False)
    name: str = field(compare=False, default="")

    def applies_to(self, file_version: VersionNumber) -> bool:
        """Whether a document stored with ``file_version`` still needs this script."""
        return file_version < self.version


class UpgradePipeline:
    """
    Registry of upgrade scripts, applied in increasing version order.

    Args:
        minimum_version: Oldest stored version an upgrade path exists from. Older documents fail
            with ``UnsupportedVersionError``.
    """

    def __init__(self, minimum_version: VersionNumber | str = "0.0.0") -> None:
        self.minimum_version = VersionNumber.parse(minimum_version)
        self._scripts: list[UpgradeScript] = []

    def register(
        self,
        version: VersionNumber | str,
        transform: Transform,
        name: str | None = None,
    ) -> UpgradeScript:
        """
        Add a script; scripts sharing a version run in registration order.

        Args:
            version: Version whose layout the transform produces.
            transform: Function taking the raw document and the load's settings and returning
                the upgraded document. It may mutate its input.
            name: Label used in logs. Defaults to the transform's name.
        """
        script = UpgradeScript(
            version=VersionNumber.parse(version),
            sequence=len(self._scripts),
            transform=transform,
            name=name or getattr(transform, "__name__", repr(transform)),
        )
        bisect.insort(self._scripts, script)
        return script

    def script(self, version: VersionNumber | str) -> Callable[[Transform], Transform]:
        """Decorator form of ``register``."""

        def decorator(transform: Transform) -> Transform:
            self.register(version, transform)
            return transform

        return decorator

    def scripts(self) -> list[UpgradeScript]:
        """All registered scripts in application order."""
        return list(self._scripts)

    def upgrade(
        self,
        file_version: VersionNumber,
        document: Mapping[str, Any],
        settings: MrdiSettings | None = None,
    ) -> dict[str, Any]:
        """
        Rewrite a document stored with ``file_version`` into the current layout.

        The input is deep-copied and never modified. ``settings`` (defaulting to the global
        settings) is passed to every script, so custom ``type_key``/``refs_key`` values are used.

        Raises:
            UnsupportedVersionError: If ``file_version`` predates ``minimum_version``.
            DeserializationError: If a script fails on a malformed document.
        """
        settings = settings or get_global_settings()
        if file_version.release < self.minimum_version:
            raise UnsupportedVersionError(
                f"No upgrade path from format version {file_version} "
                f"(oldest supported: {self.minimum_version})"
            )

        upgraded = copy.deepcopy(dict(document))
        for script in self._scripts:
            if script.applies_to(file_version):
                logger.debug(f"Applying upgrade script '{script.name}' ({script.version})")
                try:
                    upgraded = script.transform(upgraded, settings)
                except MrdiError:
                    raise
                except Exception as err:
                    raise DeserializationError(
                        f"Upgrade script '{script.name}' ({script.version}) failed: "
                        f"{type(err).__name__}: {err}",
                        path=(),
                    ) from err

        upgraded["_ns"] = namespace_header(settings)
        return upgraded


def transform_nodes(node: Any, func: Callable[[dict[str, Any]], dict[str, Any]]) -> Any:
    """
    Apply ``func`` to every object node of a raw document, top-down.

    ``func`` receives each dict after its parent has been transformed and before its children
    are visited; lists and scalars are traversed/returned unchanged.
    """
    if isinstance(node, dict):
        node = func(node)
        return {key: transform_nodes(value, func) for key, value in node.items()}
    if isinstance(node, list):
        return [transform_nodes(value, func) for value in node]
    return node


default_pipeline = UpgradePipeline(minimum_version="0.5.0")
"""Pipeline used by ``load``; built-in scripts live in ``mrdi.upgrades.scripts``."""


def register_upgrade_script(version: VersionNumber | str) -> Callable[[Transform], Transform]:
    """
    Register a transform with the default pipeline.

    Examples:
        >>> @register_upgrade_script("9.9.9")  # doctest: +SKIP
        ... def rename_field(document, settings):
        ...     return document
    """
    return default_pipeline.script(version)


__all__ = [
    "UpgradePipeline",
    "UpgradeScript",
    "default_pipeline",
    "register_upgrade_script",
    "transform_nodes",
]
