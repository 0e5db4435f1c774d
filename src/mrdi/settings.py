from __future__ import annotations

import threading
from dataclasses import dataclass

_GLOBAL_MRDI_SETTINGS: MrdiSettings | None = None
_SETTINGS_LOCK = threading.RLock()


@dataclass(frozen=True)
class MrdiSettings:
    """Configuration settings for mrdi."""

    type_key: str = "_type"
    """Document key holding the type tag (or structured type parameters) of a node."""

    refs_key: str = "_refs"
    """Root document key holding the shared-object reference section."""

    producer: str = "mrdi"
    """Producer name written into (and required from) the ``_ns`` namespace header."""

    origin: str = "https://pypi.org/project/mrdi/"
    """Origin URL recorded next to the version in the namespace header."""

    max_depth: int = 100
    """
    Maximum number of nested typed nodes accepted while encoding or decoding.

    Encoding and decoding are depth-first recursive and each level of nesting takes up to five
    interpreter frames, so the default stays within the standard recursion limit of 1000 and
    runaway inputs fail with a ``DepthLimitError``. Raising it may also require
    ``sys.setrecursionlimit``.
    """

    indent: int | None = None
    """Indentation passed to ``json.dump`` when writing documents. None writes compact JSON."""

    dev_commit: str | None = None
    """
    Commit identifier of a development build.

    When set, documents are stamped ``<version>-DEV-<commit>`` so that loaders can tell which
    unreleased build produced them.
    """


def get_global_settings() -> MrdiSettings:
    """
    Get the global mrdi settings instance (thread-safe).

    If no global settings have been set, returns a default instance.
    """
    with _SETTINGS_LOCK:
        global _GLOBAL_MRDI_SETTINGS
        if _GLOBAL_MRDI_SETTINGS is None:
            _GLOBAL_MRDI_SETTINGS = MrdiSettings()
        return _GLOBAL_MRDI_SETTINGS


def set_global_settings(settings: MrdiSettings) -> None:
    """
    Set the global mrdi settings instance (thread-safe).

    Note: Documents written under one ``type_key``/``refs_key`` can only be read back with the
    same keys, so these should be configured once at startup.

    Args:
        settings (MrdiSettings): Settings to set as global.
    """
    with _SETTINGS_LOCK:
        global _GLOBAL_MRDI_SETTINGS
        _GLOBAL_MRDI_SETTINGS = settings
