"""
Format version numbers and the ``_ns`` namespace header.

Every document records the producer and the version that wrote it::

    {"_ns": {"mrdi": ["https://pypi.org/project/mrdi/", "1.2.0"]}, ...}

Versions are ``MAJOR.MINOR.PATCH`` with an optional ``-DEV`` suffix (optionally followed by a
commit identifier) for development builds. Very old documents store the version as a
``{"major": ..., "minor": ..., "patch": ...}`` object; both forms are accepted on read.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from mrdi import __version__
from mrdi.exceptions import NamespaceError
from mrdi.settings import MrdiSettings
from mrdi.settings import get_global_settings

_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)(?:-(DEV)(?:[-+.]?([0-9A-Za-z.\-]+))?)?$")


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class VersionNumber:
    """
    A semantic version with an optional development suffix.

    Development builds order before the release they lead up to; the commit identifier is carried
    along for diagnostics but never affects ordering or equality.

    Examples:
        >>> VersionNumber.parse("1.2.0-DEV-abc123") < VersionNumber.parse("1.2.0")
        True
        >>> str(VersionNumber.parse("1.2.0-DEV-abc123"))
        '1.2.0-DEV-abc123'
        >>> VersionNumber.parse({"major": 0, "minor": 4, "patch": 1})
        VersionNumber(major=0, minor=4, patch=1, dev=False, commit=None)
    """

    major: int
    minor: int
    patch: int
    dev: bool = False
    commit: str | None = None

    @classmethod
    def parse(cls, value: str | Mapping[str, Any] | VersionNumber) -> VersionNumber:
        """
        Parse a version string or a legacy ``{major, minor, patch}`` mapping.

        Raises:
            ValueError: If ``value`` is not a recognizable version.
        """
        if isinstance(value, VersionNumber):
            return value
        if isinstance(value, Mapping):
            try:
                return cls(int(value["major"]), int(value["minor"]), int(value["patch"]))
            except (KeyError, TypeError, ValueError) as err:
                raise ValueError(f"Invalid version object: {dict(value)!r}") from err
        if not isinstance(value, str):
            raise ValueError(f"Invalid version: {value!r}")

        match = _VERSION_RE.match(value.strip())
        if match is None:
            raise ValueError(f"Invalid version string: {value!r}")
        major, minor, patch, dev, commit = match.groups()
        return cls(int(major), int(minor), int(patch), dev is not None, commit)

    @property
    def release(self) -> VersionNumber:
        """The version without any development suffix."""
        return VersionNumber(self.major, self.minor, self.patch)

    def _key(self) -> tuple[int, int, int, int]:
        return (self.major, self.minor, self.patch, 0 if self.dev else 1)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionNumber):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, VersionNumber):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.dev:
            text += "-DEV"
            if self.commit:
                text += f"-{self.commit}"
        return text


VERSION_NUMBER = VersionNumber.parse(__version__)
"""The format version written by this release."""


def current_version(settings: MrdiSettings | None = None) -> VersionNumber:
    """Version stamped into new documents, including the development commit if configured."""
    settings = settings or get_global_settings()
    if settings.dev_commit:
        return VersionNumber(
            VERSION_NUMBER.major,
            VERSION_NUMBER.minor,
            VERSION_NUMBER.patch,
            dev=True,
            commit=settings.dev_commit,
        )
    return VERSION_NUMBER


def namespace_header(settings: MrdiSettings | None = None) -> dict[str, list[str]]:
    """Build the ``_ns`` header identifying this producer and version."""
    settings = settings or get_global_settings()
    return {settings.producer: [settings.origin, str(current_version(settings))]}


def document_version(document: Mapping[str, Any], producer: str | None = None) -> VersionNumber:
    """
    Extract the stored format version from a document's namespace header.

    Raises:
        NamespaceError: If the header is missing, names another producer, or has no valid
            version entry.
    """
    producer = producer or get_global_settings().producer
    namespace = document.get("_ns")
    if not isinstance(namespace, Mapping):
        raise NamespaceError("Namespace is missing", path=("_ns",))
    entry = namespace.get(producer)
    if not isinstance(entry, (list, tuple)) or len(entry) < 2:
        raise NamespaceError(f"Not a {producer} document", path=("_ns",))
    try:
        return VersionNumber.parse(entry[1])
    except ValueError as err:
        raise NamespaceError(str(err), path=("_ns", producer, 1)) from err


__all__ = [
    "VERSION_NUMBER",
    "VersionNumber",
    "current_version",
    "document_version",
    "namespace_header",
]
