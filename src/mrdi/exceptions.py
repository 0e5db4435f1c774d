"""
Centralized exception classes for the mrdi library.

All mrdi-specific exceptions inherit from MrdiError for easy catching. Errors raised while walking
a document carry the path of the offending node (``path``) and, once they leave ``load``, the
version of the file and of the running library.
"""

from __future__ import annotations

from collections.abc import Sequence

PathKey = str | int


def format_path(path: Sequence[PathKey]) -> str:
    """Render a document path as ``$.data[0].x`` style text."""
    parts = ["$"]
    for key in path:
        if isinstance(key, int):
            parts.append(f"[{key}]")
        else:
            parts.append(f".{key}")
    return "".join(parts)


class MrdiError(Exception):
    """Base exception for all mrdi errors."""

    def __init__(self, message: str, path: Sequence[PathKey] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path: tuple[PathKey, ...] | None = tuple(path) if path is not None else None
        self.file_version: str | None = None
        self.current_version: str | None = None

    def __str__(self) -> str:
        text = self.message
        if self.path is not None:
            text = f"{text} (at {format_path(self.path)})"
        if self.file_version is not None and self.file_version != self.current_version:
            text = f"{text} [file version {self.file_version}, mrdi {self.current_version}]"
        return text


class RegistrationError(MrdiError):
    """Raised when a type registration is invalid."""


class TypeConflictError(RegistrationError):
    """Raised when a tag is already bound to a different type, or a type to a different tag."""


class UnsupportedTypeError(MrdiError):
    """Raised when encoding or decoding a type that has not been registered."""


class DepthLimitError(MrdiError):
    """Raised when an object graph or document nests deeper than ``max_depth``."""


class SerializationError(MrdiError):
    """Raised when an object cannot be encoded."""


class DeserializationError(MrdiError):
    """Raised when a document cannot be decoded."""


class TypeUndeterminableError(DeserializationError):
    """Raised when no type can be resolved for a document node."""


class UnknownReferenceError(DeserializationError):
    """Raised when a UUID reference is neither bound in the store nor defined in the document."""


class MissingFieldError(DeserializationError):
    """Raised when a declared field is absent from a payload."""


class MissingParamError(DeserializationError):
    """Raised when a parametrized type is decoded without construction parameters."""


class TypeMismatchError(DeserializationError):
    """Raised when the caller-declared type is incompatible with the stored type."""


class NamespaceError(DeserializationError):
    """Raised when a document lacks a namespace header or belongs to an unknown producer."""


class UnsupportedVersionError(DeserializationError):
    """Raised when no upgrade path exists from the stored format version."""


class VersionSkewWarning(UserWarning):
    """Emitted when loading a document written by a newer (or development) version."""


__all__ = [
    "DepthLimitError",
    "DeserializationError",
    "MissingFieldError",
    "MissingParamError",
    "MrdiError",
    "NamespaceError",
    "RegistrationError",
    "SerializationError",
    "TypeConflictError",
    "TypeMismatchError",
    "TypeUndeterminableError",
    "UnknownReferenceError",
    "UnsupportedTypeError",
    "UnsupportedVersionError",
    "VersionSkewWarning",
    "format_path",
]
