"""
Type registry: the bijective map between Python types and document type tags.

Every type that can appear in a document is registered once, at import/startup time, together
with its serialization flags:

- ``uses_id``: instances are shared objects, written once into the reference section and referred
  to by UUID everywhere else.
- ``uses_params``: decoding needs construction parameters (e.g. a parent ring) that are resolved
  from a structured type description before the payload is meaningful.
- ``attrs``: ordered whitelist of optional attributes persisted alongside the payload.
- ``singleton``: the type has exactly one logical instance and is written tag-only.

Types without a custom codec are written field by field (``StructCodec``); the field list is
explicit, or taken from the ``__init__`` fields of a dataclass.

Example:
    >>> from dataclasses import dataclass
    >>> from mrdi.registry import TypeRegistry
    >>> @dataclass
    ... class Point:
    ...     x: int
    ...     y: int
    >>> registry = TypeRegistry()
    >>> registry.register(Point, "Point").tag
    'Point'
    >>> registry.resolve_type("Point") is Point
    True
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Iterable
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, TypeVar

from mrdi.exceptions import RegistrationError
from mrdi.exceptions import TypeConflictError
from mrdi.exceptions import UnsupportedTypeError
from mrdi.utils import build_repr

if TYPE_CHECKING:
    from mrdi.codecs.base import TypeCodec

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=type)


@dataclass(frozen=True)
class TypeSpec:
    """Registration record for one type: its tag, flags and the codec that encodes it."""

    type: type
    tag: str
    codec: TypeCodec
    uses_id: bool = False
    uses_params: bool = False
    attrs: tuple[str, ...] = ()
    singleton: bool = False

    def __repr__(self) -> str:
        flags = {
            "uses_id": self.uses_id,
            "uses_params": self.uses_params,
            "attrs": self.attrs,
            "singleton": self.singleton,
        }
        return build_repr("TypeSpec", self.type.__qualname__, repr(self.tag), kwargs=flags)


class TypeRegistry:
    """
    Registry binding Python types to document type tags.

    Thread-safety:
        - Registration is guarded by an internal lock
        - Lookups read plain dictionaries and never block

    Invariants:
        - A tag is bound to at most one type and a type to at most one tag
        - Re-registering an identical (type, tag) pair is a no-op
    """

    def __init__(self) -> None:
        self._by_type: dict[type, TypeSpec] = {}
        self._by_tag: dict[str, TypeSpec] = {}
        self._lock = threading.RLock()
        self._auto_discover = False
        self._discovered = False

    def register(
        self,
        type_: type,
        tag: str | None = None,
        *,
        uses_id: bool = False,
        uses_params: bool = False,
        attrs: Iterable[str] = (),
        codec: TypeCodec | None = None,
        fields: Iterable[str] | None = None,
        singleton: bool = False,
    ) -> TypeSpec:
        """
        Register ``type_`` under ``tag``.

        Args:
            type_: The Python type to register.
            tag: Canonical tag written into documents. Defaults to the type's qualified name.
            uses_id: Persist instances by reference (UUID) instead of inline.
            uses_params: Decoding requires construction parameters; requires a custom codec.
            attrs: Attribute names eligible for persistence, in order.
            codec: Codec implementing encode/decode. Defaults to a field-by-field ``StructCodec``.
            fields: Explicit field list for the default codec. Defaults to the dataclass fields.
            singleton: The type has exactly one instance, constructed with ``type_()`` on load.

        Returns:
            The registered (or already existing) TypeSpec.

        Raises:
            TypeConflictError: If ``tag`` is bound to another type or ``type_`` to another tag.
            RegistrationError: If the registration cannot be encoded (e.g. ``uses_params``
                without a codec, or no codec and no field list).
        """
        tag = tag or type_.__qualname__
        attrs = tuple(attrs)

        with self._lock:
            existing = self._by_tag.get(tag)
            if existing is not None:
                if existing.type is not type_:
                    raise TypeConflictError(
                        f"Tag '{tag}' already registered for a different type: "
                        f"{_type_name(type_)} versus {_type_name(existing.type)}"
                    )
                return existing

            existing = self._by_type.get(type_)
            if existing is not None:
                raise TypeConflictError(
                    f"Type {_type_name(type_)} already registered with tag '{existing.tag}'"
                )

            if codec is None:
                if uses_params:
                    raise RegistrationError(
                        f"Type '{tag}' uses params and needs a codec implementing "
                        "save_type_params/load_object"
                    )
                codec = _default_codec(type_, tag, fields, attrs, singleton)

            spec = TypeSpec(
                type=type_,
                tag=tag,
                codec=codec,
                uses_id=uses_id,
                uses_params=uses_params,
                attrs=attrs,
                singleton=singleton,
            )
            self._by_type[type_] = spec
            self._by_tag[tag] = spec
            logger.debug(f"Registered serialization type: {tag} -> {_type_name(type_)}")
            return spec

    def unregister(self, type_: type) -> None:
        """Remove a registration. Intended for tests and interactive sessions."""
        with self._lock:
            spec = self._by_type.pop(type_, None)
            if spec is not None:
                self._by_tag.pop(spec.tag, None)

    def get_spec(self, type_: type) -> TypeSpec:
        """
        Look up the registration for exactly ``type_``.

        Subclasses of a registered type are not covered by its registration: encoding them with
        the base's codec would silently drop whatever the subclass adds.

        Raises:
            UnsupportedTypeError: If ``type_`` itself is not registered.
        """
        spec = self._by_type.get(type_)
        if spec is None and self._discover():
            spec = self._by_type.get(type_)
        if spec is None:
            message = f"Unsupported type '{_type_name(type_)}' for encoding"
            base = self._registered_base(type_)
            if base is not None:
                message += f" (only its base class '{base.tag}' is registered)"
            raise UnsupportedTypeError(message)
        return spec

    def get_spec_by_tag(self, tag: str) -> TypeSpec:
        """
        Look up the registration for a tag.

        Raises:
            UnsupportedTypeError: If the tag is unknown.
        """
        spec = self._by_tag.get(tag)
        if spec is None and self._discover():
            spec = self._by_tag.get(tag)
        if spec is None:
            raise UnsupportedTypeError(f"Unsupported type '{tag}' for decoding")
        return spec

    def resolve_tag(self, type_: type) -> str:
        """Return the tag for ``type_``; raises ``UnsupportedTypeError`` if unregistered."""
        return self.get_spec(type_).tag

    def resolve_type(self, tag: str) -> type:
        """Return the type bound to ``tag``; raises ``UnsupportedTypeError`` if unknown."""
        return self.get_spec_by_tag(tag).type

    def attrs_of(self, type_: type) -> tuple[str, ...]:
        """Return the attribute whitelist registered for ``type_`` (empty if none)."""
        spec = self._by_type.get(type_)
        return spec.attrs if spec is not None else ()

    def is_registered(self, type_: type) -> bool:
        """Whether ``type_`` itself (not just a base class) is registered."""
        return type_ in self._by_type

    def tags(self) -> list[str]:
        """All registered tags, sorted."""
        return sorted(self._by_tag)

    def enable_discovery(self, enabled: bool = True) -> None:
        """Load plugin entry points the first time a lookup misses."""
        self._auto_discover = enabled

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            return item in self._by_tag
        return item in self._by_type

    def __iter__(self) -> Iterator[TypeSpec]:
        return iter(list(self._by_type.values()))

    def __len__(self) -> int:
        return len(self._by_type)

    def _registered_base(self, type_: type) -> TypeSpec | None:
        for base in getattr(type_, "__mro__", ())[1:]:
            spec = self._by_type.get(base)
            if spec is not None:
                return spec
        return None

    def _discover(self) -> bool:
        """Load entry-point plugins once; returns True if that happened on this call."""
        if not self._auto_discover or self._discovered:
            return False
        self._discovered = True
        from mrdi.plugins.manager import register_plugins_entry_points

        register_plugins_entry_points()
        return True


def _type_name(type_: type) -> str:
    return f"{type_.__module__}.{type_.__qualname__}"


def _default_codec(
    type_: type,
    tag: str,
    fields: Iterable[str] | None,
    attrs: tuple[str, ...],
    singleton: bool,
) -> TypeCodec:
    from mrdi.codecs.struct import StructCodec

    if fields is not None:
        return StructCodec(tuple(fields))
    if dataclasses.is_dataclass(type_):
        names = tuple(f.name for f in dataclasses.fields(type_) if f.init and f.name not in attrs)
        return StructCodec(names)
    if singleton:
        return StructCodec(())
    raise RegistrationError(
        f"Type '{tag}' needs a codec or an explicit field list (it is not a dataclass)"
    )


default_registry = TypeRegistry()
"""Process-wide registry used when no registry is passed explicitly."""
default_registry.enable_discovery()


def register_type(
    type_: type,
    tag: str | None = None,
    uses_id: bool = False,
    uses_params: bool = False,
    attrs: Iterable[str] = (),
    *,
    codec: TypeCodec | None = None,
    fields: Iterable[str] | None = None,
    singleton: bool = False,
    registry: TypeRegistry | None = None,
) -> TypeSpec:
    """
    Register a type with the default registry (or ``registry``).

    See ``TypeRegistry.register`` for the meaning of each argument.

    Examples:
        >>> from dataclasses import dataclass
        >>> @dataclass
        ... class Interval:
        ...     lo: int
        ...     hi: int
        >>> register_type(Interval, "Interval", registry=TypeRegistry()).uses_id
        False
    """
    registry = registry if registry is not None else default_registry
    return registry.register(
        type_,
        tag,
        uses_id=uses_id,
        uses_params=uses_params,
        attrs=attrs,
        codec=codec,
        fields=fields,
        singleton=singleton,
    )


def serialization_type(
    tag: str | None = None,
    *,
    uses_id: bool = False,
    attrs: Iterable[str] = (),
    fields: Iterable[str] | None = None,
    singleton: bool = False,
    registry: TypeRegistry | None = None,
) -> Callable[[T], T]:
    """
    Class decorator registering a type that uses the field-by-field codec.

    Examples:
        >>> from dataclasses import dataclass
        >>> @serialization_type("Segment", registry=TypeRegistry())
        ... @dataclass
        ... class Segment:
        ...     start: int
        ...     stop: int
    """

    def decorator(cls: T) -> T:
        register_type(
            cls,
            tag,
            uses_id=uses_id,
            attrs=attrs,
            fields=fields,
            singleton=singleton,
            registry=registry,
        )
        return cls

    return decorator


__all__ = [
    "TypeRegistry",
    "TypeSpec",
    "default_registry",
    "register_type",
    "serialization_type",
]
