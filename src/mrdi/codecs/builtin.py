"""
Built-in codecs for common Python types.

These codecs are automatically registered when the module is imported. ``bool``, ``int``,
``float`` and ``None`` need no codec: they are written as bare JSON scalars.
"""

from __future__ import annotations

import base64
from collections.abc import Mapping
from fractions import Fraction
from typing import TYPE_CHECKING, Any

from typing_extensions import override

from mrdi.codecs.base import TypeCodec
from mrdi.exceptions import DeserializationError

if TYPE_CHECKING:
    from mrdi.state import DeserializerState
    from mrdi.state import Node
    from mrdi.state import SerializerState


def _expect(data: Any, kind: type | tuple[type, ...], tag: str) -> None:
    if not isinstance(data, kind):
        raise DeserializationError(f"Invalid payload for '{tag}': {type(data).__name__}")


class StringCodec(TypeCodec, python_type=str, tag="String"):
    """
    Strings are always tagged so a bare string stays unambiguous (type tag or UUID reference).

    Examples:
        >>> StringCodec().save_object(None, "hello")
        'hello'
    """

    @override
    def save_object(self, s: SerializerState, obj: str) -> Node:
        return obj

    @override
    def load_object(self, s: DeserializerState, cls: type, data: Node, params: Any = None) -> str:
        _expect(data, str, "String")
        return cls(data)


class BytesCodec(TypeCodec, python_type=bytes, tag="Bytes"):
    """
    Raw bytes as base64 text.

    Examples:
        >>> BytesCodec().save_object(None, b"\\x00\\xff")
        'AP8='
    """

    @override
    def save_object(self, s: SerializerState, obj: bytes) -> Node:
        return base64.b64encode(obj).decode("ascii")

    @override
    def load_object(self, s: DeserializerState, cls: type, data: Node, params: Any = None) -> bytes:
        _expect(data, str, "Bytes")
        return cls(base64.b64decode(data.encode("ascii"), validate=True))


class FractionCodec(TypeCodec, python_type=Fraction, tag="Fraction"):
    """
    Exact rationals as ``"numerator/denominator"`` text.

    Examples:
        >>> FractionCodec().save_object(None, Fraction(-3, 4))
        '-3/4'
    """

    @override
    def save_object(self, s: SerializerState, obj: Fraction) -> Node:
        return f"{obj.numerator}/{obj.denominator}"

    @override
    def load_object(
        self, s: DeserializerState, cls: type, data: Node, params: Any = None
    ) -> Fraction:
        _expect(data, str, "Fraction")
        return cls(data)


class ComplexCodec(TypeCodec, python_type=complex, tag="Complex"):
    """Complex numbers as ``[real, imag]``."""

    @override
    def save_object(self, s: SerializerState, obj: complex) -> Node:
        return [obj.real, obj.imag]

    @override
    def load_object(
        self, s: DeserializerState, cls: type, data: Node, params: Any = None
    ) -> complex:
        _expect(data, list, "Complex")
        if len(data) != 2:
            raise DeserializationError(f"Invalid payload for 'Complex': {data!r}")
        return cls(data[0], data[1])


class _SequenceCodec(TypeCodec):
    """
    Ordered collections of typed entries.

    Each entry is typed-encoded on its own, so heterogeneous sequences round-trip and shared
    entries become references. A caller-supplied parameter override is passed on to every entry.
    """

    @override
    def save_object(self, s: SerializerState, obj: Any) -> Node:
        entries = []
        for index, value in enumerate(obj):
            with s.enter(index):
                entries.append(s.save_typed_field(value))
        return entries

    @override
    def load_object(self, s: DeserializerState, cls: type, data: Node, params: Any = None) -> Any:
        _expect(data, list, self.tag or cls.__qualname__)
        return cls(s.load_typed_object(data, index, params=params) for index in range(len(data)))


class ListCodec(_SequenceCodec, python_type=list, tag="List"):
    """Lists of typed entries."""


class TupleCodec(_SequenceCodec, python_type=tuple, tag="Tuple"):
    """Tuples of typed entries."""


class SetCodec(_SequenceCodec, python_type=set, tag="Set"):
    """Sets of typed entries, written in iteration order."""


class FrozenSetCodec(_SequenceCodec, python_type=frozenset, tag="FrozenSet"):
    """Frozensets of typed entries, written in iteration order."""


class DictCodec(TypeCodec, python_type=dict, tag="Dict"):
    """
    Dictionaries of typed values.

    Dictionaries whose keys are all strings are written as a JSON object; any other key type
    switches to a list of ``[key, value]`` pairs with typed keys.

    Examples:
        >>> from mrdi.state import SerializerState
        >>> DictCodec().save_object(SerializerState(), {"a": 1})
        {'a': 1}
        >>> DictCodec().save_object(SerializerState(), {1: 2})
        [[1, 2]]
    """

    @override
    def save_object(self, s: SerializerState, obj: dict) -> Node:
        if all(isinstance(key, str) for key in obj):
            mapping: dict[str, Node] = {}
            for key, value in obj.items():
                with s.enter(key):
                    mapping[key] = s.save_typed_field(value)
            return mapping

        pairs = []
        for index, (key, value) in enumerate(obj.items()):
            with s.enter(index):
                pairs.append([s.save_typed_field(key), s.save_typed_field(value)])
        return pairs

    @override
    def load_object(self, s: DeserializerState, cls: type, data: Node, params: Any = None) -> dict:
        if isinstance(data, Mapping):
            return cls((key, s.load_typed_object(data, key, params=params)) for key in data)

        _expect(data, list, "Dict")
        result = cls()
        for index, pair in enumerate(data):
            with s.enter(index):
                _expect(pair, list, "Dict")
                if len(pair) != 2:
                    raise DeserializationError(f"Invalid key/value pair: {pair!r}")
                key = s.load_typed_object(pair, 0, params=params)
                result[key] = s.load_typed_object(pair, 1, params=params)
        return result


__all__ = [
    "BytesCodec",
    "ComplexCodec",
    "DictCodec",
    "FractionCodec",
    "FrozenSetCodec",
    "ListCodec",
    "SetCodec",
    "StringCodec",
    "TupleCodec",
]
