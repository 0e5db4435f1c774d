"""Structural fallback codec: writes an explicit list of fields by name."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from typing_extensions import override

from mrdi.codecs.base import TypeCodec
from mrdi.exceptions import DeserializationError

if TYPE_CHECKING:
    from mrdi.state import DeserializerState
    from mrdi.state import Node
    from mrdi.state import SerializerState


class StructCodec(TypeCodec):
    """
    Field-by-field codec used for registered types without custom hooks.

    Each declared field is typed-encoded under its name, so shared (``uses_id``) field values
    become references and basic scalars stay bare::

        {"_type": "Point", "data": {"x": 3, "y": 4}}

    Decoding passes every declared field as a keyword argument to the type's constructor and
    fails with ``MissingFieldError`` if one is absent.
    """

    def __init__(self, fields: tuple[str, ...]) -> None:
        self.fields = fields

    @override
    def save_object(self, s: SerializerState, obj: Any) -> Node:
        data: dict[str, Node] = {}
        for name in self.fields:
            with s.enter(name):
                data[name] = s.save_typed_field(getattr(obj, name))
        return data

    @override
    def load_object(
        self,
        s: DeserializerState,
        cls: type,
        data: Node,
        params: Any = None,
    ) -> Any:
        if not self.fields:
            return cls()
        if not isinstance(data, Mapping):
            raise DeserializationError(
                f"Expected an object payload for {cls.__qualname__}, got {type(data).__name__}"
            )
        kwargs = {name: s.load_typed_object(data, name) for name in self.fields}
        return cls(**kwargs)

    def __repr__(self) -> str:
        return f"StructCodec(fields={self.fields!r})"


__all__ = ["StructCodec"]
