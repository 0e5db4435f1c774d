"""
Abstract base class for type codecs with automatic registration.

A codec is the per-type capability that turns an instance into a document payload and back.
Subclasses that name a Python type auto-register via __init_subclass__.
"""

from __future__ import annotations

from abc import ABC
from abc import abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, ClassVar

from mrdi.exceptions import SerializationError

if TYPE_CHECKING:
    from mrdi.registry import TypeRegistry
    from mrdi.state import DeserializerState
    from mrdi.state import Node
    from mrdi.state import SerializerState


class TypeCodec(ABC):
    """
    Abstract base class for per-type encode/decode hooks.

    Subclasses auto-register an instance of themselves for ``python_type`` when it is given as a
    class parameter (or class variable). Classes without ``python_type`` are abstract
    intermediates and are not registered.

    Examples:
        A codec for a value-like type:

        >>> from fractions import Fraction
        >>> class Money:
        ...     def __init__(self, cents):
        ...         self.cents = cents
        >>> from mrdi.registry import TypeRegistry
        >>> registry = TypeRegistry()
        >>> class MoneyCodec(TypeCodec, python_type=Money, tag="Money", registry=registry):
        ...     def save_object(self, s, obj):
        ...         return obj.cents
        ...
        ...     def load_object(self, s, cls, data, params=None):
        ...         return cls(data)
        >>> registry.resolve_tag(Money)
        'Money'

        A codec whose elements need a parent before their payload means anything sets
        ``uses_params`` and implements ``save_type_params``; the parent comes back as ``params``
        in ``load_object``.
    """

    python_type: ClassVar[type | None] = None
    tag: ClassVar[str | None] = None
    uses_id: ClassVar[bool] = False
    uses_params: ClassVar[bool] = False
    attrs: ClassVar[tuple[str, ...]] = ()
    singleton: ClassVar[bool] = False

    def __init_subclass__(
        cls,
        *,
        python_type: type | None = None,
        tag: str | None = None,
        uses_id: bool | None = None,
        uses_params: bool | None = None,
        attrs: Iterable[str] | None = None,
        singleton: bool | None = None,
        registry: TypeRegistry | None = None,
        **kwargs: Any,
    ) -> None:
        """
        Auto-register subclasses in the type registry.

        Parameters can be provided as class parameters or as class variables. Class parameters
        take precedence over class variables.

        Args:
            python_type: The type this codec encodes. If None (and no class variable is set), this
                is an abstract intermediate class and won't be registered.
            tag: Document tag for the type. Defaults to the type's qualified name.
            uses_id: Persist instances by reference.
            uses_params: Decoding needs construction parameters.
            attrs: Attribute names eligible for persistence.
            singleton: The type has exactly one instance.
            registry: Registry to register into. Defaults to ``default_registry``.
            kwargs: Additional keyword arguments.
        """
        super().__init_subclass__(**kwargs)

        # Resolve each setting: parameter > class variable
        if python_type is not None:
            cls.python_type = python_type
        if tag is not None:
            cls.tag = tag
        if uses_id is not None:
            cls.uses_id = uses_id
        if uses_params is not None:
            cls.uses_params = uses_params
        if attrs is not None:
            cls.attrs = tuple(attrs)
        if singleton is not None:
            cls.singleton = singleton

        # An inherited python_type belongs to the parent's registration
        if cls.__dict__.get("python_type") is None:
            return

        if registry is None:
            from mrdi.registry import default_registry

            registry = default_registry

        registry.register(
            cls.python_type,
            cls.tag,
            uses_id=cls.uses_id,
            uses_params=cls.uses_params,
            attrs=cls.attrs,
            codec=cls(),
            singleton=cls.singleton,
        )

    @abstractmethod
    def save_object(self, s: SerializerState, obj: Any) -> Node:
        """
        Encode the payload (``data``) of ``obj``.

        Nested values should go through ``s.save_typed_field`` (inside ``s.enter(key)``) so that
        shared objects become references and errors carry their document path.

        Args:
            s: The serializer session.
            obj: The instance to encode.

        Returns:
            A JSON-compatible node.
        """
        ...

    @abstractmethod
    def load_object(
        self,
        s: DeserializerState,
        cls: type,
        data: Node,
        params: Any = None,
    ) -> Any:
        """
        Decode a payload back into an instance of ``cls``.

        Args:
            s: The deserializer session.
            cls: The concrete type to construct.
            data: The ``data`` node (None for types written tag-only).
            params: Construction parameters for ``uses_params`` types; for other types the
                caller-supplied override (if any), which containers pass on to their elements.

        Returns:
            The reconstructed instance.
        """
        ...

    def save_type_params(self, s: SerializerState, obj: Any) -> Node:
        """
        Encode the construction parameters of a ``uses_params`` instance.

        The result is written as ``{"name": <tag>, "params": <result>}`` in place of the bare
        tag. Parent objects are usually written with ``s.save_typed_field`` so that id-based
        parents become references.
        """
        raise SerializationError(f"{type(self).__name__} does not implement save_type_params")

    def load_type_params(self, s: DeserializerState, type_node: Node) -> Any:
        """Decode construction parameters from the structured type node."""
        return s.load_params_node(type_node)


__all__ = ["TypeCodec"]
