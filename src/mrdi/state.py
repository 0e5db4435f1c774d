"""
Serializer and deserializer sessions: the recursive typed-object engine.

A session is created per ``save``/``load`` call and threaded through every codec hook. It owns
the per-session state (collected references, the current document path, parameter overrides,
whether attributes are included) and points at the registry and reference store to use.

Typed nodes look like::

    {"_type": "Point", "data": {"x": 3, "y": 4}}
    {"_type": {"name": "Polynomial", "params": "<uuid of the parent ring>"}, "data": [1, 0, 2]}
    {"_type": "RationalField"}                      # singleton, no payload
    "<uuid>"                                        # shared (uses_id) object, by reference
    42                                              # basic scalar, bare

Both directions are depth-first recursions over the object graph / document tree. Nesting is
counted in typed nodes (references included) and bounded by ``MrdiSettings.max_depth``; every
step records its key so errors point at the exact node that failed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from collections.abc import Mapping
from contextlib import contextmanager
from typing import Any
from uuid import UUID

from mrdi.exceptions import DepthLimitError
from mrdi.exceptions import DeserializationError
from mrdi.exceptions import MissingFieldError
from mrdi.exceptions import MissingParamError
from mrdi.exceptions import MrdiError
from mrdi.exceptions import PathKey
from mrdi.exceptions import SerializationError
from mrdi.exceptions import TypeUndeterminableError
from mrdi.exceptions import UnknownReferenceError
from mrdi.references import ReferenceStore
from mrdi.references import get_global_reference_store
from mrdi.registry import TypeRegistry
from mrdi.registry import TypeSpec
from mrdi.registry import default_registry
from mrdi.settings import MrdiSettings
from mrdi.settings import get_global_settings
from mrdi.utils import BASIC_TYPES
from mrdi.utils import is_basic_value
from mrdi.utils import try_parse_uuid

logger = logging.getLogger(__name__)

Node = Any
"""A JSON-compatible document node: dict, list, str, int, float, bool or None."""


class _Session:
    """State shared by both directions: registry, store, settings and the current path."""

    _error_type: type[MrdiError] = MrdiError

    def __init__(
        self,
        registry: TypeRegistry | None = None,
        store: ReferenceStore | None = None,
        with_attrs: bool = True,
        settings: MrdiSettings | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry
        self.store = store if store is not None else get_global_reference_store()
        self.with_attrs = with_attrs
        self.settings = settings or get_global_settings()
        self.path: list[PathKey] = []
        self.depth = 0

    @property
    def type_key(self) -> str:
        return self.settings.type_key

    @property
    def refs_key(self) -> str:
        return self.settings.refs_key

    @contextmanager
    def enter(self, key: PathKey) -> Iterator[None]:
        """
        Descend into ``key`` for the duration of the block.

        Errors raised inside are annotated with the innermost path; exceptions that are not
        ``MrdiError`` (e.g. raised by a codec) are wrapped in the session's error type.
        """
        self.path.append(key)
        try:
            yield
        except MrdiError as err:
            if err.path is None:
                err.path = tuple(self.path)
            raise
        except Exception as err:
            raise self._error_type(
                f"{type(err).__name__}: {err}", path=tuple(self.path)
            ) from err
        finally:
            self.path.pop()

    @contextmanager
    def nested(self) -> Iterator[None]:
        """Count one typed node of nesting; raises ``DepthLimitError`` beyond ``max_depth``."""
        if self.depth >= self.settings.max_depth:
            raise DepthLimitError(
                f"Nesting deeper than max_depth={self.settings.max_depth}", path=tuple(self.path)
            )
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1


class SerializerState(_Session):
    """
    Encoding session.

    Attributes:
        refs: UUIDs of every shared object referenced so far, in first-reference order.
        with_attrs: Whether whitelisted attributes are written.
    """

    _error_type = SerializationError

    def __init__(
        self,
        registry: TypeRegistry | None = None,
        store: ReferenceStore | None = None,
        with_attrs: bool = True,
        settings: MrdiSettings | None = None,
    ) -> None:
        super().__init__(registry, store, with_attrs, settings)
        self.refs: list[UUID] = []
        self._seen_refs: set[UUID] = set()

    def save_typed_object(self, obj: Any) -> dict[str, Node]:
        """
        Encode ``obj`` as a typed node (type tag, payload and attributes).

        Basic scalars produce a payload-only node ``{"data": value}``.
        """
        if is_basic_value(obj):
            return {"data": obj}

        spec = self.registry.get_spec(type(obj))
        type_key = self.type_key
        node: dict[str, Node] = {}

        with self.nested():
            if spec.uses_params:
                with self.enter(type_key), self.enter("params"):
                    params = spec.codec.save_type_params(self, obj)
                node[type_key] = {"name": spec.tag, "params": params}
                with self.enter("data"):
                    node["data"] = spec.codec.save_object(self, obj)
            elif spec.singleton:
                node[type_key] = spec.tag
            else:
                node[type_key] = spec.tag
                with self.enter("data"):
                    node["data"] = spec.codec.save_object(self, obj)

            attrs = self.save_attrs(obj, spec)
        if attrs:
            node["attrs"] = attrs
        return node

    def save_typed_field(self, obj: Any) -> Node:
        """
        Encode ``obj`` for use as a value inside a payload.

        Shared (``uses_id``) objects become a bare UUID string, basic scalars stay bare, anything
        else becomes a typed node.
        """
        if is_basic_value(obj):
            return obj
        spec = self.registry.get_spec(type(obj))
        if spec.uses_id:
            return self.save_as_ref(obj)
        return self.save_typed_object(obj)

    def save_as_ref(self, obj: Any) -> str:
        """Return the UUID string of ``obj`` (minting one if needed) and record the reference."""
        ref = self.store.assign(obj)
        if ref not in self._seen_refs:
            self._seen_refs.add(ref)
            self.refs.append(ref)
        return str(ref)

    def save_attrs(self, obj: Any, spec: TypeSpec | None = None) -> dict[str, Node] | None:
        """
        Encode the whitelisted attributes present on ``obj``.

        Attributes the object does not have are skipped, never defaulted. Returns None when
        attributes are disabled for this session or none are present.
        """
        if not self.with_attrs:
            return None
        spec = spec or self.registry.get_spec(type(obj))
        if not spec.attrs:
            return None

        attrs: dict[str, Node] = {}
        with self.enter("attrs"):
            for name in spec.attrs:
                try:
                    value = getattr(obj, name)
                except AttributeError:
                    continue
                with self.enter(name):
                    attrs[name] = self.save_typed_field(value)
        return attrs or None

    def save_refs(self, exclude: UUID | None = None) -> dict[str, Node]:
        """
        Build the reference section: one typed definition per referenced UUID.

        Objects referenced while encoding a definition are appended to ``refs`` and defined too.
        ``exclude`` (the root's own id) is skipped since the root node defines it.
        """
        section: dict[str, Node] = {}
        index = 0
        with self.enter(self.refs_key):
            while index < len(self.refs):
                ref = self.refs[index]
                index += 1
                if ref == exclude:
                    continue
                key = str(ref)
                with self.enter(key):
                    section[key] = self.save_typed_object(self.store.get_object(ref))
        return section


class DeserializerState(_Session):
    """
    Decoding session.

    Attributes:
        refs: The document's reference section (UUID string -> typed definition).
        params: Caller-supplied parameter override for the root object.
        with_attrs: Whether stored attributes are applied.
    """

    _error_type = DeserializationError

    def __init__(
        self,
        refs: Mapping[str, Node] | None = None,
        params: Any = None,
        registry: TypeRegistry | None = None,
        store: ReferenceStore | None = None,
        with_attrs: bool = True,
        settings: MrdiSettings | None = None,
    ) -> None:
        super().__init__(registry, store, with_attrs, settings)
        self.refs: Mapping[str, Node] = refs or {}
        self.params = params
        self._loading: set[UUID] = set()

    def decode_type(self, node: Node) -> type:
        """
        Determine the Python type a node decodes to.

        Raises:
            UnknownReferenceError: If the node is a reference that cannot be resolved.
            UnsupportedTypeError: If the node names an unregistered tag.
            TypeUndeterminableError: If no type information can be found.
        """
        ref = try_parse_uuid(node)
        if ref is not None:
            if ref in self.store:
                return type(self.store.get_object(ref))
            return self.decode_type(self._ref_definition(node, ref))

        if isinstance(node, str):
            return self.registry.resolve_type(node)

        if isinstance(node, Mapping):
            if self.type_key in node:
                with self.enter(self.type_key):
                    return self.decode_type(node[self.type_key])
            if "name" in node:
                with self.enter("name"):
                    return self.decode_type(node["name"])
            if "data" in node and is_basic_value(node["data"]):
                return type(node["data"])
        elif is_basic_value(node):
            return type(node)

        raise TypeUndeterminableError(f"Cannot determine type of node: {_preview(node)}")

    def load_typed_object(self, node: Node, key: PathKey | None = None, params: Any = None) -> Any:
        """
        Decode a typed node, or with ``key`` the typed value stored at ``node[key]``.

        Args:
            node: A typed node, or the container holding one when ``key`` is given.
            key: Field name or index of the value inside ``node``.
            params: Parameter override, used instead of stored parameters.

        Raises:
            MissingFieldError: If ``key`` is absent from ``node``.
            UnknownReferenceError: If a reference is neither bound nor defined in the document.
        """
        if key is None:
            return self._load_node(node, params)
        child = self._child(node, key)
        with self.enter(key):
            return self._load_node(child, params)

    def load_typed_object_as(self, cls: type, node: Node, params: Any = None) -> Any:
        """
        Decode a typed node using ``cls`` instead of the stored type.

        If ``cls`` is not registered itself (e.g. an abstract base of the stored type), the
        stored type's registration is used.
        """
        if cls in BASIC_TYPES:
            return self._child(node, "data") if isinstance(node, Mapping) else node
        if self.registry.is_registered(cls):
            spec = self.registry.get_spec(cls)
        else:
            spec = self.registry.get_spec(self.decode_type(node))
        with self.nested():
            return self._finish(spec, node, self._construct(spec, node, params))

    def load_ref(self, ref_node: str) -> Any:
        """
        Resolve a UUID reference: the store first, then the document's reference section.

        Objects loaded from the reference section are bound into the store under their UUID.
        """
        ref = try_parse_uuid(ref_node)
        if ref is None:
            raise UnknownReferenceError(f"Not a reference: {_preview(ref_node)}")
        if ref in self.store:
            return self.store.get_object(ref)

        definition = self._ref_definition(ref_node, ref)
        if ref in self._loading:
            raise DeserializationError(f"Cyclic reference '{ref_node}'")

        self._loading.add(ref)
        outer_path = self.path
        self.path = [self.refs_key]
        try:
            with self.enter(str(ref)):
                obj = self._load_node(definition, None)
        finally:
            self.path = outer_path
            self._loading.discard(ref)

        logger.debug(f"Loaded reference {ref} as {type(obj).__qualname__}")
        return self.store.bind(ref, obj)

    def load_params_node(self, type_node: Node) -> Any:
        """
        Decode the ``params`` of a structured type node.

        ``params`` is either a single typed value (often a reference to a parent) or an object
        mapping names to typed values.
        """
        if not isinstance(type_node, Mapping) or "params" not in type_node:
            raise MissingParamError(f"Type node carries no params: {_preview(type_node)}")
        params = type_node["params"]
        with self.enter("params"):
            if isinstance(params, Mapping) and not (
                self.type_key in params or "name" in params or "data" in params
            ):
                return {key: self.load_typed_object(params, key) for key in params}
            return self._load_node(params, None)

    def load_attrs(self, obj: Any, node: Node, spec: TypeSpec | None = None) -> None:
        """
        Apply stored attributes to ``obj``.

        Only attributes in the type's whitelist are applied; unknown keys are ignored so that
        documents from newer producers still load.
        """
        if not self.with_attrs or not isinstance(node, Mapping) or not node.get("attrs"):
            return
        spec = spec or self.registry.get_spec(type(obj))
        attrs = node["attrs"]
        with self.enter("attrs"):
            if not isinstance(attrs, Mapping):
                raise DeserializationError(f"Expected an object, got {type(attrs).__name__}")
            for name in attrs:
                if name not in spec.attrs:
                    logger.debug(f"Ignoring unknown attribute '{name}' on '{spec.tag}'")
                    continue
                setattr(obj, name, self.load_typed_object(attrs, name))

    def _load_node(self, node: Node, params: Any) -> Any:
        if isinstance(node, str):
            if try_parse_uuid(node) is not None:
                return self.load_ref(node)
            spec = self.registry.get_spec_by_tag(node)
            if spec.singleton:
                return spec.type()
            raise TypeUndeterminableError(f"Bare tag '{node}' without a payload")

        if is_basic_value(node):
            return node
        if not isinstance(node, Mapping):
            raise TypeUndeterminableError(f"Cannot determine type of node: {_preview(node)}")

        cls = self.decode_type(node)
        if cls in BASIC_TYPES:
            return node["data"]
        spec = self.registry.get_spec(cls)
        with self.nested():
            return self._finish(spec, node, self._construct(spec, node, params))

    def _construct(self, spec: TypeSpec, node: Node, params: Any) -> Any:
        if spec.singleton:
            return spec.type()

        if spec.uses_params and params is None:
            type_node = node.get(self.type_key) if isinstance(node, Mapping) else None
            with self.enter(self.type_key):
                params = spec.codec.load_type_params(self, type_node)
            if params is None:
                raise MissingParamError(f"No construction parameters for '{spec.tag}'")

        data = self._child(node, "data")
        with self.enter("data"):
            return spec.codec.load_object(self, spec.type, data, params)

    def _finish(self, spec: TypeSpec, node: Node, obj: Any) -> Any:
        self.load_attrs(obj, node, spec)
        if spec.uses_id and isinstance(node, Mapping) and "id" in node:
            ref = try_parse_uuid(node["id"])
            if ref is None:
                raise DeserializationError(
                    f"Invalid id: {_preview(node['id'])}", path=[*self.path, "id"]
                )
            obj = self.store.bind(ref, obj)
        return obj

    def _child(self, node: Node, key: PathKey) -> Node:
        if isinstance(node, Mapping):
            if key in node:
                return node[key]
        elif isinstance(node, list) and isinstance(key, int):
            if -len(node) <= key < len(node):
                return node[key]
        raise MissingFieldError(f"Missing field '{key}'", path=[*self.path, key])

    def _ref_definition(self, ref_node: str, ref: UUID) -> Node:
        definition = self.refs.get(ref_node)
        if definition is None:
            definition = self.refs.get(str(ref))
        if definition is None:
            raise UnknownReferenceError(f"Unknown reference '{ref_node}'")
        return definition


def _preview(node: Node, limit: int = 80) -> str:
    text = repr(node)
    return text if len(text) <= limit else f"{text[: limit - 3]}..."


__all__ = [
    "DeserializerState",
    "Node",
    "SerializerState",
]
