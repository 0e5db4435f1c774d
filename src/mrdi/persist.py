"""
Save and load orchestrators: whole documents in and out of files, streams and dicts.

A saved document is one JSON object::

    {
      "_ns": {"mrdi": ["https://pypi.org/project/mrdi/", "1.2.0"]},
      "_type": "Polynomial" | {"name": ..., "params": ...},
      "data": ...,
      "attrs": {...},          # whitelisted attributes, optional
      "id": "<uuid>",          # root is a shared object, optional
      "_refs": {"<uuid>": {typed definition}, ...},
      "meta": {...}            # opaque metadata, optional
    }
"""

from __future__ import annotations

import json
import logging
import os
import warnings
from collections.abc import Mapping
from typing import IO, Any

from mrdi.drivers.file import FileDriver
from mrdi.exceptions import DeserializationError
from mrdi.exceptions import MrdiError
from mrdi.exceptions import NamespaceError
from mrdi.exceptions import TypeMismatchError
from mrdi.exceptions import VersionSkewWarning
from mrdi.metadata import MetaData
from mrdi.metadata import meta_block
from mrdi.plugins.manager import get_hook
from mrdi.references import ReferenceStore
from mrdi.references import get_global_reference_store
from mrdi.registry import TypeRegistry
from mrdi.settings import MrdiSettings
from mrdi.settings import get_global_settings
from mrdi.state import DeserializerState
from mrdi.state import SerializerState
from mrdi.upgrades import UpgradePipeline
from mrdi.upgrades import default_pipeline
from mrdi.utils import is_basic_value
from mrdi.utils import try_parse_uuid
from mrdi.versions import VERSION_NUMBER
from mrdi.versions import current_version
from mrdi.versions import document_version
from mrdi.versions import namespace_header

logger = logging.getLogger(__name__)

Sink = str | os.PathLike[str] | IO[str]
Source = str | os.PathLike[str] | IO[str]


# region Save


def save_document(
    obj: Any,
    metadata: MetaData | Mapping[str, Any] | None = None,
    with_attrs: bool = True,
    *,
    registry: TypeRegistry | None = None,
    store: ReferenceStore | None = None,
    settings: MrdiSettings | None = None,
) -> dict[str, Any]:
    """
    Encode ``obj`` as an in-memory document.

    Args:
        obj: Root object; its type (and the types it contains) must be registered.
        metadata: Optional metadata written verbatim under ``meta``.
        with_attrs: Whether whitelisted attributes are written.
        registry: Registry to resolve types in, defaults to the global registry.
        store: Reference store for shared-object ids, defaults to the global store.
        settings: Settings to use, defaults to the global settings.

    Returns:
        The JSON-compatible document.

    Raises:
        UnsupportedTypeError: If a reachable object has no registered type.
        SerializationError: If a codec fails.

    Examples:
        >>> from mrdi.references import ReferenceStore
        >>> doc = save_document([1, "a"], store=ReferenceStore())
        >>> doc["_type"], doc["data"]
        ('List', [1, {'_type': 'String', 'data': 'a'}])
    """
    settings = settings or get_global_settings()
    state = SerializerState(registry, store, with_attrs, settings)
    get_hook().before_save(obj=obj)

    document: dict[str, Any] = {"_ns": namespace_header(settings)}
    document.update(state.save_typed_object(obj))

    root_ref = None
    if not is_basic_value(obj) and state.registry.get_spec(type(obj)).uses_id:
        root_ref = state.store.assign(obj)
        document["id"] = str(root_ref)

    refs = state.save_refs(exclude=root_ref)
    if refs:
        document[settings.refs_key] = refs

    block = meta_block(metadata)
    if block:
        document["meta"] = block

    logger.debug(f"Encoded {type(obj).__qualname__} with {len(refs)} reference(s)")
    return document


def save(
    sink: Sink,
    obj: Any,
    metadata: MetaData | Mapping[str, Any] | None = None,
    with_attrs: bool = True,
    *,
    registry: TypeRegistry | None = None,
    store: ReferenceStore | None = None,
    settings: MrdiSettings | None = None,
) -> str | None:
    """
    Save ``obj`` to a file or a writable text stream.

    Files are written through a temporary sibling and moved into place, so an interrupted save
    never leaves a truncated document behind.

    Args:
        sink: Path (local or any fsspec URL) or writable text stream.
        obj: Root object.
        metadata: Optional metadata written verbatim under ``meta``.
        with_attrs: Whether whitelisted attributes are written.
        registry: Registry to resolve types in, defaults to the global registry.
        store: Reference store for shared-object ids, defaults to the global store.
        settings: Settings to use, defaults to the global settings.

    Returns:
        The path written to, or None for streams.

    Examples:
        >>> import io
        >>> buffer = io.StringIO()
        >>> save(buffer, 42, metadata={"name": "42"})
        >>> load(io.StringIO(buffer.getvalue()))
        42
    """
    settings = settings or get_global_settings()
    document = save_document(
        obj, metadata, with_attrs, registry=registry, store=store, settings=settings
    )
    text = json.dumps(document, indent=settings.indent, ensure_ascii=False)

    if hasattr(sink, "write"):
        sink.write(text)  # type: ignore[union-attr]
        return None

    driver, key = _driver_for(os.fspath(sink))  # type: ignore[arg-type]
    return driver.save(key, text.encode("utf-8"))


# region Load


def load_document(
    document: Mapping[str, Any],
    params: Any = None,
    type: type | None = None,  # noqa: A002
    with_attrs: bool = True,
    *,
    registry: TypeRegistry | None = None,
    store: ReferenceStore | None = None,
    settings: MrdiSettings | None = None,
    pipeline: UpgradePipeline | None = None,
) -> Any:
    """
    Decode an in-memory document.

    Args:
        document: Parsed JSON document.
        params: Construction parameters for the root object (for containers, for their
            elements), used instead of the stored ones.
        type: Expected root type. The stored type must be a subclass or a superclass of it.
        with_attrs: Whether stored attributes are applied.
        registry: Registry to resolve tags in, defaults to the global registry.
        store: Reference store for shared-object ids, defaults to the global store.
        settings: Settings to use, defaults to the global settings.
        pipeline: Upgrade pipeline for older documents, defaults to the built-in one.

    Returns:
        The decoded object. If the document's root ``id`` is already bound in the store, the
        bound object is returned without decoding, after the same check against ``type``.

    Raises:
        NamespaceError: If the namespace header is missing or foreign and unhandled.
        UnsupportedVersionError: If the document is too old to upgrade.
        TypeMismatchError: If ``type`` is incompatible with the stored type.
        DeserializationError: For any other malformed input.
    """
    settings = settings or get_global_settings()
    store = store if store is not None else get_global_reference_store()
    pipeline = pipeline if pipeline is not None else default_pipeline

    if not isinstance(document, Mapping):
        raise DeserializationError(f"Expected a JSON object, got {_type_name(document)}")

    root_ref = try_parse_uuid(document.get("id"))
    if root_ref is not None and root_ref in store:
        logger.debug(f"Document id {root_ref} already bound, returning the bound object")
        obj = store.get_object(root_ref)
        if type is not None:
            _check_type(obj.__class__, type, settings)
        return obj

    namespace = document.get("_ns")
    if not isinstance(namespace, Mapping):
        raise NamespaceError("Namespace is missing", path=("_ns",))
    if settings.producer not in namespace:
        foreign = get_hook().load_foreign_document(
            namespace=dict(namespace), document=dict(document)
        )
        if foreign is not None:
            return foreign
        raise NamespaceError(f"Not a {settings.producer} document", path=("_ns",))

    file_version = document_version(document, settings.producer)
    try:
        if file_version < VERSION_NUMBER:
            logger.debug(f"Upgrading document from version {file_version} to {VERSION_NUMBER}")
            document = pipeline.upgrade(file_version, document, settings)
        elif file_version > VERSION_NUMBER:
            message = (
                f"Document was written by a newer version ({file_version}) than the running "
                f"one ({VERSION_NUMBER}); loading may fail or lose information"
            )
            logger.warning(message)
            warnings.warn(message, VersionSkewWarning, stacklevel=2)

        obj = _decode_root(document, params, type, with_attrs, registry, store, settings)
    except MrdiError as err:
        err.file_version = str(file_version)
        err.current_version = str(current_version(settings))
        if file_version.dev:
            logger.warning(
                f"Failed to load a document written by development build {file_version}; "
                f"commit '{file_version.commit or 'unknown'}' may use an unreleased layout"
            )
        raise

    get_hook().after_load(obj=obj, document=dict(document))
    return obj


def load(
    source: Source,
    params: Any = None,
    type: type | None = None,  # noqa: A002
    with_attrs: bool = True,
    *,
    registry: TypeRegistry | None = None,
    store: ReferenceStore | None = None,
    settings: MrdiSettings | None = None,
    pipeline: UpgradePipeline | None = None,
) -> Any:
    """
    Load the object stored in a file or readable text stream.

    See `load_document` for the meaning of the arguments.

    Raises:
        FileNotFoundError: If ``source`` is a path that does not exist.
        DeserializationError: If the content is not valid JSON or not a valid document.

    Examples:
        >>> import os, tempfile
        >>> path = os.path.join(tempfile.mkdtemp(), "fourtytwo.mrdi")
        >>> _ = save(path, 42)
        >>> load(path, type=int)
        42
    """
    if hasattr(source, "read"):
        text = source.read()  # type: ignore[union-attr]
    else:
        driver, key = _driver_for(os.fspath(source))  # type: ignore[arg-type]
        try:
            text = driver.load(key).decode("utf-8")
        except KeyError as err:
            raise FileNotFoundError(key) from err

    try:
        document = json.loads(text)
    except json.JSONDecodeError as err:
        raise DeserializationError(f"Malformed JSON: {err}") from err

    return load_document(
        document,
        params,
        type,
        with_attrs,
        registry=registry,
        store=store,
        settings=settings,
        pipeline=pipeline,
    )


# region Helpers


def _decode_root(
    document: Mapping[str, Any],
    params: Any,
    expected: type | None,
    with_attrs: bool,
    registry: TypeRegistry | None,
    store: ReferenceStore,
    settings: MrdiSettings,
) -> Any:
    refs = document.get(settings.refs_key) or {}
    if not isinstance(refs, Mapping):
        raise DeserializationError(
            f"Expected an object, got {_type_name(refs)}", path=(settings.refs_key,)
        )

    state = DeserializerState(refs, params, registry, store, with_attrs, settings)
    if expected is None:
        return state.load_typed_object(document, params=params)

    _check_type(state.decode_type(document), expected, settings)
    return state.load_typed_object_as(expected, document, params)


def _check_type(stored: type, expected: type, settings: MrdiSettings) -> None:
    if not (issubclass(stored, expected) or issubclass(expected, stored)):
        raise TypeMismatchError(
            f"Type in file doesn't match target type: '{stored.__qualname__}' is neither a "
            f"subtype nor a supertype of '{expected.__qualname__}'",
            path=(settings.type_key,),
        )


def _driver_for(path: str) -> tuple[FileDriver, str]:
    """Returns a driver rooted at the parent of ``path`` and the key to use with it."""
    from fsspec.core import strip_protocol
    from fsspec.utils import get_protocol

    if get_protocol(path) in ("", "file"):
        local = os.path.abspath(strip_protocol(path))
        return FileDriver(os.path.dirname(local)), local

    parent, _, _ = path.rpartition("/")
    return FileDriver(parent), path


def _type_name(value: Any) -> str:
    return value.__class__.__name__
