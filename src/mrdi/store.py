"""High-level store that saves and loads documents through a Driver."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from mrdi.exceptions import DeserializationError
from mrdi.persist import load_document
from mrdi.persist import save_document
from mrdi.settings import get_global_settings

if TYPE_CHECKING:
    from mrdi.drivers.base import Driver
    from mrdi.metadata import MetaData
    from mrdi.references import ReferenceStore
    from mrdi.registry import TypeRegistry
    from mrdi.settings import MrdiSettings


class DocumentStore:
    """
    High-level store that persists objects as documents under string keys.

    This wraps a Driver (like FileDriver) and adds document encoding and decoding on top of its
    raw byte storage. All documents saved through one store share its registry, reference store
    and settings, which default to the global ones.

    Examples:
        >>> import tempfile
        >>> from mrdi.references import ReferenceStore
        >>> store = DocumentStore(tempfile.mkdtemp(), store=ReferenceStore())
        >>> _ = store.save("numbers.mrdi", [1, 2, 3], metadata={"name": "numbers"})
        >>> store.load("numbers.mrdi")
        [1, 2, 3]
        >>> store.read_metadata("numbers.mrdi")
        {'name': 'numbers'}
    """

    def __init__(
        self,
        driver: Driver | str,
        *,
        registry: TypeRegistry | None = None,
        store: ReferenceStore | None = None,
        settings: MrdiSettings | None = None,
    ) -> None:
        """
        Initialize with a driver.

        Args:
            driver: A Driver instance or string path (creates FileDriver).
            registry: Registry to resolve types in.
            store: Reference store for shared-object ids.
            settings: Settings to use for every document.
        """
        if isinstance(driver, str):
            from mrdi.drivers import FileDriver

            self._driver: Driver = FileDriver(driver)
        else:
            self._driver = driver
        self._registry = registry
        self._store = store
        self._settings = settings

    @property
    def base_path(self) -> str:
        """Get base path (for FileDriver compatibility)."""
        return getattr(self._driver, "base_path", "")

    @property
    def is_local(self) -> bool:
        """Whether the underlying driver accesses local storage."""
        return getattr(self._driver, "is_local", True)

    def save(
        self,
        key: str,
        obj: Any,
        metadata: MetaData | Mapping[str, Any] | None = None,
        with_attrs: bool = True,
    ) -> str:
        """
        Encode ``obj`` and store the document under ``key``.

        Returns:
            The actual path where the document was stored.
        """
        settings = self._settings or get_global_settings()
        document = save_document(
            obj,
            metadata,
            with_attrs,
            registry=self._registry,
            store=self._store,
            settings=settings,
        )
        text = json.dumps(document, indent=settings.indent, ensure_ascii=False)
        return self._driver.save(key, text.encode("utf-8"))

    def load(
        self,
        key: str,
        params: Any = None,
        type: type | None = None,  # noqa: A002
        with_attrs: bool = True,
    ) -> Any:
        """
        Load and decode the document stored under ``key``.

        Raises:
            KeyError: If key not found.
        """
        return load_document(
            self._read(key),
            params,
            type,
            with_attrs,
            registry=self._registry,
            store=self._store,
            settings=self._settings,
        )

    def read_metadata(self, key: str) -> dict[str, Any]:
        """Returns the ``meta`` block of the document under ``key`` without decoding it."""
        meta = self._read(key).get("meta")
        return dict(meta) if isinstance(meta, Mapping) else {}

    def exists(self, key: str) -> bool:
        """Check if a key exists."""
        return self._driver.exists(key)

    def delete(self, key: str) -> None:
        """Delete stored data."""
        self._driver.delete(key)

    def list_keys(self) -> list[str]:
        """List all stored keys."""
        return self._driver.list_keys()

    def _read(self, key: str) -> dict[str, Any]:
        try:
            document = json.loads(self._driver.load(key).decode("utf-8"))
        except json.JSONDecodeError as err:
            raise DeserializationError(f"Malformed JSON in '{key}': {err}") from err
        if not isinstance(document, dict):
            raise DeserializationError(f"Expected a JSON object in '{key}'")
        return document
