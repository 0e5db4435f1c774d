"""
Reference store: the identity map between stable UUIDs and materialized objects.

Objects of ``uses_id`` types are written once and referred to by UUID. The store remembers which
UUID every such object was given (on save) or was loaded from (on load), so that saving the same
object twice yields the same UUID and loading a document that refers to an already materialized
object reuses it.

Objects are tracked by identity, never by equality: two equal but distinct objects get distinct
UUIDs. Entries are never evicted: the store is an unbounded cache for the lifetime of the process
(or of the session that owns it).
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Any
from uuid import UUID

from mrdi.utils import build_repr

logger = logging.getLogger(__name__)

_GLOBAL_REFERENCE_STORE: ReferenceStore | None = None
_STORE_LOCK = threading.RLock()


class ReferenceStore:
    """
    Bidirectional UUID <-> object map.

    Every operation is atomic (guarded by an internal lock), so one store may be shared by
    threads; a single save or load session should still run on one thread.

    Invariants:
        - A UUID always resolves to the same object once bound
        - Once assigned, an object's UUID never changes (bindings are first-writer-wins)

    Examples:
        >>> store = ReferenceStore()
        >>> ring = object()
        >>> ref = store.assign(ring)
        >>> store.assign(ring) == ref
        True
        >>> store.get_object(ref) is ring
        True
    """

    def __init__(self) -> None:
        self._id_to_obj: dict[UUID, Any] = {}
        # Keyed by id(); holding the object keeps its id() from being reused
        self._obj_to_id: dict[int, tuple[Any, UUID]] = {}
        self._lock = threading.RLock()

    def get_id(self, obj: Any) -> UUID | None:
        """Return the UUID bound to ``obj``, or None."""
        with self._lock:
            entry = self._obj_to_id.get(id(obj))
            return entry[1] if entry is not None and entry[0] is obj else None

    def get_object(self, ref: UUID) -> Any:
        """
        Return the object bound to ``ref``.

        Raises:
            KeyError: If ``ref`` is not bound.
        """
        with self._lock:
            return self._id_to_obj[ref]

    def assign(self, obj: Any) -> UUID:
        """Return the UUID of ``obj``, minting and binding a new one if it has none."""
        with self._lock:
            ref = self.get_id(obj)
            if ref is None:
                ref = uuid.uuid4()
                self.bind(ref, obj)
            return ref

    def bind(self, ref: UUID, obj: Any) -> Any:
        """
        Bind ``ref`` and ``obj`` to each other.

        Existing bindings win on both sides: a bound UUID keeps its object and an object that
        already has a UUID keeps it.

        Returns:
            The object ``ref`` resolves to after the call.
        """
        with self._lock:
            bound = self._id_to_obj.setdefault(ref, obj)
            if bound is not obj:
                logger.debug(f"Reference {ref} already bound; keeping existing object")
            if self.get_id(obj) is None:
                self._obj_to_id[id(obj)] = (obj, ref)
            return bound

    def clear(self) -> None:
        """Drop every binding."""
        with self._lock:
            self._id_to_obj.clear()
            self._obj_to_id.clear()

    def __contains__(self, ref: object) -> bool:
        return ref in self._id_to_obj

    def __len__(self) -> int:
        return len(self._id_to_obj)

    def __repr__(self) -> str:
        return build_repr("ReferenceStore", kwargs={"size": len(self)})


def get_global_reference_store() -> ReferenceStore:
    """
    Get the process-wide reference store (thread-safe).

    Used by ``save``/``load`` when no session store is passed, which keeps UUIDs stable across
    unrelated calls in one process.
    """
    with _STORE_LOCK:
        global _GLOBAL_REFERENCE_STORE
        if _GLOBAL_REFERENCE_STORE is None:
            _GLOBAL_REFERENCE_STORE = ReferenceStore()
        return _GLOBAL_REFERENCE_STORE


def set_global_reference_store(store: ReferenceStore) -> None:
    """
    Replace the process-wide reference store (thread-safe).

    Args:
        store (ReferenceStore): Store to use from now on.
    """
    with _STORE_LOCK:
        global _GLOBAL_REFERENCE_STORE
        _GLOBAL_REFERENCE_STORE = store


__all__ = [
    "ReferenceStore",
    "get_global_reference_store",
    "set_global_reference_store",
]
