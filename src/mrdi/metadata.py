"""Document metadata: the free-form ``meta`` block written next to the payload."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import asdict
from dataclasses import dataclass
from typing import IO, Any


@dataclass(frozen=True)
class MetaData:
    """
    Descriptive information stored in a document's ``meta`` block.

    The block is written as plain JSON and never decoded as typed data.

    Examples:
        >>> MetaData(name="42").to_dict()
        {'name': '42'}
    """

    author_orcid: str | None = None
    name: str | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, str]:
        """Returns the populated fields, omitting the unset ones."""
        return {key: value for key, value in asdict(self).items() if value is not None}


def metadata(**kwargs: Any) -> MetaData:
    """
    Convenience constructor for `MetaData`.

    Examples:
        >>> metadata(author_orcid="0000-0000-0000-0042", name="42")
        MetaData(author_orcid='0000-0000-0000-0042', name='42', description=None)
    """
    return MetaData(**kwargs)


def meta_block(meta: MetaData | Mapping[str, Any] | None) -> dict[str, Any] | None:
    """Normalize the ``metadata`` argument of ``save`` to the JSON block (None if empty)."""
    if meta is None:
        return None
    block = meta.to_dict() if isinstance(meta, MetaData) else dict(meta)
    return block or None


def read_metadata(source: str | os.PathLike[str] | IO[str]) -> dict[str, Any]:
    """
    Read the ``meta`` block of a stored document without decoding its payload.

    Args:
        source: Path (local or any fsspec URL) or readable text stream.

    Returns:
        The metadata mapping, empty if the document carries none.
    """
    if hasattr(source, "read"):
        document = json.load(source)  # type: ignore[arg-type]
    else:
        import fsspec

        with fsspec.open(os.fspath(source), "r", encoding="utf-8") as f:
            document = json.load(f)  # type: ignore[arg-type]
    meta = document.get("meta") if isinstance(document, Mapping) else None
    return dict(meta) if isinstance(meta, Mapping) else {}
