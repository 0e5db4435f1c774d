"""File-based driver using fsspec."""

from __future__ import annotations

import logging
import os
import posixpath
import re
import uuid
from pathlib import PureWindowsPath
from typing import TYPE_CHECKING

from typing_extensions import override

from mrdi.drivers.base import Driver

if TYPE_CHECKING:
    from fsspec import AbstractFileSystem

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".tmp"


class FileDriver(Driver):
    """
    File-based implementation of the Driver ABC using fsspec.

    Supports both local and remote filesystems (s3://, gcs://, etc.) via fsspec.

    Every save writes to a temporary sibling of the target first and then moves it into place
    (``os.replace`` on local filesystems), so a crash or an error mid-write never truncates an
    existing file; the temporary file is removed when the write fails.

    Args:
        base_path: Base directory/prefix for storage (e.g., "/tmp/storage" or
            "s3://my-bucket/storage").
        fs: Optional fsspec AbstractFileSystem instance to use. If not provided, it will be created
            based on the protocol in base_path.

    Examples:
        >>> import tempfile
        >>> driver = FileDriver(tempfile.mkdtemp())
        >>> _ = driver.save("answer.mrdi", b"42")
        >>> driver.load("answer.mrdi")
        b'42'
        >>>
        >>> # S3
        >>> driver = FileDriver("s3://my-bucket/storage")  # doctest: +SKIP
    """

    def __init__(self, base_path: str, fs: AbstractFileSystem | None = None) -> None:
        from fsspec import filesystem
        from fsspec.utils import get_protocol

        self.base_path = base_path.rstrip("/") or "/"
        self._protocol = get_protocol(base_path)

        if fs is None:
            self.fs = filesystem(self._protocol)
        else:
            self.fs = fs

        self.fs.mkdirs(self.base_path, exist_ok=True)

    @property
    @override
    def is_local(self) -> bool:
        """Plain paths (no protocol) and the ``file`` protocol are local."""
        return self._protocol in ("", "file")

    def _full_path(self, key: str) -> str:
        """
        Gets the full path for the specified key.

        Relative keys are resolved under `base_path`. Absolute local paths (POSIX, Windows drive,
        and UNC) bypass `base_path`. URI keys are only accepted when they use the same protocol as
        `base_path` (or `file://` for local stores); mixed protocols raise `ValueError`.
        """
        key_protocol = self._get_uri_protocol(key)

        if key_protocol is not None:
            if self._is_local_protocol(key_protocol) and self.is_local:
                return key

            if key_protocol == self._protocol:
                return key

            raise ValueError(
                f"Key protocol '{key_protocol}' does not match driver protocol "
                f"'{self._protocol or 'file'}'"
            )

        if self._is_absolute_local_path(key):
            return key

        return f"{self.base_path.rstrip('/')}/{key}"

    @staticmethod
    def _is_local_protocol(protocol: str) -> bool:
        return protocol in ("", "file")

    @staticmethod
    def _get_uri_protocol(key: str) -> str | None:
        match = re.match(r"^([a-zA-Z][a-zA-Z0-9+.-]*)://", key)
        if match:
            return match.group(1)
        return None

    @staticmethod
    def _is_absolute_local_path(key: str) -> bool:
        return key.startswith("/") or PureWindowsPath(key).is_absolute()

    @override
    def save(self, key: str, data: bytes) -> str:
        path = self._full_path(key)

        # Create parent directories
        parent = posixpath.dirname(path.replace("\\", "/"))
        if parent:
            self.fs.mkdirs(parent, exist_ok=True)

        temp_path = f"{path}.{uuid.uuid4().hex[:12]}{TEMP_SUFFIX}"
        try:
            with self.fs.open(temp_path, "wb") as f:
                f.write(data)  # type: ignore
            self._replace(temp_path, path)
        except BaseException:
            if self.fs.exists(temp_path):
                self.fs.rm(temp_path)
            raise

        logger.debug(f"Wrote {len(data)} bytes to {path}")
        return path

    def _replace(self, source: str, target: str) -> None:
        """Move ``source`` over ``target`` in one step."""
        if self.is_local:
            from fsspec.core import strip_protocol

            os.replace(strip_protocol(source), strip_protocol(target))
        else:
            self.fs.mv(source, target)

    @override
    def load(self, key: str) -> bytes:
        path = self._full_path(key)

        if not self.fs.exists(path):
            raise KeyError(f"Key '{key}' not found")

        with self.fs.open(path, "rb") as f:
            return f.read()  # type: ignore[return-value]

    @override
    def exists(self, key: str) -> bool:
        return self.fs.exists(self._full_path(key))

    @override
    def delete(self, key: str) -> None:
        path = self._full_path(key)
        if self.fs.exists(path):
            self.fs.rm(path)

    @override
    def list_keys(self) -> list[str]:
        all_files = self.fs.glob(f"{self.base_path.rstrip('/')}/**", detail=False)

        # fsspec glob returns forward-slash paths even where base_path uses backslashes
        normalized_base = self.base_path.replace("\\", "/").rstrip("/")
        prefix_len = len(normalized_base) + 1

        keys = []
        for f in all_files:
            if self.fs.isdir(f):
                continue

            normalized_f = str(f).replace("\\", "/")
            if normalized_f.startswith(normalized_base) and not normalized_f.endswith(TEMP_SUFFIX):
                key = normalized_f[prefix_len:]
                if key:
                    keys.append(key)

        return sorted(keys)
