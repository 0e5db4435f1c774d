"""Driver implementations for reading and writing bytes to various storage backends."""

from mrdi.drivers.base import Driver
from mrdi.drivers.file import FileDriver

__all__ = [
    "Driver",
    "FileDriver",
]
