"""mrdi: Persist typed, mutually-referencing Python object graphs as JSON documents."""

__version__ = "1.2.0"

from . import codecs
from . import settings
from . import upgrades
from .codecs import StructCodec
from .codecs import TypeCodec
from .exceptions import MrdiError
from .metadata import MetaData
from .metadata import metadata
from .metadata import read_metadata
from .persist import load
from .persist import load_document
from .persist import save
from .persist import save_document
from .plugins.manager import _initialize_plugin_system
from .references import ReferenceStore
from .registry import default_registry
from .registry import register_type
from .registry import serialization_type
from .store import DocumentStore
from .upgrades import register_upgrade_script

# Initialize hooks system on module import
_initialize_plugin_system()

__all__ = [
    "DocumentStore",
    "MetaData",
    "MrdiError",
    "ReferenceStore",
    "StructCodec",
    "TypeCodec",
    "codecs",
    "default_registry",
    "load",
    "load_document",
    "metadata",
    "read_metadata",
    "register_type",
    "register_upgrade_script",
    "save",
    "save_document",
    "serialization_type",
    "settings",
    "upgrades",
]
