"""Type codecs; importing this package registers the built-in codecs."""

from mrdi.codecs.base import TypeCodec
from mrdi.codecs.builtin import BytesCodec
from mrdi.codecs.builtin import ComplexCodec
from mrdi.codecs.builtin import DictCodec
from mrdi.codecs.builtin import FractionCodec
from mrdi.codecs.builtin import FrozenSetCodec
from mrdi.codecs.builtin import ListCodec
from mrdi.codecs.builtin import SetCodec
from mrdi.codecs.builtin import StringCodec
from mrdi.codecs.builtin import TupleCodec
from mrdi.codecs.struct import StructCodec

__all__ = [
    "BytesCodec",
    "ComplexCodec",
    "DictCodec",
    "FractionCodec",
    "FrozenSetCodec",
    "ListCodec",
    "SetCodec",
    "StringCodec",
    "StructCodec",
    "TupleCodec",
    "TypeCodec",
]
