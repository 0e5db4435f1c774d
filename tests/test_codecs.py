"""Tests for the built-in codecs."""

from fractions import Fraction

import pytest

from mrdi import load_document
from mrdi import save_document
from mrdi.exceptions import DeserializationError
from tests.examples.domain import QQ
from tests.examples.domain import Point
from tests.examples.domain import PolynomialRing


def roundtrip(obj, **kwargs):
    return load_document(save_document(obj), **kwargs)


class TestScalars:
    """Tests for basic scalars and tagged scalar types."""

    @pytest.mark.parametrize("value", [0, -7, 2.5, True, False, None])
    def test_basic_scalars_are_bare(self, value):
        """Basic scalars are written as a payload-only root."""
        document = save_document(value)
        assert "_type" not in document
        assert document["data"] == value
        assert roundtrip(value) == value

    def test_bool_stays_bool(self):
        """Booleans are not confused with integers."""
        assert roundtrip(True) is True

    def test_string_is_tagged(self):
        """Strings always carry a type tag."""
        document = save_document("hello")
        assert document["_type"] == "String"
        assert document["data"] == "hello"
        assert roundtrip("hello") == "hello"

    def test_bytes(self):
        """Bytes are written as base64 text."""
        document = save_document(b"\x00\xff")
        assert document["data"] == "AP8="
        assert roundtrip(b"\x00\xff") == b"\x00\xff"

    def test_fraction(self):
        """Fractions are written as numerator/denominator text."""
        document = save_document(Fraction(-3, 4))
        assert document["data"] == "-3/4"
        assert roundtrip(Fraction(-3, 4)) == Fraction(-3, 4)

    def test_complex(self):
        """Complex numbers are written as [real, imag]."""
        assert save_document(1 + 2j)["data"] == [1.0, 2.0]
        assert roundtrip(1 + 2j) == 1 + 2j

    def test_malformed_fraction(self):
        """Invalid payloads raise DeserializationError with the path."""
        document = save_document(Fraction(1, 2))
        document["data"] = "one half"
        with pytest.raises(DeserializationError) as excinfo:
            load_document(document)
        assert excinfo.value.path == ("data",)


class TestContainers:
    """Tests for sequence, set and dict codecs."""

    def test_heterogeneous_list(self):
        """Each entry is typed on its own."""
        value = [1, "two", Fraction(3), [4.0], None]
        document = save_document(value)
        assert document["data"][0] == 1
        assert document["data"][1] == {"_type": "String", "data": "two"}
        assert roundtrip(value) == value

    def test_tuple_set_frozenset(self):
        """Tuples and sets keep their container type."""
        assert roundtrip((1, "a")) == (1, "a")
        assert roundtrip({1, 2, 3}) == {1, 2, 3}
        assert roundtrip(frozenset({"x"})) == frozenset({"x"})

    def test_dict_with_string_keys(self):
        """String-keyed dicts are written as JSON objects."""
        value = {"a": 1, "b": [Point(1, 2)]}
        document = save_document(value)
        assert document["data"]["a"] == 1
        assert roundtrip(value) == value

    def test_dict_with_other_keys(self):
        """Other key types switch to a list of pairs."""
        value = {1: "one", (2, 3): None}
        document = save_document(value)
        assert isinstance(document["data"], list)
        assert roundtrip(value) == value

    def test_params_forwarded_to_elements(self):
        """A caller-supplied parent applies to every element of a container."""
        ring = PolynomialRing(QQ)
        document = save_document([ring(1), ring(0, 1)])
        other = PolynomialRing(QQ, "y")
        loaded = load_document(document, params=other)
        assert all(p.parent is other for p in loaded)
