"""
Reusable domain types for mrdi tests.

A miniature algebra stack that exercises every registration flag:

- ``Point``: plain dataclass, field-by-field codec
- ``RationalField``: singleton, written tag-only
- ``PolynomialRing``: shared object (``uses_id``) with an optional ``label`` attribute
- ``Polynomial``: needs its parent ring to be constructed (``uses_params``)
- ``Element``: dataclass holding a shared ring as a plain field

All types register with the default registry on import.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from mrdi import TypeCodec
from mrdi import register_type


@dataclass
class Point:
    x: int
    y: int


class RationalField:
    """The field of rational numbers; there is only one."""

    def __eq__(self, other: object) -> bool:
        return isinstance(other, RationalField)

    def __hash__(self) -> int:
        return hash(RationalField)

    def __repr__(self) -> str:
        return "QQ"


class PolynomialRing:
    """Univariate polynomial ring; instances compare by identity."""

    def __init__(self, base_ring: Any, var: str = "x") -> None:
        self.base_ring = base_ring
        self.var = var

    def __call__(self, *coeffs: Any) -> Polynomial:
        return Polynomial(self, list(coeffs))

    def __repr__(self) -> str:
        return f"PolynomialRing({self.base_ring!r}, {self.var!r})"


class Polynomial:
    """Polynomial with coefficients in ascending degree order."""

    def __init__(self, parent: PolynomialRing, coeffs: list[Any]) -> None:
        self.parent = parent
        self.coeffs = list(coeffs)

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Polynomial)
            and self.parent is other.parent
            and self.coeffs == other.coeffs
        )

    def __hash__(self) -> int:
        return hash((id(self.parent), tuple(self.coeffs)))

    def __repr__(self) -> str:
        return f"Polynomial({self.coeffs!r})"


@dataclass(eq=False)
class Element:
    ring: PolynomialRing
    value: int


class PolynomialCodec(TypeCodec, python_type=Polynomial, tag="Polynomial", uses_params=True):
    """Writes the coefficients as data and the parent ring as the type parameter."""

    def save_type_params(self, s, obj):
        return s.save_typed_field(obj.parent)

    def save_object(self, s, obj):
        coeffs = []
        for index, coeff in enumerate(obj.coeffs):
            with s.enter(index):
                coeffs.append(s.save_typed_field(coeff))
        return coeffs

    def load_object(self, s, cls, data, params=None):
        if not isinstance(params, PolynomialRing):
            raise TypeError(f"Polynomial needs a PolynomialRing parent, got {params!r}")
        return cls(params, [s.load_typed_object(data, index) for index in range(len(data))])


register_type(Point, "Point")
register_type(RationalField, "RationalField", singleton=True)
register_type(
    PolynomialRing,
    "PolynomialRing",
    uses_id=True,
    attrs=("label", "generators"),
    fields=("base_ring", "var"),
)
register_type(Element, "Element")

QQ = RationalField()
