"""Example saving and loading a small object graph with mrdi."""
from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from fractions import Fraction

import mrdi
from mrdi import TypeCodec


@mrdi.serialization_type("Field", singleton=True)
class Field:
    """A coefficient field; every instance is the same field."""

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Field)

    def __hash__(self) -> int:
        return hash(Field)


@mrdi.serialization_type("Ring", uses_id=True, attrs=("label",))
@dataclass(eq=False)
class Ring:
    base: Field
    var: str


class Poly:
    def __init__(self, parent: Ring, coeffs: list[Fraction]) -> None:
        self.parent = parent
        self.coeffs = coeffs

    def __repr__(self) -> str:
        terms = " + ".join(f"{c}*{self.parent.var}^{i}" for i, c in enumerate(self.coeffs) if c)
        return terms or "0"


class PolyCodec(TypeCodec, python_type=Poly, tag="Poly", uses_params=True):
    def save_type_params(self, s, obj):
        return s.save_typed_field(obj.parent)

    def save_object(self, s, obj):
        return [s.save_typed_field(c) for c in obj.coeffs]

    def load_object(self, s, cls, data, params=None):
        return cls(params, [s.load_typed_object(data, i) for i in range(len(data))])


def main() -> None:
    ring = Ring(Field(), "x")
    ring.label = "Q[x]"
    polys = [Poly(ring, [Fraction(1, 2), Fraction(0), Fraction(3)]), Poly(ring, [Fraction(-1)])]

    path = os.path.join(tempfile.mkdtemp(), "polys.mrdi")
    mrdi.save(path, polys, metadata=mrdi.metadata(name="two polynomials"))
    with open(path) as f:
        print(f.read())
    print(mrdi.read_metadata(path))

    # A fresh reference store behaves like a new process: the ring is rebuilt once and shared
    loaded = mrdi.load(path, store=mrdi.ReferenceStore())
    print(loaded, loaded[0].parent is loaded[1].parent, loaded[0].parent.label)


if __name__ == "__main__":
    main()
