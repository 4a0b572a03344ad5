"""Named NIST prime curves used by the generator.

Domain parameters are taken from the ``ecdsa`` package.
"""

from __future__ import annotations

from dataclasses import dataclass

from ecdsa.curves import NIST256p, NIST384p, NIST521p

from dual_ec_backdoor.core.points import Point


@dataclass(frozen=True)
class Curve:
    """Short Weierstrass curve y^2 = x^3 + ax + b over F_p.

    bitsize is the security level and the basis for the generator's output
    width; n is the order of the generator g.
    """

    name: str
    bitsize: int
    p: int
    n: int
    a: int
    b: int
    g: Point

    def is_on_curve(self, point: Point) -> bool:
        """True if (point.x, point.y) satisfies the curve equation mod p."""
        x, y, p = point.x, point.y, self.p
        return (y * y - (x * x * x + self.a * x + self.b)) % p == 0

    def __str__(self) -> str:
        return self.name


def from_ecdsa(name: str, spec) -> Curve:
    """Build a Curve from an ``ecdsa.curves.Curve`` record."""
    fp = spec.curve
    generator = spec.generator
    return Curve(
        name=name,
        bitsize=fp.p().bit_length(),
        p=fp.p(),
        n=spec.order,
        a=fp.a(),
        b=fp.b(),
        g=Point(generator.x(), generator.y()),
    )


CURVES: dict[str, Curve] = {
    curve.name: curve
    for curve in (
        from_ecdsa("P-256", NIST256p),
        from_ecdsa("P-384", NIST384p),
        from_ecdsa("P-521", NIST521p),
    )
}


def get_curve(name: str) -> Curve:
    """Look up a curve by label, e.g. 'P-256'."""
    try:
        return CURVES[name]
    except KeyError:
        valid = ", ".join(CURVES)
        raise ValueError(f"Unknown curve {name!r}; valid curves are {valid}") from None
