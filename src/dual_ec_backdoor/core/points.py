"""Affine points and the elliptic curve group law over F_p.

There is no point at infinity: any operation that would produce it
(P + (-P), doubling a point with y = 0) has a zero denominator and raises
CurveArithmeticError. Scalar multiplication is left-to-right double-and-add
and is not constant time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING

from dual_ec_backdoor.utils.constants import P256_PRIME
from dual_ec_backdoor.utils.modular import fast_sqrt_p256, mod_sqrt, prime_mod_inverse

if TYPE_CHECKING:
    from dual_ec_backdoor.core.curves import Curve


class CurveArithmeticError(ArithmeticError):
    """A denominator in the group law was not invertible mod p."""


@dataclass(frozen=True)
class Point:
    """A bare (x, y) coordinate pair."""

    x: int
    y: int

    def is_on_curve(self, curve: Curve) -> bool:
        return curve.is_on_curve(self)

    def __str__(self) -> str:
        return f"({self.x:x}, {self.y:x})"


@dataclass(frozen=True)
class CurvePoint:
    """A point tagged with the curve it lives on.

    Supports ``P + Q``, ``P * s`` and ``s * P``. Points from different
    curves cannot be combined.
    """

    x: int
    y: int
    curve: Curve = field(repr=False)

    @classmethod
    def from_point(cls, point: Point, curve: Curve) -> CurvePoint:
        if not curve.is_on_curve(point):
            raise ValueError(f"Point {point} is not on curve {curve.name}")
        return cls(point.x, point.y, curve)

    def to_point(self) -> Point:
        return Point(self.x, self.y)

    def is_on_curve(self) -> bool:
        return self.curve.is_on_curve(self)

    def _same_curve(self, other: CurvePoint) -> None:
        if other.curve != self.curve:
            raise ValueError(
                f"Cannot combine points on {self.curve.name} and {other.curve.name}"
            )

    def _wrap(self, point: Point) -> CurvePoint:
        return CurvePoint(point.x, point.y, self.curve)

    def __add__(self, other: object) -> CurvePoint:
        if not isinstance(other, CurvePoint):
            return NotImplemented
        self._same_curve(other)
        group = CurveGroup(self.curve)
        return self._wrap(group.add(self.to_point(), other.to_point()))

    def __mul__(self, scalar: object) -> CurvePoint:
        if not isinstance(scalar, int):
            return NotImplemented
        group = CurveGroup(self.curve)
        return self._wrap(group.scalar_multiply(self.to_point(), scalar))

    __rmul__ = __mul__

    def __neg__(self) -> CurvePoint:
        return self._wrap(CurveGroup(self.curve).negate(self.to_point()))

    def __str__(self) -> str:
        return f"({self.x:x}, {self.y:x})"


class CurveGroup:
    """Group law on a single curve.

    Public methods take and return Point values. The coordinate-level
    helpers (_double, _add, _multiply) work on raw ints so the scalar
    multiplication loop allocates no Point objects.
    """

    def __init__(self, curve: Curve) -> None:
        self.curve = curve
        self.p = curve.p
        self.a = curve.a % curve.p
        self.b = curve.b % curve.p
        if curve.p == P256_PRIME:
            self._sqrt = fast_sqrt_p256
        else:
            self._sqrt = partial(mod_sqrt, p=curve.p)

    def is_on_curve(self, point: Point) -> bool:
        return self.curve.is_on_curve(point)

    def negate(self, point: Point) -> Point:
        return Point(point.x % self.p, -point.y % self.p)

    def double(self, point: Point) -> Point:
        x, y = self._double(point.x % self.p, point.y % self.p)
        return Point(x, y)

    def add(self, P: Point, Q: Point) -> Point:
        p = self.p
        x, y = self._add(P.x % p, P.y % p, Q.x % p, Q.y % p)
        return Point(x, y)

    def scalar_multiply(self, point: Point, s: int) -> Point:
        x, y = self._multiply(point.x % self.p, point.y % self.p, s)
        return Point(x, y)

    def lift_x(self, x: int) -> Point | None:
        """Recover a point with the given x-coordinate, if one exists.

        Returns None when x is not a field element or x^3 + ax + b is a
        non-residue. Which of the two y values comes back is unspecified.
        """
        p = self.p
        if not 0 <= x < p:
            return None
        y2 = (x * x * x + self.a * x + self.b) % p
        y = self._sqrt(y2)
        if y is None:
            return None
        return Point(x, y)

    # -- coordinate arithmetic --

    def _invert(self, denom: int) -> int:
        denom %= self.p
        if denom == 0:
            raise CurveArithmeticError(f"Zero denominator on curve {self.curve.name}")
        return prime_mod_inverse(denom, self.p)

    def _double(self, x: int, y: int) -> tuple[int, int]:
        p = self.p
        lam = (3 * x * x + self.a) * self._invert(2 * y) % p
        rx = (lam * lam - 2 * x) % p
        ry = (lam * (x - rx) - y) % p
        return rx, ry

    def _add(self, x1: int, y1: int, x2: int, y2: int) -> tuple[int, int]:
        if x1 == x2 and y1 == y2:
            return self._double(x1, y1)
        p = self.p
        lam = (y2 - y1) * self._invert(x2 - x1) % p
        rx = (lam * lam - x1 - x2) % p
        ry = (lam * (x1 - rx) - y1) % p
        return rx, ry

    def _multiply(self, x: int, y: int, s: int) -> tuple[int, int]:
        if s < 1:
            raise ValueError(f"Scalar must be a positive integer, got {s}")
        # The top bit seeds the accumulator
        rx, ry = x, y
        for i in range(s.bit_length() - 2, -1, -1):
            rx, ry = self._double(rx, ry)
            if (s >> i) & 1:
                rx, ry = self._add(rx, ry, x, y)
        return rx, ry
