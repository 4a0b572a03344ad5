"""Dual_EC_DRBG: a deterministic random bit generator on an elliptic curve.

Each step multiplies the public point P by the current state to obtain the
next state s, then emits the low ``outsize`` bits of x(s*Q). The top 16 bits
of that x-coordinate are discarded, which is all that stands between an
observer and the state when P = d*Q for a known d.
"""

from __future__ import annotations

from dual_ec_backdoor.core.curves import Curve
from dual_ec_backdoor.core.points import CurveGroup, CurvePoint, Point
from dual_ec_backdoor.utils.constants import LOST_BITS


class DualECDRBG:
    """Generator state machine with a single private state integer."""

    def __init__(
        self,
        curve: Curve,
        p: Point | CurvePoint,
        q: Point | CurvePoint,
        seed: int,
    ) -> None:
        if not curve.is_on_curve(p):
            raise ValueError("P must be on the curve")
        if not curve.is_on_curve(q):
            raise ValueError("Q must be on the curve")
        if seed < 1:
            raise ValueError(f"Seed must be a positive integer, got {seed}")

        self._curve = curve
        self._group = CurveGroup(curve)
        self._p = Point(p.x, p.y)
        self._q = Point(q.x, q.y)
        self._outsize = curve.bitsize - LOST_BITS
        self._outmask = (1 << self._outsize) - 1
        self.__state = seed

    @property
    def curve(self) -> Curve:
        return self._curve

    @property
    def p(self) -> Point:
        return self._p

    @property
    def q(self) -> Point:
        return self._q

    @property
    def outsize(self) -> int:
        """Bits emitted per step."""
        return self._outsize

    @property
    def outmask(self) -> int:
        return self._outmask

    def next(self) -> int:
        """Advance the state once and return ``outsize`` output bits."""
        s = self._group.scalar_multiply(self._p, self.__state).x
        self.__state = s
        r = self._group.scalar_multiply(self._q, s).x
        return r & self._outmask

    def next_bits(self, n: int) -> int:
        """Return n output bits, most significant first.

        Each step contributes the top min(remaining, outsize) bits of its
        output, so a request that is not a multiple of ``outsize`` drops the
        low bits of the final step.
        """
        if n < 1:
            raise ValueError(f"Bit count must be positive, got {n}")
        result = 0
        remaining = n
        while remaining > 0:
            take = min(remaining, self._outsize)
            chunk = self.next() >> (self._outsize - take)
            result = (result << take) | chunk
            remaining -= take
        return result

    def disclose_state(self) -> int:
        """Reveal the current internal state.

        For end-of-run verification only; state recovery must never call this.
        """
        return self.__state

    def __repr__(self) -> str:
        return f"DualECDRBG(curve={self._curve.name}, outsize={self._outsize})"
