"""Backdoored parameter generation: Q = d^-1 * P, so that P = d * Q."""

from __future__ import annotations

import secrets

from dual_ec_backdoor.core.curves import Curve
from dual_ec_backdoor.core.points import CurvePoint
from dual_ec_backdoor.utils.modular import mod_inverse


def generate_backdoor(curve: Curve, d: int) -> tuple[CurvePoint, CurvePoint]:
    """Return (P, Q) with P the curve generator and Q = (d^-1 mod n) * P."""
    if d < 2:
        raise ValueError(f"Backdoor must be at least 2, got {d}")
    inverse = mod_inverse(d, curve.n)
    if inverse is None:
        raise ValueError(f"Backdoor {d} is not invertible modulo the curve order")
    p = CurvePoint.from_point(curve.g, curve)
    q = p * inverse
    return p, q


def random_backdoor(curve: Curve) -> int:
    """Uniform backdoor scalar in [2, n)."""
    return 2 + secrets.randbelow(curve.n - 2)


def random_seed(curve: Curve) -> int:
    """Uniform nonzero seed of at most ``curve.bitsize`` bits."""
    while True:
        seed = secrets.randbits(curve.bitsize)
        if seed > 0:
            return seed


def parse_scalar(text: str) -> int:
    """Parse a decimal or 0x-prefixed hexadecimal integer."""
    cleaned = text.strip().replace("_", "")
    try:
        if cleaned.lower().startswith(("0x", "-0x")):
            return int(cleaned, 16)
        return int(cleaned, 10)
    except ValueError:
        raise ValueError(f"Invalid integer {text!r}: expected decimal or 0x-hex") from None
