"""Shared fixtures.

The predictor has to walk up to 65,536 candidates, which is slow on the NIST
curves in pure Python. The test curve here is y^2 = x^3 + x over
p = 2^61 - 1: supersingular since p = 3 (mod 4), so it has exactly p + 1 = 2^61
points and a cyclic group.
"""

from __future__ import annotations

import pytest

from dual_ec_backdoor.core.curves import Curve
from dual_ec_backdoor.core.points import CurveArithmeticError, CurveGroup, Point
from dual_ec_backdoor.utils.modular import mod_sqrt

TOY_P = (1 << 61) - 1


def make_toy_curve() -> Curve:
    """Test curve with a generator of full order 2^61."""
    draft = Curve(name="toy-61", bitsize=61, p=TOY_P, n=TOY_P + 1, a=1, b=0, g=Point(0, 0))
    group = CurveGroup(draft)
    x = 2
    while True:
        x += 1
        y = mod_sqrt(x * x * x + x, TOY_P)
        if not y:
            continue
        candidate = Point(x, y)
        try:
            # Order 2^61 iff 2^60 * G is the unique point of order two, (0, 0)
            if group.scalar_multiply(candidate, 1 << 60).y == 0:
                return Curve(
                    name="toy-61", bitsize=61, p=TOY_P, n=TOY_P + 1, a=1, b=0, g=candidate
                )
        except CurveArithmeticError:
            continue


@pytest.fixture(scope="session")
def toy_curve() -> Curve:
    return make_toy_curve()
