"""Tests for curve parameters, points and the group law."""

import random

import pytest
from ecdsa import NIST256p, NIST384p, NIST521p

from dual_ec_backdoor.core.curves import CURVES, Curve, get_curve
from dual_ec_backdoor.core.points import CurveArithmeticError, CurveGroup, CurvePoint, Point
from dual_ec_backdoor.utils.modular import mod_inverse

CURVE_NAMES = ["P-256", "P-384", "P-521"]


class TestCurveTable:
    def test_names(self):
        assert set(CURVES) == set(CURVE_NAMES)

    @pytest.mark.parametrize("name, bits", [("P-256", 256), ("P-384", 384), ("P-521", 521)])
    def test_bitsize(self, name, bits):
        assert get_curve(name).bitsize == bits

    @pytest.mark.parametrize("name", CURVE_NAMES)
    def test_generator_on_curve(self, name):
        curve = get_curve(name)
        assert curve.is_on_curve(curve.g)
        assert curve.g.is_on_curve(curve)

    def test_p256_constants(self):
        curve = get_curve("P-256")
        assert curve.p == 0xFFFFFFFF00000001000000000000000000000000FFFFFFFFFFFFFFFFFFFFFFFF
        assert curve.g.x == 0x6B17D1F2E12C4247F8BCE6E563A440F277037D812DEB33A0F4A13945D898C296
        assert curve.a % curve.p == curve.p - 3

    def test_unknown_curve(self):
        with pytest.raises(ValueError, match="P-256"):
            get_curve("P-999")


class TestCurvePoint:
    def setup_method(self):
        self.curve = get_curve("P-256")
        self.g = CurvePoint.from_point(self.curve.g, self.curve)

    def test_from_point_rejects_off_curve(self):
        bad = Point(self.curve.g.x, self.curve.g.y + 1)
        with pytest.raises(ValueError):
            CurvePoint.from_point(bad, self.curve)

    def test_add_equal_points_doubles(self):
        group = CurveGroup(self.curve)
        assert (self.g + self.g).to_point() == group.double(self.curve.g)

    def test_add_commutes(self):
        h = self.g * 7
        assert self.g + h == h + self.g

    def test_small_multiples(self):
        two = self.g + self.g
        three = two + self.g
        assert self.g * 2 == two
        assert 3 * self.g == three
        assert self.g * 5 == two + three

    def test_scalar_one_is_identity(self):
        assert self.g * 1 == self.g

    def test_scalar_zero_rejected(self):
        with pytest.raises(ValueError):
            self.g * 0

    def test_mixing_curves_rejected(self):
        other = get_curve("P-384")
        h = CurvePoint.from_point(other.g, other)
        with pytest.raises(ValueError, match="Cannot combine"):
            self.g + h

    def test_point_plus_negation_fails(self):
        with pytest.raises(CurveArithmeticError):
            self.g + (-self.g)

    def test_str_is_hex(self):
        assert str(self.g) == f"({self.curve.g.x:x}, {self.curve.g.y:x})"


class TestScalarMultiply:
    @pytest.mark.parametrize("name", CURVE_NAMES)
    def test_closure(self, name):
        curve = get_curve(name)
        group = CurveGroup(curve)
        rng = random.Random(name)
        for _ in range(20):
            s = rng.randrange(1, 1 << curve.bitsize)
            point = group.scalar_multiply(curve.g, s)
            assert group.is_on_curve(point)

    @pytest.mark.parametrize("name", CURVE_NAMES)
    def test_inverse_scalar_round_trip(self, name):
        curve = get_curve(name)
        g = CurvePoint.from_point(curve.g, curve)
        rng = random.Random(name + "-inverse")
        for _ in range(3):
            s = rng.randrange(2, curve.n)
            q = g * s
            i = mod_inverse(s, curve.n)
            assert q * i == g

    @pytest.mark.parametrize(
        "name, reference",
        [("P-256", NIST256p), ("P-384", NIST384p), ("P-521", NIST521p)],
    )
    def test_matches_ecdsa(self, name, reference):
        curve = get_curve(name)
        group = CurveGroup(curve)
        rng = random.Random(name + "-ecdsa")
        for _ in range(3):
            s = rng.randrange(1, curve.n)
            ours = group.scalar_multiply(curve.g, s)
            theirs = reference.generator * s
            assert ours.x == theirs.x()
            assert ours.y == theirs.y()

    def test_order_times_generator_is_infinity(self):
        # Reaching the identity has a zero denominator on the last step
        curve = get_curve("P-256")
        with pytest.raises(CurveArithmeticError):
            CurveGroup(curve).scalar_multiply(curve.g, curve.n)


class TestLiftX:
    def test_recovers_generator(self):
        curve = get_curve("P-256")
        point = CurveGroup(curve).lift_x(curve.g.x)
        assert point is not None
        assert point.y in (curve.g.y, curve.p - curve.g.y)

    def test_out_of_field(self):
        curve = get_curve("P-384")
        assert CurveGroup(curve).lift_x(curve.p) is None
        assert CurveGroup(curve).lift_x(-1) is None

    def test_general_curve(self, toy_curve: Curve):
        group = CurveGroup(toy_curve)
        point = group.lift_x(toy_curve.g.x)
        assert point is not None
        assert group.is_on_curve(point)

    def test_non_residue_returns_none(self):
        curve = get_curve("P-256")
        group = CurveGroup(curve)
        misses = [x for x in range(1, 40) if group.lift_x(x) is None]
        # Roughly half of all x-coordinates have no point
        assert 5 < len(misses) < 35
