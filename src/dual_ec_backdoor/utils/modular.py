"""Modular integer arithmetic: reduction, inverses and square roots.

Every result is a canonical residue in [0, n), including for negative inputs
such as a = -3 on the NIST curves.
"""

from __future__ import annotations

from dual_ec_backdoor.utils.constants import P256_PRIME


def reduce(a: int, n: int) -> int:
    """Return a mod n in [0, n)."""
    return a % n


def mod_inverse(a: int, n: int) -> int | None:
    """Inverse of a modulo n via the extended Euclidean algorithm.

    Returns None iff gcd(a, n) != 1. Negative a is normalized first.
    """
    t, t_new = 0, 1
    r, r_new = n, reduce(a, n)

    while r_new != 0:
        quotient = r // r_new
        t, t_new = t_new, t - quotient * t_new
        r, r_new = r_new, r - quotient * r_new

    if r > 1:
        return None
    return reduce(t, n)


def prime_mod_inverse(a: int, p: int) -> int:
    """Inverse of a modulo a prime p via Fermat: a^(p-2) mod p.

    p must be prime; this is not checked. Returns 0 when a = 0 mod p.
    """
    return pow(reduce(a, p), p - 2, p)


def is_quadratic_residue(n: int, p: int) -> bool:
    """Euler criterion: n^((p-1)/2) = 1 (mod p)."""
    return pow(reduce(n, p), (p - 1) // 2, p) == 1


def mod_sqrt(n: int, p: int) -> int | None:
    """Square root of n modulo an odd prime p (Tonelli-Shanks).

    Returns None when n is a quadratic non-residue. The root returned is
    one of the two roots r, p - r; callers needing a specific sign negate.
    """
    n = reduce(n, p)
    if n == 0:
        return 0
    if p == 2:
        return n
    if not is_quadratic_residue(n, p):
        return None

    # p = 3 (mod 4): p - 1 has a single factor of two
    if p % 4 == 3:
        return pow(n, (p + 1) // 4, p)

    # Factor p - 1 = q * 2^s with q odd
    q = p - 1
    s = 0
    while q % 2 == 0:
        q //= 2
        s += 1

    z = 2
    while is_quadratic_residue(z, p):
        z += 1

    m = s
    c = pow(z, q, p)
    t = pow(n, q, p)
    r = pow(n, (q + 1) // 2, p)

    while t != 1:
        # Least i in (0, m) with t^(2^i) = 1
        i = 0
        temp = t
        while temp != 1:
            temp = temp * temp % p
            i += 1
            if i == m:
                return None
        b = pow(c, 1 << (m - i - 1), p)
        m = i
        c = b * b % p
        t = t * c % p
        r = r * b % p

    return r


def fast_sqrt_p256(n: int) -> int | None:
    """Square root modulo the NIST P-256 prime.

    Computes n^((p+1)/4) with a fixed addition chain; (p+1)/4 equals
    (2^32 - 1) * 2^222 + 2^190 + 2^94. The chain yields a candidate even
    for non-residues, so the result is squared and checked.
    """
    p = P256_PRIME
    n = reduce(n, p)

    t2 = n * n % p * n % p  # n^(2^2 - 1)
    t4 = pow(t2, 1 << 2, p) * t2 % p  # n^(2^4 - 1)
    t8 = pow(t4, 1 << 4, p) * t4 % p  # n^(2^8 - 1)
    t16 = pow(t8, 1 << 8, p) * t8 % p  # n^(2^16 - 1)
    t32 = pow(t16, 1 << 16, p) * t16 % p  # n^(2^32 - 1)

    r = pow(t32, 1 << 32, p) * n % p
    r = pow(r, 1 << 96, p) * n % p
    r = pow(r, 1 << 94, p)

    if r * r % p != n:
        return None
    return r
