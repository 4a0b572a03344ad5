"""Curve parameters, group law and the Dual_EC_DRBG generator."""
