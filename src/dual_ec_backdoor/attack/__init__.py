"""Trapdoor generation and state recovery for Dual_EC_DRBG."""
