"""Dual_EC_DRBG kleptographic backdoor -- proof of concept.

Given the trapdoor d linking the generator's public points (P = d*Q), recover
the internal state from observed output and predict everything that follows.
"""

__version__ = "0.1.0"
