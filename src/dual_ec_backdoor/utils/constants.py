"""Constants for the Dual_EC_DRBG generator and state-recovery search."""

import os

# -- Output truncation --
LOST_BITS: int = 16  # high bits of x(tQ) never revealed
SEARCH_SPACE: int = 1 << LOST_BITS  # 65,536 candidate prefixes

# -- Field primes with specialized code paths --
# NIST P-256: 2^256 - 2^224 + 2^192 + 2^96 - 1
P256_PRIME: int = 0xFFFFFFFF00000001000000000000000000000000FFFFFFFFFFFFFFFFFFFFFFFF

# -- Predictor defaults --
DEFAULT_NUM_WORKERS: int = os.cpu_count() or 1
DEFAULT_POLL_INTERVAL: float = 0.05  # seconds between coordinator polls
DEFAULT_MESSAGE_QUEUE_SIZE: int = 4096
BACKENDS: tuple[str, ...] = ("thread", "process")
