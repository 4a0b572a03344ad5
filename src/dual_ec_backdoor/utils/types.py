"""Dataclass definitions for the state-recovery predictor."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from dual_ec_backdoor.utils.constants import (
    DEFAULT_MESSAGE_QUEUE_SIZE,
    DEFAULT_NUM_WORKERS,
    DEFAULT_POLL_INTERVAL,
)


@dataclass
class PredictorConfig:
    """Configuration for a predictor run."""

    num_workers: int = DEFAULT_NUM_WORKERS
    backend: str = "thread"  # 'thread' or 'process'
    verbose: bool = False  # emit per-prefix diagnostics
    poll_interval: float = DEFAULT_POLL_INTERVAL
    message_queue_size: int = DEFAULT_MESSAGE_QUEUE_SIZE


@dataclass
class WorkerOutcome:
    """Terminal message sent exactly once by every search worker."""

    worker_id: int
    state: int | None = None
    prefix: int | None = None
    candidates: int = 0  # prefixes examined
    residues: int = 0  # prefixes whose y^2 had a square root
    error: str | None = None


@dataclass
class PredictionResult:
    """Complete results from a predictor run."""

    state: int | None
    prefix: int | None = None
    num_workers: int = 0
    elapsed: float = 0.0  # seconds
    candidates: NDArray[np.int64] = field(
        default_factory=lambda: np.zeros(0, dtype=np.int64)
    )
    residues: NDArray[np.int64] = field(
        default_factory=lambda: np.zeros(0, dtype=np.int64)
    )

    @property
    def found(self) -> bool:
        return self.state is not None

    @property
    def total_candidates(self) -> int:
        return int(self.candidates.sum())

    @property
    def residue_rate(self) -> float:
        """Fraction of examined prefixes that lifted to a curve point."""
        total = self.total_candidates
        if total == 0:
            return 0.0
        return float(self.residues.sum()) / total
