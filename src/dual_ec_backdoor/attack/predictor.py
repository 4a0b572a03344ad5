"""Recover Dual_EC_DRBG state from observed output using the trapdoor d.

The generator reveals only the low ``outsize`` bits of x(s1*Q). Guessing the
16 lost bits gives 65,536 candidate x-coordinates; each one that lifts to a
curve point R gives a state guess x(d*R), which equals x(s1*P) = s2 when R is
+/-s1*Q. The guess is confirmed by regenerating the second output from it.

The prefix space is split across workers by congruence class
(prefix = worker_id mod N). Workers share one halt flag and report through
two queues: one terminal WorkerOutcome each on ``results``, and best-effort
diagnostic strings on a bounded ``messages`` queue that never blocks them.
"""

from __future__ import annotations

import multiprocessing
import queue
import threading
import time
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Callable

import numpy as np
from numpy.typing import NDArray

from dual_ec_backdoor.core.curves import Curve
from dual_ec_backdoor.core.points import CurveGroup, Point
from dual_ec_backdoor.utils.constants import BACKENDS, LOST_BITS, SEARCH_SPACE
from dual_ec_backdoor.utils.types import PredictionResult, PredictorConfig, WorkerOutcome

if TYPE_CHECKING:
    from dual_ec_backdoor.core.drbg import DualECDRBG

ProgressSink = Callable[[str], None]


class PredictionError(RuntimeError):
    """A search worker failed and the search was abandoned."""


@dataclass(frozen=True)
class SearchJob:
    """Read-only search parameters; every worker receives its own copy."""

    curve: Curve
    q: Point
    d: int
    outsize: int
    output1: int
    output2: int
    verbose: bool = False

    @property
    def outmask(self) -> int:
        return (1 << self.outsize) - 1


def partition_prefixes(worker_id: int, num_workers: int) -> NDArray[np.int64]:
    """Prefixes owned by a worker: the class worker_id mod num_workers."""
    return np.arange(worker_id, SEARCH_SPACE, num_workers, dtype=np.int64)


def reconstruct_point(
    group: CurveGroup, prefix: int, output1: int, outsize: int
) -> Point | None:
    """Candidate for s1*Q whose lost high bits are ``prefix``.

    None if the x-coordinate is not a field element, lifts to no point, or
    lifts to a point of order two.
    """
    point = group.lift_x((prefix << outsize) | output1)
    if point is None or point.y == 0:
        return None
    return point


def guess_state(group: CurveGroup, job: SearchJob, point: Point) -> tuple[int, int] | None:
    """(state guess, regenerated output) for a reconstructed point."""
    state = group.scalar_multiply(point, job.d).x
    if state == 0:
        return None
    output = group.scalar_multiply(job.q, state).x & job.outmask
    return state, output


def _send(messages: Any, text: str) -> None:
    # Diagnostics are best effort: a full or closed queue drops the message.
    try:
        messages.put_nowait(text)
    except (queue.Full, ValueError, OSError):
        pass


def search_partition(
    job: SearchJob,
    worker_id: int,
    num_workers: int,
    halt: Any,
    results: Any,
    messages: Any,
) -> None:
    """Worker body: scan one congruence class until a match or the halt flag.

    ``halt`` is a threading or multiprocessing Event; ``results`` and
    ``messages`` are the matching Queue types. Exactly one WorkerOutcome is
    put on ``results`` before returning.
    """
    group = CurveGroup(job.curve)
    candidates = 0
    residues = 0
    try:
        for prefix in partition_prefixes(worker_id, num_workers).tolist():
            if halt.is_set():
                break
            started = time.perf_counter()
            candidates += 1

            point = reconstruct_point(group, prefix, job.output1, job.outsize)
            if point is not None:
                residues += 1
                guess = guess_state(group, job, point)
                if guess is not None:
                    state, output = guess
                    if job.verbose:
                        _send(messages, f"{prefix} | State guess was {state:x}")
                        _send(messages, f"{prefix} | Output guess was {output:x}")
                        _send(messages, f"{prefix} | Output truth was {job.output2:x}")
                    if output == job.output2:
                        halt.set()
                        results.put(
                            WorkerOutcome(
                                worker_id,
                                state=state,
                                prefix=prefix,
                                candidates=candidates,
                                residues=residues,
                            )
                        )
                        return

            if job.verbose:
                elapsed = time.perf_counter() - started
                _send(messages, f"{prefix} | Took {elapsed:.6f} seconds")
    except Exception as exc:
        # Forwarded to the coordinator, which re-raises as PredictionError
        results.put(
            WorkerOutcome(
                worker_id,
                candidates=candidates,
                residues=residues,
                error=f"{type(exc).__name__}: {exc}",
            )
        )
        return

    results.put(WorkerOutcome(worker_id, candidates=candidates, residues=residues))


def _drain_queue(q: Any) -> list:
    items = []
    while True:
        try:
            items.append(q.get_nowait())
        except queue.Empty:
            return items


class BackdoorPredictor:
    """Parallel state recovery for a backdoored Dual_EC_DRBG.

    Needs only public generator parameters (curve, Q, output width) plus the
    trapdoor d with P = d*Q.
    """

    def __init__(
        self,
        curve: Curve,
        q: Point,
        d: int,
        outsize: int | None = None,
        config: PredictorConfig | None = None,
        progress: ProgressSink | None = None,
    ) -> None:
        self.curve = curve
        self.q = Point(q.x, q.y)
        self.d = d
        self.outsize = curve.bitsize - LOST_BITS if outsize is None else outsize
        self.config = config or PredictorConfig()
        self.progress = progress
        self._group = CurveGroup(curve)

        if self.config.backend not in BACKENDS:
            raise ValueError(
                f"Unknown backend {self.config.backend!r}; expected one of {BACKENDS}"
            )
        if self.config.num_workers < 1:
            raise ValueError("num_workers must be at least 1")

    @classmethod
    def from_drbg(
        cls,
        drbg: DualECDRBG,
        d: int,
        config: PredictorConfig | None = None,
        progress: ProgressSink | None = None,
    ) -> BackdoorPredictor:
        """Build a predictor from a generator's public parameters."""
        return cls(drbg.curve, drbg.q, d, drbg.outsize, config=config, progress=progress)

    def _job(self, output1: int, output2: int) -> SearchJob:
        limit = 1 << self.outsize
        for output in (output1, output2):
            if not 0 <= output < limit:
                raise ValueError(f"Output {output:#x} does not fit in {self.outsize} bits")
        return SearchJob(
            curve=self.curve,
            q=self.q,
            d=self.d,
            outsize=self.outsize,
            output1=output1,
            output2=output2,
            verbose=self.config.verbose,
        )

    def _emit(self, text: str) -> None:
        if self.progress is not None:
            self.progress(text)

    def check_prefix(self, prefix: int, output1: int, output2: int) -> int | None:
        """Test a single lost-bits guess; return the state if it verifies."""
        if not 0 <= prefix < SEARCH_SPACE:
            raise ValueError(f"Prefix must be in [0, {SEARCH_SPACE}), got {prefix}")
        job = self._job(output1, output2)
        point = reconstruct_point(self._group, prefix, output1, self.outsize)
        if point is None:
            return None
        guess = guess_state(self._group, job, point)
        if guess is None or guess[1] != output2:
            return None
        return guess[0]

    def predict(self, output1: int, output2: int) -> int | None:
        """Recovered state after the step that produced ``output2``, or None."""
        return self.run(output1, output2).state

    def run(self, output1: int, output2: int) -> PredictionResult:
        """Search all 65,536 prefixes in parallel; stop at the first match."""
        job = self._job(output1, output2)
        num_workers = min(self.config.num_workers, SEARCH_SPACE)

        if self.config.backend == "process":
            ctx = multiprocessing.get_context()
            halt = ctx.Event()
            results = ctx.Queue()
            messages = ctx.Queue(self.config.message_queue_size)
            spawn = ctx.Process
        else:
            halt = threading.Event()
            results = queue.Queue()
            messages = queue.Queue(self.config.message_queue_size)
            spawn = threading.Thread

        self._emit(
            f"Recovering lost bits using {num_workers} {self.config.backend} workers ..."
        )
        started = time.perf_counter()

        workers = [
            spawn(
                target=search_partition,
                args=(replace(job), worker_id, num_workers, halt, results, messages),
                name=f"dual-ec-search-{worker_id}",
                daemon=True,
            )
            for worker_id in range(num_workers)
        ]
        for worker in workers:
            worker.start()

        outcomes: list[WorkerOutcome] = []
        winner: WorkerOutcome | None = None
        try:
            while len(outcomes) < num_workers:
                try:
                    outcome = results.get(timeout=self.config.poll_interval)
                except queue.Empty:
                    self._forward(messages)
                    continue
                outcomes.append(outcome)
                if outcome.error is not None:
                    raise PredictionError(
                        f"Search worker {outcome.worker_id} failed: {outcome.error}"
                    )
                if outcome.state is not None:
                    winner = outcome
                    break
        finally:
            halt.set()
            outcomes.extend(self._shutdown(workers, results, messages))

        candidates = np.zeros(num_workers, dtype=np.int64)
        residues = np.zeros(num_workers, dtype=np.int64)
        for outcome in outcomes:
            candidates[outcome.worker_id] = outcome.candidates
            residues[outcome.worker_id] = outcome.residues

        return PredictionResult(
            state=None if winner is None else winner.state,
            prefix=None if winner is None else winner.prefix,
            num_workers=num_workers,
            elapsed=time.perf_counter() - started,
            candidates=candidates,
            residues=residues,
        )

    def _forward(self, messages: Any) -> None:
        for text in _drain_queue(messages):
            self._emit(text)

    def _shutdown(self, workers: list, results: Any, messages: Any) -> list[WorkerOutcome]:
        """Join every worker, draining both queues so no producer stalls."""
        late: list[WorkerOutcome] = []
        for worker in workers:
            while True:
                worker.join(timeout=self.config.poll_interval)
                late.extend(_drain_queue(results))
                self._forward(messages)
                if not worker.is_alive():
                    break
        late.extend(_drain_queue(results))
        self._forward(messages)
        return late


def predict(
    drbg: DualECDRBG,
    d: int,
    output1: int,
    output2: int,
    config: PredictorConfig | None = None,
    progress: ProgressSink | None = None,
) -> int | None:
    """Recover ``drbg``'s state from two successive outputs using trapdoor d."""
    predictor = BackdoorPredictor.from_drbg(drbg, d, config=config, progress=progress)
    return predictor.predict(output1, output2)
