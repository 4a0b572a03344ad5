"""Main entry point: python -m dual_ec_backdoor"""

from __future__ import annotations

import argparse
import sys
import time

from dual_ec_backdoor import __version__
from dual_ec_backdoor.attack.backdoor import (
    generate_backdoor,
    parse_scalar,
    random_backdoor,
    random_seed,
)
from dual_ec_backdoor.attack.predictor import BackdoorPredictor
from dual_ec_backdoor.core.curves import CURVES, get_curve
from dual_ec_backdoor.core.drbg import DualECDRBG
from dual_ec_backdoor.utils.constants import BACKENDS, DEFAULT_NUM_WORKERS
from dual_ec_backdoor.utils.types import PredictorConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dual-ec-backdoor",
        description="Interactive proof-of-concept of the Dual_EC_DRBG backdoor",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--curve", "-c", default="P-256", choices=sorted(CURVES),
        help="NIST-standard curve (default P-256)",
    )
    parser.add_argument(
        "--backdoor", "-b", type=str,
        help="Backdoor d to use (decimal or 0x-hex); random if omitted",
    )
    parser.add_argument(
        "--seed", "-s", type=str,
        help="Seed to use (decimal or 0x-hex); random if omitted",
    )
    parser.add_argument(
        "--workers", "-w", type=int, default=DEFAULT_NUM_WORKERS,
        help=f"Search workers (default {DEFAULT_NUM_WORKERS})",
    )
    parser.add_argument(
        "--backend", choices=BACKENDS, default="thread",
        help="Run workers as threads or processes (default thread)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Print debug messages")
    return parser


def resolve_scalars(args: argparse.Namespace, parser: argparse.ArgumentParser) -> tuple[int, int]:
    """Parse or generate (backdoor, seed); exits via the parser on bad input."""
    curve = get_curve(args.curve)

    if args.backdoor is None:
        d = random_backdoor(curve)
    else:
        try:
            d = parse_scalar(args.backdoor)
        except ValueError as exc:
            parser.error(str(exc))
        if d < 2:
            parser.error("Backdoor must be at least 2.")

    if args.seed is None:
        seed = random_seed(curve)
    else:
        try:
            seed = parse_scalar(args.seed)
        except ValueError as exc:
            parser.error(str(exc))
        if seed < 1:
            parser.error("Seed must be a positive integer.")

    if args.workers < 1:
        parser.error("Need at least one worker.")

    return d, seed


def run_demo(args: argparse.Namespace, d: int, seed: int) -> int:
    """Alice draws output, Eve recovers her state. Returns the exit code."""
    curve = get_curve(args.curve)

    # P is the curve's generator as in the NIST specification; Q carries the trapdoor
    p, q = generate_backdoor(curve, d)
    drbg = DualECDRBG(curve, p, q, seed)

    print(f"Curve = \t{curve.name}")
    print(f"Seed = \t\t{seed:x}")
    print(f"d = \t\t{d:x}")
    print(f"Q = \t\t{q}")
    print(f"dQ = \t\t{q * d}")
    print(f"P = \t\t{p}")
    print()

    output1 = drbg.next()
    output2 = drbg.next()
    nbytes = drbg.outsize // 8
    print(f"Alice generated output {output1:x} {output2:x} (2 x {nbytes} bytes).")
    print("Eve has observed this output and will guess Alice's state.")

    def progress(text: str) -> None:
        print(text)

    config = PredictorConfig(
        num_workers=args.workers,
        backend=args.backend,
        verbose=args.verbose,
    )
    predictor = BackdoorPredictor.from_drbg(drbg, d, config=config, progress=progress)

    started = time.perf_counter()
    result = predictor.run(output1, output2)
    print(f"Eve spent {time.perf_counter() - started:.3f} s calculating Alice's state.")
    print(
        f"  Candidates examined: {result.total_candidates} "
        f"({result.residue_rate:.1%} lifted to curve points)"
    )

    if result.found:
        print(f"Eve guessed Alice's state as {result.state:x} (lost bits {result.prefix:04x}).")
    else:
        print("Eve was not able to guess Alice's state.")

    # The state is private to the generator; it is revealed only for this comparison
    actual = drbg.disclose_state()
    print(f"Alice's actual state is {actual:x}.")

    if result.found and result.state == actual:
        print(f"Eve predicts Alice's next output: {predicted_next(result.state, drbg):x}")
        print(f"Alice's next output is {drbg.next():x}.")
        return 0
    return 1


def predicted_next(state: int, drbg: DualECDRBG) -> int:
    """Run a clone of the generator from a recovered state."""
    clone = DualECDRBG(drbg.curve, drbg.p, drbg.q, state)
    return clone.next()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    d, seed = resolve_scalars(args, parser)
    return run_demo(args, d, seed)


if __name__ == "__main__":
    sys.exit(main())
