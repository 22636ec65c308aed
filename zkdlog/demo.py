"""
Demo: prove and verify knowledge of a discrete log, with timings.

    $ zkdlog-demo --sid sid --pid 1
    Secret x: Scalar(0x1f3c…)
    Proof computation time: 0.41 ms
    Proof t: 02ab…
    Proof s: 5e17…
    Verify computation time: 0.52 ms
    DLOG proof is correct
"""

from __future__ import annotations

import argparse
import logging
import time
from typing import List, Optional

from .config import Config, setup_logging
from .curve import Scalar, G
from .errors import InvalidInputError
from .proofs import DLogProof
from .rng import SecureRandom
from .statement import SessionContext, Statement, Witness

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Prove and verify a Schnorr DLOG proof")
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--sid", help="session id")
    parser.add_argument("--pid", type=int, help="party id")
    parser.add_argument(
        "--iterations", type=int, help="number of prove/verify rounds")
    parser.add_argument(
        "--secret-hex", help="fixed 32-byte secret (hex) instead of random")
    parser.add_argument("--log-level", help="logging level")
    return parser.parse_args(argv)


def run_once(
    context: SessionContext,
    witness: Witness,
    rng: SecureRandom,
) -> bool:
    statement = Statement.from_witness(witness, G)

    start = time.perf_counter()
    proof = DLogProof.prove_statement(context, statement, witness, rng)
    prove_ms = (time.perf_counter() - start) * 1000
    print(f"Proof computation time: {prove_ms:.2f} ms")

    print(f"Proof t: {proof.t.to_bytes().hex()}")
    print(f"Proof s: {proof.s.to_bytes().hex()}")

    # round-trip through the wire format as a peer would receive it
    received = DLogProof.from_bytes(proof.to_bytes())

    start = time.perf_counter()
    ok = received.verify_statement(context, statement)
    verify_ms = (time.perf_counter() - start) * 1000
    print(f"Verify computation time: {verify_ms:.2f} ms")

    logger.debug("prove %.3f ms, verify %.3f ms", prove_ms, verify_ms)
    return ok


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    config = Config.load(args.config) if args.config else Config()

    if args.sid is not None:
        config.demo.session_id = args.sid
    if args.pid is not None:
        config.demo.party_id = args.pid
    if args.iterations is not None:
        config.demo.iterations = args.iterations
    if args.log_level:
        config.log.level = args.log_level

    errors = config.validate()
    if errors:
        for e in errors:
            print(f"config error: {e}")
        return 2

    setup_logging(config.log)

    rng = SecureRandom()
    try:
        context = SessionContext(config.demo.session_id, config.demo.party_id)
        if args.secret_hex:
            witness = Witness(Scalar.from_bytes(bytes.fromhex(args.secret_hex)))
        else:
            witness = Witness.random(rng)
    except (InvalidInputError, ValueError) as e:
        print(f"invalid input: {e}")
        return 2

    print(f"Secret x: {witness.secret!r}")

    all_ok = True
    for _ in range(config.demo.iterations):
        all_ok = run_once(context, witness, rng) and all_ok

    if all_ok:
        print("DLOG proof is correct")
        return 0
    print("DLOG proof is not correct")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
