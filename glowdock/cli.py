"""Command-line interface for glowdock."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Sequence

from glowdock.data.io import load_config, parse_swarm_id
from glowdock.errors import GlowdockError
from glowdock.pipeline.run import build_config, run_simulation

logger = logging.getLogger("glowdock")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""

    parser = argparse.ArgumentParser(prog="glowdock")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Simulate one swarm")
    run_parser.add_argument("setup", help="Path to the YAML/JSON setup file")
    run_parser.add_argument("swarm", help="Starting poses (initial_positions_<id>.dat)")
    run_parser.add_argument("steps", type=int, help="Number of GSO steps")
    run_parser.add_argument("scoring", help="Scoring function (dfire or dna)")
    run_parser.add_argument("--out", help="Output directory (default: swarm_<id> next to the setup)")
    run_parser.add_argument("--workers", type=int, help="Evaluation threads")
    run_parser.add_argument("--seed", type=int, help="Override the setup seed")

    return parser


def _default_out_dir(setup_path: str, swarm_path: str) -> str:
    swarm_id = parse_swarm_id(swarm_path)
    if swarm_id is None:
        raise GlowdockError(
            f"Could not parse swarm id from '{swarm_path}'; pass --out explicitly"
        )
    return os.path.join(os.path.dirname(os.path.abspath(setup_path)), f"swarm_{swarm_id}")


def _run(args: argparse.Namespace) -> int:
    raw = load_config(args.setup)
    overrides = {"steps": args.steps, "scoring": args.scoring.lower()}
    if args.workers is not None:
        overrides["workers"] = args.workers
    if args.seed is not None:
        overrides["seed"] = args.seed
    cfg = build_config({**raw, **overrides})
    out_dir = args.out or _default_out_dir(args.setup, args.swarm)
    base_dir = os.path.dirname(os.path.abspath(args.setup))
    result = run_simulation(cfg, args.swarm, out_dir, base_dir=base_dir)
    logger.info("Wrote %d steps for %d glowworms to %s", result.steps, len(result.glowworms), out_dir)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "run":
        try:
            return _run(args)
        except (GlowdockError, OSError) as exc:
            logger.error("%s", exc)
            print(f"Error: {exc}", file=sys.stderr)
            return 1

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
