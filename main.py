"""Cogload v1.0 CLI entry point."""

import argparse
import logging
from dataclasses import replace

from cogload import DEFAULT_CONFIG, SimulationInput, analyze, generate_report


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Explainable cognitive load report")
    parser.add_argument("data", nargs="?", default="test_data.json",
                        help="JSON file of check-in records (default: test_data.json)")
    parser.add_argument("--llm", action="store_true",
                        help="try the local text-generation service for coaching")
    parser.add_argument("--simulate", nargs=4, type=float,
                        metavar=("WORKLOAD", "DEADLINES", "SLEEP", "RECOVERY"),
                        help="project the upcoming week under these inputs")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = DEFAULT_CONFIG
    if args.llm:
        cfg = replace(cfg, coach_service=replace(cfg.coach_service, enabled=True))

    simulation = None
    if args.simulate:
        workload, deadlines, sleep, recovery = args.simulate
        simulation = SimulationInput(workload, int(deadlines), sleep, recovery)

    result = analyze(args.data, cfg, simulation=simulation)
    print(generate_report(result))


if __name__ == "__main__":
    main()
