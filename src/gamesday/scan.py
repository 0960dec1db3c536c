#!/usr/bin/env python3
"""Scan seeds to find schedules that reach the theoretical minimum.

Usage: gamesday-scan [config.yaml] [-n MAX_SEED]
"""

import argparse
import io
import sys
from pathlib import Path

from gamesday.config import load_config
from gamesday.scheduler import schedule
from gamesday.stats import compute_stats


def scan_seed(config: dict, seed: int) -> dict:
    """Run a single seed and return summary info."""
    # Suppress scheduler's verbose output
    old_stdout = sys.stdout
    sys.stdout = io.StringIO()
    try:
        outcome = schedule(config, seed=seed)
    finally:
        sys.stdout = old_stdout

    if not outcome.ok:
        return {"seed": seed, "ok": False, "error": outcome.error.message}

    stats = compute_stats(outcome.slots, config["groups"], config["games"])
    return {
        "seed": seed,
        "ok": stats["is_optimal"] and stats["second_chance_parties"] == 0,
        "slots": stats["time_slots_used"],
        "parties": stats["actual_slots_used"],
        "minimum": stats["theoretical_minimum_slots"],
        "bonus": stats["second_chance_parties"],
    }


def main():
    parser = argparse.ArgumentParser(
        description="Scan seeds to find schedules with the fewest parties "
                    "and no bonus plays",
    )
    parser.add_argument(
        "config", nargs="?", default="config.yaml",
        help="Path to config YAML file (default: config.yaml)"
    )
    parser.add_argument(
        "-n", "--max-seed", type=int, default=100,
        help="Maximum seed to try (default: 100, scans 0..N-1)"
    )
    args = parser.parse_args()

    config_path = args.config
    if not Path(config_path).exists():
        print(f"Error: config file {config_path} not found")
        sys.exit(1)

    config = load_config(config_path)
    max_seed = args.max_seed

    print(f"Scanning seeds 0..{max_seed - 1} using {config_path}...")
    print(f"{'Seed':>6}  {'Slots':>5}  {'Parties':>7}  {'Min':>5}  {'Bonus':>5}  Result")
    print("-" * 50)

    good_seeds = []
    for seed in range(max_seed):
        result = scan_seed(config, seed)
        status = "OK" if result["ok"] else "FAIL"
        slots = result.get("slots", "?")
        parties = result.get("parties", "?")
        minimum = result.get("minimum", "?")
        bonus = result.get("bonus", "?")
        print(f"{seed:>6}  {slots:>5}  {parties:>7}  {minimum:>5}  {bonus:>5}  {status}",
              flush=True)
        if result["ok"]:
            good_seeds.append(seed)

    print("-" * 50)
    if good_seeds:
        print(f"\nGood seeds ({len(good_seeds)}/{max_seed}): "
              f"{', '.join(str(s) for s in good_seeds)}")
    else:
        print(f"\nNo good seeds found in 0..{max_seed - 1}")

    sys.exit(0 if good_seeds else 1)


if __name__ == "__main__":
    main()
