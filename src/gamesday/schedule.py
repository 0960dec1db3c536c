#!/usr/bin/env python3
"""Games day timetable builder.

Generate mode (default):
    gamesday [config.yaml] [--seed N] [--reverse] [-o DIR]

    Generates a timetable from the YAML config and writes:
      {DIR}/schedule.txt  - Slot-by-slot schedule + per-group timetable
      {DIR}/entries.csv   - Flat entry list (slot, group, game, round)
      {DIR}/stats.txt     - Validation report + quality statistics

Verify mode:
    gamesday --verify <entries.csv> [config.yaml]

    Re-imports an entries CSV and checks all constraints against config.
    Exit code 0 if valid, 1 if violations found.

Examples:
    gamesday                          # default config, random seed
    gamesday --seed 42 -o samedi      # reproducible, custom output dir
    gamesday --verify output/entries.csv
    gamesday custom.yaml --reverse    # fill the latest slots first
"""

import argparse
import sys
from pathlib import Path

from gamesday.config import load_config
from gamesday.scheduler import schedule
from gamesday.constraints import validate_schedule, format_validation_report
from gamesday.stats import compute_stats, format_stats_report
from gamesday.output import write_schedule
from gamesday.verify import parse_entries_csv


def main():
    parser = argparse.ArgumentParser(
        description="Games day timetable builder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Output files (generate mode):
  {prefix}/schedule.txt   Slot-by-slot schedule + per-group timetable
  {prefix}/entries.csv    Flat entry list, re-importable with --verify
  {prefix}/stats.txt      Validation report + quality statistics

Exit codes:
  0  Schedule generated and valid
  1  Generation rejected, or constraint violations found
""",
    )
    parser.add_argument(
        "config", nargs="?", default="config.yaml",
        help="Path to config YAML file (default: config.yaml)"
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="Random seed for reproducible schedules. Try a few seeds and "
             "keep the one with no bonus parties."
    )
    parser.add_argument(
        "--reverse", action="store_true", default=None,
        help="Fill candidate slots from the latest one backwards"
    )
    parser.add_argument(
        "--output-prefix", "-o", default="output",
        help="Output directory for generated files (default: output/)"
    )
    parser.add_argument(
        "--verify", metavar="CSV",
        help="Verify an existing entries CSV instead of generating"
    )
    args = parser.parse_args()

    config_path = args.config
    if not Path(config_path).exists():
        print(f"Error: config file {config_path} not found")
        sys.exit(1)

    print(f"Loading config from {config_path}...")
    config = load_config(config_path)
    groups = config["groups"]
    games = config["games"]

    if args.verify:
        # Verification mode
        print(f"Verifying schedule from {args.verify}...")
        slots = parse_entries_csv(args.verify, config)
        print(f"Loaded {len(slots)} slots")

        result = validate_schedule(slots, groups, games)
        print(format_validation_report(result))

        stats = compute_stats(slots, groups, games)
        print("\n" + format_stats_report(stats, groups))
        sys.exit(0 if result["valid"] else 1)

    # Generation mode
    print(f"Generating schedule (seed={args.seed})...")
    outcome = schedule(config, seed=args.seed, reverse=args.reverse)

    if not outcome.ok:
        print(f"Error: {outcome.error.message}")
        sys.exit(1)
    slots = outcome.slots

    # Validate
    print("\nValidating...")
    result = validate_schedule(slots, groups, games)
    report = format_validation_report(result)
    print(report)

    # Stats
    stats = compute_stats(slots, groups, games)
    stats_text = format_stats_report(stats, groups)
    print("\n" + stats_text)

    # Write outputs
    print("\nWriting output files...")
    write_schedule(slots, groups, output_prefix=args.output_prefix,
                   title=config["event"].get("name", ""))

    # Write stats
    stats_path = Path(args.output_prefix) / "stats.txt"
    stats_path.write_text(report + "\n\n" + stats_text, encoding="utf-8")
    print(f"Written: {stats_path}")

    if result["valid"]:
        print("\nSchedule generated successfully!")
    else:
        print(f"\nSchedule has {len(result['errors'])} constraint violations.")
        print("Review errors above and adjust config or seed.")
        sys.exit(1)


if __name__ == "__main__":
    main()
