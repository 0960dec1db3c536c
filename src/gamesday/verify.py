"""Standalone verifier for the gamesday scheduling app.

Can validate a saved schedule by reading an entries CSV + config.yaml.
Usage: gamesday-verify <entries.csv> [config.yaml]
"""

import csv
import sys
from datetime import datetime
from pathlib import Path

from gamesday.config import load_config
from gamesday.constraints import validate_schedule, format_validation_report
from gamesday.models import ScheduleEntry, TimeSlot
from gamesday.stats import compute_stats, format_stats_report


def parse_entries_csv(csv_path: str | Path, config: dict) -> list[TimeSlot]:
    """Parse a flat entries CSV back into TimeSlots.

    Groups and games are looked up by id in the config; rows naming an
    unknown id raise ValueError.
    """
    groups = {g.id: g for g in config["groups"]}
    games = {g.id: g for g in config["games"]}

    slots: dict[int, TimeSlot] = {}
    with open(csv_path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for line_no, row in enumerate(reader, 2):
            slot_str = row.get("slot_index", "").strip()
            if not slot_str:
                continue

            group_id = int(row["group_id"])
            game_id = int(row["game_id"])
            if group_id not in groups:
                raise ValueError(f"Line {line_no}: unknown group id {group_id}")
            if game_id not in games:
                raise ValueError(f"Line {line_no}: unknown game id {game_id}")

            slot_index = int(slot_str)
            slot = slots.get(slot_index)
            if slot is None:
                slot = TimeSlot(
                    slot_index=slot_index,
                    start_time=datetime.fromisoformat(row["start_time"].strip()),
                    end_time=datetime.fromisoformat(row["end_time"].strip()),
                )
                slots[slot_index] = slot

            slot.entries.append(ScheduleEntry(
                group=groups[group_id],
                game=games[game_id],
                round=int(row.get("round") or 1),
                is_second_chance=row.get("is_second_chance", "0").strip().lower()
                in ("1", "true", "yes"),
            ))

    return sorted(slots.values(), key=lambda s: s.start_time)


def main():
    if len(sys.argv) < 2:
        print("Usage: gamesday-verify <entries.csv> [config.yaml]")
        print("  Validates a schedule CSV against the groups and games in config.")
        sys.exit(1)

    csv_path = sys.argv[1]
    config_path = sys.argv[2] if len(sys.argv) > 2 else "config.yaml"

    if not Path(csv_path).exists():
        print(f"Error: {csv_path} not found")
        sys.exit(1)
    if not Path(config_path).exists():
        print(f"Error: {config_path} not found")
        sys.exit(1)

    print(f"Loading config from {config_path}...")
    config = load_config(config_path)

    print(f"Parsing schedule from {csv_path}...")
    slots = parse_entries_csv(csv_path, config)
    print(f"Loaded {len(slots)} slots")

    if not slots:
        print("No entries found in CSV. Check the format.")
        sys.exit(1)

    # Validate
    result = validate_schedule(slots, config["groups"], config["games"])
    print(format_validation_report(result))

    # Stats
    stats = compute_stats(slots, config["groups"], config["games"])
    print("\n" + format_stats_report(stats, config["groups"]))

    sys.exit(0 if result["valid"] else 1)


if __name__ == "__main__":
    main()
