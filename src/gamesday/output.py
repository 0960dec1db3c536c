"""Output formatters for the gamesday scheduling app."""

import csv
from datetime import date
from io import StringIO
from pathlib import Path

from gamesday.models import Group, ScheduleEntry, TimeSlot

# Column order of the flat entries CSV (one row per schedule entry)
ENTRY_COLUMNS = [
    "slot_index", "start_time", "end_time",
    "group_id", "group_name", "game_id", "game_name",
    "round", "is_second_chance",
]


def _fmt_hm(dt) -> str:
    return dt.strftime("%H:%M")


def _party_label(party: list[ScheduleEntry]) -> str:
    game = party[0].game
    rnd = f" (round {party[0].round})" if game.rounds > 1 else ""
    names = ", ".join(
        e.group.name + (" *" if e.is_second_chance else "") for e in party
    )
    return f"{game.name}{rnd}: {names}"


def format_schedule(slots: list[TimeSlot], groups: list[Group],
                    title: str = "") -> str:
    """Format schedule as human-readable text, organized by day."""
    lines = []
    lines.append("=" * 80)
    lines.append((title or "GAMES SCHEDULE").upper())
    lines.append("=" * 80)

    by_day: dict[date, list[TimeSlot]] = {}
    for slot in slots:
        by_day.setdefault(slot.start_time.date(), []).append(slot)

    for day in sorted(by_day):
        lines.append(f"\n--- {day.strftime('%A %d/%m/%Y')} ---")
        for slot in sorted(by_day[day], key=lambda s: s.start_time):
            when = f"{_fmt_hm(slot.start_time)}-{_fmt_hm(slot.end_time)}"
            parties = list(slot.parties().values())
            lines.append(f"\n  {when}  [#{slot.slot_index}]")
            for party in parties:
                lines.append(f"      {_party_label(party)}")

    if any(e.is_second_chance for s in slots for e in s.entries):
        lines.append("\n  * bonus play (group already finished its games)")

    # Per-group schedule
    lines.append("\n" + "=" * 80)
    lines.append("PER-GROUP SCHEDULES")
    lines.append("=" * 80)

    for group in groups:
        lines.append(f"\n{group.name}:")
        count = 0
        for slot in slots:
            for entry in slot.entries:
                if entry.group.id != group.id:
                    continue
                count += 1
                others = [
                    e.group.name for e in slot.entries
                    if e.party_key == entry.party_key and e.group.id != group.id
                ]
                vs = f" with {', '.join(others)}" if others else ""
                rnd = f" (round {entry.round})" if entry.game.rounds > 1 else ""
                bonus = "  BONUS" if entry.is_second_chance else ""
                lines.append(
                    f"  {count:>2}. {slot.start_time.strftime('%a %H:%M')}  "
                    f"{entry.game.name}{rnd}{vs}{bonus}"
                )

    return "\n".join(lines)


def format_entries_csv(slots: list[TimeSlot]) -> str:
    """Format schedule as a flat CSV, one row per entry.

    Same shape as the relational time slot / schedule entry tables, so it can
    be re-imported with verify.parse_entries_csv.
    """
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(ENTRY_COLUMNS)

    for slot in sorted(slots, key=lambda s: s.start_time):
        for e in slot.entries:
            writer.writerow([
                slot.slot_index,
                slot.start_time.isoformat(timespec="minutes"),
                slot.end_time.isoformat(timespec="minutes"),
                e.group.id, e.group.name,
                e.game.id, e.game.name,
                e.round,
                "1" if e.is_second_chance else "0",
            ])

    return output.getvalue()


def write_schedule(slots: list[TimeSlot], groups: list[Group],
                   output_prefix: str = "output", title: str = ""):
    """Write all output files into {output_prefix}/ directory."""
    out_dir = Path(output_prefix)
    out_dir.mkdir(parents=True, exist_ok=True)

    # Human-readable schedule
    schedule_text = format_schedule(slots, groups, title=title)
    schedule_path = out_dir / "schedule.txt"
    schedule_path.write_text(schedule_text, encoding="utf-8")
    print(f"Written: {schedule_path}")

    # Flat entries CSV
    csv_text = format_entries_csv(slots)
    csv_path = out_dir / "entries.csv"
    csv_path.write_text(csv_text, encoding="utf-8")
    print(f"Written: {csv_path}")
