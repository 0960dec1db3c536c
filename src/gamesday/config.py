"""Config loading and validation for the gamesday scheduling app."""

from datetime import date, datetime, time
from pathlib import Path

import yaml

from gamesday.models import Game, Group, TimeRange
from gamesday.scheduler import DEFAULT_GAME_DURATION_MS, DEFAULT_TRANSITION_TIME_MS


def parse_time(s: str) -> time:
    """Parse time strings like '8:40am', '12pm', '17:00', '13:00:00'."""
    s = s.strip()
    s_lower = s.lower()

    is_pm = s_lower.endswith("pm")
    is_am = s_lower.endswith("am")

    # Strip am/pm suffix
    s_clean = s_lower
    if is_pm or is_am:
        s_clean = s_clean[:-2].strip()

    if ":" in s_clean:
        parts = s_clean.split(":")
        h = int(parts[0])
        m = int(parts[1])
    else:
        h = int(s_clean)
        m = 0

    if is_pm and h < 12:
        h += 12
    elif is_am and h == 12:
        h = 0

    return time(h, m)


def parse_date(s: str) -> date:
    """Parse date string YYYY-MM-DD."""
    parts = s.strip().split("-")
    return date(int(parts[0]), int(parts[1]), int(parts[2]))


def parse_datetime(s: str) -> datetime:
    """Parse 'YYYY-MM-DD HH:MM' (or with a 'T' separator / am-pm time)."""
    s = s.strip().replace("T", " ")
    day_str, _, time_str = s.partition(" ")
    if not time_str:
        raise ValueError(f"Cannot parse date and time: {s!r}")
    return datetime.combine(parse_date(day_str), parse_time(time_str))


def parse_time_range(value) -> TimeRange:
    """Parse a time range entry.

    Either a same-day string 'YYYY-MM-DD 8:40am-12pm' or a mapping with
    'start' and 'end' datetimes.
    """
    if isinstance(value, dict):
        return TimeRange(
            start_time=parse_datetime(str(value["start"])),
            end_time=parse_datetime(str(value["end"])),
        )

    s = str(value).strip()
    day_str, _, times = s.partition(" ")
    start_str, sep, end_str = times.partition("-")
    if not sep:
        raise ValueError(f"Cannot parse time range: {s!r}")
    day = parse_date(day_str)
    return TimeRange(
        start_time=datetime.combine(day, parse_time(start_str)),
        end_time=datetime.combine(day, parse_time(end_str)),
    )


def _parse_groups(raw_groups: list) -> list[Group]:
    groups = []
    for i, gdata in enumerate(raw_groups, 1):
        if isinstance(gdata, dict):
            gid = int(gdata.get("id", i))
            name = str(gdata.get("name", "")).strip()
        else:
            gid = i
            name = str(gdata).strip()
        if not name:
            raise ValueError(f"Group #{i} has no name")
        groups.append(Group(id=gid, name=name))
    return groups


def _parse_games(raw_games: list) -> list[Game]:
    games = []
    for i, gdata in enumerate(raw_games, 1):
        name = str(gdata.get("name", "")).strip()
        if not name:
            raise ValueError(f"Game #{i} has no name")
        games.append(Game(
            id=int(gdata.get("id", i)),
            name=name,
            number_of_groups=int(gdata.get("groups", 2)),
            rounds=int(gdata.get("rounds", 1)),
            description=str(gdata.get("description", "")),
            image_url=str(gdata.get("image", "")),
        ))
    return games


def load_config(path: str | Path) -> dict:
    """Load and validate config YAML, returning structured data.

    Returns dict with:
    - event: {name, date, game_duration_minutes, transition_minutes,
              game_duration_ms, transition_time_ms, seed, reverse_slots}
    - groups: list[Group]
    - games: list[Game]
    - time_ranges: list[TimeRange] (as written; validated at generation)
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    # Event
    raw_event = raw.get("event", {})
    duration_min = raw_event.get(
        "game_duration_minutes", DEFAULT_GAME_DURATION_MS // 60000
    )
    transition_min = raw_event.get(
        "transition_minutes", DEFAULT_TRANSITION_TIME_MS // 60000
    )
    event = {
        "name": raw_event.get("name", ""),
        "date": (parse_date(str(raw_event["date"]))
                 if raw_event.get("date") else None),
        "game_duration_minutes": duration_min,
        "transition_minutes": transition_min,
        "game_duration_ms": int(duration_min * 60000),
        "transition_time_ms": int(transition_min * 60000),
        "seed": raw_event.get("seed"),
        "reverse_slots": bool(raw_event.get("reverse_slots", False)),
    }

    groups = _parse_groups(raw.get("groups", []))
    games = _parse_games(raw.get("games", []))
    time_ranges = [parse_time_range(tr) for tr in raw.get("time_ranges", [])]

    # Validate
    errors = []
    warnings = []

    seen_groups: set[int] = set()
    for g in groups:
        if g.id in seen_groups:
            errors.append(f"Duplicate group id {g.id} ({g.name})")
        seen_groups.add(g.id)

    seen_games: set[int] = set()
    for g in games:
        if g.id in seen_games:
            errors.append(f"Duplicate game id {g.id} ({g.name})")
        seen_games.add(g.id)
        if g.number_of_groups < 1 or g.rounds < 1:
            errors.append(
                f"Game {g.name} needs at least 1 group and 1 round "
                f"(groups: {g.number_of_groups}, rounds: {g.rounds})"
            )
            continue
        if g.number_of_groups > 3:
            warnings.append(f"Game {g.name} is played by {g.number_of_groups} groups")
        if g.rounds > 2:
            warnings.append(f"Game {g.name} is played {g.rounds} times by each group")

    if event["game_duration_ms"] <= 0:
        errors.append("event.game_duration_minutes must be positive")
    if event["transition_time_ms"] < 0:
        errors.append("event.transition_minutes cannot be negative")

    if warnings:
        print("Config warnings:")
        for w in warnings:
            print(f"  {w}")

    if errors:
        raise ValueError("Config validation errors:\n" + "\n".join(
            f"  {e}" for e in errors
        ))

    return {
        "event": event,
        "groups": groups,
        "games": games,
        "time_ranges": time_ranges,
    }
