"""Main scheduling engine for the gamesday scheduling app.

Five phases:
1. Validation: group/game counts, game feasibility, time ranges
2. Slot enumeration: the fixed list of candidate slots from the time ranges
3. Greedy fill: per slot, pair up groups that need the same game round
4. Backfill: place leftover groups, borrowing finished groups as bonus partners
5. Completion: every group has played every round of every game

Within a slot a group plays at most once and a game hosts at most one party,
of exactly number_of_groups groups. Expected failures (bad input, not enough
time) come back as a ScheduleResult carrying a ScheduleError; only broken
internal invariants raise.

The group order of each slot is shuffled before being sorted by outstanding
needs, so two runs without a seed can produce different (equally valid)
schedules. Pass a seed or an rng to pin the outcome.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Optional
import random

from gamesday.models import (
    ErrorKind, Game, Group, ScheduleEntry, ScheduleError, ScheduleResult,
    TimeRange, TimeSlot,
)
from gamesday.needs import NeedKey, NeedTracker


DEFAULT_GAME_DURATION_MS = 12 * 60 * 1000
DEFAULT_TRANSITION_TIME_MS = 8 * 60 * 1000

# Used when no time range is supplied
DEFAULT_DAY_START = time(9, 0)
DEFAULT_DAY_END = time(17, 0)


def _fmt_dt(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%d %H:%M")


def _fmt_duration(ms: int) -> str:
    if ms % 60000 == 0:
        return f"{ms // 60000} min"
    return f"{ms / 1000:g} s"


# ---------------------------------------------------------------------------
# Phase 1: Input validation
# ---------------------------------------------------------------------------

@dataclass
class ValidatedInput:
    """Inputs that passed validation, with ranges sorted and needs built."""
    groups: list[Group]
    games: list[Game]
    time_ranges: list[TimeRange]
    needs: NeedTracker


def validate_input(groups: list[Group], games: list[Game],
                   time_ranges: Optional[list[TimeRange]] = None,
                   reference_date: Optional[date] = None,
                   ) -> ValidatedInput | ScheduleError:
    """Check that a schedule can be attempted at all.

    When no time range is given, a default 09:00-17:00 range on
    reference_date (today if omitted) is used.
    """
    groups = list(groups)
    games = list(games)
    n = len(groups)

    if n == 0 or not games:
        return ScheduleError(
            ErrorKind.INSUFFICIENT_INPUT,
            "At least one group and one game are needed to generate a schedule.",
        )

    max_required = max(g.number_of_groups for g in games)
    if max_required > n:
        too_big = [g.name for g in games if g.number_of_groups > n]
        return ScheduleError(
            ErrorKind.INFEASIBLE_GAME_REQUIREMENT,
            f"Cannot generate the schedule. The following games need more "
            f"groups ({max_required}) than available ({n}): "
            f"{', '.join(too_big)}",
        )

    ranges = list(time_ranges or [])
    for i, tr in enumerate(ranges, 1):
        if not tr.is_valid():
            return ScheduleError(
                ErrorKind.INVALID_TIME_RANGE,
                f"Time range {i} ({_fmt_dt(tr.start_time)} to "
                f"{_fmt_dt(tr.end_time)}) must end after it starts.",
            )

    if not ranges:
        day = reference_date or date.today()
        ranges = [TimeRange(
            start_time=datetime.combine(day, DEFAULT_DAY_START),
            end_time=datetime.combine(day, DEFAULT_DAY_END),
        )]
    ranges.sort(key=lambda r: r.start_time)

    return ValidatedInput(
        groups=groups,
        games=games,
        time_ranges=ranges,
        needs=NeedTracker(groups, games),
    )


# ---------------------------------------------------------------------------
# Phase 2: Candidate slots
# ---------------------------------------------------------------------------

def enumerate_slots(time_ranges: list[TimeRange], game_duration_ms: int,
                    transition_time_ms: int) -> list[TimeSlot] | ScheduleError:
    """List every candidate slot, chronologically, indexed from 1.

    Inside a range, slots of game_duration_ms start at the range start and
    repeat every game_duration_ms + transition_time_ms while they still end
    within the range. A slot never spans two ranges.
    """
    if game_duration_ms <= 0:
        raise ValueError(f"Game duration must be positive, got {game_duration_ms} ms")
    if transition_time_ms < 0:
        raise ValueError(
            f"Transition time cannot be negative, got {transition_time_ms} ms"
        )

    duration = timedelta(milliseconds=game_duration_ms)
    interval = duration + timedelta(milliseconds=transition_time_ms)

    slots: list[TimeSlot] = []
    cursor: Optional[datetime] = None
    for tr in sorted(time_ranges, key=lambda r: r.start_time):
        start = tr.start_time
        # Overlapping ranges resume where the previous range stopped
        if cursor is not None and cursor > start:
            start = cursor
        while start + duration <= tr.end_time:
            slots.append(TimeSlot(
                slot_index=len(slots) + 1,
                start_time=start,
                end_time=start + duration,
            ))
            start += interval
        cursor = start

    if not slots:
        return ScheduleError(
            ErrorKind.NO_AVAILABLE_SLOTS,
            f"No slot of {_fmt_duration(game_duration_ms)} fits in the "
            f"available time ranges.",
        )
    return slots


# ---------------------------------------------------------------------------
# Phases 3-4: Filling one slot
# ---------------------------------------------------------------------------

def _game_for(catalog: dict[int, Game], key: NeedKey) -> Game:
    game = catalog.get(key[0])
    if game is None:
        raise RuntimeError(
            f"Need {key} refers to game id {key[0]}, which is not in the catalog"
        )
    return game


def _ordered_needs(keys: set[NeedKey], catalog: dict[int, Game],
                   most_groups_first: bool) -> list[tuple[NeedKey, Game]]:
    """Order needs by party size, then round, then catalog order."""
    position = {gid: i for i, gid in enumerate(catalog)}
    sign = -1 if most_groups_first else 1
    items = [(key, _game_for(catalog, key)) for key in keys]
    items.sort(key=lambda kg: (
        sign * kg[1].number_of_groups, kg[0][1], position[kg[0][0]],
    ))
    return items


@dataclass
class SlotPlan:
    """Entries committed to one slot so far."""
    entries: list[ScheduleEntry] = field(default_factory=list)
    groups: set[int] = field(default_factory=set)
    games: set[int] = field(default_factory=set)

    def commit(self, participants: list[Group], game: Game, rnd: int,
               needs: NeedTracker) -> None:
        """Add one party and discharge the needs it satisfies.

        A participant without the need must have finished everything; it
        gets a second-chance entry.
        """
        if len(participants) != game.number_of_groups:
            raise RuntimeError(
                f"Party of {len(participants)} groups for {game.name}, "
                f"which needs {game.number_of_groups}"
            )
        key = (game.id, rnd)
        for group in participants:
            if needs.has(group.id, key):
                needs.discharge(group.id, key)
                bonus = False
            elif needs.is_finished(group.id):
                bonus = True
            else:
                raise RuntimeError(
                    f"{group.name} placed on {game.name} (round {rnd}) "
                    f"while it still has other games to play"
                )
            self.entries.append(ScheduleEntry(
                group=group, game=game, round=rnd, is_second_chance=bonus,
            ))
            self.groups.add(group.id)
        self.games.add(game.id)


def _exact_partners(group: Group, key: NeedKey, groups: list[Group],
                    needs: NeedTracker, plan: SlotPlan) -> list[Group]:
    """Free groups that need the same game round, fewest needs first."""
    candidates = [
        g for g in groups
        if g.id != group.id
        and g.id not in plan.groups
        and needs.has(g.id, key)
    ]
    # Groups with little left to play are the hardest to place later
    candidates.sort(key=lambda g: needs.count(g.id))
    return candidates


def _finished_partners(group: Group, groups: list[Group],
                       needs: NeedTracker, plan: SlotPlan) -> list[Group]:
    """Free groups with nothing left to play, earliest finisher first."""
    finish_rank = {gid: i for i, gid in enumerate(needs.finished)}
    candidates = [
        g for g in groups
        if g.id != group.id
        and g.id not in plan.groups
        and g.id in finish_rank
    ]
    candidates.sort(key=lambda g: finish_rank[g.id])
    return candidates


def fill_slot(groups: list[Group], needs: NeedTracker,
              catalog: dict[int, Game],
              rng: random.Random) -> tuple[SlotPlan, list[Group]]:
    """Greedy pass over one slot.

    Groups are shuffled, then stable-sorted by outstanding need count
    (descending), so ties are broken at random. Each group takes the first
    need it can satisfy, biggest parties first: solo games immediately,
    multi-group games only with partners that need the same game round.

    Returns the slot plan and the shuffled group order (used by backfill).
    """
    plan = SlotPlan()

    shuffled = list(groups)
    rng.shuffle(shuffled)
    prioritized = sorted(shuffled, key=lambda g: -needs.count(g.id))

    for group in prioritized:
        if group.id in plan.groups or needs.is_finished(group.id):
            continue

        for key, game in _ordered_needs(needs.keys(group.id), catalog,
                                        most_groups_first=True):
            if game.id in plan.games:
                continue

            if game.is_solo:
                plan.commit([group], game, key[1], needs)
                break

            wanted = game.number_of_groups - 1
            partners = _exact_partners(group, key, groups, needs, plan)
            if len(partners) >= wanted:
                plan.commit([group] + partners[:wanted], game, key[1], needs)
                break

    return plan, shuffled


def backfill_slot(plan: SlotPlan, candidates: list[Group],
                  groups: list[Group], needs: NeedTracker,
                  catalog: dict[int, Game]) -> list[ScheduleEntry]:
    """Second pass over groups the greedy pass left idle.

    Easiest games first. Partners that need the same game round are used
    first, then finished groups, which play a bonus (second-chance) party.
    Returns the entries added.
    """
    added_from = len(plan.entries)

    for group in candidates:
        if group.id in plan.groups or needs.is_finished(group.id):
            continue

        for key, game in _ordered_needs(needs.keys(group.id), catalog,
                                        most_groups_first=False):
            if game.id in plan.games:
                continue

            wanted = game.number_of_groups - 1
            partners = (_exact_partners(group, key, groups, needs, plan)
                        + _finished_partners(group, groups, needs, plan))
            if len(partners) >= wanted:
                plan.commit([group] + partners[:wanted], game, key[1], needs)
                break

    return plan.entries[added_from:]


# ---------------------------------------------------------------------------
# Two-group deadlock
# ---------------------------------------------------------------------------

def find_two_group_deadlock(needs: NeedTracker, catalog: dict[int, Game],
                            ) -> Optional[list[tuple[int, NeedKey]]]:
    """Detect two groups each stuck on a different two-group game.

    Returns [(group_id, need), (group_id, need)] when exactly two groups
    have exactly one need each, on two different two-group games, and at
    least two other groups have finished. Otherwise None.
    """
    outstanding = needs.outstanding()
    if len(outstanding) != 2:
        return None

    stuck = []
    for gid, keys in outstanding.items():
        if len(keys) != 1:
            return None
        key = next(iter(keys))
        if _game_for(catalog, key).number_of_groups != 2:
            return None
        stuck.append((gid, key))

    if stuck[0][1][0] == stuck[1][1][0]:
        return None
    if len(needs.finished) < 2:
        return None
    return stuck


def second_chance_slot(stuck: list[tuple[int, NeedKey]], groups: list[Group],
                       needs: NeedTracker,
                       catalog: dict[int, Game]) -> SlotPlan:
    """Pair each stuck group with its own finished group in one slot."""
    by_id = {g.id: g for g in groups}
    fillers = [by_id[gid] for gid in needs.finished[:2]]

    plan = SlotPlan()
    for (gid, key), filler in zip(stuck, fillers):
        plan.commit([by_id[gid], filler], _game_for(catalog, key), key[1], needs)
    return plan


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def _remaining_summary(groups: list[Group], needs: NeedTracker,
                       catalog: dict[int, Game]) -> str:
    position = {gid: i for i, gid in enumerate(catalog)}
    parts = []
    for group in groups:
        keys = needs.keys(group.id)
        if not keys:
            continue
        ordered = sorted(keys, key=lambda k: (position.get(k[0], len(position)), k[1]))
        names = ", ".join(
            f"{_game_for(catalog, key).name} (round {key[1]})" for key in ordered
        )
        parts.append(f"{group.name}: {len(keys)} games/rounds remaining ({names})")
    return "; ".join(parts)


def _entry_sort_key(entry: ScheduleEntry) -> tuple[str, int, str]:
    return (entry.game.name, entry.round, entry.group.name)


def generate_schedule(groups: list[Group], games: list[Game],
                      time_ranges: Optional[list[TimeRange]] = None,
                      reference_date: Optional[date] = None,
                      game_duration_ms: int = DEFAULT_GAME_DURATION_MS,
                      transition_time_ms: int = DEFAULT_TRANSITION_TIME_MS,
                      seed: int | None = None,
                      rng: Optional[random.Random] = None,
                      reverse: bool = False) -> ScheduleResult:
    """Generate a complete schedule.

    Candidate slots are visited in chronological order, or latest first
    when reverse is set; the result is sorted by start time either way and
    keeps the slot indices assigned at enumeration. Slots where nothing
    could be placed are dropped.
    """
    validated = validate_input(groups, games, time_ranges, reference_date)
    if isinstance(validated, ScheduleError):
        return ScheduleResult(error=validated)

    candidates = enumerate_slots(
        validated.time_ranges, game_duration_ms, transition_time_ms
    )
    if isinstance(candidates, ScheduleError):
        return ScheduleResult(error=candidates)

    if rng is None:
        rng = random.Random(seed)

    groups = validated.groups
    needs = validated.needs
    catalog = {g.id: g for g in validated.games}

    n = len(groups)
    max_slots = n * sum(g.rounds for g in validated.games) + n
    print(f"  Candidate slots: {len(candidates)} (safety bound {max_slots})")

    visit_order = list(reversed(candidates)) if reverse else candidates
    slots: list[TimeSlot] = []
    attempts = 0
    deadlocks = 0

    for candidate in visit_order:
        if needs.all_done():
            break
        attempts += 1
        if attempts > max_slots:
            return ScheduleResult.failure(
                ErrorKind.SCHEDULE_OVERFLOW,
                f"Schedule generation went past {max_slots} slots without "
                f"every group playing every game. Check the configuration. "
                f"Remaining needs: {_remaining_summary(groups, needs, catalog)}",
            )

        stuck = find_two_group_deadlock(needs, catalog)
        if stuck:
            plan = second_chance_slot(stuck, groups, needs, catalog)
            deadlocks += 1
        else:
            plan, shuffled = fill_slot(groups, needs, catalog, rng)
            backfill_slot(plan, shuffled, groups, needs, catalog)

        if plan.entries:
            slots.append(TimeSlot(
                slot_index=candidate.slot_index,
                start_time=candidate.start_time,
                end_time=candidate.end_time,
                entries=sorted(plan.entries, key=_entry_sort_key),
            ))

    if not needs.all_done():
        return ScheduleResult.failure(
            ErrorKind.SLOTS_EXHAUSTED,
            f"No more time slots available, but not every group has played "
            f"every game. Remaining needs: "
            f"{_remaining_summary(groups, needs, catalog)}",
        )

    slots.sort(key=lambda s: s.start_time)

    parties = sum(len(s.parties()) for s in slots)
    bonus = sum(1 for s in slots for e in s.entries if e.is_second_chance)
    print(f"  Used {len(slots)} of {len(candidates)} slots, {parties} parties")
    if deadlocks:
        print(f"  Two-group deadlock resolved with {deadlocks} second-chance slot(s)")
    if bonus:
        print(f"  Second-chance entries: {bonus}")

    return ScheduleResult.success(slots)


def schedule(config: dict, seed: int | None = None,
             reverse: bool | None = None) -> ScheduleResult:
    """Generate a schedule from a loaded config (see config.load_config).

    seed and reverse default to the event settings of the config.
    """
    event = config["event"]
    if seed is None:
        seed = event.get("seed")
    if reverse is None:
        reverse = event.get("reverse_slots", False)

    print(f"  {len(config['groups'])} groups, {len(config['games'])} games, "
          f"{len(config['time_ranges'])} time ranges")

    return generate_schedule(
        config["groups"], config["games"], config["time_ranges"],
        reference_date=event.get("date"),
        game_duration_ms=event["game_duration_ms"],
        transition_time_ms=event["transition_time_ms"],
        seed=seed,
        reverse=reverse,
    )
