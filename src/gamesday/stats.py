"""Statistics and quality reporting for the gamesday scheduling app.

Everything here is computed from a finished schedule plus the group and game
lists, independently of how the schedule was produced.
"""

from collections import defaultdict
import math

from gamesday.models import Game, Group, TimeSlot

# Accepted gap between actual and minimum participations, as a fraction
PARTICIPATION_TOLERANCE = 0.05


def theoretical_minimum_slots(group_count: int, games: list[Game]) -> int:
    """Fewest parties that can cover every group's plays of every game."""
    return sum(
        math.ceil(group_count * g.rounds / g.number_of_groups) for g in games
    )


def count_parties(slots: list[TimeSlot]) -> int:
    """Distinct (slot_index, game_id, round) parties in a schedule."""
    return len({
        (slot.slot_index, e.game.id, e.round)
        for slot in slots for e in slot.entries
    })


def compute_stats(slots: list[TimeSlot], groups: list[Group],
                  games: list[Game]) -> dict:
    """Compute quality statistics for a schedule.

    Returns dict with all stats needed for reporting.
    """
    n = len(groups)

    parties_per_game = defaultdict(int)
    bonus_parties_per_game = defaultdict(int)
    bonus_per_group = defaultdict(int)
    plays_per_group = defaultdict(int)
    second_chance_entries = 0
    total_participations = 0

    for slot in slots:
        for (game_id, rnd), party in slot.parties().items():
            parties_per_game[game_id] += 1
            if any(e.is_second_chance for e in party):
                bonus_parties_per_game[game_id] += 1
            for e in party:
                total_participations += 1
                plays_per_group[e.group.id] += 1
                if e.is_second_chance:
                    second_chance_entries += 1
                    bonus_per_group[e.group.id] += 1

    breakdown = []
    for game in games:
        needed = n * game.rounds
        minimum = math.ceil(needed / game.number_of_groups)
        breakdown.append({
            "game": game,
            "participations_needed": needed,
            "minimum_slots": minimum,
            # Seats left over in the last, partly filled party
            "filler_participations": max(0, minimum * game.number_of_groups - needed),
            "actual_slots": parties_per_game.get(game.id, 0),
            "second_chance_slots": bonus_parties_per_game.get(game.id, 0),
        })

    theoretical = theoretical_minimum_slots(n, games)
    actual = count_parties(slots)
    participations_needed = sum(b["participations_needed"] for b in breakdown)
    realistic_participations = sum(
        b["participations_needed"] + b["filler_participations"] for b in breakdown
    )
    tolerance = math.ceil(realistic_participations * PARTICIPATION_TOLERANCE)

    return {
        "group_count": n,
        "game_count": len(games),
        "time_slots_used": len(slots),
        "theoretical_minimum_slots": theoretical,
        "actual_slots_used": actual,
        "is_optimal": actual == theoretical,
        "second_chance_parties": sum(bonus_parties_per_game.values()),
        "second_chance_entries": second_chance_entries,
        "participations_needed": participations_needed,
        "realistic_participations": realistic_participations,
        "total_participations": total_participations,
        "within_tolerance": abs(total_participations - realistic_participations) <= tolerance,
        "breakdown": breakdown,
        "plays_per_group": {g.id: plays_per_group.get(g.id, 0) for g in groups},
        "bonus_per_group": {g.id: bonus_per_group.get(g.id, 0) for g in groups},
    }


def format_stats_report(stats: dict, groups: list[Group]) -> str:
    """Format statistics into a human-readable report."""
    lines = []
    lines.append("=" * 70)
    lines.append("SCHEDULE STATISTICS")
    lines.append("=" * 70)

    verdict = "OPTIMAL" if stats["is_optimal"] else "NOT OPTIMAL"
    lines.append(f"\nParties: {stats['actual_slots_used']} "
                 f"(theoretical minimum {stats['theoretical_minimum_slots']}) "
                 f"-> {verdict}")
    lines.append(f"Time slots used: {stats['time_slots_used']}")
    lines.append(f"Participations: {stats['total_participations']} / "
                 f"{stats['realistic_participations']} realistic minimum"
                 f"{'' if stats['within_tolerance'] else '  ***'}")
    lines.append(f"Second-chance parties: {stats['second_chance_parties']} "
                 f"({stats['second_chance_entries']} bonus entries)")

    def _z(v, width=6):
        """Format an integer, suppressing zeros to blank."""
        if v == 0:
            return " " * width
        return f"{v:>{width}}"

    lines.append("\n--- PER GAME ---")
    lines.append(f"{'Game':<28} {'Need':>6} {'Min':>6} {'Fill':>6} {'Used':>6} {'Bonus':>6}")
    lines.append("-" * 64)
    for b in stats["breakdown"]:
        flag = " ***" if b["actual_slots"] > b["minimum_slots"] else ""
        lines.append(
            f"{b['game'].name[:28]:<28} {_z(b['participations_needed'])} "
            f"{_z(b['minimum_slots'])} {_z(b['filler_participations'])} "
            f"{_z(b['actual_slots'])} {_z(b['second_chance_slots'])}{flag}"
        )

    lines.append("\n--- PER GROUP ---")
    lines.append(f"{'Group':<28} {'Plays':>6} {'Bonus':>6}")
    lines.append("-" * 42)
    for g in groups:
        lines.append(
            f"{g.name[:28]:<28} {_z(stats['plays_per_group'].get(g.id, 0))} "
            f"{_z(stats['bonus_per_group'].get(g.id, 0))}"
        )

    return "\n".join(lines)
