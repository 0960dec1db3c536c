"""Constraint validation for the gamesday scheduling app.

Can validate either a freshly generated schedule or one re-imported from CSV.
"""

from collections import defaultdict

from gamesday.models import Game, Group, TimeSlot


def validate_schedule(slots: list[TimeSlot], groups: list[Group],
                      games: list[Game]) -> dict:
    """Validate a schedule against all constraints.

    Returns dict with:
    - valid: bool (True if no hard constraint violations)
    - errors: list of hard constraint violations
    - warnings: list of soft issues (bonus placements)
    """
    errors = []
    warnings = []

    group_by_id = {g.id: g for g in groups}
    game_by_id = {g.id: g for g in games}

    # (group_id, game_id, round) -> number of real (non-bonus) plays
    plays: dict[tuple[int, int, int], int] = defaultdict(int)

    previous = None
    for slot in slots:
        label = f"slot {slot.slot_index} ({slot.start_time:%Y-%m-%d %H:%M})"

        if slot.end_time <= slot.start_time:
            errors.append(f"{label} ends before it starts")
        if previous is not None and slot.start_time <= previous.start_time:
            errors.append(
                f"{label} does not start after slot {previous.slot_index}"
            )
        previous = slot

        # Check: no group plays twice in the same slot
        seen_groups: set[int] = set()
        for entry in slot.entries:
            if entry.group.id not in group_by_id:
                errors.append(f"Unknown group {entry.group.name} in {label}")
            if entry.group.id in seen_groups:
                errors.append(f"{entry.group.name} plays twice in {label}")
            seen_groups.add(entry.group.id)

        # Check: one party per game, of the right size
        parties = slot.parties()
        per_game: dict[int, int] = defaultdict(int)
        for (game_id, rnd), party in parties.items():
            per_game[game_id] += 1
            game = game_by_id.get(game_id)
            if game is None:
                errors.append(f"Unknown game {party[0].game.name} in {label}")
                continue

            if not 1 <= rnd <= game.rounds:
                errors.append(
                    f"{game.name} round {rnd} in {label} "
                    f"(game has {game.rounds} round(s))"
                )
            if len(party) != game.number_of_groups:
                errors.append(
                    f"{game.name} (round {rnd}) in {label} has "
                    f"{len(party)} groups, needs {game.number_of_groups}"
                )
            if all(e.is_second_chance for e in party):
                errors.append(
                    f"{game.name} (round {rnd}) in {label} has only bonus groups"
                )

            for e in party:
                if e.is_second_chance:
                    warnings.append(
                        f"BONUS: {e.group.name} plays {game.name} "
                        f"(round {rnd}) again in {label}"
                    )
                else:
                    plays[(e.group.id, game_id, rnd)] += 1

        for game_id, count in per_game.items():
            if count > 1:
                name = game_by_id[game_id].name if game_id in game_by_id else game_id
                errors.append(f"{name} has {count} parties in {label}")

    # Check: every group plays every round of every game exactly once
    for group in groups:
        for game in games:
            for rnd in range(1, game.rounds + 1):
                count = plays.get((group.id, game.id, rnd), 0)
                if count == 0:
                    errors.append(
                        f"MISSING: {group.name} never plays {game.name} (round {rnd})"
                    )
                elif count > 1:
                    errors.append(
                        f"{group.name} plays {game.name} (round {rnd}) {count} times"
                    )

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
    }


def format_validation_report(result: dict) -> str:
    """Format validation results as text."""
    lines = []
    lines.append("=" * 60)
    lines.append("SCHEDULE VALIDATION REPORT")
    lines.append("=" * 60)

    if result["valid"]:
        lines.append("\nRESULT: VALID (no hard constraint violations)")
    else:
        lines.append(f"\nRESULT: INVALID ({len(result['errors'])} violations)")

    if result["errors"]:
        lines.append(f"\n--- ERRORS ({len(result['errors'])}) ---")
        for e in result["errors"]:
            lines.append(f"  ERROR: {e}")

    if result["warnings"]:
        lines.append(f"\n--- WARNINGS ({len(result['warnings'])}) ---")
        for w in result["warnings"]:
            lines.append(f"  WARN: {w}")

    return "\n".join(lines)
