"""Tests for constraints.py — schedule validation."""

from datetime import datetime, timedelta

from gamesday.constraints import format_validation_report, validate_schedule
from gamesday.models import Game, Group, ScheduleEntry, TimeSlot


def _make_slot(index, entries):
    start = datetime(2025, 8, 9, 9, 0) + timedelta(minutes=20 * (index - 1))
    return TimeSlot(slot_index=index, start_time=start,
                    end_time=start + timedelta(minutes=12), entries=entries)


def _entry(group, game, rnd=1, bonus=False):
    return ScheduleEntry(group=group, game=game, round=rnd, is_second_chance=bonus)


class TestValidateSchedule:
    def _simple_setup(self):
        groups = [Group(1, "A"), Group(2, "B"), Group(3, "C")]
        duel = Game(id=1, name="Duel", number_of_groups=2)
        solo = Game(id=2, name="Chasse", number_of_groups=1)
        return groups, [duel, solo]

    def _valid_slots(self):
        groups, (duel, solo) = self._simple_setup()
        a, b, c = groups
        return [
            _make_slot(1, [_entry(a, duel), _entry(b, duel), _entry(c, solo)]),
            _make_slot(2, [_entry(c, duel), _entry(a, duel, bonus=True),
                           _entry(b, solo)]),
            _make_slot(3, [_entry(a, solo)]),
        ]

    def test_valid_schedule(self):
        groups, games = self._simple_setup()
        result = validate_schedule(self._valid_slots(), groups, games)
        assert result["valid"], result["errors"]
        assert result["errors"] == []

    def test_bonus_is_a_warning(self):
        groups, games = self._simple_setup()
        result = validate_schedule(self._valid_slots(), groups, games)
        assert len(result["warnings"]) == 1
        assert result["warnings"][0].startswith("BONUS: A plays Duel")

    def test_missing_obligation(self):
        groups, games = self._simple_setup()
        slots = self._valid_slots()[:2]
        result = validate_schedule(slots, groups, games)
        assert not result["valid"]
        assert "MISSING: A never plays Chasse (round 1)" in result["errors"]

    def test_obligation_played_twice(self):
        groups, (duel, solo) = self._simple_setup()
        slots = self._valid_slots()
        slots.append(_make_slot(4, [_entry(groups[0], solo)]))
        result = validate_schedule(slots, groups, [duel, solo])
        assert "A plays Chasse (round 1) 2 times" in result["errors"]

    def test_group_twice_in_slot(self):
        groups, (duel, solo) = self._simple_setup()
        a, b, c = groups
        slots = [
            _make_slot(1, [_entry(a, duel), _entry(b, duel), _entry(a, solo)]),
            _make_slot(2, [_entry(c, duel), _entry(b, duel, bonus=True),
                           _entry(b, solo)]),
            _make_slot(3, [_entry(c, solo)]),
        ]
        result = validate_schedule(slots, groups, [duel, solo])
        assert any("A plays twice" in e for e in result["errors"])
        assert any("B plays twice" in e for e in result["errors"])

    def test_wrong_party_size(self):
        groups, (duel, solo) = self._simple_setup()
        a, b, c = groups
        slots = [
            _make_slot(1, [_entry(a, duel), _entry(b, duel), _entry(c, duel)]),
            _make_slot(2, [_entry(a, solo)]),
            _make_slot(3, [_entry(b, solo)]),
            _make_slot(4, [_entry(c, solo)]),
        ]
        result = validate_schedule(slots, groups, [duel, solo])
        assert not result["valid"]
        assert any("has 3 groups, needs 2" in e for e in result["errors"])

    def test_two_parties_of_same_game(self):
        groups = [Group(i, n) for i, n in enumerate("ABCD", 1)]
        duel = Game(id=1, name="Duel")
        slots = [_make_slot(1, [_entry(g, duel) for g in groups])]
        # Four entries on one (game, round) form one party of four
        result = validate_schedule(slots, groups, [duel])
        assert any("has 4 groups" in e for e in result["errors"])

    def test_two_rounds_of_same_game_in_slot(self):
        groups = [Group(i, n) for i, n in enumerate("ABCD", 1)]
        duel = Game(id=1, name="Duel", rounds=2)
        a, b, c, d = groups
        slots = [
            _make_slot(1, [_entry(a, duel, 1), _entry(b, duel, 1),
                           _entry(c, duel, 2), _entry(d, duel, 2)]),
        ]
        result = validate_schedule(slots, groups, [duel])
        assert any("Duel has 2 parties" in e for e in result["errors"])

    def test_round_out_of_range(self):
        groups, (duel, solo) = self._simple_setup()
        slots = self._valid_slots()
        slots.append(_make_slot(4, [_entry(groups[2], solo, rnd=2)]))
        result = validate_schedule(slots, groups, [duel, solo])
        assert any("round 2" in e and "1 round(s)" in e for e in result["errors"])

    def test_only_bonus_party(self):
        groups, (duel, solo) = self._simple_setup()
        a, b, _ = groups
        slots = self._valid_slots()
        slots.append(_make_slot(4, [_entry(a, duel, bonus=True),
                                    _entry(b, duel, bonus=True)]))
        result = validate_schedule(slots, groups, [duel, solo])
        assert any("only bonus groups" in e for e in result["errors"])

    def test_unknown_group_and_game(self):
        groups, games = self._simple_setup()
        stranger = Group(99, "Intrus")
        other = Game(id=42, name="Mystère", number_of_groups=1)
        slots = self._valid_slots()
        slots.append(_make_slot(4, [_entry(stranger, other)]))
        result = validate_schedule(slots, groups, games)
        assert any("Unknown group Intrus" in e for e in result["errors"])
        assert any("Unknown game Mystère" in e for e in result["errors"])

    def test_slots_out_of_order(self):
        groups, games = self._simple_setup()
        slots = self._valid_slots()
        slots[1], slots[2] = slots[2], slots[1]
        result = validate_schedule(slots, groups, games)
        assert any("does not start after" in e for e in result["errors"])

    def test_slot_ending_before_start(self):
        groups, games = self._simple_setup()
        slots = self._valid_slots()
        broken = slots[2]
        slots[2] = TimeSlot(slot_index=broken.slot_index,
                            start_time=broken.start_time,
                            end_time=broken.start_time,
                            entries=broken.entries)
        result = validate_schedule(slots, groups, games)
        assert any("ends before it starts" in e for e in result["errors"])


class TestFormatValidationReport:
    def test_valid(self):
        report = format_validation_report(
            {"valid": True, "errors": [], "warnings": ["BONUS: x"]})
        assert "RESULT: VALID" in report
        assert "WARN: BONUS: x" in report

    def test_invalid(self):
        report = format_validation_report(
            {"valid": False, "errors": ["MISSING: y"], "warnings": []})
        assert "RESULT: INVALID (1 violations)" in report
        assert "ERROR: MISSING: y" in report
