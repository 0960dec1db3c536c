"""Tests for needs.py — obligation tracking."""

import pytest

from gamesday.models import Game, Group
from gamesday.needs import NeedTracker


def _setup():
    groups = [Group(1, "A"), Group(2, "B")]
    games = [
        Game(id=10, name="Duel", number_of_groups=2, rounds=2),
        Game(id=20, name="Solo", number_of_groups=1, rounds=1),
    ]
    return groups, games


class TestNeedTracker:
    def test_initial_needs_cover_every_round(self):
        groups, games = _setup()
        needs = NeedTracker(groups, games)
        assert needs.keys(1) == {(10, 1), (10, 2), (20, 1)}
        assert needs.count(2) == 3
        assert needs.total_remaining() == 6
        assert not needs.all_done()

    def test_discharge(self):
        groups, games = _setup()
        needs = NeedTracker(groups, games)
        needs.discharge(1, (10, 2))
        assert not needs.has(1, (10, 2))
        assert needs.has(1, (10, 1))
        assert needs.has(2, (10, 2))
        assert needs.count(1) == 2

    def test_discharge_twice_raises(self):
        groups, games = _setup()
        needs = NeedTracker(groups, games)
        needs.discharge(1, (20, 1))
        with pytest.raises(KeyError):
            needs.discharge(1, (20, 1))

    def test_keys_is_a_copy(self):
        groups, games = _setup()
        needs = NeedTracker(groups, games)
        needs.keys(1).clear()
        assert needs.count(1) == 3

    def test_finish_order(self):
        groups, games = _setup()
        needs = NeedTracker(groups, games)
        for key in [(10, 1), (10, 2), (20, 1)]:
            needs.discharge(2, key)
        assert needs.finished == [2]
        assert needs.is_finished(2)
        assert not needs.is_finished(1)

        for key in [(10, 1), (10, 2), (20, 1)]:
            needs.discharge(1, key)
        assert needs.finished == [2, 1]
        assert needs.all_done()

    def test_outstanding_skips_finished(self):
        groups, games = _setup()
        needs = NeedTracker(groups, games)
        for key in [(10, 1), (10, 2), (20, 1)]:
            needs.discharge(1, key)
        assert needs.outstanding() == {2: {(10, 1), (10, 2), (20, 1)}}
