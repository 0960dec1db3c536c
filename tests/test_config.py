"""Tests for config.py — parsing and loading."""

from datetime import date, datetime, time

import pytest

from gamesday.config import (
    load_config, parse_date, parse_datetime, parse_time, parse_time_range,
)
from gamesday.models import Game, Group


class TestParseTime:
    def test_am(self):
        assert parse_time("10am") == time(10, 0)
        assert parse_time("9am") == time(9, 0)

    def test_pm(self):
        assert parse_time("5pm") == time(17, 0)
        assert parse_time("12pm") == time(12, 0)
        assert parse_time("1pm") == time(13, 0)

    def test_with_minutes(self):
        assert parse_time("8:40am") == time(8, 40)
        assert parse_time("5:30pm") == time(17, 30)

    def test_24hour(self):
        assert parse_time("17:00") == time(17, 0)
        assert parse_time("9:30") == time(9, 30)

    def test_with_seconds(self):
        assert parse_time("13:00:00") == time(13, 0)

    def test_midnight(self):
        assert parse_time("12am") == time(0, 0)

    def test_case_insensitive(self):
        assert parse_time("5PM") == time(17, 0)

    def test_whitespace(self):
        assert parse_time("  5:30pm  ") == time(17, 30)


class TestParseDate:
    def test_basic(self):
        assert parse_date("2025-08-09") == date(2025, 8, 9)

    def test_whitespace(self):
        assert parse_date(" 2025-08-09 ") == date(2025, 8, 9)


class TestParseDatetime:
    def test_space(self):
        assert parse_datetime("2025-08-09 13:00") == datetime(2025, 8, 9, 13, 0)

    def test_iso_separator(self):
        assert parse_datetime("2025-08-09T08:40") == datetime(2025, 8, 9, 8, 40)

    def test_am_pm(self):
        assert parse_datetime("2025-08-09 1:30pm") == datetime(2025, 8, 9, 13, 30)

    def test_missing_time(self):
        with pytest.raises(ValueError):
            parse_datetime("2025-08-09")


class TestParseTimeRange:
    def test_string(self):
        tr = parse_time_range("2025-08-09 8:40am-12pm")
        assert tr.start_time == datetime(2025, 8, 9, 8, 40)
        assert tr.end_time == datetime(2025, 8, 9, 12, 0)

    def test_mapping(self):
        tr = parse_time_range({"start": "2025-08-09 13:00",
                               "end": "2025-08-10 01:00"})
        assert tr.start_time == datetime(2025, 8, 9, 13, 0)
        assert tr.end_time == datetime(2025, 8, 10, 1, 0)

    def test_reversed_range_kept_as_written(self):
        tr = parse_time_range("2025-08-09 5pm-9am")
        assert not tr.is_valid()

    def test_missing_separator(self):
        with pytest.raises(ValueError):
            parse_time_range("2025-08-09 9am")


class TestLoadConfig:
    def test_loads_real_config(self):
        config = load_config("config.yaml")

        assert "event" in config
        assert "groups" in config
        assert "games" in config
        assert "time_ranges" in config

    def test_event(self):
        event = load_config("config.yaml")["event"]
        assert event["date"] == date(2025, 8, 9)
        assert event["game_duration_ms"] == 12 * 60 * 1000
        assert event["transition_time_ms"] == 8 * 60 * 1000
        assert event["seed"] == 42
        assert event["reverse_slots"] is False

    def test_groups(self):
        groups = load_config("config.yaml")["groups"]
        assert len(groups) == 8
        assert groups[0] == Group(id=1, name="Les Aigles")
        assert len({g.id for g in groups}) == 8

    def test_games(self):
        games = load_config("config.yaml")["games"]
        assert len(games) == 5
        by_name = {g.name: g for g in games}
        assert by_name["Course en sac"].rounds == 2
        assert by_name["Chasse au trésor"].is_solo
        assert by_name["Balle au prisonnier"].number_of_groups == 3
        assert by_name["Tir à la corde"].description.startswith("Two groups")

    def test_time_ranges(self):
        ranges = load_config("config.yaml")["time_ranges"]
        assert len(ranges) == 3
        assert ranges[0].start_time == datetime(2025, 8, 9, 8, 40)
        assert ranges[1].end_time == datetime(2025, 8, 9, 18, 0)
        assert ranges[2].start_time.date() == date(2025, 8, 10)
        assert all(tr.is_valid() for tr in ranges)


class TestLoadConfigFiles:
    def _write(self, tmp_path, text):
        path = tmp_path / "config.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_defaults(self, tmp_path):
        path = self._write(tmp_path, """
groups: [A, B]
games:
  - name: Duel
""")
        config = load_config(path)
        assert config["event"]["game_duration_minutes"] == 12
        assert config["event"]["transition_minutes"] == 8
        assert config["event"]["date"] is None
        assert config["event"]["seed"] is None
        assert config["time_ranges"] == []
        assert config["games"] == [Game(id=1, name="Duel")]

    def test_explicit_ids(self, tmp_path):
        path = self._write(tmp_path, """
groups:
  - {id: 10, name: A}
  - {id: 20, name: B}
games:
  - {id: 7, name: Duel, groups: 2, rounds: 2, image: duel.png}
""")
        config = load_config(path)
        assert [g.id for g in config["groups"]] == [10, 20]
        game = config["games"][0]
        assert (game.id, game.rounds, game.image_url) == (7, 2, "duel.png")

    def test_duplicate_group_id(self, tmp_path):
        path = self._write(tmp_path, """
groups:
  - {id: 1, name: A}
  - {id: 1, name: B}
games:
  - name: Duel
""")
        with pytest.raises(ValueError, match="Duplicate group id 1"):
            load_config(path)

    def test_duplicate_game_id(self, tmp_path):
        path = self._write(tmp_path, """
groups: [A, B]
games:
  - {id: 3, name: Duel}
  - {id: 3, name: Relais}
""")
        with pytest.raises(ValueError, match="Duplicate game id 3"):
            load_config(path)

    def test_zero_rounds(self, tmp_path):
        path = self._write(tmp_path, """
groups: [A, B]
games:
  - {name: Duel, rounds: 0}
""")
        with pytest.raises(ValueError, match="at least 1 group and 1 round"):
            load_config(path)

    def test_bad_duration(self, tmp_path):
        path = self._write(tmp_path, """
event:
  game_duration_minutes: 0
groups: [A, B]
games:
  - name: Duel
""")
        with pytest.raises(ValueError, match="game_duration_minutes"):
            load_config(path)

    def test_group_without_name(self, tmp_path):
        path = self._write(tmp_path, """
groups:
  - {id: 4}
games:
  - name: Duel
""")
        with pytest.raises(ValueError, match="no name"):
            load_config(path)

    def test_warnings_printed(self, tmp_path, capsys):
        path = self._write(tmp_path, """
groups: [A, B, C, D]
games:
  - {name: Grand jeu, groups: 4, rounds: 3}
""")
        load_config(path)
        out = capsys.readouterr().out
        assert "Config warnings:" in out
        assert "played by 4 groups" in out
        assert "played 3 times" in out
