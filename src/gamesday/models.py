"""Data models for the gamesday scheduling app."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Group:
    """A participating group (a team of players moving from game to game)."""
    id: int
    name: str


@dataclass(frozen=True)
class Game:
    """A game station.

    number_of_groups groups play one instance (a party) together, and every
    group must play it `rounds` times.
    """
    id: int
    name: str
    number_of_groups: int = 2
    rounds: int = 1
    description: str = ""
    image_url: str = ""

    @property
    def is_solo(self) -> bool:
        return self.number_of_groups == 1


@dataclass(frozen=True)
class TimeRange:
    """A window during which slots may be scheduled."""
    start_time: datetime
    end_time: datetime

    def is_valid(self) -> bool:
        return self.end_time > self.start_time


@dataclass
class ScheduleEntry:
    """One group playing one round of a game in a slot."""
    group: Group
    game: Game
    round: int = 1
    is_second_chance: bool = False  # bonus play, discharges no need

    @property
    def party_key(self) -> tuple[int, int]:
        return (self.game.id, self.round)


@dataclass
class TimeSlot:
    """A scheduling slot: candidate while empty, committed once it has entries."""
    slot_index: int
    start_time: datetime
    end_time: datetime
    entries: list[ScheduleEntry] = field(default_factory=list)

    def parties(self) -> dict[tuple[int, int], list[ScheduleEntry]]:
        """Group entries into parties keyed by (game_id, round)."""
        parties: dict[tuple[int, int], list[ScheduleEntry]] = {}
        for entry in self.entries:
            parties.setdefault(entry.party_key, []).append(entry)
        return parties

    def group_ids(self) -> list[int]:
        return [e.group.id for e in self.entries]


class ErrorKind(Enum):
    INSUFFICIENT_INPUT = "insufficient_input"
    INFEASIBLE_GAME_REQUIREMENT = "infeasible_game_requirement"
    INVALID_TIME_RANGE = "invalid_time_range"
    NO_AVAILABLE_SLOTS = "no_available_slots"
    SCHEDULE_OVERFLOW = "schedule_overflow"
    SLOTS_EXHAUSTED = "slots_exhausted"


@dataclass(frozen=True)
class ScheduleError:
    """Why a generation attempt was rejected. The message is shown verbatim."""
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class ScheduleResult:
    """Outcome of a generation call: either slots or an error, never both."""
    slots: list[TimeSlot] = field(default_factory=list)
    error: Optional[ScheduleError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, slots: list[TimeSlot]) -> "ScheduleResult":
        return cls(slots=slots)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "ScheduleResult":
        return cls(error=ScheduleError(kind, message))
