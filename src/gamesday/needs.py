"""Per-group tracking of the (game, round) obligations still to be played."""

from gamesday.models import Game, Group

# (game_id, round)
NeedKey = tuple[int, int]


class NeedTracker:
    """Mutable index group_id -> set of outstanding NeedKeys.

    Owned by a single generation call. A key is removed exactly once, when an
    entry discharging it is committed. Groups are remembered in the order
    their need set became empty, so fillers can be drawn from the earliest
    finishers first.
    """

    def __init__(self, groups: list[Group], games: list[Game]):
        self._needs: dict[int, set[NeedKey]] = {}
        self.finished: list[int] = []
        for group in groups:
            self._needs[group.id] = {
                (game.id, rnd)
                for game in games
                for rnd in range(1, game.rounds + 1)
            }

    def keys(self, group_id: int) -> set[NeedKey]:
        return set(self._needs[group_id])

    def count(self, group_id: int) -> int:
        return len(self._needs[group_id])

    def has(self, group_id: int, key: NeedKey) -> bool:
        return key in self._needs[group_id]

    def is_finished(self, group_id: int) -> bool:
        return not self._needs[group_id]

    def discharge(self, group_id: int, key: NeedKey) -> None:
        """Remove one obligation. Raises KeyError if it was not outstanding."""
        self._needs[group_id].remove(key)
        if not self._needs[group_id]:
            self.finished.append(group_id)

    def all_done(self) -> bool:
        return all(not keys for keys in self._needs.values())

    def outstanding(self) -> dict[int, set[NeedKey]]:
        """Groups that still have needs, in group order."""
        return {gid: set(keys) for gid, keys in self._needs.items() if keys}

    def total_remaining(self) -> int:
        return sum(len(keys) for keys in self._needs.values())
