"""Set bonuses granted by completed mod sets."""
from collections import Counter
from typing import Iterable, Optional

from modplanner.constants import MOD_SLOT_COUNT
from modplanner.data import GameData
from modplanner.models import Mod, Stat, StatKind


class SetBonusCalculator:
    """Derives bonus stats from the sets completed within six mods."""

    def __init__(self, game_data: GameData):
        self.game_data = game_data

    def bonuses(self, mods: Iterable[Mod]) -> list[Stat]:
        """One aggregated bonus Stat per completed set, ordered by set name."""
        counts: Counter[str] = Counter()
        maxed: Counter[str] = Counter()
        for mod in mods:
            counts[mod.set_name] += 1
            if mod.is_max_level:
                maxed[mod.set_name] += 1
        out = []
        for name in sorted(counts):
            stat = self.bonus_for(name, counts[name], maxed[name])
            if stat is not None:
                out.append(stat)
        return out

    def bonus_value(self, set_name: str, count: int, maxed: int) -> float:
        """Total bonus value for `count` mods of a set, `maxed` of them at level 15.

        Each full group of `size` mods is one completed set; groups stack
        additively. A group grants the max value only if it can be made of
        level-15 mods. Six mods of one set grant the cross-set bonus instead:
        `cross_factor` times one set's value. Two-piece sets use a factor of 3,
        the same as their three stacked groups, so only four-piece sets (1.5)
        gain anything from a cross set.
        """
        bonus = self.game_data.get_set_bonus(set_name)
        if count >= MOD_SLOT_COUNT:
            per_set = bonus.max_value if maxed >= count else bonus.small_value
            return bonus.cross_factor * per_set
        completed = count // bonus.size
        full = min(completed, maxed // bonus.size)
        return full * bonus.max_value + (completed - full) * bonus.small_value

    def bonus_for(self, set_name: str, count: int, maxed: int) -> Optional[Stat]:
        value = self.bonus_value(set_name, count, maxed)
        if not value:
            return None
        bonus = self.game_data.get_set_bonus(set_name)
        return Stat(
            type=bonus.stat,
            value=value,
            kind=StatKind.PERCENT if bonus.percent else StatKind.FLAT,
        )
