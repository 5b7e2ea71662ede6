"""Pure stat conversion and upgrade functions.

Base stats are always passed in explicitly; nothing here reaches into a
character.
"""
import math
from typing import Mapping, Optional

from modplanner.constants import STAT_TYPE_MAP, TARGET_STAT_ALIASES
from modplanner.data import GameData
from modplanner.errors import MissingBaseStatsError
from modplanner.models import Stat, StatKind


def flat_values(stat: Stat, base_stats: Optional[Mapping[str, float]],
                character_id: str | None = None) -> dict[str, float]:
    """Convert a stat into flat values keyed by internal stat name.

    Percent stats of mixed types are converted against the base stat and
    floored, as the game does.
    """
    names = STAT_TYPE_MAP[stat.type]
    if not stat.is_percent:
        return {name: stat.value for name in names}
    if base_stats is None or any(name not in base_stats for name in names):
        raise MissingBaseStatsError(stat.type, character_id)
    return {name: float(math.floor(base_stats[name] * stat.value / 100)) for name in names}


def target_contributions(stat: Stat, base_stats: Optional[Mapping[str, float]],
                         character_id: str | None = None) -> dict[str, float]:
    """Flat contributions keyed by target stat.

    Physical crit chance counts as critChance; special crit chance adds nothing.
    """
    if stat.type == "Special Critical Chance":
        return {}
    out: dict[str, float] = {}
    for name, value in flat_values(stat, base_stats, character_id).items():
        key = TARGET_STAT_ALIASES.get(name, name)
        if key is None:
            continue
        out[key] = out.get(key, 0.0) + value
    return out


def upgrade_primary(stat: Stat, pips: int, game_data: GameData) -> Stat:
    """The value this primary has at level 15 on a mod with the given dots.

    The table also fixes whether the levelled primary is flat or percent.
    """
    value = game_data.get_max_primary(stat.type, pips)
    if value is None:
        return stat
    kind = StatKind.PERCENT if game_data.is_primary_percent(stat.type) else StatKind.FLAT
    return stat.model_copy(update={"value": value, "kind": kind})


def upgrade_secondary(stat: Stat, game_data: GameData) -> Stat:
    """The value this secondary has after slicing its mod from 5 to 6 dots."""
    rule = game_data.get_slice_rule(stat.type, stat.kind is StatKind.PERCENT)
    if rule is None:
        return stat
    factor, increment = rule
    return stat.model_copy(update={"value": stat.value * factor + increment})
