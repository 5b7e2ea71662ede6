"""
Game data loader. Reads the CSV resource tables into DataFrames.

All methods are read-only. The constructor takes an optional resources_dir so
paths can be overridden in tests. Lookups used on the solver's hot path are
materialized into dicts once at load time.
"""
from pathlib import Path
from typing import Optional

import pandas as pd

from modplanner.constants import MAX_PIPS, MIN_PIPS
from modplanner.models import SetBonus


class GameData:
    """Loads and queries mod reference data (set bonuses, primaries, slicing)."""

    SET_BONUS_FILE     = "set_bonuses.csv"
    PRIMARY_MAX_FILE   = "primary_max.csv"
    SLICE_FACTORS_FILE = "slice_factors.csv"

    def __init__(self, resources_dir: Path | None = None):
        if resources_dir is None:
            resources_dir = Path(__file__).parent / "resources"
        self._resources_dir = resources_dir

        self.set_bonuses: pd.DataFrame = (
            pd.read_csv(resources_dir / self.SET_BONUS_FILE).set_index("set")
        )
        self.primary_max: pd.DataFrame = (
            pd.read_csv(resources_dir / self.PRIMARY_MAX_FILE).set_index("stat")
        )
        self.slice_factors: pd.DataFrame = pd.read_csv(resources_dir / self.SLICE_FACTORS_FILE)

        self._sets: dict[str, SetBonus] = {
            name: SetBonus(
                name=name,
                size=int(row["size"]),
                stat=row["stat"],
                percent=bool(row["percent"]),
                small_value=float(row["small"]),
                max_value=float(row["max"]),
                cross_factor=float(row["cross_factor"]),
            )
            for name, row in self.set_bonuses.iterrows()
        }
        self._primary_max: dict[str, dict[int, float]] = {
            stat: {p: float(row[f"pips_{p}"]) for p in range(MIN_PIPS, MAX_PIPS + 1)}
            for stat, row in self.primary_max.iterrows()
        }
        self._primary_percent: dict[str, bool] = {
            stat: bool(row["percent"]) for stat, row in self.primary_max.iterrows()
        }
        self._slice_rules: dict[tuple[str, bool], tuple[float, float]] = {
            (row.stat, bool(row.percent)): (float(row.factor), float(row.increment))
            for row in self.slice_factors.itertuples(index=False)
        }

    # ------------------------------------------------------------------
    # Sets
    # ------------------------------------------------------------------

    def get_set_bonus(self, name: str) -> SetBonus:
        try:
            return self._sets[name]
        except KeyError:
            raise KeyError(f"Unknown mod set {name!r}") from None

    def get_all_set_bonuses(self) -> list[SetBonus]:
        return [self._sets[name] for name in sorted(self._sets)]

    def get_set_names(self) -> list[str]:
        return sorted(self._sets)

    # ------------------------------------------------------------------
    # Primary / secondary upgrades
    # ------------------------------------------------------------------

    def get_max_primary(self, stat_type: str, pips: int) -> Optional[float]:
        """Value a primary of this type reaches at level 15 on a mod with `pips` dots."""
        by_pips = self._primary_max.get(stat_type)
        if by_pips is None:
            return None
        return by_pips.get(pips)

    def is_primary_percent(self, stat_type: str) -> Optional[bool]:
        """Whether a primary of this type is a percentage; None if it has no table entry."""
        return self._primary_percent.get(stat_type)

    def get_slice_rule(self, stat_type: str, is_percent: bool) -> Optional[tuple[float, float]]:
        """(factor, increment) applied to a secondary when its mod is sliced, or None."""
        return self._slice_rules.get((stat_type, is_percent))
