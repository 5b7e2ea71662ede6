"""Tests for Stat arithmetic and the pure conversions in stats.py."""
import pytest

from modplanner import GameData, MissingBaseStatsError, Stat, StatKind
from modplanner.stats import (
    flat_values, target_contributions, upgrade_primary, upgrade_secondary,
)


def _pct(stat_type: str, value: float) -> Stat:
    return Stat(type=stat_type, value=value, kind=StatKind.PERCENT)


class TestStatModel:
    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValueError):
            Stat(type="Luck", value=1)

    def test_is_percent_only_for_mixed_types(self) -> None:
        assert _pct("Offense", 5).is_percent
        assert not Stat(type="Offense", value=50).is_percent
        # Potency only exists as a percentage, so it is taken at face value
        assert not _pct("Potency", 2).is_percent

    def test_show(self) -> None:
        assert _pct("Offense", 5.88).show() == "5.88% Offense"
        assert Stat(type="Speed", value=5.0).show() == "5 Speed"

    def test_grade(self) -> None:
        assert Stat(type="Speed", value=5, rolls=5).grade == "S"
        assert Stat(type="Speed", value=5).grade == "D"

    def test_plus(self) -> None:
        total = Stat(type="Speed", value=5).plus(Stat(type="Speed", value=7))
        assert total.value == pytest.approx(12)

    def test_plus_different_types_raises(self) -> None:
        with pytest.raises(ValueError):
            Stat(type="Speed", value=5).plus(Stat(type="Health", value=7))
        with pytest.raises(ValueError):
            _pct("Health", 5).plus(Stat(type="Health", value=7))

    def test_minus(self) -> None:
        diff = _pct("Offense", 8.5).minus(_pct("Offense", 5.88))
        assert diff.value == pytest.approx(2.62)
        assert diff.kind is StatKind.PERCENT

    def test_minus_different_kinds_raises(self) -> None:
        with pytest.raises(ValueError):
            _pct("Offense", 8.5).minus(Stat(type="Offense", value=50))


class TestFlatValues:
    def test_flat_stat_passes_through(self) -> None:
        assert flat_values(Stat(type="Speed", value=5), None) == {"speed": 5}

    def test_flat_stat_with_two_targets(self) -> None:
        assert flat_values(Stat(type="Defense", value=12), None) == {"armor": 12, "resistance": 12}

    def test_percent_is_floored_against_base(self, base_stats: dict) -> None:
        assert flat_values(_pct("Offense", 5.88), base_stats) == {"physDmg": 58, "specDmg": 58}
        assert flat_values(_pct("Health", 5), base_stats) == {"health": 500}

    def test_percent_without_base_stats_raises(self) -> None:
        with pytest.raises(MissingBaseStatsError) as exc:
            flat_values(_pct("Health", 5), None, "hero")
        assert exc.value.stat_type == "Health"
        assert exc.value.character_id == "hero"

    def test_percent_with_incomplete_base_stats_raises(self) -> None:
        with pytest.raises(MissingBaseStatsError):
            flat_values(_pct("Offense", 5), {"physDmg": 1000})

    def test_percent_only_type_needs_no_base(self) -> None:
        assert flat_values(_pct("Potency", 2), None) == {"potency": 2}


class TestTargetContributions:
    def test_crit_chance_counts_once(self) -> None:
        assert target_contributions(_pct("Critical Chance", 2), None) == {"critChance": 2}

    def test_physical_crit_chance_counts(self) -> None:
        assert target_contributions(Stat(type="Physical Critical Chance", value=3), None) == {
            "critChance": 3
        }

    def test_special_crit_chance_is_worth_nothing(self) -> None:
        assert target_contributions(Stat(type="Special Critical Chance", value=3), None) == {}

    def test_other_stats_unchanged(self, base_stats: dict) -> None:
        assert target_contributions(_pct("Defense", 10), base_stats) == {
            "armor": 10, "resistance": 10
        }


class TestUpgrades:
    def test_upgrade_primary_to_max(self, gd: GameData) -> None:
        primary = _pct("Offense", 2.5)
        assert upgrade_primary(primary, 5, gd).value == pytest.approx(5.88)
        assert upgrade_primary(primary, 6, gd).value == pytest.approx(8.5)

    def test_upgrade_primary_keeps_kind(self, gd: GameData) -> None:
        assert upgrade_primary(_pct("Health", 1), 5, gd).kind is StatKind.PERCENT
        assert upgrade_primary(Stat(type="Speed", value=5), 5, gd).kind is StatKind.FLAT

    def test_upgrade_primary_kind_from_table(self, gd: GameData) -> None:
        # Health primaries are always percent; Speed primaries are always flat
        assert upgrade_primary(Stat(type="Health", value=1), 5, gd).kind is StatKind.PERCENT
        assert upgrade_primary(_pct("Speed", 5), 5, gd).kind is StatKind.FLAT

    def test_upgrade_primary_without_table_entry(self, gd: GameData) -> None:
        primary = Stat(type="Armor", value=10)
        assert upgrade_primary(primary, 6, gd) == primary

    def test_slice_percent_secondary(self, gd: GameData) -> None:
        assert upgrade_secondary(_pct("Offense", 1.0), gd).value == pytest.approx(3.02)

    def test_slice_flat_secondary(self, gd: GameData) -> None:
        assert upgrade_secondary(Stat(type="Health", value=400), gd).value == pytest.approx(504)

    def test_slice_speed_adds_one(self, gd: GameData) -> None:
        assert upgrade_secondary(Stat(type="Speed", value=10), gd).value == pytest.approx(11)

    def test_slice_unknown_secondary_unchanged(self, gd: GameData) -> None:
        stat = _pct("Accuracy", 2)
        assert upgrade_secondary(stat, gd) == stat
