"""Tests for GameData (data.py). Uses the bundled CSV resources."""
import pytest

from modplanner import GameData
from modplanner.constants import SET_NAMES


def test_constructs_without_error(gd: GameData) -> None:
    assert gd is not None


def test_all_sets_loaded(gd: GameData) -> None:
    assert gd.get_set_names() == sorted(SET_NAMES)
    assert [b.name for b in gd.get_all_set_bonuses()] == sorted(SET_NAMES)


def test_set_bonus_fields(gd: GameData) -> None:
    speed = gd.get_set_bonus("Speed")
    assert speed.size == 4
    assert speed.percent
    assert speed.small_value == pytest.approx(5)
    assert speed.max_value == pytest.approx(10)
    assert speed.cross_factor == pytest.approx(1.5)

    health = gd.get_set_bonus("Health")
    assert health.size == 2
    assert health.cross_factor == pytest.approx(3)


def test_unknown_set_raises(gd: GameData) -> None:
    with pytest.raises(KeyError):
        gd.get_set_bonus("Nope")


def test_get_max_primary(gd: GameData) -> None:
    assert gd.get_max_primary("Speed", 5) == pytest.approx(30)
    assert gd.get_max_primary("Speed", 6) == pytest.approx(32)
    assert gd.get_max_primary("Offense", 6) == pytest.approx(8.5)


def test_get_max_primary_unknown_type(gd: GameData) -> None:
    assert gd.get_max_primary("Armor", 5) is None


def test_is_primary_percent(gd: GameData) -> None:
    assert gd.is_primary_percent("Offense") is True
    assert gd.is_primary_percent("Speed") is False
    assert gd.is_primary_percent("Armor") is None


def test_get_slice_rule(gd: GameData) -> None:
    assert gd.get_slice_rule("Speed", False) == (pytest.approx(1.0), pytest.approx(1.0))
    factor, increment = gd.get_slice_rule("Offense", True)
    assert factor == pytest.approx(3.02)
    assert increment == 0


def test_get_slice_rule_missing(gd: GameData) -> None:
    assert gd.get_slice_rule("Accuracy", True) is None


def test_custom_resources_dir(tmp_path) -> None:
    (tmp_path / "set_bonuses.csv").write_text(
        "set,size,stat,percent,small,max,cross_factor\n"
        "Health,2,Health,1,1,2,3\n"
    )
    (tmp_path / "primary_max.csv").write_text(
        "stat,percent,pips_1,pips_2,pips_3,pips_4,pips_5,pips_6\n"
        "Speed,0,1,2,3,4,5,6\n"
    )
    (tmp_path / "slice_factors.csv").write_text("stat,percent,factor,increment\n")
    data = GameData(resources_dir=tmp_path)
    assert data.get_set_names() == ["Health"]
    assert data.get_set_bonus("Health").max_value == pytest.approx(2)
    assert data.get_max_primary("Speed", 6) == pytest.approx(6)
    assert data.is_primary_percent("Speed") is False
    assert data.get_slice_rule("Speed", False) is None
