"""Tests for SlotCandidateGenerator (candidates.py)."""
import pytest

from modplanner import (
    Character, GameData, Mod, OptimizerSettings, SlotCandidateGenerator, Stat, StatKind, Target,
)
from modplanner.constants import SLOTS

SPEED = Target(name="speed", weights={"speed": 1})


def _make_mod(mod_id: str, slot: str = "arrow", set_name: str = "Speed",
              pips: int = 5, level: int = 15, owner: str | None = None) -> Mod:
    return Mod(
        id=mod_id,
        slot=slot,
        set_name=set_name,
        primary=Stat(type="Speed", value=30 if level == 15 else 5),
        secondaries=(
            Stat(type="Speed", value=10),
            Stat(type="Offense", value=1.0, kind=StatKind.PERCENT),
        ),
        pips=pips,
        level=level,
        owner=owner,
    )


def _make_character(equipped: dict | None = None, **settings) -> Character:
    return Character(id="hero", equipped=equipped or {}, settings=OptimizerSettings(**settings))


def _pool(*mods: Mod) -> dict[str, Mod]:
    return {m.id: m for m in mods}


@pytest.fixture(scope="module")
def gen(gd: GameData) -> SlotCandidateGenerator:
    return SlotCandidateGenerator(gd)


class TestCandidates:
    def test_filters_by_slot_and_sorts_by_id(self, gen: SlotCandidateGenerator) -> None:
        pool = _pool(_make_mod("b"), _make_mod("a"), _make_mod("c", slot="square"))
        out = gen.candidates(_make_character(), "arrow", pool, SPEED)
        assert [m.id for m in out] == ["a", "b"]

    def test_candidates_by_slot_covers_all_slots(self, gen: SlotCandidateGenerator) -> None:
        pool = _pool(_make_mod("a"))
        out = gen.candidates_by_slot(_make_character(), pool, SPEED)
        assert list(out) == list(SLOTS)
        assert [m.id for m in out["arrow"]] == ["a"]
        assert out["square"] == []

    def test_minimum_dots(self, gen: SlotCandidateGenerator) -> None:
        pool = _pool(_make_mod("low", pips=4), _make_mod("high", pips=5))
        out = gen.candidates(_make_character(minimum_dots=5), "arrow", pool, SPEED)
        assert [m.id for m in out] == ["high"]

    def test_equipped_mod_exempt_from_minimum_dots(self, gen: SlotCandidateGenerator) -> None:
        pool = _pool(_make_mod("low", pips=4, owner="hero"), _make_mod("other", pips=4))
        character = _make_character({"arrow": "low"}, minimum_dots=5)
        out = gen.candidates(character, "arrow", pool, SPEED)
        assert [m.id for m in out] == ["low"]

    def test_forbidden_sets(self, gen: SlotCandidateGenerator) -> None:
        pool = _pool(_make_mod("s"), _make_mod("h", set_name="Health"))
        target = SPEED.model_copy(update={"forbidden_sets": frozenset({"Health"})})
        assert [m.id for m in gen.candidates(_make_character(), "arrow", pool, target)] == ["s"]

    def test_allowed_sets(self, gen: SlotCandidateGenerator) -> None:
        pool = _pool(_make_mod("s"), _make_mod("h", set_name="Health"))
        target = SPEED.model_copy(update={"allowed_sets": frozenset({"Health"})})
        assert [m.id for m in gen.candidates(_make_character(), "arrow", pool, target)] == ["h"]

    def test_empty_pool(self, gen: SlotCandidateGenerator) -> None:
        assert gen.candidates(_make_character(), "arrow", {}, SPEED) == []


class TestSlicing:
    def test_sliced_variant_follows_original(self, gen: SlotCandidateGenerator) -> None:
        pool = _pool(_make_mod("a"))
        out = gen.candidates(_make_character(slice_mods=True), "arrow", pool, SPEED)
        assert [(m.id, m.sliced) for m in out] == [("a", False), ("a", True)]

    def test_no_slicing_unless_enabled(self, gen: SlotCandidateGenerator) -> None:
        out = gen.candidates(_make_character(), "arrow", _pool(_make_mod("a")), SPEED)
        assert len(out) == 1

    def test_sliced_stats(self, gen: SlotCandidateGenerator) -> None:
        sliced = gen.slice_mod(_make_mod("a"))
        assert sliced.pips == 6
        assert sliced.primary.value == pytest.approx(32)
        speed, offense = sliced.secondaries
        assert speed.value == pytest.approx(11)
        assert offense.value == pytest.approx(3.02)
        assert sliced.is_virtual

    @pytest.mark.parametrize("pips,level,sliced", [
        (4, 15, False),
        (6, 15, False),
        (5, 12, False),
        (5, 15, True),
    ])
    def test_cannot_slice(self, pips: int, level: int, sliced: bool) -> None:
        mod = _make_mod("a", pips=pips, level=level)
        if sliced:
            mod = mod.model_copy(update={"sliced": True})
        assert not SlotCandidateGenerator.can_slice(mod)

    def test_can_slice(self) -> None:
        assert SlotCandidateGenerator.can_slice(_make_mod("a"))


class TestLeveling:
    def test_project_levels_when_target_upgrades(self, gen: SlotCandidateGenerator) -> None:
        target = SPEED.model_copy(update={"upgrade_mods": True})
        mod = gen.project(_make_mod("a", level=9), target)
        assert mod.level == 15
        assert mod.leveled
        assert mod.primary.value == pytest.approx(30)

    def test_project_leaves_mod_otherwise(self, gen: SlotCandidateGenerator) -> None:
        mod = _make_mod("a", level=9)
        assert gen.project(mod, SPEED) is mod

    def test_project_leaves_max_level_mod(self, gen: SlotCandidateGenerator) -> None:
        target = SPEED.model_copy(update={"upgrade_mods": True})
        mod = _make_mod("a")
        assert gen.project(mod, target) is mod

    def test_leveled_mod_can_then_be_sliced(self, gen: SlotCandidateGenerator) -> None:
        target = SPEED.model_copy(update={"upgrade_mods": True})
        pool = _pool(_make_mod("a", level=9))
        out = gen.candidates(_make_character(slice_mods=True), "arrow", pool, target)
        assert [(m.leveled, m.sliced) for m in out] == [(True, False), (True, True)]
