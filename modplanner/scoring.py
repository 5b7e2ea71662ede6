"""Mod combination scoring against a Target."""
from collections import Counter
from typing import Iterable, Optional

from modplanner.constants import TARGET_STATS
from modplanner.data import GameData
from modplanner.models import Character, Mod, Stat, Target
from modplanner.sets import SetBonusCalculator
from modplanner.stats import target_contributions

Vector = tuple[float, ...]

STAT_INDEX: dict[str, int] = {s: i for i, s in enumerate(TARGET_STATS)}
ZERO_VECTOR: Vector = (0.0,) * len(TARGET_STATS)


def add_vectors(a: Vector, b: Vector) -> Vector:
    return tuple(x + y for x, y in zip(a, b))


class ScoringContext:
    """Scoring state for one character/target pair.

    Vectors are flat contributions indexed like TARGET_STATS. Per-mod and
    per-set vectors are cached, so one context should not outlive its run.
    """

    def __init__(self, character: Character, target: Target,
                 set_calculator: SetBonusCalculator):
        self.character = character
        self.target = target
        self.set_calculator = set_calculator
        self.weights: Vector = tuple(target.weight(s) for s in TARGET_STATS)
        self.base: Vector = tuple(self._base_value(s) for s in TARGET_STATS)
        # Penalized stats keep accruing past any ceiling
        self.caps: tuple[Optional[float], ...] = tuple(
            target.cap(s) if target.weight(s) > 0 else None for s in TARGET_STATS
        )
        self._mod_vectors: dict[tuple[str, int], Vector] = {}
        self._set_vectors: dict[tuple[str, int, int], Vector] = {}

    def _base_value(self, stat: str) -> float:
        base = self.character.base_stats or {}
        if stat == "critChance":
            return base.get("physCritChance", base.get("critChance", 0.0))
        return base.get(stat, 0.0)

    @property
    def has_caps(self) -> bool:
        return any(c is not None for c in self.caps)

    # ------------------------------------------------------------------
    # Vectors
    # ------------------------------------------------------------------

    def stat_vector(self, stat: Stat) -> Vector:
        vec = list(ZERO_VECTOR)
        for key, value in target_contributions(
                stat, self.character.base_stats, self.character.id).items():
            vec[STAT_INDEX[key]] += value
        return tuple(vec)

    def mod_vector(self, mod: Mod) -> Vector:
        key = mod.variant_key
        vec = self._mod_vectors.get(key)
        if vec is None:
            vec = ZERO_VECTOR
            for stat in mod.all_stats:
                vec = add_vectors(vec, self.stat_vector(stat))
            self._mod_vectors[key] = vec
        return vec

    def set_vector(self, set_name: str, count: int, maxed: int) -> Vector:
        key = (set_name, count, maxed)
        vec = self._set_vectors.get(key)
        if vec is None:
            stat = self.set_calculator.bonus_for(set_name, count, maxed)
            vec = ZERO_VECTOR if stat is None else self.stat_vector(stat)
            self._set_vectors[key] = vec
        return vec

    def set_totals(self, mods: Iterable[Mod]) -> Vector:
        counts: Counter[str] = Counter()
        maxed: Counter[str] = Counter()
        for mod in mods:
            counts[mod.set_name] += 1
            if mod.is_max_level:
                maxed[mod.set_name] += 1
        vec = ZERO_VECTOR
        for name in sorted(counts):
            vec = add_vectors(vec, self.set_vector(name, counts[name], maxed[name]))
        return vec

    def totals(self, mods: Iterable[Mod]) -> Vector:
        mods = list(mods)
        vec = self.set_totals(mods)
        for mod in mods:
            vec = add_vectors(vec, self.mod_vector(mod))
        return vec

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def linear(self, vec: Vector) -> float:
        """Weighted sum ignoring caps. Never below value(vec)."""
        return sum(w * x for w, x in zip(self.weights, vec) if w)

    def value(self, vec: Vector) -> float:
        total = 0.0
        for w, b, cap, x in zip(self.weights, self.base, self.caps, vec):
            if not w:
                continue
            if cap is not None:
                x = min(b + x, cap) - min(b, cap)
            total += w * x
        return total

    def mod_value(self, mod: Mod) -> float:
        return self.linear(self.mod_vector(mod))

    def score(self, mods: Iterable[Mod]) -> float:
        return self.value(self.totals(mods))

    def effective_stats(self, mods: Iterable[Mod]) -> dict[str, float]:
        """Base plus mod and set contributions, keyed by target stat."""
        return {s: b + x for s, b, x in zip(TARGET_STATS, self.base, self.totals(mods))}


class StatScorer:
    """Scores mod combinations for a character against a Target."""

    def __init__(self, game_data: GameData):
        self.game_data = game_data
        self.set_calculator = SetBonusCalculator(game_data)

    def prepare(self, character: Character, target: Target) -> ScoringContext:
        return ScoringContext(character, target, self.set_calculator)

    def score(self, character: Character, mods: Iterable[Mod], target: Target) -> float:
        """Value of `mods` (normally six) on `character` for `target`."""
        return self.prepare(character, target).score(mods)
