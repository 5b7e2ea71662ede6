"""Per-slot candidate lists, including simulated leveling and slicing."""
from typing import Mapping

from modplanner.constants import MAX_MOD_LEVEL, MAX_PIPS, SLICE_FROM_PIPS, SLOTS
from modplanner.data import GameData
from modplanner.models import Character, Mod, Target
from modplanner.stats import upgrade_primary, upgrade_secondary


class SlotCandidateGenerator:
    """Builds the mods a character may use in each slot.

    `pool` is the set of mods not yet claimed during the run, keyed by id.
    Lists are rebuilt for each character since the pool shrinks as the run
    proceeds.
    """

    def __init__(self, game_data: GameData):
        self.game_data = game_data

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def candidates(self, character: Character, slot: str,
                   pool: Mapping[str, Mod], target: Target) -> list[Mod]:
        """Eligible mods for one slot, by id, each followed by its sliced variant."""
        equipped = set(character.equipped.values())
        out: list[Mod] = []
        for mod in sorted(pool.values(), key=lambda m: m.id):
            if mod.slot != slot or not self.is_eligible(mod, character, target, equipped):
                continue
            mod = self.project(mod, target)
            out.append(mod)
            if character.settings.slice_mods and self.can_slice(mod):
                out.append(self.slice_mod(mod))
        return out

    def candidates_by_slot(self, character: Character, pool: Mapping[str, Mod],
                           target: Target) -> dict[str, list[Mod]]:
        return {slot: self.candidates(character, slot, pool, target) for slot in SLOTS}

    def is_eligible(self, mod: Mod, character: Character, target: Target,
                    equipped: set[str] | None = None) -> bool:
        if equipped is None:
            equipped = set(character.equipped.values())
        if mod.pips < character.settings.minimum_dots and mod.id not in equipped:
            return False
        return target.allows_set(mod.set_name)

    # ------------------------------------------------------------------
    # Simulated upgrades
    # ------------------------------------------------------------------

    def project(self, mod: Mod, target: Target) -> Mod:
        """The mod as scored for `target`: levelled to 15 if the target upgrades mods."""
        if target.upgrade_mods and not mod.is_max_level:
            return self.level_mod(mod)
        return mod

    def level_mod(self, mod: Mod) -> Mod:
        return mod.model_copy(update={
            "level": MAX_MOD_LEVEL,
            "primary": upgrade_primary(mod.primary, mod.pips, self.game_data),
            "leveled": True,
        })

    @staticmethod
    def can_slice(mod: Mod) -> bool:
        return mod.pips == SLICE_FROM_PIPS and mod.is_max_level and not mod.sliced

    def slice_mod(self, mod: Mod) -> Mod:
        """Virtual 6-dot version of a 5-dot level-15 mod."""
        return mod.model_copy(update={
            "pips": MAX_PIPS,
            "primary": upgrade_primary(mod.primary, MAX_PIPS, self.game_data),
            "secondaries": tuple(upgrade_secondary(s, self.game_data) for s in mod.secondaries),
            "sliced": True,
        })
