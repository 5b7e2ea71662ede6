"""Pydantic models for stats, mods, characters, targets and run results.

Everything a run reads is frozen; a run never patches its input and always
returns a new RunResult.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modplanner.constants import (
    DISPLAY_NAMES, MAX_MOD_LEVEL, MAX_PIPS, MIN_PIPS, MIXED_TYPES, NATURAL_CAPS,
    ROLL_GRADES, SLOTS, STAT_TYPE_MAP, TARGET_STATS, SetName, SlotName,
)


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

class StatKind(str, Enum):
    FLAT = "flat"
    PERCENT = "percent"


class Stat(BaseModel):
    """A single stat on a mod or set bonus, tagged flat or percent."""
    model_config = ConfigDict(frozen=True)

    type: str       # display type, e.g. "Offense", "Critical Chance"
    value: float
    kind: StatKind = StatKind.FLAT
    rolls: int = Field(default=1, ge=1, le=5)

    @field_validator("type")
    @classmethod
    def _known_type(cls, v: str) -> str:
        if v not in STAT_TYPE_MAP:
            raise ValueError(f"Unknown stat type {v!r}")
        return v

    @property
    def is_percent(self) -> bool:
        """True when the value is a percentage of the character's base stat."""
        return self.kind is StatKind.PERCENT and self.type in MIXED_TYPES

    @property
    def grade(self) -> str:
        return ROLL_GRADES.get(self.rolls, "D")

    def show_value(self) -> str:
        v = round(self.value, 2) if self.value % 1 else int(self.value)
        return f"{v}{'%' if self.kind is StatKind.PERCENT else ''}"

    def show(self) -> str:
        return f"{self.show_value()} {self.type}"

    def plus(self, other: "Stat") -> "Stat":
        if other.type != self.type or other.is_percent != self.is_percent:
            raise ValueError("Can't add two Stats of different types")
        return self.model_copy(update={"value": self.value + other.value})

    def minus(self, other: "Stat") -> "Stat":
        if other.type != self.type or other.kind is not self.kind:
            raise ValueError("Can't take the difference between Stats of different types")
        return Stat(type=self.type, value=self.value - other.value, kind=self.kind)


# ---------------------------------------------------------------------------
# Mods and set bonuses
# ---------------------------------------------------------------------------

class Mod(BaseModel):
    """An equippable mod. `sliced` / `leveled` mark virtual candidate variants."""
    model_config = ConfigDict(frozen=True)

    id: str
    slot: SlotName
    set_name: SetName
    primary: Stat
    secondaries: tuple[Stat, ...] = Field(default=(), max_length=4)
    level: int = Field(default=MAX_MOD_LEVEL, ge=1, le=MAX_MOD_LEVEL)
    pips: int = Field(default=5, ge=MIN_PIPS, le=MAX_PIPS)
    owner: Optional[str] = None
    sliced: bool = False
    leveled: bool = False

    @property
    def is_max_level(self) -> bool:
        return self.level >= MAX_MOD_LEVEL

    @property
    def all_stats(self) -> tuple[Stat, ...]:
        return (self.primary,) + self.secondaries

    @property
    def is_virtual(self) -> bool:
        return self.sliced or self.leveled

    @property
    def variant_key(self) -> tuple[str, int]:
        """Sort key for tie-breaking; the real mod sorts before its variants."""
        return self.id, int(self.leveled) + 2 * int(self.sliced)


class SetBonus(BaseModel):
    """Immutable definition of one mod set."""
    model_config = ConfigDict(frozen=True)

    name: SetName
    size: int               # mods needed per completed set (2 or 4)
    stat: str               # display type of the bonus stat
    percent: bool
    small_value: float      # granted while the set's mods are below max level
    max_value: float
    cross_factor: float     # multiplier when all six mods share this set


# ---------------------------------------------------------------------------
# Targets and characters
# ---------------------------------------------------------------------------

class Target(BaseModel):
    """A named weighting over stats used to score a character's mods."""
    model_config = ConfigDict(frozen=True)

    name: str
    weights: dict[str, float] = Field(default_factory=dict)
    allowed_sets: Optional[frozenset[SetName]] = None   # None = any set
    forbidden_sets: frozenset[SetName] = frozenset()
    required_sets: dict[SetName, int] = Field(default_factory=dict)  # set -> completed sets
    caps: dict[str, float] = Field(default_factory=dict)
    upgrade_mods: bool = False

    @field_validator("weights", "caps")
    @classmethod
    def _known_stats(cls, v: dict[str, float]) -> dict[str, float]:
        unknown = sorted(set(v) - set(TARGET_STATS))
        if unknown:
            raise ValueError(f"Unknown target stats: {unknown}")
        return v

    @field_validator("required_sets")
    @classmethod
    def _positive_counts(cls, v: dict[str, int]) -> dict[str, int]:
        return {k: n for k, n in v.items() if n > 0}

    def weight(self, stat: str) -> float:
        return self.weights.get(stat, 0.0)

    def cap(self, stat: str) -> Optional[float]:
        caps = [c for c in (self.caps.get(stat), NATURAL_CAPS.get(stat)) if c is not None]
        return min(caps) if caps else None

    @property
    def has_set_restriction(self) -> bool:
        return (self.allowed_sets is not None
                or bool(self.forbidden_sets) or bool(self.required_sets))

    def is_meaningful(self) -> bool:
        return any(w != 0 for w in self.weights.values()) or self.has_set_restriction

    def allows_set(self, set_name: str) -> bool:
        if set_name in self.forbidden_sets:
            return False
        return self.allowed_sets is None or set_name in self.allowed_sets


class LockState(str, Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class OptimizerSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    targets: tuple[Target, ...] = ()
    minimum_dots: int = Field(default=1, ge=MIN_PIPS, le=MAX_PIPS)
    slice_mods: bool = False
    lock: LockState = LockState.UNLOCKED

    def get_target(self, name: str) -> Optional[Target]:
        return next((t for t in self.targets if t.name == name), None)

    def with_lock(self, lock: LockState) -> "OptimizerSettings":
        return self.model_copy(update={"lock": lock})

    def with_target(self, target: Target) -> "OptimizerSettings":
        """Replace the target with the same name, or append it."""
        targets = [t for t in self.targets if t.name != target.name]
        if len(targets) == len(self.targets):
            return self.model_copy(update={"targets": self.targets + (target,)})
        return self.model_copy(update={
            "targets": tuple(target if t.name == target.name else t for t in self.targets)
        })

    def without_target(self, name: str) -> "OptimizerSettings":
        return self.model_copy(update={"targets": tuple(t for t in self.targets if t.name != name)})

    def with_minimum_dots(self, dots: int) -> "OptimizerSettings":
        # model_copy skips validation, so the Field bounds are checked here
        if not MIN_PIPS <= dots <= MAX_PIPS:
            raise ValueError(f"minimum_dots must be between {MIN_PIPS} and {MAX_PIPS}, got {dots}")
        return self.model_copy(update={"minimum_dots": dots})

    def with_slice_mods(self, slice_mods: bool) -> "OptimizerSettings":
        return self.model_copy(update={"slice_mods": slice_mods})


class Character(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    base_stats: Optional[dict[str, float]] = None   # internal stat name -> flat value
    equipped: dict[SlotName, str] = Field(default_factory=dict)
    settings: OptimizerSettings = Field(default_factory=OptimizerSettings)

    @field_validator("base_stats")
    @classmethod
    def _known_base_stats(cls, v: Optional[dict[str, float]]) -> Optional[dict[str, float]]:
        if v is not None:
            unknown = sorted(set(v) - set(DISPLAY_NAMES))
            if unknown:
                raise ValueError(f"Unknown base stats: {unknown}")
        return v

    @property
    def is_locked(self) -> bool:
        return self.settings.lock is LockState.LOCKED

    def with_settings(self, settings: OptimizerSettings) -> "Character":
        return self.model_copy(update={"settings": settings})

    def equipped_ids(self) -> list[str]:
        """Equipped mod ids in slot order."""
        return [self.equipped[s] for s in SLOTS if s in self.equipped]


# ---------------------------------------------------------------------------
# Run input
# ---------------------------------------------------------------------------

class PriorityEntry(BaseModel):
    """One selected character and the target to optimize it for."""
    model_config = ConfigDict(frozen=True)

    character_id: str
    target: Target


class RunInput(BaseModel):
    """Immutable snapshot of everything a run needs."""
    model_config = ConfigDict(frozen=True)

    characters: tuple[Character, ...]
    mods: tuple[Mod, ...]
    selected: tuple[PriorityEntry, ...]
    change_threshold: float = Field(default=0.0, ge=0)   # percent
    lock_unselected: bool = False

    @model_validator(mode="after")
    def _check_consistency(self) -> "RunInput":
        char_ids = [c.id for c in self.characters]
        if len(set(char_ids)) != len(char_ids):
            raise ValueError("Duplicate character ids in roster")
        mods = {m.id: m for m in self.mods}
        if len(mods) != len(self.mods):
            raise ValueError("Duplicate mod ids in inventory")

        holder: dict[str, str] = {}
        for c in self.characters:
            for slot, mod_id in c.equipped.items():
                mod = mods.get(mod_id)
                if mod is None:
                    raise ValueError(f"{c.id} has unknown mod {mod_id} equipped")
                if mod.slot != slot:
                    raise ValueError(f"Mod {mod_id} is a {mod.slot} mod but equipped as {slot}")
                if mod_id in holder:
                    raise ValueError(f"Mod {mod_id} is equipped on {holder[mod_id]} and {c.id}")
                if mod.owner != c.id:
                    raise ValueError(f"Mod {mod_id} is equipped on {c.id} but owned by {mod.owner}")
                holder[mod_id] = c.id
        for mod in self.mods:
            if mod.owner is not None and holder.get(mod.id) != mod.owner:
                raise ValueError(f"Mod {mod.id} claims owner {mod.owner} but is not equipped there")
        return self

    def character_map(self) -> dict[str, Character]:
        return {c.id: c for c in self.characters}

    def mod_map(self) -> dict[str, Mod]:
        return {m.id: m for m in self.mods}


# ---------------------------------------------------------------------------
# Run results
# ---------------------------------------------------------------------------

class CharacterMessage(str, Enum):
    NONE = "none"
    INFEASIBLE = "infeasible"
    MISSING_BASE_STATS = "missing_base_stats"


class CharacterResult(BaseModel):
    """Outcome for one selected character. Ready as an API response."""
    model_config = ConfigDict(frozen=True)

    character_id: str
    target_name: str
    assigned_mods: tuple[str, ...]     # slot order, at most six
    achieved_value: float
    previous_value: float
    changed: bool
    message: CharacterMessage = CharacterMessage.NONE
    mods_to_slice: tuple[str, ...] = ()
    mods_to_level: tuple[str, ...] = ()


class RunSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_mods_moved: int
    unassigned_mod_count: int
    cancelled: bool = False


class RunResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    characters: tuple[CharacterResult, ...]
    summary: RunSummary
    mod_owners: dict[str, Optional[str]] = Field(default_factory=dict)

    def assignments(self) -> dict[str, tuple[str, ...]]:
        return {r.character_id: r.assigned_mods for r in self.characters}

    def get(self, character_id: str) -> Optional[CharacterResult]:
        return next((r for r in self.characters if r.character_id == character_id), None)


class ProgressEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    character_id: str
    percent_complete: float
    outcome: CharacterResult
