"""Game constants. No mutable state."""
from typing import Literal

# Mod slots, in the fixed order the solver fills them
SLOTS: tuple[str, ...] = ("square", "arrow", "diamond", "triangle", "circle", "cross")
SlotName = Literal["square", "arrow", "diamond", "triangle", "circle", "cross"]

MOD_SLOT_COUNT = len(SLOTS)

SET_NAMES: tuple[str, ...] = (
    "Health", "Defense", "Critical Chance", "Tenacity",
    "Potency", "Critical Damage", "Offense", "Speed",
)
SetName = Literal[
    "Health", "Defense", "Critical Chance", "Tenacity",
    "Potency", "Critical Damage", "Offense", "Speed",
]

MAX_MOD_LEVEL = 15
MIN_PIPS, MAX_PIPS = 1, 6
# Slicing takes a 5-dot mod at max level to 6 dots
SLICE_FROM_PIPS = 5

# Stat types that can be either a flat value or a percent of the base stat
MIXED_TYPES: frozenset[str] = frozenset({
    "Health", "Protection", "Offense", "Physical Damage", "Special Damage",
    "Speed", "Defense", "Armor", "Resistance",
})

# Display type -> internal stat names it contributes to
STAT_TYPE_MAP: dict[str, tuple[str, ...]] = {
    "Health":                   ("health",),
    "Protection":               ("protection",),
    "Speed":                    ("speed",),
    "Critical Damage":          ("critDmg",),
    "Potency":                  ("potency",),
    "Tenacity":                 ("tenacity",),
    "Offense":                  ("physDmg", "specDmg"),
    "Physical Damage":          ("physDmg",),
    "Special Damage":           ("specDmg",),
    "Critical Chance":          ("physCritChance", "specCritChance"),
    "Physical Critical Chance": ("physCritChance",),
    "Special Critical Chance":  ("specCritChance",),
    "Defense":                  ("armor", "resistance"),
    "Armor":                    ("armor",),
    "Resistance":               ("resistance",),
    "Accuracy":                 ("accuracy",),
    "Critical Avoidance":       ("critAvoid",),
}

# Internal stat name -> human-friendly name
DISPLAY_NAMES: dict[str, str] = {
    "health":         "Health",
    "protection":     "Protection",
    "speed":          "Speed",
    "critDmg":        "Critical Damage",
    "potency":        "Potency",
    "tenacity":       "Tenacity",
    "physDmg":        "Physical Damage",
    "specDmg":        "Special Damage",
    "critChance":     "Critical Chance",
    "physCritChance": "Physical Critical Chance",
    "specCritChance": "Special Critical Chance",
    "armor":          "Armor",
    "resistance":     "Resistance",
    "accuracy":       "Accuracy",
    "critAvoid":      "Critical Avoidance",
}

# Stats a Target can weight. Physical and special crit chance are merged into
# critChance; special crit chance itself is worth nothing.
TARGET_STATS: tuple[str, ...] = (
    "health", "protection", "speed", "critDmg", "potency", "tenacity",
    "physDmg", "specDmg", "critChance", "armor", "resistance", "accuracy",
    "critAvoid",
)
TARGET_STAT_ALIASES: dict[str, str | None] = {
    "physCritChance": "critChance",
    "specCritChance": None,
}

# Ceilings beyond which a stat stops adding value
NATURAL_CAPS: dict[str, float] = {"critChance": 100.0}

# Roll count -> quality grade
ROLL_GRADES: dict[int, str] = {5: "S", 4: "A", 3: "B", 2: "C", 1: "D"}
