"""Optimizer exceptions."""


class OptimizerError(Exception):
    pass


class InvalidRunInputError(OptimizerError):
    """A run cannot start; nothing has been processed."""


class EmptyInventoryError(InvalidRunInputError):
    def __init__(self) -> None:
        super().__init__("The mod inventory is empty; there is nothing to assign")


class MalformedTargetError(InvalidRunInputError):
    def __init__(self, character_id: str, target_name: str):
        self.character_id = character_id
        self.target_name = target_name
        super().__init__(
            f"Target '{target_name}' for {character_id} has no non-zero weight "
            f"and no set restriction"
        )


class UnknownCharacterError(InvalidRunInputError):
    def __init__(self, character_id: str):
        self.character_id = character_id
        super().__init__(f"Selected character {character_id} is not in the roster")


class MissingBaseStatsError(OptimizerError):
    """A percent stat must be converted but the character has no base value for it."""

    def __init__(self, stat_type: str, character_id: str | None = None):
        self.stat_type = stat_type
        self.character_id = character_id
        who = character_id or "character"
        super().__init__(f"Stat {stat_type} is given as a percentage, but {who} has no base stats")
