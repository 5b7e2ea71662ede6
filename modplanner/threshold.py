"""Suppresses reassignments whose gain is below the change threshold."""
from enum import Enum
from typing import Sequence

from modplanner.config import settings


class Decision(str, Enum):
    ADOPT = "adopt"
    KEEP = "keep"


class ChangeThresholdFilter:
    def __init__(self, epsilon: float | None = None):
        self.epsilon = settings.CHANGE_EPSILON if epsilon is None else epsilon

    def improvement(self, current_value: float, proposed_value: float) -> float:
        """Relative gain of the proposal, in percent."""
        return 100 * (proposed_value - current_value) / max(current_value, self.epsilon)

    def decide(self, current_ids: Sequence[str], proposed_ids: Sequence[str],
               current_value: float, proposed_value: float,
               threshold_percent: float) -> Decision:
        """Adopt only a different, strictly better set that clears the threshold."""
        if set(proposed_ids) == set(current_ids):
            return Decision.KEEP
        if proposed_value - current_value <= self.epsilon:
            return Decision.KEEP
        if self.improvement(current_value, proposed_value) < threshold_percent:
            return Decision.KEEP
        return Decision.ADOPT
