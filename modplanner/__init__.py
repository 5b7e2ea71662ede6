"""modplanner: mod assignment optimizer for a character roster."""

from modplanner.errors import (
    OptimizerError, InvalidRunInputError,
    EmptyInventoryError, MalformedTargetError, UnknownCharacterError,
    MissingBaseStatsError,
)
from modplanner.data import GameData
from modplanner.models import (
    Stat, StatKind, Mod, SetBonus,
    Target, LockState, OptimizerSettings, Character,
    PriorityEntry, RunInput,
    CharacterMessage, CharacterResult, RunSummary, RunResult, ProgressEvent,
)
from modplanner.sets import SetBonusCalculator
from modplanner.scoring import ScoringContext, StatScorer
from modplanner.candidates import SlotCandidateGenerator
from modplanner.optimizer import AssignmentSolver, SolveOutcome, SolveStatus
from modplanner.threshold import ChangeThresholdFilter, Decision
from modplanner.runner import CancellationToken, RunController
from modplanner.targets import TargetStore

__all__ = [
    # Errors
    "OptimizerError", "InvalidRunInputError",
    "EmptyInventoryError", "MalformedTargetError", "UnknownCharacterError",
    "MissingBaseStatsError",
    # Game data
    "GameData",
    # Models
    "Stat", "StatKind", "Mod", "SetBonus",
    "Target", "LockState", "OptimizerSettings", "Character",
    "PriorityEntry", "RunInput",
    "CharacterMessage", "CharacterResult", "RunSummary", "RunResult", "ProgressEvent",
    # Scoring
    "SetBonusCalculator", "ScoringContext", "StatScorer",
    # Optimizer
    "SlotCandidateGenerator", "AssignmentSolver", "SolveOutcome", "SolveStatus",
    "ChangeThresholdFilter", "Decision",
    # Runs
    "CancellationToken", "RunController",
    # Persistence
    "TargetStore",
]
