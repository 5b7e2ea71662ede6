"""Run orchestration: priority-ordered assignment across the roster."""
import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Optional

from modplanner.candidates import SlotCandidateGenerator
from modplanner.config import Settings, settings as default_settings
from modplanner.data import GameData
from modplanner.errors import (
    EmptyInventoryError, InvalidRunInputError, MalformedTargetError, MissingBaseStatsError,
    UnknownCharacterError,
)
from modplanner.models import (
    Character, CharacterMessage, CharacterResult, Mod, PriorityEntry, ProgressEvent,
    RunInput, RunResult, RunSummary,
)
from modplanner.optimizer import AssignmentSolver, SolveStatus
from modplanner.scoring import StatScorer
from modplanner.threshold import ChangeThresholdFilter, Decision

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


class CancellationToken:
    """Cooperative cancellation, checked between characters."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class _RunState:
    """Mutable bookkeeping for one run: the unclaimed pool and mod owners."""

    def __init__(self, run_input: RunInput):
        self.mods: dict[str, Mod] = run_input.mod_map()
        self.pool: dict[str, Mod] = dict(self.mods)
        self.initial_owners: dict[str, Optional[str]] = {m.id: None for m in run_input.mods}
        for c in run_input.characters:
            for mod_id in c.equipped.values():
                self.initial_owners[mod_id] = c.id
        self.owners = dict(self.initial_owners)

    def surviving(self, character: Character) -> list[Mod]:
        """The character's equipped mods that no earlier character has claimed."""
        return [self.mods[i] for i in character.equipped_ids() if self.owners[i] == character.id]

    def reserve(self, character_id: str, mod_ids: list[str]) -> None:
        for mod_id in mod_ids:
            self.pool.pop(mod_id, None)
            self.owners[mod_id] = character_id

    def release(self, character: Character, keep: set[str]) -> None:
        """Unequip the character's old mods it is not keeping; they stay in the pool."""
        for mod_id in character.equipped_ids():
            if mod_id not in keep and self.owners[mod_id] == character.id:
                self.owners[mod_id] = None

    def summary(self, cancelled: bool) -> RunSummary:
        moved = sum(1 for i, owner in self.owners.items() if owner != self.initial_owners[i])
        unassigned = sum(1 for owner in self.owners.values() if owner is None)
        return RunSummary(total_mods_moved=moved, unassigned_mod_count=unassigned,
                          cancelled=cancelled)


class RunController:
    """Assigns mods to every selected character, in priority order.

    Earlier characters get first choice: each character's search runs over
    the mods left unclaimed by the characters before it.
    """

    def __init__(self, game_data: GameData, config: Settings | None = None):
        self.config = config or default_settings
        self.scorer = StatScorer(game_data)
        self.generator = SlotCandidateGenerator(game_data)
        self.solver = AssignmentSolver(self.config.SEARCH_WIDTH, self.config.MAX_EXPANSIONS)
        self.change_filter = ChangeThresholdFilter(self.config.CHANGE_EPSILON)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def submit(self, run_input: RunInput, progress: ProgressCallback | None = None,
               cancel_token: CancellationToken | None = None) -> Future:
        """Start a run on its own worker thread."""
        worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="modplanner-run")
        future = worker.submit(self.run, run_input, progress, cancel_token)
        worker.shutdown(wait=False)
        return future

    def run(self, run_input: RunInput, progress: ProgressCallback | None = None,
            cancel_token: CancellationToken | None = None) -> RunResult:
        self.validate(run_input)
        logger.info("Starting run: %d selected characters, %d mods",
                    len(run_input.selected), len(run_input.mods))

        if self.config.WORKER_THREADS > 1:
            with ThreadPoolExecutor(max_workers=self.config.WORKER_THREADS,
                                    thread_name_prefix="modplanner-score") as executor:
                result = self._run(run_input, progress, cancel_token, executor)
        else:
            result = self._run(run_input, progress, cancel_token, None)

        logger.info("Run finished: %d characters, %d mods moved%s",
                    len(result.characters), result.summary.total_mods_moved,
                    " (cancelled)" if result.summary.cancelled else "")
        return result

    def validate(self, run_input: RunInput) -> None:
        """Raise the first fatal problem; nothing is processed if this fails."""
        if not run_input.mods:
            raise EmptyInventoryError()
        characters = run_input.character_map()
        seen: set[str] = set()
        for entry in run_input.selected:
            if entry.character_id not in characters:
                raise UnknownCharacterError(entry.character_id)
            if entry.character_id in seen:
                raise InvalidRunInputError(f"{entry.character_id} is selected more than once")
            seen.add(entry.character_id)
            if not entry.target.is_meaningful():
                raise MalformedTargetError(entry.character_id, entry.target.name)

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    def _run(self, run_input: RunInput, progress: ProgressCallback | None,
             cancel_token: CancellationToken | None, executor: Executor | None) -> RunResult:
        characters = run_input.character_map()
        state = _RunState(run_input)
        locked = self._locked_ids(run_input)
        for character_id in sorted(locked):
            state.reserve(character_id, characters[character_id].equipped_ids())

        results: list[CharacterResult] = []
        cancelled = False
        total = len(run_input.selected)
        for index, entry in enumerate(run_input.selected):
            if cancel_token is not None and cancel_token.cancelled:
                logger.info("Run cancelled after %d of %d characters", index, total)
                cancelled = True
                break
            character = characters[entry.character_id]
            if character.id in locked:
                result = self._locked_result(character, entry, state)
            else:
                result = self._optimize(character, entry, state, run_input.change_threshold, executor)
            results.append(result)
            if progress is not None:
                progress(ProgressEvent(
                    character_id=character.id,
                    percent_complete=100.0 * (index + 1) / total,
                    outcome=result,
                ))

        return RunResult(
            characters=tuple(results),
            summary=state.summary(cancelled),
            mod_owners=state.owners,
        )

    @staticmethod
    def _locked_ids(run_input: RunInput) -> set[str]:
        selected = {e.character_id for e in run_input.selected}
        return {
            c.id for c in run_input.characters
            if c.is_locked or (run_input.lock_unselected and c.id not in selected)
        }

    def _locked_result(self, character: Character, entry: PriorityEntry,
                       state: _RunState) -> CharacterResult:
        """A locked character keeps its mods; its value is still reported."""
        current = [self.generator.project(state.mods[i], entry.target)
                   for i in character.equipped_ids()]
        try:
            value = self.scorer.prepare(character, entry.target).score(current)
            message = CharacterMessage.NONE
        except MissingBaseStatsError:
            value, message = 0.0, CharacterMessage.MISSING_BASE_STATS
        return CharacterResult(
            character_id=character.id,
            target_name=entry.target.name,
            assigned_mods=tuple(character.equipped_ids()),
            achieved_value=value,
            previous_value=value,
            changed=False,
            message=message,
        )

    def _optimize(self, character: Character, entry: PriorityEntry, state: _RunState,
                  threshold: float, executor: Executor | None) -> CharacterResult:
        target = entry.target
        current = [self.generator.project(m, target) for m in state.surviving(character)]
        current_ids = [m.id for m in current]

        def keep(value: float, message: CharacterMessage = CharacterMessage.NONE,
                 slice_ids: tuple[str, ...] = (), level_ids: tuple[str, ...] = ()) -> CharacterResult:
            state.reserve(character.id, current_ids)
            return CharacterResult(
                character_id=character.id, target_name=target.name,
                assigned_mods=tuple(current_ids), achieved_value=value, previous_value=value,
                changed=False, message=message, mods_to_slice=slice_ids, mods_to_level=level_ids,
            )

        try:
            context = self.scorer.prepare(character, target)
            current_value = context.score(current)
            candidates = self.generator.candidates_by_slot(character, state.pool, target)
            outcome = self.solver.solve(context, candidates, executor)
            proposed_value = context.score(outcome.mods) if outcome.mods else 0.0
        except MissingBaseStatsError as err:
            logger.warning("Skipping %s: %s", character.id, err)
            return keep(0.0, CharacterMessage.MISSING_BASE_STATS)

        if outcome.status is SolveStatus.INFEASIBLE:
            logger.debug("No complete assignment for %s; keeping current mods", character.id)
            return keep(current_value, CharacterMessage.INFEASIBLE)

        proposed_ids = [m.id for m in outcome.mods]
        slice_ids = tuple(m.id for m in outcome.mods if m.sliced)
        level_ids = tuple(m.id for m in outcome.mods if m.leveled)
        decision = self.change_filter.decide(
            current_ids, proposed_ids, current_value, proposed_value, threshold)

        if decision is Decision.KEEP:
            # Same mods, but upgrading them is worth it: suggest without moving anything
            if (set(proposed_ids) == set(current_ids) and any(m.is_virtual for m in outcome.mods)
                    and self.change_filter.decide((), proposed_ids, current_value,
                                                  proposed_value, threshold) is Decision.ADOPT):
                return keep(current_value, slice_ids=slice_ids, level_ids=level_ids)
            return keep(current_value)

        state.release(character, set(proposed_ids))
        state.reserve(character.id, proposed_ids)
        logger.debug("%s: %.2f -> %.2f (%+.1f%%)", character.id, current_value, proposed_value,
                     self.change_filter.improvement(current_value, proposed_value))
        return CharacterResult(
            character_id=character.id,
            target_name=target.name,
            assigned_mods=tuple(proposed_ids),
            achieved_value=proposed_value,
            previous_value=current_value,
            changed=True,
            mods_to_slice=slice_ids,
            mods_to_level=level_ids,
        )

