"""Per-character mod assignment: best-first branch and bound over six slots."""
import heapq
import logging
import math
from concurrent.futures import Executor
from enum import Enum
from functools import partial
from typing import Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from modplanner.config import settings
from modplanner.constants import MOD_SLOT_COUNT, SLOTS
from modplanner.models import Mod
from modplanner.scoring import ZERO_VECTOR, ScoringContext, Vector, add_vectors

logger = logging.getLogger(__name__)

# Candidates scored per executor task
_CHUNK_SIZE = 64
# Relative tolerance when comparing bounds and values
_REL_TOL = 1e-9


class SolveStatus(str, Enum):
    FOUND = "found"
    INFEASIBLE = "infeasible"


class SolveOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: SolveStatus
    mods: tuple[Mod, ...] = ()     # slot order
    value: float = 0.0
    expansions: int = 0
    exhausted: bool = False        # stopped at max_expansions with states left


class _Candidate:
    __slots__ = ("mod", "key", "vector", "value", "set_index", "maxed")

    def __init__(self, mod: Mod, vector: Vector, value: float, set_index: int):
        self.mod = mod
        self.key = mod.variant_key
        self.vector = vector
        self.value = value
        self.set_index = set_index
        self.maxed = 1 if mod.is_max_level else 0


class _Partial:
    """Slots 0..depth-1 filled."""
    __slots__ = ("depth", "key", "mods", "vector", "linear", "counts", "maxed")

    def __init__(self, depth: int, key: tuple, mods: tuple[Mod, ...], vector: Vector,
                 linear: float, counts: tuple[int, ...], maxed: tuple[int, ...]):
        self.depth = depth
        self.key = key
        self.mods = mods
        self.vector = vector
        self.linear = linear
        self.counts = counts
        self.maxed = maxed


class _Search:
    """State for a single character's search. Never shared between solves."""

    def __init__(self, context: ScoringContext, candidates_by_slot: Mapping[str, Sequence[Mod]],
                 width: int, max_expansions: int):
        self.context = context
        self.width = width
        self.max_expansions = max_expansions
        game_data = context.set_calculator.game_data

        required = context.target.required_sets
        self.set_names: list[str] = sorted(
            {m.set_name for mods in candidates_by_slot.values() for m in mods} | set(required)
        )
        set_index = {name: i for i, name in enumerate(self.set_names)}
        self.slots: list[list[_Candidate]] = []
        for slot in SLOTS:
            entries = []
            for mod in candidates_by_slot.get(slot, ()):
                vec = context.mod_vector(mod)
                entries.append(_Candidate(mod, vec, context.linear(vec), set_index[mod.set_name]))
            entries.sort(key=lambda c: (-c.value, c.key))
            self.slots.append(entries)

        self.required: list[tuple[int, int]] = [
            (set_index[name], n * game_data.get_set_bonus(name).size)
            for name, n in sorted(required.items())
        ]
        self._build_tables()
        self._set_bound_memo: dict[tuple[tuple[int, ...], int], float] = {}
        self.incumbent: Optional[tuple[float, tuple, _Partial]] = None

    # ------------------------------------------------------------------
    # Precomputed bound tables
    # ------------------------------------------------------------------

    def _build_tables(self) -> None:
        ctx = self.context
        n_stats = len(ZERO_VECTOR)
        n_sets = len(self.set_names)

        # suffix_*[d] covers the unfilled slots d..5
        self.suffix_best = [0.0] * (MOD_SLOT_COUNT + 1)
        self.suffix_hi: list[Vector] = [ZERO_VECTOR] * (MOD_SLOT_COUNT + 1)
        self.avail: list[tuple[int, ...]] = [(0,) * n_sets] * (MOD_SLOT_COUNT + 1)
        for d in range(MOD_SLOT_COUNT - 1, -1, -1):
            cands = self.slots[d]
            best = cands[0].value if cands else 0.0
            hi = tuple(max((c.vector[s] for c in cands), default=0.0) for s in range(n_stats))
            present = {c.set_index for c in cands}
            self.suffix_best[d] = self.suffix_best[d + 1] + best
            self.suffix_hi[d] = add_vectors(self.suffix_hi[d + 1], hi)
            self.avail[d] = tuple(
                a + (1 if i in present else 0) for i, a in enumerate(self.avail[d + 1])
            )

        # Best linear set value per set and mod count, maxed or not
        self.set_table: list[list[float]] = []
        set_hi = ZERO_VECTOR
        for name in self.set_names:
            row = [0.0]
            top = ZERO_VECTOR
            for count in range(1, MOD_SLOT_COUNT + 1):
                full = ctx.set_vector(name, count, count)
                small = ctx.set_vector(name, count, 0)
                row.append(max(ctx.linear(full), ctx.linear(small)))
                top = tuple(max(a, b, c) for a, b, c in zip(top, full, small))
            self.set_table.append(row)
            set_hi = add_vectors(set_hi, top)
        self.set_hi = set_hi

    # ------------------------------------------------------------------
    # Bounds
    # ------------------------------------------------------------------

    def set_bound(self, counts: tuple[int, ...], depth: int) -> float:
        """Best linear set-bonus value reachable from `counts` with the unfilled slots."""
        key = (counts, depth)
        cached = self._set_bound_memo.get(key)
        if cached is not None:
            return cached
        left = MOD_SLOT_COUNT - depth
        best: dict[int, float] = {0: 0.0}   # mods used -> best value
        for i, count in enumerate(counts):
            row = self.set_table[i]
            limit = min(left, self.avail[depth][i])
            nxt: dict[int, float] = {}
            for used, v in best.items():
                for extra in range(min(limit, left - used) + 1):
                    total = v + row[count + extra]
                    if total > nxt.get(used + extra, -math.inf):
                        nxt[used + extra] = total
            best = nxt
        result = max(best.values())
        self._set_bound_memo[key] = result
        return result

    def capped_bound(self, state: _Partial) -> float:
        ctx = self.context
        hi = self.suffix_hi[state.depth]
        total = 0.0
        for s, (w, b, cap) in enumerate(zip(ctx.weights, ctx.base, ctx.caps)):
            if not w:
                continue
            x = state.vector[s]
            if w > 0:
                x += hi[s] + self.set_hi[s]
                if cap is not None:
                    x = min(b + x, cap) - min(b, cap)
            total += w * x
        return total

    def bound(self, state: _Partial) -> float:
        d = state.depth
        ub = state.linear + self.suffix_best[d] + self.set_bound(state.counts, d)
        if self.context.has_caps:
            ub = min(ub, self.capped_bound(state))
        return ub

    def can_complete(self, counts: tuple[int, ...], depth: int) -> bool:
        """Whether the required sets are still reachable."""
        if not self.required:
            return True
        missing_total = 0
        for i, needed in self.required:
            missing = needed - counts[i]
            if missing > 0:
                if missing > self.avail[depth][i]:
                    return False
                missing_total += missing
        return missing_total <= MOD_SLOT_COUNT - depth

    def exact(self, state: _Partial) -> float:
        vec = state.vector
        for i, name in enumerate(self.set_names):
            if state.counts[i]:
                vec = add_vectors(vec, self.context.set_vector(name, state.counts[i], state.maxed[i]))
        return self.context.value(vec)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _extend(self, state: _Partial, cand: _Candidate) -> _Partial:
        counts = list(state.counts)
        counts[cand.set_index] += 1
        maxed = list(state.maxed)
        maxed[cand.set_index] += cand.maxed
        return _Partial(
            state.depth + 1, state.key + (cand.key,), state.mods + (cand.mod,),
            add_vectors(state.vector, cand.vector), state.linear + cand.value,
            tuple(counts), tuple(maxed),
        )

    def _children(self, state: _Partial, cands: Sequence[_Candidate]) -> list[tuple[float, _Partial]]:
        complete = state.depth + 1 == MOD_SLOT_COUNT
        out = []
        for cand in cands:
            child = self._extend(state, cand)
            if not self.can_complete(child.counts, child.depth):
                continue
            out.append((self.exact(child) if complete else self.bound(child), child))
        return out

    def _expand(self, state: _Partial, executor: Optional[Executor]) -> list[tuple[float, _Partial]]:
        cands = self.slots[state.depth]
        if executor is None or len(cands) <= _CHUNK_SIZE:
            return self._children(state, cands)
        chunks = [cands[i:i + _CHUNK_SIZE] for i in range(0, len(cands), _CHUNK_SIZE)]
        out: list[tuple[float, _Partial]] = []
        for part in executor.map(partial(self._children, state), chunks):
            out.extend(part)
        return out

    def _beaten(self, ub: float, key: tuple) -> bool:
        """True if nothing under this bound can replace the incumbent."""
        if self.incumbent is None:
            return False
        value, inc_key, _ = self.incumbent
        tol = _REL_TOL * max(1.0, abs(value))
        if ub < value - tol:
            return True
        return ub <= value + tol and key >= inc_key

    def _offer(self, value: float, state: _Partial) -> None:
        if self.incumbent is not None:
            best, inc_key, _ = self.incumbent
            tol = _REL_TOL * max(1.0, abs(best))
            if value < best - tol or (value <= best + tol and state.key >= inc_key):
                return
        self.incumbent = (value, state.key, state)

    def _root(self) -> _Partial:
        zeros = (0,) * len(self.set_names)
        return _Partial(0, (), (), ZERO_VECTOR, 0.0, zeros, zeros)

    def _seed(self) -> None:
        """Greedy incumbent: the best single mod in every slot."""
        state = self._root()
        for cands in self.slots:
            state = self._extend(state, cands[0])
        if self.can_complete(state.counts, state.depth):
            self._offer(self.exact(state), state)

    def run(self, executor: Optional[Executor]) -> SolveOutcome:
        root = self._root()
        if any(not cands for cands in self.slots) or not self.can_complete(root.counts, 0):
            return SolveOutcome(status=SolveStatus.INFEASIBLE)
        self._seed()

        heap: list[tuple[float, tuple, _Partial]] = [(-self.bound(root), root.key, root)]
        expansions = 0
        exhausted = False
        while heap:
            neg_ub, key, state = heapq.heappop(heap)
            if self._beaten(-neg_ub, key):
                break
            if expansions >= self.max_expansions:
                exhausted = True
                logger.warning("Search for %s stopped after %d expansions with %d states left",
                               self.context.character.id, expansions, len(heap) + 1)
                break
            expansions += 1
            for ub, child in self._expand(state, executor):
                if child.depth == MOD_SLOT_COUNT:
                    self._offer(ub, child)
                elif not self._beaten(ub, child.key):
                    heapq.heappush(heap, (-ub, child.key, child))
            if len(heap) > 2 * self.width:
                # nsmallest returns a sorted list, which is a valid heap
                heap = heapq.nsmallest(self.width, heap)

        if self.incumbent is None:
            return SolveOutcome(status=SolveStatus.INFEASIBLE, expansions=expansions,
                                exhausted=exhausted)
        value, _, best = self.incumbent
        return SolveOutcome(status=SolveStatus.FOUND, mods=best.mods, value=value,
                            expansions=expansions, exhausted=exhausted)


class AssignmentSolver:
    """Finds the best six-mod combination for one character.

    Slots are filled in SLOTS order from a heap frontier ordered by an
    optimistic bound. The bound is the smaller of
      * partial linear value + each unfilled slot's best mod value + the
        best set-bonus value any completion of the partial set counts can
        reach, and
      * when the target has ceilings, the same per stat with ceilings applied.
    Capped value never exceeds linear value, so neither bound prunes the
    optimum; only trimming the frontier to `search_width` can.
    """

    def __init__(self, search_width: int | None = None, max_expansions: int | None = None):
        self.search_width = search_width or settings.SEARCH_WIDTH
        self.max_expansions = max_expansions or settings.MAX_EXPANSIONS

    def solve(self, context: ScoringContext, candidates_by_slot: Mapping[str, Sequence[Mod]],
              executor: Optional[Executor] = None) -> SolveOutcome:
        character_id = context.character.id
        logger.debug("Solving %s for target %s: %s candidates", character_id, context.target.name,
                     [len(candidates_by_slot.get(s, ())) for s in SLOTS])
        search = _Search(context, candidates_by_slot, self.search_width, self.max_expansions)
        outcome = search.run(executor)
        logger.debug("Solved %s: %s value=%.2f expansions=%d", character_id,
                     outcome.status.value, outcome.value, outcome.expansions)
        return outcome
