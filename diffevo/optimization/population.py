# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import diffevo.common.typing as tp
from diffevo.common import errors


def _frozen(candidate: tp.ArrayLike) -> np.ndarray:
    out = np.array(candidate, dtype=float, copy=True)
    out.flags.writeable = False
    return out


class Population:
    """Fixed-size set of candidates (slots) along with their last evaluated costs,
    and the record of the best slot.

    This is a plain data holder: replacing a slot is unconditional, the caller is
    responsible for deciding whether the replacement is an improvement.

    Parameters
    ----------
    candidates: sequence of arrays
        initial candidates, all of the same dimension
    costs: sequence of floats
        cost of each of the candidates

    Note
    ----
    Stored candidates are read-only arrays, a slot is updated by replacing
    its candidate, never by modifying it in place.
    """

    def __init__(self, candidates: tp.Sequence[tp.ArrayLike], costs: tp.Sequence[float]) -> None:
        self._candidates = [_frozen(c) for c in candidates]
        self._costs = np.array(costs, dtype=float)
        if self._costs.shape != (len(self._candidates),):
            raise errors.DiffEvoValueError(
                f"Got {self._costs.size} costs for {len(self._candidates)} candidates"
            )
        if len({c.shape for c in self._candidates}) > 1:
            raise errors.DiffEvoValueError("All candidates must have the same shape")
        self._best_index: tp.Optional[int] = None

    def __len__(self) -> int:
        return len(self._candidates)

    def __iter__(self) -> tp.Iterator[np.ndarray]:
        return iter(self._candidates)

    def get_candidate(self, slot: int) -> np.ndarray:
        return self._candidates[slot]

    def get_cost(self, slot: int) -> float:
        return float(self._costs[slot])

    @property
    def costs(self) -> np.ndarray:
        """Read-only copy of the costs of all slots"""
        return _frozen(self._costs)

    def replace(self, slot: int, candidate: tp.ArrayLike, cost: float) -> None:
        """Overwrites the candidate and cost of a slot"""
        if not 0 <= slot < len(self):
            raise IndexError(f"Slot {slot} out of range for a population of size {len(self)}")
        self._candidates[slot] = _frozen(candidate)
        self._costs[slot] = cost

    def update_best(self) -> None:
        """Rescans all costs and records the slot with the minimum cost.
        Only costs strictly lower than +inf can be selected, if none is, slot 0 is kept.
        """
        best_index = 0
        best_cost = float("inf")
        for k, cost in enumerate(self._costs):
            if cost < best_cost:  # NaN never passes this test
                best_index, best_cost = k, cost
        self._best_index = best_index

    @property
    def best_index(self) -> int:
        if self._best_index is None:
            raise errors.NotInitializedError("Best candidate has not been computed yet")
        return self._best_index

    @property
    def best_candidate(self) -> np.ndarray:
        return self._candidates[self.best_index]

    @property
    def best_cost(self) -> float:
        return float(self._costs[self.best_index])

    def with_costs(self) -> tp.List[tp.Tuple[np.ndarray, float]]:
        """List of (candidate, cost) pairs, in slot order"""
        return [(c, float(v)) for c, v in zip(self._candidates, self._costs)]

    def __repr__(self) -> str:
        best = "unknown" if self._best_index is None else f"{self.best_cost}"
        return f"Population(size={len(self)}, best_cost={best})"
