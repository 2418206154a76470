# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import sys
import numpy as np
import diffevo.common.typing as tp
from diffevo.common import errors


# widest finite range, used for sampling unconstrained dimensions
MAX_FLOAT = sys.float_info.max


class Constraint:
    """Bound on one dimension of the search space.

    Parameters
    ----------
    lower: float
        lower bound (inclusive)
    upper: float
        upper bound (inclusive)
    enforced: bool
        whether the bound applies at all. A non-enforced constraint accepts any value,
        use :code:`Constraint.unconstrained()` to build one.

    Note
    ----
    Constraints are immutable.
    """

    __slots__ = ("_lower", "_upper", "_enforced")

    def __init__(self, lower: float = 0.0, upper: float = 1.0, enforced: bool = True) -> None:
        lower, upper = float(lower), float(upper)
        if enforced and not lower <= upper:  # also catches NaN
            raise errors.DiffEvoValueError(f"Invalid bounds for enforced constraint: [{lower}, {upper}]")
        self._lower = lower
        self._upper = upper
        self._enforced = bool(enforced)

    @classmethod
    def unconstrained(cls) -> "Constraint":
        return cls(-float("inf"), float("inf"), enforced=False)

    @property
    def lower(self) -> float:
        return self._lower

    @property
    def upper(self) -> float:
        return self._upper

    @property
    def enforced(self) -> bool:
        return self._enforced

    def check(self, value: float) -> bool:
        """Returns True if the value satisfies the constraint"""
        if not self._enforced:
            return True
        return self._lower <= value <= self._upper

    def sampling_bounds(self) -> tp.Tuple[float, float]:
        """Finite interval from which initial values are drawn"""
        if self._enforced:
            return max(self._lower, -MAX_FLOAT), min(self._upper, MAX_FLOAT)
        return -MAX_FLOAT, MAX_FLOAT

    def __setattr__(self, name: str, value: tp.Any) -> None:
        if hasattr(self, "_enforced"):
            raise errors.DiffEvoRuntimeError("Constraints are immutable")
        super().__setattr__(name, value)

    def __eq__(self, other: tp.Any) -> bool:
        if not isinstance(other, Constraint):
            return NotImplemented
        if not (self.enforced or other.enforced):
            return True
        return (self.lower, self.upper, self.enforced) == (other.lower, other.upper, other.enforced)

    def __hash__(self) -> int:
        return hash((self.lower, self.upper, self.enforced) if self.enforced else False)

    def __repr__(self) -> str:
        if not self._enforced:
            return "Constraint(unconstrained)"
        return f"Constraint([{self._lower}, {self._upper}])"


class CostFunction(tp.Protocol):
    """Interface of the function to minimize, as expected by the optimizer.
    Any object providing these 3 methods can be optimized, no inheritance is required.
    """

    # pylint: disable=pointless-statement, unused-argument

    def evaluate_cost(self, candidate: np.ndarray) -> float:
        """Cost of a candidate (1d array of size number_of_parameters())"""
        ...

    def number_of_parameters(self) -> int:
        ...

    def get_constraints(self) -> tp.Sequence[Constraint]:
        """One constraint per parameter"""
        ...


class ParametrizedCost:
    """Combines a plain function and its constraints into a cost function.

    Parameters
    ----------
    function: callable
        function taking a 1d array as input and returning a float
    constraints: sequence of Constraint
        one constraint per dimension of the search space

    Example
    -------
    >>> cost = ParametrizedCost.bounded(lambda x: float(np.sum(x ** 2)), dimension=3, lower=-5, upper=5)
    >>> DifferentialEvolution(cost, population_size=20).optimize(100)
    """

    def __init__(self, function: tp.Callable[[np.ndarray], float], constraints: tp.Sequence[Constraint]) -> None:
        if not callable(function):
            raise errors.DiffEvoTypeError(f"Expected a callable function but got {function!r}")
        self._constraints = list(constraints)
        if not all(isinstance(c, Constraint) for c in self._constraints):
            raise errors.DiffEvoTypeError("Constraints must be instances of Constraint")
        self.function = function

    @classmethod
    def bounded(
        cls, function: tp.Callable[[np.ndarray], float], dimension: int, lower: float, upper: float
    ) -> "ParametrizedCost":
        """Cost function with the same enforced bounds on every dimension"""
        return cls(function, [Constraint(lower, upper) for _ in range(dimension)])

    @classmethod
    def unbounded(cls, function: tp.Callable[[np.ndarray], float], dimension: int) -> "ParametrizedCost":
        return cls(function, [Constraint.unconstrained() for _ in range(dimension)])

    def evaluate_cost(self, candidate: np.ndarray) -> float:
        return self.function(candidate)

    def number_of_parameters(self) -> int:
        return len(self._constraints)

    def get_constraints(self) -> tp.List[Constraint]:
        return list(self._constraints)

    def __call__(self, candidate: np.ndarray) -> float:
        return self.evaluate_cost(candidate)

    def __repr__(self) -> str:
        name = getattr(self.function, "__name__", self.function.__class__.__name__)
        return f"ParametrizedCost({name}, dimension={self.number_of_parameters()})"
