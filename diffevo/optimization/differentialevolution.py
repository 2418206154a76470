# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import warnings
from enum import Enum
import numpy as np
import diffevo.common.typing as tp
from diffevo.common import errors
from . import base
from .population import Population

logger = logging.getLogger(__name__)


class TerminationReason(Enum):
    BUDGET = "budget"
    PREDICATE = "predicate"


class OptimizationState(tp.NamedTuple):
    """Read-only snapshot of the optimizer, provided to callbacks and
    termination predicates after each generation.
    """

    generation: int
    best_candidate: np.ndarray
    best_cost: float
    candidates: tp.Tuple[np.ndarray, ...]
    costs: np.ndarray
    num_evaluations: int

    def population_with_costs(self) -> tp.List[tp.Tuple[np.ndarray, float]]:
        return [(c, float(v)) for c, v in zip(self.candidates, self.costs)]


class OptimizationResult(tp.NamedTuple):
    best_candidate: np.ndarray
    best_cost: float
    num_generations: int
    num_evaluations: int
    termination: TerminationReason


Callback = tp.Callable[[OptimizationState], tp.Any]
TerminationPredicate = tp.Callable[[OptimizationState], bool]


class DifferentialEvolution:
    """Differential evolution (DE/rand/1/bin) for minimizing a cost function.

    Each generation, every slot x of the population is challenged by a trial candidate:
    three distinct donors a, b, c (all different from x) are combined as
    z = a + F * (b - c), then z is crossed with x (each coordinate is taken from z with
    probability CR, and at least one coordinate always is). The trial replaces x only if its
    cost is strictly lower. F and CR are fixed for the whole run.

    Parameters
    ----------
    cost_function: CostFunction
        the function to minimize, providing :code:`evaluate_cost`, :code:`number_of_parameters`
        and :code:`get_constraints`
    population_size: int
        number of candidates in the population (at least 4)
    random_seed: int
        seed of the random state, a fixed seed provides repeatable runs
    check_constraints: bool
        whether trial candidates violating the constraints are discarded and redrawn.
        This may be deactivated for speed if the cost function is defined everywhere and
        has no minimum outside of the constraints (initialization always uses the constraints).
    callback: callable
        optional function called with an :code:`OptimizationState` after each generation.
    termination: callable
        optional predicate called with an :code:`OptimizationState` after each generation,
        the optimization stops as soon as it returns True.

    Example
    -------
    >>> optimizer = DifferentialEvolution(cost, population_size=50)
    >>> result = optimizer.optimize(1000)
    >>> result.best_candidate, result.best_cost
    """

    F = 0.8  # differential weight
    CR = 0.9  # crossover rate

    # pylint: disable=too-many-instance-attributes,too-many-arguments

    def __init__(
        self,
        cost_function: base.CostFunction,
        population_size: int,
        random_seed: int = 123,
        check_constraints: bool = True,
        callback: tp.Optional[Callback] = None,
        termination: tp.Optional[TerminationPredicate] = None,
    ) -> None:
        if population_size < 4:
            # mutation requires 3 donors different from the target
            raise errors.DiffEvoValueError(f"Population size must be at least 4 (got {population_size})")
        self.population_size = int(population_size)
        self._cost = cost_function
        self.dimension = int(cost_function.number_of_parameters())
        if self.dimension < 1:
            raise errors.DiffEvoValueError("No parameter to optimize in this cost function.")
        self.constraints: tp.Tuple[base.Constraint, ...] = tuple(cost_function.get_constraints())
        if len(self.constraints) != self.dimension:
            raise errors.DiffEvoValueError(
                f"Cost function declares {self.dimension} parameters but provides "
                f"{len(self.constraints)} constraints"
            )
        self.check_constraints = check_constraints
        self.random_seed = random_seed
        self._rng = np.random.RandomState(random_seed)
        self._callbacks: tp.List[Callback] = [] if callback is None else [callback]
        self._termination = termination
        # constraint arrays, for vectorized checks
        self._enforced = np.array([c.enforced for c in self.constraints], dtype=bool)
        self._lower = np.array([c.lower for c in self.constraints], dtype=float)
        self._upper = np.array([c.upper for c in self.constraints], dtype=float)
        # instance state
        self._population: tp.Optional[Population] = None
        self._generation = 0
        self._num_evaluations = 0
        self._num_rejections = 0
        self._warned_bad_cost = False

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(dimension={self.dimension}, population_size={self.population_size}, "
            f"random_seed={self.random_seed}, check_constraints={self.check_constraints})"
        )

    @property
    def population(self) -> Population:
        if self._population is None:
            raise errors.NotInitializedError("The population must be initialized first (see initialize)")
        return self._population

    @property
    def generation(self) -> int:
        """int: number of generations processed since the last initialization"""
        return self._generation

    @property
    def num_evaluations(self) -> int:
        """int: number of calls to the cost function since the last initialization"""
        return self._num_evaluations

    @property
    def num_rejections(self) -> int:
        """int: number of trial candidates discarded for violating the constraints"""
        return self._num_rejections

    @property
    def best_candidate(self) -> np.ndarray:
        return self.population.best_candidate

    @property
    def best_cost(self) -> float:
        return self.population.best_cost

    def population_with_costs(self) -> tp.List[tp.Tuple[np.ndarray, float]]:
        return self.population.with_costs()

    def register_callback(self, callback: Callback) -> None:
        """Adds a function to be called with the optimization state after each generation"""
        self._callbacks.append(callback)

    def remove_all_callbacks(self) -> None:
        self._callbacks = []

    def state(self) -> OptimizationState:
        population = self.population
        return OptimizationState(
            generation=self._generation,
            best_candidate=population.best_candidate,
            best_cost=population.best_cost,
            candidates=tuple(population),
            costs=population.costs,
            num_evaluations=self._num_evaluations,
        )

    def _evaluate(self, candidate: np.ndarray) -> float:
        cost = float(self._cost.evaluate_cost(candidate))
        self._num_evaluations += 1
        if not np.isfinite(cost) and not self._warned_bad_cost:
            self._warned_bad_cost = True
            warnings.warn(
                f"Cost function returned {cost} (this is only reported once), such values are kept as is.",
                errors.BadCostWarning,
            )
        return cost

    def _satisfies_constraints(self, candidate: np.ndarray) -> bool:
        # written so that NaN coordinates are considered as violations
        inside = (candidate >= self._lower) & (candidate <= self._upper)
        return bool(np.all(inside | ~self._enforced))

    def initialize(self) -> None:
        """Samples the population uniformly within the constraints (or the widest finite range
        for unconstrained dimensions), evaluates it and records the best candidate.
        """
        bounds = np.array([c.sampling_bounds() for c in self.constraints])
        low, high = bounds[:, 0], bounds[:, 1]
        u = self._rng.uniform(0, 1, size=(self.population_size, self.dimension))
        # convex combination does not overflow, even on the widest range
        data = np.clip(low * (1 - u) + high * u, low, high)
        self._generation = 0
        self._num_evaluations = 0
        self._num_rejections = 0
        costs = []
        for candidate in data:
            candidate.flags.writeable = False
            costs.append(self._evaluate(candidate))
        self._population = Population(data, costs)
        self._population.update_best()
        logger.debug("Initialized population, best cost is %s", self._population.best_cost)

    def _select_donors(self, target: int) -> tp.Tuple[int, int, int]:
        """Draws 3 slots, distinct from each other and from the target"""
        while True:
            a, b, c = (int(k) for k in self._rng.randint(self.population_size, size=3))
            if len({a, b, c, target}) == 4:
                return a, b, c

    def _make_trial(self, target: int) -> np.ndarray:
        population = self.population
        a, b, c = self._select_donors(target)
        donor = population.get_candidate(a) + self.F * (
            population.get_candidate(b) - population.get_candidate(c)
        )
        forced = self._rng.randint(self.dimension)
        transfer = self._rng.uniform(0, 1, self.dimension) < self.CR
        transfer[forced] = True
        trial = np.where(transfer, donor, population.get_candidate(target))
        trial.flags.writeable = False
        return trial

    def step(self) -> None:
        """Processes one generation: each slot is challenged by a trial candidate,
        which replaces it if strictly better.
        """
        population = self.population
        for target in range(self.population_size):
            trial = self._make_trial(target)
            if self.check_constraints:
                while not self._satisfies_constraints(trial):
                    self._num_rejections += 1
                    trial = self._make_trial(target)
            cost = self._evaluate(trial)
            if cost < population.get_cost(target):
                population.replace(target, trial, cost)
        population.update_best()
        self._generation += 1
        logger.debug(
            "Generation %s: best cost %s (%s rejected trials so far)",
            self._generation,
            population.best_cost,
            self._num_rejections,
        )

    def optimize(self, num_generations: int) -> OptimizationResult:
        """Initializes the population and runs up to num_generations generations.

        Parameters
        ----------
        num_generations: int
            maximum number of generations to process

        Returns
        -------
        OptimizationResult
            best candidate and cost, along with the number of generations and evaluations,
            and the reason for terminating (budget exhaustion or termination predicate)
        """
        if num_generations < 0:
            raise errors.DiffEvoValueError(f"Number of generations must be non-negative (got {num_generations})")
        self.initialize()
        reason = TerminationReason.BUDGET
        for _ in range(num_generations):
            self.step()
            state = self.state()
            try:
                for callback in self._callbacks:
                    callback(state)
            except errors.DiffEvoEarlyStopping:
                reason = TerminationReason.PREDICATE
                break
            if self._termination is not None and self._termination(state):
                reason = TerminationReason.PREDICATE
                break
        if reason == TerminationReason.PREDICATE:
            logger.info("Terminated at generation %s by the termination condition.", self._generation)
        else:
            logger.info("Terminated after exhausting the %s generations.", num_generations)
        return OptimizationResult(
            best_candidate=self.best_candidate,
            best_cost=self.best_cost,
            num_generations=self._generation,
            num_evaluations=self._num_evaluations,
            termination=reason,
        )
