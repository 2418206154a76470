# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import time
import logging
import numpy as np
import diffevo.common.typing as tp
from .differentialevolution import OptimizationState

global_logger = logging.getLogger(__name__)

# -------------------------------------------------------------------------------------


class OptimizationLogger:
    """Logger to register as callback in an optimizer, for logging
    the best candidate regularly.

    Parameters
    ----------
    logger:
        given logger that callback will use to log
    log_level:
        log level that logger will write to
    log_interval_generations: int
        max number of generations before performing another log
    log_interval_seconds:
        max number of seconds before performing another log
    """

    def __init__(
        self,
        *,
        logger: logging.Logger = global_logger,
        log_level: int = logging.INFO,
        log_interval_generations: int = 1,
        log_interval_seconds: float = 60.0,
    ) -> None:
        assert log_interval_generations > 0
        assert log_interval_seconds > 0
        self._logger = logger
        self._log_level = log_level
        self._log_interval_generations = int(log_interval_generations)
        self._log_interval_seconds = log_interval_seconds
        self._next_generation = 1
        self._next_time = time.time() + log_interval_seconds

    def __call__(self, state: OptimizationState) -> None:
        if time.time() >= self._next_time or state.generation >= self._next_generation:
            self._next_time = time.time() + self._log_interval_seconds
            self._next_generation = state.generation + self._log_interval_generations
            self._logger.log(
                self._log_level,
                "Generation %s: minimal cost is %s for candidate %s",
                state.generation,
                state.best_cost,
                state.best_candidate,
            )


# -------------------------------------------------------------------------------------


class History:
    """Records the best cost (and optionally the best candidate) after each generation.

    Parameters
    ----------
    record_candidates: bool
        whether to also record the best candidates
    """

    def __init__(self, record_candidates: bool = False) -> None:
        self._record_candidates = record_candidates
        self.best_costs: tp.List[float] = []
        self.best_candidates: tp.List[np.ndarray] = []

    def __call__(self, state: OptimizationState) -> None:
        self.best_costs.append(state.best_cost)
        if self._record_candidates:
            self.best_candidates.append(state.best_candidate)

    def __len__(self) -> int:
        return len(self.best_costs)


# -------------------------------------------------------------------------------------


class ProgressBar:
    """Progress bar over generations, to register as callback in an optimizer

    Parameters
    ----------
    total: int
        expected number of generations (optional)
    """

    def __init__(self, total: tp.Optional[int] = None) -> None:
        self._progress_bar: tp.Any = None
        self._total = total

    def __call__(self, state: OptimizationState) -> None:
        if self._progress_bar is None:
            # pylint: disable=import-outside-toplevel
            try:
                from tqdm import tqdm  # Inline import to avoid additional dependency
            except ImportError as e:
                raise ImportError(
                    f"{self.__class__.__name__} requires tqdm which is not installed by default "
                    "(pip install tqdm)"
                ) from e
            self._progress_bar = tqdm(total=self._total)
        self._progress_bar.update(1)
        self._progress_bar.set_postfix(best_cost=state.best_cost)

    def close(self) -> None:
        if self._progress_bar is not None:
            self._progress_bar.close()
            self._progress_bar = None


# -------------------------------------------------------------------------------------


class EarlyStopping:
    """Termination predicate for stopping the :code:`optimize` method before
    all generations are processed.

    Parameters
    ----------
    stopping_criterion: func(state) -> bool
        function that takes the current optimization state as input and returns True
        if the optimization must be stopped

    Example
    -------
    In the following code, the :code:`optimize` method will be stopped once the best
    cost falls below 1e-3:

    >>> early_stopping = EarlyStopping.loss_threshold(1e-3)
    >>> optimizer = DifferentialEvolution(cost, 20, termination=early_stopping)
    >>> optimizer.optimize(1000).termination
    <TerminationReason.PREDICATE: 'predicate'>
    """

    def __init__(self, stopping_criterion: tp.Callable[[OptimizationState], bool]) -> None:
        self.stopping_criterion = stopping_criterion

    def __call__(self, state: OptimizationState) -> bool:
        return bool(self.stopping_criterion(state))

    @classmethod
    def loss_threshold(cls, threshold: float) -> "EarlyStopping":
        """Early stop when the best cost is strictly below the threshold"""
        return cls(lambda state: state.best_cost < threshold)

    @classmethod
    def timer(cls, max_duration: float) -> "EarlyStopping":
        """Early stop when max_duration seconds has been reached (from the first generation)"""
        return cls(_DurationCriterion(max_duration))

    @classmethod
    def no_improvement_stopper(cls, tolerance_window: int) -> "EarlyStopping":
        """Early stop when the best cost did not decrease during tolerance_window generations"""
        return cls(_LossImprovementToleranceCriterion(tolerance_window))


class _DurationCriterion:
    def __init__(self, max_duration: float) -> None:
        self._start = float("inf")
        self._max_duration = max_duration

    def __call__(self, state: OptimizationState) -> bool:
        if np.isinf(self._start):
            self._start = time.time()
        return time.time() > self._start + self._max_duration


class _LossImprovementToleranceCriterion:
    def __init__(self, tolerance_window: int) -> None:
        self._tolerance_window: int = tolerance_window
        self._best_value: tp.Optional[float] = None
        self._tolerance_count: int = 0

    def __call__(self, state: OptimizationState) -> bool:
        if self._best_value is None:
            self._best_value = state.best_cost
            return False
        if self._best_value <= state.best_cost:
            self._tolerance_count += 1
        else:
            self._tolerance_count = 0
            self._best_value = state.best_cost
        return self._tolerance_count > self._tolerance_window
