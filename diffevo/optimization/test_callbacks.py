# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import os
import time
import logging
import numpy as np
import diffevo.common.typing as tp
from diffevo.functions import corefuncs
from . import callbacks
from .base import ParametrizedCost
from .differentialevolution import DifferentialEvolution
from .differentialevolution import OptimizationState
from .differentialevolution import TerminationReason


def _state(generation: int, best_cost: float) -> OptimizationState:
    candidate = np.zeros(2)
    return OptimizationState(
        generation=generation,
        best_candidate=candidate,
        best_cost=best_cost,
        candidates=(candidate,) * 4,
        costs=np.full(4, best_cost),
        num_evaluations=4 * (generation + 1),
    )


def test_history() -> None:
    history = callbacks.History(record_candidates=True)
    optimizer = DifferentialEvolution(corefuncs.SimpleQuadratic(), population_size=8, callback=history)
    result = optimizer.optimize(12)
    assert len(history) == 12
    assert history.best_costs[-1] == result.best_cost
    np.testing.assert_array_equal(history.best_candidates[-1], result.best_candidate)
    assert not callbacks.History().best_candidates


def test_loss_threshold_stopping() -> None:
    early_stopping = callbacks.EarlyStopping.loss_threshold(1e-4)
    optimizer = DifferentialEvolution(corefuncs.SimpleQuadratic(), population_size=20, termination=early_stopping)
    result = optimizer.optimize(2000)
    assert result.termination == TerminationReason.PREDICATE
    assert result.num_generations < 2000
    assert result.best_cost < 1e-4


def test_no_improvement_stopper() -> None:
    crit = callbacks.EarlyStopping.no_improvement_stopper(3)
    assert not crit(_state(1, 10.0))
    assert not crit(_state(2, 9.0))  # improvement resets the window
    assert not any(crit(_state(k, 9.0)) for k in range(3, 6))
    assert crit(_state(6, 9.0))
    # integration: a constant function never improves
    counter = callbacks.EarlyStopping.no_improvement_stopper(5)
    cost = ParametrizedCost.bounded(lambda x: 1.0, dimension=2, lower=-1, upper=1)
    optimizer = DifferentialEvolution(cost, population_size=5, termination=counter)
    result = optimizer.optimize(100)
    assert result.termination == TerminationReason.PREDICATE
    assert result.num_generations == 7


def test_duration_criterion() -> None:
    crit = callbacks._DurationCriterion(0.01)
    state = _state(1, 1.0)
    assert not crit(state)
    assert not crit(state)
    time.sleep(0.02)
    assert crit(state)
    assert callbacks.EarlyStopping.timer(100)(state) is False


def test_optimization_logger(caplog: tp.Any) -> None:
    logging.basicConfig(level=os.environ.get("LOGLEVEL", "INFO"))
    logger = logging.getLogger(__name__)
    optimizer = DifferentialEvolution(
        corefuncs.SimpleQuadratic(),
        population_size=6,
        callback=callbacks.OptimizationLogger(
            logger=logger, log_level=logging.INFO, log_interval_generations=2, log_interval_seconds=60
        ),
    )
    with caplog.at_level(logging.INFO):
        optimizer.optimize(4)
    messages = [r.getMessage() for r in caplog.records if r.name == __name__]
    assert len(messages) == 2
    assert messages[0].startswith("Generation 1: minimal cost is ")
    assert messages[1].startswith("Generation 3: minimal cost is ")


def test_progress_bar() -> None:
    bar = callbacks.ProgressBar(total=5)
    optimizer = DifferentialEvolution(corefuncs.SimpleQuadratic(), population_size=6, callback=bar)
    optimizer.optimize(5)
    assert bar._progress_bar.n == 5
    bar.close()
    assert bar._progress_bar is None
