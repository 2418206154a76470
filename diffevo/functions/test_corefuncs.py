# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import pytest
import numpy as np
from diffevo.common import testing
from diffevo.optimization import DifferentialEvolution
from . import corefuncs


@testing.parametrized(**{name: (name, cls) for name, cls in corefuncs.registry.items()})
def test_corefuncs_interface(name: str, cls: tp.Type[corefuncs.BoxedFunction]) -> None:
    func = cls()
    dim = func.number_of_parameters()
    constraints = func.get_constraints()
    assert len(constraints) == dim, f"Function {name} has inconsistent constraints"
    assert all(c.enforced for c in constraints)
    x = np.random.uniform(func.bounds[0], func.bounds[1], size=dim)
    assert func.evaluate_cost(x) == func(x), f"Function {name} is not deterministic"
    assert func.evaluate_cost(x) >= func.optimum_value() - 1e-9
    assert isinstance(corefuncs.registry.get_info(name)["multimodal"], bool)


@testing.parametrized(
    rastrigin=(corefuncs.Rastrigin(3), [0, 0, 0], 0.0),
    vss=(corefuncs.VSS(), [0, 0], 1000.0),
    cosine_corner=(corefuncs.CosineMixture(2), [1, -1], -1.8),
    cosine_center=(corefuncs.CosineMixture(2), [0, 0], -0.2),
    quadratic=(corefuncs.SimpleQuadratic(), [1, 2], 17.0),
    quadratic_min=(corefuncs.SimpleQuadratic(), [0, 0], 0.0),
)
def test_corefuncs_values(func: corefuncs.BoxedFunction, x: tp.List[float], expected: float) -> None:
    np.testing.assert_almost_equal(func.evaluate_cost(np.array(x, dtype=float)), expected)


@testing.parametrized(
    rastrigin=(corefuncs.Rastrigin(2), [5.2, 0]),
    cosine=(corefuncs.CosineMixture(2), [0, -1.01]),
)
def test_out_of_box_penalty(func: corefuncs.BoxedFunction, x: tp.List[float]) -> None:
    assert func.evaluate_cost(np.array(x)) == corefuncs.OUT_OF_BOX_PENALTY


def test_wrong_dimension() -> None:
    with pytest.raises(AssertionError):
        corefuncs.Rastrigin(3).evaluate_cost(np.zeros(2))
    with pytest.raises(ValueError):
        corefuncs.Rastrigin(0)


def test_rastrigin_optimization() -> None:
    func = corefuncs.Rastrigin(2)
    result = DifferentialEvolution(func, population_size=40, random_seed=12).optimize(300)
    assert result.best_cost < 1.5
    assert result.num_evaluations == 40 * 301
    assert repr(func) == "Rastrigin(dims=2)"
