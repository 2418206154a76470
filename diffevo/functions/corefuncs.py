# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Classical test functions for optimization algorithms, exposed through the
cost function interface (evaluate_cost, number_of_parameters, get_constraints).
"""

import numpy as np
import diffevo.common.typing as tp
from diffevo.common.decorators import Registry
from diffevo.optimization.base import Constraint


registry: Registry[tp.Type["BoxedFunction"]] = Registry()

# value returned by functions penalizing candidates outside of their box
OUT_OF_BOX_PENALTY = 1e7


class BoxedFunction:
    """Base class for test functions with the same bounds on each dimension

    Parameters
    ----------
    dims: int
        number of parameters
    """

    bounds: tp.Tuple[float, float] = (-1.0, 1.0)

    def __init__(self, dims: int) -> None:
        if dims < 1:
            raise ValueError(f"Number of dimensions must be strictly positive (got {dims})")
        self._dim = int(dims)

    def number_of_parameters(self) -> int:
        return self._dim

    def get_constraints(self) -> tp.List[Constraint]:
        return [Constraint(*self.bounds) for _ in range(self._dim)]

    def _out_of_box(self, x: np.ndarray) -> bool:
        return bool(np.any(x < self.bounds[0]) or np.any(x > self.bounds[1]))

    def evaluate_cost(self, candidate: np.ndarray) -> float:
        x = np.asarray(candidate, dtype=float)
        assert x.shape == (self._dim,), f"Expected {self._dim} parameters but got shape {x.shape}"
        return self._compute(x)

    def _compute(self, x: np.ndarray) -> float:
        raise NotImplementedError

    def optimum_value(self) -> float:
        """Minimal value of the function over its box"""
        raise NotImplementedError

    def __call__(self, candidate: np.ndarray) -> float:
        return self.evaluate_cost(candidate)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(dims={self._dim})"


@registry.register_with_info(multimodal=True)
class Rastrigin(BoxedFunction):
    """Highly multimodal function, minimum 0 at the origin.
    Returns a penalty outside of [-5.12, 5.12]^d.
    """

    bounds = (-5.12, 5.12)

    def __init__(self, dims: int = 5) -> None:
        super().__init__(dims)

    def optimum_value(self) -> float:
        return 0.0

    def _compute(self, x: np.ndarray) -> float:
        if self._out_of_box(x):
            return OUT_OF_BOX_PENALTY
        cosi = float(np.sum(np.cos(2 * np.pi * x)))
        return float(10 * (len(x) - cosi) + x.dot(x))


@registry.register_with_info(multimodal=True)
class VSS(BoxedFunction):
    """Multimodal function, minimum 1400 - 200 * d at the origin"""

    bounds = (-100.0, 100.0)

    def __init__(self, dims: int = 2) -> None:
        super().__init__(dims)

    def optimum_value(self) -> float:
        return 1400.0 - 200.0 * self._dim

    def _compute(self, x: np.ndarray) -> float:
        val = np.sum(x ** 2 - 100 * np.cos(x) ** 2 - 100 * np.cos(x ** 2 / 30))
        return float(val + 1400.0)


@registry.register_with_info(multimodal=True)
class CosineMixture(BoxedFunction):
    """Returns a penalty outside of [-1, 1]^d.
    The minimum -0.9 * d is reached on the corners of the box
    """

    bounds = (-1.0, 1.0)

    def __init__(self, dims: int = 5) -> None:
        super().__init__(dims)

    def optimum_value(self) -> float:
        return -0.9 * self._dim

    def _compute(self, x: np.ndarray) -> float:
        if self._out_of_box(x):
            return OUT_OF_BOX_PENALTY
        return float(-0.1 * np.sum(np.cos(5 * np.pi * x)) - x.dot(x))


@registry.register_with_info(multimodal=False)
class SimpleQuadratic(BoxedFunction):
    """Convex quadratic x^2 + 2xy + 3y^2, minimum 0 at the origin"""

    bounds = (-100.0, 100.0)

    def __init__(self) -> None:
        super().__init__(2)

    def optimum_value(self) -> float:
        return 0.0

    def _compute(self, x: np.ndarray) -> float:
        a, b = x
        return float(a * a + 2 * a * b + 3 * b * b)
