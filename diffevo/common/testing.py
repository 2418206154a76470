# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import inspect
import typing as tp
import numpy as np
import pytest


class parametrized:
    """Simplified decorator API for specifying named parametrized test with pytests
    See example of use in test_testing

    Parameters
    ----------
    **kwargs:
        name of the argument is converted as id of the experiments, and the provided tuple
        contains a value for each of the arguments of the underlying function (in the definition order).
    """

    def __init__(self, **kwargs: tp.Tuple[tp.Any, ...]):
        self.ids = sorted(kwargs)
        self.params = tuple(kwargs[name] for name in self.ids)
        assert self.params
        self.num_params = len(self.params[0])
        assert all(isinstance(p, (tuple, list)) for p in self.params)
        assert all(self.num_params == len(p) for p in self.params[1:])

    def __call__(self, func: tp.Callable[..., None]) -> tp.Any:  # type is lost here :(
        names = list(inspect.signature(func).parameters.keys())
        assert len(names) == self.num_params, f"Parameter names: {names}"
        return pytest.mark.parametrize(
            ",".join(names), self.params if self.num_params > 1 else [p[0] for p in self.params], ids=self.ids
        )(func)


def assert_within_bounds(
    candidates: tp.Iterable[np.ndarray], lower: tp.Any, upper: tp.Any, err_msg: str = ""
) -> None:
    """Asserts that every coordinate of every candidate lies in [lower, upper],
    listing the offending candidates otherwise.
    This function should only be used in tests.
    """
    lower, upper = (np.asarray(b, dtype=float) for b in (lower, upper))
    offending = [
        (k, c) for k, c in enumerate(candidates) if np.any(c < lower) or np.any(c > upper)
    ]
    if offending:
        lines = [f"  - slot {k}: {c}" for k, c in offending]
        raise AssertionError("\n".join(([err_msg] if err_msg else []) + ["Out of bounds:"] + lines))


def printed_assert_equal(actual: tp.Any, desired: tp.Any, err_msg: str = "") -> None:
    try:
        np.testing.assert_equal(actual, desired, err_msg=err_msg)
    except AssertionError as e:
        print("\n" + "# " * 12 + "DEBUG MESSAGE " + "# " * 12)
        print(f"Expected: {desired}\nbut got:  {actual}")
        raise e
