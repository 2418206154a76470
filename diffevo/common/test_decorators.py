# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
from unittest import TestCase
import numpy as np
from . import decorators


class DecoratorTests(TestCase):

    def test_registry(self) -> None:
        functions: decorators.Registry[tp.Callable[[], int]] = decorators.Registry()
        other: decorators.Registry[tp.Callable[[], int]] = decorators.Registry()

        @functions.register
        def dummy() -> int:
            return 12

        np.testing.assert_equal(dummy(), 12)
        np.testing.assert_array_equal(list(functions.keys()), ["dummy"])
        np.testing.assert_array_equal(list(other.keys()), [])
        np.testing.assert_equal(functions.get_info("dummy"), {})
        functions.unregister("dummy")
        functions.unregister("other_dummy_that_does_not_exist")
        np.testing.assert_array_equal(list(functions.keys()), [])

    def test_info_registry(self) -> None:
        classes: decorators.Registry[tp.Any] = decorators.Registry()

        @classes.register_with_info(optimum=0.0)
        class Dummy:
            pass

        np.testing.assert_equal(classes.get_info("Dummy"), {"optimum": 0.0})
        # the returned information is a copy
        classes.get_info("Dummy")["optimum"] = 12
        np.testing.assert_equal(classes.get_info("Dummy"), {"optimum": 0.0})
        np.testing.assert_raises(ValueError, classes.get_info, "no_dummy")
        del classes["Dummy"]
        np.testing.assert_equal(len(classes), 0)

    def test_registry_error(self) -> None:
        functions: decorators.Registry[tp.Any] = decorators.Registry()

        @functions.register
        def dummy() -> int:
            return 12

        np.testing.assert_raises(RuntimeError, functions.register, dummy)
