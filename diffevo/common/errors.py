# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

# base classes


class DiffEvoError(Exception):
    """Base class for error raised by diffevo"""


class DiffEvoWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class DiffEvoEarlyStopping(StopIteration, DiffEvoError):
    """Stops the optimization loop if raised from a callback"""


class DiffEvoRuntimeError(RuntimeError, DiffEvoError):
    """Runtime error raised by diffevo"""


class DiffEvoTypeError(TypeError, DiffEvoError):
    """Type error raised by diffevo"""


class DiffEvoValueError(ValueError, DiffEvoError):
    """Value error raised by diffevo, mostly for invalid construction arguments"""


class NotInitializedError(DiffEvoRuntimeError):
    """The population was queried or stepped before being initialized"""


# warnings


class DiffEvoRuntimeWarning(RuntimeWarning, DiffEvoWarning):
    """Runtime warning raised by diffevo"""


class BadCostWarning(DiffEvoRuntimeWarning):
    """The cost function returned a non-finite value"""
