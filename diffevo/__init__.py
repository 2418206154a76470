# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .common import typing as typing
from .common import errors as errors
from .optimization import Constraint, ParametrizedCost, DifferentialEvolution, TerminationReason
from .optimization import callbacks as callbacks
from . import functions as functions


__all__ = [
    "Constraint",
    "ParametrizedCost",
    "DifferentialEvolution",
    "TerminationReason",
    "callbacks",
    "functions",
    "errors",
    "typing",
]


__version__ = "0.1.0"
