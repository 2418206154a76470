# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .base import Constraint
from .base import CostFunction  # protocol, for type checking
from .base import ParametrizedCost
from .differentialevolution import DifferentialEvolution
from .differentialevolution import OptimizationResult
from .differentialevolution import OptimizationState
from .differentialevolution import TerminationReason
from .population import Population
