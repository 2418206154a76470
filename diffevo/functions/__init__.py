# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .corefuncs import registry
from .corefuncs import Rastrigin
from .corefuncs import VSS
from .corefuncs import CosineMixture
from .corefuncs import SimpleQuadratic
