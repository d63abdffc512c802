# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .engine import Annealer  # engine class, with callbacks
from .engine import Params, make_params
from .engine import Candidate, SolveState, Phase
from .engine import anneal, anneal_sequence, minimize
from . import schedules
from . import acceptance
from . import neighborhood
