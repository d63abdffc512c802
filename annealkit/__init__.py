# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .common import typing as typing
from .common import errors as errors
from . import parametrization as p
from .parametrization import encode as encode
from .parametrization import decode as decode
from .optimization import Annealer as Annealer
from .optimization import make_params as make_params
from .optimization import anneal as anneal
from .optimization import anneal_sequence as anneal_sequence
from .optimization import minimize as minimize
from .optimization import schedules as schedules
from .optimization import acceptance as acceptance
from .optimization import neighborhood as neighborhood
from .optimization import callbacks as callbacks


__all__ = [
    "Annealer",
    "make_params",
    "anneal",
    "anneal_sequence",
    "minimize",
    "encode",
    "decode",
    "schedules",
    "acceptance",
    "neighborhood",
    "callbacks",
    "errors",
    "p",
    "typing",
]


__version__ = "0.1.0"
