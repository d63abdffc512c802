# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Definitions of some convenient types.
"""
# pylint: disable=unused-import
# structures
from typing import Any as Any
from typing import Generic as Generic
from typing import Type as Type
from typing import TypeVar as TypeVar
from typing import Optional as Optional
from typing import Union as Union

# containers
from typing import Dict as Dict
from typing import Tuple as Tuple
from typing import List as List
from typing import Sequence as Sequence

# iterables
from typing import Iterator as Iterator
from typing import Iterable as Iterable

# others
from typing import Callable as Callable
from typing import Hashable as Hashable
from typing import MutableMapping as MutableMapping
from pathlib import Path as Path
from typing_extensions import Protocol

#
import numpy as _np


ArrayLike = Union[Tuple[float, ...], List[float], _np.ndarray]
PathLike = Union[str, Path]
BoundPair = Tuple[float, float]
BoundsLike = Union[Sequence[BoundPair], _np.ndarray]
SeedLike = Optional[Union[int, _np.random.RandomState]]


# %% Protocol definitions for pluggable components

X = TypeVar("X")


class Schedule(Protocol):
    # pylint: disable=pointless-statement, unused-argument

    def __call__(self, t0: float, k: int) -> float:
        ...


class Neighbor(Protocol[X]):
    # pylint: disable=pointless-statement, unused-argument

    def __call__(self, current: X, temperature: float, random_state: _np.random.RandomState) -> X:
        ...


class AcceptPredicate(Protocol):
    # pylint: disable=pointless-statement, unused-argument

    def __call__(self, t: float, oldcost: float, newcost: float, random_state: _np.random.RandomState) -> bool:
        ...
