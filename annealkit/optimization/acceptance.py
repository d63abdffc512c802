# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Acceptance criteria, deciding whether a proposed candidate replaces the current one.
They all share the signature (t, oldcost, newcost, random_state) -> bool.
"""

import numpy as np
from scipy import special
from annealkit.common import errors


def _check_temperature(t: float) -> None:
    if not t > 0:
        raise errors.InvalidParameterError(f"Temperature must be strictly positive, got {t}")


def boltzmann_sample(t: float, oldcost: float, newcost: float) -> float:
    """Probability of moving from the oldcost energy state to the newcost one, following
    the Boltzmann distribution: 1 / (1 + exp((newcost - oldcost) / t))
    As t decreases, the probability of accepting worse states decreases rapidly. As t goes to
    infinity, the probability approaches 0.5.
    Large exponents saturate to 0 instead of overflowing.
    """
    _check_temperature(t)
    return float(special.expit((oldcost - newcost) / t))


def boltzmann_accept(t: float, oldcost: float, newcost: float, random_state: np.random.RandomState) -> bool:
    """Metropolis criterion: strictly better candidates are always accepted (without consuming
    any random draw), worse ones with the probability given by boltzmann_sample.
    """
    _check_temperature(t)
    if oldcost - newcost > 0:
        return True
    return bool(random_state.uniform() <= boltzmann_sample(t, oldcost, newcost))


def greedy_accept(t: float, oldcost: float, newcost: float, random_state: np.random.RandomState) -> bool:
    """Accepts non-worsening candidates only (zero temperature limit, ie. hill climbing).
    Temperature and random state are unused.
    """
    # pylint: disable=unused-argument
    return newcost <= oldcost
