# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Cooling schedules.

All schedules share the signature schedule(t0, k) -> temperature, with k the
annealing-time index starting at 0. The temperature starts at t0 and decreases
monotonically towards 0.
"""

import math
import annealkit.common.typing as tp
from annealkit.common import errors
from annealkit.common.decorators import Registry


registry: Registry[tp.Callable[..., tp.Schedule]] = Registry("schedule")


def _check_rate(decay_rate: float) -> float:
    if not 0 < decay_rate <= 1:
        raise errors.InvalidParameterError(f"decay_rate must be in (0, 1], got {decay_rate}")
    return float(decay_rate)


def _check_index(k: int) -> None:
    if k < 0:
        raise errors.InvalidParameterError(f"Annealing-time index must be non-negative, got {k}")


def boltzmann_decay(t0: float, k: int) -> float:
    """The classic cooling schedule of Simulated Annealing. Slow!"""
    _check_index(k)
    return t0 / (1.0 + math.log1p(k))


def cauchy_decay(t0: float, k: int) -> float:
    """Cooling schedule of Fast Annealing, exponentially faster than the Boltzmann schedule"""
    _check_index(k)
    return t0 / (1.0 + k)


class ExponentialDecay:
    """Standard decay for simulated quenching, computed analytically from t0:
    t0 * exp((decay_rate - 1) * k)
    Fast, but does NOT maintain the ability to explore the entire state space.

    Parameters
    ----------
    decay_rate: float
        rate in (0, 1], 1 meaning no decay
    """

    def __init__(self, decay_rate: float) -> None:
        self.decay_rate = _check_rate(decay_rate)

    def __call__(self, t0: float, k: int) -> float:
        _check_index(k)
        return t0 * math.exp((self.decay_rate - 1.0) * k)

    def __repr__(self) -> str:
        return f"ExponentialDecay({self.decay_rate})"


class GeometricDecay:
    """Geometric decay for simulated quenching: each step multiplies the previous
    temperature by the decay rate.
    It is expressed with the absolute signature as t0 * decay_rate ** k, the relative
    form being available through the next method.

    Parameters
    ----------
    decay_rate: float
        rate in (0, 1], 1 meaning no decay
    """

    def __init__(self, decay_rate: float) -> None:
        self.decay_rate = _check_rate(decay_rate)

    def next(self, temperature: float) -> float:
        """Temperature following the provided one"""
        return self.decay_rate * temperature

    def __call__(self, t0: float, k: int) -> float:
        _check_index(k)
        return t0 * self.decay_rate**k

    def __repr__(self) -> str:
        return f"GeometricDecay({self.decay_rate})"


class AsaDecay:
    """Cooling schedule of Ingber's Adaptive Simulated Annealing:
    t0 * exp(-c * k ** (quench / dimensions))

    Parameters
    ----------
    dimensions: int
        number of dimensions of the search space
    c: float
        tuning constant, speeding up (higher) or slowing down (lower) the schedule
    quench: float
        quenching factor, values above 1 accelerate the cooling at the cost of
        the statistical guarantee of the schedule
    """

    def __init__(self, dimensions: int = 1, c: float = 1.0, quench: float = 1.0) -> None:
        if dimensions < 1 or int(dimensions) != dimensions:
            raise errors.InvalidParameterError(f"dimensions must be a positive integer, got {dimensions}")
        for name, value in [("c", c), ("quench", quench)]:
            if not value > 0:
                raise errors.InvalidParameterError(f"{name} must be strictly positive, got {value}")
        self.dimensions = int(dimensions)
        self.c = float(c)
        self.quench = float(quench)

    def __call__(self, t0: float, k: int) -> float:
        _check_index(k)
        return t0 * math.exp(-self.c * k ** (self.quench / self.dimensions))

    def __repr__(self) -> str:
        return f"AsaDecay(dimensions={self.dimensions}, c={self.c}, quench={self.quench})"


registry.register_name("boltzmann", lambda: boltzmann_decay)
registry.register_name("cauchy", lambda: cauchy_decay)
registry.register_name("exponential", ExponentialDecay)
registry.register_name("geometric", GeometricDecay)
registry.register_name("asa", AsaDecay)


def get_schedule(name: str, **kwargs: tp.Any) -> tp.Schedule:
    """Instantiates a schedule from its registered name

    Parameters
    ----------
    name: str
        one of "boltzmann", "cauchy", "exponential", "geometric", "asa"
    **kwargs:
        parameters of the schedule (eg: decay_rate for exponential and geometric)

    Raises
    ------
    InvalidParameterError
        for unknown names, missing or invalid parameters
    """
    factory = registry[name]
    try:
        return factory(**kwargs)
    except TypeError as e:
        raise errors.InvalidParameterError(f'Invalid parameters {kwargs} for schedule "{name}": {e}') from e


def describe(schedule: tp.Callable[..., float]) -> str:
    """Short representation of a schedule, for logs"""
    return getattr(schedule, "__name__", None) or repr(schedule)
