# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import math
import typing as tp
import pytest
import numpy as np
from annealkit.common import errors
from annealkit.common import testing
from . import schedules
from . import engine


@testing.parametrized(
    boltzmann=(schedules.boltzmann_decay, 4, 100 / (1 + math.log(5))),
    cauchy=(schedules.cauchy_decay, 4, 20.0),
    exponential=(schedules.ExponentialDecay(0.5), 2, 100 * math.exp(-1)),
    geometric=(schedules.GeometricDecay(0.5), 3, 12.5),
    asa=(schedules.AsaDecay(dimensions=2, c=1.0), 4, 100 * math.exp(-2)),
    asa_quench=(schedules.AsaDecay(dimensions=2, c=0.5, quench=2.0), 4, 100 * math.exp(-2)),
)
def test_schedule_values(schedule: tp.Callable[[float, int], float], k: int, expected: float) -> None:
    np.testing.assert_almost_equal(schedule(100.0, 0), 100.0)
    np.testing.assert_almost_equal(schedule(100.0, k), expected)


@testing.parametrized(
    boltzmann=("boltzmann", {}),
    cauchy=("cauchy", {}),
    exponential=("exponential", {"decay_rate": 0.9}),
    geometric=("geometric", {"decay_rate": 0.9}),
    asa=("asa", {"dimensions": 3}),
)
def test_schedule_monotonicity(name: str, kwargs: tp.Dict[str, tp.Any]) -> None:
    schedule = schedules.get_schedule(name, **kwargs)
    temperatures = [schedule(1000.0, k) for k in range(2000)]
    testing.assert_non_increasing(temperatures, err_msg=f"Schedule {name} increases")
    assert all(t > 0 for t in temperatures)
    # tends to 0, each at its own pace
    assert schedule(1000.0, 10**9) < 1000.0 / 10


def test_geometric_relative_form() -> None:
    schedule = schedules.GeometricDecay(0.9)
    temperature = 1e6
    for k in range(1, 50):
        temperature = schedule.next(temperature)
        np.testing.assert_almost_equal(temperature / schedule(1e6, k), 1.0)


def test_decay_rate_one_is_constant() -> None:
    for schedule in [schedules.GeometricDecay(1.0), schedules.ExponentialDecay(1.0)]:
        assert schedule(3.0, 100) == 3.0


@testing.parametrized(
    exponential_zero=("exponential", 0.0),
    exponential_above=("exponential", 1.5),
    geometric_zero=("geometric", 0.0),
    geometric_above=("geometric", 1.5),
    geometric_negative=("geometric", -0.2),
)
def test_invalid_decay_rate(name: str, decay_rate: float) -> None:
    with pytest.raises(errors.InvalidParameterError):
        schedules.get_schedule(name, decay_rate=decay_rate)
    with pytest.raises(errors.InvalidParameterError):
        engine.make_params(name, decay_rate=decay_rate)
    with pytest.raises(ValueError):  # also a standard error
        schedules.registry[name](decay_rate)


@testing.parametrized(
    dimensions=(dict(dimensions=0),),
    float_dimensions=(dict(dimensions=1.5),),
    c=(dict(c=0.0),),
    quench=(dict(quench=-1.0),),
)
def test_invalid_asa_decay(kwargs: tp.Dict[str, tp.Any]) -> None:
    with pytest.raises(errors.InvalidParameterError):
        schedules.AsaDecay(**kwargs)


def test_negative_index() -> None:
    with pytest.raises(errors.InvalidParameterError):
        schedules.cauchy_decay(1.0, -1)


def test_get_schedule_errors() -> None:
    with pytest.raises(errors.InvalidParameterError, match="Unknown schedule"):
        schedules.get_schedule("linear")
    with pytest.raises(errors.InvalidParameterError, match="Invalid parameters"):
        schedules.get_schedule("geometric")  # missing decay rate
    with pytest.raises(errors.InvalidParameterError, match="Invalid parameters"):
        schedules.get_schedule("boltzmann", decay_rate=0.5)


@testing.parametrized(
    function=(schedules.cauchy_decay, "cauchy_decay"),
    instance=(schedules.GeometricDecay(0.9), "GeometricDecay(0.9)"),
)
def test_describe(schedule: tp.Any, expected: str) -> None:
    assert schedules.describe(schedule) == expected
