# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import pytest
import numpy as np
from annealkit.common import errors
from annealkit.common import testing
from . import neighborhood as nbh


@testing.parametrized(
    middle=(1.0, 0.5, 0.0),
    top=(1.0, 1.0, 1.0),
    bottom=(1.0, 0.0, -1.0),
    cold_top=(1e-8, 1.0, 1.0),
    cold_bottom=(1e-8, 0.0, -1.0),
)
def test_asa_dist_values(temp: float, y: float, expected: float) -> None:
    np.testing.assert_almost_equal(nbh.asa_dist(temp, y), expected)


def test_asa_dist_range_and_symmetry() -> None:
    for temp in [1e-12, 1e-3, 1.0, 1e6]:
        for y in np.linspace(0, 1, 21):
            value = nbh.asa_dist(temp, y)
            assert -1 - 1e-9 <= value <= 1 + 1e-9
            np.testing.assert_almost_equal(value, -nbh.asa_dist(temp, 1 - y))


def test_asa_dist_cold_concentration() -> None:
    # at low temperature, most of the mass packs around 0
    ys = np.linspace(0, 1, 1001)
    hot = np.median([abs(nbh.asa_dist(10.0, y)) for y in ys])
    cold = np.median([abs(nbh.asa_dist(1e-6, y)) for y in ys])
    assert cold < 0.01 < hot


@testing.parametrized(
    zero=(0.0,),
    negative=(-1.0,),
    nan=(float("nan"),),
)
def test_asa_dist_invalid_temperature(temp: float) -> None:
    with pytest.raises(errors.InvalidParameterError):
        nbh.asa_dist(temp, 0.3)


@testing.parametrized(
    unit=(0.0, 1.0, 0.5, 1.0),
    shifted=(2.0, 3.0, 2.01, 100.0),
    wide=(-1000.0, 1000.0, 999.0, 0.01),
)
def test_asa_stepper_feasibility(lower: float, upper: float, x0: float, temp: float) -> None:
    stepper = nbh.AsaStepper(lower, upper)
    rng = np.random.RandomState(12)
    x = x0
    for _ in range(500):
        x = stepper(temp, x, rng)
        assert lower <= x <= upper


def test_asa_stepper_clusters_at_low_temperature() -> None:
    stepper = nbh.AsaStepper(0, 1)
    rng = np.random.RandomState(24)
    x0 = 0.5
    draws = np.array([stepper(1e-6, x0, rng) for _ in range(2000)])
    distances = np.abs(draws - x0)
    assert np.median(distances) < 0.01
    assert np.mean(distances < 0.05) > 0.7
    # heavy tails: some large jumps towards the bound extremes remain
    assert np.sum(distances > 0.3) > 10


def test_asa_stepper_exhausted() -> None:
    calls: tp.List[float] = []

    def always_out(temp: float, y: float) -> float:
        calls.append(y)
        return 2.0

    stepper = nbh.AsaStepper(0, 1, step_func=always_out)
    with pytest.raises(errors.StepExhaustedError):
        stepper(1.0, 0.5, np.random.RandomState(12))
    assert len(calls) == nbh.MAX_ASA_REDRAWS + 1
    # also a RuntimeError, and an annealkit error
    with pytest.raises(RuntimeError):
        stepper(1.0, 0.5, np.random.RandomState(12))


def test_asa_stepper_recovers_after_redraws() -> None:
    outputs = iter([2.0] * 5 + [0.1])
    stepper = nbh.AsaStepper(0, 1, step_func=lambda temp, y: next(outputs))
    np.testing.assert_almost_equal(stepper(1.0, 0.5, np.random.RandomState(12)), 0.6)


@testing.parametrized(
    equal=(1.0, 1.0, 30),
    reversed=(1.0, 0.0, 30),
    negative_redraws=(0.0, 1.0, -1),
)
def test_asa_stepper_invalid(lower: float, upper: float, max_redraws: int) -> None:
    with pytest.raises(errors.InvalidParameterError):
        nbh.AsaStepper(lower, upper, max_redraws=max_redraws)


@testing.parametrized(
    random=(nbh.RandomNeighbor,),
    cauchy=(nbh.CauchyNeighbor,),
    asa=(nbh.AsaNeighbor,),
)
def test_neighbors_in_normalized_space(cls: tp.Type[nbh.Neighborhood]) -> None:
    neighbor = cls()
    rng = np.random.RandomState(12)
    current = np.array([0.1, 0.5, 0.99])
    for temperature in [1e3, 1.0, 1e-3]:
        for _ in range(50):
            output = neighbor(current, temperature, rng)
            assert output.shape == (3,)
            assert np.all(output >= 0) and np.all(output <= 1)
            current = output


@testing.parametrized(
    random=("random",),
    cauchy=("cauchy",),
    asa=("asa",),
)
def test_neighbors_with_bounds(name: str) -> None:
    bounds = [(0, 100), (-5, -4)]
    neighbor = nbh.registry[name](bounds)
    rng = np.random.RandomState(3)
    current = np.array([50.0, -4.5])
    for _ in range(100):
        current = neighbor.generate(current, 10.0, rng)
        assert 0 <= current[0] <= 100
        assert -5 <= current[1] <= -4
    with pytest.raises(errors.InvalidVectorError):
        neighbor.generate(np.array([50.0]), 10.0, rng)


@testing.parametrized(
    random=(nbh.RandomNeighbor,),
    cauchy=(nbh.CauchyNeighbor,),
    asa=(nbh.AsaNeighbor,),
)
def test_neighbors_reproducible(cls: tp.Type[nbh.Neighborhood]) -> None:
    outputs = []
    for _ in range(2):
        rng = np.random.RandomState(42)
        neighbor = cls()
        outputs.append([neighbor(np.array([0.3, 0.7]), 0.5, rng) for _ in range(5)])
    np.testing.assert_array_equal(outputs[0], outputs[1])


def test_random_neighbor_ignores_current() -> None:
    neighbor = nbh.RandomNeighbor()
    out1 = neighbor([0.0, 0.0], 1.0, np.random.RandomState(12))
    out2 = neighbor([1.0, 1.0], 1e-9, np.random.RandomState(12))
    np.testing.assert_array_equal(out1, out2)


def test_cauchy_neighbor_exhausted() -> None:
    # with a huge scale, in-bound draws are (almost surely) impossible
    neighbor = nbh.CauchyNeighbor(scale=1e12, max_attempts=3)
    with pytest.raises(errors.StepExhaustedError):
        neighbor([0.5], 1.0, np.random.RandomState(12))


@testing.parametrized(
    scale=(dict(scale=0.0),),
    attempts=(dict(max_attempts=0),),
)
def test_cauchy_neighbor_invalid(kwargs: tp.Dict[str, tp.Any]) -> None:
    with pytest.raises(errors.InvalidParameterError):
        nbh.CauchyNeighbor(**kwargs)


def test_registry() -> None:
    assert set(nbh.registry) == {"random", "cauchy", "asa"}
    assert nbh.registry["asa"] is nbh.AsaNeighbor
    with pytest.raises(errors.InvalidParameterError):
        nbh.registry["gaussian"]  # pylint: disable=pointless-statement
