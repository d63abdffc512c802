# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import pytest
import numpy as np
from annealkit.common import errors
from annealkit.common import testing
from . import representation as rep


@testing.parametrized(
    one_dim=([(0, 100)],),
    negative=([(-50, -10), (-1e-3, 1e-3)],),
    large=([(0, 1e9), (3, 4), (-7, 12)],),
)
def test_encode_decode_round_trip(bounds: tp.List[tp.Tuple[float, float]]) -> None:
    rng = np.random.RandomState(12)
    lower, upper = np.array(bounds, dtype=float).T
    for _ in range(20):
        value = rng.uniform(lower, upper)
        vector = rep.encode(bounds, value)
        assert np.all(vector >= 0) and np.all(vector <= 1)
        np.testing.assert_allclose(rep.decode(bounds, vector), value, rtol=1e-12, atol=1e-9)
    # bounds themselves are in range
    np.testing.assert_array_equal(rep.encode(bounds, lower), np.zeros(len(bounds)))
    np.testing.assert_array_equal(rep.encode(bounds, upper), np.ones(len(bounds)))


def test_decode_values() -> None:
    bounds = rep.Bounds([(0, 100), (10, 20)])
    np.testing.assert_array_almost_equal(bounds.decode([0.5, 0.1]), [50, 11])
    np.testing.assert_array_almost_equal(rep.decode([(0, 100), (10, 20)], [1.0, 0.0]), [100, 10])


@testing.parametrized(
    above=([1.5, 0.5],),
    below=([0.5, -0.01],),
    too_short=([0.5],),
    too_long=([0.5, 0.5, 0.5],),
)
def test_decode_invalid_vector(vector: tp.List[float]) -> None:
    with pytest.raises(errors.InvalidVectorError):
        rep.decode([(0, 100), (10, 20)], vector)


def test_encode_out_of_bounds() -> None:
    with pytest.raises(errors.InvalidVectorError):
        rep.encode([(0, 100)], [101])


@testing.parametrized(
    empty=([],),
    equal=([(1, 1)],),
    reversed=([(0, 1), (2, 1)],),
    not_pairs=([(0, 1, 2)],),
    infinite=([(0, float("inf"))],),
    garbage=(["blublu"],),
)
def test_invalid_bounds(bounds: tp.Any) -> None:
    with pytest.raises(errors.InvalidParameterError):
        rep.Bounds(bounds)


def test_bounds_properties() -> None:
    bounds = rep.Bounds([(0, 100), (-1, 1)])
    assert len(bounds) == 2
    assert bounds.dimension == 2
    np.testing.assert_array_equal(bounds.widths, [100, 2])
    np.testing.assert_array_equal(bounds.midpoint(), [50, 0])
    assert list(bounds) == [(0.0, 100.0), (-1.0, 1.0)]
    assert bounds == rep.Bounds([[0, 100], [-1, 1]])
    assert repr(bounds) == "Bounds([(0.0, 100.0), (-1.0, 1.0)])"
    # immutability
    with pytest.raises(ValueError):
        bounds.lower[0] = 12


def test_representation() -> None:
    representation = rep.Representation((0, 100), rep.Integer(1, 5), rep.Real(-1, 1))
    assert representation.dimension == 3
    vector = representation.encode((42.0, 3, 0.5))
    np.testing.assert_array_almost_equal(vector, [0.42, 0.5, 0.75])
    value = representation.decode(vector)
    assert value == pytest.approx((42.0, 3, 0.5))
    assert isinstance(value[1], int)
    # integers are rounded when decoding
    assert representation.decode([0.0, 0.4, 0.0])[1] == 3
    assert representation.decode([0.0, 0.1, 0.0])[1] == 1
    np.testing.assert_array_equal(representation.basis_vector(), [0, 0, 0])
    assert repr(representation) == "Representation(Real(0.0, 100.0), Integer(1, 5), Real(-1.0, 1.0))"


def test_representation_random_vector() -> None:
    representation = rep.Representation.from_bounds([(0, 100), (10, 20)])
    vectors = [representation.random_vector(np.random.RandomState(7)) for _ in range(2)]
    np.testing.assert_array_equal(vectors[0], vectors[1])
    assert vectors[0].shape == (2,)
    assert np.all(vectors[0] >= 0) and np.all(vectors[0] <= 1)
    representation.decode(vectors[0])  # must not raise


@testing.parametrized(
    empty=((),),
    reversed=(((3, 1),),),
    reversed_second=(((0, 1), (5, 2)),),
)
def test_representation_invalid(variables: tp.Tuple[tp.Any, ...]) -> None:
    with pytest.raises(errors.InvalidParameterError):
        rep.Representation(*variables)


def test_integer_requires_integer_bounds() -> None:
    with pytest.raises(errors.InvalidParameterError):
        rep.Integer(0.5, 3)


def test_representation_wrong_value_dimension() -> None:
    with pytest.raises(errors.InvalidVectorError):
        rep.Representation((0, 1), (0, 1)).encode([0.5])
