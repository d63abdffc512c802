# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Encoding of candidates into a normalized vector in [0, 1]^d, and back.

Neighborhood generators only ever manipulate normalized vectors; the representation
takes care of projecting them back into a domain a cost function can apply to.
"""

import numpy as np
import annealkit.common.typing as tp
from annealkit.common import errors
from . import transforms


class Bounds:
    """Immutable ordered sequence of (lower, upper) pairs, one per dimension.

    Parameters
    ----------
    bounds: sequence of pairs, or array of shape (d, 2)
        each pair must verify lower < upper

    Note
    ----
    The underlying arrays are read-only, so that bounds cannot be mutated once a
    search started.
    """

    def __init__(self, bounds: tp.BoundsLike) -> None:
        if isinstance(bounds, Bounds):
            bounds = bounds.as_array()
        try:
            array = np.array(bounds, dtype=float)
        except (TypeError, ValueError) as e:
            raise errors.InvalidParameterError(f"Could not convert bounds {bounds!r} to (lower, upper) pairs") from e
        if not array.size:
            raise errors.InvalidParameterError("Bounds must have at least one dimension")
        if array.ndim != 2 or array.shape[1] != 2:
            raise errors.InvalidParameterError(f"Bounds must be (lower, upper) pairs, got shape {array.shape}")
        if not np.all(np.isfinite(array)):
            raise errors.InvalidParameterError(f"Bounds must be finite, got {array.tolist()}")
        self._transform = transforms.UnitBound(array[:, 0], array[:, 1])
        array.setflags(write=False)
        self._array = array

    @property
    def lower(self) -> np.ndarray:
        return self._array[:, 0]

    @property
    def upper(self) -> np.ndarray:
        return self._array[:, 1]

    @property
    def widths(self) -> np.ndarray:
        return self.upper - self.lower  # type: ignore

    @property
    def dimension(self) -> int:
        return self._array.shape[0]

    def midpoint(self) -> np.ndarray:
        """Center of the box, a sensible default starting point"""
        return self.lower + self.widths / 2.0  # type: ignore

    def as_array(self) -> np.ndarray:
        return self._array

    def encode(self, value: tp.ArrayLike) -> np.ndarray:
        """Normalized vector corresponding to a value within the bounds"""
        return self._transform.backward(np.asarray(value, dtype=float))

    def decode(self, vector: tp.ArrayLike) -> np.ndarray:
        """Value within the bounds corresponding to a normalized vector"""
        return self._transform.forward(np.asarray(vector, dtype=float))

    def __len__(self) -> int:
        return self.dimension

    def __iter__(self) -> tp.Iterator[tp.Tuple[float, float]]:
        return ((float(lo), float(up)) for lo, up in self._array)

    def __eq__(self, other: tp.Any) -> bool:
        if not isinstance(other, Bounds):
            return NotImplemented
        return bool(np.array_equal(self._array, other._array))

    def __repr__(self) -> str:
        return f"Bounds({list(self)})"


def as_bounds(bounds: tp.Union[Bounds, tp.BoundsLike]) -> Bounds:
    return bounds if isinstance(bounds, Bounds) else Bounds(bounds)


def encode(bounds: tp.Union[Bounds, tp.BoundsLike], value: tp.ArrayLike) -> np.ndarray:
    """Maps a value within the bounds to a normalized vector in [0, 1]^d

    Parameters
    ----------
    bounds: Bounds or sequence of (lower, upper) pairs
        the domain
    value: array-like
        point of the domain, with one component per dimension

    Raises
    ------
    InvalidVectorError
        if the value is out of the bounds or has the wrong dimension
    """
    return as_bounds(bounds).encode(value)


def decode(bounds: tp.Union[Bounds, tp.BoundsLike], vector: tp.ArrayLike) -> np.ndarray:
    """Scales each normalized component into its [lower, upper] range

    Parameters
    ----------
    bounds: Bounds or sequence of (lower, upper) pairs
        the domain
    vector: array-like
        normalized vector, with components in [0, 1]

    Raises
    ------
    InvalidVectorError
        if a component is outside [0, 1] (no silent clamping) or the dimension is wrong
    """
    return as_bounds(bounds).decode(vector)


# %% variables


class Real:
    """Continuous variable in [lower, upper]"""

    integer = False

    def __init__(self, lower: float, upper: float) -> None:
        self.lower = float(lower)
        self.upper = float(upper)
        if not self.lower < self.upper:
            raise errors.InvalidParameterError(
                f"Lower bound {lower} should be strictly smaller than upper bound {upper}"
            )

    def cast(self, x: float) -> tp.Any:
        return float(x)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.lower}, {self.upper})"


class Integer(Real):
    """Integer variable in [lower, upper], decoded by rounding to the nearest integer"""

    integer = True

    def __init__(self, lower: int, upper: int) -> None:
        if int(lower) != lower or int(upper) != upper:
            raise errors.InvalidParameterError(f"Integer bounds must be integers, got ({lower}, {upper})")
        super().__init__(lower, upper)

    def cast(self, x: float) -> tp.Any:
        return int(np.clip(np.round(x), self.lower, self.upper))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({int(self.lower)}, {int(self.upper)})"


VariableLike = tp.Union[Real, tp.Tuple[float, float]]


class Representation:
    """Solution representation mapping a tuple of variables to a normalized vector.

    Parameters
    ----------
    *variables: Real, Integer or (lower, upper) pair
        one variable per dimension, pairs are handled as Real variables

    Usage
    -----
    .. code-block:: python

        rep = Representation((0, 100), Integer(1, 5))
        vector = rep.encode((42.0, 3))
        rep.decode(vector)  # (42.0, 3)
    """

    def __init__(self, *variables: VariableLike) -> None:
        if not variables:
            raise errors.InvalidParameterError("A representation requires at least one variable")
        self.variables: tp.Tuple[Real, ...] = tuple(
            v if isinstance(v, Real) else Real(*v) for v in variables
        )
        self.bounds = Bounds([(v.lower, v.upper) for v in self.variables])

    @classmethod
    def from_bounds(cls, bounds: tp.Union[Bounds, tp.BoundsLike]) -> "Representation":
        return cls(*as_bounds(bounds))

    @property
    def dimension(self) -> int:
        return self.bounds.dimension

    def encode(self, value: tp.ArrayLike) -> np.ndarray:
        value = np.asarray(value, dtype=float)
        if value.shape != (self.dimension,):
            raise errors.InvalidVectorError(f"Expected a value of dimension {self.dimension}, got shape {value.shape}")
        return self.bounds.encode(value)

    def decode(self, vector: tp.ArrayLike) -> tp.Tuple[tp.Any, ...]:
        data = self.bounds.decode(vector)
        return tuple(var.cast(x) for var, x in zip(self.variables, data))

    def random_vector(self, random_state: np.random.RandomState) -> np.ndarray:
        """Uniform draw in the normalized space"""
        return random_state.uniform(0.0, 1.0, size=self.dimension)  # type: ignore

    def basis_vector(self) -> np.ndarray:
        """Zero vector with the dimension of the normalized space"""
        return np.zeros(self.dimension, dtype=float)

    def __repr__(self) -> str:
        return f"Representation({', '.join(repr(v) for v in self.variables)})"
