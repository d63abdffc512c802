# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import annealkit.common.typing as tp
from annealkit.common import errors


def _f(x: tp.Any) -> tp.Any:
    """Format for prints:
    array with one scalars are converted to floats
    """
    if isinstance(x, (np.ndarray, list, tuple)):
        x = np.asarray(x, dtype=float)
        x = float(x[0]) if x.shape == (1,) else x.tolist()
    if isinstance(x, float) and x.is_integer():
        x = int(x)
    return x


class Transform:
    """Base class for transforms implementing a forward and a backward (inverse)
    method.
    In annealkit, "forward" maps the normalized space to the domain space (decoding)
    and "backward" maps the domain space to the normalized space (encoding).
    """

    def __init__(self) -> None:
        self.name = self.__class__.__name__  # should be overriden with a short representation

    def forward(self, x: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def backward(self, y: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def __repr__(self) -> str:
        args = ", ".join(f"{x}={y}" for x, y in sorted(self.__dict__.items()) if not x.startswith("_"))
        return f"{self.__class__.__name__}({args})"


class Affine(Transform):
    """Affine transform a * x + b

    Parameters
    ----------
    a: float or array
        non-zero scaling
    b: float or array
        offset
    """

    def __init__(self, a: tp.Union[float, tp.ArrayLike], b: tp.Union[float, tp.ArrayLike]) -> None:
        super().__init__()
        self.a = np.atleast_1d(np.asarray(a, dtype=float))
        self.b = np.atleast_1d(np.asarray(b, dtype=float))
        if not np.all(self.a):
            raise errors.InvalidParameterError('"a" parameter should be non-zero to prevent information loss.')
        self.name = f"Af({_f(a)},{_f(b)})"

    def forward(self, x: np.ndarray) -> np.ndarray:
        return self.a * x + self.b  # type: ignore

    def backward(self, y: np.ndarray) -> np.ndarray:
        return (y - self.b) / self.a  # type: ignore


class UnitBound(Affine):
    """Maps the unit hypercube [0, 1]^d onto the box [lower, upper] (forward), and back.
    Contrarily to a clipping transform, data outside the expected range is an error
    in both directions: perturbation bugs must surface instead of being silently clamped.

    Parameters
    ----------
    lower: float or array
        lower bound(s) of the domain
    upper: float or array
        upper bound(s) of the domain, strictly larger than lower
    """

    def __init__(self, lower: tp.Union[float, tp.ArrayLike], upper: tp.Union[float, tp.ArrayLike]) -> None:
        lower_ = np.atleast_1d(np.asarray(lower, dtype=float))
        upper_ = np.atleast_1d(np.asarray(upper, dtype=float))
        if lower_.shape != upper_.shape:
            raise errors.InvalidParameterError(f"Bounds shapes do not match: {lower_.shape} and {upper_.shape}")
        if not np.all(lower_ < upper_):
            raise errors.InvalidParameterError(
                f"Lower bounds {_f(lower)} should be strictly smaller than upper bounds {_f(upper)}"
            )
        super().__init__(upper_ - lower_, lower_)
        self.lower = lower_
        self.upper = upper_
        self.name = f"Ub({_f(lower)},{_f(upper)})"

    def _check_shape(self, x: np.ndarray) -> None:
        if x.shape != self.lower.shape:
            raise errors.InvalidVectorError(f"Shapes do not match: expected {self.lower.shape} but got {x.shape}")

    def forward(self, x: np.ndarray) -> np.ndarray:
        self._check_shape(x)
        outside = ~np.logical_and(x >= 0, x <= 1)  # also catches nan
        if np.any(outside):
            raise errors.InvalidVectorError(
                f"Normalized components must lie in [0, 1], got {x} (indices {np.flatnonzero(outside).tolist()})"
            )
        # clip only absorbs rounding of a * x + b beyond the bounds
        return np.clip(super().forward(x), self.lower, self.upper)  # type: ignore

    def backward(self, y: np.ndarray) -> np.ndarray:
        self._check_shape(y)
        outside = ~np.logical_and(y >= self.lower, y <= self.upper)
        if np.any(outside):
            raise errors.InvalidVectorError(
                f"Only data between {_f(self.lower)} and {_f(self.upper)} can be encoded, got {y}"
            )
        return np.clip(super().backward(y), 0.0, 1.0)  # type: ignore
