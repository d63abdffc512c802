# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Generating (neighborhood) functions.

Neighborhoods are manipulations of normalized vectors: the representation does the rest of
the work, by projecting back into a domain a cost function can apply to. They can also be used
directly in a domain space, provided the bounds of this domain.
All of them pull their randomness from the random state they are given, and hold none.
"""

import numpy as np
import annealkit.common.typing as tp
from annealkit.common import errors
from annealkit.common.decorators import Registry
from annealkit.parametrization.representation import Bounds, as_bounds


registry: Registry[tp.Type["Neighborhood"]] = Registry("neighborhood")
MAX_ASA_REDRAWS = 30


def asa_dist(temp: float, y: float) -> float:
    """Ingber's ASA generating distribution.
    Given a uniform random variate y in [0, 1] and a temperature, returns a value in [-1, 1].
    As temperature decreases, the values pack tightly around 0, although, like the Cauchy
    distribution, seemingly large but infrequent jumps across the parameter space remain possible.

    Parameters
    ----------
    temp: float
        strictly positive temperature
    y: float
        uniform variate in [0, 1]
    """
    if not temp > 0:
        raise errors.InvalidParameterError(f"ASA distribution requires a strictly positive temperature, got {temp}")
    direction = np.sign(y - 0.5)
    # (1 + 1 / temp) ** |2y - 1| - 1, computed in log space to avoid overflows at low temperature
    return float(direction * temp * np.expm1(abs(2.0 * y - 1.0) * np.log1p(1.0 / temp)))


class AsaStepper:
    """One-dimensional walker over [lower, upper], using the ASA distribution
    scaled by the width of the range.

    Parameters
    ----------
    lower: float
        lower bound of the range
    upper: float
        upper bound of the range
    step_func: callable
        function (temp, y) -> offset in [-1, 1], with y a uniform variate
    max_redraws: int
        number of redraws allowed when a step falls out of the range, before
        giving up with a StepExhaustedError
    """

    def __init__(
        self,
        lower: float,
        upper: float,
        step_func: tp.Callable[[float, float], float] = asa_dist,
        max_redraws: int = MAX_ASA_REDRAWS,
    ) -> None:
        self.lower = float(lower)
        self.upper = float(upper)
        if not self.lower < self.upper:
            raise errors.InvalidParameterError(f"Lower bound {lower} should be strictly smaller than upper bound {upper}")
        if max_redraws < 0:
            raise errors.InvalidParameterError(f"max_redraws must be non-negative, got {max_redraws}")
        self.width = self.upper - self.lower
        self.step_func = step_func
        self.max_redraws = int(max_redraws)

    def step(self, temp: float, x0: float, random_state: np.random.RandomState) -> float:
        """Draws a new value within [lower, upper] around x0"""
        for _ in range(self.max_redraws + 1):
            x = x0 + self.step_func(temp, random_state.uniform()) * self.width
            if self.lower <= x <= self.upper:
                return x
        raise errors.StepExhaustedError(
            f"No feasible step in [{self.lower}, {self.upper}] from {x0} at temperature {temp} "
            f"after {self.max_redraws} redraws"
        )

    __call__ = step

    def __repr__(self) -> str:
        return f"AsaStepper({self.lower}, {self.upper})"


class Neighborhood:
    """Base class for generating functions over a box.

    Parameters
    ----------
    bounds: Bounds, sequence of (lower, upper) pairs, or None
        the box to generate in. None stands for the unit hypercube of the normalized
        space, whose dimension is inferred from the current point.
    """

    name = "neighborhood"

    def __init__(self, bounds: tp.Optional[tp.Union[Bounds, tp.BoundsLike]] = None) -> None:
        self.bounds = None if bounds is None else as_bounds(bounds)

    def _box(self, current: np.ndarray) -> tp.Tuple[np.ndarray, np.ndarray]:
        if self.bounds is None:
            return np.zeros(current.shape), np.ones(current.shape)
        if current.shape != (self.bounds.dimension,):
            raise errors.InvalidVectorError(
                f"Expected a point of dimension {self.bounds.dimension}, got shape {current.shape}"
            )
        return self.bounds.lower, self.bounds.upper

    def generate(self, current: tp.ArrayLike, temperature: float, random_state: np.random.RandomState) -> np.ndarray:
        """Proposes a new point from the current one

        Parameters
        ----------
        current: array-like
            current point
        temperature: float
            current temperature of the search
        random_state: np.random.RandomState
            random state to pull from (owned by the solve state)
        """
        current = np.asarray(current, dtype=float)
        lower, upper = self._box(current)
        return self._internal_generate(current, temperature, random_state, lower, upper)

    def _internal_generate(
        self,
        current: np.ndarray,
        temperature: float,
        random_state: np.random.RandomState,
        lower: np.ndarray,
        upper: np.ndarray,
    ) -> np.ndarray:
        raise NotImplementedError

    def __call__(self, current: tp.ArrayLike, temperature: float, random_state: np.random.RandomState) -> np.ndarray:
        return self.generate(current, temperature, random_state)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.bounds if self.bounds is not None else ''})"


@registry.register_as("random")
class RandomNeighbor(Neighborhood):
    """Redraws each dimension independently and uniformly over its bounds.
    Ignores both the current point and the temperature (pure exploration).
    """

    def _internal_generate(
        self,
        current: np.ndarray,
        temperature: float,
        random_state: np.random.RandomState,
        lower: np.ndarray,
        upper: np.ndarray,
    ) -> np.ndarray:
        return random_state.uniform(lower, upper)  # type: ignore


@registry.register_as("cauchy")
class CauchyNeighbor(Neighborhood):
    """Adds a standard Cauchy draw (heavy-tailed, with occasional large jumps) to each
    dimension of the current point, scaled by the width of the dimension.
    Draws falling out of the bounds are rejected and redrawn.

    Parameters
    ----------
    bounds: Bounds, sequence of (lower, upper) pairs, or None
        the box to generate in (unit hypercube if None)
    scale: float
        scale of the Cauchy distribution, relatively to the width of each dimension
    max_attempts: int
        maximum number of draws per dimension before raising StepExhaustedError
    """

    def __init__(
        self,
        bounds: tp.Optional[tp.Union[Bounds, tp.BoundsLike]] = None,
        scale: float = 1.0,
        max_attempts: int = 100,
    ) -> None:
        super().__init__(bounds)
        if not scale > 0:
            raise errors.InvalidParameterError(f"scale must be strictly positive, got {scale}")
        if max_attempts < 1:
            raise errors.InvalidParameterError(f"max_attempts must be at least 1, got {max_attempts}")
        self.scale = float(scale)
        self.max_attempts = int(max_attempts)

    def _internal_generate(
        self,
        current: np.ndarray,
        temperature: float,
        random_state: np.random.RandomState,
        lower: np.ndarray,
        upper: np.ndarray,
    ) -> np.ndarray:
        widths = upper - lower
        candidate = current + self.scale * widths * random_state.standard_cauchy(size=current.shape)
        for _ in range(self.max_attempts - 1):
            infeasible = ~np.logical_and(candidate >= lower, candidate <= upper)
            if not np.any(infeasible):
                return candidate  # type: ignore
            redraw = self.scale * widths[infeasible] * random_state.standard_cauchy(size=int(infeasible.sum()))
            candidate[infeasible] = current[infeasible] + redraw
        if np.all(np.logical_and(candidate >= lower, candidate <= upper)):
            return candidate  # type: ignore
        raise errors.StepExhaustedError(
            f"No feasible Cauchy step from {current.tolist()} after {self.max_attempts} attempts"
        )


@registry.register_as("asa")
class AsaNeighbor(Neighborhood):
    """Adaptive Simulated Annealing generating function: one AsaStepper per dimension,
    each closed over the bounds of its dimension, all driven by the current temperature.

    Parameters
    ----------
    bounds: Bounds, sequence of (lower, upper) pairs, or None
        the box to generate in (unit hypercube if None)
    max_redraws: int
        redraws allowed per dimension before raising StepExhaustedError
    """

    def __init__(
        self, bounds: tp.Optional[tp.Union[Bounds, tp.BoundsLike]] = None, max_redraws: int = MAX_ASA_REDRAWS
    ) -> None:
        super().__init__(bounds)
        self.max_redraws = max_redraws
        self._steppers: tp.List[AsaStepper] = []
        if self.bounds is not None:
            self._steppers = [AsaStepper(lo, up, max_redraws=max_redraws) for lo, up in self.bounds]

    def steppers(self, dimension: int) -> tp.List[AsaStepper]:
        if len(self._steppers) != dimension:
            # only happens in the normalized space, when the dimension is discovered on first call
            self._steppers = [AsaStepper(0.0, 1.0, max_redraws=self.max_redraws) for _ in range(dimension)]
        return self._steppers

    def _internal_generate(
        self,
        current: np.ndarray,
        temperature: float,
        random_state: np.random.RandomState,
        lower: np.ndarray,
        upper: np.ndarray,
    ) -> np.ndarray:
        steppers = self.steppers(current.size)
        return np.array([stepper(temperature, x0, random_state) for stepper, x0 in zip(steppers, current)])
