# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import enum
import numbers
import logging
import dataclasses
import numpy as np
import annealkit.common.typing as tp
from annealkit.common import errors
from annealkit.parametrization.representation import Bounds, Representation
from . import acceptance
from . import schedules
from . import neighborhood as nbh


logger = logging.getLogger(__name__)
X = tp.TypeVar("X")
_StateCallBack = tp.Callable[["Annealer", "SolveState"], None]
RepresentationLike = tp.Union[Representation, Bounds, tp.BoundsLike]


# %% parameters


@dataclasses.dataclass(frozen=True)
class Params:
    """Parameters of an annealing run, read-only during the run.

    Parameters
    ----------
    decay_function: callable
        cooling schedule (t0, k) -> temperature
    initial_temp: float
        initial temperature t0, strictly positive
    min_temp: float
        the run terminates when the temperature reaches this floor (0 <= min_temp < initial_temp)
    max_iters: int
        the run terminates when the annealing-time index k reaches this value
    equilibration_steps: int
        number of neighbor draws performed at each temperature level before cooling
    accept_fn: callable
        acceptance predicate (t, oldcost, newcost, random_state) -> bool
    """

    decay_function: tp.Schedule
    initial_temp: float = 1e6
    min_temp: float = 1e-8
    max_iters: int = 1000
    equilibration_steps: int = 1
    accept_fn: tp.AcceptPredicate = acceptance.boltzmann_accept

    def __post_init__(self) -> None:
        if not callable(self.decay_function):
            raise errors.InvalidParameterError(f"decay_function must be callable, got {self.decay_function!r}")
        if not callable(self.accept_fn):
            raise errors.InvalidParameterError(f"accept_fn must be callable, got {self.accept_fn!r}")
        for name in ["initial_temp", "min_temp", "max_iters", "equilibration_steps"]:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise errors.InvalidParameterError(f"{name} must be a real number, got {value!r}")
        if not self.initial_temp > 0:
            raise errors.InvalidParameterError(f"initial_temp must be strictly positive, got {self.initial_temp}")
        if not 0 <= self.min_temp < self.initial_temp:
            raise errors.InvalidParameterError(
                f"min_temp must be in [0, initial_temp={self.initial_temp}), got {self.min_temp}"
            )
        for name in ["max_iters", "equilibration_steps"]:
            value = getattr(self, name)
            if not float(value).is_integer() or value < 1:
                raise errors.InvalidParameterError(f"{name} must be a strictly positive integer, got {value}")

    def config(self) -> tp.Dict[str, tp.Any]:
        """JSON-friendly description of the parameters"""
        return {
            "decay_function": schedules.describe(self.decay_function),
            "initial_temp": self.initial_temp,
            "min_temp": self.min_temp,
            "max_iters": int(self.max_iters),
            "equilibration_steps": int(self.equilibration_steps),
            "accept_fn": schedules.describe(self.accept_fn),
        }


def _as_float(name: str, value: tp.Any) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise errors.InvalidParameterError(f"{name} must be a real number, got {value!r}")
    return float(value)


def make_params(
    decay_function: tp.Union[str, tp.Schedule] = "geometric",
    initial_temp: float = 1e6,
    min_temp: float = 1e-8,
    max_iters: int = 1000,
    equilibration_steps: int = 1,
    accept_fn: tp.AcceptPredicate = acceptance.boltzmann_accept,
    **schedule_kwargs: tp.Any,
) -> Params:
    """Builds and validates annealing parameters. Defaults guarantee that a run terminates.

    Parameters
    ----------
    decay_function: str or callable
        cooling schedule (t0, k) -> temperature, or the registered name of a schedule
        ("boltzmann", "cauchy", "exponential", "geometric", "asa")
    initial_temp: float
        initial temperature
    min_temp: float
        temperature floor terminating the run
    max_iters: int
        maximum annealing-time index
    equilibration_steps: int
        neighbor draws per temperature level
    accept_fn: callable
        acceptance predicate (t, oldcost, newcost, random_state) -> bool
    **schedule_kwargs:
        parameters of a named schedule (eg: decay_rate=0.95), only allowed with
        a schedule name. The geometric schedule defaults to decay_rate=0.9.

    Raises
    ------
    InvalidParameterError
        for any malformed configuration (eg: decay rate outside (0, 1])
    """
    if isinstance(decay_function, str):
        if decay_function == "geometric":
            schedule_kwargs.setdefault("decay_rate", 0.9)
        decay_function = schedules.get_schedule(decay_function, **schedule_kwargs)
    elif schedule_kwargs:
        raise errors.InvalidParameterError(
            f"Schedule parameters {sorted(schedule_kwargs)} can only be provided along with a schedule name"
        )
    return Params(
        decay_function=decay_function,
        initial_temp=_as_float("initial_temp", initial_temp),
        min_temp=_as_float("min_temp", min_temp),
        max_iters=max_iters,
        equilibration_steps=equilibration_steps,
        accept_fn=accept_fn,
    )


# %% states


class Candidate(tp.Generic[X]):
    """A domain value along with its (lazily computed, then cached) cost.

    Parameters
    ----------
    value: Any
        value in the domain space, as provided to the cost function
    cost_fn: callable
        function computing the cost of the value
    vector: np.ndarray or None
        normalized vector the value was decoded from, if any
    """

    def __init__(self, value: X, cost_fn: tp.Callable[[X], float], vector: tp.Optional[np.ndarray] = None) -> None:
        self.value = value
        self.vector = vector
        self._cost_fn: tp.Optional[tp.Callable[[X], float]] = cost_fn
        self._cost: tp.Optional[float] = None

    @property
    def evaluated(self) -> bool:
        return self._cost is not None

    @property
    def cost(self) -> float:
        """Cost of the value, computed once on first access"""
        if self._cost is None:
            assert self._cost_fn is not None
            self._cost = float(self._cost_fn(self.value))
            self._cost_fn = None  # no need to keep a reference to the function
        return self._cost

    def __eq__(self, other: tp.Any) -> bool:
        """Candidates are equal when their values, vectors and costs are equal
        (comparison evaluates the costs if need be)
        """
        if not isinstance(other, Candidate):
            return NotImplemented
        if (self.vector is None) != (other.vector is None):
            return False
        if self.vector is not None and not np.array_equal(self.vector, other.vector):  # type: ignore
            return False
        return bool(np.array_equal(self.value, other.value)) and self.cost == other.cost

    __hash__ = None  # type: ignore

    def __repr__(self) -> str:
        cost = self._cost if self._cost is not None else "?"
        return f"Candidate(value={self.value!r}, cost={cost})"


class Phase(enum.Enum):
    RUNNING = "running"
    EQUILIBRATING = "equilibrating"  # drawing more neighbors before cooling
    TERMINATED = "terminated"


@dataclasses.dataclass(frozen=True)
class SolveState(tp.Generic[X]):
    """Snapshot of an annealing run after an iteration.
    All snapshots of a run share the random state of the run, which is never shared
    with other runs.
    """

    current: Candidate[X]
    best: Candidate[X]
    temperature: float
    k: int = 0
    equilibration: int = 0
    num_evaluations: int = 1
    num_accepted: int = 0
    phase: Phase = Phase.RUNNING
    termination: tp.Optional[str] = None
    random_state: np.random.RandomState = dataclasses.field(
        default_factory=np.random.RandomState, repr=False, compare=False
    )

    @property
    def best_cost(self) -> float:
        return self.best.cost

    @property
    def current_cost(self) -> float:
        return self.current.cost

    @property
    def terminated(self) -> bool:
        return self.phase == Phase.TERMINATED


def _make_random_state(seed: tp.SeedLike) -> np.random.RandomState:
    if isinstance(seed, np.random.RandomState):
        return seed
    if seed is None:
        seed = np.random.randint(2**32, dtype=np.uint32)
    return np.random.RandomState(seed)


def _as_representation(representation: tp.Optional[RepresentationLike]) -> tp.Optional[Representation]:
    if representation is None or isinstance(representation, Representation):
        return representation
    return Representation.from_bounds(representation)


# %% engine


class Annealer(tp.Generic[X]):
    """Simulated annealing engine, driving the search as an explicit state machine.

    Parameters
    ----------
    initial_value: Any
        starting point, in the domain space
    cost_fn: callable
        function to minimize, taking a domain value and returning a float
    neighbor_fn: callable
        generating function (point, temperature, random_state) -> point. It works on normalized
        vectors if a representation is provided, and on domain values otherwise.
    params: Params
        annealing parameters (see make_params)
    representation: Representation, Bounds, sequence of (lower, upper) pairs, or None
        encoding of domain values to normalized vectors. The cost function then receives
        decoded values (tuples).
    seed: int, np.random.RandomState or None
        seed of the random state owned by the run

    Note
    ----
    Each annealer instance can only be run once, either through run (blocking) or states (lazy).
    """

    def __init__(
        self,
        initial_value: tp.Any,
        cost_fn: tp.Callable[[X], float],
        neighbor_fn: tp.Neighbor[tp.Any],
        params: Params,
        representation: tp.Optional[RepresentationLike] = None,
        seed: tp.SeedLike = None,
    ) -> None:
        if not isinstance(params, Params):
            raise errors.InvalidParameterError(f"params must be built through make_params, got {params!r}")
        self.cost_fn = cost_fn
        self.neighbor_fn = neighbor_fn
        self.params = params
        self.representation = _as_representation(representation)
        self.initial_value = initial_value
        self._random_state = _make_random_state(seed)
        self._callbacks: tp.Dict[str, tp.List[_StateCallBack]] = {}
        self._started = False
        self.state: tp.Optional[SolveState[X]] = None

    def register_callback(self, name: str, callback: _StateCallBack) -> None:
        """Add a callback method called after each iteration ("state") or at the end of the run ("end").

        Parameters
        ----------
        name: str
            name of the method to register the callback for ("state" or "end")
        callback: callable
            a callable taking the annealer and the latest SolveState as arguments.
            A "state" callback may raise AnnealEarlyStopping to end the run, which is
            ignored when raised by an "end" callback.
        """
        if name not in ["state", "end"]:
            raise errors.InvalidParameterError(f'Unknown callback method "{name}" (use "state" or "end")')
        self._callbacks.setdefault(name, []).append(callback)

    def remove_all_callbacks(self) -> None:
        self._callbacks = {}

    def _candidate(self, point: tp.Any) -> Candidate[X]:
        if self.representation is None:
            return Candidate(point, self.cost_fn)
        vector = np.asarray(point, dtype=float)
        return Candidate(self.representation.decode(vector), self.cost_fn, vector=vector)  # type: ignore

    def initial_state(self) -> SolveState[X]:
        """State of the run before the first iteration (evaluates the initial value)"""
        if self.representation is None:
            initial = self._candidate(self.initial_value)
        else:
            initial = self._candidate(self.representation.encode(self.initial_value))
        initial.cost  # pylint: disable=pointless-statement
        temperature = float(self.params.decay_function(self.params.initial_temp, 0))
        termination = self._termination(temperature, 0)
        return SolveState(
            current=initial,
            best=initial,
            temperature=temperature,
            phase=Phase.RUNNING if termination is None else Phase.TERMINATED,
            termination=termination,
            random_state=self._random_state,
        )

    def _termination(self, temperature: float, k: int) -> tp.Optional[str]:
        """Reason for terminating at this temperature and annealing-time index, if any"""
        if temperature <= self.params.min_temp:
            return "min_temp"
        if k >= self.params.max_iters:
            return "max_iters"
        return None

    def step(self, state: SolveState[X]) -> SolveState[X]:
        """Performs one iteration from the provided state: draw a neighbor, evaluate it,
        accept or reject it, then cool down if the temperature level is equilibrated.
        """
        if state.terminated:
            raise errors.AnnealError("Cannot step from a terminated state")
        params = self.params
        rng = state.random_state
        current = state.current
        point = current.value if current.vector is None else current.vector
        candidate = self._candidate(self.neighbor_fn(point, state.temperature, rng))
        accepted = params.accept_fn(state.temperature, current.cost, candidate.cost, rng)
        # strict comparison, so that ties keep the earliest best
        best = candidate if candidate.cost < state.best.cost else state.best
        equilibration = state.equilibration + 1
        k, temperature, phase = state.k, state.temperature, Phase.EQUILIBRATING
        if equilibration >= params.equilibration_steps:
            equilibration, k, phase = 0, k + 1, Phase.RUNNING
            temperature = float(params.decay_function(params.initial_temp, k))
            logger.debug("Cooling down to temperature %s at k=%s (best cost: %s)", temperature, k, best.cost)
        termination = self._termination(temperature, k)
        return dataclasses.replace(
            state,
            current=candidate if accepted else current,
            best=best,
            temperature=temperature,
            k=k,
            equilibration=equilibration,
            num_evaluations=state.num_evaluations + 1,
            num_accepted=state.num_accepted + int(bool(accepted)),
            phase=phase if termination is None else Phase.TERMINATED,
            termination=termination,
        )

    def _call_callbacks(self, name: str, state: SolveState[X]) -> None:
        for callback in self._callbacks.get(name, []):
            if name != "end":
                callback(self, state)
                continue
            try:
                callback(self, state)
            except errors.AnnealEarlyStopping as e:
                # the run is already over
                logger.debug("Ignoring early stopping requested by an end callback: %s", e)

    def states(self) -> tp.Iterator[SolveState[X]]:
        """Lazy, finite sequence of states, starting with the initial state and ending
        with a terminated state. Stopping the iteration early is safe.
        """
        if self._started:
            raise RuntimeError("An Annealer instance can only be run once, create a new one")
        self._started = True
        state = self.initial_state()
        logger.info(
            "Starting annealing from cost %s with parameters %s", state.best_cost, self.params.config()
        )
        while True:
            try:
                self._call_callbacks("state", state)
            except errors.AnnealEarlyStopping as e:
                if not state.terminated:
                    logger.info("Early stopping at k=%s: %s", state.k, e)
                    state = dataclasses.replace(state, phase=Phase.TERMINATED, termination="early_stopping")
            self.state = state
            if state.terminated:
                logger.info(
                    "Annealing terminated (%s) at k=%s after %s evaluations, best cost: %s",
                    state.termination,
                    state.k,
                    state.num_evaluations,
                    state.best_cost,
                )
                self._call_callbacks("end", state)
                yield state
                return
            yield state
            state = self.step(state)

    def run(self) -> Candidate[X]:
        """Runs the annealing until termination, and returns the best candidate"""
        for _ in self.states():
            pass
        assert self.state is not None
        return self.state.best


# %% functional interface


def anneal(
    initial_value: tp.Any,
    cost_fn: tp.Callable[[X], float],
    neighbor_fn: tp.Neighbor[tp.Any],
    params: Params,
    *,
    representation: tp.Optional[RepresentationLike] = None,
    seed: tp.SeedLike = None,
) -> Candidate[X]:
    """Runs a simulated annealing until termination and returns the best candidate found.
    See Annealer for the description of the arguments.
    """
    return Annealer(initial_value, cost_fn, neighbor_fn, params, representation=representation, seed=seed).run()


def anneal_sequence(
    initial_value: tp.Any,
    cost_fn: tp.Callable[[X], float],
    neighbor_fn: tp.Neighbor[tp.Any],
    params: Params,
    *,
    representation: tp.Optional[RepresentationLike] = None,
    seed: tp.SeedLike = None,
) -> tp.Iterator[SolveState[X]]:
    """Lazy sequence of the states of a simulated annealing, one per iteration.
    The sequence is finite, cannot be restarted, and can be left early.
    See Annealer for the description of the arguments.
    """
    return Annealer(initial_value, cost_fn, neighbor_fn, params, representation=representation, seed=seed).states()


def minimize(
    cost_fn: tp.Callable[[tp.Tuple[tp.Any, ...]], float],
    bounds: RepresentationLike,
    *,
    initial_value: tp.Optional[tp.ArrayLike] = None,
    params: tp.Optional[Params] = None,
    neighborhood: str = "asa",
    seed: tp.SeedLike = None,
) -> Candidate[tp.Tuple[tp.Any, ...]]:
    """Anneals a cost function over a box, with sensible defaults.

    Parameters
    ----------
    cost_fn: callable
        function taking a tuple (one value per dimension) and returning a float
    bounds: Representation, Bounds or sequence of (lower, upper) pairs
        the search domain
    initial_value: array-like or None
        starting point (defaults to the center of the domain)
    params: Params or None
        annealing parameters (defaults to make_params())
    neighborhood: str
        name of the generating function ("asa", "cauchy" or "random")
    seed: int, np.random.RandomState or None
        seed of the run

    Usage
    -----
    .. code-block:: python

        best = minimize(lambda xs: abs(xs[0] - 50), [(0, 100)], seed=12)
        best.value, best.cost
    """
    representation = _as_representation(bounds)
    assert representation is not None
    if initial_value is None:
        initial_value = representation.decode(np.full(representation.dimension, 0.5))
    neighbor_fn = nbh.registry[neighborhood]()
    return anneal(
        initial_value,
        cost_fn,
        neighbor_fn,
        make_params() if params is None else params,
        representation=representation,
        seed=seed,
    )
