# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import json
import time
import warnings
import datetime
import logging
from pathlib import Path
import numpy as np
import annealkit.common.typing as tp
from annealkit.common import errors
from . import engine

global_logger = logging.getLogger(__name__)


def _jsonable(value: tp.Any) -> tp.Any:
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, (np.floating, np.integer, np.bool_)):
        return value.item()
    if isinstance(value, (tuple, list)):
        return [_jsonable(v) for v in value]
    return value


# -------------------------------------------------------------------------------------


class _Interval:
    """Triggers every given number of iterations, or every given number of seconds"""

    def __init__(self, interval_iterations: int, interval_seconds: float) -> None:
        assert interval_iterations > 0
        assert interval_seconds > 0
        self._interval_iterations = int(interval_iterations)
        self._interval_seconds = interval_seconds
        self._next_iteration = 0
        self._next_time = time.time() + interval_seconds

    def __call__(self, iteration: int) -> bool:
        if time.time() >= self._next_time or iteration >= self._next_iteration:
            self._next_time = time.time() + self._interval_seconds
            self._next_iteration = iteration + self._interval_iterations
            return True
        return False


class StatePrinter:
    """Printer to register as "state" callback in an annealer, for printing
    the best candidate regularly.

    Parameters
    ----------
    print_interval_iterations: int
        max number of iterations before performing another print
    print_interval_seconds: float
        max number of seconds before performing another print
    """

    def __init__(self, print_interval_iterations: int = 1, print_interval_seconds: float = 60.0) -> None:
        self._interval = _Interval(print_interval_iterations, print_interval_seconds)

    def __call__(self, annealer: engine.Annealer[tp.Any], state: engine.SolveState[tp.Any]) -> None:
        if self._interval(state.num_evaluations - 1):
            print(f"After {state.num_evaluations} evaluations (T={state.temperature:.4g}), best is {state.best}")


class StateLogger:
    """Logger to register as "state" callback in an annealer, for logging
    the best candidate regularly.

    Parameters
    ----------
    logger:
        given logger that callback will use to log
    log_level:
        log level that logger will write to
    log_interval_iterations: int
        max number of iterations before performing another log
    log_interval_seconds:
        max number of seconds before performing another log
    """

    def __init__(
        self,
        *,
        logger: logging.Logger = global_logger,
        log_level: int = logging.INFO,
        log_interval_iterations: int = 1,
        log_interval_seconds: float = 60.0,
    ) -> None:
        self._logger = logger
        self._log_level = log_level
        self._interval = _Interval(log_interval_iterations, log_interval_seconds)

    def __call__(self, annealer: engine.Annealer[tp.Any], state: engine.SolveState[tp.Any]) -> None:
        if self._interval(state.num_evaluations - 1):
            self._logger.log(
                self._log_level,
                "After %s evaluations (k=%s, T=%s, %s), best is %s",
                state.num_evaluations,
                state.k,
                state.temperature,
                state.phase.value,
                state.best,
            )


# -------------------------------------------------------------------------------------


class StateRecorder:
    """Records state information into a file (one json object per line) during
    annealing.

    Parameters
    ----------
    filepath: str or pathlib.Path
        the path to dump data to
    append: bool
        whether to append the file (otherwise it replaces it)

    Example
    -------

    .. code-block:: python

        recorder = StateRecorder(filepath)
        annealer.register_callback("state", recorder)
        annealer.run()
        list_of_dict_of_data = recorder.load()

    Note
    ----
    Arrays are converted to lists
    """

    def __init__(self, filepath: tp.PathLike, append: bool = True) -> None:
        self._session = datetime.datetime.now().strftime("%y-%m-%d %H:%M:%S")
        self._filepath = Path(filepath)
        if self._filepath.exists() and not append:
            self._filepath.unlink()
        self._filepath.parent.mkdir(exist_ok=True, parents=True)

    def __call__(self, annealer: engine.Annealer[tp.Any], state: engine.SolveState[tp.Any]) -> None:
        data = {
            "#session": self._session,
            "#num-evaluations": state.num_evaluations,
            "#num-accepted": state.num_accepted,
            "#k": state.k,
            "#temperature": state.temperature,
            "#phase": state.phase.value,
            "#current-cost": state.current_cost,
            "#best-cost": state.best_cost,
            "current": _jsonable(state.current.value),
            "best": _jsonable(state.best.value),
        }
        if state.termination is not None:
            data["#termination"] = state.termination
        data.update({"#params#" + x: y for x, y in annealer.params.config().items()})
        try:  # avoid bugging as much as possible
            with self._filepath.open("a") as f:
                f.write(json.dumps(data) + "\n")
        except Exception as e:  # pylint: disable=broad-except
            warnings.warn(f"Failing to json data: {e}", errors.CallbackFailedWarning)

    def load(self) -> tp.List[tp.Dict[str, tp.Any]]:
        """Loads data from the log file"""
        data: tp.List[tp.Dict[str, tp.Any]] = []
        if self._filepath.exists():
            with self._filepath.open("r") as f:
                for line in f.readlines():
                    data.append(json.loads(line))
        return data


# -------------------------------------------------------------------------------------


class EarlyStopper:
    """Callback for stopping an annealing run before its natural termination.

    Parameters
    ----------
    stopping_criterion: func(state) -> bool
        function that takes the latest state as input and returns True
        if the run must be stopped

    Example
    -------
    In the following code, the run is stopped as soon as the best cost is below 1:

    >>> annealer.register_callback("state", EarlyStopper(lambda state: state.best_cost < 1))
    """

    def __init__(self, stopping_criterion: tp.Callable[[engine.SolveState[tp.Any]], bool]) -> None:
        self.stopping_criterion = stopping_criterion

    def __call__(self, annealer: engine.Annealer[tp.Any], state: engine.SolveState[tp.Any]) -> None:
        if self.stopping_criterion(state):
            raise errors.AnnealEarlyStopping("Early stopping criterion is reached")

    @classmethod
    def timer(cls, max_duration: float) -> "EarlyStopper":
        """Early stop when max_duration seconds has been reached (from the first state)"""
        return cls(_DurationCriterion(max_duration))

    @classmethod
    def no_improvement_stopper(cls, tolerance_window: int) -> "EarlyStopper":
        """Early stop when the best cost didn't decrease during tolerance_window iterations"""
        return cls(_CostImprovementToleranceCriterion(tolerance_window))


class _DurationCriterion:
    def __init__(self, max_duration: float) -> None:
        self._start = float("inf")
        self._max_duration = max_duration

    def __call__(self, state: engine.SolveState[tp.Any]) -> bool:
        if np.isinf(self._start):
            self._start = time.time()
        return time.time() > self._start + self._max_duration


class _CostImprovementToleranceCriterion:
    def __init__(self, tolerance_window: int) -> None:
        self._tolerance_window = tolerance_window
        self._best_cost = float("inf")
        self._tolerance_count = 0

    def __call__(self, state: engine.SolveState[tp.Any]) -> bool:
        if state.best_cost < self._best_cost:
            self._best_cost = state.best_cost
            self._tolerance_count = 0
        else:
            self._tolerance_count += 1
        return self._tolerance_count > self._tolerance_window
