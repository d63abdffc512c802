# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# base classes


class AnnealError(Exception):
    """Base class for error raised by annealkit"""


class AnnealWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class AnnealEarlyStopping(StopIteration, AnnealError):
    """Stops the annealing loop if raised"""


class InvalidParameterError(ValueError, AnnealError):
    """Malformed configuration: decay rate outside (0, 1], non-positive temperature,
    empty bounds etc. Raised at construction, before any iteration is run.
    """


class InvalidVectorError(ValueError, AnnealError):
    """A vector component lies outside its declared range, or the vector does not
    have the expected dimension.
    """


class StepExhaustedError(RuntimeError, AnnealError):
    """A neighborhood generator could not draw a feasible point within its
    budget of attempts.
    """


# warnings


class AnnealRuntimeWarning(RuntimeWarning, AnnealWarning):
    """Runtime warning raised by annealkit"""


class CallbackFailedWarning(AnnealRuntimeWarning):
    """A callback could not perform its side effect (eg: writing to a file)"""
