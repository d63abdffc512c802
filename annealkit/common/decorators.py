# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
from . import errors


X = tp.TypeVar("X")


class Registry(tp.MutableMapping[str, X]):
    """Name-based registry of schedules, neighborhoods etc., so that
    components can be configured from a plain string.

    Parameters
    ----------
    kind: str
        what is registered (only used in error messages)
    """

    def __init__(self, kind: str = "object") -> None:
        super().__init__()
        self.kind = kind
        self.data: tp.Dict[str, X] = {}

    def register_name(self, name: str, obj: X) -> X:
        """Registers an object under the provided name"""
        if name in self.data:
            raise RuntimeError(f'Encountered a name collision "{name}" for {self.kind}')
        self.data[name] = obj
        return obj

    def register_as(self, name: str) -> tp.Callable[[X], X]:
        """Decorator registering a function or a class under the given name"""

        def _register(obj: X) -> X:
            return self.register_name(name, obj)

        return _register

    def __getitem__(self, key: str) -> X:
        if key not in self.data:
            names = ", ".join(sorted(self.data))
            raise errors.InvalidParameterError(f'Unknown {self.kind} "{key}" (available: {names})')
        return self.data[key]

    def __setitem__(self, key: str, value: X) -> None:
        self.data[key] = value

    def __delitem__(self, key: str) -> None:
        del self.data[key]

    def __iter__(self) -> tp.Iterator[str]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)

    def __contains__(self, key: tp.Any) -> bool:
        return key in self.data
