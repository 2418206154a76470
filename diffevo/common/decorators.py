# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import functools


X = tp.TypeVar("X")


class Registry(tp.MutableMapping[str, X]):
    """Name to object mapping, filled through decorators.
    Registered objects can carry a dict of information (eg: the known
    optimum of a test function), accessible through :code:`get_info`.

    Example
    -------
    >>> functions: Registry[tp.Type[Sphere]] = Registry()
    >>> @functions.register_with_info(optimum=0.0)
    ... class Sphere: ...
    >>> functions["Sphere"], functions.get_info("Sphere")["optimum"]
    """

    def __init__(self) -> None:
        super().__init__()
        self._objects: tp.Dict[str, X] = {}
        self._information: tp.Dict[str, tp.Dict[str, tp.Any]] = {}

    def register(self, obj: X, info: tp.Optional[tp.Dict[str, tp.Any]] = None) -> X:
        """Decorator registering an object under its __name__"""
        name = getattr(obj, "__name__", obj.__class__.__name__)
        if name in self:
            raise RuntimeError(f'Encountered a name collision "{name}"')
        self._objects[name] = obj
        self._information[name] = dict(info or {})
        return obj

    def register_with_info(self, **info: tp.Any) -> tp.Callable[[X], X]:
        return functools.partial(self.register, info=info)

    def get_info(self, name: str) -> tp.Dict[str, tp.Any]:
        if name not in self:
            raise ValueError(f'"{name}" is not registered.')
        return dict(self._information[name])

    def unregister(self, name: str) -> None:
        self._objects.pop(name, None)
        self._information.pop(name, None)

    def __getitem__(self, key: str) -> X:
        return self._objects[key]

    def __setitem__(self, key: str, value: X) -> None:
        self._objects[key] = value
        self._information.setdefault(key, {})

    def __delitem__(self, key: str) -> None:
        del self._objects[key]
        self._information.pop(key, None)

    def __iter__(self) -> tp.Iterator[str]:
        return iter(self._objects)

    def __len__(self) -> int:
        return len(self._objects)
