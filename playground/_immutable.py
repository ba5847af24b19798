# playground: a structured concurrent feature tour on `trio`.
# Copyright 2018-eternity Tyler Goodlet.

# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.

# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.


'''
Bond vs. object immutability.

- `Final`: an attribute which may be bound only once; the bound
  object itself stays (possibly) mutable.
- `const()`: deep-freeze a value into an immutable object and
  canonicalize it such that equal constants are the *same* object.
- `ConstStruct`: a frozen `msgspec.Struct` with a canonicalizing
  "const constructor".

'''
from __future__ import annotations
from collections.abc import Mapping
from typing import (
    Any,
    Iterator,
    TypeVar,
)

import msgspec

from ._exceptions import UnsupportedOperation


_SET_MSG: str = 'Cannot set value in unmodifiable Map'
_REMOVE_MSG: str = 'Cannot remove from unmodifiable Map'
_CLEAR_MSG: str = 'Cannot clear unmodifiable Map'

# canonical instances of all constants created so far
_canonical: dict[Any, Any] = {}

CS = TypeVar('CS', bound='ConstStruct')


class ImmutableMap(Mapping):
    '''
    A read-only, hashable, insertion ordered mapping.

    '''
    __slots__ = ('_data',)

    def __init__(self, *args, **kwargs) -> None:
        object.__setattr__(self, '_data', dict(*args, **kwargs))

    def __getitem__(self, key: Any) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return repr(self._data)

    def __hash__(self) -> int:
        return hash(frozenset(self._data.items()))

    def __setattr__(self, name: str, value: Any) -> None:
        raise UnsupportedOperation(_SET_MSG)

    def __setitem__(self, key: Any, value: Any) -> None:
        raise UnsupportedOperation(_SET_MSG)

    def __delitem__(self, key: Any) -> None:
        raise UnsupportedOperation(_REMOVE_MSG)

    def update(self, *args, **kwargs) -> None:
        raise UnsupportedOperation(_SET_MSG)

    def setdefault(self, key: Any, default: Any = None) -> None:
        raise UnsupportedOperation(_SET_MSG)

    def pop(self, key: Any, *default) -> None:
        raise UnsupportedOperation(_REMOVE_MSG)

    def popitem(self) -> None:
        raise UnsupportedOperation(_REMOVE_MSG)

    def clear(self) -> None:
        raise UnsupportedOperation(_CLEAR_MSG)


def _const_key(value: Any) -> Any:
    '''
    A type-aware, hashable identity for a (frozen) constant such
    that eg. `1`, `1.0` and `True` stay distinct constants.

    '''
    match value:
        case ImmutableMap():
            return (
                ImmutableMap,
                tuple(
                    (_const_key(k), _const_key(v))
                    for k, v in value.items()
                ),
            )
        case tuple():
            return (tuple, tuple(_const_key(v) for v in value))

        case frozenset():
            return (frozenset, frozenset(_const_key(v) for v in value))

        case ConstStruct():
            return (
                type(value),
                tuple(
                    _const_key(getattr(value, field))
                    for field in value.__struct_fields__
                ),
            )

    try:
        hash(value)
    except TypeError:
        raise UnsupportedOperation(
            f'Not a constant expression: {value!r}'
        ) from None

    return (type(value), value)


def _freeze(value: Any) -> Any:
    match value:
        case dict() | ImmutableMap():
            return ImmutableMap(
                (const(k), const(v))
                for k, v in value.items()
            )
        case list() | tuple():
            return tuple(const(v) for v in value)

        case set() | frozenset():
            return frozenset(const(v) for v in value)

    return value


def const(value: Any) -> Any:
    '''
    Return the canonical, deeply immutable constant equal to `value`:
    `dict` -> `ImmutableMap`, `list` -> `tuple`, `set` -> `frozenset`.

    Creating a constant equal to an existing one returns that same
    (identical) object, so `const({}) is const({})`.

    '''
    frozen: Any = _freeze(value)
    return _canonical.setdefault(
        _const_key(frozen),
        frozen,
    )


def is_const(value: Any) -> bool:
    try:
        return _canonical.get(_const_key(value)) is value
    except UnsupportedOperation:
        return False


class Final:
    '''
    Descriptor for an attribute which may be bound only once per
    instance ("final" bond); rebinding (or deleting) raises
    `UnsupportedOperation`.

    '''
    def __set_name__(self, owner: type, name: str) -> None:
        self.name: str = name
        self._attr: str = f'_final_{name}'

    def __get__(self, obj: Any, objtype: type|None = None) -> Any:
        if obj is None:
            return self

        try:
            return obj.__dict__[self._attr]
        except KeyError:
            raise AttributeError(
                f'Final field {self.name!r} has not been initialized'
            ) from None

    def __set__(self, obj: Any, value: Any) -> None:
        if self._attr in obj.__dict__:
            raise UnsupportedOperation(
                f'Final field {self.name!r} can only be set once'
            )

        obj.__dict__[self._attr] = value

    def __delete__(self, obj: Any) -> None:
        raise UnsupportedOperation(
            f'Final field {self.name!r} can not be deleted'
        )


class ConstStruct(
    msgspec.Struct,
    frozen=True,
):
    '''
    An immutable record type; instances built with `.const()` are
    canonicalized while plain construction always gives a fresh
    (but still immutable) instance.

    '''
    @classmethod
    def const(cls: type[CS], *args, **kwargs) -> CS:
        inst = cls(
            *(const(arg) for arg in args),
            **{k: const(v) for k, v in kwargs.items()},
        )
        return _canonical.setdefault(
            _const_key(inst),
            inst,
        )
