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
IPC msg interchange codec: `msgspec.msgpack` encoding of the wire
msg spec plus (en|de)coding of user payloads into their declared
`msgspec.Struct` types.

Payload types are referenced by `"<module>:<qualname>"` such that
the receiving isolate can decode back into the same type; any type
defined in a script's `__main__` is always referenced through the
`__main__` name since child isolates re-run the parent's main
module under that alias.

'''
from __future__ import annotations
import importlib
import sys
from typing import (
    Any,
)

import msgspec
from msgspec import (
    Raw,
    msgpack,
)

from ..log import get_logger
from .._exceptions import MsgTypeError
from .types import MsgType


log = get_logger(__name__)

_enc = msgpack.Encoder()
_dec = msgpack.Decoder(MsgType)

_main_aliases: set[str] = {
    '__main__',
    '__mp_main__',
}


def encode(msg: MsgType) -> bytes:
    return _enc.encode(msg)


def decode(msg_bytes: bytes) -> MsgType:
    try:
        return _dec.decode(msg_bytes)
    except msgspec.ValidationError as verr:
        raise MsgTypeError(
            f'Invalid wire msg?\n'
            f'{msg_bytes!r}\n'
        ) from verr


def type_ref(obj: Any) -> str|None:
    '''
    Return the import-ref for the type of `obj` when it's
    a `msgspec.Struct`, otherwise `None` (a builtin type which
    needs no type info to decode).

    '''
    if not isinstance(obj, msgspec.Struct):
        return None

    typ: type = type(obj)
    mod_name: str = typ.__module__
    if mod_name in _main_aliases:
        mod_name = '__main__'

    return f'{mod_name}:{typ.__qualname__}'


def resolve_ref(ref: str) -> Any:
    '''
    Load the object (type or function) for a `"<module>:<qualname>"`
    ref.

    '''
    mod_name, _, qualname = ref.partition(':')
    if mod_name in _main_aliases:
        mod = sys.modules['__main__']
    else:
        mod = importlib.import_module(mod_name)

    obj: Any = mod
    for attr in qualname.split('.'):
        obj = getattr(obj, attr)

    return obj


def func_ref(func: Any) -> str:
    mod_name: str = func.__module__
    if mod_name in _main_aliases:
        mod_name = '__main__'

    qualname: str = func.__qualname__
    if '<locals>' in qualname:
        raise MsgTypeError(
            f'Can not reference a function defined in a local scope!\n'
            f'{func!r}\n'
            'Isolate entrypoints must be module level functions.'
        )

    return f'{mod_name}:{qualname}'


def encode_pld(obj: Any) -> tuple[Raw, str|None]:
    '''
    Encode a user payload to an (already serialized) `Raw` and its
    type-ref.

    '''
    try:
        return (
            Raw(_enc.encode(obj)),
            type_ref(obj),
        )
    except TypeError as typerr:
        raise MsgTypeError(
            f'Payload can not be sent between isolates!\n'
            f'{obj!r}\n\n'
            'Only `msgspec`-native builtins and `msgspec.Struct`s are '
            'supported.'
        ) from typerr


def decode_pld(
    raw: Raw,
    pld_type: str|None = None,
) -> Any:
    '''
    Decode a `Raw` payload, into its declared type when provided.

    '''
    typ: type = (
        resolve_ref(pld_type)
        if pld_type
        else Any
    )
    try:
        return msgpack.decode(raw, type=typ)
    except msgspec.ValidationError as verr:
        raise MsgTypeError(
            f'Payload does not match its declared type {pld_type!r}\n'
        ) from verr
