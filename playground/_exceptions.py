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
Our classy exception set.

'''
from __future__ import annotations
import builtins
import importlib
from typing import (
    Type,
    TYPE_CHECKING,
)
import textwrap
import traceback

import trio

from ._state import current_isolate
from .log import get_logger

if TYPE_CHECKING:
    from .msg.types import Error


log = get_logger(__name__)

_this_mod = importlib.import_module(__name__)


class StateError(RuntimeError):
    '''
    An operation was attempted on an object (stream, subscription,
    controller, future) in a state which does not allow it; eg.
    listening twice to a single-subscription stream.

    '''


class UnsupportedOperation(TypeError):
    '''
    Attempt to mutate an object which is immutable by construction.

    '''


class NoRuntime(RuntimeError):
    "The root isolate runtime has not been started"


class TransportClosed(trio.ClosedResourceError):
    "Underlying channel transport was closed prior to use"


class MsgTypeError(TypeError):
    '''
    A payload could not be encoded to (or decoded from) the wire
    format; only `msgspec`-native builtins and `msgspec.Struct`
    subtypes may be sent through a port.

    '''


class RemoteIsolateError(Exception):
    '''
    A box(ing) type which bundles a remote isolate's `BaseException`
    for local re-raising in the parent's memory domain.

    Normally each instance is constructed from a special `Error` IPC
    msg sent by some child isolate.

    '''
    def __init__(
        self,
        message: str,
        boxed_type: Type[BaseException]|None = None,
        boxed_type_str: str = '',
        tb_str: str = '',
        src_uid: tuple[str, str]|None = None,
    ) -> None:
        super().__init__(message)
        self.boxed_type: Type[BaseException]|None = boxed_type
        self.boxed_type_str: str = boxed_type_str
        self.tb_str: str = tb_str
        self.src_uid: tuple[str, str]|None = src_uid

    def __repr__(self) -> str:
        return (
            f'{type(self).__name__}('
            f'boxed_type={self.boxed_type_str!r}, '
            f'src_uid={self.src_uid!r})'
        )

    def __str__(self) -> str:
        body: str = textwrap.indent(
            self.tb_str,
            prefix=' |',
        )
        return (
            f'{self.args[0]}\n'
            f'src_uid: {self.src_uid}\n'
            f'boxed_type: {self.boxed_type_str}\n'
            f'{body}'
        )


def pack_error(
    exc: BaseException,
    tb: str|None = None,

) -> Error:
    '''
    Create an "error message" which boxes a locally caught
    exception's meta-data and encodes it for wire transport via an
    IPC `Channel`; expected to be unpacked (and thus unboxed) on
    the receiver side using `unpack_error()` below.

    '''
    from .msg.types import Error

    if tb:
        tb_str = ''.join(traceback.format_tb(tb))
    else:
        tb_str = ''.join(
            traceback.format_exception(exc)
        )

    return Error(
        src_uid=current_isolate().uid,
        boxed_type_str=type(exc).__name__,
        message=str(exc),
        tb_str=tb_str,
    )


def unpack_error(
    msg: Error,
    box_type: Type[RemoteIsolateError] = RemoteIsolateError,

) -> RemoteIsolateError:
    '''
    Unpack an `Error` message from the wire into a local
    `RemoteIsolateError`.

    NOTE: this routine DOES not RAISE the embedded remote error,
    which is the responsibilitiy of the caller.

    '''
    boxed_type: Type[BaseException] = Exception

    # try to lookup a suitable local error type
    for ns in [
        builtins,
        _this_mod,
        trio,
    ]:
        if found := getattr(
            ns,
            msg.boxed_type_str,
            None,
        ):
            boxed_type = found
            break

    return box_type(
        f'Remote isolate {msg.src_uid[0]!r} crashed with '
        f'{msg.boxed_type_str}: {msg.message}',
        boxed_type=boxed_type,
        boxed_type_str=msg.boxed_type_str,
        tb_str=msg.tb_str,
        src_uid=tuple(msg.src_uid),
    )
