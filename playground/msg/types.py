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
Define our strictly typed inter-isolate message spec.

Every msg is length-prefixed msgpack on the wire and is one of
a tagged union (on the `msg_type` field) of the structs below.

'''
from __future__ import annotations
from typing import (
    Union,
)

from msgspec import Raw

from .pretty_struct import Struct


class Msg(
    Struct,

    # https://jcristharif.com/msgspec/structs.html#tagged-unions
    tag=True,
    tag_field='msg_type',
):
    '''
    The "god-boxing" base msg type; never sent on its own.

    '''


class Hello(Msg):
    '''
    First msg sent by a child isolate after connecting back to its
    parent.

    '''
    uid: tuple[str, str]


class Start(Msg):
    '''
    Sent by the parent in reply to `Hello`: which entrypoint to run
    and the (boxed) message to pass it.

    '''
    func: str  # "<module>:<qualname>"
    pld: Raw
    pld_type: str|None = None

    # `__main__` module fixup data, see `._mp_fixup_main`.
    parent_main: dict[str, str] = {}


class Deliver(Msg):
    '''
    A user payload addressed to a `ReceivePort` in some isolate; the
    payload is left encoded (`Raw`) so that intermediary isolates can
    forward it without decoding.

    '''
    dst_uid: tuple[str, str]
    dst_port: int
    pld: Raw
    pld_type: str|None = None


class Done(Msg):
    '''
    The child's entrypoint (and any remaining background tasks)
    completed.

    '''


class Error(Msg):
    '''
    A boxed exception raised by the child's entrypoint.

    '''
    src_uid: tuple[str, str]
    boxed_type_str: str
    message: str
    tb_str: str = ''


MsgType = Union[
    Hello,
    Start,
    Deliver,
    Done,
    Error,
]

__msg_types__: tuple[type[Msg], ...] = (
    Hello,
    Start,
    Deliver,
    Done,
    Error,
)
