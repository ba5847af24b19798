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
Unidirectional message ports between isolates.

A `ReceivePort` is a local inbox; its `.send_port` is a small,
serializable address (isolate uid + port id) which may itself be
sent to other isolates such that they can reply.

'''
from __future__ import annotations
import math
from typing import (
    Any,
    AsyncIterator,
)

import msgspec
import trio

from ._exceptions import StateError
from ._futures import Future
from ._state import current_isolate
from ._streaming import Stream
from .log import get_logger
from .msg import (
    Deliver,
    encode_pld,
)


log = get_logger(__name__)


class SendPort(
    msgspec.Struct,
    frozen=True,
):
    '''
    The address of a `ReceivePort` living in some isolate.

    '''
    uid: tuple[str, str]
    port_id: int

    async def send(self, obj: Any) -> None:
        '''
        Send `obj` (a `msgspec`-encodable builtin or `Struct`) to the
        destination port, possibly in another isolate.

        The payload is always encoded such that the receiver gets
        a copy.

        '''
        pld, pld_type = encode_pld(obj)
        await current_isolate()._route(
            Deliver(
                dst_uid=self.uid,
                dst_port=self.port_id,
                pld=pld,
                pld_type=pld_type,
            )
        )


class ReceivePort:
    '''
    A local (in this isolate) message inbox which is also
    a single-subscription async iterable.

    The port keeps its isolate alive (any listener keeps waiting)
    until it is `.close()`d.

    '''
    def __init__(self) -> None:
        isolate = current_isolate()
        self._send, self._recv = trio.open_memory_channel(math.inf)
        self._id: int = isolate._register_port(self)
        self.send_port = SendPort(
            uid=isolate.uid,
            port_id=self._id,
        )
        self._closed: bool = False
        self._stream = Stream(self._iter_msgs)

    def __repr__(self) -> str:
        return (
            f'<ReceivePort {self._id} of {self.send_port.uid[0]!r} '
            f'closed={self._closed}>'
        )

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _deliver(self, msg: Any) -> None:
        if self._closed:
            log.transport(f'Dropping msg for closed {self}:\n{msg!r}')
            return

        self._send.send_nowait(msg)

    def close(self) -> None:
        '''
        Stop receiving; iteration ends after already queued messages.

        '''
        if self._closed:
            return

        self._closed = True
        self._send.close()
        current_isolate()._unregister_port(self._id)
        log.runtime(f'Closed {self}')

    async def receive(self) -> Any:
        try:
            return await self._recv.receive()
        except trio.EndOfChannel:
            raise StateError(f'{self} is closed') from None

    async def _iter_msgs(self) -> AsyncIterator[Any]:
        async for msg in self._recv:
            yield msg

    @property
    def stream(self) -> Stream:
        return self._stream

    def __aiter__(self) -> AsyncIterator[Any]:
        return aiter(self._stream)

    def listen(self, *args, **kwargs):
        return self._stream.listen(*args, **kwargs)

    def as_broadcast_stream(self) -> Stream:
        return self._stream.as_broadcast_stream()

    @property
    def first(self) -> Future:
        return self._stream.first
