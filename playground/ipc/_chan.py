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

"""
Inter-process comms abstractions: a length-prefixed msgpack transport
over TCP wrapped in a `Channel`.

"""
from __future__ import annotations
from collections.abc import (
    AsyncGenerator,
)
import struct
from typing import (
    Any,
)

from tricycle import BufferedReceiveStream
import trio

from ..log import get_logger
from .._exceptions import (
    MsgTypeError,
    TransportClosed,
)
from ..msg import (
    _codec,
    types as msgtypes,
)

log = get_logger(__name__)


def get_stream_addrs(stream: trio.SocketStream) -> tuple:
    # should both be IP sockets
    lsockname = stream.socket.getsockname()
    rsockname = stream.socket.getpeername()
    return (
        tuple(lsockname[:2]),
        tuple(rsockname[:2]),
    )


class MsgpackTCPStream:
    '''
    A ``trio.SocketStream`` delivering ``msgpack`` formatted data
    using the ``msgspec`` codec lib.

    '''
    def __init__(
        self,
        stream: trio.SocketStream,
        prefix_size: int = 4,

    ) -> None:

        self.stream = stream
        assert self.stream.socket

        # should both be IP sockets
        self._laddr, self._raddr = get_stream_addrs(stream)

        # create read loop instance
        self._agen = self._iter_packets()
        self._send_lock = trio.StrictFIFOLock()

        self.recv_stream = BufferedReceiveStream(
            transport_stream=stream
        )
        self.prefix_size = prefix_size

    async def _iter_packets(self) -> AsyncGenerator[msgtypes.MsgType, None]:
        '''
        Yield decoded packets from the underlying TCP stream.

        '''
        while True:
            try:
                header: bytes = await self.recv_stream.receive_exactly(
                    self.prefix_size
                )
            except (
                ValueError,
                ConnectionResetError,
                trio.BrokenResourceError,
                trio.ClosedResourceError,
            ):
                raise TransportClosed(
                    f'transport {self} was already closed prior to read'
                )

            if header == b'':
                raise TransportClosed(
                    f'transport {self} was already closed prior to read'
                )

            size, = struct.unpack("<I", header)

            log.transport(f'received header {size}')  # type: ignore
            try:
                msg_bytes: bytes = await self.recv_stream.receive_exactly(
                    size
                )
            except (
                ValueError,
                ConnectionResetError,
                trio.BrokenResourceError,
                trio.ClosedResourceError,
            ):
                raise TransportClosed(
                    f'transport {self} was closed mid-msg'
                )


            log.transport(f"received {msg_bytes}")  # type: ignore
            yield _codec.decode(msg_bytes)

    async def send(
        self,
        msg: msgtypes.MsgType,
    ) -> None:
        '''
        Send a msgpack encoded py-object-blob-as-msg over TCP.

        '''
        if type(msg) not in msgtypes.__msg_types__:
            raise MsgTypeError(
                f'Not a valid wire msg type?\n'
                f'{msg!r}\n'
            )

        async with self._send_lock:
            bytes_data: bytes = _codec.encode(msg)

            # supposedly the fastest says,
            # https://stackoverflow.com/a/54027962
            size: bytes = struct.pack("<I", len(bytes_data))
            try:
                return await self.stream.send_all(size + bytes_data)
            except (
                trio.BrokenResourceError,
                trio.ClosedResourceError,
            ) as trans_err:
                raise TransportClosed(
                    f'transport {self} was already closed prior to send'
                ) from trans_err

    @property
    def laddr(self) -> tuple[str, int]:
        return self._laddr

    @property
    def raddr(self) -> tuple[str, int]:
        return self._raddr

    async def recv(self) -> Any:
        return await self._agen.asend(None)

    def __aiter__(self):
        return self._agen

    def connected(self) -> bool:
        return self.stream.socket.fileno() != -1

    async def aclose(self) -> None:
        await self.stream.aclose()

    def __repr__(self) -> str:
        return (
            f'<{type(self).__name__} '
            f'laddr={self._laddr} raddr={self._raddr}>'
        )


class Channel:
    '''
    An inter-process channel for communication between (remote)
    isolates.

    Wraps a ``MsgpackTCPStream``: transport + encoding IPC connection.

    '''
    def __init__(
        self,
        transport: MsgpackTCPStream|None = None,
        uid: tuple[str, str]|None = None,

    ) -> None:
        self._transport: MsgpackTCPStream|None = transport

        # set after handshake - always uid of far end
        self.uid: tuple[str, str]|None = uid
        self._closed: bool = False

    @classmethod
    async def from_addr(
        cls,
        addr: tuple[str, int],

    ) -> Channel:
        stream = await trio.open_tcp_stream(*addr)
        chan = Channel(MsgpackTCPStream(stream))
        log.runtime(
            f'Connected channel IPC transport\n'
            f'[>\n'
            f' |_{chan}\n'
        )
        return chan

    @classmethod
    def from_stream(
        cls,
        stream: trio.SocketStream,
    ) -> Channel:
        return Channel(MsgpackTCPStream(stream))

    def __repr__(self) -> str:
        if not self._transport:
            return '<Channel with inactive transport?>'

        return (
            f'<Channel uid={self.uid} '
            f'laddr={self.laddr} raddr={self.raddr}>'
        )

    @property
    def laddr(self) -> tuple[str, int]|None:
        return self._transport.laddr if self._transport else None

    @property
    def raddr(self) -> tuple[str, int]|None:
        return self._transport.raddr if self._transport else None

    async def send(self, msg: msgtypes.MsgType) -> None:
        log.transport(
            '=> send IPC msg:\n\n'
            f'{msg.pformat()}\n'
        )
        assert self._transport
        await self._transport.send(msg)

    async def recv(self) -> msgtypes.MsgType:
        assert self._transport
        return await self._transport.recv()

    async def aclose(self) -> None:
        if self._closed:
            return

        log.transport(
            f'Closing channel to {self.uid} '
            f'{self.laddr} -> {self.raddr}'
        )
        assert self._transport
        self._closed = True
        await self._transport.aclose()

    async def __aenter__(self) -> Channel:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    def __aiter__(self):
        return self._iter_msgs()

    async def _iter_msgs(self) -> AsyncGenerator[msgtypes.MsgType, None]:
        '''
        Yield `MsgType` IPC msgs decoded and deliverd from the
        underlying transport until the far end hangs up.

        '''
        assert self._transport
        while True:
            try:
                yield await self.recv()
            except TransportClosed:
                log.transport(
                    f'Channel to {self.uid} was closed by the far end'
                )
                return

    def connected(self) -> bool:
        return (
            self._transport.connected()
            if self._transport
            else False
        )
