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
Module level isolate entrypoints and msg types used by the test
suite; child isolates can only run importable functions.

'''
import msgspec

from playground import (
    ReceivePort,
    SendPort,
)


class Command(msgspec.Struct):
    host: str
    command: str
    status: bool|None = None
    last: bool = False


def noop(message) -> None:
    pass


def boom(message) -> None:
    raise ValueError(f'boom: {message}')


async def echo_back(reply_to: SendPort) -> None:
    '''
    Send our own port to `reply_to` then echo every received
    payload back (wrapped in a list) until a `None` arrives.

    '''
    inbox = ReceivePort()
    await reply_to.send(inbox.send_port)
    async for msg in inbox:
        if msg is None:
            break
        await reply_to.send([msg])

    inbox.close()


async def execute(reply_to: SendPort) -> None:
    '''
    Handshake then "execute" commands, flagging the third as last.

    '''
    inbox = ReceivePort()
    await reply_to.send(inbox.send_port)
    count: int = 0
    async for cmd in inbox:
        assert isinstance(cmd, Command)
        count += 1
        cmd.status = True
        cmd.last = count >= 3
        await reply_to.send(cmd)
        if cmd.last:
            break

    inbox.close()


class Route(msgspec.Struct):
    ack: SendPort
    dst: SendPort


async def forward_to(route: Route) -> None:
    '''
    Relay a greeting to `route.dst` (possibly living in a sibling
    isolate) then ack to `route.ack`.

    '''
    await route.dst.send('hello sibling')
    await route.ack.send('sent')
