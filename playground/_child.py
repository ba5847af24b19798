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
The "bootloader" for child isolates: `python -m playground._child`.

'''
from __future__ import annotations
from ast import literal_eval
import argparse

import trio

from . import _state
from ._exceptions import (
    MsgTypeError,
    pack_error,
)
from ._futures import resolve
from ._isolate import Isolate
from ._mp_fixup_main import fixup_main
from ._root import open_root
from .ipc import Channel
from .log import get_logger
from .msg import (
    Done,
    Hello,
    Start,
    decode_pld,
    resolve_ref,
)
from .trionics import collapse_eg


log = get_logger(__name__)


def parse_uid(arg):
    name, uuid = literal_eval(arg)  # ensure 2 elements
    return str(name), str(uuid)  # ensures str encoding


def parse_ipaddr(arg):
    host, port = literal_eval(arg)
    return (str(host), int(port))


async def _trio_main(
    isolate: Isolate,
    parent_addr: tuple[str, int],
    loglevel: str|None = None,
) -> None:
    '''
    Connect back to the parent, run the entrypoint from its `Start`
    msg inside our own root runtime and report the result.

    '''
    _state._current_isolate = isolate
    _state._runtime_vars['_parent_addr'] = parent_addr

    chan: Channel = await Channel.from_addr(parent_addr)
    chan.uid = ('parent', 'parent')
    isolate._parent_chan = chan
    async with chan:
        await chan.send(Hello(uid=isolate.uid))
        start = await chan.recv()
        if not isinstance(start, Start):
            raise MsgTypeError(
                f'Expected `Start` msg from parent, got\n'
                f'{start.pformat()}\n'
            )

        fixup_main(start.parent_main)
        entrypoint = resolve_ref(start.func)
        message = decode_pld(start.pld, start.pld_type)

        async with (
            collapse_eg(),
            trio.open_nursery() as tn,
        ):
            async def _process_parent_msgs():
                await isolate._process_messages(chan)
                log.cancel('Parent hung up, cancelling..')
                tn.cancel_scope.cancel()

            tn.start_soon(_process_parent_msgs)
            try:
                async with open_root(
                    loglevel=loglevel,
                    name=isolate.name,
                    _isolate=isolate,
                ):
                    await resolve(entrypoint(message))

            except Exception as err:
                log.runtime(f'{isolate} entrypoint crashed, relaying error')
                await chan.send(pack_error(err))

            else:
                await chan.send(Done())

            tn.cancel_scope.cancel()


if __name__ == '__main__':

    parser = argparse.ArgumentParser()
    parser.add_argument('--uid', type=parse_uid)
    parser.add_argument('--loglevel', type=str)
    parser.add_argument('--parent_addr', type=parse_ipaddr)
    args = parser.parse_args()

    _state._runtime_vars['_loglevel'] = args.loglevel
    trio.run(
        _trio_main,
        Isolate(
            args.uid[0],
            uid=args.uid[1],
            parent_addr=args.parent_addr,
        ),
        args.parent_addr,
        args.loglevel,
    )
