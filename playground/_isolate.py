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
Isolates: independent execution contexts (sub-processes) which share
no memory and communicate only by sending messages to each other's
ports.

The parent serves a TCP listener which each spawned child connects
back to; the resulting `Channel` carries the start handshake, all
port deliveries (in both directions) and the final `Done`/`Error`
result.

'''
from __future__ import annotations
from contextlib import (
    asynccontextmanager as acm,
)
from functools import partial
import itertools
import sys
from typing import (
    Any,
    AsyncGenerator,
    Callable,
    TYPE_CHECKING,
)
import uuid

import trio

from . import _state
from ._exceptions import (
    RemoteIsolateError,
    TransportClosed,
    unpack_error,
)
from ._mp_fixup_main import figure_out_main
from .ipc import Channel
from .log import get_logger
from .msg import (
    Deliver,
    Done,
    Error,
    Hello,
    MsgType,
    Start,
    decode_pld,
    encode_pld,
    func_ref,
)
from .trionics import collapse_eg

if TYPE_CHECKING:
    from ._ports import ReceivePort


log = get_logger(__name__)


class Isolate:
    '''
    The per-process isolate record: its name, unique id, local
    `ReceivePort`s and the channels over which messages for other
    isolates are routed.

    '''
    def __init__(
        self,
        name: str,
        uid: str|None = None,
        parent_addr: tuple[str, int]|None = None,
    ) -> None:
        self.name: str = name
        self.uid: tuple[str, str] = (
            name,
            uid or str(uuid.uuid4()),
        )
        self._parent_addr: tuple[str, int]|None = parent_addr
        self._parent_chan: Channel|None = None

        self._ports: dict[int, ReceivePort] = {}
        self._port_ids = itertools.count()
        self._children: dict[tuple[str, str], IsolateHandle] = {}

    def __repr__(self) -> str:
        return f'<Isolate {self.name!r} uid={self.uid[1][:6]}>'

    def _register_port(self, port: ReceivePort) -> int:
        port_id: int = next(self._port_ids)
        self._ports[port_id] = port
        return port_id

    def _unregister_port(self, port_id: int) -> None:
        self._ports.pop(port_id, None)

    async def _route(self, msg: Deliver) -> None:
        '''
        Deliver `msg` to a local port or forward it toward its
        destination isolate: to a (directly) spawned child if known,
        otherwise up to our parent.

        '''
        dst: tuple[str, str] = tuple(msg.dst_uid)
        chan: Channel|None = None

        if dst == self.uid:
            port: ReceivePort|None = self._ports.get(msg.dst_port)
            if port is None:
                log.transport(
                    f'No port {msg.dst_port} in {self}, dropping msg'
                )
                return

            port._deliver(decode_pld(msg.pld, msg.pld_type))
            return

        elif (
            (handle := self._children.get(dst))
            and
            handle.chan is not None
        ):
            chan = handle.chan

        elif self._parent_chan is not None:
            chan = self._parent_chan

        if chan is None:
            log.warning(
                f'No route to isolate {dst} from {self}, dropping msg'
            )
            return

        try:
            await chan.send(msg)
        except TransportClosed:
            log.transport(
                f'Peer {chan.uid} hung up, dropping msg for {dst}'
            )

    async def _process_messages(
        self,
        chan: Channel,
        handle: IsolateHandle|None = None,
    ) -> None:
        '''
        Handle every msg from a peer isolate until it hangs up.

        '''
        async for msg in chan:
            match msg:
                case Deliver():
                    await self._route(msg)

                case Done():
                    log.runtime(f'Isolate {chan.uid} is done')
                    if handle:
                        handle._done.set()

                case Error():
                    err: RemoteIsolateError = unpack_error(msg)
                    log.runtime(f'Isolate {chan.uid} errored:\n{err}')
                    if handle:
                        handle.error = err
                        handle._done.set()

                case _:
                    log.warning(
                        f'Unexpected msg from {chan.uid}:\n'
                        f'{msg.pformat()}\n'
                    )


class IsolateHandle:
    '''
    The parent's view of a spawned child isolate.

    '''
    def __init__(
        self,
        name: str,
        uid: tuple[str, str],
    ) -> None:
        self.name: str = name
        self.uid: tuple[str, str] = uid
        self.proc: trio.Process|None = None
        self.chan: Channel|None = None
        self.error: RemoteIsolateError|None = None

        self._connected = trio.Event()
        self._done = trio.Event()

    def __repr__(self) -> str:
        return (
            f'<IsolateHandle {self.name!r} '
            f'pid={self.proc.pid if self.proc else None} '
            f'done={self.done}>'
        )

    @property
    def done(self) -> bool:
        return self._done.is_set()

    async def wait(self) -> None:
        '''
        Wait for the child's entrypoint (and remaining background
        work) to complete.

        '''
        await self._done.wait()


async def hard_kill(
    proc: trio.Process,
    terminate_after: float = 1.6,
) -> None:
    '''
    Un-gracefully terminate an OS level `trio.Process` after timeout.

    '''
    log.cancel(f'Terminating sub-proc {proc}')
    with trio.move_on_after(terminate_after):
        try:
            await proc.wait()
        finally:
            if proc.returncode is None:
                proc.kill()

    if proc.returncode is None:
        log.critical(f'#ZOMBIE_LORD_IS_HERE: {proc}')
        with trio.CancelScope(shield=True):
            await proc.wait()


class IsolateNursery:
    '''
    Spawn and supervise child isolates; opened with
    `open_isolate_nursery()`.

    '''
    def __init__(
        self,
        isolate: Isolate,
    ) -> None:
        self._isolate = isolate
        self._proc_tn: trio.Nursery|None = None
        self._addr: tuple[str, int]|None = None
        self._handles: dict[tuple[str, str], IsolateHandle] = {}

    def __repr__(self) -> str:
        return (
            f'<IsolateNursery of {self._isolate} addr={self._addr} '
            f'children={len(self._handles)}>'
        )

    async def spawn(
        self,
        entrypoint: Callable[[Any], Any],
        message: Any = None,
        name: str|None = None,
    ) -> IsolateHandle:
        '''
        Start a new isolate (sub-process) which runs
        `entrypoint(message)`; `entrypoint` must be a module level
        function and `message` an encodable payload.

        Returns once the child has received its start msg.

        '''
        name = name or entrypoint.__name__
        pld, pld_type = encode_pld(message)
        start = Start(
            func=func_ref(entrypoint),
            pld=pld,
            pld_type=pld_type,
            parent_main=figure_out_main(),
        )
        handle = IsolateHandle(
            name=name,
            uid=(name, str(uuid.uuid4())),
        )
        self._handles[handle.uid] = handle
        self._isolate._children[handle.uid] = handle
        return await self._proc_tn.start(
            partial(
                self._run_proc,
                handle,
                start,
            ),
            name=f'isolate:{name}',
        )

    async def wait_for_peer(
        self,
        handle: IsolateHandle,
    ) -> Channel:
        '''
        Wait for the child to connect back; error if its process
        exits before that.

        '''
        async with trio.open_nursery() as tn:

            async def _watch_proc():
                await handle.proc.wait()
                tn.cancel_scope.cancel()

            tn.start_soon(_watch_proc)
            await handle._connected.wait()
            tn.cancel_scope.cancel()

        if not handle._connected.is_set():
            raise RemoteIsolateError(
                f'Isolate {handle.name!r} exited with code '
                f'{handle.proc.returncode} before connecting',
                src_uid=handle.uid,
            )

        return handle.chan

    async def _run_proc(
        self,
        handle: IsolateHandle,
        start: Start,
        task_status: trio.TaskStatus[IsolateHandle] = trio.TASK_STATUS_IGNORED,
    ) -> None:
        spawn_cmd: list[str] = [
            sys.executable,
            '-m',
            'playground._child',
            '--uid',
            str(handle.uid),
            '--parent_addr',
            str(self._addr),
        ]
        if loglevel := _state._runtime_vars['_loglevel']:
            spawn_cmd += [
                '--loglevel',
                loglevel,
            ]

        proc: trio.Process|None = None
        try:
            proc = await trio.lowlevel.open_process(spawn_cmd)
            handle.proc = proc
            log.runtime(
                'Started new sub-proc\n'
                f'|_{proc}\n'
            )
            chan: Channel = await self.wait_for_peer(handle)
            await chan.send(start)
            task_status.started(handle)

            await proc.wait()

            # the conn handler flags done once the channel closes
            await handle._done.wait()

        finally:
            if proc:
                with trio.CancelScope(shield=True):
                    if proc.poll() is None:
                        await hard_kill(proc)

                log.runtime(f'Joined {proc}')

            self._handles.pop(handle.uid, None)
            self._isolate._children.pop(handle.uid, None)

        if handle.error:
            raise handle.error

        if proc.returncode:
            raise RemoteIsolateError(
                f'Isolate {handle.name!r} exited with code '
                f'{proc.returncode}',
                src_uid=handle.uid,
            )

    async def _handle_new_conn(
        self,
        stream: trio.SocketStream,
    ) -> None:
        '''
        Handle a child connecting back: receive its `Hello`, then its
        msgs until it hangs up.

        '''
        chan = Channel.from_stream(stream)
        async with chan:
            try:
                msg: MsgType = await chan.recv()
            except TransportClosed:
                log.transport(f'Peer hung up before handshake {chan}')
                return

            if not isinstance(msg, Hello):
                log.warning(
                    f'Expected `Hello` handshake msg, got\n'
                    f'{msg.pformat()}\n'
                )
                return

            uid: tuple[str, str] = tuple(msg.uid)
            handle: IsolateHandle|None = self._handles.get(uid)
            if handle is None:
                log.warning(f'Unknown isolate {uid} connected?')
                return

            chan.uid = uid
            handle.chan = chan
            handle._connected.set()
            log.runtime(f'Isolate {uid} connected\n|_{chan}')
            try:
                await self._isolate._process_messages(chan, handle)
            finally:
                handle.chan = None
                handle._done.set()


@acm
async def open_isolate_nursery() -> AsyncGenerator[IsolateNursery, None]:
    '''
    Open a nursery for spawning child isolates; on exit all children
    are waited on and any child error is re-raised as
    a `RemoteIsolateError`.

    '''
    isolate: Isolate = _state.current_isolate()
    an = IsolateNursery(isolate)

    async with (
        collapse_eg(),
        trio.open_nursery() as service_tn,
    ):
        listeners: list[trio.SocketListener] = await service_tn.start(
            partial(
                trio.serve_tcp,
                an._handle_new_conn,
                0,
                host='127.0.0.1',
            )
        )
        an._addr = listeners[0].socket.getsockname()[:2]
        log.runtime(f'Isolate nursery listening @ {an._addr}')
        try:
            async with (
                collapse_eg(),
                trio.open_nursery() as proc_tn,
            ):
                an._proc_tn = proc_tn
                yield an
        finally:
            service_tn.cancel_scope.cancel()
