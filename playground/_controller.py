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
Stream controllers: a `Stream` plus a (sync) producer-side API to
push events into it from anywhere in the runtime.

'''
from __future__ import annotations
import math
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Generic,
    TypeVar,
)

import trio

from ._exceptions import StateError
from ._futures import Future
from ._streaming import (
    Stream,
    _Err,
    fire_hook,
)
from .log import get_logger


log = get_logger(__name__)

T = TypeVar('T')

Hook = Callable[[], Any]|None


class _ControllerBase(Generic[T]):
    '''
    Shared producer API of the single-subscription and broadcast
    controllers.

    '''
    stream: Stream[T]

    def __init__(
        self,
        on_listen: Hook = None,
        on_cancel: Hook = None,
    ) -> None:
        self._on_listen = on_listen
        self._on_cancel = on_cancel
        self._closed: bool = False
        self._done = Future(name='controller.done')

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def done(self) -> Future[None]:
        '''
        Completes once the stream's end has been delivered to its
        listener(s).

        '''
        return self._done

    @property
    def has_listener(self) -> bool:
        raise NotImplementedError

    def add(self, value: T) -> None:
        self._check_open('add')
        self._push(value)

    def add_error(self, error: BaseException) -> None:
        self._check_open('add_error')
        self._push(_Err(error))

    def close(self) -> Future[None]:
        if not self._closed:
            self._closed = True
            log.runtime(f'Closing {self}')
            self._close()

        return self._done

    def sink(self) -> Callable[[T], None]:
        return self.add

    def _set_done(self) -> None:
        if not self._done.done:
            self._done._set_value(None)

    def _check_open(self, op: str) -> None:
        if self._closed:
            raise StateError(f'Cannot {op} event after closing')

    def _push(self, ev: Any) -> None:
        raise NotImplementedError

    def _close(self) -> None:
        raise NotImplementedError


class StreamController(_ControllerBase[T]):
    '''
    Controller of a single-subscription stream; events added before
    the listener subscribes are buffered.

    '''
    def __init__(
        self,
        on_listen: Hook = None,
        on_pause: Hook = None,
        on_resume: Hook = None,
        on_cancel: Hook = None,
    ) -> None:
        super().__init__(
            on_listen=on_listen,
            on_cancel=on_cancel,
        )
        self._on_pause = on_pause
        self._on_resume = on_resume
        self._paused: bool = False
        self._listening: bool = False
        self._detached: bool = False

        self._send, self._recv = trio.open_memory_channel(math.inf)
        self.stream = Stream(
            self._subscribe,
            is_broadcast=False,
            pause_hooks=(self._pause, self._resume),
            _events=True,
        )

    @classmethod
    def broadcast(
        cls,
        on_listen: Hook = None,
        on_cancel: Hook = None,
    ) -> BroadcastStreamController:
        return BroadcastStreamController(
            on_listen=on_listen,
            on_cancel=on_cancel,
        )

    def __repr__(self) -> str:
        return (
            f'<StreamController listener={self._listening} '
            f'paused={self.is_paused} closed={self._closed}>'
        )

    @property
    def has_listener(self) -> bool:
        return self._listening

    @property
    def is_paused(self) -> bool:
        return (
            not self._listening
            or
            self._paused
        )

    def _push(self, ev: Any) -> None:
        try:
            self._send.send_nowait(ev)
        except trio.BrokenResourceError:
            log.transport(f'Listener of {self} is gone, dropping {ev!r}')

    def _close(self) -> None:
        self._send.close()
        if self._detached:
            self._set_done()

    def _pause(self) -> None:
        self._paused = True
        fire_hook(self._on_pause)

    def _resume(self) -> None:
        self._paused = False
        fire_hook(self._on_resume)

    def _subscribe(self) -> AsyncIterator:
        self._listening = True
        fire_hook(self._on_listen)
        return self._relay()

    async def _relay(self) -> AsyncIterator:
        completed: bool = False
        try:
            async with self._recv:
                async for ev in self._recv:
                    yield ev
            completed = True

        finally:
            self._listening = False
            self._detached = True
            if not completed:
                log.cancel(f'Listener of {self} cancelled')
                fire_hook(self._on_cancel)

            if self._closed:
                self._set_done()


class BroadcastStreamController(_ControllerBase[T]):
    '''
    Controller of a broadcast stream; events added while nobody
    listens are dropped.

    '''
    def __init__(
        self,
        on_listen: Hook = None,
        on_cancel: Hook = None,
    ) -> None:
        super().__init__(
            on_listen=on_listen,
            on_cancel=on_cancel,
        )
        self._subs: list[trio.MemorySendChannel] = []
        self.stream = Stream(
            self._subscribe,
            is_broadcast=True,
            _events=True,
        )

    def __repr__(self) -> str:
        return (
            f'<BroadcastStreamController listeners={len(self._subs)} '
            f'closed={self._closed}>'
        )

    @property
    def has_listener(self) -> bool:
        return bool(self._subs)

    @property
    def is_paused(self) -> bool:
        return not self._subs

    def _push(self, ev: Any) -> None:
        for send in list(self._subs):
            try:
                send.send_nowait(ev)
            except trio.BrokenResourceError:
                log.transport(f'Dropping event for departed listener {send}')
                self._unsubscribe(send)

    def _close(self) -> None:
        subs = list(self._subs)
        if not subs:
            self._set_done()

        for send in subs:
            send.close()

    def _subscribe(self) -> AsyncIterator:
        if self._closed:
            return _closed_relay()

        send, recv = trio.open_memory_channel(math.inf)
        self._subs.append(send)
        if len(self._subs) == 1:
            fire_hook(self._on_listen)

        return self._relay(send, recv)

    def _unsubscribe(self, send: trio.MemorySendChannel) -> None:
        if send not in self._subs:
            return

        self._subs.remove(send)
        send.close()
        if not self._subs:
            if self._closed:
                self._set_done()
            else:
                log.cancel(f'Last listener of {self} cancelled')
                fire_hook(self._on_cancel)

    async def _relay(
        self,
        send: trio.MemorySendChannel,
        recv: trio.MemoryReceiveChannel,
    ) -> AsyncIterator:
        try:
            async for ev in recv:
                yield ev
        finally:
            recv.close()
            self._unsubscribe(send)


async def _closed_relay() -> AsyncIterator:
    return
    yield
