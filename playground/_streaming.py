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
Lazy, listenable async event streams.

A `Stream` wraps a *factory* of async iterables and does nothing
until it is listened to; each listen (or `async for`) opens a fresh
"event" iterator which yields either values or boxed errors such
that errors can be delivered to listeners without terminating the
stream (much like a `trio` memory channel carrying an `outcome`).

Streams come in two flavours:

- single-subscription (the default) which may only be listened to
  once,
- broadcast which accept any number of listeners each of which
  only sees events emitted after it subscribed.

'''
from __future__ import annotations
from contextlib import aclosing
from functools import wraps
import inspect
import math
from typing import (
    Any,
    AsyncIterable,
    AsyncIterator,
    Callable,
    Generic,
    Iterable,
    TypeVar,
    TYPE_CHECKING,
)

import trio

from ._exceptions import StateError
from ._futures import (
    Future,
    resolve,
)
from ._state import current_nursery
from .log import get_logger
from .trionics import collapse_eg

if TYPE_CHECKING:
    from ._transform import StreamTransformer


log = get_logger(__name__)

T = TypeVar('T')
R = TypeVar('R')

_sentinel = object()

# (on_pause, on_resume) callbacks of a stream's producer
PauseHooks = tuple[
    Callable[[], None],
    Callable[[], None],
]


class _Err:
    '''
    An error event: boxes an exception raised by a stream's source
    (or some operator callback) for delivery to listeners.

    '''
    __slots__ = ('exc',)

    def __init__(self, exc: BaseException) -> None:
        self.exc = exc

    def __repr__(self) -> str:
        return f'_Err({self.exc!r})'


def fire_hook(
    hook: Callable[..., Any]|None,
    *args,
) -> None:
    '''
    Call a (maybe async) lifecycle hook synchronously, scheduling any
    awaitable result in the root task nursery.

    '''
    if hook is None:
        return

    result = hook(*args)
    if inspect.isawaitable(result):
        Future.spawn(resolve, result)


async def _catching(
    source: AsyncIterable,
) -> AsyncIterator:
    '''
    Adapt a plain async iterable of values to the event protocol;
    an error raised by the source is yielded as a final `_Err`.

    '''
    ait: AsyncIterator = aiter(source)
    try:
        async for value in ait:
            yield value

    except Exception as err:
        yield _Err(err)

    finally:
        if aclose := getattr(ait, 'aclose', None):
            await aclose()


async def _values(
    events: AsyncIterator,
) -> AsyncIterator:
    '''
    Unbox an event iterator back to plain values, raising the first
    error event.

    '''
    async with aclosing(events):
        async for ev in events:
            if isinstance(ev, _Err):
                raise ev.exc

            yield ev


class Stream(Generic[T]):
    '''
    A source of asynchronous events (values or errors) which is
    started only once someone listens.

    '''
    def __init__(
        self,
        source: Callable[[], AsyncIterable[T]],
        is_broadcast: bool = False,
        pause_hooks: PauseHooks|None = None,

        # `source` already yields (boxed) events
        _events: bool = False,

    ) -> None:
        if _events:
            self._factory = source
        else:
            self._factory = lambda: _catching(source())

        self.is_broadcast: bool = is_broadcast
        self._pause_hooks: PauseHooks|None = pause_hooks
        self._listened: bool = False

    def __repr__(self) -> str:
        kind: str = 'broadcast' if self.is_broadcast else 'single'
        return f'<Stream({kind}) listened={self._listened}>'

    def _events(self) -> AsyncIterator:
        '''
        Open a new event iterator; a broadcast source registers the
        new listener immediately (at call time) such that it sees
        every event emitted from now on.

        '''
        if not self.is_broadcast:
            if self._listened:
                raise StateError('Stream has already been listened to.')
            self._listened = True

        return self._factory()

    def _derive(
        self,
        op: Callable[..., AsyncIterator],
        *args,
    ) -> Stream:
        return Stream(
            lambda: op(self._events(), *args),
            is_broadcast=self.is_broadcast,
            pause_hooks=self._pause_hooks,
            _events=True,
        )

    # constructors
    @classmethod
    def from_iterable(
        cls,
        iterable: Iterable[T],
    ) -> Stream[T]:
        async def _gen():
            for value in iterable:
                await trio.lowlevel.checkpoint()
                yield value

        return cls(_gen)

    @classmethod
    def value(cls, value: T) -> Stream[T]:
        return cls.from_iterable([value])

    @classmethod
    def error(cls, error: BaseException) -> Stream:
        async def _gen():
            yield _Err(error)

        return cls(_gen, _events=True)

    @classmethod
    def empty(cls) -> Stream:
        return cls.from_iterable(())

    @classmethod
    def from_future(cls, fut: Future[T]) -> Stream[T]:
        async def _gen():
            yield await fut

        return cls(_gen)

    @classmethod
    def periodic(
        cls,
        seconds: float,
        computation: Callable[[int], T]|None = None,
    ) -> Stream[T]:
        '''
        An endless stream emitting `computation(tick)` (or `None`)
        every `seconds`.

        '''
        async def _gen():
            tick: int = 0
            while True:
                await trio.sleep(seconds)
                yield (
                    computation(tick)
                    if computation is not None
                    else None
                )
                tick += 1

        return cls(_gen)

    # iteration + subscription
    def __aiter__(self) -> AsyncIterator[T]:
        return _values(self._events())

    def listen(
        self,
        on_data: Callable[[T], Any]|None = None,
        on_error: Callable[[BaseException], Any]|None = None,
        on_done: Callable[[], Any]|None = None,
        cancel_on_error: bool = False,
    ) -> StreamSubscription[T]:
        '''
        Subscribe to this stream: events are delivered to the
        provided callbacks from a background task in the root task
        nursery.

        '''
        sub = StreamSubscription(
            self._events(),
            on_data=on_data,
            on_error=on_error,
            on_done=on_done,
            cancel_on_error=cancel_on_error,
            pause_hooks=self._pause_hooks,
        )
        sub._start(current_nursery())
        return sub

    def as_broadcast_stream(self) -> Stream[T]:
        '''
        Return a broadcast stream fed by (a single listen of) this
        stream; the source is listened to on the first subscription
        and keeps running after listeners cancel.

        '''
        if self.is_broadcast:
            return self

        hub = _FanOut(self)
        return Stream(
            hub.subscribe,
            is_broadcast=True,
            _events=True,
        )

    # derived streams
    def map(self, convert: Callable[[T], R]) -> Stream[R]:
        return self._derive(_map, convert)

    def where(self, test: Callable[[T], bool]) -> Stream[T]:
        return self._derive(_where, test)

    def skip(self, count: int) -> Stream[T]:
        return self._derive(_skip, count)

    def take(self, count: int) -> Stream[T]:
        return self._derive(_take, count)

    def skip_while(self, test: Callable[[T], bool]) -> Stream[T]:
        return self._derive(_skip_while, test)

    def take_while(self, test: Callable[[T], bool]) -> Stream[T]:
        return self._derive(_take_while, test)

    def expand(self, convert: Callable[[T], Iterable[R]]) -> Stream[R]:
        return self._derive(_expand, convert)

    def async_map(self, convert: Callable[[T], Any]) -> Stream:
        return self._derive(_async_map, convert)

    def distinct(
        self,
        equals: Callable[[T, T], bool]|None = None,
    ) -> Stream[T]:
        return self._derive(_distinct, equals)

    def handle_error(
        self,
        on_error: Callable[[BaseException], Any],
        test: Callable[[BaseException], bool]|None = None,
    ) -> Stream[T]:
        return self._derive(_handle_error, on_error, test)

    def transform(
        self,
        transformer: StreamTransformer,
    ) -> Stream:
        return transformer.bind(self)

    # terminal ops: each listens once and returns a `Future`
    def _terminal(
        self,
        op: Callable[..., Any],
        *args,
    ) -> Future:
        values: AsyncIterator = _values(self._events())
        return Future.spawn(op, values, *args)

    def for_each(self, action: Callable[[T], Any]) -> Future[None]:
        return self._terminal(_for_each, action)

    @property
    def length(self) -> Future[int]:
        return self._terminal(_length)

    @property
    def first(self) -> Future[T]:
        return self._terminal(_first)

    @property
    def last(self) -> Future[T]:
        return self._terminal(_last)

    @property
    def single(self) -> Future[T]:
        return self._terminal(_single)

    @property
    def is_empty(self) -> Future[bool]:
        return self._terminal(_is_empty)

    def element_at(self, index: int) -> Future[T]:
        return self._terminal(_element_at, index)

    def any(self, test: Callable[[T], bool]) -> Future[bool]:
        return self._terminal(_any, test)

    def every(self, test: Callable[[T], bool]) -> Future[bool]:
        return self._terminal(_every, test)

    def contains(self, needle: Any) -> Future[bool]:
        return self._terminal(_any, lambda value: value == needle)

    def drain(self, value: Any = None) -> Future:
        return self._terminal(_drain, value)

    def to_list(self) -> Future[list[T]]:
        return self._terminal(_to_list)

    def fold(
        self,
        initial: R,
        combine: Callable[[R, T], R],
    ) -> Future[R]:
        return self._terminal(_fold, initial, combine)

    def reduce(self, combine: Callable[[T, T], T]) -> Future[T]:
        return self._terminal(_fold, _sentinel, combine)

    def join(self, separator: str = '') -> Future[str]:
        return self._terminal(_join, separator)


def stream(
    agen_fn: Callable[..., AsyncIterator[T]],
) -> Callable[..., Stream[T]]:
    '''
    Decorate an async generator function such that calling it
    returns a (lazy, single-subscription) `Stream`.

    '''
    @wraps(agen_fn)
    def wrapper(*args, **kwargs) -> Stream[T]:
        return Stream(lambda: agen_fn(*args, **kwargs))

    return wrapper


class StreamSubscription(Generic[T]):
    '''
    An active listen on a `Stream`.

    Events are pulled from the source by a "pump" task into an
    unbounded buffer and handed to the callbacks by a "delivery"
    task; pausing only halts delivery, the producer keeps running.

    '''
    def __init__(
        self,
        events: AsyncIterator,
        on_data: Callable[[T], Any]|None = None,
        on_error: Callable[[BaseException], Any]|None = None,
        on_done: Callable[[], Any]|None = None,
        cancel_on_error: bool = False,
        pause_hooks: PauseHooks|None = None,
    ) -> None:
        self._events = events
        self._on_data = on_data
        self._on_error = on_error
        self._on_done = on_done
        self._cancel_on_error: bool = cancel_on_error
        self._pause_hooks = pause_hooks

        self._send, self._recv = trio.open_memory_channel(math.inf)
        self._pauses: int = 0
        self._resumed = trio.Event()
        self._resumed.set()

        self._cs = trio.CancelScope()
        self._canceled: bool = False
        self._finished = trio.Event()

    def __repr__(self) -> str:
        return (
            f'<StreamSubscription paused={self.is_paused} '
            f'canceled={self._canceled} '
            f'finished={self._finished.is_set()}>'
        )

    def on_data(self, handler: Callable[[T], Any]|None) -> None:
        self._on_data = handler

    def on_error(
        self,
        handler: Callable[[BaseException], Any]|None,
    ) -> None:
        self._on_error = handler

    def on_done(self, handler: Callable[[], Any]|None) -> None:
        self._on_done = handler

    @property
    def is_paused(self) -> bool:
        return self._pauses > 0

    def pause(
        self,
        resume_signal: Future|None = None,
    ) -> None:
        '''
        Halt delivery (events are buffered) until a matching
        `.resume()` or until `resume_signal` completes.

        '''
        if self._finished.is_set():
            return

        self._pauses += 1
        if self._pauses == 1:
            self._resumed = trio.Event()
            log.runtime(f'Paused {self}')
            if self._pause_hooks:
                self._pause_hooks[0]()

        if resume_signal is not None:
            async def _resume_on():
                await resume_signal.wait()
                self.resume()

            Future.spawn(_resume_on)

    def resume(self) -> None:
        if not self._pauses:
            return

        self._pauses -= 1
        if self._pauses == 0:
            self._resumed.set()
            log.runtime(f'Resumed {self}')
            if self._pause_hooks:
                self._pause_hooks[1]()

    def cancel(self) -> Future[None]:
        '''
        Stop delivery and close the source; the returned future
        completes once the source has been cleaned up.

        '''
        if not self._canceled:
            self._canceled = True
            log.cancel(f'Cancelling {self}')
            self._cs.cancel()

        return Future.spawn(self._finished.wait)

    def as_future(self, value: Any = None) -> Future:
        '''
        Return a future completing with `value` once the stream is
        done or with the first error (which also cancels this
        subscription).

        '''
        fut = Future(name='as_future')
        if self._finished.is_set():
            fut._set_value(value)
            return fut

        def _on_error(err: BaseException) -> None:
            fut._set_error(err)

        self._on_done = lambda: fut._set_value(value)
        self._on_error = _on_error
        self._cancel_on_error = True
        return fut

    def _start(self, tn: trio.Nursery) -> None:
        tn.start_soon(
            self._run,
            name=f'subscription:{id(self)}',
        )

    async def _run(self) -> None:
        try:
            with self._cs:
                async with (
                    collapse_eg(),
                    trio.open_nursery() as tn,
                ):
                    tn.start_soon(self._pump)
                    await self._deliver()
                    tn.cancel_scope.cancel()
        finally:
            self._finished.set()
            log.runtime(f'Finished {self}')

    async def _pump(self) -> None:
        async with (
            self._send,
            aclosing(self._events) as events,
        ):
            async for ev in events:
                self._send.send_nowait(ev)

    async def _wait_resumed(self) -> None:
        while self._pauses:
            await self._resumed.wait()

    async def _deliver(self) -> None:
        async with self._recv:
            async for ev in self._recv:
                await self._wait_resumed()
                if isinstance(ev, _Err):
                    if self._on_error is None:
                        # uncaught: crash the runtime
                        raise ev.exc

                    await resolve(self._on_error(ev.exc))
                    if self._cancel_on_error:
                        log.cancel(f'Cancelling {self} on error')
                        return

                elif self._on_data is not None:
                    await resolve(self._on_data(ev))

        await self._wait_resumed()
        if self._on_done is not None:
            await resolve(self._on_done())


class _FanOut:
    '''
    Broadcast hub: listens (once) to a single-subscription source and
    fans each event out to an unbounded memory channel per
    subscriber.

    '''
    def __init__(self, source: Stream) -> None:
        self._source = source
        self._subs: list[trio.MemorySendChannel] = []
        self._started: bool = False
        self._done: bool = False

    def subscribe(self) -> AsyncIterator:
        if self._done:
            # late listener of a finished source
            return _relay_nothing()

        send, recv = trio.open_memory_channel(math.inf)
        self._subs.append(send)
        if not self._started:
            self._started = True
            events: AsyncIterator = self._source._events()
            current_nursery().start_soon(
                self._pump,
                events,
                name=f'broadcast:{id(self)}',
            )

        return self._relay(send, recv)

    def _unsubscribe(self, send: trio.MemorySendChannel) -> None:
        if send in self._subs:
            self._subs.remove(send)
            send.close()

    async def _relay(
        self,
        send: trio.MemorySendChannel,
        recv: trio.MemoryReceiveChannel,
    ) -> AsyncIterator:
        try:
            async for ev in recv:
                yield ev
        finally:
            self._unsubscribe(send)
            recv.close()

    async def _pump(self, events: AsyncIterator) -> None:
        try:
            async with aclosing(events):
                async for ev in events:
                    for send in list(self._subs):
                        try:
                            send.send_nowait(ev)
                        except trio.BrokenResourceError:
                            log.transport(
                                f'Dropping event for departed listener {send}'
                            )
                            self._unsubscribe(send)
        finally:
            self._done = True
            for send in self._subs:
                send.close()
            self._subs.clear()


async def _relay_nothing() -> AsyncIterator:
    return
    yield


# operators over event iterators
async def _map(events: AsyncIterator, convert: Callable) -> AsyncIterator:
    async with aclosing(events):
        async for ev in events:
            if isinstance(ev, _Err):
                yield ev
                continue
            try:
                out = convert(ev)
            except Exception as err:
                yield _Err(err)
            else:
                yield out


async def _async_map(
    events: AsyncIterator,
    convert: Callable,
) -> AsyncIterator:
    async with aclosing(events):
        async for ev in events:
            if isinstance(ev, _Err):
                yield ev
                continue
            try:
                out = await resolve(convert(ev))
            except Exception as err:
                yield _Err(err)
            else:
                yield out


async def _where(events: AsyncIterator, test: Callable) -> AsyncIterator:
    async with aclosing(events):
        async for ev in events:
            if isinstance(ev, _Err):
                yield ev
                continue
            try:
                keep: bool = test(ev)
            except Exception as err:
                yield _Err(err)
            else:
                if keep:
                    yield ev


async def _expand(events: AsyncIterator, convert: Callable) -> AsyncIterator:
    async with aclosing(events):
        async for ev in events:
            if isinstance(ev, _Err):
                yield ev
                continue
            try:
                outs: list = list(convert(ev))
            except Exception as err:
                yield _Err(err)
            else:
                for out in outs:
                    yield out


async def _skip(events: AsyncIterator, count: int) -> AsyncIterator:
    async with aclosing(events):
        async for ev in events:
            if (
                count > 0
                and
                not isinstance(ev, _Err)
            ):
                count -= 1
                continue

            yield ev


async def _take(events: AsyncIterator, count: int) -> AsyncIterator:
    if count <= 0:
        await events.aclose()
        return

    async with aclosing(events):
        async for ev in events:
            yield ev
            if not isinstance(ev, _Err):
                count -= 1
                if count == 0:
                    return


async def _skip_while(events: AsyncIterator, test: Callable) -> AsyncIterator:
    skipping: bool = True
    async with aclosing(events):
        async for ev in events:
            if (
                skipping
                and
                not isinstance(ev, _Err)
            ):
                try:
                    skipping = test(ev)
                except Exception as err:
                    skipping = False
                    yield _Err(err)
                    continue

                if skipping:
                    continue

            yield ev


async def _take_while(events: AsyncIterator, test: Callable) -> AsyncIterator:
    async with aclosing(events):
        async for ev in events:
            if isinstance(ev, _Err):
                yield ev
                continue
            try:
                keep: bool = test(ev)
            except Exception as err:
                yield _Err(err)
                return

            if not keep:
                return
            yield ev


async def _distinct(
    events: AsyncIterator,
    equals: Callable|None,
) -> AsyncIterator:
    prev: Any = _sentinel
    async with aclosing(events):
        async for ev in events:
            if isinstance(ev, _Err):
                yield ev
                continue

            if prev is not _sentinel:
                try:
                    same: bool = (
                        equals(prev, ev)
                        if equals is not None
                        else prev == ev
                    )
                except Exception as err:
                    yield _Err(err)
                    continue

                if same:
                    continue

            prev = ev
            yield ev


async def _handle_error(
    events: AsyncIterator,
    on_error: Callable,
    test: Callable|None,
) -> AsyncIterator:
    async with aclosing(events):
        async for ev in events:
            if (
                isinstance(ev, _Err)
                and
                (test is None or test(ev.exc))
            ):
                try:
                    await resolve(on_error(ev.exc))
                except Exception as err:
                    yield _Err(err)
                continue

            yield ev


# terminal ops over (unboxed) value iterators
async def _for_each(values: AsyncIterator, action: Callable) -> None:
    async with aclosing(values):
        async for value in values:
            await resolve(action(value))


async def _length(values: AsyncIterator) -> int:
    count: int = 0
    async with aclosing(values):
        async for _ in values:
            count += 1

    return count


async def _first(values: AsyncIterator) -> Any:
    async with aclosing(values):
        async for value in values:
            return value

    raise StateError('No element')


async def _last(values: AsyncIterator) -> Any:
    last: Any = _sentinel
    async with aclosing(values):
        async for value in values:
            last = value

    if last is _sentinel:
        raise StateError('No element')

    return last


async def _single(values: AsyncIterator) -> Any:
    found: Any = _sentinel
    async with aclosing(values):
        async for value in values:
            if found is not _sentinel:
                raise StateError('Too many elements')
            found = value

    if found is _sentinel:
        raise StateError('No element')

    return found


async def _is_empty(values: AsyncIterator) -> bool:
    async with aclosing(values):
        async for _ in values:
            return False

    return True


async def _element_at(values: AsyncIterator, index: int) -> Any:
    if index < 0:
        await values.aclose()
        raise IndexError(f'Invalid negative index: {index}')

    count: int = 0
    async with aclosing(values):
        async for value in values:
            if count == index:
                return value
            count += 1

    raise IndexError(
        f'Index {index} out of range for stream of length {count}'
    )


async def _any(values: AsyncIterator, test: Callable) -> bool:
    async with aclosing(values):
        async for value in values:
            if test(value):
                return True

    return False


async def _every(values: AsyncIterator, test: Callable) -> bool:
    async with aclosing(values):
        async for value in values:
            if not test(value):
                return False

    return True


async def _drain(values: AsyncIterator, value: Any) -> Any:
    async with aclosing(values):
        async for _ in values:
            pass

    return value


async def _to_list(values: AsyncIterator) -> list:
    async with aclosing(values):
        return [value async for value in values]


async def _fold(
    values: AsyncIterator,
    initial: Any,
    combine: Callable,
) -> Any:
    acc: Any = initial
    async with aclosing(values):
        async for value in values:
            if acc is _sentinel:
                acc = value
                continue

            acc = combine(acc, value)

    if acc is _sentinel:
        raise StateError('No element')

    return acc


async def _join(values: AsyncIterator, separator: str) -> str:
    async with aclosing(values):
        return separator.join(
            [str(value) async for value in values]
        )
