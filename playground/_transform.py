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
Stream transformers: a function from `Stream` to `Stream`
encapsulated in a class.

'''
from __future__ import annotations
from abc import (
    ABC,
    abstractmethod,
)
import codecs
from contextlib import aclosing
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Generic,
    TypeVar,
)

from ._controller import StreamController
from ._streaming import (
    Stream,
    StreamSubscription,
    _Err,
)
from .log import get_logger


log = get_logger(__name__)

S = TypeVar('S')
T = TypeVar('T')


class StreamTransformer(ABC, Generic[S, T]):
    '''
    Transforms a `Stream[S]` into a `Stream[T]`; applied with
    `Stream.transform(transformer)` which simply calls `.bind()`.

    '''
    @abstractmethod
    def bind(self, stream: Stream[S]) -> Stream[T]:
        ...

    def cast(self) -> StreamTransformer:
        '''
        A "re-typed" view of this transformer; since the element types
        only exist for the type checker this is a pass-through which
        delegates to `.bind()`.

        '''
        return _BindTransformer(self.bind)

    @staticmethod
    def from_bind(
        bind: Callable[[Stream], Stream],
    ) -> StreamTransformer:
        return _BindTransformer(bind)

    @staticmethod
    def from_handlers(
        handle_data: Callable[[Any, EventSink], None]|None = None,
        handle_error: Callable[[BaseException, EventSink], None]|None = None,
        handle_done: Callable[[EventSink], None]|None = None,
    ) -> StreamTransformer:
        '''
        Build a transformer from per-event handlers each of which
        receives an `EventSink` to emit output events; any missing
        handler forwards its event unchanged.

        '''
        return _HandlerTransformer(
            handle_data=handle_data,
            handle_error=handle_error,
            handle_done=handle_done,
        )


class _BindTransformer(StreamTransformer):

    def __init__(self, bind: Callable[[Stream], Stream]) -> None:
        self._bind = bind

    def bind(self, stream: Stream) -> Stream:
        return self._bind(stream)


class EventSink:
    '''
    Synchronous output buffer handed to transformer handlers.

    '''
    def __init__(self) -> None:
        self._events: list = []
        self.closed: bool = False

    def add(self, value: Any) -> None:
        self._events.append(value)

    def add_error(self, error: BaseException) -> None:
        self._events.append(_Err(error))

    def close(self) -> None:
        self.closed = True

    def drain(self) -> list:
        evs, self._events = self._events, []
        return evs


class _HandlerTransformer(StreamTransformer):
    '''
    Event-at-a-time transformer, built by
    `StreamTransformer.from_handlers()` and used as the base of the
    text codecs below.

    Each subscription to a bound stream runs its own `._transform()`
    with a fresh `state` from `._new_state()`; handlers must keep any
    carried data there, never on `self`.

    '''
    def __init__(
        self,
        handle_data: Callable|None = None,
        handle_error: Callable|None = None,
        handle_done: Callable|None = None,
    ) -> None:
        self._handle_data = handle_data
        self._handle_error = handle_error
        self._handle_done = handle_done

    def _new_state(self) -> Any:
        return None

    def handle_data(
        self,
        data: Any,
        sink: EventSink,
        state: Any = None,
    ) -> None:
        if self._handle_data is None:
            sink.add(data)
        else:
            self._handle_data(data, sink)

    def handle_error(
        self,
        error: BaseException,
        sink: EventSink,
        state: Any = None,
    ) -> None:
        if self._handle_error is None:
            sink.add_error(error)
        else:
            self._handle_error(error, sink)

    def handle_done(
        self,
        sink: EventSink,
        state: Any = None,
    ) -> None:
        if self._handle_done is None:
            sink.close()
        else:
            self._handle_done(sink)

    def bind(self, stream: Stream) -> Stream:
        return Stream(
            lambda: self._transform(stream._events()),
            is_broadcast=stream.is_broadcast,
            pause_hooks=stream._pause_hooks,
            _events=True,
        )

    async def _transform(self, events: AsyncIterator) -> AsyncIterator:
        sink = EventSink()
        state: Any = self._new_state()
        async with aclosing(events):
            async for ev in events:
                try:
                    if isinstance(ev, _Err):
                        self.handle_error(ev.exc, sink, state)
                    else:
                        self.handle_data(ev, sink, state)
                except Exception as err:
                    sink.add_error(err)

                for out in sink.drain():
                    yield out

                if sink.closed:
                    return

            try:
                self.handle_done(sink, state)
            except Exception as err:
                sink.add_error(err)

            for out in sink.drain():
                yield out


class Utf8Decoder(_HandlerTransformer):
    '''
    Decode a stream of `bytes` chunks into `str` chunks; multi-byte
    sequences split across chunks are handled.

    '''
    def __init__(self, errors: str = 'strict') -> None:
        super().__init__()
        self.errors: str = errors

    @staticmethod
    def convert(data: bytes) -> str:
        return data.decode('utf-8')

    def _new_state(self) -> codecs.IncrementalDecoder:
        return codecs.getincrementaldecoder('utf-8')(
            errors=self.errors,
        )

    def handle_data(
        self,
        data: bytes,
        sink: EventSink,
        decoder: codecs.IncrementalDecoder,
    ) -> None:
        if text := decoder.decode(data):
            sink.add(text)

    def handle_done(
        self,
        sink: EventSink,
        decoder: codecs.IncrementalDecoder,
    ) -> None:
        if text := decoder.decode(b'', final=True):
            sink.add(text)
        sink.close()


class _Carry:
    '''
    Unterminated tail of the text seen so far by one subscription.

    '''
    __slots__ = ('text',)

    def __init__(self) -> None:
        self.text: str = ''


class LineSplitter(_HandlerTransformer):
    '''
    Split a stream of text chunks into lines terminated by any of
    `\\n`, `\\r\\n` or `\\r`; terminators are not included.

    '''
    @staticmethod
    def _split(
        text: str,
        final: bool = False,
    ) -> tuple[list[str], str]:
        lines: list[str] = []
        start: int = 0
        i: int = 0
        while i < len(text):
            char: str = text[i]
            if char == '\n':
                lines.append(text[start:i])
                start = i + 1

            elif char == '\r':
                if (
                    i + 1 == len(text)
                    and
                    not final
                ):
                    # might be the first half of a `\r\n`
                    break

                lines.append(text[start:i])
                if text[i + 1:i + 2] == '\n':
                    i += 1
                start = i + 1

            i += 1

        carry: str = text[start:]
        if (
            final
            and
            carry
        ):
            lines.append(carry)
            carry = ''

        return lines, carry

    @classmethod
    def split(cls, text: str) -> list[str]:
        return cls._split(text, final=True)[0]

    def _new_state(self) -> _Carry:
        return _Carry()

    def handle_data(
        self,
        data: str,
        sink: EventSink,
        carry: _Carry,
    ) -> None:
        lines, carry.text = self._split(carry.text + data)
        for line in lines:
            sink.add(line)

    def handle_done(
        self,
        sink: EventSink,
        carry: _Carry,
    ) -> None:
        lines, carry.text = self._split(carry.text, final=True)
        for line in lines:
            sink.add(line)
        sink.close()


class TypeCaster(ABC, Generic[S, T]):
    '''
    A class emulating a conversion function from `S` to `T`.

    '''
    @abstractmethod
    def __call__(self, value: S) -> T:
        ...


class Caster(TypeCaster[int, str]):

    def __call__(self, value: int) -> str:
        return f'<{value}>'


class CasterTransformer(StreamTransformer[S, T]):
    '''
    Apply a `TypeCaster` to every value of the bound stream.

    The output stream is provided by a `StreamController` whose
    listen starts a subscription on the input stream; pausing (or
    cancelling) the output is forwarded to that input subscription.

    '''
    def __init__(
        self,
        caster: TypeCaster[S, T],
        cancel_on_error: bool = True,

        _broadcast: bool = False,

    ) -> None:
        self._caster = caster
        self._cancel_on_error: bool = cancel_on_error
        self._stream: Stream[S]|None = None
        self._subscription: StreamSubscription[S]|None = None

        if _broadcast:
            self._controller = StreamController.broadcast(
                on_listen=self._on_listen,
                on_cancel=self._on_cancel,
            )
        else:
            self._controller = StreamController(
                on_listen=self._on_listen,
                on_cancel=self._on_cancel,
                on_pause=lambda: self._subscription.pause(),
                on_resume=lambda: self._subscription.resume(),
            )

    @classmethod
    def broadcast(
        cls,
        caster: TypeCaster[S, T],
        cancel_on_error: bool = True,
    ) -> CasterTransformer[S, T]:
        return cls(
            caster,
            cancel_on_error=cancel_on_error,
            _broadcast=True,
        )

    def _on_listen(self) -> None:
        self._subscription = self._stream.listen(
            self._on_data,
            on_error=self._on_error,
            on_done=self._on_done,
            cancel_on_error=self._cancel_on_error,
        )

    def _on_cancel(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def _on_data(self, data: S) -> None:
        self._controller.add(self._caster(data))

    def _on_error(self, error: BaseException) -> None:
        self._controller.add_error(error)
        if self._cancel_on_error:
            self._controller.close()

    def _on_done(self) -> None:
        self._controller.close()

    def bind(self, stream: Stream[S]) -> Stream[T]:
        self._stream = stream
        return self._controller.stream
