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
Eager "futures": placeholders for the outcome of an async call
which is scheduled (in the root task nursery) the moment the future
is created.

Unlike a bare `trio` task a `Future` captures its outcome (value or
error) instead of crashing its nursery, and callbacks can be chained
onto it with `.then()`/`.when_complete()` much like a promise.

'''
from __future__ import annotations
import inspect
from typing import (
    Any,
    Awaitable,
    Callable,
    Generator,
    Generic,
    Iterable,
    TypeVar,
)

import trio

from ._state import current_nursery
from .log import get_logger


log = get_logger(__name__)

T = TypeVar('T')

# futures which completed with an error no-one has (yet) consumed
_unobserved: dict[int, Future] = {}


async def resolve(value: Any) -> Any:
    '''
    Await `value` until it is no longer awaitable; this "flattens"
    callbacks which return coroutines or other futures.

    '''
    while inspect.isawaitable(value):
        value = await value

    return value


class Future(Generic[T]):
    '''
    A placeholder for a value (or error) which becomes available once
    an async computation completes.

    '''
    def __init__(
        self,
        name: str = '',
    ) -> None:
        self.name: str = name
        self._complete = trio.Event()
        self._value: T|None = None
        self._error: BaseException|None = None

    def __repr__(self) -> str:
        if not self._complete.is_set():
            state: str = 'pending'
        elif self._error is not None:
            state: str = f'error={self._error!r}'
        else:
            state: str = f'value={self._value!r}'

        return f'<Future {self.name!r} {state}>'

    @classmethod
    def spawn(
        cls,
        afn: Callable[..., Awaitable[T]|T],
        *args,
        nursery: trio.Nursery|None = None,
    ) -> Future[T]:
        '''
        Schedule `afn(*args)` to run "soon" and return a future for
        its outcome.

        '''
        name: str = getattr(afn, '__name__', repr(afn))
        fut = cls(name=name)
        (nursery or current_nursery()).start_soon(
            fut._run,
            afn,
            *args,
            name=f'future:{name}',
        )
        return fut

    @classmethod
    def value(cls, value: T) -> Future[T]:
        fut = cls(name='value')
        fut._set_value(value)
        return fut

    @classmethod
    def error(cls, error: BaseException) -> Future:
        fut = cls(name='error')
        fut._set_error(error)
        return fut

    @classmethod
    def delayed(
        cls,
        seconds: float,
        computation: Callable[[], Any]|None = None,
    ) -> Future:
        '''
        Run `computation()` (if provided) after `seconds`.

        '''
        async def _delayed():
            await trio.sleep(seconds)
            if computation is not None:
                return computation()

        return cls.spawn(_delayed)

    async def _run(
        self,
        afn: Callable[..., Any],
        *args,
    ) -> None:
        try:
            value = await resolve(afn(*args))
        except Exception as err:
            self._set_error(err)
        else:
            self._set_value(value)

    def _set_value(self, value: T) -> None:
        self._value = value
        self._complete.set()

    def _set_error(self, error: BaseException) -> None:
        self._error = error
        _unobserved[id(self)] = self
        self._complete.set()

    @property
    def done(self) -> bool:
        return self._complete.is_set()

    async def wait(self) -> None:
        '''
        Wait for completion without consuming the outcome.

        '''
        await self._complete.wait()

    async def result(self) -> T:
        '''
        Wait for completion and return the value or raise the error.

        '''
        await self._complete.wait()
        if self._error is not None:
            _unobserved.pop(id(self), None)
            raise self._error

        return self._value

    def __await__(self) -> Generator[Any, None, T]:
        return self.result().__await__()

    def then(
        self,
        on_value: Callable[[T], Any],
        on_error: Callable[[BaseException], Any]|None = None,
    ) -> Future:
        '''
        Register a callback for the value of this future, returning
        a new future completed with the callback's (flattened)
        result.

        An error skips `on_value` and is delivered to `on_error` if
        provided, otherwise it is passed through to the returned
        future.

        '''
        async def _then():
            try:
                value = await self.result()
            except Exception as err:
                if on_error is None:
                    raise
                return on_error(err)

            return on_value(value)

        return Future.spawn(_then)

    def catch_error(
        self,
        handler: Callable[[BaseException], Any],
        test: Callable[[BaseException], bool]|None = None,
    ) -> Future:
        '''
        Recover from an error (for which `test(err)`, if provided, is
        truthy) by completing the returned future with the result of
        `handler(err)`.

        '''
        async def _catch():
            try:
                return await self.result()
            except Exception as err:
                if (
                    test is not None
                    and
                    not test(err)
                ):
                    raise
                return handler(err)

        return Future.spawn(_catch)

    def when_complete(
        self,
        action: Callable[[], Any],
    ) -> Future[T]:
        '''
        Run `action()` on completion, value or error, then complete
        the returned future with this one's outcome.

        '''
        async def _finally():
            try:
                return await self.result()
            finally:
                await resolve(action())

        return Future.spawn(_finally)

    def timeout(
        self,
        seconds: float,
        on_timeout: Callable[[], Any]|None = None,
    ) -> Future[T]:
        '''
        Complete with this future's outcome unless it takes longer
        than `seconds`, in which case complete with `on_timeout()` or
        fail with `trio.TooSlowError`.

        '''
        async def _timeout():
            with trio.move_on_after(seconds):
                return await self.result()

            if on_timeout is None:
                raise trio.TooSlowError(
                    f'Future {self.name!r} timed out after {seconds}s'
                )
            return on_timeout()

        return Future.spawn(_timeout)


def future(
    afn: Callable[..., Awaitable[T]|T],
    *args,
) -> Future[T]:
    '''
    Schedule `afn(*args)` in the root task nursery and return
    a `Future` for its outcome.

    '''
    return Future.spawn(afn, *args)


def wait_all(
    futures: Iterable[Future],
) -> Future[list]:
    '''
    Wait for all `futures`, completing with their values in input
    order or failing with the error of the first (in input order)
    which failed.

    '''
    futs: list[Future] = list(futures)

    async def _wait_all() -> list:
        for fut in futs:
            await fut.wait()

        return [await fut for fut in futs]

    return Future.spawn(_wait_all)


def for_each(
    elements: Iterable[T],
    action: Callable[[T], Any],
) -> Future[None]:
    '''
    Run `action(element)` for each element sequentially, awaiting
    any awaitable result before moving on.

    '''
    async def _for_each() -> None:
        for element in elements:
            await resolve(action(element))

    return Future.spawn(_for_each)


def do_while(
    action: Callable[[], Any],
) -> Future[None]:
    '''
    Call `action()` until it returns (or resolves to) a falsy value.

    '''
    async def _do_while() -> None:
        while await resolve(action()):
            pass

    return Future.spawn(_do_while)


def report_unobserved() -> list[Future]:
    '''
    Log (and forget) all futures which failed without anyone
    consuming their error.

    '''
    futs: list[Future] = list(_unobserved.values())
    _unobserved.clear()
    for fut in futs:
        log.error(
            f'Unhandled error in {fut!r}',
            exc_info=fut._error,
        )

    return futs
