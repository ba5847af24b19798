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
Root isolate runtime entrypoints: the "event loop" every demo runs
inside of.

'''
from __future__ import annotations
from contextlib import (
    asynccontextmanager as acm,
)
from functools import partial
from typing import (
    Any,
    AsyncGenerator,
    Awaitable,
    Callable,
)

import trio

from . import _state
from . import log as _log
from ._exceptions import StateError
from ._futures import report_unobserved
from ._isolate import Isolate
from .trionics import collapse_eg


logger = _log.get_logger(__name__)


@acm
async def open_root(
    loglevel: str|None = None,
    name: str = 'main',

    # only passed by `._child` when running as a sub-isolate
    _isolate: Isolate|None = None,

) -> AsyncGenerator[trio.Nursery, Any]:
    '''
    Open the process-wide root task nursery (the "event loop") and,
    when not already provided, the local `Isolate` record.

    Background deliveries (stream subscriptions, controller hooks)
    and eager `Future`s are all scheduled in this nursery and on exit
    every such task is waited on; the runtime runs until no work is
    pending.

    '''
    if _state._root_nursery is not None:
        raise StateError(
            'The root runtime is already open in this process!\n'
            f'isolate: {_state.current_isolate(err_on_no_runtime=False)}\n'
        )

    loglevel: str = (
        loglevel
        or
        _state._runtime_vars['_loglevel']
        or
        _log.get_loglevel()
    )
    _state._runtime_vars['_loglevel'] = loglevel
    _log.get_console_log(loglevel)

    isolate: Isolate = _isolate
    if isolate is None:
        isolate = Isolate(name=name)
        _state._current_isolate = isolate
        _state._runtime_vars['_is_root'] = True

    logger.runtime(f'Opening root runtime for {isolate}')
    try:
        async with (
            collapse_eg(),
            trio.open_nursery() as root_tn,
        ):
            _state._root_nursery = root_tn
            yield root_tn
            logger.runtime(
                'Root body complete, waiting on background tasks..'
            )

    finally:
        _state._root_nursery = None
        report_unobserved()

        if _isolate is None:
            _state._current_isolate = None
            _state._runtime_vars['_is_root'] = False

        logger.runtime(f'Root runtime for {isolate} terminated')


def _task_name(fn: Callable) -> str:
    while isinstance(fn, partial):
        fn = fn.func

    return getattr(fn, '__name__', repr(fn))


def run(
    main: Callable[..., Awaitable[Any]],
    *args,

    # runtime kwargs
    loglevel: str|None = None,
    name: str = 'main',

) -> Any:
    '''
    Sync entrypoint: run `main(*args)` inside `open_root()` under
    `trio.run()` and return its result once all background work
    has completed.

    `main` runs as a root nursery task named after it such that
    log records show eg. `my_main[123456]` as their task.

    '''
    result: list[Any] = []

    async def _capture() -> None:
        result.append(await main(*args))

    async def _main():
        async with open_root(
            loglevel=loglevel,
            name=name,
        ) as root_tn:
            root_tn.start_soon(
                _capture,
                name=_task_name(main),
            )

        return result[0]

    return trio.run(_main)
