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
Per process state

"""
from __future__ import annotations
from typing import (
    Any,
    TYPE_CHECKING,
)

if TYPE_CHECKING:
    import trio
    from ._isolate import Isolate


_current_isolate: Isolate|None = None  # type: ignore # noqa
_root_nursery: trio.Nursery|None = None

_runtime_vars: dict[str, Any] = {
    '_is_root': False,
    '_parent_addr': None,
    '_loglevel': None,
}


def current_isolate(
    err_on_no_runtime: bool = True,
) -> Isolate:
    '''
    Get the process-local isolate instance.

    '''
    if (
        err_on_no_runtime
        and _current_isolate is None
    ):
        from ._exceptions import NoRuntime
        raise NoRuntime(
            'No local isolate has been initialized yet?\n'
            '\nDid you forget to call one of,\n'
            '- `playground.run()`\n'
            '- `playground.open_root()`\n'
        )

    return _current_isolate


def current_nursery() -> trio.Nursery:
    '''
    Get the root task nursery: the "event loop" scope in which all
    background stream deliveries and eager futures run.

    '''
    if _root_nursery is None:
        from ._exceptions import NoRuntime
        raise NoRuntime(
            'No root task nursery is open?\n'
            'Background tasks (stream listeners, futures) can only be '
            'scheduled inside `playground.run()`/`open_root()`.\n'
        )

    return _root_nursery


def is_root_process() -> bool:
    return _runtime_vars['_is_root']
