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
Log like a forester, in the playground!

Every module logs through a `StackLevelAdapter` from `get_logger()`
which adds the custom `transport`/`runtime`/`cancel` levels and
stamps each record with the current isolate and `trio` task; the
colored console handler is only installed by `get_console_log()`
(normally via `playground.run()`).

"""
from collections.abc import Mapping
import logging
from logging import (
    LoggerAdapter,
    Logger,
    StreamHandler,
)
import sys

import colorlog  # type: ignore
from colorlog.escape_codes import escape_codes
import trio

from ._state import current_isolate


_proj_name: str = 'playground'
_default_loglevel: str = 'ERROR'

# NOTE: '{' format style, fields rendered by `colorlog`
LOG_FORMAT: str = ''.join([
    '{log_color}{asctime}{reset} ',
    '{thin_white}({isolate_name}[{isolate_uid}], {process}, {task}){reset} ',
    '{log_color}[{reset}{bold_log_color}{levelname}{reset}{log_color}] ',
    '{log_color}{name} ',
    '{thin_white}{filename}:{lineno}{reset} ',
    '{bold_white}{message}',
])
DATE_FORMAT: str = '%b %d %H:%M:%S'

# between the stdlib's DEBUG (10), INFO (20) and ERROR (40)
CUSTOM_LEVELS: dict[str, int] = {
    'TRANSPORT': 5,
    'RUNTIME': 15,
    'CANCEL': 22,
}
STD_PALETTE: dict[str, str] = {
    'CRITICAL': 'red',
    'ERROR': 'red',
    'WARNING': 'yellow',
    'CANCEL': 'yellow',
    'INFO': 'green',
    'RUNTIME': 'white',
    'DEBUG': 'white',
    'TRANSPORT': 'cyan',
}
BOLD_PALETTE: dict[str, dict[str, str]] = {
    'bold': {
        level: f'bold_{color}'
        for level, color in STD_PALETTE.items()
    },
}

for _lname, _lvalue in CUSTOM_LEVELS.items():
    logging.addLevelName(_lvalue, _lname)


def at_least_level(
    log: Logger|LoggerAdapter,
    level: int|str,
) -> bool:
    '''
    Is `level` (a number or any std/custom level name) enabled
    for `log`?

    '''
    if isinstance(level, str):
        name: str = level.upper()
        level: int = CUSTOM_LEVELS.get(name) or logging.getLevelName(name)

    return log.getEffectiveLevel() <= level


class StackLevelAdapter(LoggerAdapter):
    '''
    Logger "adapter" adding our custom level methods; records
    report the file/line of whoever called the level method.

    '''
    def at_least_level(
        self,
        level: int|str,
    ) -> bool:
        return at_least_level(self, level)

    def transport(self, msg: str) -> None:
        '''
        Port and wire level msg IO; anything at or below
        `.ipc.Channel`.

        '''
        self._emit(CUSTOM_LEVELS['TRANSPORT'], msg)

    def runtime(self, msg: str) -> None:
        '''
        Isolate, subscription and controller lifecycle.

        '''
        self._emit(CUSTOM_LEVELS['RUNTIME'], msg)

    def cancel(self, msg: str) -> None:
        '''
        Cancellation sequencing of subscriptions and isolates.

        '''
        self._emit(CUSTOM_LEVELS['CANCEL'], msg)

    def _emit(
        self,
        level: int,
        msg: str,
    ) -> None:
        if not self.isEnabledFor(level):
            return

        # skip this frame and the level method's to reach the caller
        self.logger._log(
            level,
            msg,
            (),
            extra=self.extra,
            stacklevel=3,
        )


def pformat_task_uid() -> str:
    '''
    The current `trio.Task`'s name plus the tail of its `id()`.

    '''
    task: trio.Task = trio.lowlevel.current_task()
    return f'{task.name}[{str(id(task))[-6:]}]'


class IsolateContextInfo(Mapping):
    '''
    The adapter's `extra`: a mapping which looks up the local
    isolate and task names lazily, at each record's emission.

    '''
    _getters = {
        'task': pformat_task_uid,
        'isolate': lambda: repr(current_isolate()),
        'isolate_name': lambda: current_isolate().name,
        'isolate_uid': lambda: current_isolate().uid[1][:6],
    }

    def __len__(self) -> int:
        return len(self._getters)

    def __iter__(self):
        return iter(self._getters)

    def __getitem__(self, key: str) -> str:
        try:
            return self._getters[key]()
        except RuntimeError:
            # outside `trio.run()` or before the runtime is opened
            return f'no {key} context'


def _sublog_path(
    name: str,
    root_name: str,
) -> str:
    '''
    Map a module's `__name__` to the (sub-)logger path for its
    (sub-)package: the root name and the leaf module are never
    repeated, the latter is already the `{filename}` field.

        'playground._streaming' -> ''
        'playground.ipc._chan' -> 'ipc'

    '''
    pkg, _, rest = name.partition('.')
    if pkg != root_name:
        return name

    return rest.rpartition('.')[0]


def get_logger(
    name: str|None = None,
    _root_name: str = _proj_name,
    logger: Logger|None = None,
) -> StackLevelAdapter:
    '''
    Return the `playground` root logger, or the sub-logger for the
    (sub-)package of module `name`, wrapped in our adapter.

    '''
    root: Logger = logger or logging.getLogger(_root_name)
    log: Logger = root
    if (
        name
        and
        name != _root_name
        and
        (path := _sublog_path(name, _root_name))
    ):
        log = root.getChild(path)
        log.level = root.level

    return StackLevelAdapter(
        log,
        IsolateContextInfo(),
    )


def get_console_log(
    level: str|int|None = None,
    logger: Logger|StackLevelAdapter|None = None,
    **kwargs,
) -> StackLevelAdapter:
    '''
    Set `level` on the (root by default) logger and make sure it
    has a `colorlog` formatted handler writing to stderr.

    Without a `level` the logger is returned unconfigured.

    '''
    if isinstance(logger, StackLevelAdapter):
        log: StackLevelAdapter = logger
    else:
        log = get_logger(
            logger=logger,
            **kwargs,
        )

    if not level:
        return log

    log.setLevel(
        level.upper()
        if isinstance(level, str)
        else level
    )

    target: Logger = log.logger
    if not any(
        getattr(handler, 'stream', None) is sys.stderr
        for handler in target.handlers
    ):
        handler = StreamHandler()
        handler.setFormatter(
            colorlog.ColoredFormatter(
                fmt=LOG_FORMAT,
                datefmt=DATE_FORMAT,
                log_colors=STD_PALETTE,
                secondary_log_colors=BOLD_PALETTE,
                style='{',
            )
        )
        target.addHandler(handler)

    return log


def get_loglevel() -> str:
    return _default_loglevel


def colorize(
    text: str,
    color: str = 'light_green',
) -> str:
    '''
    Wrap `text` in the ANSI escape for `color` (any key from
    `colorlog.escape_codes`, eg. 'light_red', 'bold_cyan') and
    reset afterward.

    '''
    return f'{escape_codes[color]}{text}{escape_codes["reset"]}'


# global module logger for playground itself
log: StackLevelAdapter = get_logger(_proj_name)
