'''
Computed attributes: properties whose setter converts (or encodes)
the assigned value and whose getter hands back a different view.

'''
from datetime import datetime
from enum import Enum
import re
from urllib.parse import (
    quote,
    unquote,
)

from playground import ConstStruct
from playground.log import colorize


# reserved chars which "full" URI encoding leaves as is
_URI_SAFE: str = "!#$&'()*+,-./:;=?@_~"


class LogLevel(Enum):
    debug = 'debug'
    info = 'info'
    warning = 'warning'
    error = 'error'
    fatal = 'fatal'


class Level(ConstStruct):
    criticality: int
    name: str


_levels: dict[LogLevel, Level] = {
    LogLevel.fatal: Level.const(0, 'FATAL'),
    LogLevel.error: Level.const(1, 'ERROR'),
    LogLevel.warning: Level.const(2, 'WARNING'),
    LogLevel.info: Level.const(3, 'INFO'),
    LogLevel.debug: Level.const(4, 'DEBUG'),
}


class LogMessage:
    '''
    A log record; multi-line messages are stored URI encoded.

    '''
    def __init__(self) -> None:
        self._timestamp: datetime|None = None
        self._level: Level|None = None
        self._serialized: bool = False
        self._message: str = ''

    @property
    def timestamp(self) -> str:
        return self._timestamp.isoformat(timespec='milliseconds')

    @timestamp.setter
    def timestamp(self, date_and_time: str) -> None:
        self._timestamp = datetime.fromisoformat(date_and_time)

    @property
    def level(self) -> Level:
        return self._level

    @level.setter
    def level(self, level: LogLevel) -> None:
        self._level = _levels[level]

    @property
    def message(self) -> str:
        if self._serialized:
            return unquote(self._message)

        return self._message

    @message.setter
    def message(self, message: str) -> None:
        if re.search(r'\r?\n', message):
            self._message = quote(message, safe=_URI_SAFE)
            self._serialized = True
        else:
            self._message = message
            self._serialized = False

    @property
    def criticality(self) -> int:
        return self._level.criticality

    @property
    def level_name(self) -> str:
        return self._level.name

    def __str__(self) -> str:
        return ' '.join([
            colorize(self.timestamp, 'light_cyan'),
            colorize(self._level.name, 'light_green'),
            colorize('S' if self._serialized else 'R', 'light_yellow'),
            self._message,
        ])


def main():
    m = LogMessage()
    m.timestamp = '2012-02-27 13:27:00'
    m.level = LogLevel.debug
    m.message = (
        'This is a typical DEBUG message\n'
        'with more than one line of text'
    )

    print(m)
    print(f'message: {colorize(m.message, "light_yellow")}')
    print(f'timestamp: {m.timestamp}')
    print(f'level criticality: {m.criticality}')
    print(f'level name: {m.level_name}')

    assert m.timestamp == '2012-02-27T13:27:00.000'
    assert '\n' in m.message
    assert '%0A' in m._message


if __name__ == '__main__':
    main()
