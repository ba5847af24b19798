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
Async file I/O on top of `trio`'s threaded file wrappers.

'''
from __future__ import annotations
from os import PathLike
from pathlib import Path
from typing import (
    Any,
    AsyncIterator,
    Iterable,
)

import trio

from ._exceptions import StateError
from ._streaming import Stream
from ._transform import LineSplitter
from .log import get_logger


log = get_logger(__name__)


class IOSink:
    '''
    A buffered text writer: `.write()`/`.writeln()` are synchronous
    and only buffer; data reaches the file on `await .flush()` or
    `await .close()`.

    '''
    def __init__(
        self,
        path: str|PathLike,
        mode: str = 'w',
        encoding: str = 'utf-8',
    ) -> None:
        self.path = trio.Path(path)
        self._mode: str = mode
        self.encoding: str = encoding
        self._buffer: list[str] = []
        self._file: Any = None
        self._closed: bool = False

    def __repr__(self) -> str:
        return (
            f'<IOSink {str(self.path)!r} buffered={len(self._buffer)} '
            f'closed={self._closed}>'
        )

    def write(self, obj: Any) -> None:
        if self._closed:
            raise StateError(f'{self} is closed')

        self._buffer.append(str(obj))

    def writeln(self, obj: Any = '') -> None:
        self.write(obj)
        self._buffer.append('\n')

    def write_all(
        self,
        objects: Iterable[Any],
        separator: str = '',
    ) -> None:
        self.write(separator.join(str(obj) for obj in objects))

    async def flush(self) -> None:
        if self._file is None:
            self._file = await trio.open_file(
                self.path,
                self._mode,
                encoding=self.encoding,
            )

        data: str = ''.join(self._buffer)
        self._buffer.clear()
        if data:
            await self._file.write(data)
        await self._file.flush()
        log.runtime(f'Flushed {len(data)} chars to {str(self.path)!r}')

    async def close(self) -> None:
        if self._closed:
            return

        try:
            await self.flush()
        finally:
            self._closed = True
            if self._file is not None:
                await self._file.aclose()

    async def __aenter__(self) -> IOSink:
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()


def open_write(
    path: str|PathLike,
    mode: str = 'w',
    encoding: str = 'utf-8',
) -> IOSink:
    return IOSink(
        path,
        mode=mode,
        encoding=encoding,
    )


def open_read(
    path: str|PathLike,
    chunk_size: int = 65536,
) -> Stream[bytes]:
    '''
    Return a (single-subscription) stream of the file's contents in
    `bytes` chunks; the file is only opened once listened to.

    '''
    async def _read_chunks() -> AsyncIterator[bytes]:
        async with await trio.open_file(path, 'rb') as f:
            while chunk := await f.read(chunk_size):
                yield chunk

    return Stream(_read_chunks)


async def read_as_string(
    path: str|PathLike,
    encoding: str = 'utf-8',
) -> str:
    # raw bytes: no universal-newline translation
    return (await trio.Path(path).read_bytes()).decode(encoding)


def read_as_string_sync(
    path: str|PathLike,
    encoding: str = 'utf-8',
) -> str:
    return Path(path).read_bytes().decode(encoding)


async def read_as_lines(
    path: str|PathLike,
    encoding: str = 'utf-8',
) -> list[str]:
    return LineSplitter.split(
        await read_as_string(path, encoding)
    )
