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
A "human friendlier" `msgspec.Struct` for (log) printing wire msgs.

'''
from __future__ import annotations
import textwrap
from typing import (
    Any,
    Iterator,
)

from msgspec import (
    Raw,
    Struct as _Struct,
    structs,
)


def _field_lines(
    struct: _Struct,
) -> Iterator[str]:
    '''
    One `<name>: <type> = <repr>,` line per field; nested structs
    are rendered recursively and (still encoded) payloads only by
    size.

    '''
    for fi in structs.fields(struct):
        val: Any = getattr(struct, fi.name)
        typ: str = getattr(fi.type, '__name__', str(fi.type)).replace(' ', '')

        if isinstance(val, _Struct):
            val_str: str = pformat(val).lstrip()
        elif isinstance(val, Raw):
            val_str = f'<Raw {memoryview(val).nbytes} bytes>'
        else:
            val_str = repr(val)

        yield f'{fi.name}: {typ} = {val_str},'


def pformat(
    struct: _Struct,
    field_indent: int = 2,
) -> str:
    '''
    Multi-line, `pprint.pformat()` style rendering of a struct.

    '''
    qtn: str = type(struct).__qualname__
    lines: list[str] = list(_field_lines(struct))
    if not lines:
        return f'{qtn}()'

    body: str = textwrap.indent(
        '\n'.join(lines),
        prefix=' '*field_indent,
    )
    return (
        f'{qtn}(\n'
        f'{body}\n'
        ')'
    )


class Struct(_Struct):
    '''
    Base of all wire msg types.

    '''
    def to_dict(self) -> dict:
        return structs.asdict(self)

    pformat = pformat
