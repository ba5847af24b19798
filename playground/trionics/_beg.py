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
Collapsing of `trio`'s strict exception groups: every nursery in the
runtime (root, subscription, isolate) raises a `BaseExceptionGroup`
even when only one task failed, but users (and demos) expect the
lone error itself.

'''
from contextlib import (
    asynccontextmanager as acm,
)


def collapse_exception_group(
    excgroup: BaseExceptionGroup[BaseException],
) -> BaseException:
    '''
    Recursively collapse any single-exception groups into that
    single contained exception.

    A group with more than one member is kept (with any nested
    single-member groups collapsed).

    '''
    exceptions: list[BaseException] = []
    modified: bool = False
    for exc in excgroup.exceptions:
        if isinstance(exc, BaseExceptionGroup):
            collapsed = collapse_exception_group(exc)
            modified = modified or collapsed is not exc
            exc = collapsed

        exceptions.append(exc)

    if len(exceptions) == 1:
        return exceptions[0]

    if modified:
        return excgroup.derive(exceptions)

    return excgroup


@acm
async def collapse_eg(
    hide_tb: bool = True,
):
    '''
    Re-raise a collapse-able `BaseExceptionGroup` raised in the body
    scope as its lone embedded (non-group) exception.

    '''
    __tracebackhide__: bool = hide_tb
    try:
        yield
    except BaseExceptionGroup as beg:
        exc: BaseException = collapse_exception_group(beg)
        if (
            exc is beg
            or
            isinstance(exc, BaseExceptionGroup)
        ):
            raise

        # hide the "during handling of <the beg>" console noise
        raise exc from exc.__cause__
