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
`pytest` utils helpers for testing `playground`'s runtime and
applications.

'''
from functools import (
    partial,
    wraps,
)
import inspect

import playground


def playground_test(fn):
    '''
    Decorator for async test fns to decorator-wrap them as "native"
    looking sync funcs runnable by `pytest` and auto invoked with
    `playground.run()` (much like the `pytest-trio` plugin's
    approach); the test body thus runs inside the root runtime.

    Basic deco use:
    ---------------

      @playground_test
      async def test_whatever():
          await ...

    If the test fn requests the `loglevel` fixture it is passed
    through to the test as well as to `playground.run()`.

    '''
    @wraps(fn)
    def wrapper(
        *args,
        loglevel=None,
        **kwargs
    ):
        if 'loglevel' in inspect.signature(fn).parameters:
            # allows test suites to define a 'loglevel' fixture
            # that activates the internal logging
            kwargs['loglevel'] = loglevel

        return playground.run(
            partial(fn, *args, **kwargs),
            loglevel=loglevel,
        )

    return wrapper
