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
A stream source "container": the parameters needed to generate
a bounded pseudo-random integer stream plus the counters that
generation tracks.

'''
from __future__ import annotations
import random
from typing import AsyncIterator

import trio

from ._streaming import Stream


class StreamContainerCreator:
    '''
    Holds an event count, a display name and an inter-event delay
    for `.get_stream()`; after generation the number of emitted
    values greater than ten and the total count can be read back.

    The PRNG is shared by all instances (class level) and seeded
    such that every run of a demo produces the same sequence.

    '''
    _random: random.Random = random.Random(123)

    def __init__(
        self,
        count: int = 2,
        name: str = '',
        wait: float = 1,
    ) -> None:
        self._count: int = count
        self._name: str = name
        self._wait: float = wait
        self._greater_than_ten: int = 0
        self._total_count: int = 0

    def __repr__(self) -> str:
        return (
            f'StreamContainerCreator(count={self._count}, '
            f'name={self._name!r}, wait={self._wait})'
        )

    def set_count(self, count: int) -> StreamContainerCreator:
        self._count = count
        return self

    def set_name(self, name: str) -> StreamContainerCreator:
        self._name = name
        return self

    def set_wait(self, wait: float) -> StreamContainerCreator:
        self._wait = wait
        return self

    def get_greater_than_ten(self) -> int:
        return self._greater_than_ten

    def get_total_count(self) -> int:
        return self._total_count

    def get_stream(self) -> Stream[int]:
        '''
        Return a (single-subscription) stream of `count` values each
        announced by a print and emitted after sleeping `wait`
        seconds; the counters are reset when the stream is listened
        to.

        '''
        return Stream(self._generate)

    async def _generate(self) -> AsyncIterator[int]:
        self._greater_than_ten = 0
        self._total_count = 0
        prefix: str = f'[{self._name}] ' if self._name else ''
        rng: random.Random = type(self)._random

        for _ in range(self._count):
            self._total_count += 1
            value: int = rng.randint(0, 9) + rng.randint(0, 9)
            print(
                f'{prefix}Wait {self._wait} seconds and then generate '
                f'the value {value} ({self._total_count}/{self._count})'
            )
            await trio.sleep(self._wait)
            if value > 10:
                self._greater_than_ten += 1

            yield value
