'''
A unicast (single-subscription) stream propagates events from one
publisher to exactly one subscriber; this walks through the
different ways of consuming one.

'''
from typing import Callable

import trio
import playground
from playground import (
    Stream,
    StreamContainerCreator,
)


EVENTS_COUNT: int = 5
WAIT_BETWEEN_TWO_EVENTS: float = 0.1

# the signature of a function creating a stream
Streamer = Callable[[], Stream[int]]


@playground.stream
async def _stream_creator():
    for i in range(EVENTS_COUNT):
        yield 3 * i
        await trio.sleep(WAIT_BETWEEN_TWO_EVENTS)


stream_creator: Streamer = _stream_creator


async def main():

    # one way to get all the values fired in the stream
    async for value in stream_creator():
        print(f'[1] An event has been received. The value is {value}.')
    print('Done')

    # another way
    await stream_creator().for_each(
        lambda value: print(
            f'[2] An event has been received. The value is {value}.'
        )
    ).then(lambda _: print('Done'))

    # and yet another one
    subscription = stream_creator().listen(
        lambda value: print(
            f'[3] An event has been received. The value is {value}.'
        )
    )
    await playground.wait_all(
        [subscription.as_future()]
    ).then(lambda _: print('Done'))

    # returns a future completed once the source has been cleaned up
    subscription.cancel()

    # skip the first events
    shifted: list[int] = []
    async for value in stream_creator().skip(2):
        print(f'[4] An event has been received. The value is {value}.')
        shifted.append(value)
    print('Done')
    assert len(shifted) == 3

    assert await stream_creator().skip(4).length == 1

    # keep only some of the values
    container = StreamContainerCreator(wait=WAIT_BETWEEN_TWO_EVENTS)
    filtered = container.get_stream().where(lambda value: value > 10)
    count_greater_than_ten = filtered.length.then(lambda value: value)

    def check(value: int) -> None:
        if container.get_greater_than_ten() == value:
            print('SUCCESS')
        else:
            print('ERROR')
        assert container.get_greater_than_ten() == value

    await count_greater_than_ten.then(check)

    # perform an action upon all values
    doubled = stream_creator().map(lambda value: 2 * value)
    await doubled.for_each(
        lambda value: print(
            f'[5] An event has been received. The value is {value}.'
        )
    ).then(lambda _: print('Done'))

    # stop at the first value verifying a condition
    container = StreamContainerCreator(
        count=10,
        wait=WAIT_BETWEEN_TWO_EVENTS,
    )
    alert = container.get_stream().any(lambda value: value > 10)
    await alert.then(
        lambda value: print(
            'One value greater than 10 has been found '
            f'({"true" if value else "false"}).'
        )
    )

    # discard all events, only signal the end
    container = StreamContainerCreator(
        count=10,
        wait=WAIT_BETWEEN_TWO_EVENTS,
    )
    await container.get_stream().drain().then(print)

    # the Nth event
    container = StreamContainerCreator(
        count=10,
        wait=WAIT_BETWEEN_TWO_EVENTS,
    )
    await container.get_stream().element_at(3).then(
        lambda value: print(f'Got the fourth event: {value}!')
    )

    # test whether all values verify a constraint
    def report(value: bool) -> None:
        print(f'Value is {"true" if value else "false"}')
        if value:
            print('All values are greater than 0.')
        else:
            print('All values are not greater than 0.')

    container = StreamContainerCreator(
        count=10,
        wait=WAIT_BETWEEN_TWO_EVENTS,
    )
    await container.get_stream().every(
        lambda value: value > 0
    ).then(report)

    print('End of script')


if __name__ == '__main__':
    playground.run(main)
