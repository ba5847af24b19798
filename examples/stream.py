'''
Single-subscription streams: nothing is generated until someone
listens, and only one listener is ever allowed.

A broadcast stream built on top of one accepts any number of
listeners.

'''
import random

import trio
import playground
from playground import StateError


class Container:
    _random_generator = random.Random(123)

    @classmethod
    @playground.stream
    async def streamer(cls):
        for _ in range(3):
            v: int = cls._random_generator.randrange(1000)
            print(f'Wait 0.2 seconds and then generate a value {v}')
            await trio.sleep(0.2)
            yield v


async def main():

    print('Start the stream creator now')
    s = Container.streamer()
    print(
        'The stream is created, however it did not emit any value yet '
        '(since no listener is listening to it)'
    )

    print(
        'Wait 0.5 seconds, just to show that the stream will start to '
        'emit only when a listener will listen to it.'
    )
    await trio.sleep(0.5)
    print(
        'OK. Now let start to listen to the stream. '
        'This will start the emission of values.'
    )
    await s.for_each(
        lambda value: print(f'- The value {value} has been emited.')
    )
    print('Done')

    try:
        s.listen(print)
    except StateError as err:
        print(f'A single-subscription stream can not be reused: {err}')
    else:
        raise AssertionError('Listened twice to a single-subscription stream?')

    # or, we could have written...
    print('Start waiting for values from the stream...')
    async for value in Container.streamer():
        print(f'Received one value from the stream: {value}')
    print('Done')

    print(
        'Create a broadcast stream. Note that it does not start to emit '
        'values until it gets assigned a listener.'
    )
    s = Container.streamer().as_broadcast_stream()

    # three listeners each only interested in one aspect of the stream
    s.length.then(lambda value: print(f'Length: {value}'))
    s.first.then(lambda value: print(f'First: {value}'))
    s.last.then(lambda value: print(f'Last: {value}'))


if __name__ == '__main__':
    playground.run(main)
