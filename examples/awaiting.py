'''
Using `await` makes an async call read like a sync one: the next
statement only runs once the awaited future (or stream item) is
ready.

'''
import trio
import playground


class Container:
    _counter: int = 1

    @classmethod
    async def sleep_and_print(cls, duration: float = 0.2) -> None:
        await trio.sleep(duration)
        print(f'Publishing data {cls._counter}')
        cls._counter += 1

    @classmethod
    async def sleep_and_return(cls, duration: float = 0.2) -> str:
        await trio.sleep(duration)
        data: str = f'Publishing data {cls._counter}'
        cls._counter += 1
        return data


@playground.stream
async def stream_creator():
    for i in range(3):
        yield 3 * i
        await trio.sleep(0.1)


async def main():

    # wait for each call to complete before starting the next
    for _ in range(3):
        await Container.sleep_and_print(0.1)
        print('...')

    # the same with a chain of callbacks
    await (
        playground.future(Container.sleep_and_print, 0.1)
        .then(lambda _: Container.sleep_and_print(0.1))
        .then(lambda _: Container.sleep_and_print(0.1))
    )

    # use the returned value
    for _ in range(3):
        v: str = await Container.sleep_and_return(0.1)
        print(f'The data collected is {v}')

    assert v == 'Publishing data 9'

    # wait for each value of a stream
    values: list[int] = []
    async for value in stream_creator():
        print(f'> {value}')
        values.append(value)

    assert values == [0, 3, 6]
    print('Terminate the script')


if __name__ == '__main__':
    playground.run(main)
