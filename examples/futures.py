'''
Futures: placeholders for the value of an async call which is
scheduled the moment the future is created.

'''
import trio
import playground
from playground import future


async def sleep_and_double(in_value: int) -> int:
    await trio.sleep(0.1)
    return 2 * in_value


async def sleep_and_triple(in_value: int, duration: float = 0.1) -> int:
    await trio.sleep(duration)
    return 3 * in_value


COUNTER: int = 0


async def sleep_and_see() -> bool:
    global COUNTER
    if COUNTER > 10:
        print(f'COUNTER = {COUNTER} => terminate')
        return False

    print(f'COUNTER = {COUNTER} => continue')
    COUNTER += 1
    return True


def print_doubled(value: int) -> None:
    print(
        'The asynchronous function sleep_and_double() finally returned! '
        f'The returned value is {value}'
    )


def print_tripled(value: int) -> None:
    print(
        'The asynchronous function sleep_and_triple() finally returned! '
        f'The returned value is {value}'
    )


async def main():

    # the call is already scheduled but `v` holds no value yet
    v = future(sleep_and_double, 10)
    v.then(print_doubled)

    # same thing, shorter
    future(sleep_and_double, 10).then(print_doubled)

    # a chain of callbacks; returning an awaitable from a callback
    # delays the next link until it resolves
    def double_then_triple(value: int):
        print_doubled(value)
        return sleep_and_triple(value)

    (
        future(sleep_and_double, 10)
        .then(double_then_triple)
        .then(print_tripled)
        .when_complete(lambda: print('The execution is complete!'))
    )

    # wait for multiple calls
    def print_all(values: list[int]) -> None:
        print('The 2 asynchronous calls terminated! The returned values are')
        for value in values:
            print(f'Value {value}')

        assert values == [20, 30]

    playground.wait_all([
        future(sleep_and_double, 10),
        future(sleep_and_triple, 10, 0.2),
    ]).then(print_all)

    # visit a list of (already running) calls one after the other
    def on_each(fut) -> None:
        fut.then(
            lambda value: print(
                'One asynchronous call terminated. '
                f'Its returned value is {value}'
            )
        )

    playground.for_each(
        [
            future(sleep_and_double, 10),
            future(sleep_and_triple, 10, 0.5),
        ],
        on_each,
    )

    # repeat a call until it returns false
    playground.do_while(sleep_and_see).then(
        lambda _: print(f'do_while() stopped at COUNTER = {COUNTER}')
    )


if __name__ == '__main__':
    playground.run(main)
