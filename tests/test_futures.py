'''
Eager futures: scheduling, chaining and the multi-future helpers.

'''
import pytest
import trio
import playground
from playground import (
    Future,
    NoRuntime,
    future,
)
from playground._testing import playground_test


async def double(value: int, delay: float = 0.01) -> int:
    await trio.sleep(delay)
    return 2 * value


async def fail(msg: str = 'doggy', delay: float = 0.01):
    await trio.sleep(delay)
    raise ValueError(msg)


def test_no_runtime():
    '''
    Futures are scheduled in the root task nursery which only exists
    inside `playground.run()`.

    '''
    with pytest.raises(NoRuntime):
        future(double, 1)


@playground_test
async def test_future_is_scheduled_eagerly():
    ran: list[int] = []

    async def record():
        ran.append(1)

    fut = future(record)
    assert not fut.done
    await trio.sleep(0.01)

    # ran without anyone awaiting it
    assert ran == [1]
    assert fut.done
    assert await fut is None


@playground_test
async def test_then_chain_flattens_awaitables():
    fut = (
        future(double, 5)
        .then(lambda value: double(value))
        .then(lambda value: value + 1)
    )
    assert await fut == 21


@playground_test
async def test_error_skips_then_and_hits_catch_error():
    seen: list = []
    fut = (
        future(fail)
        .then(lambda _: seen.append('then'))
        .catch_error(lambda err: f'recovered from {err}')
    )
    assert await fut == 'recovered from doggy'
    assert not seen


@playground_test
async def test_then_on_error_callback():
    fut = future(fail).then(
        lambda _: 'value',
        on_error=lambda err: type(err).__name__,
    )
    assert await fut == 'ValueError'


@playground_test
async def test_catch_error_test_predicate():
    fut = future(fail).catch_error(
        lambda err: 'nope',
        test=lambda err: isinstance(err, KeyError),
    )
    with pytest.raises(ValueError):
        await fut


@playground_test
async def test_when_complete_keeps_outcome():
    completed: list[str] = []

    ok = future(double, 2).when_complete(lambda: completed.append('ok'))
    assert await ok == 4

    err = future(fail).when_complete(lambda: completed.append('err'))
    with pytest.raises(ValueError):
        await err

    assert completed == ['ok', 'err']


@playground_test
async def test_value_and_error_constructors():
    assert await Future.value(10) == 10

    fut = Future.error(KeyError('kitty'))
    assert fut.done
    with pytest.raises(KeyError):
        await fut


@playground_test
async def test_delayed():
    start: float = trio.current_time()
    assert await Future.delayed(0.1, lambda: 'late') == 'late'
    assert trio.current_time() - start >= 0.1


@playground_test
async def test_timeout():
    slow = future(double, 1, 0.3)
    with pytest.raises(trio.TooSlowError):
        await slow.timeout(0.05)

    fallback = future(double, 1, 0.3).timeout(0.05, lambda: 'fallback')
    assert await fallback == 'fallback'

    fast = future(double, 1).timeout(1)
    assert await fast == 2


@playground_test
async def test_wait_all_input_order():
    futs = [
        future(double, 1, 0.1),
        future(double, 2, 0.01),
        future(double, 3, 0.05),
    ]
    assert await playground.wait_all(futs) == [2, 4, 6]


@playground_test
async def test_wait_all_first_error_in_input_order():
    futs = [
        future(double, 1),
        future(fail, 'second', 0.1),
        future(fail, 'third', 0.01),
    ]
    with pytest.raises(ValueError) as excinfo:
        await playground.wait_all(futs)

    assert str(excinfo.value) == 'second'

    # consume the other failure as well
    with pytest.raises(ValueError):
        await futs[2]


@playground_test
async def test_for_each_is_sequential():
    order: list[str] = []

    async def visit(name: str):
        order.append(f'start {name}')
        await trio.sleep(0.01)
        order.append(f'end {name}')

    await playground.for_each(['a', 'b'], visit)
    assert order == ['start a', 'end a', 'start b', 'end b']


@playground_test
async def test_do_while():
    counter: list[int] = []

    async def step() -> bool:
        counter.append(1)
        return len(counter) < 5

    await playground.do_while(step)
    assert len(counter) == 5


def test_unobserved_error_is_logged(caplog):

    async def main():
        Future.error(RuntimeError('nobody cares'))

    playground.run(main)
    assert 'Unhandled error' in caplog.text
    assert 'nobody cares' in caplog.text


def test_run_returns_main_result():

    async def main(value: int):
        return await future(double, value)

    assert playground.run(main, 21) == 42
