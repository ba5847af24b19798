'''
Single-subscription and broadcast streams: operators, terminal ops,
error events and subscription control (pause, resume, cancel).

'''
import pytest
import trio
import playground
from playground import (
    Future,
    StateError,
    Stream,
    StreamController,
    future,
)
from playground._testing import playground_test


@playground.stream
async def counter(
    count: int = 5,
    delay: float = 0.,
):
    for i in range(count):
        yield i
        await trio.sleep(delay)


@playground.stream
async def broken(msg: str = 'broken'):
    yield 1
    raise ValueError(msg)


def collector() -> tuple[list, dict, trio.Event]:
    '''
    Callbacks which record every event a subscription delivers and
    flag its end.

    '''
    events: list = []
    done = trio.Event()

    def on_done():
        events.append('done')
        done.set()

    return events, dict(
        on_data=events.append,
        on_error=lambda err: events.append(repr(err)),
        on_done=on_done,
    ), done


@playground_test
async def test_stream_is_lazy():
    started: list[int] = []

    @playground.stream
    async def gen():
        started.append(1)
        yield 'doggy'

    s = gen()
    await trio.sleep(0.01)
    assert not started

    assert await s.to_list() == ['doggy']
    assert started == [1]


@playground_test
async def test_single_subscription_listen_twice():
    s = counter()
    assert not s.is_broadcast
    assert await s.to_list() == [0, 1, 2, 3, 4]

    with pytest.raises(StateError) as excinfo:
        s.listen(print)
    assert 'already been listened to' in str(excinfo.value)

    # terminal ops are listens too
    with pytest.raises(StateError):
        s.first

    with pytest.raises(StateError):
        aiter(s)


@playground_test
async def test_async_for():
    values: list[int] = []
    async for value in counter(3):
        values.append(value)

    assert values == [0, 1, 2]


@playground_test
async def test_skip_counts():
    assert await counter(5).skip(4).length == 1

    shifted: list[int] = []
    async for value in counter(5).skip(2):
        shifted.append(value)

    assert shifted == [2, 3, 4]


@playground_test
async def test_operator_chain():
    s = (
        Stream.from_iterable(range(10))
        .where(lambda v: v % 2 == 0)
        .map(lambda v: v * 10)
        .skip(1)
        .take(3)
    )
    assert await s.to_list() == [20, 40, 60]


@pytest.mark.parametrize(
    'op, expected',
    [
        (lambda s: s.take(0), []),
        (lambda s: s.take(10), [0, 1, 2, 3, 4, 5]),
        (lambda s: s.take_while(lambda v: v < 3), [0, 1, 2]),
        (lambda s: s.skip_while(lambda v: v < 3), [3, 4, 5]),
        (lambda s: s.expand(lambda v: [v] * (v % 3)), [1, 2, 2, 4, 5, 5]),
        (lambda s: s.map(lambda v: v // 2).distinct(), [0, 1, 2]),
        (
            lambda s: s.distinct(lambda a, b: a // 4 == b // 4),
            [0, 4],
        ),
    ],
    ids=[
        'take_none',
        'take_more_than_available',
        'take_while',
        'skip_while',
        'expand',
        'distinct',
        'distinct_custom_equals',
    ],
)
def test_operators(op, expected):

    async def main():
        return await op(Stream.from_iterable(range(6))).to_list()

    assert playground.run(main) == expected


@playground_test
async def test_async_map():

    async def slow_double(value: int) -> int:
        await trio.sleep(0.01)
        return value * 2

    assert await counter(3).async_map(slow_double).to_list() == [0, 2, 4]


@playground_test
async def test_terminal_ops():
    assert await counter(4).first == 0
    assert await counter(4).last == 3
    assert await Stream.value('kitty').single == 'kitty'
    assert await counter(4).element_at(2) == 2
    assert await counter(4).length == 4
    assert await counter(4).any(lambda v: v > 2)
    assert not await counter(4).every(lambda v: v > 0)
    assert await counter(4).contains(3)
    assert not await counter(4).contains(10)
    assert await counter(4).fold(100, lambda acc, v: acc + v) == 106
    assert await counter(4).reduce(lambda acc, v: acc * 10 + v) == 123
    assert await counter(4).join('-') == '0-1-2-3'
    assert await counter(4).drain('drained') == 'drained'
    assert await Stream.empty().is_empty
    assert not await counter(1).is_empty


@playground_test
async def test_terminal_op_errors():
    with pytest.raises(StateError) as excinfo:
        await Stream.empty().first
    assert str(excinfo.value) == 'No element'

    with pytest.raises(StateError):
        await Stream.empty().last

    with pytest.raises(StateError):
        await Stream.empty().reduce(lambda a, b: a + b)

    with pytest.raises(StateError) as excinfo:
        await counter(2).single
    assert str(excinfo.value) == 'Too many elements'

    with pytest.raises(IndexError):
        await counter(2).element_at(5)

    with pytest.raises(IndexError):
        await counter(2).element_at(-1)


@playground_test
async def test_from_future_and_value():
    async def compute() -> str:
        await trio.sleep(0.01)
        return 'computed'

    assert await Stream.from_future(future(compute)).to_list() == ['computed']
    assert await Stream.value(1).to_list() == [1]


@playground_test
async def test_periodic():
    s = Stream.periodic(0.01, lambda tick: tick * tick)
    assert await s.take(4).to_list() == [0, 1, 4, 9]


@playground_test
async def test_error_event_then_done():
    events, handlers, done = collector()
    broken().listen(**handlers)
    await done.wait()
    assert events == [1, "ValueError('broken')", 'done']


@playground_test
async def test_error_events_do_not_end_derived_streams():
    events, handlers, done = collector()
    Stream.from_iterable([1, 0, 2]).map(lambda v: 2 // v).listen(**handlers)
    await done.wait()
    assert events[0] == 2
    assert events[1].startswith('ZeroDivisionError')
    assert events[2:] == [1, 'done']


@playground_test
async def test_cancel_on_error():
    events, handlers, done = collector()
    sub = Stream.from_iterable([1, 0, 2]).map(lambda v: 2 // v).listen(
        cancel_on_error=True,
        **handlers,
    )
    await trio.sleep(0.05)
    assert not done.is_set()
    assert sub._finished.is_set()
    assert events[0] == 2
    assert events[1].startswith('ZeroDivisionError')
    assert len(events) == 2


@playground_test
async def test_stream_error_constructor():
    events, handlers, done = collector()
    Stream.error(KeyError('doggy')).listen(**handlers)
    await done.wait()
    assert events == ["KeyError('doggy')", 'done']


@playground_test
async def test_async_for_raises_error_event():
    values: list[int] = []
    with pytest.raises(ValueError):
        async for value in broken():
            values.append(value)

    assert values == [1]


@playground_test
async def test_handle_error():
    caught: list[BaseException] = []
    assert await broken().handle_error(caught.append).to_list() == [1]
    assert isinstance(caught[0], ValueError)

    # only matching errors are handled
    with pytest.raises(ValueError):
        await broken().handle_error(
            caught.append,
            test=lambda err: isinstance(err, KeyError),
        ).to_list()


def test_uncaught_error_crashes_runtime():
    '''
    A subscription without an `on_error` handler raises the error
    in the root task nursery, just like an uncaught exception.

    '''
    async def main():
        broken('uncaught').listen(lambda value: None)

    with pytest.raises(ValueError) as excinfo:
        playground.run(main)

    assert str(excinfo.value) == 'uncaught'


@playground_test
async def test_as_future():
    sub = counter(3).listen()
    assert await sub.as_future('finished') == 'finished'

    with pytest.raises(ValueError):
        await broken().listen().as_future()


@playground_test
async def test_async_callbacks():
    got: list[int] = []

    async def on_data(value: int):
        await trio.sleep(0.01)
        got.append(value)

    await counter(3).listen(on_data).as_future()
    assert got == [0, 1, 2]


@playground_test
async def test_pause_buffers_events():
    sc = StreamController()
    got: list[int] = []
    sub = sc.stream.listen(got.append)
    sub.pause()
    assert sub.is_paused
    assert sc.is_paused

    for i in range(3):
        sc.add(i)

    await trio.sleep(0.05)
    assert got == []

    sub.resume()
    assert not sub.is_paused
    await trio.sleep(0.05)
    assert got == [0, 1, 2]
    await sc.close()


@playground_test
async def test_nested_pauses():
    sc = StreamController()
    got: list[int] = []
    sub = sc.stream.listen(got.append)
    sub.pause()
    sub.pause()
    sc.add('doggy')

    sub.resume()
    await trio.sleep(0.02)
    assert sub.is_paused
    assert got == []

    sub.resume()
    await trio.sleep(0.02)
    assert got == ['doggy']

    # resuming an un-paused subscription is a no-op
    sub.resume()
    assert not sub.is_paused
    await sc.close()


@playground_test
async def test_pause_with_resume_signal():
    sc = StreamController()
    got: list[int] = []
    sub = sc.stream.listen(got.append)
    sub.pause(Future.delayed(0.05))
    sc.add(1)

    await trio.sleep(0.01)
    assert got == []

    await trio.sleep(0.1)
    assert got == [1]
    await sc.close()


@playground_test
async def test_done_is_deferred_while_paused():
    events, handlers, done = collector()
    sc = StreamController()
    sub = sc.stream.listen(**handlers)
    sub.pause()
    sc.add(1)
    sc.close()

    await trio.sleep(0.05)
    assert events == []

    sub.resume()
    await done.wait()
    assert events == [1, 'done']


@playground_test
async def test_cancel_stops_delivery():
    got: list[int] = []
    sub = Stream.periodic(0.01, lambda tick: tick).listen(got.append)
    await trio.sleep(0.1)

    await sub.cancel()
    received: int = len(got)
    assert received

    await trio.sleep(0.05)
    assert len(got) == received

    # cancelling twice is fine
    await sub.cancel()


@playground_test
async def test_as_broadcast_stream():
    s = counter(4, 0.01).as_broadcast_stream()
    assert s.is_broadcast
    assert s.as_broadcast_stream() is s

    sub1_events, handlers1, done1 = collector()
    sub2_events, handlers2, done2 = collector()
    s.listen(**handlers1)
    s.listen(**handlers2)
    await done1.wait()
    await done2.wait()
    assert sub1_events == sub2_events == [0, 1, 2, 3, 'done']


@playground_test
async def test_broadcast_terminal_ops_share_the_source():
    generated: list[int] = []

    @playground.stream
    async def gen():
        for i in range(3):
            generated.append(i)
            yield i
            await trio.sleep(0.01)

    s = gen().as_broadcast_stream()
    length, first, last = s.length, s.first, s.last
    assert await length == 3
    assert await first == 0
    assert await last == 2

    # the source was only run once
    assert generated == [0, 1, 2]


@playground_test
async def test_broadcast_late_listener_misses_earlier_events():
    sc = StreamController.broadcast()
    early, handlers1, done1 = collector()
    late, handlers2, done2 = collector()

    sc.stream.listen(**handlers1)
    sc.add(1)
    await trio.sleep(0.01)

    sc.stream.listen(**handlers2)
    sc.add(2)
    sc.close()

    await done1.wait()
    await done2.wait()
    assert early == [1, 2, 'done']
    assert late == [2, 'done']


@playground_test
async def test_derived_broadcast_streams_stay_broadcast():
    s = counter(3).as_broadcast_stream().map(lambda v: v + 1)
    assert s.is_broadcast

    a, b = s.to_list(), s.to_list()
    assert await a == await b == [1, 2, 3]
