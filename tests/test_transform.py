'''
Stream transformers: handler based, bind based and the controller
backed `CasterTransformer`, plus the text codecs.

'''
import pytest
import trio
from playground import (
    Caster,
    CasterTransformer,
    LineSplitter,
    Stream,
    StreamController,
    StreamTransformer,
    Utf8Decoder,
)
from playground._testing import playground_test


def test_caster_is_callable():
    caster = Caster()
    assert caster(1) == '<1>'
    assert list(map(caster, [2, 3])) == ['<2>', '<3>']


@playground_test
async def test_caster_transformer():
    out = Stream.from_iterable([1, 2, 3]).transform(
        CasterTransformer(Caster())
    )
    assert not out.is_broadcast
    assert await out.to_list() == ['<1>', '<2>', '<3>']


@playground_test
async def test_broadcast_caster_transformer():
    bc = StreamController.broadcast()
    out = bc.stream.transform(CasterTransformer.broadcast(Caster()))
    assert out.is_broadcast

    first = out.to_list()
    second = out.to_list()
    for i in range(3):
        bc.add(i)
    bc.close()

    expect = ['<0>', '<1>', '<2>']
    assert await first == expect
    assert await second == expect


@pytest.mark.parametrize(
    'cancel_on_error, expected',
    [
        (True, ['<1>', "ValueError('bad')", 'done']),
        (False, ['<1>', "ValueError('bad')", '<2>', 'done']),
    ],
    ids=['cancel_on_error', 'keep_going'],
)
def test_caster_transformer_errors(cancel_on_error, expected):

    @playground_test
    async def main():
        sc = StreamController()
        sc.add(1)
        sc.add_error(ValueError('bad'))
        sc.add(2)
        sc.close()

        events: list = []
        done = trio.Event()

        def on_done():
            events.append('done')
            done.set()

        sc.stream.transform(
            CasterTransformer(
                Caster(),
                cancel_on_error=cancel_on_error,
            )
        ).listen(
            events.append,
            on_error=lambda err: events.append(repr(err)),
            on_done=on_done,
        )
        await done.wait()
        assert events == expected

    main()


@playground_test
async def test_cancelling_output_cancels_input():
    sc = StreamController()
    got: list[str] = []
    sub = sc.stream.transform(
        CasterTransformer(Caster())
    ).listen(got.append)

    # the input is listened to as soon as the output is
    assert sc.has_listener

    sc.add(1)
    await trio.sleep(0.05)
    await sub.cancel()

    # input cancellation is scheduled by the output's cancel hook
    await trio.sleep(0.05)
    assert not sc.has_listener
    assert got == ['<1>']
    sc.close()


@playground_test
async def test_pausing_output_pauses_input():
    sc = StreamController()
    sub = sc.stream.transform(
        CasterTransformer(Caster())
    ).listen(lambda value: None)
    await trio.sleep(0.01)
    assert not sc.is_paused

    sub.pause()
    assert sc.is_paused

    sub.resume()
    assert not sc.is_paused

    sc.close()


@playground_test
async def test_from_handlers():
    doubler = StreamTransformer.from_handlers(
        handle_data=lambda data, sink: (sink.add(data), sink.add(data)),
    )
    assert await Stream.from_iterable([1, 2]).transform(
        doubler
    ).to_list() == [1, 1, 2, 2]

    recover = StreamTransformer.from_handlers(
        handle_error=lambda err, sink: sink.add(str(err)),
    )
    assert await Stream.error(ValueError('nope')).transform(
        recover
    ).to_list() == ['nope']

    def trailer(sink):
        sink.add('end')
        sink.close()

    assert await Stream.from_iterable(['a']).transform(
        StreamTransformer.from_handlers(handle_done=trailer)
    ).to_list() == ['a', 'end']

    # a handler closing its sink ends the output early
    def first_only(data, sink):
        sink.add(data)
        sink.close()

    assert await Stream.from_iterable([1, 2, 3]).transform(
        StreamTransformer.from_handlers(handle_data=first_only)
    ).to_list() == [1]


@playground_test
async def test_handler_errors_become_error_events():
    out = Stream.from_iterable([1]).transform(
        StreamTransformer.from_handlers(
            handle_data=lambda data, sink: 1 / 0,
        )
    )
    with pytest.raises(ZeroDivisionError):
        await out.to_list()


@playground_test
async def test_from_bind_and_cast():
    stringify = StreamTransformer.from_bind(lambda s: s.map(str))
    assert await Stream.from_iterable([1, 2]).transform(
        stringify.cast()
    ).to_list() == ['1', '2']

    assert await Stream.from_iterable([1]).transform(
        CasterTransformer(Caster()).cast()
    ).to_list() == ['<1>']


@playground_test
async def test_utf8_decoder_joins_split_sequences():
    chunks: list[bytes] = [b'caf\xc3', b'\xa9 cr', b'\xc3\xa8me']
    text: str = await Stream.from_iterable(chunks).transform(
        Utf8Decoder()
    ).join()
    assert text == 'café crème'
    assert Utf8Decoder.convert(b'caf\xc3\xa9') == 'café'


@playground_test
async def test_utf8_decoder_errors():
    with pytest.raises(UnicodeDecodeError):
        await Stream.value(b'\xff').transform(Utf8Decoder()).to_list()

    assert await Stream.value(b'a\xff').transform(
        Utf8Decoder(errors='replace')
    ).join() == 'a\ufffd'

    # a truncated sequence at the end is an error too
    with pytest.raises(UnicodeDecodeError):
        await Stream.value(b'caf\xc3').transform(Utf8Decoder()).to_list()


def test_line_splitter_split():
    assert LineSplitter.split('a\r\nb\rc\n') == ['a', 'b', 'c']
    assert LineSplitter.split('a\n\nb') == ['a', '', 'b']
    assert LineSplitter.split('') == []


@playground_test
async def test_line_splitter_across_chunks():
    chunks: list[str] = ['ab', 'c\r', '\nde\n', 'f']
    assert await Stream.from_iterable(chunks).transform(
        LineSplitter()
    ).to_list() == ['abc', 'de', 'f']

    # a trailing lone `\r` still terminates its line
    assert await Stream.from_iterable(['x\r']).transform(
        LineSplitter()
    ).to_list() == ['x']


@playground_test
async def test_decode_then_split():
    lines: list[str] = await Stream.from_iterable(
        [b'one\ntw', b'o\nth', b'ree']
    ).transform(Utf8Decoder()).transform(LineSplitter()).to_list()
    assert lines == ['one', 'two', 'three']


@playground_test
async def test_codec_state_is_per_listener():
    bc = StreamController.broadcast()
    splitter = LineSplitter()
    lines = bc.stream.transform(splitter)
    results = [
        lines.to_list(),
        lines.to_list(),
    ]
    for chunk in ['ab', 'c\nd', 'e\n']:
        bc.add(chunk)
    await bc.close()

    for result in results:
        assert await result == ['abc', 'de']

    # rebinding the same instance doesn't touch running listeners
    raw = StreamController.broadcast()
    decoder = Utf8Decoder()
    texts = [
        raw.stream.transform(decoder).join(),
        raw.stream.transform(decoder).join(),
    ]
    for chunk in [b'caf\xc3', b'\xa9']:
        raw.add(chunk)
    await raw.close()

    for text in texts:
        assert await text == 'café'
