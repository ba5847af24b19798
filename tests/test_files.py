'''
Buffered file writing and streamed/whole-file reading.

'''
import pytest
from playground import (
    IOSink,
    LineSplitter,
    StateError,
    Utf8Decoder,
    open_read,
    open_write,
    read_as_lines,
    read_as_string,
    read_as_string_sync,
)
from playground._testing import playground_test


@playground_test
async def test_sink_buffers_until_flush(tmp_path):
    path = tmp_path / 'log.txt'
    sink = open_write(path)
    assert isinstance(sink, IOSink)

    sink.write('Line ')
    sink.writeln(1)
    sink.write_all(['a', 'b', 'c'], separator=',')
    assert not path.exists()

    await sink.flush()
    assert path.read_text() == 'Line 1\na,b,c'

    sink.writeln()
    await sink.close()
    assert read_as_string_sync(path) == 'Line 1\na,b,c\n'

    with pytest.raises(StateError):
        sink.write('too late')

    # closing twice is a no-op
    await sink.close()


@playground_test
async def test_sink_append_mode(tmp_path):
    path = tmp_path / 'append.txt'
    path.write_text('first\n')

    async with open_write(path, mode='a') as sink:
        sink.writeln('second')

    assert await read_as_lines(path) == ['first', 'second']


@playground_test
async def test_open_read_chunks(tmp_path):
    path = tmp_path / 'data.bin'
    path.write_bytes(b'0123456789')

    chunks: list[bytes] = await open_read(path, chunk_size=4).to_list()
    assert chunks == [b'0123', b'4567', b'89']


@playground_test
async def test_open_read_is_lazy(tmp_path):
    path = tmp_path / 'missing.txt'
    stream = open_read(path)

    # nothing is opened until the stream is listened to
    with pytest.raises(FileNotFoundError):
        await stream.to_list()


@playground_test
async def test_read_lines_streamed_and_whole(tmp_path):
    path = tmp_path / 'lines.txt'
    path.write_bytes(b'Line 1\r\nLine 2\rLine 3')

    # line terminators are kept verbatim
    assert await read_as_string(path) == 'Line 1\r\nLine 2\rLine 3'
    assert read_as_string_sync(path) == 'Line 1\r\nLine 2\rLine 3'
    assert await read_as_lines(path) == ['Line 1', 'Line 2', 'Line 3']

    streamed: list[str] = await open_read(
        path,
        chunk_size=3,
    ).transform(Utf8Decoder()).transform(LineSplitter()).to_list()
    assert streamed == ['Line 1', 'Line 2', 'Line 3']
