'''
File I/O: buffered async writes plus the many ways to read a file
back (a stream of byte chunks, a whole string, a stream of lines).

'''
from pathlib import Path
import tempfile

import playground
from playground import (
    LineSplitter,
    Utf8Decoder,
    open_read,
    open_write,
    read_as_string,
    read_as_string_sync,
)


async def main(path: Path):

    # writes are buffered; nothing is guaranteed to be on disk until
    # the sink is closed (which is async)
    fs = open_write(path)
    for i in range(1, 6):
        fs.write(f'Line {i}\n')
    await fs.close()

    def on_chunk(data: bytes) -> None:
        print(
            'One chunk of data has been read. It contains a sequence of '
            f'{len(data)} bytes. Decoded from UTF8:\n'
            f'{Utf8Decoder.convert(data)}'
        )

    # the stream only opens the file once listened to
    file_stream = open_read(path)
    await file_stream.listen(
        on_chunk,
        on_done=lambda: print('Done with [listen()]'),
    ).as_future()

    # a single subscription stream can not be listened to twice
    file_stream = open_read(path)
    async for data in file_stream:
        on_chunk(data)
    print('Done with [async for]')

    content: str = read_as_string_sync(path)
    print(f'[SYNC] The content of the file is:\n{content}')

    await playground.future(read_as_string, path).then(
        lambda content: print(f'[ASYNC] The content of the file is:\n{content}')
    )

    lines: list[str] = []

    def on_line(line: str) -> None:
        print(f'{line}: {len(line.encode())} bytes')
        lines.append(line)

    (
        open_read(path)
        .transform(Utf8Decoder())
        .transform(LineSplitter())
        .listen(
            on_line,
            on_done=lambda: print('File is now closed.'),
            on_error=lambda err: print(err),
        )
    )
    return lines


if __name__ == '__main__':
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / 'test.txt'
        lines = playground.run(main, path)
        assert lines == [f'Line {i}' for i in range(1, 6)]
