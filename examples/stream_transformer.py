'''
A stream transformer is a function from `Stream` to `Stream`
encapsulated in a class; here one which applies a "type caster"
(a callable class) to every value.

'''
import playground
from playground import (
    Caster,
    CasterTransformer,
    StreamController,
    StreamTransformer,
)


async def main():

    # a unicast controller injecting ints into the "input" stream
    controller_unicast = StreamController()
    integer_stream_unicast = controller_unicast.stream

    # `.transform()` calls the transformer's `.bind()`
    string_stream_unicast = integer_stream_unicast.transform(
        CasterTransformer(Caster())
    )
    string_stream_unicast.listen(lambda data: print(f'String => {data}'))

    for i in (1, 2, 3):
        controller_unicast.add(i)
    controller_unicast.close()

    # broadcast
    controller_broadcast = StreamController.broadcast()
    integer_stream_broadcast = controller_broadcast.stream
    string_stream_broadcast = integer_stream_broadcast.transform(
        CasterTransformer.broadcast(Caster())
    )
    string_stream_broadcast.listen(
        lambda data: print(f'Listener 1: String => {data}')
    )
    string_stream_broadcast.listen(
        lambda data: print(f'Listener 2: String => {data}')
    )

    for i in (1, 2, 3):
        controller_broadcast.add(i)
    controller_broadcast.close()

    # the same conversion built from a per-event handler
    def handle_data(value: int, sink) -> None:
        sink.add(f'<{value}>')

    controller = StreamController()
    casted = controller.stream.transform(
        StreamTransformer.from_handlers(handle_data=handle_data)
    )
    joined = casted.join(', ')
    for i in (1, 2, 3):
        controller.add(i)
    controller.close()

    assert await joined == '<1>, <2>, <3>'
    print(f'Joined => {await joined}')


if __name__ == '__main__':
    playground.run(main)
