'''
A broadcast stream can have more than one subscriber, each of which
is notified of every event sent through the stream.

'''
import playground
from playground import StreamContainerCreator


EVENTS_COUNT: int = 10
WAIT_BETWEEN_TWO_EVENTS: float = 0.1


async def main():
    container = StreamContainerCreator(
        count=EVENTS_COUNT,
        wait=WAIT_BETWEEN_TWO_EVENTS,
    )
    received: dict[int, list[int]] = {1: [], 2: []}

    def subscriber(num: int):
        def on_value(value: int) -> None:
            print(f'Subscriber {num} => {value}')
            received[num].append(value)

        return on_value

    # nothing is generated until the first subscriber subscribes
    stream = container.get_stream().as_broadcast_stream()
    subscription1 = stream.listen(subscriber(1))
    subscription2 = stream.listen(subscriber(2))

    await playground.wait_all([
        subscription1.as_future(),
        subscription2.as_future(),
    ]).then(lambda _: print('The stream closed!'))

    subscription1.cancel()
    subscription2.cancel()

    assert received[1] == received[2]
    assert len(received[1]) == EVENTS_COUNT
    print('End of script')


if __name__ == '__main__':
    playground.run(main)
