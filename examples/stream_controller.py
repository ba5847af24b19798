'''
A stream controller provides a stream plus an API to push events
into it from anywhere, at any time.

'''
import trio
import playground
from playground import (
    StreamController,
    StreamSubscription,
)


WAIT: float = 0.1


class OnValueHandlerContainer:
    '''
    The state used by the `on_value()` handler.

    '''
    _subscription: StreamSubscription|None = None
    received: list[int] = []

    @classmethod
    def set_stream_subscriber(cls, subscription: StreamSubscription) -> None:
        cls._subscription = subscription

    @classmethod
    async def on_value(cls, value: int) -> None:
        # NOTE: there is no telling when this runs relative to the
        # code which added the event; possibly only after `main()`
        # has printed its last line.
        print(f'An event has been raised. The associated value is {value}!')
        cls.received.append(value)

        # while paused, events from the source are buffered
        print('Pause the subscription.')
        cls._subscription.pause()
        print(f'Wait for {WAIT} second and resume the subscription.')
        await trio.sleep(WAIT)
        cls._subscription.resume()


async def main():
    sc = StreamController(
        on_listen=lambda: print('The stream has been assigned a listener!'),
        on_cancel=lambda: print('The stream has been canceled!'),
        on_pause=lambda: print('The stream has been paused!'),
        on_resume=lambda: print('The stream has been resumed!'),
    )

    stream = sc.stream
    print(
        'Does the controller have a listener ? '
        f'{"yes" if sc.has_listener else "no"}'
    )

    subscriber = stream.listen(OnValueHandlerContainer.on_value)
    OnValueHandlerContainer.set_stream_subscriber(subscriber)
    print(
        'Does the controller have a listener ? '
        f'{"yes" if sc.has_listener else "no"}'
    )

    sc.add(10)
    for i in range(5):
        print(f'Wait {WAIT} second and then send the value {i}.')
        await trio.sleep(WAIT)
        sc.add(i)

    # the runtime only terminates once the listener saw the end of
    # the stream
    sc.close()
    print('End')


if __name__ == '__main__':
    playground.run(main)

    # the handler may well have run after the last print of `main()`
    assert OnValueHandlerContainer.received == [10, 0, 1, 2, 3, 4]
