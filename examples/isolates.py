'''
Isolates share no memory: each runs in its own process and they
talk only by sending messages to each other's ports.

A port is unidirectional, so for a two way conversation each side
creates a `ReceivePort` and hands the other its `.send_port`.

'''
import random

import msgspec
import playground
from playground import (
    ReceivePort,
    SendPort,
    open_isolate_nursery,
)
from playground.log import colorize


class Message(msgspec.Struct):
    '''
    The parameters of a command to run on a remote host.

    '''
    host: str
    login: str
    password: str
    command: str
    status: bool|None = None
    last: bool = False

    def __str__(self) -> str:
        if self.status is None:
            return (
                f'Command to execute: (command="{self.command}", '
                f'host="{self.host}", login="{self.login}", '
                f'password="{self.password}")'
            )

        return (
            f'The command "{self.command}" on the host "{self.host}", '
            f'authentified as ({self.login}/{self.password}), has been '
            f'executed. Status: {"true" if self.status else "false"}. '
            f'Is it the last command ? {"yes" if self.last else "no"}.'
        )

    def set_status(self, status: bool) -> 'Message':
        self.status = status
        return self

    def set_last(self, end: bool = True) -> 'Message':
        self.last = end
        return self

    def is_last(self) -> bool:
        return self.last


def execute_remote_command_fire_and_forget(message: Message) -> None:
    print(colorize(f'Fire and forget: {message}', 'light_red'))


async def execute_remote_command_interact_with(
    written_to_by_isolate: SendPort,
) -> None:
    print(colorize('Interacter: start'))
    rg = random.SystemRandom()

    # we can only send on the port we were given, so create our own
    # inbox and tell "Main" its address
    listened_to_by_isolate = ReceivePort()
    written_to_by_main: SendPort = listened_to_by_isolate.send_port
    print(colorize(
        'Interacter: inform Main about the port it should use to send '
        'messages to me.'
    ))
    await written_to_by_isolate.send(written_to_by_main)

    input_stream = listened_to_by_isolate.as_broadcast_stream()
    counter: int = 0
    print(colorize('Interacter: wait for commands to execute.'))
    async for received_message in input_stream:
        print(colorize(
            f'Interacter: got a message from Main: {received_message}.'
        ))
        last: bool = counter > 2
        counter += 1
        await written_to_by_isolate.send(
            received_message
            .set_status(rg.choice([True, False]))
            .set_last(last)
        )
        if last:
            break

    # an open port keeps this isolate alive
    listened_to_by_isolate.close()
    print(colorize('Interacter: leave the interacter'))


async def main():
    async with open_isolate_nursery() as an:

        # this one can not talk with the "outside world"
        await an.spawn(
            execute_remote_command_fire_and_forget,
            Message('localhost', 'admin', 'password', 'ls'),
        )

        # <Main> (receive port) <<----- (send port) <the isolate>
        listened_to_by_main = ReceivePort()
        written_to_by_isolate: SendPort = listened_to_by_main.send_port
        await an.spawn(
            execute_remote_command_interact_with,
            written_to_by_isolate,
        )

        # <Main> (send port) ----->> (receive port) <the isolate>
        incoming_messages_stream = listened_to_by_main.as_broadcast_stream()
        written_to_by_main: SendPort = await incoming_messages_stream.first
        assert isinstance(written_to_by_main, SendPort)
        print(
            'Main: got the port that I should use to send messages to '
            'the interacter.'
        )

        print('Main: send a message to the interacter.')
        await written_to_by_main.send(
            Message('localhost', 'admin', 'password', 'ls')
        )

        print('Main: wait for responses from the interacter.')
        replies: int = 0
        async for message in incoming_messages_stream:
            print(f'Main: {message}')
            replies += 1
            if message.is_last():
                print('Main: this was the last command!')
                break

            print('Main: send a message to the interacter.')
            await written_to_by_main.send(
                Message('localhost', 'admin', 'password', 'ls')
            )

        assert replies == 4

        # an open port keeps the runtime alive
        listened_to_by_main.close()

    print('Main: terminate the script')


if __name__ == '__main__':
    playground.run(main)
