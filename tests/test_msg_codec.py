'''
The wire msg spec, payload (de)coding and the TCP `Channel`.

'''
from functools import partial

import msgspec
import pytest
import trio

from playground import (
    MsgTypeError,
    SendPort,
)
from playground._testing import samples
from playground.ipc import Channel
from playground.msg import (
    Deliver,
    Done,
    Error,
    Hello,
    decode,
    decode_pld,
    encode,
    encode_pld,
    func_ref,
    resolve_ref,
    type_ref,
)


def test_wire_msg_roundtrip():
    pld, pld_type = encode_pld(samples.Command(host='h', command='ls'))
    msg = Deliver(
        dst_uid=('child', '1234'),
        dst_port=0,
        pld=pld,
        pld_type=pld_type,
    )
    decoded = decode(encode(msg))
    assert isinstance(decoded, Deliver)
    assert decoded.dst_uid == ('child', '1234')

    # the payload stays encoded until the destination decodes it
    assert isinstance(decoded.pld, msgspec.Raw)
    cmd = decode_pld(decoded.pld, decoded.pld_type)
    assert cmd == samples.Command(host='h', command='ls')


def test_invalid_wire_msg():
    with pytest.raises(MsgTypeError):
        decode(msgspec.msgpack.encode({'msg_type': 'Nope'}))

    with pytest.raises(MsgTypeError):
        decode(msgspec.msgpack.encode(1))


def test_type_refs():
    assert type_ref([1, 2]) is None
    assert type_ref('text') is None

    ref: str = type_ref(samples.Command(host='h', command='ls'))
    assert ref == 'playground._testing.samples:Command'
    assert resolve_ref(ref) is samples.Command

    assert func_ref(samples.echo_back) == (
        'playground._testing.samples:echo_back'
    )
    assert resolve_ref(func_ref(samples.noop)) is samples.noop

    def local():
        pass

    with pytest.raises(MsgTypeError):
        func_ref(local)


def test_payload_typing():
    # builtins need no type info
    pld, pld_type = encode_pld({'a': [1, 2.5, None]})
    assert pld_type is None
    assert decode_pld(pld) == {'a': [1, 2.5, None]}

    # nested structs decode via the top level type's annotations
    route = samples.Route(
        ack=SendPort(uid=('a', '1'), port_id=0),
        dst=SendPort(uid=('b', '2'), port_id=1),
    )
    pld, pld_type = encode_pld(route)
    decoded = decode_pld(pld, pld_type)
    assert decoded == route
    assert isinstance(decoded.dst, SendPort)

    # without a top level type nested structs come back as dicts
    pld, pld_type = encode_pld([route.dst])
    assert pld_type is None
    assert decode_pld(pld) == [{'uid': ['b', '2'], 'port_id': 1}]


def test_payload_errors():
    with pytest.raises(MsgTypeError):
        encode_pld(object())

    pld, _ = encode_pld({'host': 'h'})
    with pytest.raises(MsgTypeError):
        decode_pld(pld, 'playground._testing.samples:Command')


def test_pretty_struct():
    err = Error(
        src_uid=('child', '1234'),
        boxed_type_str='ValueError',
        message='boom',
    )
    assert err.to_dict() == {
        'src_uid': ('child', '1234'),
        'boxed_type_str': 'ValueError',
        'message': 'boom',
        'tb_str': '',
    }
    text: str = err.pformat()
    assert text.startswith('Error(')
    assert "boxed_type_str: str = 'ValueError'," in text


@pytest.mark.trio
async def test_channel_roundtrip():
    received: list = []

    async def handle_conn(stream: trio.SocketStream):
        async with Channel.from_stream(stream) as chan:
            async for msg in chan:
                received.append(msg)
                if isinstance(msg, Done):
                    await chan.send(Done())

    async with trio.open_nursery() as tn:
        listeners = await tn.start(
            partial(
                trio.serve_tcp,
                handle_conn,
                0,
                host='127.0.0.1',
            )
        )
        addr = listeners[0].socket.getsockname()[:2]

        async with await Channel.from_addr(addr) as chan:
            assert chan.connected()
            assert chan.raddr == tuple(addr)

            await chan.send(Hello(uid=('client', '1')))
            await chan.send(Done())
            assert isinstance(await chan.recv(), Done)

        # the client hung up which ends the server side iteration
        with trio.fail_after(3):
            while len(received) < 2:
                await trio.sleep(0.01)

        tn.cancel_scope.cancel()

    assert received == [Hello(uid=('client', '1')), Done()]


@pytest.mark.trio
async def test_channel_rejects_non_msgs():
    async def handle_conn(stream: trio.SocketStream):
        await stream.aclose()

    async with trio.open_nursery() as tn:
        listeners = await tn.start(
            partial(
                trio.serve_tcp,
                handle_conn,
                0,
                host='127.0.0.1',
            )
        )
        addr = listeners[0].socket.getsockname()[:2]
        async with await Channel.from_addr(addr) as chan:
            with pytest.raises(MsgTypeError):
                await chan._transport.send(
                    samples.Command(host='h', command='ls')
                )

            # the far end hung up without sending anything
            assert [msg async for msg in chan] == []

        tn.cancel_scope.cancel()
