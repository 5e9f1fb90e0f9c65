"""Test TelnetClient, the backend connection."""
# std imports
import asyncio

# 3rd party
import pytest

# local
from telgate.client import TelnetClient, open_connection
from telgate.stream_reader import Data, Negotiation, TimedOut, Closed, NoData
from telgate.telopt import IAC, DO, WILL, SB, SE, NOP, ECHO, TTYPE
from telgate.tests.accessories import bind_host, FakeWriter  # noqa


def make_client():
    return TelnetClient(asyncio.StreamReader(), FakeWriter())


@pytest.mark.asyncio
async def test_write_escapes_iac():
    client = make_client()
    client.write(b'a\xffb')
    assert bytes(client._writer.buffer) == b'a\xff\xffb'


@pytest.mark.asyncio
async def test_write_rejects_str():
    client = make_client()
    with pytest.raises(TypeError):
        client.write('text')


@pytest.mark.asyncio
async def test_negotiate():
    client = make_client()
    client.negotiate(WILL, ECHO)
    assert bytes(client._writer.buffer) == IAC + WILL + ECHO


@pytest.mark.asyncio
async def test_negotiate_illegal_action():
    client = make_client()
    with pytest.raises(ValueError):
        client.negotiate(NOP, ECHO)
    assert not client._writer.buffer


@pytest.mark.asyncio
async def test_subnegotiate_escapes_payload():
    client = make_client()
    client.subnegotiate(TTYPE, b'x\xffy')
    assert bytes(client._writer.buffer) == (
        IAC + SB + TTYPE + b'x\xff\xffy' + IAC + SE)


@pytest.mark.asyncio
async def test_read_event_sequence():
    """Events are returned in the order received, then Closed at EOF."""
    client = make_client()
    client._reader.feed_data(b'hi' + IAC + DO + ECHO)
    client._reader.feed_eof()

    assert await client.read_event() == Data(b'hi')
    assert await client.read_event() == Negotiation(DO, ECHO)
    assert isinstance(await client.read_event(), Closed)
    assert isinstance(client.read_nonblocking(), NoData)


@pytest.mark.asyncio
async def test_read_event_timeout():
    client = make_client()
    event = await client.read_event(timeout=0.01)
    assert isinstance(event, TimedOut)

    # data arriving later is still delivered.
    client._reader.feed_data(b'late')
    assert await client.read_event(timeout=1) == Data(b'late')


@pytest.mark.asyncio
async def test_open_connection(bind_host, unused_tcp_port):
    received = asyncio.Future()

    async def on_connect(reader, writer):
        received.set_result(await reader.readexactly(4))
        writer.close()

    server = await asyncio.start_server(on_connect, bind_host, unused_tcp_port)
    try:
        client = await open_connection(bind_host, unused_tcp_port)
        client.write(b'ping')
        await client.drain()
        assert await asyncio.wait_for(received, 2) == b'ping'
        assert isinstance(await client.read_event(timeout=2), Closed)
        client.close()
        await client.wait_closed()
        assert client.connection_closed
    finally:
        server.close()


@pytest.mark.asyncio
async def test_open_connection_refused(bind_host, unused_tcp_port):
    with pytest.raises(OSError):
        await open_connection(bind_host, unused_tcp_port)
