"""Test the gateway server, end to end."""
# std imports
import asyncio
import signal
import sys

# 3rd party
import pexpect
import pytest

# local
import telgate
from telgate.server import CONFIG, create_server, parse_server_args, run_server
from telgate.telopt import IAC, DO, WILL, ECHO, SNDLOC, SB, SE
from telgate.tests.accessories import (bind_host, start_backend,  # noqa
                                       wait_until)


@pytest.mark.asyncio
async def test_gateway_relays_backend_data(bind_host, unused_tcp_port_factory):
    """A client connects, one session is registered, and receives "AB"."""
    gateway_port, backend_port = unused_tcp_port_factory(), unused_tcp_port_factory()
    release = asyncio.Event()

    async def script(reader, writer):
        writer.write(b'\x41\x42')
        await writer.drain()
        await release.wait()

    async with start_backend(bind_host, backend_port, script):
        async with await create_server(
                bind_host, gateway_port, backend_host=bind_host,
                backend_port=backend_port) as server:
            reader, writer = await asyncio.open_connection(bind_host, gateway_port)
            assert await asyncio.wait_for(reader.readexactly(2), 2) == b'AB'
            assert len(server.clients) == 1
            (connection,) = server.clients.values()
            assert str(connection.ip_addr) == bind_host

            # client closes, the session is removed.
            writer.close()
            await wait_until(lambda: not server.clients)
            release.set()


@pytest.mark.asyncio
async def test_gateway_negotiation_and_input(bind_host, unused_tcp_port_factory):
    """Backend negotiation is answered, client input is forwarded."""
    gateway_port, backend_port = unused_tcp_port_factory(), unused_tcp_port_factory()
    location = bind_host.encode('ascii')
    expected = (IAC + WILL + ECHO +
                IAC + WILL + SNDLOC + IAC + SB + SNDLOC + location + IAC + SE +
                b'user\r')

    async def script(reader, writer):
        writer.write(IAC + DO + ECHO + IAC + DO + SNDLOC + b'login: ')
        await writer.drain()
        return await reader.readexactly(len(expected))

    async with start_backend(bind_host, backend_port, script) as backend:
        async with await create_server(
                bind_host, gateway_port, backend_host=bind_host,
                backend_port=backend_port) as server:
            reader, writer = await asyncio.open_connection(bind_host, gateway_port)
            assert await asyncio.wait_for(reader.readexactly(7), 2) == b'login: '
            writer.write(b'user\r')
            assert await asyncio.wait_for(backend.done, 2) == expected

            # backend hangs up after its script, the client sees EOF.
            assert await asyncio.wait_for(reader.read(), 2) == b''
            await wait_until(lambda: not server.clients)
            writer.close()


@pytest.mark.asyncio
async def test_gateway_many_clients(bind_host, unused_tcp_port_factory):
    """Concurrent sessions are registered under distinct identifiers."""
    gateway_port, backend_port = unused_tcp_port_factory(), unused_tcp_port_factory()
    release = asyncio.Event()

    async def script(reader, writer):
        writer.write(b'>')
        await writer.drain()
        await release.wait()

    async with start_backend(bind_host, backend_port, script):
        async with await create_server(
                bind_host, gateway_port, backend_host=bind_host,
                backend_port=backend_port) as server:
            clients = []
            for _ in range(5):
                reader, writer = await asyncio.open_connection(
                    bind_host, gateway_port)
                assert await asyncio.wait_for(reader.readexactly(1), 2) == b'>'
                clients.append(writer)
            assert len(server.clients) == 5
            assert len(set(server.clients)) == 5

            for writer in clients:
                writer.close()
            await wait_until(lambda: not server.clients)
            release.set()


@pytest.mark.asyncio
async def test_gateway_backend_unavailable(bind_host, unused_tcp_port_factory):
    """The client is disconnected and the registry does not leak."""
    gateway_port, backend_port = unused_tcp_port_factory(), unused_tcp_port_factory()

    async with await create_server(
            bind_host, gateway_port, backend_host=bind_host,
            backend_port=backend_port) as server:
        reader, writer = await asyncio.open_connection(bind_host, gateway_port)
        assert await asyncio.wait_for(reader.read(), 2) == b''
        await wait_until(lambda: not server.clients)
        writer.close()


@pytest.mark.asyncio
async def test_server_close(bind_host, unused_tcp_port):
    server = await create_server(bind_host, unused_tcp_port)
    assert server.is_serving()
    assert server.sockets
    server.close()
    await asyncio.wait_for(server.wait_closed(), 2)
    assert not server.is_serving()


@pytest.mark.asyncio
async def test_run_server_rejects_encoding(unused_tcp_port):
    """A multi-byte backend encoding is refused before binding."""
    with pytest.raises(ValueError):
        await run_server(port=unused_tcp_port, encoding='utf8')


@pytest.mark.asyncio
async def test_run_server_rejects_term(unused_tcp_port):
    """A terminal type that is not ASCII is refused before binding."""
    with pytest.raises(ValueError):
        await run_server(port=unused_tcp_port, term='vt100\xe9')


@pytest.mark.asyncio
async def test_gateway_unusable_bridge_closes_client(bind_host,
                                                     unused_tcp_port_factory):
    """A session that cannot be set up disconnects its client."""
    gateway_port, backend_port = unused_tcp_port_factory(), unused_tcp_port_factory()

    async with await create_server(
            bind_host, gateway_port, backend_host=bind_host,
            backend_port=backend_port, term='vt100\xe9') as server:
        reader, writer = await asyncio.open_connection(bind_host, gateway_port)
        assert await asyncio.wait_for(reader.read(), 2) == b''
        assert not server.clients
        writer.close()


def test_parse_server_args_defaults(monkeypatch):
    monkeypatch.setattr(sys, 'argv', ['telgate'])
    args = parse_server_args()
    assert args == CONFIG._asdict()


def test_parse_server_args(monkeypatch):
    monkeypatch.setattr(sys, 'argv', [
        'telgate', '0.0.0.0', '6023', '--backend-host=bbs.example.org',
        '--backend-port=23', '--connect-timeout=2.5', '--timeout=0',
        '--encoding=latin1', '--term=vt100', '--loglevel=debug'])
    args = parse_server_args()
    assert args['host'] == '0.0.0.0'
    assert args['port'] == 6023
    assert args['backend_host'] == 'bbs.example.org'
    assert args['backend_port'] == 23
    assert args['connect_timeout'] == 2.5
    assert args['timeout'] == 0
    assert args['encoding'] == 'latin1'
    assert args['term'] == 'vt100'
    assert args['loglevel'] == 'debug'


def test_version():
    assert isinstance(telgate.__version__, str)


def test_telgate_cmdline(bind_host, unused_tcp_port):
    """Test executing telgate as a program, stopped by SIGTERM."""
    proc = pexpect.spawn(sys.executable, [
        '-m', 'telgate', bind_host, str(unused_tcp_port),
        '--backend-port=1', '--loglevel=info'], timeout=10)
    try:
        proc.expect('Server ready on {0}:{1}'.format(bind_host, unused_tcp_port))
        proc.kill(signal.SIGTERM)
        proc.expect('Server stop.')
        proc.expect(pexpect.EOF)
    finally:
        proc.close(force=True)
    assert proc.exitstatus == 0
