"""
Module provides :class:`ConnectionBridge`, relaying one gateway client.

A bridge connects to the backend Telnet service on behalf of a raw TCP
client.  Bytes typed by the client are forwarded to the backend as-is, text
received from the backend is decoded from its legacy encoding and written
to the client, and the backend's option negotiation is answered by a
:class:`~.Negotiator`.
"""
# std imports
import asyncio
import logging

# local
from .accessories import make_reader_task
from .client import open_connection
from .encoding import DEFAULT_ENCODING, decode
from .negotiation import DEFAULT_TERM, Negotiator
from .registry import ConnectionClosed
from .stream_reader import (Data, Negotiation, Subnegotiation, UnknownIAC,
                            TimedOut, NoData, Error, Closed)

__all__ = ('ConnectionBridge',)

logger = logging.getLogger('telgate.bridge')


class ConnectionBridge:
    """Duplex relay between one client and the backend Telnet service."""

    def __init__(self, reader, writer, connection, notify, *,
                 backend_host, backend_port, connect_timeout=10.0,
                 timeout=300, encoding=DEFAULT_ENCODING, term=DEFAULT_TERM,
                 log=None):
        """
        Class initializer.

        :param asyncio.StreamReader reader: client stream reader.
        :param asyncio.StreamWriter writer: client stream writer.
        :param registry.ClientConnection connection: the client's session.
        :param Callable notify: called once with :class:`ConnectionClosed`
            when the bridge ends.
        :param str backend_host: backend Telnet service host.
        :param int backend_port: backend Telnet service port.
        :param float connect_timeout: seconds allowed to connect to the
            backend.
        :param float timeout: seconds of backend silence after which a
            time-out is logged.  ``0`` or ``None`` disables.
        :param str encoding: legacy encoding of backend text.
        :param str term: terminal type reported to the backend.
        :param logging.Logger log: target logger.
        """
        self.log = log or logger
        self.reader = reader
        self.writer = writer
        self.connection = connection
        self.notify = notify
        self.backend_host = backend_host
        self.backend_port = backend_port
        self.connect_timeout = connect_timeout
        self.timeout = timeout or None
        self.encoding = encoding
        self.negotiator = Negotiator(
            location=str(connection.ip_addr), term=term, log=self.log)
        #: :class:`~.TelnetClient` connected to the backend, once connected.
        self.backend = None
        self._closed = False

    def __repr__(self):
        return '<ConnectionBridge {0} {1}>'.format(
            self.client_id, 'closed' if self._closed else 'open')

    @property
    def client_id(self):
        return self.connection.client_id

    async def run(self):
        """Relay until either end closes, then notify and close both ends."""
        try:
            if await self.connect():
                await self.relay()
        finally:
            self.close()

    async def connect(self):
        """Connect to the backend, returning whether connection succeeded."""
        try:
            self.backend = await open_connection(
                self.backend_host, self.backend_port,
                connect_timeout=self.connect_timeout, log=self.log)
        except asyncio.TimeoutError:
            self.log.warning('Client ID: {0} timed out connecting to {1}:{2}'
                             .format(self.client_id, self.backend_host,
                                     self.backend_port))
            return False
        except OSError as err:
            self.log.warning("Client ID: {0} couldn't connect to {1}:{2}: {3}"
                             .format(self.client_id, self.backend_host,
                                     self.backend_port, err))
            return False
        self.log.info('Client ID: {0} connected to Telnet Server'
                      .format(self.client_id))
        return True

    async def relay(self):
        """Forward client input and backend events until a terminal one."""
        client_stdin = make_reader_task(self.reader)
        server_event = asyncio.ensure_future(
            self.backend.read_event(timeout=self.timeout))
        wait_for = {client_stdin, server_event}
        try:
            while True:
                done, _ = await asyncio.wait(
                    wait_for, return_when=asyncio.FIRST_COMPLETED)
                if client_stdin in done:
                    inp = client_stdin.result()
                    if not inp:
                        self.log.info('EOF from client')
                        break
                    self.backend.write(inp)
                    await self.backend.drain()
                    client_stdin = make_reader_task(self.reader)
                if server_event in done:
                    if not await self.handle_event(server_event.result()):
                        break
                    server_event = asyncio.ensure_future(
                        self.backend.read_event(timeout=self.timeout))
                wait_for = {client_stdin, server_event}
        except (ConnectionError, OSError) as err:
            self.log.info('Client ID: {0} connection lost: {1}'
                          .format(self.client_id, err))
        finally:
            for task in (client_stdin, server_event):
                task.cancel()

    async def handle_event(self, event):
        """Act on backend ``event``, returning whether to keep relaying."""
        if isinstance(event, Data):
            self.writer.write(decode(event.buf, self.encoding))
            await self.writer.drain()
        elif isinstance(event, Negotiation):
            self.handle_negotiation(event.action, event.option)
        elif isinstance(event, (UnknownIAC, Subnegotiation)):
            self.log.debug('ignored: {0!r}'.format(event))
        elif isinstance(event, TimedOut):
            self.log.info('Timed out')
        elif isinstance(event, NoData):
            pass
        elif isinstance(event, Error):
            self.log.warning('Internal protocol error for Client ID: {0}: {1}'
                             .format(self.client_id, event.reason))
            return False
        elif isinstance(event, Closed):
            self.log.info('EOF from server')
            return False
        else:
            raise TypeError('Unknown event: {0!r}'.format(event))
        return True

    def handle_negotiation(self, action, option):
        reply = self.negotiator.respond(action, option)
        if reply is None:
            return
        self.backend.negotiate(reply.action, reply.option)
        if reply.subnegotiation is not None:
            self.backend.subnegotiate(reply.option, reply.subnegotiation)

    def close(self):
        """Notify registry of closure, then close client and backend."""
        if self._closed:
            return
        self._closed = True
        self.notify(ConnectionClosed(self.client_id))
        self.log.info('Client ID: {0} - Telnet Connection Closed'
                      .format(self.client_id))
        if self.backend is not None:
            self.backend.close()
        if not self.writer.is_closing():
            self.writer.close()
