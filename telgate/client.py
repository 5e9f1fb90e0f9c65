"""Telnet client connection to the gateway's backend service."""
# std imports
import asyncio
import logging

# local imports
from .stream_reader import TelnetReader, TimedOut
from .telopt import (IAC, SB, SE, NEGOTIATION_COMMANDS, name_command,
                     name_commands)

__all__ = ('TelnetClient', 'open_connection')


class TelnetClient:
    """
    Telnet client end of an established backend connection.

    Bytes received are interpreted as Telnet events by
    :class:`~.TelnetReader`; :meth:`read_event` and
    :meth:`read_nonblocking` return them one at a time.  Bytes written by
    :meth:`write` are escaped for IAC, negotiation and sub-negotiation
    commands are written by :meth:`negotiate` and :meth:`subnegotiate`.
    """

    #: Maximum bytes requested from the transport per read.
    read_size = 2**12

    def __init__(self, reader, writer, log=None):
        """
        Class initializer.

        :param asyncio.StreamReader reader: connected stream reader.
        :param asyncio.StreamWriter writer: connected stream writer.
        :param logging.Logger log: target logger.
        """
        self.log = log or logging.getLogger(__name__)
        self._reader = reader
        self._writer = writer
        #: IAC interpreter of bytes received
        self.interpreter = TelnetReader(log=self.log)

    def __repr__(self):
        hostport = self.get_extra_info('peername', ['-', 'closing'])[:2]
        return '<TelnetClient {0} {1}>'.format(*hostport)

    def get_extra_info(self, name, default=None):
        """Get optional transport information."""
        return self._writer.get_extra_info(name, default)

    @property
    def connection_closed(self):
        return self._writer.is_closing()

    def read_nonblocking(self):
        """Return next interpreted event, :class:`~.NoData` if none queued."""
        return self.interpreter.next_event()

    async def read_event(self, timeout=None):
        """
        Return next event, reading from the transport until one is available.

        :param float timeout: when no event is available within this many
            seconds, :class:`~.TimedOut` is returned.  ``None`` waits
            indefinitely.
        """
        while not (self.interpreter.has_events() or self.interpreter.at_eof):
            try:
                data = await asyncio.wait_for(
                    self._reader.read(self.read_size), timeout)
            except asyncio.TimeoutError:
                return TimedOut()
            except ConnectionError as err:
                self.log.info('Connection lost to {0}: {1}'.format(self, err))
                self.interpreter.feed_eof()
                break
            if not data:
                self.log.debug('EOF from server.')
                self.interpreter.feed_eof()
            else:
                self.interpreter.feed_data(data)
        return self.interpreter.next_event()

    def write(self, data):
        """Write ``data`` to the transport, escaping ``IAC`` bytes."""
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError("data expected bytes, got {0}".format(type(data)))
        self._writer.write(bytes(data).replace(IAC, IAC + IAC))

    def send_iac(self, buf):
        """Write ``buf``, a command beginning with IAC, without escaping."""
        assert isinstance(buf, (bytes, bytearray)), buf
        assert buf and buf.startswith(IAC), buf
        self._writer.write(buf)

    def negotiate(self, action, option):
        """Send 3-byte negotiation command, IAC ``action`` ``option``."""
        if action not in NEGOTIATION_COMMANDS:
            raise ValueError("Expected DO, DONT, WILL, WONT, got {0}."
                             .format(name_command(action)))
        self.log.debug('send IAC {}'.format(name_commands(action + option)))
        self.send_iac(IAC + action + option)

    def subnegotiate(self, option, data):
        """Send IAC SB ``option`` ``data`` IAC SE, escaping IAC in ``data``."""
        self.log.debug('send IAC SB {} {!r} IAC SE'.format(
            name_command(option), data))
        self.send_iac(IAC + SB + option + bytes(data).replace(IAC, IAC + IAC)
                      + IAC + SE)

    async def drain(self):
        await self._writer.drain()

    def close(self):
        if not self._writer.is_closing():
            self._writer.close()

    async def wait_closed(self):
        try:
            await self._writer.wait_closed()
        except ConnectionError:
            pass


async def open_connection(host, port, *, connect_timeout=10.0, limit=None,
                          log=None):
    """
    Connect to a TCP Telnet server as a Telnet client.

    :param str host: Remote Internet TCP Server host.
    :param int port: Remote Internet host TCP port.
    :param float connect_timeout: seconds to wait for the connection to be
        established.
    :param int limit: The buffer limit for the reader stream.
    :param logging.Logger log: target logger for the connection.
    :raises asyncio.TimeoutError: connection not established in time.
    :raises OSError: connection refused or unreachable.
    :rtype: TelnetClient
    """
    kwds = {}
    if limit:
        kwds['limit'] = limit
    reader, writer = await asyncio.wait_for(
        asyncio.open_connection(host, port, **kwds), connect_timeout)
    return TelnetClient(reader, writer, log=log)

