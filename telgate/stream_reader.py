"""Module provides :class:`TelnetReader`, an IAC interpreter of backend data."""
# std imports
import collections
import logging

# local imports
from .telopt import (IAC, SB, SE, NEGOTIATION_COMMANDS,
                     name_command, name_commands)

__all__ = ('TelnetReader', 'Data', 'Negotiation', 'Subnegotiation',
           'UnknownIAC', 'TimedOut', 'NoData', 'Error', 'Closed')

#: In-band bytes received from the remote end.
Data = collections.namedtuple('Data', ['buf'])

#: IAC <action> <option>, where action is one of DO, DONT, WILL, WONT.
Negotiation = collections.namedtuple('Negotiation', ['action', 'option'])

#: IAC SB <option> <buf> IAC SE.
Subnegotiation = collections.namedtuple('Subnegotiation', ['option', 'buf'])

#: Any 2-byte IAC command, such as IAC NOP or IAC GA.
UnknownIAC = collections.namedtuple('UnknownIAC', ['cmd'])

#: No data arrived within the period requested.
TimedOut = collections.namedtuple('TimedOut', [])

#: Nothing buffered.
NoData = collections.namedtuple('NoData', [])

#: The interpreter can no longer make sense of the stream.
Error = collections.namedtuple('Error', ['reason'])

#: The remote end closed the connection.
Closed = collections.namedtuple('Closed', [])

# bytes of each value 0-255
_ONE_BYTE = [bytes([i]) for i in range(256)]


class TelnetReader:
    """
    Telnet IAC interpreter producing a queue of events.

    Bytes received from the remote end are given to :meth:`feed_data`,
    which separates in-band data from Telnet commands.  Interpreted
    events are retrieved, in the order received, by :meth:`next_event`.
    Runs of in-band bytes within a single call to :meth:`feed_data` are
    joined into one :class:`Data` event.
    """

    #: Maximum length of a sub-negotiation buffer before the stream is
    #: considered broken.
    max_sb_buffer = 1 << 15

    def __init__(self, log=None):
        self.log = log or logging.getLogger(__name__)

        #: Whether the last byte received was an IAC, awaiting a command.
        self.iac_received = False

        #: The negotiation command (DO, DONT, WILL, WONT) awaiting its
        #: option byte, or SB while within a sub-negotiation.
        self.cmd_received = None

        #: Total bytes given to :meth:`feed_data`.
        self.byte_count = 0

        self._sb_buffer = bytearray()
        self._data = bytearray()
        self._events = collections.deque()
        self._eof = False

    def __repr__(self):
        return '<TelnetReader events={0} bytes={1}{2}>'.format(
            len(self._events), self.byte_count, ' eof' if self._eof else '')

    @property
    def is_oob(self):
        """Whether the interpreter is within an IAC command sequence."""
        return bool(self.iac_received or self.cmd_received)

    @property
    def at_eof(self):
        """Whether EOF was received and all events have been retrieved."""
        return self._eof and not self._events

    def feed_data(self, data):
        """Interpret ``data``, bytes received from the remote end."""
        if self._eof:
            raise RuntimeError('feed_data after feed_eof')
        for value in data:
            self._feed_byte(_ONE_BYTE[value])
        self._flush_data()

    def feed_eof(self):
        """Mark end of stream, enqueuing a final :class:`Closed` event."""
        if not self._eof:
            self._flush_data()
            if self.is_oob:
                self.log.debug('EOF within IAC sequence, discarded')
            self._events.append(Closed())
            self._eof = True

    def next_event(self):
        """Return the next event, or :class:`NoData` when none is queued."""
        if self._events:
            return self._events.popleft()
        return NoData()

    def has_events(self):
        return bool(self._events)

    def _flush_data(self):
        if self._data:
            self._events.append(Data(bytes(self._data)))
            self._data.clear()

    def _emit(self, event):
        self._flush_data()
        self._events.append(event)

    def _feed_byte(self, byte):
        self.byte_count += 1

        if self.cmd_received in NEGOTIATION_COMMANDS:
            # 3rd and final byte of IAC DO, DONT, WILL, WONT, any value
            # including 255 (EXOPL).
            cmd, self.cmd_received = self.cmd_received, None
            self.log.debug('recv IAC {}'.format(name_commands(cmd + byte)))
            self._emit(Negotiation(cmd, byte))

        elif byte == IAC:
            self.iac_received = not self.iac_received
            if not self.iac_received:
                # IAC IAC is an escaped 255 value
                if self.cmd_received == SB:
                    self._sb_append(IAC)
                elif self.cmd_received is None:
                    self._data.extend(IAC)

        elif self.iac_received and self.cmd_received == SB:
            # 2nd byte of IAC within a sub-negotiation, expect SE.
            self.cmd_received = None
            if byte == SE:
                self.iac_received = False
                self._end_subnegotiation()
            else:
                # discard the buffer, the interrupting command stands.
                self.log.error('sub-negotiation buffer interrupted '
                               'by IAC {}'.format(name_command(byte)))
                self._sb_buffer.clear()
                self._feed_command(byte)

        elif self.iac_received:
            self._feed_command(byte)

        elif self.cmd_received == SB:
            self._sb_append(byte)

        else:
            self._data.extend(byte)

    def _feed_command(self, byte):
        # 2nd byte of IAC
        self.iac_received = False
        if byte in NEGOTIATION_COMMANDS or byte == SB:
            self.cmd_received = byte
        else:
            self.log.debug('recv IAC {}'.format(name_command(byte)))
            self._emit(UnknownIAC(byte))

    def _end_subnegotiation(self):
        if not self._sb_buffer:
            self.log.warning('SE: sub-negotiation buffer empty')
        else:
            opt, buf = _ONE_BYTE[self._sb_buffer[0]], bytes(self._sb_buffer[1:])
            self.log.debug('recv IAC SB {} {!r} IAC SE'.format(
                name_command(opt), buf))
            self._emit(Subnegotiation(opt, buf))
        self._sb_buffer.clear()

    def _sb_append(self, byte):
        if len(self._sb_buffer) >= self.max_sb_buffer:
            self._sb_buffer.clear()
            self.cmd_received = None
            self._emit(Error('sub-negotiation buffer exceeds {} bytes'
                             .format(self.max_sb_buffer)))
            return
        self._sb_buffer.extend(byte)
