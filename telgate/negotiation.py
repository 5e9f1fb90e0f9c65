"""
Telnet option negotiation on behalf of a gateway client.

The gateway answers the backend as a simple terminal would: it reports
the client's network location (SNDLOC, :rfc:`779`) and a fixed terminal
type (TTYPE, :rfc:`1091`), declines to echo unless asked, and agrees to
suppress go-ahead and to transmit binary in both directions.
"""
# std imports
import collections
import logging

# local imports
from .telopt import (DO, DONT, WILL, WONT, BINARY, ECHO, SGA, SNDLOC, TTYPE,
                     NEGOTIATION_COMMANDS, name_command, name_commands)

__all__ = ('Negotiator', 'Reply', 'Option', 'DEFAULT_TERM', 'check_term')

#: Terminal type reported to the backend.
DEFAULT_TERM = 'ansi-bbs'

#: Response to an inbound negotiation: IAC <action> <option>, followed by
#: IAC SB <option> <subnegotiation> IAC SE when subnegotiation is not None.
Reply = collections.namedtuple('Reply', ['action', 'option', 'subnegotiation'])


def check_term(term):
    """
    Return ``term`` when it may be reported as a terminal type.

    :raises ValueError: ``term`` is not ASCII text.
    """
    try:
        term.encode('ascii')
    except UnicodeEncodeError as err:
        raise ValueError('Terminal type {0!r} is not ASCII: {1}'
                         .format(term, err))
    return term


# (option, inbound action) -> (reply action, sub-negotiation payload name)
_DECISIONS = {
    (SNDLOC, DO): (WILL, 'location'),
    (SNDLOC, DONT): (WONT, None),
    (SNDLOC, WILL): (DONT, None),
    (SNDLOC, WONT): (DONT, None),

    (ECHO, DO): (WILL, None),
    (ECHO, DONT): (WONT, None),
    (ECHO, WILL): (DO, None),
    (ECHO, WONT): (DONT, None),

    (SGA, DO): (WILL, None),
    (SGA, DONT): (WILL, None),
    (SGA, WILL): (DO, None),
    (SGA, WONT): (DO, None),

    (BINARY, DO): (WILL, None),
    (BINARY, DONT): (WILL, None),
    (BINARY, WILL): (DO, None),
    (BINARY, WONT): (DO, None),

    (TTYPE, DO): (WILL, 'term'),
}


class Option(dict):
    """
    Telnet option state negotiation helper class.

    This class simply acts as a logging decorator for state changes of
    a dictionary describing telnet option negotiation.
    """

    def __init__(self, name, log):
        """
        Class initializer.

        :param str name: decorated name representing option class, such as
            'local_option' or 'remote_option'.
        :param logging.Logger log: logging instance where debug information
            of state changes is recorded (as DEBUG).
        """
        self.name, self.log = name, log
        dict.__init__(self)

    def enabled(self, key):
        """Return True if option ``key`` is enabled."""
        return bool(self.get(key, None) is True)

    def __setitem__(self, key, value):
        if value != dict.get(self, key, None):
            self.log.debug('{}[{}] = {}'.format(
                self.name, name_command(key), value))
        dict.__setitem__(self, key, value)


class Negotiator:
    """
    Decide replies to the backend's option negotiation for one session.

    Each inbound negotiation is answered every time it is received, even
    when the option already holds the state requested.  Options other than
    SNDLOC, ECHO, SGA, BINARY, and TTYPE are never answered.
    """

    def __init__(self, location, term=DEFAULT_TERM, log=None):
        """
        Class initializer.

        :param str location: network address of the client, sent in reply
            to DO SNDLOC.
        :param str term: terminal type, sent in reply to DO TTYPE.
        :raises ValueError: ``term`` is not ASCII text.
        :param logging.Logger log: target logger.
        """
        self.log = log or logging.getLogger(__name__)
        self.location = location
        self.term = check_term(term)

        #: Options enabled on our end: True after WILL, False after WONT.
        self.local_option = Option('local_option', self.log)

        #: Options enabled on the backend's end: True after DO, False after
        #: DONT.
        self.remote_option = Option('remote_option', self.log)

    def __repr__(self):
        _local = sorted(name_command(opt) for opt in self.local_option
                        if self.local_option.enabled(opt))
        _remote = sorted(name_command(opt) for opt in self.remote_option
                         if self.remote_option.enabled(opt))
        return '<Negotiator location={0} term={1} will:{2} do:{3}>'.format(
            self.location, self.term, ','.join(_local) or '-',
            ','.join(_remote) or '-')

    def respond(self, action, option):
        """
        Return :class:`Reply` to inbound IAC ``action`` ``option``.

        :param bytes action: one of DO, DONT, WILL, WONT.
        :param bytes option: telnet option byte.
        :returns: reply to send, or ``None`` when the option is not
            answered.
        :raises ValueError: ``action`` is not a negotiation command.
        """
        if action not in NEGOTIATION_COMMANDS:
            raise ValueError("Expected DO, DONT, WILL, WONT, got {0}."
                             .format(name_command(action)))
        decision = _DECISIONS.get((option, action))
        if decision is None:
            self.log.debug('{0} unsupported, no reply.'.format(
                name_commands(action + option)))
            return None

        reply_action, payload = decision
        subnegotiation = None
        if payload == 'location':
            subnegotiation = self.location.encode('ascii')
        elif payload == 'term':
            subnegotiation = self.term.encode('ascii')

        if reply_action in (WILL, WONT):
            self.local_option[option] = reply_action == WILL
        else:
            self.remote_option[option] = reply_action == DO

        return Reply(reply_action, option, subnegotiation)
