"""Telnet command and option byte values used by the gateway."""

__all__ = (
    "IAC", "DONT", "DO", "WONT", "WILL", "SB", "SE",
    "NOP", "DM", "BRK", "IP", "AO", "AYT", "EC", "EL", "GA",
    "EOF", "SUSP", "ABORT", "CMD_EOR",
    "BINARY", "ECHO", "SGA", "STATUS", "TM", "SNDLOC", "TTYPE",
    "NAWS", "TSPEED", "LFLOW", "LINEMODE", "XDISPLOC", "NEW_ENVIRON",
    "CHARSET", "IS", "SEND", "theNULL",
    "NEGOTIATION_COMMANDS", "name_command", "name_commands",
)

# commands, RFC 854
IAC = b"\xff"
DONT = b"\xfe"
DO = b"\xfd"
WONT = b"\xfc"
WILL = b"\xfb"
SB = b"\xfa"
GA = b"\xf9"
EL = b"\xf8"
EC = b"\xf7"
AYT = b"\xf6"
AO = b"\xf5"
IP = b"\xf4"
BRK = b"\xf3"
DM = b"\xf2"
NOP = b"\xf1"
SE = b"\xf0"
(EOF, SUSP, ABORT, CMD_EOR) = (bytes([const]) for const in range(236, 240))

# options
BINARY = b"\x00"
ECHO = b"\x01"
SGA = b"\x03"
STATUS = b"\x05"
TM = b"\x06"
SNDLOC = b"\x17"
TTYPE = b"\x18"
NAWS = b"\x1f"
TSPEED = b" "
LFLOW = b"!"
LINEMODE = b'"'
XDISPLOC = b"#"
NEW_ENVIRON = b"'"
CHARSET = b"*"

# sub-negotiation qualifiers
theNULL = b"\x00"
(IS, SEND) = (bytes([const]) for const in range(2))

#: 3-byte commands, IAC <cmd> <option>
NEGOTIATION_COMMANDS = (DO, DONT, WILL, WONT)

_COMMAND_NAMES = {
    IAC: "IAC", DONT: "DONT", DO: "DO", WONT: "WONT", WILL: "WILL",
    SB: "SB", SE: "SE", GA: "GA", EL: "EL", EC: "EC", AYT: "AYT",
    AO: "AO", IP: "IP", BRK: "BRK", DM: "DM", NOP: "NOP",
    EOF: "EOF", SUSP: "SUSP", ABORT: "ABORT", CMD_EOR: "CMD_EOR",
}

_OPTION_NAMES = {
    BINARY: "BINARY", ECHO: "ECHO", SGA: "SGA", STATUS: "STATUS",
    TM: "TM", SNDLOC: "SNDLOC", TTYPE: "TTYPE", NAWS: "NAWS",
    TSPEED: "TSPEED", LFLOW: "LFLOW", LINEMODE: "LINEMODE",
    XDISPLOC: "XDISPLOC", NEW_ENVIRON: "NEW_ENVIRON", CHARSET: "CHARSET",
}


def name_command(byte):
    """Return string description for (maybe) telnet command byte."""
    # command bytes are 236 and above, option bytes below that; the
    # ranges never collide for the values named here.
    return _COMMAND_NAMES.get(byte) or _OPTION_NAMES.get(byte, repr(byte))


def name_commands(cmds, sep=" "):
    """Return string description for array of (maybe) telnet command bytes."""
    return sep.join([name_command(bytes([byte])) for byte in cmds])
