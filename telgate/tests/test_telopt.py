"""Test telnet command naming."""
# local
from telgate.telopt import (IAC, DO, WILL, SB, SE, ECHO, SNDLOC, TTYPE,
                            name_command, name_commands)


def test_name_command():
    assert name_command(IAC) == 'IAC'
    assert name_command(SNDLOC) == 'SNDLOC'
    assert name_command(b'\x99') == repr(b'\x99')


def test_name_commands():
    assert name_commands(IAC + DO + ECHO) == 'IAC DO ECHO'
    assert name_commands(SB + TTYPE + SE, sep=',') == 'SB,TTYPE,SE'
    assert name_commands(WILL + SNDLOC) == 'WILL SNDLOC'
