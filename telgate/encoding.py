"""
Decoding of backend text for the client.

Telnet backends of the BBS era transmit text in a legacy single-byte
encoding, most commonly IBM PC code page 437.  Every byte of such an
encoding names exactly one character, so decoding cannot fail; the result
is re-encoded as UTF-8 for the client terminal.
"""
# std imports
import codecs

__all__ = ("DEFAULT_ENCODING", "CLIENT_ENCODING", "decode", "check_encoding")

#: Legacy encoding assumed for bytes received from the backend.
DEFAULT_ENCODING = "cp437"

#: Encoding of text written to the client socket.
CLIENT_ENCODING = "utf8"

_ALL_BYTES = bytes(range(256))


def decode(data, encoding=DEFAULT_ENCODING):
    """
    Return ``data``, bytes in legacy ``encoding``, as UTF-8 encoded bytes.

    Control characters (0x00-0x1F, 0x7F) pass through unchanged::

        >>> decode(b'\\xc9\\xcd\\xbb\\r\\n')
        b'\\xe2\\x95\\x94\\xe2\\x95\\x90\\xe2\\x95\\x97\\r\\n'
    """
    return codecs.decode(bytes(data), encoding).encode(CLIENT_ENCODING)


def check_encoding(encoding):
    """
    Return normalized codec name of ``encoding``, a single-byte encoding.

    :raises LookupError: no such codec is registered.
    :raises ValueError: the codec does not map all 256 byte values to
        exactly one character each.
    """
    info = codecs.lookup(encoding)
    try:
        text = codecs.decode(_ALL_BYTES, info.name)
    except UnicodeDecodeError as err:
        raise ValueError("{0}: not a total single-byte encoding ({1})"
                         .format(info.name, err))
    if len(text) != len(_ALL_BYTES):
        raise ValueError("{0}: not a single-byte encoding".format(info.name))
    return info.name
