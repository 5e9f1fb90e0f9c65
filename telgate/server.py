"""
The ``main`` function here is wired to the command line tool by name
telgate.  If this server's PID receives the SIGTERM signal, it attempts to
shutdown gracefully.

Each TCP client accepted is announced to the :class:`~.RegistryActor`,
which starts a :class:`~.ConnectionBridge` relaying that client to the
backend Telnet service.
"""

# std imports
import collections
import functools
import argparse
import asyncio
import logging
import signal

# local
from . import accessories
from .bridge import ConnectionBridge
from .encoding import DEFAULT_ENCODING, check_encoding
from .negotiation import DEFAULT_TERM, check_term
from .registry import Connect, RegistryActor

__all__ = ("Server", "create_server", "run_server", "parse_server_args")

CONFIG = collections.namedtuple(
    "CONFIG",
    [
        "host",
        "port",
        "backend_host",
        "backend_port",
        "connect_timeout",
        "timeout",
        "encoding",
        "term",
        "loglevel",
        "logfile",
        "logfmt",
    ],
)(
    host="localhost",
    port=9000,
    backend_host="127.0.0.1",
    backend_port=2727,
    connect_timeout=10.0,
    timeout=300,
    encoding=DEFAULT_ENCODING,
    term=DEFAULT_TERM,
    loglevel="info",
    logfile=None,
    logfmt=accessories._DEFAULT_LOGFMT,
)
logger = logging.getLogger("telgate.server")


class Server:
    """Listening gateway, its :class:`asyncio.Server` and session registry."""

    def __init__(self, server, registry):
        self._server = server
        self._close_requested = asyncio.Event()
        #: :class:`~.RegistryActor` receiving new connections.
        self.registry = registry

    def __repr__(self):
        return "<Server {0} {1!r}>".format(
            [sock.getsockname() for sock in self.sockets], self.registry)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.close()
        await self.wait_closed()

    @property
    def sockets(self):
        return self._server.sockets or ()

    @property
    def clients(self):
        """Read-only snapshot of registered sessions."""
        return self.registry.clients

    def is_serving(self):
        return self._server.is_serving()

    def close(self):
        """Stop accepting connections."""
        self._server.close()
        self._close_requested.set()

    async def wait_closed(self):
        """Wait for :meth:`close`, then stop the registry and its bridges."""
        await self._close_requested.wait()
        await self.registry.close()
        await self._server.wait_closed()


async def create_server(
    host=None,
    port=CONFIG.port,
    *,
    backend_host=CONFIG.backend_host,
    backend_port=CONFIG.backend_port,
    bridge_factory=ConnectionBridge,
    **kwds
):
    """
    Create a TCP gateway server relaying clients to a Telnet backend.

    :param str host: bind address, same meaning as
        :func:`asyncio.start_server`.
    :param int port: listen port for TCP Server.
    :param str backend_host: host of the backend Telnet service.
    :param int backend_port: port of the backend Telnet service.
    :param bridge_factory: An alternate bridge class, when unspecified,
        :class:`~.ConnectionBridge` is used.
    :param float connect_timeout: seconds allowed to connect to the backend.
    :param float timeout: seconds of backend silence before a time-out is
        logged, ``0`` disables.
    :param str encoding: legacy single-byte encoding of backend text.
    :param str term: terminal type reported to the backend.

    :rtype: Server
    """
    registry = RegistryActor(
        functools.partial(
            bridge_factory,
            backend_host=backend_host,
            backend_port=backend_port,
            **kwds
        )
    )
    registry.start()

    def on_connect(reader, writer):
        registry.send(Connect(reader, writer))

    try:
        server = await asyncio.start_server(on_connect, host, port)
    except BaseException:
        await registry.close()
        raise
    return Server(server, registry)


async def _sigterm_handler(server, log):
    logger.info("SIGTERM received, closing server.")

    # This signals the completion of the server.wait_closed() Future,
    # allowing the main() function to complete.
    server.close()


def parse_server_args():
    parser = argparse.ArgumentParser(
        description="TCP to Telnet protocol gateway",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("host", nargs="?", default=CONFIG.host, help="bind address")
    parser.add_argument(
        "port", nargs="?", type=int, default=CONFIG.port, help="bind port"
    )
    parser.add_argument(
        "--backend-host", default=CONFIG.backend_host, help="telnet service address"
    )
    parser.add_argument(
        "--backend-port",
        type=int,
        default=CONFIG.backend_port,
        help="telnet service port",
    )
    parser.add_argument(
        "--connect-timeout",
        type=float,
        default=CONFIG.connect_timeout,
        help="timeout connecting to telnet service",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=CONFIG.timeout,
        help="log telnet service idle after seconds (0 disables)",
    )
    parser.add_argument(
        "--encoding", default=CONFIG.encoding, help="telnet service encoding"
    )
    parser.add_argument("--term", default=CONFIG.term, help="terminal type")
    parser.add_argument("--loglevel", default=CONFIG.loglevel, help="level name")
    parser.add_argument("--logfile", default=CONFIG.logfile, help="filepath")
    parser.add_argument("--logfmt", default=CONFIG.logfmt, help="log format")
    return vars(parser.parse_args())


async def run_server(
    host=CONFIG.host,
    port=CONFIG.port,
    backend_host=CONFIG.backend_host,
    backend_port=CONFIG.backend_port,
    connect_timeout=CONFIG.connect_timeout,
    timeout=CONFIG.timeout,
    encoding=CONFIG.encoding,
    term=CONFIG.term,
    loglevel=CONFIG.loglevel,
    logfile=CONFIG.logfile,
    logfmt=CONFIG.logfmt,
):
    """
    Program entry point for server daemon.

    This function configures a logger and creates a gateway server for the
    given keyword arguments, serving forever, completing only upon receipt of
    SIGTERM.
    """
    log = accessories.make_logger(
        name="telgate.server", loglevel=loglevel, logfile=logfile, logfmt=logfmt
    )

    # log all function arguments.
    _locals = locals()
    _cfg_mapping = accessories.repr_mapping(
        collections.OrderedDict((field, _locals[field]) for field in CONFIG._fields)
    )
    log.debug("Server configuration: {}".format(_cfg_mapping))

    # an unknown or multi-byte encoding, or a terminal type that is not
    # ASCII, is fatal before binding.
    encoding = check_encoding(encoding)
    term = check_term(term)

    loop = asyncio.get_event_loop()

    # bind
    server = await create_server(
        host,
        port,
        backend_host=backend_host,
        backend_port=backend_port,
        connect_timeout=connect_timeout,
        timeout=timeout,
        encoding=encoding,
        term=term,
    )

    # SIGTERM cases server to gracefully stop
    loop.add_signal_handler(
        signal.SIGTERM, asyncio.ensure_future, _sigterm_handler(server, log)
    )

    log.info(
        "Server ready on {0}:{1}, relaying to {2}:{3}".format(
            host, port, backend_host, backend_port
        )
    )

    # await completion of server stop
    try:
        await server.wait_closed()
    finally:
        # remove signal handler on stop
        loop.remove_signal_handler(signal.SIGTERM)

    log.info("Server stop.")


def main():
    asyncio.run(run_server(**parse_server_args()))


if __name__ == "__main__":
    main()
