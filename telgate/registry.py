"""
Registry of gateway client sessions.

The :class:`RegistryActor` is the only owner of the table of active
sessions.  The listener and each connection bridge communicate with it
solely by lifecycle messages, :class:`Connect` and
:class:`ConnectionClosed`, given to :meth:`RegistryActor.send`.
"""
# std imports
import collections
import ipaddress
import asyncio
import logging
import types
import uuid

__all__ = ('RegistryActor', 'ClientConnection', 'Connect', 'ConnectionClosed')

#: A newly accepted client, its stream pair from :func:`asyncio.start_server`.
Connect = collections.namedtuple('Connect', ['reader', 'writer'])

#: The bridge of session ``client_id`` has ended.
ConnectionClosed = collections.namedtuple('ConnectionClosed', ['client_id'])

#: Immutable record of a registered session.
ClientConnection = collections.namedtuple(
    'ClientConnection', ['client_id', 'ip_addr'])

logger = logging.getLogger('telgate.registry')


class RegistryActor:
    """
    Serialized owner of the session table.

    Messages are consumed in the order sent by :meth:`run`, one at a time.
    Sending never blocks, the message queue is unbounded.
    """

    def __init__(self, bridge_factory, log=None):
        """
        Class initializer.

        :param Callable bridge_factory: called with arguments ``(reader,
            writer, connection, notify)`` for each :class:`Connect` message,
            where ``connection`` is the :class:`ClientConnection` of the new
            session and ``notify`` is :meth:`send`.  Returns an object with
            an async ``run()`` method, which is started as a task.
        :param logging.Logger log: target logger.
        """
        self.log = log or logger
        self.bridge_factory = bridge_factory
        self._queue = asyncio.Queue()
        self._clients = {}
        self._tasks = set()
        self._task = None

    def __repr__(self):
        return '<RegistryActor clients={0} queued={1}>'.format(
            len(self._clients), self._queue.qsize())

    @property
    def clients(self):
        """Read-only snapshot of the session table, client_id: connection."""
        return types.MappingProxyType(dict(self._clients))

    @property
    def bridges(self):
        """Set of running bridge tasks."""
        return frozenset(self._tasks)

    def send(self, message):
        """Queue lifecycle ``message`` for processing."""
        self._queue.put_nowait(message)

    def start(self):
        """Start :meth:`run` as a task, returning it."""
        if self._task is None:
            self._task = asyncio.ensure_future(self.run())
        return self._task

    async def run(self):
        """Process messages for the lifetime of the registry."""
        while True:
            message = await self._queue.get()
            try:
                self.process(message)
            except Exception:
                # one bad message must not stop the registry.
                self.log.exception('Error processing {0!r}'.format(message))
            finally:
                self._queue.task_done()

    async def join(self):
        """Wait until every message sent so far has been processed."""
        await self._queue.join()

    async def close(self):
        """Cancel the message loop and every running bridge."""
        tasks = list(self._tasks)
        if self._task is not None:
            tasks.append(self._task)
            self._task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        # closures queued by cancelled bridges are applied, clients
        # accepted but never registered are closed.
        while not self._queue.empty():
            message = self._queue.get_nowait()
            self._queue.task_done()
            if isinstance(message, Connect):
                message.writer.close()
            elif isinstance(message, ConnectionClosed):
                self.on_connection_closed(message.client_id)

    def process(self, message):
        """Apply a single lifecycle ``message`` to the session table."""
        if isinstance(message, Connect):
            self.on_connect(message.reader, message.writer)
        elif isinstance(message, ConnectionClosed):
            self.on_connection_closed(message.client_id)
        else:
            self.log.warning('Unknown message dropped: {0!r}'.format(message))

    def on_connect(self, reader, writer):
        self.log.info('TCP Connect event received')
        peername = writer.get_extra_info('peername')
        try:
            ip_addr = ipaddress.ip_address(peername[0])
        except (TypeError, IndexError, ValueError) as err:
            self.log.warning('Connect dropped, peer address {0!r} unusable: '
                             '{1}'.format(peername, err))
            writer.close()
            return

        client_id = uuid.uuid4()
        connection = ClientConnection(client_id, ip_addr)
        try:
            bridge = self.bridge_factory(reader, writer, connection, self.send)
        except Exception:
            writer.close()
            raise
        task = asyncio.ensure_future(bridge.run())
        self._tasks.add(task)
        task.add_done_callback(self._on_bridge_done)
        self.log.info('Client Connection created - Client ID: {0} | '
                      'Client IP Address: {1}'.format(client_id, ip_addr))

        self._clients[client_id] = connection
        self.log.info('Inserted Client ID: {0} into Client Map'
                      .format(client_id))

    def _on_bridge_done(self, task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        err = task.exception()
        if err is not None:
            self.log.error('Bridge failed: {0!r}'.format(err), exc_info=err)

    def on_connection_closed(self, client_id):
        if self._clients.pop(client_id, None) is None:
            self.log.info('No Client Mapping Data for Client ID: {0}'
                          .format(client_id))
        else:
            self.log.info('Client ID: {0} removed from client map.'
                          .format(client_id))
