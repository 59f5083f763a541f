"""
Establishes chat streams, either by accepting them (listener) or by dialing a peer (dialer), and wires each one
into the session: the stream becomes the active stream for outgoing messages and gets its own reader.
"""
import enum
import logging
import threading

from p2pchat.conduit.base import Conduit
from p2pchat.session.console import Console
from p2pchat.session.events import DIALER, LISTENER, EventSource, StreamClosedEvent, StreamOpenedEvent
from p2pchat.session.reader import ReaderLoop
from p2pchat.session.registry import StreamRegistry
from p2pchat.transport.base import Transport, TransportError

logger = logging.getLogger(__name__)

DEFAULT_PROTOCOL_ID = '/ipv6/1.0.0'


class SessionError(Exception):
    """ Indicates that a chat session could not be established. """


class SessionState(enum.Enum):
    IDLE = 'idle'
    LISTENING = 'listening'
    DIALING = 'dialing'
    CONNECTED = 'connected'


class SessionController:
    """
    Owns the two ways a stream is established and keeps track of the readers started for them.

    Each established stream replaces the active stream in the registry. By default a replaced stream is left
    open and its reader keeps running; with close_superseded the replaced stream is closed, so its reader ends.

    Fires StreamOpenedEvent and StreamClosedEvent on `events`.

    :param transport        the peer-to-peer transport
    :param registry         holds the active stream
    :param console          operator output
    :param protocol_id      the protocol streams are tagged with
    :param close_superseded close the previous stream when a new one becomes active
    """

    def __init__(self, transport: Transport, registry: StreamRegistry, console: Console,
                 protocol_id=DEFAULT_PROTOCOL_ID, close_superseded=False):
        self.transport = transport
        self.registry = registry
        self.console = console
        self.protocol_id = protocol_id
        self.close_superseded = close_superseded
        self.events = EventSource()
        self._readers = {}      # conduit -> ReaderLoop, keyed by identity
        self._lock = threading.Lock()
        self._listening = False
        self._dialing = False

    @property
    def state(self) -> SessionState:
        if self._dialing:
            return SessionState.DIALING
        if self.registry.get_active() is not None:
            return SessionState.CONNECTED
        return SessionState.LISTENING if self._listening else SessionState.IDLE

    @property
    def readers(self) -> dict:
        """ a snapshot of the running readers, keyed by their stream """
        with self._lock:
            return dict(self._readers)

    def listen(self):
        """ accepts inbound streams for the protocol for as long as the transport runs """
        self.transport.set_stream_handler(self.protocol_id, self.handle_stream)
        self._listening = True
        logger.info("listening for streams with protocol %s", self.protocol_id)

    def handle_stream(self, conduit: Conduit):
        """ called by the transport with each accepted stream """
        self.console.stream_opened(conduit.remote_peer)
        self._attach(conduit, LISTENER)

    def dial(self, address) -> Conduit:
        """
        Connects to the peer at the given address and opens a stream to it.
        Raises SessionError if the address is invalid, the connection fails or the stream cannot be opened.
        Nothing is registered when the attempt fails.
        """
        self._dialing = True
        try:
            info = self.transport.resolve(address)
            self.transport.connect(info)
            self.console.connected(info.peer_id)
            conduit = self.transport.new_stream(info, self.protocol_id)
        except TransportError as e:
            logger.error("unable to establish a stream to %s: %s", address, e)
            raise SessionError(str(e)) from e
        finally:
            self._dialing = False
        self._attach(conduit, DIALER)
        return conduit

    def _attach(self, conduit: Conduit, role):
        reader = ReaderLoop(conduit, self.registry, self.console, self._reader_closed)
        with self._lock:
            self._readers[conduit] = reader
        previous = self.registry.set_active(conduit)
        logger.info("%s stream with %s is now active", role, conduit.remote_peer)
        try:
            self.events.fire(StreamOpenedEvent(conduit, role))
        finally:
            # a registered stream always has a running reader
            reader.start()
            if previous is not None and previous is not conduit:
                self._superseded(previous)

    def _superseded(self, previous: Conduit):
        if self.close_superseded:
            logger.info("closing superseded stream with %s", previous.remote_peer)
            previous.close()
        else:
            logger.info("stream with %s superseded but left open", previous.remote_peer)

    def _reader_closed(self, conduit: Conduit, reason):
        with self._lock:
            self._readers.pop(conduit, None)
        self.events.fire(StreamClosedEvent(conduit, reason))

    def close(self, timeout=None):
        """ closes every stream that still has a reader, and waits for the readers to finish """
        for reader in self.readers.values():
            reader.abort(timeout)
