import logging

from p2pchat.conduit.base import Conduit
from p2pchat.protocol.framing import decode_frame, is_complete
from p2pchat.session.console import Console
from p2pchat.session.registry import StreamRegistry
from p2pchat.support.loop import AsyncLoop

logger = logging.getLogger(__name__)


class ReaderLoop(AsyncLoop):
    """
    Reads frames from one stream on a background thread and shows them to the operator.

    When the stream ends or fails, the loop prints a notice, removes the stream from the registry if it is still
    the active one, closes it and stops. There is no retry.

    :param conduit      the stream to read
    :param registry     the registry the stream may be active in
    :param console      where incoming messages are shown
    :param on_closed    called with (conduit, reason) once the loop has finished with the stream
    """

    def __init__(self, conduit: Conduit, registry: StreamRegistry, console: Console, on_closed=None):
        super().__init__(name='reader-%s' % (conduit.remote_peer or id(conduit)), log=logger)
        self.conduit = conduit
        self.registry = registry
        self.console = console
        self.on_closed = on_closed
        self.reason = None

    def loop(self):
        frame = self.conduit.input.readline()
        if not frame:
            self._finish(None)
        elif not is_complete(frame):
            logger.debug("discarding %d bytes of partial frame from %s", len(frame), self.conduit.remote_peer)
            self._finish(None)
        else:
            message = decode_frame(frame)
            logger.debug("received %d bytes from %s", len(frame), self.conduit.remote_peer)
            if message:
                self.console.incoming(self.conduit.remote_peer, message)

    def exception_handler(self, e):
        """ any failure reading the stream ends it """
        if self.running():
            self._finish(e)
        else:
            logger.debug("reader for %s stopped: %s", self.conduit.remote_peer, e)

    def _finish(self, reason):
        self.reason = reason
        self.stop_event.set()
        logger.info("stream from %s closed: %s", self.conduit.remote_peer, reason or 'end of stream')
        self.console.connection_closed(reason)
        self.registry.clear_if_matches(self.conduit)

    def abort(self, timeout=None):
        """ stops reading without waiting for the stream to end, by closing it under the reader. """
        self.stop_event.set()
        self.conduit.close()
        self.join(timeout)

    def shutdown(self):
        try:
            self.conduit.close()
        finally:
            if self.on_closed:
                self.on_closed(self.conduit, self.reason)
