"""
Presents a libp2p stream as a blocking conduit.

libp2p streams are asynchronous and live on the trio thread. Each read and write made on the conduit's file-like
endpoints is forwarded to the trio thread through the portal, and the calling thread blocks until it completes.
"""
import io
import logging
import threading

import trio
from libp2p.network.stream.exceptions import StreamEOF, StreamError

from p2pchat.conduit.base import Conduit
from p2pchat.support.portal import PortalError, TrioPortal

logger = logging.getLogger(__name__)

# raised into the calling thread while the portal is stopping, or once it has stopped
_portal_errors = (PortalError, trio.RunFinishedError, trio.Cancelled)


class StreamReader(io.RawIOBase):
    """ raw readable stream over a libp2p stream. End of stream reads as b''.
        A read pending when the stream is closed locally is cancelled and also reads as b''. """

    def __init__(self, stream, portal: TrioPortal):
        super().__init__()
        self._stream = stream
        self._portal = portal
        self._scope = None
        self._cancelled = False

    def readable(self):
        return True

    def readinto(self, b):
        try:
            data = self._portal.run(self._read, len(b))
        except _portal_errors as e:
            raise OSError("stream is no longer reachable") from e
        n = len(data)
        b[:n] = data
        return n

    async def _read(self, count):
        with trio.CancelScope() as scope:
            self._scope = scope
            if self._cancelled:
                scope.cancel()
            try:
                return await self._stream.read(count)
            except StreamEOF:
                return b''
            except StreamError as e:
                raise OSError(str(e) or type(e).__name__) from e
            finally:
                self._scope = None
        return b''

    def cancel_read(self):
        """ called on the trio thread. Wakes the pending read, if any, and cancels all later ones. """
        self._cancelled = True
        if self._scope is not None:
            self._scope.cancel()


class StreamWriter(io.RawIOBase):
    """ raw writable stream over a libp2p stream. """

    def __init__(self, stream, portal: TrioPortal):
        super().__init__()
        self._stream = stream
        self._portal = portal

    def writable(self):
        return True

    def write(self, b):
        data = bytes(b)
        try:
            self._portal.run(self._write, data)
        except _portal_errors as e:
            raise OSError("stream is no longer reachable") from e
        return len(data)

    async def _write(self, data):
        try:
            await self._stream.write(data)
        except StreamError as e:
            raise OSError(str(e) or type(e).__name__) from e


class Libp2pConduit(Conduit):
    """
    A conduit over one libp2p stream.
    :param stream the libp2p network stream
    :param portal the portal running the trio loop that owns the stream
    """

    def __init__(self, stream, portal: TrioPortal):
        self._stream = stream
        self._portal = portal
        self._reader = StreamReader(stream, portal)
        self._input = io.BufferedReader(self._reader)
        self._output = io.BufferedWriter(StreamWriter(stream, portal))
        self._closed = False
        self._close_lock = threading.Lock()
        self._closed_event = trio.Event()
        self._remote_peer = self._peer_of(stream)

    @staticmethod
    def _peer_of(stream):
        try:
            return str(stream.muxed_conn.peer_id)
        except AttributeError:
            return None

    @property
    def target(self):
        return self._stream

    @property
    def remote_peer(self):
        return self._remote_peer

    @property
    def input(self):
        return self._input

    @property
    def output(self):
        return self._output

    @property
    def open(self):
        return not self._closed

    def close(self):
        """ closes and resets the stream. A reader blocked on the stream wakes and sees the end of the stream. """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        try:
            self._portal.run(self.aclose)
        except _portal_errors:
            logger.debug("portal already stopped when closing stream to %s", self._remote_peer)

    async def aclose(self):
        """ closes the stream from the trio thread. """
        self._closed = True
        self._reader.cancel_read()
        try:
            await self._stream.close()
            await self._stream.reset()
        except Exception as e:    # the muxer may already have torn the stream down
            logger.debug("error closing stream to %s: %s", self._remote_peer, e)
        finally:
            self._closed_event.set()

    async def wait_closed(self):
        """ called on the trio thread, returns once the conduit has been closed. """
        await self._closed_event.wait()

    def __repr__(self):
        return "<Libp2pConduit peer=%s>" % self._remote_peer
