"""
Conduits: a pair of binary streams to a remote peer.

Libp2pConduit in libp2p_conduit.py is the one the transport produces. SocketConduit is a loopback conduit over
a connected socket; the session tests run whole chats over socket pairs with it, without a libp2p host.
"""
import socket
from abc import abstractmethod
from io import IOBase


class Conduit:
    """
    A conduit allows two-way communication with one remote peer. It provides a file-like input endpoint and a
    file-like output endpoint. A chat stream is represented to the session layer as a conduit.
    """

    @property
    @abstractmethod
    def target(self):
        """ the underlying resource, such as a socket or a libp2p stream. """
        raise NotImplementedError

    @property
    @abstractmethod
    def remote_peer(self) -> str:
        """ the identity of the peer at the other end, or None when not known. """
        raise NotImplementedError

    @property
    @abstractmethod
    def input(self) -> IOBase:
        """ fetches the I/O stream that provides input.
            Callers can use the usual readXXX() methods. """
        raise NotImplementedError

    @property
    @abstractmethod
    def output(self) -> IOBase:
        """ fetches the I/O stream that provides output.
            Callers can use the usual writeXXX() methods. """
        raise NotImplementedError

    @property
    @abstractmethod
    def open(self) -> bool:
        """ determines if this conduit is open. When open, the streams provided by
            input and output can be read from/written to."""
        raise NotImplementedError

    @abstractmethod
    def close(self):
        """
        Closes both the input and output streams.
        """
        raise NotImplementedError


class DefaultConduit(Conduit):
    """ provides the conduit streams from specific read/write file-like types (which may be the same value) """

    def __init__(self, read=None, write=None, remote_peer=None, target=None):
        self._read = self._write = None
        self._remote_peer = remote_peer
        self._target = target
        self._closed = False
        self.set_streams(read, write)

    def set_streams(self, read, write=None):
        self._read = read
        self._write = write if write is not None else read

    @property
    def target(self):
        return self._target

    @property
    def remote_peer(self):
        return self._remote_peer

    def close(self):
        if self._closed:
            return
        self._closed = True
        try:
            self._write.close()
        except OSError:
            pass    # the peer may already have gone
        finally:
            self._read.close()

    @property
    def open(self):
        return not self._closed

    @property
    def input(self) -> IOBase:
        return self._read

    @property
    def output(self) -> IOBase:
        return self._write

    def __repr__(self):
        return "<%s peer=%s>" % (type(self).__name__, self._remote_peer)


class SocketConduit(DefaultConduit):
    """
    A conduit that provides communication via a connected socket. Used for loopback chats over a socket pair.
    """
    def __init__(self, sock, remote_peer=None):
        super().__init__(sock.makefile('rb'), sock.makefile('wb'), remote_peer, sock)

    def close(self):
        if not self.open:
            return
        sock = self.target
        # shutdown first, so a reader blocked on the socket wakes up before its file is closed
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass    # swallow it - the peer may have closed the socket
        try:
            super().close()
        finally:
            sock.close()
