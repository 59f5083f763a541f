import threading

from p2pchat.conduit.base import Conduit


class StreamRegistry:
    """
    Holds the stream currently used for outbound messages. The slot holds at most one stream.

    All operations are serialized by a single lock, and none of them perform I/O while holding it.
    Streams are compared by identity, never by value.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._active = None

    def set_active(self, stream: Conduit):
        """
        Makes the given stream the active one, replacing any previous stream. The previous stream is not closed.
        :return: the stream that was active before, or None
        """
        with self._lock:
            previous, self._active = self._active, stream
        return previous

    def get_active(self) -> Conduit:
        """ :return: the active stream, or None when there is none. """
        with self._lock:
            return self._active

    def clear_if_matches(self, stream: Conduit) -> bool:
        """
        Clears the slot, but only if it still holds the given stream. A stream that has been superseded leaves
        the newer active stream in place.
        :return: True if the slot was cleared
        """
        with self._lock:
            if self._active is not None and self._active is stream:
                self._active = None
                return True
            return False
