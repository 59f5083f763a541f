"""
Events fired as chat streams come and go.
"""


class EventSource(object):

    def __init__(self):
        self._handlers = []

    def __iadd__(self, handler):
        return self.add(handler)

    def __isub__(self, handler):
        return self.remove(handler)

    def add(self, handler):
        self._handlers.append(handler)
        return self

    def remove(self, handler):
        if handler in self._handlers:
            self._handlers.remove(handler)
        return self

    def handlers(self):
        return tuple(self._handlers)

    def fire(self, *args, **kwargs):
        for handler in self.handlers():
            handler(*args, **kwargs)


LISTENER = 'listener'
DIALER = 'dialer'


class StreamEvent:
    """ base class for stream events. """
    def __init__(self, conduit):
        self.conduit = conduit


class StreamOpenedEvent(StreamEvent):
    """ A stream was established and registered as the active stream.
        role is LISTENER for accepted streams and DIALER for streams this peer opened. """
    def __init__(self, conduit, role):
        super().__init__(conduit)
        self.role = role


class StreamClosedEvent(StreamEvent):
    """ The reader for a stream saw the end of the stream or an error. """
    def __init__(self, conduit, reason=None):
        super().__init__(conduit)
        self.reason = reason
