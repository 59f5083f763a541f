import logging
import sys
from abc import abstractmethod

from p2pchat.protocol.framing import encode_frame
from p2pchat.session.console import Console
from p2pchat.session.registry import StreamRegistry

logger = logging.getLogger(__name__)


class LineSource:
    """ Produces the lines typed by the local operator. """

    @abstractmethod
    def readline(self):
        """ blocks until a line is available.
        :return: the line without its line ending, or None at the end of input. """
        raise NotImplementedError


class ConsoleLineSource(LineSource):
    """ reads lines from a text stream, showing the console prompt before each one. """

    def __init__(self, console: Console, stream=None):
        self.console = console
        self.stream = stream

    def readline(self):
        self.console.prompt()
        line = (self.stream or sys.stdin).readline()
        if not line:
            return None
        return line.rstrip('\r\n')


class IterableLineSource(LineSource):
    """ produces lines from any iterable of strings. """

    def __init__(self, lines):
        self._lines = iter(lines)

    def readline(self):
        return next(self._lines, None)


class WriterLoop:
    """
    Sends each line typed by the operator to whichever stream is active at the time.

    Runs on the calling thread until the line source is exhausted. Write errors are reported and the loop
    carries on; the stream's reader is left to notice the failure and clear the registry.
    """

    def __init__(self, registry: StreamRegistry, source: LineSource, console: Console):
        self.registry = registry
        self.source = source
        self.console = console

    def run(self):
        while self.step():
            pass
        logger.debug("end of input")

    def step(self) -> bool:
        """
        Processes one line of input.
        :return: False when the input is exhausted
        """
        line = self.source.readline()
        if line is None:
            return False
        if line:
            self.send(line)
        return True

    def send(self, line) -> bool:
        """
        Writes one message to the active stream.
        :return: True if the message was written
        """
        conduit = self.registry.get_active()
        if conduit is None:
            self.console.not_connected()
            return False
        try:
            output = conduit.output
            output.write(encode_frame(line))
            output.flush()
        except (OSError, ValueError) as e:
            logger.warning("error writing to %s: %s", conduit.remote_peer, e)
            self.console.write_error(e)
            return False
        logger.debug("sent %d characters to %s", len(line), conduit.remote_peer)
        return True
