"""
Operator facing console output.

Readers run on their own threads, so all output is written under a lock to keep lines whole. Messages that arrive
while the operator is at the prompt are printed over the prompt, which is then shown again.
"""
import sys
import threading

UNKNOWN_PEER = 'Friend'


class Console:
    """
    :param out the text stream to write to. Defaults to sys.stdout at the time of each write.
    :param prompt the prompt shown when waiting for the operator to type a message.
    """

    def __init__(self, out=None, prompt='> '):
        self._out = out
        self.prompt_text = prompt
        self._lock = threading.Lock()

    @property
    def out(self):
        return self._out if self._out is not None else sys.stdout

    def write(self, text):
        with self._lock:
            out = self.out
            out.write(text)
            out.flush()

    def notice(self, text):
        self.write(text + '\n')

    def prompt(self):
        self.write(self.prompt_text)

    def incoming(self, peer, message):
        self.write('\r%s: %s\n%s' % (peer or UNKNOWN_PEER, message, self.prompt_text))

    def stream_opened(self, peer):
        self.notice('\nGot a new stream from: %s' % (peer or UNKNOWN_PEER))

    def connected(self, peer):
        self.notice('Connected to: %s' % peer)

    def connection_closed(self, reason):
        self.notice('\nConnection closed: %s' % (reason or 'end of stream'))

    def not_connected(self):
        self.notice('Not connected to any peer yet')

    def write_error(self, error):
        self.notice('Error writing: %s' % error)
