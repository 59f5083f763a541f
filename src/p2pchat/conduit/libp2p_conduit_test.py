import threading
import unittest
from unittest.mock import Mock

import timeout_decorator
import trio
from hamcrest import assert_that, calling, contains_exactly, has_length, instance_of, is_, none, raises
from libp2p.network.stream.exceptions import StreamEOF, StreamReset

from p2pchat.conduit.libp2p_conduit import Libp2pConduit
from p2pchat.support.loop_test import debug_timeout, wait_until
from p2pchat.support.portal import TrioPortal


class FakeStream:
    """ stands in for a libp2p stream: reads return the given chunks, then fail with error or end of stream.
        With block, the read after the chunks waits for release, which close() and reset() do not set. """

    def __init__(self, chunks=(), error=None, peer_id='QmFakePeer', block=False):
        self.chunks = list(chunks)
        self.error = error
        self.written = []
        self.closed = False
        self.was_reset = False
        self.block = block
        self.reading = False
        self.release = trio.Event()
        self.write_error = None
        self.muxed_conn = Mock(peer_id=peer_id)

    async def read(self, n=None):
        await trio.sleep(0)
        if self.chunks:
            return self.chunks.pop(0)
        if self.block:
            self.reading = True
            await self.release.wait()
        if self.error:
            raise self.error
        raise StreamEOF()

    async def write(self, data):
        if self.write_error:
            raise self.write_error
        self.written.append(data)

    async def close(self):
        self.closed = True

    async def reset(self):
        self.was_reset = True


class Libp2pConduitTest(unittest.TestCase):

    def setUp(self):
        self.portal = TrioPortal('conduit-test')
        self.portal.start()

    def tearDown(self):
        self.portal.stop(2)

    @timeout_decorator.timeout(debug_timeout(5))
    def test_reads_lines_across_chunks(self):
        stream = FakeStream([b'hel', b'lo\nwor', b'ld\n'])
        sut = Libp2pConduit(stream, self.portal)
        assert_that(sut.input.readline(), is_(b'hello\n'))
        assert_that(sut.input.readline(), is_(b'world\n'))
        assert_that(sut.input.readline(), is_(b''))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_stream_error_is_raised_as_os_error(self):
        stream = FakeStream(error=StreamReset("reset by peer"))
        sut = Libp2pConduit(stream, self.portal)
        assert_that(calling(sut.input.readline), raises(OSError))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_writes_are_sent_on_flush(self):
        stream = FakeStream()
        sut = Libp2pConduit(stream, self.portal)
        sut.output.write(b'hi\n')
        assert_that(stream.written, is_([]))
        sut.output.flush()
        assert_that(stream.written, contains_exactly(b'hi\n'))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_write_error_is_raised_as_os_error(self):
        stream = FakeStream()
        stream.write_error = StreamReset()
        sut = Libp2pConduit(stream, self.portal)
        sut.output.write(b'hi\n')
        assert_that(calling(sut.output.flush), raises(OSError))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_close_closes_and_resets_stream_once(self):
        stream = FakeStream()
        sut = Libp2pConduit(stream, self.portal)
        assert_that(sut.open, is_(True))
        sut.close()
        assert_that(sut.open, is_(False))
        assert_that(stream.closed, is_(True))
        assert_that(stream.was_reset, is_(True))
        stream.closed = False
        sut.close()
        assert_that(stream.closed, is_(False))
        # returns at once, now the conduit is closed
        self.portal.run(sut.wait_closed)

    def read_on_thread(self, sut):
        """ reads a line on another thread. Returns the thread and the list receiving the line or the error. """
        results = []

        def read():
            try:
                results.append(sut.input.readline())
            except OSError as e:
                results.append(e)

        thread = threading.Thread(target=read, daemon=True)
        thread.start()
        return thread, results

    @timeout_decorator.timeout(debug_timeout(5))
    def test_close_wakes_a_blocked_reader(self):
        stream = FakeStream([b'partial'], block=True)
        sut = Libp2pConduit(stream, self.portal)
        thread, results = self.read_on_thread(sut)
        assert_that(wait_until(lambda: stream.reading), is_(True))
        sut.close()
        thread.join(debug_timeout(2))
        assert_that(thread.is_alive(), is_(False))
        assert_that(results, is_([b'partial']))
        assert_that(stream.was_reset, is_(True))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_read_after_close_does_not_wait(self):
        stream = FakeStream(block=True)
        sut = Libp2pConduit(stream, self.portal)
        sut.close()
        assert_that(sut.input.readline(), is_(b''))
        assert_that(stream.reading, is_(False))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_portal_stopping_under_a_blocked_reader_is_os_error(self):
        stream = FakeStream(block=True)
        sut = Libp2pConduit(stream, self.portal)
        thread, results = self.read_on_thread(sut)
        assert_that(wait_until(lambda: stream.reading), is_(True))
        self.portal.stop(debug_timeout(2))
        thread.join(debug_timeout(2))
        assert_that(thread.is_alive(), is_(False))
        assert_that(results, has_length(1))
        assert_that(results[0], instance_of(OSError))

    def test_remote_peer_and_target(self):
        stream = FakeStream(peer_id='QmRemote')
        sut = Libp2pConduit(stream, self.portal)
        assert_that(sut.remote_peer, is_('QmRemote'))
        assert_that(sut.target, is_(stream))

    def test_remote_peer_unknown(self):
        stream = FakeStream()
        del stream.muxed_conn
        sut = Libp2pConduit(stream, self.portal)
        assert_that(sut.remote_peer, is_(none()))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_read_after_portal_stopped_is_os_error(self):
        sut = Libp2pConduit(FakeStream([b'x\n']), self.portal)
        self.portal.stop(2)
        assert_that(calling(sut.input.readline), raises(OSError))
        sut.close()     # does not raise


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
