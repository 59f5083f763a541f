import unittest
from unittest.mock import Mock

from hamcrest import assert_that, empty, is_

from p2pchat.session.events import DIALER, EventSource, StreamClosedEvent, StreamOpenedEvent


class EventsTest(unittest.TestCase):

    def test_handlers_empty(self):
        sut = EventSource()
        assert_that(sut.handlers(), is_(empty()))

    def test_no_listeners(self):
        sut = EventSource()
        sut.fire(1)

    def test_manage_handlers(self):
        sut = EventSource()
        m1 = Mock()
        sut += m1
        assert_that(list(sut.handlers()), is_([m1]))

        sut -= m1
        assert_that(sut.handlers(), is_(empty()))

        sut.remove(m1)
        assert_that(sut.handlers(), is_(empty()))

    def test_listeners(self):
        sut = EventSource()
        l1 = Mock()
        l2 = Mock()
        sut += l1
        sut += l2
        sut.fire(1, v="hey")
        l1.assert_called_once_with(1, v="hey")
        l2.assert_called_once_with(1, v="hey")

    def test_handler_may_remove_itself_while_firing(self):
        sut = EventSource()
        calls = []

        def once(event):
            calls.append(event)
            sut.remove(once)

        sut += once
        sut.fire('a')
        sut.fire('b')
        assert_that(calls, is_(['a']))


class StreamEventTest(unittest.TestCase):

    def test_opened(self):
        conduit = Mock()
        event = StreamOpenedEvent(conduit, DIALER)
        assert_that(event.conduit, is_(conduit))
        assert_that(event.role, is_('dialer'))

    def test_closed(self):
        conduit = Mock()
        reason = OSError()
        event = StreamClosedEvent(conduit, reason)
        assert_that(event.conduit, is_(conduit))
        assert_that(event.reason, is_(reason))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
