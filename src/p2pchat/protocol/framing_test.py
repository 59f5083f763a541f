import unittest

from hamcrest import assert_that, calling, is_, raises

from p2pchat.protocol.framing import decode_frame, encode_frame, is_complete


class FramingTest(unittest.TestCase):

    def test_encode_appends_delimiter(self):
        assert_that(encode_frame("hello"), is_(b'hello\n'))

    def test_encode_utf8(self):
        assert_that(encode_frame("héllo ✓"), is_("héllo ✓\n".encode('utf-8')))

    def test_encode_rejects_embedded_delimiter(self):
        assert_that(calling(encode_frame).with_args("two\nlines"), raises(ValueError))

    def test_decode_strips_only_the_delimiter(self):
        assert_that(decode_frame(b'  spaced \r\n'), is_('  spaced \r'))

    def test_decode_empty_frame(self):
        assert_that(decode_frame(b'\n'), is_(''))

    def test_decode_replaces_invalid_utf8(self):
        assert_that(decode_frame(b'bad \xff\n'), is_('bad �'))

    def test_is_complete(self):
        assert_that(is_complete(b'abc\n'), is_(True))
        assert_that(is_complete(b'abc'), is_(False))
        assert_that(is_complete(b''), is_(False))

    def test_text_survives_encode_and_decode(self):
        for text in ("hello", "", " leading and trailing ", "tab\there", "emoji 😀"):
            assert_that(decode_frame(encode_frame(text)), is_(text))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
