"""
The chat wire format: UTF-8 text frames, each terminated by a single newline byte.

There is no length prefix and no escaping, so a message must not itself contain a newline.
"""

DELIMITER = b'\n'
ENCODING = 'utf-8'


def encode_frame(text: str) -> bytes:
    """
    Encodes a message as a frame.
    >>> encode_frame("hello")
    b'hello\\n'
    """
    if '\n' in text:
        raise ValueError("message contains the frame delimiter")
    return text.encode(ENCODING) + DELIMITER


def is_complete(frame: bytes) -> bool:
    """ determines if the bytes read form a whole frame, i.e. end with the delimiter. """
    return frame.endswith(DELIMITER)


def decode_frame(frame: bytes) -> str:
    """
    Decodes a complete frame, removing the trailing delimiter. Invalid UTF-8 sequences are replaced.
    >>> decode_frame(b'hello\\n')
    'hello'
    >>> decode_frame(b'\\n')
    ''
    """
    if frame.endswith(DELIMITER):
        frame = frame[:-len(DELIMITER)]
    return frame.decode(ENCODING, errors='replace')
