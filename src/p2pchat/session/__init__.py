"""
The chat session: which stream is active, reading from streams, writing operator input, and establishing streams.
"""
