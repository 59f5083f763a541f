"""
The peer-to-peer transport a chat session runs over.
"""
