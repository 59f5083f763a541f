"""

Peer-to-peer chat

- Transport: the peer-to-peer layer (libp2p). Provides this peer's identity and dialable addresses, routes
  inbound streams to a handler by protocol identifier, and connects to and opens streams with remote peers.
- Conduit: abstraction of a bi-directional channel to one peer. Combines an input stream and an output stream.
  A chat stream is seen by the session as a conduit.
- StreamRegistry: holds the one stream that outgoing messages are written to.
- ReaderLoop: reads newline terminated messages from one stream and prints them. One per stream.
- WriterLoop: reads lines typed by the operator and writes them to the active stream.
- SessionController: establishes streams, either by accepting them (listener) or by dialing an address (dialer),
  makes each new stream the active one and starts its reader.


## Threading

libp2p runs on trio. The trio loop lives on a background thread owned by a TrioPortal. Everything else is plain
threads: the operator's input is read on the main thread, and each stream has a reader thread. Readers and the
writer block on the portal while a read or write is carried out on the trio thread.

Inbound streams arrive on the trio thread. The handler passes them to the session controller on a worker thread
and then waits for the stream to be closed.

The active stream is the only state shared between the reader threads and the writer. A new stream replaces the
active stream; the stream it replaces keeps its reader until the stream ends, unless close_superseded is set.

"""
