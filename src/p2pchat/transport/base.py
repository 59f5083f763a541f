from abc import abstractmethod

from p2pchat.conduit.base import Conduit
from p2pchat.support.mixins import CommonEqualityMixin, StringerMixin


class TransportError(Exception):
    """ Indicates a failure in the peer-to-peer transport: starting the host, connecting or opening a stream. """


class AddressError(TransportError):
    """ Indicates a peer address could not be parsed or does not name a peer. """


class RemotePeerInfo(CommonEqualityMixin, StringerMixin):
    """
    A resolved remote address: the identity of a peer and the network addresses it can be reached on.
    :param peer_id the peer identity as text
    :param addrs the multiaddresses of the peer as text, without the peer component
    """
    def __init__(self, peer_id, addrs=()):
        self.peer_id = peer_id
        self.addrs = tuple(addrs)


class Transport:
    """
    The peer-to-peer layer beneath a chat session: an identity, addresses others can dial,
    inbound stream routing by protocol, and outbound connections.
    """

    @property
    @abstractmethod
    def peer_id(self) -> str:
        """ this peer's identity """
        raise NotImplementedError

    @property
    @abstractmethod
    def addrs(self) -> list:
        """ the addresses other peers can dial to reach this peer, including the peer identity """
        raise NotImplementedError

    @abstractmethod
    def start(self):
        """ generates the identity and starts listening. Raises TransportError on failure. """
        raise NotImplementedError

    @abstractmethod
    def close(self):
        raise NotImplementedError

    @abstractmethod
    def set_stream_handler(self, protocol_id, handler):
        """
        Routes inbound streams opened with the given protocol to a handler.
        :param handler a callable receiving the Conduit for each accepted stream. It is called on a worker
            thread and should return promptly.
        """
        raise NotImplementedError

    @abstractmethod
    def resolve(self, address) -> RemotePeerInfo:
        """ parses a textual peer address. Raises AddressError if it is malformed. """
        raise NotImplementedError

    @abstractmethod
    def connect(self, info: RemotePeerInfo):
        """ establishes a connection to the peer. Raises TransportError on failure. """
        raise NotImplementedError

    @abstractmethod
    def new_stream(self, info: RemotePeerInfo, protocol_id) -> Conduit:
        """ opens a stream to a connected peer. Raises TransportError on failure. """
        raise NotImplementedError
