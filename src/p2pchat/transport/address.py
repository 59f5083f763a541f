"""
Peer addresses. A peer is dialed through a multiaddress that ends with its identity, such as
/ip4/127.0.0.1/tcp/4001/p2p/<peer id>.
"""
from libp2p.peer.id import ID
from libp2p.peer.peerinfo import PeerInfo, info_from_p2p_addr
from multiaddr import Multiaddr
from multiaddr.exceptions import Error as MultiaddrError

from p2pchat.transport.base import AddressError, RemotePeerInfo

P2P_COMPONENT = '/p2p/'


def resolve_address(address: str) -> RemotePeerInfo:
    """
    Parses a textual multiaddress into the peer identity and the addresses it can be reached on.
    Raises AddressError if the text is not a multiaddress or does not name a peer.
    """
    text = address.strip()
    if not text:
        raise AddressError("no address given")
    try:
        info = info_from_p2p_addr(Multiaddr(text))
    except (ValueError, MultiaddrError) as e:
        raise AddressError("invalid multiaddress '%s': %s" % (text, e)) from e
    return RemotePeerInfo(str(info.peer_id), [str(a) for a in info.addrs])


def to_peer_info(info: RemotePeerInfo) -> PeerInfo:
    """ converts a resolved address back to the libp2p representation """
    try:
        return PeerInfo(ID.from_base58(info.peer_id), [Multiaddr(a) for a in info.addrs])
    except (ValueError, MultiaddrError) as e:
        raise AddressError("invalid peer info %s: %s" % (info, e)) from e


def dialable_address(addr, peer_id) -> str:
    """
    Combines a listen address with the peer identity, unless the address already carries one.
    >>> dialable_address('/ip4/10.0.0.1/tcp/4001', 'QmPeer')
    '/ip4/10.0.0.1/tcp/4001/p2p/QmPeer'
    >>> dialable_address('/ip4/10.0.0.1/tcp/4001/p2p/QmPeer', 'QmPeer')
    '/ip4/10.0.0.1/tcp/4001/p2p/QmPeer'
    """
    text = str(addr)
    if P2P_COMPONENT in text:
        return text
    return text + P2P_COMPONENT + str(peer_id)
