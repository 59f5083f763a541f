import logging

import trio
from libp2p import new_host
from libp2p.crypto import ed25519, rsa, secp256k1
from libp2p.custom_types import TProtocol
from libp2p.peer.id import ID
from multiaddr import Multiaddr

from p2pchat.conduit.libp2p_conduit import Libp2pConduit
from p2pchat.support.portal import TrioPortal
from p2pchat.transport.address import dialable_address, resolve_address, to_peer_info
from p2pchat.transport.base import RemotePeerInfo, Transport, TransportError

logger = logging.getLogger(__name__)

DEFAULT_LISTEN_ADDRS = ('/ip6/::/tcp/0',)

KEY_TYPES = {
    'rsa': lambda bits: rsa.create_new_key_pair(bits),
    'ed25519': lambda bits: ed25519.create_new_key_pair(),
    'secp256k1': lambda bits: secp256k1.create_new_key_pair(),
}


def generate_key_pair(key_type='rsa', bits=2048):
    """ generates a new key pair for the identity of this peer """
    try:
        factory = KEY_TYPES[key_type]
    except KeyError:
        raise TransportError("unknown key type '%s'" % key_type) from None
    try:
        return factory(bits)
    except ValueError as e:
        raise TransportError("unable to generate %s key pair: %s" % (key_type, e)) from e


class Libp2pTransport(Transport):
    """
    A transport backed by a libp2p host. The host runs on the trio loop of a TrioPortal; every method here
    blocks the calling thread until the corresponding host operation completes.

    :param listen_addrs the multiaddresses to listen on
    :param key_type     the key algorithm for the peer identity: rsa, ed25519 or secp256k1
    :param key_bits     the key size, for RSA keys
    """

    def __init__(self, listen_addrs=DEFAULT_LISTEN_ADDRS, key_type='rsa', key_bits=2048, portal=None):
        self.listen_addrs = list(listen_addrs)
        self.key_type = key_type
        self.key_bits = key_bits
        self.portal = portal or TrioPortal('libp2p')
        self._host = None
        self._stopped = None

    @property
    def host(self):
        if self._host is None:
            raise TransportError("transport is not started")
        return self._host

    @property
    def peer_id(self):
        return str(self.host.get_id())

    @property
    def addrs(self):
        peer_id = self.peer_id
        return [dialable_address(a, peer_id) for a in self.host.get_addrs()]

    def start(self):
        if self._host is not None:
            return
        key_pair = generate_key_pair(self.key_type, self.key_bits)
        try:
            listen = [Multiaddr(a) for a in self.listen_addrs]
            self.portal.start()
            self._host = self.portal.start_task(self._serve, key_pair, listen)
        except Exception as e:
            logger.exception("unable to start libp2p host")
            raise TransportError("unable to start host on %s: %s" % (', '.join(self.listen_addrs), e)) from e
        logger.info("libp2p host %s listening on %s", self.peer_id, self.listen_addrs)

    async def _serve(self, key_pair, listen, task_status=trio.TASK_STATUS_IGNORED):
        host = new_host(key_pair=key_pair)
        self._stopped = trio.Event()
        async with host.run(listen_addrs=listen):
            task_status.started(host)
            await self._stopped.wait()
        logger.debug("libp2p host stopped")

    def close(self):
        if self._host is not None:
            try:
                self.portal.run_sync(self._stop_host)
            except Exception as e:
                logger.debug("host already stopped: %s", e)
            self._host = None
        self.portal.stop(5)

    def _stop_host(self):
        if self._stopped is not None:
            self._stopped.set()

    def set_stream_handler(self, protocol_id, handler):
        async def accept(stream):
            conduit = Libp2pConduit(stream, self.portal)
            logger.info("accepted %s stream from %s", protocol_id, conduit.remote_peer)
            try:
                await trio.to_thread.run_sync(handler, conduit)
            except Exception:
                logger.exception("stream handler failed for %s", conduit.remote_peer)
                await conduit.aclose()
            # the stream stays open for as long as the handler is running
            await conduit.wait_closed()

        self.portal.run_sync(self.host.set_stream_handler, TProtocol(protocol_id), accept)

    def resolve(self, address) -> RemotePeerInfo:
        return resolve_address(address)

    def connect(self, info: RemotePeerInfo):
        peer_info = to_peer_info(info)
        try:
            self.portal.run(self.host.connect, peer_info)
        except Exception as e:
            raise TransportError("connection failed: %s" % e) from e
        logger.info("connected to %s", info.peer_id)

    def new_stream(self, info: RemotePeerInfo, protocol_id):
        try:
            stream = self.portal.run(self.host.new_stream, ID.from_base58(info.peer_id), [TProtocol(protocol_id)])
        except Exception as e:
            raise TransportError("stream open failed: %s" % e) from e
        logger.info("opened %s stream to %s", protocol_id, info.peer_id)
        return Libp2pConduit(stream, self.portal)
