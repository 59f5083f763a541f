import unittest

from hamcrest import assert_that, calling, contains_exactly, contains_string, is_, raises
from libp2p.peer.id import ID
from multiaddr import Multiaddr

from p2pchat.transport.address import dialable_address, resolve_address, to_peer_info
from p2pchat.transport.base import AddressError, RemotePeerInfo

PEER_ID = 'QmYyQSo1c1Ym7orWxLYvCrM2EmxFTANf8wXmmE7DWjhx5N'


class ResolveAddressTest(unittest.TestCase):

    def test_splits_peer_from_address(self):
        info = resolve_address('/ip4/127.0.0.1/tcp/4001/p2p/%s' % PEER_ID)
        assert_that(info.peer_id, is_(PEER_ID))
        assert_that(info.addrs, contains_exactly('/ip4/127.0.0.1/tcp/4001'))

    def test_ipv6_address(self):
        info = resolve_address('/ip6/::1/tcp/4001/p2p/%s' % PEER_ID)
        assert_that(info, is_(RemotePeerInfo(PEER_ID, ['/ip6/::1/tcp/4001'])))

    def test_surrounding_whitespace_ignored(self):
        info = resolve_address('  /ip4/127.0.0.1/tcp/4001/p2p/%s\n' % PEER_ID)
        assert_that(info.peer_id, is_(PEER_ID))

    def test_empty_address(self):
        assert_that(calling(resolve_address).with_args('   '), raises(AddressError, 'no address'))

    def test_malformed_address(self):
        assert_that(calling(resolve_address).with_args('not a multiaddr'), raises(AddressError))

    def test_unknown_protocol(self):
        assert_that(calling(resolve_address).with_args('/ipx/1.2.3.4/tcp/1/p2p/%s' % PEER_ID),
                    raises(AddressError))

    def test_address_without_peer(self):
        assert_that(calling(resolve_address).with_args('/ip4/127.0.0.1/tcp/4001'), raises(AddressError))


class ToPeerInfoTest(unittest.TestCase):

    def test_converts_to_libp2p(self):
        info = to_peer_info(RemotePeerInfo(PEER_ID, ['/ip4/127.0.0.1/tcp/4001']))
        assert_that(info.peer_id, is_(ID.from_base58(PEER_ID)))
        assert_that(info.addrs, contains_exactly(Multiaddr('/ip4/127.0.0.1/tcp/4001')))

    def test_invalid_peer_id(self):
        assert_that(calling(to_peer_info).with_args(RemotePeerInfo('not-base58-0OIl', [])),
                    raises(AddressError))


class DialableAddressTest(unittest.TestCase):

    def test_appends_peer(self):
        assert_that(dialable_address(Multiaddr('/ip4/10.0.0.1/tcp/4001'), PEER_ID),
                    is_('/ip4/10.0.0.1/tcp/4001/p2p/%s' % PEER_ID))

    def test_keeps_existing_peer(self):
        addr = '/ip6/::1/tcp/4001/p2p/%s' % PEER_ID
        assert_that(dialable_address(addr, 'QmOther'), is_(addr))

    def test_round_trip_through_resolve(self):
        addr = dialable_address('/ip4/192.168.1.2/tcp/9000', PEER_ID)
        assert_that(resolve_address(addr).peer_id, is_(PEER_ID))


class RemotePeerInfoTest(unittest.TestCase):

    def test_value_equality(self):
        assert_that(RemotePeerInfo('a', ['x']), is_(RemotePeerInfo('a', ('x',))))
        assert_that(RemotePeerInfo('a', ['x']) != RemotePeerInfo('b', ['x']), is_(True))

    def test_str(self):
        assert_that(str(RemotePeerInfo('a', ['x'])), contains_string("'peer_id': 'a'"))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
