"""
Command line entry point. Starts a peer, prints how to reach it, then either dials the friend's address or waits
for them to dial in, and sends every line typed to the connected peer.
"""
import argparse
import logging
import sys

from configobj import ConfigObjError

from p2pchat.config.config import apply_conf_path, load_config
from p2pchat.session.console import Console
from p2pchat.session.controller import DEFAULT_PROTOCOL_ID, SessionController, SessionError
from p2pchat.session.registry import StreamRegistry
from p2pchat.session.writer import ConsoleLineSource, WriterLoop
from p2pchat.transport.base import TransportError
from p2pchat.transport.libp2p_transport import DEFAULT_LISTEN_ADDRS, Libp2pTransport

logger = logging.getLogger(__name__)

ADDRESS_PROMPT = "\nEnter friend's MultiAddress (leave empty to wait for incoming): "
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ChatSettings:
    """ the settings for a chat peer, populated from the [chat] configuration section """
    def __init__(self):
        self.protocol_id = DEFAULT_PROTOCOL_ID
        self.listen_addrs = list(DEFAULT_LISTEN_ADDRS)
        self.key_type = 'rsa'
        self.key_bits = 2048
        self.prompt = '> '
        self.close_superseded = False


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Peer-to-peer text chat over libp2p.")
    parser.add_argument('-c', '--config-dir', help="directory containing chat.cfg (default: current directory)")
    parser.add_argument('-d', '--peer', help="multiaddress of the peer to dial, instead of prompting for it")
    parser.add_argument('-l', '--listen', action='append', metavar='ADDR',
                        help="multiaddress to listen on; may be repeated (overrides the configuration)")
    parser.add_argument('-p', '--protocol', help="protocol identifier for chat streams")
    parser.add_argument('--log-level', type=str.upper, choices=LOG_LEVELS,
                        help="logging level, such as DEBUG or INFO")
    return parser.parse_args(argv)


def load_settings(args):
    config = load_config(directory=args.config_dir)
    settings = ChatSettings()
    apply_conf_path(config, ['chat'], settings)
    if args.listen:
        settings.listen_addrs = args.listen
    if args.protocol:
        settings.protocol_id = args.protocol
    return settings, config['logging']


def configure_logging(logging_conf, level=None):
    logging.basicConfig(level=(level or logging_conf['level']).upper(), format=logging_conf['format'])


def read_address(console: Console, stream=None):
    """ prompts for the friend's address. End of input counts as no address. """
    console.write(ADDRESS_PROMPT)
    line = (stream or sys.stdin).readline()
    return line.strip()


def print_identity(console: Console, transport):
    console.notice("Peer ID: %s" % transport.peer_id)
    console.notice("Peer MultiAddresses:")
    for addr in transport.addrs:
        console.notice(addr)


def run_chat(transport, settings: ChatSettings, console: Console, peer_address=None, stdin=None):
    """
    Runs the interactive chat with a started transport until the local input ends.
    Raises SessionError if dialing the peer fails.
    """
    registry = StreamRegistry()
    controller = SessionController(transport, registry, console, settings.protocol_id, settings.close_superseded)
    controller.listen()
    address = peer_address if peer_address is not None else read_address(console, stdin)
    if address:
        controller.dial(address)
    else:
        console.notice("Waiting for incoming connection...")
    try:
        WriterLoop(registry, ConsoleLineSource(console, stdin), console).run()
    finally:
        controller.close(1)
    return controller


def main(argv=None, transport_factory=Libp2pTransport, console=None):
    """
    :return: the process exit status
    """
    args = parse_args(argv)
    console = console or Console()
    try:
        settings, logging_conf = load_settings(args)
    except (ConfigObjError, IOError) as e:
        console.notice("Configuration error: %s" % e)
        return 1
    configure_logging(logging_conf, args.log_level)
    console.prompt_text = settings.prompt

    transport = transport_factory(settings.listen_addrs, settings.key_type, settings.key_bits)
    try:
        transport.start()
        print_identity(console, transport)
        run_chat(transport, settings, console, args.peer)
    except (TransportError, SessionError) as e:
        logger.debug("fatal error", exc_info=True)
        console.notice("Error: %s" % e)
        return 1
    except KeyboardInterrupt:
        console.notice("\nInterrupted. Exiting")
    finally:
        transport.close()
    return 0


def run():
    sys.exit(main())


if __name__ == '__main__':  # pragma: no cover
    run()
