import argparse
import os
import sys
import json
import logging
import requests
from uvicorn import Config, Server
from ...protocol.config.params import NETWORKS
from ...protocol.crypto.pow import mint_digest, digest_to_int
from ..core.challenge import RandomBeacon, RpcBlockBeacon
from ..core.coordinator import MintCoordinator
from ..extensions.delegated import sign_mint_packet
from ..rpc import api

logger = logging.getLogger(__name__)

DEFAULT_NODE = "http://localhost:8000"

def get_node_url(args):
    return args.node or os.environ.get("POWMINT_NODE", DEFAULT_NODE)

def cmd_start(args):
    """Run an engine with an in-memory ledger behind the RPC server."""
    config = NETWORKS[args.network]
    beacon_url = args.beacon or config.beacon_url
    if beacon_url:
        source = RpcBlockBeacon(beacon_url)
        logger.info(f"Challenges derived from finalized blocks of {beacon_url}")
    else:
        source = RandomBeacon()
        logger.warning("No beacon node configured, using local randomness for challenges")

    engine = MintCoordinator(config=config, source=source)
    app = api.init_app(engine)

    server = Server(Config(app=app, host=args.host, port=args.port, log_level=args.log_level.lower()))
    try:
        server.run()
    except KeyboardInterrupt:
        pass

def cmd_status(args):
    url = get_node_url(args)
    try:
        resp = requests.get(f"{url}/status", timeout=5)
        resp.raise_for_status()
    except requests.RequestException as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(json.dumps(resp.json(), indent=2))

def cmd_hash(args):
    """Offline digest check for a nonce, as the engine computes it."""
    try:
        digest = mint_digest(args.nonce, args.address, args.challenge)
    except (ValueError, OverflowError) as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(f"Digest: {digest.hex()}")
    if args.target is not None:
        ok = digest_to_int(digest) <= args.target
        print(f"Meets target: {ok}")

def cmd_sign_packet(args):
    """Signs a delegated mint packet with a hex private key."""
    try:
        priv = bytes.fromhex(args.private_key)
        if len(priv) != 32:
            raise ValueError("Invalid private key length")
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    engine_id = args.engine_id or NETWORKS[args.network].engine_id
    packet = sign_mint_packet(args.nonce, priv, engine_id, prefix=NETWORKS[args.network].address_prefix)
    print(packet.model_dump_json(indent=2))

def main():
    parser = argparse.ArgumentParser(description="PowMint Node CLI")
    parser.add_argument("--network", default=os.environ.get("POWMINT_NETWORK", "devnet"),
                        choices=sorted(NETWORKS), help="Network preset")
    parser.add_argument("--log-level", default="INFO", help="Logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Start command
    start_parser = subparsers.add_parser("start", help="Run the mint engine RPC server")
    start_parser.add_argument("--host", default="0.0.0.0", help="RPC Host")
    start_parser.add_argument("--port", type=int, default=8000, help="RPC Port")
    start_parser.add_argument("--beacon", default=None, help="Node URL whose finalized block hash seeds challenges")

    # Status command
    status_parser = subparsers.add_parser("status", help="Query a running node")
    status_parser.add_argument("--node", default=None, help="Node URL")

    # Hash command
    hash_parser = subparsers.add_parser("hash", help="Compute a mint digest offline")
    hash_parser.add_argument("--nonce", type=lambda v: int(v, 0), required=True)
    hash_parser.add_argument("--address", required=True)
    hash_parser.add_argument("--challenge", required=True, help="Challenge number (hex)")
    hash_parser.add_argument("--target", type=lambda v: int(v, 0), default=None)

    # Sign packet command
    sign_parser = subparsers.add_parser("sign-packet", help="Sign a delegated mint packet")
    sign_parser.add_argument("--nonce", type=lambda v: int(v, 0), required=True)
    sign_parser.add_argument("--private-key", required=True, help="Hex private key of the solver")
    sign_parser.add_argument("--engine-id", default=None, help="Defaults to the network's engine id")

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format='%(asctime)s %(levelname)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    if args.command == "start":
        cmd_start(args)
    elif args.command == "status":
        cmd_status(args)
    elif args.command == "hash":
        cmd_hash(args)
    elif args.command == "sign-packet":
        cmd_sign_packet(args)

if __name__ == "__main__":
    main()
