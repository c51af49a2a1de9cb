"""Operator command line for mint authorizations.

Subcommands:
  verify       Recompute a message hash and recover the signer of a signature
  purge        Delete unused authorizations past the retention window
  admin-token  Issue an admin bearer token for the revoke endpoint
  signer       Print the configured signer address

Typical usage:
  orion-mint verify --creator 0x... --content-hash 0x... --ip-uri ipfs://a \\
      --nft-uri ipfs://b --nonce 1 --expires-at 1700000900 --signature 0x...
  orion-mint purge --older-than 86400
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from orion_mint.core.errors import MintAuthorizationError
from orion_mint.core.log_config import configure_logging
from orion_mint.core.security import AdminTokenError, create_admin_token
from orion_mint.core.settings import settings
from orion_mint.db.session import get_session_factory
from orion_mint.db.time import unix_now
from orion_mint.services.encoding import encode, pack_mint_message
from orion_mint.services.signing import SigningConvention, get_signer, recover_signer
from orion_mint.services.token_store import TokenStore
from orion_mint.utils.ethereum import checksum, parse_bytes32, to_hex


def cmd_verify(args: argparse.Namespace) -> int:
    content_hash = parse_bytes32(args.content_hash)
    packed = pack_mint_message(
        args.creator, content_hash, args.ip_uri, args.nft_uri, args.nonce, args.expires_at
    )
    message_hash = encode(
        args.creator, content_hash, args.ip_uri, args.nft_uri, args.nonce, args.expires_at
    )
    print(f"packed:       {to_hex(packed)}")
    print(f"message hash: {to_hex(message_hash)}")
    if not args.signature:
        return 0

    matched = False
    for convention in SigningConvention:
        recovered = recover_signer(message_hash, args.signature, convention)
        marker = ""
        if args.expected_signer and recovered.lower() == args.expected_signer.lower():
            marker = "  <- matches expected signer"
            matched = True
        print(f"recovered ({convention.value}): {recovered}{marker}")
    if args.expected_signer and not matched:
        print("no convention recovers the expected signer", file=sys.stderr)
        return 1
    return 0


def cmd_purge(args: argparse.Namespace) -> int:
    store = TokenStore(get_session_factory())
    deleted = store.purge(args.older_than, unix_now())
    print(f"purged {deleted} mint authorizations")
    return 0


def cmd_admin_token(args: argparse.Namespace) -> int:
    try:
        token = create_admin_token(args.subject, args.expires_minutes)
    except AdminTokenError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(token)
    return 0


def cmd_signer(args: argparse.Namespace) -> int:
    signer = get_signer()
    print(f"address:    {checksum(signer.address)}")
    print(f"convention: {signer.convention.value}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="orion-mint", description=__doc__.splitlines()[0])
    sub = parser.add_subparsers(dest="command", required=True)

    verify = sub.add_parser("verify", help="Recompute a message hash and recover its signer")
    verify.add_argument("--creator", required=True)
    verify.add_argument("--content-hash", required=True)
    verify.add_argument("--ip-uri", required=True)
    verify.add_argument("--nft-uri", required=True)
    verify.add_argument("--nonce", type=int, required=True)
    verify.add_argument("--expires-at", type=int, required=True)
    verify.add_argument("--signature", default=None)
    verify.add_argument("--expected-signer", default=None)
    verify.set_defaults(func=cmd_verify)

    purge = sub.add_parser("purge", help="Delete unused authorizations past retention")
    purge.add_argument(
        "--older-than",
        type=int,
        default=settings.retention_seconds,
        help="Seconds past the deadline before a record is deleted",
    )
    purge.set_defaults(func=cmd_purge)

    token = sub.add_parser("admin-token", help="Issue an admin bearer token")
    token.add_argument("--subject", default="operator")
    token.add_argument("--expires-minutes", type=int, default=None)
    token.set_defaults(func=cmd_admin_token)

    signer = sub.add_parser("signer", help="Print the configured signer address")
    signer.set_defaults(func=cmd_signer)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    try:
        return int(args.func(args))
    except MintAuthorizationError as exc:
        print(f"error [{exc.code}]: {exc.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
