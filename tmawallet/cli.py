"""Simple CLI for driving a wallet session from a terminal"""

import argparse
import asyncio
import json
import sys
from typing import Any, List, Optional

from tmawallet.config import settings
from tmawallet.core.eip1193 import ProviderRouter, WalletProvider
from tmawallet.core.wallet import SessionState, WalletError, WalletSession
from tmawallet.logging_config import setup_logging
from tmawallet.providers import JsonRpcProvider, WalletApiProvider
from tmawallet.storage import JsonFileStorage


def print_state(state: SessionState) -> None:
    print(f"Registered: {'yes' if state.registered else 'no'}")
    print(f"Status:     {state.status.value}")
    print(f"Wallet:     {state.wallet_address or '-'}")


def build_session(args: argparse.Namespace) -> WalletSession:
    token = args.session_token or settings.host_session_token
    if not token:
        raise SystemExit("❌ A host session token is required (--session-token or HOST_SESSION_TOKEN)")
    if not settings.has_project_token:
        raise SystemExit("❌ PROJECT_PUBLIC_TOKEN is not configured")

    return WalletSession(
        project_public_token=settings.project_public_token,
        host_session_token=token,
        storage=JsonFileStorage(args.storage or settings.storage_path),
        wallet_api=WalletApiProvider(args.endpoint or settings.wallet_endpoint),
    )


async def cli_status(session: WalletSession) -> None:
    print_state(await session.init())


async def cli_authenticate(session: WalletSession) -> None:
    before = await session.init()
    state = await session.authenticate()
    if state == before:
        print("✅ Already authenticated")
    elif not before.registered:
        print("📦 Client bundle created and wallet derived")
    else:
        print("🔑 Wallet derived and registered")
    print_state(state)


async def cli_clear_address(session: WalletSession) -> None:
    await session.init()
    print_state(await session.clear_local_wallet_address())


async def cli_destroy(session: WalletSession, confirmed: bool) -> None:
    if not confirmed:
        print("⚠️  This permanently destroys the client bundle and the wallet it controls.")
        print("   Re-run with --yes to proceed.")
        return
    await session.init()
    print_state(await session.destroy())


async def cli_request(session: WalletSession, method: str, raw_params: Optional[str]) -> None:
    params: List[Any] = json.loads(raw_params) if raw_params else []
    if not isinstance(params, list):
        raise SystemExit("❌ PARAMS_JSON must be a JSON array")

    rpc = JsonRpcProvider()
    provider = WalletProvider(ProviderRouter(session, rpc))
    try:
        await session.init()
        result = await provider.request(method, params)
        print(json.dumps(result, indent=2))
    finally:
        await rpc.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Split-key mini-app wallet CLI")
    parser.add_argument("--session-token", help="Host session token (default: HOST_SESSION_TOKEN)")
    parser.add_argument("--storage", help="Path of the JSON storage file")
    parser.add_argument("--endpoint", help="Wallet API endpoint")
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("status", help="Show the local wallet state")
    subparsers.add_parser("authenticate", help="Create the bundle or derive the wallet")
    subparsers.add_parser("clear-address", help="Forget the cached wallet address")

    destroy_parser = subparsers.add_parser("destroy", help="Destroy the client bundle")
    destroy_parser.add_argument("--yes", action="store_true", help="Confirm destruction")

    request_parser = subparsers.add_parser("request", help="Send an EIP-1193 request")
    request_parser.add_argument("method", help="Provider method, e.g. eth_accounts")
    request_parser.add_argument("params", nargs="?", help="Parameters as a JSON array")

    return parser


async def run(session: WalletSession, args: argparse.Namespace) -> int:
    wallet_api = session.derivation.wallet_api
    try:
        if args.command == "status":
            await cli_status(session)
        elif args.command == "authenticate":
            await cli_authenticate(session)
        elif args.command == "clear-address":
            await cli_clear_address(session)
        elif args.command == "destroy":
            await cli_destroy(session, args.yes)
        elif args.command == "request":
            await cli_request(session, args.method, args.params)
    except WalletError as e:
        print(f"❌ {type(e).__name__}: {e}")
        return 1
    finally:
        await wallet_api.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args.log_level)
    session = build_session(args)
    return asyncio.run(run(session, args))


if __name__ == "__main__":
    sys.exit(main())
