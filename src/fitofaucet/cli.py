"""Operator commands.

``fitofaucet wallet|faucet|cooldown ...`` inspect and drive the faucet
without going through the HTTP API: no CAPTCHA is asked and no cooldown
is recorded by ``faucet send``.
"""

import argparse
import json
import sys
import time
from collections.abc import Awaitable, Callable
from decimal import Decimal

from fitofaucet.blockchain import ChainClient, FaucetWallet, load_wallet
from fitofaucet.config import FaucetConfig
from fitofaucet.faucet.cooldown import CooldownStore, StoreUnavailableError, normalize_address
from fitofaucet.faucet.distributor import NativeDistributor, validate_address

# group -> subcommands that take an ADDRESS positional
_GROUPS: dict[str, dict[str, str]] = {
    "wallet": {
        "address": "Print the faucet wallet address",
        "balance": "Print the faucet wallet balance",
    },
    "faucet": {
        "status": "Compare the balance with the payout settings",
        "send": "Pay the faucet amount to ADDRESS, skipping CAPTCHA and cooldown",
    },
    "cooldown": {
        "show": "Print the cooldown left for ADDRESS",
        "reset": "Forget the last claim of ADDRESS",
    },
}
_TAKES_ADDRESS = {("faucet", "send"), ("cooldown", "show"), ("cooldown", "reset")}


def create_parser() -> argparse.ArgumentParser:
    """Top-level parser; global flags go before the subcommand."""
    parser = argparse.ArgumentParser(
        prog="fitofaucet",
        description="Fitochain testnet faucet",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report state-changing commands instead of running them",
    )
    parser.add_argument(
        "--generate-wallet",
        metavar="FILE",
        help="Write a fresh private key to FILE and exit",
    )

    commands = parser.add_subparsers(dest="command", title="commands")
    commands.add_parser("run", help="Start the faucet service")
    for group, subcommands in _GROUPS.items():
        group_parser = commands.add_parser(group, help=f"{group.capitalize()} commands")
        actions = group_parser.add_subparsers(dest=f"{group}_command")
        for name, help_text in subcommands.items():
            action = actions.add_parser(name, help=help_text)
            if (group, name) in _TAKES_ADDRESS:
                action.add_argument("address", help="0x-prefixed account address")

    return parser


def _json_default(value):
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


class CLIContext:
    """Configuration plus lazily built wallet, chain client and cooldown store.

    Commands that never touch the chain do not need a reachable node, and
    ``wallet address`` works without Redis.
    """

    def __init__(self, config: FaucetConfig, dry_run: bool = False, json_output: bool = False):
        self.config = config
        self.dry_run = dry_run
        self.json_output = json_output
        self._wallet: FaucetWallet | None = None
        self._client: ChainClient | None = None
        self._store: CooldownStore | None = None

    @property
    def wallet(self) -> FaucetWallet:
        if self._wallet is None:
            self._wallet = load_wallet(
                self.config.wallet_private_key, self.config.wallet_private_key_file
            )
        return self._wallet

    @property
    def client(self) -> ChainClient:
        if self._client is None:
            self._client = ChainClient(self.config.rpc_endpoint, self.wallet)
        return self._client

    @property
    def store(self) -> CooldownStore:
        if self._store is None:
            self._store = CooldownStore.from_url(
                self.config.redis_url, timeout=self.config.redis_timeout_seconds
            )
        return self._store

    def output(self, data: dict) -> None:
        """Print ``data`` as indented JSON or as ``key: value`` lines."""
        if self.json_output:
            print(json.dumps(data, default=_json_default, indent=2))
            return
        print("\n".join(f"{key}: {value}" for key, value in data.items()))

    def fail(self, message: str) -> int:
        self.output({"error": message})
        return 1


async def cmd_wallet_address(ctx: CLIContext, args: argparse.Namespace) -> int:
    try:
        address = ctx.wallet.address
    except (ValueError, OSError) as e:
        return ctx.fail(str(e))
    ctx.output({"address": address})
    return 0


async def cmd_wallet_balance(ctx: CLIContext, args: argparse.Namespace) -> int:
    try:
        client = ctx.client
        if not client.connected:
            return ctx.fail(f"Cannot reach RPC endpoint {ctx.config.rpc_endpoint}")
        balance = client.get_faucet_balance()
        chain_id = client.chain_id
    except Exception as e:
        return ctx.fail(str(e))

    ctx.output(
        {
            "address": client.wallet_address,
            "balance": balance,
            "symbol": ctx.config.token_symbol,
            "chain_id": chain_id,
        }
    )
    return 0


async def cmd_faucet_status(ctx: CLIContext, args: argparse.Namespace) -> int:
    """How many payouts the current balance still covers."""
    amount = ctx.config.amount
    try:
        balance = ctx.client.get_faucet_balance()
    except Exception as e:
        return ctx.fail(str(e))

    ctx.output(
        {
            "address": ctx.client.wallet_address,
            "balance": balance,
            "amount_per_request": amount,
            "requests_remaining": int(balance // amount),
            "cooldown_minutes": ctx.config.cooldown_minutes,
            "symbol": ctx.config.token_symbol,
        }
    )
    return 0


async def cmd_faucet_send(ctx: CLIContext, args: argparse.Namespace) -> int:
    """Pay out through the same engine the API uses and wait for the receipt."""
    address = args.address
    if not validate_address(address):
        return ctx.fail(f"Invalid address: {address}")

    config = ctx.config
    if ctx.dry_run:
        ctx.output(
            {
                "dry_run": True,
                "action": "send",
                "to": address,
                "amount": config.amount,
                "message": f"Would send {config.amount} {config.token_symbol} to {address}",
            }
        )
        return 0

    try:
        distributor = NativeDistributor(
            ctx.client,
            config.amount,
            confirmation_timeout=config.confirmation_timeout_seconds,
            token_symbol=config.token_symbol,
        )
        result = await distributor.distribute(address)
    except (ValueError, OSError) as e:
        return ctx.fail(str(e))

    ctx.output(
        {
            "success": result.success,
            "status": result.status.value,
            "to": address,
            "amount": result.amount,
            "tx_hash": result.tx_hash,
            "message": result.message,
        }
    )
    return 0 if result.success else 1


async def cmd_cooldown_show(ctx: CLIContext, args: argparse.Namespace) -> int:
    try:
        last_claim = await ctx.store.get_last_claim(args.address)
    except StoreUnavailableError as e:
        return ctx.fail(f"Cooldown store unavailable: {e}")

    remaining_ms = 0
    if last_claim is not None:
        now_ms = int(time.time() * 1000)
        remaining_ms = max(0, last_claim + ctx.config.cooldown_seconds * 1000 - now_ms)

    ctx.output(
        {
            "address": normalize_address(args.address),
            "last_claim_ms": last_claim,
            "cooldown_remaining_ms": remaining_ms,
        }
    )
    return 0


async def cmd_cooldown_reset(ctx: CLIContext, args: argparse.Namespace) -> int:
    address = normalize_address(args.address)
    if ctx.dry_run:
        ctx.output({"dry_run": True, "action": "reset_cooldown", "address": address})
        return 0

    try:
        removed = await ctx.store.clear(address)
    except StoreUnavailableError as e:
        return ctx.fail(f"Cooldown store unavailable: {e}")

    ctx.output({"address": address, "removed": removed})
    return 0


Handler = Callable[[CLIContext, argparse.Namespace], Awaitable[int]]

COMMANDS: dict[tuple[str, str], Handler] = {
    ("wallet", "address"): cmd_wallet_address,
    ("wallet", "balance"): cmd_wallet_balance,
    ("faucet", "status"): cmd_faucet_status,
    ("faucet", "send"): cmd_faucet_send,
    ("cooldown", "show"): cmd_cooldown_show,
    ("cooldown", "reset"): cmd_cooldown_reset,
}


async def run_cli(args: argparse.Namespace) -> int:
    """Run the operator command selected in ``args``.

    Returns
    -------
    int
        Process exit code, or -1 when no command was given and the caller
        should print help instead.
    """
    if args.command not in _GROUPS:
        return -1

    try:
        config = FaucetConfig()
    except Exception as e:
        if args.json:
            print(json.dumps({"error": f"Configuration error: {e}"}))
        else:
            print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    handler = COMMANDS.get((args.command, getattr(args, f"{args.command}_command")))
    if handler is None:
        choices = "|".join(_GROUPS[args.command])
        print(f"Usage: fitofaucet {args.command} [{choices}]", file=sys.stderr)
        return 1

    ctx = CLIContext(config, dry_run=args.dry_run, json_output=args.json)
    return await handler(ctx, args)
