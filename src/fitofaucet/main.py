#!/usr/bin/env python3
"""Fitochain testnet faucet.

Entry point for the faucet service.
"""

import asyncio
import logging
import os
import signal
import sys
from pathlib import Path

from eth_account import Account
from pydantic import ValidationError
from web3.exceptions import Web3Exception

from fitofaucet.ai.client import TextGenerator
from fitofaucet.api.server import ApiServer, Services, create_app
from fitofaucet.assistant import AssistantService
from fitofaucet.blockchain import ChainClient, NetworkInfo, load_wallet
from fitofaucet.cli import create_parser, run_cli
from fitofaucet.config import FaucetConfig
from fitofaucet.faucet import (
    ChallengeIssuer,
    ChallengeVerifier,
    CooldownStore,
    FaucetService,
    NativeDistributor,
)
from fitofaucet.observability.health import ChainCheck, CooldownStoreCheck, ProbeServer
from fitofaucet.observability.logging import configure_logging

DEFAULT_API_PORT = 8080


def generate_wallet(output_path: str) -> str:
    """Create a new faucet key and write it, hex encoded, to ``output_path``.

    The file is created owner-readable only and an existing file is never
    overwritten.

    Returns
    -------
    str
        Address of the new wallet.

    Raises
    ------
    FileExistsError
        If ``output_path`` already exists.
    """
    account = Account.create()
    key_path = Path(output_path).expanduser()
    key_path.parent.mkdir(parents=True, exist_ok=True)

    fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    try:
        with os.fdopen(fd, "w") as key_file:
            key_file.write(account.key.to_0x_hex())
    except OSError:
        key_path.unlink(missing_ok=True)
        raise

    print(f"""
Faucet wallet generated.

  Address:     {account.address}
  Private Key: {key_path.absolute()}

Fund the address with testnet coins, then start the faucet with:

  export FAUCET_WALLET_PRIVATE_KEY_FILE={key_path.absolute()}
  fitofaucet run

Anyone who can read this file controls the faucet funds.
""")
    return account.address


def parse_args():
    """Parse command line arguments."""
    return create_parser().parse_args()


def build_services(config: FaucetConfig) -> tuple[Services, ChainClient, CooldownStore]:
    """Wire the faucet components from configuration.

    Returns
    -------
    tuple[Services, ChainClient, CooldownStore]
        API collaborators plus the clients used by readiness checks.
    """
    logger = logging.getLogger(__name__)

    wallet = load_wallet(config.wallet_private_key, config.wallet_private_key_file)
    logger.info("Wallet loaded", extra={"address": wallet.address})

    client = ChainClient(config.rpc_endpoint, wallet)
    chain_id = client.chain_id
    logger.info("Connected to chain", extra={"chain_id": chain_id})

    network = NetworkInfo(
        chain_id=chain_id,
        token_symbol=config.token_symbol,
        block_explorer_url=config.block_explorer_url,
    )

    store = CooldownStore.from_url(config.redis_url, timeout=config.redis_timeout_seconds)
    generator = TextGenerator.from_settings(
        api_key=config.ai_api_key.get_secret_value(),
        base_url=config.ai_base_url,
        model=config.ai_model,
    )

    distributor = NativeDistributor(
        client=client,
        amount=config.amount,
        confirmation_timeout=config.confirmation_timeout_seconds,
        token_symbol=config.token_symbol,
    )
    faucet = FaucetService(
        cooldown_store=store,
        issuer=ChallengeIssuer(generator),
        verifier=ChallengeVerifier(generator),
        distributor=distributor,
        cooldown_seconds=config.cooldown_seconds,
    )

    services = Services(
        faucet=faucet,
        assistant=AssistantService(generator),
        network=network,
        wallet_address=wallet.address,
    )
    return services, client, store


async def run_service() -> None:
    """Run the faucet service (long-running mode).

    A configuration or wiring failure does not stop the process: the API
    still starts and answers every functional route with 503.
    """
    services = None
    init_error = None
    probe_server = None

    try:
        config = FaucetConfig()
    except ValidationError as e:
        configure_logging()
        config = None
        init_error = f"Invalid configuration: {e.error_count()} error(s)"
        logging.getLogger(__name__).error(
            "Faucet initialization failed", extra={"error": str(e)}
        )
    else:
        configure_logging(level=config.log_level, log_format=config.log_format)

    logger = logging.getLogger(__name__)
    logger.info("Faucet starting")

    if config is not None:
        probe_server = ProbeServer(port=config.metrics_port)
        try:
            services, client, store = build_services(config)
        except (ValueError, OSError, Web3Exception) as e:
            init_error = f"Failed to initialize services: {e}"
            logger.error("Faucet initialization failed", extra={"error": str(e)})
        else:
            probe_server.checks += [CooldownStoreCheck(store), ChainCheck(client)]
            logger.info(
                "Faucet configured",
                extra={
                    "rpc": config.rpc_endpoint,
                    "amount": str(config.amount),
                    "cooldown_minutes": config.cooldown_minutes,
                },
            )
        await probe_server.start()

    api_server = ApiServer(
        create_app(services, init_error),
        host=config.api_host if config else "0.0.0.0",  # noqa: S104
        port=config.api_port if config else DEFAULT_API_PORT,
    )

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def on_shutdown_signal(sig_name: str) -> None:
        logger.info("Received signal %s, initiating shutdown", sig_name)
        shutdown_event.set()

    loop.add_signal_handler(signal.SIGTERM, lambda: on_shutdown_signal("SIGTERM"))
    loop.add_signal_handler(signal.SIGINT, lambda: on_shutdown_signal("SIGINT"))

    await api_server.start()
    if init_error:
        logger.error("Faucet running in degraded mode", extra={"error": init_error})
    else:
        logger.info("Faucet service ready")

    await shutdown_event.wait()

    logger.info("Faucet shutting down...")
    await api_server.stop()
    if probe_server:
        await probe_server.stop()
    logger.info("Faucet shutdown complete")


async def main() -> None:
    """Main entry point."""
    args = parse_args()

    if args.generate_wallet:
        try:
            generate_wallet(args.generate_wallet)
        except FileExistsError:
            print(f"Refusing to overwrite {args.generate_wallet}", file=sys.stderr)
            sys.exit(1)
        return

    if args.command and args.command != "run":
        exit_code = await run_cli(args)
        if exit_code >= 0:
            sys.exit(exit_code)
        create_parser().print_help()
        sys.exit(0)

    await run_service()


def entrypoint() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    entrypoint()
