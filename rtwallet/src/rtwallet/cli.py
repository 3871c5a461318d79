"""
rtwallet CLI - Provision regtest wallets, make a payment and summarize it.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pydantic
import typer
from loguru import logger

from rtwallet.backends.base import NodeGateway
from rtwallet.backends.bitcoin_core import BitcoinCoreRPC
from rtwallet.config import Settings
from rtwallet.errors import PreconditionError, RtWalletError
from rtwallet.models import NetworkType
from rtwallet.report import format_summary, write_summary
from rtwallet.wallet.amount import btc_to_sats
from rtwallet.wallet.inspector import TransactionInspector
from rtwallet.wallet.models import TransactionRecord, WalletHandle
from rtwallet.wallet.payment import PaymentExecutor
from rtwallet.wallet.provision import WalletProvisioner

app = typer.Typer(
    name="rtwallet",
    help="Regtest wallet provisioning and payment inspection",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def load_settings(**overrides: Any) -> Settings:
    """Settings from environment/.env with CLI options taking precedence."""
    try:
        return Settings(**{k: v for k, v in overrides.items() if v is not None})
    except pydantic.ValidationError as e:
        typer.echo(f"Invalid configuration:\n{e}", err=True)
        raise typer.Exit(1)


def create_gateway(settings: Settings) -> BitcoinCoreRPC:
    return BitcoinCoreRPC(
        rpc_url=settings.rpc_url,
        rpc_user=settings.rpc_user,
        rpc_password=settings.rpc_password,
        timeout=settings.rpc_timeout,
    )


def check_chain(gateway: NodeGateway, network: NetworkType) -> dict[str, Any]:
    """Fail unless the node runs the configured network."""
    info = gateway.get_blockchain_info()
    chain = info.get("chain")
    if chain != network.chain_name:
        raise PreconditionError(
            f"Node runs chain '{chain}' but rtwallet is configured for {network.value}"
        )
    logger.info(f"Connected to {chain} node at height {info.get('blocks')}")
    return info


def run_payment_flow(gateway: NodeGateway, settings: Settings) -> TransactionRecord:
    """Provision both wallets, pay from miner to trader and inspect the payment."""
    check_chain(gateway, settings.network)

    provisioner = WalletProvisioner(gateway)
    miner = provisioner.ensure_wallet(settings.miner_wallet)
    trader = provisioner.ensure_wallet(settings.trader_wallet)

    payment = PaymentExecutor(settings.network).fund_and_pay(
        miner, trader, btc_to_sats(settings.payment_amount)
    )

    inspector = TransactionInspector(settings.network)
    return inspector.inspect(payment.txid, miner, payment.recipient_address)


@app.command()
def run(
    rpc_url: str | None = typer.Option(None, "--rpc-url", help="Node RPC URL"),
    rpc_user: str | None = typer.Option(None, "--rpc-user"),
    rpc_password: str | None = typer.Option(None, "--rpc-password"),
    network: NetworkType | None = typer.Option(None, "--network", "-n"),
    amount: str | None = typer.Option(None, "--amount", "-a", help="Payment amount in BTC"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Summary file path"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Provision Miner and Trader, pay from Miner to Trader and write the summary."""
    settings = load_settings(
        rpc_url=rpc_url,
        rpc_user=rpc_user,
        rpc_password=rpc_password,
        network=network,
        payment_amount=amount,
        output_path=output,
        log_level=log_level,
    )
    setup_logging(settings.log_level)

    gateway = create_gateway(settings)
    try:
        record = run_payment_flow(gateway, settings)
        write_summary(record, settings.output_path)
    except RtWalletError as e:
        logger.error(f"{type(e).__name__}: {e}")
        raise typer.Exit(1)
    finally:
        gateway.close()

    typer.echo(format_summary(record), nl=False)


@app.command()
def ensure_wallet(
    name: str = typer.Argument(..., help="Wallet name"),
    rpc_url: str | None = typer.Option(None, "--rpc-url"),
    rpc_user: str | None = typer.Option(None, "--rpc-user"),
    rpc_password: str | None = typer.Option(None, "--rpc-password"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Create and load a wallet if needed."""
    settings = load_settings(
        rpc_url=rpc_url, rpc_user=rpc_user, rpc_password=rpc_password, log_level=log_level
    )
    setup_logging(settings.log_level)

    gateway = create_gateway(settings)
    try:
        handle = WalletProvisioner(gateway).ensure_wallet(name)
    except RtWalletError as e:
        logger.error(f"{type(e).__name__}: {e}")
        raise typer.Exit(1)
    finally:
        gateway.close()

    typer.echo(handle.name)


@app.command()
def inspect(
    txid: str = typer.Argument(..., help="Confirmed transaction id"),
    wallet: str = typer.Option(..., "--wallet", "-w", help="Wallet that sent the transaction"),
    recipient: str = typer.Option(..., "--recipient", "-r", help="Payment recipient address"),
    rpc_url: str | None = typer.Option(None, "--rpc-url"),
    rpc_user: str | None = typer.Option(None, "--rpc-user"),
    rpc_password: str | None = typer.Option(None, "--rpc-password"),
    network: NetworkType | None = typer.Option(None, "--network", "-n"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Print the summary of an existing confirmed transaction."""
    settings = load_settings(
        rpc_url=rpc_url,
        rpc_user=rpc_user,
        rpc_password=rpc_password,
        network=network,
        log_level=log_level,
    )
    setup_logging(settings.log_level)

    gateway = create_gateway(settings)
    try:
        # Read-only: never create or load the wallet here
        if wallet not in gateway.list_wallets():
            raise PreconditionError(f"Wallet '{wallet}' is not loaded on the node")
        funder = WalletHandle(name=wallet, gateway=gateway.for_wallet(wallet))
        record = TransactionInspector(settings.network).inspect(txid, funder, recipient)
    except RtWalletError as e:
        logger.error(f"{type(e).__name__}: {e}")
        raise typer.Exit(1)
    finally:
        gateway.close()

    typer.echo(format_summary(record), nl=False)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
