"""CLI entrypoint for KipuBank."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Annotated, Any

import typer
from eth_typing import URI
from web3 import Web3

from .constants import NATIVE_ASSET, NATIVE_DECIMALS
from .errors import KipuBankError
from .logger import get_logger, setup_logging
from .settings import BankSettings, Network
from .state import AppState
from .units import format_units, format_usd, to_usd

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Deploy and query the KipuBankV2 multi-asset vault.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to a TOML config file (can include [kipu_bank] table).",
    ),
]
NetworkOption = Annotated[
    Network | None,
    typer.Option("--network", "-n", help="Network to use (mainnet or sepolia)."),
]
RpcOption = Annotated[
    str | None,
    typer.Option("--rpc-url", help="RPC endpoint; overrides the network default."),
]
LogLevelOption = Annotated[
    str | None,
    typer.Option(
        "--log-level",
        help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    ),
]


def _build_state(config_path: Path | None, **overrides: Any) -> AppState:
    """Load settings with CLI overrides and configure logging."""
    if config_path:
        os.environ["KIPU_BANK_CONFIG"] = str(config_path)

    init_kwargs = {key: value for key, value in overrides.items() if value is not None}
    settings = BankSettings(**init_kwargs)

    setup_logging(settings.log_level)
    return AppState(settings=settings, logger=get_logger("kipu_bank"))


def _web3(state: AppState) -> Web3:
    return Web3(Web3.HTTPProvider(URI(state.settings.rpc_url_resolved)))


@app.command()
def deploy(
    config_path: ConfigOption = None,
    network: NetworkOption = None,
    rpc_url: RpcOption = None,
    bank_cap_usd: Annotated[
        int | None,
        typer.Option("--bank-cap-usd", help="Bank cap in USD with 6 decimals."),
    ] = None,
    price_feed: Annotated[
        str | None,
        typer.Option("--price-feed", help="Chainlink ETH/USD aggregator address."),
    ] = None,
    artifact: Annotated[
        Path | None,
        typer.Option("--artifact", help="Compiled KipuBankV2 artifact (JSON)."),
    ] = None,
    log_level: LogLevelOption = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Deploy KipuBankV2 with the configured bank cap and price feed."""
    state = _build_state(
        config_path,
        network=network,
        rpc_url=rpc_url,
        bank_cap_usd=bank_cap_usd,
        price_feed_address=price_feed,
        artifact_path=artifact,
        log_level=log_level,
    )

    if show_config:
        typer.echo(json.dumps(state.settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if state.settings.private_key is None:
        raise typer.BadParameter(
            "private_key is required to deploy.",
            param_hint=["KIPU_BANK_PRIVATE_KEY"],
        )

    from .deploy import deploy_bank
    from .formatter import format_deployment

    try:
        result = asyncio.run(deploy_bank(state))
    except (KipuBankError, FileNotFoundError, ValueError) as e:
        state.logger.error("Deployment failed: %s", e)
        raise typer.Exit(code=1) from e

    format_deployment(result)


@app.command()
def balance(
    depositor: Annotated[str, typer.Argument(help="Depositor address.")],
    asset: Annotated[
        str, typer.Option("--asset", help="Asset address (zero address for ETH).")
    ] = NATIVE_ASSET,
    bank_address: Annotated[
        str | None,
        typer.Option("--bank-address", help="Deployed KipuBankV2 address."),
    ] = None,
    config_path: ConfigOption = None,
    network: NetworkOption = None,
    rpc_url: RpcOption = None,
    log_level: LogLevelOption = None,
):
    """Print the vault balance of DEPOSITOR for an asset."""
    state = _build_state(
        config_path,
        network=network,
        rpc_url=rpc_url,
        bank_address=bank_address,
        log_level=log_level,
    )
    if not state.settings.bank_address:
        raise typer.BadParameter(
            "bank_address must be configured",
            param_hint=["--bank-address", "KIPU_BANK_BANK_ADDRESS"],
        )

    from .client import KipuBankClient

    client = KipuBankClient(_web3(state), state.settings.bank_address_required)
    typer.echo(str(client.vaults(depositor, asset)))


@app.command()
def quote(
    amount_wei: Annotated[int, typer.Argument(help="Amount of ETH in wei.")],
    config_path: ConfigOption = None,
    network: NetworkOption = None,
    rpc_url: RpcOption = None,
    price_feed: Annotated[
        str | None,
        typer.Option("--price-feed", help="Chainlink ETH/USD aggregator address."),
    ] = None,
    log_level: LogLevelOption = None,
):
    """Value AMOUNT_WEI of ETH in USD using the Chainlink ETH/USD feed."""
    state = _build_state(
        config_path,
        network=network,
        rpc_url=rpc_url,
        price_feed_address=price_feed,
        log_level=log_level,
    )

    from .oracles.chainlink import ChainlinkPriceOracle

    oracle = ChainlinkPriceOracle(
        _web3(state),
        {NATIVE_ASSET: state.settings.price_feed_address_resolved},
        staleness_threshold=state.settings.price_feed_staleness_seconds,
    )
    try:
        price = oracle.read_price(NATIVE_ASSET)
    except KipuBankError as e:
        state.logger.error("%s", e)
        raise typer.Exit(code=1) from e

    value = to_usd(amount_wei, NATIVE_DECIMALS, price.answer, price.decimals)
    cap = state.settings.bank_cap_usd
    typer.echo(
        f"{format_units(amount_wei, NATIVE_DECIMALS)} ETH = {format_usd(value)} "
        f"({value} USD units, cap {format_usd(cap)})"
    )
    if value > cap:
        state.logger.warning("Amount alone exceeds the bank cap")


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
