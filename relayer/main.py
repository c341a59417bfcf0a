#!/usr/bin/env python3
"""Price Feed Relayer.

Fetches signed, aggregated prices from the oracle network and submits them
to the on-chain price feed contract once per window.

Configure with CLI arguments or environment variables. See --help.
"""

import argparse
import asyncio
import logging
import os
import sys

from .src.errors import ConfigurationError
from .src.networks import DEFAULT_ORACLES, get_available_networks, get_preset
from .src.PriceRelayer import PriceRelayer
from .src.RelayerConfig import (
    NetworkConfig,
    PairConfig,
    ProbeKind,
    RelayerConfig,
    RetryPolicy,
    SubmissionMode,
    SubmitterStrategy,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_list(value: str | None) -> list[str]:
    """Split a comma-separated string into stripped, non-empty items.

    :param value: Comma-separated string.
    :returns: List of items.
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_bool(value: str | None, default: bool) -> bool:
    """Interpret an environment flag such as "true", "0" or "no".

    :param value: Raw value, or None if unset.
    :param default: Value used when unset.
    :returns: Parsed flag.
    """
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def parse_pairs(pairs_str: str | None) -> list[PairConfig]:
    """Parse a comma-separated pair list such as "btc/usdt:8,stxtz/xtz:6".

    :param pairs_str: Comma-separated pair list.
    :returns: Parsed pairs.
    :raises ValueError: If a pair is malformed.
    """
    return [PairConfig.from_string(item) for item in parse_list(pairs_str)]


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser; defaults come from the environment."""
    available_networks = get_available_networks()

    parser = argparse.ArgumentParser(
        description="Price Feed Relayer: signed oracle prices to on-chain price feeds",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Available networks:
  {', '.join(available_networks)}

Examples:
  # Relay the default PEAQ pairs every 30 seconds in one batched transaction
  python -m relayer.main --network peaq-testnet --aggregator-url https://agg.example

  # One transaction per pair, concurrently
  python -m relayer.main --network peaq-mainnet --mode individual

  # Hand transactions to the host execution daemon, single run
  python -m relayer.main --network etherlink-testnet --submitter host --once

Environment variables (CLI args take precedence):
  NETWORK, RPC_URLS, PRICE_FEED_ADDRESS, PAIRS, WINDOW_SECONDS,
  SUBMISSION_MODE, SUBMITTER, PRIVATE_KEY, HOST_URL, HOST_SENDER_ADDRESS,
  AGGREGATOR_URL, ORACLES, MIN_SIGNATURES, RETRY_ENABLED, MAX_RETRIES,
  RETRY_DELAY, SUBMIT_TIMEOUT, PROBE_KIND, PROBE_TIMEOUT, FETCH_TIMEOUT, ESTIMATE_GAS,
  HEARTBEAT_URL, UPTIME_KUMA_KEY
""",
    )

    parser.add_argument(
        "--network",
        type=str,
        help=f"Network preset. Available: {', '.join(available_networks)}",
        default=os.environ.get("NETWORK") or "peaq-testnet",
    )

    parser.add_argument(
        "--rpc-urls",
        dest="rpc_urls",
        type=str,
        help="Comma-separated RPC URLs, most preferred first (overrides preset)",
        default=os.environ.get("RPC_URLS"),
    )

    parser.add_argument(
        "--price-feed-address",
        dest="price_feed_address",
        type=str,
        help="Price feed contract address (overrides preset)",
        default=os.environ.get("PRICE_FEED_ADDRESS"),
    )

    parser.add_argument(
        "--pairs",
        type=str,
        help="Comma-separated pairs with decimals (e.g., btc/usdt:8,eth/usdt:8)",
        default=os.environ.get("PAIRS"),
    )

    parser.add_argument(
        "--window",
        type=float,
        help="Seconds per execution window (overrides preset)",
        default=float(os.environ["WINDOW_SECONDS"]) if os.environ.get("WINDOW_SECONDS") else None,
    )

    parser.add_argument(
        "--mode",
        type=str,
        choices=[m.value for m in SubmissionMode],
        help="batched: one transaction per window; individual: one per pair",
        default=os.environ.get("SUBMISSION_MODE") or SubmissionMode.BATCHED.value,
    )

    parser.add_argument(
        "--submitter",
        type=str,
        choices=[s.value for s in SubmitterStrategy],
        help="direct: sign locally; host: delegate to the host execution daemon",
        default=os.environ.get("SUBMITTER") or SubmitterStrategy.DIRECT.value,
    )

    parser.add_argument(
        "--host-url",
        dest="host_url",
        type=str,
        help="Host daemon URL or Unix socket path (default: /run/host-executor.sock)",
        default=os.environ.get("HOST_URL"),
    )

    parser.add_argument(
        "--host-sender-address",
        dest="host_sender_address",
        type=str,
        help="Address the host daemon signs with (needed for individual mode)",
        default=os.environ.get("HOST_SENDER_ADDRESS"),
    )

    parser.add_argument(
        "--aggregator-url",
        dest="aggregator_url",
        type=str,
        help="Base URL of the price aggregation service",
        default=os.environ.get("AGGREGATOR_URL"),
    )

    parser.add_argument(
        "--oracles",
        type=str,
        help="Comma-separated oracle signer public keys (default: built-in set)",
        default=os.environ.get("ORACLES"),
    )

    parser.add_argument(
        "--min-signatures",
        dest="min_signatures",
        type=int,
        help="Signatures required per price (default: 3)",
        default=int(os.environ.get("MIN_SIGNATURES") or "3"),
    )

    parser.add_argument(
        "--no-retry",
        dest="retry_enabled",
        action="store_false",
        help="Do not retry failed attempts within a window",
        default=parse_bool(os.environ.get("RETRY_ENABLED"), True),
    )

    parser.add_argument(
        "--max-retries",
        dest="max_retries",
        type=int,
        help="Maximum retries per window (default: 2)",
        default=int(os.environ.get("MAX_RETRIES") or "2"),
    )

    parser.add_argument(
        "--retry-delay",
        dest="retry_delay",
        type=float,
        help="Seconds between retries within a window (default: 5.0)",
        default=float(os.environ.get("RETRY_DELAY") or "5.0"),
    )

    parser.add_argument(
        "--submit-timeout",
        dest="submit_timeout",
        type=float,
        help="Seconds to wait for a submission to confirm (default: 30.0)",
        default=float(os.environ.get("SUBMIT_TIMEOUT") or "30.0"),
    )

    parser.add_argument(
        "--probe",
        dest="probe_kind",
        type=str,
        choices=[k.value for k in ProbeKind],
        help="RPC liveness query: evm (eth_blockNumber) or tezos (head header)",
        default=os.environ.get("PROBE_KIND"),
    )

    parser.add_argument(
        "--probe-timeout",
        dest="probe_timeout",
        type=float,
        help="Seconds per RPC endpoint probe (default: 5.0)",
        default=float(os.environ.get("PROBE_TIMEOUT") or "5.0"),
    )

    parser.add_argument(
        "--fetch-timeout",
        dest="fetch_timeout",
        type=float,
        help="Seconds for the price aggregation request (default: 10.0)",
        default=float(os.environ.get("FETCH_TIMEOUT") or "10.0"),
    )

    parser.add_argument(
        "--estimate-gas",
        dest="estimate_gas",
        action="store_true",
        help="Estimate gas per transaction instead of using the preset limit",
        default=parse_bool(os.environ.get("ESTIMATE_GAS"), False),
    )

    parser.add_argument(
        "--heartbeat-url",
        dest="heartbeat_url",
        type=str,
        help="Base URL of the Uptime Kuma instance",
        default=os.environ.get("HEARTBEAT_URL") or "https://uptime.papers.tech",
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single window and exit (cron mode)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser


def build_config(args: argparse.Namespace, parser: argparse.ArgumentParser) -> RelayerConfig:
    """Combine the network preset with CLI/environment overrides.

    :param args: Parsed arguments.
    :param parser: Parser, used to report invalid arguments.
    :returns: Validated relayer configuration.
    """
    try:
        preset = get_preset(args.network)
    except ValueError as e:
        parser.error(str(e))

    if args.max_retries < 0:
        parser.error("--max-retries must not be negative")
    if args.retry_delay < 0:
        parser.error("--retry-delay must not be negative")
    if args.window is not None and args.window <= 0:
        parser.error("--window must be positive")

    try:
        pairs = parse_pairs(args.pairs) if args.pairs else list(preset.pairs)
    except ValueError as e:
        parser.error(str(e))

    network = preset.network
    rpc_urls = parse_list(args.rpc_urls)
    network = NetworkConfig(
        name=network.name,
        rpc_urls=tuple(rpc_urls) if rpc_urls else network.rpc_urls,
        contract_address=args.price_feed_address or network.contract_address,
        gas=network.gas,
        production=network.production,
        probe_kind=ProbeKind(args.probe_kind) if args.probe_kind else network.probe_kind,
    )

    oracles = parse_list(args.oracles) or list(DEFAULT_ORACLES)

    config = RelayerConfig(
        network=network,
        pairs=tuple(pairs),
        window_length=args.window if args.window is not None else preset.window_length,
        retry=RetryPolicy(
            enabled=args.retry_enabled,
            max_retries=args.max_retries,
            retry_delay=args.retry_delay,
        ),
        submission_mode=SubmissionMode(args.mode),
        submitter_strategy=SubmitterStrategy(args.submitter),
        private_key=os.environ.get("PRIVATE_KEY"),
        host_url=args.host_url,
        host_sender_address=args.host_sender_address,
        aggregator_url=args.aggregator_url,
        oracles=tuple(oracles),
        min_signatures=args.min_signatures,
        estimate_gas=args.estimate_gas,
        probe_timeout=args.probe_timeout,
        fetch_timeout=args.fetch_timeout,
        submit_timeout=args.submit_timeout,
        heartbeat_url=args.heartbeat_url,
        heartbeat_key=os.environ.get("UPTIME_KUMA_KEY"),
        environment_label=network.name,
    )
    return config.validate()


def main() -> None:
    """Main entry point for the Price Feed Relayer CLI."""
    parser = build_parser()
    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = build_config(args, parser)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    # Log configuration
    logger.info("=" * 60)
    logger.info("Price Feed Relayer")
    logger.info("=" * 60)
    logger.info(f"Network:           {config.network.name}")
    logger.info(f"Price Feed:        {config.network.contract_address}")
    logger.info(f"RPC Endpoints:     {', '.join(config.network.rpc_urls)}")
    logger.info(f"Trading Pairs:     {', '.join(p.name for p in config.pairs)}")
    logger.info(f"Window:            {config.window_length}s")
    logger.info(f"Submission Mode:   {config.submission_mode.value}")
    logger.info(f"Submitter:         {config.submitter_strategy.value}")
    if config.retry.enabled:
        logger.info(
            f"Retry:             {config.retry.max_retries}x after {config.retry.retry_delay}s"
        )
    else:
        logger.info("Retry:             disabled")
    logger.info(f"Oracles:           {len(config.oracles)}")
    logger.info(f"Heartbeat:         {'enabled' if config.heartbeat_key else 'disabled'}")
    logger.info("=" * 60)

    try:
        relayer = PriceRelayer(config)
        if args.once:
            asyncio.run(relayer.run_once())
        else:
            asyncio.run(relayer.run())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
