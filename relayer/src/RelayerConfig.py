"""RelayerConfig: Immutable configuration values for the price feed relayer.

A single :class:`RelayerConfig` is built once at process start (see
``relayer/main.py``) and handed to every component. Nothing reads the
environment after that point.

.. code-block:: python

    >>> pair = PairConfig.from_string("btc/usdt:8")
    >>> pair.name
    'BTC/USDT'
    >>> pair.decimals
    8
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .errors import ConfigurationError


class SubmissionMode(str, Enum):
    """How a window's price batch is written on-chain."""

    BATCHED = "batched"
    INDIVIDUAL = "individual"


class ProbeKind(str, Enum):
    """Liveness query used to probe RPC endpoints."""

    # JSON-RPC eth_blockNumber, reply must carry a 0x-prefixed block number
    EVM_JSONRPC = "evm"
    # Tezos node head header, reply must carry the head block hash
    TEZOS_HEAD = "tezos"


class SubmitterStrategy(str, Enum):
    """Which transaction submitter signs and sends the transaction."""

    DIRECT = "direct"
    HOST = "host"


@dataclass(frozen=True)
class GasDefaults:
    """Static gas values used when the network offers no suggestion.

    :ivar gas_limit: Gas limit for the update transaction.
    :ivar max_fee_per_gas: Fallback max fee per gas (wei).
    :ivar max_priority_fee_per_gas: Fallback max priority fee per gas (wei).
    """

    gas_limit: int
    max_fee_per_gas: int
    max_priority_fee_per_gas: int


@dataclass(frozen=True)
class NetworkConfig:
    """Target network description.

    :ivar name: Display name (e.g., "Etherlink Mainnet").
    :ivar rpc_urls: Candidate RPC endpoints, most preferred first.
    :ivar contract_address: Address of the price feed contract.
    :ivar gas: Gas defaults for the network.
    :ivar production: Whether heartbeats are sent for this network.
    :ivar probe_kind: Liveness query used for the RPC endpoints.
    """

    name: str
    rpc_urls: tuple[str, ...]
    contract_address: str
    gas: GasDefaults
    production: bool = False
    probe_kind: ProbeKind = ProbeKind.EVM_JSONRPC


@dataclass(frozen=True)
class PairConfig:
    """A trading pair to relay.

    :ivar base: Base symbol (uppercase).
    :ivar quote: Quote symbol (uppercase).
    :ivar decimals: Decimals of the on-chain price.
    :ivar name: Display name, defaults to "BASE/QUOTE".
    """

    base: str
    quote: str
    decimals: int
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "base", self.base.upper())
        object.__setattr__(self, "quote", self.quote.upper())
        if not self.name:
            object.__setattr__(self, "name", f"{self.base}/{self.quote}")

    def __str__(self) -> str:
        return self.name

    @classmethod
    def from_string(cls, pair_str: str, default_decimals: int = 8) -> PairConfig:
        """Parse a pair string in format "base/quote" or "base/quote:decimals".

        :param pair_str: Pair string like "btc/usdt" or "stxtz/xtz:6".
        :param default_decimals: Decimals used when none are given.
        :returns: New PairConfig instance.
        :raises ValueError: If pair string format is invalid.
        """
        symbols, _, decimals_str = pair_str.strip().partition(":")
        parts = symbols.split("/")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ValueError(
                f"Invalid pair format '{pair_str}'. Expected 'base/quote[:decimals]' "
                "(e.g., 'btc/usdt:8')"
            )
        try:
            decimals = int(decimals_str) if decimals_str else default_decimals
        except ValueError:
            raise ValueError(f"Invalid decimals in pair '{pair_str}'") from None
        return cls(parts[0], parts[1], decimals)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry behaviour within one window.

    :ivar enabled: Whether failed attempts are retried at all.
    :ivar max_retries: Maximum retries per window (attempts = retries + 1).
    :ivar retry_delay: Seconds to wait before a retry.
    """

    enabled: bool = True
    max_retries: int = 2
    retry_delay: float = 5.0


@dataclass(frozen=True)
class RelayerConfig:
    """Complete relayer configuration.

    :ivar network: Target network.
    :ivar pairs: Pairs to relay; order defines result alignment.
    :ivar window_length: Seconds per scheduling window.
    :ivar retry: Retry policy applied within a window.
    :ivar submission_mode: Batched (one tx) or individual (one tx per pair).
    :ivar submitter_strategy: Direct signing or host-delegated submission.
    :ivar private_key: Signing key for the direct strategy.
    :ivar host_url: Host daemon URL or Unix socket path for the host strategy;
        unset uses the default daemon socket.
    :ivar host_sender_address: Address the host signs with (nonce lookups).
    :ivar aggregator_url: Base URL of the price aggregation service.
    :ivar oracles: Public keys of the oracle signers to query.
    :ivar min_signatures: Signatures required per price.
    :ivar max_validation_diff: Max divergence accepted by the aggregation.
    :ivar estimate_gas: Estimate gas per transaction instead of the fixed limit.
    :ivar probe_timeout: Seconds per endpoint probe.
    :ivar fetch_timeout: Seconds for the aggregation request.
    :ivar submit_timeout: Seconds for a submit-and-confirm call.
    :ivar heartbeat_url: Base URL of the monitoring service.
    :ivar heartbeat_key: Push key of the monitor; heartbeats are off without it.
    :ivar environment_label: Label sent with heartbeats.
    """

    network: NetworkConfig
    pairs: tuple[PairConfig, ...]
    window_length: float = 60.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    submission_mode: SubmissionMode = SubmissionMode.BATCHED
    submitter_strategy: SubmitterStrategy = SubmitterStrategy.DIRECT
    private_key: str | None = None
    host_url: str | None = None
    host_sender_address: str | None = None
    aggregator_url: str | None = None
    oracles: tuple[str, ...] = ()
    min_signatures: int = 3
    max_validation_diff: float = 0.1
    estimate_gas: bool = False
    probe_timeout: float = 5.0
    fetch_timeout: float = 10.0
    submit_timeout: float = 30.0
    heartbeat_url: str = "https://uptime.papers.tech"
    heartbeat_key: str | None = None
    environment_label: str = ""

    def validate(self) -> RelayerConfig:
        """Check the configuration before the relayer starts.

        :returns: The configuration itself, for chaining.
        :raises ConfigurationError: If a required value is missing or invalid.
        """
        if not self.pairs:
            raise ConfigurationError("At least one trading pair must be configured")
        if not self.network.rpc_urls:
            raise ConfigurationError(f"No RPC URLs configured for {self.network.name}")
        if not self.network.contract_address:
            raise ConfigurationError(
                f"No price feed contract configured for {self.network.name}"
            )
        if not self.aggregator_url:
            raise ConfigurationError("Aggregation service URL is required")
        if self.window_length <= 0:
            raise ConfigurationError("Window length must be positive")
        if self.retry.max_retries < 0 or self.retry.retry_delay < 0:
            raise ConfigurationError("Retry count and delay must not be negative")

        if self.submitter_strategy == SubmitterStrategy.DIRECT:
            if not self.private_key:
                raise ConfigurationError(
                    "Private key is required for direct transaction signing"
                )
        elif (
            self.submission_mode == SubmissionMode.INDIVIDUAL
            and not self.host_sender_address
        ):
            raise ConfigurationError(
                "Host sender address is required to assign nonces "
                "in individual submission mode"
            )
        return self
