"""
Price Feed Relayer - On-Chain Update Module

This module relays signed oracle prices to an on-chain price feed contract:
- EndpointProber: Sequential RPC liveness probing
- AggregationClient: Signed price batches from the oracle network
- PayloadEncoder: updatePriceFeeds call encoding
- TransactionSubmitter: Direct and host-delegated submission strategies
- WindowScheduler: Fixed-cadence windows with deadline-aware retry
- PriceRelayer: Main orchestrator
"""

from .AggregationClient import AggregationClient, PriceResult
from .EndpointProber import EndpointProber
from .PayloadEncoder import EncodedCall, EncodingMode, encode_update_price_feeds
from .PriceRelayer import PriceRelayer
from .RelayerConfig import (
    NetworkConfig,
    PairConfig,
    RelayerConfig,
    RetryPolicy,
    SubmissionMode,
    SubmitterStrategy,
)
from .WindowScheduler import Window, WindowScheduler

__all__ = [
    "AggregationClient",
    "EncodedCall",
    "EncodingMode",
    "EndpointProber",
    "NetworkConfig",
    "PairConfig",
    "PriceRelayer",
    "PriceResult",
    "RelayerConfig",
    "RetryPolicy",
    "SubmissionMode",
    "SubmitterStrategy",
    "Window",
    "WindowScheduler",
    "encode_update_price_feeds",
]
