"""PriceRelayer: Main orchestrator for on-chain price feed updates.

Each window fetches a signed price batch from the aggregation service and
writes it to the price feed contract, either as one batched transaction or
as one transaction per pair dispatched concurrently.

Architecture:
    - EndpointProber picks the first live RPC endpoint (at startup and after
      a window was abandoned because of node trouble)
    - AggregationClient fetches the price batch
    - PayloadEncoder builds the ``updatePriceFeeds`` call
    - A TransactionSubmitter strategy signs, sends and confirms it
    - HealthReporter sends a heartbeat after fully successful windows on
      production networks
    - WindowScheduler drives it all with bounded, deadline-aware retry
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from web3 import AsyncWeb3

from .AggregationClient import AggregationClient, PriceResult
from .DirectSubmitter import DirectSubmitter
from .EndpointProber import EndpointProber
from .errors import AggregationEmptyResult, NetworkUnreachable, SubmissionError
from .HealthReporter import HealthReporter
from .HostDelegatedSubmitter import HostDelegatedSubmitter
from .PayloadEncoder import encode_update_price_feeds
from .RelayerConfig import PairConfig, RelayerConfig, SubmissionMode, SubmitterStrategy
from .TransactionSubmitter import TransactionSubmitter
from .WindowScheduler import Window, WindowScheduler

logger = logging.getLogger(__name__)

SubmitterFactory = Callable[[str], TransactionSubmitter]


class PriceRelayer:
    """Relays signed oracle prices to the on-chain price feed contract.

    :ivar config: Relayer configuration.
    :ivar submitter: Active transaction submitter, None while disconnected.
    :ivar rpc_url: RPC endpoint currently in use.
    :ivar fulfilled_windows: Number of fully successful windows so far.
    """

    def __init__(
        self,
        config: RelayerConfig,
        aggregation_client: AggregationClient | None = None,
        prober: EndpointProber | None = None,
        health_reporter: HealthReporter | None = None,
        scheduler: WindowScheduler | None = None,
        submitter_factory: SubmitterFactory | None = None,
    ) -> None:
        """Initialize the relayer.

        :param config: Relayer configuration; validated here.
        :param aggregation_client: Price source (default: built from config).
        :param prober: Endpoint prober (default: built from config).
        :param health_reporter: Heartbeat sender (default: built from config).
        :param scheduler: Window scheduler (default: built from config).
        :param submitter_factory: Callable building a submitter for an RPC URL
            (default: the configured strategy over AsyncWeb3).
        :raises ConfigurationError: If the configuration is invalid.
        """
        self.config = config.validate()
        network = config.network

        self.prober = prober or EndpointProber(
            timeout=config.probe_timeout, kind=network.probe_kind
        )
        self.aggregation_client = aggregation_client or AggregationClient(
            url=config.aggregator_url or "",
            oracles=config.oracles,
            min_signatures=config.min_signatures,
            max_validation_diff=config.max_validation_diff,
            timeout=config.fetch_timeout,
        )
        self.health_reporter = health_reporter or HealthReporter(
            base_url=config.heartbeat_url,
            key=config.heartbeat_key,
            environment=config.environment_label or network.name,
        )
        self.scheduler = scheduler or WindowScheduler(
            window_length=config.window_length, retry=config.retry
        )
        self._submitter_factory = submitter_factory or self._create_submitter

        self.submitter: TransactionSubmitter | None = None
        self.rpc_url: str | None = None
        self.fulfilled_windows = 0
        self._fulfilled_window: Window | None = None

        logger.info(
            f"PriceRelayer initialized: network={network.name}, "
            f"pairs={[p.name for p in config.pairs]}, "
            f"mode={config.submission_mode.value}, "
            f"submitter={config.submitter_strategy.value}, "
            f"window={config.window_length}s"
        )

    def _create_submitter(self, rpc_url: str) -> TransactionSubmitter:
        """Build the configured submitter strategy for an RPC endpoint."""
        config = self.config
        w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        if config.submitter_strategy == SubmitterStrategy.HOST:
            return HostDelegatedSubmitter(
                w3,
                config.network,
                host_url=config.host_url or "",
                rpc_url=rpc_url,
                sender_address=config.host_sender_address,
                estimate_gas=config.estimate_gas,
            )
        assert config.private_key is not None
        return DirectSubmitter(
            w3,
            config.network,
            private_key=config.private_key,
            estimate_gas=config.estimate_gas,
        )

    async def connect(self) -> TransactionSubmitter:
        """Select a live RPC endpoint and set up the submitter.

        :returns: Ready submitter.
        :raises NetworkUnreachable: If no endpoint is reachable.
        """
        rpc_url = await self.prober.find_reachable(self.config.network.rpc_urls)
        if rpc_url is None:
            raise NetworkUnreachable(
                f"No reachable RPC nodes available for {self.config.network.name}"
            )

        self.rpc_url = rpc_url
        self.submitter = self._submitter_factory(rpc_url)
        sender = self.submitter.sender_address or "host-managed key"
        logger.info(f"Submitter initialized for {sender} via {rpc_url}")
        return self.submitter

    async def disconnect(self) -> None:
        """Drop the current submitter so the next window re-probes endpoints."""
        if self.submitter is not None:
            await self.submitter.close()
        self.submitter = None
        self.rpc_url = None

    async def _ensure_connected(self) -> TransactionSubmitter:
        if self.submitter is None:
            return await self.connect()
        return self.submitter

    async def fetch_prices(self) -> list[PriceResult]:
        """Fetch the price batch for all configured pairs.

        :returns: Price results, index-aligned with the configured pairs.
        :raises AggregationEmptyResult: If the batch is empty or incomplete.
        """
        pairs = self.config.pairs
        logger.info(f"Fetching prices for {len(pairs)} pairs in batch...")
        prices = await self.aggregation_client.get_prices(pairs)
        if len(prices) != len(pairs):
            raise AggregationEmptyResult(
                f"Expected {len(pairs)} price results, received {len(prices)}"
            )

        logger.info(f"Received {len(prices)} price results from batch request")
        for pair, result in zip(pairs, prices, strict=True):
            logger.info(
                f"{pair.name} Price: {result.price}, RequestHash: {result.request_hash}"
            )
        return prices

    async def _submit_with_deadline(
        self,
        call_coro: Awaitable[str],
        nonce: int | None = None,
        pair: str | None = None,
    ) -> str:
        """Await a submission under the configured deadline.

        On timeout only the wait is abandoned; a transaction that was already
        broadcast may still be included later.
        """
        timeout = self.config.submit_timeout
        try:
            return await asyncio.wait_for(call_coro, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise SubmissionError(
                f"Transaction not confirmed within {timeout}s, it may still be included",
                nonce=nonce,
                pair=pair,
            ) from e

    async def process_batched(self, window: Window) -> None:
        """Window body: update all pairs in one transaction.

        :param window: Current window.
        """
        submitter = await self._ensure_connected()
        prices = await self.fetch_prices()

        call = encode_update_price_feeds(
            [p.packed for p in prices],
            [list(p.signatures) for p in prices],
            mode=submitter.encoding_mode,
        )
        nonce = await submitter.get_nonce() if submitter.sender_address else None
        tx_hash = await self._submit_with_deadline(
            submitter.submit(call, nonce=nonce), nonce=nonce
        )
        logger.info(
            f"Successfully updated all {len(prices)} price feeds in batched "
            f"transaction! Hash: {tx_hash}"
        )
        self._mark_fulfilled(window)

    async def _submit_pair(
        self,
        submitter: TransactionSubmitter,
        pair: PairConfig,
        price: PriceResult,
        nonce: int,
    ) -> str:
        call = encode_update_price_feeds(
            [price.packed], [list(price.signatures)], mode=submitter.encoding_mode
        )
        return await self._submit_with_deadline(
            submitter.submit(call, nonce=nonce, pair=pair.name),
            nonce=nonce,
            pair=pair.name,
        )

    async def process_individual(self, window: Window) -> None:
        """Window body: one concurrent transaction per pair.

        The base nonce is read once before dispatch; pair ``i`` gets
        ``base + i``. A failing pair does not affect the others.

        :param window: Current window.
        :raises SubmissionError: If every pair failed.
        """
        submitter = await self._ensure_connected()
        prices = await self.fetch_prices()
        pairs = self.config.pairs

        base_nonce = await submitter.get_nonce()
        logger.info(
            f"Dispatching {len(pairs)} transactions with nonces "
            f"{base_nonce}..{base_nonce + len(pairs) - 1}"
        )

        results = await asyncio.gather(
            *[
                self._submit_pair(submitter, pair, price, base_nonce + index)
                for index, (pair, price) in enumerate(zip(pairs, prices, strict=True))
            ],
            return_exceptions=True,
        )

        failed: list[str] = []
        for index, (pair, result) in enumerate(zip(pairs, results, strict=True)):
            nonce = base_nonce + index
            if isinstance(result, BaseException):
                failed.append(pair.name)
                logger.error(f"{pair.name}: price feed update failed (nonce {nonce}): {result}")
            else:
                logger.info(f"{pair.name}: price feed updated (nonce {nonce}). Hash: {result}")

        if len(failed) == len(pairs):
            raise SubmissionError(f"All {len(pairs)} per-pair updates failed")
        if failed:
            logger.warning(
                f"Updated {len(pairs) - len(failed)}/{len(pairs)} price feeds, "
                f"failed: {', '.join(failed)}"
            )
            return

        logger.info(f"Successfully updated all {len(pairs)} price feeds individually")
        self._mark_fulfilled(window)

    async def process_window(self, window: Window) -> None:
        """Window body for the configured submission mode.

        :param window: Current window.
        """
        if self.config.submission_mode == SubmissionMode.INDIVIDUAL:
            await self.process_individual(window)
        else:
            await self.process_batched(window)

    def _mark_fulfilled(self, window: Window) -> None:
        self.fulfilled_windows += 1
        self._fulfilled_window = window

    async def _send_heartbeat(self) -> None:
        try:
            await self.health_reporter.report(self.fulfilled_windows)
        except Exception as e:
            logger.error(f"Heartbeat failed: {type(e).__name__}: {e}")

    async def _on_window_end(self, window: Window) -> None:
        """Finish a window: heartbeat after full success, reconnect after node trouble.

        Called once per window after its last attempt, never retried.
        """
        if window.success and self._fulfilled_window is window:
            self._fulfilled_window = None
            if self.config.network.production:
                await self._send_heartbeat()
        if not window.success and isinstance(window.last_error, SubmissionError):
            logger.info("Dropping RPC connection, endpoints will be re-probed next window")
            await self.disconnect()

    async def close(self) -> None:
        """Close all network clients."""
        await self.disconnect()
        await self.prober.close()
        await self.aggregation_client.close()
        await self.health_reporter.close()

    async def run(self) -> None:
        """Run the relay loop until cancelled.

        Failures, including unreachable endpoints, only fail the current
        attempt; the loop itself keeps going.
        """
        logger.info(f"Running on {self.config.network.name}")
        try:
            await self.scheduler.run(self.process_window, on_window_end=self._on_window_end)
        finally:
            await self.close()

    async def run_once(self) -> None:
        """Run a single window and return.

        :raises NetworkUnreachable: If no endpoint is reachable.
        :raises RelayerError: The last error if the window did not succeed.
        """
        logger.info(f"Running single execution on {self.config.network.name}")
        try:
            await self.connect()
            window = await self.scheduler.run_window(self.process_window)
            await self._on_window_end(window)
            if not window.success:
                assert window.last_error is not None
                raise window.last_error
            logger.info("Single execution completed successfully")
        finally:
            await self.close()
