"""AggregationClient: Fetch signed price batches from the oracle network.

The aggregation service queries a set of oracle signers, aggregates their
prices and returns, per requested pair, the price, the request hash, the
packed price blob and the signatures over it. Responses are validated here,
before anything reaches the encoder.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from .errors import AggregationEmptyResult
from .RelayerConfig import PairConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceResult:
    """Signed price data for one pair.

    :ivar price: Aggregated price as reported by the service.
    :ivar request_hash: Hash identifying the aggregation request.
    :ivar packed: Packed price blob (hex).
    :ivar signatures: Signer signatures over the blob (hex), in order.
    """

    price: Any
    request_hash: str
    packed: str
    signatures: tuple[str, ...]

    @classmethod
    def from_response(cls, entry: Any) -> PriceResult:
        """Build a result from one response entry.

        :param entry: Decoded JSON entry.
        :returns: Validated PriceResult.
        :raises ValueError: If the entry is malformed.
        """
        if not isinstance(entry, dict):
            raise ValueError(f"expected an object, got {type(entry).__name__}")

        price_data = entry.get("priceData")
        if not isinstance(price_data, dict) or "price" not in price_data:
            raise ValueError("missing priceData.price")

        packed = entry.get("packed")
        if not isinstance(packed, list) or not packed or not isinstance(packed[0], str):
            raise ValueError("missing packed price data")

        signatures = entry.get("signatures")
        if not isinstance(signatures, list) or not signatures:
            raise ValueError("missing signatures")
        if not all(isinstance(sig, str) for sig in signatures):
            raise ValueError("signatures must be hex strings")

        return cls(
            price=price_data["price"],
            request_hash=str(price_data.get("requestHash", "")),
            packed=packed[0],
            signatures=tuple(signatures),
        )


class AggregationClient:
    """HTTP client for the price aggregation service.

    :cvar PRICES_PATH: Endpoint returning signed prices.
    :ivar url: Base URL of the service.
    :ivar oracles: Oracle signer public keys to query.
    :ivar min_signatures: Signatures required per price.
    :ivar max_validation_diff: Max divergence between signers.
    :ivar timeout: Request timeout in seconds.
    """

    PRICES_PATH = "/prices"

    def __init__(
        self,
        url: str,
        oracles: list[str] | tuple[str, ...] = (),
        min_signatures: int = 3,
        max_validation_diff: float = 0.1,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the aggregation client.

        :param url: Base URL of the service.
        :param oracles: Oracle signer public keys (empty: service default).
        :param min_signatures: Signatures required per price (default: 3).
        :param max_validation_diff: Max divergence between signers (default: 0.1).
        :param timeout: Request timeout in seconds (default: 10.0).
        :param client: Optional HTTP client. One is created if not provided.
        """
        self.url = url.rstrip("/")
        self.oracles = list(oracles)
        self.min_signatures = min_signatures
        self.max_validation_diff = max_validation_diff
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=5.0),
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def build_request(self, pairs: list[PairConfig] | tuple[PairConfig, ...]) -> dict:
        """Build the request body for a batch of pairs.

        :param pairs: Pairs to price, in result order.
        :returns: JSON-serializable request body.
        """
        body: dict[str, Any] = {
            "pairs": [
                {"from": p.base, "to": p.quote, "decimals": p.decimals} for p in pairs
            ],
            "protocol": "EVM",
            "aggregation": ["median"],
            "maxValidationDiff": self.max_validation_diff,
            "minSignatures": self.min_signatures,
        }
        if self.oracles:
            body["oracles"] = self.oracles
        return body

    async def get_prices(
        self, pairs: list[PairConfig] | tuple[PairConfig, ...]
    ) -> list[PriceResult]:
        """Fetch signed prices for a batch of pairs.

        :param pairs: Pairs to price.
        :returns: One PriceResult per pair, index-aligned with ``pairs``.
        :raises AggregationEmptyResult: If the batch is missing, incomplete
            or malformed, or the request fails.
        """
        client = self._get_client()
        try:
            response = await client.post(
                self.url + self.PRICES_PATH,
                json=self.build_request(pairs),
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise AggregationEmptyResult(f"Price request failed: {e}") from e

        if not response.is_success:
            raise AggregationEmptyResult(
                f"Price request failed: HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AggregationEmptyResult(f"Invalid price response: {e}") from e

        if not data:
            raise AggregationEmptyResult("No price data received from batch request")
        if not isinstance(data, list):
            raise AggregationEmptyResult(
                f"Invalid price response: expected a list, got {type(data).__name__}"
            )
        if len(data) != len(pairs):
            raise AggregationEmptyResult(
                f"Expected {len(pairs)} price results, received {len(data)}"
            )

        results: list[PriceResult] = []
        for pair, entry in zip(pairs, data, strict=True):
            try:
                results.append(PriceResult.from_response(entry))
            except ValueError as e:
                raise AggregationEmptyResult(f"Malformed price result for {pair}: {e}") from e
        return results
