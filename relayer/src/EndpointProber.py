"""EndpointProber: Find the first live RPC endpoint from an ordered list.

Candidates are probed one after another, never in parallel, so the most
preferred reachable endpoint always wins regardless of which one would
answer fastest.

.. code-block:: python

    >>> prober = EndpointProber(timeout=5.0)
    >>> url = await prober.find_reachable([
    ...     "https://node.ghostnet.etherlink.com",
    ...     "https://etherlink-testnet.rpc.thirdweb.com",
    ... ])
"""

from __future__ import annotations

import logging

import httpx

from .RelayerConfig import ProbeKind

logger = logging.getLogger(__name__)


class EndpointProber:
    """Sequential liveness prober for RPC endpoints.

    :cvar DEFAULT_TIMEOUT: Default per-candidate timeout in seconds.
    :ivar timeout: Per-candidate timeout in seconds.
    :ivar kind: Liveness query to use.
    """

    DEFAULT_TIMEOUT = 5.0

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        kind: ProbeKind = ProbeKind.EVM_JSONRPC,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the prober.

        :param timeout: Per-candidate timeout in seconds (default: 5.0).
        :param kind: Liveness query to use (default: JSON-RPC).
        :param client: Optional HTTP client. One is created if not provided.
        """
        self.timeout = timeout
        self.kind = kind
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(follow_redirects=True)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this prober created it."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def probe(self, url: str) -> bool:
        """Check whether a single endpoint is live.

        :param url: Endpoint URL.
        :returns: True if the endpoint answered with a chain-head marker.
        """
        client = self._get_client()
        try:
            if self.kind == ProbeKind.TEZOS_HEAD:
                response = await client.get(
                    f"{url.rstrip('/')}/chains/main/blocks/head/header",
                    headers={"Accept": "application/json"},
                    timeout=self.timeout,
                )
            else:
                response = await client.post(
                    url,
                    json={
                        "jsonrpc": "2.0",
                        "method": "eth_blockNumber",
                        "params": [],
                        "id": 1,
                    },
                    headers={"Accept": "application/json"},
                    timeout=self.timeout,
                )

            if not response.is_success:
                logger.warning(f"RPC {url} not reachable: HTTP {response.status_code}")
                return False

            data = response.json()
        except httpx.TimeoutException:
            logger.warning(f"RPC {url} not reachable: timeout after {self.timeout}s")
            return False
        except httpx.HTTPError as e:
            logger.warning(f"RPC {url} not reachable: {e}")
            return False
        except ValueError as e:
            logger.warning(f"RPC {url} returned invalid JSON: {e}")
            return False

        if not isinstance(data, dict):
            return False
        if self.kind == ProbeKind.TEZOS_HEAD:
            head = data.get("hash")
            return isinstance(head, str) and len(head) > 0
        result = data.get("result")
        return isinstance(result, str) and result.startswith("0x")

    async def find_reachable(self, urls: list[str] | tuple[str, ...]) -> str | None:
        """Find the first reachable endpoint, in list order.

        :param urls: Candidate URLs, most preferred first.
        :returns: First live URL, or None if none is reachable.
        """
        if not urls:
            logger.error("No RPC URLs provided to check")
            return None

        logger.info(f"Checking {len(urls)} RPC endpoints for reachability...")
        for url in urls:
            if await self.probe(url):
                logger.info(f"Found reachable RPC: {url}")
                return url

        logger.error("No reachable RPC endpoints found")
        return None
