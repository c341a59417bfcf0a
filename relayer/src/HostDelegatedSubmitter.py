"""HostDelegatedSubmitter: Hand transactions to a host execution daemon.

The daemon holds the signing key. It receives the ABI-encoded arguments
without the function selector together with the method signature, prepends
the selector itself, signs and sends the transaction and answers once it is
included. The reply's ``data`` field is CBOR encoded: ``{"ok": <hash>}`` on
success, anything else on failure.

The daemon is reached over a Unix domain socket by default, or over HTTP
when an ``http(s)://`` URL is configured.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import cbor2
import httpx

from .errors import SubmissionError
from .PayloadEncoder import EncodingMode
from .TransactionSubmitter import TransactionRequest, TransactionSubmitter

if TYPE_CHECKING:
    from web3 import AsyncWeb3

    from .PayloadEncoder import EncodedCall
    from .RelayerConfig import NetworkConfig

logger = logging.getLogger(__name__)


class HostDelegatedSubmitter(TransactionSubmitter):
    """Submitter that delegates signing and sending to the host daemon.

    :cvar HOST_SOCKET_PATH: Default Unix socket path of the daemon.
    :cvar FULFILL_PATH: Daemon endpoint accepting contract calls.
    :ivar host_url: HTTP URL or socket path of the daemon.
    :ivar rpc_url: RPC endpoint the daemon should send through.
    """

    encoding_mode = EncodingMode.HOST_DELEGATED

    HOST_SOCKET_PATH = "/run/host-executor.sock"
    FULFILL_PATH = "/v1/chains/ethereum/fulfill"

    def __init__(
        self,
        w3: AsyncWeb3,
        network: NetworkConfig,
        host_url: str,
        rpc_url: str,
        sender_address: str | None = None,
        estimate_gas: bool = True,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the host-delegated submitter.

        :param w3: Async Web3 connection (fees, gas and nonce lookups).
        :param network: Target network configuration.
        :param host_url: Daemon URL or Unix socket path. Empty uses the
            default socket.
        :param rpc_url: RPC endpoint passed on to the daemon.
        :param sender_address: Address the daemon signs with, if known.
        :param estimate_gas: Estimate gas per transaction (default: True).
        :param timeout: HTTP timeout; None waits for the daemon indefinitely.
        :param client: Optional HTTP client, mainly for tests.
        """
        super().__init__(w3, network, estimate_gas=estimate_gas)
        self.host_url = host_url
        self.rpc_url = rpc_url
        self._sender_address = sender_address
        self.timeout = timeout
        self._client = client

    @property
    def sender_address(self) -> str | None:
        return self._sender_address

    def _build_transport(self) -> httpx.AsyncHTTPTransport | None:
        """Build HTTP transport for daemon requests."""
        if self.host_url and not self.host_url.startswith("http"):
            logger.debug("Using host socket: %s", self.host_url)
            return httpx.AsyncHTTPTransport(uds=self.host_url)
        if not self.host_url:
            logger.debug("Using default host socket: %s", self.HOST_SOCKET_PATH)
            return httpx.AsyncHTTPTransport(uds=self.HOST_SOCKET_PATH)
        return None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(transport=self._build_transport())
        return self._client

    async def close(self) -> None:
        """Close the daemon HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _build_payload(self, request: TransactionRequest, call: EncodedCall) -> dict:
        """Build the daemon request body.

        Hex strings are sent without the 0x prefix, lowercased.
        """
        payload: dict[str, Any] = {
            "url": self.rpc_url,
            "destination": request.to,
            "payload": request.data.hex(),
            "extra": {
                "methodSignature": call.method_signature,
                "gasLimit": str(request.gas_limit),
                "maxFeePerGas": str(request.max_fee_per_gas),
                "maxPriorityFeePerGas": str(request.max_priority_fee_per_gas),
            },
        }
        if request.nonce is not None:
            payload["extra"]["nonce"] = request.nonce
        return payload

    @staticmethod
    def _decode_result(result: Any) -> Any:
        data = result.get("data") if isinstance(result, dict) else None
        if not data:
            return None
        return cbor2.loads(bytes.fromhex(data))

    async def _dispatch(
        self, request: TransactionRequest, call: EncodedCall, pair: str | None
    ) -> str:
        base_url = (
            self.host_url
            if self.host_url and self.host_url.startswith("http")
            else "http://localhost"
        )
        payload = self._build_payload(request, call)
        logger.debug(
            "POST %s destination=%s nonce=%s", self.FULFILL_PATH, request.to, request.nonce
        )

        client = self._get_client()
        try:
            response = await client.post(
                base_url + self.FULFILL_PATH, json=payload, timeout=self.timeout
            )
        except httpx.HTTPError as e:
            raise SubmissionError(
                f"Host daemon unreachable: {e}", nonce=request.nonce, pair=pair
            ) from e

        if not response.is_success:
            raise SubmissionError(
                f"Host daemon rejected call: {response.status_code} {response.text[:200]}",
                nonce=request.nonce,
                pair=pair,
            )

        try:
            decoded = self._decode_result(response.json())
        except (ValueError, cbor2.CBORDecodeError) as e:
            raise SubmissionError(
                f"Malformed host daemon reply: {e}", nonce=request.nonce, pair=pair
            ) from e

        if not isinstance(decoded, dict) or "ok" not in decoded:
            raise SubmissionError(
                f"Contract call failed on host: {decoded}",
                nonce=request.nonce,
                pair=pair,
            )

        op_hash = decoded["ok"]
        if isinstance(op_hash, (bytes, bytearray)):
            op_hash = "0x" + bytes(op_hash).hex()
        logger.info(f"Contract call succeeded: {op_hash}")
        return str(op_hash)
