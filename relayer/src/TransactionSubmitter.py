"""TransactionSubmitter: Abstract interface for sending price feed updates.

Two strategies implement it:

- :class:`~relayer.src.DirectSubmitter.DirectSubmitter` signs locally and
  broadcasts through the RPC node.
- :class:`~relayer.src.HostDelegatedSubmitter.HostDelegatedSubmitter` hands
  the payload to a host execution daemon which signs and sends it.

Fee resolution, nonce lookup and gas limits are shared here so both
strategies price and order transactions the same way.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from web3 import Web3

from .errors import SubmissionError
from .PayloadEncoder import EncodedCall, EncodingMode

if TYPE_CHECKING:
    from web3 import AsyncWeb3

    from .RelayerConfig import NetworkConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionRequest:
    """A fully resolved transaction, built fresh for every submission.

    :ivar to: Destination contract address.
    :ivar data: Payload bytes.
    :ivar gas_limit: Gas limit.
    :ivar max_fee_per_gas: Max fee per gas (wei).
    :ivar max_priority_fee_per_gas: Max priority fee per gas (wei).
    :ivar nonce: Sender nonce, None when the host daemon assigns it.
    """

    to: str
    data: bytes
    gas_limit: int
    max_fee_per_gas: int
    max_priority_fee_per_gas: int
    nonce: int | None


class TransactionSubmitter(ABC):
    """Base class for transaction submission strategies.

    :cvar encoding_mode: Payload shape this strategy expects.
    :cvar GAS_BUFFER_PERCENT: Headroom added on top of gas estimates.
    :cvar FEE_HISTORY_PERCENTILE: Reward percentile used as priority fee.
    :ivar w3: Async Web3 connection to the selected RPC endpoint.
    :ivar network: Target network configuration.
    :ivar estimate_gas: Whether to estimate gas instead of using the fixed limit.
    """

    encoding_mode: ClassVar[EncodingMode] = EncodingMode.STANDARD

    GAS_BUFFER_PERCENT = 20
    FEE_HISTORY_PERCENTILE = 50

    def __init__(
        self,
        w3: AsyncWeb3,
        network: NetworkConfig,
        estimate_gas: bool = False,
    ) -> None:
        """Initialize the submitter.

        :param w3: Async Web3 connection.
        :param network: Target network configuration.
        :param estimate_gas: Estimate gas per transaction (default: False).
        """
        self.w3 = w3
        self.network = network
        self.estimate_gas = estimate_gas

    @property
    @abstractmethod
    def sender_address(self) -> str | None:
        """Address transactions are sent from, if known."""
        pass

    @abstractmethod
    async def _dispatch(
        self, request: TransactionRequest, call: EncodedCall, pair: str | None
    ) -> str:
        """Sign, send and confirm a transaction.

        :param request: Resolved transaction.
        :param call: Encoded call the request was built from.
        :param pair: Pair display name for log and error context.
        :returns: Transaction or operation hash.
        :raises SubmissionError: If the transaction fails.
        """
        pass

    async def close(self) -> None:
        """Release resources held by the strategy."""
        pass

    async def get_nonce(self) -> int:
        """Fetch the sender's next nonce, pending transactions included.

        :returns: Next nonce.
        :raises SubmissionError: If the nonce cannot be fetched.
        """
        address = self.sender_address
        if not address:
            raise SubmissionError("No sender address to fetch a nonce for")
        try:
            return int(await self.w3.eth.get_transaction_count(address, "pending"))
        except Exception as e:
            raise SubmissionError(f"Failed to fetch nonce for {address}: {e}") from e

    async def suggest_fees(self) -> tuple[int, int] | None:
        """Ask the network for EIP-1559 fee suggestions.

        The max fee is ``2 * base_fee + priority_fee``, which keeps the
        transaction valid through several blocks of rising base fee.

        :returns: Tuple of (max_fee, max_priority_fee), or None if the node
            provides no fee data.
        """
        try:
            history = await self.w3.eth.fee_history(
                1, "latest", [self.FEE_HISTORY_PERCENTILE]
            )
        except Exception as e:
            logger.warning(f"Fee data unavailable on {self.network.name}: {e}")
            return None

        base_fees = history.get("baseFeePerGas") or []
        if not base_fees:
            return None
        base_fee = int(base_fees[-1])

        rewards = history.get("reward") or []
        if rewards and rewards[-1]:
            priority_fee = int(rewards[-1][0])
        else:
            priority_fee = self.network.gas.max_priority_fee_per_gas

        return 2 * base_fee + priority_fee, priority_fee

    async def resolve_fees(
        self,
        max_fee_per_gas: int | None = None,
        max_priority_fee_per_gas: int | None = None,
    ) -> tuple[int, int]:
        """Resolve fees from overrides, network suggestions or static defaults.

        :param max_fee_per_gas: Explicit max fee, if any.
        :param max_priority_fee_per_gas: Explicit priority fee, if any.
        :returns: Tuple of (max_fee, max_priority_fee).
        """
        if max_fee_per_gas is None or max_priority_fee_per_gas is None:
            suggested = await self.suggest_fees()
            if suggested is None:
                gas = self.network.gas
                suggested = (gas.max_fee_per_gas, gas.max_priority_fee_per_gas)
                logger.info(
                    f"Using default fees: maxFeePerGas={suggested[0]}, "
                    f"maxPriorityFeePerGas={suggested[1]}"
                )
            if max_fee_per_gas is None:
                max_fee_per_gas = suggested[0]
            if max_priority_fee_per_gas is None:
                max_priority_fee_per_gas = suggested[1]

        # A priority fee above the max fee is rejected by the node
        return max_fee_per_gas, min(max_priority_fee_per_gas, max_fee_per_gas)

    async def resolve_gas_limit(
        self, call: EncodedCall, gas_limit: int | None = None
    ) -> int:
        """Resolve the gas limit from override, estimate or static default.

        :param call: Encoded call to estimate.
        :param gas_limit: Explicit gas limit, if any.
        :returns: Gas limit.
        """
        if gas_limit is not None:
            return gas_limit
        if not self.estimate_gas:
            return self.network.gas.gas_limit

        tx: dict = {
            "to": Web3.to_checksum_address(self.network.contract_address),
            "data": "0x" + call.call_data.hex(),
        }
        if self.sender_address:
            tx["from"] = self.sender_address
        try:
            estimate = int(await self.w3.eth.estimate_gas(tx))
        except Exception as e:
            logger.warning(f"Gas estimation failed: {e}, using default limit")
            return self.network.gas.gas_limit

        gas_limit = estimate * (100 + self.GAS_BUFFER_PERCENT) // 100
        logger.debug(f"Estimated gas limit: {gas_limit} (raw estimate {estimate})")
        return gas_limit

    async def submit(
        self,
        call: EncodedCall,
        nonce: int | None = None,
        gas_limit: int | None = None,
        max_fee_per_gas: int | None = None,
        max_priority_fee_per_gas: int | None = None,
        pair: str | None = None,
    ) -> str:
        """Submit an encoded call to the price feed contract.

        :param call: Encoded ``updatePriceFeeds`` call.
        :param nonce: Explicit nonce. If None it is fetched from the network,
            or left to the host daemon when the sender address is unknown.
        :param gas_limit: Gas limit override.
        :param max_fee_per_gas: Max fee override.
        :param max_priority_fee_per_gas: Priority fee override.
        :param pair: Pair display name for log and error context.
        :returns: Transaction or operation hash once confirmed.
        :raises SubmissionError: If the transaction cannot be sent or confirmed.
        """
        if call.mode != self.encoding_mode:
            raise SubmissionError(
                f"{type(self).__name__} expects {self.encoding_mode.value} payloads, "
                f"got {call.mode.value}",
                nonce=nonce,
                pair=pair,
            )

        max_fee, priority_fee = await self.resolve_fees(
            max_fee_per_gas, max_priority_fee_per_gas
        )
        if nonce is None and self.sender_address:
            nonce = await self.get_nonce()
        gas = await self.resolve_gas_limit(call, gas_limit)

        request = TransactionRequest(
            to=self.network.contract_address,
            data=call.data,
            gas_limit=gas,
            max_fee_per_gas=max_fee,
            max_priority_fee_per_gas=priority_fee,
            nonce=nonce,
        )
        label = f" for {pair}" if pair else ""
        logger.info(
            f"Transaction prepared{label} on {self.network.name}, nonce: {nonce}, "
            f"gas: {gas}, maxFeePerGas: {max_fee}, maxPriorityFeePerGas: {priority_fee}"
        )
        return await self._dispatch(request, call, pair)
