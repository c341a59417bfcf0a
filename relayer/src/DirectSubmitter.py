"""DirectSubmitter: Sign locally and broadcast through the RPC node."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from .errors import SubmissionError
from .TransactionSubmitter import TransactionRequest, TransactionSubmitter

if TYPE_CHECKING:
    from web3 import AsyncWeb3

    from .PayloadEncoder import EncodedCall
    from .RelayerConfig import NetworkConfig

logger = logging.getLogger(__name__)


class DirectSubmitter(TransactionSubmitter):
    """Submitter that signs with a local key.

    :ivar account: Signing account.
    :ivar receipt_timeout: Seconds to wait for the confirmation.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        network: NetworkConfig,
        private_key: str,
        estimate_gas: bool = False,
        receipt_timeout: float = 120.0,
    ) -> None:
        """Initialize the direct submitter.

        :param w3: Async Web3 connection.
        :param network: Target network configuration.
        :param private_key: Hex-encoded signing key.
        :param estimate_gas: Estimate gas per transaction (default: False).
        :param receipt_timeout: Seconds to wait for a receipt (default: 120).
        """
        super().__init__(w3, network, estimate_gas=estimate_gas)
        self.account: LocalAccount = Account.from_key(private_key)
        self.receipt_timeout = receipt_timeout
        self._chain_id: int | None = None

    @property
    def sender_address(self) -> str:
        return self.account.address

    async def _get_chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = int(await self.w3.eth.chain_id)
        return self._chain_id

    async def _dispatch(
        self, request: TransactionRequest, call: EncodedCall, pair: str | None
    ) -> str:
        try:
            chain_id = await self._get_chain_id()
        except Exception as e:
            raise SubmissionError(
                f"Failed to fetch chain id: {e}", nonce=request.nonce, pair=pair
            ) from e

        tx = {
            "chainId": chain_id,
            "to": Web3.to_checksum_address(request.to),
            "data": "0x" + request.data.hex(),
            "value": 0,
            "gas": request.gas_limit,
            "maxFeePerGas": request.max_fee_per_gas,
            "maxPriorityFeePerGas": request.max_priority_fee_per_gas,
            "nonce": request.nonce,
        }
        signed = self.account.sign_transaction(tx)

        try:
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            raise SubmissionError(
                f"Broadcast rejected by {self.network.name}: {e}",
                nonce=request.nonce,
                pair=pair,
            ) from e

        tx_hex = Web3.to_hex(tx_hash)
        logger.info(f"Transaction sent: {tx_hex}")

        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except Exception as e:
            raise SubmissionError(
                f"No confirmation for {tx_hex}: {e}", nonce=request.nonce, pair=pair
            ) from e

        block_number = receipt.get("blockNumber")
        if receipt.get("status") != 1:
            raise SubmissionError(
                f"Transaction {tx_hex} reverted in block {block_number}",
                nonce=request.nonce,
                pair=pair,
            )

        logger.info(f"Transaction confirmed in block {block_number}")
        return tx_hex
