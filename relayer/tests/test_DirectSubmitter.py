"""Unit tests for DirectSubmitter."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from eth_account import Account

from relayer.src.DirectSubmitter import DirectSubmitter
from relayer.src.errors import SubmissionError
from relayer.src.PayloadEncoder import encode_update_price_feeds
from relayer.src.RelayerConfig import GasDefaults, NetworkConfig

# Well-known development key, never funded on a real network
TEST_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
TX_HASH = bytes.fromhex("ab" * 32)

NETWORK = NetworkConfig(
    name="PEAQ Testnet",
    rpc_urls=("https://rpc.example",),
    contract_address="0x9e78A0059B86432384275486D011FdC64a33Cd2f",
    gas=GasDefaults(
        gas_limit=500_000,
        max_fee_per_gas=200_000_000_000,
        max_priority_fee_per_gas=2_000_000_000,
    ),
)

CALL = encode_update_price_feeds(["abcd"], [["01", "02"]])


class FakeEth:
    """Async eth namespace with canned answers."""

    def __init__(self, receipt: dict | None = None) -> None:
        self.get_transaction_count = AsyncMock(return_value=5)
        self.fee_history = AsyncMock(side_effect=ValueError("unsupported"))
        self.estimate_gas = AsyncMock(return_value=100_000)
        self.send_raw_transaction = AsyncMock(return_value=TX_HASH)
        self.wait_for_transaction_receipt = AsyncMock(
            return_value=receipt if receipt is not None else {"status": 1, "blockNumber": 77}
        )
        self.chain_id_reads = 0

    @property
    def chain_id(self):
        self.chain_id_reads += 1

        async def _chain_id() -> int:
            return 9990

        return _chain_id()


def make_submitter(eth: FakeEth) -> DirectSubmitter:
    return DirectSubmitter(SimpleNamespace(eth=eth), NETWORK, private_key=TEST_KEY)


class TestDirectSubmitter:
    """Test local signing and confirmation."""

    def test_sender_address_from_key(self) -> None:
        submitter = make_submitter(FakeEth())
        assert submitter.sender_address == TEST_ADDRESS

    def test_submit_signs_and_confirms(self) -> None:
        eth = FakeEth()
        submitter = make_submitter(eth)

        tx_hash = asyncio.run(submitter.submit(CALL))

        assert tx_hash == "0x" + "ab" * 32
        raw = eth.send_raw_transaction.await_args.args[0]
        assert Account.recover_transaction(raw) == TEST_ADDRESS
        eth.wait_for_transaction_receipt.assert_awaited_once()
        assert eth.wait_for_transaction_receipt.await_args.args[0] == TX_HASH

    def test_chain_id_cached(self) -> None:
        eth = FakeEth()
        submitter = make_submitter(eth)

        asyncio.run(submitter.submit(CALL, nonce=1))
        asyncio.run(submitter.submit(CALL, nonce=2))

        assert eth.chain_id_reads == 1

    def test_revert_raises_submission_error(self) -> None:
        """A reverted receipt should fail the submission with its nonce."""
        eth = FakeEth(receipt={"status": 0, "blockNumber": 78})
        submitter = make_submitter(eth)

        with pytest.raises(SubmissionError, match="reverted") as exc_info:
            asyncio.run(submitter.submit(CALL, nonce=9, pair="BTC/USDT"))

        assert exc_info.value.nonce == 9
        assert exc_info.value.pair == "BTC/USDT"

    def test_broadcast_rejected(self) -> None:
        eth = FakeEth()
        eth.send_raw_transaction = AsyncMock(side_effect=ValueError("nonce too low"))
        submitter = make_submitter(eth)

        with pytest.raises(SubmissionError, match="nonce too low"):
            asyncio.run(submitter.submit(CALL, nonce=3))
        eth.wait_for_transaction_receipt.assert_not_awaited()

    def test_receipt_wait_failure(self) -> None:
        eth = FakeEth()
        eth.wait_for_transaction_receipt = AsyncMock(side_effect=TimeoutError("not mined"))
        submitter = make_submitter(eth)

        with pytest.raises(SubmissionError, match="No confirmation"):
            asyncio.run(submitter.submit(CALL, nonce=3))
