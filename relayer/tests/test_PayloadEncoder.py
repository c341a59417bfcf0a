"""Unit tests for PayloadEncoder."""

import pytest
from eth_abi import decode
from eth_utils import keccak

from relayer.src.errors import EncodingError
from relayer.src.PayloadEncoder import (
    UPDATE_PRICE_FEEDS_SELECTOR,
    UPDATE_PRICE_FEEDS_SIGNATURE,
    UPDATE_PRICE_FEEDS_TYPES,
    EncodingMode,
    encode_update_price_feeds,
    ensure_0x_prefix,
)


class TestEnsurePrefix:
    """Test hex prefix normalization."""

    def test_adds_missing_prefix(self) -> None:
        assert ensure_0x_prefix("abcd") == "0xabcd"

    def test_keeps_existing_prefix(self) -> None:
        assert ensure_0x_prefix("0xabcd") == "0xabcd"

    def test_normalizes_uppercase_prefix(self) -> None:
        assert ensure_0x_prefix("0Xabcd") == "0xabcd"


class TestStandardEncoding:
    """Test full call data encoding."""

    def test_selector_matches_canonical_signature(self) -> None:
        """Selector should be the keccak prefix of the canonical signature."""
        expected = keccak(text="updatePriceFeeds(bytes[],bytes[][])")[:4]
        assert UPDATE_PRICE_FEEDS_SELECTOR == expected

    def test_payload_starts_with_selector(self) -> None:
        call = encode_update_price_feeds(["abcd"], [["01", "02"]])
        assert call.data[:4] == UPDATE_PRICE_FEEDS_SELECTOR
        assert call.mode == EncodingMode.STANDARD
        assert call.method_signature == UPDATE_PRICE_FEEDS_SIGNATURE

    def test_arguments_decode_back(self) -> None:
        """Encoded arguments should carry the blobs and signatures in order."""
        call = encode_update_price_feeds(
            ["0xaa01", "0xbb02"], [["0x11", "0x12"], ["0x21"]]
        )
        update_data, signatures = decode(UPDATE_PRICE_FEEDS_TYPES, call.data[4:])

        assert list(update_data) == [b"\xaa\x01", b"\xbb\x02"]
        assert [list(s) for s in signatures] == [[b"\x11", b"\x12"], [b"\x21"]]

    def test_prefix_insensitive(self) -> None:
        """Inputs with and without 0x should encode identically."""
        with_prefix = encode_update_price_feeds(["0xabcd"], [["0x01", "0x02"]])
        without_prefix = encode_update_price_feeds(["abcd"], [["01", "02"]])
        assert with_prefix.data == without_prefix.data

    def test_to_hex(self) -> None:
        call = encode_update_price_feeds(["abcd"], [["01"]])
        assert call.to_hex() == "0x" + call.data.hex()
        assert call.call_data == call.data


class TestHostDelegatedEncoding:
    """Test argument-only encoding for the host execution layer."""

    def test_selector_stripped(self) -> None:
        standard = encode_update_price_feeds(["abcd"], [["01"]])
        host = encode_update_price_feeds(
            ["abcd"], [["01"]], mode=EncodingMode.HOST_DELEGATED
        )

        assert host.data == standard.data[4:]
        assert host.mode == EncodingMode.HOST_DELEGATED

    def test_signature_without_function_keyword(self) -> None:
        host = encode_update_price_feeds(
            ["abcd"], [["01"]], mode=EncodingMode.HOST_DELEGATED
        )
        assert host.method_signature == (
            "updatePriceFeeds(bytes[] updateData, bytes[][] signature)"
        )

    def test_call_data_restores_selector(self) -> None:
        """Full call data should be identical whatever the mode."""
        standard = encode_update_price_feeds(["abcd"], [["01"]])
        host = encode_update_price_feeds(
            ["abcd"], [["01"]], mode=EncodingMode.HOST_DELEGATED
        )
        assert host.call_data == standard.data


class TestEncodingErrors:
    """Test rejected inputs."""

    def test_length_mismatch(self) -> None:
        with pytest.raises(EncodingError, match="differ in length"):
            encode_update_price_feeds(["abcd", "ef01"], [["01"]])

    def test_empty_input(self) -> None:
        with pytest.raises(EncodingError, match="no price entries"):
            encode_update_price_feeds([], [])

    def test_malformed_packed_hex(self) -> None:
        with pytest.raises(EncodingError, match=r"updateData\[0\]"):
            encode_update_price_feeds(["0xzz"], [["01"]])

    def test_odd_length_hex(self) -> None:
        with pytest.raises(EncodingError):
            encode_update_price_feeds(["abc"], [["01"]])

    def test_malformed_signature_hex(self) -> None:
        with pytest.raises(EncodingError, match=r"signature\[0\]\[1\]"):
            encode_update_price_feeds(["abcd"], [["01", "nothex"]])

    def test_signature_set_must_be_list(self) -> None:
        """A bare string in place of a signature list should be rejected."""
        with pytest.raises(EncodingError, match="list of hex strings"):
            encode_update_price_feeds(["abcd"], ["0x01"])  # type: ignore[list-item]

    def test_non_string_entry(self) -> None:
        with pytest.raises(EncodingError, match="must be a hex string"):
            encode_update_price_feeds([b"\xab"], [["01"]])  # type: ignore[list-item]

    @pytest.mark.parametrize("packed", ["0xab cd", "ab\ncd", " abcd", "abcd\t"])
    def test_whitespace_in_packed_hex(self, packed: str) -> None:
        with pytest.raises(EncodingError, match="not valid hex"):
            encode_update_price_feeds([packed], [["01"]])

    def test_whitespace_in_signature_hex(self) -> None:
        with pytest.raises(EncodingError, match=r"signature\[0\]\[0\]"):
            encode_update_price_feeds(["abcd"], [["0x01 02"]])
