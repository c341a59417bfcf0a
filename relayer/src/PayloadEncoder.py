"""PayloadEncoder: Build the call payload for the price feed contract.

The contract exposes a single operation::

    function updatePriceFeeds(bytes[] updateData, bytes[][] signature)

Each entry of ``updateData`` is the packed price blob of one pair and the
entry of ``signature`` at the same index holds that blob's signer signatures.

.. code-block:: python

    >>> call = encode_update_price_feeds(["abc123"], [["0x01", "02"]])
    >>> call.data[:4] == UPDATE_PRICE_FEEDS_SELECTOR
    True
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from eth_abi import encode
from eth_utils import function_abi_to_4byte_selector

from .errors import EncodingError

logger = logging.getLogger(__name__)

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]*")

# ABI of the only contract operation the relayer calls.
PRICE_FEED_ABI: list[dict] = [
    {
        "type": "function",
        "name": "updatePriceFeeds",
        "inputs": [
            {"name": "updateData", "type": "bytes[]"},
            {"name": "signature", "type": "bytes[][]"},
        ],
        "outputs": [],
        "stateMutability": "nonpayable",
    }
]


def _format_function(abi_entry: dict) -> str:
    """Format an ABI entry as a human-readable function descriptor."""
    params = ", ".join(f"{arg['type']} {arg['name']}" for arg in abi_entry["inputs"])
    return f"function {abi_entry['name']}({params})"


_UPDATE_PRICE_FEEDS_ABI = PRICE_FEED_ABI[0]
UPDATE_PRICE_FEEDS_TYPES: list[str] = [arg["type"] for arg in _UPDATE_PRICE_FEEDS_ABI["inputs"]]
UPDATE_PRICE_FEEDS_SIGNATURE: str = _format_function(_UPDATE_PRICE_FEEDS_ABI)
UPDATE_PRICE_FEEDS_SELECTOR: bytes = function_abi_to_4byte_selector(_UPDATE_PRICE_FEEDS_ABI)


class EncodingMode(str, Enum):
    """Shape of the encoded payload."""

    # Selector followed by ABI-encoded arguments
    STANDARD = "standard"
    # Arguments only; the host execution layer prepends the selector itself
    HOST_DELEGATED = "host-delegated"


@dataclass(frozen=True)
class EncodedCall:
    """An encoded ``updatePriceFeeds`` call.

    :ivar data: Call payload bytes.
    :ivar method_signature: Function descriptor matching the payload mode.
    :ivar mode: Encoding mode that produced the payload.
    """

    data: bytes
    method_signature: str
    mode: EncodingMode = EncodingMode.STANDARD

    def to_hex(self) -> str:
        """Return the payload as 0x-prefixed hex."""
        return "0x" + self.data.hex()

    @property
    def call_data(self) -> bytes:
        """Complete call data, selector included, whatever the mode."""
        if self.mode == EncodingMode.HOST_DELEGATED:
            return UPDATE_PRICE_FEEDS_SELECTOR + self.data
        return self.data


def ensure_0x_prefix(hex_str: str) -> str:
    """Ensure a hex string carries the '0x' prefix.

    :param hex_str: Hex string with or without prefix.
    :returns: Hex string with '0x' prefix.
    """
    if hex_str[:2].lower() == "0x":
        return "0x" + hex_str[2:]
    return "0x" + hex_str


def _to_bytes(value: object, what: str) -> bytes:
    if not isinstance(value, str):
        raise EncodingError(f"{what} must be a hex string, got {type(value).__name__}")
    digits = ensure_0x_prefix(value)[2:]
    # bytes.fromhex would silently skip whitespace
    if not _HEX_DIGITS.fullmatch(digits) or len(digits) % 2:
        raise EncodingError(f"{what} is not valid hex: {value!r}")
    return bytes.fromhex(digits)


def encode_update_price_feeds(
    packed: list[str],
    signatures: list[list[str]],
    mode: EncodingMode = EncodingMode.STANDARD,
) -> EncodedCall:
    """Encode an ``updatePriceFeeds`` call for one or more price entries.

    :param packed: Packed price blobs as hex strings, one per pair.
    :param signatures: Signature lists, index-aligned with ``packed``.
    :param mode: Payload shape (default: standard call data).
    :returns: Encoded call with payload and method descriptor.
    :raises EncodingError: On length mismatch, empty input or malformed hex.
    """
    if len(packed) != len(signatures):
        raise EncodingError(
            f"Packed data and signature arrays differ in length "
            f"({len(packed)} != {len(signatures)})"
        )
    if not packed:
        raise EncodingError("Nothing to encode: no price entries")

    update_data = [_to_bytes(p, f"updateData[{i}]") for i, p in enumerate(packed)]
    signature_sets = []
    for i, sig_set in enumerate(signatures):
        if isinstance(sig_set, (str, bytes)):
            raise EncodingError(f"signature[{i}] must be a list of hex strings")
        signature_sets.append(
            [_to_bytes(s, f"signature[{i}][{j}]") for j, s in enumerate(sig_set)]
        )

    logger.debug(f"Encoding updatePriceFeeds payload with {len(update_data)} price entries")
    arguments = encode(UPDATE_PRICE_FEEDS_TYPES, [update_data, signature_sets])

    if mode == EncodingMode.HOST_DELEGATED:
        return EncodedCall(
            data=arguments,
            method_signature=UPDATE_PRICE_FEEDS_SIGNATURE[len("function "):],
            mode=mode,
        )
    return EncodedCall(
        data=UPDATE_PRICE_FEEDS_SELECTOR + arguments,
        method_signature=UPDATE_PRICE_FEEDS_SIGNATURE,
        mode=mode,
    )
