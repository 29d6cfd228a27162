"""Fixed-layout codec for the opaque flash-swap payload.

Layout: three 32-byte big-endian words.

    word 0  debt token    (address, left-padded with zeros)
    word 1  borrower      (address, left-padded with zeros)
    word 2  minimum profit (uint256)
"""
from __future__ import annotations

from .addresses import normalize_address
from .errors import MalformedPayload

WORD_SIZE = 32
PAYLOAD_SIZE = 3 * WORD_SIZE
MAX_UINT256 = 2**256 - 1

_ADDRESS_PADDING = b"\x00" * (WORD_SIZE - 20)


def _encode_address(address: str) -> bytes:
    return _ADDRESS_PADDING + bytes.fromhex(normalize_address(address)[2:])


def _decode_address(word: bytes) -> str:
    if word[: WORD_SIZE - 20] != _ADDRESS_PADDING:
        raise MalformedPayload(f"Dirty address padding: 0x{word.hex()}")
    return "0x" + word[WORD_SIZE - 20 :].hex()


def encode_payload(debt_token: str, borrower: str, min_profit: int) -> bytes:
    """Encode a liquidation request for the pool to hand back to the callback."""
    if not 0 <= min_profit <= MAX_UINT256:
        raise MalformedPayload(f"Minimum profit out of uint256 range: {min_profit}")
    return (
        _encode_address(debt_token)
        + _encode_address(borrower)
        + min_profit.to_bytes(WORD_SIZE, "big")
    )


def decode_payload(data: bytes) -> tuple[str, str, int]:
    """Decode ``(debt_token, borrower, min_profit)`` from callback data."""
    if len(data) != PAYLOAD_SIZE:
        raise MalformedPayload(
            f"Expected {PAYLOAD_SIZE} bytes of payload, got {len(data)}"
        )
    debt_token = _decode_address(data[:WORD_SIZE])
    borrower = _decode_address(data[WORD_SIZE : 2 * WORD_SIZE])
    min_profit = int.from_bytes(data[2 * WORD_SIZE :], "big")
    return debt_token, borrower, min_profit
