"""Core data types and hex encoding helpers used on the RPC boundary."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Protocol, runtime_checkable

HASH_LENGTH = 32
ADDRESS_LENGTH = 20
ZERO_HASH = bytes(HASH_LENGTH)
ZERO_ADDRESS = bytes(ADDRESS_LENGTH)

_UINT64_MAX = (1 << 64) - 1
_HEX_DIGITS = re.compile(r"[0-9a-fA-F]*")
_HEX_PAIRS = re.compile(r"(?:[0-9a-fA-F]{2})*")


@dataclass
class DACStatus:
    """Status information of the data availability node."""

    uptime: str
    version: str
    key_count: int
    last_synchronized_block: int

    def to_dict(self) -> dict:
        return {
            "uptime": self.uptime,
            "version": self.version,
            "key_count": self.key_count,
            "last_synchronized_block": self.last_synchronized_block,
        }


@dataclass(frozen=True)
class BatchKey:
    """A batch number paired with the hash of the batch data."""

    number: int
    hash: bytes


@dataclass(frozen=True)
class OffChainData:
    """Data kept off chain, addressed by its hash."""

    key: bytes
    value: bytes = b""


@runtime_checkable
class SignedSequenceLike(Protocol):
    """What the signing endpoint needs from a signed sequence."""

    signature: bytes

    def signer(self) -> bytes: ...

    def offchain_data(self) -> list[OffChainData]: ...

    def sign(self, private_key: int) -> bytes: ...


def remove_duplicate_offchain_data(ods: Iterable[OffChainData]) -> list[OffChainData]:
    """Drop entries whose key was already seen, keeping the first occurrence."""
    unique: dict[bytes, OffChainData] = {}
    for od in ods:
        unique.setdefault(od.key, od)
    return list(unique.values())


def format_uint64(value: int) -> str:
    """Encode an unsigned integer as a 0x-prefixed hex quantity."""
    if not 0 <= value <= _UINT64_MAX:
        raise ValueError(f"value out of uint64 range: {value}")
    return f"0x{value:x}"


def parse_uint64(text: str) -> int:
    """Parse a hex quantity, with or without the 0x prefix, into an integer."""
    digits = text.removeprefix("0x")
    if not digits or not _HEX_DIGITS.fullmatch(digits):
        raise ValueError(f"invalid uint64 value: {text!r}")
    value = int(digits, 16)
    if value > _UINT64_MAX:
        raise ValueError(f"value out of uint64 range: {text!r}")
    return value


def encode_hex(data: bytes) -> str:
    """Encode bytes as a 0x-prefixed hex string."""
    return "0x" + bytes(data).hex()


def decode_hex(text: str) -> bytes:
    """Decode a hex string, optionally 0x-prefixed; odd lengths get a leading zero."""
    digits = text.removeprefix("0x")
    if len(digits) % 2:
        digits = "0" + digits
    if not _HEX_DIGITS.fullmatch(digits):
        raise ValueError(f"invalid hex string: {text!r}")
    return bytes.fromhex(digits)


def parse_arg_bytes(text: str) -> bytes:
    """Decode RPC byte input; input that is not hex yields empty bytes."""
    try:
        return decode_hex(text)
    except ValueError:
        return b""


def parse_arg_hash(text: str) -> bytes:
    """Parse a hash that may be shorter than 32 bytes, such as 0x00."""
    if not is_hex_valid(text):
        raise ValueError("invalid hash, it needs to be a hexadecimal value")
    return hex_to_hash(text.removeprefix("0x"))


def parse_big(text: str) -> int:
    """Parse a hex string into a non-negative integer."""
    return int.from_bytes(decode_hex(text), "big")


def format_big(value: int) -> str:
    """Encode an integer as 0x followed by its hex digits."""
    return f"0x{value:x}"


def hex_encode_big(value: int) -> str:
    """Encode an integer as a 0x-prefixed hex string, 0x0 for zero."""
    if value == 0:
        return "0x0"
    return f"{value:#x}"


def is_hex_valid(text: str) -> bool:
    """Tell whether ``text``, after an optional 0x prefix, holds only hex digits."""
    return _HEX_DIGITS.fullmatch(text.removeprefix("0x")) is not None


def _lenient_decode(text: str) -> bytes:
    if text[:2] in ("0x", "0X"):
        text = text[2:]
    if len(text) % 2:
        text = "0" + text
    return bytes.fromhex(_HEX_PAIRS.match(text).group())


def _fit(data: bytes, size: int) -> bytes:
    return bytes(data[-size:]).rjust(size, b"\x00")


def hex_to_hash(text: str) -> bytes:
    """Convert hex text to a 32-byte hash, left-padding and keeping the last bytes."""
    return _fit(_lenient_decode(text), HASH_LENGTH)


def hex_to_address(text: str) -> bytes:
    """Convert hex text to a 20-byte address, left-padding and keeping the last bytes."""
    return _fit(_lenient_decode(text), ADDRESS_LENGTH)


def bytes_to_hash(data: bytes) -> bytes:
    """Fit bytes into a 32-byte hash, left-padding and keeping the last bytes."""
    return _fit(data, HASH_LENGTH)