"""Sequences of batch data as signed by the sequencer and the committee."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from . import crypto
from .dactypes import (
    ADDRESS_LENGTH,
    HASH_LENGTH,
    ZERO_ADDRESS,
    ZERO_HASH,
    OffChainData,
    encode_hex,
    format_uint64,
    parse_arg_bytes,
    parse_uint64,
)

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]*")


def _parse_fixed(text: str, size: int) -> bytes:
    if not isinstance(text, str) or text[:2] not in ("0x", "0X"):
        raise ValueError("hex string without 0x prefix")
    digits = text[2:]
    if not _HEX_DIGITS.fullmatch(digits):
        raise ValueError(f"invalid hex string: {text!r}")
    if len(digits) != 2 * size:
        raise ValueError(f"hex string has length {len(digits)}, want {2 * size}")
    return bytes.fromhex(digits)


def _field(data: Mapping[str, Any], key: str, parse: Callable[[Any], Any], default: Any) -> Any:
    value = data.get(key)
    return default if value is None else parse(value)


def _parse_hash(text: str) -> bytes:
    return _parse_fixed(text, HASH_LENGTH)


def _parse_address(text: str) -> bytes:
    return _parse_fixed(text, ADDRESS_LENGTH)


def calculate_acc_input_hash(
    old_acc_input_hash: bytes,
    l2_data: bytes,
    l1_info_root: bytes,
    timestamp: int,
    coinbase: bytes,
    forced_block_hash_l1: bytes,
) -> bytes:
    """Fold one batch into the accumulated input hash, as the contract does."""
    return crypto.keccak256(
        bytes(old_acc_input_hash).rjust(HASH_LENGTH, b"\x00"),
        crypto.keccak256(l2_data),
        bytes(l1_info_root).rjust(HASH_LENGTH, b"\x00"),
        timestamp.to_bytes(8, "big"),
        bytes(coinbase).rjust(ADDRESS_LENGTH, b"\x00"),
        bytes(forced_block_hash_l1).rjust(HASH_LENGTH, b"\x00"),
    )


class Sequence(list):
    """A list of batch data blobs sent by the sequencer to L1."""

    def hash_to_sign(self) -> bytes:
        """Accumulated input hash of the sequence."""
        current = ZERO_HASH
        for batch_data in self:
            current = crypto.keccak256(current, crypto.keccak256(batch_data))
        return current

    def sign(self, private_key: int) -> bytes:
        return crypto.sign(private_key, self.hash_to_sign())

    def offchain_data(self) -> list[OffChainData]:
        return [OffChainData(key=crypto.keccak256(data), value=bytes(data)) for data in self]


@dataclass
class SignedSequence:
    """A sequence together with the sequencer's signature over it."""

    sequence: Sequence = field(default_factory=Sequence)
    signature: bytes = b""

    def signer(self) -> bytes:
        """Address of whoever signed the sequence."""
        return crypto.recover_address(self.sequence.hash_to_sign(), self.signature)

    def offchain_data(self) -> list[OffChainData]:
        return self.sequence.offchain_data()

    def sign(self, private_key: int) -> bytes:
        return self.sequence.sign(private_key)

    def to_dict(self) -> dict:
        return {
            "sequence": [encode_hex(data) for data in self.sequence],
            "signature": encode_hex(self.signature),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SignedSequence:
        batches = data.get("sequence") or []
        return cls(
            sequence=Sequence(parse_arg_bytes(item) for item in batches),
            signature=_field(data, "signature", parse_arg_bytes, b""),
        )


@dataclass
class Batch:
    """Batch data that the sequencer sends to L1."""

    l2_data: bytes = b""
    forced_ger: bytes = ZERO_HASH
    forced_timestamp: int = 0
    coinbase: bytes = ZERO_ADDRESS
    forced_block_hash_l1: bytes = ZERO_HASH

    def to_dict(self) -> dict:
        return {
            "L2Data": encode_hex(self.l2_data),
            "forcedGlobalExitRoot": encode_hex(self.forced_ger),
            "forcedTimestamp": format_uint64(self.forced_timestamp),
            "coinbase": encode_hex(self.coinbase),
            "forcedBlockHashL1": encode_hex(self.forced_block_hash_l1),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Batch:
        return cls(
            l2_data=_field(data, "L2Data", parse_arg_bytes, b""),
            forced_ger=_field(data, "forcedGlobalExitRoot", _parse_hash, ZERO_HASH),
            forced_timestamp=_field(data, "forcedTimestamp", parse_uint64, 0),
            coinbase=_field(data, "coinbase", _parse_address, ZERO_ADDRESS),
            forced_block_hash_l1=_field(data, "forcedBlockHashL1", _parse_hash, ZERO_HASH),
        )


@dataclass
class SequenceBanana:
    """A sequence with the metadata needed for the accumulated input hash."""

    batches: list[Batch] = field(default_factory=list)
    old_acc_input_hash: bytes = ZERO_HASH
    l1_info_root: bytes = ZERO_HASH
    max_sequence_timestamp: int = 0

    def hash_to_sign(self) -> bytes:
        """Accumulated input hash of the sequence."""
        acc_input_hash = self.old_acc_input_hash
        for batch in self.batches:
            acc_input_hash = calculate_acc_input_hash(
                acc_input_hash,
                batch.l2_data,
                self.l1_info_root,
                self.max_sequence_timestamp,
                batch.coinbase,
                batch.forced_block_hash_l1,
            )
        return bytes(acc_input_hash)

    def sign(self, private_key: int) -> bytes:
        return crypto.sign(private_key, self.hash_to_sign())

    def offchain_data(self) -> list[OffChainData]:
        return [
            OffChainData(key=crypto.keccak256(batch.l2_data), value=bytes(batch.l2_data))
            for batch in self.batches
        ]

    def to_dict(self) -> dict:
        return {
            "batches": [batch.to_dict() for batch in self.batches],
            "oldAccInputhash": encode_hex(self.old_acc_input_hash),
            "l1InfoRoot": encode_hex(self.l1_info_root),
            "maxSequenceTimestamp": format_uint64(self.max_sequence_timestamp),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SequenceBanana:
        return cls(
            batches=[Batch.from_dict(item) for item in data.get("batches") or []],
            old_acc_input_hash=_field(data, "oldAccInputhash", _parse_hash, ZERO_HASH),
            l1_info_root=_field(data, "l1InfoRoot", _parse_hash, ZERO_HASH),
            max_sequence_timestamp=_field(data, "maxSequenceTimestamp", parse_uint64, 0),
        )


@dataclass
class SignedSequenceBanana:
    """A banana sequence together with the sequencer's signature over it."""

    sequence: SequenceBanana = field(default_factory=SequenceBanana)
    signature: bytes = b""

    def signer(self) -> bytes:
        """Address of whoever signed the sequence."""
        return crypto.recover_address(self.sequence.hash_to_sign(), self.signature)

    def offchain_data(self) -> list[OffChainData]:
        return self.sequence.offchain_data()

    def sign(self, private_key: int) -> bytes:
        return self.sequence.sign(private_key)

    def to_dict(self) -> dict:
        return {"sequence": self.sequence.to_dict(), "signature": encode_hex(self.signature)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SignedSequenceBanana:
        return cls(
            sequence=_field(data, "sequence", SequenceBanana.from_dict, SequenceBanana()),
            signature=_field(data, "signature", parse_arg_bytes, b""),
        )