"""Extracting batch hashes from sequenceBatchesValidium call data."""

from __future__ import annotations

import logging

from ..crypto import keccak256

log = logging.getLogger(__name__)

METHOD_ID_LENGTH = 4
_WORD = 32
_BATCH_TUPLE_WORDS = 4  # (transactionsHash, forcedGlobalExitRoot, forcedTimestamp, forcedBlockHashL1)

METHOD_ID_SEQUENCE_BATCHES_VALIDIUM_ETROG = keccak256(
    b"sequenceBatchesValidium((bytes32,bytes32,uint64,bytes32)[],address,bytes)"
)[:METHOD_ID_LENGTH]
METHOD_ID_SEQUENCE_BATCHES_VALIDIUM_ELDERBERRY = keccak256(
    b"sequenceBatchesValidium((bytes32,bytes32,uint64,bytes32)[],uint64,uint64,address,bytes)"
)[:METHOD_ID_LENGTH]
METHOD_ID_SEQUENCE_BATCHES_VALIDIUM_BANANA = keccak256(
    b"sequenceBatchesValidium((bytes32,bytes32,uint64,bytes32)[],uint32,uint64,bytes32,address,bytes)"
)[:METHOD_ID_LENGTH]

_INPUTS = {
    METHOD_ID_SEQUENCE_BATCHES_VALIDIUM_ETROG: ("batches", "address", "bytes"),
    METHOD_ID_SEQUENCE_BATCHES_VALIDIUM_ELDERBERRY: (
        "batches", "uint64", "uint64", "address", "bytes",
    ),
    METHOD_ID_SEQUENCE_BATCHES_VALIDIUM_BANANA: (
        "batches", "uint32", "uint64", "bytes32", "address", "bytes",
    ),
}


def _word(data: bytes, offset: int) -> bytes:
    if offset + _WORD > len(data):
        raise ValueError(
            f"abi: cannot unmarshal, length insufficient {len(data)} require {offset + _WORD}"
        )
    return data[offset:offset + _WORD]


def _uint(word: bytes, bits: int) -> int:
    value = int.from_bytes(word, "big")
    if value >> bits:
        raise ValueError(f"abi: cannot unmarshal value into uint{bits}, overflow")
    return value


def _dynamic_body(data: bytes, head_word: bytes, element_size: int) -> tuple[int, int]:
    """Resolve a dynamic value: return the start of its elements and their count."""
    offset = int.from_bytes(head_word, "big")
    count = int.from_bytes(_word(data, offset), "big")
    start = offset + _WORD
    if start + count * element_size > len(data):
        raise ValueError(
            f"abi: cannot marshal into go type: length insufficient "
            f"{len(data)} require {start + count * element_size}"
        )
    return start, count


def _decode_batches(data: bytes, head_word: bytes) -> list[bytes]:
    element_size = _BATCH_TUPLE_WORDS * _WORD
    start, count = _dynamic_body(data, head_word, element_size)
    keys = []
    for index in range(count):
        base = start + index * element_size
        keys.append(_word(data, base))
        _uint(_word(data, base + 2 * _WORD), 64)
    return keys


def _decode_inputs(inputs: tuple[str, ...], data: bytes) -> list[bytes]:
    keys: list[bytes] = []
    for position, kind in enumerate(inputs):
        head_word = _word(data, position * _WORD)
        if kind == "batches":
            keys = _decode_batches(data, head_word)
        elif kind == "bytes":
            _dynamic_body(data, head_word, 1)
        elif kind == "uint64":
            _uint(head_word, 64)
        elif kind == "uint32":
            _uint(head_word, 32)
    return keys


def unpack_tx_data(tx_data: bytes) -> list[bytes]:
    """Return the transactions hashes of the batches in a sequenceBatchesValidium call."""
    tx_data = bytes(tx_data)
    if len(tx_data) < METHOD_ID_LENGTH:
        raise ValueError("tx data too short to hold a method id")
    method_id = tx_data[:METHOD_ID_LENGTH]
    inputs = _INPUTS.get(method_id)
    if inputs is None:
        raise ValueError(f"unrecognized method id: {method_id.hex()}")
    try:
        return _decode_inputs(inputs, tx_data[METHOD_ID_LENGTH:])
    except ValueError as exc:
        log.error("error unpacking data: %s", exc)
        raise