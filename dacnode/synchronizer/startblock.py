"""Finding the L1 block from which synchronization starts."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from .store import Database, SyncTask, get_start_block, set_start_block

log = logging.getLogger(__name__)

MIN_CODE_LEN = 2


class _ChainReader(Protocol):
    def header_by_number(self, number: int | None) -> Any:
        """Return the header of block ``number``, the latest one for None."""

    def code_at(self, address: bytes, block_number: int) -> bytes:
        """Return the contract code at ``address`` as of ``block_number``."""


def init_start_block(
    db: Database,
    client: _ChainReader,
    genesis_block: int,
    validium_addr: bytes,
) -> None:
    """Set the L1 sync start block unless one has already been recorded."""
    if get_start_block(db, SyncTask.L1) > 0:
        return

    log.info("starting search for start block of contract 0x%s", bytes(validium_addr).hex())
    if genesis_block:
        start_block = genesis_block
    else:
        start_block = find_contract_deployment_block(client, validium_addr)
    set_start_block(db, start_block, SyncTask.L1)


def find_contract_deployment_block(client: _ChainReader, contract: bytes) -> int:
    """Return the first block in which ``contract`` has code."""
    latest = client.header_by_number(None)
    return find_code(client, contract, 0, latest.number)


def find_code(client: _ChainReader, address: bytes, start_block: int, end_block: int) -> int:
    """Binary search for the first block in the range where ``address`` has code."""
    while start_block != end_block:
        mid_block = (start_block + end_block) // 2
        if _code_len(client, address, mid_block) > MIN_CODE_LEN:
            end_block = mid_block
        else:
            start_block = mid_block + 1
    return start_block


def _code_len(client: _ChainReader, address: bytes, block_number: int) -> int:
    try:
        return len(client.code_at(address, block_number))
    except Exception as exc:  # a failed lookup counts as no code
        log.debug("could not get code at block %d: %s", block_number, exc)
        return 0