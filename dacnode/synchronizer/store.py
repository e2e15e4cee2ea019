"""Storage access used by the synchronizer."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol, Sequence

from ..dactypes import BatchKey, OffChainData

log = logging.getLogger(__name__)

MAX_UNPROCESSED_BATCH = 100


class SyncTask(str, Enum):
    """Names of the synchronization tasks whose progress is stored."""

    L1 = "L1"


class Database(Protocol):
    """The storage the node keeps its data and progress in."""

    def get_last_processed_block(self, task: str) -> int:
        """Return the last block processed by ``task``."""

    def store_last_processed_block(self, block: int, task: str) -> None:
        """Record ``block`` as the last block processed by ``task``."""

    def store_missing_batch_keys(self, keys: Sequence[BatchKey]) -> None:
        """Remember batch keys whose data still has to be fetched."""

    def get_missing_batch_keys(self, limit: int) -> list[BatchKey]:
        """Return at most ``limit`` batch keys whose data is missing."""

    def delete_missing_batch_keys(self, keys: Sequence[BatchKey]) -> None:
        """Forget batch keys whose data has been fetched."""

    def list_offchain_data(self, keys: Sequence[bytes]) -> list[OffChainData]:
        """Return the stored data for those of ``keys`` that are present."""

    def store_offchain_data(self, data: Sequence[OffChainData]) -> None:
        """Store off-chain data."""

    def get_offchain_data(self, key: bytes) -> OffChainData:
        """Return the data stored under ``key``."""

    def count_offchain_data(self) -> int:
        """Return how many off-chain data entries are stored."""


def get_start_block(db: Database, sync_task: SyncTask) -> int:
    """Block to resume ``sync_task`` from: one before the last processed block."""
    task = SyncTask(sync_task)
    try:
        start = db.get_last_processed_block(task.value)
    except Exception as exc:
        log.error("error retrieving last processed block for %s task: %s", task.value, exc)
        raise
    # the last block may have been processed only partially
    return start - 1 if start > 0 else start


def set_start_block(db: Database, block: int, sync_task: SyncTask) -> None:
    """Record ``block`` as processed for ``sync_task``."""
    db.store_last_processed_block(block, SyncTask(sync_task).value)


def store_missing_batch_keys(db: Database, keys: Sequence[BatchKey]) -> None:
    db.store_missing_batch_keys(keys)


def get_missing_batch_keys(db: Database) -> list[BatchKey]:
    """Return up to :data:`MAX_UNPROCESSED_BATCH` missing batch keys."""
    return db.get_missing_batch_keys(MAX_UNPROCESSED_BATCH)


def delete_missing_batch_keys(db: Database, keys: Sequence[BatchKey]) -> None:
    db.delete_missing_batch_keys(keys)


def list_offchain_data(db: Database, keys: Sequence[bytes]) -> list[OffChainData]:
    return db.list_offchain_data(keys)


def store_offchain_data(db: Database, data: Sequence[OffChainData]) -> None:
    db.store_offchain_data(data)