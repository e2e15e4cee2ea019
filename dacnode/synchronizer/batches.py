"""Watching L1 for sequenced batches and fetching the data the node is missing."""

from __future__ import annotations

import logging
import queue
import random
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Protocol, Sequence

from ..crypto import keccak256
from ..dactypes import ZERO_ADDRESS, BatchKey, OffChainData
from ..errors import NOT_FOUND_ERROR_CODE, RPCError
from .committee import CommitteeMap, DataCommittee, DataCommitteeMember
from .reorg import BlockReorg
from .store import (
    Database,
    SyncTask,
    delete_missing_batch_keys,
    get_missing_batch_keys,
    get_start_block,
    list_offchain_data,
    set_start_block,
    store_missing_batch_keys,
    store_offchain_data,
)
from .txdata import unpack_tx_data

log = logging.getLogger(__name__)

DEFAULT_BLOCK_BATCH_SIZE = 32
_REORG_POLL_INTERVAL = 0.1


def _hex(data: bytes) -> str:
    return "0x" + bytes(data).hex()


@dataclass(frozen=True)
class SeqBatch:
    """A batch as reported by the trusted sequencer."""

    number: int
    batch_l2_data: bytes


@dataclass
class SynchronizerConfig:
    """Settings of the batch synchronizer.

    ``retry_period`` is the pause in seconds between polling rounds;
    a ``block_batch_size`` of 0 selects :data:`DEFAULT_BLOCK_BATCH_SIZE`.
    """

    retry_period: float
    block_batch_size: int = 0


class _Etherman(Protocol):
    def get_current_data_committee(self) -> DataCommittee: ...

    def header_by_number(self, number: int | None) -> Any: ...

    def filter_sequence_batches(self, start: int, end: int) -> Iterable[Any]: ...

    def get_tx(self, tx_hash: bytes) -> Any: ...


class _SequencerTracker(Protocol):
    def get_sequence_batch(self, batch_number: int) -> SeqBatch: ...


class _DataClient(Protocol):
    def get_offchain_data(self, key: bytes) -> bytes: ...


class BatchSynchronizer:
    """Follows SequenceBatches events and fills in batch data missing locally.

    ``client`` reads L1; events it yields carry ``block_number``, ``tx_hash``
    and ``num_batch``, and transactions from ``get_tx`` carry ``data``.
    ``client_factory`` maps a committee member's URL to a client offering
    ``get_offchain_data``. ``reorgs`` is a queue of :class:`BlockReorg`
    values, where None marks its end.
    """

    def __init__(
        self,
        config: SynchronizerConfig,
        self_addr: bytes,
        db: Database,
        reorgs: queue.Queue | None,
        client: _Etherman,
        sequencer: _SequencerTracker,
        client_factory: Callable[[str], _DataClient],
    ) -> None:
        block_batch_size = config.block_batch_size
        if block_batch_size == 0:
            log.info("block batch size is not set, setting to default %d", DEFAULT_BLOCK_BATCH_SIZE)
            block_batch_size = DEFAULT_BLOCK_BATCH_SIZE
        self.retry_period = config.retry_period
        self.block_batch_size = block_batch_size
        self.self_addr = bytes(self_addr)
        self.db = db
        self.reorgs = reorgs
        self.client = client
        self.sequencer = sequencer
        self.client_factory = client_factory
        self.committee = CommitteeMap()
        self._sync_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []
        self.resolve_committee()

    def resolve_committee(self) -> None:
        """Reload the committee from L1, leaving this node out of it."""
        current = self.client.get_current_data_committee()
        committee = CommitteeMap()
        committee.store_batch(m for m in current.members if m.addr != self.self_addr)
        self.committee = committee

    def start(self) -> None:
        """Start the background workers."""
        log.info("starting batch synchronizer, DAC addr: %s", _hex(self.self_addr))
        self._stop_event.clear()
        workers = [
            ("missing-batches", self._process_missing_batches),
            ("event-producer", self._produce_events),
            ("reorg-handler", self._handle_reorgs),
        ]
        self._threads = [
            threading.Thread(target=target, name=name, daemon=True) for name, target in workers
        ]
        for thread in self._threads:
            thread.start()

    def stop(self) -> None:
        """Stop the background workers and wait for them to finish."""
        self._stop_event.set()
        for thread in self._threads:
            if thread is not threading.current_thread():
                thread.join()
        self._threads = []

    def _handle_reorgs(self) -> None:
        log.info("starting reorgs handler")
        if self.reorgs is None:
            return
        while not self._stop_event.is_set():
            try:
                reorg = self.reorgs.get(timeout=_REORG_POLL_INTERVAL)
            except queue.Empty:
                continue
            if reorg is None:
                return
            self.handle_reorg(reorg)

    def handle_reorg(self, reorg: BlockReorg) -> None:
        """Rewind the sync start block to the reorg block if it lies behind it."""
        with self._sync_lock:
            try:
                latest = get_start_block(self.db, SyncTask.L1)
            except Exception as exc:
                log.error("could not determine latest processed block: %s", exc)
                return
            if latest < reorg.number:
                return
            try:
                set_start_block(self.db, reorg.number, SyncTask.L1)
            except Exception as exc:
                log.error("failed to store new start block to %d: %s", reorg.number, exc)

    def _produce_events(self) -> None:
        log.info("starting event producer")
        while not self._stop_event.wait(self.retry_period):
            try:
                self.filter_events()
            except Exception as exc:
                log.error("error filtering events: %s", exc)

    def filter_events(self) -> None:
        """Scan the next range of blocks for SequenceBatches events and handle them."""
        with self._sync_lock:
            start = get_start_block(self.db, SyncTask.L1)
            end = start + self.block_batch_size

            try:
                header = self.client.header_by_number(None)
            except Exception as exc:
                log.error("failed to determine latest block number: %s", exc)
                raise
            # never scan beyond the latest block
            end = min(end, header.number)

            try:
                events = list(self.client.filter_sequence_batches(start, end))
            except Exception as exc:
                log.error("failed to collect SequenceBatches events: %s", exc)
                raise

            for event in sorted(events, key=lambda e: e.block_number):
                try:
                    self.handle_event(event)
                except Exception as exc:
                    log.error("failed to handle event: %s", exc)
                    set_start_block(self.db, event.block_number - 1, SyncTask.L1)
                    return

            set_start_block(self.db, end, SyncTask.L1)

    def handle_event(self, event: Any) -> None:
        """Record the batches of one SequenceBatches event whose data is not stored."""
        tx = self.client.get_tx(event.tx_hash)
        keys = unpack_tx_data(tx.data)
        # the event carries the last batch number; hashes are in batch order
        batch_keys = [
            BatchKey(number=event.num_batch - offset, hash=key)
            for offset, key in enumerate(reversed(keys))
        ]
        self.find_missing_batches(batch_keys)

    def find_missing_batches(self, batch_keys: Sequence[BatchKey]) -> None:
        """Store as missing those batch keys whose data is not held yet."""
        try:
            existing = list_offchain_data(self.db, [key.hash for key in batch_keys])
        except Exception as exc:
            raise RuntimeError(f"failed to list offchain data: {exc}") from exc

        present = {data.key for data in existing or ()}
        missing = [key for key in batch_keys if key.hash not in present]
        if missing:
            store_missing_batch_keys(self.db, missing)

    def _process_missing_batches(self) -> None:
        log.info("starting handling missing batches")
        while not self._stop_event.wait(self.retry_period):
            try:
                self.handle_missing_batches()
            except Exception as exc:
                log.error("%s", exc)

    def handle_missing_batches(self) -> None:
        """Fetch the data of batches recorded as missing and store it."""
        try:
            batch_keys = get_missing_batch_keys(self.db)
        except Exception as exc:
            raise RuntimeError(f"failed to get missing batch keys: {exc}") from exc

        if not batch_keys:
            return

        data: list[OffChainData] = []
        for key in batch_keys:
            try:
                data.append(self.resolve(key))
            except Exception as exc:
                log.error("failed to resolve batch %s: %s", _hex(key.hash), exc)

        if not data:
            return

        try:
            store_offchain_data(self.db, data)
        except Exception as exc:
            raise RuntimeError(f"failed to store offchain data: {exc}") from exc

        try:
            delete_missing_batch_keys(self.db, batch_keys)
        except Exception as exc:
            raise RuntimeError(
                f"failed to delete successfully resolved batch keys: {exc}"
            ) from exc

    def resolve(self, batch: BatchKey) -> OffChainData:
        """Get a batch's data from the sequencer, or else from committee members."""
        data = self._try_sequencer(batch)
        if data is not None:
            return data

        if len(self.committee) == 0:
            # members get evicted when they lack data or are malformed
            self.resolve_committee()

        members = self.committee.as_list()
        random.shuffle(members)
        for member in members:
            if not member.url or member.addr == ZERO_ADDRESS or member.addr == self.self_addr:
                self.committee.delete(member.addr)
                continue
            try:
                return self._resolve_with_member(batch.hash, member)
            except Exception as exc:
                log.warning("error resolving, continuing: %s", exc)
                self.committee.delete(member.addr)

        raise RPCError(
            NOT_FOUND_ERROR_CODE,
            "no data found for number %d, key %s",
            batch.number,
            _hex(batch.hash),
        )

    def _try_sequencer(self, batch: BatchKey) -> OffChainData | None:
        try:
            seq_batch = self.sequencer.get_sequence_batch(batch.number)
        except Exception as exc:
            log.warning("failed to get data from sequencer: %s", exc)
            return None

        if keccak256(seq_batch.batch_l2_data) != batch.hash:
            log.warning(
                "number %d: sequencer gave wrong data for key: %s", batch.number, _hex(batch.hash)
            )
            return None

        return OffChainData(key=batch.hash, value=bytes(seq_batch.batch_l2_data))

    def _resolve_with_member(self, key: bytes, member: DataCommitteeMember) -> OffChainData:
        client = self.client_factory(member.url)
        log.debug("trying member %s at %s for key %s", _hex(member.addr), member.url, _hex(key))
        value = client.get_offchain_data(key)
        expected = keccak256(value)
        if expected != key:
            raise ValueError(
                f"unexpected key gotten from member: {_hex(member.addr)}. Key: {_hex(expected)}"
            )
        return OffChainData(key=key, value=bytes(value))