"""Watching the chain head and telling subscribers about reorganizations."""

from __future__ import annotations

import json
import logging
import queue
import threading
import urllib.request
from dataclasses import dataclass
from typing import Callable
from urllib.parse import urlparse

from ..dactypes import decode_hex, parse_uint64

log = logging.getLogger(__name__)

_RPC_TIMEOUT = 10.0


@dataclass(frozen=True)
class Block:
    """A chain block as seen by the tracker."""

    number: int
    hash: bytes


@dataclass(frozen=True)
class BlockReorg:
    """Sent to subscribers on a reorg; ``number`` is the block the chain rewound to."""

    number: int
    hash: bytes


def _http_latest_block(rpc_url: str) -> Block:
    body = json.dumps(
        {"jsonrpc": "2.0", "id": 1, "method": "eth_getBlockByNumber", "params": ["latest", False]}
    ).encode()
    request = urllib.request.Request(
        rpc_url, data=body, headers={"Content-Type": "application/json"}
    )
    with urllib.request.urlopen(request, timeout=_RPC_TIMEOUT) as response:
        reply = json.load(response)
    if reply.get("error"):
        raise RuntimeError(f"rpc error: {reply['error']}")
    result = reply.get("result")
    if not result:
        raise RuntimeError("rpc returned no block")
    return Block(number=parse_uint64(result["number"]), hash=decode_hex(result["hash"]))


class ReorgDetector:
    """Polls the latest block and notifies subscribers when a reorg is detected.

    Each subscriber gets a queue of :class:`BlockReorg` values; None is put on
    every queue when the detector stops.
    """

    def __init__(
        self,
        rpc_url: str,
        polling_period: float,
        fetch_latest_block: Callable[[], Block] | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.polling_period = polling_period
        self._fetch = fetch_latest_block
        self._subscribers: list[queue.Queue] = []
        self._last_block: Block | None = None
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None

    def subscribe(self) -> queue.Queue:
        """Return a queue on which reorg messages will arrive."""
        channel: queue.Queue = queue.Queue()
        self._subscribers.append(channel)
        return channel

    def start(self) -> None:
        """Start tracking blocks in a background thread."""
        log.info("starting block reorganization detector")
        fetch = self._fetch
        if fetch is None:
            scheme = urlparse(self.rpc_url).scheme
            if scheme not in ("http", "https"):
                raise ValueError(f"unsupported rpc url scheme: {self.rpc_url!r}")
            fetch = lambda: _http_latest_block(self.rpc_url)  # noqa: E731

        stop_event = threading.Event()
        self._stop_event = stop_event
        self._thread = threading.Thread(
            target=self._track, args=(fetch, stop_event), name="reorg-detector", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop tracking and signal the end to every subscriber."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None
        for channel in self._subscribers:
            channel.put(None)

    def process_block(self, block: Block) -> None:
        """Handle a newly seen head block, notifying subscribers if it implies a reorg."""
        last = self._last_block
        if last is not None and last.number + 1 >= block.number:
            reorg = BlockReorg(number=block.number, hash=block.hash)
            for channel in self._subscribers:
                channel.put(reorg)
        self._last_block = block

    def _track(self, fetch: Callable[[], Block], stop_event: threading.Event) -> None:
        last_hash: bytes | None = None
        while not stop_event.is_set():
            try:
                block = fetch()
            except Exception as exc:
                log.warning("failed to fetch latest block: %s", exc)
            else:
                if block.hash != last_hash:
                    last_hash = block.hash
                    self.process_block(block)
            stop_event.wait(self.polling_period)