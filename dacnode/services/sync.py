"""The "sync" RPC endpoints: serving stored off-chain data."""

from __future__ import annotations

import logging
from typing import Iterable, Union

from ..dactypes import bytes_to_hash, parse_arg_hash
from ..errors import DEFAULT_ERROR_CODE, INVALID_REQUEST_ERROR_CODE, RPCError
from ..synchronizer.store import Database

log = logging.getLogger(__name__)

API_SYNC = "sync"

MAX_LIST_HASHES = 100

HashArg = Union[str, bytes]


def _to_hash(value: HashArg) -> bytes:
    if isinstance(value, str):
        return parse_arg_hash(value)
    return bytes_to_hash(bytes(value))


class Endpoints:
    """Implementations of the "sync" RPC endpoints."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def get_offchain_data(self, hash: HashArg) -> bytes:
        """Return the data whose hash is ``hash``."""
        try:
            data = self.db.get_offchain_data(_to_hash(hash))
        except Exception as exc:
            log.error("failed to get the offchain requested data from the DB: %s", exc)
            raise RPCError(DEFAULT_ERROR_CODE, "failed to get the requested data") from exc
        return bytes(data.value)

    def list_offchain_data(self, hashes: Iterable[HashArg]) -> dict[bytes, bytes]:
        """Return the stored data for the given hashes, keyed by hash."""
        hashes = list(hashes)
        if len(hashes) > MAX_LIST_HASHES:
            log.error("too many hashes requested in list_offchain_data: %d", len(hashes))
            raise RPCError(INVALID_REQUEST_ERROR_CODE, "too many hashes requested")

        keys = [_to_hash(h) for h in hashes]
        try:
            found = self.db.list_offchain_data(keys)
        except Exception as exc:
            log.error("failed to list the requested data from the DB: %s", exc)
            raise RPCError(DEFAULT_ERROR_CODE, "failed to list the requested data") from exc

        return {data.key: bytes(data.value) for data in found}