"""The "status" RPC endpoint."""

from __future__ import annotations

import logging
import time
from datetime import timedelta

from ..dactypes import DACStatus
from ..errors import DEFAULT_ERROR_CODE, RPCError
from ..synchronizer.store import Database, SyncTask
from ..version import VERSION

log = logging.getLogger(__name__)

API_STATUS = "status"

_STORAGE_ERROR = "failed to retrieve data from the storage"


class Endpoints:
    """Implementation of the "status" RPC endpoint."""

    def __init__(self, db: Database) -> None:
        self.db = db
        self._started = time.monotonic()

    def get_status(self) -> DACStatus:
        """Return uptime, version, stored key count and last synchronized block."""
        uptime = str(timedelta(seconds=time.monotonic() - self._started))

        try:
            key_count = self.db.count_offchain_data()
        except Exception as exc:
            log.error("failed to get the key count from the offchain_data table: %s", exc)
            raise RPCError(DEFAULT_ERROR_CODE, _STORAGE_ERROR) from exc

        try:
            last_block = self.db.get_last_processed_block(SyncTask.L1.value)
        except Exception as exc:
            log.error("failed to get last block processed by the synchronizer: %s", exc)
            raise RPCError(DEFAULT_ERROR_CODE, _STORAGE_ERROR) from exc

        return DACStatus(
            uptime=uptime,
            version=VERSION,
            key_count=key_count,
            last_synchronized_block=last_block,
        )