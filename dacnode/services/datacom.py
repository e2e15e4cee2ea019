"""The "datacom" RPC endpoints: signing sequences sent by the trusted sequencer."""

from __future__ import annotations

import logging
from typing import Protocol

from ..dactypes import SignedSequenceLike
from ..errors import DEFAULT_ERROR_CODE, RPCError
from ..sequence import SignedSequence, SignedSequenceBanana
from ..synchronizer.store import Database

log = logging.getLogger(__name__)

API_DATACOM = "datacom"


class _SequencerTracker(Protocol):
    def get_addr(self) -> bytes:
        """Return the address of the trusted sequencer."""


class Endpoints:
    """Implementations of the "datacom" RPC endpoints."""

    def __init__(self, db: Database, private_key: int, sequencer_tracker: _SequencerTracker) -> None:
        self.db = db
        self.private_key = private_key
        self.sequencer_tracker = sequencer_tracker

    def sign_sequence(self, signed_sequence: SignedSequence) -> bytes:
        """Store the sequence's batch data and return this node's signature over it.

        Only the trusted sequencer may call this.
        """
        return self._sign_sequence(signed_sequence)

    def sign_sequence_banana(self, signed_sequence: SignedSequenceBanana) -> bytes:
        """Store the banana sequence's batch data and sign its accumulated input hash.

        Only the trusted sequencer may call this.
        """
        log.debug(
            "signing sequence, hash to sign: 0x%s",
            signed_sequence.sequence.hash_to_sign().hex(),
        )
        return self._sign_sequence(signed_sequence)

    def _sign_sequence(self, signed_sequence: SignedSequenceLike) -> bytes:
        try:
            sender = signed_sequence.signer()
        except Exception as exc:
            raise RPCError(DEFAULT_ERROR_CODE, "failed to verify sender") from exc

        if bytes(sender) != bytes(self.sequencer_tracker.get_addr()):
            raise RPCError(DEFAULT_ERROR_CODE, "unauthorized")

        try:
            self.db.store_offchain_data(signed_sequence.offchain_data())
        except Exception as exc:
            raise RPCError(
                DEFAULT_ERROR_CODE, f"failed to store offchain data. Error: {exc}"
            ) from exc

        try:
            return signed_sequence.sign(self.private_key)
        except Exception as exc:
            raise RPCError(DEFAULT_ERROR_CODE, f"failed to sign. Error: {exc}") from exc