"""Thread-safe registry of data availability committee members."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Iterable


@dataclass(frozen=True)
class DataCommitteeMember:
    """A committee member: its address and the URL of its RPC endpoint."""

    addr: bytes
    url: str


@dataclass
class DataCommittee:
    """The committee as currently registered on L1."""

    members: list[DataCommitteeMember] = field(default_factory=list)


class CommitteeMap:
    """Committee members keyed by address, safe to use from several threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._members: dict[bytes, DataCommitteeMember] = {}

    def store(self, member: DataCommitteeMember) -> None:
        """Add a member, replacing any member with the same address."""
        with self._lock:
            self._members[member.addr] = member

    def store_batch(self, members: Iterable[DataCommitteeMember]) -> None:
        """Add several members at once."""
        with self._lock:
            for member in members:
                self._members[member.addr] = member

    def load(self, addr: bytes) -> DataCommitteeMember | None:
        """Return the member stored under ``addr``, or None if there is none."""
        with self._lock:
            return self._members.get(addr)

    def delete(self, addr: bytes) -> None:
        """Remove the member stored under ``addr``, if any."""
        with self._lock:
            self._members.pop(addr, None)

    def as_list(self) -> list[DataCommitteeMember]:
        """Return a snapshot of all members."""
        with self._lock:
            return list(self._members.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._members)