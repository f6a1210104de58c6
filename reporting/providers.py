"""
Participant data providers.

The reporting engine never subscribes to participant data itself. It asks a
provider for a point-in-time snapshot and derives every metric of one pass
from that single snapshot.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

import structlog

from reporting.models.participants import ParticipantRecord
from reporting.storage.duckdb_storage import DuckDBStorage

logger = structlog.get_logger(__name__)


class ParticipantProvider(ABC):
    """Supplies a snapshot of participant records at call time."""

    @abstractmethod
    def snapshot(self) -> list[ParticipantRecord]:
        pass


class StaticParticipantProvider(ParticipantProvider):
    """Serves a fixed, caller-supplied list of participants."""

    def __init__(self, participants: Optional[Iterable[ParticipantRecord]] = None):
        self._participants = list(participants or [])

    def replace(self, participants: Iterable[ParticipantRecord]) -> None:
        """Swap in a new snapshot, e.g. from a live-update callback."""
        self._participants = list(participants)

    def snapshot(self) -> list[ParticipantRecord]:
        return list(self._participants)


class StorageParticipantProvider(ParticipantProvider):
    """Reads participant snapshots persisted in DuckDB."""

    def __init__(self, storage: DuckDBStorage):
        self.storage = storage

    def snapshot(self) -> list[ParticipantRecord]:
        participants = self.storage.read_participants()
        logger.debug("participant_snapshot_loaded", count=len(participants))
        return participants
