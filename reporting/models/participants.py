"""
Participant data models.

Participants are owned and mutated outside the reporting core. The models
here are a read-only projection of the fields the metric derivation needs.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware timestamp to naive local time; naive values pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class HistoryEntry(BaseModel):
    """
    One entry in a participant's chronological history.

    Attributes:
        entry_id: Identifier of the entry
        type: Entry kind (status_change, contact_attempt, ...)
        created_at: When the action happened
        description: Human-readable summary
        metadata: Free-form payload; status changes carry "newStatus"
    """

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default="", description="History entry identifier")
    type: str = Field(description="Entry kind, e.g. 'status_change'")
    created_at: datetime = Field(description="When the action happened")
    description: str = Field(default="", description="Human-readable summary")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Entry payload")

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: datetime) -> datetime:
        return to_local_naive(v)

    @property
    def new_status(self) -> Optional[str]:
        """Status tag a status_change entry moved the participant into."""
        status = self.metadata.get("newStatus")
        return str(status) if status is not None else None


class ParticipantRecord(BaseModel):
    """
    Snapshot of a participant as seen by the reporting core.

    All timestamps are normalized to naive local time so that calendar-month
    windows are evaluated in local time.
    """

    model_config = ConfigDict(frozen=True)

    participant_id: str = Field(description="Participant identifier")
    first_name: Optional[str] = Field(default=None, description="Given name")
    submitted_at: Optional[datetime] = Field(
        default=None, description="When the intake form was submitted"
    )
    moved_to_bridge_at: Optional[datetime] = Field(default=None)
    assigned_to_mentor_at: Optional[datetime] = Field(default=None)
    graduated_at: Optional[datetime] = Field(default=None)
    history: tuple[HistoryEntry, ...] = Field(
        default_factory=tuple, description="Chronological history entries"
    )

    @field_validator(
        "submitted_at", "moved_to_bridge_at", "assigned_to_mentor_at", "graduated_at"
    )
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_local_naive(v)

    @property
    def is_test_participant(self) -> bool:
        return (self.first_name or "").strip().lower() == "test"
