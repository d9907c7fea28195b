from enum import Enum

from pydantic import Field

from groupgo.models.base import DocumentModel, now_millis


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"

    @property
    def is_terminal(self) -> bool:
        return self is not InvitationStatus.PENDING


class Invitation(DocumentModel):
    id: str = ""
    trip_id: str = ""
    trip_name: str = ""
    invited_by_uid: str = ""
    invited_by_email: str = ""
    invited_email: str = ""
    status: InvitationStatus = InvitationStatus.PENDING
    created_at: int = Field(default_factory=now_millis)
    accepted_at: int | None = None
    accepted_by_uid: str | None = None
    accepted_by_display_name: str | None = None
