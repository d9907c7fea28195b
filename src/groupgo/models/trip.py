from pydantic import Field

from groupgo.models.base import DocumentModel, now_millis

TBD = "TBD"


class Trip(DocumentModel):
    id: str = ""
    name: str = ""
    destination: str = ""
    start_date: str = TBD
    end_date: str = TBD
    budget: str = ""
    number_of_people: str = ""
    created_by: str = ""
    created_by_email: str = ""
    created_at: int = Field(default_factory=now_millis)
    participants: list[str] = []
    participants_emails: list[str] = []


def align_participants(participants: list[str], emails: list[str]) -> tuple[list[str], list[str]]:
    """Pad or trim the email list so it is index-aligned with participants."""
    aligned = list(emails[: len(participants)])
    aligned.extend([""] * (len(participants) - len(aligned)))
    return list(participants), aligned


def head_count(participants: list[str]) -> str:
    """numberOfPeople is stored as text; never below one (the organizer)."""
    return str(max(1, len(participants)))
