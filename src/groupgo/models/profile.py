from pydantic import Field

from groupgo.models.base import DocumentModel, now_millis


class UserProfile(DocumentModel):
    uid: str = ""
    first_name: str = ""
    last_name: str = ""
    display_name: str = ""
    profile_pic: str = ""
    short_bio: str = ""
    home_airport: str = ""
    passport_id: str = ""
    created_at: int = Field(default_factory=now_millis)
    updated_at: int = Field(default_factory=now_millis)


class UserRecord(DocumentModel):
    """Minimal account record kept in the users collection."""

    uid: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    display_name: str = ""

    @property
    def label(self) -> str:
        return self.display_name.strip() or self.email or self.uid
