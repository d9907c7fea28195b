import time
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def now_millis() -> int:
    return int(time.time() * 1000)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class DocumentModel(BaseModel):
    """Base for records persisted in the document store (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
