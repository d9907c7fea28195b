"""Minimal account records used to show participant names."""

import logging
from collections.abc import Iterable

from groupgo.db import USERS, DocumentSnapshot, DocumentStore, LiveQuery, Query
from groupgo.models import UserRecord
from groupgo.result import returns_result

logger = logging.getLogger(__name__)


def to_user_record(snapshot: DocumentSnapshot) -> UserRecord:
    return UserRecord.model_validate({**snapshot.data, "uid": snapshot.data.get("uid") or snapshot.id})


def _names(snapshots: list[DocumentSnapshot]) -> dict[str, str]:
    records = (to_user_record(s) for s in snapshots)
    return {record.uid: record.label for record in records}


class UserDirectory:
    def __init__(self, db: DocumentStore) -> None:
        self._db = db

    @returns_result
    async def save_user(self, uid: str, first_name: str, last_name: str, email: str) -> None:
        record = UserRecord(
            uid=uid,
            first_name=first_name,
            last_name=last_name,
            email=email,
            display_name=f"{first_name} {last_name}".strip(),
        )
        await self._db.set(USERS, uid, record.to_document())
        logger.info("Saved user record %s", uid)

    @returns_result
    async def merge_user(self, uid: str, email: str, display_name: str = "") -> None:
        """Refresh identity fields, keeping names already on file."""
        fields = {"uid": uid, "email": email}
        if display_name.strip():
            fields["displayName"] = display_name.strip()
        await self._db.set(USERS, uid, fields, merge=True)

    @returns_result
    async def get_user(self, uid: str) -> UserRecord | None:
        snapshot = await self._db.get(USERS, uid)
        return None if snapshot is None else to_user_record(snapshot)

    def get_user_names(self, uids: Iterable[str]) -> LiveQuery[dict[str, str]]:
        """Live uid -> display name (falling back to email, then uid)."""
        unique = list(dict.fromkeys(uid for uid in uids if uid))
        if not unique:
            return LiveQuery.of({})
        return self._db.watch(USERS, Query().where("uid", "in", unique)).map(_names)
