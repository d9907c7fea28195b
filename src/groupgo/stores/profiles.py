import logging

from groupgo.db import PROFILES, DocumentStore
from groupgo.models import UserProfile, now_millis
from groupgo.result import returns_result

logger = logging.getLogger(__name__)


class ProfileStore:
    """Per-account profile documents keyed by uid.

    Writes replace the whole document, so callers pass a complete profile,
    usually one read with get_profile() and edited.
    """

    def __init__(self, db: DocumentStore) -> None:
        self._db = db

    @returns_result
    async def upsert_profile(self, profile: UserProfile) -> None:
        stamped = profile.model_copy(update={"updated_at": now_millis()})
        await self._db.set(PROFILES, profile.uid, stamped.to_document())
        logger.info("Saved profile %s", profile.uid)

    @returns_result
    async def get_profile(self, uid: str) -> UserProfile | None:
        snapshot = await self._db.get(PROFILES, uid)
        if snapshot is None:
            return None
        return UserProfile.model_validate({**snapshot.data, "uid": snapshot.data.get("uid") or snapshot.id})
