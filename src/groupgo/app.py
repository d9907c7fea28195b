"""Application container: every component is built once here and passed around."""

from dataclasses import dataclass

import httpx

from groupgo.auth import AuthProvider, AuthSession, get_auth_provider
from groupgo.clients import create_payment_http_client
from groupgo.config import Config, get_config
from groupgo.db import DocumentStore, get_document_store
from groupgo.services import PaymentRelay
from groupgo.stores import InvitationStore, ProfileStore, TripStore, UserDirectory


@dataclass
class GroupGo:
    config: Config
    db: DocumentStore
    session: AuthSession
    users: UserDirectory
    trips: TripStore
    invitations: InvitationStore
    profiles: ProfileStore
    payments: PaymentRelay
    http_client: httpx.AsyncClient

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def __aenter__(self) -> "GroupGo":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()


def build_app(
    config: Config | None = None,
    *,
    db: DocumentStore | None = None,
    auth_provider: AuthProvider | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> GroupGo:
    config = config or get_config()
    db = db or get_document_store(config)
    http_client = http_client or create_payment_http_client(config)

    users = UserDirectory(db)
    session = AuthSession(auth_provider or get_auth_provider(), users=users)
    return GroupGo(
        config=config,
        db=db,
        session=session,
        users=users,
        trips=TripStore(db, session, enforce_ownership=config.enforce_trip_ownership),
        invitations=InvitationStore(db, session),
        profiles=ProfileStore(db),
        payments=PaymentRelay(http_client),
        http_client=http_client,
    )
