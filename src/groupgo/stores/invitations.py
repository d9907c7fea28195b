"""Trip invitations and their pending -> accepted/declined transitions.

Status only moves forward. Acceptance updates the invitation and the trip's
participant lists in one transaction so neither can be observed without the
other.
"""

import logging

from groupgo.auth.session import AuthSession
from groupgo.db import INVITATIONS, TRIPS, DocumentSnapshot, DocumentStore, LiveQuery, Query, Transaction
from groupgo.errors import ErrorCode, GroupGoError, InvariantViolationError, NotFoundError
from groupgo.models import Invitation, InvitationStatus, Trip, normalize_email, now_millis
from groupgo.models.trip import align_participants
from groupgo.result import returns_result

logger = logging.getLogger(__name__)


def to_invitation(snapshot: DocumentSnapshot) -> Invitation:
    return Invitation.model_validate({**snapshot.data, "id": snapshot.id})


def _to_invitations(snapshots: list[DocumentSnapshot]) -> list[Invitation]:
    return [to_invitation(s) for s in snapshots]


class InvitationStore:
    def __init__(self, db: DocumentStore, session: AuthSession) -> None:
        self._db = db
        self._session = session

    @returns_result
    async def send_invitation(self, trip_id: str, trip_name: str, invited_email: str) -> str:
        # Repeated sends are allowed and create separate pending invitations.
        user = self._session.require_user()
        if not normalize_email(invited_email):
            raise GroupGoError("An email address is required to send an invitation", code=ErrorCode.INVALID_EMAIL)
        invitation = Invitation(
            id=self._db.new_id(),
            trip_id=trip_id,
            trip_name=trip_name,
            invited_by_uid=user.user_id,
            invited_by_email=user.email,
            invited_email=normalize_email(invited_email),
            created_at=now_millis(),
        )
        await self._db.set(INVITATIONS, invitation.id, invitation.to_document())
        logger.info("Sent invitation %s for trip %s", invitation.id, trip_id)
        return invitation.id

    def get_pending_invitations(self) -> LiveQuery[list[Invitation]]:
        user = self._session.current_user
        email = normalize_email(user.email) if user else ""
        if not email:
            return LiveQuery.of([])
        query = (
            Query()
            .where("invitedEmail", "==", email)
            .where("status", "==", InvitationStatus.PENDING.value)
            .order_by("createdAt", descending=True)
        )
        return self._db.watch(INVITATIONS, query).map(_to_invitations)

    def get_invitations_for_trip(self, trip_id: str) -> LiveQuery[list[Invitation]]:
        query = Query().where("tripId", "==", trip_id).order_by("createdAt", descending=True)
        return self._db.watch(INVITATIONS, query).map(_to_invitations)

    @staticmethod
    async def _read_invitation(txn: Transaction, invitation_id: str) -> Invitation:
        snapshot = await txn.get(INVITATIONS, invitation_id)
        if snapshot is None:
            raise NotFoundError(f"Invitation {invitation_id} not found", code=ErrorCode.INVITATION_NOT_FOUND)
        return to_invitation(snapshot)

    @returns_result
    async def accept_invitation(self, invitation_id: str, trip_id: str) -> None:
        user = self._session.require_user()
        accepted_at = now_millis()

        async def _accept(txn: Transaction) -> bool:
            invitation = await self._read_invitation(txn, invitation_id)
            trip_snapshot = await txn.get(TRIPS, trip_id)
            if trip_snapshot is None:
                raise NotFoundError(f"Trip {trip_id} not found", code=ErrorCode.TRIP_NOT_FOUND)
            if invitation.trip_id and invitation.trip_id != trip_id:
                raise InvariantViolationError(
                    f"Invitation {invitation_id} is for trip {invitation.trip_id}, not {trip_id}",
                    code=ErrorCode.INVITATION_TRIP_MISMATCH,
                )
            if invitation.status is InvitationStatus.ACCEPTED:
                if invitation.accepted_by_uid == user.user_id:
                    return False
                raise InvariantViolationError(
                    f"Invitation {invitation_id} was already accepted by another account",
                    code=ErrorCode.INVITATION_CLOSED,
                )
            if invitation.status is InvitationStatus.DECLINED:
                raise InvariantViolationError(
                    f"Invitation {invitation_id} was already declined",
                    code=ErrorCode.INVITATION_CLOSED,
                )

            email = user.email or invitation.invited_email
            txn.update(
                INVITATIONS,
                invitation_id,
                {
                    "status": InvitationStatus.ACCEPTED.value,
                    "acceptedAt": accepted_at,
                    "acceptedByUid": user.user_id,
                    "acceptedByDisplayName": user.display_name or email,
                },
            )

            trip = Trip.model_validate({**trip_snapshot.data, "id": trip_id})
            participants, emails = align_participants(trip.participants, trip.participants_emails)
            if user.user_id not in participants:
                participants.append(user.user_id)
                emails.append(email)
                txn.update(TRIPS, trip_id, {"participants": participants, "participantsEmails": emails})
            return True

        if await self._db.run_transaction(_accept):
            logger.info("User %s accepted invitation %s to trip %s", user.user_id, invitation_id, trip_id)
        else:
            logger.info("Invitation %s was already accepted", invitation_id)

    @returns_result
    async def decline_invitation(self, invitation_id: str) -> None:
        async def _decline(txn: Transaction) -> None:
            invitation = await self._read_invitation(txn, invitation_id)
            if invitation.status is InvitationStatus.DECLINED:
                return
            if invitation.status is InvitationStatus.ACCEPTED:
                raise InvariantViolationError(
                    f"Invitation {invitation_id} was already accepted",
                    code=ErrorCode.INVITATION_CLOSED,
                )
            txn.update(INVITATIONS, invitation_id, {"status": InvitationStatus.DECLINED.value})

        await self._db.run_transaction(_decline)
        logger.info("Declined invitation %s", invitation_id)
