"""Trip records: CRUD, participant removal, and the merged "my trips" view."""

import logging

from groupgo.auth.interface import AuthUser
from groupgo.auth.session import AuthSession
from groupgo.db import SKIP, TRIPS, DocumentSnapshot, DocumentStore, LiveQuery, Query, Transaction, combine
from groupgo.errors import ErrorCode, InvariantViolationError, NotFoundError, PermissionDeniedError
from groupgo.models import Trip, normalize_email, now_millis
from groupgo.models.trip import TBD, align_participants, head_count
from groupgo.result import returns_result

logger = logging.getLogger(__name__)


def to_trip(snapshot: DocumentSnapshot) -> Trip:
    return Trip.model_validate({**snapshot.data, "id": snapshot.id})


def merge_trips(*groups: list[Trip]) -> list[Trip]:
    """Union by id (first occurrence wins), newest first."""
    by_id: dict[str, Trip] = {}
    for trips in groups:
        for trip in trips:
            by_id.setdefault(trip.id, trip)
    return sorted(by_id.values(), key=lambda t: t.created_at, reverse=True)


class TripUnion:
    """Latest result of each subscription; recomputes the merged view on every update.

    Emits nothing until every side has reported once. After that, an update
    from either side produces the full union of the newest data from all sides,
    so arrival order between the subscriptions does not matter.
    """

    def __init__(self, sides: int = 2) -> None:
        self._latest: list[list[Trip] | None] = [None] * sides

    def apply(self, side: int, trips: list[Trip]) -> list[Trip]:
        self._latest[side] = trips
        if any(latest is None for latest in self._latest):
            return SKIP
        return merge_trips(*(latest or [] for latest in self._latest))


class TripStore:
    def __init__(self, db: DocumentStore, session: AuthSession, enforce_ownership: bool = True) -> None:
        self._db = db
        self._session = session
        self._enforce_ownership = enforce_ownership

    async def _create(
        self,
        name: str,
        destination: str,
        start_date: str,
        end_date: str,
        budget: str,
        number_of_people: str,
    ) -> str:
        user = self._session.require_user()
        trip = Trip(
            id=self._db.new_id(),
            name=name,
            destination=destination,
            start_date=start_date,
            end_date=end_date,
            budget=budget,
            number_of_people=number_of_people,
            created_by=user.user_id,
            created_by_email=user.email,
            created_at=now_millis(),
            participants=[user.user_id],
            participants_emails=[user.email],
        )
        await self._db.set(TRIPS, trip.id, trip.to_document())
        logger.info("Created trip %s for user %s", trip.id, user.user_id)
        return trip.id

    @returns_result
    async def create_trip(
        self,
        name: str,
        destination: str,
        start_date: str,
        end_date: str,
        budget: str,
        number_of_people: str,
    ) -> str:
        return await self._create(name, destination, start_date, end_date, budget, number_of_people)

    @returns_result
    async def create_exploratory_trip(self, name: str) -> str:
        """A trip with only a name; the rest is filled in later."""
        return await self._create(name, TBD, TBD, TBD, "", "1")

    @returns_result
    async def get_trip(self, trip_id: str) -> Trip | None:
        snapshot = await self._db.get(TRIPS, trip_id)
        return None if snapshot is None else to_trip(snapshot)

    def observe_trip(self, trip_id: str) -> LiveQuery[Trip | None]:
        return self._db.watch_document(TRIPS, trip_id).map(lambda snap: None if snap is None else to_trip(snap))

    async def _read_trip(self, txn: Transaction, trip_id: str) -> Trip:
        snapshot = await txn.get(TRIPS, trip_id)
        if snapshot is None:
            raise NotFoundError(f"Trip {trip_id} not found", code=ErrorCode.TRIP_NOT_FOUND)
        return to_trip(snapshot)

    @staticmethod
    def _check_owner(trip: Trip, caller: AuthUser) -> None:
        if trip.created_by != caller.user_id:
            raise PermissionDeniedError(f"User {caller.user_id} does not own trip {trip.id}")

    @returns_result
    async def update_trip(
        self,
        trip_id: str,
        name: str,
        destination: str,
        budget: str,
        number_of_people: str,
        start_date: str,
        end_date: str,
    ) -> None:
        fields = {
            "name": name,
            "destination": destination,
            "budget": budget,
            "numberOfPeople": number_of_people,
            "startDate": start_date,
            "endDate": end_date,
        }
        if not self._enforce_ownership:
            await self._db.update(TRIPS, trip_id, fields)
        else:
            caller = self._session.require_user()

            async def _apply(txn: Transaction) -> None:
                self._check_owner(await self._read_trip(txn, trip_id), caller)
                txn.update(TRIPS, trip_id, fields)

            await self._db.run_transaction(_apply)
        logger.info("Updated trip %s", trip_id)

    @returns_result
    async def delete_trip(self, trip_id: str) -> None:
        # Invitations referencing the trip are left in place.
        if not self._enforce_ownership:
            await self._db.delete(TRIPS, trip_id)
        else:
            caller = self._session.require_user()

            async def _apply(txn: Transaction) -> None:
                self._check_owner(await self._read_trip(txn, trip_id), caller)
                txn.delete(TRIPS, trip_id)

            await self._db.run_transaction(_apply)
        logger.info("Deleted trip %s", trip_id)

    @returns_result
    async def remove_participant(
        self,
        trip_id: str,
        participant_uid: str,
        participant_email: str | None = None,
    ) -> None:
        caller = self._session.require_user() if self._enforce_ownership else None
        target_email = normalize_email(participant_email)

        async def _remove(txn: Transaction) -> None:
            trip = await self._read_trip(txn, trip_id)
            if participant_uid == trip.created_by:
                raise InvariantViolationError(
                    "The organizer cannot be removed from their own trip",
                    code=ErrorCode.CANNOT_REMOVE_ORGANIZER,
                )
            # A participant may always leave; removing others is up to the organizer.
            if caller is not None and caller.user_id not in (trip.created_by, participant_uid):
                raise PermissionDeniedError(f"User {caller.user_id} cannot remove participants from trip {trip_id}")

            # Email matches only count for the organizer; anyone else removes just their own entry.
            by_email = target_email if caller is None or caller.user_id == trip.created_by else ""
            participants, emails = align_participants(trip.participants, trip.participants_emails)
            keep = [
                i
                for i, uid in enumerate(participants)
                if not (
                    uid == participant_uid
                    or (by_email and uid != trip.created_by and normalize_email(emails[i]) == by_email)
                )
            ]
            remaining = [participants[i] for i in keep]
            txn.update(
                TRIPS,
                trip_id,
                {
                    "participants": remaining,
                    "participantsEmails": [emails[i] for i in keep],
                    "numberOfPeople": head_count(remaining),
                },
            )

        await self._db.run_transaction(_remove)
        logger.info("Removed participant %s from trip %s", participant_uid, trip_id)

    def get_user_trips(self, user_id: str | None) -> LiveQuery[list[Trip]]:
        """Trips the user organizes or joined, newest first, updated live.

        Ownership and membership need different filters, so two subscriptions
        are merged here.
        """
        if not user_id or not user_id.strip():
            return LiveQuery.of([])

        owned = self._db.watch(TRIPS, Query().where("createdBy", "==", user_id).order_by("createdAt", descending=True))
        joined = self._db.watch(TRIPS, Query().where("participants", "array_contains", user_id))
        union = TripUnion(sides=2)
        return combine(
            [owned, joined],
            lambda side, snapshots: union.apply(side, [to_trip(s) for s in snapshots]),
        )
