"""Shared test fixtures for GroupGo."""

import asyncio
import os
import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env file for test configuration
load_dotenv()

# Unset AWS_PROFILE for local testing (DynamoDB Local doesn't need it)
if "AWS_PROFILE" in os.environ:
    del os.environ["AWS_PROFILE"]

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from groupgo.auth import AuthProvider, AuthSession, AuthUser  # noqa: E402
from groupgo.db import InMemoryDocumentStore  # noqa: E402
from groupgo.errors import ErrorCode, NotAuthenticatedError  # noqa: E402
from groupgo.stores import InvitationStore, ProfileStore, TripStore, UserDirectory  # noqa: E402

ORGANIZER = AuthUser(user_id="user_org", email="org@example.com", display_name="Olivia Organizer")
FRIEND = AuthUser(user_id="user_friend", email="friend@example.com", display_name="Fred Friend")
STRANGER = AuthUser(user_id="user_stranger", email="stranger@example.com", display_name="")


class FakeAuthProvider(AuthProvider):
    """In-memory accounts keyed by email."""

    def __init__(self) -> None:
        self.accounts: dict[str, tuple[AuthUser, str]] = {}

    async def create_user(self, email, password, first_name, last_name, display_name):
        user = AuthUser(user_id=f"user_{len(self.accounts) + 1}", email=email, display_name=display_name)
        self.accounts[email] = (user, password)
        return user

    async def verify_password(self, email, password):
        account = self.accounts.get(email)
        if account is None or account[1] != password:
            raise NotAuthenticatedError("Incorrect email or password", code=ErrorCode.AUTH_FAILED)
        return account[0]

    async def verify_token(self, token):
        for user, _ in self.accounts.values():
            if token == f"token-{user.user_id}":
                return user
        raise NotAuthenticatedError("Token verification failed", code=ErrorCode.AUTH_FAILED)

    async def get_user(self, user_id):
        for user, _ in self.accounts.values():
            if user.user_id == user_id:
                return user
        raise NotAuthenticatedError("Failed to fetch user", code=ErrorCode.AUTH_FAILED)

    async def update_display_name(self, user_id, display_name):
        for email, (user, password) in self.accounts.items():
            if user.user_id == user_id:
                updated = user.model_copy(update={"display_name": display_name})
                self.accounts[email] = (updated, password)
                return updated
        raise NotAuthenticatedError("Failed to fetch user", code=ErrorCode.AUTH_FAILED)


@pytest.fixture
def db():
    return InMemoryDocumentStore()


@pytest.fixture
def auth_provider():
    return FakeAuthProvider()


@pytest.fixture
def organizer_session(auth_provider):
    return AuthSession(auth_provider, user=ORGANIZER)


@pytest.fixture
def friend_session(auth_provider):
    return AuthSession(auth_provider, user=FRIEND)


@pytest.fixture
def stranger_session(auth_provider):
    return AuthSession(auth_provider, user=STRANGER)


@pytest.fixture
def signed_out_session(auth_provider):
    return AuthSession(auth_provider)


@pytest.fixture
def organizer_trips(db, organizer_session):
    return TripStore(db, organizer_session)


@pytest.fixture
def friend_trips(db, friend_session):
    return TripStore(db, friend_session)


@pytest.fixture
def organizer_invitations(db, organizer_session):
    return InvitationStore(db, organizer_session)


@pytest.fixture
def friend_invitations(db, friend_session):
    return InvitationStore(db, friend_session)


@pytest.fixture
def profiles(db):
    return ProfileStore(db)


@pytest.fixture
def users(db):
    return UserDirectory(db)


@pytest.fixture
def next_value():
    """Await the next emission of a LiveQuery, failing the test instead of hanging."""

    async def _next(live, timeout: float = 1.0):
        return await asyncio.wait_for(anext(live), timeout)

    return _next


# DynamoDB fixtures
@pytest.fixture
def dynamodb_client():
    """Provide a DynamoDB client for integration tests."""
    import boto3
    from groupgo.config import get_config

    config = get_config()

    return boto3.client(
        "dynamodb",
        endpoint_url=config.dynamodb_endpoint or "http://localhost:8000",
        region_name=config.aws_region,
        aws_access_key_id="dummy",
        aws_secret_access_key="dummy",
    )


@pytest.fixture
def dynamo_store(dynamodb_client):
    """DynamoDocumentStore over the local tables; items created during the test are removed."""
    from groupgo.config import get_config
    from groupgo.db import DynamoDocumentStore
    from groupgo.db.dynamo import KEY_ATTRIBUTE

    config = get_config()
    store = DynamoDocumentStore(dynamodb_client, config.table_names(), poll_seconds=0.05)
    yield store

    # Cleanup: scan and delete all items created during test
    for table_name in config.table_names().values():
        response = dynamodb_client.scan(TableName=table_name)
        for item in response.get("Items", []):
            dynamodb_client.delete_item(TableName=table_name, Key={KEY_ATTRIBUTE: item[KEY_ATTRIBUTE]})
