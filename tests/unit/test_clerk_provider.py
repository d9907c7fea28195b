from unittest.mock import MagicMock, patch

import pytest

from groupgo.auth.clerk_provider import ClerkAuthProvider
from groupgo.auth.interface import AuthUser
from groupgo.errors import ErrorCode, NotAuthenticatedError


@pytest.fixture
def mock_clerk_user():
    user = MagicMock()
    user.id = "user_123"
    user.first_name = "Jane"
    user.last_name = "Doe"
    user.username = "janedoe"
    user.email_addresses = [MagicMock(email_address="jane@example.com")]
    user.public_metadata = {}
    return user


@pytest.fixture
def clerk_client(mock_clerk_user):
    with patch("groupgo.auth.clerk_provider.Clerk") as mock_clerk_class:
        mock_client = MagicMock()
        mock_client.users.get.return_value = mock_clerk_user
        mock_client.users.list.return_value = [mock_clerk_user]
        mock_client.users.create.return_value = mock_clerk_user
        mock_client.users.update_metadata.return_value = mock_clerk_user
        mock_client.users.verify_password.return_value = MagicMock(verified=True)
        mock_clerk_class.return_value = mock_client
        yield mock_client


@pytest.mark.asyncio
async def test_get_user_success(clerk_client):
    provider = ClerkAuthProvider(secret_key="sk_test_mock")
    result = await provider.get_user("user_123")

    assert isinstance(result, AuthUser)
    assert result.user_id == "user_123"
    assert result.email == "jane@example.com"
    assert result.display_name == "Jane Doe"
    clerk_client.users.get.assert_called_once_with(user_id="user_123")


@pytest.mark.asyncio
async def test_display_name_prefers_metadata(clerk_client, mock_clerk_user):
    mock_clerk_user.public_metadata = {"displayName": "JD"}

    result = await ClerkAuthProvider(secret_key="sk_test_mock").get_user("user_123")

    assert result.display_name == "JD"
    assert result.metadata == {"displayName": "JD"}


@pytest.mark.asyncio
async def test_get_user_no_name(clerk_client, mock_clerk_user):
    mock_clerk_user.first_name = None
    mock_clerk_user.last_name = None

    result = await ClerkAuthProvider(secret_key="sk_test_mock").get_user("user_123")

    assert result.display_name == "janedoe"


@pytest.mark.asyncio
async def test_get_user_no_email(clerk_client, mock_clerk_user):
    mock_clerk_user.email_addresses = []

    result = await ClerkAuthProvider(secret_key="sk_test_mock").get_user("user_123")

    assert result.email == ""


@pytest.mark.asyncio
async def test_get_user_api_error(clerk_client):
    clerk_client.users.get.side_effect = Exception("API error")
    provider = ClerkAuthProvider(secret_key="sk_test_mock")

    with pytest.raises(NotAuthenticatedError, match="Failed to fetch user"):
        await provider.get_user("user_123")


@pytest.mark.asyncio
async def test_create_user_sends_names_and_display_name(clerk_client):
    provider = ClerkAuthProvider(secret_key="sk_test_mock")

    result = await provider.create_user("jane@example.com", "s3cret!", "Jane", "Doe", "Jane Doe")

    assert result.user_id == "user_123"
    request = clerk_client.users.create.call_args.kwargs["request"]
    assert request["email_address"] == ["jane@example.com"]
    assert request["password"] == "s3cret!"
    assert request["public_metadata"] == {"displayName": "Jane Doe"}


@pytest.mark.asyncio
async def test_create_user_failure(clerk_client):
    clerk_client.users.create.side_effect = Exception("password_pwned")
    provider = ClerkAuthProvider(secret_key="sk_test_mock")

    with pytest.raises(NotAuthenticatedError, match="Sign up failed: password_pwned") as exc_info:
        await provider.create_user("jane@example.com", "password", "Jane", "Doe", "Jane Doe")
    assert exc_info.value.code == ErrorCode.AUTH_FAILED


@pytest.mark.asyncio
async def test_verify_password_valid(clerk_client):
    provider = ClerkAuthProvider(secret_key="sk_test_mock")

    result = await provider.verify_password("jane@example.com", "s3cret!")

    assert result.user_id == "user_123"
    clerk_client.users.list.assert_called_once_with(request={"email_address": ["jane@example.com"]})
    clerk_client.users.verify_password.assert_called_once_with(user_id="user_123", password="s3cret!")


@pytest.mark.asyncio
async def test_verify_password_unknown_email(clerk_client):
    clerk_client.users.list.return_value = []
    provider = ClerkAuthProvider(secret_key="sk_test_mock")

    with pytest.raises(NotAuthenticatedError, match="No account for that email"):
        await provider.verify_password("nobody@example.com", "pw")


@pytest.mark.asyncio
async def test_verify_password_wrong_password(clerk_client):
    clerk_client.users.verify_password.return_value = MagicMock(verified=False)
    provider = ClerkAuthProvider(secret_key="sk_test_mock")

    with pytest.raises(NotAuthenticatedError, match="Incorrect password"):
        await provider.verify_password("jane@example.com", "wrong")


@pytest.mark.asyncio
async def test_verify_password_api_rejects(clerk_client):
    clerk_client.users.verify_password.side_effect = Exception("incorrect_password")
    provider = ClerkAuthProvider(secret_key="sk_test_mock")

    with pytest.raises(NotAuthenticatedError, match="Sign in failed"):
        await provider.verify_password("jane@example.com", "wrong")


@pytest.mark.asyncio
async def test_verify_token_valid(clerk_client):
    with patch("groupgo.auth.clerk_provider.authenticate_request") as mock_authenticate:
        mock_authenticate.return_value = MagicMock(is_signed_in=True, payload={"sub": "user_123"})
        provider = ClerkAuthProvider(secret_key="sk_test_mock")

        result = await provider.verify_token("header.payload.signature")

    assert result.user_id == "user_123"
    clerk_client.users.get.assert_called_once_with(user_id="user_123")


@pytest.mark.asyncio
async def test_verify_token_signed_out(clerk_client):
    with patch("groupgo.auth.clerk_provider.authenticate_request") as mock_authenticate:
        mock_authenticate.return_value = MagicMock(is_signed_in=False, payload=None, message="token-expired")
        provider = ClerkAuthProvider(secret_key="sk_test_mock")

        with pytest.raises(NotAuthenticatedError, match="token-expired"):
            await provider.verify_token("expired")


@pytest.mark.asyncio
async def test_verify_token_invalid(clerk_client):
    provider = ClerkAuthProvider(secret_key="sk_test_mock")

    with pytest.raises(NotAuthenticatedError, match="Token verification failed"):
        await provider.verify_token("invalid_token")


@pytest.mark.asyncio
async def test_update_display_name(clerk_client, mock_clerk_user):
    mock_clerk_user.public_metadata = {"displayName": "Janie"}
    provider = ClerkAuthProvider(secret_key="sk_test_mock")

    result = await provider.update_display_name("user_123", "Janie")

    assert result.display_name == "Janie"
    clerk_client.users.update_metadata.assert_called_once_with(
        user_id="user_123", public_metadata={"displayName": "Janie"}
    )
