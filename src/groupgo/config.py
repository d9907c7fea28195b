from os import environ
from typing import Literal

import boto3
from pydantic import BaseModel, ConfigDict

_cached_clerk_secret: str | None = None


def _resolve_clerk_secret() -> str:
    """Fetch Clerk secret from Secrets Manager at runtime, with caching."""
    global _cached_clerk_secret
    if _cached_clerk_secret is not None:
        return _cached_clerk_secret

    # Local dev: use env var directly
    direct = environ.get("CLERK_SECRET_KEY", "")
    if direct:
        _cached_clerk_secret = direct
        return direct

    # Deployed: fetch from Secrets Manager by ARN
    arn = environ.get("CLERK_SECRET_ARN", "")
    if not arn:
        return ""

    client = boto3.client("secretsmanager", region_name=environ.get("AWS_REGION", "us-east-1"))
    _cached_clerk_secret = client.get_secret_value(SecretId=arn)["SecretString"]
    return _cached_clerk_secret


def _env_flag(name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config(BaseModel):
    model_config = ConfigDict(frozen=True)

    aws_region: str
    document_store: Literal["dynamodb", "memory"] = "dynamodb"
    dynamodb_endpoint: str | None = None
    trips_table: str
    invitations_table: str
    profiles_table: str
    users_table: str
    live_query_poll_seconds: float = 2.0
    transaction_max_attempts: int = 5
    enforce_trip_ownership: bool = True
    clerk_secret_key: str = ""
    payment_backend_url: str
    payment_timeout_seconds: float = 30.0
    environment: str

    def table_names(self) -> dict[str, str]:
        """Collection name -> DynamoDB table name."""
        return {
            "trips": self.trips_table,
            "invitations": self.invitations_table,
            "profiles": self.profiles_table,
            "users": self.users_table,
        }


_cached_config: Config | None = None


def _reset_config() -> None:
    """Reset cached config, for testing only."""
    global _cached_config, _cached_clerk_secret
    _cached_config = None
    _cached_clerk_secret = None


def get_config() -> Config:
    global _cached_config
    if _cached_config is not None:
        return _cached_config

    _cached_config = Config(
        aws_region=environ.get("AWS_REGION", "us-east-1"),
        document_store=environ.get("DOCUMENT_STORE", "dynamodb"),  # type: ignore[arg-type]
        dynamodb_endpoint=environ.get("DYNAMODB_ENDPOINT"),
        trips_table=environ.get("TRIPS_TABLE", "GroupGoTrips"),
        invitations_table=environ.get("INVITATIONS_TABLE", "GroupGoInvitations"),
        profiles_table=environ.get("PROFILES_TABLE", "GroupGoProfiles"),
        users_table=environ.get("USERS_TABLE", "GroupGoUsers"),
        live_query_poll_seconds=float(environ.get("LIVE_QUERY_POLL_SECONDS", "2.0")),
        transaction_max_attempts=int(environ.get("TRANSACTION_MAX_ATTEMPTS", "5")),
        enforce_trip_ownership=_env_flag("ENFORCE_TRIP_OWNERSHIP", True),
        clerk_secret_key=_resolve_clerk_secret(),
        payment_backend_url=environ.get("PAYMENT_BACKEND_URL", "http://localhost:4242"),
        payment_timeout_seconds=float(environ.get("PAYMENT_TIMEOUT_SECONDS", "30")),
        environment=environ.get("ENVIRONMENT", "local"),
    )
    return _cached_config
