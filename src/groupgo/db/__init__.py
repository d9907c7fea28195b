"""
Document store abstraction and backends for GroupGo.

Collections used by the stores: trips, invitations, profiles, users.
"""

from groupgo.config import Config
from groupgo.db.dynamo import DynamoDocumentStore
from groupgo.db.interface import DocumentSnapshot, DocumentStore, Filter, Query, Transaction
from groupgo.db.live import SKIP, LiveQuery, combine
from groupgo.db.memory import InMemoryDocumentStore

TRIPS = "trips"
INVITATIONS = "invitations"
PROFILES = "profiles"
USERS = "users"


def get_document_store(config: Config) -> DocumentStore:
    if config.document_store == "memory":
        return InMemoryDocumentStore(max_attempts=config.transaction_max_attempts)

    from groupgo.clients import get_dynamo_client

    return DynamoDocumentStore(
        client=get_dynamo_client(config.aws_region, config.dynamodb_endpoint),
        table_names=config.table_names(),
        poll_seconds=config.live_query_poll_seconds,
        max_attempts=config.transaction_max_attempts,
    )


__all__ = [
    "INVITATIONS",
    "PROFILES",
    "SKIP",
    "TRIPS",
    "USERS",
    "DocumentSnapshot",
    "DocumentStore",
    "DynamoDocumentStore",
    "Filter",
    "InMemoryDocumentStore",
    "LiveQuery",
    "Query",
    "Transaction",
    "combine",
    "get_document_store",
]
