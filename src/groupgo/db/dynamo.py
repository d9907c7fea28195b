"""DynamoDB document store.

Each collection maps to a table keyed by ``docId``. Every write stamps a new
``_rev`` token so transactions can detect concurrent changes: a commit goes
through TransactWriteItems with a condition on the revision read earlier, and
a failed condition makes run_transaction re-run the transaction body.

DynamoDB has no push notifications for queries, so live queries poll.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Any

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import ClientError

from groupgo.db.interface import DocumentSnapshot, DocumentStore, Query, Transaction
from groupgo.db.live import LiveQuery
from groupgo.errors import GroupGoError, NotFoundError, TransactionConflictError

logger = logging.getLogger(__name__)

KEY_ATTRIBUTE = "docId"
REVISION_ATTRIBUTE = "_rev"

# Equality filters on these fields are served from a GSI instead of a scan.
DEFAULT_INDEXES: dict[str, dict[str, str]] = {
    "trips": {"createdBy": "createdBy-index"},
    "invitations": {"invitedEmail": "invitedEmail-index", "tripId": "tripId-index"},
}

_CONFLICT_REASONS = {"ConditionalCheckFailed", "TransactionConflict"}
_UNSET: Any = object()

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _from_dynamo(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, list):
        return [_from_dynamo(v) for v in value]
    if isinstance(value, dict):
        return {k: _from_dynamo(v) for k, v in value.items()}
    if isinstance(value, set):
        return [_from_dynamo(v) for v in sorted(value)]
    return value


def _to_dynamo(value: Any) -> Any:
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, list):
        return [_to_dynamo(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_dynamo(v) for k, v in value.items()}
    return value


def serialize_item(data: dict[str, Any]) -> dict[str, Any]:
    return {k: _serializer.serialize(_to_dynamo(v)) for k, v in data.items()}


def deserialize_item(item: dict[str, Any]) -> dict[str, Any]:
    return {k: _from_dynamo(_deserializer.deserialize(v)) for k, v in item.items()}


def _new_revision() -> str:
    return uuid.uuid4().hex


class DynamoDocumentStore(DocumentStore):
    def __init__(
        self,
        client: Any,
        table_names: dict[str, str],
        indexes: dict[str, dict[str, str]] | None = None,
        poll_seconds: float = 2.0,
        max_attempts: int = 5,
    ) -> None:
        super().__init__(max_attempts=max_attempts)
        self._client = client
        self._tables = table_names
        self._indexes = DEFAULT_INDEXES if indexes is None else indexes
        self._poll_seconds = poll_seconds

    def _table(self, collection: str) -> str:
        try:
            return self._tables[collection]
        except KeyError:
            raise GroupGoError(f"No table configured for collection '{collection}'") from None

    @staticmethod
    def _key(doc_id: str) -> dict[str, Any]:
        return {KEY_ATTRIBUTE: {"S": doc_id}}

    @staticmethod
    def _split(item: dict[str, Any]) -> tuple[str, dict[str, Any], str]:
        data = deserialize_item(item)
        doc_id = data.pop(KEY_ATTRIBUTE)
        revision = data.pop(REVISION_ATTRIBUTE, "")
        return doc_id, data, revision

    async def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        return await asyncio.to_thread(getattr(self._client, operation), **kwargs)

    # CRUD

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot | None:
        data, _ = await self._read_versioned(collection, doc_id)
        return None if data is None else DocumentSnapshot(doc_id, data)

    async def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        if merge:
            await self._update_fields(collection, doc_id, data, must_exist=False)
            return
        item = serialize_item(data)
        item[KEY_ATTRIBUTE] = {"S": doc_id}
        item[REVISION_ATTRIBUTE] = {"S": _new_revision()}
        await self._call("put_item", TableName=self._table(collection), Item=item)

    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        await self._update_fields(collection, doc_id, fields, must_exist=True)

    async def _update_fields(self, collection: str, doc_id: str, fields: dict[str, Any], must_exist: bool) -> None:
        names = {"#rev": REVISION_ATTRIBUTE}
        values = {":rev": {"S": _new_revision()}}
        assignments = ["#rev = :rev"]
        for i, (name, value) in enumerate(fields.items()):
            names[f"#f{i}"] = name
            values[f":v{i}"] = _serializer.serialize(_to_dynamo(value))
            assignments.append(f"#f{i} = :v{i}")

        kwargs: dict[str, Any] = {
            "TableName": self._table(collection),
            "Key": self._key(doc_id),
            "UpdateExpression": "SET " + ", ".join(assignments),
            "ExpressionAttributeNames": names,
            "ExpressionAttributeValues": values,
        }
        if must_exist:
            names["#k"] = KEY_ATTRIBUTE
            kwargs["ConditionExpression"] = "attribute_exists(#k)"

        try:
            await self._call("update_item", **kwargs)
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise NotFoundError(f"No document to update: {collection}/{doc_id}") from e
            raise

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._call("delete_item", TableName=self._table(collection), Key=self._key(doc_id))

    # Queries

    def _index_for(self, collection: str, query: Query) -> tuple[str, int] | None:
        indexed = self._indexes.get(collection, {})
        for position, f in enumerate(query.filters):
            if f.op == "==" and f.field in indexed and isinstance(f.value, str):
                return indexed[f.field], position
        return None

    async def query(self, collection: str, query: Query) -> list[DocumentSnapshot]:
        names: dict[str, str] = {}
        values: dict[str, Any] = {}
        conditions: list[str] = []
        key_condition: str | None = None
        index = self._index_for(collection, query)

        for i, f in enumerate(query.filters):
            names[f"#f{i}"] = f.field
            if f.op == "in":
                if not f.value:
                    return []
                placeholders = []
                for j, v in enumerate(f.value):
                    values[f":v{i}_{j}"] = _serializer.serialize(_to_dynamo(v))
                    placeholders.append(f":v{i}_{j}")
                conditions.append(f"#f{i} IN ({', '.join(placeholders)})")
                continue
            values[f":v{i}"] = _serializer.serialize(_to_dynamo(f.value))
            if f.op == "array_contains":
                conditions.append(f"contains(#f{i}, :v{i})")
            elif index is not None and index[1] == i:
                key_condition = f"#f{i} = :v{i}"
            else:
                conditions.append(f"#f{i} = :v{i}")

        kwargs: dict[str, Any] = {"TableName": self._table(collection)}
        if names:
            kwargs["ExpressionAttributeNames"] = names
            kwargs["ExpressionAttributeValues"] = values
        if conditions:
            kwargs["FilterExpression"] = " AND ".join(conditions)

        operation = "scan"
        if index is not None:
            operation = "query"
            kwargs["IndexName"] = index[0]
            kwargs["KeyConditionExpression"] = key_condition

        documents: list[DocumentSnapshot] = []
        while True:
            response = await self._call(operation, **kwargs)
            for item in response.get("Items", []):
                doc_id, data, _ = self._split(item)
                documents.append(DocumentSnapshot(doc_id, data))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            kwargs["ExclusiveStartKey"] = last_key

        # Ordering (and any filter DynamoDB could not express) is applied locally.
        return query.apply(documents)

    def _poll(self, fetch: Callable[[], Awaitable[Any]]) -> LiveQuery[Any]:
        task: asyncio.Task[None] | None = None

        def _stop() -> None:
            if task is not None:
                task.cancel()

        live: LiveQuery[Any] = LiveQuery(on_close=_stop)

        async def _run() -> None:
            last = _UNSET
            while True:
                try:
                    value = await fetch()
                except Exception as e:
                    logger.warning("Live query polling failed: %s", e)
                    live.fail(e)
                    return
                if value != last:
                    last = value
                    live.push(value)
                await asyncio.sleep(self._poll_seconds)

        task = asyncio.get_running_loop().create_task(_run())
        return live

    def watch(self, collection: str, query: Query) -> LiveQuery[list[DocumentSnapshot]]:
        return self._poll(lambda: self.query(collection, query))

    def watch_document(self, collection: str, doc_id: str) -> LiveQuery[DocumentSnapshot | None]:
        return self._poll(lambda: self.get(collection, doc_id))

    # Transactions

    async def _read_versioned(self, collection: str, doc_id: str) -> tuple[dict[str, Any] | None, str | None]:
        response = await self._call(
            "get_item",
            TableName=self._table(collection),
            Key=self._key(doc_id),
            ConsistentRead=True,
        )
        item = response.get("Item")
        if item is None:
            return None, None
        _, data, revision = self._split(item)
        return data, revision

    @staticmethod
    def _revision_condition(revision: str | None) -> dict[str, Any]:
        if revision is None:
            return {
                "ConditionExpression": "attribute_not_exists(#k)",
                "ExpressionAttributeNames": {"#k": KEY_ATTRIBUTE},
            }
        if revision == "":
            return {
                "ConditionExpression": "attribute_exists(#k) AND attribute_not_exists(#rev)",
                "ExpressionAttributeNames": {"#k": KEY_ATTRIBUTE, "#rev": REVISION_ATTRIBUTE},
            }
        return {
            "ConditionExpression": "#rev = :rev",
            "ExpressionAttributeNames": {"#rev": REVISION_ATTRIBUTE},
            "ExpressionAttributeValues": {":rev": {"S": revision}},
        }

    async def _commit(self, txn: Transaction) -> None:
        items: list[dict[str, Any]] = []
        for (collection, doc_id), data in txn.writes.items():
            key = (collection, doc_id)
            condition = self._revision_condition(txn.reads[key]) if key in txn.reads else {}
            if data is None:
                items.append({"Delete": {"TableName": self._table(collection), "Key": self._key(doc_id), **condition}})
                continue
            item = serialize_item(data)
            item[KEY_ATTRIBUTE] = {"S": doc_id}
            item[REVISION_ATTRIBUTE] = {"S": _new_revision()}
            items.append({"Put": {"TableName": self._table(collection), "Item": item, **condition}})

        for (collection, doc_id), revision in txn.reads.items():
            if (collection, doc_id) in txn.writes:
                continue
            items.append(
                {
                    "ConditionCheck": {
                        "TableName": self._table(collection),
                        "Key": self._key(doc_id),
                        **self._revision_condition(revision),
                    }
                }
            )

        try:
            await self._call("transact_write_items", TransactItems=items)
        except ClientError as e:
            code = e.response["Error"]["Code"]
            reasons = {r.get("Code") for r in e.response.get("CancellationReasons", [])}
            if code == "TransactionConflictException" or (
                code == "TransactionCanceledException" and reasons & _CONFLICT_REASONS
            ):
                raise TransactionConflictError(f"Transaction cancelled: {sorted(r for r in reasons if r)}") from e
            raise
