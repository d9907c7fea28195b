"""Process-local document store with push-based live queries.

Used for local development and tests. All state lives on the event loop
thread, so there is no locking; transactions still go through the same
optimistic revision check as the DynamoDB store.
"""

import copy
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from groupgo.db.interface import DocKey, DocumentSnapshot, DocumentStore, Query, Transaction
from groupgo.db.live import LiveQuery
from groupgo.errors import NotFoundError, TransactionConflictError

logger = logging.getLogger(__name__)

_UNSET: Any = object()


@dataclass
class _Watcher:
    evaluate: Callable[[], Any]
    live: LiveQuery[Any]
    last: Any = _UNSET

    def refresh(self) -> None:
        value = self.evaluate()
        if value != self.last:
            self.last = value
            self.live.push(value)


class InMemoryDocumentStore(DocumentStore):
    def __init__(self, max_attempts: int = 5) -> None:
        super().__init__(max_attempts=max_attempts)
        # collection -> doc id -> (data, revision)
        self._collections: dict[str, dict[str, tuple[dict[str, Any], str]]] = {}
        self._watchers: dict[str, list[_Watcher]] = {}

    def _docs(self, collection: str) -> dict[str, tuple[dict[str, Any], str]]:
        return self._collections.setdefault(collection, {})

    def _snapshot(self, collection: str, doc_id: str) -> DocumentSnapshot | None:
        entry = self._docs(collection).get(doc_id)
        if entry is None:
            return None
        return DocumentSnapshot(doc_id, copy.deepcopy(entry[0]))

    def _write(self, collection: str, doc_id: str, data: dict[str, Any] | None) -> None:
        if data is None:
            self._docs(collection).pop(doc_id, None)
        else:
            self._docs(collection)[doc_id] = (copy.deepcopy(data), uuid.uuid4().hex)

    def _notify(self, collection: str) -> None:
        for watcher in list(self._watchers.get(collection, [])):
            watcher.refresh()

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot | None:
        return self._snapshot(collection, doc_id)

    async def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        existing = self._docs(collection).get(doc_id)
        if merge and existing is not None:
            data = {**existing[0], **data}
        self._write(collection, doc_id, data)
        self._notify(collection)

    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        existing = self._docs(collection).get(doc_id)
        if existing is None:
            raise NotFoundError(f"No document to update: {collection}/{doc_id}")
        self._write(collection, doc_id, {**existing[0], **fields})
        self._notify(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        self._write(collection, doc_id, None)
        self._notify(collection)

    def _evaluate(self, collection: str, query: Query) -> list[DocumentSnapshot]:
        docs = (DocumentSnapshot(doc_id, copy.deepcopy(data)) for doc_id, (data, _) in self._docs(collection).items())
        return query.apply(docs)

    async def query(self, collection: str, query: Query) -> list[DocumentSnapshot]:
        return self._evaluate(collection, query)

    def _register(self, collection: str, evaluate: Callable[[], Any]) -> LiveQuery[Any]:
        watchers = self._watchers.setdefault(collection, [])
        watcher: _Watcher

        def _unregister() -> None:
            if watcher in watchers:
                watchers.remove(watcher)

        watcher = _Watcher(evaluate=evaluate, live=LiveQuery(on_close=_unregister))
        watchers.append(watcher)
        watcher.refresh()
        return watcher.live

    def watch(self, collection: str, query: Query) -> LiveQuery[list[DocumentSnapshot]]:
        return self._register(collection, lambda: self._evaluate(collection, query))

    def watch_document(self, collection: str, doc_id: str) -> LiveQuery[DocumentSnapshot | None]:
        return self._register(collection, lambda: self._snapshot(collection, doc_id))

    def listener_count(self, collection: str) -> int:
        return len(self._watchers.get(collection, []))

    async def _read_versioned(self, collection: str, doc_id: str) -> tuple[dict[str, Any] | None, str | None]:
        entry = self._docs(collection).get(doc_id)
        if entry is None:
            return None, None
        return copy.deepcopy(entry[0]), entry[1]

    def _revision(self, key: DocKey) -> str | None:
        entry = self._docs(key[0]).get(key[1])
        return None if entry is None else entry[1]

    async def _commit(self, txn: Transaction) -> None:
        for key, revision in txn.reads.items():
            if self._revision(key) != revision:
                raise TransactionConflictError(f"{key[0]}/{key[1]} changed during the transaction")
        touched = set()
        for (collection, doc_id), data in txn.writes.items():
            self._write(collection, doc_id, data)
            touched.add(collection)
        for collection in touched:
            self._notify(collection)
        logger.debug("Committed transaction touching %d documents", len(txn.writes))
