import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Any, Literal, TypeVar

from groupgo.db.live import LiveQuery
from groupgo.errors import GroupGoError, NotFoundError, TransactionConflictError

T = TypeVar("T")

logger = logging.getLogger(__name__)

Operator = Literal["==", "array_contains", "in"]
DocKey = tuple[str, str]


@dataclass(frozen=True)
class DocumentSnapshot:
    id: str
    data: dict[str, Any]


@dataclass(frozen=True)
class Filter:
    field: str
    op: Operator
    value: Any

    def matches(self, data: dict[str, Any]) -> bool:
        current = data.get(self.field)
        if self.op == "==":
            return current == self.value
        if self.op == "array_contains":
            return isinstance(current, list) and self.value in current
        if self.op == "in":
            return current in self.value
        raise ValueError(f"Unsupported operator: {self.op}")


@dataclass(frozen=True)
class Query:
    """Conjunction of filters plus an optional single-field ordering."""

    filters: tuple[Filter, ...] = ()
    order_field: str | None = None
    descending: bool = False

    def where(self, field_name: str, op: Operator, value: Any) -> "Query":
        return replace(self, filters=self.filters + (Filter(field_name, op, value),))

    def order_by(self, field_name: str, descending: bool = False) -> "Query":
        return replace(self, order_field=field_name, descending=descending)

    def matches(self, data: dict[str, Any]) -> bool:
        return all(f.matches(data) for f in self.filters)

    def apply(self, documents: Iterable[DocumentSnapshot]) -> list[DocumentSnapshot]:
        matched = [doc for doc in documents if self.matches(doc.data)]
        if self.order_field is not None:
            key = self.order_field
            matched.sort(key=lambda doc: (doc.data.get(key) is not None, doc.data.get(key)), reverse=self.descending)
        return matched


@dataclass
class Transaction:
    """Read set and buffered writes of one transaction attempt.

    All reads must happen before the first write to the same document. Writes
    become visible only when the store commits the attempt.
    """

    store: "DocumentStore"
    # Revision observed per document; None when the document did not exist.
    reads: dict[DocKey, str | None] = field(default_factory=dict)
    # Buffered full documents; None marks a delete.
    writes: dict[DocKey, dict[str, Any] | None] = field(default_factory=dict)
    _snapshots: dict[DocKey, dict[str, Any] | None] = field(default_factory=dict)

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot | None:
        key = (collection, doc_id)
        if key in self.writes:
            raise GroupGoError(f"Transaction read of {collection}/{doc_id} after it was written")
        if key not in self._snapshots:
            data, revision = await self.store._read_versioned(collection, doc_id)
            self.reads[key] = revision
            self._snapshots[key] = data
        data = self._snapshots[key]
        return None if data is None else DocumentSnapshot(doc_id, dict(data))

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self.writes[(collection, doc_id)] = dict(data)

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        key = (collection, doc_id)
        if key in self.writes:
            base = self.writes[key]
        elif key in self._snapshots:
            base = self._snapshots[key]
        else:
            raise GroupGoError(f"Transaction update of {collection}/{doc_id} without reading it first")
        if base is None:
            raise NotFoundError(f"No document to update: {collection}/{doc_id}")
        self.writes[key] = {**base, **fields}

    def delete(self, collection: str, doc_id: str) -> None:
        self.writes[(collection, doc_id)] = None


class DocumentStore(ABC):
    """Schemaless documents grouped in named collections."""

    def __init__(self, max_attempts: int = 5) -> None:
        self._max_attempts = max_attempts

    def new_id(self) -> str:
        return uuid.uuid4().hex

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot | None: ...

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None: ...

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Overwrite the given fields; raises NotFoundError if the document is missing."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None: ...

    @abstractmethod
    async def query(self, collection: str, query: Query) -> list[DocumentSnapshot]: ...

    @abstractmethod
    def watch(self, collection: str, query: Query) -> LiveQuery[list[DocumentSnapshot]]:
        """Emit the current result immediately, then again whenever it changes."""

    @abstractmethod
    def watch_document(self, collection: str, doc_id: str) -> LiveQuery[DocumentSnapshot | None]: ...

    @abstractmethod
    async def _read_versioned(self, collection: str, doc_id: str) -> tuple[dict[str, Any] | None, str | None]: ...

    @abstractmethod
    async def _commit(self, txn: Transaction) -> None:
        """Apply txn atomically or raise TransactionConflictError if any read went stale."""

    async def run_transaction(self, fn: Callable[[Transaction], Awaitable[T]]) -> T:
        """Run ``fn`` and commit its writes atomically, re-running it on conflict.

        ``fn`` may run several times and must not have side effects outside the
        transaction it receives.
        """
        for attempt in range(1, self._max_attempts + 1):
            txn = Transaction(self)
            result = await fn(txn)
            if not txn.writes:
                return result
            try:
                await self._commit(txn)
                return result
            except TransactionConflictError:
                logger.info("Transaction conflict, retrying (attempt %d/%d)", attempt, self._max_attempts)
        raise TransactionConflictError(f"Transaction aborted after {self._max_attempts} conflicting attempts")
