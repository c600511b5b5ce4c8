"""
Hierarchical document store addressed by slash-separated paths
("collection/doc/collection/doc"), the shape Firestore uses.

DocumentStore is the contract the services depend on. SqlDocumentStore keeps
every document as one row of the documents table, keyed by its full path and
indexed by its parent collection, so the same code runs against SQLite locally
and in tests. The Firestore implementation lives in services/firestore_store.py.
"""
from __future__ import annotations

import asyncio
import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from database import create_sessionmaker, init_db
from models import Document
from services.errors import DocumentNotFound

T = TypeVar("T")


def split_path(path: str) -> tuple[str, str]:
    """Split a document path into (parent collection path, document id)."""
    parent, _, doc_id = path.strip("/").rpartition("/")
    if not parent or not doc_id or len(path.strip("/").split("/")) % 2:
        raise ValueError(f"Not a document path: {path!r}")
    return parent, doc_id


class Transaction(ABC):
    """
    Reads go through get() and must come before any write. Writes are
    buffered and applied together when the transaction commits; update()
    on a missing document fails the whole transaction with DocumentNotFound.
    """

    @abstractmethod
    async def get(self, path: str) -> dict[str, Any] | None:
        ...

    @abstractmethod
    def set(self, path: str, data: dict[str, Any]) -> None:
        ...

    @abstractmethod
    def update(self, path: str, fields: dict[str, Any]) -> None:
        ...


class DocumentStore(ABC):
    @abstractmethod
    def new_id(self, collection: str) -> str:
        """Generate an unused document id for the collection."""

    @abstractmethod
    def server_timestamp(self) -> Any:
        """Value to store in a field that should hold the write time."""

    @abstractmethod
    async def get(self, path: str) -> dict[str, Any] | None:
        ...

    @abstractmethod
    async def list(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        """Return (doc_id, data) for every document directly in the collection."""

    @abstractmethod
    async def list_group(self, collection_id: str) -> list[tuple[str, dict[str, Any]]]:
        """
        Return (path, data) for every document in any collection named
        collection_id, whether or not its parent document exists.
        """

    @abstractmethod
    async def run_transaction(self, fn: Callable[[Transaction], Awaitable[T]]) -> T:
        """Run fn inside one atomic transaction and return its result."""

    async def set(self, path: str, data: dict[str, Any]) -> None:
        async def _write(txn: Transaction) -> None:
            txn.set(path, data)

        await self.run_transaction(_write)

    async def update(self, path: str, fields: dict[str, Any]) -> None:
        async def _write(txn: Transaction) -> None:
            txn.update(path, fields)

        await self.run_transaction(_write)

    async def init(self) -> None:
        pass

    async def close(self) -> None:
        pass


class _SqlTransaction(Transaction):
    def __init__(self, session: AsyncSession):
        self._session = session
        self._writes: list[tuple[str, str, dict[str, Any]]] = []

    async def get(self, path: str) -> dict[str, Any] | None:
        doc = await self._session.get(Document, path.strip("/"))
        return dict(doc.data) if doc else None

    def set(self, path: str, data: dict[str, Any]) -> None:
        self._writes.append(("set", path.strip("/"), dict(data)))

    def update(self, path: str, fields: dict[str, Any]) -> None:
        self._writes.append(("update", path.strip("/"), dict(fields)))

    async def commit(self) -> None:
        for op, path, data in self._writes:
            doc = await self._session.get(Document, path)
            if op == "update":
                if doc is None:
                    raise DocumentNotFound(path)
                # Reassign so the JSON column registers the change.
                doc.data = {**doc.data, **data}
            elif doc is None:
                parent, doc_id = split_path(path)
                self._session.add(Document(path=path, parent=parent, doc_id=doc_id, data=data))
            else:
                doc.data = data
            await self._session.flush()


class SqlDocumentStore(DocumentStore):
    """
    SQLite shares a single connection between sessions (StaticPool), so every
    session is taken under one lock there; otherwise a commit or rollback in
    one transaction would also apply to another's flushed writes.
    """

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._sessions = create_sessionmaker(engine)
        self._lock = asyncio.Lock() if engine.dialect.name == "sqlite" else None

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        if self._lock is None:
            async with self._sessions() as session:
                yield session
            return
        async with self._lock:
            async with self._sessions() as session:
                yield session

    def new_id(self, collection: str) -> str:
        return uuid.uuid4().hex[:20]

    def server_timestamp(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    async def get(self, path: str) -> dict[str, Any] | None:
        async with self._session() as session:
            doc = await session.get(Document, path.strip("/"))
            return dict(doc.data) if doc else None

    async def list(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        async with self._session() as session:
            result = await session.execute(
                select(Document)
                .where(Document.parent == collection.strip("/"))
                .order_by(Document.doc_id)
            )
            return [(d.doc_id, dict(d.data)) for d in result.scalars().all()]

    async def list_group(self, collection_id: str) -> list[tuple[str, dict[str, Any]]]:
        async with self._session() as session:
            result = await session.execute(
                select(Document)
                .where(
                    or_(
                        Document.parent == collection_id,
                        Document.parent.endswith(f"/{collection_id}", autoescape=True),
                    )
                )
                .order_by(Document.path)
            )
            return [(d.path, dict(d.data)) for d in result.scalars().all()]

    async def run_transaction(self, fn: Callable[[Transaction], Awaitable[T]]) -> T:
        async with self._session() as session:
            async with session.begin():
                txn = _SqlTransaction(session)
                result = await fn(txn)
                await txn.commit()
                return result

    async def init(self) -> None:
        await init_db(self._engine)

    async def close(self) -> None:
        await self._engine.dispose()
