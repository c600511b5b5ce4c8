from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

from firebase_admin import firestore_async
from google.api_core.exceptions import NotFound
from google.cloud import firestore

from config import Settings
from services.document_store import DocumentStore, Transaction
from services.errors import DocumentNotFound
from services.firebase import get_firebase_app

T = TypeVar("T")


class _FirestoreTransaction(Transaction):
    def __init__(self, client: firestore.AsyncClient, transaction: firestore.AsyncTransaction):
        self._client = client
        self._transaction = transaction

    async def get(self, path: str) -> dict[str, Any] | None:
        snapshot = await self._client.document(path).get(transaction=self._transaction)
        return snapshot.to_dict() if snapshot.exists else None

    def set(self, path: str, data: dict[str, Any]) -> None:
        self._transaction.set(self._client.document(path), data)

    def update(self, path: str, fields: dict[str, Any]) -> None:
        self._transaction.update(self._client.document(path), fields)


class FirestoreDocumentStore(DocumentStore):
    """Cloud Firestore backend. The async client is created on first use."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._client: firestore.AsyncClient | None = None

    @property
    def client(self) -> firestore.AsyncClient:
        if self._client is None:
            self._client = firestore_async.client(get_firebase_app(self._settings))
        return self._client

    def new_id(self, collection: str) -> str:
        return self.client.collection(collection).document().id

    def server_timestamp(self) -> Any:
        return firestore.SERVER_TIMESTAMP

    async def get(self, path: str) -> dict[str, Any] | None:
        snapshot = await self.client.document(path).get()
        return snapshot.to_dict() if snapshot.exists else None

    async def list(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        docs = []
        async for snapshot in self.client.collection(collection).stream():
            docs.append((snapshot.id, snapshot.to_dict()))
        return docs

    async def list_group(self, collection_id: str) -> list[tuple[str, dict[str, Any]]]:
        docs = []
        async for snapshot in self.client.collection_group(collection_id).stream():
            docs.append((snapshot.reference.path, snapshot.to_dict()))
        return docs

    async def run_transaction(self, fn: Callable[[Transaction], Awaitable[T]]) -> T:
        client = self.client

        @firestore.async_transactional
        async def _run(transaction: firestore.AsyncTransaction) -> T:
            return await fn(_FirestoreTransaction(client, transaction))

        try:
            return await _run(client.transaction())
        except NotFound as e:
            raise DocumentNotFound(str(e)) from e
