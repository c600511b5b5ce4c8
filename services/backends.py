from config import Settings
from database import create_engine
from services.document_store import DocumentStore, SqlDocumentStore
from services.firestore_store import FirestoreDocumentStore
from services.identity import FirebaseIdentityProvider, IdentityProvider


def build_store(settings: Settings) -> DocumentStore:
    if settings.store_backend == "sql":
        return SqlDocumentStore(create_engine(settings))
    return FirestoreDocumentStore(settings)


def build_identity(settings: Settings) -> IdentityProvider:
    return FirebaseIdentityProvider(settings)
