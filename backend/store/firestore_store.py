"""
Firestore Record Store

Reads and patches Blacklist records in a Firestore collection using the
async client.  Errors from google-api-core are passed through untouched so
callers can classify quota exhaustion (see store.errors).
"""

import logging
from typing import Any, Dict, List, Optional

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from google.oauth2 import service_account

from config import Settings
from exceptions import ItemNotFoundError
from records.models import Record
from .base import RecordStore

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"


class FirestoreRecordStore(RecordStore):
    """
    Firestore-backed record store.

    Usage:
        store = FirestoreRecordStore.from_settings(settings)
        records = await store.fetch_range("v1", 0, 200)
    """

    def __init__(self, client: firestore.AsyncClient, collection_name: str):
        self._client = client
        self.collection_name = collection_name
        self._collection = client.collection(collection_name)

    @classmethod
    def from_settings(cls, settings: Settings) -> "FirestoreRecordStore":
        """Build a client from service account settings."""
        credentials = service_account.Credentials.from_service_account_info({
            "type": "service_account",
            "project_id": settings.firebase_project_id,
            "client_email": settings.firebase_client_email,
            "private_key": settings.firebase_private_key_pem,
            "token_uri": TOKEN_URI,
        })
        client = firestore.AsyncClient(
            project=settings.firebase_project_id,
            credentials=credentials,
        )
        logger.info(f"Firestore client created (collection: {settings.collection_name})")
        return cls(client, settings.collection_name)

    @property
    def name(self) -> str:
        return "firestore"

    @staticmethod
    def _to_record(snapshot) -> Record:
        return {"id": snapshot.id, **(snapshot.to_dict() or {})}

    async def _collect(self, query) -> List[Record]:
        return [self._to_record(doc) async for doc in query.stream()]

    async def fetch_range(self, field: str, low: int, high: int) -> List[Record]:
        query = (
            self._collection
            .where(filter=FieldFilter(field, ">=", low))
            .where(filter=FieldFilter(field, "<=", high))
            .order_by(field)
        )
        records = await self._collect(query)
        logger.debug(f"Firestore: {len(records)} records with {field} in [{low}, {high}]")
        return records

    async def fetch_by_status(
        self,
        status: str,
        limit: int,
        low: int = 0,
        high: int = 200,
    ) -> List[Record]:
        query = (
            self._collection
            .where(filter=FieldFilter("v1", ">=", low))
            .where(filter=FieldFilter("v1", "<=", high))
            .where(filter=FieldFilter("status", "==", status))
            .order_by("v1")
            .limit(limit)
        )
        return await self._collect(query)

    async def fetch_all(self) -> List[Record]:
        return await self._collect(self._collection)

    async def get_item(self, item_id: str) -> Optional[Record]:
        snapshot = await self._collection.document(item_id).get()
        if not snapshot.exists:
            return None
        return self._to_record(snapshot)

    async def update_item(self, item_id: str, data: Dict[str, Any]) -> None:
        try:
            await self._collection.document(item_id).update(data)
        except google_exceptions.NotFound as e:
            raise ItemNotFoundError(item_id) from e
