"""
Thin async wrapper around the Firestore client.

Every method returns a tuple whose first element is a success flag and whose
last element is an error message, so callers never need to catch Firestore
exceptions themselves:

    success, doc_id, error = await database_service.create_document(...)
    success, data, error   = await database_service.get_document(...)
    success, error         = await database_service.update_document(...)

Collections are addressed by path, so hostel sub-collections work the same as
root collections: ``hostels/{hostel_id}/rooms``.
"""

from typing import Any, Dict, List, Optional, Tuple
import logging

from google.cloud.firestore_v1 import FieldFilter, Query

from .collections import COLLECTION_SCHEMAS, collection_id
from .firestore_client import get_firestore_client

logger = logging.getLogger(__name__)

Filter = Tuple[str, str, Any]


def _snapshot_to_dict(doc) -> Dict[str, Any]:
    data = doc.to_dict() or {}
    data.setdefault('id', doc.id)
    data['_doc_id'] = doc.id
    data['_path'] = doc.reference.path
    return data


class DatabaseService:
    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_firestore_client()
        return self._client

    def _validate(self, collection: str, data: Dict[str, Any], partial: bool = False) -> Optional[str]:
        schema = COLLECTION_SCHEMAS.get(collection_id(collection))
        if not schema:
            return None
        if partial:
            return None
        missing = [f for f in schema['required'] if data.get(f) is None]
        if missing:
            return f"Missing required fields for {collection_id(collection)}: {', '.join(missing)}"
        return None

    def _apply_filters(self, query, filters: Optional[List[Filter]]):
        for field, op, value in filters or []:
            query = query.where(filter=FieldFilter(field, op, value))
        return query

    async def create_document(
        self,
        collection: str,
        data: Dict[str, Any],
        document_id: Optional[str] = None,
        validate: bool = True,
    ) -> Tuple[bool, Optional[str], Optional[str]]:
        """Create a document, returns (success, document_id, error)"""
        try:
            if validate:
                error = self._validate(collection, data)
                if error:
                    return False, None, error

            coll_ref = self.client.collection(collection)
            doc_ref = coll_ref.document(document_id) if document_id else coll_ref.document()
            doc_ref.set(data)
            return True, doc_ref.id, None
        except Exception as e:
            logger.error(f"Error creating document in {collection}: {str(e)}")
            return False, None, str(e)

    async def get_document(
        self,
        collection: str,
        document_id: str,
    ) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        """Get a document by id, returns (success, data, error)"""
        try:
            doc = self.client.collection(collection).document(document_id).get()
            if not doc.exists:
                return False, None, f"Document {document_id} not found in {collection}"
            return True, _snapshot_to_dict(doc), None
        except Exception as e:
            logger.error(f"Error getting document {collection}/{document_id}: {str(e)}")
            return False, None, str(e)

    async def update_document(
        self,
        collection: str,
        document_id: str,
        data: Dict[str, Any],
        validate: bool = False,
    ) -> Tuple[bool, Optional[str]]:
        """Update fields of an existing document, returns (success, error)"""
        try:
            if validate:
                error = self._validate(collection, data, partial=True)
                if error:
                    return False, error
            self.client.collection(collection).document(document_id).update(data)
            return True, None
        except Exception as e:
            logger.error(f"Error updating document {collection}/{document_id}: {str(e)}")
            return False, str(e)

    async def delete_document(self, collection: str, document_id: str) -> Tuple[bool, Optional[str]]:
        """Delete a document, returns (success, error)"""
        try:
            self.client.collection(collection).document(document_id).delete()
            return True, None
        except Exception as e:
            logger.error(f"Error deleting document {collection}/{document_id}: {str(e)}")
            return False, str(e)

    async def query_documents(
        self,
        collection: str,
        filters: Optional[List[Filter]] = None,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        """
        Query a collection with (field, op, value) filters.
        Returns (success, documents, error)
        """
        try:
            query = self._apply_filters(self.client.collection(collection), filters)
            if order_by:
                direction = Query.DESCENDING if descending else Query.ASCENDING
                query = query.order_by(order_by, direction=direction)
            if limit:
                query = query.limit(limit)
            return True, [_snapshot_to_dict(doc) for doc in query.stream()], None
        except Exception as e:
            logger.error(f"Error querying {collection}: {str(e)}")
            return False, [], str(e)

    async def query_collection_group(
        self,
        collection: str,
        filters: Optional[List[Filter]] = None,
        limit: Optional[int] = None,
    ) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        """
        Query every sub-collection named ``collection`` regardless of parent.
        Each document carries its full path in ``_path``.
        """
        try:
            query = self._apply_filters(self.client.collection_group(collection), filters)
            if limit:
                query = query.limit(limit)
            return True, [_snapshot_to_dict(doc) for doc in query.stream()], None
        except Exception as e:
            logger.error(f"Error querying collection group {collection}: {str(e)}")
            return False, [], str(e)

    async def commit_batch(self, operations: List[Dict[str, Any]]) -> Tuple[bool, Optional[str]]:
        """
        Commit several writes atomically.

        Each operation is a dict with keys ``op`` ('set', 'update' or 'delete'),
        ``collection``, ``document_id`` and, except for deletes, ``data``.
        'set' accepts an optional ``merge`` flag.
        """
        try:
            batch = self.client.batch()
            for operation in operations:
                ref = self.client.collection(operation['collection']).document(operation['document_id'])
                op = operation['op']
                if op == 'set':
                    batch.set(ref, operation['data'], merge=operation.get('merge', False))
                elif op == 'update':
                    batch.update(ref, operation['data'])
                elif op == 'delete':
                    batch.delete(ref)
                else:
                    raise ValueError(f"Unsupported batch operation: {op}")
            batch.commit()
            return True, None
        except Exception as e:
            logger.error(f"Batch commit failed ({len(operations)} operations): {str(e)}")
            return False, str(e)


database_service = DatabaseService()
