import copy
import operator

import pytest
from firebase_admin import auth as firebase_admin_auth

from nestify.services.billing_service import billing_service
from nestify.services.hostel_service import hostel_service
from nestify.services.notice_service import notice_service
from nestify.services.payment_service import payment_service
from nestify.services.room_service import room_service
from nestify.services.signup_service import signup_service
from nestify.services.tenure_service import tenure_service

_OPS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class FakeDB:
    """In-memory stand-in for DatabaseService, keyed by collection path then document id"""

    def __init__(self):
        self.collections = {}
        self.batches = []
        self.fail_batches = False
        # 1-based commit_batch calls to reject
        self.fail_batch_calls = set()
        self._batch_calls = 0
        self._counter = 0

    # helpers for tests
    def seed(self, collection, document_id, data):
        self.collections.setdefault(collection, {})[document_id] = copy.deepcopy(data)

    def doc(self, collection, document_id):
        return self.collections.get(collection, {}).get(document_id)

    def docs(self, collection):
        return list(self.collections.get(collection, {}).values())

    def _snapshot(self, collection, document_id, data):
        snap = copy.deepcopy(data)
        snap.setdefault("id", document_id)
        snap["_doc_id"] = document_id
        snap["_path"] = f"{collection}/{document_id}"
        return snap

    def _matches(self, data, filters):
        for field, op, value in filters or []:
            current = data.get(field)
            if op != "==" and op != "!=" and current is None:
                return False
            if not _OPS[op](current, value):
                return False
        return True

    # DatabaseService interface
    async def create_document(self, collection, data, document_id=None, validate=True):
        if not document_id:
            self._counter += 1
            document_id = f"{collection.split('/')[-1]}-{self._counter}"
        self.seed(collection, document_id, data)
        return True, document_id, None

    async def get_document(self, collection, document_id):
        data = self.doc(collection, document_id)
        if data is None:
            return False, None, f"Document {document_id} not found in {collection}"
        return True, self._snapshot(collection, document_id, data), None

    async def update_document(self, collection, document_id, data, validate=False):
        existing = self.doc(collection, document_id)
        if existing is None:
            return False, f"Document {document_id} not found in {collection}"
        existing.update(copy.deepcopy(data))
        return True, None

    async def delete_document(self, collection, document_id):
        self.collections.get(collection, {}).pop(document_id, None)
        return True, None

    async def query_documents(self, collection, filters=None, limit=None, order_by=None, descending=False):
        results = [
            self._snapshot(collection, doc_id, data)
            for doc_id, data in self.collections.get(collection, {}).items()
            if self._matches(data, filters)
        ]
        if order_by:
            results.sort(key=lambda d: d.get(order_by), reverse=descending)
        if limit:
            results = results[:limit]
        return True, results, None

    async def query_collection_group(self, collection, filters=None, limit=None):
        results = []
        for path, documents in self.collections.items():
            if path.split("/")[-1] != collection:
                continue
            results.extend(
                self._snapshot(path, doc_id, data)
                for doc_id, data in documents.items()
                if self._matches(data, filters)
            )
        if limit:
            results = results[:limit]
        return True, results, None

    async def commit_batch(self, operations):
        self._batch_calls += 1
        if self.fail_batches or self._batch_calls in self.fail_batch_calls:
            return False, "batch rejected"
        for operation in operations:
            if operation["op"] == "update" and self.doc(operation["collection"], operation["document_id"]) is None:
                return False, f"No document to update: {operation['document_id']}"

        for operation in operations:
            collection, document_id = operation["collection"], operation["document_id"]
            if operation["op"] == "set":
                if operation.get("merge") and self.doc(collection, document_id) is not None:
                    self.doc(collection, document_id).update(copy.deepcopy(operation["data"]))
                else:
                    self.seed(collection, document_id, operation["data"])
            elif operation["op"] == "update":
                self.doc(collection, document_id).update(copy.deepcopy(operation["data"]))
            elif operation["op"] == "delete":
                self.collections.get(collection, {}).pop(document_id, None)
        self.batches.append(operations)
        return True, None


class FakeAuth:
    """Stand-in for FirebaseAuth that keeps identities in memory"""

    def __init__(self):
        self.users = {}
        self.claims = {}
        self.updates = []

    async def create_user(self, email, password, display_name=None):
        if email in self.users:
            raise firebase_admin_auth.EmailAlreadyExistsError(
                "The user with the provided email already exists (EMAIL_EXISTS).", None, None
            )
        uid = f"uid-{len(self.users) + 1}"
        self.users[email] = uid
        return {"uid": uid, "email": email}

    async def set_custom_claims(self, uid, claims):
        self.claims[uid] = claims

    async def update_user(self, uid, **kwargs):
        email = kwargs.get("email")
        if email in self.users and self.users[email] != uid:
            raise firebase_admin_auth.EmailAlreadyExistsError(
                "The user with the provided email already exists (EMAIL_EXISTS).", None, None
            )
        self.updates.append((uid, kwargs))

    async def verify_token(self, token):
        return None

    async def revoke_refresh_tokens(self, uid):
        return None


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeDB()
    for service in (
        billing_service,
        hostel_service,
        notice_service,
        payment_service,
        room_service,
        signup_service,
        tenure_service,
    ):
        monkeypatch.setattr(service, "db", db)
    return db


@pytest.fixture
def fake_auth(monkeypatch):
    auth = FakeAuth()
    monkeypatch.setattr(hostel_service, "auth", auth)
    monkeypatch.setattr(signup_service, "auth", auth)
    monkeypatch.setattr(tenure_service, "auth", auth)
    return auth
