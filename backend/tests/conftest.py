# tests/conftest.py

import copy
import pytest
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from jose import jwt

from verifiedmeasure.config import settings
from verifiedmeasure.errors import UpstreamError


class FakeStore:
    """In-memory stand-in for LeadStore with the same transactional contract."""

    def __init__(self):
        self.leads = []
        self.lead_access = []
        self.ledger = []
        self.audit = []
        self.admins = set()
        self.fail_on = set()
        self.calls = []

    # -- helpers for tests ---------------------------------------------

    def fail(self, method_name):
        self.fail_on.add(method_name)

    def credit(self, user_id, delta, reason="seed"):
        self.ledger.append({"user_id": user_id, "delta": delta, "reason": reason, "meta": {}})

    def entitle(self, user_id, lead_id):
        self.lead_access.append((user_id, lead_id))

    def add_lead(self, company="Acme Corporation", **fields):
        lead = {
            "id": str(uuid4()),
            "company": company,
            "website": fields.get("website"),
            "email": fields.get("email"),
            "phone": fields.get("phone"),
            "meta": fields.get("meta") or {},
            "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=len(self.leads)),
        }
        self.leads.append(lead)
        return lead

    def balance(self, user_id):
        return sum(entry["delta"] for entry in self.ledger if entry["user_id"] == user_id)

    def access_rows(self, user_id):
        return [lead_id for uid, lead_id in self.lead_access if uid == user_id]

    def _call(self, name):
        self.calls.append(name)
        if name in self.fail_on:
            raise UpstreamError(f"{name} failed")

    # -- store interface -----------------------------------------------

    @asynccontextmanager
    async def unit_of_work(self):
        snapshot = copy.deepcopy((self.leads, self.lead_access, self.ledger, self.audit))
        try:
            yield self
        except Exception:
            self.leads, self.lead_access, self.ledger, self.audit = snapshot
            raise

    async def lock_user(self, user_id):
        self._call("lock_user")

    async def get_balance(self, user_id):
        self._call("get_balance")
        return self.balance(user_id)

    async def fetch_entitled_ids(self, user_id, lead_ids=None):
        self._call("fetch_entitled_ids")
        owned = set(self.access_rows(user_id))
        if lead_ids is None:
            return owned
        return owned & set(lead_ids)

    async def list_leads(self):
        self._call("list_leads")
        return sorted(self.leads, key=lambda lead: lead["created_at"], reverse=True)

    async def is_admin(self, user_id):
        self._call("is_admin")
        return user_id in self.admins

    async def insert_lead_access(self, user_id, lead_ids):
        self._call("insert_lead_access")
        for lead_id in lead_ids:
            if (user_id, lead_id) in self.lead_access:
                raise UpstreamError(
                    'duplicate key value violates unique constraint "uq_lead_access_user_lead"'
                )
            self.lead_access.append((user_id, lead_id))

    async def insert_ledger_entry(self, user_id, delta, reason, meta=None):
        self._call("insert_ledger_entry")
        self.ledger.append({"user_id": user_id, "delta": delta, "reason": reason, "meta": meta or {}})

    async def insert_audit(self, actor_id, action, entity, entity_id=None, meta=None):
        self._call("insert_audit")
        self.audit.append({
            "actor_id": actor_id,
            "action": action,
            "entity": entity,
            "entity_id": entity_id,
            "meta": meta or {},
        })

    async def insert_leads(self, rows):
        self._call("insert_leads")
        ids = []
        for row in rows:
            lead = self.add_lead(**row)
            ids.append(lead["id"])
        return ids


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def user_id():
    return str(uuid4())


@pytest.fixture
def admin_id(store):
    uid = str(uuid4())
    store.admins.add(uid)
    return uid


def make_token(sub, email=None, expires_in=timedelta(hours=1), **overrides):
    """Sign a token the way the auth provider does."""
    now = datetime.now(timezone.utc)
    claims = {
        "sub": sub,
        "email": email,
        "aud": settings.JWT_AUDIENCE,
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    claims.update(overrides)
    claims = {key: value for key, value in claims.items() if value is not None}
    return jwt.encode(claims, settings.SUPABASE_JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def token_for():
    return make_token


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: unit tests")
    config.addinivalue_line("markers", "integration: integration tests")
