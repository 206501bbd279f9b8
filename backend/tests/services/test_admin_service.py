# tests/services/test_admin_service.py
"""
Tests for AdminService (credit grants and bulk import).

Run with: pytest tests/services/test_admin_service.py -v
"""

import pytest
from uuid import uuid4

from verifiedmeasure.errors import NoValidRows, UpstreamError, ValidationError
from verifiedmeasure.services.admin_service import (
    AdminService,
    coerce_amount,
    normalize_import_row,
)
from verifiedmeasure.services.entitlement_service import EntitlementService

pytestmark = pytest.mark.unit


# ============================================================================
# GRANTS
# ============================================================================

@pytest.mark.asyncio
async def test_grant_adds_positive_delta(store, admin_id, user_id):
    store.credit(user_id, 5)

    result = await AdminService(store).grant_credit(admin_id, user_id, 100)

    assert result.new_balance == 105
    entry = store.ledger[-1]
    assert entry["delta"] == 100
    assert entry["reason"] == "admin_grant"
    assert entry["meta"] == {"granted_by": admin_id}


@pytest.mark.asyncio
async def test_grant_is_audited_with_balance_before(store, admin_id, user_id):
    store.credit(user_id, 5)

    await AdminService(store).grant_credit(admin_id, user_id, 100)

    assert store.audit == [{
        "actor_id": admin_id,
        "action": "credit_grant",
        "entity": "credit_ledger",
        "entity_id": None,
        "meta": {"target_user_id": user_id, "amount": 100, "balance_before": 5},
    }]


@pytest.mark.asyncio
async def test_grant_floors_fractional_amount(store, admin_id, user_id):
    result = await AdminService(store).grant_credit(admin_id, user_id, "12.9")

    assert result.new_balance == 12


@pytest.mark.asyncio
async def test_grant_trims_user_id(store, admin_id, user_id):
    await AdminService(store).grant_credit(admin_id, f"  {user_id}  ", 3)

    assert store.balance(user_id) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("target", ["", "   ", None])
async def test_grant_requires_user_id(store, admin_id, target):
    with pytest.raises(ValidationError) as exc:
        await AdminService(store).grant_credit(admin_id, target, 10)

    assert exc.value.message == "user_id required"
    assert store.ledger == []


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -5, "abc", None, float("inf"), float("nan"), True, 0.5])
async def test_grant_rejects_non_positive_amount(store, admin_id, user_id, amount):
    with pytest.raises(ValidationError) as exc:
        await AdminService(store).grant_credit(admin_id, user_id, amount)

    assert exc.value.message == "amount must be positive"
    assert store.ledger == []


@pytest.mark.asyncio
async def test_grant_ledger_failure_writes_no_audit(store, admin_id, user_id):
    store.fail("insert_ledger_entry")

    with pytest.raises(UpstreamError):
        await AdminService(store).grant_credit(admin_id, user_id, 10)

    assert store.audit == []


@pytest.mark.asyncio
async def test_balance_equals_sum_of_grants_and_claims(store, admin_id, user_id):
    admin = AdminService(store)
    entitlements = EntitlementService(store)

    await admin.grant_credit(admin_id, user_id, 4)
    await entitlements.claim(user_id, [str(uuid4()) for _ in range(3)])
    await admin.grant_credit(admin_id, user_id, 2)
    result = await entitlements.claim(user_id, [str(uuid4())])

    deltas = [e["delta"] for e in store.ledger if e["user_id"] == user_id]
    assert deltas == [4, -3, 2, -1]
    assert result.new_balance == sum(deltas) == 2


def test_coerce_amount():
    assert coerce_amount(100) == 100
    assert coerce_amount(7.99) == 7
    assert coerce_amount(" 5 ") == 5
    assert coerce_amount("1e2") == 100
    assert coerce_amount([]) is None
    assert coerce_amount(False) is None


# ============================================================================
# IMPORT
# ============================================================================

@pytest.mark.asyncio
async def test_import_drops_rows_without_company(store, admin_id):
    rows = [
        {"company": "Acme", "email": "ops@acme.io"},
        {"company": "   ", "email": "nobody@example.com"},
        {"company": "Globex", "website": "globex.com"},
    ]

    result = await AdminService(store).import_leads(admin_id, rows)

    assert result.imported == 2
    assert [lead["company"] for lead in store.leads] == ["Acme", "Globex"]
    assert store.audit[0]["action"] == "import_leads"
    assert store.audit[0]["entity"] == "leads"
    assert store.audit[0]["meta"] == {"imported": 2}


@pytest.mark.asyncio
async def test_import_fails_when_no_row_has_company(store, admin_id):
    with pytest.raises(NoValidRows) as exc:
        await AdminService(store).import_leads(admin_id, [{"company": ""}, {"email": "a@b.co"}])

    assert exc.value.message == "no valid rows"
    assert exc.value.status_code == 400
    assert store.leads == []
    assert store.audit == []


@pytest.mark.asyncio
@pytest.mark.parametrize("rows", [[], None, "rows", {"company": "Acme"}])
async def test_import_requires_rows(store, admin_id, rows):
    with pytest.raises(ValidationError) as exc:
        await AdminService(store).import_leads(admin_id, rows)

    assert exc.value.message == "rows required"


@pytest.mark.asyncio
async def test_import_audit_failure_rolls_back_leads(store, admin_id):
    store.fail("insert_audit")

    with pytest.raises(UpstreamError):
        await AdminService(store).import_leads(admin_id, [{"company": "Acme"}])

    assert store.leads == []


def test_normalize_import_row_trims_and_blanks_optional_fields():
    row = normalize_import_row({
        "company": "  Acme  ",
        "website": "  ",
        "email": " ops@acme.io ",
        "phone": 5551234,
    })

    assert row == {
        "company": "Acme",
        "website": None,
        "email": "ops@acme.io",
        "phone": "5551234",
        "meta": {},
    }


def test_normalize_import_row_meta_variants():
    as_map = normalize_import_row({"company": "A", "meta": {"tier": "gold"}})
    as_json = normalize_import_row({"company": "A", "meta": '{"tier": "gold"}'})
    as_text = normalize_import_row({"company": "A", "meta": "gold tier"})
    as_other = normalize_import_row({"company": "A", "meta": 12})

    assert as_map["meta"] == {"tier": "gold"}
    assert as_json["meta"] == {"tier": "gold"}
    assert as_text["meta"] == {"raw": "gold tier"}
    assert as_other["meta"] == {}


def test_normalize_import_row_rejects_non_mapping():
    assert normalize_import_row("Acme") is None
    assert normalize_import_row({"company": None}) is None
