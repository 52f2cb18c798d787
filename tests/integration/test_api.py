"""Integration tests for API endpoints"""

import json
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from hpg_ledger.config import settings
from hpg_ledger.infrastructure.database.models import LedgerEntry
from hpg_ledger.infrastructure.database.repositories import SnapshotRepository
from hpg_ledger.infrastructure.database.serialization import StorageKeys

pytestmark = pytest.mark.integration

LOAN = {"principal": 100000, "annual_rate_percent": 12, "duration_months": 12}


def disburse(client: TestClient, token: str = "HPG1001", **overrides) -> dict:
    response = client.post(f"/v1/customers/{token}/loans", json={**LOAN, **overrides})
    assert response.status_code == 201
    return response.json()


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "hpg-ledger"}


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/customers/HPG1001/assessments/2026", json={"items": []})

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "hpg_ledger_commands_total" in response.text
    assert "http_request_duration_seconds" in response.text


def test_request_id_header(client: TestClient):
    response = client.get("/v1/customers")
    assert response.headers.get("X-Request-ID")


def test_list_customers(client: TestClient):
    response = client.get("/v1/customers", params={"year": 2026})

    assert response.status_code == 200
    data = response.json()
    assert data["year"] == 2026
    assert data["status"] == "all"
    rows = data["customers"]
    assert [r["token"] for r in rows] == ["HPG1001", "HPG1002", "HPG2001"]
    assert rows[0]["settled"] is False
    assert rows[0]["trust_score"] == 750
    assert rows[0]["score_band"] == "good"
    assert rows[0]["loan_balance"] == 0


def test_list_customers_defaults_to_current_fiscal_year(client: TestClient):
    assert client.get("/v1/customers").json()["year"] == 2026


def test_filter_and_search_customers(client: TestClient):
    client.post("/v1/customers/HPG1002/assessments/2026", json={"items": []})
    disburse(client, "HPG2001")

    def tokens(**params):
        return [r["token"] for r in client.get("/v1/customers", params={"year": 2026, **params}).json()["customers"]]

    assert tokens(status="paid") == ["HPG1002"]
    assert tokens(status="pending") == ["HPG1001", "HPG2001"]
    assert tokens(status="loan") == ["HPG2001"]
    assert tokens(search="PATEL") == ["HPG1001"]
    assert tokens(search="hpg100", status="pending") == ["HPG1001"]
    assert tokens(year=2024, status="paid") == ["HPG1001", "HPG1002", "HPG2001"]


def test_invalid_filter_rejected(client: TestClient):
    assert client.get("/v1/customers", params={"status": "overdue"}).status_code == 422


def test_customer_detail(client: TestClient):
    response = client.get("/v1/customers/HPG1001")

    assert response.status_code == 200
    data = response.json()
    assert data["base_fee"] == 12500
    assert data["upgrade_fee"] == 49500
    assert data["business_plus_active"] is False
    assert data["brokerage"] == "₹ 500"


def test_customer_detail_ineligible_category(client: TestClient):
    assert client.get("/v1/customers/HPG2001").json()["upgrade_fee"] is None


def test_unknown_customer_returns_404(client: TestClient):
    response = client.get("/v1/customers/NOPE")

    assert response.status_code == 404
    assert response.json()["error"] == "CustomerNotFound"
    assert client.post("/v1/customers/NOPE/loans", json=LOAN).status_code == 404
    assert client.get("/v1/customers/NOPE/history").status_code == 404


def test_settle_assessment(client: TestClient):
    response = client.post(
        "/v1/customers/HPG1001/assessments/2026",
        json={"items": [{"label": "GST", "amount": 6800}]},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["settled"] is True
    assert data["base_fee"] == 12500
    assert data["total"] == 19300
    assert data["total_in_words"] == "19 Thousand 300 Only"

    fetched = client.get("/v1/customers/HPG1001/assessments/2026").json()
    assert fetched == data


def test_settle_assessment_twice_conflicts(client: TestClient):
    client.post("/v1/customers/HPG1001/assessments/2026", json={"items": []})

    response = client.post(
        "/v1/customers/HPG1001/assessments/2026",
        json={"items": [{"label": "GST", "amount": 6800}]},
    )

    assert response.status_code == 409
    assert response.json()["error"] == "DuplicateAssessment"
    assert client.get("/v1/customers/HPG1001/assessments/2026").json()["items"] == []


def test_negative_line_item_rejected(client: TestClient):
    response = client.post(
        "/v1/customers/HPG1001/assessments/2026",
        json={"items": [{"label": "GST", "amount": -1}]},
    )
    assert response.status_code == 422
    assert client.get("/v1/customers/HPG1001/assessments/2026").json()["settled"] is False


def test_grandfathered_year_is_settled(client: TestClient):
    data = client.get("/v1/customers/HPG2001/assessments/2024").json()
    assert data["settled"] is True
    assert data["items"] == []


def test_disburse_loan(client: TestClient):
    loan = disburse(client)

    assert loan["total_repayment"] == 112000
    assert loan["emi"] == 9333
    assert loan["balance"] == 112000
    assert loan["disbursal_date"] == "2026-04-19"
    assert loan["name"] == "Regular Yearly Loan"
    assert loan["penalty"] == {"overdue_count": 0, "monthly_penalty": 187, "total_penalty": 0}

    listed = client.get("/v1/customers/HPG1001/loans").json()
    assert listed["outstanding_balance"] == 112000
    assert [l["id"] for l in listed["loans"]] == [loan["id"]]


def test_disburse_loan_validation(client: TestClient):
    assert client.post("/v1/customers/HPG1001/loans", json={**LOAN, "principal": 0}).status_code == 422

    response = client.post("/v1/customers/HPG1001/loans", json={**LOAN, "repayment_cycle": "yearly"})
    assert response.status_code == 422
    assert response.json()["error"] == "InvalidLoanTerms"
    assert client.get("/v1/customers/HPG1001/loans").json()["loans"] == []


def test_daily_loan_requires_plan(client: TestClient):
    response = client.post("/v1/customers/HPG1001/loans", json={**LOAN, "loan_type": "daily"})

    assert response.status_code == 422
    assert response.json()["error"] == "PlanNotActive"


def test_schedule_and_quote(client: TestClient, clock):
    loan = disburse(client)
    clock.advance_months(2)

    schedule = client.get(f"/v1/customers/HPG1001/loans/{loan['id']}/schedule").json()["installments"]
    assert len(schedule) == 12
    assert [s["status"] for s in schedule[:3]] == ["overdue", "overdue", "upcoming"]
    assert {s["amount"] for s in schedule} == {9333}

    quote = client.get(f"/v1/customers/HPG1001/loans/{loan['id']}/quote", params={"installments": 2}).json()
    assert quote["amount"] == 19040
    assert quote["penalty_per_installment"] == 187
    assert quote["amount_in_words"] == "19 Thousand 40 Only"


def test_collect_repayment(client: TestClient):
    loan = disburse(client)

    response = client.post(f"/v1/customers/HPG1001/loans/{loan['id']}/repayments", json={"installments": 2})

    assert response.status_code == 200
    data = response.json()
    assert data["amount_collected"] == 18666
    assert data["loan"]["paid_months"] == 2
    assert data["loan"]["balance"] == 112000 - 18666


def test_repayment_errors(client: TestClient):
    loan = disburse(client, principal=120000, annual_rate_percent=10)
    url = f"/v1/customers/HPG1001/loans/{loan['id']}/repayments"

    assert client.post(url, json={"installments": 0}).json()["error"] == "NoInstallmentsSelected"
    assert client.post(url, json={"installments": 13}).json()["error"] == "TooManyInstallments"
    assert client.post("/v1/customers/HPG1001/loans/missing/repayments", json={"installments": 1}).status_code == 404

    assert client.post(url, json={"installments": 12}).json()["amount_collected"] == 132000
    settled = client.post(url, json={"installments": 1})
    assert settled.status_code == 409
    assert settled.json()["error"] == "LoanAlreadySettled"


def test_activate_plan(client: TestClient):
    response = client.post("/v1/customers/HPG1002/plan")

    assert response.status_code == 200
    assert response.json() == {
        "token": "HPG1002",
        "business_plus_active": True,
        "fee_charged": 69500,
        "fee_in_words": "69 Thousand 500 Only",
    }
    assert client.post("/v1/customers/HPG1002/plan").status_code == 409
    assert disburse(client, "HPG1002", loan_type="daily")["name"] == "Business Capital"


def test_activate_plan_with_fee_override(client: TestClient):
    response = client.post("/v1/customers/HPG1001/plan", json={"fee": 45000})
    assert response.json()["fee_charged"] == 45000


def test_activate_plan_ineligible(client: TestClient):
    response = client.post("/v1/customers/HPG2001/plan")

    assert response.status_code == 422
    assert response.json()["error"] == "NotEligible"
    assert client.get("/v1/customers/HPG2001").json()["business_plus_active"] is False


def test_history(client: TestClient):
    client.post("/v1/customers/HPG1001/assessments/2026", json={"items": [{"label": "GST", "amount": 6800}]})
    disburse(client)

    entries = client.get("/v1/customers/HPG1001/history").json()["entries"]

    assert [e["type"] for e in entries] == ["LOAN_CREDIT", "TAX_PAYMENT"]
    assert entries[0]["amount_in_words"] == "1 Lakh Only"
    assert entries[1]["reference"] == "2026"


def test_rejected_command_leaves_no_trace(client: TestClient):
    client.post("/v1/customers/HPG2001/plan")
    client.post("/v1/customers/HPG1001/loans", json={**LOAN, "loan_type": "daily"})

    assert client.get("/v1/customers/HPG2001/history").json()["entries"] == []
    assert client.get("/v1/customers/HPG1001/history").json()["entries"] == []


def test_reconciliation(client: TestClient):
    loan = disburse(client)
    client.post(f"/v1/customers/HPG1001/loans/{loan['id']}/repayments", json={"installments": 3})

    response = client.get("/v1/customers/HPG1001/reconciliation")

    assert response.json() == {"token": "HPG1001", "balanced": True, "issues": []}


def test_stats(client: TestClient):
    client.post("/v1/customers/HPG1001/assessments/2026", json={"items": [{"label": "GST", "amount": 6800}]})
    disburse(client, "HPG1002")

    data = client.get("/v1/stats", params={"year": 2026}).json()

    assert data["total_customers"] == 3
    assert data["settled_count"] == 1
    assert data["pending_count"] == 2
    assert data["active_loan_customers"] == 1
    assert data["total_principal_disbursed"] == 100000
    assert data["tax_collected"] == 6800


def test_tax_presets(client: TestClient):
    items = client.get("/v1/tax-presets").json()["items"]

    assert len(items) == 8
    assert {"label": "GST", "amount": 6800} in items


def test_repaid_loan_shows_no_penalty(client: TestClient, clock):
    loan = disburse(client, principal=120000, annual_rate_percent=10)
    client.post(f"/v1/customers/HPG1001/loans/{loan['id']}/repayments", json={"installments": 12})
    clock.advance_months(20)

    listed = client.get("/v1/customers/HPG1001/loans").json()["loans"][0]

    assert listed["is_repaid"] is True
    assert listed["penalty"]["overdue_count"] == 0
    assert listed["penalty"]["total_penalty"] == 0


def test_malformed_storage_is_never_overwritten(client: TestClient, db: Session, monkeypatch, tmp_path):
    """A broken loans document hides the whole ledger and blocks writes until repaired"""
    disburse(client)
    db.merge(LedgerEntry(key=StorageKeys.LOANS, value="{not json"))
    db.commit()

    assert client.get("/v1/customers").json()["customers"] == []

    seed = tmp_path / "customers.json"
    seed.write_text(json.dumps([{"token": "HPG1001", "name": "Ramesh Patel", "taxType": "BSHPG TAX"}]), encoding="utf-8")
    monkeypatch.setattr(settings, "seed_file", str(seed))

    response = client.post("/v1/customers/HPG1001/assessments/2026", json={"items": []})

    assert response.status_code == 503
    assert response.json()["error"] == "CorruptLedgerData"
    raw = SnapshotRepository(db).load_raw()
    assert raw[StorageKeys.LOANS] == "{not json"
    assert len(json.loads(raw[StorageKeys.LOGS])["HPG1001"]) == 1
