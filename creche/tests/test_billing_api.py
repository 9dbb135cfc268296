"""
Billing, webhook, pipeline and demo API tests.

Provider HTTP calls are mocked at ``requests``; the CRM client is replaced
through the dependency override.

Run: python -m pytest creche/tests/test_billing_api.py -v
"""

import pytest
from datetime import date, timedelta
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from creche.db.models import (
    Base,
    Child,
    DiscountCoupon,
    EnrollmentContract,
    Invoice,
    Notification,
    ParentChild,
    User,
    WeeklyMenu,
)
from creche.db.connection import get_db_session
from creche.api.main import app
from creche.api.routes.pipeline import get_crm_client


def _patch_jsonb_columns():
    """Replace JSONB columns with JSON for SQLite compatibility."""
    for table in Base.metadata.tables.values():
        for column in table.columns:
            if isinstance(column.type, JSONB):
                column.type = JSON()


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db_session():
    db = TestingSessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


client = TestClient(app)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def setup_db(monkeypatch):
    """Admin (id=1), a parent (id=2) and their child (id=1)."""
    _patch_jsonb_columns()
    app.dependency_overrides[get_db_session] = override_get_db_session
    Base.metadata.create_all(bind=engine)
    monkeypatch.delenv("ASAAS_WEBHOOK_TOKEN", raising=False)
    monkeypatch.delenv("ZAPSIGN_WEBHOOK_SECRET", raising=False)

    db = TestingSessionLocal()
    try:
        db.add(User(id=1, full_name="Diretora", email="diretora@creche.local", role="admin"))
        db.add(User(id=2, full_name="Ana Souza", email="ana@example.com", cpf="123.456.789-09", role="parent"))
        db.add(Child(id=1, full_name="Lia Souza", birth_date=date(2022, 1, 10), class_type="maternal"))
        db.flush()
        db.add(ParentChild(parent_id=2, child_id=1))
        db.commit()
    finally:
        db.close()

    yield

    Base.metadata.drop_all(bind=engine)
    app.dependency_overrides.pop(get_db_session, None)
    app.dependency_overrides.pop(get_crm_client, None)


@pytest.fixture
def asaas_key(monkeypatch):
    monkeypatch.setenv("ASAAS_API_KEY", "test-key")


def _response(payload):
    resp = MagicMock()
    resp.status_code = 200
    resp.content = b"{}"
    resp.json.return_value = payload
    return resp


def _payment(payment_id, due_date, **extra):
    return {"id": payment_id, "dueDate": due_date, "status": "PENDING", "value": 100.0, **extra}


def _add_invoice(**fields) -> int:
    db = TestingSessionLocal()
    try:
        invoice = Invoice(
            child_id=1,
            parent_id=2,
            description="Mensalidade",
            value=749.90,
            due_date=fields.pop("due_date", date.today() + timedelta(days=10)),
            status=fields.pop("status", "pending"),
            **fields,
        )
        db.add(invoice)
        db.commit()
        return invoice.id
    finally:
        db.close()


# ===========================================================================
# Subscriptions
# ===========================================================================


class TestSubscriptions:
    def test_provider_not_configured(self, monkeypatch):
        monkeypatch.delenv("ASAAS_API_KEY", raising=False)
        resp = client.post("/api/subscriptions/", json={"child_id": 1, "value": 749.90})
        assert resp.status_code == 503
        assert resp.json()["type"] == "IntegrationNotConfigured"

    def test_create_and_cancel(self, asaas_key):
        def fake_post(url, **kwargs):
            if url.endswith("/customers"):
                return _response({"id": "cus_1"})
            return _response({"id": "sub_1"})

        with patch("creche.gateways.http.requests.post", side_effect=fake_post):
            resp = client.post("/api/subscriptions/", json={"child_id": 1, "value": 749.90, "billing_day": 5})
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["status"] == "active"
        assert data["parent_id"] == 2
        assert data["provider_subscription_id"] == "sub_1"

        with patch("creche.gateways.http.requests.post", side_effect=fake_post):
            again = client.post("/api/subscriptions/", json={"child_id": 1, "value": 749.90})
        assert again.status_code == 409

        with patch("creche.gateways.http.requests.delete", return_value=_response({"deleted": True})) as mock_delete:
            cancelled = client.post(f"/api/subscriptions/{data['id']}/cancel")
        assert cancelled.json()["status"] == "cancelled"
        assert mock_delete.call_args.args[0].endswith("/subscriptions/sub_1")

    def test_child_without_parent(self, asaas_key):
        db = TestingSessionLocal()
        try:
            db.add(Child(id=5, full_name="Sem Responsável", birth_date=date(2023, 1, 1), class_type="maternal"))
            db.commit()
        finally:
            db.close()
        resp = client.post("/api/subscriptions/", json={"child_id": 5, "value": 100})
        assert resp.status_code == 422


# ===========================================================================
# Invoices and charges
# ===========================================================================


class TestInvoices:
    def test_charge_in_installments(self, asaas_key):
        first = _payment("pay_1", "2026-11-10", installment="ins_1", invoiceUrl="https://pay/1")
        installments = [first, _payment("pay_2", "2026-12-10"), _payment("pay_3", "2027-01-10")]

        def fake_post(url, **kwargs):
            if url.endswith("/customers"):
                return _response({"id": "cus_1"})
            return _response(first)

        def fake_get(url, **kwargs):
            if url.endswith("/pixQrCode"):
                return _response({"payload": "pix-" + url.split("/")[-2]})
            return _response({"data": installments})

        with patch("creche.gateways.http.requests.post", side_effect=fake_post), \
                patch("creche.gateways.http.requests.get", side_effect=fake_get):
            resp = client.post(
                "/api/invoices/charges",
                json={
                    "child_id": 1,
                    "description": "Material escolar",
                    "value": 300,
                    "due_date": "2026-11-10",
                    "installment_count": 3,
                },
            )

        assert resp.status_code == 201, resp.text
        invoices = resp.json()
        assert [i["description"] for i in invoices] == [
            "Material escolar (1/3)",
            "Material escolar (2/3)",
            "Material escolar (3/3)",
        ]
        assert invoices[1]["pix_code"] == "pix-pay_2"
        assert all(i["parent_id"] == 2 for i in invoices)
        assert len(client.get("/api/invoices/", params={"child_id": 1}).json()) == 3

    def test_provider_failure_is_502(self, asaas_key):
        import requests

        with patch("creche.gateways.http.requests.post", side_effect=requests.ConnectionError("down")):
            resp = client.post(
                "/api/invoices/charges",
                json={"child_id": 1, "description": "Passeio", "value": 50, "due_date": "2026-11-10"},
            )
        assert resp.status_code == 502
        assert resp.json()["type"] == "PaymentProviderError"

    def test_overdue_is_derived(self):
        _add_invoice(due_date=date.today() - timedelta(days=2))
        data = client.get("/api/invoices/").json()[0]
        assert data["status"] == "pending"
        assert data["effective_status"] == "overdue"
        assert data["status_label"] == "Vencido"
        assert data["reminder"] == "overdue"

    def test_due_soon_reminder(self):
        _add_invoice(due_date=date.today() + timedelta(days=2))
        data = client.get("/api/invoices/").json()[0]
        assert data["effective_status"] == "pending"
        assert data["reminder"] == "due_soon"

    def test_status_filter(self):
        _add_invoice(status="paid")
        _add_invoice()
        paid = client.get("/api/invoices/", params={"status": "paid"}).json()
        assert len(paid) == 1
        assert paid[0]["status_label"] == "Pago"

    def test_parent_sees_own_invoices(self):
        _add_invoice()
        db = TestingSessionLocal()
        try:
            db.add(User(id=3, full_name="Outro", email="outro@example.com", role="parent"))
            db.add(Child(id=2, full_name="Outra Criança", birth_date=date(2023, 1, 1), class_type="jardim"))
            db.add(Invoice(child_id=2, parent_id=3, value=10, due_date=date.today(), status="pending"))
            db.query(User).filter_by(id=1).update({"role": "parent"})
            db.commit()
        finally:
            db.close()
        assert client.get("/api/invoices/").json() == []

    def test_installment_values_fall_back_to_local_split(self, asaas_key):
        first = {"id": "pay_1", "dueDate": "2026-11-10", "status": "PENDING", "installment": "ins_1"}
        installments = [
            first,
            {"id": "pay_2", "dueDate": "2026-12-10", "status": "PENDING"},
            {"id": "pay_3", "dueDate": "2027-01-10", "status": "PENDING"},
        ]

        def fake_post(url, **kwargs):
            if url.endswith("/customers"):
                return _response({"id": "cus_1"})
            return _response(first)

        def fake_get(url, **kwargs):
            if url.endswith("/pixQrCode"):
                return _response({})
            return _response({"data": installments})

        with patch("creche.gateways.http.requests.post", side_effect=fake_post), \
                patch("creche.gateways.http.requests.get", side_effect=fake_get):
            resp = client.post(
                "/api/invoices/charges",
                json={"child_id": 1, "description": "Uniforme", "value": 100, "due_date": "2026-11-10", "installment_count": 3},
            )

        assert resp.status_code == 201, resp.text
        assert [float(i["value"]) for i in resp.json()] == [33.33, 33.33, 33.34]

    def test_charge_too_small_to_split(self, asaas_key):
        with patch("creche.gateways.http.requests.post") as mock_post:
            resp = client.post(
                "/api/invoices/charges",
                json={"child_id": 1, "description": "Taxa", "value": 0.05, "due_date": "2026-11-10", "installment_count": 10},
            )
        assert resp.status_code == 422
        assert resp.json()["type"] == "ValidationError"
        mock_post.assert_not_called()


class TestPaymentReminders:
    def test_requires_admin(self):
        db = TestingSessionLocal()
        try:
            db.query(User).filter_by(id=1).update({"role": "parent"})
            db.commit()
        finally:
            db.close()
        assert client.post("/api/invoices/reminders").status_code == 403

    def test_sends_each_reminder_once(self):
        overdue_id = _add_invoice(due_date=date.today() - timedelta(days=5))
        _add_invoice(due_date=date.today() + timedelta(days=3))
        _add_invoice(due_date=date.today() + timedelta(days=20))
        _add_invoice(due_date=date.today() - timedelta(days=1), status="paid")

        resp = client.post("/api/invoices/reminders")
        assert resp.status_code == 200, resp.text
        assert resp.json() == {"checked": 2, "due_soon_sent": 1, "overdue_sent": 1}

        db = TestingSessionLocal()
        try:
            sent = db.query(Notification).filter_by(user_id=2).order_by(Notification.id).all()
            assert {n.type for n in sent} == {"payment_overdue", "payment_reminder"}
            overdue = next(n for n in sent if n.type == "payment_overdue")
            assert overdue.link == f"/invoices/{overdue_id}"
            assert "R$ 749,90" in overdue.message
        finally:
            db.close()

        again = client.post("/api/invoices/reminders").json()
        assert again == {"checked": 2, "due_soon_sent": 0, "overdue_sent": 0}



# ===========================================================================
# Webhooks
# ===========================================================================


class TestPaymentWebhook:
    EVENT = {
        "event": "PAYMENT_CONFIRMED",
        "payment": {"id": "pay_1", "status": "CONFIRMED", "paymentDate": "2026-10-18"},
    }

    def test_marks_invoice_paid(self):
        invoice_id = _add_invoice(provider_payment_id="pay_1")
        resp = client.post("/api/webhooks/payments", json=self.EVENT)
        assert resp.status_code == 200
        assert resp.json() == {"received": True, "invoice_id": invoice_id}

        db = TestingSessionLocal()
        try:
            invoice = db.get(Invoice, invoice_id)
            assert invoice.status == "paid"
            assert invoice.payment_date == date(2026, 10, 18)
            assert db.query(Notification).filter_by(user_id=2, type="payment").count() == 1
        finally:
            db.close()

    def test_unknown_payment_is_acknowledged(self):
        resp = client.post("/api/webhooks/payments", json=self.EVENT)
        assert resp.status_code == 200
        assert resp.json()["invoice_id"] is None

    def test_token_checked_when_configured(self, monkeypatch):
        monkeypatch.setenv("ASAAS_WEBHOOK_TOKEN", "secret-token")
        _add_invoice(provider_payment_id="pay_1")

        denied = client.post("/api/webhooks/payments", json=self.EVENT, headers={"asaas-access-token": "wrong"})
        assert denied.status_code == 401
        missing = client.post("/api/webhooks/payments", json=self.EVENT)
        assert missing.status_code == 401

        ok = client.post("/api/webhooks/payments", json=self.EVENT, headers={"asaas-access-token": "secret-token"})
        assert ok.status_code == 200


class TestSignatureWebhook:
    def _add_contract(self, status="sent") -> int:
        db = TestingSessionLocal()
        try:
            contract = EnrollmentContract(
                child_id=1, parent_id=2, class_type="maternal", shift_type="integral",
                plan_type="basico", monthly_value=749.90, status=status, doc_token="doc_1",
            )
            db.add(contract)
            db.commit()
            return contract.id
        finally:
            db.close()

    def test_refused(self):
        contract_id = self._add_contract()
        resp = client.post("/api/webhooks/signatures", json={"event_type": "doc_refused", "token": "doc_1"})
        assert resp.status_code == 200
        assert resp.json() == {"received": True, "contract_id": contract_id}
        assert client.get(f"/api/contracts/{contract_id}").json()["status"] == "refused"

    def test_signed_without_payment_provider_keeps_contract_signed(self, monkeypatch):
        monkeypatch.delenv("ASAAS_API_KEY", raising=False)
        contract_id = self._add_contract()
        resp = client.post("/api/webhooks/signatures", json={"event_type": "doc_signed", "token": "doc_1"})
        assert resp.status_code == 200
        data = client.get(f"/api/contracts/{contract_id}").json()
        assert data["status"] == "signed"
        assert data["signed_at"] is not None

    def test_secret_mismatch(self, monkeypatch):
        monkeypatch.setenv("ZAPSIGN_WEBHOOK_SECRET", "s3cret")
        self._add_contract()
        resp = client.post(
            "/api/webhooks/signatures",
            json={"event_type": "doc_signed", "token": "doc_1"},
            headers={"x-webhook-secret": "nope"},
        )
        assert resp.status_code == 401


# ===========================================================================
# Pipeline
# ===========================================================================


class FakeCrm:
    pipelines = [
        {
            "id": "p1",
            "name": "Matrículas",
            "stages": [{"id": "s1", "name": "Novo", "position": 0}, {"id": "s2", "name": "Visita", "position": 1}],
        }
    ]

    def __init__(self):
        self.moves = []

    def list_pipelines(self):
        return self.pipelines

    def search_opportunities(self, pipeline_id):
        return {
            "opportunities": [
                {"id": "o1", "name": "Família Lima", "stage_id": "s2", "monetary_value": 1099.9},
            ],
            "total": 1,
        }

    def move_opportunity(self, opportunity_id, stage_id, pipeline_id):
        self.moves.append((opportunity_id, stage_id, pipeline_id))
        return {"id": opportunity_id, "stage_id": stage_id}


class TestPipeline:
    def test_board(self):
        app.dependency_overrides[get_crm_client] = FakeCrm
        resp = client.get("/api/pipeline/p1/board")
        assert resp.status_code == 200
        board = resp.json()
        assert [c["name"] for c in board["columns"]] == ["Novo", "Visita"]
        assert board["columns"][1]["count"] == 1
        assert board["columns"][1]["total_value"] == 1099.9

    def test_unknown_pipeline(self):
        app.dependency_overrides[get_crm_client] = FakeCrm
        assert client.get("/api/pipeline/nope/board").status_code == 404

    def test_move(self):
        crm = FakeCrm()
        app.dependency_overrides[get_crm_client] = lambda: crm
        resp = client.put("/api/pipeline/opportunities/o1/stage", json={"stage_id": "s1", "pipeline_id": "p1"})
        assert resp.status_code == 200
        assert crm.moves == [("o1", "s1", "p1")]

    def test_not_configured(self, monkeypatch):
        monkeypatch.delenv("GHL_API_KEY", raising=False)
        resp = client.get("/api/pipeline/pipelines")
        assert resp.status_code == 503


# ===========================================================================
# Demo mode
# ===========================================================================


class TestDemo:
    def test_status(self):
        assert client.get("/api/demo/status").json() == {"is_demo": False}

    def test_reset_only_for_demo_user(self):
        assert client.post("/api/demo/reset").status_code == 403

    def test_reset_seeds_demo_school(self):
        db = TestingSessionLocal()
        try:
            db.query(User).filter_by(id=1).update({"auth_subject": "demo"})
            db.commit()
        finally:
            db.close()

        resp = client.post("/api/demo/reset")
        assert resp.status_code == 200, resp.text
        assert resp.json()["message"].startswith("Demo school restored")

        db = TestingSessionLocal()
        try:
            names = {c.full_name for c in db.query(Child).all()}
            assert {"Alice Demo", "Bernardo Demo", "Clara Demo"} <= names
            # Rows that are not demo data survive the reset
            assert "Lia Souza" in names
            assert db.query(DiscountCoupon).count() == 2
            assert db.query(WeeklyMenu).count() == 5
        finally:
            db.close()
