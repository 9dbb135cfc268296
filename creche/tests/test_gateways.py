"""
Tests for the provider clients and the services that mirror their results.

HTTP calls are mocked at ``requests``; services get a mocked client and an
in-memory SQLite session.

Run: python -m pytest creche/tests/test_gateways.py -v
"""

import pytest
from datetime import date
from unittest.mock import MagicMock, patch

import requests
from sqlalchemy import create_engine, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from creche.db.models import Base, Child, EnrollmentContract, Invoice, Notification, ParentChild, User
from creche.gateways import (
    AsaasClient,
    ContractService,
    GhlClient,
    IntegrationNotConfigured,
    PaymentProviderError,
    PaymentService,
    ZapSignClient,
    build_board,
)


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


def _response(payload, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = b"{}" if payload is not None else b""
    resp.json.return_value = payload
    if status_code >= 400:
        resp.text = "error body"
        resp.raise_for_status.side_effect = requests.HTTPError(response=resp)
    return resp


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def session():
    _patch_jsonb_columns()
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def family(session):
    """An admin, a parent and their child."""
    admin = User(full_name="Diretora", email="diretora@creche.example", role="admin")
    parent = User(full_name="Ana Souza", email="ana@example.com", cpf="123.456.789-09", phone="(11) 98888-7777", role="parent")
    child = Child(full_name="Lia Souza", birth_date=date(2024, 3, 2), class_type="maternal")
    session.add_all([admin, parent, child])
    session.flush()
    session.add(ParentChild(parent_id=parent.id, child_id=child.id))
    session.flush()
    return admin, parent, child


# ---------------------------------------------------------------------------
# HTTP clients
# ---------------------------------------------------------------------------


class TestAsaasClient:
    def test_missing_key_is_not_configured(self, monkeypatch):
        monkeypatch.delenv("ASAAS_API_KEY", raising=False)
        with pytest.raises(IntegrationNotConfigured):
            AsaasClient().get_balance()

    def test_sends_access_token_and_parses_json(self):
        client = AsaasClient(api_key="key-123", base_url="https://sandbox.test/v3/")
        with patch("creche.gateways.http.requests.get", return_value=_response({"balance": 1520.5})) as mock_get:
            assert client.get_balance() == 1520.5
        args, kwargs = mock_get.call_args
        assert args[0] == "https://sandbox.test/v3/finance/balance"
        assert kwargs["headers"]["access_token"] == "key-123"
        assert kwargs["timeout"] > 0

    def test_http_error_becomes_provider_error(self):
        client = AsaasClient(api_key="key-123")
        with patch("creche.gateways.http.requests.get", return_value=_response({}, status_code=400)):
            with pytest.raises(PaymentProviderError) as exc:
                client.get_payment("pay_1")
        assert exc.value.details["response"] == "error body"

    def test_connection_error_becomes_provider_error(self):
        client = AsaasClient(api_key="key-123")
        with patch("creche.gateways.http.requests.get", side_effect=requests.ConnectionError("down")):
            with pytest.raises(PaymentProviderError):
                client.get_payment("pay_1")

    def test_non_json_body_becomes_provider_error(self):
        client = AsaasClient(api_key="key-123")
        resp = _response({"id": "pay_1"})
        resp.content = b"<html>maintenance</html>"
        resp.text = "<html>maintenance</html>"
        resp.json.side_effect = ValueError("Expecting value")
        with patch("creche.gateways.http.requests.get", return_value=resp):
            with pytest.raises(PaymentProviderError) as exc:
                client.get_payment("pay_1")
        assert exc.value.details["response"] == "<html>maintenance</html>"

    def test_installment_payload(self):
        client = AsaasClient(api_key="key-123")
        with patch("creche.gateways.http.requests.post", return_value=_response({"id": "pay_1"})) as mock_post:
            client.create_payment("cus_1", 300.0, "2026-11-10", "Material", installment_count=3)
        payload = mock_post.call_args.kwargs["json"]
        assert payload["installmentCount"] == 3
        assert payload["totalValue"] == 300.0
        assert "installmentValue" not in payload
        assert "value" not in payload
        assert "externalReference" not in payload

    def test_list_payments_follows_pagination(self):
        client = AsaasClient(api_key="key-123")
        pages = [
            _response({"data": [{"id": "pay_1"}], "hasMore": True}),
            _response({"data": [{"id": "pay_2"}], "hasMore": False}),
        ]
        with patch("creche.gateways.http.requests.get", side_effect=pages) as mock_get:
            ids = [p["id"] for p in client.list_payments()]
        assert ids == ["pay_1", "pay_2"]
        assert mock_get.call_args_list[1].kwargs["params"]["offset"] == 100

    def test_empty_body_is_empty_dict(self):
        client = AsaasClient(api_key="key-123")
        with patch("creche.gateways.http.requests.delete", return_value=_response(None)):
            assert client.cancel_subscription("sub_1") == {}


class TestZapSignClient:
    def test_missing_token_is_not_configured(self, monkeypatch):
        monkeypatch.delenv("ZAPSIGN_API_TOKEN", raising=False)
        with pytest.raises(IntegrationNotConfigured):
            ZapSignClient().get_document("doc_1")

    def test_create_document_needs_content(self):
        with pytest.raises(ValueError):
            ZapSignClient(api_token="t").create_document("Contrato", "1")

    def test_pdf_is_sent_base64(self):
        client = ZapSignClient(api_token="t")
        with patch("creche.gateways.http.requests.post", return_value=_response({"token": "doc_1"})) as mock_post:
            client.create_document("Contrato", "1", pdf=b"%PDF")
        payload = mock_post.call_args.kwargs["json"]
        assert payload["base64_pdf"] == "JVBERg=="
        assert "markdown_text" not in payload


class TestGhlClient:
    def test_pipelines_are_mapped(self):
        raw = {"pipelines": [{"id": "p1", "name": "Matrículas", "stages": [{"id": "s1", "name": "Novo"}]}]}
        client = GhlClient(api_key="k", location_id="loc")
        with patch("creche.gateways.http.requests.get", return_value=_response(raw)) as mock_get:
            pipelines = client.list_pipelines()
        assert pipelines == [{"id": "p1", "name": "Matrículas", "stages": [{"id": "s1", "name": "Novo", "position": 0}]}]
        assert mock_get.call_args.kwargs["params"] == {"locationId": "loc"}

    def test_missing_location_is_not_configured(self, monkeypatch):
        monkeypatch.delenv("GHL_LOCATION_ID", raising=False)
        with pytest.raises(IntegrationNotConfigured):
            GhlClient(api_key="k").list_pipelines()

    def test_build_board(self):
        pipeline = {
            "id": "p1",
            "name": "Matrículas",
            "stages": [{"id": "s2", "name": "Visita", "position": 1}, {"id": "s1", "name": "Novo", "position": 0}],
        }
        opportunities = [
            {"id": "o1", "stage_id": "s1", "monetary_value": 799.9},
            {"id": "o2", "stage_id": "s1", "monetary_value": 100.1},
            {"id": "o3", "stage_id": "gone", "monetary_value": 50},
        ]
        board = build_board(pipeline, opportunities)
        assert [c["stage_id"] for c in board["columns"]] == ["s1", "s2"]
        assert board["columns"][0]["count"] == 2
        assert board["columns"][0]["total_value"] == 900.0
        assert board["columns"][1]["opportunities"] == []
        assert [o["id"] for o in board["unassigned"]] == ["o3"]


# ---------------------------------------------------------------------------
# Payment service
# ---------------------------------------------------------------------------


def _payment(payment_id, due_date, status="PENDING", value=100.0, **extra):
    return {"id": payment_id, "dueDate": due_date, "status": status, "value": value, **extra}


class TestPaymentService:
    def _client(self):
        client = MagicMock(spec=AsaasClient)
        client.create_customer.return_value = {"id": "cus_1"}
        client.get_pix_qr_code.return_value = {"payload": "00020126pix"}
        return client

    def test_single_charge(self, session, family):
        _, parent, child = family
        client = self._client()
        client.create_payment.return_value = _payment("pay_1", "2026-11-10", value=250.0, invoiceUrl="https://pay/1")

        invoices = PaymentService(session, client).create_invoice(child, parent, 250.0, date(2026, 11, 10), "Matrícula")

        assert len(invoices) == 1
        invoice = invoices[0]
        assert invoice.provider_payment_id == "pay_1"
        assert invoice.description == "Matrícula"
        assert invoice.status == "pending"
        assert invoice.pix_code == "00020126pix"
        assert invoice.invoice_url == "https://pay/1"
        client.create_customer.assert_called_once()
        assert client.create_customer.call_args.kwargs["cpf_cnpj"] == "12345678909"

    def test_customer_is_created_once(self, session, family):
        _, parent, child = family
        client = self._client()
        client.create_payment.side_effect = [
            _payment("pay_1", "2026-11-10"),
            _payment("pay_2", "2026-12-10"),
        ]
        service = PaymentService(session, client)
        service.create_invoice(child, parent, 100.0, date(2026, 11, 10), "Passeio")
        service.create_invoice(child, parent, 100.0, date(2026, 12, 10), "Passeio")
        assert client.create_customer.call_count == 1

    def test_installments_are_all_stored(self, session, family):
        _, parent, child = family
        client = self._client()
        first = _payment("pay_1", "2026-11-10", installment="ins_1")
        client.create_payment.return_value = first
        client.list_installment_payments.return_value = [
            _payment("pay_3", "2027-01-10"),
            first,
            _payment("pay_2", "2026-12-10"),
        ]

        invoices = PaymentService(session, client).create_invoice(
            child, parent, 300.0, date(2026, 11, 10), "Material", installment_count=3
        )

        assert [i.provider_payment_id for i in invoices] == ["pay_1", "pay_2", "pay_3"]
        assert [i.description for i in invoices] == ["Material (1/3)", "Material (2/3)", "Material (3/3)"]
        assert invoices[2].due_date == date(2027, 1, 10)

    def test_installment_fetch_failure_keeps_first(self, session, family):
        _, parent, child = family
        client = self._client()
        client.create_payment.return_value = _payment("pay_1", "2026-11-10", installment="ins_1")
        client.list_installment_payments.side_effect = PaymentProviderError("Failed to list installment payments")

        invoices = PaymentService(session, client).create_invoice(
            child, parent, 300.0, date(2026, 11, 10), "Material", installment_count=3
        )

        assert len(invoices) == 1
        assert session.query(Invoice).count() == 1

    def test_missing_pix_code_is_tolerated(self, session, family):
        _, parent, child = family
        client = self._client()
        client.create_payment.return_value = _payment("pay_1", "2026-11-10")
        client.get_pix_qr_code.side_effect = PaymentProviderError("Failed to get PIX code")

        invoices = PaymentService(session, client).create_invoice(child, parent, 100.0, date(2026, 11, 10), "Passeio")
        assert invoices[0].pix_code is None

    def test_payment_reminders(self, session, family):
        _, parent, child = family
        today = date(2026, 10, 19)
        for due, status in [
            (date(2026, 10, 12), "pending"),
            (date(2026, 10, 15), "overdue"),
            (date(2026, 10, 22), "pending"),
            (date(2026, 10, 23), "pending"),
            (date(2026, 10, 10), "paid"),
        ]:
            session.add(Invoice(child_id=child.id, parent_id=parent.id, value=749.90, due_date=due, status=status))
        session.flush()
        service = PaymentService(session, self._client())

        result = service.send_payment_reminders(today)

        assert result == {"checked": 3, "due_soon_sent": 1, "overdue_sent": 2}
        notes = session.query(Notification).filter_by(user_id=parent.id).all()
        assert sorted(n.type for n in notes) == ["payment_overdue", "payment_overdue", "payment_reminder"]
        assert any("22/10/2026" in n.message for n in notes)

        # The due-soon invoice turns overdue: that is a new kind of reminder
        later = service.send_payment_reminders(date(2026, 10, 23))
        assert later["overdue_sent"] == 1
        assert later["due_soon_sent"] == 1
        assert service.send_payment_reminders(date(2026, 10, 23))["overdue_sent"] == 0

    def test_create_subscription(self, session, family):
        _, parent, child = family
        client = self._client()
        client.create_subscription.return_value = {"id": "sub_1"}

        subscription = PaymentService(session, client).create_subscription(
            child, parent, 1099.90, billing_day=10, today=date(2026, 10, 19)
        )

        assert subscription.status == "active"
        assert subscription.provider_subscription_id == "sub_1"
        assert subscription.description == "Mensalidade escolar"
        assert client.create_subscription.call_args.kwargs["next_due_date"] == "2026-11-10"

    def test_cancel_subscription(self, session, family):
        _, parent, child = family
        client = self._client()
        client.create_subscription.return_value = {"id": "sub_1"}
        service = PaymentService(session, client)
        subscription = service.create_subscription(child, parent, 1099.90)

        service.cancel_subscription(subscription)

        client.cancel_subscription.assert_called_once_with("sub_1")
        assert subscription.status == "cancelled"

    def test_webhook_marks_invoice_paid_and_notifies(self, session, family):
        _, parent, child = family
        invoice = Invoice(
            child_id=child.id, parent_id=parent.id, provider_payment_id="pay_1",
            description="Mensalidade", value=1099.90, due_date=date(2026, 11, 10), status="pending",
        )
        session.add(invoice)
        session.flush()

        event = {
            "event": "PAYMENT_RECEIVED",
            "payment": {"id": "pay_1", "status": "RECEIVED", "paymentDate": "2026-11-08"},
        }
        result = PaymentService(session, self._client()).handle_webhook(event)

        assert result is invoice
        assert invoice.status == "paid"
        assert invoice.payment_date == date(2026, 11, 8)
        notification = session.query(Notification).filter_by(user_id=parent.id).one()
        assert notification.title == "Pagamento confirmado"
        assert "R$ 1.099,90" in notification.message

    def test_webhook_ignores_unrelated_events(self, session, family):
        service = PaymentService(session, self._client())
        assert service.handle_webhook({"event": "SUBSCRIPTION_CREATED", "payment": {"id": "x"}}) is None
        assert service.handle_webhook({"event": "PAYMENT_RECEIVED", "payment": {"id": "unknown"}}) is None
        assert service.handle_webhook({}) is None

    def test_sync_invoices(self, session, family):
        _, parent, child = family
        session.add(Invoice(
            child_id=child.id, parent_id=parent.id, provider_payment_id="pay_1",
            value=100, due_date=date(2026, 10, 10), status="pending",
        ))
        session.flush()
        client = self._client()
        client.list_payments.return_value = iter([
            _payment("pay_1", "2026-10-10", status="OVERDUE"),
            _payment("pay_9", "2026-10-10"),
        ])

        counts = PaymentService(session, client).sync_invoices()

        assert counts == {"seen": 2, "updated": 1, "unknown": 1}
        assert session.query(Invoice).filter_by(provider_payment_id="pay_1").one().status == "overdue"


# ---------------------------------------------------------------------------
# Contract service
# ---------------------------------------------------------------------------


class TestContractService:
    def _contract(self, session, parent, child, **fields):
        contract = EnrollmentContract(
            child_id=child.id, parent_id=parent.id, class_type="maternal",
            shift_type="integral", plan_type="basico", monthly_value=749.90, **fields,
        )
        session.add(contract)
        session.flush()
        return contract

    def test_send_contract(self, session, family):
        _, parent, child = family
        contract = self._contract(session, parent, child)
        client = MagicMock(spec=ZapSignClient)
        client.create_document.return_value = {"token": "doc_1"}
        client.add_signer.return_value = {"token": "signer_1", "sign_url": "https://sign/1"}

        ContractService(session, client, payments=MagicMock()).send_contract(contract)

        assert contract.status == "sent"
        assert contract.doc_token == "doc_1"
        assert contract.sign_url == "https://sign/1"
        assert contract.sent_at is not None
        markdown = client.create_document.call_args.kwargs["markdown_text"]
        assert "Lia Souza" in markdown
        assert "R$ 749,90" in markdown
        assert session.query(Notification).filter_by(user_id=parent.id, type="contract").count() == 1

    def test_signed_webhook_opens_subscription(self, session, family):
        admin, parent, child = family
        contract = self._contract(session, parent, child, status="sent", doc_token="doc_1")
        payments = MagicMock()

        service = ContractService(session, MagicMock(spec=ZapSignClient), payments=payments)
        result = service.handle_webhook({"event_type": "doc_signed", "token": "doc_1"})

        assert result is contract
        assert contract.status == "signed"
        assert contract.signed_at is not None
        payments.create_subscription.assert_called_once()
        assert session.query(Notification).filter_by(user_id=admin.id).count() == 1

    def test_refused_webhook(self, session, family):
        _, parent, child = family
        contract = self._contract(session, parent, child, status="sent", doc_token="doc_1")
        payments = MagicMock()

        ContractService(session, MagicMock(spec=ZapSignClient), payments=payments).handle_webhook(
            {"event_type": "doc_refused", "doc": {"token": "doc_1"}}
        )

        assert contract.status == "refused"
        payments.create_subscription.assert_not_called()

    def test_webhook_secret_mismatch(self, session, family):
        service = ContractService(session, MagicMock(spec=ZapSignClient), payments=MagicMock())
        with pytest.raises(PermissionError):
            service.handle_webhook({"event_type": "doc_signed"}, secret="wrong", expected_secret="right")

    def test_unknown_event_is_ignored(self, session, family):
        service = ContractService(session, MagicMock(spec=ZapSignClient), payments=MagicMock())
        assert service.handle_webhook({"event_type": "doc_created", "token": "doc_1"}) is None

    def test_sync_status(self, session, family):
        _, parent, child = family
        contract = self._contract(session, parent, child, status="sent", doc_token="doc_1")
        client = MagicMock(spec=ZapSignClient)
        client.get_document.return_value = {
            "status": "signed",
            "signers": [{"signed_at": "2026-10-18T14:30:00.000000Z"}],
        }

        ContractService(session, client, payments=MagicMock()).sync_status(contract)

        assert contract.status == "signed"
        assert contract.signed_at.day == 18
