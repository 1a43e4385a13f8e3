"""Tests del adaptador del IXC con una requests.Session simulada."""

import json
from datetime import date
from unittest.mock import MagicMock, call

import pytest
import requests

from app.domain.exceptions import RemoteCallFailed, ReplacementNotFound
from app.domain.models.invoice import Invoice
from app.domain.models.renegotiation import RenegotiationDraft
from app.infrastructure.external.ixc_adapter import IxcBillingAdapter

BASE_URL = "https://ixc.example.com.br/webservice/v1"


def invoice_record(**overrides) -> dict:
    record = {
        "id": "1",
        "id_contrato": "10",
        "data_vencimento": "2026-01-13",
        "data_emissao": "2025-12-13",
        "valor": "100,00",
        "status": "A",
        "id_carteira_cobranca": "3",
    }
    record.update(overrides)
    return record


def open_invoice(**overrides) -> Invoice:
    return Invoice.model_validate(invoice_record(**{"id": "900", **overrides}))


def json_response(payload) -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    response.text = json.dumps(payload)
    return response


@pytest.fixture
def session():
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def sleep():
    return MagicMock()


@pytest.fixture
def adapter(session, sleep):
    return IxcBillingAdapter(
        base_url=BASE_URL + "/",
        token="user:secret",
        session=session,
        sleep=sleep,
        today=lambda: date(2026, 1, 15)
    )


def sent_json(session, index=-1) -> dict:
    return session.request.call_args_list[index].kwargs["json"]


class TestConstruction:

    def test_missing_configuration_raises(self, session, monkeypatch):
        monkeypatch.setattr("config.IXC_BASE_URL", None)
        monkeypatch.setattr("config.IXC_TOKEN", None)
        with pytest.raises(ValueError, match="IXC_BASE_URL"):
            IxcBillingAdapter(session=session)

    def test_user_token_is_sent_as_basic_auth(self, adapter, session):
        assert session.headers["Authorization"] == "Basic dXNlcjpzZWNyZXQ="

    def test_header_with_scheme_is_sent_verbatim(self, session):
        IxcBillingAdapter(base_url=BASE_URL, token="Bearer abc", session=session)
        assert session.headers["Authorization"] == "Bearer abc"


class TestListings:

    def test_find_invoices_paid_on_filters_by_normalized_date(self, adapter, session):
        session.request.return_value = json_response({"registros": [invoice_record(status="R")], "total": 1})

        invoices = adapter.find_invoices_paid_on("2026-01-15")

        assert [inv.id for inv in invoices] == ["1"]
        args, kwargs = session.request.call_args
        assert args == ("POST", BASE_URL + "/fn_areceber")
        assert kwargs["headers"] == {"ixcsoft": "listar"}
        assert json.loads(kwargs["json"]["grid_param"]) == [
            {"TB": "fn_areceber.pagamento_data", "OP": "=", "P": "15/01/2026"}
        ]

    def test_find_invoices_paid_on_accepts_date(self, adapter, session):
        session.request.return_value = json_response({"total": 0})

        assert adapter.find_invoices_paid_on(date(2026, 1, 5)) == []
        assert json.loads(sent_json(session)["grid_param"])[0]["P"] == "05/01/2026"

    def test_contract_listing_filters_open_and_sorts_by_due_date(self, adapter, session):
        session.request.return_value = json_response({"registros": [invoice_record()]})

        adapter.find_open_invoices_for_contract("10", "20")

        body = sent_json(session)
        assert body["sortname"] == "fn_areceber.data_vencimento"
        assert body["sortorder"] == "asc"
        assert json.loads(body["grid_param"]) == [
            {"TB": "fn_areceber.id_contrato", "OP": "=", "P": "10"},
            {"TB": "fn_areceber.id_contrato_avulso", "OP": "=", "P": "20"},
            {"TB": "fn_areceber.status", "OP": "=", "P": "A"},
        ]

    def test_contract_listing_requires_an_id(self, adapter):
        with pytest.raises(ValueError):
            adapter.find_open_invoices_for_contract()

    def test_find_invoice_returns_none_when_absent(self, adapter, session):
        session.request.return_value = json_response({"registros": []})

        assert adapter.find_invoice("42") is None

    @pytest.mark.parametrize("payload", [[{"id": "1"}], "registros", {"registros": {"id": "1"}}])
    def test_unexpected_listing_body_becomes_remote_call_failed(self, adapter, session, payload):
        session.request.return_value = json_response(payload)

        with pytest.raises(RemoteCallFailed) as exc_info:
            adapter.find_invoices_paid_on("15/01/2026")

        assert exc_info.value.operation == "find_invoices_paid_on"


class TestErrors:

    def test_transport_failure_becomes_remote_call_failed(self, adapter, session):
        session.request.side_effect = requests.exceptions.ConnectionError("connection refused")

        with pytest.raises(RemoteCallFailed) as exc_info:
            adapter.begin_renegotiation(["1"])

        assert exc_info.value.operation == "begin_renegotiation"
        assert isinstance(exc_info.value.cause, requests.exceptions.ConnectionError)

    def test_http_error_becomes_remote_call_failed(self, adapter, session):
        response = json_response({})
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("500 Server Error", response=response)
        session.request.return_value = response

        with pytest.raises(RemoteCallFailed):
            adapter.find_invoices_paid_on("15/01/2026")

    def test_error_envelope_with_http_200(self, adapter, session):
        session.request.return_value = json_response({"type": "error", "message": "Boleto já renegociado"})

        with pytest.raises(RemoteCallFailed, match="Boleto já renegociado"):
            adapter.begin_renegotiation(["1"])


class TestRenegotiationWizard:

    @pytest.fixture
    def draft(self):
        return RenegotiationDraft(
            branch_id="1",
            account_id="286",
            customer_id="77",
            issue_date="2026-01-15",
            collection_portfolio_id="3",
            payment_condition_id="1",
            contract="10",
            due_date="2026-02-13 00:00:00",
            parcel_amount="100,00",
            total_amount="100,00",
            renegotiated_amount="100,00",
            total_payable="100,00"
        )

    def test_begin(self, adapter, session):
        session.request.return_value = json_response({"id_renegociacao": 555, "message": "ok", "type": "success"})

        started = adapter.begin_renegotiation(["1", "2"])

        assert started.renegotiation_id == 555
        assert sent_json(session) == {"get_id": "1,2"}

    def test_update_sends_draft_with_normalized_dates(self, adapter, session, draft):
        session.request.return_value = json_response({"type": "success", "id": "555"})

        adapter.update_renegotiation(555, draft)

        args, kwargs = session.request.call_args
        assert args == ("PUT", BASE_URL + "/fn_renegociacao_wiz/555")
        payload = kwargs["json"]
        assert payload["data_vencimento"] == "13/02/2026"
        assert payload["data_emissao"] == "15/01/2026"
        assert payload["finalizar"] == "N"
        assert payload["data_finalizada"] == ""
        assert payload["valor_acrescimos"] == "0,00"

    def test_finalize_resends_full_field_set(self, adapter, session, draft):
        session.request.return_value = json_response({"type": "success", "id": "555"})

        adapter.update_renegotiation(555, draft)
        adapter.finalize_renegotiation(555, draft)

        draft_payload = sent_json(session, 0)
        final_payload = sent_json(session, 1)
        assert set(final_payload) == set(draft_payload)
        assert final_payload["finalizar"] == "S"
        assert final_payload["data_finalizada"] == "15/01/2026"

    def test_interest_and_penalty(self, adapter, session):
        session.request.return_value = json_response(
            {"totalFineAndFess": "15,50", "dateExpiration": "31/01/2026", "message": "", "type": "success"}
        )

        result = adapter.compute_interest_and_penalty("3", "1", 555)

        assert result.total_fine_and_fees == "15,50"
        assert sent_json(session) == {"id_carteira_cobranca": "3", "id_condicao_pagamento": "1", "id": "555"}

    @pytest.mark.parametrize("payload", [{"totalFineAndFess": 0, "type": "success"}, [{"totalFineAndFess": "1,00"}]])
    def test_interest_and_penalty_unexpected_body(self, adapter, session, payload):
        session.request.return_value = json_response(payload)

        with pytest.raises(RemoteCallFailed) as exc_info:
            adapter.compute_interest_and_penalty("3", "1", 555)

        assert exc_info.value.operation == "compute_interest_and_penalty"

    def test_correct_due_date(self, adapter, session, make_invoice):
        session.request.return_value = json_response({"type": "success"})
        reference = make_invoice(id="123", data_vencimento="2026-01-13", data_emissao="2025-12-13")

        adapter.correct_due_date("900", reference, "2026-02-13")

        args, kwargs = session.request.call_args
        assert args == ("PUT", BASE_URL + "/fn_areceber_altera/900")
        assert kwargs["json"]["data_vencimento"] == "13/02/2026"
        assert kwargs["json"]["data_emissao"] == "13/12/2025"
        assert kwargs["json"]["obs"] == "Boleto de vencimento original 13/01/2026"

    def test_generate_document_accepts_raw_text(self, adapter, session):
        response = MagicMock()
        response.json.side_effect = ValueError("not json")
        response.text = "JVBERi0xLjQK"
        session.request.return_value = response

        assert adapter.generate_document("900") == "JVBERi0xLjQK"
        assert sent_json(session)["base64"] == "S"


class TestFindReplacementInvoice:

    def test_returns_match_on_third_attempt(self, adapter, sleep):
        poll = MagicMock(side_effect=[[], [], [open_invoice()]])
        adapter._list_recent_open_invoices = poll

        invoice = adapter.find_replacement_invoice(555, 5, 10)

        assert invoice.id == "900"
        assert poll.call_count == 3
        assert sleep.call_args_list == [call(0.01), call(0.01)]

    def test_exhausted_attempts_raise(self, adapter, sleep):
        poll = MagicMock(return_value=[])
        adapter._list_recent_open_invoices = poll

        with pytest.raises(ReplacementNotFound) as exc_info:
            adapter.find_replacement_invoice(555, 4, 10)

        assert poll.call_count == 4
        assert exc_info.value.renegotiation_id == 555
        assert exc_info.value.attempts == 4
        assert "555" in str(exc_info.value) and "4" in str(exc_info.value)
        assert sleep.call_count == 3

    def test_skips_invoices_that_are_not_open(self, adapter):
        adapter._list_recent_open_invoices = MagicMock(side_effect=[
            [open_invoice(id="899", status="C")],
            [open_invoice(id="899", status="C"), open_invoice()],
        ])

        assert adapter.find_replacement_invoice(555, 3, 0).id == "900"

    def test_transient_failure_is_retried_after_delay(self, adapter, sleep):
        adapter._list_recent_open_invoices = MagicMock(side_effect=[
            RemoteCallFailed("find_replacement_invoice", "timeout"),
            [open_invoice()],
        ])

        assert adapter.find_replacement_invoice(555, 3, 250).id == "900"
        assert sleep.call_args_list == [call(0.25)]

    def test_failure_on_last_attempt_propagates(self, adapter):
        error = RemoteCallFailed("find_replacement_invoice", "timeout")
        adapter._list_recent_open_invoices = MagicMock(side_effect=[[], error])

        with pytest.raises(RemoteCallFailed) as exc_info:
            adapter.find_replacement_invoice(555, 2, 0)

        assert exc_info.value is error

    def test_polls_recent_open_invoices(self, adapter, session):
        session.request.return_value = json_response({"registros": [invoice_record(id="900")]})

        assert adapter.find_replacement_invoice(555, 1, 0).id == "900"
        body = sent_json(session)
        assert body["qtype"] == "fn_areceber.status"
        assert body["query"] == "A"
        assert body["sortorder"] == "desc"

    def test_unexpected_body_is_retried_until_attempts_run_out(self, adapter, session, sleep):
        session.request.return_value = json_response([{"id": "1"}])

        with pytest.raises(RemoteCallFailed):
            adapter.find_replacement_invoice(555, 3, 0)

        assert session.request.call_count == 3
        assert sleep.call_count == 2

