# tests/conftest.py
from datetime import date
from typing import Dict, List, Optional

import pytest

from app.domain.models.invoice import Invoice
from app.domain.models.renegotiation import InterestAndPenalty, RenegotiationStarted
from app.domain.ports.billing_gateway import BillingGateway


def make_invoice(**overrides) -> Invoice:
    """Boleto de prueba con todos los campos obligatorios (nombres del IXC)."""
    data = {
        "id": "1",
        "id_cliente": "1",
        "id_contrato": "10",
        "id_filial": "1",
        "id_conta": "1",
        "id_carteira_cobranca": "1",
        "id_condicao_pagamento": "1",
        "data_vencimento": "01/01/2026",
        "data_emissao": "01/12/2025",
        "valor": "100.00",
        "status": "A",
        "tipo_recebimento": "Gateway",
        "pix_txid": "",
        "titulo_protestado": "",
        "id_remessa_alteracao": "",
    }
    data.update(overrides)
    return Invoice.model_validate(data)


class FakeBillingGateway(BillingGateway):
    """Gateway en memoria que registra cada llamada en `calls`."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.paid_invoices: List[Invoice] = []
        self.contract_invoices: Dict[str, List[Invoice]] = {}
        self.contract_errors: Dict[str, Exception] = {}
        self.invoices_by_id: Dict[str, Invoice] = {}
        self.renegotiation_id = 555
        self.fine = "0,00"
        self.replacement: Optional[Invoice] = make_invoice(id="900")
        self.replacement_error: Optional[Exception] = None
        self.document = "JVBERi0xLjQK"

    def find_invoices_paid_on(self, payment_date):
        self.calls.append(("find_invoices_paid_on", payment_date))
        return list(self.paid_invoices)

    def find_open_invoices_for_contract(self, contract_id=None, loose_contract_id=None):
        self.calls.append(("find_open_invoices_for_contract", contract_id, loose_contract_id))
        key = contract_id or loose_contract_id
        if key in self.contract_errors:
            raise self.contract_errors[key]
        return list(self.contract_invoices.get(key, []))

    def find_invoice(self, invoice_id):
        self.calls.append(("find_invoice", invoice_id))
        return self.invoices_by_id.get(invoice_id)

    def begin_renegotiation(self, invoice_ids):
        self.calls.append(("begin_renegotiation", list(invoice_ids)))
        return RenegotiationStarted(renegotiation_id=self.renegotiation_id, message="ok", type="success")

    def update_renegotiation(self, renegotiation_id, draft):
        self.calls.append(("update_renegotiation", renegotiation_id, draft.to_payload()))
        return {"type": "success"}

    def compute_interest_and_penalty(self, collection_portfolio_id, payment_condition_id, renegotiation_id):
        self.calls.append(("compute_interest_and_penalty", collection_portfolio_id, payment_condition_id, renegotiation_id))
        return InterestAndPenalty(total_fine_and_fees=self.fine, expiration_date="31/01/2026")

    def finalize_renegotiation(self, renegotiation_id, draft):
        self.calls.append(("finalize_renegotiation", renegotiation_id, draft.to_payload()))
        return {"type": "success"}

    def find_replacement_invoice(self, renegotiation_id, attempts=8, delay_ms=2000):
        self.calls.append(("find_replacement_invoice", renegotiation_id))
        if self.replacement_error is not None:
            raise self.replacement_error
        return self.replacement

    def correct_due_date(self, invoice_id, reference_invoice, new_due_date):
        self.calls.append(("correct_due_date", invoice_id, reference_invoice.id, new_due_date))
        return {"type": "success"}

    def generate_document(self, invoice_id):
        self.calls.append(("generate_document", invoice_id))
        return self.document

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]

    def last_call(self, name: str) -> tuple:
        return [call for call in self.calls if call[0] == name][-1]


@pytest.fixture(name="make_invoice")
def make_invoice_fixture():
    return make_invoice


@pytest.fixture
def gateway() -> FakeBillingGateway:
    return FakeBillingGateway()


@pytest.fixture
def today() -> date:
    return date(2026, 1, 15)
