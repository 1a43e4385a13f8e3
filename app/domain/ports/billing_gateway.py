# app/domain/ports/billing_gateway.py
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, List, Optional, Union

from app.domain.models.invoice import Invoice
from app.domain.models.renegotiation import (
    InterestAndPenalty,
    RenegotiationDraft,
    RenegotiationStarted,
)


class BillingGateway(ABC):
    """
    Puerto hacia el sistema de facturación remoto. Cada operación corresponde
    a una única llamada HTTP, salvo `find_replacement_invoice`, que hace polling.
    """

    @abstractmethod
    def find_invoices_paid_on(self, payment_date: Union[date, str]) -> List[Invoice]:
        """Boletos pagados en la fecha indicada. Una lista vacía no es un error."""
        pass

    @abstractmethod
    def find_open_invoices_for_contract(
        self,
        contract_id: Optional[str] = None,
        loose_contract_id: Optional[str] = None
    ) -> List[Invoice]:
        """Boletos en abierto del contrato, ordenados por vencimiento ascendente."""
        pass

    @abstractmethod
    def find_invoice(self, invoice_id: str) -> Optional[Invoice]:
        pass

    @abstractmethod
    def begin_renegotiation(self, invoice_ids: List[str]) -> RenegotiationStarted:
        """Paso 1 del asistente de renegociación."""
        pass

    @abstractmethod
    def update_renegotiation(self, renegotiation_id: int, draft: RenegotiationDraft) -> dict:
        """Paso 2: guardado intermedio (finalizar = N)."""
        pass

    @abstractmethod
    def compute_interest_and_penalty(
        self,
        collection_portfolio_id: str,
        payment_condition_id: str,
        renegotiation_id: int
    ) -> InterestAndPenalty:
        pass

    @abstractmethod
    def finalize_renegotiation(self, renegotiation_id: int, draft: RenegotiationDraft) -> dict:
        """Reenvía TODOS los campos con finalizar = S y la fecha de hoy."""
        pass

    @abstractmethod
    def find_replacement_invoice(
        self,
        renegotiation_id: int,
        attempts: int = 8,
        delay_ms: int = 2000
    ) -> Invoice:
        pass

    @abstractmethod
    def correct_due_date(self, invoice_id: str, reference_invoice: Invoice, new_due_date: str) -> Any:
        """Corrige el vencimiento del boleto generado (el asistente no lo respeta)."""
        pass

    @abstractmethod
    def generate_document(self, invoice_id: str) -> Any:
        pass
