# app/infrastructure/api/schemas.py
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from app.domain.models.renegotiation import BatchResult, BatchSummary


class ProcessRenegotiationsRequest(BaseModel):
    date: Optional[str] = Field(default=None, description="Fecha de pago DD/MM/YYYY. Por defecto, hoy.")


class ContractInvoicesRequest(BaseModel):
    contract_id: Optional[str] = None
    loose_contract_id: Optional[str] = None


class RenegotiateInvoiceRequest(BaseModel):
    invoice_id: str
    new_due_date: str = Field(..., description="Nuevo vencimiento DD/MM/YYYY.")


class RenegotiatedInvoice(BaseModel):
    invoice_id: Optional[str] = None
    renegotiation_id: Optional[int] = None
    contract_id: Optional[str] = None
    paid_invoice_id: str
    scenario: Optional[str] = None
    new_due_date: Optional[str] = None
    interest_and_penalty: Optional[str] = None
    replacement_invoice_id: Optional[str] = None

    @classmethod
    def from_result(cls, result: BatchResult) -> "RenegotiatedInvoice":
        return cls(
            invoice_id=result.renegotiated_invoice_id,
            renegotiation_id=result.renegotiation_id,
            contract_id=result.contract_id or result.loose_contract_id,
            paid_invoice_id=result.paid_invoice_id,
            scenario=result.scenario.value if result.scenario else None,
            new_due_date=result.new_due_date,
            interest_and_penalty=result.interest_and_penalty,
            replacement_invoice_id=result.replacement_invoice_id
        )


class ProcessRenegotiationsResponse(BaseModel):
    success: bool = True
    date: str
    summary: BatchSummary
    renegotiated: List[RenegotiatedInvoice] = []
    errors: List[BatchResult] = []


class ContractInvoiceItem(BaseModel):
    id: str
    due_date: str
    amount: str
    status: str


class ContractInvoicesResponse(BaseModel):
    success: bool = True
    total: int
    invoices: List[ContractInvoiceItem] = []
    message: Optional[str] = None


class RenegotiateInvoiceResponse(BaseModel):
    success: bool = True
    message: str
    renegotiation_id: int
    replacement_invoice_id: str
    interest_and_penalty: str
    document: Any = None
