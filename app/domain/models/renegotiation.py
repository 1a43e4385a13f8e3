# app/domain/models/renegotiation.py
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.domain.models.invoice import Invoice, STATUS_OPEN
from app.domain.money import ZERO_AMOUNT


class ScenarioKind(str, Enum):
    # Pagó un boleto del mes vigente teniendo otro vencido anterior
    PAID_CURRENT_MONTH = "PAID_CURRENT_MONTH"
    # Pagó un boleto posterior teniendo uno anterior en abierto
    PAID_LATER_INVOICE = "PAID_LATER_INVOICE"


class RenegotiationScenario(BaseModel):
    """Veredicto de la clasificación de un boleto pagado. No se persiste."""
    required: bool
    kind: Optional[ScenarioKind] = None
    target_invoice: Optional[Invoice] = None
    new_due_date: Optional[str] = None
    description: Optional[str] = None
    reason: Optional[str] = None


class RenegotiationDraft(BaseModel):
    """
    Conjunto completo de campos del asistente de renegociación (fn_renegociacao_wiz).
    La API no combina actualizaciones parciales: cada escritura reenvía todo.
    """
    branch_id: str = Field(alias="id_filial")
    account_id: str = Field(alias="id_conta")
    customer_id: str = Field(alias="id_cliente")
    issue_date: str = Field(alias="data_emissao")
    forecast: str = Field(default="S", alias="previsao")
    collection_portfolio_id: str = Field(alias="id_carteira_cobranca")
    payment_condition_id: str = Field(alias="id_condicao_pagamento")
    seller: str = Field(default="", alias="vendedor_renegociacao")
    contract: str = Field(alias="contrato_renegociacao")
    due_date: str = Field(alias="data_vencimento")
    parcel_amount: str = Field(alias="valor_parcelas")
    additions_amount: str = Field(default=ZERO_AMOUNT, alias="valor_acrescimos")
    discounts_amount: str = Field(default=ZERO_AMOUNT, alias="valor_descontos")
    total_amount: str = Field(alias="valor_total")
    renegotiated_amount: str = Field(alias="valor_renegociado")
    interest_and_penalty: str = Field(default="", alias="acre_juros_multa")
    total_payable: str = Field(alias="valor_total_pagar")
    status: str = Field(default=STATUS_OPEN)
    finalized_on: str = Field(default="", alias="data_finalizada")
    finalize: str = Field(default="N", alias="finalizar")

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class RenegotiationStarted(BaseModel):
    renegotiation_id: int = Field(alias="id_renegociacao")
    message: str = ""
    type: str = ""

    model_config = ConfigDict(populate_by_name=True, extra='allow')


class InterestAndPenalty(BaseModel):
    total_fine_and_fees: str = Field(default="", alias="totalFineAndFess")
    expiration_date: str = Field(default="", alias="dateExpiration")
    message: str = ""
    type: str = ""

    model_config = ConfigDict(populate_by_name=True, extra='allow')


class RenegotiationOutcome(BaseModel):
    renegotiation_id: int
    replacement_invoice_id: str
    interest_and_penalty: str = ZERO_AMOUNT
    document: Any = None


class BatchResult(BaseModel):
    """
    Una entrada por boleto pagado procesado: éxito (con los datos de la
    renegociación) o falla (con el mensaje de error tal cual).
    """
    success: bool
    paid_invoice_id: str
    scenario: Optional[ScenarioKind] = None
    renegotiated_invoice_id: Optional[str] = None
    new_due_date: Optional[str] = None
    contract_id: Optional[str] = None
    loose_contract_id: Optional[str] = None
    renegotiation_id: Optional[int] = None
    replacement_invoice_id: Optional[str] = None
    interest_and_penalty: Optional[str] = None
    document: Any = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, paid_invoice_id: str, error: str) -> "BatchResult":
        return cls(success=False, paid_invoice_id=paid_invoice_id, error=error)


class BatchSummary(BaseModel):
    processed: int = 0
    renegotiated: int = 0
    errors: int = 0

    @classmethod
    def from_results(cls, results: List[BatchResult]) -> "BatchSummary":
        renegotiated = sum(1 for r in results if r.success)
        return cls(
            processed=len(results),
            renegotiated=renegotiated,
            errors=len(results) - renegotiated
        )
