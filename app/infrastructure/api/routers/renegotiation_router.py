# app/infrastructure/api/routers/renegotiation_router.py
import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from app.application.use_cases.renegotiate_paid_invoices import RenegotiatePaidInvoicesUseCase
from app.domain.dates import format_date, normalize_date
from app.domain.exceptions import EmptyDate, InvalidDateFormat, InvoiceNotFound
from app.domain.models.renegotiation import BatchSummary
from app.infrastructure.api.dependencies import get_use_case
from app.infrastructure.api.schemas import (
    ContractInvoiceItem,
    ContractInvoicesRequest,
    ContractInvoicesResponse,
    ProcessRenegotiationsRequest,
    ProcessRenegotiationsResponse,
    RenegotiatedInvoice,
    RenegotiateInvoiceRequest,
    RenegotiateInvoiceResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Renegociaciones"])


@router.post(
    "/renegociaciones/procesar",
    response_model=ProcessRenegotiationsResponse,
    summary="Procesar los boletos pagados en una fecha"
)
def process_renegotiations(
    request: ProcessRenegotiationsRequest,
    use_case: RenegotiatePaidInvoicesUseCase = Depends(get_use_case)
):
    """
    Busca todos los boletos pagados en la fecha (por defecto, hoy) y renegocia
    los contratos cuyo pago se aplicó al boleto equivocado.
    """
    try:
        payment_date = normalize_date(request.date) if request.date else format_date(date.today())
    except (EmptyDate, InvalidDateFormat) as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"=== Iniciando procesamiento de renegociaciones para {payment_date} ===")
    try:
        results = use_case.process_paid_invoices(payment_date)
    except Exception as e:
        logger.error(f"Error en el procesamiento para {payment_date}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    summary = BatchSummary.from_results(results)
    logger.info(
        f"=== Procesamiento concluido: {summary.processed} procesado(s), "
        f"{summary.renegotiated} renegociado(s), {summary.errors} error(es) ==="
    )
    return ProcessRenegotiationsResponse(
        date=payment_date,
        summary=summary,
        renegotiated=[RenegotiatedInvoice.from_result(r) for r in results if r.success],
        errors=[r for r in results if not r.success]
    )


@router.post(
    "/contratos/boletos",
    response_model=ContractInvoicesResponse,
    summary="Listar los boletos en abierto de un contrato"
)
def list_contract_invoices(
    request: ContractInvoicesRequest,
    use_case: RenegotiatePaidInvoicesUseCase = Depends(get_use_case)
):
    if not request.contract_id and not request.loose_contract_id:
        raise HTTPException(status_code=400, detail="Informe contract_id o loose_contract_id")

    try:
        invoices = use_case.list_contract_invoices(request.contract_id, request.loose_contract_id)
    except Exception as e:
        logger.error(f"Error al listar boletos del contrato: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    if not invoices:
        return ContractInvoicesResponse(
            total=0,
            message="Ningún boleto en abierto encontrado para este contrato"
        )

    return ContractInvoicesResponse(
        total=len(invoices),
        invoices=[
            ContractInvoiceItem(id=inv.id, due_date=inv.due_date, amount=inv.amount, status=inv.status)
            for inv in invoices
        ]
    )


@router.post(
    "/renegociaciones/boleto",
    response_model=RenegotiateInvoiceResponse,
    summary="Renegociar manualmente un boleto"
)
def renegotiate_invoice(
    request: RenegotiateInvoiceRequest,
    use_case: RenegotiatePaidInvoicesUseCase = Depends(get_use_case)
):
    try:
        new_due_date = normalize_date(request.new_due_date)
    except (EmptyDate, InvalidDateFormat) as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"=== Renegociando boleto {request.invoice_id} para {new_due_date} ===")
    try:
        outcome = use_case.renegotiate_invoice(request.invoice_id, new_due_date)
    except InvoiceNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error al renegociar el boleto {request.invoice_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    return RenegotiateInvoiceResponse(
        message="Boleto renegociado con éxito",
        renegotiation_id=outcome.renegotiation_id,
        replacement_invoice_id=outcome.replacement_invoice_id,
        interest_and_penalty=outcome.interest_and_penalty,
        document=outcome.document
    )
