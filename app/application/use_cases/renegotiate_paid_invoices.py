# app/application/use_cases/renegotiate_paid_invoices.py
import logging
from datetime import date
from typing import Callable, List, Optional, Union

from app.domain.dates import format_date
from app.domain.exceptions import (
    InvoiceNotFound,
    NoReplacementInvoice,
    RemoteCallFailed,
    ReplacementNotFound,
)
from app.domain.models.invoice import Invoice
from app.domain.models.renegotiation import (
    BatchResult,
    RenegotiationDraft,
    RenegotiationOutcome,
    RenegotiationScenario,
)
from app.domain.money import ZERO_AMOUNT, add_brl_amounts, has_amount
from app.domain.ports.billing_gateway import BillingGateway
from app.domain.services.scenario import identify_scenario

logger = logging.getLogger(__name__)


class RenegotiatePaidInvoicesUseCase:
    """
    Detecta pagos aplicados al boleto equivocado y corrige el contrato
    renegociando el boleto en abierto que debía pagarse primero.

    Las renegociaciones se ejecutan una a la vez: cada una modifica un
    registro remoto y las escrituras del IXC no son idempotentes.
    """
    def __init__(
        self,
        billing_gateway: BillingGateway,
        today: Callable[[], date] = date.today
    ):
        self.billing_gateway = billing_gateway
        self._today = today

    def identify_scenario(self, paid_invoice: Invoice, contract_invoices: List[Invoice]) -> RenegotiationScenario:
        return identify_scenario(paid_invoice, contract_invoices, today=self._today())

    def process_paid_invoices(self, payment_date: Union[date, str]) -> List[BatchResult]:
        """
        Procesa todos los boletos pagados en la fecha. La falla de un boleto
        queda registrada en el resultado y no interrumpe a los demás.
        """
        logger.info(f"Iniciando procesamiento de boletos pagados el {payment_date}...")
        paid_invoices = self.billing_gateway.find_invoices_paid_on(payment_date)
        logger.info(f"Encontrados {len(paid_invoices)} boleto(s) pagado(s).")

        results: List[BatchResult] = []
        for paid_invoice in paid_invoices:
            logger.info(
                f"[{paid_invoice.id}] Analizando boleto pagado. "
                f"Vencimiento: {paid_invoice.due_date} - Valor: R$ {paid_invoice.amount}"
            )
            try:
                result = self.analyze_and_correct(paid_invoice)
            except Exception as e:
                logger.error(f"[{paid_invoice.id}] Error al procesar el boleto: {e}", exc_info=True)
                results.append(BatchResult.failure(paid_invoice.id, str(e)))
                continue

            if result is not None:
                results.append(result)

        return results

    def analyze_and_correct(self, paid_invoice: Invoice) -> Optional[BatchResult]:
        """Analiza un boleto pagado y, si corresponde, ejecuta la renegociación."""
        if not paid_invoice.has_contract:
            logger.warning(f"[{paid_invoice.id}] El boleto no tiene contrato vinculado.")
            return None

        contract_invoices = self.billing_gateway.find_open_invoices_for_contract(
            paid_invoice.contract_id,
            paid_invoice.loose_contract_id
        )
        if not contract_invoices:
            logger.info(f"[{paid_invoice.id}] Ningún boleto en abierto en el contrato.")
            return None

        logger.info(f"[{paid_invoice.id}] {len(contract_invoices)} boleto(s) en abierto en el contrato.")

        scenario = self.identify_scenario(paid_invoice, contract_invoices)
        if not scenario.required:
            logger.info(f"[{paid_invoice.id}] {scenario.reason}")
            return None

        target = scenario.target_invoice
        logger.info(
            f"[{paid_invoice.id}] RENEGOCIACIÓN NECESARIA. Escenario: {scenario.kind.value}, "
            f"boleto a renegociar: {target.id}, nueva fecha: {scenario.new_due_date}"
        )

        outcome = self.execute_renegotiation(target, scenario.new_due_date)

        return BatchResult(
            success=True,
            paid_invoice_id=paid_invoice.id,
            scenario=scenario.kind,
            renegotiated_invoice_id=target.id,
            new_due_date=scenario.new_due_date,
            contract_id=paid_invoice.contract_id or None,
            loose_contract_id=paid_invoice.loose_contract_id or None,
            renegotiation_id=outcome.renegotiation_id,
            replacement_invoice_id=outcome.replacement_invoice_id,
            interest_and_penalty=outcome.interest_and_penalty,
            document=outcome.document
        )

    def execute_renegotiation(self, target_invoice: Invoice, new_due_date: str) -> RenegotiationOutcome:
        """Ejecuta el flujo completo del asistente de renegociación del IXC."""
        gateway = self.billing_gateway

        # --- PASO 1: Iniciar la renegociación ---
        logger.info(f"[{target_invoice.id}] [1/7] Iniciando renegociación...")
        renegotiation_id = gateway.begin_renegotiation([target_invoice.id]).renegotiation_id

        # --- PASO 2: Guardar el borrador ---
        logger.info(f"[{target_invoice.id}] [2/7] Preparando datos de la renegociación {renegotiation_id}...")
        draft = RenegotiationDraft(
            branch_id=target_invoice.branch_id,
            account_id=target_invoice.account_id,
            customer_id=target_invoice.customer_id,
            issue_date=format_date(self._today()),
            collection_portfolio_id=target_invoice.collection_portfolio_id,
            payment_condition_id=target_invoice.payment_condition_id,
            contract=target_invoice.contract_reference,
            due_date=new_due_date,
            parcel_amount=target_invoice.amount,
            total_amount=target_invoice.amount,
            renegotiated_amount=target_invoice.amount,
            total_payable=target_invoice.amount
        )
        gateway.update_renegotiation(renegotiation_id, draft)

        # --- PASO 3: Intereses y multa ---
        logger.info(f"[{target_invoice.id}] [3/7] Calculando intereses y multa...")
        fine = gateway.compute_interest_and_penalty(
            target_invoice.collection_portfolio_id,
            target_invoice.payment_condition_id,
            renegotiation_id
        ).total_fine_and_fees

        # --- PASO 4: Sumar intereses/multa al total ---
        if has_amount(fine):
            total_with_fine = add_brl_amounts(target_invoice.amount, fine)
            logger.info(f"[{target_invoice.id}] [4/7] Intereses/multa aplicados: R$ {fine}. Total: R$ {total_with_fine}")
            draft = draft.model_copy(update={
                "interest_and_penalty": fine,
                "parcel_amount": total_with_fine,
                "total_amount": total_with_fine,
                "renegotiated_amount": total_with_fine,
                "total_payable": total_with_fine
            })
        else:
            logger.info(f"[{target_invoice.id}] [4/7] Sin intereses/multa a aplicar.")

        # --- PASO 5: Finalizar ---
        logger.info(f"[{target_invoice.id}] [5/7] Finalizando renegociación {renegotiation_id}...")
        gateway.finalize_renegotiation(renegotiation_id, draft)

        # --- PASO 6: Boleto generado + corrección del vencimiento ---
        logger.info(f"[{target_invoice.id}] [6/7] Buscando boleto generado y corrigiendo vencimiento...")
        replacement = self._resolve_replacement_invoice(target_invoice, renegotiation_id)
        gateway.correct_due_date(replacement.id, target_invoice, new_due_date)

        # --- PASO 7: Documento ---
        logger.info(f"[{target_invoice.id}] [7/7] Generando boleto en PDF...")
        document = gateway.generate_document(replacement.id)

        logger.info(
            f"[{target_invoice.id}] RENEGOCIACIÓN CONCLUIDA. ID: {renegotiation_id}, "
            f"boleto nuevo: {replacement.id}, nueva fecha: {new_due_date}, "
            f"total: R$ {draft.total_payable}"
        )

        return RenegotiationOutcome(
            renegotiation_id=renegotiation_id,
            replacement_invoice_id=replacement.id,
            interest_and_penalty=fine if has_amount(fine) else ZERO_AMOUNT,
            document=document
        )

    def _resolve_replacement_invoice(self, target_invoice: Invoice, renegotiation_id: int) -> Invoice:
        try:
            return self.billing_gateway.find_replacement_invoice(renegotiation_id)
        except (ReplacementNotFound, RemoteCallFailed) as e:
            # Plan B: el boleto más reciente del contrato
            logger.warning(f"[{renegotiation_id}] {e}. Buscando el último boleto del contrato...")

        contract_invoices = self.billing_gateway.find_open_invoices_for_contract(
            target_invoice.contract_id,
            target_invoice.loose_contract_id
        )
        if not contract_invoices:
            raise NoReplacementInvoice(renegotiation_id)

        replacement = sorted(contract_invoices, key=lambda inv: int(inv.id), reverse=True)[0]
        logger.info(f"[{renegotiation_id}] Boleto encontrado por el método alternativo: {replacement.id}")
        return replacement

    def renegotiate_invoice(self, invoice_id: str, new_due_date: str) -> RenegotiationOutcome:
        """Renegociación manual de un boleto puntual."""
        invoice = self.billing_gateway.find_invoice(invoice_id)
        if invoice is None:
            raise InvoiceNotFound(invoice_id)
        return self.execute_renegotiation(invoice, new_due_date)

    def list_contract_invoices(
        self,
        contract_id: Optional[str] = None,
        loose_contract_id: Optional[str] = None
    ) -> List[Invoice]:
        return self.billing_gateway.find_open_invoices_for_contract(contract_id, loose_contract_id)
