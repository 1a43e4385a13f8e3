# app/domain/services/scenario.py
"""
Clasificación de un boleto pagado frente a los demás boletos en abierto
de su contrato.

Reglas, en este orden de precedencia:

1. PAID_CURRENT_MONTH: el boleto pagado vence en el mes/año vigente y existe
   al menos un boleto en abierto con vencimiento anterior. Se renegocia el
   vencido más antiguo para el último día del mes del boleto PAGADO.
2. PAID_LATER_INVOICE: solo si la regla 1 no aplica. El boleto pagado vence
   después del boleto en abierto más antiguo; ese boleto se renegocia para
   el vencimiento del boleto pagado.

En cualquier otro caso el pago fue correcto.
"""
import logging
from datetime import date
from typing import List, Optional

from app.domain.dates import end_of_month, format_date, parse_date
from app.domain.models.invoice import Invoice
from app.domain.models.renegotiation import RenegotiationScenario, ScenarioKind

logger = logging.getLogger(__name__)

REASON_NO_OPEN_INVOICE = "no other open invoice"
REASON_PAYMENT_CORRECT = "payment correct, no renegotiation needed"


def identify_scenario(
    paid_invoice: Invoice,
    contract_invoices: List[Invoice],
    today: Optional[date] = None
) -> RenegotiationScenario:
    today = today or date.today()
    paid_due = parse_date(paid_invoice.due_date)

    open_invoices = sorted(
        (inv for inv in contract_invoices if inv.is_open and inv.id != paid_invoice.id),
        key=lambda inv: parse_date(inv.due_date)
    )

    if not open_invoices:
        return RenegotiationScenario(required=False, reason=REASON_NO_OPEN_INVOICE)

    logger.info(f"[{paid_invoice.id}] Comparando vencimientos. Pagado: {paid_invoice.due_date}")
    for inv in open_invoices:
        logger.info(f"[{paid_invoice.id}]   En abierto: {inv.id} - vencimiento {inv.due_date}")

    # --- REGLA 1: pago del mes vigente con vencido anterior ---
    paid_in_current_month = (paid_due.year, paid_due.month) == (today.year, today.month)
    overdue = [inv for inv in open_invoices if parse_date(inv.due_date) < paid_due]

    if paid_in_current_month and overdue:
        target = overdue[0]
        # Último día del mes del boleto pagado, no del mes actual
        new_due_date = format_date(end_of_month(paid_due))
        logger.info(
            f"[{paid_invoice.id}] Escenario {ScenarioKind.PAID_CURRENT_MONTH.value}: "
            f"vencido anterior {target.id} ({target.due_date}), nueva fecha {new_due_date}"
        )
        return RenegotiationScenario(
            required=True,
            kind=ScenarioKind.PAID_CURRENT_MONTH,
            target_invoice=target,
            new_due_date=new_due_date,
            description=(
                f"Customer paid the invoice due {paid_invoice.due_date} while invoice "
                f"{target.id} due {target.due_date} was overdue. Renegotiating to {new_due_date}"
            )
        )

    # --- REGLA 2: pagó un boleto posterior al más antiguo en abierto ---
    earliest = open_invoices[0]
    if paid_due > parse_date(earliest.due_date):
        logger.info(
            f"[{paid_invoice.id}] Escenario {ScenarioKind.PAID_LATER_INVOICE.value}: "
            f"en abierto anterior {earliest.id} ({earliest.due_date})"
        )
        return RenegotiationScenario(
            required=True,
            kind=ScenarioKind.PAID_LATER_INVOICE,
            target_invoice=earliest,
            new_due_date=paid_invoice.due_date,
            description=(
                f"Customer paid the invoice due {paid_invoice.due_date} while invoice "
                f"{earliest.id} due {earliest.due_date} was still open"
            )
        )

    return RenegotiationScenario(required=False, reason=REASON_PAYMENT_CORRECT)
