# app/infrastructure/external/ixc_adapter.py
import base64
import json
import logging
import time
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Union

import requests

import config
from app.domain.dates import format_date, normalize_date
from app.domain.exceptions import RemoteCallFailed, ReplacementNotFound
from app.domain.models.invoice import Invoice, STATUS_OPEN
from app.domain.models.renegotiation import (
    InterestAndPenalty,
    RenegotiationDraft,
    RenegotiationStarted,
)
from app.domain.ports.billing_gateway import BillingGateway

logger = logging.getLogger(__name__)


class IxcBillingAdapter(BillingGateway):
    """
    Adaptador para el webservice del IXCSoft: consulta de boletos (fn_areceber),
    asistente de renegociación, cálculo de intereses/multa y generación del boleto.
    """
    LIST_PAGE_SIZE = "1000"
    RECENT_PAGE_SIZE = "20"

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        today: Callable[[], date] = date.today
    ):
        self.base_url = (base_url or config.IXC_BASE_URL or "").rstrip("/")
        self.token = token or config.IXC_TOKEN
        if not all([self.base_url, self.token]):
            raise ValueError("Faltan variables de entorno para el IXC (IXC_BASE_URL, IXC_TOKEN)")

        self.timeout = timeout or config.IXC_REQUEST_TIMEOUT
        self._sleep = sleep
        self._today = today
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Authorization": self._authorization_header(self.token)
        })

    @staticmethod
    def _authorization_header(token: str) -> str:
        """'usuario:token' se envía como Basic; un header con esquema va tal cual."""
        if token.startswith(("Basic ", "Bearer ")):
            return token
        if ":" in token:
            return "Basic " + base64.b64encode(token.encode("utf-8")).decode("utf-8")
        return token

    # --- Primitivas HTTP ---

    def _request(self, operation: str, method: str, path: str, **kwargs) -> Any:
        """
        Ejecuta una llamada y devuelve el JSON decodificado (o el texto si la
        respuesta no es JSON y `allow_text` es True). Cualquier falla se
        convierte en RemoteCallFailed.
        """
        allow_text = kwargs.pop("allow_text", False)
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            detail = e.response.text if getattr(e, "response", None) is not None else str(e)
            logger.error(f"Error en '{operation}' ({method} {path}): {detail}")
            raise RemoteCallFailed(operation, e) from e

        try:
            data = response.json()
        except ValueError as e:
            if allow_text:
                return response.text
            logger.error(f"Respuesta inválida en '{operation}' (no era JSON válido): {response.text}")
            raise RemoteCallFailed(operation, e) from e

        # El IXC informa errores de negocio con HTTP 200 y type = "error"
        if isinstance(data, dict) and data.get("type") == "error":
            message = data.get("message", "error sin mensaje")
            logger.error(f"El IXC rechazó '{operation}': {message}")
            raise RemoteCallFailed(operation, message)

        return data

    def _list_invoices(self, operation: str, body: Dict[str, str]) -> List[Invoice]:
        data = self._request(
            operation, "POST", "/fn_areceber",
            json=body,
            headers={"ixcsoft": "listar"}
        )
        if data is None:
            return []
        if not isinstance(data, dict):
            raise RemoteCallFailed(operation, f"respuesta inesperada: {data!r}")
        records = data.get("registros") or []
        if not isinstance(records, list):
            raise RemoteCallFailed(operation, f"'registros' inesperado: {records!r}")
        try:
            return [Invoice.model_validate(record) for record in records]
        except ValueError as e:
            raise RemoteCallFailed(operation, e) from e

    def _grid_query(self, filters: List[Dict[str, str]], sortname: str, sortorder: str) -> Dict[str, str]:
        return {
            "qtype": "fn_areceber.id",
            "query": "0",
            "oper": ">",
            "page": "1",
            "rp": self.LIST_PAGE_SIZE,
            "sortname": sortname,
            "sortorder": sortorder,
            "grid_param": json.dumps(filters)
        }

    # --- Consultas ---

    def find_invoices_paid_on(self, payment_date: Union[date, str]) -> List[Invoice]:
        wire_date = format_date(payment_date) if isinstance(payment_date, date) else normalize_date(payment_date)
        body = self._grid_query(
            [{"TB": "fn_areceber.pagamento_data", "OP": "=", "P": wire_date}],
            sortname="fn_areceber.id",
            sortorder="desc"
        )
        invoices = self._list_invoices("find_invoices_paid_on", body)
        logger.info(f"{len(invoices)} boleto(s) pagado(s) el {wire_date}.")
        return invoices

    def find_open_invoices_for_contract(
        self,
        contract_id: Optional[str] = None,
        loose_contract_id: Optional[str] = None
    ) -> List[Invoice]:
        if not contract_id and not loose_contract_id:
            raise ValueError("Se requiere contract_id o loose_contract_id")

        filters = []
        if contract_id:
            filters.append({"TB": "fn_areceber.id_contrato", "OP": "=", "P": contract_id})
        if loose_contract_id:
            filters.append({"TB": "fn_areceber.id_contrato_avulso", "OP": "=", "P": loose_contract_id})
        filters.append({"TB": "fn_areceber.status", "OP": "=", "P": STATUS_OPEN})

        body = self._grid_query(filters, sortname="fn_areceber.data_vencimento", sortorder="asc")
        return self._list_invoices("find_open_invoices_for_contract", body)

    def find_invoice(self, invoice_id: str) -> Optional[Invoice]:
        body = self._grid_query(
            [{"TB": "fn_areceber.id", "OP": "=", "P": str(invoice_id)}],
            sortname="fn_areceber.id",
            sortorder="desc"
        )
        invoices = self._list_invoices("find_invoice", body)
        return invoices[0] if invoices else None

    # --- Asistente de renegociación ---

    def begin_renegotiation(self, invoice_ids: List[str]) -> RenegotiationStarted:
        data = self._request(
            "begin_renegotiation", "POST", "/renegociar_selecionados",
            json={"get_id": ",".join(invoice_ids)}
        )
        try:
            started = RenegotiationStarted.model_validate(data)
        except ValueError as e:
            raise RemoteCallFailed("begin_renegotiation", e) from e
        logger.info(f"Renegociación iniciada: ID {started.renegotiation_id}")
        return started

    def _wizard_payload(self, draft: RenegotiationDraft, finalize: bool) -> dict:
        payload = draft.to_payload()
        payload["data_emissao"] = normalize_date(draft.issue_date)
        payload["data_vencimento"] = normalize_date(draft.due_date)
        payload["status"] = draft.status or STATUS_OPEN
        if finalize:
            payload["finalizar"] = "S"
            payload["data_finalizada"] = format_date(self._today())
        else:
            payload["finalizar"] = "N"
            payload["data_finalizada"] = ""
        return payload

    def update_renegotiation(self, renegotiation_id: int, draft: RenegotiationDraft) -> dict:
        payload = self._wizard_payload(draft, finalize=False)
        logger.info(f"[{renegotiation_id}] Actualizando renegociación: {payload}")
        data = self._request(
            "update_renegotiation", "PUT", f"/fn_renegociacao_wiz/{renegotiation_id}",
            json=payload
        )
        logger.info(f"[{renegotiation_id}] Renegociación actualizada.")
        return data

    def compute_interest_and_penalty(
        self,
        collection_portfolio_id: str,
        payment_condition_id: str,
        renegotiation_id: int
    ) -> InterestAndPenalty:
        data = self._request(
            "compute_interest_and_penalty", "POST", "/calcula_juros_multa",
            json={
                "id_carteira_cobranca": collection_portfolio_id,
                "id_condicao_pagamento": payment_condition_id,
                "id": str(renegotiation_id)
            }
        )
        try:
            result = InterestAndPenalty.model_validate(data or {})
        except ValueError as e:
            raise RemoteCallFailed("compute_interest_and_penalty", e) from e
        logger.info(f"[{renegotiation_id}] Intereses/multa calculados: {result.total_fine_and_fees}")
        return result

    def finalize_renegotiation(self, renegotiation_id: int, draft: RenegotiationDraft) -> dict:
        payload = self._wizard_payload(draft, finalize=True)
        logger.info(
            f"[{renegotiation_id}] Finalizando con data_finalizada={payload['data_finalizada']}, "
            f"data_vencimento={payload['data_vencimento']}, valor_total_pagar={payload['valor_total_pagar']}"
        )
        data = self._request(
            "finalize_renegotiation", "PUT", f"/fn_renegociacao_wiz/{renegotiation_id}",
            json=payload
        )
        logger.info(f"[{renegotiation_id}] Renegociación finalizada.")
        return data

    def _list_recent_open_invoices(self) -> List[Invoice]:
        return self._list_invoices("find_replacement_invoice", {
            "qtype": "fn_areceber.status",
            "query": STATUS_OPEN,
            "oper": "=",
            "page": "1",
            "rp": self.RECENT_PAGE_SIZE,
            "sortname": "fn_areceber.id",
            "sortorder": "desc"
        })

    def find_replacement_invoice(
        self,
        renegotiation_id: int,
        attempts: int = config.REPLACEMENT_POLL_ATTEMPTS,
        delay_ms: int = config.REPLACEMENT_POLL_DELAY_MS
    ) -> Invoice:
        """
        El IXC crea el boleto nuevo unos instantes después de finalizar, así que
        se consulta hasta `attempts` veces esperando `delay_ms` entre intentos.
        """
        logger.info(f"[{renegotiation_id}] Buscando el boleto generado por la renegociación...")

        for attempt in range(1, attempts + 1):
            try:
                invoice = next((inv for inv in self._list_recent_open_invoices() if inv.is_open), None)
                if invoice is not None:
                    logger.info(f"[{renegotiation_id}] Boleto encontrado: {invoice.id} (intento {attempt}/{attempts})")
                    return invoice
                logger.info(f"[{renegotiation_id}] Esperando la creación del boleto... ({attempt}/{attempts})")
            except RemoteCallFailed as e:
                logger.warning(f"[{renegotiation_id}] Intento {attempt} falló: {e}")
                if attempt == attempts:
                    raise

            if attempt < attempts:
                self._sleep(delay_ms / 1000)

        raise ReplacementNotFound(renegotiation_id, attempts)

    # --- Corrección y documento ---

    def correct_due_date(self, invoice_id: str, reference_invoice: Invoice, new_due_date: str) -> Any:
        wire_due_date = normalize_date(new_due_date)
        data = self._request(
            "correct_due_date", "PUT", f"/fn_areceber_altera/{invoice_id}",
            json={
                "documento": "",
                "data_emissao": normalize_date(reference_invoice.issue_date),
                "data_vencimento": wire_due_date,
                "id_carteira_cobranca": reference_invoice.collection_portfolio_id,
                "obs": f"Boleto de vencimento original {normalize_date(reference_invoice.due_date)}",
                "tipo_recebimento": "Gateway",
                "status": STATUS_OPEN,
                "aguardando_confirmacao_pagamento": "",
                "nn_boleto": "",
                "pix_txid": "",
                "libera_periodo": "S",
                "liberado": "S",
                "titulo_protestado": "",
                "id_remessa_alteracao": "",
                "motivo_alteracao": ""
            }
        )
        logger.info(f"[{invoice_id}] Vencimiento corregido a {wire_due_date}")
        return data

    def generate_document(self, invoice_id: str) -> Any:
        data = self._request(
            "generate_document", "POST", "/get_boleto",
            json={
                "boletos": invoice_id,
                "juro": "",
                "multa": "",
                "atualiza_boleto": "",
                "tipo_boleto": "arquivo",
                "base64": "S",
                "layout_impressao": ""
            },
            allow_text=True
        )
        logger.info(f"[{invoice_id}] Boleto generado en base64.")
        return data
