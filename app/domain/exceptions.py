# app/domain/exceptions.py
from typing import Optional


class BillingError(Exception):
    """Error base del dominio de renegociación de boletos."""
    pass


class EmptyDate(BillingError, ValueError):
    def __init__(self):
        super().__init__("Fecha vacía")


class InvalidDateFormat(BillingError, ValueError):
    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Formato de fecha inválido: {value}")


class RemoteCallFailed(BillingError):
    """
    Cualquier falla de transporte o error reportado por la API remota.
    `operation` identifica la llamada (p. ej. 'begin_renegotiation').
    """
    def __init__(self, operation: str, cause: object):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Falla en la llamada remota '{operation}': {cause}")


class ReplacementNotFound(BillingError):
    def __init__(self, renegotiation_id: int, attempts: int):
        self.renegotiation_id = renegotiation_id
        self.attempts = attempts
        super().__init__(
            f"El boleto de la renegociación {renegotiation_id} no fue encontrado "
            f"después de {attempts} intentos"
        )


class NoReplacementInvoice(BillingError):
    def __init__(self, renegotiation_id: Optional[int] = None):
        self.renegotiation_id = renegotiation_id
        super().__init__("Ningún boleto encontrado en el contrato después de la renegociación")


class InvoiceNotFound(BillingError):
    def __init__(self, invoice_id: str):
        self.invoice_id = invoice_id
        super().__init__(f"Boleto {invoice_id} no encontrado")
