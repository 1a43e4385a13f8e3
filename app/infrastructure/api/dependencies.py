# app/infrastructure/api/dependencies.py
from functools import lru_cache

from fastapi import Depends

from app.application.use_cases.renegotiate_paid_invoices import RenegotiatePaidInvoicesUseCase
from app.domain.ports.billing_gateway import BillingGateway
from app.infrastructure.external.ixc_adapter import IxcBillingAdapter


@lru_cache
def get_billing_gateway() -> BillingGateway:
    """Una sola instancia del adaptador (y de su requests.Session) por proceso."""
    return IxcBillingAdapter()


def get_use_case(
    billing_gateway: BillingGateway = Depends(get_billing_gateway)
) -> RenegotiatePaidInvoicesUseCase:
    return RenegotiatePaidInvoicesUseCase(billing_gateway)
