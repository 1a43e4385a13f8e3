# app/domain/models/invoice.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional

# Código de estado del IXC para un boleto en abierto
STATUS_OPEN = "A"


class Invoice(BaseModel):
    """
    Representa un boleto (registro de fn_areceber) tal como lo devuelve el IXC.
    Los alias son los nombres de columna del webservice; en el código se usan
    los nombres en inglés.
    """
    # --- Identidad y vínculo con el contrato ---
    id: str
    contract_id: Optional[str] = Field(default=None, alias="id_contrato")
    loose_contract_id: Optional[str] = Field(default=None, alias="id_contrato_avulso")

    # --- Campos de facturación ---
    customer_id: str = Field(default="", alias="id_cliente")
    branch_id: str = Field(default="", alias="id_filial")
    account_id: str = Field(default="", alias="id_conta")
    collection_portfolio_id: str = Field(default="", alias="id_carteira_cobranca")
    payment_condition_id: str = Field(default="", alias="id_condicao_pagamento")
    due_date: str = Field(alias="data_vencimento")
    issue_date: str = Field(alias="data_emissao")
    amount: str = Field(alias="valor")
    status: str
    payment_date: Optional[str] = Field(default=None, alias="pagamento_data")
    receipt_method: str = Field(default="", alias="tipo_recebimento")

    # --- Campos que la llamada de corrección exige tal cual ---
    protested_flag: str = Field(default="", alias="titulo_protestado")
    batch_change_id: str = Field(default="", alias="id_remessa_alteracao")
    pix_txid: str = Field(default="", alias="pix_txid")

    forecast: Optional[str] = Field(default=None, alias="previsao")
    document: Optional[str] = Field(default=None, alias="documento")
    bank_slip_number: Optional[str] = Field(default=None, alias="nn_boleto")

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        extra='allow'
    )

    @property
    def is_open(self) -> bool:
        return self.status == STATUS_OPEN

    @property
    def contract_reference(self) -> str:
        """Contrato al que pertenece el boleto (normal o avulso), o '' si no tiene."""
        return self.contract_id or self.loose_contract_id or ""

    @property
    def has_contract(self) -> bool:
        return bool(self.contract_id or self.loose_contract_id)
