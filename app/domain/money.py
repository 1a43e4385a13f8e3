# app/domain/money.py
"""
Aritmética de montos en formato brasileño ("1234,56").

Los montos se mantienen como strings en todo el flujo porque así los
exige la API remota; aquí solo se hace la conversión explícita ida y vuelta.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

ZERO_AMOUNT = "0,00"
_CENTS = Decimal("0.01")


def parse_brl_amount(value: str) -> Decimal:
    """
    Con coma presente, la coma es el separador decimal y los puntos son de miles.
    Sin coma, el punto (si existe) es el separador decimal: "100.00" == 100.
    """
    if value is None or not str(value).strip():
        return Decimal("0")

    cleaned = str(value).strip()
    if "," in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".")

    try:
        result = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Monto inválido: {value}")

    if not result.is_finite():
        raise ValueError(f"Monto inválido: {value}")
    return result


def format_brl_amount(value: Decimal) -> str:
    return str(value.quantize(_CENTS, rounding=ROUND_HALF_UP)).replace(".", ",")


def add_brl_amounts(first: str, second: str) -> str:
    return format_brl_amount(parse_brl_amount(first) + parse_brl_amount(second))


def has_amount(value: str) -> bool:
    """True si el monto viene informado y es distinto de "0,00"."""
    return bool(value) and value != ZERO_AMOUNT
