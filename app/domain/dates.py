# app/domain/dates.py
"""
Contrato de fechas de la API de facturación.

En el cable las fechas viajan siempre como DD/MM/YYYY. El IXC a veces
devuelve YYYY-MM-DD (con o sin hora), por lo que todo lo que se compara
o se reenvía pasa antes por `normalize_date`.
"""
import calendar
import re
from datetime import date

from app.domain.exceptions import EmptyDate, InvalidDateFormat

_BR_DATE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?: .*)?$")


def parse_date(value: str) -> date:
    """Convierte 'DD/MM/YYYY' o 'YYYY-MM-DD[ HH:mm:ss]' en un `date`."""
    if value is None or not value.strip():
        raise EmptyDate()

    cleaned = value.strip()

    match = _BR_DATE.match(cleaned)
    if match:
        day, month, year = match.groups()
    else:
        match = _ISO_DATE.match(cleaned)
        if not match:
            raise InvalidDateFormat(value)
        year, month, day = match.groups()

    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        raise InvalidDateFormat(value)


def format_date(value: date) -> str:
    return f"{value.day:02d}/{value.month:02d}/{value.year}"


def normalize_date(value: str) -> str:
    return format_date(parse_date(value))


def end_of_month(value: date) -> date:
    last_day = calendar.monthrange(value.year, value.month)[1]
    return value.replace(day=last_day)
