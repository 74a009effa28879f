"""
Top-Up Reconciler - Amount Parsing

RULE: No floats for on-chain amounts.

Chain REST endpoints serialize coin amounts as decimal strings
("500", "123.45", "0"). They are parsed to Decimal here and nowhere else.
"""

from decimal import Decimal, InvalidOperation
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer

from topup.core.exceptions import MalformedAmount


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    """
    Parse an upstream amount into a Decimal.
    
    Accepts:
        - str: decimal string, surrounding whitespace ignored
        - int: used as-is
        - Decimal: used as-is
    
    Raises:
        MalformedAmount: for floats, bools, None, empty or non-finite values
    """
    if isinstance(value, bool) or value is None or isinstance(value, float):
        raise MalformedAmount(value, field)
    
    if isinstance(value, Decimal):
        dec = value
    elif isinstance(value, int):
        dec = Decimal(value)
    elif isinstance(value, str):
        try:
            dec = Decimal(value.strip())
        except InvalidOperation:
            raise MalformedAmount(value, field) from None
    else:
        raise MalformedAmount(value, field)
    
    if not dec.is_finite():
        raise MalformedAmount(value, field)
    
    return dec


def _validate_amount(v: Any) -> Decimal:
    """Model-level hook for parse_amount."""
    return parse_amount(v)


# Amount type: chain decimal string on the wire, Decimal in the model.
# MalformedAmount is not a ValueError, so it escapes model validation as-is.
Amount = Annotated[
    Decimal,
    BeforeValidator(_validate_amount),
    PlainSerializer(str, return_type=str),
]
