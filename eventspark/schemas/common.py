"""
Lenient field types shared by the wire schemas.

Numbers from the API may be absent, strings, or NaN. Such values become None
so derived totals can treat them as zero instead of failing validation.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Optional

from pydantic import AliasChoices, BeforeValidator, ConfigDict, Field


def parse_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def _to_int(value: Any) -> Optional[int]:
    number = parse_decimal(value)
    return int(number) if number is not None else None


def _to_id(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _to_text(value: Any) -> str:
    return "" if value is None else str(value)


LenientDecimal = Annotated[Optional[Decimal], BeforeValidator(parse_decimal)]
LenientInt = Annotated[Optional[int], BeforeValidator(_to_int)]
IdStr = Annotated[Optional[str], BeforeValidator(_to_id)]
Text = Annotated[str, BeforeValidator(_to_text)]

WIRE_CONFIG = ConfigDict(populate_by_name=True, extra="ignore")


def id_field():
    """Mongo-style ``_id`` with a plain ``id`` fallback."""
    return Field(None, validation_alias=AliasChoices("_id", "id"), serialization_alias="_id")


def to_decimal(value: Any) -> Decimal:
    """Decimal for arithmetic, with anything unusable counted as zero."""
    return parse_decimal(value) or Decimal("0")
