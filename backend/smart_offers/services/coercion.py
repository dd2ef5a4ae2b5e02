"""
Lenient pydantic building blocks for loosely-typed offer payloads.

Offer data arrives as JSON from the admin UI, the storefront widget or
the database. Models derived from ``LenientModel`` accept camelCase or
snake_case keys and never raise for an unreadable optional field: it
falls back to the field default. Required fields still fail so that
callers can drop the whole entry.
"""
from __future__ import annotations

import logging
from datetime import timezone
from decimal import Decimal
from typing import Annotated, Any, List, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    PlainSerializer,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)
from pydantic.alias_generators import to_camel
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


logger = logging.getLogger(__name__)

ZERO = Decimal("0")

_DECIMAL = TypeAdapter(Decimal)
_INT = TypeAdapter(int)


def json_number(value: Optional[Decimal]) -> Any:
    """JSON-native number: int when integral, float otherwise."""
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _listify(value: Any) -> Any:
    # Shopify ids arrive as numbers or strings; a scalar is a one-element list
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        return [value]
    if isinstance(value, (list, tuple, set)):
        return [item for item in value if item is not None and item != ""]
    return value


Money = Annotated[Decimal, PlainSerializer(json_number, when_used="json")]
IdList = Annotated[List[str], BeforeValidator(_listify)]


class LenientModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    @field_validator("*", mode="wrap")
    @classmethod
    def _default_on_error(cls, value: Any, handler: ValidatorFunctionWrapHandler,
                          info: ValidationInfo) -> Any:
        try:
            return handler(value)
        except ValidationError:
            field = cls.model_fields[info.field_name]
            if field.is_required():
                raise
            logger.debug("Discarding unreadable %s.%s=%r", cls.__name__, info.field_name, value)
            return field.get_default(call_default_factory=True)


def wire_key(key: str) -> str:
    """camelCase form of a payload key; camelCase keys pass through."""
    return to_camel(key) if "_" in key else key


def to_decimal(value: Any, default: Optional[Decimal] = ZERO) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return default
    try:
        return _DECIMAL.validate_python(value)
    except ValidationError:
        logger.debug("Discarding non-numeric value %r", value)
        return default


def to_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    """Integer value, or ``default`` when not a whole number."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return _INT.validate_python(value)
    except ValidationError:
        return default


def resolve_timezone(name: Any) -> timezone | ZoneInfo:
    if not name or not isinstance(name, str) or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.debug("Unknown timezone %r, using UTC", name)
        return timezone.utc
