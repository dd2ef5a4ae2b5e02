"""
Cart line items as supplied by the storefront or an order webhook.

Cart items are consumed, never stored: callers pass them per query as
``CartItem`` instances or plain dicts (``productId`` / ``product_id``).
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any, List, Optional, Union

from pydantic import ConfigDict

from .coercion import ZERO, IdList, LenientModel, Money


class CartItem(LenientModel):
    model_config = ConfigDict(frozen=True)

    product_id: str = ""
    quantity: int = 1
    price: Money = ZERO
    collections: Optional[IdList] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CartItem":
        return cls.model_validate(dict(data))

    def line_total(self) -> Decimal:
        return self.price * self.quantity


CartInput = Union[CartItem, Mapping[str, Any]]


def normalize_cart(items: Optional[Iterable[CartInput]]) -> List[CartItem]:
    if not items:
        return []
    result = []
    for item in items:
        if isinstance(item, CartItem):
            result.append(item)
        elif isinstance(item, Mapping):
            result.append(CartItem.from_dict(item))
    return result
