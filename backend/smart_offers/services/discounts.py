"""
Discount calculation for offers.

Pure functions: given an offer and the cart state they return the
discount amount and never raise. Quantity-break offers with a percentage
discount return the percentage itself (``15`` means 15%); the caller
applies it as ``price * qty * pct / 100``. Every other result is a money
amount.
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence

from smart_offers.models.offer import DiscountType, OfferType

from .cart import CartInput, CartItem, normalize_cart
from .coercion import ZERO, to_decimal

if TYPE_CHECKING:
    from .offer import Offer


CENTS = Decimal("0.01")

TIERED_TYPES = frozenset({OfferType.QUANTITY_BREAK, OfferType.VOLUME_DISCOUNT})


def _in_scope(offer: "Offer", items: Sequence[CartItem]) -> List[CartItem]:
    products = set(offer.products)
    return [item for item in items if item.product_id in products]


def quantity_break_discount(offer: "Offer", quantity: int) -> Decimal:
    """
    Best-tier-wins: tiers are scanned from the highest threshold down and
    the first one satisfied by ``quantity`` applies. Fixed-amount tiers
    scale with quantity.
    """
    # Sorted copy; the stored order is what the widget displays
    tiers = sorted(offer.tiers, key=lambda t: t.quantity, reverse=True)

    for tier in tiers:
        if quantity >= tier.quantity:
            if offer.discount_type == DiscountType.PERCENTAGE:
                return tier.discount
            if offer.discount_type == DiscountType.FIXED_AMOUNT:
                return tier.discount * quantity
            return ZERO

    return ZERO


def volume_discount(offer: "Offer", cart_items: Sequence[CartItem]) -> Decimal:
    """Quantities of all scoped products count toward one set of tiers."""
    total_quantity = sum(item.quantity for item in _in_scope(offer, cart_items))
    return quantity_break_discount(offer, total_quantity)


def bundle_discount(offer: "Offer", cart_items: Sequence[CartItem]) -> Decimal:
    """Applies once the cart holds ``minItems`` distinct scoped line items."""
    bundle_items = _in_scope(offer, cart_items)

    if len(bundle_items) < offer.bundle_config.min_items:
        return ZERO

    value = offer.discount_value if offer.discount_value is not None else ZERO
    if offer.discount_type == DiscountType.PERCENTAGE:
        subtotal = sum((item.line_total() for item in bundle_items), ZERO)
        return subtotal * value / 100
    if offer.discount_type == DiscountType.FIXED_AMOUNT:
        return value
    return ZERO


def _no_discount(offer: "Offer", quantity: int, cart_items: Sequence[CartItem]) -> Decimal:
    # Cross-sells and upsells are presentation only
    return ZERO


_HANDLERS: Dict[OfferType, Callable[["Offer", int, Sequence[CartItem]], Decimal]] = {
    OfferType.QUANTITY_BREAK: lambda offer, quantity, items: quantity_break_discount(offer, quantity),
    OfferType.VOLUME_DISCOUNT: lambda offer, quantity, items: volume_discount(offer, items),
    OfferType.BUNDLE: lambda offer, quantity, items: bundle_discount(offer, items),
    OfferType.CROSS_SELL: _no_discount,
    OfferType.CART_UPSELL: _no_discount,
}

_unhandled = set(OfferType) - set(_HANDLERS)
if _unhandled:
    raise RuntimeError(
        "No discount handler for offer type(s): "
        + ", ".join(sorted(t.value for t in _unhandled))
    )


def calculate_discount(
    offer: "Offer",
    quantity: int,
    cart_items: Optional[Sequence[CartInput]] = None,
) -> Decimal:
    if not isinstance(offer.type, OfferType):
        return ZERO
    handler = _HANDLERS[offer.type]
    return handler(offer, quantity, normalize_cart(cart_items))


def estimate_savings(
    offer: "Offer",
    quantity: int,
    unit_price,
    cart_items: Optional[Sequence[CartInput]] = None,
) -> Decimal:
    """
    Money saved, rounded to cents, as shown by the storefront widget.
    Percentage tiers are converted using ``unit_price`` and ``quantity``.
    """
    discount = calculate_discount(offer, quantity, cart_items)
    if offer.type in TIERED_TYPES and offer.discount_type == DiscountType.PERCENTAGE:
        price = to_decimal(unit_price)
        discount = price * quantity * discount / 100
    return discount.quantize(CENTS, rounding=ROUND_HALF_UP)
