"""
Offer lookup for the storefront widget.

Payloads returned here are what the widget renders: the offer
configuration without its analytics counters, plus the discount the
current cart would receive.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlmodel import Session

from smart_offers.models.offer import OfferStatus
from smart_offers.services.cart import CartInput, normalize_cart
from smart_offers.services.coercion import ZERO, json_number, to_decimal
from smart_offers.services.offer import Offer
from smart_offers.services.offers import active_offers_for_product, list_offers


def widget_payload(offer: Offer, discount: Decimal, savings: Decimal) -> Dict[str, Any]:
    data = offer.to_json()
    data.pop("analytics", None)
    data["discount"] = json_number(discount)
    data["savings"] = float(savings)
    return data


def offers_for_product_page(
    db: Session,
    shop_id: str,
    product_id: str,
    quantity: int = 1,
    price: Any = None,
    customer_segment: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    unit_price = to_decimal(price)
    cart = [{"productId": str(product_id), "quantity": quantity, "price": unit_price}]
    results = []
    for offer in active_offers_for_product(db, shop_id, product_id, customer_segment, now):
        discount = offer.calculate_discount(quantity, cart)
        savings = offer.estimate_savings(quantity, unit_price, cart)
        results.append(widget_payload(offer, discount, savings))
    return results


def quote_cart(
    db: Session,
    shop_id: str,
    items: Sequence[CartInput],
    customer_segment: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Every displayable offer for the cart with its discount and savings."""
    cart = normalize_cart(items)
    offers = []
    total_savings = ZERO

    for offer in list_offers(db, shop_id, status=OfferStatus.ACTIVE):
        if not offer.should_display(cart, customer_segment, now):
            continue

        scoped = [item for item in cart if item.product_id in set(offer.products)]
        quantity = sum(item.quantity for item in scoped)
        subtotal = sum((item.line_total() for item in scoped), ZERO)
        unit_price = subtotal / quantity if quantity else ZERO

        discount = offer.calculate_discount(quantity, cart)
        savings = offer.estimate_savings(quantity, unit_price, cart)
        total_savings += savings
        offers.append(widget_payload(offer, discount, savings))

    return {"offers": offers, "totalSavings": float(total_savings)}
