"""
Whether an offer should be shown for the current cart.

Checks run in a fixed order and stop at the first failure: status,
schedule, customer targeting, then product/collection scope.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional, Sequence

from smart_offers.models.offer import OfferStatus

from .cart import CartInput, normalize_cart

if TYPE_CHECKING:
    from .offer import Offer, Schedule


def is_within_schedule(schedule: "Schedule", now: Optional[datetime] = None) -> bool:
    """
    Unset bounds impose no constraint. An instant equal to either bound
    counts as inside the window.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    if schedule.start_date and schedule.start_date > now:
        return False

    if schedule.end_date and schedule.end_date < now:
        return False

    return True


def should_display(
    offer: "Offer",
    cart_items: Optional[Sequence[CartInput]],
    customer_segment: Optional[str] = None,
    now: Optional[datetime] = None,
) -> bool:
    if offer.status != OfferStatus.ACTIVE:
        return False

    if not is_within_schedule(offer.schedule, now):
        return False

    # Empty customer_groups means the offer is not restricted
    customer_groups = offer.targeting.customer_groups
    if customer_segment and customer_groups:
        if customer_segment not in customer_groups:
            return False

    products = set(offer.products)
    collections = set(offer.collections)
    return any(
        item.product_id in products
        or (item.collections is not None and not collections.isdisjoint(item.collections))
        for item in normalize_cart(cart_items)
    )
