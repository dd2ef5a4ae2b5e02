"""
Analytics event ingestion and reporting.

Every storefront/webhook event is stored in ``analytics_events``; events
tied to an offer also bump that offer's counters in the same
transaction.
"""
import csv
import io
import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlmodel import Session, col, select

from smart_offers.models.analytics import AnalyticsEvent, EventName
from smart_offers.models.offer import OfferStatus
from smart_offers.services.coercion import ZERO, to_decimal
from smart_offers.services.offers import increment_counters, list_offers


logger = logging.getLogger(__name__)

PERIODS = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_PERIOD = "30d"
TOP_OFFERS = 5

CSV_HEADERS = ["Date", "Event", "Offer ID", "Product ID", "Cart Value", "Currency"]


def counter_updates(event_name: EventName, cart_value: Any = None) -> Dict[str, Any]:
    """Offer counters touched by an event; applied and cart updates touch none."""
    event_name = EventName(event_name)
    if event_name == EventName.OFFER_VIEW:
        return {"impressions": 1}
    if event_name == EventName.OFFER_CLICK:
        return {"clicks": 1}
    if event_name == EventName.PURCHASE_COMPLETE:
        return {"conversions": 1, "revenue": to_decimal(cart_value)}
    return {}


def record_event(
    db: Session,
    shop_id: str,
    event_name: EventName,
    offer_id: Optional[int] = None,
    product_id: Optional[str] = None,
    cart_value: Any = None,
    currency: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    timestamp: Optional[datetime] = None,
) -> AnalyticsEvent:
    event_name = EventName(event_name)
    event = AnalyticsEvent(
        shop_id=shop_id,
        event_name=event_name.value,
        offer_id=offer_id,
        product_id=str(product_id) if product_id is not None else None,
        cart_value=to_decimal(cart_value, default=None),
        currency=currency,
        event_metadata=metadata,
        timestamp=timestamp or datetime.now(timezone.utc),
    )
    db.add(event)

    counters = counter_updates(event_name, cart_value)
    if offer_id is not None and counters:
        if not increment_counters(db, offer_id, shop_id, counters):
            logger.warning("Event %s for unknown offer %s (%s)", event_name.value, offer_id, shop_id)

    db.commit()
    db.refresh(event)
    return event


def get_events(
    db: Session,
    shop_id: str,
    offer_id: Optional[int] = None,
    offer_ids: Optional[Iterable[int]] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[AnalyticsEvent]:
    stmt = select(AnalyticsEvent).where(AnalyticsEvent.shop_id == shop_id)
    if offer_id is not None:
        stmt = stmt.where(AnalyticsEvent.offer_id == offer_id)
    if offer_ids:
        stmt = stmt.where(col(AnalyticsEvent.offer_id).in_(list(offer_ids)))
    if start:
        stmt = stmt.where(AnalyticsEvent.timestamp >= start)
    if end:
        stmt = stmt.where(AnalyticsEvent.timestamp <= end)
    stmt = stmt.order_by(AnalyticsEvent.timestamp)
    return list(db.exec(stmt).all())


def _rates(impressions: int, clicks: int, conversions: int, revenue: Decimal) -> Dict[str, float]:
    return {
        "clickThroughRate": clicks / impressions * 100 if impressions else 0.0,
        "conversionRate": conversions / impressions * 100 if impressions else 0.0,
        "averageOrderValue": float(revenue / conversions) if conversions else 0.0,
    }


def offer_metrics(events: Iterable[AnalyticsEvent]) -> Dict[str, Any]:
    impressions = clicks = conversions = 0
    revenue = ZERO

    for event in events:
        if event.event_name == EventName.OFFER_VIEW.value:
            impressions += 1
        elif event.event_name == EventName.OFFER_CLICK.value:
            clicks += 1
        elif event.event_name == EventName.PURCHASE_COMPLETE.value:
            conversions += 1
            revenue += event.cart_value or ZERO

    return {
        "impressions": impressions,
        "clicks": clicks,
        "conversions": conversions,
        "revenue": float(revenue),
        **_rates(impressions, clicks, conversions, revenue),
    }


def period_range(period: str, now: Optional[datetime] = None):
    days = PERIODS.get(period, PERIODS[DEFAULT_PERIOD])
    end = now or datetime.now(timezone.utc)
    return end - timedelta(days=days), end


def dashboard(db: Session, shop_id: str, period: str = DEFAULT_PERIOD,
              now: Optional[datetime] = None) -> Dict[str, Any]:
    """Shop-wide totals for the period plus the top offers by revenue."""
    start, end = period_range(period, now)
    offers = list_offers(db, shop_id)
    events = get_events(db, shop_id, start=start, end=end)

    totals = offer_metrics(events)

    per_offer = defaultdict(list)
    for event in events:
        if event.offer_id is not None:
            per_offer[event.offer_id].append(event)

    names = {offer.id: offer.name for offer in offers}
    top = []
    for offer_id, offer_events in per_offer.items():
        stats = offer_metrics(offer_events)
        top.append({
            "offerId": offer_id,
            "offerName": names.get(offer_id, "Unknown"),
            "impressions": stats["impressions"],
            "clicks": stats["clicks"],
            "conversions": stats["conversions"],
            "revenue": stats["revenue"],
            "conversionRate": stats["conversionRate"],
        })
    top.sort(key=lambda row: row["revenue"], reverse=True)

    return {
        "data": {
            "totalOffers": sum(1 for offer in offers if offer.status == OfferStatus.ACTIVE),
            "totalImpressions": totals["impressions"],
            "totalClicks": totals["clicks"],
            "totalConversions": totals["conversions"],
            "totalRevenue": totals["revenue"],
            "conversionRate": totals["conversionRate"],
            "clickThroughRate": totals["clickThroughRate"],
            "averageOrderValue": totals["averageOrderValue"],
            "topPerformingOffers": top[:TOP_OFFERS],
        },
        "period": {"startDate": start.isoformat(), "endDate": end.isoformat()},
    }


def export_csv(events: Iterable[AnalyticsEvent]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for event in events:
        timestamp = event.timestamp
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        writer.writerow([
            timestamp.isoformat(),
            event.event_name,
            event.offer_id if event.offer_id is not None else "",
            event.product_id or "",
            event.cart_value if event.cart_value is not None else "",
            event.currency or "",
        ])
    return buffer.getvalue()
