"""
Offer persistence.

Offers are validated with ``Offer.validate()`` before every write.
Analytics counters are never written from an ``Offer`` snapshot: they
are bumped in place with ``UPDATE offers SET col = col + n`` so that
concurrent events for the same offer cannot lose increments.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import delete, update
from sqlmodel import Session, select

from smart_offers.models.analytics import AnalyticsEvent
from smart_offers.models.offer import OfferRecord, OfferStatus, OfferType
from smart_offers.models.shop import Shop
from smart_offers.services.coercion import wire_key
from smart_offers.services.offer import COUNTER_KEYS, Offer
from smart_offers.services.shops import shop_timezone


logger = logging.getLogger(__name__)


class OfferNotFoundError(LookupError):
    pass


class OfferValidationError(ValueError):
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class OfferOverlapError(ValueError):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands datetimes back naive; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def record_to_offer(record: OfferRecord) -> Offer:
    return Offer.from_dict({
        "id": record.id,
        "shopId": record.shop_id,
        "type": record.type,
        "name": record.name,
        "description": record.description,
        "status": record.status,
        "products": record.products,
        "collections": record.collections,
        "discountType": record.discount_type,
        "discountValue": record.discount_value,
        "tiers": record.tiers,
        "bundleConfig": record.bundle_config,
        "freeGift": record.free_gift,
        "displaySettings": record.display_settings,
        "styling": record.styling,
        "schedule": record.schedule,
        "targeting": record.targeting,
        "analytics": {
            "impressions": record.impressions,
            "clicks": record.clicks,
            "conversions": record.conversions,
            "revenue": record.revenue,
        },
        "createdAt": _aware(record.created_at),
        "updatedAt": _aware(record.updated_at),
    })


def _write_config(record: OfferRecord, offer: Offer) -> None:
    """Copy merchant-editable configuration onto the row (not counters)."""
    data = offer.to_json()
    record.type = data["type"]
    record.name = offer.name.strip()
    record.description = data["description"] or ""
    record.status = data["status"]
    record.products = data["products"]
    record.collections = data["collections"]
    record.discount_type = data["discountType"]
    record.discount_value = data["discountValue"]
    record.tiers = data["tiers"]
    record.bundle_config = data["bundleConfig"]
    record.free_gift = data["freeGift"]
    record.display_settings = data["displaySettings"]
    record.styling = data["styling"]
    record.schedule = data["schedule"]
    record.targeting = data["targeting"]


def _wire(payload: Mapping[str, Any]) -> Dict[str, Any]:
    # snake_case keys would lose to the camelCase ones already present
    return {wire_key(key): value for key, value in payload.items()}


def _with_default_timezone(payload: Dict[str, Any], tz_name: str) -> Dict[str, Any]:
    schedule = payload.get("schedule")
    if isinstance(schedule, Mapping) and not schedule.get("timezone"):
        payload["schedule"] = {**schedule, "timezone": tz_name}
    elif schedule is None:
        payload["schedule"] = {"timezone": tz_name}
    return payload


def _ensure_valid(offer: Offer) -> None:
    result = offer.validate()
    if not result.is_valid:
        raise OfferValidationError(result.errors)


def _get_record(db: Session, offer_id: int, shop_id: str) -> OfferRecord:
    record = db.get(OfferRecord, offer_id)
    if not record or record.shop_id != shop_id:
        raise OfferNotFoundError(f"Offer {offer_id} not found")
    return record


# ── Queries ───────────────────────────────────────────────────────

def list_offers(
    db: Session,
    shop_id: str,
    status: Optional[OfferStatus] = None,
    offer_type: Optional[OfferType] = None,
) -> List[Offer]:
    stmt = select(OfferRecord).where(OfferRecord.shop_id == shop_id)
    if status:
        stmt = stmt.where(OfferRecord.status == OfferStatus(status).value)
    if offer_type:
        stmt = stmt.where(OfferRecord.type == OfferType(offer_type).value)
    stmt = stmt.order_by(OfferRecord.id.desc())
    return [record_to_offer(record) for record in db.exec(stmt).all()]


def get_offer(db: Session, offer_id: int, shop_id: str) -> Offer:
    return record_to_offer(_get_record(db, offer_id, shop_id))


def offers_for_product(db: Session, shop_id: str, product_id: str) -> List[Offer]:
    product_id = str(product_id)
    return [offer for offer in list_offers(db, shop_id) if product_id in offer.products]


def active_offers_for_product(
    db: Session,
    shop_id: str,
    product_id: str,
    customer_segment: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[Offer]:
    cart = [{"productId": str(product_id)}]
    return [
        offer for offer in offers_for_product(db, shop_id, product_id)
        if offer.should_display(cart, customer_segment, now)
    ]


def has_overlapping_offer(
    db: Session,
    shop_id: str,
    offer: Offer,
    exclude_id: Optional[int] = None,
) -> bool:
    """
    Another non-paused offer of the shop shares a product and its
    schedule window intersects this one.
    """
    products = set(offer.products)
    if not products:
        return False

    for other in list_offers(db, shop_id):
        if exclude_id is not None and other.id == exclude_id:
            continue
        if other.status == OfferStatus.PAUSED:
            continue
        if products.isdisjoint(other.products):
            continue
        if offer.schedule.overlaps(other.schedule):
            return True
    return False


# ── Writes ────────────────────────────────────────────────────────

def create_offer(db: Session, shop_id: str, payload: Mapping[str, Any]) -> Offer:
    payload = _with_default_timezone(_wire(payload), shop_timezone(db, shop_id))
    offer = Offer.from_dict({**payload, "shopId": shop_id})
    _ensure_valid(offer)

    if has_overlapping_offer(db, shop_id, offer):
        raise OfferOverlapError(
            "An overlapping offer already exists for one or more selected products"
        )

    record = OfferRecord(shop_id=shop_id, type="", name="")
    _write_config(record, offer)
    db.add(record)
    db.commit()
    db.refresh(record)

    logger.info("Created offer %s (%s) for %s", record.id, record.type, shop_id)
    return record_to_offer(record)


def update_offer(
    db: Session,
    offer_id: int,
    shop_id: str,
    changes: Mapping[str, Any],
) -> Offer:
    record = _get_record(db, offer_id, shop_id)
    existing = record_to_offer(record).to_json()

    changes = _wire(changes)
    if "schedule" in changes:
        changes = _with_default_timezone(changes, shop_timezone(db, shop_id))
    merged = {**existing, **changes, "id": record.id, "shopId": shop_id}
    offer = Offer.from_dict(merged)
    _ensure_valid(offer)

    if has_overlapping_offer(db, shop_id, offer, exclude_id=record.id):
        raise OfferOverlapError("Another overlapping offer already exists")

    _write_config(record, offer)
    record.updated_at = _utcnow()
    db.add(record)
    db.commit()
    db.refresh(record)

    logger.info("Updated offer %s for %s", record.id, shop_id)
    return record_to_offer(record)


def set_offer_status(db: Session, offer_id: int, shop_id: str, status: OfferStatus) -> Offer:
    record = _get_record(db, offer_id, shop_id)
    previous = record.status
    record.status = OfferStatus(status).value
    record.updated_at = _utcnow()
    db.add(record)
    db.commit()
    db.refresh(record)

    logger.info("Offer %s status %s -> %s", record.id, previous, record.status)
    return record_to_offer(record)


def delete_offer(db: Session, offer_id: int, shop_id: str) -> None:
    record = _get_record(db, offer_id, shop_id)
    db.delete(record)
    db.commit()
    logger.info("Deleted offer %s for %s", offer_id, shop_id)


def increment_counters(
    db: Session,
    offer_id: int,
    shop_id: str,
    counters: Mapping[str, Any],
) -> bool:
    """
    Atomically add ``counters`` (e.g. ``{"clicks": 1}``) to the offer row.
    Unknown counter names are ignored. Runs inside the caller's
    transaction; the caller commits. Returns False if no row matched.
    """
    values = {}
    for key, amount in counters.items():
        if key not in COUNTER_KEYS or not amount:
            continue
        column = getattr(OfferRecord, key)
        values[key] = column + (Decimal(str(amount)) if key == "revenue" else int(amount))

    if not values:
        return False

    stmt = (
        update(OfferRecord)
        .where(OfferRecord.id == offer_id, OfferRecord.shop_id == shop_id)
        .values(**values)
    )
    result = db.execute(stmt)
    return result.rowcount > 0


def delete_shop_data(db: Session, shop_id: str) -> None:
    """Remove every offer, analytics event and stored detail of an uninstalled shop."""
    db.execute(delete(AnalyticsEvent).where(AnalyticsEvent.shop_id == shop_id))
    db.execute(delete(OfferRecord).where(OfferRecord.shop_id == shop_id))
    db.execute(delete(Shop).where(Shop.shop_id == shop_id))
    db.commit()
    logger.info("Deleted all offer data for %s", shop_id)
