"""
Per-shop details mirrored from Shopify's shop/update webhook.
"""
import logging
from typing import Any, Mapping, Optional

from sqlmodel import Session

from smart_offers.core.config import settings
from smart_offers.models.offer import utcnow
from smart_offers.models.shop import Shop


logger = logging.getLogger(__name__)


def upsert_shop(db: Session, shop_id: str, payload: Mapping[str, Any]) -> Shop:
    shop = db.get(Shop, shop_id) or Shop(shop_id=shop_id)
    shop.name = payload.get("name")
    shop.email = payload.get("email")
    shop.currency = payload.get("currency")
    shop.timezone = payload.get("iana_timezone")
    shop.plan = payload.get("plan_name")
    shop.updated_at = utcnow()
    db.add(shop)
    db.commit()
    db.refresh(shop)

    logger.info("Shop %s updated (timezone %s)", shop_id, shop.timezone)
    return shop


def shop_timezone(db: Session, shop_id: str) -> str:
    """IANA zone for schedules saved without one; falls back to DEFAULT_TIMEZONE."""
    shop: Optional[Shop] = db.get(Shop, shop_id)
    if shop and shop.timezone:
        return shop.timezone
    return settings.DEFAULT_TIMEZONE
