from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import Session
from typing import Any, Dict
import json
import logging
from smart_offers.api.deps import get_db
from smart_offers.core.config import settings
from smart_offers.core.shopify import verify_webhook_hmac
from smart_offers.models.analytics import EventName
from smart_offers.services import analytics as analytics_service
from smart_offers.services import offers as offer_service
from smart_offers.services import shops as shop_service
from smart_offers.services.coercion import to_decimal, to_int

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

OFFER_PROPERTY = "_offer_id"


async def verified_payload(request: Request) -> Dict[str, Any]:
    """Raw body checked against X-Shopify-Hmac-Sha256, then parsed"""
    body = await request.body()
    hmac_header = request.headers.get("X-Shopify-Hmac-Sha256", "")
    if not verify_webhook_hmac(body, hmac_header, settings.SHOPIFY_API_SECRET or ""):
        logger.warning(
            "HMAC verification failed for %s",
            request.headers.get("X-Shopify-Shop-Domain", "<unknown shop>"),
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="HMAC verification failed"
        )
    try:
        payload = json.loads(body or b"{}")
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    return payload


def _shop_domain(request: Request, payload: Dict[str, Any]) -> str:
    shop = (
        request.headers.get("X-Shopify-Shop-Domain")
        or payload.get("shop_domain")
        or payload.get("domain")
        or payload.get("myshopify_domain")
    )
    if not shop:
        raise HTTPException(status_code=400, detail="Missing X-Shopify-Shop-Domain header")
    return str(shop).strip().lower()


@router.post("/orders/create")
def order_created(
    request: Request,
    payload: Dict[str, Any] = Depends(verified_payload),
    db: Session = Depends(get_db)
):
    """Attribute line items tagged with an offer id to that offer"""
    shop = _shop_domain(request, payload)
    attributed = 0

    for item in payload.get("line_items") or []:
        if not isinstance(item, dict):
            continue
        properties = item.get("properties") or []
        offer_id = next(
            (to_int(p.get("value")) for p in properties
             if isinstance(p, dict) and p.get("name") == OFFER_PROPERTY),
            None,
        )
        if offer_id is None:
            continue

        # Revenue is the tagged line's value, not the whole order total
        line_value = to_decimal(item.get("price")) * to_int(item.get("quantity"), default=1)
        analytics_service.record_event(
            db, shop, EventName.PURCHASE_COMPLETE,
            offer_id=offer_id,
            product_id=item.get("product_id"),
            cart_value=line_value,
            currency=payload.get("currency"),
            metadata={"orderId": payload.get("id"), "orderNumber": payload.get("order_number")},
        )
        attributed += 1

    logger.info("Order %s for %s: %d offer line(s)", payload.get("id"), shop, attributed)
    return {"success": True, "attributed": attributed}


@router.post("/app/uninstalled")
def app_uninstalled(
    request: Request,
    payload: Dict[str, Any] = Depends(verified_payload),
    db: Session = Depends(get_db)
):
    shop = _shop_domain(request, payload)
    offer_service.delete_shop_data(db, shop)
    return {"success": True}


@router.post("/shop/update")
def shop_updated(
    request: Request,
    payload: Dict[str, Any] = Depends(verified_payload),
    db: Session = Depends(get_db)
):
    """Keep the shop's timezone and currency current"""
    shop = _shop_domain(request, payload)
    shop_service.upsert_shop(db, shop, payload)
    return {"success": True}
