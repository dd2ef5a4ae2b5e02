from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlmodel import Session
from typing import Optional
from datetime import datetime
import logging
from smart_offers.api.deps import get_db, get_current_shop
from smart_offers.models.analytics import EventName
from smart_offers.schemas.analytics import AnalyticsEventCreate, OfferAnalyticsResponse
from smart_offers.services import analytics as analytics_service
from smart_offers.services import offers as offer_service
from smart_offers.services.offers import OfferNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.post("/event")
def track_event(
    data: AnalyticsEventCreate,
    db: Session = Depends(get_db),
    shop: str = Depends(get_current_shop)
):
    """Record a widget event and bump the offer counters"""
    try:
        event_name = EventName(data.event_name)
    except ValueError:
        logger.info("Rejected analytics event %r from %s", data.event_name, shop)
        raise HTTPException(status_code=400, detail="Invalid event name")

    analytics_service.record_event(
        db, shop, event_name,
        offer_id=data.offer_id,
        product_id=data.product_id,
        cart_value=data.cart_value,
        currency=data.currency,
        metadata=data.metadata,
    )
    return {"success": True, "message": "Event tracked successfully"}


@router.get("/offers/{offer_id}", response_model=OfferAnalyticsResponse)
def offer_analytics(
    offer_id: int,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    shop: str = Depends(get_current_shop)
):
    try:
        offer = offer_service.get_offer(db, offer_id, shop)
    except OfferNotFoundError:
        raise HTTPException(status_code=404, detail="Offer not found")

    events = analytics_service.get_events(
        db, shop, offer_id=offer_id, start=start_date, end=end_date
    )
    return {
        "success": True,
        "data": {
            "offer": {"id": offer.id, "name": offer.name, "type": offer.to_json()["type"]},
            "metrics": analytics_service.offer_metrics(events),
            "events": len(events),
        },
    }


@router.get("/dashboard")
def dashboard(
    period: str = Query(analytics_service.DEFAULT_PERIOD),
    db: Session = Depends(get_db),
    shop: str = Depends(get_current_shop)
):
    """Shop summary for 7d / 30d / 90d"""
    summary = analytics_service.dashboard(db, shop, period)
    return {"success": True, **summary}


@router.get("/export")
def export_events(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    offer_ids: Optional[str] = Query(None, alias="offerIds"),
    db: Session = Depends(get_db),
    shop: str = Depends(get_current_shop)
):
    """CSV export of raw events"""
    ids = None
    if offer_ids:
        try:
            ids = [int(value) for value in offer_ids.split(",") if value.strip()]
        except ValueError:
            raise HTTPException(status_code=400, detail="offerIds must be numeric")

    events = analytics_service.get_events(
        db, shop, offer_ids=ids, start=start_date, end=end_date
    )
    return Response(
        content=analytics_service.export_csv(events),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=analytics-export.csv"},
    )
