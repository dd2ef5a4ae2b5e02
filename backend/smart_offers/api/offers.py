from fastapi import APIRouter, Body, Depends, HTTPException
from sqlmodel import Session
from typing import Any, Dict, Optional
from smart_offers.api.deps import get_db, get_current_shop
from smart_offers.models.offer import OfferStatus, OfferType
from smart_offers.schemas.offer import (
    OfferResponse,
    OfferListResponse,
    OfferStatusUpdate,
    OfferStatusResponse,
)
from smart_offers.services import offers as offer_service
from smart_offers.services.offers import (
    OfferNotFoundError,
    OfferOverlapError,
    OfferValidationError,
)

router = APIRouter(prefix="/api/offers", tags=["offers"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Offer not found")


@router.get("/", response_model=OfferListResponse)
def list_offers(
    status: Optional[OfferStatus] = None,
    type: Optional[OfferType] = None,
    db: Session = Depends(get_db),
    shop: str = Depends(get_current_shop)
):
    """All offers of the shop, newest first"""
    offers = offer_service.list_offers(db, shop, status=status, offer_type=type)
    data = [offer.to_json() for offer in offers]
    return {"success": True, "data": data, "count": len(data)}


@router.get("/active-for-product/{product_id}", response_model=OfferListResponse)
def active_offers_for_product(
    product_id: str,
    db: Session = Depends(get_db),
    shop: str = Depends(get_current_shop)
):
    """Offers that would currently display for the product"""
    offers = offer_service.active_offers_for_product(db, shop, product_id)
    data = [offer.to_json() for offer in offers]
    return {"success": True, "data": data, "count": len(data)}


@router.get("/{offer_id}", response_model=OfferResponse)
def get_offer(
    offer_id: int,
    db: Session = Depends(get_db),
    shop: str = Depends(get_current_shop)
):
    try:
        offer = offer_service.get_offer(db, offer_id, shop)
    except OfferNotFoundError:
        raise _not_found()
    return {"success": True, "data": offer.to_json()}


@router.post("/", response_model=OfferResponse, status_code=201)
def create_offer(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    shop: str = Depends(get_current_shop)
):
    """Create an offer; the body is the offer JSON (camelCase)"""
    try:
        offer = offer_service.create_offer(db, shop, payload)
    except (OfferValidationError, OfferOverlapError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"success": True, "data": offer.to_json()}


@router.put("/{offer_id}", response_model=OfferResponse)
def update_offer(
    offer_id: int,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    shop: str = Depends(get_current_shop)
):
    try:
        offer = offer_service.update_offer(db, offer_id, shop, payload)
    except OfferNotFoundError:
        raise _not_found()
    except (OfferValidationError, OfferOverlapError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"success": True, "data": offer.to_json()}


@router.patch("/{offer_id}/status", response_model=OfferStatusResponse)
def update_offer_status(
    offer_id: int,
    data: OfferStatusUpdate,
    db: Session = Depends(get_db),
    shop: str = Depends(get_current_shop)
):
    try:
        offer = offer_service.set_offer_status(db, offer_id, shop, data.status)
    except OfferNotFoundError:
        raise _not_found()
    return {
        "success": True,
        "data": offer.to_json(),
        "message": f"Offer {data.status.value} successfully",
    }


@router.delete("/{offer_id}")
def delete_offer(
    offer_id: int,
    db: Session = Depends(get_db),
    shop: str = Depends(get_current_shop)
):
    try:
        offer_service.delete_offer(db, offer_id, shop)
    except OfferNotFoundError:
        raise _not_found()
    return {"success": True, "message": "Offer deleted"}
