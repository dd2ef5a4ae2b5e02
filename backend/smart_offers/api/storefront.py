from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from typing import Optional
from decimal import Decimal
from smart_offers.api.deps import get_db
from smart_offers.schemas.analytics import StorefrontQuoteRequest
from smart_offers.services import storefront

router = APIRouter(prefix="/api/storefront", tags=["storefront"])


# === Public ===

@router.get("/offers")
def product_offers(
    shop: str = Query(..., min_length=1),
    product_id: str = Query(..., alias="productId"),
    quantity: int = Query(1, ge=1),
    price: Decimal = Query(Decimal("0"), ge=0),
    customer_segment: Optional[str] = Query(None, alias="customerSegment"),
    db: Session = Depends(get_db)
):
    """Offers the widget should render on a product page"""
    offers = storefront.offers_for_product_page(
        db, shop.strip().lower(), product_id,
        quantity=quantity, price=price, customer_segment=customer_segment,
    )
    return {"success": True, "offers": offers}


@router.post("/quote")
def quote_cart(
    data: StorefrontQuoteRequest,
    db: Session = Depends(get_db)
):
    """Discounts for the current cart"""
    items = [item.model_dump(by_alias=True) for item in data.items]
    quote = storefront.quote_cart(
        db, data.shop.strip().lower(), items, customer_segment=data.customer_segment,
    )
    return {"success": True, **quote}
