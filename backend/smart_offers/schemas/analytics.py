from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from decimal import Decimal


class AnalyticsEventCreate(BaseModel):
    # Validated against EventName in the route so unknown names get a 400
    event_name: str = Field(alias="eventName")
    offer_id: Optional[int] = Field(default=None, alias="offerId")
    product_id: Optional[str] = Field(default=None, alias="productId")
    cart_value: Optional[Decimal] = Field(default=None, alias="cartValue")
    currency: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    class Config:
        populate_by_name = True


class OfferSummary(BaseModel):
    id: int
    name: Optional[str] = None
    type: Optional[str] = None


class OfferMetrics(BaseModel):
    impressions: int
    clicks: int
    conversions: int
    revenue: float
    clickThroughRate: float
    conversionRate: float
    averageOrderValue: float


class OfferAnalyticsData(BaseModel):
    offer: OfferSummary
    metrics: OfferMetrics
    events: int


class OfferAnalyticsResponse(BaseModel):
    success: bool = True
    data: OfferAnalyticsData


class CartItemIn(BaseModel):
    product_id: str = Field(alias="productId")
    quantity: int = Field(default=1, ge=0)
    price: Decimal = Decimal("0")
    collections: Optional[List[str]] = None

    class Config:
        populate_by_name = True


class StorefrontQuoteRequest(BaseModel):
    shop: str
    items: List[CartItemIn] = Field(default_factory=list)
    customer_segment: Optional[str] = Field(default=None, alias="customerSegment")

    class Config:
        populate_by_name = True
