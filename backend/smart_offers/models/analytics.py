from sqlmodel import SQLModel, Field, Column, JSON
from typing import Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

from .offer import utcnow


class EventName(str, Enum):
    OFFER_VIEW = "offer_view"
    OFFER_CLICK = "offer_click"
    OFFER_APPLIED = "offer_applied"
    CART_UPDATE = "cart_update"
    PURCHASE_COMPLETE = "purchase_complete"


class AnalyticsEvent(SQLModel, table=True):
    __tablename__ = "analytics_events"
    
    id: Optional[int] = Field(default=None, primary_key=True)
    shop_id: str = Field(index=True)
    event_name: str
    
    offer_id: Optional[int] = Field(default=None, index=True)
    product_id: Optional[str] = None
    cart_value: Optional[Decimal] = Field(default=None, max_digits=14, decimal_places=2)
    currency: Optional[str] = None
    event_metadata: Optional[dict] = Field(default=None, sa_column=Column("metadata", JSON))
    
    timestamp: datetime = Field(default_factory=utcnow, index=True)
