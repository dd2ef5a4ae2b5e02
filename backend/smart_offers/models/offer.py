from sqlmodel import SQLModel, Field, Column, JSON
from typing import Optional, List
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum


class OfferType(str, Enum):
    QUANTITY_BREAK = "quantity_break"
    BUNDLE = "bundle"
    VOLUME_DISCOUNT = "volume_discount"
    CROSS_SELL = "cross_sell"
    CART_UPSELL = "cart_upsell"


class OfferStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    SCHEDULED = "scheduled"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_GIFT = "free_gift"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OfferRecord(SQLModel, table=True):
    __tablename__ = "offers"
    
    id: Optional[int] = Field(default=None, primary_key=True)
    shop_id: str = Field(index=True)
    
    type: str
    name: str
    description: str = ""
    status: str = Field(default=OfferStatus.DRAFT.value, index=True)
    
    # Scope (JSON arrays of Shopify ids)
    products: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    collections: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    
    discount_type: Optional[str] = None
    # Stored as a JSON number, same as tier discounts
    discount_value: Optional[float] = Field(default=None, sa_column=Column(JSON))
    tiers: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    
    # Nested configuration, stored in wire (camelCase) shape
    bundle_config: dict = Field(default_factory=dict, sa_column=Column(JSON))
    free_gift: dict = Field(default_factory=dict, sa_column=Column(JSON))
    display_settings: dict = Field(default_factory=dict, sa_column=Column(JSON))
    styling: dict = Field(default_factory=dict, sa_column=Column(JSON))
    schedule: dict = Field(default_factory=dict, sa_column=Column(JSON))
    targeting: dict = Field(default_factory=dict, sa_column=Column(JSON))
    
    # Counters are plain columns so they can be bumped with UPDATE ... SET col = col + n
    impressions: int = Field(default=0)
    clicks: int = Field(default=0)
    conversions: int = Field(default=0)
    revenue: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
