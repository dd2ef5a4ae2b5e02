from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from .offer import utcnow


class Shop(SQLModel, table=True):
    """Store details kept current by the shop/update webhook"""
    __tablename__ = "shops"
    
    shop_id: str = Field(primary_key=True)
    name: Optional[str] = None
    email: Optional[str] = None
    currency: Optional[str] = None
    timezone: Optional[str] = None
    plan: Optional[str] = None
    
    updated_at: datetime = Field(default_factory=utcnow)
