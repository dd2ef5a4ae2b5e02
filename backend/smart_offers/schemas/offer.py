from pydantic import BaseModel
from typing import Any, Dict, List
from smart_offers.models.offer import OfferStatus


class OfferResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]


class OfferListResponse(BaseModel):
    success: bool = True
    data: List[Dict[str, Any]]
    count: int


class OfferStatusUpdate(BaseModel):
    status: OfferStatus


class OfferStatusResponse(OfferResponse):
    message: str
