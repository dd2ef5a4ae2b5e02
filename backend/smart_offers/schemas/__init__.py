from .offer import OfferResponse, OfferListResponse, OfferStatusUpdate, OfferStatusResponse
from .analytics import (
    AnalyticsEventCreate,
    OfferAnalyticsResponse,
    CartItemIn,
    StorefrontQuoteRequest,
)

__all__ = [
    "OfferResponse", "OfferListResponse", "OfferStatusUpdate", "OfferStatusResponse",
    "AnalyticsEventCreate", "OfferAnalyticsResponse",
    "CartItemIn", "StorefrontQuoteRequest",
]
