from .offer import OfferRecord, OfferType, OfferStatus, DiscountType
from .analytics import AnalyticsEvent, EventName
from .shop import Shop

__all__ = [
    "OfferRecord", "OfferType", "OfferStatus", "DiscountType",
    "AnalyticsEvent", "EventName",
    "Shop",
]
