"""
Offer entity: one configured promotion (quantity break, bundle, volume
discount, cross-sell or cart upsell).

``Offer.from_dict`` is the single place where loosely-typed input is
resolved against defaults. It accepts the camelCase wire shape produced
by ``to_json`` (snake_case aliases are accepted too) and never raises:
every missing or unreadable nested field takes the default declared on
the models below. Problems with the configuration itself are reported
by ``validate()``.

The entity does no I/O. Analytics counters held here are a snapshot;
the storage layer owns the authoritative counts and increments them
atomically.
"""
from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from smart_offers.models.offer import DiscountType, OfferStatus, OfferType

from . import discounts, eligibility
from .cart import CartInput, normalize_cart
from .coercion import ZERO, IdList, LenientModel, Money, resolve_timezone


logger = logging.getLogger(__name__)

COUNTER_KEYS = ("impressions", "clicks", "conversions", "revenue")

DEFAULT_DISPLAY_SETTINGS: Dict[str, Any] = {
    "widget": "inline",          # inline | modal | drawer
    "position": "below_atc",     # below_atc | above_atc | product_tabs
    "showProgressBar": True,
    "showSavings": True,
    "customCSS": "",
}

DEFAULT_STYLING: Dict[str, Any] = {
    "primaryColor": "#000000",
    "secondaryColor": "#ffffff",
    "fontFamily": "inherit",
    "borderRadius": "4px",
    "buttonStyle": "solid",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Tier(LenientModel):
    model_config = ConfigDict(frozen=True)

    quantity: int
    discount: Money = ZERO


class BundleConfig(LenientModel):
    min_items: int = 1
    max_items: Optional[int] = None
    allow_mix_match: bool = False
    required_products: IdList = Field(default_factory=list)


class FreeGift(LenientModel):
    enabled: bool = False
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    threshold: Optional[Money] = None


class Schedule(LenientModel):
    """Optional window; naive bounds are read in ``timezone``."""

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    timezone: str = "UTC"

    @model_validator(mode="after")
    def _localize(self) -> "Schedule":
        tz = resolve_timezone(self.timezone)
        if self.start_date is not None and self.start_date.tzinfo is None:
            self.start_date = self.start_date.replace(tzinfo=tz)
        if self.end_date is not None and self.end_date.tzinfo is None:
            self.end_date = self.end_date.replace(tzinfo=tz)
        return self

    def overlaps(self, other: "Schedule") -> bool:
        """Windows intersect; an unset bound is open-ended."""
        if self.end_date and other.start_date and self.end_date < other.start_date:
            return False
        if other.end_date and self.start_date and other.end_date < self.start_date:
            return False
        return True


class Targeting(LenientModel):
    customer_groups: IdList = Field(default_factory=list)
    countries: IdList = Field(default_factory=list)
    exclude_products: IdList = Field(default_factory=list)


def default_analytics() -> Dict[str, Any]:
    return {"impressions": 0, "clicks": 0, "conversions": 0, "revenue": ZERO}


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"isValid": self.is_valid, "errors": list(self.errors)}


class Offer(LenientModel):
    id: Any = None
    shop_id: Optional[str] = None
    # Unknown values stay raw strings so validate() can report them
    type: Union[OfferType, str, None] = Field(default=None, union_mode="left_to_right")
    name: Optional[str] = None
    description: str = ""
    status: Union[OfferStatus, str] = Field(default=OfferStatus.DRAFT, union_mode="left_to_right")

    # Scope
    products: IdList = Field(default_factory=list)
    collections: IdList = Field(default_factory=list)

    # Discount configuration
    discount_type: Union[DiscountType, str, None] = Field(default=None, union_mode="left_to_right")
    discount_value: Optional[Money] = None
    tiers: List[Tier] = Field(default_factory=list)
    bundle_config: BundleConfig = Field(default_factory=BundleConfig)
    free_gift: FreeGift = Field(default_factory=FreeGift)

    # Presentation only, passed through untouched
    display_settings: Dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_DISPLAY_SETTINGS))
    styling: Dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_STYLING))

    schedule: Schedule = Field(default_factory=Schedule)
    targeting: Targeting = Field(default_factory=Targeting)
    analytics: Dict[str, Union[int, Money]] = Field(default_factory=default_analytics)

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "Offer":
        return cls.model_validate(dict(data) if isinstance(data, Mapping) else {})

    @field_validator("tiers", mode="before")
    @classmethod
    def _readable_tiers(cls, value: Any) -> List[Tier]:
        """Entries without a usable quantity threshold are dropped."""
        if not isinstance(value, (list, tuple)):
            return []
        tiers = []
        for entry in value:
            try:
                tiers.append(Tier.model_validate(entry))
            except ValidationError:
                logger.debug("Dropping unreadable tier %r", entry)
        return tiers

    @field_validator("display_settings", mode="before")
    @classmethod
    def _display_defaults(cls, value: Any) -> Dict[str, Any]:
        return _merged(DEFAULT_DISPLAY_SETTINGS, value)

    @field_validator("styling", mode="before")
    @classmethod
    def _styling_defaults(cls, value: Any) -> Dict[str, Any]:
        return _merged(DEFAULT_STYLING, value)

    @field_validator("analytics", mode="before")
    @classmethod
    def _counter_defaults(cls, value: Any) -> Dict[str, Any]:
        counters = default_analytics()
        if isinstance(value, Mapping):
            counters.update({key: value[key] for key in COUNTER_KEYS if value.get(key) is not None})
        return counters

    # ── Validation ────────────────────────────────────────────────

    def is_valid_type(self) -> bool:
        return isinstance(self.type, OfferType)

    def validate(self) -> ValidationResult:
        """Report every violated rule at once; never raises."""
        errors = []

        if not isinstance(self.name, str) or self.name.strip() == "":
            errors.append("Offer name is required")

        if not self.type or not self.is_valid_type():
            errors.append("Invalid offer type")

        if not self.shop_id:
            errors.append("Shop ID is required")

        if not self.products and not self.collections:
            errors.append("At least one product or collection must be selected")

        if self.type == OfferType.QUANTITY_BREAK and not self.tiers:
            errors.append("Quantity breaks require at least one tier")

        if self.type == OfferType.BUNDLE and self.bundle_config.min_items < 1:
            errors.append("Bundle must require at least 1 item")

        return ValidationResult(is_valid=not errors, errors=errors)

    # ── Discounts ─────────────────────────────────────────────────

    def calculate_discount(self, quantity: int,
                           cart_items: Optional[Sequence[CartInput]] = None) -> Decimal:
        return discounts.calculate_discount(self, quantity, cart_items)

    def calculate_quantity_break_discount(self, quantity: int) -> Decimal:
        return discounts.quantity_break_discount(self, quantity)

    def calculate_volume_discount(self, cart_items: Sequence[CartInput]) -> Decimal:
        return discounts.volume_discount(self, normalize_cart(cart_items))

    def calculate_bundle_discount(self, cart_items: Sequence[CartInput]) -> Decimal:
        return discounts.bundle_discount(self, normalize_cart(cart_items))

    def estimate_savings(self, quantity: int, unit_price,
                         cart_items: Optional[Sequence[CartInput]] = None) -> Decimal:
        return discounts.estimate_savings(self, quantity, unit_price, cart_items)

    # ── Eligibility ───────────────────────────────────────────────

    def should_display(self, cart_items: Optional[Sequence[CartInput]],
                       customer_segment: Optional[str] = None,
                       now: Optional[datetime] = None) -> bool:
        return eligibility.should_display(self, cart_items, customer_segment, now)

    def is_within_schedule(self, now: Optional[datetime] = None) -> bool:
        return eligibility.is_within_schedule(self.schedule, now)

    # ── Analytics ─────────────────────────────────────────────────

    def track_event(self, event_type: str) -> None:
        """Bump a known counter by one; unknown names are ignored."""
        if event_type in self.analytics:
            self.analytics[event_type] += 1

    # ── Serialization ─────────────────────────────────────────────

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def _merged(defaults: Mapping[str, Any], data: Any) -> Dict[str, Any]:
    merged = copy.deepcopy(dict(defaults))
    if isinstance(data, Mapping):
        merged.update(copy.deepcopy(dict(data)))
    return merged
