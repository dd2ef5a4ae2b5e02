"""
test_discounts.py — discount calculation per offer type.
Run: pytest backend/tests/test_discounts.py -v
"""
from decimal import Decimal

import pytest

from smart_offers.models.offer import OfferType
from smart_offers.services import discounts
from smart_offers.services.cart import CartItem
from smart_offers.services.offer import Offer

from conftest import offer_data


def bundle_offer(**overrides):
    data = offer_data(
        type="bundle",
        products=["a", "b"],
        tiers=[],
        discountValue=10,
        bundleConfig={"minItems": 2},
    )
    data.update(overrides)
    return Offer.from_dict(data)


# ── 1. Quantity breaks ────────────────────────────────────────────

@pytest.mark.parametrize("quantity, expected", [
    (1, 0),
    (2, 10),
    (3, 15),
    (4, 15),
    (5, 20),
    (50, 20),
])
def test_quantity_break_best_tier_wins(quantity, expected):
    offer = Offer.from_dict(offer_data())
    assert offer.calculate_quantity_break_discount(quantity) == Decimal(expected)


def test_quantity_break_zero_quantity_gets_nothing():
    offer = Offer.from_dict(offer_data())
    assert offer.calculate_discount(0) == 0


def test_fixed_amount_tier_scales_with_quantity():
    offer = Offer.from_dict(offer_data(
        discountType="fixed_amount",
        tiers=[{"quantity": 2, "discount": 5}],
    ))
    assert offer.calculate_discount(3) == Decimal("15")
    assert offer.calculate_discount(4) == Decimal("20")


def test_unsorted_tiers_pick_highest_satisfied_threshold():
    offer = Offer.from_dict(offer_data(tiers=[
        {"quantity": 5, "discount": 20},
        {"quantity": 2, "discount": 10},
        {"quantity": 3, "discount": 15},
    ]))
    assert offer.calculate_discount(4) == Decimal("15")


def test_stored_tier_order_is_not_mutated():
    tiers = [{"quantity": 2, "discount": 10}, {"quantity": 5, "discount": 20}]
    offer = Offer.from_dict(offer_data(tiers=tiers))
    offer.calculate_discount(5)
    assert [tier.quantity for tier in offer.tiers] == [2, 5]


def test_duplicate_thresholds_do_not_raise():
    offer = Offer.from_dict(offer_data(tiers=[
        {"quantity": 3, "discount": 10},
        {"quantity": 3, "discount": 12},
    ]))
    assert offer.calculate_discount(3) in (Decimal("10"), Decimal("12"))


def test_missing_discount_type_gives_zero():
    offer = Offer.from_dict(offer_data(discountType=None))
    assert offer.calculate_discount(5) == 0


# ── 2. Volume discounts ───────────────────────────────────────────

def test_volume_sums_quantities_across_scoped_products():
    offer = Offer.from_dict(offer_data(
        type="volume_discount",
        products=["a", "b"],
        tiers=[{"quantity": 5, "discount": 20}],
    ))
    cart = [
        {"productId": "a", "quantity": 2, "price": 10},
        {"productId": "b", "quantity": 3, "price": 10},
        {"productId": "z", "quantity": 10, "price": 10},
    ]
    assert offer.calculate_discount(0, cart) == Decimal("20")
    assert offer.calculate_volume_discount(cart[:1]) == 0


def test_volume_accepts_cart_item_objects():
    offer = Offer.from_dict(offer_data(type="volume_discount", products=["a"]))
    cart = [CartItem(product_id="a", quantity=3, price=Decimal("4"))]
    assert offer.calculate_discount(0, cart) == Decimal("15")


# ── 3. Bundles ────────────────────────────────────────────────────

def test_bundle_below_min_items_gives_zero():
    offer = bundle_offer()
    cart = [{"productId": "a", "quantity": 5, "price": 10}]
    assert offer.calculate_bundle_discount(cart) == 0


def test_bundle_percentage_of_scoped_subtotal():
    offer = bundle_offer(discountType="percentage")
    cart = [
        {"productId": "a", "quantity": 1, "price": 10},
        {"productId": "b", "quantity": 1, "price": 10},
        {"productId": "c", "quantity": 1, "price": 100},
    ]
    assert offer.calculate_discount(1, cart) == Decimal("2")


def test_bundle_fixed_amount_is_flat():
    offer = bundle_offer(discountType="fixed_amount", discountValue=7)
    cart = [
        {"productId": "a", "quantity": 3, "price": 10},
        {"productId": "b", "quantity": 2, "price": 10},
    ]
    assert offer.calculate_discount(1, cart) == Decimal("7")


def test_bundle_counts_distinct_lines_not_units():
    offer = bundle_offer(discountType="fixed_amount", discountValue=7)
    cart = [{"productId": "a", "quantity": 2, "price": 10}]
    assert offer.calculate_discount(2, cart) == 0


def test_bundle_with_empty_cart_gives_zero():
    assert bundle_offer().calculate_discount(1) == 0


# ── 4. Types without a discount ───────────────────────────────────

@pytest.mark.parametrize("offer_type", ["cross_sell", "cart_upsell"])
def test_presentation_only_types_give_zero(offer_type):
    offer = Offer.from_dict(offer_data(type=offer_type))
    assert offer.calculate_discount(10, [{"productId": "111", "quantity": 10, "price": 5}]) == 0


def test_unknown_type_gives_zero():
    offer = Offer.from_dict(offer_data(type="mystery_box"))
    assert offer.calculate_discount(10) == 0


def test_every_offer_type_has_a_handler():
    assert set(discounts._HANDLERS) == set(OfferType)


# ── 5. Savings estimate ───────────────────────────────────────────

def test_percentage_tier_savings_in_money():
    offer = Offer.from_dict(offer_data(tiers=[{"quantity": 3, "discount": 10}]))
    assert offer.estimate_savings(3, 20) == Decimal("6.00")


def test_savings_rounded_to_cents():
    offer = Offer.from_dict(offer_data(tiers=[{"quantity": 3, "discount": 15}]))
    # 3 x 9.99 x 15% = 4.4955
    assert offer.estimate_savings(3, "9.99") == Decimal("4.50")


def test_fixed_tier_savings_are_already_money():
    offer = Offer.from_dict(offer_data(
        discountType="fixed_amount",
        tiers=[{"quantity": 2, "discount": "1.5"}],
    ))
    assert offer.estimate_savings(2, 100) == Decimal("3.00")


def test_bundle_savings_equal_discount():
    offer = bundle_offer(discountType="percentage")
    cart = [
        {"productId": "a", "quantity": 1, "price": 10},
        {"productId": "b", "quantity": 1, "price": 10},
    ]
    assert offer.estimate_savings(1, 0, cart) == Decimal("2.00")
