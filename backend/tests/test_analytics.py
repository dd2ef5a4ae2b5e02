"""
test_analytics.py — event ingestion, offer counters, metrics, dashboard
and CSV export.
Run: pytest backend/tests/test_analytics.py -v
"""
from datetime import timedelta
from decimal import Decimal

from smart_offers.models.analytics import EventName
from smart_offers.services import analytics as analytics_service
from smart_offers.services import offers as offer_service

from conftest import NOW, SHOP, offer_data


def track(client, headers, event_name, offer_id=None, **extra):
    body = {"eventName": event_name, "offerId": offer_id, **extra}
    return client.post("/api/analytics/event", json=body, headers=headers)


def new_offer(db, **overrides):
    return offer_service.create_offer(db, SHOP, offer_data(**overrides))


# ── 1. Counter mapping ────────────────────────────────────────────

def test_counter_updates_per_event():
    assert analytics_service.counter_updates(EventName.OFFER_VIEW) == {"impressions": 1}
    assert analytics_service.counter_updates(EventName.OFFER_CLICK) == {"clicks": 1}
    assert analytics_service.counter_updates(EventName.PURCHASE_COMPLETE, "12.50") == {
        "conversions": 1, "revenue": Decimal("12.50"),
    }
    assert analytics_service.counter_updates(EventName.OFFER_APPLIED) == {}
    assert analytics_service.counter_updates(EventName.CART_UPDATE) == {}


# ── 2. Event endpoint ─────────────────────────────────────────────

def test_events_bump_offer_counters(client, shop_headers, db):
    offer = new_offer(db)

    for name in ("offer_view", "offer_view", "offer_click", "offer_applied"):
        assert track(client, shop_headers, name, offer.id).status_code == 200
    response = track(client, shop_headers, "purchase_complete", offer.id, cartValue=59.9)

    assert response.json() == {"success": True, "message": "Event tracked successfully"}
    analytics = client.get(f"/api/offers/{offer.id}", headers=shop_headers).json()["data"]["analytics"]
    assert analytics == {"impressions": 2, "clicks": 1, "conversions": 1, "revenue": 59.9}


def test_invalid_event_name_is_400(client, shop_headers, db):
    offer = new_offer(db)

    response = track(client, shop_headers, "offer_hover", offer.id)

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid event name"
    assert analytics_service.get_events(db, SHOP) == []


def test_event_without_offer_is_stored(client, shop_headers, db):
    assert track(client, shop_headers, "cart_update", cartValue=20).status_code == 200
    events = analytics_service.get_events(db, SHOP)
    assert [e.event_name for e in events] == ["cart_update"]


def test_event_for_unknown_offer_is_still_recorded(db):
    event = analytics_service.record_event(db, SHOP, EventName.OFFER_VIEW, offer_id=404)
    assert event.id is not None


def test_counters_survive_offer_update(client, shop_headers, db):
    offer = new_offer(db)
    track(client, shop_headers, "offer_view", offer.id)
    track(client, shop_headers, "offer_click", offer.id)

    offer_service.update_offer(db, offer.id, SHOP, {"name": "Renamed"})

    refreshed = offer_service.get_offer(db, offer.id, SHOP)
    assert refreshed.analytics["impressions"] == 1
    assert refreshed.analytics["clicks"] == 1


def test_counters_are_per_shop(db):
    offer = new_offer(db)

    updated = offer_service.increment_counters(db, offer.id, "other.myshopify.com", {"clicks": 1})
    db.commit()

    assert updated is False
    assert offer_service.get_offer(db, offer.id, SHOP).analytics["clicks"] == 0


# ── 3. Per-offer metrics ──────────────────────────────────────────

def test_offer_metrics_endpoint(client, shop_headers, db):
    offer = new_offer(db)
    for name in ("offer_view", "offer_view", "offer_view", "offer_view", "offer_click"):
        track(client, shop_headers, name, offer.id)
    track(client, shop_headers, "purchase_complete", offer.id, cartValue=30)
    track(client, shop_headers, "purchase_complete", offer.id, cartValue=50)

    response = client.get(f"/api/analytics/offers/{offer.id}", headers=shop_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["offer"] == {"id": offer.id, "name": "Buy more, save more", "type": "quantity_break"}
    assert data["events"] == 7
    metrics = data["metrics"]
    assert metrics["impressions"] == 4
    assert metrics["clicks"] == 1
    assert metrics["conversions"] == 2
    assert metrics["revenue"] == 80.0
    assert metrics["clickThroughRate"] == 25.0
    assert metrics["conversionRate"] == 50.0
    assert metrics["averageOrderValue"] == 40.0


def test_metrics_with_no_events_are_zero():
    metrics = analytics_service.offer_metrics([])
    assert metrics["clickThroughRate"] == 0.0
    assert metrics["conversionRate"] == 0.0
    assert metrics["averageOrderValue"] == 0.0


def test_metrics_for_unknown_offer_is_404(client, shop_headers):
    assert client.get("/api/analytics/offers/999", headers=shop_headers).status_code == 404


# ── 4. Dashboard ──────────────────────────────────────────────────

def test_dashboard_counts_only_events_in_period(db):
    offer = new_offer(db)
    recent = NOW - timedelta(days=2)
    old = NOW - timedelta(days=20)

    analytics_service.record_event(db, SHOP, EventName.OFFER_VIEW, offer.id, timestamp=recent)
    analytics_service.record_event(db, SHOP, EventName.OFFER_VIEW, offer.id, timestamp=recent)
    analytics_service.record_event(db, SHOP, EventName.PURCHASE_COMPLETE, offer.id,
                                   cart_value=25, timestamp=recent)
    analytics_service.record_event(db, SHOP, EventName.OFFER_VIEW, offer.id, timestamp=old)

    week = analytics_service.dashboard(db, SHOP, "7d", now=NOW)["data"]
    month = analytics_service.dashboard(db, SHOP, "30d", now=NOW)["data"]

    assert week["totalOffers"] == 1
    assert week["totalImpressions"] == 2
    assert week["totalConversions"] == 1
    assert week["totalRevenue"] == 25.0
    assert week["conversionRate"] == 50.0
    assert month["totalImpressions"] == 3


def test_dashboard_top_offers_sorted_by_revenue(db):
    low = new_offer(db, name="Low", products=["1"])
    high = new_offer(db, name="High", products=["2"])
    at = NOW - timedelta(hours=1)
    analytics_service.record_event(db, SHOP, EventName.PURCHASE_COMPLETE, low.id,
                                   cart_value=10, timestamp=at)
    analytics_service.record_event(db, SHOP, EventName.PURCHASE_COMPLETE, high.id,
                                   cart_value=90, timestamp=at)

    top = analytics_service.dashboard(db, SHOP, "7d", now=NOW)["data"]["topPerformingOffers"]

    assert [row["offerName"] for row in top] == ["High", "Low"]
    assert top[0]["revenue"] == 90.0


def test_dashboard_names_offers_that_are_no_longer_active(db):
    paused = new_offer(db, name="Paused sale", products=["1"])
    new_offer(db, name="Live", products=["2"])
    offer_service.set_offer_status(db, paused.id, SHOP, "paused")
    analytics_service.record_event(db, SHOP, EventName.PURCHASE_COMPLETE, paused.id,
                                   cart_value=40, timestamp=NOW - timedelta(hours=1))

    data = analytics_service.dashboard(db, SHOP, "7d", now=NOW)["data"]

    assert data["totalOffers"] == 1
    assert data["topPerformingOffers"][0]["offerName"] == "Paused sale"


def test_unknown_period_falls_back_to_30_days():
    start, end = analytics_service.period_range("1y", now=NOW)
    assert end - start == timedelta(days=30)


def test_dashboard_endpoint(client, shop_headers, db):
    new_offer(db)
    response = client.get("/api/analytics/dashboard?period=7d", headers=shop_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["totalOffers"] == 1
    assert set(body["period"]) == {"startDate", "endDate"}


# ── 5. Export ─────────────────────────────────────────────────────

def test_export_csv(client, shop_headers, db):
    first = new_offer(db, products=["1"])
    second = new_offer(db, products=["2"])
    track(client, shop_headers, "offer_view", first.id, productId="1")
    track(client, shop_headers, "purchase_complete", second.id, cartValue=12, currency="EUR")

    response = client.get("/api/analytics/export", headers=shop_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    lines = response.text.strip().split("\n")
    assert lines[0] == "Date,Event,Offer ID,Product ID,Cart Value,Currency"
    assert len(lines) == 3
    assert lines[2].split(",")[1:3] == ["purchase_complete", str(second.id)]
    assert lines[2].endswith(",EUR")

    only_first = client.get(f"/api/analytics/export?offerIds={first.id}", headers=shop_headers)
    assert len(only_first.text.strip().split("\n")) == 2


def test_export_rejects_non_numeric_ids(client, shop_headers):
    response = client.get("/api/analytics/export?offerIds=abc", headers=shop_headers)
    assert response.status_code == 400
