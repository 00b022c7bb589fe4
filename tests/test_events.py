from datetime import datetime
from decimal import Decimal

from ledger.events import (
    DEBT_ADDED,
    PAYCHECK_APPLIED,
    PAYCHECK_BLOCKED,
    Event,
    EventBus,
    blocked_handler,
    overdraft_alert_handler,
    register_default_handlers,
    shortfall_alert_handler,
)


def test_event_bus_subscribe_and_publish():
    bus = EventBus()
    seen = []

    def handler(event: Event, payload: dict) -> dict:
        seen.append((event.name, payload))
        return {"processed": True}

    bus.subscribe(DEBT_ADDED, handler)
    results = bus.publish(DEBT_ADDED, {"amount": Decimal("5")})

    assert results == [{"processed": True}]
    assert seen[0][0] == DEBT_ADDED
    assert seen[0][1]["amount"] == Decimal("5")


def test_publish_without_subscribers():
    assert EventBus().publish(PAYCHECK_APPLIED, {}) == []


def test_unsubscribe():
    bus = EventBus()

    def handler(event, payload):
        return {"called": True}

    bus.subscribe(DEBT_ADDED, handler)
    bus.unsubscribe(DEBT_ADDED, handler)
    bus.unsubscribe(DEBT_ADDED, handler)

    assert bus.publish(DEBT_ADDED, {}) == []


def test_shortfall_alert_handler():
    event = Event(PAYCHECK_APPLIED, datetime.now().isoformat(), {})

    alert = shortfall_alert_handler(event, {"status": "shortfall", "shortfall": Decimal("186"), "account": "BNP"})
    assert "186.00" in alert["alert"]
    assert alert["account"] == "BNP"

    assert shortfall_alert_handler(event, {"status": "covered", "shortfall": Decimal("0")}) == {}


def test_overdraft_alert_handler_is_pure():
    event = Event(DEBT_ADDED, datetime.now().isoformat(), {})
    payload = {"virtual_balances": {"BNP": Decimal("10"), "Cadeaux": Decimal("-5"), "Life": Decimal("-1")}}

    first = overdraft_alert_handler(event, payload)
    second = overdraft_alert_handler(event, payload)

    assert first == second
    assert set(first["overdrawn"]) == {"Cadeaux", "Life"}
    assert "Cadeaux, Life" in first["alert"]
    assert overdraft_alert_handler(event, {"virtual_balances": {"BNP": Decimal("0")}}) == {}


def test_default_handlers_registered():
    bus = register_default_handlers(EventBus())

    results = bus.publish(PAYCHECK_BLOCKED, {"errors": ("Percentages must sum to 100, got 90",)})

    assert any("Distribution refused" in r.get("alert", "") for r in results)
    assert blocked_handler(Event(PAYCHECK_BLOCKED, "", {}), {"errors": []})["errors"] == []
