from typing import Callable, Dict, List, NamedTuple
from datetime import datetime

import structlog

__all__ = [
    'Event', 'EventBus', 'register_default_handlers',
    'DEBT_ADDED', 'DEBT_REMOVED', 'BALANCE_EDITED', 'PERCENTAGE_CHANGED',
    'CONTAINER_RENAMED', 'PAYCHECK_APPLIED', 'PAYCHECK_BLOCKED',
]

log = structlog.get_logger(__name__)


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Event, dict], dict]]] = {}

    def subscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        if name not in self._subscribers:
            self._subscribers[name] = []
        self._subscribers[name].append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        if name not in self._subscribers:
            return []

        event = Event(
            name=name,
            ts=datetime.now().isoformat(),
            payload=payload
        )

        results = []
        for handler in self._subscribers[name]:
            result = handler(event, payload)
            results.append(result)
        return results

    def unsubscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        if name in self._subscribers:
            if handler in self._subscribers[name]:
                self._subscribers[name].remove(handler)


DEBT_ADDED = "DEBT_ADDED"
DEBT_REMOVED = "DEBT_REMOVED"
BALANCE_EDITED = "BALANCE_EDITED"
PERCENTAGE_CHANGED = "PERCENTAGE_CHANGED"
CONTAINER_RENAMED = "CONTAINER_RENAMED"
PAYCHECK_APPLIED = "PAYCHECK_APPLIED"
PAYCHECK_BLOCKED = "PAYCHECK_BLOCKED"


def shortfall_alert_handler(event: Event, payload: dict) -> dict:
    shortfall = payload.get("shortfall", 0)
    account = payload.get("account", "")
    if payload.get("status") == "shortfall" and shortfall > 0:
        return {
            "alert": f"Fixed charges not covered on {account}: missing {shortfall:.2f}",
            "account": account,
            "shortfall": shortfall,
        }
    return {}


def overdraft_alert_handler(event: Event, payload: dict) -> dict:
    """Flag containers whose true available balance went negative."""
    overdrawn = {name: bal for name, bal in payload.get("virtual_balances", {}).items() if bal < 0}
    if overdrawn:
        names = ", ".join(sorted(overdrawn))
        return {"alert": f"Overdrawn once debts are honored: {names}", "overdrawn": overdrawn}
    return {}


def blocked_handler(event: Event, payload: dict) -> dict:
    errors = list(payload.get("errors", ()))
    return {"alert": "Distribution refused: " + "; ".join(errors), "errors": errors}


def log_handler(event: Event, payload: dict) -> dict:
    log.info("ledger_event", name=event.name, ts=event.ts)
    return {}


def register_default_handlers(bus: EventBus) -> EventBus:
    bus.subscribe(PAYCHECK_APPLIED, shortfall_alert_handler)
    bus.subscribe(PAYCHECK_BLOCKED, blocked_handler)
    for name in (DEBT_ADDED, DEBT_REMOVED, BALANCE_EDITED):
        bus.subscribe(name, overdraft_alert_handler)
    for name in (DEBT_ADDED, DEBT_REMOVED, BALANCE_EDITED, PERCENTAGE_CHANGED,
                 CONTAINER_RENAMED, PAYCHECK_APPLIED, PAYCHECK_BLOCKED):
        bus.subscribe(name, log_handler)
    return bus
