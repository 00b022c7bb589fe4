from dataclasses import replace
from decimal import Decimal
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Protocol

import structlog

from ledger import events
from ledger.aggregates import aggregate_balance, debt_sources, net_worth, resolve_accounts, resolve_pockets
from ledger.config import LedgerSettings
from ledger.domain import Debt, Distribution, LedgerState
from ledger.functional import Either, Left, Right
from ledger.money import parse_amount
from ledger.paycheck import apply_distribution, fixed_charges_total, plan_paycheck
from ledger.storage import JsonStateStore
from ledger.transforms import (
    add_debt,
    new_debt,
    remove_debt,
    rename_container,
    set_balance,
    set_percentage,
    virtual_balance,
)

log = structlog.get_logger(__name__)

MAX_ALERTS = 50


class StateStore(Protocol):
    def load(self) -> LedgerState: ...

    def save(self, state: LedgerState) -> bool: ...


class LedgerService:
    """Facade the presentation layer talks to.

    Holds the current snapshot, runs the pure ledger operations against it,
    swaps in the result, persists it and publishes an event. Invalid input
    leaves the snapshot as it was.
    """

    def __init__(
        self,
        store: StateStore,
        bus: Optional[events.EventBus] = None,
        primary_account: str = "BNP",
        aggregate_account: str = "Revolut",
    ):
        self.store = store
        self.bus = bus if bus is not None else events.register_default_handlers(events.EventBus())
        self.primary_account = primary_account
        self.aggregate_account = aggregate_account
        self.alerts: Deque[dict] = deque(maxlen=MAX_ALERTS)
        self._state = store.load()

    @classmethod
    def from_settings(cls, settings: LedgerSettings) -> "LedgerService":
        return cls(
            JsonStateStore(settings.state_path, settings.seed_path),
            primary_account=settings.primary_account,
            aggregate_account=settings.aggregate_account,
        )

    @property
    def state(self) -> LedgerState:
        return self._state

    def reload(self) -> LedgerState:
        self._state = self.store.load()
        return self._state

    def _commit(self, new_state: LedgerState, event: str, payload: dict) -> List[dict]:
        self._state = new_state
        if not self.store.save(new_state):
            log.warning("state_not_persisted", event_name=event)
        return self._publish(event, payload)

    def _publish(self, event: str, payload: dict) -> List[dict]:
        results = self.bus.publish(event, payload)
        self.alerts.extend(r for r in results if r and "alert" in r)
        return results

    # --- debts

    def add_debt(self, borrow_from: str, to_fund: str, amount: Any, note: str = "") -> Either[dict, Debt]:
        result = new_debt(borrow_from, to_fund, amount, note)
        if result.is_left():
            log.warning("debt_rejected", **result.get_error())
            return result

        debt = result.get_or_else(None)
        state = replace(self._state, debts=add_debt(self._state.debts, debt))
        log.info("debt_added", debt_id=debt.id, borrow_from=debt.borrow_from, to_fund=debt.to_fund, amount=str(debt.amount))
        self._commit(state, events.DEBT_ADDED, {
            "debt_id": debt.id,
            "amount": debt.amount,
            "virtual_balances": self._virtual_balances_for(state),
        })
        return Right(debt)

    def remove_debt(self, debt_id: str) -> bool:
        debts = remove_debt(self._state.debts, debt_id)
        if len(debts) == len(self._state.debts):
            log.info("debt_not_found", debt_id=debt_id)
            return False
        state = replace(self._state, debts=debts)
        log.info("debt_removed", debt_id=debt_id)
        self._commit(state, events.DEBT_REMOVED, {
            "debt_id": debt_id,
            "virtual_balances": self._virtual_balances_for(state),
        })
        return True

    # --- edits

    def edit_balance(self, item_id: str, raw: Any) -> bool:
        """Set an account's or pocket's raw balance. Refused for the aggregate account."""
        accounts = set_balance(self._state.accounts, item_id, raw, self.aggregate_account)
        pockets = set_balance(self._state.pockets, item_id, raw)
        if accounts == self._state.accounts and pockets == self._state.pockets:
            log.info("balance_edit_ignored", item_id=item_id, raw=str(raw))
            return False
        state = replace(self._state, accounts=accounts, pockets=pockets)
        self._commit(state, events.BALANCE_EDITED, {
            "item_id": item_id,
            "virtual_balances": self._virtual_balances_for(state),
        })
        return True

    def set_percentage(self, pocket: str, pct: Any) -> bool:
        state = set_percentage(self._state, pocket, pct)
        if state is self._state:
            return False
        self._commit(state, events.PERCENTAGE_CHANGED, {
            "pocket": pocket,
            "percentage": state.percentages().get(pocket),
            "total": sum(state.percentages().values()),
        })
        return True

    def rename(self, old: str, new: str) -> bool:
        state = rename_container(self._state, old, new, self.aggregate_account, self.primary_account)
        if state is self._state:
            log.info("rename_refused", old=old, new=new)
            return False
        self._commit(state, events.CONTAINER_RENAMED, {"old": old, "new": new.strip()})
        return True

    # --- paycheck

    def _parse_income(self, raw: Any) -> Either[dict, Decimal]:
        def non_negative(value: Decimal) -> Either[dict, Decimal]:
            if value < 0:
                return Left({"error": "negative_income", "message": f"Income must not be negative, got {value}"})
            return Right(value)

        return parse_amount(raw).bind(non_negative)

    def preview_paycheck(self, raw_income: Any) -> Either[dict, Distribution]:
        return self._parse_income(raw_income).map(
            lambda income: plan_paycheck(self._state, income, self.primary_account)
        )

    def apply_paycheck(self, raw_income: Any) -> Either[dict, Distribution]:
        parsed = self._parse_income(raw_income)
        if parsed.is_left():
            log.warning("income_rejected", **parsed.get_error())
            return parsed

        income = parsed.get_or_else(None)
        dist = plan_paycheck(self._state, income, self.primary_account)
        if not dist.applied:
            log.warning("paycheck_blocked", errors=list(dist.errors))
            self._publish(events.PAYCHECK_BLOCKED, {"errors": dist.errors})
            return Right(dist)

        log.info(
            "paycheck_applied",
            income=str(income),
            excess=str(dist.excess),
            status=dist.status,
            new_primary_balance=str(dist.new_primary_balance),
        )
        self._commit(apply_distribution(self._state, dist, self.primary_account), events.PAYCHECK_APPLIED, {
            "account": self.primary_account,
            "status": dist.status,
            "shortfall": dist.shortfall,
            "excess": dist.excess,
            "increments": dict(dist.increments),
        })
        return Right(dist)

    # --- read side

    def _virtual_balances_for(self, state: LedgerState) -> Dict[str, Decimal]:
        names = {a.name: a.balance for a in state.accounts}
        names[self.aggregate_account] = aggregate_balance(state.pockets)
        names.update({p.name: p.balance for p in state.pockets})
        return {name: virtual_balance(name, bal, state.debts) for name, bal in names.items()}

    def dashboard(self) -> Dict[str, Any]:
        state = self._state
        percentages = state.percentages()
        return {
            "accounts": resolve_accounts(state, self.aggregate_account),
            "pockets": resolve_pockets(state),
            "net_worth": net_worth(state, self.primary_account),
            "debts": state.debts,
            "debt_sources": debt_sources(state),
            "percentages": percentages,
            "percentage_total": sum(percentages.values()),
            "fixed_charges": state.fixed_charges,
            "fixed_charges_total": fixed_charges_total(state.fixed_charges),
        }
