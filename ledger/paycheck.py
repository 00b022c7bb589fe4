"""Paycheck distribution.

A new income deposit lands on the primary account. Whatever the primary
account's true available money plus the income leaves after the fixed
charges is the excess, which is split across the pockets by percentage.
Fixed charges are never deducted from stored balances; they only gate how
much flows out to the pockets.
"""
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from ledger.domain import Debt, Distribution, FixedCharge, Item, LedgerState
from ledger.functional import safe_item, validate_percentages
from ledger.money import ZERO, round2, sum_money
from ledger.transforms import virtual_balance

COVERED = "covered"
SHORTFALL = "shortfall"
BLOCKED = "blocked"


def fixed_charges_total(charges: Iterable[FixedCharge]) -> Decimal:
    return sum_money(c.amount for c in charges)


def distribute(
    primary_raw_balance: Decimal,
    debts: tuple[Debt, ...],
    income: Decimal,
    fixed_charges: Decimal,
    pocket_percentages: Mapping[str, int],
    pocket_names: Optional[Iterable[str]] = None,
    primary_name: str = "BNP",
) -> Distribution:
    """Compute how ``income`` is split; never mutates anything.

    When the percentage table fails validation the result is ``blocked``:
    the primary balance is returned as given and every increment is zero.
    Otherwise the status is ``covered`` or ``shortfall`` depending on whether
    the primary account's true available money covers the fixed charges on
    its own. A shortfall is informational and does not stop the split.

    Each increment is rounded to the cent on its own, so the increments can
    differ from ``excess`` by at most one cent per pocket.
    """
    raw = round2(primary_raw_balance)
    income = round2(income)
    fixed_charges = round2(fixed_charges)
    known = list(pocket_names) if pocket_names is not None else None
    names = known if known is not None else list(pocket_percentages)

    true_available = virtual_balance(primary_name, raw, debts)
    total_available = round2(true_available + income)
    deficit = round2(fixed_charges - true_available)
    excess = round2(max(ZERO, total_available - fixed_charges))

    gate = validate_percentages(pocket_percentages, known)
    if gate.is_left():
        return Distribution(
            status=BLOCKED,
            true_available=true_available,
            total_available=total_available,
            deficit=deficit,
            excess=excess,
            new_primary_balance=raw,
            increments=tuple((name, ZERO) for name in names),
            errors=gate.get_error()["errors"],
        )

    table = gate.get_or_else({})
    increments = tuple((name, round2(excess * table[name] / 100)) for name in names)

    return Distribution(
        status=COVERED if deficit <= 0 else SHORTFALL,
        true_available=true_available,
        total_available=total_available,
        deficit=deficit,
        excess=excess,
        new_primary_balance=round2(raw + income - excess),
        increments=increments,
    )


def plan_paycheck(state: LedgerState, income: Decimal, primary_name: str) -> Distribution:
    """Run the engine over a full snapshot, as both preview and apply do.

    Without a primary account there is nowhere to land the income, so the
    distribution is blocked rather than split from a zero balance.
    """
    primary = safe_item(state.accounts, primary_name)
    if primary.is_none():
        return Distribution(
            status=BLOCKED,
            true_available=ZERO,
            total_available=ZERO,
            deficit=ZERO,
            excess=ZERO,
            new_primary_balance=ZERO,
            increments=tuple((p.name, ZERO) for p in state.pockets),
            errors=(f"Primary account {primary_name} not found",),
        )
    return distribute(
        primary.get_or_else(None).balance,
        state.debts,
        income,
        fixed_charges_total(state.fixed_charges),
        state.percentages(),
        pocket_names=[p.name for p in state.pockets],
        primary_name=primary_name,
    )


def apply_distribution(state: LedgerState, dist: Distribution, primary_name: str) -> LedgerState:
    """Write a distribution into a new snapshot; all or nothing."""
    if not dist.applied or safe_item(state.accounts, primary_name).is_none():
        return state

    deltas = dict(dist.increments)
    accounts = tuple(
        Item(id=a.id, name=a.name, balance=dist.new_primary_balance) if a.name == primary_name else a
        for a in state.accounts
    )
    pockets = tuple(
        Item(id=p.id, name=p.name, balance=round2(p.balance + deltas.get(p.name, ZERO)))
        for p in state.pockets
    )
    return replace(state, accounts=accounts, pockets=pockets)


def run_paycheck(state: LedgerState, income: Decimal, primary_name: str) -> tuple[LedgerState, Distribution]:
    dist = plan_paycheck(state, income, primary_name)
    return apply_distribution(state, dist, primary_name), dist
