import json
from dataclasses import replace
from datetime import date
from decimal import Decimal
from functools import reduce
from typing import Any, Callable, Mapping, Optional
from uuid import uuid4

from ledger.domain import Debt, FixedCharge, Item, LedgerState
from ledger.functional import Either, Left, Right
from ledger.money import ZERO, parse_amount, round2

DEFAULT_ACCOUNTS = (
    ("1", "BNP"),
    ("2", "Revolut"),
)

DEFAULT_POCKETS = (
    ("p1", "Life", 25),
    ("p2", "Plaisirs", 35),
    ("p3", "Remboursement Papa", 25),
    ("p4", "Cadeaux", 5),
    ("p5", "Épargne", 10),
)

DEFAULT_FIXED_CHARGES = (
    ("Voiture", 175),
    ("Basic-Fit", 35),
    ("Coiffeur", 10),
    ("Base", 16),
)


def default_state() -> LedgerState:
    return LedgerState(
        accounts=tuple(Item(id=i, name=n, balance=ZERO) for i, n in DEFAULT_ACCOUNTS),
        pockets=tuple(Item(id=i, name=n, balance=ZERO) for i, n, _ in DEFAULT_POCKETS),
        debts=(),
        pocket_percentages=tuple((n, pct) for _, n, pct in DEFAULT_POCKETS),
        fixed_charges=tuple(FixedCharge(name=n, amount=Decimal(a)) for n, a in DEFAULT_FIXED_CHARGES),
    )


# --- virtual balance

def virtual_balance(name: str, raw_balance: Decimal, debts: tuple[Debt, ...]) -> Decimal:
    """Raw balance overlaid with every outstanding debt naming the container.

    Lending (``borrow_from``) adds the amount, borrowing (``to_fund``) subtracts
    it. Debts are applied one by one with no netting, and the result may be
    negative. Debts naming unknown containers simply never match.
    """
    def step(acc: Decimal, d: Debt) -> Decimal:
        if d.borrow_from == name:
            acc += d.amount
        if d.to_fund == name:
            acc -= d.amount
        return acc

    return round2(reduce(step, debts, Decimal(raw_balance)))


# --- debt ledger

def new_debt(
    borrow_from: str,
    to_fund: str,
    amount: Any,
    note: str = "",
    on: Optional[date] = None,
    id_factory: Callable[[], str] = lambda: uuid4().hex,
) -> Either[dict, Debt]:
    def build(value: Decimal) -> Either[dict, Debt]:
        if value < 0:
            return Left({
                "error": "negative_amount",
                "message": f"Debt amount must not be negative, got {value}",
                "amount": value,
            })
        return Right(Debt(
            id=id_factory(),
            date=(on or date.today()).isoformat(),
            borrow_from=borrow_from,
            to_fund=to_fund,
            amount=round2(value),
            note=(note or "").strip(),
        ))

    return parse_amount(amount).bind(build)


def add_debt(debts: tuple[Debt, ...], debt: Debt) -> tuple[Debt, ...]:
    # newest first
    return (debt,) + tuple(debts)


def record_debt(
    debts: tuple[Debt, ...],
    borrow_from: str,
    to_fund: str,
    amount: Any,
    note: str = "",
    on: Optional[date] = None,
) -> tuple[Debt, ...]:
    """Validate and prepend a debt; invalid input leaves the ledger as it was."""
    return (
        new_debt(borrow_from, to_fund, amount, note, on)
        .map(lambda d: add_debt(debts, d))
        .get_or_else(tuple(debts))
    )


def remove_debt(debts: tuple[Debt, ...], debt_id: str) -> tuple[Debt, ...]:
    return tuple(d for d in debts if d.id != debt_id)


# --- edits

def set_balance(
    items: tuple[Item, ...],
    item_id: str,
    raw: Any,
    aggregate_name: Optional[str] = None,
) -> tuple[Item, ...]:
    """Replace one container's raw balance.

    The aggregate account is read-only: its balance is derived from the
    pockets, so edits to it are ignored, as is unparseable input.
    """
    parsed = parse_amount(raw)
    if parsed.is_left():
        return tuple(items)
    value = round2(parsed.get_or_else(ZERO))
    return tuple(
        Item(id=i.id, name=i.name, balance=value)
        if i.id == item_id and i.name != aggregate_name
        else i
        for i in items
    )


def set_percentage(state: LedgerState, pocket: str, pct: Any) -> LedgerState:
    if pocket not in state.percentages() and all(p.name != pocket for p in state.pockets):
        return state
    try:
        value = int(pct)
    except (TypeError, ValueError):
        return state
    value = max(0, min(100, value))

    table = state.percentages()
    table[pocket] = value
    return replace(state, pocket_percentages=tuple(table.items()))


def rename_container(
    state: LedgerState,
    old: str,
    new: str,
    aggregate_name: Optional[str] = None,
    primary_name: Optional[str] = None,
) -> LedgerState:
    """Rename an account or pocket and rewrite every name reference to it.

    Debts and the percentage table point at containers by name, so they are
    rewritten in the same step. Empty names, a new name already used by any
    account or pocket, and renaming the aggregate or primary account are
    refused.
    """
    new = (new or "").strip()
    if not new or new == old or old in (aggregate_name, primary_name):
        return state
    # debts link by name across both scopes
    if any(i.name == new for i in state.accounts + state.pockets):
        return state

    def rename_in(items: tuple[Item, ...]) -> tuple[Item, ...]:
        if all(i.name != old for i in items):
            return items
        return tuple(Item(id=i.id, name=new if i.name == old else i.name, balance=i.balance) for i in items)

    accounts = rename_in(state.accounts)
    pockets = rename_in(state.pockets)
    if accounts is state.accounts and pockets is state.pockets:
        return state

    debts = tuple(
        Debt(
            id=d.id,
            date=d.date,
            borrow_from=new if d.borrow_from == old else d.borrow_from,
            to_fund=new if d.to_fund == old else d.to_fund,
            amount=d.amount,
            note=d.note,
        )
        for d in state.debts
    )
    percentages = tuple((new if name == old else name, pct) for name, pct in state.pocket_percentages)
    return replace(state, accounts=accounts, pockets=pockets, debts=debts, pocket_percentages=percentages)


# --- serialization

def _money(value: Any) -> Decimal:
    parsed = parse_amount(value)
    if parsed.is_left():
        raise ValueError(parsed.get_error()["message"])
    return round2(parsed.get_or_else(ZERO))


def items_from_data(data: list) -> tuple[Item, ...]:
    return tuple(Item(id=str(i["id"]), name=str(i["name"]), balance=_money(i["balance"])) for i in data)


def debts_from_data(data: list) -> tuple[Debt, ...]:
    # camelCase keys are what older saved states contain
    return tuple(
        Debt(
            id=str(d["id"]),
            date=str(d.get("date", "")),
            borrow_from=str(d["borrowFrom"] if "borrowFrom" in d else d["borrow_from"]),
            to_fund=str(d["toFund"] if "toFund" in d else d["to_fund"]),
            amount=_money(d["amount"]),
            note=str(d.get("note") or ""),
        )
        for d in data
    )


def percentages_from_data(data: Mapping[str, Any]) -> tuple[tuple[str, int], ...]:
    if not isinstance(data, Mapping):
        raise ValueError("pocket percentages must be a mapping")
    return tuple((str(name), int(pct)) for name, pct in data.items())


def fixed_charges_from_data(data: list) -> tuple[FixedCharge, ...]:
    return tuple(FixedCharge(name=str(c["name"]), amount=_money(c["amount"])) for c in data)


STATE_READERS: dict[str, Callable[[Any], Any]] = {
    "accounts": items_from_data,
    "pockets": items_from_data,
    "debts": debts_from_data,
    "pocket_percentages": percentages_from_data,
    "fixed_charges": fixed_charges_from_data,
}


def state_to_data(state: LedgerState) -> dict[str, Any]:
    def item(i: Item) -> dict:
        return {"id": i.id, "name": i.name, "balance": str(i.balance)}

    return {
        "accounts": [item(a) for a in state.accounts],
        "pockets": [item(p) for p in state.pockets],
        "debts": [
            {
                "id": d.id,
                "date": d.date,
                "borrowFrom": d.borrow_from,
                "toFund": d.to_fund,
                "amount": str(d.amount),
                "note": d.note,
            }
            for d in state.debts
        ],
        "pocket_percentages": dict(state.pocket_percentages),
        "fixed_charges": [{"name": c.name, "amount": str(c.amount)} for c in state.fixed_charges],
    }


def state_from_data(data: Mapping[str, Any], fallback: Optional[LedgerState] = None) -> tuple[LedgerState, tuple[str, ...]]:
    """Build a state from decoded JSON, key by key.

    A missing or malformed key falls back to the corresponding part of
    ``fallback`` (the default seed when omitted). Returns the state and the
    keys that fell back.
    """
    base = fallback or default_state()
    parts = {}
    fell_back = []
    for key, reader in STATE_READERS.items():
        try:
            parts[key] = reader(data[key])
        except (KeyError, TypeError, ValueError, AttributeError):
            parts[key] = getattr(base, key)
            fell_back.append(key)
    return LedgerState(**parts), tuple(fell_back)


def load_seed(path: str) -> LedgerState:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    state, _ = state_from_data(data)
    return state
