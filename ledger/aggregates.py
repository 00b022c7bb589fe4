from decimal import Decimal

from ledger.domain import DisplayItem, Item, LedgerState
from ledger.functional import safe_item
from ledger.money import ZERO, round2, sum_money
from ledger.transforms import virtual_balance


def aggregate_balance(pockets: tuple[Item, ...]) -> Decimal:
    """Balance of the aggregate account: the sum of its pockets' raw balances."""
    return sum_money(p.balance for p in pockets)


def resolve_accounts(state: LedgerState, aggregate_name: str) -> tuple[DisplayItem, ...]:
    """Accounts as displayed.

    The aggregate account's stored balance is never shown: it is replaced by
    the pocket sum and marked read-only. The stored value itself is left
    untouched in ``state``.
    """
    pocket_total = aggregate_balance(state.pockets)

    def project(a: Item) -> DisplayItem:
        is_aggregate = a.name == aggregate_name
        balance = pocket_total if is_aggregate else a.balance
        return DisplayItem(
            id=a.id,
            name=a.name,
            balance=balance,
            virtual_balance=virtual_balance(a.name, balance, state.debts),
            readonly=is_aggregate,
        )

    return tuple(project(a) for a in state.accounts)


def resolve_pockets(state: LedgerState) -> tuple[DisplayItem, ...]:
    return tuple(
        DisplayItem(
            id=p.id,
            name=p.name,
            balance=p.balance,
            virtual_balance=virtual_balance(p.name, p.balance, state.debts),
        )
        for p in state.pockets
    )


def net_worth(state: LedgerState, primary_name: str) -> Decimal:
    """Primary account raw balance plus the aggregate account's pocket sum."""
    primary = safe_item(state.accounts, primary_name).map(lambda a: a.balance).get_or_else(ZERO)
    return round2(primary + aggregate_balance(state.pockets))


def debt_sources(state: LedgerState) -> tuple[str, ...]:
    """Container names that may lend or borrow: accounts first, then pockets."""
    return tuple(a.name for a in state.accounts) + tuple(p.name for p in state.pockets)
