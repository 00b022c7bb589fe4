from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class Item:
    id: str
    name: str          # unique within its scope (accounts or pockets)
    balance: Decimal   # raw stored balance


@dataclass(frozen=True)
class Debt:
    id: str
    date: str
    borrow_from: str   # lender: its true available money goes up
    to_fund: str       # borrower: its true available money goes down
    amount: Decimal
    note: str = ""


@dataclass(frozen=True)
class FixedCharge:
    name: str
    amount: Decimal


@dataclass(frozen=True)
class LedgerState:
    accounts: tuple[Item, ...]
    pockets: tuple[Item, ...]
    debts: tuple[Debt, ...]
    # (pocket name, percentage) pairs, kept as a tuple so the snapshot stays hashable
    pocket_percentages: tuple[tuple[str, int], ...]
    fixed_charges: tuple[FixedCharge, ...]

    def percentages(self) -> dict[str, int]:
        return dict(self.pocket_percentages)


# A container as the presentation layer sees it
@dataclass(frozen=True)
class DisplayItem:
    id: str
    name: str
    balance: Decimal
    virtual_balance: Decimal
    readonly: bool = False

    @property
    def has_debt(self) -> bool:
        return self.virtual_balance != self.balance


@dataclass(frozen=True)
class Distribution:
    status: str                       # "covered", "shortfall" or "blocked"
    true_available: Decimal
    total_available: Decimal
    deficit: Decimal
    excess: Decimal
    new_primary_balance: Decimal
    increments: tuple[tuple[str, Decimal], ...]
    errors: tuple[str, ...] = field(default=())

    @property
    def applied(self) -> bool:
        return self.status != "blocked"

    @property
    def shortfall(self) -> Decimal:
        return max(Decimal("0.00"), self.deficit)

    def increment_for(self, pocket: str) -> Optional[Decimal]:
        return dict(self.increments).get(pocket)
