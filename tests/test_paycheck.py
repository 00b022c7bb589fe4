from dataclasses import replace
from decimal import Decimal

from ledger.domain import Debt, FixedCharge, Item
from ledger.paycheck import (
    BLOCKED,
    COVERED,
    SHORTFALL,
    apply_distribution,
    distribute,
    fixed_charges_total,
    plan_paycheck,
    run_paycheck,
)
from ledger.transforms import default_state


def test_scenario_covered_split():
    dist = distribute(Decimal("100"), (), Decimal("1500"), Decimal("236"), {"P1": 50, "P2": 50})

    assert dist.status == COVERED
    assert dist.true_available == Decimal("100.00")
    assert dist.excess == Decimal("1364.00")
    assert dist.new_primary_balance == Decimal("236.00")
    assert dist.increments == (("P1", Decimal("682.00")), ("P2", Decimal("682.00")))
    assert dist.applied


def test_scenario_shortfall_with_debt():
    debts = (Debt(id="d1", date="2025-01-01", borrow_from="BNP", to_fund="X", amount=Decimal("50")),)

    dist = distribute(Decimal("0"), debts, Decimal("0"), Decimal("236"), {"P1": 50, "P2": 50})

    assert dist.true_available == Decimal("50.00")
    assert dist.total_available == Decimal("50.00")
    assert dist.excess == Decimal("0.00")
    assert dist.deficit == Decimal("186.00")
    assert dist.shortfall == Decimal("186.00")
    assert dist.status == SHORTFALL
    assert dist.new_primary_balance == Decimal("0.00")


def test_shortfall_does_not_block_split():
    dist = distribute(Decimal("0"), (), Decimal("1000"), Decimal("236"), {"A": 100})

    assert dist.status == SHORTFALL
    assert dist.applied
    assert dist.excess == Decimal("764.00")
    assert dist.increments == (("A", Decimal("764.00")),)


def test_debt_overlay_does_not_touch_stored_base():
    # lent 100 out: true available is higher, so more flows to the pockets
    debts = (Debt(id="d1", date="", borrow_from="BNP", to_fund="Life", amount=Decimal("100")),)
    dist = distribute(Decimal("200"), debts, Decimal("500"), Decimal("236"), {"A": 100})

    assert dist.true_available == Decimal("300.00")
    assert dist.excess == Decimal("564.00")
    assert dist.new_primary_balance == Decimal("136.00")


def test_scenario_percentages_not_100_refused():
    table = {"A": 30, "B": 30, "C": 30}

    for income in ("0", "10", "1500", "99999.99"):
        dist = distribute(Decimal("250.50"), (), Decimal(income), Decimal("236"), table)

        assert dist.status == BLOCKED
        assert not dist.applied
        assert dist.new_primary_balance == Decimal("250.50")
        assert all(v == 0 for _, v in dist.increments)
        assert any("100" in e for e in dist.errors)


def test_blocked_distribution_leaves_state_unchanged():
    state = default_state()
    state = replace(state, pocket_percentages=(("Life", 30),) + state.pocket_percentages[1:])

    new_state, dist = run_paycheck(state, Decimal("1500"), "BNP")

    assert dist.status == BLOCKED
    assert new_state is state


def test_missing_and_unknown_pockets_are_config_errors():
    dist = distribute(
        Decimal("0"), (), Decimal("500"), Decimal("0"),
        {"A": 50, "Ghost": 50},
        pocket_names=["A", "B"],
    )

    assert dist.status == BLOCKED
    assert any("B has no percentage" in e for e in dist.errors)
    assert any("unknown pocket Ghost" in e for e in dist.errors)


def test_out_of_range_percentage_blocked():
    dist = distribute(Decimal("0"), (), Decimal("500"), Decimal("0"), {"A": 150, "B": -50})
    assert dist.status == BLOCKED


def test_increments_conserve_excess_within_a_cent_per_pocket():
    table = {"A": 33, "B": 33, "C": 34}
    for income in ("1236.01", "1000", "777.77", "236.03", "5000.99"):
        dist = distribute(Decimal("0"), (), Decimal(income), Decimal("236"), table)
        total = sum(v for _, v in dist.increments)
        assert abs(total - dist.excess) <= Decimal("0.01") * len(table)


def test_fixed_charges_total_follows_line_items():
    charges = default_state().fixed_charges
    assert fixed_charges_total(charges) == Decimal("236.00")

    changed = charges + (FixedCharge("Phone", Decimal("9.99")),)
    assert fixed_charges_total(changed) == Decimal("245.99")


def test_run_paycheck_on_seed():
    state = default_state()
    state = replace(state, accounts=(Item("1", "BNP", Decimal("100")),) + state.accounts[1:])

    new_state, dist = run_paycheck(state, Decimal("1500"), "BNP")

    assert dist.excess == Decimal("1364.00")
    assert new_state.accounts[0].balance == Decimal("236.00")
    balances = {p.name: p.balance for p in new_state.pockets}
    assert balances == {
        "Life": Decimal("341.00"),
        "Plaisirs": Decimal("477.40"),
        "Remboursement Papa": Decimal("341.00"),
        "Cadeaux": Decimal("68.20"),
        "Épargne": Decimal("136.40"),
    }
    # inputs untouched
    assert state.accounts[0].balance == Decimal("100")
    assert all(p.balance == 0 for p in state.pockets)


def test_apply_adds_to_existing_pocket_balances():
    state = default_state()
    state = replace(state, pockets=tuple(replace(p, balance=Decimal("1.11")) for p in state.pockets))

    dist = plan_paycheck(state, Decimal("336"), "BNP")
    new_state = apply_distribution(state, dist, "BNP")

    assert dist.excess == Decimal("100.00")
    assert new_state.pockets[0].balance == Decimal("26.11")
    assert new_state.pockets[3].balance == Decimal("6.11")


def test_plan_paycheck_blocked_when_primary_missing():
    state = replace(default_state(), accounts=(Item("2", "Revolut", Decimal("0")),))

    new_state, dist = run_paycheck(state, Decimal("1500"), "BNP")

    assert dist.status == BLOCKED
    assert dist.errors == ("Primary account BNP not found",)
    assert new_state is state
