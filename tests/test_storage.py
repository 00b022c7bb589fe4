import json
from dataclasses import replace
from decimal import Decimal

from ledger.config import ROOT_DIR
from ledger.domain import Debt, Item
from ledger.storage import JsonStateStore, MemoryStateStore
from ledger.transforms import default_state


def test_missing_file_loads_seed(tmp_path):
    store = JsonStateStore(tmp_path / "state.json", ROOT_DIR / "data" / "seed.json")
    assert store.load() == default_state()


def test_missing_seed_falls_back_to_builtin_defaults(tmp_path):
    store = JsonStateStore(tmp_path / "state.json", tmp_path / "no_seed.json")
    assert store.load() == default_state()


def test_corrupt_file_loads_defaults(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")

    assert JsonStateStore(path).load() == default_state()


def test_non_object_document_loads_defaults(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")

    assert JsonStateStore(path).load() == default_state()


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / "nested" / "state.json"
    store = JsonStateStore(path)
    state = replace(
        default_state(),
        accounts=(Item("1", "BNP", Decimal("236.00")), Item("2", "Revolut", Decimal("7.5"))),
        debts=(Debt("d1", "2025-02-01", "BNP", "Épargne", Decimal("19.99"), "vacances"),),
    )

    assert store.save(state)
    assert store.load() == state

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["debts"][0]["borrowFrom"] == "BNP"
    assert raw["pocket_percentages"]["Épargne"] == 10


def test_partially_bad_file_keeps_good_keys(tmp_path):
    path = tmp_path / "state.json"
    store = JsonStateStore(path)
    state = replace(default_state(), accounts=(Item("1", "BNP", Decimal("12")), Item("2", "Revolut", Decimal("0"))))
    store.save(state)

    data = json.loads(path.read_text(encoding="utf-8"))
    data["pocket_percentages"] = {"Life": "lots"}
    path.write_text(json.dumps(data), encoding="utf-8")

    loaded = store.load()
    assert loaded.accounts[0].balance == Decimal("12.00")
    assert loaded.pocket_percentages == default_state().pocket_percentages


def test_save_failure_is_swallowed(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")

    store = JsonStateStore(blocker / "state.json")

    assert store.save(default_state()) is False


def test_memory_store():
    store = MemoryStateStore()
    assert store.load() == default_state()

    state = replace(default_state(), debts=())
    assert store.save(state)
    assert store.load() is state
