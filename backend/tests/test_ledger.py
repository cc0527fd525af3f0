"""
Tests for ledger implementations (local JSON file, in-memory, Supabase with a mocked client).
"""
import json

import pytest
from unittest.mock import MagicMock

from foodlog.errors import StorageError
from foodlog.models.entries import ConfidenceSource, FoodEntry, MealType, WeightEntry
from foodlog.persistence.ledger import (
    InMemoryLedger,
    JsonFileLedger,
    SupabaseLedger,
    build_ledger,
    distinct_recent,
)


def _entry(name, calories=100, ts="2026-10-18T08:00:00", owner="user-1", meal=MealType.BREAKFAST):
    return FoodEntry(
        owner_id=owner,
        name=name,
        calories=calories,
        confidence=0.85,
        confidence_source=ConfidenceSource.COMMON_FOOD,
        timestamp=ts,
        meal_type=meal,
        protein=10.0,
    )


# ===== row mapping ============================================================

def test_row_round_trip_keeps_every_field():
    entry = _entry("2 eggs", 140)
    row = entry.to_row()
    assert row["user_id"] == "user-1"
    assert row["food_name"] == "2 eggs"
    assert row["meal_type"] == "breakfast"
    assert row["confidence_source"] == "commonFood"
    assert row["logged_via"] == "chat"
    assert FoodEntry.from_row(row) == entry


def test_exercise_row_has_null_meal_type():
    row = _entry("30 min walk", -120, meal=None).to_row()
    assert row["meal_type"] is None
    assert row["calories"] == -120


# ===== distinct recent ========================================================

def test_distinct_recent_newest_first_one_per_name():
    entries = [
        _entry("Banana", ts="2026-10-16T08:00:00"),
        _entry("banana", ts="2026-10-18T08:00:00"),
        _entry("Toast", ts="2026-10-17T08:00:00"),
        _entry("30 min walk", -120, ts="2026-10-18T09:00:00", meal=None),
    ]
    recent = distinct_recent(entries)
    assert [(e.name, e.timestamp[:10]) for e in recent] == [("banana", "2026-10-18"), ("Toast", "2026-10-17")]


def test_distinct_recent_limit():
    entries = [_entry(f"food {i}", ts=f"2026-10-{10 + i:02d}T08:00:00") for i in range(5)]
    assert len(distinct_recent(entries, limit=3)) == 3


# ===== local JSON ledger ======================================================

def test_json_ledger_persists_entries_and_weights(tmp_path):
    path = tmp_path / "data" / "food_entries.json"
    ledger = JsonFileLedger(path)
    ledger.save_all([_entry("Toast"), _entry("Coffee", owner="user-2")])
    ledger.save_weight(WeightEntry("user-1", 79.5, "2026-10-18T07:00:00"))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert [r["food_name"] for r in data["food_entries"]] == ["Toast", "Coffee"]
    assert data["weight_entries"][0]["weight_kg"] == 79.5

    reopened = JsonFileLedger(path)
    assert [e.name for e in reopened.recent_entries("user-1")] == ["Toast"]


def test_json_ledger_corrupt_file_starts_empty(tmp_path):
    path = tmp_path / "food_entries.json"
    path.write_text("{not json", encoding="utf-8")
    ledger = JsonFileLedger(path)
    assert ledger.recent_entries("user-1") == []
    ledger.save(_entry("Toast"))
    assert [e.name for e in ledger.recent_entries("user-1")] == ["Toast"]


def test_json_ledger_write_failure_raises_storage_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory", encoding="utf-8")
    ledger = JsonFileLedger(blocker / "food_entries.json")
    with pytest.raises(StorageError):
        ledger.save(_entry("Toast"))


# ===== in-memory ledger =======================================================

def test_in_memory_ledger():
    ledger = InMemoryLedger()
    ledger.save_all([_entry("Toast"), _entry("Coffee", owner="user-2")])
    ledger.save_weight(WeightEntry("user-1", 80.0, "2026-10-18T07:00:00"))
    assert [e.name for e in ledger.recent_entries("user-1")] == ["Toast"]
    assert len(ledger.weights) == 1


# ===== Supabase ledger ========================================================

def test_supabase_batch_is_one_insert():
    client = MagicMock()
    ledger = SupabaseLedger(client=client, food_table="food_entries", weight_table="weight_entries")
    ledger.save_all([_entry("Toast"), _entry("Coffee")])

    client.table.assert_called_once_with("food_entries")
    rows = client.table.return_value.insert.call_args[0][0]
    assert [r["food_name"] for r in rows] == ["Toast", "Coffee"]
    client.table.return_value.insert.return_value.execute.assert_called_once()


def test_supabase_insert_failure_raises_storage_error():
    client = MagicMock()
    client.table.return_value.insert.return_value.execute.side_effect = RuntimeError("503")
    ledger = SupabaseLedger(client=client, food_table="food_entries", weight_table="weight_entries")
    with pytest.raises(StorageError):
        ledger.save(_entry("Toast"))


def test_supabase_weight_goes_to_weight_table():
    client = MagicMock()
    ledger = SupabaseLedger(client=client, food_table="food_entries", weight_table="weight_entries")
    ledger.save_weight(WeightEntry("user-1", 79.5, "2026-10-18T07:00:00"))
    client.table.assert_called_once_with("weight_entries")


def test_supabase_recent_entries_maps_rows():
    client = MagicMock()
    query = client.table.return_value.select.return_value.eq.return_value.order.return_value.limit.return_value
    query.execute.return_value = MagicMock(data=[_entry("Toast").to_row(), _entry("toast").to_row()])
    ledger = SupabaseLedger(client=client, food_table="food_entries", weight_table="weight_entries")

    recent = ledger.recent_entries("user-1", limit=5)
    assert [e.name for e in recent] == ["Toast"]
    client.table.return_value.select.return_value.eq.assert_called_once_with("user_id", "user-1")


def test_supabase_without_credentials_raises(monkeypatch):
    for name in ("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "NEXT_PUBLIC_SUPABASE_ANON_KEY"):
        monkeypatch.delenv(name, raising=False)
    with pytest.raises(StorageError):
        SupabaseLedger()


def test_build_ledger_uses_local_file_without_supabase(monkeypatch, tmp_path):
    for name in ("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "NEXT_PUBLIC_SUPABASE_ANON_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LOCAL_LEDGER_PATH", str(tmp_path / "ledger.json"))
    ledger = build_ledger()
    assert isinstance(ledger, JsonFileLedger)
    assert ledger.path == tmp_path / "ledger.json"
