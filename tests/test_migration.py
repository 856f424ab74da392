"""Tests for persisted state migrations."""

import copy
from datetime import datetime

import pytest

from budget_engine.exceptions import MigrationError
from budget_engine.services.migration import CURRENT_SCHEMA_VERSION, migrate_state

NOW = datetime(2025, 1, 1, 12, 0)


def _legacy_state() -> dict:
    return {
        "days": {
            "2025-01-05": {
                "date": "2025-01-05",
                "income": [],
                "spending": [
                    {"id": "s1", "type": "spending", "amount": 12.5, "description": "Lunch"},
                    {"id": "t1", "type": "transfer", "amount": 100, "description": "To savings"},
                ],
            }
        },
        "recurringExpenses": [
            {"id": "rent", "amount": 1200, "description": "Rent", "dayOfMonth": 1},
            {
                "id": "phone",
                "amount": 40,
                "description": "Phone",
                "pattern": {"type": "monthly", "dayType": "dayOfMonth", "dayValue": 20},
                "isActive": False,
                "createdAt": "2024-06-01T00:00:00",
            },
        ],
        "recurringIncome": [{"id": "pay", "amount": 900, "description": "Paycheck", "dayOfWeek": 5}],
    }


def test_legacy_expense_becomes_monthly_pattern() -> None:
    migrated = migrate_state(_legacy_state(), now=NOW)
    rent = migrated["recurringExpenses"][0]

    assert rent["pattern"] == {"type": "monthly", "dayType": "dayOfMonth", "dayValue": 1}
    assert "dayOfMonth" not in rent
    assert rent["isActive"] is True
    assert rent["createdAt"] == NOW.isoformat()


def test_legacy_income_becomes_weekly_pattern() -> None:
    migrated = migrate_state(_legacy_state(), now=NOW)
    pay = migrated["recurringIncome"][0]

    assert pay["pattern"] == {"type": "weekly", "dayType": "dayOfWeek", "dayValue": 5}
    assert "dayOfWeek" not in pay


def test_items_with_pattern_are_untouched() -> None:
    migrated = migrate_state(_legacy_state(), now=NOW)
    assert migrated["recurringExpenses"][1] == _legacy_state()["recurringExpenses"][1]


def test_transfers_move_to_their_own_bucket() -> None:
    migrated = migrate_state(_legacy_state(), now=NOW)
    day = migrated["days"]["2025-01-05"]

    assert [txn["id"] for txn in day["spending"]] == ["s1"]
    assert [txn["id"] for txn in day["transfers"]] == ["t1"]


def test_schema_version_is_stamped() -> None:
    assert migrate_state(_legacy_state(), now=NOW)["schemaVersion"] == CURRENT_SCHEMA_VERSION


def test_input_is_not_mutated() -> None:
    state = _legacy_state()
    snapshot = copy.deepcopy(state)
    migrate_state(state, now=NOW)
    assert state == snapshot


def test_migration_is_idempotent() -> None:
    once = migrate_state(_legacy_state(), now=NOW)
    assert migrate_state(once, now=datetime(2030, 1, 1)) == once


def test_unversioned_state_already_in_new_shape_is_unchanged() -> None:
    once = migrate_state(_legacy_state(), now=NOW)
    unversioned = {key: value for key, value in once.items() if key != "schemaVersion"}
    assert migrate_state(unversioned, now=datetime(2030, 1, 1)) == once


def test_empty_state() -> None:
    assert migrate_state({}, now=NOW) == {
        "recurringExpenses": [],
        "recurringIncome": [],
        "days": {},
        "schemaVersion": CURRENT_SCHEMA_VERSION,
    }


def test_newer_schema_is_rejected() -> None:
    with pytest.raises(MigrationError, match="newer"):
        migrate_state({"schemaVersion": CURRENT_SCHEMA_VERSION + 1})


@pytest.mark.parametrize("version", ["2", 0, True, None])
def test_invalid_schema_version(version) -> None:
    with pytest.raises(MigrationError, match="Invalid schema version"):
        migrate_state({"schemaVersion": version})
