"""Versioned upgrades for persisted budget state.

Each step upgrades a state from version N to N+1 and must be idempotent,
mirroring how schema revisions are chained. A state without
``schemaVersion`` is version 1.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from budget_engine.exceptions import MigrationError
from budget_engine.logger import get_logger
from budget_engine.schemas.recurrence import RecurrenceDayType, RecurrenceType

logger = get_logger(__name__)

SCHEMA_VERSION_KEY = "schemaVersion"
CURRENT_SCHEMA_VERSION = 2

Migration = Callable[[dict[str, Any], datetime], dict[str, Any]]


def _upgrade_legacy_item(
    item: Mapping[str, Any],
    legacy_field: str,
    pattern_type: RecurrenceType,
    day_type: RecurrenceDayType,
    now: datetime,
) -> dict[str, Any]:
    if legacy_field not in item or "pattern" in item:
        return dict(item)

    upgraded = {key: value for key, value in item.items() if key != legacy_field}
    upgraded["pattern"] = {
        "type": pattern_type.value,
        "dayType": day_type.value,
        "dayValue": item[legacy_field],
    }
    upgraded.setdefault("isActive", True)
    upgraded.setdefault("createdAt", now.isoformat())
    return upgraded


def _split_transfers(bucket: Mapping[str, Any]) -> dict[str, Any]:
    day = dict(bucket)
    spending: list[Any] = []
    transfers = list(day.get("transfers") or [])

    for txn in day.get("spending") or []:
        if isinstance(txn, Mapping) and txn.get("type") == "transfer":
            transfers.append(txn)
        else:
            spending.append(txn)

    day["spending"] = spending
    day["transfers"] = transfers
    day.setdefault("income", [])
    return day


def _migrate_v1_to_v2(state: dict[str, Any], now: datetime) -> dict[str, Any]:
    """Anchor-only recurring items become patterns; transfers get their own bucket."""
    state["recurringExpenses"] = [
        _upgrade_legacy_item(item, "dayOfMonth", RecurrenceType.MONTHLY, RecurrenceDayType.DAY_OF_MONTH, now)
        for item in state.get("recurringExpenses") or []
    ]
    state["recurringIncome"] = [
        _upgrade_legacy_item(item, "dayOfWeek", RecurrenceType.WEEKLY, RecurrenceDayType.DAY_OF_WEEK, now)
        for item in state.get("recurringIncome") or []
    ]
    state["days"] = {key: _split_transfers(bucket) for key, bucket in (state.get("days") or {}).items()}
    return state


MIGRATIONS: dict[int, Migration] = {
    1: _migrate_v1_to_v2,
}


def schema_version(state: Mapping[str, Any]) -> int:
    """Return the declared schema version of a persisted state."""
    version = state.get(SCHEMA_VERSION_KEY, 1)
    if isinstance(version, bool) or not isinstance(version, int) or version < 1:
        raise MigrationError(f"Invalid schema version: {version!r}")
    return version


def migrate_state(state: Mapping[str, Any], *, now: datetime | None = None) -> dict[str, Any]:
    """Upgrade a persisted state to CURRENT_SCHEMA_VERSION.

    The input mapping is left untouched; the upgraded copy is returned.

    Raises:
        MigrationError: If the state declares an invalid version or one
            newer than this engine understands.
    """
    version = schema_version(state)
    if version > CURRENT_SCHEMA_VERSION:
        raise MigrationError(
            f"State schema version {version} is newer than supported version {CURRENT_SCHEMA_VERSION}"
        )

    now = now or datetime.now(UTC)
    migrated = copy.deepcopy(dict(state))

    while version < CURRENT_SCHEMA_VERSION:
        step = MIGRATIONS[version]
        migrated = step(migrated, now)
        logger.info("Migrated budget state", from_version=version, to_version=version + 1)
        version += 1

    migrated[SCHEMA_VERSION_KEY] = CURRENT_SCHEMA_VERSION
    return migrated
