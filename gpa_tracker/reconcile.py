"""
Moving anonymous session data into an account on sign-in.

Migration works one unit at a time (a term's course list or a settings
bundle). A unit is copied from the session into the account only when the
account copy is absent or still at its default, and the session copy has real
data. The account's existing data always wins. Once copied, the session copy
is removed, so running the migration again finds nothing left to move.
"""

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, MutableMapping, Optional

from .records import MAX_TERM, SETTINGS_KEYS, is_default_unit, term_key
from .storage import StorageError

logger = logging.getLogger(__name__)

MIGRATED = "migrated"
KEPT_ACCOUNT_DATA = "kept_account_data"
NOTHING_TO_MIGRATE = "nothing_to_migrate"
FAILED = "failed"


class ReconciliationState(Enum):
    IDLE = "idle"
    MIGRATING = "migrating"
    SETTLED = "settled"


def migratable_units() -> List[str]:
    return [term_key(n) for n in range(1, MAX_TERM + 1)] + list(SETTINGS_KEYS)


def _outcome(key: str, outcome: str, error: Optional[str] = None) -> Dict[str, Any]:
    return {"unit": key, "outcome": outcome, "error": error}


def migrate_unit(ephemeral: Any, durable: Any, user_id: str, key: str) -> Dict[str, Any]:
    try:
        session_copy = ephemeral.get(None, key)
    except StorageError as e:
        logger.warning("Skipping %s: session copy unreadable (%s)", key, e)
        return _outcome(key, FAILED, str(e))

    if is_default_unit(key, session_copy):
        return _outcome(key, NOTHING_TO_MIGRATE)

    try:
        account_copy = durable.get(user_id, key)
    except StorageError as e:
        # an unreadable account copy is never treated as empty
        logger.warning("Skipping %s: account copy unreadable (%s)", key, e)
        return _outcome(key, FAILED, str(e))

    if not is_default_unit(key, account_copy):
        return _outcome(key, KEPT_ACCOUNT_DATA)

    if not durable.set(user_id, key, session_copy):
        logger.warning("Migration of %s failed; session copy kept for a later attempt", key)
        return _outcome(key, FAILED, "write failed")

    if not ephemeral.delete(None, key):
        logger.warning("Migrated %s but could not clear the session copy", key)

    logger.info("Migrated %s into account %s", key, user_id)
    return _outcome(key, MIGRATED)


def migrate_all(ephemeral: Any, durable: Any, user_id: str, units: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
    report = []
    for key in (units if units is not None else migratable_units()):
        try:
            report.append(migrate_unit(ephemeral, durable, user_id, key))
        except Exception as e:
            logger.exception("Unexpected error migrating %s", key)
            report.append(_outcome(key, FAILED, str(e)))
    return report


class ReconciliationController:
    """
    Runs the one-shot migration for an ``Anonymous -> Account`` transition.

    ``observe`` is called on every render with the current identity and the
    new-login flag (read once from the session). Migration runs only for an
    account identity on a fresh sign-in; a re-render with an already known
    account does nothing.
    """

    def __init__(self, ephemeral: Any, durable: Any):
        self.ephemeral = ephemeral
        self.durable = durable
        self.state = ReconciliationState.IDLE
        self.last_report: List[Dict[str, Any]] = []

    def observe(self, user_id: Optional[str], new_login: bool) -> List[Dict[str, Any]]:
        if not user_id:
            self.state = ReconciliationState.IDLE
            return []

        if not new_login:
            if self.state == ReconciliationState.IDLE:
                self.state = ReconciliationState.SETTLED
            return []

        self.state = ReconciliationState.MIGRATING
        report = migrate_all(self.ephemeral, self.durable, user_id)
        self.state = ReconciliationState.SETTLED
        self.last_report = report

        migrated = [r["unit"] for r in report if r["outcome"] == MIGRATED]
        failed = [r["unit"] for r in report if r["outcome"] == FAILED]
        logger.info("Sign-in reconciliation for %s: %d migrated, %d failed", user_id, len(migrated), len(failed))
        return report


def reset_after_logout(ephemeral: Any, ui_state: MutableMapping[str, Any], ui_keys: Iterable[str] = ()) -> None:
    """Clear session data for the departing user. Durable data is untouched."""
    ephemeral.clear()
    for k in ui_keys:
        ui_state.pop(k, None)
