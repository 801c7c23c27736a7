"""
Record stores.

Every backend speaks the same narrow contract, keyed by identity and unit key:

    get(user_id, key)       -> data or None when absent; raises StorageError
    set(user_id, key, data) -> True on success, False on failure
    delete(user_id, key)    -> True on success, False on failure
    list_keys(user_id)      -> set of unit keys; raises StorageError

``user_id`` is ``None`` for the anonymous session. ``SessionStore`` ignores it
(its lifetime is the browser session), the durable stores require it.
"""

import datetime
import json
import logging
import os
from typing import Any, Dict, MutableMapping, Optional, Set, Tuple

from .records import default_for_unit, normalize_unit, parse_term_record, term_key

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """A backend could not be read."""


def _jsonable(x: Any) -> Any:
    if isinstance(x, (datetime.datetime, datetime.date)):
        return x.isoformat()
    if isinstance(x, dict):
        return {str(k): _jsonable(v) for k, v in x.items()}
    if isinstance(x, (list, tuple)):
        return [_jsonable(v) for v in x]
    return x


# -------------------------------
# Ephemeral (browser session)
# -------------------------------

class SessionStore:
    PREFIX = "store:"

    def __init__(self, state: MutableMapping[str, Any]):
        self.state = state

    def _slot(self, key: str) -> str:
        return f"{self.PREFIX}{key}"

    def get(self, user_id: Optional[str], key: str) -> Any:
        raw = self.state.get(self._slot(key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.error("Error loading session data for key %s: %s", key, e)
            return None

    def set(self, user_id: Optional[str], key: str, data: Any) -> bool:
        try:
            self.state[self._slot(key)] = json.dumps(_jsonable(data))
            return True
        except (TypeError, ValueError) as e:
            logger.error("Error storing session data for key %s: %s", key, e)
            return False

    def delete(self, user_id: Optional[str], key: str) -> bool:
        self.state.pop(self._slot(key), None)
        return True

    def list_keys(self, user_id: Optional[str]) -> Set[str]:
        return {str(k)[len(self.PREFIX):] for k in list(self.state.keys()) if str(k).startswith(self.PREFIX)}

    def clear(self) -> None:
        for key in self.list_keys(None):
            self.delete(None, key)


# -------------------------------
# Durable: local JSON file (profile mode)
# -------------------------------

class LocalJsonStore:
    def __init__(self, path: str):
        self.path = path

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {"users": {}}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e
        if not isinstance(data, dict):
            return {"users": {}}
        data.setdefault("users", {})
        return data

    def _save(self, data: Dict[str, Any]) -> bool:
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
            return True
        except OSError as e:
            logger.error("Error saving data to %s: %s", self.path, e)
            return False

    def _require(self, user_id: Optional[str]) -> str:
        if not user_id or not str(user_id).strip():
            raise StorageError("Local profile store needs a profile name")
        return str(user_id)

    def users(self) -> list:
        return sorted(self._load()["users"].keys())

    def create_user(self, user_id: str) -> bool:
        try:
            data = self._load()
        except StorageError as e:
            logger.error("Cannot create profile %s: %s", user_id, e)
            return False
        data["users"].setdefault(str(user_id), {})
        return self._save(data)

    def get(self, user_id: Optional[str], key: str) -> Any:
        uid = self._require(user_id)
        return self._load()["users"].get(uid, {}).get(key)

    def set(self, user_id: Optional[str], key: str, data: Any) -> bool:
        try:
            uid = self._require(user_id)
            doc = self._load()
        except StorageError as e:
            logger.error("Cannot save %s: %s", key, e)
            return False
        doc["users"].setdefault(uid, {})[key] = _jsonable(data)
        return self._save(doc)

    def delete(self, user_id: Optional[str], key: str) -> bool:
        try:
            uid = self._require(user_id)
            doc = self._load()
        except StorageError as e:
            logger.error("Cannot delete %s: %s", key, e)
            return False
        doc["users"].get(uid, {}).pop(key, None)
        return self._save(doc)

    def list_keys(self, user_id: Optional[str]) -> Set[str]:
        uid = self._require(user_id)
        return set(self._load()["users"].get(uid, {}).keys())


# -------------------------------
# Durable: Supabase (real accounts)
# -------------------------------

class SupabaseStore:
    """
    One row per (user_id, unit_key):

        create table user_records (
            user_id uuid not null,
            unit_key text not null,
            data jsonb,
            updated_at timestamptz,
            primary key (user_id, unit_key)
        );
    """

    def __init__(self, client: Any, table: str = "user_records"):
        self.client = client
        self.table = table

    def _require(self, user_id: Optional[str]) -> str:
        if not user_id or not str(user_id).strip():
            raise StorageError("Supabase store needs a signed-in user")
        return str(user_id)

    def get(self, user_id: Optional[str], key: str) -> Any:
        uid = self._require(user_id)
        try:
            resp = self.client.table(self.table).select("data").eq("user_id", uid).eq("unit_key", key).execute()
        except Exception as e:
            raise StorageError(f"Supabase load failed for {key}: {e}") from e

        rows = getattr(resp, "data", None)
        if isinstance(rows, list) and rows and isinstance(rows[0], dict):
            return rows[0].get("data")
        return None

    def set(self, user_id: Optional[str], key: str, data: Any) -> bool:
        if not user_id:
            logger.warning("Cannot save %s to Supabase: no signed-in user", key)
            return False

        payload = {
            "user_id": str(user_id),
            "unit_key": key,
            "data": _jsonable(data),
            "updated_at": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }
        try:
            self.client.table(self.table).upsert(payload, on_conflict="user_id,unit_key").execute()
            return True
        except Exception as e:
            logger.error("Supabase save failed for %s: %s", key, e)
            return False

    def delete(self, user_id: Optional[str], key: str) -> bool:
        if not user_id:
            return False
        try:
            self.client.table(self.table).delete().eq("user_id", str(user_id)).eq("unit_key", key).execute()
            return True
        except Exception as e:
            logger.error("Supabase delete failed for %s: %s", key, e)
            return False

    def list_keys(self, user_id: Optional[str]) -> Set[str]:
        uid = self._require(user_id)
        try:
            resp = self.client.table(self.table).select("unit_key").eq("user_id", uid).execute()
        except Exception as e:
            raise StorageError(f"Supabase key listing failed: {e}") from e

        rows = getattr(resp, "data", None) or []
        return {str(r.get("unit_key")) for r in rows if isinstance(r, dict) and r.get("unit_key")}


# -------------------------------
# Read helpers (fall back to defaults)
# -------------------------------

def fetch_unit(store: Any, user_id: Optional[str], key: str) -> Tuple[Any, bool]:
    """
    Returns ``(data, ok)``. On a failed read ``data`` is the unit's default and
    ``ok`` is False, so callers can tell it apart from a stored default.
    """
    try:
        data = store.get(user_id, key)
    except StorageError as e:
        logger.error("Error loading %s: %s", key, e)
        return default_for_unit(key), False

    if data is None:
        return default_for_unit(key), True
    return normalize_unit(key, data), True


def load_unit(store: Any, user_id: Optional[str], key: str) -> Any:
    return fetch_unit(store, user_id, key)[0]


def load_term(store: Any, user_id: Optional[str], number: int) -> Dict[str, Any]:
    return parse_term_record(load_unit(store, user_id, term_key(number)))
