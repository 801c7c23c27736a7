import logging
import time
from typing import Any, Callable, Dict, List, MutableMapping, Optional, Tuple

from .config import SAVE_DEBOUNCE_SECONDS, STATUS_TTL_SECONDS
from .storage import fetch_unit

logger = logging.getLogger(__name__)

NEW_LOGIN_FLAG = "new_login"


# -------------------------------
# Sign-in signal
# -------------------------------

def mark_new_login(state: MutableMapping[str, Any]) -> None:
    state[NEW_LOGIN_FLAG] = True


def take_new_login(state: MutableMapping[str, Any]) -> bool:
    """Read the new-login flag once; it is cleared on read."""
    return bool(state.pop(NEW_LOGIN_FLAG, False))


# -------------------------------
# Debounced writes
# -------------------------------

class WriteCoalescer:
    """
    Collects edits and writes each unit once it has been quiet for
    ``quiet_period`` seconds. The latest edit to a key replaces any pending one.
    """

    def __init__(self, quiet_period: float = SAVE_DEBOUNCE_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.quiet_period = quiet_period
        self.clock = clock
        self._pending: Dict[Tuple[Optional[str], str], Tuple[Any, float]] = {}

    def schedule(self, user_id: Optional[str], key: str, data: Any) -> None:
        self._pending[(user_id, key)] = (data, self.clock())

    def pending_keys(self) -> List[str]:
        return sorted(key for _, key in self._pending)

    def due(self) -> List[Tuple[Optional[str], str]]:
        now = self.clock()
        return [slot for slot, (_, at) in self._pending.items() if now - at >= self.quiet_period]

    def cancel(self, user_id: Optional[str], key: str) -> None:
        self._pending.pop((user_id, key), None)

    def discard(self) -> None:
        self._pending.clear()

    def flush(self, writer: Callable[[Optional[str], str, Any], bool], force: bool = False) -> Dict[str, bool]:
        slots = list(self._pending) if force else self.due()
        results: Dict[str, bool] = {}
        for slot in slots:
            data, _ = self._pending.pop(slot)
            user_id, key = slot
            ok = bool(writer(user_id, key, data))
            if not ok:
                # dropped; the next edit schedules a fresh write
                logger.warning("Write of %s failed", key)
            results[key] = ok
        return results


class SaveStatus:
    def __init__(self, ttl: float = STATUS_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._message: Optional[str] = None
        self._at = 0.0

    def set(self, message: str) -> None:
        self._message = message
        self._at = self.clock()

    def record(self, results: Dict[str, bool]) -> None:
        if not results:
            return
        self.set("Saved" if all(results.values()) else "Error saving")

    def current(self) -> Optional[str]:
        if self._message is None:
            return None
        if self.clock() - self._at >= self.ttl:
            self._message = None
        return self._message


# -------------------------------
# Working copies
# -------------------------------

class WorkingCopies:
    """
    Per-unit copies the UI edits between saves, held in ``cache``.

    A unit is cached only after a successful read. Edits to a unit whose
    read failed are not scheduled, so a fallback default never gets saved
    over the stored record.
    """

    def __init__(self, cache: MutableMapping[str, Any], coalescer: WriteCoalescer):
        self.cache = cache
        self.coalescer = coalescer

    def read(self, store: Any, user_id: Optional[str], key: str) -> Tuple[Any, bool]:
        if key in self.cache:
            return self.cache[key], True
        data, ok = fetch_unit(store, user_id, key)
        if ok:
            self.cache[key] = data
        return data, ok

    def update(self, user_id: Optional[str], key: str, data: Any) -> bool:
        if key not in self.cache:
            logger.debug("Not saving %s: it has not loaded", key)
            return False
        if self.cache[key] == data:
            return False
        self.cache[key] = data
        self.coalescer.schedule(user_id, key, data)
        return True
