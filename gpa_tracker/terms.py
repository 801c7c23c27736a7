import logging
from typing import Any, Dict, List, Optional

from .grades import summarize_term
from .records import FIRST_CUSTOM_TERM, MAX_TERM, STANDARD_TERMS, is_custom_term, term_key, term_number, term_record
from .storage import StorageError, load_term

logger = logging.getLogger(__name__)


def available_terms(store: Any, user_id: Optional[str]) -> List[int]:
    """Standard terms 1-12 plus whichever custom terms (13-21) have a record."""
    terms = set(STANDARD_TERMS)
    try:
        keys = store.list_keys(user_id)
    except StorageError as e:
        logger.error("Error loading user terms: %s", e)
        keys = set()

    for key in keys:
        n = term_number(key)
        if n is not None and is_custom_term(n):
            terms.add(n)
    return sorted(terms)


def next_custom_term(terms: List[int]) -> Optional[int]:
    n = max(max(terms, default=0) + 1, FIRST_CUSTOM_TERM)
    return n if n <= MAX_TERM else None


def add_custom_term(store: Any, user_id: Optional[str], terms: List[int]) -> Optional[int]:
    n = next_custom_term(terms)
    if n is None:
        return None
    if not store.set(user_id, term_key(n), term_record()):
        return None
    logger.info("Added term %s", n)
    return n


def can_delete_term(number: int, terms: List[int]) -> bool:
    # only the highest custom term may go, so numbering stays gap-free
    custom = [t for t in terms if is_custom_term(t)]
    return bool(custom) and number == max(custom)


def delete_custom_term(store: Any, user_id: Optional[str], number: int, terms: List[int]) -> bool:
    if not can_delete_term(number, terms):
        raise ValueError(f"Term {number} cannot be deleted; only the last added term can.")
    ok = store.delete(user_id, term_key(number))
    if ok:
        logger.info("Deleted term %s", number)
    return ok


def load_all_summaries(
    store: Any,
    user_id: Optional[str],
    overrides: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    """Summaries for every available term. ``overrides`` maps unit keys to unsaved edits."""
    overrides = overrides or {}
    summaries = []
    for n in available_terms(store, user_id):
        key = term_key(n)
        record = overrides[key] if key in overrides else load_term(store, user_id, n)
        summaries.append(summarize_term(n, record))
    return summaries
