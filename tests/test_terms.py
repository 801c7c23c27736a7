import pytest

from conftest import FlakyStore, course
from gpa_tracker.records import term_key, term_record
from gpa_tracker.terms import (
    add_custom_term,
    available_terms,
    can_delete_term,
    delete_custom_term,
    load_all_summaries,
    next_custom_term,
)


def test_standard_terms_always_available(session_store):
    assert available_terms(session_store, None) == list(range(1, 13))


def test_unreadable_store_still_lists_standard_terms(local_store):
    # a local profile store without a profile cannot list keys
    assert available_terms(local_store, None) == list(range(1, 13))


def test_add_custom_terms_in_order(session_store):
    terms = available_terms(session_store, None)
    assert add_custom_term(session_store, None, terms) == 13

    terms = available_terms(session_store, None)
    assert terms[-1] == 13
    assert session_store.get(None, term_key(13)) == term_record()

    assert add_custom_term(session_store, None, terms) == 14


def test_custom_term_limit():
    assert next_custom_term(list(range(1, 22))) is None
    assert next_custom_term(list(range(1, 13)) + [15]) == 16


def test_add_reports_failed_write(session_store):
    store = FlakyStore(session_store, fail_set={term_key(13)})
    assert add_custom_term(store, None, list(range(1, 13))) is None
    assert available_terms(session_store, None)[-1] == 12


def test_only_last_custom_term_is_deletable():
    terms = list(range(1, 15))
    assert can_delete_term(14, terms)
    assert not can_delete_term(13, terms)
    assert not can_delete_term(12, terms)
    assert not can_delete_term(12, list(range(1, 13)))


def test_delete_custom_term(session_store):
    session_store.set(None, term_key(13), term_record([course()]))
    terms = available_terms(session_store, None)

    with pytest.raises(ValueError):
        delete_custom_term(session_store, None, 5, terms)

    assert delete_custom_term(session_store, None, 13, terms)
    assert available_terms(session_store, None) == list(range(1, 13))


def test_summaries_prefer_unsaved_edits(session_store):
    session_store.set(None, term_key(1), term_record([course(3, 4.0)]))
    overrides = {term_key(1): term_record([course(3, 2.0)])}

    saved = load_all_summaries(session_store, None)
    edited = load_all_summaries(session_store, None, overrides)

    assert saved[0]["gpa"] == 4.0
    assert edited[0]["gpa"] == 2.0
    assert len(edited) == 12
    assert not any(s["isActive"] for s in edited[1:])
