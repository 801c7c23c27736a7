from conftest import FlakyStore, course
from gpa_tracker.records import term_key, term_record
from gpa_tracker.session import NEW_LOGIN_FLAG, SaveStatus, WorkingCopies, WriteCoalescer, mark_new_login, take_new_login


class Recorder:
    def __init__(self, fail=()):
        self.calls = []
        self.fail = set(fail)

    def __call__(self, user_id, key, data):
        self.calls.append((user_id, key, data))
        return key not in self.fail


def test_new_login_flag_is_read_once():
    state = {}
    assert take_new_login(state) is False

    mark_new_login(state)
    assert state[NEW_LOGIN_FLAG] is True
    assert take_new_login(state) is True
    assert take_new_login(state) is False


class TestWriteCoalescer:
    def test_waits_for_quiet_period(self, clock):
        coalescer = WriteCoalescer(1.0, clock)
        coalescer.schedule(None, "term_1", {"v": 1})

        clock.advance(0.5)
        assert coalescer.due() == []
        clock.advance(0.5)
        assert coalescer.due() == [(None, "term_1")]

    def test_latest_edit_wins_and_resets_timer(self, clock):
        coalescer = WriteCoalescer(1.0, clock)
        writer = Recorder()
        coalescer.schedule("u1", "term_1", {"v": 1})
        clock.advance(0.8)
        coalescer.schedule("u1", "term_1", {"v": 2})
        clock.advance(0.8)

        assert coalescer.flush(writer) == {}
        clock.advance(0.5)
        assert coalescer.flush(writer) == {"term_1": True}
        assert writer.calls == [("u1", "term_1", {"v": 2})]
        assert coalescer.pending_keys() == []

    def test_force_flush_writes_everything(self, clock):
        coalescer = WriteCoalescer(1.0, clock)
        writer = Recorder()
        coalescer.schedule(None, "term_2", [])
        coalescer.schedule(None, "cgpa_settings", {"creditedUnits": 3})

        assert coalescer.flush(writer, force=True) == {"term_2": True, "cgpa_settings": True}
        assert len(writer.calls) == 2

    def test_failed_write_is_dropped(self, clock):
        coalescer = WriteCoalescer(1.0, clock)
        coalescer.schedule(None, "term_1", [])
        clock.advance(1.0)

        assert coalescer.flush(Recorder(fail={"term_1"})) == {"term_1": False}
        assert coalescer.pending_keys() == []

    def test_writes_are_kept_per_identity(self, clock):
        coalescer = WriteCoalescer(1.0, clock)
        writer = Recorder()
        coalescer.schedule(None, "term_1", {"who": "anon"})
        coalescer.schedule("u1", "term_1", {"who": "u1"})

        assert coalescer.pending_keys() == ["term_1", "term_1"]
        coalescer.flush(writer, force=True)
        assert sorted(c[2]["who"] for c in writer.calls) == ["anon", "u1"]

    def test_cancel_and_discard(self, clock):
        coalescer = WriteCoalescer(1.0, clock)
        coalescer.schedule(None, "term_13", [])
        coalescer.schedule(None, "term_1", [])

        coalescer.cancel(None, "term_13")
        coalescer.cancel(None, "term_20")
        assert coalescer.pending_keys() == ["term_1"]

        coalescer.discard()
        assert coalescer.flush(Recorder(), force=True) == {}


class TestSaveStatus:
    def test_message_expires(self, clock):
        status = SaveStatus(2.0, clock)
        status.record({"term_1": True})
        assert status.current() == "Saved"

        clock.advance(1.9)
        assert status.current() == "Saved"
        clock.advance(0.5)
        assert status.current() is None

    def test_any_failure_reports_error(self, clock):
        status = SaveStatus(2.0, clock)
        status.record({"term_1": True, "term_2": False})
        assert status.current() == "Error saving"

    def test_nothing_written_leaves_status_alone(self, clock):
        status = SaveStatus(2.0, clock)
        status.record({})
        assert status.current() is None

        status.set("Saving...")
        status.record({})
        assert status.current() == "Saving..."


class TestWorkingCopies:
    def test_failed_read_is_not_cached_or_saved(self, clock, local_store):
        stored = term_record([course(3, 4.0, code="PHYS"), course(3, 3.5, code="CHEM")])
        local_store.set("ana", term_key(1), stored)
        coalescer = WriteCoalescer(1.0, clock)
        copies = WorkingCopies({}, coalescer)
        flaky = FlakyStore(local_store, fail_get={term_key(1)})

        data, ok = copies.read(flaky, "ana", term_key(1))
        assert ok is False
        assert data["courses"] == []

        assert copies.update("ana", term_key(1), term_record([course(3, 1.0)])) is False
        assert coalescer.pending_keys() == []

        # a later read succeeds and edits are saved again
        data, ok = copies.read(local_store, "ana", term_key(1))
        assert ok is True
        assert [c["code"] for c in data["courses"]] == ["PHYS", "CHEM"]
        assert copies.update("ana", term_key(1), term_record([course(3, 1.0)])) is True
        assert coalescer.pending_keys() == [term_key(1)]

        clock.advance(1.0)
        coalescer.flush(local_store.set)
        assert len(local_store.get("ana", term_key(1))["courses"]) == 1

    def test_unchanged_edit_is_not_scheduled(self, clock, session_store):
        coalescer = WriteCoalescer(1.0, clock)
        copies = WorkingCopies({}, coalescer)

        data, ok = copies.read(session_store, None, term_key(2))
        assert ok is True
        assert copies.update(None, term_key(2), data) is False
        assert coalescer.pending_keys() == []
