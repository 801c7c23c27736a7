from unittest import mock

import pytest

from conftest import FlakyStore
from gpa_tracker.records import default_projection_settings
from gpa_tracker.storage import LocalJsonStore, StorageError, SupabaseStore, fetch_unit, load_term, load_unit


class TestSessionStore:
    def test_round_trip_returns_copies(self, session_store):
        data = {"courses": [{"id": "a", "units": 3}], "isFlowchartExempt": False}
        assert session_store.set(None, "term_1", data)

        loaded = session_store.get(None, "term_1")
        assert loaded == data
        loaded["courses"].clear()
        assert session_store.get(None, "term_1") == data

    def test_absent_key(self, session_store):
        assert session_store.get(None, "term_2") is None

    def test_list_and_clear_only_touch_store_keys(self, session_state, session_store):
        session_state["current_user"] = None
        session_store.set(None, "term_13", [])
        session_store.set(None, "cgpa_settings", {"creditedUnits": 3})

        assert session_store.list_keys(None) == {"term_13", "cgpa_settings"}

        session_store.clear()
        assert session_store.list_keys(None) == set()
        assert "current_user" in session_state

    def test_unserializable_value_reports_failure(self, session_store):
        assert session_store.set(None, "term_1", {"x": object()}) is False


class TestLocalJsonStore:
    def test_per_user_isolation(self, local_store):
        assert local_store.set("ana", "term_1", {"courses": []})
        assert local_store.set("ben", "term_2", {"courses": []})

        assert local_store.list_keys("ana") == {"term_1"}
        assert local_store.get("ben", "term_1") is None
        assert local_store.users() == ["ana", "ben"]

    def test_delete(self, local_store):
        local_store.set("ana", "term_13", [])
        assert local_store.delete("ana", "term_13")
        assert local_store.list_keys("ana") == set()

    def test_corrupt_file_raises_on_read(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{not json", encoding="utf-8")
        store = LocalJsonStore(str(path))

        with pytest.raises(StorageError):
            store.get("ana", "term_1")
        assert store.set("ana", "term_1", []) is False

    def test_requires_profile(self, local_store):
        with pytest.raises(StorageError):
            local_store.get(None, "term_1")
        assert local_store.set(None, "term_1", []) is False

    def test_create_user(self, local_store):
        assert local_store.create_user("cara")
        assert local_store.users() == ["cara"]


class TestSupabaseStore:
    def _client(self, rows=None, error=None):
        client = mock.MagicMock()
        query = client.table.return_value
        for name in ("select", "eq", "upsert", "delete"):
            getattr(query, name).return_value = query
        if error is not None:
            query.execute.side_effect = error
        else:
            query.execute.return_value = mock.Mock(data=rows or [])
        return client, query

    def test_get(self):
        client, query = self._client(rows=[{"data": {"creditedUnits": 6}}])
        store = SupabaseStore(client, "user_records")

        assert store.get("u1", "cgpa_settings") == {"creditedUnits": 6}
        client.table.assert_called_with("user_records")
        query.eq.assert_any_call("user_id", "u1")
        query.eq.assert_any_call("unit_key", "cgpa_settings")

    def test_get_absent(self):
        client, _ = self._client(rows=[])
        assert SupabaseStore(client).get("u1", "term_1") is None

    def test_get_failure_raises(self):
        client, _ = self._client(error=RuntimeError("network down"))
        with pytest.raises(StorageError):
            SupabaseStore(client).get("u1", "term_1")

    def test_set_upserts_one_row_per_unit(self):
        client, query = self._client()
        assert SupabaseStore(client).set("u1", "term_3", {"courses": []})

        payload = query.upsert.call_args[0][0]
        assert payload["user_id"] == "u1"
        assert payload["unit_key"] == "term_3"
        assert payload["data"] == {"courses": []}
        assert "updated_at" in payload
        assert query.upsert.call_args[1] == {"on_conflict": "user_id,unit_key"}

    def test_set_failure_returns_false(self):
        client, _ = self._client(error=RuntimeError("500"))
        assert SupabaseStore(client).set("u1", "term_3", []) is False

    def test_set_without_user(self):
        client, query = self._client()
        assert SupabaseStore(client).set(None, "term_3", []) is False
        query.upsert.assert_not_called()

    def test_list_keys(self):
        client, _ = self._client(rows=[{"unit_key": "term_1"}, {"unit_key": "term_14"}])
        assert SupabaseStore(client).list_keys("u1") == {"term_1", "term_14"}


class TestLoadHelpers:
    def test_load_unit_falls_back_on_error(self):
        client = mock.MagicMock()
        client.table.side_effect = RuntimeError("down")
        store = SupabaseStore(client)

        assert load_unit(store, "u1", "projection_settings") == default_projection_settings()

    def test_load_term_reads_legacy_shape(self, session_store):
        session_store.set(None, "term_2", [{"code": "ENG", "units": 3, "grade": 3.0}])
        record = load_term(session_store, None, 2)
        assert record["isFlowchartExempt"] is False
        assert record["courses"][0]["code"] == "ENG"

    def test_fetch_unit_reports_failed_read(self, local_store):
        local_store.set("ana", "cgpa_settings", {"creditedUnits": 12})

        assert fetch_unit(local_store, "ana", "cgpa_settings") == ({"creditedUnits": 12}, True)
        assert fetch_unit(local_store, "ana", "projection_settings") == (default_projection_settings(), True)

        flaky = FlakyStore(local_store, fail_get={"cgpa_settings"})
        assert fetch_unit(flaky, "ana", "cgpa_settings") == ({"creditedUnits": 0}, False)
