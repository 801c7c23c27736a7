import pytest

from gpa_tracker.storage import LocalJsonStore, SessionStore, StorageError


class FakeClock:
    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FlakyStore:
    """Wraps a store and fails reads or writes for chosen unit keys."""

    def __init__(self, inner, fail_get=(), fail_set=(), fail_delete=()):
        self.inner = inner
        self.fail_get = set(fail_get)
        self.fail_set = set(fail_set)
        self.fail_delete = set(fail_delete)

    def get(self, user_id, key):
        if key in self.fail_get:
            raise StorageError(f"boom reading {key}")
        return self.inner.get(user_id, key)

    def set(self, user_id, key, data):
        if key in self.fail_set:
            return False
        return self.inner.set(user_id, key, data)

    def delete(self, user_id, key):
        if key in self.fail_delete:
            return False
        return self.inner.delete(user_id, key)

    def list_keys(self, user_id):
        return self.inner.list_keys(user_id)

    def clear(self):
        self.inner.clear()


def course(units=3, grade=4.0, nas=False, code="", cid=None):
    c = {"code": code, "name": "", "units": units, "grade": grade, "nas": nas}
    if cid:
        c["id"] = cid
    return c


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session_state():
    return {}


@pytest.fixture
def session_store(session_state):
    return SessionStore(session_state)


@pytest.fixture
def local_store(tmp_path):
    return LocalJsonStore(str(tmp_path / "data.json"))
