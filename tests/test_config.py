import logging

from gpa_tracker.config import DEFAULT_TABLE, LOG_FORMAT, configure_logging, supabase_config, supabase_enabled


def test_nested_secrets():
    cfg = supabase_config({"supabase": {"url": " https://x.supabase.co ", "anon_key": "key", "table": ""}})
    assert cfg == {"url": "https://x.supabase.co", "anon_key": "key", "table": DEFAULT_TABLE}
    assert supabase_enabled(cfg)


def test_flat_secrets():
    cfg = supabase_config({"SUPABASE_URL": "https://x.supabase.co", "SUPABASE_ANON_KEY": "key", "SUPABASE_TABLE": "grades"})
    assert cfg["table"] == "grades"
    assert supabase_enabled(cfg)


def test_missing_secrets_mean_local_mode():
    assert not supabase_enabled(supabase_config(None))
    assert not supabase_enabled(supabase_config({}))
    assert not supabase_enabled(supabase_config({"SUPABASE_URL": "https://x.supabase.co"}))


def test_unreadable_secrets_mean_local_mode():
    class Broken:
        def get(self, key, default=None):
            raise FileNotFoundError("no secrets.toml")

    assert supabase_config(Broken()) == {"url": "", "anon_key": "", "table": DEFAULT_TABLE}


def test_configure_logging(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
    configure_logging(logging.DEBUG)
    assert calls == [{"level": logging.DEBUG, "format": LOG_FORMAT}]
