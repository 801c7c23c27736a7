import logging
from typing import Any, Dict, Mapping, Optional


DATA_FILE = "gpa_tracker_data.json"  # used only in local profile mode
DEFAULT_TABLE = "user_records"

SAVE_DEBOUNCE_SECONDS = 1.0
STATUS_TTL_SECONDS = 2.0

DEFAULT_CREDITED_UNITS = 0
DEFAULT_TARGET_CGPA = 3.4
DEFAULT_TOTAL_UNITS = 200

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def supabase_config(secrets: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """
    Supports BOTH secrets formats:

    A) Nested:
      [supabase]
      url = "..."
      anon_key = "..."
      table = "user_records"

    B) Flat:
      SUPABASE_URL = "..."
      SUPABASE_ANON_KEY = "..."
      SUPABASE_TABLE = "user_records"
    """
    if secrets is None:
        return {"url": "", "anon_key": "", "table": DEFAULT_TABLE}

    try:
        s = secrets.get("supabase", {})
        if isinstance(s, Mapping) and (s.get("url") or s.get("anon_key") or s.get("table")):
            return {
                "url": str(s.get("url", "")).strip(),
                "anon_key": str(s.get("anon_key", "")).strip(),
                "table": str(s.get("table", DEFAULT_TABLE)).strip() or DEFAULT_TABLE,
            }

        return {
            "url": str(secrets.get("SUPABASE_URL", "")).strip(),
            "anon_key": str(secrets.get("SUPABASE_ANON_KEY", "")).strip(),
            "table": str(secrets.get("SUPABASE_TABLE", DEFAULT_TABLE)).strip() or DEFAULT_TABLE,
        }
    except Exception:
        # st.secrets raises when no secrets.toml exists at all
        return {"url": "", "anon_key": "", "table": DEFAULT_TABLE}


def supabase_enabled(cfg: Mapping[str, str]) -> bool:
    return bool(cfg.get("url")) and bool(cfg.get("anon_key"))
