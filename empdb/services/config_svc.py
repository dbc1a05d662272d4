# empdb/services/config_svc.py
import logging

from ..db import get_conn

logger = logging.getLogger(__name__)

DEFAULTS = {
    # true: writes are demarcated by an explicit UserTransaction;
    # false: the relational connection provides the unit of work.
    "use_jta": "false",
    # true: update/delete matching no row raise EmployeeNotFound
    "strict_not_found": "false",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _to_bool(v) -> bool:
    s = str(v).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ValueError(f"not a boolean: {v!r}")


def ensure_default_config(db_path: str | None = None):
    """Insert missing keys without touching existing values."""
    with get_conn(db_path) as conn:
        for k, v in DEFAULTS.items():
            conn.execute(
                "INSERT INTO config(key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO NOTHING",
                (k, v),
            )


def get_config(db_path: str | None = None) -> dict:
    with get_conn(db_path) as conn:
        rows = conn.execute("SELECT key, value FROM config").fetchall()
    cfg = {r["key"]: r["value"] for r in rows}

    out = {
        "use_jta": _to_bool(cfg.get("use_jta", DEFAULTS["use_jta"])),
        "strict_not_found": _to_bool(cfg.get("strict_not_found", DEFAULTS["strict_not_found"])),
    }
    return out


def update_config(upd: dict, db_path: str | None = None) -> list[str]:
    unknown = sorted(set(upd) - set(DEFAULTS))
    if unknown:
        raise ValueError(f"unknown settings: {', '.join(unknown)}")
    values = {k: "true" if _to_bool(v) else "false" for k, v in upd.items()}

    updated = []
    with get_conn(db_path) as conn:
        for k, v in values.items():
            conn.execute(
                "INSERT INTO config(key,value) VALUES(?,?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (k, v)
            )
            updated.append(k)
    logger.info(f"config updated: {values}")
    return updated
