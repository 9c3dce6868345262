from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import streamlit as st

CONFIG_FILE_NAME = "settings.json"
DB_FILE_NAME = "pos.db"

ENV_DATA_DIR = "POS_DATA_DIR"
ENV_LOG_LEVEL = "POS_LOG_LEVEL"
ENV_LOG_JSON = "POS_LOG_JSON"
ENV_LOW_STOCK_THRESHOLD = "POS_LOW_STOCK_THRESHOLD"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    currency: str = "USD"
    low_stock_threshold: int = 10
    log_level: str = "INFO"
    log_json: bool = False


def _default_data_dir() -> Path:
    return Path.home() / ".pos_inventory"


def _load_persisted_settings(data_dir: Path) -> dict:
    cfg = data_dir / CONFIG_FILE_NAME
    if cfg.exists():
        try:
            return json.loads(cfg.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
    return {}


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def persist_data_dir(data_dir_str: str) -> None:
    data_dir = Path(data_dir_str).expanduser().resolve()
    data_dir.mkdir(parents=True, exist_ok=True)

    # The pointer lives in the default folder so the next start finds it.
    default_dir = _default_data_dir()
    default_dir.mkdir(parents=True, exist_ok=True)
    payload = {"data_dir": str(data_dir)}
    (default_dir / CONFIG_FILE_NAME).write_text(json.dumps(payload, indent=2), encoding="utf-8")

    st.session_state["pos_data_dir"] = str(data_dir)


def resolve_data_dir(session_value: str | None = None) -> Path:
    # Priority order:
    # 1) Session state (set via Data Management page)
    # 2) Environment variable
    # 3) Persisted settings in default folder
    # 4) Default folder
    if session_value:
        return Path(session_value).expanduser().resolve()
    if os.getenv(ENV_DATA_DIR):
        return Path(os.getenv(ENV_DATA_DIR, "")).expanduser().resolve()
    default_dir = _default_data_dir()
    persisted = _load_persisted_settings(default_dir)
    return Path(persisted.get("data_dir", default_dir)).expanduser().resolve()


def build_settings(data_dir: Path) -> Settings:
    data_dir.mkdir(parents=True, exist_ok=True)
    return Settings(
        data_dir=data_dir,
        db_path=data_dir / DB_FILE_NAME,
        low_stock_threshold=_env_int(ENV_LOW_STOCK_THRESHOLD, 10),
        log_level=os.getenv(ENV_LOG_LEVEL, "INFO").strip().upper() or "INFO",
        log_json=_env_flag(ENV_LOG_JSON),
    )


@st.cache_resource
def get_settings() -> Settings:
    return build_settings(resolve_data_dir(st.session_state.get("pos_data_dir")))
