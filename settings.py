from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_DATA_DIR_ENV = "SWAT_DATA_DIR"
_DATASET_FILE_ENV = "SWAT_DATASET_FILE"
_ATTACK_FILE_ENV = "SWAT_ATTACK_FILE"
_LOAD_ON_STARTUP_ENV = "SWAT_LOAD_ON_STARTUP"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    data_dir: str
    dataset_file: str
    attack_file: str
    load_on_startup: bool
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUTHY:
        return True
    if candidate in _FALSY:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        data_dir=_read_str_env(_DATA_DIR_ENV, "./data"),
        dataset_file=_read_str_env(_DATASET_FILE_ENV, "SWaT_Dataset.csv"),
        attack_file=_read_str_env(_ATTACK_FILE_ENV, "Attack.csv"),
        load_on_startup=_read_bool_env(_LOAD_ON_STARTUP_ENV, True),
        log_level=_read_log_level("INFO"),
    )
