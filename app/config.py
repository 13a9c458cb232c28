import os
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_data_dir

APP_NAME = "gsr-operations"
APP_AUTHOR = "gsr"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return max(minimum, int(raw))
    except ValueError:
        return default


def _env_path(name: str) -> Path | None:
    raw = (os.getenv(name) or "").strip()
    return Path(raw) if raw else None


def _resolve_data_dir() -> Path:
    return _env_path("GSROPS_DATA_DIR") or Path(user_data_dir(APP_NAME, APP_AUTHOR))


DATA_DIR = _resolve_data_dir()
LOG_DIR = DATA_DIR / "logs"
DB_FILE = _env_path("GSROPS_DB_FILE") or (DATA_DIR / "app.db")

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOG_DIR.mkdir(parents=True, exist_ok=True)
DB_FILE.parent.mkdir(parents=True, exist_ok=True)


def default_database_url() -> str:
    # SQLite URL uses forward slashes; as_posix() keeps it cross-platform.
    return f"sqlite:///{DB_FILE.as_posix()}"


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", default_database_url())
    echo_sql: bool = _env_bool("GSROPS_SQL_ECHO", False)
    special_users_file: Path = _env_path("GSROPS_SPECIAL_USERS_FILE") or (DATA_DIR / "special_users.json")
    login_max_attempts: int = _env_int("GSROPS_LOGIN_MAX_ATTEMPTS", 5)
    login_lockout_seconds: int = _env_int("GSROPS_LOGIN_LOCKOUT_SECONDS", 60)


settings = Settings()
