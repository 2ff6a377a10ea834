import os
from dataclasses import dataclass

def _bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}

def _int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)

def _default_sqlite_uri() -> str:
    # circulation/ -> proyecto/
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    instance_dir = os.path.join(project_root, "instance")
    os.makedirs(instance_dir, exist_ok=True)
    db_path = os.path.join(instance_dir, "circulation.db")
    return "sqlite:///" + db_path

@dataclass(frozen=True)
class BaseConfig:
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-change-me")
    SQLALCHEMY_DATABASE_URI: str = os.getenv("DATABASE_URL", _default_sqlite_uri())
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False

    SESSION_COOKIE_HTTPONLY: bool = True
    SESSION_COOKIE_SAMESITE: str = "Lax"
    SESSION_COOKIE_SECURE: bool = _bool(os.getenv("SESSION_COOKIE_SECURE"), default=False)

    # circulation policy
    LOAN_PERIOD_DAYS: int = _int(os.getenv("LOAN_PERIOD_DAYS"), 14)
    MAX_ACTIVE_LOANS: int = _int(os.getenv("MAX_ACTIVE_LOANS"), 3)

    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

class DevelopmentConfig(BaseConfig):
    DEBUG: bool = True

class ProductionConfig(BaseConfig):
    DEBUG: bool = False

def get_config():
    env = os.getenv("FLASK_ENV", "development").lower()
    if env == "production":
        return ProductionConfig
    return DevelopmentConfig
