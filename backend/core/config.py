import os



def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:4200"])

SLOT_TIME_FORMAT = "%H:%M"
NOTIFICATION_DATE_FORMAT = os.getenv("NOTIFICATION_DATE_FORMAT", "%d/%m/%Y")
NOTIFICATION_TIME_FORMAT = "%H:%M"

def validate_runtime_config(database_url: str | None = None) -> None:
    database_url = database_url if database_url is not None else os.getenv("DATABASE_URL", "")
    if not database_url:
        raise RuntimeError("DATABASE_URL must be set.")
    if APP_ENV.lower() == "production" and database_url.startswith("sqlite"):
        raise RuntimeError("SQLite cannot be used as DATABASE_URL in production.")
