import os
from pathlib import Path


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or "=" not in stripped:
                continue
            key, value = stripped.split("=", 1)
            key = key.strip()
            if not key or key in os.environ:
                continue
            cleaned = value.strip().strip('"').strip("'")
            os.environ[key] = cleaned
    except OSError:
        return


def _load_env() -> None:
    current = Path(__file__).resolve()
    for candidate in (current.parents[2] / ".env", Path.cwd() / ".env"):
        _load_env_file(candidate)


_load_env()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _default_database_url() -> str:
    explicit_path = os.getenv("PLAYNEXT_DB_PATH", "").strip()
    if explicit_path:
        return f"sqlite:///{Path(explicit_path).as_posix()}"

    backend_root = Path(__file__).resolve().parents[2]
    dev_db = (backend_root / "playnext.db").resolve()
    return f"sqlite:///{dev_db.as_posix()}"


DATABASE_URL = os.getenv("DATABASE_URL", _default_database_url())
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "3600"))
DB_ECHO = _env_bool("DB_ECHO")

AUTH_URL = os.getenv("AUTH_URL", os.getenv("SUPABASE_URL", "")).strip().rstrip("/")
AUTH_API_KEY = os.getenv("AUTH_API_KEY", os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")).strip()
AUTH_JWT_SECRET = os.getenv("AUTH_JWT_SECRET", "").strip()
AUTH_JWT_ALGORITHM = os.getenv("AUTH_JWT_ALGORITHM", "HS256")
AUTH_JWT_AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE", "authenticated")
AUTH_REQUEST_TIMEOUT_SECONDS = float(os.getenv("AUTH_REQUEST_TIMEOUT_SECONDS", "5"))

_DEFAULT_CORS_ORIGINS = "http://localhost:5173"


def _normalize_cors(origins: str) -> list[str]:
    items: list[str] = []
    for raw in origins.split(","):
        value = raw.strip()
        if value and value not in items:
            items.append(value)
    return items


CORS_ORIGINS = _normalize_cors(os.getenv("CORS_ORIGINS", os.getenv("CORS_ORIGIN", _DEFAULT_CORS_ORIGINS)))

DASHBOARD_MAX_WORKERS = max(1, int(os.getenv("DASHBOARD_MAX_WORKERS", "3")))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

RAWG_API_KEY = os.getenv("RAWG_API_KEY", "").strip()
RAWG_BASE_URL = os.getenv("RAWG_BASE_URL", "https://api.rawg.io/api").rstrip("/")
RAWG_REQUEST_TIMEOUT_SECONDS = float(os.getenv("RAWG_REQUEST_TIMEOUT_SECONDS", "15"))
INGEST_DEFAULT_COUNT = int(os.getenv("INGEST_DEFAULT_COUNT", "50"))
INGEST_PAGE_SIZE = int(os.getenv("INGEST_PAGE_SIZE", "20"))
INGEST_DELAY_SECONDS = float(os.getenv("INGEST_DELAY_SECONDS", "0.25"))
