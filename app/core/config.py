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
    for candidate in (Path.cwd() / ".env", current.parents[2] / ".env"):
        _load_env_file(candidate)


_load_env()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def _split_id_list(value: str) -> frozenset[int]:
    ids = set()
    for raw in (value or "").split(","):
        cleaned = raw.strip()
        if cleaned.lstrip("-").isdigit():
            ids.add(int(cleaned))
    return frozenset(ids)


def _normalize_cors(origins: str) -> list[str]:
    items: list[str] = []
    for raw in origins.split(","):
        value = raw.strip()
        if value and value not in items:
            items.append(value)
    return items


BOT_TOKEN = os.getenv("BOT_TOKEN", "")
WEBAPP_URL = os.getenv("WEBAPP_URL", "https://itzyakudza.github.io/roblox-game-stats-tg-bot")
ADMIN_USER_IDS = _split_id_list(os.getenv("ADMIN_USER_IDS", os.getenv("ADMIN_IDS", "")))

# "sql" uses DATABASE_URL, "json" keeps everything in one flat document.
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "sql").strip().lower() or "sql"
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///roblox_stats.db")
JSON_STORAGE_PATH = os.getenv("JSON_STORAGE_PATH", "storage/roblox_stats.json")
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "3600"))

# 0 disables the auth_date freshness check.
INIT_DATA_MAX_AGE_SECONDS = int(os.getenv("INIT_DATA_MAX_AGE_SECONDS", "0"))

DEFAULT_LANGUAGE = "ru"
DEFAULT_THEME = "dark"
SUPPORTED_LANGUAGES = ("ru", "en")

CORS_ORIGINS = _normalize_cors(os.getenv("CORS_ORIGINS", "*"))

ROBLOX_USERS_API_URL = os.getenv("ROBLOX_USERS_API_URL", "https://users.roblox.com")
ROBLOX_GAMES_API_URL = os.getenv("ROBLOX_GAMES_API_URL", "https://games.roblox.com")
ROBLOX_THUMBNAILS_API_URL = os.getenv(
    "ROBLOX_THUMBNAILS_API_URL", "https://thumbnails.roblox.com"
)
ROBLOX_APIS_URL = os.getenv("ROBLOX_APIS_URL", "https://apis.roblox.com")
ROBLOX_REQUEST_TIMEOUT_SECONDS = int(os.getenv("ROBLOX_REQUEST_TIMEOUT_SECONDS", "10"))
ROBLOX_CACHE_TTL_SECONDS = int(os.getenv("ROBLOX_CACHE_TTL_SECONDS", "60"))

RATE_LIMIT_ENABLED = _env_flag("RATE_LIMIT_ENABLED", "true")
RATE_LIMIT_DEFAULT_PER_MINUTE = int(os.getenv("RATE_LIMIT_DEFAULT_PER_MINUTE", "120"))
RATE_LIMIT_WRITE_PER_MINUTE = int(os.getenv("RATE_LIMIT_WRITE_PER_MINUTE", "30"))

# Empty keeps the cache and rate-limit counters inside each process.
REDIS_URL = os.getenv("REDIS_URL", "")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
