from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine


def _timestamp_type(engine: Engine) -> str:
    return "TIMESTAMP" if engine.dialect.name == "postgresql" else "DATETIME"


def ensure_schema(engine: Engine) -> None:
    """Add columns that databases created by earlier releases are missing."""
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())
    timestamp_type = _timestamp_type(engine)

    if "users" in tables:
        columns = {col["name"] for col in inspector.get_columns("users")}
        alters = []
        if "language" not in columns:
            alters.append("ALTER TABLE users ADD COLUMN language VARCHAR(8) DEFAULT 'ru'")
        if "theme" not in columns:
            alters.append("ALTER TABLE users ADD COLUMN theme VARCHAR(8) DEFAULT 'dark'")
        if "external_id" not in columns:
            alters.append("ALTER TABLE users ADD COLUMN external_id BIGINT")
        if "external_username" not in columns:
            alters.append("ALTER TABLE users ADD COLUMN external_username VARCHAR(64)")
        if "external_display_name" not in columns:
            alters.append("ALTER TABLE users ADD COLUMN external_display_name VARCHAR(128)")
        if "external_avatar_url" not in columns:
            alters.append("ALTER TABLE users ADD COLUMN external_avatar_url VARCHAR(500)")
        if "status_changed_at" not in columns:
            alters.append(f"ALTER TABLE users ADD COLUMN status_changed_at {timestamp_type}")
        if "status_changed_by" not in columns:
            alters.append("ALTER TABLE users ADD COLUMN status_changed_by BIGINT")
        _apply_alters(engine, alters)

    if "watchlist_entries" in tables:
        columns = {col["name"] for col in inspector.get_columns("watchlist_entries")}
        alters = []
        if "thumbnail_url" not in columns:
            alters.append("ALTER TABLE watchlist_entries ADD COLUMN thumbnail_url VARCHAR(500)")
        for metric in ("visits", "playing", "favorites", "up_votes", "down_votes"):
            if metric not in columns:
                alters.append(
                    f"ALTER TABLE watchlist_entries ADD COLUMN {metric} BIGINT DEFAULT 0"
                )
        _apply_alters(engine, alters)


def _apply_alters(engine: Engine, statements: list[str]) -> None:
    if not statements:
        return
    with engine.begin() as connection:
        for statement in statements:
            connection.execute(text(statement))
