from sqlalchemy import inspect, text


def _json_type(engine) -> str:
    return "JSONB" if engine.dialect.name == "postgresql" else "TEXT"


def _timestamp_type(engine) -> str:
    return "TIMESTAMPTZ" if engine.dialect.name == "postgresql" else "DATETIME"


def ensure_schema(engine) -> None:
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())
    json_type = _json_type(engine)
    timestamp_type = _timestamp_type(engine)

    if "games" in tables:
        columns = {col["name"] for col in inspector.get_columns("games")}
        alters = []
        if "rawg_id" not in columns:
            alters.append("ALTER TABLE games ADD COLUMN rawg_id INTEGER")
            alters.append("CREATE UNIQUE INDEX IF NOT EXISTS ix_games_rawg_id ON games (rawg_id)")
        if "rawg_slug" not in columns:
            alters.append("ALTER TABLE games ADD COLUMN rawg_slug VARCHAR(200)")
        if "cover_url" not in columns:
            alters.append("ALTER TABLE games ADD COLUMN cover_url VARCHAR(500)")
        if "summary" not in columns:
            alters.append("ALTER TABLE games ADD COLUMN summary VARCHAR(500)")
        if "description" not in columns:
            alters.append("ALTER TABLE games ADD COLUMN description TEXT")
        if "coop_type" not in columns:
            alters.append("ALTER TABLE games ADD COLUMN coop_type VARCHAR(20) DEFAULT 'solo'")
        if "minutes_min" not in columns:
            alters.append("ALTER TABLE games ADD COLUMN minutes_min INTEGER")
        if "minutes_max" not in columns:
            alters.append("ALTER TABLE games ADD COLUMN minutes_max INTEGER")
        if "platforms" not in columns:
            alters.append(f"ALTER TABLE games ADD COLUMN platforms {json_type}")
        if "genres" not in columns:
            alters.append(f"ALTER TABLE games ADD COLUMN genres {json_type}")
        if "rating" not in columns:
            alters.append("ALTER TABLE games ADD COLUMN rating REAL")
        if "metacritic" not in columns:
            alters.append("ALTER TABLE games ADD COLUMN metacritic INTEGER")
        if "released" not in columns:
            alters.append("ALTER TABLE games ADD COLUMN released VARCHAR(20)")
        if "updated_at" not in columns:
            alters.append(f"ALTER TABLE games ADD COLUMN updated_at {timestamp_type}")
        _apply_alters(engine, alters)

    if "sessions" in tables:
        columns = {col["name"] for col in inspector.get_columns("sessions")}
        alters = []
        if "finished" not in columns:
            alters.append("ALTER TABLE sessions ADD COLUMN finished BOOLEAN")
        if "rating_fun" not in columns:
            alters.append("ALTER TABLE sessions ADD COLUMN rating_fun INTEGER")
        if "rating_friction" not in columns:
            alters.append("ALTER TABLE sessions ADD COLUMN rating_friction INTEGER")
        if "would_play_again" not in columns:
            alters.append("ALTER TABLE sessions ADD COLUMN would_play_again BOOLEAN")
        _apply_alters(engine, alters)


def _apply_alters(engine, statements: list[str]) -> None:
    if not statements:
        return
    with engine.begin() as connection:
        for statement in statements:
            connection.execute(text(statement))
