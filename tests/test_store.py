from sqlalchemy import inspect, text

from app.services.store import Store


def test_create_schema_upgrades_legacy_games_table(tmp_path):
    store = Store.from_url(f"sqlite:///{(tmp_path / 'legacy.db').as_posix()}")
    with store.engine.begin() as connection:
        connection.execute(
            text("CREATE TABLE games (id INTEGER PRIMARY KEY, title VARCHAR(200) NOT NULL, created_at DATETIME)")
        )
        connection.execute(text("INSERT INTO games (id, title) VALUES (1, 'Legacy')"))

    store.create_schema()

    columns = {col["name"] for col in inspect(store.engine).get_columns("games")}
    assert {"rawg_id", "coop_type", "minutes_min", "platforms", "metacritic"} <= columns
    assert set(inspect(store.engine).get_table_names()) >= {"games", "swipes", "sessions"}
    assert [game.title for game in store.list_games_excluding([], limit=5)] == ["Legacy"]
    store.dispose()


def test_upsert_swipe_keeps_one_row_per_pair(store, add_games):
    (game,) = add_games("Celeste")

    first = store.upsert_swipe("u1", game.id, "interested")
    second = store.upsert_swipe("u1", game.id, "ignore")

    assert len(second) == 1
    assert second[0].id == first[0].id
    assert second[0].decision == "ignore"
    assert store.list_swiped_game_ids("u1") == [game.id]


def test_queries_are_scoped_by_user(store, add_games):
    (game,) = add_games("Celeste")
    session = store.insert_session("u1", game.id, "planned")

    assert store.get_session_by_id("u2", session.id) is None
    assert store.update_session("u2", session.id, {"status": "active"}) is None
    assert store.delete_session("u2", session.id) is False
    assert store.get_session_by_id("u1", session.id).status == "planned"


def test_started_sessions_newest_first(store, add_games):
    celeste, hades = add_games("Celeste", "Hades")
    planned = store.insert_session("u1", celeste.id, "planned")
    older = store.insert_session("u1", hades.id, "planned")
    newer = store.insert_session("u1", celeste.id, "planned")
    store.update_session("u1", older.id, {"status": "active", "started_at": celeste.created_at})
    store.update_session("u1", newer.id, {"status": "active", "started_at": hades.created_at})

    started = store.list_started_sessions_with_games("u1")

    assert [row.id for row in started] == [newer.id, older.id]
    assert planned.id not in {row.id for row in started}
    assert store.get_latest_session_with_status("u1", "active").id == newer.id
