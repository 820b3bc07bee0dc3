from unittest.mock import MagicMock, patch

import pytest

from app.services.rawg_catalog import (
    RawgClient,
    RawgError,
    classify_coop,
    collect_listings,
    dedupe_by_rawg_id,
    ingest_games,
    normalize_platform,
    transform_game,
)


def _listing(rawg_id, name="Portal 2", image="https://media.rawg.io/p2.jpg", **extra):
    payload = {
        "id": rawg_id,
        "slug": name.lower().replace(" ", "-"),
        "name": name,
        "background_image": image,
        "playtime": 10,
        "rating": 4.6,
        "metacritic": 95,
        "released": "2011-04-18",
        "platforms": [
            {"platform": {"name": "PlayStation 3"}},
            {"platform": {"name": "PlayStation 4"}},
            {"platform": {"name": "PC"}},
            {"platform": {"name": "Xbox 360"}},
        ],
        "genres": [{"name": "Puzzle"}, {"name": "Shooter"}],
        "tags": [{"slug": "co-op"}, {"slug": "singleplayer"}],
    }
    payload.update(extra)
    return payload


class FakeRawg:
    def __init__(self, pages, details=None, failing_details=()):
        self.pages = pages
        self.details = details or {}
        self.failing_details = set(failing_details)
        self.page_calls = []

    def fetch_games_page(self, page, page_size):
        self.page_calls.append((page, page_size))
        if page > len(self.pages):
            return {"results": []}
        return {"results": self.pages[page - 1]}

    def fetch_game_details(self, rawg_id):
        if rawg_id in self.failing_details:
            raise RawgError("boom")
        return self.details.get(rawg_id, {})


@pytest.mark.parametrize(
    "name,label",
    [
        ("PlayStation 5", "PS"),
        ("Xbox Series S/X", "Xbox"),
        ("Nintendo Switch", "Switch"),
        ("PC", "PC"),
        ("macOS", "Mac"),
        ("Linux", "Linux"),
        ("iOS", "iOS"),
        ("Android", "Android"),
        ("Dreamcast", "Dreamcast"),
        (None, None),
    ],
)
def test_normalize_platform(name, label):
    assert normalize_platform(name) == label


@pytest.mark.parametrize(
    "tags,expected",
    [
        (["co-op", "local-co-op"], "both"),
        (["local-co-op"], "local_coop"),
        (["local-multiplayer"], "local_coop"),
        (["online-co-op"], "online_coop"),
        (["multiplayer"], "online_coop"),
        (["co-op"], "online_coop"),
        (["singleplayer"], "solo"),
        ([], "solo"),
    ],
)
def test_classify_coop(tags, expected):
    assert classify_coop(tags) == expected


def test_transform_game_maps_fields():
    row = transform_game(_listing(4200), {"description_raw": "Think with portals."})

    assert row["rawg_id"] == 4200
    assert row["rawg_slug"] == "portal-2"
    assert row["title"] == "Portal 2"
    assert row["cover_url"] == "https://media.rawg.io/p2.jpg"
    assert row["platforms"] == ["PS", "PC", "Xbox"]
    assert row["genres"] == ["Puzzle", "Shooter"]
    assert row["coop_type"] == "online_coop"
    assert row["minutes_min"] == 600
    assert row["minutes_max"] == 900
    assert row["description"] == "Think with portals."
    assert row["summary"] == "Think with portals."


def test_transform_game_fallbacks():
    long_html = "<p>" + "x" * 600 + "</p>"
    row = transform_game(_listing(1, playtime=0), {"description": long_html})
    assert row["minutes_min"] is None
    assert row["minutes_max"] is None
    assert row["description"] == "x" * 600
    assert len(row["summary"]) == 500

    placeholder = transform_game(_listing(2, name="Inside"))
    assert placeholder["description"] == "Inside is a video game."


def test_dedupe_keeps_first():
    rows = [{"rawg_id": 1, "title": "a"}, {"rawg_id": 2, "title": "b"}, {"rawg_id": 1, "title": "c"}]

    assert [row["title"] for row in dedupe_by_rawg_id(rows)] == ["a", "b"]


def test_collect_listings_pages_and_skips_imageless():
    client = FakeRawg(
        [
            [_listing(1), _listing(2, image=None)],
            [_listing(3), _listing(4)],
        ]
    )
    sleeps = []

    listings = collect_listings(client, count=3, page_size=2, delay=0.5, sleep=sleeps.append)

    assert [item["id"] for item in listings] == [1, 3, 4]
    assert client.page_calls == [(1, 2), (2, 2)]
    assert sleeps == [0.5, 0.5]


def test_collect_listings_stops_when_exhausted():
    client = FakeRawg([[_listing(1)]])

    listings = collect_listings(client, count=10, page_size=5, delay=0, sleep=lambda _: None)

    assert [item["id"] for item in listings] == [1]


def test_ingest_upserts_on_rawg_id(store):
    client = FakeRawg(
        [[_listing(10, name="Portal 2"), _listing(11, name="Hades")]],
        details={10: {"description_raw": "Portals."}},
        failing_details={11},
    )

    result = ingest_games(store, client, count=2, delay=0, sleep=lambda _: None)
    assert result == {"fetched": 2, "unique": 2, "upserted": 2, "dry_run": False}

    first = store.list_games_excluding([], limit=10)
    assert [(game.rawg_id, game.title) for game in first] == [(10, "Portal 2"), (11, "Hades")]
    assert first[0].description == "Portals."
    assert first[1].description == "Hades is a video game."

    rerun = FakeRawg([[_listing(10, name="Portal 2 (Updated)")]])
    ingest_games(store, rerun, count=1, fetch_details=False, delay=0, sleep=lambda _: None)

    games = store.list_games_excluding([], limit=10)
    assert len(games) == 2
    assert games[0].id == first[0].id
    assert games[0].title == "Portal 2 (Updated)"


def test_ingest_dry_run_writes_nothing(store):
    client = FakeRawg([[_listing(10)]])

    result = ingest_games(store, client, count=1, dry_run=True, fetch_details=False, delay=0)

    assert result["upserted"] == 0
    assert result["dry_run"] is True
    assert store.list_games_excluding([], limit=10) == []


@patch("app.services.rawg_catalog.requests.get")
def test_client_builds_listing_request(mock_get):
    mock_get.return_value = MagicMock(status_code=200)
    mock_get.return_value.json.return_value = {"results": []}

    RawgClient(api_key="k", base_url="https://rawg.example/api", timeout=3).fetch_games_page(2, 20)

    mock_get.assert_called_once_with(
        "https://rawg.example/api/games",
        params={"key": "k", "page": 2, "page_size": 20, "ordering": "-rating", "metacritic": "70,100"},
        timeout=3,
    )


@patch("app.services.rawg_catalog.requests.get")
def test_client_raises_on_http_error(mock_get):
    mock_get.return_value = MagicMock(status_code=500, reason="Server Error")

    with pytest.raises(RawgError, match="500"):
        RawgClient(api_key="k").fetch_game_details(1)
