from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import bleach
import requests

from ..core.config import (
    INGEST_DEFAULT_COUNT,
    INGEST_DELAY_SECONDS,
    INGEST_PAGE_SIZE,
    RAWG_API_KEY,
    RAWG_BASE_URL,
    RAWG_REQUEST_TIMEOUT_SECONDS,
)
from .store import Store

logger = logging.getLogger(__name__)

SUMMARY_MAX_LENGTH = 500

_PLATFORM_LABELS = (
    ("PlayStation", "PS"),
    ("Xbox", "Xbox"),
    ("Nintendo Switch", "Switch"),
    ("PC", "PC"),
    ("macOS", "Mac"),
    ("Mac", "Mac"),
    ("Linux", "Linux"),
    ("iOS", "iOS"),
    ("Android", "Android"),
)


class RawgError(RuntimeError):
    pass


class RawgClient:
    def __init__(
        self,
        api_key: str = RAWG_API_KEY,
        base_url: str = RAWG_BASE_URL,
        timeout: float = RAWG_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        query = {"key": self.api_key, **params}
        try:
            response = requests.get(f"{self.base_url}{path}", params=query, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RawgError(f"RAWG request failed: {exc}") from exc
        if response.status_code != 200:
            raise RawgError(f"RAWG API error: {response.status_code} {response.reason}")
        try:
            return response.json()
        except ValueError as exc:
            raise RawgError("RAWG returned invalid JSON") from exc

    def fetch_games_page(self, page: int = 1, page_size: int = INGEST_PAGE_SIZE) -> Dict[str, Any]:
        return self._request(
            "/games",
            {
                "page": page,
                "page_size": page_size,
                "ordering": "-rating",
                "metacritic": "70,100",
            },
        )

    def fetch_game_details(self, rawg_id: int) -> Dict[str, Any]:
        return self._request(f"/games/{rawg_id}", {})


def normalize_platform(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    for needle, label in _PLATFORM_LABELS:
        if needle in name:
            return label
    return name


def _parse_platforms(payload: Dict[str, Any]) -> List[str]:
    labels: List[str] = []
    for entry in payload.get("platforms") or []:
        label = normalize_platform((entry.get("platform") or {}).get("name"))
        if label and label not in labels:
            labels.append(label)
    return labels


def _parse_genres(payload: Dict[str, Any]) -> List[str]:
    return [genre.get("name") for genre in payload.get("genres") or [] if genre.get("name")]


def classify_coop(tag_slugs: List[str]) -> str:
    tags = set(tag_slugs)
    if "co-op" in tags and "local-co-op" in tags:
        return "both"
    if "local-co-op" in tags or "local-multiplayer" in tags:
        return "local_coop"
    if tags & {"co-op", "online-co-op", "multiplayer"}:
        return "online_coop"
    return "solo"


def _strip_html(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return bleach.clean(value, tags=[], strip=True).strip() or None


def transform_game(payload: Dict[str, Any], details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Map a RAWG listing entry (plus optional detail payload) to a catalog row."""
    title = payload.get("name") or ""
    tag_slugs = [tag.get("slug") for tag in payload.get("tags") or [] if tag.get("slug")]

    # RAWG reports hours; the catalog stores a minute range.
    playtime_hours = payload.get("playtime") or 0
    minutes_min = playtime_hours * 60 if playtime_hours > 0 else None
    minutes_max = round(playtime_hours * 60 * 1.5) if playtime_hours > 0 else None

    description = None
    if details:
        description = (details.get("description_raw") or "").strip() or _strip_html(
            details.get("description")
        )
    if not description:
        description = f"{title} is a video game."

    return {
        "rawg_id": payload.get("id"),
        "rawg_slug": payload.get("slug"),
        "title": title,
        "cover_url": payload.get("background_image"),
        "summary": description[:SUMMARY_MAX_LENGTH],
        "description": description,
        "minutes_min": minutes_min,
        "minutes_max": minutes_max,
        "platforms": _parse_platforms(payload),
        "genres": _parse_genres(payload),
        "coop_type": classify_coop(tag_slugs),
        "rating": payload.get("rating"),
        "metacritic": payload.get("metacritic"),
        "released": payload.get("released"),
    }


def dedupe_by_rawg_id(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    seen = set()
    unique: List[Dict[str, Any]] = []
    for row in rows:
        if row["rawg_id"] in seen:
            continue
        seen.add(row["rawg_id"])
        unique.append(row)
    return unique


def collect_listings(
    client: RawgClient,
    count: int,
    page_size: int = INGEST_PAGE_SIZE,
    delay: float = INGEST_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Dict[str, Any]]:
    listings: List[Dict[str, Any]] = []
    page = 1
    while len(listings) < count:
        size = min(count - len(listings), page_size)
        logger.info("Fetching RAWG page %s (%s games)", page, size)
        try:
            response = client.fetch_games_page(page, size)
        except RawgError as exc:
            logger.error("Error fetching page %s: %s", page, exc)
            break
        results = response.get("results") or []
        if not results:
            logger.info("No more games available from RAWG")
            break
        with_images = [item for item in results if item.get("background_image")]
        logger.info("Got %s games, %s with images", len(results), len(with_images))
        listings.extend(with_images)
        page += 1
        sleep(delay)
    return listings[:count]


def ingest_games(
    store: Optional[Store],
    client: RawgClient,
    count: int = INGEST_DEFAULT_COUNT,
    dry_run: bool = False,
    fetch_details: bool = True,
    delay: float = INGEST_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, Any]:
    listings = collect_listings(client, count, delay=delay, sleep=sleep)
    rows: List[Dict[str, Any]] = []
    for item in listings:
        details = None
        if fetch_details:
            try:
                details = client.fetch_game_details(item["id"])
            except RawgError:
                logger.warning("Could not fetch details for %s", item.get("name"))
            sleep(delay)
        rows.append(transform_game(item, details))

    unique = dedupe_by_rawg_id(rows)
    if len(unique) < len(rows):
        logger.info("Removed %s duplicates", len(rows) - len(unique))

    result = {"fetched": len(listings), "unique": len(unique), "upserted": 0, "dry_run": dry_run}
    if dry_run or not unique:
        return result
    if store is None:
        raise ValueError("store is required unless dry_run is set")
    result["upserted"] = store.upsert_games(unique)
    return result
