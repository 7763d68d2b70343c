# shows_sync/adapters/olt.py
from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional

import httpx

from shows_sync.core.config import settings
from shows_sync.core.field_mapper import to_int
from shows_sync.core.models import MediaBatchResult, RemoteMedia, RemoteShow

log = logging.getLogger(__name__)

SHOWS_ENDPOINT = "/show"
MEDIA_ENDPOINT = "/media"
PER_PAGE = 100
TOTAL_PAGES_HEADER = "X-WP-TotalPages"


class FetchError(RuntimeError):
    """Échec de récupération côté API distante (fatal pendant la collecte)."""


# ----------------------------- Utils -----------------------------------

def _total_pages(response: httpx.Response) -> int:
    # httpx.Headers est insensible à la casse
    raw = response.headers.get(TOTAL_PAGES_HEADER, "")
    try:
        n = int(str(raw).strip())
    except ValueError:
        return 1
    return n if n > 0 else 1

def _json_list(response: httpx.Response) -> Optional[List[Any]]:
    try:
        payload = response.json()
    except ValueError:
        return None
    return payload if isinstance(payload, list) else None


# ----------------------------- Client ----------------------------------

class OLTClient:
    """
    Client de l'API WP REST (shows + media).
    Un seul essai par page : pas de retry.
    """

    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None,
                 timeout: Optional[float] = None):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.olt_api_base,
            headers={"Accept": "application/json"},
            timeout=timeout if timeout is not None else settings.request_timeout,
        )

    async def __aenter__(self) -> "OLTClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get(self, endpoint: str, params: Dict[str, Any]) -> httpx.Response:
        return await self._client.get(endpoint, params=params)

    async def fetch_all_shows(self) -> AsyncIterator[RemoteShow]:
        """
        Itère sur tous les shows, page par page (100 par page).
        Le nombre de pages est lu une seule fois, sur la première réponse.
        """
        page = 1
        total_pages = 1
        while True:
            try:
                r = await self._get(SHOWS_ENDPOINT, {"per_page": PER_PAGE, "page": page})
            except httpx.HTTPError as e:
                raise FetchError(f"API request failed: {e}") from e

            if r.status_code != 200:
                raise FetchError(f"API returned status {r.status_code}")

            if page == 1:
                total_pages = _total_pages(r)

            shows = _json_list(r)
            if shows is None:
                raise FetchError("Invalid API response format")

            log.info("OLT API: page %s/%s, %s shows", page, total_pages, len(shows))
            for show in shows:
                yield show

            page += 1
            if page > total_pages:
                break

    async def fetch_media_batch(self, ids: Iterable[int]) -> MediaBatchResult:
        """
        Récupère plusieurs media en un appel (`include=1,2,3`).
        Échec = mapping vide avec status "failed", jamais d'exception.
        """
        ids = list(ids)
        if not ids:
            return MediaBatchResult(status="empty")

        params = {"include": ",".join(str(i) for i in ids), "per_page": len(ids)}
        try:
            r = await self._get(MEDIA_ENDPOINT, params)
        except httpx.HTTPError as e:
            log.warning("OLT API: media batch en échec (%s ids): %s", len(ids), e)
            return MediaBatchResult(status="failed", error=str(e) or type(e).__name__)

        if r.status_code != 200:
            log.warning("OLT API: media batch status %s", r.status_code)
            return MediaBatchResult(status="failed", error=f"API returned status {r.status_code}")

        items = _json_list(r)
        if items is None:
            log.warning("OLT API: media batch, réponse illisible")
            return MediaBatchResult(status="failed", error="Invalid API response format")

        media: Dict[int, RemoteMedia] = {}
        for item in items:
            if not isinstance(item, dict):
                continue
            mid = to_int(item.get("id"))
            if mid:
                media[mid] = item
        return MediaBatchResult(status="ok", media=media)
