"""
Fixtures partagées : une fausse API WP REST servie par httpx.MockTransport.
"""

import json
import math
from typing import Any, Dict, List, Optional, Set

import httpx
import pytest

from shows_sync.adapters.olt import OLTClient
from shows_sync.storage.memory import InMemoryStore

BASE_URL = "https://olt.test/wp-json/wp/v2"


def make_show(show_id: Any, title: str = "Show", featured_media: Any = 0, **acf) -> Dict[str, Any]:
    return {
        "id": show_id,
        "title": {"rendered": title},
        "content": {"rendered": f"<p>{title}</p>"},
        "featured_media": featured_media,
        "acf": acf,
    }


def make_media(media_id: int, source_url: Optional[str] = None, alt_text: str = "", title: str = "") -> Dict[str, Any]:
    return {
        "id": media_id,
        "source_url": source_url if source_url is not None else f"https://cdn.test/{media_id}.jpg",
        "alt_text": alt_text,
        "title": {"rendered": title},
    }


class FakeApi:
    """
    Sert /show (paginé, header X-WP-TotalPages) et /media?include=...
    `calls` garde les paramètres de chaque requête.
    """

    def __init__(self, shows: Optional[List[Dict[str, Any]]] = None,
                 media: Optional[Dict[int, Dict[str, Any]]] = None,
                 failing_media_ids: Optional[Set[int]] = None,
                 show_status: int = 200):
        self.shows = shows or []
        self.media = media or {}
        self.failing_media_ids = failing_media_ids or set()
        self.show_status = show_status
        self.calls: List[Dict[str, Any]] = []

    def total_pages(self, per_page: int) -> int:
        return max(1, math.ceil(len(self.shows) / per_page))

    def handler(self, request: httpx.Request) -> httpx.Response:
        params = dict(request.url.params)
        path = request.url.path
        self.calls.append({"path": path, **params})

        if path.endswith("/show"):
            if self.show_status != 200:
                return httpx.Response(self.show_status, json={"code": "error"})
            per_page = int(params["per_page"])
            page = int(params["page"])
            chunk = self.shows[(page - 1) * per_page: page * per_page]
            return httpx.Response(
                200, json=chunk,
                headers={"X-WP-TotalPages": str(self.total_pages(per_page))},
            )

        if path.endswith("/media"):
            ids = [int(i) for i in params["include"].split(",")]
            if self.failing_media_ids & set(ids):
                return httpx.Response(500, text="boom")
            return httpx.Response(200, json=[self.media[i] for i in ids if i in self.media])

        return httpx.Response(404)

    @property
    def media_calls(self) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["path"].endswith("/media")]

    @property
    def show_calls(self) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["path"].endswith("/show")]

    def client(self) -> OLTClient:
        transport = httpx.MockTransport(self.handler)
        return OLTClient(client=httpx.AsyncClient(transport=transport, base_url=BASE_URL))


def client_for(handler) -> OLTClient:
    return OLTClient(client=httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL))


class RecordingSink:
    def __init__(self):
        self.events: List[tuple] = []

    def on_log(self, message):
        self.events.append(("log", message))

    def on_start(self, total):
        self.events.append(("start", total))

    def on_tick(self, current, total, label):
        self.events.append(("tick", current, total, label))

    def on_finish(self):
        self.events.append(("finish",))

    def kinds(self) -> List[str]:
        return [e[0] for e in self.events if e[0] != "log"]


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def sink():
    return RecordingSink()
