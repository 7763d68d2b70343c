# shows_sync/core/field_mapper.py
from __future__ import annotations

import html
from datetime import datetime
from typing import Any, Dict, List

from shows_sync.core.models import MappedRecord, PrimaryFields, RemoteShow, ShowMetadata

# Noms des champs ACF côté API, avec leurs alias courts
_OPENING_NIGHT = ("show_opening_night", "opening_night")
_BOOKING_UNTIL = ("show_booking_until", "booking_until")
_CLOSING_NIGHT = ("show_closing_night", "closing_night")
_TICKET_URLS = ("show_ticket_urls", "ticket_urls")
_TICKET_URL = ("show_ticket_url", "url")


# ------------------ helpers ------------------

def _pick(bag: Dict[str, Any], keys: tuple) -> Any:
    for k in keys:
        v = bag.get(k)
        if v not in (None, ""):
            return v
    return None

def _rendered(v: Any) -> str:
    """Les champs 'rich text' WP arrivent sous la forme {"rendered": "..."}."""
    if isinstance(v, dict):
        v = v.get("rendered")
    return v if isinstance(v, str) else ""

def to_int(v: Any) -> int:
    """Coercition tolérante : tout ce qui n'est pas un entier -> 0."""
    if isinstance(v, bool) or v is None:
        return 0
    try:
        return int(v)
    except (TypeError, ValueError, OverflowError):
        try:
            return int(float(v))
        except (TypeError, ValueError, OverflowError):
            return 0

def format_date(value: Any) -> str:
    """'YYYYMMDD' -> 'dd/mm/yyyy', sinon chaîne vide."""
    if value is None:
        return ""
    s = str(value).strip()
    if len(s) != 8:
        return ""
    try:
        return datetime.strptime(s, "%Y%m%d").strftime("%d/%m/%Y")
    except ValueError:
        return ""

def end_date(extra: Dict[str, Any]) -> str:
    # booking_until prioritaire sur closing_night
    booking = _pick(extra, _BOOKING_UNTIL)
    if booking is not None:
        return format_date(booking)
    closing = _pick(extra, _CLOSING_NIGHT)
    if closing is not None:
        return format_date(closing)
    return ""

def format_ticket_urls(tickets: Any) -> str:
    if not tickets or not isinstance(tickets, list):
        return ""
    urls: List[str] = []
    for t in tickets:
        if not isinstance(t, dict):
            continue
        url = _pick(t, _TICKET_URL)
        if url:
            urls.append(str(url))
    return ",".join(urls)

def format_price(price: Any) -> str:
    if price is None or price == "":
        return ""
    return str(price)

def show_title(show: RemoteShow, default: str = "") -> str:
    """Titre brut (non décodé) tel que rendu par l'API."""
    return _rendered(show.get("title")) or default


# ------------------ mapping ------------------

def map_show(show: RemoteShow) -> MappedRecord:
    """
    Transforme un show distant en enregistrement local.
    Ne lève jamais : un champ mal formé donne une chaîne vide.
    `metadata.remote_id == 0` est à rejeter par l'appelant.
    """
    extra: Dict[str, Any] = show.get("acf") if isinstance(show.get("acf"), dict) else {}

    return MappedRecord(
        primary_fields=PrimaryFields(
            title=html.unescape(show_title(show)),
            body=_rendered(show.get("content")),
        ),
        metadata=ShowMetadata(
            remote_id=to_int(show.get("id")),
            start_date=format_date(_pick(extra, _OPENING_NIGHT)),
            end_date=end_date(extra),
            ticket_urls=format_ticket_urls(_pick(extra, _TICKET_URLS)),
            minimum_price=format_price(extra.get("minimum_price")),
        ),
        featured_media_id=to_int(show.get("featured_media")),
    )
