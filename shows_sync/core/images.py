# shows_sync/core/images.py
from __future__ import annotations

import logging

import httpx

from shows_sync.core.field_mapper import show_title, to_int
from shows_sync.core.models import ImageImportResult, RemoteMedia
from shows_sync.storage.base import LocalStore, StoreError

log = logging.getLogger(__name__)

REMOTE_MEDIA_ID = "remote_media_id"


class ImageResolver:
    """Import des images à la une, dédoublonnées par source_url."""

    def __init__(self, store: LocalStore):
        self.store = store

    def needs_update(self, record_id: int, remote_media_id: int) -> bool:
        """Vrai si pas d'image à la une, ou si son media id distant a changé."""
        thumb = self.store.get_featured_attachment(record_id)
        if not thumb:
            return True
        stored = self.store.get_metadata(thumb, REMOTE_MEDIA_ID)
        if stored in (None, ""):
            return True
        return to_int(stored) != remote_media_id

    def import_featured_image(self, record_id: int, media: RemoteMedia) -> ImageImportResult:
        source_url = (media.get("source_url") or "").strip()
        if not source_url:
            return ImageImportResult(status="skipped")

        try:
            existing = self.store.find_attachment_by_source_url(source_url)
            if existing:
                self.store.set_featured_attachment(record_id, existing)
                return ImageImportResult(status="reused", attachment_id=existing)

            description = media.get("alt_text") or show_title(media)
            attachment_id = self.store.store_asset_from_url(source_url, record_id, description)
            self.store.set_featured_attachment(record_id, attachment_id)

            media_id = to_int(media.get("id"))
            if media_id:
                self.store.set_metadata(attachment_id, REMOTE_MEDIA_ID, media_id)
        except (StoreError, httpx.HTTPError) as e:
            log.warning("Image %s non importée pour #%s: %s", source_url, record_id, e)
            return ImageImportResult(status="failed", error=str(e))

        return ImageImportResult(status="imported", attachment_id=attachment_id)
