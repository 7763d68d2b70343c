# shows_sync/core/importer.py
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from shows_sync.core.field_mapper import map_show, show_title, to_int
from shows_sync.core.images import ImageResolver
from shows_sync.core.models import (
    ImportStats,
    MappedRecord,
    MediaBatchResult,
    RemoteMedia,
    RemoteShow,
)
from shows_sync.core.progress import NullProgressSink, ProgressSink
from shows_sync.storage.base import LocalStore, StoreError

log = logging.getLogger(__name__)

RECORD_TYPE = "show"
BUSINESS_KEY = "remote_id"
MEDIA_BATCH_SIZE = 100


class InvalidShowError(ValueError):
    """Show distant inexploitable (id manquant)."""


class RemoteSource(Protocol):
    def fetch_all_shows(self): ...
    async def fetch_media_batch(self, ids: Iterable[int]) -> MediaBatchResult: ...


def chunked(ids: List[int], size: int = MEDIA_BATCH_SIZE) -> List[List[int]]:
    return [ids[i:i + size] for i in range(0, len(ids), size)]


class ShowImporter:
    """
    Pipeline d'import en trois phases :
    1) collecte de tous les shows + ids media (un échec ici interrompt le run)
    2) récupération des media par lots de 100
    3) upsert show par show (un show en erreur n'arrête pas le run)
    """

    def __init__(self, client: RemoteSource, store: LocalStore,
                 progress: Optional[ProgressSink] = None,
                 images: Optional[ImageResolver] = None):
        self.client = client
        self.store = store
        self.progress = progress or NullProgressSink()
        self.images = images or ImageResolver(store)

    # ------------------------------ run ------------------------------

    async def run(self) -> ImportStats:
        stats = ImportStats()

        # 1) Collecte
        self.progress.on_log("Fetching shows from OLT API...")
        shows, media_ids = await self.collect()
        total = len(shows)
        self.progress.on_log(f"Found {total} shows to process")
        if total == 0:
            return stats

        # 2) Media
        self.progress.on_log("Fetching media data...")
        media = await self.fetch_media_in_batches(media_ids)
        self.progress.on_log(f"Fetched {len(media)} media items")

        # 3) Shows
        self.progress.on_start(total)
        for index, show in enumerate(shows, start=1):
            if not isinstance(show, dict):
                show = {}
            title = show_title(show, "Unknown")
            self.progress.on_tick(index, total, title)

            try:
                # store bloquant (gspread, téléchargements) : hors de la boucle
                action = await asyncio.to_thread(self.process_show, show, media)
            except (InvalidShowError, StoreError) as e:
                log.warning("Show %s (%s) en erreur: %s", show.get("id"), title, e)
                stats.add_error(show.get("id") or 0, title, str(e))
                continue
            except Exception as e:
                log.exception("Show %s (%s): échec inattendu", show.get("id"), title)
                stats.add_error(show.get("id") or 0, title, str(e))
                continue

            if action == "created":
                stats.created += 1
            else:
                stats.updated += 1

        self.progress.on_finish()
        log.info("Import: %s créés, %s mis à jour, %s erreurs",
                 stats.created, stats.updated, len(stats.errors))
        return stats

    # --------------------------- phases ------------------------------

    async def collect(self) -> Tuple[List[RemoteShow], List[int]]:
        shows: List[RemoteShow] = []
        media_ids: Dict[int, None] = {}         # set ordonné
        async for show in self.client.fetch_all_shows():
            shows.append(show)
            mid = to_int(show.get("featured_media")) if isinstance(show, dict) else 0
            if mid:
                media_ids[mid] = None
        return shows, list(media_ids)

    async def fetch_media_in_batches(self, media_ids: Iterable[int]) -> Dict[int, RemoteMedia]:
        ids = list(dict.fromkeys(media_ids))
        if not ids:
            return {}

        results = await asyncio.gather(
            *[self.client.fetch_media_batch(chunk) for chunk in chunked(ids)]
        )

        merged: Dict[int, RemoteMedia] = {}
        for res in results:
            if res.failed:
                log.warning("Media: lot ignoré (%s)", res.error)
                continue
            merged.update(res.media)
        return merged

    def process_show(self, show: RemoteShow, media: Dict[int, RemoteMedia]) -> str:
        """Retourne 'created' ou 'updated'."""
        mapped = map_show(show)
        remote_id = mapped.metadata.remote_id
        if remote_id == 0:
            raise InvalidShowError("Missing show ID")

        record_id, action = self.upsert_record(mapped)
        self.attach_image(record_id, mapped, media)
        return action

    def upsert_record(self, mapped: MappedRecord) -> Tuple[int, str]:
        # recherche par clé métier, puis création ou mise à jour
        existing = self.store.find_by_metadata(
            RECORD_TYPE, BUSINESS_KEY, mapped.metadata.remote_id, numeric=True,
        )
        fields = mapped.primary_fields.model_dump()
        # la clé métier part avec les champs, jamais dans une écriture séparée
        metadata = mapped.metadata.model_dump()
        if existing:
            record_id = self.store.upsert(RECORD_TYPE, existing, fields, metadata)
            action = "updated"
        else:
            record_id = self.store.upsert(RECORD_TYPE, None, fields, metadata)
            action = "created"
        return record_id, action

    def attach_image(self, record_id: int, mapped: MappedRecord, media: Dict[int, RemoteMedia]) -> None:
        mid = mapped.featured_media_id
        if mid <= 0 or mid not in media:
            return
        # l'image ne doit jamais faire échouer le show
        try:
            if not self.images.needs_update(record_id, mid):
                return
            res = self.images.import_featured_image(record_id, media[mid])
        except Exception:
            log.exception("Image %s: échec inattendu pour #%s", mid, record_id)
            return
        if res.status == "failed":
            log.debug("Image %s ignorée pour #%s: %s", mid, record_id, res.error)
