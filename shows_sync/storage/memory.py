# shows_sync/storage/memory.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Optional

from pydantic import BaseModel, Field

from shows_sync.core.field_mapper import to_int
from shows_sync.storage.base import StoreError

log = logging.getLogger(__name__)

ATTACHMENT = "attachment"


class StoredItem(BaseModel):
    """Un enregistrement (show) ou une pièce jointe (image)."""
    id: int
    record_type: str
    fields: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    featured_attachment: Optional[int] = None
    # attachments uniquement
    source_url: Optional[str] = None
    owner_id: Optional[int] = None
    file_path: Optional[str] = None
    description: str = ""


class InMemoryStore:
    """
    Store local en mémoire (tests, STORE_BACKEND=memory).
    `download(url)` récupère l'asset et renvoie un chemin ; s'il lève,
    l'import échoue avec StoreError.
    """

    def __init__(self, download: Optional[Callable[[str], Optional[str]]] = None,
                 items: Optional[Iterable[StoredItem]] = None):
        self._download = download
        self.items: Dict[int, StoredItem] = {}
        for it in (items or []):
            self.items[it.id] = it
        self._next_id = max(self.items, default=0) + 1

    # ------------------ hooks ------------------

    def _persist(self, item: StoredItem) -> None:
        """Appelé après chaque mutation ; rien à faire en mémoire."""

    def _commit(self, item: StoredItem) -> None:
        # visible en mémoire seulement si l'écriture a réussi
        self._persist(item)
        self.items[item.id] = item

    def _new_id(self) -> int:
        nid = self._next_id
        self._next_id += 1
        return nid

    def _get(self, record_id: int) -> StoredItem:
        item = self.items.get(record_id)
        if item is None:
            raise StoreError(f"Invalid record ID {record_id}")
        return item

    # ------------------ records ------------------

    def find_by_metadata(self, record_type: str, key: str, value: Any, numeric: bool = False) -> Optional[int]:
        for item_id in sorted(self.items):
            item = self.items[item_id]
            if item.record_type != record_type or key not in item.metadata:
                continue
            stored = item.metadata[key]
            if numeric:
                if to_int(stored) == to_int(value):
                    return item_id
            elif str(stored) == str(value):
                return item_id
        return None

    def upsert(self, record_type: str, record_id: Optional[int], fields: Dict[str, Any],
               metadata: Optional[Dict[str, Any]] = None) -> int:
        """Champs et meta écrits ensemble : une seule écriture par show."""
        if not (fields.get("title") or fields.get("body")):
            raise StoreError("Content, title, and excerpt are empty.")
        if record_id is None:
            item = StoredItem(id=self._new_id(), record_type=record_type, fields=dict(fields))
        else:
            item = self._get(record_id).model_copy(deep=True)
            item.fields.update(fields)
        item.metadata.update(metadata or {})
        self._commit(item)
        return item.id

    def set_metadata(self, record_id: int, key: str, value: Any) -> None:
        item = self._get(record_id).model_copy(deep=True)
        item.metadata[key] = value
        self._commit(item)

    def get_metadata(self, record_id: int, key: str) -> Any:
        item = self.items.get(record_id)
        return item.metadata.get(key) if item else None

    # ------------------ attachments ------------------

    def get_featured_attachment(self, record_id: int) -> Optional[int]:
        item = self.items.get(record_id)
        if item is None or item.featured_attachment not in self.items:
            return None
        return item.featured_attachment

    def set_featured_attachment(self, record_id: int, attachment_id: int) -> None:
        self._get(attachment_id)
        item = self._get(record_id).model_copy(deep=True)
        item.featured_attachment = attachment_id
        self._commit(item)

    def find_attachment_by_source_url(self, url: str) -> Optional[int]:
        for item_id in sorted(self.items):
            item = self.items[item_id]
            if item.record_type == ATTACHMENT and item.source_url == url:
                return item_id
        return None

    def store_asset_from_url(self, url: str, owner_id: int, description: str) -> int:
        self._get(owner_id)
        file_path = None
        if self._download is not None:
            try:
                file_path = self._download(url)
            except StoreError:
                raise
            except Exception as e:
                raise StoreError(f"Download failed for {url}: {e}") from e
        item = StoredItem(
            id=self._new_id(),
            record_type=ATTACHMENT,
            fields={"title": description},
            source_url=url,
            owner_id=owner_id,
            file_path=file_path,
            description=description,
        )
        self._commit(item)
        log.debug("Asset %s stocké (id=%s)", url, item.id)
        return item.id

    # ------------------ helpers (tests / rapport) ------------------

    def records(self, record_type: str):
        return [it for _, it in sorted(self.items.items()) if it.record_type == record_type]
