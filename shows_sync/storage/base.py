# shows_sync/storage/base.py
from __future__ import annotations

from typing import Any, Dict, Optional, Protocol


class StoreError(RuntimeError):
    """Échec d'écriture / lecture côté store local."""


class LocalStore(Protocol):
    """
    Capacités attendues du store de contenu local.
    Les erreurs sont remontées via StoreError.
    """

    def find_by_metadata(self, record_type: str, key: str, value: Any, numeric: bool = False) -> Optional[int]: ...

    def upsert(self, record_type: str, record_id: Optional[int], fields: Dict[str, Any],
               metadata: Optional[Dict[str, Any]] = None) -> int: ...

    def set_metadata(self, record_id: int, key: str, value: Any) -> None: ...

    def get_metadata(self, record_id: int, key: str) -> Any: ...

    def get_featured_attachment(self, record_id: int) -> Optional[int]: ...

    def set_featured_attachment(self, record_id: int, attachment_id: int) -> None: ...

    def find_attachment_by_source_url(self, url: str) -> Optional[int]: ...

    def store_asset_from_url(self, url: str, owner_id: int, description: str) -> int: ...
