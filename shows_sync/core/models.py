# shows_sync/core/models.py

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# Les enregistrements distants (show, media) restent des dicts JSON bruts :
# c'est le mapper qui les transforme en modèles.
RemoteShow = Dict[str, Any]
RemoteMedia = Dict[str, Any]


class PrimaryFields(BaseModel):
    title: str = ""
    body: str = ""
    record_type: str = "show"
    status: str = "publish"


class ShowMetadata(BaseModel):
    """
    Champs meta écrits sur l'enregistrement local.
    `remote_id` est la clé métier utilisée pour l'upsert.
    """
    remote_id: int = 0
    start_date: str = ""
    end_date: str = ""
    ticket_urls: str = ""
    minimum_price: str = ""


class MappedRecord(BaseModel):
    primary_fields: PrimaryFields
    metadata: ShowMetadata
    featured_media_id: int = 0              # 0 = pas d'image


class ImportErrorEntry(BaseModel):
    remote_id: Any = 0                      # id brut tel que reçu (ou 0)
    title: str
    message: str


class ImportStats(BaseModel):
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[ImportErrorEntry] = Field(default_factory=list)

    def add_error(self, remote_id: Any, title: str, message: str) -> None:
        self.errors.append(ImportErrorEntry(remote_id=remote_id, title=title, message=message))


class MediaBatchResult(BaseModel):
    """
    Résultat d'un appel media batch.
    - "empty"  : aucun id demandé, aucun appel fait
    - "ok"     : réponse exploitable (le mapping peut quand même être vide)
    - "failed" : erreur transport / statut / corps illisible
    """
    status: Literal["empty", "ok", "failed"]
    media: Dict[int, RemoteMedia] = Field(default_factory=dict)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"


class ImageImportResult(BaseModel):
    status: Literal["imported", "reused", "skipped", "failed"]
    attachment_id: Optional[int] = None
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)
