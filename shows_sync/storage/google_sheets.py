import os, json, logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import gspread
import httpx
from google.oauth2.service_account import Credentials

from shows_sync.core.config import settings
from shows_sync.storage.base import StoreError
from shows_sync.storage.memory import InMemoryStore, StoredItem

log = logging.getLogger(__name__)
SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

HEADER = [
    "id","record_type","title","status","featured_attachment",
    "source_url","owner_id","file_path","description","fields","metadata",
]

def _client():
    creds_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
    if not creds_path or not os.path.exists(creds_path):
        raise RuntimeError("GOOGLE_APPLICATION_CREDENTIALS introuvable (fichier JSON Service Account manquant)")
    creds = Credentials.from_service_account_file(creds_path, scopes=SCOPES)
    return gspread.authorize(creds)

def open_worksheet():
    gc = _client()
    if settings.gsheet_id:
        sh = gc.open_by_key(settings.gsheet_id)
    else:
        try:
            sh = gc.open(settings.gsheet_doc_title)
        except gspread.SpreadsheetNotFound:
            sh = gc.create(settings.gsheet_doc_title)
    try:
        return sh.worksheet(settings.gsheet_worksheet)
    except gspread.WorksheetNotFound:
        return sh.add_worksheet(settings.gsheet_worksheet, rows=2000, cols=len(HEADER))

def _opt_int(v: Any) -> Optional[int]:
    try:
        return int(v) if v not in (None, "") else None
    except (TypeError, ValueError):
        return None

def _row_to_item(row: List[str]) -> Optional[StoredItem]:
    row = list(row) + [""] * (len(HEADER) - len(row))
    d = dict(zip(HEADER, row))
    item_id = _opt_int(d["id"])
    if not item_id:
        return None
    return StoredItem(
        id=item_id,
        record_type=d["record_type"],
        fields=json.loads(d["fields"] or "{}"),
        metadata=json.loads(d["metadata"] or "{}"),
        featured_attachment=_opt_int(d["featured_attachment"]),
        source_url=d["source_url"] or None,
        owner_id=_opt_int(d["owner_id"]),
        file_path=d["file_path"] or None,
        description=d["description"],
    )

def _item_to_row(item: StoredItem) -> List[Any]:
    return [
        item.id,
        item.record_type,
        item.fields.get("title", ""),
        item.fields.get("status", ""),
        item.featured_attachment or "",
        item.source_url or "",
        item.owner_id or "",
        item.file_path or "",
        item.description,
        json.dumps(item.fields, ensure_ascii=False),
        json.dumps(item.metadata, ensure_ascii=False),
    ]


class GoogleSheetsStore(InMemoryStore):
    """
    Store local adossé à un onglet Google Sheets : une ligne par show ou
    par image. Tout est chargé à l'ouverture, chaque mutation réécrit sa ligne.
    Les images sont téléchargées dans `media_dir`.
    """

    def __init__(self, worksheet, media_dir: Optional[str] = None, timeout: Optional[float] = None):
        self.ws = worksheet
        self.media_dir = Path(media_dir or settings.media_dir)
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._rows: Dict[int, int] = {}

        existing = self.ws.get_all_values()
        if not existing or existing[0] != HEADER:
            self.ws.clear()
            self.ws.append_row(HEADER)
            existing = [HEADER]

        items: List[StoredItem] = []
        for n, row in enumerate(existing[1:], start=2):
            try:
                item = _row_to_item(row)
            except ValueError:
                log.warning("Ligne %s illisible, ignorée", n)
                continue
            if item:
                items.append(item)
                self._rows[item.id] = n
        self._next_row = len(existing) + 1
        super().__init__(download=self._download_asset, items=items)
        log.info("Google Sheets: %s lignes chargées", len(items))

    def _persist(self, item: StoredItem) -> None:
        values = _item_to_row(item)
        try:
            row = self._rows.get(item.id)
            if row:
                self.ws.update(range_name=f"A{row}", values=[values])
            else:
                self.ws.append_row(values, value_input_option="RAW")
                self._rows[item.id] = self._next_row
                self._next_row += 1
        except gspread.exceptions.GSpreadException as e:
            raise StoreError(f"Google Sheets: écriture impossible ({e})") from e

    def _download_asset(self, url: str) -> str:
        name = os.path.basename(urlparse(url).path) or "image"
        self.media_dir.mkdir(parents=True, exist_ok=True)
        dest = self.media_dir / name
        n = 1
        while dest.exists():
            dest = self.media_dir / f"{dest.stem.split('__')[0]}__{n}{dest.suffix}"
            n += 1
        try:
            with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                r = client.get(url)
                r.raise_for_status()
        except httpx.HTTPError as e:
            raise StoreError(f"Download failed for {url}: {e}") from e
        dest.write_bytes(r.content)
        return str(dest)


def open_store() -> GoogleSheetsStore:
    return GoogleSheetsStore(open_worksheet())
