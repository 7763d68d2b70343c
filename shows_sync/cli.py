from __future__ import annotations

import asyncio
import logging
import sys

from shows_sync.adapters.olt import FetchError, OLTClient
from shows_sync.core.config import settings
from shows_sync.core.importer import ShowImporter
from shows_sync.core.logging import configure_logging
from shows_sync.core.models import ImportStats
from shows_sync.core.progress import LoggingProgressSink
from shows_sync.storage.memory import InMemoryStore

log = logging.getLogger(__name__)

def _open_store():
    if settings.store_backend == "memory":
        log.info("STORE_BACKEND=memory : rien ne sera persisté")
        return InMemoryStore()
    # import tardif : gspread / google-auth seulement si besoin
    from shows_sync.storage.google_sheets import open_store
    return open_store()

def report(stats: ImportStats) -> None:
    log.info("Import completed!")
    log.info("  Created: %d", stats.created)
    log.info("  Updated: %d", stats.updated)
    log.info("  Skipped: %d", stats.skipped)

    if stats.errors:
        log.warning("%d errors occurred:", len(stats.errors))
        for err in stats.errors:
            log.warning("  - [OLT ID: %s] %s: %s", err.remote_id, err.title, err.message)

async def run_all() -> ImportStats:
    log.info("Starting OLT Shows Import...")
    store = _open_store()
    async with OLTClient() as client:
        importer = ShowImporter(client, store, progress=LoggingProgressSink())
        stats = await importer.run()
    report(stats)
    return stats

def main() -> None:
    configure_logging(settings.log_level)
    try:
        asyncio.run(run_all())
    except FetchError as e:
        log.error("Import failed: %s", e)
        sys.exit(1)
    except Exception:
        log.exception("Import failed")
        sys.exit(1)

if __name__ == "__main__":
    main()
