# shows_sync/adapters/__init__.py

from .olt import OLTClient, FetchError   # fetch_all_shows() / fetch_media_batch(ids)

__all__ = ["OLTClient", "FetchError"]
