from shows_sync.core.images import REMOTE_MEDIA_ID, ImageResolver
from shows_sync.storage.base import StoreError
from shows_sync.storage.memory import InMemoryStore

from conftest import make_media


def _record(store, title="Show"):
    return store.upsert("show", None, {"title": title, "body": ""})


class TestNeedsUpdate:
    def test_no_featured_attachment(self, store):
        rid = _record(store)
        assert ImageResolver(store).needs_update(rid, 10) is True

    def test_same_remote_media_id(self, store):
        rid = _record(store)
        att = store.store_asset_from_url("https://cdn.test/a.jpg", rid, "a")
        store.set_featured_attachment(rid, att)
        store.set_metadata(att, REMOTE_MEDIA_ID, 10)

        assert ImageResolver(store).needs_update(rid, 10) is False

    def test_changed_remote_media_id(self, store):
        rid = _record(store)
        att = store.store_asset_from_url("https://cdn.test/a.jpg", rid, "a")
        store.set_featured_attachment(rid, att)
        store.set_metadata(att, REMOTE_MEDIA_ID, "10")

        assert ImageResolver(store).needs_update(rid, 11) is True

    def test_attachment_without_remote_media_id(self, store):
        rid = _record(store)
        att = store.store_asset_from_url("https://cdn.test/manual.jpg", rid, "manual")
        store.set_featured_attachment(rid, att)

        assert ImageResolver(store).needs_update(rid, 10) is True


class TestImportFeaturedImage:
    def test_empty_source_url_is_noop(self, store):
        rid = _record(store)

        res = ImageResolver(store).import_featured_image(rid, make_media(1, source_url=""))

        assert res.status == "skipped"
        assert store.records("attachment") == []
        assert store.get_featured_attachment(rid) is None

    def test_imports_and_tags_with_remote_media_id(self):
        downloaded = []
        store = InMemoryStore(download=lambda url: downloaded.append(url) or "/media/x.jpg")
        rid = _record(store)

        res = ImageResolver(store).import_featured_image(rid, make_media(42, alt_text="Poster"))

        assert res.status == "imported"
        assert downloaded == ["https://cdn.test/42.jpg"]
        assert store.get_featured_attachment(rid) == res.attachment_id
        assert store.get_metadata(res.attachment_id, REMOTE_MEDIA_ID) == 42
        assert store.items[res.attachment_id].description == "Poster"

    def test_description_falls_back_to_rendered_title(self, store):
        rid = _record(store)

        res = ImageResolver(store).import_featured_image(rid, make_media(1, alt_text="", title="Title from WP"))

        assert store.items[res.attachment_id].description == "Title from WP"

    def test_reuses_attachment_with_same_source_url(self):
        downloaded = []
        store = InMemoryStore(download=lambda url: downloaded.append(url))
        first, second = _record(store, "A"), _record(store, "B")
        resolver = ImageResolver(store)

        r1 = resolver.import_featured_image(first, make_media(1, source_url="https://cdn.test/same.jpg"))
        r2 = resolver.import_featured_image(second, make_media(2, source_url="https://cdn.test/same.jpg"))

        assert (r1.status, r2.status) == ("imported", "reused")
        assert r1.attachment_id == r2.attachment_id
        assert len(store.records("attachment")) == 1
        assert len(downloaded) == 1
        assert store.get_featured_attachment(second) == r1.attachment_id

    def test_download_failure_is_reported_not_raised(self):
        def download(url):
            raise StoreError("404 Not Found")

        store = InMemoryStore(download=download)
        rid = _record(store)

        res = ImageResolver(store).import_featured_image(rid, make_media(1))

        assert res.status == "failed"
        assert "404" in res.error
        assert store.get_featured_attachment(rid) is None
        assert store.records("attachment") == []
