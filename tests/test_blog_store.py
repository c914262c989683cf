"""Tests for the YAML-backed blog store and the BlogRecord model."""

import pytest
import yaml
from unittest.mock import patch

from blogsmith.blog_store import BlogNotFoundError, BlogRecord, BlogStatus, BlogStore


def _record(title="Composting 101", words=10, **kwargs):
    return BlogRecord(
        title=title,
        content=" ".join(["word"] * words),
        meta_description="A guide to composting.",
        prompt="write about composting",
        **kwargs,
    )


def _timestamps(n):
    return [f"2026-01-01T00:00:{i:02d}+00:00" for i in range(n)]


@pytest.fixture
def store(tmp_path):
    return BlogStore(str(tmp_path / "data" / "blogs.yaml"))


class TestBlogRecord:
    @pytest.mark.parametrize("words,minutes", [(0, 0), (1, 1), (200, 1), (201, 2), (450, 3)])
    def test_estimated_read_time(self, words, minutes):
        assert _record(words=words).estimated_read_time == minutes

    def test_word_count_derived_from_content(self):
        record = BlogRecord.from_dict({"content": "one two three", "word_count": 999})
        assert record.word_count == 3

    def test_status_coerced_from_string(self):
        assert _record(status="published").status is BlogStatus.PUBLISHED
        with pytest.raises(ValueError):
            _record(status="archived")

    def test_content_html(self):
        record = BlogRecord(title="T", content="## Heading\n\nSome **bold** text.", meta_description="", prompt="")
        assert "<h2>Heading</h2>" in record.content_html
        assert "<strong>bold</strong>" in record.content_html

    def test_to_dict_includes_derived_fields(self):
        data = _record(words=450).to_dict()
        assert data["word_count"] == 450
        assert data["estimated_read_time"] == 3
        assert data["status"] == "draft"


class TestBlogStoreCRUD:
    def test_create_assigns_identity(self, store):
        created = store.create(_record())
        assert len(created.id) == 32
        assert created.created_at
        assert created.created_at == created.updated_at

    def test_create_persists_yaml(self, store):
        created = store.create(_record())
        with open(store.path) as f:
            data = yaml.safe_load(f)
        assert data["blogs"][0]["id"] == created.id
        assert data["blogs"][0]["title"] == "Composting 101"

    def test_reload_from_disk(self, store):
        created = store.create(_record(keywords=["compost"], hashtags=["garden"]))
        reloaded = BlogStore(store.path).get(created.id)
        assert reloaded.title == created.title
        assert reloaded.keywords == ["compost"]
        assert reloaded.hashtags == ["garden"]
        assert reloaded.status is BlogStatus.DRAFT

    def test_get_missing(self, store):
        with pytest.raises(BlogNotFoundError):
            store.get("nope")

    def test_not_found_is_key_error(self):
        assert issubclass(BlogNotFoundError, KeyError)

    def test_delete(self, store):
        created = store.create(_record())
        assert store.delete(created.id) is True
        assert store.count() == 0
        with pytest.raises(BlogNotFoundError):
            store.get(created.id)

    def test_delete_missing(self, store):
        with pytest.raises(BlogNotFoundError):
            store.delete("nope")


class TestBlogStoreUpdate:
    def test_update_fields_and_timestamp(self, store):
        with patch("blogsmith.blog_store._now", side_effect=_timestamps(2)):
            created = store.create(_record())
            updated = store.update(created.id, title="New Title", status=BlogStatus.PUBLISHED)

        assert updated.title == "New Title"
        assert updated.status is BlogStatus.PUBLISHED
        assert updated.created_at == "2026-01-01T00:00:00+00:00"
        assert updated.updated_at == "2026-01-01T00:00:01+00:00"
        assert store.get(created.id).title == "New Title"

    def test_status_string_accepted(self, store):
        created = store.create(_record())
        assert store.update(created.id, status="published").status is BlogStatus.PUBLISHED

    def test_protected_fields_ignored(self, store):
        created = store.create(_record(words=5))
        updated = store.update(created.id, id="hijack", word_count=10_000, title="Kept")
        assert updated.id == created.id
        assert updated.word_count == 5
        assert updated.title == "Kept"

    def test_unknown_field_rejected(self, store):
        created = store.create(_record())
        with pytest.raises(ValueError, match="Unknown blog fields: author"):
            store.update(created.id, author="someone")

    def test_update_missing(self, store):
        with pytest.raises(BlogNotFoundError):
            store.update("nope", title="x")

    def test_attach_images(self, store):
        created = store.create(_record())
        updated = store.attach_images(created.id, hero_image="https://cdn.test/hero.png")
        assert updated.hero_image == "https://cdn.test/hero.png"
        assert updated.section_images == []

        updated = store.attach_images(created.id, section_images=["a.png", "b.png"])
        assert updated.hero_image == "https://cdn.test/hero.png"
        assert updated.section_images == ["a.png", "b.png"]


class TestBlogStoreList:
    def test_newest_first(self, store):
        with patch("blogsmith.blog_store._now", side_effect=_timestamps(3)):
            for title in ("first", "second", "third"):
                store.create(_record(title=title))

        records, _ = store.list_blogs()
        assert [r.title for r in records] == ["third", "second", "first"]

    def test_pagination(self, store):
        with patch("blogsmith.blog_store._now", side_effect=_timestamps(25)):
            for i in range(25):
                store.create(_record(title=f"post {i}"))

        records, pagination = store.list_blogs(page=3, limit=10)
        assert [r.title for r in records] == [f"post {i}" for i in range(4, -1, -1)]
        assert pagination == {"page": 3, "limit": 10, "total": 25, "pages": 3}

    def test_page_past_end(self, store):
        store.create(_record())
        records, pagination = store.list_blogs(page=5, limit=10)
        assert records == []
        assert pagination["pages"] == 1

    def test_empty_store(self, store):
        records, pagination = store.list_blogs()
        assert records == []
        assert pagination == {"page": 1, "limit": 10, "total": 0, "pages": 0}


class TestBlogStoreLoad:
    def test_blogs_key_without_items(self, tmp_path):
        path = tmp_path / "blogs.yaml"
        path.write_text("blogs:\n")
        store = BlogStore(str(path))

        assert store.count() == 0
        assert store.list_blogs() == ([], {"page": 1, "limit": 10, "total": 0, "pages": 0})
        with pytest.raises(BlogNotFoundError):
            store.get("nope")
        created = store.create(_record())
        assert BlogStore(str(path)).get(created.id).title == "Composting 101"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "blogs.yaml"
        path.write_text("")
        assert BlogStore(str(path)).count() == 0

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "blogs.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError, match="blog store mapping"):
            BlogStore(str(path))
