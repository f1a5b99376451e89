"""Tests for the entity repository against a real SQLite database."""

from uuid import uuid4

import pytest

from artverse.lib.exceptions import NotFoundError, QuotaExceededError, ValidationError
from artverse.schemas import DataExport


async def _artwork(repository, gallery_id, title="Piece", **fields):
    return await repository.add_artwork(
        gallery_id,
        title=title,
        artist="Ada",
        price=100.0,
        image=f"https://img.example/{title}.png",
        **fields,
    )


@pytest.fixture
async def user(repository):
    return await repository.create_user("Grace", "grace@example.com", True)


@pytest.fixture
async def gallery_row(repository, user):
    gallery = await repository.create_gallery(user.id, "Harbour Lights", owner=user.name)
    await repository.set_gallery_exists(user.id, gallery.id)
    return gallery


class TestUsers:
    @pytest.mark.asyncio
    async def test_duplicate_email_is_rejected(self, repository, user):
        with pytest.raises(ValidationError):
            await repository.create_user("Other", "grace@example.com")

    @pytest.mark.asyncio
    async def test_get_missing_user(self, repository):
        with pytest.raises(NotFoundError):
            await repository.get_user(uuid4())

    @pytest.mark.asyncio
    async def test_update_rejects_ownership_fields(self, repository, user):
        with pytest.raises(ValidationError):
            await repository.update_user(user.id, has_gallery=True)

    @pytest.mark.asyncio
    async def test_set_gallery_exists_round_trip(self, repository, user):
        gallery_id = uuid4()
        updated = await repository.set_gallery_exists(user.id, gallery_id)
        assert updated.has_gallery is True
        assert updated.gallery_id == gallery_id

        cleared = await repository.set_gallery_exists(user.id, None)
        assert cleared.has_gallery is False
        assert cleared.gallery_id is None

    @pytest.mark.asyncio
    async def test_conditional_clear_spares_a_newer_gallery(self, repository, user):
        old_id, new_id = uuid4(), uuid4()
        await repository.set_gallery_exists(user.id, new_id)

        kept = await repository.set_gallery_exists(user.id, None, only_if=old_id)
        assert kept.has_gallery is True
        assert kept.gallery_id == new_id

        cleared = await repository.set_gallery_exists(user.id, None, only_if=new_id)
        assert cleared.has_gallery is False

    @pytest.mark.asyncio
    async def test_update_email_to_taken_address(self, repository, user):
        other = await repository.create_user("Other", "other@example.com")
        with pytest.raises(ValidationError):
            await repository.update_user(other.id, email="grace@example.com")


class TestGalleryCounters:
    @pytest.mark.asyncio
    async def test_count_tracks_artwork_rows(self, repository, gallery_row):
        first = await _artwork(repository, gallery_row.id, "one")
        await _artwork(repository, gallery_row.id, "two")
        assert (await repository.get_gallery(gallery_row.id)).artwork_count == 2

        await repository.remove_artwork(first.id)
        gallery = await repository.get_gallery(gallery_row.id)
        assert gallery.artwork_count == 1 == await repository.count_artworks(gallery_row.id)

    @pytest.mark.asyncio
    async def test_quota(self, repository, gallery_row):
        for i in range(6):
            await _artwork(repository, gallery_row.id, f"p{i}")
        with pytest.raises(QuotaExceededError):
            await _artwork(repository, gallery_row.id, "p7")
        assert await repository.count_artworks(gallery_row.id) == 6

    @pytest.mark.asyncio
    async def test_counters_are_not_directly_writable(self, repository, gallery_row):
        with pytest.raises(ValidationError):
            await repository.update_gallery(gallery_row.id, artwork_count=99)

    @pytest.mark.asyncio
    async def test_adult_flag_follows_artworks(self, repository, gallery_row):
        tame = await _artwork(repository, gallery_row.id, "tame")
        wild = await _artwork(repository, gallery_row.id, "wild", has_adult_content=True)
        assert await repository.refresh_adult_flag(gallery_row.id) is True

        await repository.remove_artwork(wild.id)
        assert await repository.refresh_adult_flag(gallery_row.id) is False

        await repository.update_artwork(tame.id, has_adult_content=True)
        assert (await repository.get_gallery(gallery_row.id)).has_adult_content is True

    @pytest.mark.asyncio
    async def test_like_and_view_bump_gallery_totals(self, repository, gallery_row):
        art = await _artwork(repository, gallery_row.id)
        await repository.like_artwork(art.id)
        await repository.like_artwork(art.id)
        viewed = await repository.view_artwork(art.id)

        assert viewed.views == 1
        assert (await repository.get_artwork(art.id)).likes == 2
        gallery = await repository.get_gallery(gallery_row.id)
        assert (gallery.total_likes, gallery.total_views) == (2, 1)

    @pytest.mark.asyncio
    async def test_remove_missing_artwork_returns_none(self, repository):
        assert await repository.remove_artwork(uuid4()) is None

    @pytest.mark.asyncio
    async def test_private_galleries_are_not_listed(self, repository, user):
        await repository.create_gallery(user.id, "Hidden", is_public=False)
        assert await repository.list_galleries() == []
        assert len(await repository.list_galleries(public_only=False)) == 1


class TestExportImport:
    @pytest.mark.asyncio
    async def test_import_of_export_reproduces_entities(self, repository, gallery_row):
        await _artwork(repository, gallery_row.id, "one")
        await _artwork(repository, gallery_row.id, "two", has_adult_content=True)
        await repository.refresh_adult_flag(gallery_row.id)

        exported = (await repository.export_data()).to_json()
        counts = await repository.import_data(DataExport.model_validate(exported))
        reimported = (await repository.export_data()).to_json()

        assert counts == {"galleries": 1, "artworks": 2, "users": 1, "files": 0}
        for collection in ("galleries", "artworks", "users", "files"):
            before = sorted(exported[collection], key=lambda e: e["id"])
            after = sorted(reimported[collection], key=lambda e: e["id"])
            for entity in before + after:
                entity.pop("updatedAt", None)
            assert before == after

    @pytest.mark.asyncio
    async def test_import_recomputes_counters(self, repository, gallery_row):
        await _artwork(repository, gallery_row.id)
        exported = (await repository.export_data()).to_json()
        exported["galleries"][0]["artworkCount"] = 42

        await repository.import_data(DataExport.model_validate(exported))
        assert (await repository.get_gallery(gallery_row.id)).artwork_count == 1

    @pytest.mark.asyncio
    async def test_import_rejects_orphan_artworks(self, repository, gallery_row):
        await _artwork(repository, gallery_row.id)
        exported = (await repository.export_data()).to_json()
        exported["galleries"] = []

        with pytest.raises(ValidationError, match="unknown galleries"):
            await repository.import_data(DataExport.model_validate(exported))
        # Nothing was replaced
        assert await repository.count_artworks(gallery_row.id) == 1

    @pytest.mark.asyncio
    async def test_import_recomputes_adult_flag(self, repository, gallery_row):
        await _artwork(repository, gallery_row.id, "bold", has_adult_content=True)
        exported = (await repository.export_data()).to_json()
        exported["galleries"][0]["hasAdultContent"] = False

        await repository.import_data(DataExport.model_validate(exported))
        assert (await repository.get_gallery(gallery_row.id)).has_adult_content is True

    @pytest.mark.asyncio
    async def test_import_rejects_gallery_over_quota(self, repository, gallery_row):
        exported = (await repository.export_data()).to_json()
        exported["artworks"] = [_artwork_payload(gallery_row.id, f"p{i}") for i in range(7)]

        with pytest.raises(QuotaExceededError):
            await repository.import_data(DataExport.model_validate(exported))
        assert await repository.find_gallery(gallery_row.id) is not None
        assert await repository.count_artworks(gallery_row.id) == 0


class TestMergeImport:
    @pytest.mark.asyncio
    async def test_artworks_can_join_a_stored_gallery(self, repository, gallery_row):
        await _artwork(repository, gallery_row.id, "existing")
        payload = DataExport.model_validate(
            {"artworks": [_artwork_payload(gallery_row.id, "merged", hasAdultContent=True)]}
        )

        counts = await repository.import_data(payload, replace=False)

        assert counts["artworks"] == 1
        gallery = await repository.get_gallery(gallery_row.id)
        assert gallery.artwork_count == 2
        assert gallery.has_adult_content is True
        assert [a.title for a in await repository.list_artworks(gallery_row.id)] == ["existing", "merged"]

    @pytest.mark.asyncio
    async def test_unknown_gallery_is_still_rejected(self, repository, gallery_row):
        payload = DataExport.model_validate({"artworks": [_artwork_payload(uuid4(), "lost")]})
        with pytest.raises(ValidationError, match="unknown galleries"):
            await repository.import_data(payload, replace=False)

    @pytest.mark.asyncio
    async def test_merge_cannot_exceed_quota(self, repository, gallery_row):
        for i in range(5):
            await _artwork(repository, gallery_row.id, f"p{i}")
        payload = DataExport.model_validate(
            {"artworks": [_artwork_payload(gallery_row.id, "m1"), _artwork_payload(gallery_row.id, "m2")]}
        )

        with pytest.raises(QuotaExceededError):
            await repository.import_data(payload, replace=False)

        assert await repository.count_artworks(gallery_row.id) == 5
        assert (await repository.get_gallery(gallery_row.id)).artwork_count == 5


def _artwork_payload(gallery_id, title, **extra):
    return {
        "id": str(uuid4()),
        "title": title,
        "price": 50,
        "image": f"https://img.example/{title}.png",
        "galleryId": str(gallery_id),
        **extra,
    }
