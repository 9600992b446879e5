"""
Unit tests for the SharedFile entity.
"""

from datetime import timedelta

from ephemera.domain.file_storage.entities import SharedFile

from tests.fixtures import BASE_TIME, create_shared_file


class TestSharedFileCreate:
    """Test the SharedFile factory."""

    def test_assigns_identifiers_and_timestamps(self):
        file = create_shared_file(original_name="notes.txt")

        assert file.id
        assert len(file.download_token) >= 32
        assert file.storage_key == f"uploads/{file.id}/notes.txt"
        assert file.created_at == BASE_TIME
        assert file.updated_at == BASE_TIME
        assert file.download_count == 0

    def test_regenerate_identifiers_keeps_content_fields(self):
        file = create_shared_file(max_downloads=3, owner_id="user-1")

        regenerated = file.regenerate_identifiers()

        assert regenerated.id != file.id
        assert regenerated.download_token != file.download_token
        assert regenerated.storage_key == f"uploads/{regenerated.id}/{file.original_name}"
        assert regenerated.max_downloads == 3
        assert regenerated.owner_id == "user-1"
        assert regenerated.expires_at == file.expires_at


class TestSharedFileAccess:
    """Test expiry and download budget predicates."""

    def test_expired_at_exact_expiry_moment(self):
        file = create_shared_file(expires_in=timedelta(minutes=5))

        assert not file.is_expired(BASE_TIME + timedelta(minutes=4, seconds=59))
        assert file.is_expired(BASE_TIME + timedelta(minutes=5))

    def test_unbounded_file_is_never_exhausted(self):
        file = create_shared_file(max_downloads=None, download_count=10_000)

        assert not file.is_exhausted()
        assert file.remaining_downloads() is None

    def test_bounded_file_exhausted_at_limit(self):
        file = create_shared_file(max_downloads=2, download_count=2)

        assert file.is_exhausted()
        assert file.remaining_downloads() == 0
        assert not file.is_accessible(BASE_TIME)

    def test_zero_budget_is_exhausted_immediately(self):
        file = create_shared_file(max_downloads=0)

        assert file.is_exhausted()

    def test_remaining_downloads_never_negative(self):
        file = create_shared_file(max_downloads=1, download_count=5)

        assert file.remaining_downloads() == 0

    def test_ownership(self):
        owned = create_shared_file(owner_id="alice")
        anonymous = create_shared_file(owner_id=None)

        assert owned.is_owned_by("alice")
        assert not owned.is_owned_by("bob")
        assert not anonymous.is_owned_by(None)

    def test_remaining_seconds(self):
        file = create_shared_file(expires_in=timedelta(seconds=90))

        assert file.get_remaining_seconds(BASE_TIME) == 90
        assert file.get_remaining_seconds(BASE_TIME + timedelta(hours=1)) == 0


class TestSharedFileSerialization:
    """Test dictionary conversion and URL helpers."""

    def test_from_dict_restores_all_fields(self):
        file = create_shared_file(owner_id="alice", max_downloads=4, download_count=1)

        restored = SharedFile.from_dict(file.to_dict())

        assert restored == file

    def test_from_dict_keeps_unbounded_budget(self):
        file = create_shared_file(max_downloads=None)

        assert SharedFile.from_dict(file.to_dict()).max_downloads is None

    def test_urls(self):
        file = create_shared_file()

        assert file.generate_view_url("https://x.test/") == (
            f"https://x.test/api/v1/files/{file.download_token}"
        )
        assert file.generate_download_url("https://x.test") == (
            f"https://x.test/api/v1/files/{file.download_token}/download"
        )
