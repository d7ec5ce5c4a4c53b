"""Unit tests for avatar validation and storage."""

import uuid
from unittest.mock import MagicMock, patch

import pytest

from codepocket.services.avatar_storage import (
    AvatarStorage,
    AvatarStorageError,
    InvalidAvatarError,
    object_path_from_url,
    validate_avatar,
)

CLIENT = "codepocket.services.avatar_storage.get_supabase_admin_client"


class TestValidateAvatar:
    @pytest.mark.parametrize(
        "content_type,extension",
        [("image/jpeg", "jpg"), ("image/png", "png"), ("image/gif", "gif"), ("IMAGE/WEBP", "webp")],
    )
    def test_allowed_types(self, content_type, extension):
        assert validate_avatar(content_type, 1024) == extension

    def test_rejects_other_types(self):
        with pytest.raises(InvalidAvatarError, match="Invalid file type"):
            validate_avatar("application/pdf", 1024)

    def test_rejects_empty_file(self):
        with pytest.raises(InvalidAvatarError, match="No file provided"):
            validate_avatar("image/png", 0)

    def test_rejects_over_2mb(self):
        with pytest.raises(InvalidAvatarError, match="2MB"):
            validate_avatar("image/png", 2 * 1024 * 1024 + 1)

    def test_accepts_exactly_2mb(self):
        assert validate_avatar("image/png", 2 * 1024 * 1024) == "png"


class TestObjectPath:
    def test_recovers_path_inside_user_folder(self):
        user_id = uuid.uuid4()
        url = f"https://x.supabase.co/storage/v1/object/public/avatars/{user_id}/171.png"
        assert object_path_from_url(user_id, url) == f"{user_id}/171.png"

    def test_foreign_folder_is_rewritten_to_own(self):
        user_id = uuid.uuid4()
        url = f"https://x.supabase.co/storage/v1/object/public/avatars/{uuid.uuid4()}/1.png"
        assert object_path_from_url(user_id, url) == f"{user_id}/1.png"

    def test_none_without_url(self):
        assert object_path_from_url(uuid.uuid4(), None) is None


class TestAvatarStorage:
    def setup_method(self):
        self.storage = AvatarStorage(bucket="avatars")
        self.bucket = MagicMock()
        self.bucket.get_public_url.return_value = "https://cdn.example.com/avatar.png"
        self.client = MagicMock()
        self.client.storage.from_.return_value = self.bucket

    @pytest.mark.asyncio
    async def test_upload_replaces_previous(self):
        user_id = uuid.uuid4()
        with patch(CLIENT, return_value=self.client):
            url = await self.storage.upload(
                user_id, b"png-bytes", "image/png", previous_url=f"https://cdn/{user_id}/old.png"
            )

        assert url == "https://cdn.example.com/avatar.png"
        self.bucket.remove.assert_called_once_with([f"{user_id}/old.png"])
        path = self.bucket.upload.call_args.args[0]
        assert path.startswith(f"{user_id}/") and path.endswith(".png")

    @pytest.mark.asyncio
    async def test_invalid_file_never_reaches_storage(self):
        with patch(CLIENT, return_value=self.client) as mock_client:
            with pytest.raises(InvalidAvatarError):
                await self.storage.upload(uuid.uuid4(), b"%PDF", "application/pdf")
        mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_failure_is_wrapped(self):
        self.bucket.upload.side_effect = RuntimeError("bucket missing")
        with patch(CLIENT, return_value=self.client):
            with pytest.raises(AvatarStorageError, match="Failed to upload avatar"):
                await self.storage.upload(uuid.uuid4(), b"png-bytes", "image/png")

    @pytest.mark.asyncio
    async def test_remove_failure_is_not_raised(self):
        self.bucket.remove.side_effect = RuntimeError("gone")
        user_id = uuid.uuid4()
        with patch(CLIENT, return_value=self.client):
            await self.storage.remove(user_id, f"https://cdn/{user_id}/old.png")
