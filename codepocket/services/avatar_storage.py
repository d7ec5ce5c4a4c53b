"""Avatar uploads to Supabase Storage.

Objects live in the avatars bucket under ``{user_id}/{timestamp}.{ext}``.
The previous avatar is removed before a new one is written, so each user
has at most one object.
"""

import asyncio
import logging
import time
import uuid as uuid_pkg
from urllib.parse import urlparse

from codepocket.config import settings
from codepocket.services.supabase import get_supabase_admin_client

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


class InvalidAvatarError(Exception):
    """Raised when the uploaded file is missing, too large or not an image."""

    pass


class AvatarStorageError(Exception):
    """Raised when Supabase Storage rejects an upload or removal."""

    pass


def validate_avatar(content_type: str | None, size: int) -> str:
    """Check type and size and return the file extension to store under.

    Raises:
        InvalidAvatarError: with a user-facing message
    """
    if size <= 0:
        raise InvalidAvatarError("No file provided")
    extension = ALLOWED_CONTENT_TYPES.get((content_type or "").lower())
    if extension is None:
        raise InvalidAvatarError("Invalid file type. Only JPEG, PNG, GIF, and WebP are allowed")
    if size > settings.avatar_max_bytes:
        raise InvalidAvatarError("File size exceeds 2MB limit")
    return extension


def object_path_from_url(user_id: uuid_pkg.UUID, avatar_url: str | None) -> str | None:
    """Recover the storage path of a previously saved public URL.

    Only paths inside the user's own folder are returned.
    """
    if not avatar_url:
        return None
    basename = urlparse(avatar_url).path.rsplit("/", 1)[-1]
    if not basename:
        return None
    return f"{user_id}/{basename}"


class AvatarStorage:
    """Thin wrapper around the storage bucket API.

    The Supabase client is synchronous, so calls run in a worker thread.
    """

    def __init__(self, bucket: str | None = None) -> None:
        self.bucket = bucket or settings.avatar_bucket

    def _bucket(self):  # type: ignore[no-untyped-def]
        return get_supabase_admin_client().storage.from_(self.bucket)

    async def remove(self, user_id: uuid_pkg.UUID, avatar_url: str | None) -> None:
        """Delete the object behind ``avatar_url``. Failures are logged, not raised."""
        path = object_path_from_url(user_id, avatar_url)
        if not path:
            return
        try:
            await asyncio.to_thread(self._bucket().remove, [path])
        except Exception as e:
            logger.warning(f"Failed to remove old avatar {path}: {e}")

    async def upload(
        self,
        user_id: uuid_pkg.UUID,
        data: bytes,
        content_type: str | None,
        previous_url: str | None = None,
    ) -> str:
        """Store a new avatar and return its public URL.

        Raises:
            InvalidAvatarError: the file fails validation
            AvatarStorageError: the upload failed
        """
        extension = validate_avatar(content_type, len(data))

        await self.remove(user_id, previous_url)

        path = f"{user_id}/{int(time.time() * 1000)}.{extension}"
        try:
            bucket = self._bucket()
            await asyncio.to_thread(
                bucket.upload,
                path,
                data,
                {"content-type": content_type, "upsert": "true"},
            )
            public_url: str = await asyncio.to_thread(bucket.get_public_url, path)
        except Exception as e:
            logger.error(f"Avatar upload failed for user {user_id}: {e}")
            raise AvatarStorageError("Failed to upload avatar") from e

        logger.info(f"Avatar uploaded for user {user_id}: {path}")
        return public_url


avatar_storage = AvatarStorage()
