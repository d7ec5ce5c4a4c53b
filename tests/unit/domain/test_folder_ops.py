"""Unit tests for FolderOperations (all DB calls mocked)."""

import uuid

import pytest

from codepocket.domain.folder_operations import FolderOperations
from codepocket.models.folder import FolderCreate, FolderUpdate

from tests.helpers.mock_factories import make_mock_db, make_mock_folder


class TestFolderFields:
    def setup_method(self):
        self.ops = FolderOperations()
        self.db = make_mock_db()
        self.user_id = uuid.uuid4()

    @pytest.mark.asyncio
    async def test_color_is_stored_lowercase(self):
        data = FolderCreate(name=" Scripts ", color="Blue")

        folder = await self.ops.create_folder(self.db, self.user_id, data)

        assert folder.color == "blue"
        assert folder.name == "Scripts"
        assert folder.user_id == self.user_id

    @pytest.mark.asyncio
    async def test_unknown_color_rejected(self):
        folder = make_mock_folder(user_id=self.user_id)

        with pytest.raises(ValueError, match="Color must be one of"):
            await self.ops.update_folder(self.db, folder, FolderUpdate(color="plaid"))
        self.db.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self):
        with pytest.raises(ValueError, match="Folder name is required"):
            await self.ops.create_folder(self.db, self.user_id, FolderCreate(name="   "))
