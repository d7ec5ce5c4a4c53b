"""Unit tests for SnippetOperations (all DB calls mocked)."""

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from codepocket.core.cache import snippet_cache
from codepocket.domain.snippet_operations import SnippetOperations
from codepocket.models.snippet import SnippetCreate, SnippetUpdate

from tests.helpers.mock_factories import (
    make_mock_db,
    make_mock_snippet,
    mock_rows_result,
    mock_scalars_result,
)


class TestCreateSnippet:
    def setup_method(self):
        self.ops = SnippetOperations()
        self.db = make_mock_db()
        self.user_id = uuid.uuid4()

    @pytest.mark.asyncio
    async def test_sanitizes_and_sets_owner(self):
        data = SnippetCreate(
            title="  <Fetch> helper ",
            code="await fetch(url)",
            language="TypeScript",
            tags=[" http ", "http", "", "fetch"],
        )

        snippet = await self.ops.create_snippet(self.db, self.user_id, data)

        added = self.db.add.call_args[0][0]
        assert added is snippet
        assert snippet.user_id == self.user_id
        assert snippet.title == "Fetch helper"
        assert snippet.language == "typescript"
        assert snippet.tags == ["http", "fetch"]
        self.db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rejects_blank_title(self):
        data = SnippetCreate(title="   ", code="x = 1")
        with pytest.raises(ValueError, match="Title is required"):
            await self.ops.create_snippet(self.db, self.user_id, data)
        self.db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_unknown_language(self):
        data = SnippetCreate(title="t", code="x", language="cobol")
        with pytest.raises(ValueError, match="Unsupported language: cobol"):
            await self.ops.create_snippet(self.db, self.user_id, data)

    @pytest.mark.asyncio
    async def test_rejects_foreign_folder(self):
        self.db.execute = AsyncMock(return_value=mock_rows_result([]))
        data = SnippetCreate(title="t", code="x", folder_id=uuid.uuid4())
        with pytest.raises(ValueError, match="Folder not found"):
            await self.ops.create_snippet(self.db, self.user_id, data)

    @pytest.mark.asyncio
    async def test_invalidates_owner_cache(self):
        snippet_cache.set(f"snippets:{self.user_id}:extension", [{"id": "x"}])
        snippet_cache.set("snippets:someone-else:extension", [{"id": "y"}])

        await self.ops.create_snippet(self.db, self.user_id, SnippetCreate(title="t", code="x"))

        assert snippet_cache.get(f"snippets:{self.user_id}:extension") is None
        assert snippet_cache.get("snippets:someone-else:extension") is not None


class TestUpdateSnippet:
    def setup_method(self):
        self.ops = SnippetOperations()
        self.db = make_mock_db()

    @pytest.mark.asyncio
    async def test_only_sent_fields_change(self):
        snippet = make_mock_snippet(title="Old", code="old()", language="python")

        await self.ops.update_snippet(self.db, snippet, SnippetUpdate(title="New"))

        assert snippet.title == "New"
        assert snippet.code == "old()"
        assert snippet.language == "python"

    @pytest.mark.asyncio
    async def test_rejects_emptied_code(self):
        snippet = make_mock_snippet()
        with pytest.raises(ValueError, match="Code is required"):
            await self.ops.update_snippet(self.db, snippet, SnippetUpdate(code="\0"))

    @pytest.mark.asyncio
    async def test_null_favorite_leaves_flag_unchanged(self):
        snippet = make_mock_snippet(is_favorite=True)

        await self.ops.update_snippet(
            self.db, snippet, SnippetUpdate(title="Renamed", is_favorite=None)
        )

        assert snippet.is_favorite is True
        assert snippet.title == "Renamed"


class TestFavoritesAndArchive:
    def setup_method(self):
        self.ops = SnippetOperations()
        self.db = make_mock_db()

    @pytest.mark.asyncio
    async def test_toggle_favorite_flips_flag(self):
        snippet = make_mock_snippet(is_favorite=False)
        await self.ops.toggle_favorite(self.db, snippet)
        assert snippet.is_favorite is True

        await self.ops.toggle_favorite(self.db, snippet)
        assert snippet.is_favorite is False

    @pytest.mark.asyncio
    async def test_soft_delete_sets_deleted_at(self):
        snippet = make_mock_snippet()
        await self.ops.soft_delete(self.db, snippet)
        assert isinstance(snippet.deleted_at, datetime)

    @pytest.mark.asyncio
    async def test_restore_clears_deleted_at(self):
        snippet = make_mock_snippet(deleted_at=datetime.now(UTC))
        await self.ops.restore(self.db, snippet)
        assert snippet.deleted_at is None

    @pytest.mark.asyncio
    async def test_permanent_delete_requires_archive(self):
        snippet = make_mock_snippet(deleted_at=None)
        with pytest.raises(ValueError, match="Only archived snippets"):
            await self.ops.delete_permanently(self.db, snippet)
        self.db.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_permanent_delete_of_archived_snippet(self):
        snippet = make_mock_snippet(deleted_at=datetime.now(UTC))
        await self.ops.delete_permanently(self.db, snippet)
        self.db.delete.assert_awaited_once_with(snippet)

    @pytest.mark.asyncio
    async def test_purge_archived_returns_rowcount(self):
        result = MagicMock()
        result.rowcount = 4
        self.db.execute = AsyncMock(return_value=result)

        assert await self.ops.purge_archived(self.db, 30) == 4


class TestListing:
    def setup_method(self):
        self.ops = SnippetOperations()
        self.db = make_mock_db()

    @pytest.mark.asyncio
    async def test_list_active_returns_rows(self):
        snippets = [make_mock_snippet() for _ in range(3)]
        self.db.execute = AsyncMock(return_value=mock_scalars_result(snippets))

        result = await self.ops.list_active(
            self.db, uuid.uuid4(), favorites_only=True, language="Python", search="fetch"
        )
        assert result == snippets

    @pytest.mark.asyncio
    async def test_search_wildcards_match_literally(self):
        self.db.execute = AsyncMock(return_value=mock_scalars_result([]))

        await self.ops.list_active(self.db, uuid.uuid4(), search="50%_off")

        compiled = self.db.execute.await_args.args[0].compile(dialect=postgresql.dialect())
        assert r"%50\%\_off%" in compiled.params.values()
        assert "ESCAPE" in str(compiled)

    @pytest.mark.asyncio
    async def test_extension_listing_is_capped(self):
        user_id = uuid.uuid4()
        self.ops.list_active = AsyncMock(return_value=[])

        await self.ops.list_for_extension(self.db, user_id)

        self.ops.list_active.assert_awaited_once_with(self.db, user_id, limit=1000)
