"""Unit tests for group, membership and shared-snippet operations."""

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest

from codepocket.domain.group_member_operations import (
    CannotRemoveOwnerError,
    GroupMemberOperations,
)
from codepocket.domain.group_operations import GroupOperations
from codepocket.domain.group_snippet_operations import (
    AlreadySharedError,
    GroupSnippetOperations,
    NotSnippetOwnerError,
    SnippetNotFoundError,
)
from codepocket.models.group import ActivityType, Group, GroupCreate, GroupMember, GroupUpdate

from tests.helpers.mock_factories import (
    make_mock_db,
    make_mock_group,
    make_mock_member,
    make_mock_share,
    make_mock_snippet,
    mock_scalar_result,
)

RECORD = "codepocket.domain.activity_operations.activity_ops.record"


class TestCreateGroup:
    def setup_method(self):
        self.ops = GroupOperations()
        self.db = make_mock_db()
        self.owner_id = uuid.uuid4()

    @pytest.mark.asyncio
    async def test_owner_becomes_first_member(self):
        with patch(RECORD, new_callable=AsyncMock) as mock_record:
            group = await self.ops.create_group(
                self.db, self.owner_id, GroupCreate(name="  Platform  ", description="")
            )

        added = [call.args[0] for call in self.db.add.call_args_list]
        assert isinstance(added[0], Group)
        assert group.name == "Platform"
        assert group.description is None
        members = [obj for obj in added if isinstance(obj, GroupMember)]
        assert len(members) == 1
        assert members[0].user_id == self.owner_id
        assert members[0].group_id == group.id
        assert mock_record.call_args.kwargs["activity_type"] == ActivityType.GROUP_CREATED

    @pytest.mark.asyncio
    async def test_rejects_blank_name(self):
        with pytest.raises(ValueError, match="Group name is required"):
            await self.ops.create_group(self.db, self.owner_id, GroupCreate(name="   "))

    @pytest.mark.asyncio
    async def test_rejects_long_description(self):
        with pytest.raises(ValueError, match="500 characters or less"):
            await self.ops.create_group(
                self.db, self.owner_id, GroupCreate(name="ok", description="d" * 501)
            )


class TestUpdateGroup:
    def setup_method(self):
        self.ops = GroupOperations()
        self.db = make_mock_db()

    @pytest.mark.asyncio
    async def test_records_changed_fields(self):
        group = make_mock_group()
        with patch(RECORD, new_callable=AsyncMock) as mock_record:
            await self.ops.update_group(
                self.db, group, GroupUpdate(name="Renamed"), actor_id=group.owner_id
            )

        assert group.name == "Renamed"
        assert mock_record.call_args.kwargs["activity_type"] == ActivityType.GROUP_UPDATED
        assert mock_record.call_args.kwargs["details"] == {"fields": ["name"]}

    @pytest.mark.asyncio
    async def test_empty_update_is_a_no_op(self):
        group = make_mock_group()
        with patch(RECORD, new_callable=AsyncMock) as mock_record:
            await self.ops.update_group(self.db, group, GroupUpdate(), actor_id=group.owner_id)

        mock_record.assert_not_awaited()
        self.db.flush.assert_not_awaited()


class TestRemoveMember:
    def setup_method(self):
        self.ops = GroupMemberOperations()
        self.db = make_mock_db()
        self.group = make_mock_group()

    @pytest.mark.asyncio
    async def test_cannot_remove_owner(self):
        with pytest.raises(CannotRemoveOwnerError, match="Cannot remove the group owner"):
            await self.ops.remove_member(
                self.db, self.group, self.group.owner_id, actor_id=self.group.owner_id
            )

    @pytest.mark.asyncio
    async def test_self_removal_is_recorded_as_leaving(self):
        member = make_mock_member(group_id=self.group.id)
        self.db.execute = AsyncMock(return_value=mock_scalar_result(member))

        with patch(RECORD, new_callable=AsyncMock) as mock_record:
            removed = await self.ops.remove_member(
                self.db, self.group, member.user_id, actor_id=member.user_id
            )

        assert removed is True
        self.db.delete.assert_awaited_once_with(member)
        assert mock_record.call_args.kwargs["activity_type"] == ActivityType.MEMBER_LEFT

    @pytest.mark.asyncio
    async def test_owner_removal_of_member_is_recorded(self):
        member = make_mock_member(group_id=self.group.id)
        self.db.execute = AsyncMock(return_value=mock_scalar_result(member))

        with patch(RECORD, new_callable=AsyncMock) as mock_record:
            await self.ops.remove_member(
                self.db, self.group, member.user_id, actor_id=self.group.owner_id
            )

        assert mock_record.call_args.kwargs["activity_type"] == ActivityType.MEMBER_REMOVED

    @pytest.mark.asyncio
    async def test_unknown_member_returns_false(self):
        self.db.execute = AsyncMock(return_value=mock_scalar_result(None))
        removed = await self.ops.remove_member(
            self.db, self.group, uuid.uuid4(), actor_id=self.group.owner_id
        )
        assert removed is False


class TestShareSnippet:
    def setup_method(self):
        self.ops = GroupSnippetOperations()
        self.db = make_mock_db()
        self.group_id = uuid.uuid4()
        self.user_id = uuid.uuid4()

    @pytest.mark.asyncio
    async def test_shares_own_snippet(self):
        snippet = make_mock_snippet(user_id=self.user_id)
        self.db.execute = AsyncMock(
            side_effect=[mock_scalar_result(snippet), mock_scalar_result(None)]
        )

        with patch(RECORD, new_callable=AsyncMock) as mock_record:
            shared = await self.ops.share(self.db, self.group_id, snippet.id, self.user_id)

        assert shared.snippet is snippet
        assert shared.share.shared_by == self.user_id
        assert mock_record.call_args.kwargs["activity_type"] == ActivityType.SNIPPET_SHARED

    @pytest.mark.asyncio
    async def test_rejects_someone_elses_snippet(self):
        snippet = make_mock_snippet()
        self.db.execute = AsyncMock(return_value=mock_scalar_result(snippet))

        with pytest.raises(NotSnippetOwnerError, match="You can only share your own snippets"):
            await self.ops.share(self.db, self.group_id, snippet.id, self.user_id)

    @pytest.mark.asyncio
    async def test_rejects_archived_snippet(self):
        snippet = make_mock_snippet(user_id=self.user_id, deleted_at=datetime.now(UTC))
        self.db.execute = AsyncMock(return_value=mock_scalar_result(snippet))

        with pytest.raises(SnippetNotFoundError):
            await self.ops.share(self.db, self.group_id, snippet.id, self.user_id)

    @pytest.mark.asyncio
    async def test_rejects_duplicate_share(self):
        snippet = make_mock_snippet(user_id=self.user_id)
        self.db.execute = AsyncMock(
            side_effect=[mock_scalar_result(snippet), mock_scalar_result(make_mock_share())]
        )

        with pytest.raises(AlreadySharedError, match="already shared to this group"):
            await self.ops.share(self.db, self.group_id, snippet.id, self.user_id)


class TestUnshareSnippet:
    def setup_method(self):
        self.ops = GroupSnippetOperations()
        self.db = make_mock_db()
        self.group = make_mock_group()

    @pytest.mark.asyncio
    async def test_owner_can_remove_any_share(self):
        share = make_mock_share(group_id=self.group.id)
        self.db.execute = AsyncMock(return_value=mock_scalar_result(share))

        with patch(RECORD, new_callable=AsyncMock) as mock_record:
            removed = await self.ops.unshare(
                self.db, self.group, share.snippet_id, self.group.owner_id
            )

        assert removed is True
        assert mock_record.call_args.kwargs["activity_type"] == ActivityType.SNIPPET_REMOVED

    @pytest.mark.asyncio
    async def test_other_members_cannot_remove(self):
        share = make_mock_share(group_id=self.group.id)
        self.db.execute = AsyncMock(return_value=mock_scalar_result(share))

        with pytest.raises(NotSnippetOwnerError):
            await self.ops.unshare(self.db, self.group, share.snippet_id, uuid.uuid4())
