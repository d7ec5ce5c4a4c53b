"""row_level_security

Revision ID: 8d4f2b6e1c93
Revises: 5a1c9e2f7b30
Create Date: 2026-10-19 09:30:00.000000

Enables Row-Level Security on every CodePocket table:

1. app_user_id() reads the caller from the app.current_user_id setting,
   which the API sets with SET LOCAL on each request (codepocket/core/rls.py).
2. is_group_member() / is_group_owner() are SECURITY DEFINER helpers so that
   group policies can look at group_members without recursing into its own
   policy.
3. User-scoped tables (profiles, folders, snippets, api_keys) are owner-only.
4. Group tables are readable by members; writes follow the ownership rules
   the API enforces.
5. logs accept inserts from anyone and are only read through the service role.
"""

from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8d4f2b6e1c93"
down_revision: Union[str, None] = "5a1c9e2f7b30"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_SCOPED_TABLES = ("folders", "snippets", "api_keys")

ALL_TABLES = (
    "users",
    "profiles",
    "folders",
    "snippets",
    "api_keys",
    "groups",
    "group_members",
    "group_invitations",
    "group_snippets",
    "group_activities",
    "logs",
)

POLICIES = {
    "users": ("users_select_own", "users_update_own", "users_insert_own"),
    "profiles": ("profiles_own",),
    "folders": ("folders_own",),
    "snippets": ("snippets_own", "snippets_select_shared"),
    "api_keys": ("api_keys_own",),
    "groups": (
        "groups_select_member",
        "groups_insert_owner",
        "groups_update_owner",
        "groups_delete_owner",
    ),
    "group_members": (
        "group_members_select_member",
        "group_members_insert_self",
        "group_members_delete",
    ),
    "group_invitations": (
        "group_invitations_select",
        "group_invitations_insert_member",
        "group_invitations_update",
        "group_invitations_delete",
    ),
    "group_snippets": (
        "group_snippets_select_member",
        "group_snippets_insert_member",
        "group_snippets_delete",
    ),
    "group_activities": ("group_activities_select_member", "group_activities_insert_member"),
    "logs": ("logs_insert_any",),
}


def upgrade() -> None:
    """Create RLS helpers and policies."""
    # Note: each statement must be in a separate op.execute() for asyncpg compatibility
    op.execute("""
        CREATE OR REPLACE FUNCTION app_user_id()
        RETURNS UUID AS $$
            SELECT NULLIF(current_setting('app.current_user_id', true), '')::uuid;
        $$ LANGUAGE sql STABLE
    """)

    op.execute("""
        CREATE OR REPLACE FUNCTION app_user_email()
        RETURNS TEXT AS $$
            SELECT lower(email) FROM public.users WHERE id = app_user_id();
        $$ LANGUAGE sql STABLE SECURITY DEFINER
    """)

    op.execute("""
        CREATE OR REPLACE FUNCTION is_group_member(p_group_id UUID)
        RETURNS BOOLEAN AS $$
            SELECT EXISTS (
                SELECT 1 FROM group_members
                WHERE group_id = p_group_id AND user_id = app_user_id()
            );
        $$ LANGUAGE sql STABLE SECURITY DEFINER
    """)

    op.execute("""
        CREATE OR REPLACE FUNCTION is_group_owner(p_group_id UUID)
        RETURNS BOOLEAN AS $$
            SELECT EXISTS (
                SELECT 1 FROM groups
                WHERE id = p_group_id AND owner_id = app_user_id()
            );
        $$ LANGUAGE sql STABLE SECURITY DEFINER
    """)

    for table in ALL_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")

    # =========================================================================
    # 1. USERS AND PROFILES
    # =========================================================================
    op.execute("""
        CREATE POLICY users_select_own ON users
            FOR SELECT
            USING (id = app_user_id())
    """)
    op.execute("""
        CREATE POLICY users_update_own ON users
            FOR UPDATE
            USING (id = app_user_id())
            WITH CHECK (id = app_user_id())
    """)
    # The API creates the mirror row lazily if the auth trigger hasn't
    op.execute("""
        CREATE POLICY users_insert_own ON users
            FOR INSERT
            WITH CHECK (id = app_user_id())
    """)
    op.execute("""
        CREATE POLICY profiles_own ON profiles
            FOR ALL
            USING (id = app_user_id())
            WITH CHECK (id = app_user_id())
    """)

    # =========================================================================
    # 2. USER-SCOPED TABLES
    # =========================================================================
    for table in USER_SCOPED_TABLES:
        op.execute(f"""
            CREATE POLICY {table}_own ON {table}
                FOR ALL
                USING (user_id = app_user_id())
                WITH CHECK (user_id = app_user_id())
        """)

    # Members can read snippets shared into their groups
    op.execute("""
        CREATE POLICY snippets_select_shared ON snippets
            FOR SELECT
            USING (
                EXISTS (
                    SELECT 1 FROM group_snippets gs
                    WHERE gs.snippet_id = snippets.id
                      AND is_group_member(gs.group_id)
                )
            )
    """)

    # =========================================================================
    # 3. GROUPS
    # =========================================================================
    op.execute("""
        CREATE POLICY groups_select_member ON groups
            FOR SELECT
            USING (owner_id = app_user_id() OR is_group_member(id))
    """)
    op.execute("""
        CREATE POLICY groups_insert_owner ON groups
            FOR INSERT
            WITH CHECK (owner_id = app_user_id())
    """)
    op.execute("""
        CREATE POLICY groups_update_owner ON groups
            FOR UPDATE
            USING (owner_id = app_user_id())
            WITH CHECK (owner_id = app_user_id())
    """)
    op.execute("""
        CREATE POLICY groups_delete_owner ON groups
            FOR DELETE
            USING (owner_id = app_user_id())
    """)

    op.execute("""
        CREATE POLICY group_members_select_member ON group_members
            FOR SELECT
            USING (is_group_member(group_id))
    """)
    # Joining: the owner adds themselves on create, invitees on accept
    op.execute("""
        CREATE POLICY group_members_insert_self ON group_members
            FOR INSERT
            WITH CHECK (user_id = app_user_id())
    """)
    op.execute("""
        CREATE POLICY group_members_delete ON group_members
            FOR DELETE
            USING (user_id = app_user_id() OR is_group_owner(group_id))
    """)

    op.execute("""
        CREATE POLICY group_invitations_select ON group_invitations
            FOR SELECT
            USING (is_group_member(group_id) OR lower(email) = app_user_email())
    """)
    op.execute("""
        CREATE POLICY group_invitations_insert_member ON group_invitations
            FOR INSERT
            WITH CHECK (inviter_id = app_user_id() AND is_group_member(group_id))
    """)
    op.execute("""
        CREATE POLICY group_invitations_update ON group_invitations
            FOR UPDATE
            USING (lower(email) = app_user_email() OR is_group_member(group_id))
    """)
    op.execute("""
        CREATE POLICY group_invitations_delete ON group_invitations
            FOR DELETE
            USING (inviter_id = app_user_id() OR is_group_owner(group_id))
    """)

    op.execute("""
        CREATE POLICY group_snippets_select_member ON group_snippets
            FOR SELECT
            USING (is_group_member(group_id))
    """)
    op.execute("""
        CREATE POLICY group_snippets_insert_member ON group_snippets
            FOR INSERT
            WITH CHECK (shared_by = app_user_id() AND is_group_member(group_id))
    """)
    op.execute("""
        CREATE POLICY group_snippets_delete ON group_snippets
            FOR DELETE
            USING (shared_by = app_user_id() OR is_group_owner(group_id))
    """)

    op.execute("""
        CREATE POLICY group_activities_select_member ON group_activities
            FOR SELECT
            USING (is_group_member(group_id))
    """)
    op.execute("""
        CREATE POLICY group_activities_insert_member ON group_activities
            FOR INSERT
            WITH CHECK (is_group_member(group_id) OR is_group_owner(group_id))
    """)

    # =========================================================================
    # 4. LOGS
    # =========================================================================
    # Anonymous events are allowed; reads go through the admin panel only
    op.execute("""
        CREATE POLICY logs_insert_any ON logs
            FOR INSERT
            WITH CHECK (user_id IS NULL OR user_id = app_user_id())
    """)

    op.execute("""
        DO $$
        BEGIN
            IF EXISTS (
                SELECT 1 FROM pg_roles
                WHERE rolname = 'service_role' AND rolbypassrls = false
            ) THEN
                ALTER ROLE service_role BYPASSRLS;
                RAISE NOTICE 'Granted BYPASSRLS to service_role';
            END IF;
        END $$
    """)


def downgrade() -> None:
    """Drop policies, disable RLS and remove helpers."""
    for table, policies in POLICIES.items():
        for policy in policies:
            op.execute(f"DROP POLICY IF EXISTS {policy} ON {table}")

    for table in ALL_TABLES:
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")

    op.execute("DROP FUNCTION IF EXISTS is_group_owner(UUID)")
    op.execute("DROP FUNCTION IF EXISTS is_group_member(UUID)")
    op.execute("DROP FUNCTION IF EXISTS app_user_email()")
    op.execute("DROP FUNCTION IF EXISTS app_user_id()")
