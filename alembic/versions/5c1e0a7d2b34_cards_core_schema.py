"""cards_core_schema

Revision ID: 5c1e0a7d2b34
Revises:
Create Date: 2026-10-17 10:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c1e0a7d2b34"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

RLS_TABLES = ("seasons", "events", "user_cards", "profiles", "user_roles")


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    op.create_table(
        "seasons",
        _uuid_pk(),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("cover_image_url", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("end_date >= start_date", name="ck_seasons_date_range"),
    )
    op.create_index("idx_seasons_start_date", "seasons", ["start_date"])

    op.create_table(
        "events",
        _uuid_pk(),
        sa.Column("season_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(160), nullable=False),
        sa.Column("theme", sa.Text(), nullable=True),
        sa.Column("preacher", sa.Text(), nullable=True),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("redemption_deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("card_image_url", sa.Text(), nullable=False),
        sa.Column("rarity", sa.String(16), nullable=False, server_default=sa.text("'comum'")),
        sa.Column("redemption_code", sa.String(7), nullable=False),
        sa.Column("qr_code_data", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("rarity IN ('comum','raro','epico','lendario')", name="ck_events_rarity"),
        sa.CheckConstraint(
            "redemption_code ~ '^[A-Z0-9]{3}-[A-Z0-9]{3}$'",
            name="ck_events_redemption_code_shape",
        ),
        sa.ForeignKeyConstraint(
            ["season_id"],
            ["seasons.id"],
            name="fk_events_season_id_seasons",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("redemption_code", name="uq_events_redemption_code"),
    )
    op.create_index("idx_events_season_event_date", "events", ["season_id", "event_date"])
    op.create_index("idx_events_redemption_deadline", "events", ["redemption_deadline"])

    op.create_table(
        "user_cards",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("event_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("variant", sa.String(16), nullable=False, server_default=sa.text("'comum'")),
        _timestamp("redeemed_at"),
        sa.CheckConstraint(
            "variant IN ('comum','edicao_diamante','holografica','reliquia')",
            name="ck_user_cards_variant",
        ),
        sa.ForeignKeyConstraint(
            ["event_id"],
            ["events.id"],
            name="fk_user_cards_event_id_events",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("user_id", "event_id", name="uq_user_cards_user_event"),
    )
    op.create_index("idx_user_cards_event", "user_cards", ["event_id"])
    op.create_index("idx_user_cards_user_redeemed_at", "user_cards", ["user_id", "redeemed_at"])

    op.create_table(
        "profiles",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("display_name", sa.String(64), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint("user_id", name="uq_profiles_user_id"),
    )

    op.create_table(
        "user_roles",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role", sa.String(16), nullable=False, server_default=sa.text("'user'")),
        sa.CheckConstraint("role IN ('admin','user')", name="ck_user_roles_role"),
        sa.UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )

    # Caller identity for RLS comes from the transaction-local app.current_user_id setting.
    op.execute(
        """
        CREATE OR REPLACE FUNCTION app_current_user_id() RETURNS uuid
        LANGUAGE sql STABLE AS $$
            SELECT NULLIF(current_setting('app.current_user_id', true), '')::uuid
        $$
        """
    )
    op.execute(
        """
        CREATE OR REPLACE FUNCTION has_role(_user_id uuid, _role text) RETURNS boolean
        LANGUAGE sql STABLE SECURITY DEFINER SET search_path = public AS $$
            SELECT EXISTS (
                SELECT 1 FROM user_roles WHERE user_id = _user_id AND role = _role
            )
        $$
        """
    )
    op.execute(
        """
        CREATE OR REPLACE FUNCTION touch_updated_at() RETURNS trigger
        LANGUAGE plpgsql AS $$
        BEGIN
            NEW.updated_at = now();
            RETURN NEW;
        END
        $$
        """
    )
    for table in ("seasons", "events", "profiles"):
        op.execute(
            f"CREATE TRIGGER trg_{table}_touch_updated_at BEFORE UPDATE ON {table} "
            "FOR EACH ROW EXECUTE FUNCTION touch_updated_at()"
        )

    for table in RLS_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")

    op.execute(
        "CREATE POLICY seasons_read_authenticated ON seasons FOR SELECT "
        "USING (app_current_user_id() IS NOT NULL)"
    )
    op.execute(
        "CREATE POLICY seasons_admin_all ON seasons FOR ALL "
        "USING (has_role(app_current_user_id(), 'admin'))"
    )
    op.execute(
        "CREATE POLICY events_read_authenticated ON events FOR SELECT "
        "USING (app_current_user_id() IS NOT NULL)"
    )
    op.execute(
        "CREATE POLICY events_admin_all ON events FOR ALL "
        "USING (has_role(app_current_user_id(), 'admin'))"
    )
    op.execute(
        "CREATE POLICY user_cards_read_own ON user_cards FOR SELECT "
        "USING (user_id = app_current_user_id())"
    )
    op.execute(
        "CREATE POLICY user_cards_read_admin ON user_cards FOR SELECT "
        "USING (has_role(app_current_user_id(), 'admin'))"
    )
    op.execute(
        "CREATE POLICY user_cards_insert_own ON user_cards FOR INSERT "
        "WITH CHECK (user_id = app_current_user_id())"
    )
    op.execute(
        "CREATE POLICY profiles_read_own ON profiles FOR SELECT "
        "USING (user_id = app_current_user_id())"
    )
    op.execute(
        "CREATE POLICY profiles_insert_own ON profiles FOR INSERT "
        "WITH CHECK (user_id = app_current_user_id())"
    )
    op.execute(
        "CREATE POLICY profiles_update_own ON profiles FOR UPDATE "
        "USING (user_id = app_current_user_id())"
    )
    op.execute(
        "CREATE POLICY user_roles_read_own ON user_roles FOR SELECT "
        "USING (user_id = app_current_user_id())"
    )
    op.execute(
        "CREATE POLICY user_roles_admin_all ON user_roles FOR ALL "
        "USING (has_role(app_current_user_id(), 'admin'))"
    )

    # Ownership records are append-only for everyone except cascading deletes from events.
    op.execute(
        """
        CREATE OR REPLACE FUNCTION user_cards_block_update() RETURNS trigger
        LANGUAGE plpgsql AS $$
        BEGIN
            RAISE EXCEPTION 'user_cards is append-only';
        END
        $$
        """
    )
    op.execute(
        "CREATE TRIGGER trg_user_cards_block_update BEFORE UPDATE ON user_cards "
        "FOR EACH ROW EXECUTE FUNCTION user_cards_block_update()"
    )

    op.execute(
        """
        CREATE VIEW profiles_public AS
        SELECT id, user_id, display_name, avatar_url, created_at, updated_at
        FROM profiles
        WHERE app_current_user_id() IS NOT NULL
        """
    )
    op.execute(
        """
        CREATE VIEW ranking_view AS
        SELECT
            uc.user_id,
            p.display_name,
            p.avatar_url,
            e.season_id,
            COUNT(uc.id)::integer AS card_count,
            MAX(uc.redeemed_at) AS last_redeemed_at
        FROM user_cards uc
        JOIN events e ON e.id = uc.event_id
        LEFT JOIN profiles_public p ON p.user_id = uc.user_id
        WHERE app_current_user_id() IS NOT NULL
        GROUP BY uc.user_id, p.display_name, p.avatar_url, e.season_id
        """
    )


def downgrade() -> None:
    op.execute("DROP VIEW IF EXISTS ranking_view")
    op.execute("DROP VIEW IF EXISTS profiles_public")
    op.execute("DROP TRIGGER IF EXISTS trg_user_cards_block_update ON user_cards")
    op.execute("DROP FUNCTION IF EXISTS user_cards_block_update()")
    for table in ("seasons", "events", "profiles"):
        op.execute(f"DROP TRIGGER IF EXISTS trg_{table}_touch_updated_at ON {table}")
    op.execute("DROP FUNCTION IF EXISTS touch_updated_at()")

    op.drop_table("user_roles")
    op.drop_table("profiles")
    op.drop_index("idx_user_cards_user_redeemed_at", table_name="user_cards")
    op.drop_index("idx_user_cards_event", table_name="user_cards")
    op.drop_table("user_cards")
    op.drop_index("idx_events_redemption_deadline", table_name="events")
    op.drop_index("idx_events_season_event_date", table_name="events")
    op.drop_table("events")
    op.drop_index("idx_seasons_start_date", table_name="seasons")
    op.drop_table("seasons")

    op.execute("DROP FUNCTION IF EXISTS has_role(uuid, text)")
    op.execute("DROP FUNCTION IF EXISTS app_current_user_id()")
