"""002: create battles, battle_teams and battle_songs

Revision ID: 002
Revises: 001
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE battles (
            id                  VARCHAR(64)     PRIMARY KEY,
            name                VARCHAR(200)    NOT NULL,
            creator_id          VARCHAR(64)     NOT NULL,
            duration_minutes    INT             NOT NULL,
            entry_fee           BIGINT          NOT NULL DEFAULT 0,
            status              VARCHAR(20)     NOT NULL DEFAULT 'SCHEDULED',
            total_pot           BIGINT          NOT NULL DEFAULT 0,
            stream_revenue      BIGINT          NOT NULL DEFAULT 0,
            scheduled_at        TIMESTAMPTZ,
            started_at          TIMESTAMPTZ,
            ended_at            TIMESTAMPTZ,
            cancel_reason       VARCHAR(200),
            creator_photo_url   TEXT,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_battles_status CHECK (
                status IN ('SCHEDULED', 'LIVE', 'COMPLETED', 'CANCELLED')
            ),
            CONSTRAINT ck_battles_duration_gt_0 CHECK (duration_minutes > 0),
            CONSTRAINT ck_battles_entry_fee_gte_0 CHECK (entry_fee >= 0),
            CONSTRAINT ck_battles_pot CHECK (total_pot = entry_fee * 2),
            CONSTRAINT ck_battles_started CHECK (
                status NOT IN ('LIVE', 'COMPLETED') OR started_at IS NOT NULL
            )
        );
    """)
    op.execute("CREATE INDEX idx_battles_status ON battles (status, scheduled_at);")
    op.execute("""
        CREATE TRIGGER trg_battles_updated_at
            BEFORE UPDATE ON battles
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)

    op.execute("""
        CREATE TABLE battle_teams (
            battle_id       VARCHAR(64)     NOT NULL REFERENCES battles (id),
            side            CHAR(1)         NOT NULL,
            name            VARCHAR(100)    NOT NULL,
            artist_id       VARCHAR(64),
            score           BIGINT          NOT NULL DEFAULT 0,
            supporters      INT             NOT NULL DEFAULT 0,
            funded          BOOLEAN         NOT NULL DEFAULT FALSE,
            PRIMARY KEY (battle_id, side),
            CONSTRAINT ck_battle_teams_side CHECK (side IN ('A', 'B')),
            CONSTRAINT ck_battle_teams_score_gte_0 CHECK (score >= 0),
            CONSTRAINT ck_battle_teams_supporters_gte_0 CHECK (supporters >= 0)
        );
    """)
    op.execute("COMMENT ON TABLE battle_teams IS 'Per-team counters — score and supporters only change via score = score + :points';")

    op.execute("""
        CREATE TABLE battle_songs (
            battle_id           VARCHAR(64)     NOT NULL REFERENCES battles (id),
            song_id             VARCHAR(64)     NOT NULL,
            title               VARCHAR(200)    NOT NULL,
            artist_name         VARCHAR(200)    NOT NULL,
            duration_seconds    INT             NOT NULL,
            position            SMALLINT        NOT NULL DEFAULT 0,
            PRIMARY KEY (battle_id, song_id),
            CONSTRAINT ck_battle_songs_duration_gt_0 CHECK (duration_seconds > 0)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS battle_songs CASCADE;")
    op.execute("DROP TABLE IF EXISTS battle_teams CASCADE;")
    op.execute("DROP TABLE IF EXISTS battles CASCADE;")
