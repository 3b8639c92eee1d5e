"""004: create battle_settlements and bot_tasks

Revision ID: 004
Revises: 003
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE battle_settlements (
            battle_id       VARCHAR(64)     PRIMARY KEY REFERENCES battles (id),
            kind            VARCHAR(10)     NOT NULL,
            winner_side     VARCHAR(3),
            total_paid      BIGINT          NOT NULL DEFAULT 0,
            platform_share  BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_settlements_kind CHECK (kind IN ('PAYOUT', 'REFUND')),
            CONSTRAINT ck_settlements_winner CHECK (
                winner_side IS NULL OR winner_side IN ('A', 'B', 'TIE')
            )
        );
    """)
    op.execute("COMMENT ON TABLE battle_settlements IS 'One row per battle — the primary key makes settlement idempotent';")

    op.execute("""
        CREATE TABLE bot_tasks (
            id              VARCHAR(64)     PRIMARY KEY,
            listener_id     VARCHAR(64)     NOT NULL,
            song_id         VARCHAR(64)     NOT NULL,
            coins_awarded   BIGINT          NOT NULL,
            completed       BOOLEAN         NOT NULL DEFAULT FALSE,
            completed_at    TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bot_tasks_coins_gt_0 CHECK (coins_awarded > 0),
            CONSTRAINT ck_bot_tasks_completed_at CHECK (
                completed = (completed_at IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_bot_tasks_listener ON bot_tasks (listener_id, created_at DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bot_tasks CASCADE;")
    op.execute("DROP TABLE IF EXISTS battle_settlements CASCADE;")
