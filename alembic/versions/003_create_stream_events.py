"""003: create stream_events, stream_replay_windows, scored_stream_events and battle_supporters

Revision ID: 003
Revises: 002
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE stream_events (
            id              VARCHAR(64)     PRIMARY KEY,
            battle_id       VARCHAR(64)     NOT NULL REFERENCES battles (id),
            listener_id     VARCHAR(64)     NOT NULL,
            song_id         VARCHAR(64)     NOT NULL,
            team_side       CHAR(1)         NOT NULL,
            client_nonce    VARCHAR(64)     NOT NULL,
            received_at     TIMESTAMPTZ     NOT NULL,
            played_at       TIMESTAMPTZ,
            dedup_key       VARCHAR(300)    NOT NULL,
            scored          BOOLEAN         NOT NULL,
            CONSTRAINT ck_stream_events_side CHECK (team_side IN ('A', 'B')),
            CONSTRAINT uq_stream_events_nonce UNIQUE (listener_id, battle_id, client_nonce)
        );
    """)
    # At most one scoring play per listener, song and replay window.
    op.execute("""
        CREATE UNIQUE INDEX uq_stream_events_dedup
        ON stream_events (dedup_key)
        WHERE scored;
    """)
    # Last scored play per listener, battle and song; a new play scores only
    # once its replay window has elapsed.
    op.execute("""
        CREATE TABLE stream_replay_windows (
            listener_id     VARCHAR(64)     NOT NULL,
            battle_id       VARCHAR(64)     NOT NULL REFERENCES battles (id),
            song_id         VARCHAR(64)     NOT NULL,
            last_scored_at  TIMESTAMPTZ     NOT NULL,
            PRIMARY KEY (listener_id, battle_id, song_id)
        );
    """)
    op.execute("CREATE INDEX idx_stream_events_battle ON stream_events (battle_id, received_at);")
    op.execute("COMMENT ON TABLE stream_events IS 'Stream plays — append-only; scored = FALSE rows are duplicates kept for audit';")

    op.execute("""
        CREATE TABLE scored_stream_events (
            event_id        VARCHAR(64)     PRIMARY KEY REFERENCES stream_events (id),
            battle_id       VARCHAR(64)     NOT NULL,
            points          INT             NOT NULL,
            applied_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_scored_points_gte_0 CHECK (points >= 0)
        );
    """)

    op.execute("""
        CREATE TABLE battle_supporters (
            battle_id       VARCHAR(64)     NOT NULL REFERENCES battles (id),
            listener_id     VARCHAR(64)     NOT NULL,
            side            CHAR(1)         NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (battle_id, listener_id)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS battle_supporters CASCADE;")
    op.execute("DROP TABLE IF EXISTS scored_stream_events CASCADE;")
    op.execute("DROP TABLE IF EXISTS stream_replay_windows CASCADE;")
    op.execute("DROP TABLE IF EXISTS stream_events CASCADE;")
