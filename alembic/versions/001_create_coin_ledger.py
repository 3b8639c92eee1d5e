"""001: create common functions, coin_accounts and ledger_entries

Revision ID: 001
Revises: 
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE coin_accounts (
            account_id      VARCHAR(64)     PRIMARY KEY,
            balance         BIGINT          NOT NULL DEFAULT 0,
            version         BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_coin_accounts_balance_gte_0 CHECK (balance >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_coin_accounts_updated_at
            BEFORE UPDATE ON coin_accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TABLE ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            account_id      VARCHAR(64)     NOT NULL REFERENCES coin_accounts (account_id),
            reason          VARCHAR(30)     NOT NULL,
            amount          BIGINT          NOT NULL,
            balance_after   BIGINT          NOT NULL,
            battle_id       VARCHAR(64),
            reference_id    VARCHAR(64),
            description     VARCHAR(500),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ledger_reason CHECK (
                reason IN ('ENTRY_FEE', 'BOT_EARNING', 'BATTLE_PAYOUT', 'REFUND')
            ),
            CONSTRAINT ck_ledger_amount_nonzero CHECK (amount <> 0),
            CONSTRAINT ck_ledger_debit_sign CHECK (
                (reason = 'ENTRY_FEE' AND amount < 0)
                OR (reason <> 'ENTRY_FEE' AND amount > 0)
            ),
            CONSTRAINT ck_ledger_balance_gte_0 CHECK (balance_after >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_ledger_account_id ON ledger_entries (account_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_ledger_battle
        ON ledger_entries (battle_id, reason)
        WHERE battle_id IS NOT NULL;
    """)
    # One fee, one payout and one refund per account and battle.
    op.execute("""
        CREATE UNIQUE INDEX uq_ledger_battle_reason
        ON ledger_entries (account_id, reason, battle_id)
        WHERE battle_id IS NOT NULL;
    """)
    # One earning per completed bot task.
    op.execute("""
        CREATE UNIQUE INDEX uq_ledger_bot_task
        ON ledger_entries (reference_id)
        WHERE reason = 'BOT_EARNING';
    """)
    op.execute("COMMENT ON TABLE ledger_entries IS 'Coin ledger — append-only, never updated or deleted, amounts in coins';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_entries CASCADE;")
    op.execute("DROP TABLE IF EXISTS coin_accounts CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
