"""LedgerRepository — concrete implementation of LedgerRepositoryProtocol.

Balance mutation is a single atomic PostgreSQL UPDATE ... RETURNING guarded by
``balance + :amount >= 0``. A result of 0 rows means the debit would overdraw
the account. The row lock taken by the UPDATE linearizes concurrent appends
against the same account until the caller's transaction ends, so a second
debit always sees the first one.

Transaction ownership: The CALLER (application service) is responsible for
committing or rolling back.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_common.enums import LedgerReason
from src.sb_common.errors import InsufficientFundsError, InternalError
from src.sb_ledger.domain.models import CoinAccount, LedgerEntry, check_entry_sign

# ---------------------------------------------------------------------------
# SQL: coin_accounts
# ---------------------------------------------------------------------------

_ENSURE_ACCOUNT_SQL = text("""
    INSERT INTO coin_accounts (account_id, balance, version)
    VALUES (:account_id, 0, 0)
    ON CONFLICT (account_id) DO NOTHING
""")

_APPLY_AMOUNT_SQL = text("""
    UPDATE coin_accounts
    SET balance = balance + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE account_id = :account_id AND balance + :amount >= 0
    RETURNING account_id, balance, version, created_at, updated_at
""")

_GET_ACCOUNT_SQL = text("""
    SELECT account_id, balance, version, created_at, updated_at
    FROM coin_accounts
    WHERE account_id = :account_id
""")

# ---------------------------------------------------------------------------
# SQL: ledger_entries (append-only)
# ---------------------------------------------------------------------------

_INSERT_ENTRY_SQL = text("""
    INSERT INTO ledger_entries
        (account_id, reason, amount, balance_after,
         battle_id, reference_id, description)
    VALUES
        (:account_id, :reason, :amount, :balance_after,
         :battle_id, :reference_id, :description)
    RETURNING id, account_id, reason, amount, balance_after,
              battle_id, reference_id, description, created_at
""")

_LIST_ENTRIES_SQL = text("""
    SELECT id, account_id, reason, amount, balance_after,
           battle_id, reference_id, description, created_at
    FROM ledger_entries
    WHERE account_id = :account_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
      AND (CAST(:reason AS TEXT) IS NULL OR reason = CAST(:reason AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_LIST_BATTLE_ENTRIES_SQL = text("""
    SELECT id, account_id, reason, amount, balance_after,
           battle_id, reference_id, description, created_at
    FROM ledger_entries
    WHERE battle_id = :battle_id AND reason = :reason
    ORDER BY id ASC
""")

_SUM_ENTRIES_SQL = text("""
    SELECT COALESCE(SUM(amount), 0)
    FROM ledger_entries
    WHERE account_id = :account_id
""")


def _row_to_account(row: object) -> CoinAccount:
    return CoinAccount(
        account_id=row.account_id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_entry(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        account_id=row.account_id,  # type: ignore[attr-defined]
        reason=row.reason,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        battle_id=row.battle_id,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class LedgerRepository:
    """Concrete repository — the only writer of coin_accounts.balance."""

    async def get_account(
        self, db: AsyncSession, account_id: str
    ) -> CoinAccount | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"account_id": account_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def append(
        self,
        db: AsyncSession,
        account_id: str,
        amount: int,
        reason: str,
        battle_id: str | None = None,
        reference_id: str | None = None,
        description: str | None = None,
    ) -> LedgerEntry:
        check_entry_sign(reason, amount)
        await db.execute(_ENSURE_ACCOUNT_SQL, {"account_id": account_id})

        result = await db.execute(
            _APPLY_AMOUNT_SQL, {"account_id": account_id, "amount": amount}
        )
        row = result.fetchone()
        if row is None:
            acc_result = await db.execute(_GET_ACCOUNT_SQL, {"account_id": account_id})
            acc_row = acc_result.fetchone()
            available = acc_row.balance if acc_row else 0
            raise InsufficientFundsError(account_id, -amount, available)
        account = _row_to_account(row)

        entry_result = await db.execute(
            _INSERT_ENTRY_SQL,
            {
                "account_id": account_id,
                "reason": LedgerReason(reason).value,
                "amount": amount,
                "balance_after": account.balance,
                "battle_id": battle_id,
                "reference_id": reference_id,
                "description": description,
            },
        )
        entry_row = entry_result.fetchone()
        if entry_row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_entry(entry_row)

    async def list_entries(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_id: int | None,
        limit: int,
        reason: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_ENTRIES_SQL,
            {
                "account_id": account_id,
                "cursor_id": cursor_id,
                "reason": reason,
                "limit": limit,
            },
        )
        return [_row_to_entry(row) for row in result.fetchall()]

    async def list_battle_entries(
        self, db: AsyncSession, battle_id: str, reason: str
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_BATTLE_ENTRIES_SQL,
            {"battle_id": battle_id, "reason": LedgerReason(reason).value},
        )
        return [_row_to_entry(row) for row in result.fetchall()]

    async def sum_entries(self, db: AsyncSession, account_id: str) -> int:
        result = await db.execute(_SUM_ENTRIES_SQL, {"account_id": account_id})
        return int(result.scalar_one())
