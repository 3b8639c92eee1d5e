"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Identity
  2xxx: Coin ledger
  3xxx: Battle lifecycle
  4xxx: Stream ingestion
  5xxx: Settlement
  6xxx: Bot program
  9xxx: System

Every error is scoped to one battle or account; none is fatal to the process.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/Identity ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class ForbiddenError(AppError):
    def __init__(self, detail: str = "Operation not permitted") -> None:
        super().__init__(1002, detail, 403)


# --- 2xxx: Coin ledger ---

class InsufficientFundsError(AppError):
    def __init__(self, account_id: str, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient funds on {account_id}: required {required} coins, "
            f"available {available} coins",
            422,
        )
        self.account_id = account_id
        self.required = required
        self.available = available


# --- 3xxx: Battle lifecycle ---

class InvalidSpecError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3001, f"Invalid battle spec: {detail}", 422)


class BattleNotFoundError(AppError):
    def __init__(self, battle_id: str) -> None:
        super().__init__(3002, f"Battle not found: {battle_id}", 404)


class IllegalTransitionError(AppError):
    def __init__(self, battle_id: str, status: str, action: str) -> None:
        super().__init__(
            3003, f"Battle {battle_id} in status {status} cannot {action}", 409
        )
        self.status = status
        self.action = action


class ChallengeSlotTakenError(AppError):
    def __init__(self, battle_id: str) -> None:
        super().__init__(3004, f"Challenger slot already taken: {battle_id}", 409)


class SelfChallengeError(AppError):
    def __init__(self) -> None:
        super().__init__(3005, "Creator cannot join their own battle as challenger", 422)


# --- 4xxx: Stream ingestion ---

class BattleNotLiveError(AppError):
    def __init__(self, battle_id: str) -> None:
        super().__init__(4001, f"Battle is not live: {battle_id}", 409)


class UnknownSongError(AppError):
    def __init__(self, song_id: str) -> None:
        super().__init__(4002, f"Song is not part of this battle: {song_id}", 422)


class UnknownTeamError(AppError):
    def __init__(self, team_side: str) -> None:
        super().__init__(4003, f"Unknown team side: {team_side}", 422)


# --- 5xxx: Settlement ---

class SettlementFailureError(AppError):
    def __init__(self, battle_id: str, detail: str) -> None:
        super().__init__(
            5001, f"Settlement failed for battle {battle_id}: {detail}", 503
        )


# --- 6xxx: Bot program ---

class BotTaskNotFoundError(AppError):
    def __init__(self, task_id: str) -> None:
        super().__init__(6001, f"Bot task not found: {task_id}", 404)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
