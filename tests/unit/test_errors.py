"""Unit tests for the AppError hierarchy (codes and HTTP statuses)."""

import pytest

from src.sb_common.errors import (
    AppError,
    BattleNotFoundError,
    BattleNotLiveError,
    BotTaskNotFoundError,
    ChallengeSlotTakenError,
    ForbiddenError,
    IllegalTransitionError,
    InsufficientFundsError,
    InternalError,
    InvalidCredentialsError,
    InvalidSpecError,
    SelfChallengeError,
    SettlementFailureError,
    UnknownSongError,
    UnknownTeamError,
)


@pytest.mark.parametrize(
    ("error", "code", "status"),
    [
        (InvalidCredentialsError(), 1001, 401),
        (ForbiddenError(), 1002, 403),
        (InsufficientFundsError("acc-1", 1000, 200), 2001, 422),
        (InvalidSpecError("no songs"), 3001, 422),
        (BattleNotFoundError("bt_1"), 3002, 404),
        (IllegalTransitionError("bt_1", "LIVE", "start"), 3003, 409),
        (ChallengeSlotTakenError("bt_1"), 3004, 409),
        (SelfChallengeError(), 3005, 422),
        (BattleNotLiveError("bt_1"), 4001, 409),
        (UnknownSongError("song-9"), 4002, 422),
        (UnknownTeamError("C"), 4003, 422),
        (SettlementFailureError("bt_1", "db down"), 5001, 503),
        (BotTaskNotFoundError("bot_1"), 6001, 404),
        (InternalError(), 9002, 500),
    ],
)
def test_error_code_and_status(error: AppError, code: int, status: int) -> None:
    assert isinstance(error, AppError)
    assert error.code == code
    assert error.http_status == status


def test_insufficient_funds_keeps_amounts() -> None:
    err = InsufficientFundsError("artist-1", 1000, 250)
    assert err.account_id == "artist-1"
    assert err.required == 1000
    assert err.available == 250
    assert "1000" in err.message and "250" in err.message


def test_illegal_transition_message_names_status_and_action() -> None:
    err = IllegalTransitionError("bt_9", "COMPLETED", "cancel")
    assert err.status == "COMPLETED"
    assert err.action == "cancel"
    assert "bt_9" in err.message
