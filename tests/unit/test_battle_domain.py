"""Unit tests for sb_battle domain: models, state machine and spec rules."""

from datetime import timedelta

import pytest

from src.sb_battle.domain.models import SongSnapshot
from src.sb_battle.domain.rules import validate_battle_spec
from src.sb_battle.domain.state import can_transition, check_transition
from src.sb_common.datetime_utils import utc_now
from src.sb_common.enums import BattleStatus
from src.sb_common.errors import IllegalTransitionError, InvalidSpecError
from tests.unit.builders import make_battle, make_songs


class TestBattleModel:
    def test_team_lookup_by_side(self) -> None:
        battle = make_battle()
        assert battle.team("A") is battle.team_a
        assert battle.team("B") is battle.team_b
        with pytest.raises(KeyError):
            battle.team("C")

    def test_song_lookup(self) -> None:
        battle = make_battle()
        assert battle.song("song-1").title == "Track 1"
        assert battle.song("missing") is None

    def test_deadline_and_expiry(self) -> None:
        started = utc_now() - timedelta(minutes=31)
        battle = make_battle(started_at=started, duration_minutes=30)
        assert battle.deadline == started + timedelta(minutes=30)
        assert battle.is_expired(utc_now())

    def test_expiry_is_inclusive_at_deadline(self) -> None:
        battle = make_battle()
        assert battle.is_expired(battle.deadline)
        assert not battle.is_expired(battle.deadline - timedelta(seconds=1))

    def test_scheduled_battle_has_no_deadline(self) -> None:
        battle = make_battle(status=BattleStatus.SCHEDULED.value)
        assert battle.deadline is None
        assert not battle.is_expired(utc_now())

    def test_open_challenge_slot_is_not_funded(self) -> None:
        battle = make_battle(status=BattleStatus.SCHEDULED.value, challenger=None)
        assert not battle.both_sides_funded

    def test_both_sides_funded(self) -> None:
        battle = make_battle(status=BattleStatus.SCHEDULED.value)
        assert battle.both_sides_funded


class TestStateMachine:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            ("SCHEDULED", "LIVE"),
            ("SCHEDULED", "CANCELLED"),
            ("LIVE", "COMPLETED"),
            ("LIVE", "CANCELLED"),
        ],
    )
    def test_allowed(self, current: str, target: str) -> None:
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            ("SCHEDULED", "COMPLETED"),
            ("LIVE", "SCHEDULED"),
            ("COMPLETED", "LIVE"),
            ("COMPLETED", "CANCELLED"),
            ("CANCELLED", "LIVE"),
        ],
    )
    def test_forbidden(self, current: str, target: str) -> None:
        assert not can_transition(current, target)
        with pytest.raises(IllegalTransitionError):
            check_transition("bt_1", current, target, "move")


class TestValidateBattleSpec:
    def test_valid_spec_passes(self) -> None:
        validate_battle_spec("Battle", make_songs(5), 1000, 30)

    def test_empty_name(self) -> None:
        with pytest.raises(InvalidSpecError):
            validate_battle_spec("   ", make_songs(1), 0, 30)

    @pytest.mark.parametrize("count", [0, 6])
    def test_song_count_bounds(self, count: int) -> None:
        with pytest.raises(InvalidSpecError):
            validate_battle_spec("Battle", make_songs(count), 0, 30)

    def test_duplicate_song_ids(self) -> None:
        song = SongSnapshot("dup", "A", "B", 120)
        with pytest.raises(InvalidSpecError):
            validate_battle_spec("Battle", [song, song], 0, 30)

    def test_negative_fee(self) -> None:
        with pytest.raises(InvalidSpecError):
            validate_battle_spec("Battle", make_songs(1), -1, 30)

    def test_zero_duration(self) -> None:
        with pytest.raises(InvalidSpecError):
            validate_battle_spec("Battle", make_songs(1), 0, 0)

    def test_non_positive_song_duration(self) -> None:
        with pytest.raises(InvalidSpecError):
            validate_battle_spec("Battle", make_songs(1, duration_seconds=0), 0, 30)
