"""Unit tests for the pure payout computation."""

from src.sb_settlement.domain.models import TIE
from src.sb_settlement.domain.payout import compute_payouts, decide_winner
from tests.unit.builders import make_battle


def _amounts(plan) -> dict[str, int]:
    return {p.account_id: p.amount for p in plan.payouts}


def test_winner_takes_seventy_percent() -> None:
    battle = make_battle(entry_fee=1000, score_a=150, score_b=80)
    plan = compute_payouts(battle, 7000, "PLATFORM")

    assert plan.winner_side == "A"
    assert _amounts(plan) == {"artist-a": 1400, "PLATFORM": 600}
    assert "artist-b" not in _amounts(plan)
    assert plan.total_paid == battle.total_pot


def test_team_b_can_win() -> None:
    battle = make_battle(entry_fee=500, score_a=10, score_b=20)
    plan = compute_payouts(battle, 7000, "PLATFORM")
    assert decide_winner(battle) == "B"
    assert _amounts(plan) == {"artist-b": 700, "PLATFORM": 300}


def test_tie_splits_winner_share_evenly() -> None:
    battle = make_battle(entry_fee=1000, score_a=50, score_b=50)
    plan = compute_payouts(battle, 7000, "PLATFORM")

    assert plan.winner_side == TIE
    assert _amounts(plan) == {"artist-a": 700, "artist-b": 700, "PLATFORM": 600}


def test_odd_tie_remainder_goes_to_platform() -> None:
    # pot 6, share floor(4.2)=4, halves 2 and 2, platform 2
    battle = make_battle(entry_fee=3, score_a=0, score_b=0)
    plan = compute_payouts(battle, 7000, "PLATFORM")
    assert _amounts(plan) == {"artist-a": 2, "artist-b": 2, "PLATFORM": 2}
    assert plan.total_paid == 6


def test_free_battle_pays_nothing() -> None:
    battle = make_battle(entry_fee=0, score_a=30, score_b=10)
    plan = compute_payouts(battle, 7000, "PLATFORM")
    assert plan.payouts == []
    assert plan.platform_share == 0
