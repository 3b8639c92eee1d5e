"""Pure payout computation for a finished battle.

Winner takes floor(total_pot * WINNER_SHARE_BPS / 10000). A tie splits that
share evenly between both artists, each floor(share / 2). The platform
account receives whatever remains, so payouts always sum to the pot.
"""

from src.sb_battle.domain.models import Battle
from src.sb_common.coins import share_of
from src.sb_common.enums import TeamSide
from src.sb_settlement.domain.models import TIE, Payout, SettlementPlan


def decide_winner(battle: Battle) -> str:
    if battle.team_a.score > battle.team_b.score:
        return TeamSide.A.value
    if battle.team_b.score > battle.team_a.score:
        return TeamSide.B.value
    return TIE


def compute_payouts(
    battle: Battle, winner_share_bps: int, platform_account_id: str
) -> SettlementPlan:
    pot = battle.total_pot
    winner = decide_winner(battle)
    winner_share = share_of(pot, winner_share_bps)

    if winner == TIE:
        half = winner_share // 2
        awards = [(battle.team_a.artist_id, half), (battle.team_b.artist_id, half)]
    else:
        awards = [(battle.team(winner).artist_id, winner_share)]

    payouts = [
        Payout(account_id=artist_id, amount=amount)
        for artist_id, amount in awards
        if artist_id is not None and amount > 0
    ]
    platform_share = pot - sum(p.amount for p in payouts)
    if platform_share > 0:
        payouts.append(Payout(account_id=platform_account_id, amount=platform_share))
    return SettlementPlan(
        winner_side=winner, payouts=payouts, platform_share=platform_share
    )
