"""Integer arithmetic utilities for the coin economy.

All fees, pots, payouts and balances are int coins. No float, no Decimal.
"""


def coins_to_display(coins: int) -> str:
    """Convert coins to display string: 15000 -> '15,000 coins', -1200 -> '-1,200 coins'."""
    if coins < 0:
        return f"-{-coins:,} coins"
    return f"{coins:,} coins"


def share_of(amount: int, share_bps: int) -> int:
    """Basis-point share with floor division (payouts never exceed the pot).

    share = floor(amount * share_bps / 10000)
    """
    if amount == 0 or share_bps == 0:
        return 0
    return (amount * share_bps) // 10000
