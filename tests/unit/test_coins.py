"""Unit tests for coin arithmetic helpers."""

from src.sb_common.coins import coins_to_display, share_of


class TestCoinsToDisplay:
    def test_thousands_separator(self) -> None:
        assert coins_to_display(15000) == "15,000 coins"

    def test_zero(self) -> None:
        assert coins_to_display(0) == "0 coins"

    def test_negative(self) -> None:
        assert coins_to_display(-1200) == "-1,200 coins"


class TestShareOf:
    def test_seventy_percent_of_pot(self) -> None:
        assert share_of(2000, 7000) == 1400

    def test_floor_division(self) -> None:
        # 7 * 0.7 = 4.9 -> 4
        assert share_of(7, 7000) == 4

    def test_zero_amount_or_share(self) -> None:
        assert share_of(0, 7000) == 0
        assert share_of(1000, 0) == 0

