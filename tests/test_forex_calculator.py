import pytest

from fxjournal.services import forex_calculator as fx


class TestPips:
    def test_buy_pips_are_positive_when_price_rises(self):
        assert fx.calculate_pips("EURUSD", "BUY", 1.1000, 1.1050) == pytest.approx(50)

    def test_sell_pips_are_positive_when_price_falls(self):
        assert fx.calculate_pips("USDJPY", "SELL", 150.00, 149.50) == pytest.approx(50)

    def test_losing_buy_is_negative(self):
        assert fx.calculate_pips("GBPUSD", "BUY", 1.2700, 1.2680) == pytest.approx(-20)

    def test_gold_uses_tenth_pip(self):
        assert fx.calculate_pips("XAUUSD", "BUY", 2000.0, 2010.0) == pytest.approx(100)

    def test_unknown_pairs_fall_back_by_quote_currency(self):
        assert fx.get_pip_size("GBPJPY") == 0.01
        assert fx.get_pip_size("EURGBP") == 0.0001

    def test_pair_is_normalized(self):
        assert fx.get_pip_size("usd/jpy") == 0.01


class TestProfit:
    def test_pip_value_is_ten_dollars_per_lot(self):
        assert fx.calculate_pip_value("EURUSD", 0.5) == pytest.approx(5)

    def test_profit(self):
        assert fx.calculate_profit("EURUSD", "BUY", 1.1000, 1.1050, 0.5) == pytest.approx(250)

    def test_gold_profit(self):
        assert fx.calculate_profit("XAUUSD", "BUY", 2000.0, 2010.0, 1.0) == pytest.approx(1000)


class TestRiskReward:
    def test_buy_ratio(self):
        assert fx.calculate_risk_reward_ratio(1.1000, 1.0950, 1.1100, "BUY") == pytest.approx(2.0)

    def test_sell_ratio(self):
        assert fx.calculate_risk_reward_ratio(1.1000, 1.1050, 1.0925, "SELL") == pytest.approx(1.5)

    def test_stop_on_wrong_side_gives_zero(self):
        assert fx.calculate_risk_reward_ratio(1.1000, 1.1050, 1.1100, "BUY") == 0.0

    def test_formatting(self):
        assert fx.format_risk_reward_ratio(2.0) == "1:2.0"
        assert fx.format_risk_reward_ratio(0) == "N/A"
        assert fx.format_risk_reward_ratio(None) == "N/A"


class TestPositionSizing:
    def test_lot_size_for_one_percent_risk(self):
        lot = fx.calculate_lot_size("EURUSD", "BUY", 1.1000, 1.0950, 10000, 1)
        assert lot == pytest.approx(0.2)

    def test_lot_size_is_floored(self):
        # 100 USD over 30 pips -> 0.333 lots
        lot = fx.calculate_lot_size("EURUSD", "BUY", 1.1000, 1.0970, 10000, 1)
        assert lot == pytest.approx(0.33)

    def test_zero_stop_distance(self):
        assert fx.calculate_lot_size("EURUSD", "BUY", 1.1, 1.1, 10000, 1) == 0.0

    def test_stop_loss_price(self):
        sl = fx.calculate_stop_loss_price(1.1000, 10000, 1, 0.2, "BUY", "EURUSD")
        assert sl == pytest.approx(1.0950)
        sl = fx.calculate_stop_loss_price(1.1000, 10000, 1, 0.2, "SELL", "EURUSD")
        assert sl == pytest.approx(1.1050)

    def test_take_profit_price(self):
        assert fx.calculate_take_profit_price(1.1000, 1.0950, 2, "BUY") == pytest.approx(1.1100)
        assert fx.calculate_take_profit_price(1.1000, 1.1050, 2, "SELL") == pytest.approx(1.0900)


def test_format_price():
    assert fx.format_price(1.23456, "EURUSD") == "1.2346"
    assert fx.format_price(150.123, "USDJPY") == "150.12"
    assert fx.format_price(2012.347, "XAUUSD") == "2012.35"
