import unittest

from application import stocks
from application.services import ExternalContext, reset_points
from domain.catalog import DEFAULT_EMOJIS, DEFAULT_STOCKS
from domain.errors import ErrorKind
from domain.models import OwnedStock, PlayerAccount, Stock

from fakes import InMemoryPlayerRepository, InMemoryStockRepository, ScriptedRandom


class StockTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.players = InMemoryPlayerRepository()
        self.players.add(PlayerAccount(username="alice", points=1000))
        self.market = InMemoryStockRepository([Stock("WICH", 150, 148), Stock("BOB", 50, 48)])

    def alice(self) -> PlayerAccount:
        return self.players.get_player("alice")

    def set_price(self, symbol: str, price: int) -> None:
        self.market.stocks[symbol].current_price = price


class PriceTests(StockTestCase):
    def test_random_walk_moves_up_to_ten_percent(self):
        self.assertEqual(stocks.next_price(100, ScriptedRandom(floats=[0.5])), 100)
        self.assertEqual(stocks.next_price(100, ScriptedRandom(floats=[0.75])), 105)
        self.assertEqual(stocks.next_price(100, ScriptedRandom(floats=[0.0])), 90)

    def test_cheap_stocks_get_a_wider_band(self):
        self.assertEqual(stocks.next_price(5, ScriptedRandom(floats=[0.0])), 4)

    def test_price_never_drops_below_two(self):
        self.assertEqual(stocks.next_price(2, ScriptedRandom(floats=[0.0])), 2)

    def test_update_keeps_last_price(self):
        stocks.update_prices(self.market, ScriptedRandom(floats=[0.75, 0.5]))

        wich = self.market.get_stock("WICH")
        self.assertEqual(wich.last_price, 150)
        self.assertNotEqual(wich.current_price, 150)
        self.assertEqual(self.market.get_stock("BOB"), Stock("BOB", 50, 50))

    def test_ticker(self):
        self.assertEqual(
            stocks.get_ticker(self.market),
            "AZ Index: WICH - (150 | +1.35%), BOB - (50 | +4.17%)",
        )

    def test_default_listings_are_unique(self):
        symbols = [s.symbol for s in DEFAULT_STOCKS]
        self.assertEqual(len(symbols), len(set(symbols)))


class TradeTests(StockTestCase):
    def test_buy_deducts_cost(self):
        result = stocks.buy_stock("alice", "wich", 3, self.players, self.market)

        self.assertTrue(result.success)
        self.assertEqual(result.message, "alice bought 3x WICH at 150 for 450 points")
        self.assertEqual(self.alice().points, 550)
        self.assertEqual(self.alice().owned_stocks, [OwnedStock("WICH", 3, 150)])

    def test_buying_more_averages_purchase_price(self):
        stocks.buy_stock("alice", "WICH", 3, self.players, self.market)
        self.set_price("WICH", 200)
        stocks.buy_stock("alice", "WICH", 2, self.players, self.market)

        self.assertEqual(self.alice().owned_stocks, [OwnedStock("WICH", 5, 170)])
        self.assertEqual(self.alice().points, 150)

    def test_buy_rejects_bad_orders(self):
        unknown = stocks.buy_stock("alice", "NOPE", 1, self.players, self.market)
        self.assertEqual(unknown.message, "Invalid stock")

        for quantity in (0, 7):
            with self.subTest(quantity=quantity):
                result = stocks.buy_stock("alice", "WICH", quantity, self.players, self.market)
                self.assertEqual(result.error, ErrorKind.INVALID_INPUT)
                self.assertEqual(result.message, "Invalid quantity")
        self.assertEqual(self.alice().points, 1000)

    def test_sell_reports_profit(self):
        self.players.add(
            PlayerAccount(username="alice", points=0, owned_stocks=[OwnedStock("WICH", 5, 170)])
        )
        self.set_price("WICH", 200)
        result = stocks.sell_stock("alice", "WICH", 2, self.players, self.market)

        self.assertEqual(result.message, "alice sold 2x WICH at 200 (Profit: 60)")
        self.assertEqual(self.alice().points, 400)
        self.assertEqual(self.alice().owned_stocks, [OwnedStock("WICH", 3, 170)])

    def test_selling_everything_closes_position(self):
        self.players.add(
            PlayerAccount(username="alice", points=0, owned_stocks=[OwnedStock("BOB", 2, 60)])
        )
        result = stocks.sell_stock("alice", "bob", 2, self.players, self.market)

        self.assertIn("(Profit: -20)", result.message)
        self.assertEqual(self.alice().owned_stocks, [])
        self.assertEqual(self.alice().points, 100)

    def test_sell_rejects_bad_orders(self):
        self.players.add(PlayerAccount(username="alice", owned_stocks=[OwnedStock("WICH", 1, 150)]))

        too_many = stocks.sell_stock("alice", "WICH", 2, self.players, self.market)
        self.assertEqual(too_many.message, "You don't have enough WICH to sell 2")
        not_owned = stocks.sell_stock("alice", "BOB", 1, self.players, self.market)
        self.assertEqual(not_owned.message, "alice, you don't own any BOB to sell")
        zero = stocks.sell_stock("alice", "WICH", 0, self.players, self.market)
        self.assertEqual(zero.message, "Invalid quantity")
        self.assertEqual(self.alice().owned_stocks, [OwnedStock("WICH", 1, 150)])


class PortfolioTests(StockTestCase):
    def test_empty(self):
        result = stocks.get_portfolio("alice", self.players, self.market)
        self.assertEqual(result.message, "alice's portfolio: Empty")

    def test_positions_show_change_since_purchase(self):
        self.players.add(
            PlayerAccount(
                username="alice",
                owned_stocks=[OwnedStock("WICH", 5, 170), OwnedStock("GONE", 1, 10)],
            )
        )
        self.set_price("WICH", 200)
        result = stocks.get_portfolio("alice", self.players, self.market)

        self.assertEqual(
            result.message, "alice's portfolio: 5x WICH (C: 200 | bAt: 170 | +17.65%)"
        )

    def test_reset_points_clears_portfolios(self):
        self.players.add(PlayerAccount(username="alice", owned_stocks=[OwnedStock("WICH", 5, 170)]))
        mod = ExternalContext("discord", "1", "mod", is_moderator=True)
        reset_points(mod, DEFAULT_EMOJIS, self.players)

        self.assertEqual(self.alice().owned_stocks, [])


if __name__ == "__main__":
    unittest.main()
