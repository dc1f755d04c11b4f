import random
import re
import unittest

from application import blackjack
from domain.errors import ErrorKind
from domain.models import NotPlaying, PlayerAccount, PlayerTurn

from fakes import InMemoryPlayerRepository, ScriptedRandom, cards, draw_indices


class BlackjackTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.players = InMemoryPlayerRepository()

    def seat(self, hand, dealer, bet=100, points=900):
        """Put alice mid-round with the given cards on the table."""

        self.players.add(
            PlayerAccount(
                username="alice",
                points=points,
                blackjack_bet=bet,
                blackjack_hand=cards(*hand),
                dealer_hand=cards(*dealer),
            )
        )

    def rigged(self, tokens, exclude=()):
        return ScriptedRandom(ints=draw_indices(tokens, exclude))

    def alice(self) -> PlayerAccount:
        return self.players.get_player("alice")


class DealTests(BlackjackTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.players.add(PlayerAccount(username="alice", points=1000))

    def test_bet_above_balance_is_rejected_without_deduction(self):
        result = blackjack.deal("alice", 1001, self.players, ScriptedRandom())
        self.assertFalse(result.success)
        self.assertEqual(result.error, ErrorKind.INVALID_BET)
        self.assertEqual(self.alice().points, 1000)
        self.assertIsInstance(self.alice().table_state(), NotPlaying)

    def test_zero_bet_is_rejected(self):
        result = blackjack.deal("alice", 0, self.players, ScriptedRandom())
        self.assertEqual(result.error, ErrorKind.INVALID_BET)

    def test_unknown_player(self):
        result = blackjack.deal("bob", 10, self.players, ScriptedRandom())
        self.assertEqual(result.error, ErrorKind.NOT_FOUND)

    def test_deal_starts_player_turn(self):
        rng = self.rigged(["10♠", "7♣", "9♥"])
        result = blackjack.deal("alice", 100, self.players, rng)

        self.assertTrue(result.success)
        self.assertEqual(result.outcome, "dealt")
        alice = self.alice()
        self.assertEqual(alice.points, 900)
        state = alice.table_state()
        self.assertIsInstance(state, PlayerTurn)
        self.assertEqual(state.bet, 100)
        self.assertEqual([str(c) for c in state.hand], ["10♠", "7♣"])
        self.assertEqual([str(c) for c in state.dealer_hand], ["9♥"])
        self.assertIn("Your hand: 17 (10♠, 7♣)", result.message)
        self.assertIn("Dealer shows: 9 (9♥)", result.message)

    def test_deal_while_playing_reports_current_round(self):
        blackjack.deal("alice", 100, self.players, self.rigged(["10♠", "7♣", "9♥"]))
        result = blackjack.deal("alice", 100, self.players, ScriptedRandom())

        self.assertEqual(result.error, ErrorKind.ALREADY_PLAYING)
        self.assertIn("10♠, 7♣", result.message)
        self.assertEqual(self.alice().points, 900)

    def test_natural_pays_three_to_two(self):
        rng = self.rigged(["A♠", "K♠", "9♥", "5♦"])
        result = blackjack.deal("alice", 100, self.players, rng)

        self.assertEqual(result.outcome, "blackjack")
        self.assertEqual(self.alice().points, 1150)
        self.assertIsInstance(self.alice().table_state(), NotPlaying)
        self.assertEqual(self.alice().blackjack_bet, 0)

    def test_natural_payout_rounds_down(self):
        rng = self.rigged(["A♠", "K♠", "9♥", "5♦"])
        blackjack.deal("alice", 3, self.players, rng)
        self.assertEqual(self.alice().points, 1000 - 3 + 3 + 4)

    def test_both_naturals_push(self):
        rng = self.rigged(["A♠", "K♠", "A♥", "Q♥"])
        result = blackjack.deal("alice", 100, self.players, rng)

        self.assertEqual(result.outcome, "push")
        self.assertEqual(self.alice().points, 1000)
        self.assertIsInstance(self.alice().table_state(), NotPlaying)


class HitTests(BlackjackTestCase):
    def test_hit_without_round_is_not_playing(self):
        self.players.add(PlayerAccount(username="alice"))
        result = blackjack.hit("alice", self.players, ScriptedRandom())
        self.assertEqual(result.error, ErrorKind.NOT_PLAYING)
        self.assertEqual(self.players.saves, 0)

    def test_hit_after_bust_is_not_playing(self):
        table = ["10♠", "7♣", "9♥"]
        self.seat(table[:2], table[2:])
        blackjack.hit("alice", self.players, self.rigged(["K♦"], exclude=table))

        result = blackjack.hit("alice", self.players, ScriptedRandom())
        self.assertEqual(result.error, ErrorKind.NOT_PLAYING)

    def test_hit_keeps_playing_under_22(self):
        table = ["10♠", "7♣", "9♥"]
        self.seat(table[:2], table[2:])
        result = blackjack.hit("alice", self.players, self.rigged(["2♦"], exclude=table))

        self.assertEqual(result.outcome, "hit")
        self.assertEqual(len(self.alice().blackjack_hand), 3)
        self.assertIn("19", result.message)

    def test_bust_forfeits_bet_and_clears_table(self):
        table = ["10♠", "7♣", "9♥"]
        self.seat(table[:2], table[2:])
        result = blackjack.hit("alice", self.players, self.rigged(["K♦"], exclude=table))

        self.assertEqual(result.outcome, "bust")
        alice = self.alice()
        self.assertEqual(alice.points, 900)
        self.assertEqual(alice.blackjack_hand, [])
        self.assertEqual(alice.dealer_hand, [])
        self.assertEqual(alice.blackjack_bet, 0)


class StandTests(BlackjackTestCase):
    table = ["10♠", "7♣", "9♥"]

    def stand_with(self, dealer_draws, hand=None):
        hand = hand or self.table[:2]
        self.seat(hand, self.table[2:])
        rng = self.rigged(dealer_draws, exclude=[*hand, *self.table[2:]])
        return blackjack.stand("alice", self.players, rng)

    def test_stand_without_round_is_not_playing(self):
        self.players.add(PlayerAccount(username="alice"))
        result = blackjack.stand("alice", self.players, ScriptedRandom())
        self.assertEqual(result.error, ErrorKind.NOT_PLAYING)

    def test_dealer_bust_pays_double(self):
        result = self.stand_with(["6♦", "K♣"])
        self.assertEqual(result.outcome, "dealer_bust")
        self.assertEqual(self.alice().points, 1100)

    def test_higher_hand_wins(self):
        result = self.stand_with(["8♦"], hand=["10♠", "9♣"])
        self.assertEqual(result.outcome, "win")
        self.assertEqual(self.alice().points, 1100)

    def test_lower_hand_loses(self):
        result = self.stand_with(["5♦", "4♣"])
        self.assertEqual(result.outcome, "lose")
        self.assertEqual(self.alice().points, 900)
        self.assertIn("Dealer final hand: 18", result.message)

    def test_tie_refunds_bet(self):
        result = self.stand_with(["8♦"])
        self.assertEqual(result.outcome, "push")
        self.assertEqual(self.alice().points, 1000)

    def test_every_outcome_clears_table(self):
        self.stand_with(["6♦", "K♣"])
        self.assertIsInstance(self.alice().table_state(), NotPlaying)
        self.assertEqual(self.alice().blackjack_bet, 0)

    def test_dealer_always_finishes_on_17_or_more(self):
        for seed in range(200):
            self.seat(self.table[:2], self.table[2:])
            result = blackjack.stand("alice", self.players, random.Random(seed))
            dealer_value = int(re.search(r"Dealer final hand: (\d+)", result.message).group(1))
            self.assertGreaterEqual(dealer_value, 17)


class DoubleDownTests(BlackjackTestCase):
    def test_not_playing(self):
        self.players.add(PlayerAccount(username="alice"))
        result = blackjack.double_down("alice", self.players, ScriptedRandom())
        self.assertEqual(result.error, ErrorKind.NOT_PLAYING)

    def test_insufficient_points(self):
        self.seat(["5♠", "6♣"], ["10♥"], bet=100, points=50)
        result = blackjack.double_down("alice", self.players, ScriptedRandom())

        self.assertEqual(result.error, ErrorKind.INSUFFICIENT_POINTS)
        alice = self.alice()
        self.assertEqual(alice.points, 50)
        self.assertEqual(alice.blackjack_bet, 100)
        self.assertEqual(len(alice.blackjack_hand), 2)

    def test_double_then_stand_pays_doubled_bet(self):
        table = ["5♠", "6♣", "10♥"]
        self.seat(table[:2], table[2:])
        rng = self.rigged(["10♦", "7♣"], exclude=table)
        result = blackjack.double_down("alice", self.players, rng)

        self.assertEqual(result.outcome, "win")
        self.assertEqual(self.alice().points, 900 - 100 + 400)
        self.assertIsInstance(self.alice().table_state(), NotPlaying)

    def test_double_bust_loses_both_stakes(self):
        table = ["10♠", "9♣", "10♥"]
        self.seat(table[:2], table[2:])
        result = blackjack.double_down("alice", self.players, self.rigged(["K♦"], exclude=table))

        self.assertEqual(result.outcome, "bust")
        self.assertEqual(self.alice().points, 800)
        self.assertEqual(self.alice().blackjack_bet, 0)


if __name__ == "__main__":
    unittest.main()
