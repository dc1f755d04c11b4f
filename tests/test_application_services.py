import unittest

from application.services import (
    ExternalContext,
    accept_duel,
    award_chat_point,
    buy_emoji,
    challenge_duel,
    decline_duel,
    donate,
    gamble,
    get_collection,
    get_leaderboard,
    is_duel_pending,
    list_store,
    reset_points,
    sell_emoji,
    set_points,
)
from domain.catalog import DEFAULT_EMOJIS, RACCOON
from domain.errors import ErrorKind
from domain.models import PlayerAccount

from fakes import InMemoryPlayerRepository, ScriptedRandom


class ApplicationServicesTests(unittest.TestCase):
    def setUp(self) -> None:
        self.players = InMemoryPlayerRepository()
        self.players.add(PlayerAccount(username="alice", points=1000))
        self.players.add(PlayerAccount(username="bob", points=500))
        self.mod = ExternalContext(
            provider="discord",
            provider_user_id="1",
            username="mod",
            is_moderator=True,
        )

    def points(self, username: str) -> int:
        return self.players.get_player(username).points

    def test_chat_point_creates_new_player(self):
        player = award_chat_point("carol", self.players)
        self.assertEqual(player.points, 1001)
        self.assertEqual(self.points("carol"), 1001)

        award_chat_point("carol", self.players)
        self.assertEqual(self.points("carol"), 1002)

    def test_leaderboard_is_ordered(self):
        lines = get_leaderboard(self.players)
        self.assertEqual(lines, ["1. alice - 1000 points", "2. bob - 500 points"])

    def test_donate_moves_points(self):
        result = donate("alice", "bob", 200, self.players)
        self.assertTrue(result.success)
        self.assertEqual(self.points("alice"), 800)
        self.assertEqual(self.points("bob"), 700)

    def test_donate_rejects_bad_amounts_and_self(self):
        self.assertEqual(donate("alice", "bob", 0, self.players).error, ErrorKind.INVALID_INPUT)
        self.assertEqual(donate("alice", "bob", 1001, self.players).error, ErrorKind.INVALID_INPUT)
        self.assertEqual(donate("alice", "alice", 5, self.players).error, ErrorKind.INVALID_INPUT)
        self.assertEqual(donate("alice", "nobody", 5, self.players).error, ErrorKind.NOT_FOUND)
        self.assertEqual(self.points("alice"), 1000)

    def test_gamble(self):
        lost = gamble("alice", 100, self.players, ScriptedRandom(ints=[49]))
        self.assertEqual(lost.outcome, "lose")
        self.assertEqual(self.points("alice"), 900)

        won = gamble("alice", "all", self.players, ScriptedRandom(ints=[50]))
        self.assertEqual(won.outcome, "win")
        self.assertEqual(self.points("alice"), 1800)

        invalid = gamble("alice", 5000, self.players, ScriptedRandom())
        self.assertEqual(invalid.error, ErrorKind.INVALID_BET)

    def test_duel_accepted(self):
        result = challenge_duel("alice", "bob", 100, self.players)
        self.assertTrue(result.success)
        self.assertEqual(self.points("alice"), 900)
        self.assertEqual(self.points("bob"), 400)

        initiator = accept_duel("alice", self.players, ScriptedRandom())
        self.assertEqual(initiator.error, ErrorKind.FORBIDDEN)

        result = accept_duel("bob", self.players, ScriptedRandom(ints=[51]))
        self.assertEqual(result.outcome, "win")
        self.assertEqual(self.points("bob"), 600)
        self.assertEqual(self.points("alice"), 900)
        self.assertFalse(self.players.get_player("alice").is_dueling)
        self.assertFalse(self.players.get_player("bob").is_dueling)

    def test_duel_declined_refunds_both(self):
        challenge_duel("alice", "bob", 100, self.players)
        result = decline_duel("bob", self.players)

        self.assertTrue(result.success)
        self.assertEqual(self.points("alice"), 1000)
        self.assertEqual(self.points("bob"), 500)
        self.assertEqual(decline_duel("bob", self.players).error, ErrorKind.NOT_DUELING)

    def test_duel_answer_scoped_to_challenger(self):
        self.players.add(PlayerAccount(username="carol", points=1000))
        challenge_duel("carol", "bob", 100, self.players)

        stale = accept_duel("bob", self.players, ScriptedRandom(), challenger="alice")
        self.assertEqual(stale.error, ErrorKind.NOT_DUELING)
        self.assertTrue(self.players.get_player("bob").is_dueling)
        self.assertTrue(is_duel_pending("carol", "bob", self.players))

        result = decline_duel("bob", self.players, challenger="carol")
        self.assertTrue(result.success)
        self.assertFalse(is_duel_pending("carol", "bob", self.players))

    def test_duel_guards(self):
        self.assertEqual(
            challenge_duel("alice", "bob", 501, self.players).error, ErrorKind.INVALID_BET
        )
        challenge_duel("alice", "bob", 10, self.players)
        self.players.add(PlayerAccount(username="carol"))
        self.assertEqual(
            challenge_duel("carol", "bob", 10, self.players).error, ErrorKind.ALREADY_DUELING
        )

    def test_buy_and_sell_emoji(self):
        bought = buy_emoji("alice", "donut", DEFAULT_EMOJIS, self.players)
        self.assertTrue(bought.success)
        self.assertEqual(self.points("alice"), 0)

        again = buy_emoji("alice", "🍩", DEFAULT_EMOJIS, self.players)
        self.assertFalse(again.success)

        sold = sell_emoji("alice", "DONUT", DEFAULT_EMOJIS, self.players)
        self.assertTrue(sold.success)
        self.assertEqual(self.points("alice"), 1000)
        self.assertEqual(self.players.get_player("alice").emoji_collection, [])

    def test_buy_needs_points(self):
        result = buy_emoji("bob", "donut", DEFAULT_EMOJIS, self.players)
        self.assertEqual(result.error, ErrorKind.INSUFFICIENT_POINTS)
        self.assertIn("500 more points", result.message)

    def test_hidden_emoji_cannot_be_traded(self):
        self.assertFalse(buy_emoji("alice", "raccoon", DEFAULT_EMOJIS, self.players).success)

        self.players.add(PlayerAccount(username="alice", emoji_collection=[RACCOON]))
        result = sell_emoji("alice", "raccoon", DEFAULT_EMOJIS, self.players)
        self.assertIn("best friend", result.message)
        self.assertEqual(self.players.get_player("alice").emoji_collection, [RACCOON])

    def test_store_hides_hidden_emoji(self):
        listing = list_store(DEFAULT_EMOJIS)
        self.assertIn("🫓 (10)", listing)
        self.assertNotIn(RACCOON, listing)

    def test_collection(self):
        self.assertIn("dust", get_collection("alice", self.players).message)
        buy_emoji("alice", "flatbread", DEFAULT_EMOJIS, self.players)
        self.assertIn("🫓", get_collection("alice", self.players).message)

    def test_set_points_requires_moderator(self):
        pleb = ExternalContext("discord", "2", "pleb")
        self.assertEqual(set_points(pleb, "bob", 5, self.players).error, ErrorKind.FORBIDDEN)

        result = set_points(self.mod, "bob", 5, self.players)
        self.assertTrue(result.success)
        self.assertEqual(self.points("bob"), 5)

    def test_reset_points_keeps_hidden_emoji(self):
        self.players.add(
            PlayerAccount(username="alice", points=77, emoji_collection=["🍩", RACCOON])
        )
        result = reset_points(self.mod, DEFAULT_EMOJIS, self.players)

        self.assertTrue(result.success)
        self.assertEqual(self.points("alice"), 1000)
        self.assertEqual(self.players.get_player("alice").emoji_collection, [RACCOON])

    def test_reset_points_continues_past_failed_save(self):
        class FlakyRepository(InMemoryPlayerRepository):
            def save_player(self, player):
                if player.username == "alice":
                    raise RuntimeError("disk full")
                super().save_player(player)

        players = FlakyRepository()
        players.add(PlayerAccount(username="alice", points=1))
        players.add(PlayerAccount(username="bob", points=1))

        with self.assertLogs("application.services", level="ERROR"):
            result = reset_points(self.mod, DEFAULT_EMOJIS, players)

        self.assertFalse(result.success)
        self.assertIn("alice", result.message)
        self.assertEqual(players.get_player("bob").points, 1000)


if __name__ == "__main__":
    unittest.main()
