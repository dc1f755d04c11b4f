import itertools
import random
import unittest

from domain.cards import RANKS, Card, CardDeck, full_deck, hand_value, is_natural

from fakes import cards


class HandValueTests(unittest.TestCase):
    def test_examples(self):
        self.assertEqual(hand_value(cards("A♠", "A♣", "9♥")), 21)
        self.assertEqual(hand_value(cards("K♠", "Q♣")), 20)
        self.assertEqual(hand_value(cards("A♠", "K♦")), 21)
        self.assertEqual(hand_value(cards("A♠", "A♣")), 12)
        self.assertEqual(hand_value(cards("A♠", "5♣", "A♥", "K♦")), 17)
        self.assertEqual(hand_value(cards("10♠", "9♣", "5♦")), 24)

    def test_ace_position_does_not_matter(self):
        self.assertEqual(
            hand_value(cards("A♠", "9♣", "A♥")),
            hand_value(cards("9♣", "A♥", "A♠")),
        )

    def test_value_bounded_by_hand_size(self):
        deck = full_deck()
        rng = random.Random(7)
        hands = [list(pair) for pair in itertools.combinations(deck[:13], 2)]
        hands += [rng.sample(deck, size) for size in (3, 4, 5) for _ in range(50)]
        for hand in hands:
            value = hand_value(hand)
            self.assertGreaterEqual(value, len(hand))
            self.assertLessEqual(value, len(hand) * 11)

    def test_is_natural(self):
        self.assertTrue(is_natural(cards("A♠", "K♦")))
        self.assertTrue(is_natural(cards("10♣", "A♥")))
        self.assertFalse(is_natural(cards("7♠", "7♦", "7♣")))
        self.assertFalse(is_natural(cards("K♠", "Q♦")))


class CardTests(unittest.TestCase):
    def test_parse_and_display(self):
        card = Card.parse("10♥")
        self.assertEqual(card.rank, "10")
        self.assertEqual(str(card), "10♥")
        self.assertEqual(Card.parse("Q♣").base_value, 10)

    def test_parse_rejects_garbage(self):
        for token in ("", "1♥", "10X", "Z♠"):
            with self.assertRaises(ValueError):
                Card.parse(token)


class CardDeckTests(unittest.TestCase):
    def test_full_deck_is_52_distinct_cards(self):
        deck = full_deck()
        self.assertEqual(len(deck), 52)
        self.assertEqual(len(set(deck)), 52)
        self.assertEqual({c.rank for c in deck}, set(RANKS))

    def test_draws_never_repeat_and_run_out(self):
        deck = CardDeck(random.Random(1))
        drawn = [deck.draw() for _ in range(52)]
        self.assertEqual(len(set(drawn)), 52)
        with self.assertRaises(ValueError):
            deck.draw()

        deck.reset()
        self.assertEqual(len(deck), 52)

    def test_excluded_cards_are_never_dealt(self):
        on_table = cards("A♠", "K♦", "7♣")
        deck = CardDeck(random.Random(3), exclude=on_table)
        self.assertEqual(len(deck), 49)
        drawn = [deck.draw() for _ in range(49)]
        self.assertFalse(set(drawn) & set(on_table))


if __name__ == "__main__":
    unittest.main()
