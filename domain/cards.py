from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from .random_source import RandomSource


RANKS = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")
SUITS = ("♠", "♣", "♥", "♦")

_FACE_RANKS = ("J", "Q", "K")


@dataclass(frozen=True)
class Card:
    """A playing card. Only the rank matters for scoring."""

    rank: str
    suit: str

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    @classmethod
    def parse(cls, token: str) -> "Card":
        """Build a card from its display token, e.g. ``"10♥"``."""

        rank, suit = token[:-1], token[-1:]
        if rank not in RANKS or suit not in SUITS:
            raise ValueError(f"Invalid card token: {token!r}")
        return cls(rank=rank, suit=suit)

    @property
    def is_ace(self) -> bool:
        return self.rank == "A"

    @property
    def base_value(self) -> int:
        if self.is_ace:
            return 1
        if self.rank in _FACE_RANKS:
            return 10
        return int(self.rank)


def full_deck() -> List[Card]:
    return [Card(rank, suit) for suit in SUITS for rank in RANKS]


class CardDeck:
    """
    A 52-card deck that never deals the same card twice.

    Cards passed in `exclude` (e.g. the hands already on the table for this
    round) are removed up front, so a deck can be rebuilt for every action of
    a round from the persisted hands alone.
    """

    def __init__(self, rng: RandomSource, exclude: Iterable[Card] = ()) -> None:
        self._rng = rng
        taken = set(exclude)
        self._cards = [card for card in full_deck() if card not in taken]

    def __len__(self) -> int:
        return len(self._cards)

    def draw(self) -> Card:
        if not self._cards:
            raise ValueError("Cannot draw from an empty deck.")
        index = self._rng.randint(0, len(self._cards) - 1)
        return self._cards.pop(index)

    def reset(self) -> None:
        """Return every card to the deck, ignoring the original exclusions."""

        self._cards = full_deck()


def hand_value(hand: Sequence[Card]) -> int:
    """
    Blackjack value of a hand.

    Non-ace cards are summed first; each ace then counts 11 while that keeps
    the total at or under 21, otherwise 1.
    """

    total = sum(card.base_value for card in hand if not card.is_ace)
    for card in hand:
        if not card.is_ace:
            continue
        total += 11 if total + 11 <= 21 else 1
    return total


def is_natural(hand: Sequence[Card]) -> bool:
    return len(hand) == 2 and hand_value(hand) == 21


def format_hand(hand: Sequence[Card]) -> str:
    return ", ".join(str(card) for card in hand)
