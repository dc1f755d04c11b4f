from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple, Union

from .cards import Card


STARTING_POINTS = 1000
SCAMBALL_BASE_JACKPOT = 20_000_000


@dataclass(frozen=True)
class NotPlaying:
    """No blackjack round in progress."""


@dataclass(frozen=True)
class PlayerTurn:
    """A blackjack round waiting for the player to hit, double or stand."""

    hand: Tuple[Card, ...]
    dealer_hand: Tuple[Card, ...]
    bet: int


TableState = Union[NotPlaying, PlayerTurn]


@dataclass
class OwnedStock:
    """A position in a player's portfolio, at its average purchase price."""

    symbol: str
    quantity: int
    purchase_price: int


@dataclass
class Stock:
    symbol: str
    current_price: int
    last_price: int


@dataclass
class PlayerAccount:
    """
    Domain representation of a chatter and everything they own.

    The record is created lazily by the storage layer the first time a user
    talks; games only read and rewrite its fields.
    """

    username: str
    points: int = STARTING_POINTS
    blackjack_bet: int = 0
    blackjack_hand: List[Card] = field(default_factory=list)
    dealer_hand: List[Card] = field(default_factory=list)
    emoji_collection: List[str] = field(default_factory=list)
    is_dueling: bool = False
    duel_initiator: bool = False
    duel_opponent: str = ""
    duel_bet: int = 0
    last_dumpster_dive: Optional[datetime] = None
    dumpster_ban_until: Optional[datetime] = None
    owned_stocks: List[OwnedStock] = field(default_factory=list)

    def holding(self, symbol: str) -> Optional[OwnedStock]:
        for owned in self.owned_stocks:
            if owned.symbol == symbol:
                return owned
        return None

    def table_state(self) -> TableState:
        if not self.blackjack_hand:
            return NotPlaying()
        return PlayerTurn(
            hand=tuple(self.blackjack_hand),
            dealer_hand=tuple(self.dealer_hand),
            bet=self.blackjack_bet,
        )

    def start_round(self, bet: int, hand: List[Card], dealer_hand: List[Card]) -> None:
        self.blackjack_bet = bet
        self.blackjack_hand = list(hand)
        self.dealer_hand = list(dealer_hand)

    def clear_table(self) -> None:
        self.blackjack_bet = 0
        self.blackjack_hand = []
        self.dealer_hand = []

    def owns(self, character: str) -> bool:
        return character in self.emoji_collection

    def add_emoji(self, character: str) -> None:
        if character not in self.emoji_collection:
            self.emoji_collection.append(character)

    def clear_duel(self) -> None:
        self.is_dueling = False
        self.duel_initiator = False
        self.duel_opponent = ""
        self.duel_bet = 0


@dataclass
class LotteryState:
    """The channel-wide lottery pots. There is exactly one of these."""

    lottery_bonus: int = 0
    scamball_jackpot: int = SCAMBALL_BASE_JACKPOT


@dataclass(frozen=True)
class Emoji:
    """
    A collectible emoji.

    `price == 0` marks a cosmetic that can only be found, never bought or
    sold. Hidden emoji are left out of the store and the ordinary dumpster
    pool.
    """

    character: str
    alias: str
    price: int
    is_hidden: bool = False
