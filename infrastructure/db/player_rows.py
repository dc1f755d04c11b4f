from __future__ import annotations

import json
from datetime import datetime
from typing import Optional, Sequence, Tuple

from domain.cards import Card
from domain.models import OwnedStock, PlayerAccount


# Column order shared by the SQLite and Postgres player repositories.
PLAYER_COLUMNS = (
    "username",
    "points",
    "blackjack_bet",
    "blackjack_hand",
    "dealer_hand",
    "emoji_collection",
    "is_dueling",
    "duel_initiator",
    "duel_opponent",
    "duel_bet",
    "last_dumpster_dive",
    "dumpster_ban_until",
    "owned_stocks",
)


def _dump_time(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _load_time(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _dump_cards(cards: Sequence[Card]) -> str:
    return json.dumps([str(card) for card in cards], ensure_ascii=False)


def _load_cards(raw: str):
    return [Card.parse(token) for token in json.loads(raw or "[]")]


def _dump_stocks(owned: Sequence[OwnedStock]) -> str:
    return json.dumps(
        [
            {"symbol": s.symbol, "quantity": s.quantity, "purchase_price": s.purchase_price}
            for s in owned
        ]
    )


def _load_stocks(raw: str):
    return [
        OwnedStock(item["symbol"], int(item["quantity"]), int(item["purchase_price"]))
        for item in json.loads(raw or "[]")
    ]


def to_row(player: PlayerAccount) -> Tuple:
    return (
        player.username,
        player.points,
        player.blackjack_bet,
        _dump_cards(player.blackjack_hand),
        _dump_cards(player.dealer_hand),
        json.dumps(player.emoji_collection, ensure_ascii=False),
        bool(player.is_dueling),
        bool(player.duel_initiator),
        player.duel_opponent,
        player.duel_bet,
        _dump_time(player.last_dumpster_dive),
        _dump_time(player.dumpster_ban_until),
        _dump_stocks(player.owned_stocks),
    )


def to_domain(row: Sequence) -> PlayerAccount:
    return PlayerAccount(
        username=str(row[0]),
        points=int(row[1]),
        blackjack_bet=int(row[2]),
        blackjack_hand=_load_cards(row[3]),
        dealer_hand=_load_cards(row[4]),
        emoji_collection=list(json.loads(row[5] or "[]")),
        is_dueling=bool(row[6]),
        duel_initiator=bool(row[7]),
        duel_opponent=row[8] or "",
        duel_bet=int(row[9]),
        last_dumpster_dive=_load_time(row[10]),
        dumpster_ban_until=_load_time(row[11]),
        owned_stocks=_load_stocks(row[12]),
    )
