from __future__ import annotations

from typing import List, Optional, Protocol

from .models import LotteryState, PlayerAccount, Stock


class PlayerRepository(Protocol):
    """
    Abstraction over player persistence.

    Implementations are responsible for:
    - Mapping between database rows and the `PlayerAccount` domain model.
    - Hiding any SQL / driver details from the application layer.
    """

    def get_player(self, username: str) -> Optional[PlayerAccount]:
        """Return the player with the given username, or None if not found."""

        ...

    def get_or_create_player(self, username: str) -> PlayerAccount:
        """
        Return the player, creating a record with the starting balance the
        first time a username is seen.
        """

        ...

    def get_all_players(self) -> List[PlayerAccount]:
        """Return all players currently known to the system."""

        ...

    def get_top_players(self, limit: int) -> List[PlayerAccount]:
        """Return up to `limit` players ordered by points, richest first."""

        ...

    def save_player(self, player: PlayerAccount) -> None:
        """
        Persist every field of `player`.

        Last write wins; there is no optimistic concurrency check.
        """

        ...


class LotteryRepository(Protocol):
    """
    Persistence for the single, channel-wide `LotteryState` record.
    """

    def get_lottery(self) -> LotteryState:
        """Return the lottery record, creating it with default pots if needed."""

        ...

    def save_lottery(self, lottery: LotteryState) -> None:
        ...


class StockRepository(Protocol):
    """
    Persistence for the stock market listings.

    Implementations seed the configured listings the first time they are
    opened and drop any stored symbol that is no longer listed.
    """

    def get_stocks(self) -> List[Stock]:
        """Return every listed stock in listing order."""

        ...

    def get_stock(self, symbol: str) -> Optional[Stock]:
        ...

    def save_stocks(self, stocks: List[Stock]) -> None:
        """Persist the prices of the given stocks."""

        ...
