from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from re import Match, Pattern
from typing import Callable, List, Optional, Sequence, Set, Tuple

from application import blackjack, dumpster, lottery, services, stocks
from application.services import ExternalContext, OperationResult
from domain.catalog import DEFAULT_EMOJIS, find_emoji
from domain.models import STARTING_POINTS, Emoji
from domain.random_source import RandomSource
from domain.repositories import LotteryRepository, PlayerRepository, StockRepository


logger = logging.getLogger(__name__)

# Some chat clients append invisible tag characters to repeated messages.
_INVISIBLE_SUFFIX = "\U000e0000"


@dataclass
class Reply:
    """
    A line the transport should post in the channel.

    `duel` is set when the reply opens a duel that the named opponent still
    has to accept or decline: (challenger, opponent).
    """

    text: str
    duel: Optional[Tuple[str, str]] = None


Handler = Callable[[ExternalContext, Match], List[Reply]]


def normalize_username(name: str) -> str:
    return name.strip().lstrip("@").lower()


def clean_message(text: str) -> str:
    return text.strip().rstrip(_INVISIBLE_SUFFIX).strip()


class ChatCommandRouter:
    """
    Maps chat lines to application services.

    Every line earns its author a point; lines that match a command are then
    dispatched to exactly one service. Transports only translate between
    their SDK and `ExternalContext` / `Reply`.

    Moderators can switch the games off per channel with `bot off`; only the
    moderator tools answer there until `bot on`. When a stock store is given,
    every line that is not a stock command also moves the market one step.
    """

    def __init__(
        self,
        player_repo: PlayerRepository,
        lottery_repo: LotteryRepository,
        catalog: Sequence[Emoji] = DEFAULT_EMOJIS,
        rng: Optional[RandomSource] = None,
        prefix: str = "!",
        starting_points: int = STARTING_POINTS,
        stock_repo: Optional[StockRepository] = None,
    ) -> None:
        self._player_repo = player_repo
        self._lottery_repo = lottery_repo
        self._stock_repo = stock_repo
        self._catalog = catalog
        self._rng = rng or random.SystemRandom()
        self._prefix = prefix
        self._starting_points = starting_points
        self._disabled_channels: Set[str] = set()
        self._moderator_routes: List[Tuple[Pattern, Handler]] = [
            (self._pattern(r"bot (on|off)"), self._toggle_bot),
            (self._pattern(r"setpoints (\S+) (\d+)"), self._set_points),
            (self._pattern(r"resetpoints(\s+confirm)?"), self._reset_points),
        ]
        self._routes: List[Tuple[Pattern, Handler]] = [
            (self._pattern(r"help"), self._help),
            (self._pattern(r"points"), self._points),
            (self._pattern(r"leaderboard"), self._leaderboard),
            (self._pattern(r"donate (\S+) (\d+)"), self._donate),
            (self._pattern(r"gamble (\d+|all)"), self._gamble),
            (self._pattern(r"duel (\S+) (\d+)"), self._duel),
            (self._pattern(r"accept"), self._accept),
            (self._pattern(r"decline"), self._decline),
            (self._pattern(r"blackjack (\d+|all)"), self._deal),
            (self._pattern(r"hit"), self._hit),
            (self._pattern(r"double"), self._double),
            (self._pattern(r"stand"), self._stand),
            (self._pattern(r"lottery(?:\s+(\d+|rules))?"), self._lottery),
            (
                self._pattern(
                    r"scamball(?:\s+(?:(\d+)\s+(\d+)\s+(\d+)\s+(\d+)\s+(\d+)\s+\((\d+)\)"
                    r"|(autopick)|(rules)))?"
                ),
                self._scamball,
            ),
            (self._pattern(r"buy (\S+)(?: (\d+))?"), self._buy),
            (self._pattern(r"sell (\S+)(?: (\d+))?"), self._sell),
            (self._pattern(r"(?:store|shop)"), self._store),
            (self._pattern(r"collection"), self._collection),
            (self._pattern(r"dumpsterdive"), self._dumpster_dive),
            (self._pattern(r"(?:portfolio|mystocks)"), self._portfolio),
            (self._pattern(r"(?:stockmarket|stocks)"), self._stock_market),
        ]
        # Looking at or trading stocks does not move the market.
        self._market_handlers = {self._buy, self._sell, self._portfolio, self._stock_market}

    def _pattern(self, body: str) -> Pattern:
        return re.compile(rf"{re.escape(self._prefix)}{body}", re.IGNORECASE)

    def handle(self, ctx: ExternalContext, text: str) -> List[Reply]:
        services.award_chat_point(ctx.username, self._player_repo)

        chat = clean_message(text)
        if ctx.is_moderator:
            for pattern, handler in self._moderator_routes:
                match = pattern.fullmatch(chat)
                if match:
                    return handler(ctx, match)

        if ctx.channel_id in self._disabled_channels:
            return []

        for pattern, handler in self._routes:
            match = pattern.fullmatch(chat)
            if match:
                logger.debug("%s -> %s", ctx.username, handler.__name__)
                replies = handler(ctx, match)
                if handler not in self._market_handlers:
                    self._tick_market()
                return replies

        self._tick_market()
        return []

    def is_enabled(self, channel_id: str) -> bool:
        return channel_id not in self._disabled_channels

    def respond_to_duel(self, username: str, challenger: str, accepted: bool) -> List[Reply]:
        """
        Answer the duel `challenger` started against `username`, from a
        reaction or button rather than a chat line. A button left over from an
        earlier challenge gets a "no pending duel" reply.
        """

        return self._answer_duel(username, accepted, challenger)

    def is_duel_pending(self, challenger: str, opponent: str) -> bool:
        return services.is_duel_pending(challenger, opponent, self._player_repo)

    def _answer_duel(
        self,
        username: str,
        accepted: bool,
        challenger: Optional[str] = None,
    ) -> List[Reply]:
        if accepted:
            result = services.accept_duel(username, self._player_repo, self._rng, challenger)
        else:
            result = services.decline_duel(username, self._player_repo, challenger)
        return self._reply(result)

    def _tick_market(self) -> None:
        if self._stock_repo is not None:
            stocks.update_prices(self._stock_repo, self._rng)

    @staticmethod
    def _reply(result: OperationResult) -> List[Reply]:
        return [Reply(result.message)]

    def _help(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        p = self._prefix
        return [
            Reply(
                f"{p}points, {p}leaderboard, {p}donate <user> <n>, {p}gamble <n|all>, "
                f"{p}duel <user> <n>, {p}accept, {p}decline, {p}blackjack <n|all>, {p}hit, "
                f"{p}double, {p}stand, {p}lottery <1-1000|rules>, "
                f"{p}scamball n1 n2 n3 n4 n5 (s)|autopick|rules, {p}store, {p}buy <emoji>, "
                f"{p}sell <emoji>, {p}collection, {p}dumpsterdive, {p}stocks, "
                f"{p}buy <stock> <n>, {p}sell <stock> <n>, {p}portfolio"
            )
        ]

    def _points(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        return self._reply(services.get_points(ctx.username, self._player_repo))

    def _leaderboard(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        return [Reply(line) for line in services.get_leaderboard(self._player_repo)]

    def _donate(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        result = services.donate(
            ctx.username,
            normalize_username(match.group(1)),
            int(match.group(2)),
            self._player_repo,
        )
        return self._reply(result)

    def _gamble(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        raw = match.group(1).lower()
        amount = raw if raw == "all" else int(raw)
        return self._reply(services.gamble(ctx.username, amount, self._player_repo, self._rng))

    def _duel(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        opponent = normalize_username(match.group(1))
        result = services.challenge_duel(
            ctx.username, opponent, int(match.group(2)), self._player_repo
        )
        if not result.success:
            return self._reply(result)
        return [Reply(result.message, duel=(ctx.username, opponent))]

    def _accept(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        return self._answer_duel(ctx.username, accepted=True)

    def _decline(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        return self._answer_duel(ctx.username, accepted=False)

    def _toggle_bot(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        if match.group(1).lower() == "on":
            self._disabled_channels.discard(ctx.channel_id)
            text = "Bot commands enabled"
        else:
            self._disabled_channels.add(ctx.channel_id)
            text = "Bot commands disabled"
        logger.info("%s: %s in channel %s", ctx.username, text, ctx.channel_id)
        return [Reply(text)]

    def _set_points(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        result = services.set_points(
            ctx, normalize_username(match.group(1)), int(match.group(2)), self._player_repo
        )
        return self._reply(result)

    def _reset_points(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        if not match.group(1):
            return [
                Reply(
                    f"MOD ONLY - Reset all users to {self._starting_points} points, clear "
                    "portfolios, and remove non-hidden emojis. To execute, type "
                    f'"{self._prefix}resetpoints confirm"'
                )
            ]
        result = services.reset_points(
            ctx, self._catalog, self._player_repo, self._starting_points
        )
        return self._reply(result)

    def _deal(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        raw = match.group(1).lower()
        if raw == "all":
            player = self._player_repo.get_player(ctx.username)
            bet = player.points if player is not None else 0
        else:
            bet = int(raw)
        result = blackjack.deal(ctx.username, bet, self._player_repo, self._rng, self._prefix)
        return self._reply(result)

    def _hit(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        return self._reply(blackjack.hit(ctx.username, self._player_repo, self._rng))

    def _double(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        return self._reply(blackjack.double_down(ctx.username, self._player_repo, self._rng))

    def _stand(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        return self._reply(blackjack.stand(ctx.username, self._player_repo, self._rng))

    def _lottery(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        arg = (match.group(1) or "rules").lower()
        if arg == "rules":
            return [Reply(lottery.LOTTERY_RULES)]
        result = lottery.lottery_roll(
            ctx.username, int(arg), self._player_repo, self._lottery_repo, self._rng
        )
        return self._reply(result)

    def _scamball(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        if match.group(7):
            numbers, special = lottery.autopick(self._rng)
        elif match.group(1):
            numbers = [int(match.group(i)) for i in range(1, 6)]
            special = int(match.group(6))
        else:
            return [Reply(lottery.scamball_rules(self._lottery_repo, self._prefix))]

        result = lottery.scamball_roll(
            ctx.username, numbers, special, self._player_repo, self._lottery_repo, self._rng
        )
        return self._reply(result)

    def _is_stock_order(self, item: str) -> bool:
        # Emoji names win; anything else is treated as a ticker symbol.
        return self._stock_repo is not None and find_emoji(self._catalog, item) is None

    def _buy(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        item, quantity = match.group(1), int(match.group(2) or 1)
        if self._is_stock_order(item):
            result = stocks.buy_stock(
                ctx.username, item, quantity, self._player_repo, self._stock_repo
            )
        else:
            result = services.buy_emoji(ctx.username, item, self._catalog, self._player_repo)
        return self._reply(result)

    def _sell(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        item, quantity = match.group(1), int(match.group(2) or 1)
        if self._is_stock_order(item):
            result = stocks.sell_stock(
                ctx.username, item, quantity, self._player_repo, self._stock_repo
            )
        else:
            result = services.sell_emoji(ctx.username, item, self._catalog, self._player_repo)
        return self._reply(result)

    def _portfolio(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        if self._stock_repo is None:
            return []
        return self._reply(
            stocks.get_portfolio(ctx.username, self._player_repo, self._stock_repo)
        )

    def _stock_market(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        if self._stock_repo is None:
            return []
        return [Reply(stocks.get_ticker(self._stock_repo))]

    def _store(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        return [Reply(services.list_store(self._catalog))]

    def _collection(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        return self._reply(services.get_collection(ctx.username, self._player_repo))

    def _dumpster_dive(self, ctx: ExternalContext, match: Match) -> List[Reply]:
        result = dumpster.dumpster_dive(
            ctx.username, self._catalog, self._player_repo, self._lottery_repo, self._rng
        )
        return self._reply(result)
