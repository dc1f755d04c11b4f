from __future__ import annotations

import logging
import math
from typing import List

from domain.errors import ErrorKind
from domain.models import OwnedStock, Stock
from domain.random_source import RandomSource
from domain.repositories import PlayerRepository, StockRepository

from .services import OperationResult, fail, not_found


logger = logging.getLogger(__name__)

MAX_FLUCTUATION_PERCENT = 10
MIN_STOCK_PRICE = 2


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _percent_change(current: int, reference: int) -> str:
    change = (current - reference) / reference * 100 if current and reference else 0.0
    sign = "+" if change >= 0 else "-"
    return f"{sign}{abs(change):.2f}%"


def next_price(price: int, rng: RandomSource) -> int:
    """
    One step of the random walk.

    The price moves by up to 10% either way. Cheap stocks get a wider band so
    that a move of at least one point is always possible. Prices never drop
    below 2.
    """

    band = max(100 / price, MAX_FLUCTUATION_PERCENT)
    change = (rng.random() * band * 2 - band) / 100
    return max(_round_half_up(price * (1 + change)), MIN_STOCK_PRICE)


def update_prices(stock_repo: StockRepository, rng: RandomSource) -> List[Stock]:
    stocks = stock_repo.get_stocks()
    for stock in stocks:
        stock.last_price = stock.current_price
        stock.current_price = next_price(stock.current_price, rng)
    stock_repo.save_stocks(stocks)
    logger.debug("Stock prices moved: %s", {s.symbol: s.current_price for s in stocks})
    return stocks


def get_ticker(stock_repo: StockRepository) -> str:
    entries = [
        f"{s.symbol} - ({s.current_price} | {_percent_change(s.current_price, s.last_price)})"
        for s in stock_repo.get_stocks()
    ]
    return "AZ Index: " + ", ".join(entries)


def buy_stock(
    username: str,
    symbol: str,
    quantity: int,
    player_repo: PlayerRepository,
    stock_repo: StockRepository,
) -> OperationResult:
    """
    Buy `quantity` shares at the current price.

    Buying more of a held stock folds the new shares into the position at the
    weighted average purchase price.
    """

    player = player_repo.get_player(username)
    if player is None:
        return not_found(username)
    symbol = symbol.upper()
    stock = stock_repo.get_stock(symbol)
    if stock is None:
        return fail(ErrorKind.INVALID_INPUT, "Invalid stock")

    cost = quantity * stock.current_price
    if quantity < 1 or cost > player.points:
        return fail(ErrorKind.INVALID_INPUT, "Invalid quantity")

    owned = player.holding(symbol)
    if owned is None:
        player.owned_stocks.append(OwnedStock(symbol, quantity, stock.current_price))
    else:
        total_quantity = owned.quantity + quantity
        owned.purchase_price = _round_half_up(
            (owned.purchase_price * owned.quantity + cost) / total_quantity
        )
        owned.quantity = total_quantity
    player.points -= cost
    player_repo.save_player(player)

    return OperationResult(
        success=True,
        message=f"{username} bought {quantity}x {symbol} at {stock.current_price} for {cost} points",
        player=player,
    )


def sell_stock(
    username: str,
    symbol: str,
    quantity: int,
    player_repo: PlayerRepository,
    stock_repo: StockRepository,
) -> OperationResult:
    player = player_repo.get_player(username)
    if player is None:
        return not_found(username)
    symbol = symbol.upper()
    stock = stock_repo.get_stock(symbol)
    if stock is None:
        return fail(ErrorKind.INVALID_INPUT, "Invalid stock")
    if quantity < 1:
        return fail(ErrorKind.INVALID_INPUT, "Invalid quantity")

    owned = player.holding(symbol)
    if owned is None:
        return fail(ErrorKind.INVALID_INPUT, f"{username}, you don't own any {symbol} to sell")
    if owned.quantity < quantity:
        return fail(ErrorKind.INVALID_INPUT, f"You don't have enough {symbol} to sell {quantity}")

    owned.quantity -= quantity
    if owned.quantity == 0:
        player.owned_stocks.remove(owned)
    profit = quantity * (stock.current_price - owned.purchase_price)
    player.points += quantity * stock.current_price
    player_repo.save_player(player)

    return OperationResult(
        success=True,
        message=f"{username} sold {quantity}x {symbol} at {stock.current_price} (Profit: {profit})",
        player=player,
    )


def get_portfolio(
    username: str,
    player_repo: PlayerRepository,
    stock_repo: StockRepository,
) -> OperationResult:
    player = player_repo.get_player(username)
    if player is None:
        return not_found(username)

    prices = {s.symbol: s.current_price for s in stock_repo.get_stocks()}
    # Delisted symbols have no price to show.
    entries = [
        f"{owned.quantity}x {owned.symbol} (C: {prices[owned.symbol]} | "
        f"bAt: {owned.purchase_price} | "
        f"{_percent_change(prices[owned.symbol], owned.purchase_price)})"
        for owned in player.owned_stocks
        if owned.symbol in prices
    ]
    return OperationResult(
        success=True,
        message=f"{username}'s portfolio: {', '.join(entries) or 'Empty'}",
        player=player,
    )
