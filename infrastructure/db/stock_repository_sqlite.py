from __future__ import annotations

import logging
import sqlite3
from typing import List, Optional, Sequence

from domain.catalog import DEFAULT_STOCKS
from domain.models import Stock
from domain.repositories import StockRepository


logger = logging.getLogger(__name__)


class SqliteStockRepository(StockRepository):
    """
    SQLite-backed implementation of `StockRepository`.

    Opening the repository lists any missing symbol at its opening price and
    delists stored symbols that are no longer configured. Prices already in
    the table are kept.
    """

    def __init__(self, db_path: str, listings: Sequence[Stock] = DEFAULT_STOCKS) -> None:
        self._db_path = db_path
        self._ensure_table(listings)

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_table(self, listings: Sequence[Stock]) -> None:
        symbols = [stock.symbol for stock in listings]
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS stocks (
                    symbol TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    current_price INTEGER NOT NULL,
                    last_price INTEGER NOT NULL
                )
                """
            )
            for position, stock in enumerate(listings):
                cur.execute(
                    """
                    INSERT INTO stocks (symbol, position, current_price, last_price)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT (symbol) DO UPDATE SET position = excluded.position
                    """,
                    (stock.symbol, position, stock.current_price, stock.last_price),
                )
            placeholders = ", ".join("?" for _ in symbols)
            cur.execute(f"DELETE FROM stocks WHERE symbol NOT IN ({placeholders})", symbols)
            if cur.rowcount:
                logger.info("Delisted %d stock(s) no longer configured", cur.rowcount)
            conn.commit()

    def get_stocks(self) -> List[Stock]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT symbol, current_price, last_price FROM stocks ORDER BY position"
            )
            return [Stock(row[0], int(row[1]), int(row[2])) for row in cur.fetchall()]

    def get_stock(self, symbol: str) -> Optional[Stock]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT symbol, current_price, last_price FROM stocks WHERE symbol = ?",
                (symbol,),
            )
            row = cur.fetchone()
            if not row:
                return None
            return Stock(row[0], int(row[1]), int(row[2]))

    def save_stocks(self, stocks: List[Stock]) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.executemany(
                "UPDATE stocks SET current_price = ?, last_price = ? WHERE symbol = ?",
                [(s.current_price, s.last_price, s.symbol) for s in stocks],
            )
            conn.commit()
