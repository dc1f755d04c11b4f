from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import psycopg2

from domain.catalog import DEFAULT_STOCKS
from domain.models import Stock
from domain.repositories import StockRepository


logger = logging.getLogger(__name__)


class PostgresStockRepository(StockRepository):
    """
    Postgres-backed implementation of `StockRepository`.

    Same table layout and start-up listing rules as `SqliteStockRepository`.
    """

    def __init__(self, db_params: dict, listings: Sequence[Stock] = DEFAULT_STOCKS) -> None:
        self._db_params = db_params
        self._ensure_table(listings)

    def _get_connection(self):
        return psycopg2.connect(**self._db_params)

    def _ensure_table(self, listings: Sequence[Stock]) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS stocks (
                        symbol TEXT PRIMARY KEY,
                        position INTEGER NOT NULL,
                        current_price BIGINT NOT NULL,
                        last_price BIGINT NOT NULL
                    )
                    """
                )
                for position, stock in enumerate(listings):
                    cur.execute(
                        """
                        INSERT INTO stocks (symbol, position, current_price, last_price)
                        VALUES (%s, %s, %s, %s)
                        ON CONFLICT (symbol) DO UPDATE SET position = EXCLUDED.position
                        """,
                        (stock.symbol, position, stock.current_price, stock.last_price),
                    )
                cur.execute(
                    "DELETE FROM stocks WHERE NOT (symbol = ANY(%s))",
                    ([stock.symbol for stock in listings],),
                )
                if cur.rowcount:
                    logger.info("Delisted %d stock(s) no longer configured", cur.rowcount)
                conn.commit()

    def get_stocks(self) -> List[Stock]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT symbol, current_price, last_price FROM stocks ORDER BY position"
                )
                return [Stock(row[0], int(row[1]), int(row[2])) for row in cur.fetchall()]

    def get_stock(self, symbol: str) -> Optional[Stock]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT symbol, current_price, last_price FROM stocks WHERE symbol = %s",
                    (symbol,),
                )
                row = cur.fetchone()
                if not row:
                    return None
                return Stock(row[0], int(row[1]), int(row[2]))

    def save_stocks(self, stocks: List[Stock]) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.executemany(
                    "UPDATE stocks SET current_price = %s, last_price = %s WHERE symbol = %s",
                    [(s.current_price, s.last_price, s.symbol) for s in stocks],
                )
                conn.commit()
