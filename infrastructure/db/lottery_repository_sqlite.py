from __future__ import annotations

import sqlite3

from domain.models import LotteryState
from domain.repositories import LotteryRepository


class SqliteLotteryRepository(LotteryRepository):
    """
    SQLite-backed implementation of `LotteryRepository`.

    The `lottery` table holds a single row (id = 1).
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_table(self) -> None:
        defaults = LotteryState()
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS lottery (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    lottery_bonus INTEGER NOT NULL,
                    scamball_jackpot INTEGER NOT NULL
                )
                """
            )
            cur.execute(
                """
                INSERT OR IGNORE INTO lottery (id, lottery_bonus, scamball_jackpot)
                VALUES (1, ?, ?)
                """,
                (defaults.lottery_bonus, defaults.scamball_jackpot),
            )
            conn.commit()

    def get_lottery(self) -> LotteryState:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT lottery_bonus, scamball_jackpot FROM lottery WHERE id = 1")
            row = cur.fetchone()
            return LotteryState(lottery_bonus=int(row[0]), scamball_jackpot=int(row[1]))

    def save_lottery(self, lottery: LotteryState) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE lottery
                SET lottery_bonus = ?, scamball_jackpot = ?
                WHERE id = 1
                """,
                (lottery.lottery_bonus, lottery.scamball_jackpot),
            )
            conn.commit()
