from __future__ import annotations

import psycopg2

from domain.models import LotteryState
from domain.repositories import LotteryRepository


class PostgresLotteryRepository(LotteryRepository):
    """
    Postgres-backed implementation of `LotteryRepository`.

    Schema (minimal):
      - id SMALLINT, always 1
      - lottery_bonus BIGINT
      - scamball_jackpot BIGINT
    """

    def __init__(self, db_params: dict) -> None:
        self._db_params = db_params
        self._ensure_table()

    def _get_connection(self):
        return psycopg2.connect(**self._db_params)

    def _ensure_table(self) -> None:
        defaults = LotteryState()
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS lottery (
                        id SMALLINT PRIMARY KEY CHECK (id = 1),
                        lottery_bonus BIGINT NOT NULL,
                        scamball_jackpot BIGINT NOT NULL
                    )
                    """
                )
                cur.execute(
                    """
                    INSERT INTO lottery (id, lottery_bonus, scamball_jackpot)
                    VALUES (1, %s, %s)
                    ON CONFLICT (id) DO NOTHING
                    """,
                    (defaults.lottery_bonus, defaults.scamball_jackpot),
                )
                conn.commit()

    def get_lottery(self) -> LotteryState:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT lottery_bonus, scamball_jackpot FROM lottery WHERE id = 1")
                row = cur.fetchone()
                return LotteryState(lottery_bonus=int(row[0]), scamball_jackpot=int(row[1]))

    def save_lottery(self, lottery: LotteryState) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE lottery
                    SET lottery_bonus = %s, scamball_jackpot = %s
                    WHERE id = 1
                    """,
                    (lottery.lottery_bonus, lottery.scamball_jackpot),
                )
                conn.commit()
