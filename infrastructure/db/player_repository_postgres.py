from __future__ import annotations

from typing import List, Optional

import psycopg2

from domain.models import STARTING_POINTS, PlayerAccount
from domain.repositories import PlayerRepository

from .player_rows import PLAYER_COLUMNS, to_domain, to_row


_SELECT = f"SELECT {', '.join(PLAYER_COLUMNS)} FROM players"


class PostgresPlayerRepository(PlayerRepository):
    """
    Postgres-backed implementation of `PlayerRepository`.

    Uses the same `players` table layout as `SqlitePlayerRepository`, so the
    row mapping in `player_rows` is shared between the two.
    """

    def __init__(self, db_params: dict, starting_points: int = STARTING_POINTS) -> None:
        self._db_params = db_params
        self._starting_points = starting_points
        self._ensure_table()

    def _get_connection(self):
        return psycopg2.connect(**self._db_params)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS players (
                        username TEXT PRIMARY KEY,
                        points BIGINT NOT NULL DEFAULT 1000,
                        blackjack_bet BIGINT NOT NULL DEFAULT 0,
                        blackjack_hand TEXT NOT NULL DEFAULT '[]',
                        dealer_hand TEXT NOT NULL DEFAULT '[]',
                        emoji_collection TEXT NOT NULL DEFAULT '[]',
                        is_dueling BOOLEAN NOT NULL DEFAULT FALSE,
                        duel_initiator BOOLEAN NOT NULL DEFAULT FALSE,
                        duel_opponent TEXT NOT NULL DEFAULT '',
                        duel_bet BIGINT NOT NULL DEFAULT 0,
                        last_dumpster_dive TEXT,
                        dumpster_ban_until TEXT,
                        owned_stocks TEXT NOT NULL DEFAULT '[]'
                    )
                    """
                )
                conn.commit()

    def get_player(self, username: str) -> Optional[PlayerAccount]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"{_SELECT} WHERE username = %s", (username,))
                row = cur.fetchone()
                if not row:
                    return None
                return to_domain(row)

    def get_or_create_player(self, username: str) -> PlayerAccount:
        existing = self.get_player(username)
        if existing is not None:
            return existing

        player = PlayerAccount(username=username, points=self._starting_points)
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO players (username, points)
                    VALUES (%s, %s)
                    ON CONFLICT (username) DO NOTHING
                    """,
                    (player.username, player.points),
                )
                conn.commit()
        return self.get_player(username) or player

    def get_all_players(self) -> List[PlayerAccount]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(_SELECT)
                return [to_domain(row) for row in cur.fetchall()]

    def get_top_players(self, limit: int) -> List[PlayerAccount]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"{_SELECT} ORDER BY points DESC LIMIT %s", (limit,))
                return [to_domain(row) for row in cur.fetchall()]

    def save_player(self, player: PlayerAccount) -> None:
        placeholders = ", ".join("%s" for _ in PLAYER_COLUMNS)
        updates = ", ".join(f"{col} = EXCLUDED.{col}" for col in PLAYER_COLUMNS[1:])
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    INSERT INTO players ({', '.join(PLAYER_COLUMNS)})
                    VALUES ({placeholders})
                    ON CONFLICT (username) DO UPDATE SET {updates}
                    """,
                    to_row(player),
                )
                conn.commit()
