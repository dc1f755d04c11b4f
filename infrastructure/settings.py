from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

from dotenv import load_dotenv

from domain.models import STARTING_POINTS
from domain.repositories import LotteryRepository, PlayerRepository, StockRepository


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read from the environment (and `.env`)."""

    discord_token: Optional[str] = None
    telegram_token: Optional[str] = None
    db_backend: str = "sqlite"
    db_path: str = "economy.db"
    postgres_params: dict = field(default_factory=dict)
    moderators: FrozenSet[str] = frozenset()
    starting_points: int = STARTING_POINTS
    log_level: str = "INFO"


def _split_names(raw: str) -> FrozenSet[str]:
    return frozenset(name.strip().lower() for name in raw.split(",") if name.strip())


def load_settings() -> Settings:
    load_dotenv()
    env = os.environ
    return Settings(
        discord_token=env.get("DISCORD_TOKEN"),
        telegram_token=env.get("TELEGRAM_TOKEN"),
        db_backend=env.get("DB_BACKEND", "sqlite").lower(),
        db_path=env.get("DB_PATH", "economy.db"),
        postgres_params={
            "host": env.get("POSTGRES_HOST", "localhost"),
            "port": int(env.get("POSTGRES_PORT", "5432")),
            "dbname": env.get("POSTGRES_DB", "economy"),
            "user": env.get("POSTGRES_USER", "postgres"),
            "password": env.get("POSTGRES_PASSWORD", ""),
        },
        moderators=_split_names(env.get("MODERATORS", "")),
        starting_points=int(env.get("STARTING_POINTS", str(STARTING_POINTS))),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_repositories(
    settings: Settings,
) -> Tuple[PlayerRepository, LotteryRepository, StockRepository]:
    if settings.db_backend == "postgres":
        from infrastructure.db.lottery_repository_postgres import PostgresLotteryRepository
        from infrastructure.db.player_repository_postgres import PostgresPlayerRepository
        from infrastructure.db.stock_repository_postgres import PostgresStockRepository

        return (
            PostgresPlayerRepository(settings.postgres_params, settings.starting_points),
            PostgresLotteryRepository(settings.postgres_params),
            PostgresStockRepository(settings.postgres_params),
        )
    if settings.db_backend != "sqlite":
        raise RuntimeError(f"Unknown DB_BACKEND: {settings.db_backend!r}")

    from infrastructure.db.lottery_repository_sqlite import SqliteLotteryRepository
    from infrastructure.db.player_repository_sqlite import SqlitePlayerRepository
    from infrastructure.db.stock_repository_sqlite import SqliteStockRepository

    return (
        SqlitePlayerRepository(settings.db_path, settings.starting_points),
        SqliteLotteryRepository(settings.db_path),
        SqliteStockRepository(settings.db_path),
    )
