import logging

from infrastructure.settings import build_repositories, configure_logging, load_settings
from interfaces.commands import ChatCommandRouter
from interfaces.telegram.handlers import create_telegram_bot


logger = logging.getLogger(__name__)


def main() -> None:
    settings = load_settings()
    configure_logging(settings)
    if not settings.telegram_token:
        raise RuntimeError("TELEGRAM_TOKEN environment variable is not set.")

    player_repo, lottery_repo, stock_repo = build_repositories(settings)
    router = ChatCommandRouter(
        player_repo,
        lottery_repo,
        prefix="/",
        starting_points=settings.starting_points,
        stock_repo=stock_repo,
    )

    bot = create_telegram_bot(settings.telegram_token, router, settings.moderators)
    logger.info("Telegram bot polling")
    bot.infinity_polling()


if __name__ == "__main__":
    main()
