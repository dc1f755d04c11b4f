from infrastructure.settings import build_repositories, configure_logging, load_settings
from interfaces.commands import ChatCommandRouter
from interfaces.discord.handlers import create_discord_bot


def main() -> None:
    settings = load_settings()
    configure_logging(settings)
    if not settings.discord_token:
        raise RuntimeError("DISCORD_TOKEN environment variable is not set.")

    player_repo, lottery_repo, stock_repo = build_repositories(settings)
    router = ChatCommandRouter(
        player_repo,
        lottery_repo,
        prefix="!",
        starting_points=settings.starting_points,
        stock_repo=stock_repo,
    )

    bot = create_discord_bot(router, settings.moderators)
    # Logging is already configured above.
    bot.run(settings.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
