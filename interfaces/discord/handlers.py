from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Tuple

import discord
from discord.ext import commands

from application.services import ExternalContext
from interfaces.commands import ChatCommandRouter, normalize_username


logger = logging.getLogger(__name__)

ACCEPT_EMOJI = "✅"
DECLINE_EMOJI = "❌"


def _build_external_context(
    message: discord.Message,
    moderators: FrozenSet[str],
) -> ExternalContext:
    """Create an `ExternalContext` from a Discord message."""

    author = message.author
    username = normalize_username(author.name)
    permissions = getattr(author, "guild_permissions", None)
    is_moderator = username in moderators or bool(
        permissions is not None and permissions.manage_messages
    )
    return ExternalContext(
        provider="discord",
        provider_user_id=str(author.id),
        username=username,
        is_moderator=is_moderator,
        channel_id=str(message.channel.id),
    )


def _prune_settled_duels(
    pending_duels: Dict[int, Tuple[str, str]],
    router: ChatCommandRouter,
) -> None:
    # Duels answered in chat, or replaced by a newer challenge, lose their reactions.
    for message_id, (challenger, opponent) in list(pending_duels.items()):
        if not router.is_duel_pending(challenger, opponent):
            del pending_duels[message_id]


def create_discord_bot(
    router: ChatCommandRouter,
    moderators: FrozenSet[str] = frozenset(),
) -> commands.Bot:
    """
    Configure and return a Discord bot that feeds every channel message to
    the command router. Duels can also be answered by reacting to the
    challenge message.
    """

    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.members = True
    intents.reactions = True

    # Commands are matched by the router, not by discord.py's command parser.
    bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)

    # Pending duel challenges keyed by the challenge message ID.
    pending_duels: Dict[int, Tuple[str, str]] = {}
    # value: (challenger_username, opponent_username)

    @bot.event
    async def on_ready():
        logger.info("Discord bot logged in as %s (id=%s)", bot.user, bot.user.id)

    @bot.event
    async def on_message(message: discord.Message):
        if message.author.bot:
            return

        external_ctx = _build_external_context(message, moderators)
        try:
            replies = router.handle(external_ctx, message.content)
        except Exception:
            logger.exception("Failed to handle message from %s", external_ctx.username)
            await message.channel.send("Something went wrong, try again later.")
            return

        _prune_settled_duels(pending_duels, router)
        for reply in replies:
            sent = await message.channel.send(reply.text)
            if reply.duel is not None:
                await sent.add_reaction(ACCEPT_EMOJI)
                await sent.add_reaction(DECLINE_EMOJI)
                pending_duels[sent.id] = reply.duel

    @bot.event
    async def on_reaction_add(reaction: discord.Reaction, user: discord.abc.User):
        # Ignore bot reactions and reactions not on tracked messages.
        if user.bot:
            return

        message_id = reaction.message.id
        if message_id not in pending_duels:
            return

        challenger, opponent = pending_duels[message_id]

        # Only the challenged player can answer.
        if normalize_username(user.name) != opponent:
            return

        emoji = str(reaction.emoji)
        if emoji not in (ACCEPT_EMOJI, DECLINE_EMOJI):
            return

        pending_duels.pop(message_id, None)
        try:
            replies = router.respond_to_duel(
                opponent, challenger, accepted=emoji == ACCEPT_EMOJI
            )
        except Exception:
            logger.exception("Failed to resolve duel for %s", opponent)
            return

        for reply in replies:
            await reaction.message.channel.send(reply.text)

    return bot
