from __future__ import annotations

import logging
from typing import FrozenSet

import telebot
from telebot.types import InlineKeyboardButton, InlineKeyboardMarkup

from application.services import ExternalContext
from interfaces.commands import ChatCommandRouter, normalize_username
from interfaces.telegram.callback_data import encode_duel_response, parse_duel_response


logger = logging.getLogger(__name__)


def _telegram_username(user) -> str:
    # Not every Telegram account has a public @username.
    return normalize_username(user.username or f"user{user.id}")


def _build_external_context(message, moderators: FrozenSet[str]) -> ExternalContext:
    """Extract a channel-agnostic context object from a Telegram message."""

    username = _telegram_username(message.from_user)
    return ExternalContext(
        provider="telegram",
        provider_user_id=str(message.from_user.id),
        username=username,
        is_moderator=username in moderators,
        channel_id=str(message.chat.id),
    )


def _strip_bot_mention(text: str) -> str:
    # In groups Telegram sends commands as "/command@BotName args".
    head, sep, rest = text.partition(" ")
    return head.split("@", 1)[0] + sep + rest


def _duel_markup(challenger: str) -> InlineKeyboardMarkup:
    markup = InlineKeyboardMarkup(row_width=2)
    markup.add(
        InlineKeyboardButton(
            "accept",
            callback_data=encode_duel_response(challenger, accepted=True),
        ),
        InlineKeyboardButton(
            "decline",
            callback_data=encode_duel_response(challenger, accepted=False),
        ),
    )
    return markup


def create_telegram_bot(
    bot_token: str,
    router: ChatCommandRouter,
    moderators: FrozenSet[str] = frozenset(),
) -> telebot.TeleBot:
    """
    Configure and return a TeleBot instance wired to the command router.

    This module contains only Telegram-specific concerns: turning messages
    and button presses into router calls and posting the replies. The router
    should be built with the "/" prefix.
    """

    bot = telebot.TeleBot(bot_token)

    @bot.message_handler(commands=["start"])
    def handle_start(message):
        bot.send_message(
            message.chat.id,
            "Welcome to the dumpster economy!\n"
            "Chat to earn points, then spend them on games.\n"
            "Type /help to see available commands.",
        )

    @bot.message_handler(content_types=["text"])
    def handle_text(message):
        external_ctx = _build_external_context(message, moderators)
        try:
            replies = router.handle(external_ctx, _strip_bot_mention(message.text))
        except Exception:
            logger.exception("Failed to handle message from %s", external_ctx.username)
            bot.send_message(message.chat.id, "Something went wrong, try again later.")
            return

        for reply in replies:
            if reply.duel is not None:
                challenger, _ = reply.duel
                bot.send_message(message.chat.id, reply.text, reply_markup=_duel_markup(challenger))
            else:
                bot.send_message(message.chat.id, reply.text)

    @bot.callback_query_handler(func=lambda call: call.data.startswith("duel:"))
    def handle_duel_response(call):
        """
        Handle the challenged player pressing accept or decline.
        """

        try:
            accepted, challenger = parse_duel_response(call.data)
        except ValueError:
            bot.answer_callback_query(call.id, "Invalid selection.")
            return

        opponent = _telegram_username(call.from_user)
        if not router.is_duel_pending(challenger, opponent):
            bot.answer_callback_query(call.id, "This duel isn't yours to answer.")
            return

        bot.edit_message_reply_markup(call.message.chat.id, call.message.id, reply_markup=None)
        try:
            replies = router.respond_to_duel(opponent, challenger, accepted)
        except Exception:
            logger.exception("Failed to resolve duel for %s", opponent)
            bot.send_message(call.message.chat.id, "Something went wrong, try again later.")
            return

        for reply in replies:
            bot.send_message(call.message.chat.id, reply.text)

    return bot
