from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from domain.catalog import RACCOON, find_emoji, store_listing
from domain.errors import ErrorKind
from domain.models import STARTING_POINTS, Emoji, LotteryState, PlayerAccount
from domain.random_source import RandomSource
from domain.repositories import PlayerRepository


logger = logging.getLogger(__name__)


@dataclass
class ExternalContext:
    """
    Information about the caller from a particular channel (Discord, Telegram).

    The application layer never depends on concrete SDK types; it only sees
    this small context object.
    """

    provider: str
    provider_user_id: str
    username: str
    is_moderator: bool = False
    channel_id: str = ""


@dataclass
class OperationResult:
    """
    Result of a single service call.

    `message` is always user-facing text. On failure `error` names the reason
    and nothing was persisted. `outcome` is a short machine-readable tag for
    successful game results (e.g. "bust", "push", "raccoon").
    """

    success: bool
    message: str
    error: Optional[ErrorKind] = None
    outcome: Optional[str] = None
    player: Optional[PlayerAccount] = None
    lottery: Optional[LotteryState] = None


def fail(kind: ErrorKind, message: str) -> OperationResult:
    return OperationResult(success=False, message=message, error=kind)


def not_found(username: str) -> OperationResult:
    return fail(ErrorKind.NOT_FOUND, f"{username} not found")


def award_chat_point(username: str, player_repo: PlayerRepository) -> PlayerAccount:
    """Every chat line is worth one point. First contact creates the player."""

    player = player_repo.get_or_create_player(username)
    player.points += 1
    player_repo.save_player(player)
    return player


def get_points(username: str, player_repo: PlayerRepository) -> OperationResult:
    player = player_repo.get_player(username)
    if player is None:
        return not_found(username)
    return OperationResult(
        success=True,
        message=f"{username} has {player.points} points",
        player=player,
    )


def get_leaderboard(player_repo: PlayerRepository, limit: int = 5) -> List[str]:
    players = player_repo.get_top_players(limit)
    return [
        f"{position}. {p.username} - {p.points} points"
        for position, p in enumerate(players, start=1)
    ]


def donate(
    sender_name: str,
    recipient_name: str,
    amount: int,
    player_repo: PlayerRepository,
) -> OperationResult:
    """
    Move `amount` points from the sender to the recipient.
    """

    sender = player_repo.get_player(sender_name)
    recipient = player_repo.get_player(recipient_name)
    if sender is None or recipient is None:
        return not_found(recipient_name if sender is not None else sender_name)

    if amount < 1 or amount > sender.points:
        return fail(ErrorKind.INVALID_INPUT, "Invalid donation amount")
    if sender.username.lower() == recipient.username.lower():
        return fail(ErrorKind.INVALID_INPUT, "You can't donate points to yourself! scammer >:(")

    sender.points -= amount
    recipient.points += amount
    player_repo.save_player(sender)
    player_repo.save_player(recipient)

    return OperationResult(
        success=True,
        message=f"{sender.username} donated {amount} points to {recipient.username}",
        player=sender,
    )


def gamble(
    username: str,
    amount: Union[int, str],
    player_repo: PlayerRepository,
    rng: RandomSource,
) -> OperationResult:
    """
    Roll 1-100: under 50 loses the stake, anything else doubles it.

    `amount` may be the string "all" to stake the whole balance.
    """

    player = player_repo.get_player(username)
    if player is None:
        return not_found(username)

    bet = player.points if amount == "all" else int(amount)
    if bet < 1 or bet > player.points:
        return fail(ErrorKind.INVALID_BET, "Invalid bet")

    roll = rng.randint(1, 100)
    if roll < 50:
        player.points -= bet
        face, outcome = ":(", "lose"
    else:
        player.points += bet
        face, outcome = ":)", "win"
    player_repo.save_player(player)

    return OperationResult(
        success=True,
        message=f"{username} rolled a {roll}. {username} now has {player.points} points {face}",
        outcome=outcome,
        player=player,
    )


def challenge_duel(
    challenger_name: str,
    opponent_name: str,
    amount: int,
    player_repo: PlayerRepository,
) -> OperationResult:
    """
    Start a duel. The stake is taken from both players up front and held
    until the opponent accepts or declines.
    """

    challenger = player_repo.get_player(challenger_name)
    opponent = player_repo.get_player(opponent_name)
    if challenger is None or opponent is None:
        return not_found(opponent_name if challenger is not None else challenger_name)

    if challenger.username == opponent.username:
        return fail(ErrorKind.INVALID_INPUT, "You can't duel yourself!")
    if amount < 1 or amount > challenger.points or amount > opponent.points:
        return fail(ErrorKind.INVALID_BET, "Invalid duel amount")
    if challenger.is_dueling:
        return fail(
            ErrorKind.ALREADY_DUELING,
            f"You are already in a duel with {challenger.duel_opponent}",
        )
    if opponent.is_dueling:
        return fail(
            ErrorKind.ALREADY_DUELING,
            f"{opponent.username} is already in a duel with {opponent.duel_opponent}",
        )

    for player, other in ((challenger, opponent), (opponent, challenger)):
        player.points -= amount
        player.duel_bet = amount
        player.is_dueling = True
        player.duel_opponent = other.username
    challenger.duel_initiator = True

    player_repo.save_player(challenger)
    player_repo.save_player(opponent)

    return OperationResult(
        success=True,
        message=(
            f"{challenger.username} has challenged {opponent.username} to a duel "
            f"for {amount} points! {opponent.username}, do you accept or decline?"
        ),
        outcome="challenged",
        player=challenger,
    )


def _load_duel_pair(
    username: str,
    player_repo: PlayerRepository,
    challenger: Optional[str] = None,
):
    player = player_repo.get_player(username)
    if player is None or not player.is_dueling:
        return player, None
    # An answer aimed at a specific challenge must come from its challenged side.
    if challenger is not None and (
        player.duel_opponent != challenger or player.duel_initiator
    ):
        return player, None
    opponent = player_repo.get_player(player.duel_opponent)
    if (
        opponent is None
        or not opponent.is_dueling
        or opponent.duel_opponent != player.username
    ):
        return player, None
    return player, opponent


def accept_duel(
    username: str,
    player_repo: PlayerRepository,
    rng: RandomSource,
    challenger: Optional[str] = None,
) -> OperationResult:
    """
    Settle the duel `username` has pending. When `challenger` is given, only
    a duel started by that player is settled.
    """

    player, opponent = _load_duel_pair(username, player_repo, challenger)
    if player is None:
        return not_found(username)
    if opponent is None:
        return fail(ErrorKind.NOT_DUELING, f"{username}, you have no pending duel.")
    if player.duel_initiator:
        return fail(ErrorKind.FORBIDDEN, f"{username}, you can't accept a duel you initiated!")

    roll = rng.randint(1, 100)
    winner = player if roll > 50 else opponent
    winner.points += 2 * winner.duel_bet
    message = f"{winner.username} won the duel! {winner.username} now has {winner.points} points"

    player.clear_duel()
    opponent.clear_duel()
    player_repo.save_player(player)
    player_repo.save_player(opponent)

    logger.info("Duel between %s and %s won by %s", player.username, opponent.username, winner.username)
    return OperationResult(
        success=True,
        message=message,
        outcome="win" if winner is player else "lose",
        player=player,
    )


def decline_duel(
    username: str,
    player_repo: PlayerRepository,
    challenger: Optional[str] = None,
) -> OperationResult:
    player, opponent = _load_duel_pair(username, player_repo, challenger)
    if player is None:
        return not_found(username)
    if opponent is None:
        return fail(ErrorKind.NOT_DUELING, f"{username}, you have no pending duel.")

    for p in (player, opponent):
        p.points += p.duel_bet
        p.clear_duel()
    player_repo.save_player(player)
    player_repo.save_player(opponent)

    return OperationResult(
        success=True,
        message=f"{username} declined the duel. maybe next time :(",
        outcome="declined",
        player=player,
    )


def is_duel_pending(challenger: str, opponent: str, player_repo: PlayerRepository) -> bool:
    _, other = _load_duel_pair(opponent, player_repo, challenger)
    return other is not None


def list_store(catalog: Sequence[Emoji]) -> str:
    items = ", ".join(f"{e.character} ({e.price})" for e in store_listing(catalog))
    return f"Available to buy: {items}"


def get_collection(username: str, player_repo: PlayerRepository) -> OperationResult:
    player = player_repo.get_player(username)
    if player is None:
        return not_found(username)
    if not player.emoji_collection:
        text = f"{username} has nothing but dust in their collection :("
    else:
        text = f"{username}'s collection: {' , '.join(player.emoji_collection)}"
    return OperationResult(success=True, message=text, player=player)


def buy_emoji(
    username: str,
    item: str,
    catalog: Sequence[Emoji],
    player_repo: PlayerRepository,
) -> OperationResult:
    player = player_repo.get_player(username)
    if player is None:
        return not_found(username)

    emoji = find_emoji(catalog, item)
    if emoji is None:
        return fail(ErrorKind.INVALID_INPUT, f"{item} is not for sale")
    if emoji.is_hidden or emoji.price <= 0:
        return fail(ErrorKind.INVALID_INPUT, f"{emoji.character} can't be bought, only found...")
    if player.owns(emoji.character):
        return fail(ErrorKind.INVALID_INPUT, f"You already own {emoji.character}")
    if player.points < emoji.price:
        return fail(
            ErrorKind.INSUFFICIENT_POINTS,
            f"You need {emoji.price - player.points} more points to buy {emoji.character}",
        )

    player.points -= emoji.price
    player.add_emoji(emoji.character)
    player_repo.save_player(player)

    return OperationResult(
        success=True,
        message=f"{username} bought an emoji: {emoji.character}",
        player=player,
    )


def sell_emoji(
    username: str,
    item: str,
    catalog: Sequence[Emoji],
    player_repo: PlayerRepository,
) -> OperationResult:
    player = player_repo.get_player(username)
    if player is None:
        return not_found(username)

    emoji = find_emoji(catalog, item)
    if emoji is None:
        return fail(ErrorKind.INVALID_INPUT, f"{item} is not a known emoji")
    if emoji.character == RACCOON and player.owns(RACCOON):
        return fail(
            ErrorKind.FORBIDDEN,
            f"{username}, you can't sell your best friend! {RACCOON} is here to stay.",
        )
    if emoji.price == 0:
        return fail(ErrorKind.FORBIDDEN, f"{username}, this emoji cannot be sold!")
    if not player.owns(emoji.character):
        return fail(ErrorKind.INVALID_INPUT, f"You don't own {emoji.character}")

    player.points += emoji.price
    player.emoji_collection.remove(emoji.character)
    player_repo.save_player(player)

    return OperationResult(
        success=True,
        message=f"{username} parted ways with {emoji.character}",
        player=player,
    )


def set_points(
    ctx: ExternalContext,
    username: str,
    points: int,
    player_repo: PlayerRepository,
) -> OperationResult:
    """Moderator tool: overwrite a player's balance."""

    if not ctx.is_moderator:
        return fail(ErrorKind.FORBIDDEN, "MOD ONLY")
    if points < 0:
        return fail(ErrorKind.INVALID_INPUT, "Points can't be negative")

    player = player_repo.get_player(username)
    if player is None:
        return fail(ErrorKind.NOT_FOUND, f"{username} does not exist")

    player.points = points
    player_repo.save_player(player)
    logger.info("%s set %s to %d points", ctx.username, username, points)
    return OperationResult(
        success=True,
        message=f"{username} now has {points} points",
        player=player,
    )


def reset_points(
    ctx: ExternalContext,
    catalog: Sequence[Emoji],
    player_repo: PlayerRepository,
    starting_points: int = STARTING_POINTS,
) -> OperationResult:
    """
    Moderator tool: put every player back on the starting balance, empty
    every portfolio and strip every emoji that can be bought, keeping hidden
    finds like the raccoon.

    A failed save is logged and skipped; players saved before it keep their
    reset.
    """

    if not ctx.is_moderator:
        return fail(ErrorKind.FORBIDDEN, "MOD ONLY")

    purchasable = {e.character for e in catalog if not e.is_hidden}
    failed: List[str] = []
    for player in player_repo.get_all_players():
        player.points = starting_points
        player.owned_stocks = []
        player.emoji_collection = [
            c for c in player.emoji_collection if c not in purchasable
        ]
        try:
            player_repo.save_player(player)
        except Exception:
            logger.exception("Failed to reset player %s", player.username)
            failed.append(player.username)

    message = (
        f"All users have been reset to {starting_points} points, "
        "portfolios cleared, and non-hidden emojis removed."
    )
    if failed:
        message += f" {len(failed)} user(s) could not be reset: {', '.join(failed)}"
    logger.info("%s reset all players (%d failures)", ctx.username, len(failed))
    return OperationResult(success=not failed, message=message)
