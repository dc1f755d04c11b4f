from __future__ import annotations

import logging

from domain.cards import CardDeck, format_hand, hand_value, is_natural
from domain.errors import ErrorKind
from domain.models import NotPlaying, PlayerAccount, PlayerTurn
from domain.random_source import RandomSource
from domain.repositories import PlayerRepository

from .services import OperationResult, fail, not_found


logger = logging.getLogger(__name__)

DEALER_STANDS_ON = 17


def _actions_hint(prefix: str) -> str:
    return (
        f"Type {prefix}hit to draw another card, {prefix}double to double down "
        f"(if you can afford it), or {prefix}stand to stick with your cards."
    )


def _round_deck(player: PlayerAccount, rng: RandomSource) -> CardDeck:
    """A deck for this player's round: everything not already on the table."""

    return CardDeck(rng, exclude=[*player.blackjack_hand, *player.dealer_hand])


def _describe_hand(hand) -> str:
    return f"{hand_value(hand)} ({format_hand(hand)})"


def _not_playing(username: str) -> OperationResult:
    return fail(ErrorKind.NOT_PLAYING, f"{username}, you are not currently playing blackjack.")


def _finish(
    player: PlayerAccount,
    player_repo: PlayerRepository,
    message: str,
    outcome: str,
) -> OperationResult:
    player.clear_table()
    player_repo.save_player(player)
    logger.info("Blackjack round for %s ended: %s", player.username, outcome)
    return OperationResult(success=True, message=message, outcome=outcome, player=player)


def deal(
    username: str,
    bet: int,
    player_repo: PlayerRepository,
    rng: RandomSource,
    prefix: str = "!",
) -> OperationResult:
    """
    Start a round: two cards for the player, one face-up card for the dealer.

    A natural blackjack is settled immediately (3:2, or a push when the
    dealer also has one). `prefix` is the chat command prefix used in the
    hint about what to type next.
    """

    player = player_repo.get_player(username)
    if player is None:
        return not_found(username)

    state = player.table_state()
    if isinstance(state, PlayerTurn):
        return fail(
            ErrorKind.ALREADY_PLAYING,
            f"{username}, you are already playing blackjack! "
            f"Your hand: {_describe_hand(state.hand)} "
            f"Dealer shows: {hand_value(state.dealer_hand[:1])} ({state.dealer_hand[0]}). "
            f"{_actions_hint(prefix)}",
        )

    if bet < 1 or bet > player.points:
        return fail(
            ErrorKind.INVALID_BET,
            f"{username}, invalid bet. Your current balance is {player.points}",
        )

    deck = CardDeck(rng)
    player.points -= bet
    hand = [deck.draw(), deck.draw()]
    dealer_hand = [deck.draw()]
    player.start_round(bet, hand, dealer_hand)

    if is_natural(player.blackjack_hand):
        player.dealer_hand.append(deck.draw())
        hands = (
            f"Your hand: {format_hand(player.blackjack_hand)}, "
            f"Dealer's hand: {format_hand(player.dealer_hand)}"
        )
        if is_natural(player.dealer_hand):
            player.points += bet
            return _finish(
                player,
                player_repo,
                f"{username}, both you and dealer have Blackjack! Push. {hands}",
                "push",
            )
        player.points += bet + int(bet * 1.5)
        return _finish(
            player,
            player_repo,
            f"{username} got Blackjack! You win! {hands}",
            "blackjack",
        )

    player_repo.save_player(player)
    return OperationResult(
        success=True,
        message=(
            f"{username}, dealing cards! Your hand: {_describe_hand(player.blackjack_hand)}, "
            f"Dealer shows: {_describe_hand(player.dealer_hand)}. {_actions_hint(prefix)}"
        ),
        outcome="dealt",
        player=player,
    )


def hit(username: str, player_repo: PlayerRepository, rng: RandomSource) -> OperationResult:
    player = player_repo.get_player(username)
    if player is None:
        return not_found(username)
    if isinstance(player.table_state(), NotPlaying):
        return _not_playing(username)

    player.blackjack_hand.append(_round_deck(player, rng).draw())
    value = hand_value(player.blackjack_hand)
    if value > 21:
        return _finish(
            player,
            player_repo,
            f"{username} busts! Your hand value is {_describe_hand(player.blackjack_hand)}.",
            "bust",
        )

    player_repo.save_player(player)
    return OperationResult(
        success=True,
        message=f"{username}, your new hand: {_describe_hand(player.blackjack_hand)}",
        outcome="hit",
        player=player,
    )


def double_down(
    username: str,
    player_repo: PlayerRepository,
    rng: RandomSource,
) -> OperationResult:
    """
    Double the stake, take exactly one more card, then stand.
    """

    player = player_repo.get_player(username)
    if player is None:
        return not_found(username)
    if isinstance(player.table_state(), NotPlaying):
        return _not_playing(username)
    if player.points < player.blackjack_bet:
        return fail(
            ErrorKind.INSUFFICIENT_POINTS,
            f"{username}, insufficient points to double down",
        )

    deck = _round_deck(player, rng)
    player.points -= player.blackjack_bet
    player.blackjack_bet *= 2
    player.blackjack_hand.append(deck.draw())

    if hand_value(player.blackjack_hand) > 21:
        return _finish(
            player,
            player_repo,
            f"{username} busts! Your hand value is {_describe_hand(player.blackjack_hand)}.",
            "bust",
        )
    return _settle(player, player_repo, deck)


def stand(username: str, player_repo: PlayerRepository, rng: RandomSource) -> OperationResult:
    player = player_repo.get_player(username)
    if player is None:
        return not_found(username)
    if isinstance(player.table_state(), NotPlaying):
        return _not_playing(username)
    return _settle(player, player_repo, _round_deck(player, rng))


def _settle(
    player: PlayerAccount,
    player_repo: PlayerRepository,
    deck: CardDeck,
) -> OperationResult:
    """Let the dealer draw to 17 or more, then pay out and clear the table."""

    username = player.username
    while hand_value(player.dealer_hand) < DEALER_STANDS_ON:
        player.dealer_hand.append(deck.draw())

    player_value = hand_value(player.blackjack_hand)
    dealer_value = hand_value(player.dealer_hand)
    hands = (
        f"Your hand value: {player_value} ({format_hand(player.blackjack_hand)}), "
        f"Dealer final hand: {dealer_value} ({format_hand(player.dealer_hand)})"
    )
    bet = player.blackjack_bet

    if dealer_value > 21:
        player.points += 2 * bet
        return _finish(player, player_repo, f"Dealer busts! {username} wins! {hands}", "dealer_bust")
    if player_value > dealer_value:
        player.points += 2 * bet
        return _finish(player, player_repo, f"{username} wins! {hands}", "win")
    if player_value < dealer_value:
        return _finish(player, player_repo, f"{username} loses! {hands}", "lose")
    player.points += bet
    return _finish(player, player_repo, f"{username}, it's a tie! {hands}", "push")
