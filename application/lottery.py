from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from domain.errors import ErrorKind
from domain.models import SCAMBALL_BASE_JACKPOT
from domain.random_source import RandomSource
from domain.repositories import LotteryRepository, PlayerRepository

from .services import OperationResult, fail, not_found


logger = logging.getLogger(__name__)

LOTTERY_TICKET_PRICE = 100
LOTTERY_MAX_NUMBER = 1000
LOTTERY_BASE_PRIZE = 1_000_000
LOTTERY_BONUS_PER_TICKET = 99

SCAMBALL_TICKET_PRICE = 2
SCAMBALL_PICKS = 5
SCAMBALL_MAX_NUMBER = 69
SCAMBALL_MAX_SPECIAL = 26

# (matches, special hit) -> prize. The 5 + special grand prize is the
# rolling jackpot and is handled separately.
SCAMBALL_PRIZES = {
    (5, False): 1_000_000,
    (4, True): 50_000,
    (4, False): 100,
    (3, True): 100,
    (3, False): 7,
    (2, True): 7,
    (1, True): 4,
    (0, True): 4,
}

LOTTERY_RULES = (
    f"Lottery Rules: Cost is {LOTTERY_TICKET_PRICE} points per ticket. "
    f"Pick a number between 1-{LOTTERY_MAX_NUMBER}. If your number matches the winning "
    f"number, you win the jackpot ({LOTTERY_BASE_PRIZE:,} points + bonus pot)! "
    f"Every losing ticket adds {LOTTERY_BONUS_PER_TICKET} points to the bonus pot."
)


def lottery_roll(
    username: str,
    pick: int,
    player_repo: PlayerRepository,
    lottery_repo: LotteryRepository,
    rng: RandomSource,
) -> OperationResult:
    """
    Buy a single-number ticket and draw immediately.

    A win pays the base prize plus the bonus pot and empties the pot; every
    losing ticket grows the pot.
    """

    if pick < 1 or pick > LOTTERY_MAX_NUMBER:
        return fail(ErrorKind.INVALID_INPUT, "Invalid number")

    player = player_repo.get_player(username)
    if player is None:
        return not_found(username)
    if player.points < LOTTERY_TICKET_PRICE:
        return fail(
            ErrorKind.INSUFFICIENT_POINTS,
            f"{username}, you need {LOTTERY_TICKET_PRICE - player.points} "
            "more points to buy a lottery ticket",
        )

    lottery = lottery_repo.get_lottery()
    player.points -= LOTTERY_TICKET_PRICE
    winning = rng.randint(1, LOTTERY_MAX_NUMBER)

    if pick == winning:
        prize = LOTTERY_BASE_PRIZE + lottery.lottery_bonus
        player.points += prize
        lottery.lottery_bonus = 0
        outcome = "win"
        message = (
            f"Congratulations! {username} won the lottery! The winning number was "
            f"{winning}. {username} now has {player.points} points"
        )
        logger.info("%s won the lottery for %d points", username, prize)
    else:
        lottery.lottery_bonus += LOTTERY_BONUS_PER_TICKET
        outcome = "lose"
        message = (
            f"Better luck next time! The winning number was {winning}. "
            f"The jackpot is now {LOTTERY_BASE_PRIZE + lottery.lottery_bonus} points. "
            f"{username} now has {player.points} points"
        )

    player_repo.save_player(player)
    lottery_repo.save_lottery(lottery)
    return OperationResult(
        success=True,
        message=message,
        outcome=outcome,
        player=player,
        lottery=lottery,
    )


def scamball_prize(matches: int, special_hit: bool) -> int:
    """
    Prize for a non-grand-prize ticket.

    5 numbers plus the scamball is the jackpot, whose value depends on the
    current pot; callers check for it before calling this.
    """

    return SCAMBALL_PRIZES.get((matches, special_hit), 0)


def _draw_distinct(rng: RandomSource, count: int, upper: int) -> List[int]:
    numbers: List[int] = []
    while len(numbers) < count:
        n = rng.randint(1, upper)
        if n not in numbers:
            numbers.append(n)
    return numbers


def autopick(rng: RandomSource) -> Tuple[List[int], int]:
    """Quick-pick: five sorted distinct numbers and a scamball number."""

    numbers = sorted(_draw_distinct(rng, SCAMBALL_PICKS, SCAMBALL_MAX_NUMBER))
    return numbers, rng.randint(1, SCAMBALL_MAX_SPECIAL)


def _validate_ticket(numbers: Sequence[int], special: int):
    if len(numbers) != SCAMBALL_PICKS:
        return f"Please enter exactly {SCAMBALL_PICKS} numbers between 1-{SCAMBALL_MAX_NUMBER}"
    if not all(1 <= n <= SCAMBALL_MAX_NUMBER for n in numbers):
        return f"All numbers must be between 1 and {SCAMBALL_MAX_NUMBER}"
    if special < 1 or special > SCAMBALL_MAX_SPECIAL:
        return f"Scamball number must be between 1 and {SCAMBALL_MAX_SPECIAL}"
    if len(set(numbers)) != len(numbers):
        return "All numbers must be different"
    return None


def scamball_roll(
    username: str,
    numbers: Sequence[int],
    special: int,
    player_repo: PlayerRepository,
    lottery_repo: LotteryRepository,
    rng: RandomSource,
) -> OperationResult:
    error = _validate_ticket(numbers, special)
    if error:
        return fail(ErrorKind.INVALID_INPUT, error)

    player = player_repo.get_player(username)
    if player is None:
        return not_found(username)
    if player.points < SCAMBALL_TICKET_PRICE:
        return fail(
            ErrorKind.INSUFFICIENT_POINTS,
            f"{username}, you need {SCAMBALL_TICKET_PRICE - player.points} "
            "more points to buy a scamball ticket",
        )

    lottery = lottery_repo.get_lottery()
    player.points -= SCAMBALL_TICKET_PRICE

    winning = _draw_distinct(rng, SCAMBALL_PICKS, SCAMBALL_MAX_NUMBER)
    winning_special = rng.randint(1, SCAMBALL_MAX_SPECIAL)
    matches = len(set(numbers) & set(winning))
    special_hit = special == winning_special

    if matches == SCAMBALL_PICKS and special_hit:
        prize = lottery.scamball_jackpot
        lottery.scamball_jackpot = SCAMBALL_BASE_JACKPOT
        outcome = "jackpot"
        logger.info("%s hit the scamball jackpot for %d points", username, prize)
    else:
        lottery.scamball_jackpot += SCAMBALL_TICKET_PRICE
        prize = scamball_prize(matches, special_hit)
        outcome = "win" if prize else "lose"
    player.points += prize

    player_repo.save_player(player)
    lottery_repo.save_lottery(lottery)

    plural = "" if matches == 1 else "s"
    message = (
        f"{username} matched {matches} number{plural}"
        f"{' and the scamball' if special_hit else ''}! "
        f"Winning numbers: {', '.join(str(n) for n in winning)} ({winning_special}). "
        f"{f'Won {prize} points! ' if prize > 0 else ''}"
        f"Current jackpot: {lottery.scamball_jackpot} points. "
        f"{username} now has {player.points} points"
    )
    return OperationResult(
        success=True,
        message=message,
        outcome=outcome,
        player=player,
        lottery=lottery,
    )


def scamball_rules(lottery_repo: LotteryRepository, prefix: str = "!") -> str:
    jackpot = lottery_repo.get_lottery().scamball_jackpot
    return (
        f"Scamball Rules: Cost is {SCAMBALL_TICKET_PRICE} points per ticket. "
        f"Pick {SCAMBALL_PICKS} different numbers (1-{SCAMBALL_MAX_NUMBER}) and 1 scamball "
        f"number (1-{SCAMBALL_MAX_SPECIAL}). Format: {prefix}scamball n1 n2 n3 n4 n5 (s) or "
        f"{prefix}scamball autopick. Prizes: Match 5+SB=Jackpot, 5=1M, 4+SB=50k, 4=100, 3+SB=100, "
        f"3=7, 2+SB=7, 1+SB=4, SB=4 points. Current jackpot: {jackpot} points."
    )
