from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

from domain.catalog import RACCOON
from domain.errors import ErrorKind
from domain.models import SCAMBALL_BASE_JACKPOT, Emoji, LotteryState, PlayerAccount
from domain.random_source import RandomSource
from domain.repositories import LotteryRepository, PlayerRepository

from .lottery import LOTTERY_BASE_PRIZE
from .services import OperationResult, fail, not_found


logger = logging.getLogger(__name__)

COOLDOWN = timedelta(minutes=15)
POLICE_BAN = timedelta(days=30)
RACCOON_CHANCE = 0.0005
EMOJI_MASS = 0.20

# Bands laid end to end after the emoji mass, in order of evaluation.
CASCADE: Tuple[Tuple[str, float], ...] = (
    ("scamball_ticket", 1 / 11_000_000),
    ("lottery_ticket", 1 / 250),
    ("large_points", 0.015),
    ("police", 0.005),
    ("rotten_food", 0.05),
    ("trash", 0.05),
    ("rocks", 0.05),
    ("small_points", 0.03),
    ("tiny_points", 0.40),
)

_FLAVOUR = {
    "rotten_food": "found rotten food. Yuck!",
    "trash": "found trash. Great.",
    "rocks": "found some rocks. Why were these even in here?",
    "nothing": "found nothing. Yippee.",
}
_POINT_FINDS = {"large_points": 1000, "small_points": 100, "tiny_points": 10}


def emoji_weight(price: int) -> float:
    """Raw rarity weight: cheaper emoji are far more likely to turn up."""

    return 1 / math.log10(price + 100) ** 4


def emoji_thresholds(catalog: Sequence[Emoji]) -> List[Tuple[Emoji, float]]:
    """
    Cumulative upper bounds for each findable emoji, in catalog order.

    Weights are normalised so the buckets cover exactly [0, EMOJI_MASS).
    """

    candidates = [e for e in catalog if not e.is_hidden and e.price > 0]
    if not candidates:
        return []

    weights = [emoji_weight(e.price) for e in candidates]
    total = sum(weights)
    thresholds = []
    running = 0.0
    for emoji, weight in zip(candidates, weights):
        running += weight / total * EMOJI_MASS
        thresholds.append((emoji, running))
        logger.debug(
            "%s (%s): chance=%.6f threshold=%.6f",
            emoji.character,
            emoji.alias,
            weight / total * EMOJI_MASS,
            running,
        )
    thresholds[-1] = (thresholds[-1][0], EMOJI_MASS)
    return thresholds


def pick_emoji(roll: float, catalog: Sequence[Emoji]) -> Optional[Emoji]:
    for emoji, threshold in emoji_thresholds(catalog):
        if roll < threshold:
            return emoji
    return None


def pick_band(roll: float) -> str:
    """Name of the cascade band `roll` falls into, or "nothing"."""

    threshold = EMOJI_MASS
    for name, width in CASCADE:
        threshold += width
        if roll < threshold:
            return name
    return "nothing"


def _check_gate(player: PlayerAccount, now: datetime) -> Optional[OperationResult]:
    username = player.username
    if player.dumpster_ban_until and player.dumpster_ban_until > now:
        return fail(
            ErrorKind.BANNED,
            f"@{username}, the police have banned you from this dumpster! "
            f"Come back on {player.dumpster_ban_until.strftime('%m/%d/%Y')}.",
        )
    if player.last_dumpster_dive:
        elapsed = (now - player.last_dumpster_dive).total_seconds() / 60
        minutes_left = math.ceil(COOLDOWN.total_seconds() / 60 - elapsed)
        if minutes_left > 0:
            return fail(
                ErrorKind.ON_COOLDOWN,
                f"@{username}, security's watching your dumpster, so you can't dive "
                f"in it yet! ({minutes_left} minutes until cooldown ends)",
            )
    return None


def dumpster_dive(
    username: str,
    catalog: Sequence[Emoji],
    player_repo: PlayerRepository,
    lottery_repo: LotteryRepository,
    rng: RandomSource,
    now: Optional[datetime] = None,
) -> OperationResult:
    """
    Dig through the dumpster once.

    Every attempt that gets past the ban and cooldown checks starts a new
    cooldown, whatever it turns up. A single roll decides the reward: the
    raccoon first, then the emoji buckets, then the fixed cascade of bands.
    """

    now = now or datetime.now(timezone.utc)
    player = player_repo.get_player(username)
    if player is None:
        return not_found(username)

    gated = _check_gate(player, now)
    if gated is not None:
        return gated

    player.last_dumpster_dive = now
    roll = rng.random()
    logger.debug("Dumpster dive for %s rolled %.6f", username, roll)

    lottery: Optional[LotteryState] = None
    if roll < RACCOON_CHANCE:
        outcome, found = _find_raccoon(player, catalog)
    else:
        emoji = pick_emoji(roll, catalog)
        if emoji is not None:
            outcome, found = _find_emoji(player, emoji)
        else:
            outcome = pick_band(roll)
            if outcome in ("scamball_ticket", "lottery_ticket", "police"):
                lottery = lottery_repo.get_lottery()
            found = _apply_band(outcome, player, lottery, rng, now)

    player_repo.save_player(player)
    if lottery is not None:
        lottery_repo.save_lottery(lottery)

    return OperationResult(
        success=True,
        message=f"@{username}, you dove in the dumpster and {found} You now have {player.points} points.",
        outcome=outcome,
        player=player,
        lottery=lottery,
    )


def _find_raccoon(player: PlayerAccount, catalog: Sequence[Emoji]) -> Tuple[str, str]:
    raccoon = next((e for e in catalog if e.character == RACCOON), None)
    if raccoon is None:
        logger.error("Raccoon emoji missing from the catalog")
        return "nothing", "found nothing interesting."
    if player.owns(raccoon.character):
        return (
            "raccoon_again",
            f"found... another raccoon!? But {raccoon.character} scared it off...",
        )
    player.add_emoji(raccoon.character)
    logger.info("%s found the raccoon", player.username)
    return (
        "raccoon",
        f"found... a raccoon!? {raccoon.character} is now your lifelong pal! "
        "(check your collection)",
    )


def _find_emoji(player: PlayerAccount, emoji: Emoji) -> Tuple[str, str]:
    if player.owns(emoji.character):
        return (
            "emoji_duplicate",
            f"found a {emoji.character}, but you already have one! "
            "You threw it back in the dumpster.",
        )
    player.add_emoji(emoji.character)
    return "emoji", f"found a {emoji.character}!"


def _apply_band(
    band: str,
    player: PlayerAccount,
    lottery: Optional[LotteryState],
    rng: RandomSource,
    now: datetime,
) -> str:
    if band == "scamball_ticket":
        prize = lottery.scamball_jackpot
        player.points += prize
        lottery.scamball_jackpot = SCAMBALL_BASE_JACKPOT
        logger.info("%s found a winning scamball ticket worth %d", player.username, prize)
        return f"found a winning scamball ticket! You won {prize} points!"

    if band == "lottery_ticket":
        prize = LOTTERY_BASE_PRIZE + lottery.lottery_bonus
        player.points += prize
        lottery.lottery_bonus = 0
        logger.info("%s found a winning lottery ticket worth %d", player.username, prize)
        return f"found a winning lottery ticket! You won {prize} points!"

    if band == "police":
        percent = rng.randint(10, 95)
        fine = player.points * percent // 100
        player.points -= fine
        lottery.scamball_jackpot += fine
        player.dumpster_ban_until = now + POLICE_BAN
        logger.info("%s was fined %d points and banned until %s", player.username, fine, player.dumpster_ban_until)
        return (
            "... were caught trespassing by the police! They have seized "
            f"{percent}% of your points and banned you from dumpster diving for "
            f"{POLICE_BAN.days} days!"
        )

    if band in _POINT_FINDS:
        amount = _POINT_FINDS[band]
        player.points += amount
        return f"found {amount} points!"

    return _FLAVOUR[band]
